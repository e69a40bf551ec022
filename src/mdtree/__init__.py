from .config import ParserConfig
from .document import DocumentParser, load, parse
from .exceptions import InputError, MdTreeError, RenderError, StructureError
from .models import Block, ContentField, Document, Section, Subsection
from .render import PandocRenderer

__all__ = [
    ParserConfig,
    DocumentParser,
    load,
    parse,
    InputError,
    MdTreeError,
    RenderError,
    StructureError,
    Block,
    ContentField,
    Document,
    Section,
    Subsection,
    PandocRenderer,
]
