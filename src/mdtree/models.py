"""Content tree produced by the parser.

The tree offers:
- positional access: ordered sections, blocks, children and elements
- named access: sections, subsections and fields by name, first occurrence wins
- aggregate collections of images, links, lists, paragraphs and headings for
  every scope (document, section, subsection, block)

Trees are built once per parse and not modified afterwards. Models are frozen,
sequences are tuples and name lookups are read-only mappings.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Dict, Iterable, Iterator, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class ElementKind(str, Enum):
    """Types of content elements in a block."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    IMAGE = "image"
    LINK = "link"
    LIST = "list"
    CODE = "code"


class FieldKind(str, Enum):
    REGULAR = "regular"
    EXTENDED = "extended"


class FieldType(str, Enum):
    HEADING = "heading"
    IMAGE = "image"
    LINK = "link"
    LIST = "list"
    TEXT = "text"


class ElementCollection(list):
    """A list of elements with combined views.

    ``html`` concatenates the elements' HTML, ``text`` and ``markdown`` join
    them with blank lines.
    """

    @property
    def html(self) -> str:
        return "".join(el.html for el in self)

    @property
    def text(self) -> str:
        return "\n\n".join(el.text for el in self if el.text).strip()

    @property
    def markdown(self) -> str:
        return "\n\n".join(el.markdown for el in self if el.markdown).strip()

    def __str__(self) -> str:
        return self.text


class BaseElement(BaseModel):
    """Common views of an element.

    Attributes:
        markdown: Source markdown of the element
        html: Rendered HTML
        text: Plain text derived from the HTML
        line: Zero-based body line the element starts on
    """
    model_config = ConfigDict(frozen=True)

    markdown: str
    html: str
    text: str
    line: int

    def __str__(self) -> str:
        return self.text


class HeadingElement(BaseElement):
    kind: Literal[ElementKind.HEADING] = ElementKind.HEADING
    level: int


class ImageElement(BaseElement):
    kind: Literal[ElementKind.IMAGE] = ElementKind.IMAGE
    src: str
    alt: str = ""
    title: Optional[str] = None


class LinkElement(BaseElement):
    kind: Literal[ElementKind.LINK] = ElementKind.LINK
    href: str
    title: Optional[str] = None


class ParagraphElement(BaseElement):
    """A paragraph, plus the images and links found inline in it."""
    kind: Literal[ElementKind.PARAGRAPH] = ElementKind.PARAGRAPH
    images: Tuple[ImageElement, ...] = ()
    links: Tuple[LinkElement, ...] = ()


class CodeElement(BaseElement):
    kind: Literal[ElementKind.CODE] = ElementKind.CODE
    language: Optional[str] = None


class ListItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    markdown: str
    html: str
    text: str
    images: Tuple[ImageElement, ...] = ()
    links: Tuple[LinkElement, ...] = ()

    def __str__(self) -> str:
        return self.text


class ListElement(BaseElement):
    kind: Literal[ElementKind.LIST] = ElementKind.LIST
    ordered: bool = False
    items: Tuple[ListItem, ...] = ()

    @property
    def images(self) -> List[ImageElement]:
        return [img for item in self.items for img in item.images]

    @property
    def links(self) -> List[LinkElement]:
        return [link for item in self.items for link in item.links]


Element = Annotated[
    Union[HeadingElement, ParagraphElement, ImageElement, LinkElement, ListElement, CodeElement],
    Field(discriminator="kind"),
]


def walk_blocks(blocks: Iterable[Block]) -> Iterator[Block]:
    """Depth-first, document-order walk over a block forest."""
    for block in blocks:
        yield block
        yield from walk_blocks(block.children)


class ScopeViews:
    """Aggregate collections over a scope and everything below it."""

    def _view_blocks(self) -> Iterator[Block]:
        return walk_blocks(self.blocks)

    def _gather(self, method: str) -> ElementCollection:
        return ElementCollection(el for block in self._view_blocks() for el in getattr(block, method)())

    @property
    def images(self) -> ElementCollection:
        return self._gather("own_images")

    @property
    def links(self) -> ElementCollection:
        return self._gather("own_links")

    @property
    def lists(self) -> ElementCollection:
        return self._gather("own_lists")

    @property
    def paragraphs(self) -> ElementCollection:
        return self._gather("own_paragraphs")

    @property
    def headings(self) -> ElementCollection:
        return self._gather("own_headings")


class FieldLookup:
    """Name-keyed field access shared by sections, subsections and blocks."""

    @property
    def fields(self) -> Mapping[str, ContentField]:
        """First field of each name from ``field_list``, read-only."""
        by_name: Dict[str, ContentField] = {}
        for f in self.field_list:
            by_name.setdefault(f.name, f)
        return MappingProxyType(by_name)

    def field(self, name: str) -> Optional[ContentField]:
        """Get the first field with this name, or None."""
        return self.fields.get(name)

    def fields_named(self, name: str) -> List[ContentField]:
        """Get every field with this name in document order."""
        return [f for f in self.field_list if f.name == name]


class ContentField(BaseModel):
    """A named capture over one element, one block, or a run of them.

    Attributes:
        name: Field name from the marker
        kind: Regular (single capture) or extended (bleeding)
        type: Inferred content type
        line: Zero-based body line of the opening marker
        markdown: Captured markdown, markers removed
        html: Rendered HTML of the capture
        text: Plain text of the capture
        units: Captured blocks and elements in document order
    """
    model_config = ConfigDict(frozen=True)

    name: str
    kind: FieldKind
    type: FieldType
    line: int
    markdown: str
    html: str
    text: str
    units: Tuple[
        Union[Block, HeadingElement, ParagraphElement, ImageElement, LinkElement, ListElement, CodeElement], ...
    ] = Field(default=(), exclude=True, repr=False)

    @property
    def block(self) -> Optional[Block]:
        """The bound block when the field captured exactly one block."""
        if len(self.units) == 1 and isinstance(self.units[0], Block):
            return self.units[0]
        return None

    @property
    def element(self) -> Optional[BaseElement]:
        """The bound element when the field captured exactly one element."""
        if len(self.units) == 1 and isinstance(self.units[0], BaseElement):
            return self.units[0]
        return None

    @property
    def items(self) -> List[Any]:
        """Captured units of an extended field, or the items of a list field."""
        if self.kind is FieldKind.EXTENDED:
            return list(self.units)
        if isinstance(self.element, ListElement):
            return list(self.element.items)
        return []

    def __str__(self) -> str:
        return self.text

    def __eq__(self, other: Any) -> bool:
        # Units point back into the tree, compare the serialized views only
        if not isinstance(other, ContentField):
            return NotImplemented
        return self.model_dump() == other.model_dump()


class Block(ScopeViews, FieldLookup, BaseModel):
    """A heading and the content that follows it up to the next heading.

    Orphan blocks (content before the first heading of a scope) have neither
    heading nor level.

    Attributes:
        heading: The heading element, None for an orphan block
        level: Heading level (1-6), None for an orphan block
        line: Zero-based body line the block starts on
        markdown: Source of the block's own span with marker lines removed, children excluded
        elements: Elements from the block's own content, heading first
        children: Blocks of deeper headings, in document order
        field_list: Fields whose marker lies in the block's own span
        fields: First field of each name from field_list
    """
    model_config = ConfigDict(frozen=True)

    heading: Optional[HeadingElement] = None
    level: Optional[int] = None
    line: int
    markdown: str = ""
    elements: Tuple[Element, ...] = ()
    children: Tuple[Block, ...] = ()
    _field_list: Tuple[ContentField, ...] = PrivateAttr(default=())

    @property
    def field_list(self) -> Tuple[ContentField, ...]:
        return self._field_list

    def _set_fields(self, fields: Iterable[ContentField]) -> None:
        # Called once by the field binder, after the whole forest exists
        self._field_list = tuple(fields)

    @property
    def is_orphan(self) -> bool:
        return self.heading is None

    @property
    def html(self) -> str:
        return self.get_html()

    @property
    def text(self) -> str:
        return self.get_text()

    def get_markdown(self, include_children: bool = False) -> str:
        parts = [self.markdown] if self.markdown else []
        if include_children:
            parts.extend(c.get_markdown(True) for c in self.children)
        return "\n\n".join(p for p in parts if p)

    def get_html(self, include_children: bool = False) -> str:
        parts = [el.html for el in self.elements]
        if include_children:
            parts.extend(c.get_html(True) for c in self.children)
        return "\n".join(p for p in parts if p)

    def get_text(self, include_children: bool = False) -> str:
        parts = [el.text for el in self.elements]
        if include_children:
            parts.extend(c.get_text(True) for c in self.children)
        return "\n\n".join(p for p in parts if p)

    def _view_blocks(self) -> Iterator[Block]:
        yield self
        yield from walk_blocks(self.children)

    def own_headings(self) -> List[HeadingElement]:
        return [self.heading] if self.heading is not None else []

    def own_paragraphs(self) -> List[ParagraphElement]:
        return [el for el in self.elements if isinstance(el, ParagraphElement)]

    def own_lists(self) -> List[ListElement]:
        return [el for el in self.elements if isinstance(el, ListElement)]

    def own_images(self) -> List[ImageElement]:
        images = []
        for el in self.elements:
            if isinstance(el, ImageElement):
                images.append(el)
            elif isinstance(el, (ParagraphElement, ListElement)):
                images.extend(el.images)
        return images

    def own_links(self) -> List[LinkElement]:
        links = []
        for el in self.elements:
            if isinstance(el, LinkElement):
                links.append(el)
            elif isinstance(el, (ParagraphElement, ListElement)):
                links.extend(el.links)
        return links

    def get_all_descendants(self) -> List[Block]:
        """Get all descendant blocks recursively."""
        return list(walk_blocks(self.children))


class Subsection(ScopeViews, FieldLookup, BaseModel):
    """A ``sub:NAME`` scope inside a section, or the section's default scope."""
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    index: int
    section_index: int
    markdown: str = ""
    blocks: Tuple[Block, ...] = ()
    field_list: Tuple[ContentField, ...] = Field(default=(), repr=False)

    @property
    def is_default(self) -> bool:
        return self.name is None

    @property
    def html(self) -> str:
        return "\n".join(b.get_html(True) for b in self.blocks)

    @property
    def text(self) -> str:
        return "\n\n".join(t for t in (b.get_text(True) for b in self.blocks) if t)


class Section(ScopeViews, FieldLookup, BaseModel):
    """A top-level container opened by ``section`` or ``section:NAME``.

    Attributes:
        name: Section name, None for unnamed sections
        index: Position in the document's section list
        markdown: Source of the whole section, markers included
        subsections: Default subsection first, then ``sub:`` scopes in order
        blocks: Block forest over the whole section
        field_list: All fields of the section in document order
        fields: First field of each name from field_list
    """
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    index: int
    markdown: str = ""
    subsections: Tuple[Subsection, ...] = ()
    blocks: Tuple[Block, ...] = ()
    field_list: Tuple[ContentField, ...] = Field(default=(), repr=False)

    @property
    def default_subsection(self) -> Subsection:
        return self.subsections[0]

    def subsection(self, name: str) -> Optional[Subsection]:
        """Get the first subsection with this name, or None."""
        for sub in self.subsections:
            if sub.name is not None and sub.name == name:
                return sub
        return None

    @property
    def title(self) -> str:
        """Text of the first heading in the section, or an empty string."""
        headings = self.headings
        return headings[0].text if headings else ""

    @property
    def html(self) -> str:
        return "\n".join(b.get_html(True) for b in self.blocks)

    @property
    def text(self) -> str:
        return "\n\n".join(t for t in (b.get_text(True) for b in self.blocks) if t)


class Document(ScopeViews, BaseModel):
    """A parsed document.

    Attributes:
        raw: The original input text, unchanged
        header_raw: Text between the header delimiters, None without a header
        header: Parsed ``key: value`` pairs from the header
        body: Body text with blank edge lines trimmed
        sections: All sections in document order
    """
    model_config = ConfigDict(frozen=True)

    raw: str
    header_raw: Optional[str] = None
    header: Dict[str, str] = Field(default_factory=dict)
    body: str = ""
    sections: Tuple[Section, ...] = ()

    def section(self, name: str) -> Optional[Section]:
        """Get the first section with this name, or None."""
        for section in self.sections:
            if section.name is not None and section.name == name:
                return section
        return None

    @property
    def blocks(self) -> List[Block]:
        return [block for section in self.sections for block in section.blocks]

    def validate_structure(self) -> Dict[str, Any]:
        """Count what the parser found.

        Returns:
            Dictionary of totals, with headings counted per level
        """
        stats = {
            "sections": len(self.sections),
            "subsections": sum(len(s.subsections) - 1 for s in self.sections),
            "blocks": len(list(walk_blocks(self.blocks))),
            "fields": sum(len(s.field_list) for s in self.sections),
            "images": len(self.images),
            "links": len(self.links),
            "lists": len(self.lists),
            "paragraphs": len(self.paragraphs),
            "headings_by_level": {},
        }
        for heading in self.headings:
            stats["headings_by_level"][heading.level] = stats["headings_by_level"].get(heading.level, 0) + 1
        return stats


ContentField.model_rebuild()
Block.model_rebuild()
Subsection.model_rebuild()
Section.model_rebuild()
Document.model_rebuild()
