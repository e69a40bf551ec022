from __future__ import annotations

import pathlib
from typing import List, Tuple, Union

from .blocks import BlockDraft, build_block_drafts, iter_fragments, materialize
from .config import ParserConfig, logger
from .exceptions import InputError
from .fields import attach_to_blocks, bind_fields
from .header import split_header
from .markers import scan
from .models import Document, Section, Subsection
from .render import PandocRenderer, Renderer, render_fragments
from .sections import ScopeSpan, SectionSpan, assemble_sections
from .utils import join_lines

Source = Union[str, bytes]


def decode_source(source: Source) -> str:
    if isinstance(source, (bytes, bytearray)):
        try:
            return bytes(source).decode("utf-8")
        except UnicodeDecodeError as e:
            raise InputError(f"Input is not valid UTF-8: {e}") from e
    if not isinstance(source, str):
        raise InputError(f"Expected str or bytes, got {type(source).__name__}")
    try:
        source.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InputError(f"Input cannot be encoded as UTF-8: {e}") from e
    return source


class SectionPlan:
    """Drafts of one section and its subsections, waiting for rendering."""

    def __init__(self, span: SectionSpan, max_depth: int):
        self.span = span
        self.drafts = build_block_drafts(span.tokens, max_depth)
        self.sub_drafts: List[Tuple[ScopeSpan, List[BlockDraft]]] = [
            (sub, build_block_drafts(sub.tokens, max_depth)) for sub in span.subsections
        ]

    def fragments(self):
        yield from iter_fragments(self.drafts)
        for _, drafts in self.sub_drafts:
            yield from iter_fragments(drafts)

    def build(self, rendered) -> Section:
        span = self.span
        forest = materialize(self.drafts, rendered)
        fields = bind_fields(span.fields, span.tokens, forest, rendered)
        attach_to_blocks(fields, forest)

        subsections = []
        for sub, drafts in self.sub_drafts:
            sub_forest = materialize(drafts, rendered)
            sub_fields = bind_fields(sub.fields, sub.tokens, sub_forest, rendered)
            attach_to_blocks(sub_fields, sub_forest)
            subsections.append(
                Subsection(
                    name=sub.name,
                    index=sub.index,
                    section_index=span.index,
                    markdown=join_lines(t.text for t in sub.tokens),
                    blocks=tuple(sub_forest.blocks),
                    field_list=tuple(sub_fields),
                )
            )

        return Section(
            name=span.name,
            index=span.index,
            markdown=join_lines(t.text for t in span.tokens),
            subsections=tuple(subsections),
            blocks=tuple(forest.blocks),
            field_list=tuple(fields),
        )


class DocumentParser:
    """Parses marker-annotated markdown into a ``Document``.

    A parser holds only its settings and renderer, so one instance can be
    reused for any number of documents.
    """

    def __init__(self, config: ParserConfig = None, renderer: Renderer = None):
        self.config = config if config is not None else ParserConfig()
        if renderer is None:
            renderer = PandocRenderer(self.config.pandoc_format, self.config.pandoc_extra_args)
        self.renderer = renderer

    def parse(self, source: Source) -> Document:
        text = decode_source(source)
        header = split_header(text, self.config.header_delimiter)
        tokens = scan(header.body)
        spans = assemble_sections(tokens, len(tokens), self.config.max_depth)

        plans = [SectionPlan(span, self.config.max_depth) for span in spans]
        rendered = render_fragments(self.renderer, (f for plan in plans for f in plan.fragments()))
        sections = [plan.build(rendered) for plan in plans]

        logger.debug(f"Parsed {len(sections)} sections from {len(tokens)} body lines")
        return Document(
            raw=text,
            header_raw=header.raw,
            header=header.values,
            body=header.body,
            sections=tuple(sections),
        )


def parse(source: Source, config: ParserConfig = None, renderer: Renderer = None) -> Document:
    """Parse markdown text (str or UTF-8 bytes) into a document tree."""
    return DocumentParser(config, renderer).parse(source)


def load(path: Union[str, pathlib.Path], config: ParserConfig = None, renderer: Renderer = None) -> Document:
    path = pathlib.Path(path)
    logger.info(f'Loading markdown from "{path}"')
    return parse(path.read_bytes(), config, renderer)
