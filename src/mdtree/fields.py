"""Bind field spans to the blocks and elements they capture.

A regular field captures whatever starts on the first non-blank line after
its marker: a whole block when that line is a heading, otherwise the element
starting there, with a loose list cut at its first blank line. An extended
field captures every unit inside its line range. A block that lies wholly
inside the range, children included, counts as one unit. Blocks that start
before the range or run past its end are taken element by element.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Union

from .blocks import BlockForest
from .config import logger
from .elements import build_element
from .markers import Token, TokenKind
from .models import (
    BaseElement,
    Block,
    ContentField,
    FieldKind,
    FieldType,
    HeadingElement,
    ImageElement,
    LinkElement,
    ListElement,
    walk_blocks,
)
from .sections import FieldSpan

Unit = Union[Block, BaseElement]

ELEMENT_TYPES = {ImageElement: FieldType.IMAGE, LinkElement: FieldType.LINK, ListElement: FieldType.LIST}


def infer_type(units: Sequence[Unit]) -> FieldType:
    if len(units) != 1:
        return FieldType.TEXT
    unit = units[0]
    if isinstance(unit, Block):
        return FieldType.HEADING if unit.heading is not None else FieldType.TEXT
    return ELEMENT_TYPES.get(type(unit), FieldType.TEXT)


def collect_units(forest: BlockForest, blocks: List[Block], start: int, end: int, out: List[Unit]) -> List[Unit]:
    """Units of the forest ``blocks`` within the line range [start, end).

    A block counts as a whole only when its heading and all of its content,
    children included, lie inside the range.
    """
    for block in blocks:
        if block.heading is not None and start <= block.heading.line and forest.extent(block) < end:
            out.append(block)
            continue
        for el in block.elements:
            if start <= el.line < end:
                out.append(el)
        collect_units(forest, block.children, start, end, out)
    return out


class FieldBinder:
    """Resolves the field spans of one scope against that scope's block forest."""

    def __init__(self, tokens: List[Token], forest: BlockForest, rendered: Dict[str, str]):
        self.tokens = tokens
        self.forest = forest
        self.rendered = rendered
        self.positions = {tok.line: i for i, tok in enumerate(tokens)}
        self.blocks_by_heading: Dict[int, Block] = {}
        self.elements_by_line: Dict[int, BaseElement] = {}
        for block in walk_blocks(forest.blocks):
            if block.heading is not None:
                self.blocks_by_heading[block.heading.line] = block
            for el in block.elements:
                if not isinstance(el, HeadingElement):
                    self.elements_by_line.setdefault(el.line, el)

    def bind(self, span: FieldSpan) -> Optional[ContentField]:
        units = self._extended_units(span) if span.extended else self._regular_units(span)
        if not units:
            logger.debug(f'Field "{span.name}" at line {span.line + 1} captured nothing')
            return None
        return make_field(span, units)

    def _regular_units(self, span: FieldSpan) -> List[Unit]:
        position = self.positions.get(span.line)
        if position is None:
            return []
        for tok in self.tokens[position + 1 :]:
            if tok.kind is TokenKind.BLANK:
                continue
            if tok.kind is TokenKind.HEADING:
                block = self.blocks_by_heading.get(tok.line)
                return [block] if block is not None else []
            if tok.kind is TokenKind.CONTENT:
                element = self.elements_by_line.get(tok.line)
                return [self._leading_run(element)] if element is not None else []
            # Another marker came first
            return []
        return []

    def _leading_run(self, element: BaseElement) -> BaseElement:
        chunk = self.forest.chunks.get(element.line)
        if not isinstance(element, ListElement) or chunk is None:
            return element
        run = chunk.leading_run()
        if run is chunk:
            return element
        return build_element(run, self.rendered.get(run.markdown, ""))

    def _extended_units(self, span: FieldSpan) -> List[Unit]:
        return collect_units(self.forest, self.forest.blocks, span.start, span.end, [])


def _views(unit: Unit, heading_only: bool):
    if isinstance(unit, Block):
        if heading_only:
            return unit.heading.markdown, unit.heading.html, unit.heading.text
        return unit.get_markdown(True), unit.get_html(True), unit.get_text(True)
    return unit.markdown, unit.html, unit.text


def make_field(span: FieldSpan, units: List[Unit]) -> ContentField:
    views = [_views(u, heading_only=not span.extended) for u in units]
    return ContentField(
        name=span.name,
        kind=FieldKind.EXTENDED if span.extended else FieldKind.REGULAR,
        type=infer_type(units),
        line=span.line,
        markdown="\n\n".join(v[0] for v in views if v[0]),
        html="\n".join(v[1] for v in views if v[1]),
        text="\n\n".join(v[2] for v in views if v[2]),
        units=tuple(units),
    )


def bind_fields(
    spans: List[FieldSpan], tokens: List[Token], forest: BlockForest, rendered: Dict[str, str]
) -> List[ContentField]:
    """Bind every span of a scope, dropping fields that captured nothing."""
    binder = FieldBinder(tokens, forest, rendered)
    fields = []
    seen = set()
    for span in spans:
        bound = binder.bind(span)
        if bound is None:
            continue
        if bound.name in seen:
            logger.debug(f'Duplicate field "{bound.name}" at line {bound.line + 1}, name lookup keeps the first one')
        seen.add(bound.name)
        fields.append(bound)
    return fields


def attach_to_blocks(fields: List[ContentField], forest: BlockForest) -> None:
    """Give each field to the block whose own span holds its marker line."""
    by_owner: Dict[int, List[ContentField]] = {}
    owners: Dict[int, Block] = {}
    for f in fields:
        owner = forest.owners.get(f.line)
        if owner is None:
            continue
        owners[id(owner)] = owner
        by_owner.setdefault(id(owner), []).append(f)
    for key, owned in by_owner.items():
        owners[key]._set_fields(owned)
