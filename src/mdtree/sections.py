"""Group a token stream into section and subsection spans.

The spans produced here are parse-time structures. They record which lines
belong to which scope and where each field capture starts and ends; the block
builder and the field binder turn them into the output tree.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .config import logger
from .exceptions import StructureError
from .markers import Token, TokenKind
from .stack import OpenItem, OpenItemStack, OpenKind, Resolution


@dataclass
class FieldSpan:
    """A field marker and the lines it may capture.

    ``end`` is the exclusive end line of an extended field. Regular fields
    leave it as None; they stop at the first blank line or marker.
    """

    name: str
    extended: bool
    line: int
    scope_index: int
    end: Optional[int] = None
    closed: bool = False

    @property
    def start(self) -> int:
        return self.line + 1


@dataclass
class ScopeSpan:
    """Lines attributed to one subsection (or the implicit default one).

    ``line`` and ``end`` bound a ``sub:`` scope from its marker to the line that
    closed it. The default scope has neither.
    """

    name: Optional[str]
    index: int
    line: Optional[int] = None
    end: Optional[int] = None
    tokens: List[Token] = field(default_factory=list)
    fields: List[FieldSpan] = field(default_factory=list)


@dataclass
class SectionSpan:
    name: Optional[str]
    index: int
    end: int
    marker_line: Optional[int] = None
    tokens: List[Token] = field(default_factory=list)
    subsections: List[ScopeSpan] = field(default_factory=list)
    fields: List[FieldSpan] = field(default_factory=list)

    @property
    def default(self) -> ScopeSpan:
        return self.subsections[0]


def split_sections(tokens: List[Token], line_count: int) -> List[SectionSpan]:
    """Cut the token stream at section markers.

    Content ahead of the first marker forms an unnamed leading section when it
    holds anything other than blank lines. Explicit sections are always kept.
    """
    sections: List[SectionSpan] = []
    current: Optional[SectionSpan] = None
    leading: List[Token] = []

    for tok in tokens:
        if tok.kind is TokenKind.SECTION:
            if current is None and any(t.kind is not TokenKind.BLANK for t in leading):
                sections.append(SectionSpan(None, len(sections), tok.line, tokens=leading))
            if current is not None:
                current.end = tok.line
            current = SectionSpan(tok.name, len(sections), line_count, marker_line=tok.line)
            sections.append(current)
            continue
        if current is None:
            leading.append(tok)
        else:
            current.tokens.append(tok)

    if current is None and any(t.kind is not TokenKind.BLANK for t in leading):
        sections.append(SectionSpan(None, 0, line_count, tokens=leading))

    return sections


def check_nesting(ranges: Iterable[Tuple[int, int]], max_depth: int) -> None:
    """Raise ``StructureError`` when line ranges nest deeper than ``max_depth``.

    A range encloses a later one when it is still open at the later one's end.
    Ranges that ended before a later one opened are siblings and do not add to
    its depth.

    Args:
        ranges: ``(start, end)`` pairs, end exclusive
        max_depth: Deepest allowed nesting
    """
    ends: List[int] = []
    for line, end in sorted(ranges):
        depth = len(ends) - bisect.bisect_left(ends, end) + 1
        if depth > max_depth:
            raise StructureError(depth, max_depth, line)
        bisect.insort(ends, end)


class SectionAssembler:
    """Attribute the lines of one section to its subsections and fields."""

    def __init__(self, section: SectionSpan, max_depth: int = 64):
        self.section = section
        self.max_depth = max_depth
        self.stack = OpenItemStack()

    def assemble(self) -> SectionSpan:
        section = self.section
        section.subsections = [ScopeSpan(None, 0)]
        section.fields = []

        for tok in section.tokens:
            kind = tok.kind
            if kind is TokenKind.SUB_OPEN:
                self._open_subsection(tok)
            elif kind is TokenKind.FIELD_OPEN:
                self._open_field(tok)
            elif kind is TokenKind.CLOSE_ANY:
                self._apply(tok, self.stack.close_top())
            elif kind is TokenKind.CLOSE_SUB:
                if tok.name is None:
                    self._apply(tok, self.stack.drop_to_subsection())
                else:
                    self._apply(tok, self.stack.close_matching(OpenKind.SUBSECTION, tok.name))
            elif kind is TokenKind.CLOSE_FIELD:
                self._apply(tok, self.stack.close_matching(OpenKind.FIELD, tok.name))
            else:
                self._current_scope().tokens.append(tok)

        # The next section marker (or the end of input) closes what is left.
        # Fields still open bleed to the next opener instead.
        for item in self.stack.flush().closed:
            if item.kind is OpenKind.SUBSECTION:
                item.target.end = section.end
        self._bleed_unclosed_fields()
        check_nesting(self._ranges(), self.max_depth)
        return section

    def _current_scope(self) -> ScopeSpan:
        item = self.stack.current_subsection()
        return item.target if item is not None else self.section.default

    def _open_subsection(self, tok: Token) -> None:
        if self.stack.current_subsection() is not None:
            self._close(self.stack.drop_to_subsection(), tok.line)
        scope = ScopeSpan(tok.name, len(self.section.subsections), line=tok.line)
        self.section.subsections.append(scope)
        self.stack.push(OpenItem(OpenKind.SUBSECTION, tok.name, tok.line, target=scope))

    def _open_field(self, tok: Token) -> None:
        scope = self._current_scope()
        span = FieldSpan(tok.name, tok.extended, tok.line, scope.index)
        scope.fields.append(span)
        scope.tokens.append(tok)
        self.section.fields.append(span)
        if tok.extended:
            self.stack.push(OpenItem(OpenKind.FIELD, tok.name, tok.line, target=span))

    def _apply(self, tok: Token, resolution: Resolution) -> None:
        # Closer lines separate content in whichever scope is current afterwards
        self._current_scope().tokens.append(tok)
        if not resolution.matched:
            logger.debug(f'Ignoring closer "{tok.text.strip()}" at line {tok.line + 1}: nothing to close')
            return
        self._close(resolution, tok.line)

    def _close(self, resolution: Resolution, line: int) -> None:
        for item in resolution.closed:
            item.target.end = line
            if item.kind is OpenKind.FIELD:
                item.target.closed = True

    def _bleed_unclosed_fields(self) -> None:
        openers = sorted(s.line for s in self.section.fields)
        for span in self.section.fields:
            if not span.extended or span.closed:
                continue
            later = bisect.bisect_right(openers, span.line)
            span.end = openers[later] if later < len(openers) else self.section.end

    def _ranges(self) -> List[Tuple[int, int]]:
        ranges = [(s.line, s.end) for s in self.section.subsections if s.line is not None]
        ranges.extend((s.line, s.end) for s in self.section.fields if s.extended)
        return ranges


def assemble_sections(tokens: List[Token], line_count: int, max_depth: int = 64) -> List[SectionSpan]:
    """Split the token stream into fully attributed section spans."""
    return [SectionAssembler(s, max_depth).assemble() for s in split_sections(tokens, line_count)]
