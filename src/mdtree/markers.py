"""Tokenize a markdown body into marker, heading and content lines.

Markers are HTML comments that sit alone on a line::

    <!-- section:hero -->     start a named section
    <!-- sub:intro -->        start a subsection
    <!-- title -->            regular field, tags the next element or heading
    <!-- gallery... -->       extended field, bleeds until closed
    <!-- / -->                close whatever was opened last
    <!-- /sub -->             close the nearest subsection
    <!-- /gallery -->         close a field (or ``/sub:intro`` a subsection) by name

Comments of any other shape are ordinary content. Nothing inside a fenced code
block is ever a marker or a heading.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .utils import is_blank, split_lines

NAME = r"[A-Za-z0-9_-]+"

COMMENT_RE = re.compile(r"^\s*<!--\s*(.*?)\s*-->\s*$")
SECTION_RE = re.compile(rf"^section(?::({NAME}))?$")
SUB_OPEN_RE = re.compile(rf"^sub:({NAME})$")
SUB_CLOSE_RE = re.compile(rf"^/sub(?::({NAME}))?$")
FIELD_CLOSE_RE = re.compile(rf"^/({NAME})$")
FIELD_OPEN_RE = re.compile(rf"^({NAME})(\.\.\.)?$")

HEADING_RE = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.*?)(?:[ \t]+#+)?[ \t]*$")
FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")


class TokenKind(str, Enum):
    CONTENT = "content"
    BLANK = "blank"
    HEADING = "heading"
    SECTION = "section"
    SUB_OPEN = "sub_open"
    FIELD_OPEN = "field_open"
    CLOSE_ANY = "close_any"
    CLOSE_SUB = "close_sub"
    CLOSE_FIELD = "close_field"


MARKER_KINDS = frozenset(
    {
        TokenKind.SECTION,
        TokenKind.SUB_OPEN,
        TokenKind.FIELD_OPEN,
        TokenKind.CLOSE_ANY,
        TokenKind.CLOSE_SUB,
        TokenKind.CLOSE_FIELD,
    }
)


@dataclass(frozen=True)
class Token:
    """One body line.

    Attributes:
        line: Zero-based line number within the body
        kind: What the line is
        text: The raw line
        name: Marker name, if the marker carries one
        extended: True for ``NAME...`` field openers
        level: Heading level for heading lines
    """

    line: int
    kind: TokenKind
    text: str
    name: Optional[str] = None
    extended: bool = False
    level: Optional[int] = None

    @property
    def is_marker(self) -> bool:
        return self.kind in MARKER_KINDS

    @property
    def heading_text(self) -> str:
        m = HEADING_RE.match(self.text)
        return m.group(2) if m else ""


def classify_marker(content: str) -> Optional[Tuple[TokenKind, Optional[str], bool]]:
    """Classify the inside of a comment.

    Reserved forms are checked before the generic field name so that
    ``section`` and ``sub:x`` can never be read as field openers.
    """
    m = SECTION_RE.match(content)
    if m:
        return TokenKind.SECTION, m.group(1), False
    if content.startswith("section:"):
        return None

    m = SUB_OPEN_RE.match(content)
    if m:
        return TokenKind.SUB_OPEN, m.group(1), False
    if content.startswith("sub:"):
        return None

    if content.startswith("/"):
        if content == "/":
            return TokenKind.CLOSE_ANY, None, False
        m = SUB_CLOSE_RE.match(content)
        if m:
            return TokenKind.CLOSE_SUB, m.group(1), False
        m = FIELD_CLOSE_RE.match(content)
        if m:
            return TokenKind.CLOSE_FIELD, m.group(1), False
        return None

    m = FIELD_OPEN_RE.match(content)
    if m:
        return TokenKind.FIELD_OPEN, m.group(1), bool(m.group(2))
    return None


def classify_line(line_no: int, text: str) -> Token:
    if is_blank(text):
        return Token(line_no, TokenKind.BLANK, text)

    m = COMMENT_RE.match(text)
    if m:
        marker = classify_marker(m.group(1))
        if marker is not None:
            kind, name, extended = marker
            return Token(line_no, kind, text, name=name, extended=extended)

    m = HEADING_RE.match(text)
    if m and m.group(2).strip():
        return Token(line_no, TokenKind.HEADING, text, level=len(m.group(1)))

    return Token(line_no, TokenKind.CONTENT, text)


def scan_lines(lines: List[str]) -> List[Token]:
    tokens: List[Token] = []
    fence: Optional[str] = None

    for line_no, text in enumerate(lines):
        if fence is not None:
            kind = TokenKind.BLANK if is_blank(text) else TokenKind.CONTENT
            tokens.append(Token(line_no, kind, text))
            if closes_fence(text, fence):
                fence = None
            continue

        m = FENCE_RE.match(text)
        if m and not (m.group(1)[0] == "`" and "`" in m.group(2)):
            fence = m.group(1)
            tokens.append(Token(line_no, TokenKind.CONTENT, text))
            continue

        tokens.append(classify_line(line_no, text))

    return tokens


def scan(body: str) -> List[Token]:
    """Tokenize a body string, one token per line."""
    return scan_lines(split_lines(body))


def closes_fence(text: str, fence: str) -> bool:
    stripped = text.strip()
    if len(text) - len(text.lstrip(" ")) > 3:
        return False
    return len(stripped) >= len(fence) and stripped == fence[0] * len(stripped)
