"""Split an optional delimited metadata header from a markdown document.

A header is only recognised when the very first line is the delimiter and a
second delimiter line closes it::

    ---
    title: Home
    lang: en
    ---
    Body text

Anything else, including an unterminated header, is treated as body.
"""

from __future__ import annotations

import re
from typing import Dict, List, NamedTuple, Optional

from .utils import join_lines, split_lines

HEADER_PAIR_RE = re.compile(r"^([A-Za-z0-9_-]+)\s*:\s*(.*)$")
BOM = "\ufeff"


class HeaderSplit(NamedTuple):
    raw: Optional[str]
    values: Dict[str, str]
    body: str


def parse_header(raw: str) -> Dict[str, str]:
    """Parse ``key: value`` lines. Lines of any other shape are skipped."""
    values: Dict[str, str] = {}
    for line in split_lines(raw):
        m = HEADER_PAIR_RE.match(line)
        if m is None:
            continue
        values[m.group(1)] = _unquote(m.group(2).strip())
    return values


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _find_closing(lines: List[str], delimiter: str) -> Optional[int]:
    for i in range(1, len(lines)):
        if lines[i].rstrip() == delimiter:
            return i
    return None


def split_header(text: str, delimiter: str = "---") -> HeaderSplit:
    """Separate header and body.

    Args:
        text: The full document text
        delimiter: Line that opens and closes the header block

    Returns:
        HeaderSplit with the raw header (None when absent), the parsed
        key-value mapping and the body with blank edge lines trimmed
    """
    if text.startswith(BOM):
        text = text[1:]

    lines = split_lines(text)
    if not lines or lines[0].rstrip() != delimiter:
        return HeaderSplit(None, {}, join_lines(lines))

    closing = _find_closing(lines, delimiter)
    if closing is None:
        return HeaderSplit(None, {}, join_lines(lines))

    raw = "\n".join(lines[1:closing])
    return HeaderSplit(raw, parse_header(raw), join_lines(lines[closing + 1 :]))
