import re
from typing import List

LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> List[str]:
    """Split on the three markdown line endings only.

    str.splitlines() also breaks on form feeds and unicode separators, which
    markdown treats as ordinary characters.
    """
    if text == "":
        return []
    lines = LINE_BREAK_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def is_blank(line: str) -> bool:
    return line.strip() == ""


def strip_blank_lines(lines: List[str]) -> List[str]:
    """Drop leading and trailing blank lines, keeping inner ones."""
    start = 0
    end = len(lines)
    while start < end and is_blank(lines[start]):
        start += 1
    while end > start and is_blank(lines[end - 1]):
        end -= 1
    return lines[start:end]


def join_lines(lines: List[str]) -> str:
    return "\n".join(strip_blank_lines(list(lines)))
