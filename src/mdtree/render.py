"""Markdown to HTML rendering and HTML inspection.

Rendering goes through pandoc. All fragments of a parse are joined with a
comment separator and converted in a single pandoc call, the same way the
exporters used to join source files with marker comments; the output is split
back on the separator. When a fragment swallows the separator (an unclosed
code fence, for example) each fragment is rendered on its own instead.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

import pypandoc
from bs4 import BeautifulSoup, Comment, Tag

from .config import PANDOC_FORMAT, logger
from .exceptions import RenderError
from .pandoc_helper import ensure_pandoc_path

FRAGMENT_MARKER = "<!-- mdtree:fragment -->"
FRAGMENT_SPLIT_RE = re.compile(r"\s*<!-- mdtree:fragment -->\s*")

BLOCK_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "blockquote", "pre", "table", "figure", "hr"]
CONTAINER_TAGS = {"[document]", "ul", "ol", "blockquote", "table", "thead", "tbody", "tr", "div", "figure"}


class Renderer(Protocol):
    """Anything that turns markdown fragments into HTML, one result per fragment."""

    def render_many(self, fragments: Sequence[str]) -> List[str]:
        ...


class PandocRenderer:
    def __init__(self, pandoc_format: str = PANDOC_FORMAT, extra_args: Optional[List[str]] = None):
        self.pandoc_format = pandoc_format
        self.extra_args = list(extra_args) if extra_args is not None else ["--wrap=none"]

    def _convert(self, markdown: str) -> str:
        ensure_pandoc_path()
        try:
            return pypandoc.convert_text(markdown, "html", format=self.pandoc_format, extra_args=self.extra_args)
        except (RuntimeError, OSError) as e:
            logger.error(f"Pandoc failed to render markdown: {e}")
            raise RenderError(str(e)) from e

    def render(self, markdown: str) -> str:
        return self._convert(markdown).strip()

    def render_many(self, fragments: Sequence[str]) -> List[str]:
        if not fragments:
            return []
        joined = f"\n\n{FRAGMENT_MARKER}\n\n".join(fragments)
        parts = FRAGMENT_SPLIT_RE.split(self._convert(joined).strip())
        if len(parts) == len(fragments):
            return [p.strip() for p in parts]

        logger.debug(
            f"Batched render returned {len(parts)} parts for {len(fragments)} fragments, rendering one by one"
        )
        return [self.render(f) for f in fragments]


def render_fragments(renderer: Renderer, fragments: Iterable[str]) -> Dict[str, str]:
    """Render each distinct fragment once and map markdown to HTML."""
    unique = list(dict.fromkeys(f for f in fragments if f))
    if not unique:
        return {}
    rendered = renderer.render_many(unique)
    if len(rendered) != len(unique):
        raise RenderError(f"Renderer returned {len(rendered)} results for {len(unique)} fragments")
    return dict(zip(unique, rendered))


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def html_to_text(html: str) -> str:
    """Plain text with paragraph breaks between block elements.

    Tags are stripped and entities decoded. Runs of blank lines collapse to one.
    """
    if not html:
        return ""
    soup = parse_html(html)

    for string in soup.find_all(string=True):
        if isinstance(string, Comment):
            string.extract()
        elif not string.strip() and string.parent is not None and string.parent.name in CONTAINER_TAGS:
            string.extract()

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for li in soup.find_all("li"):
        li.append("\n")
    for tag in soup.find_all(BLOCK_TAGS):
        tag.append("\n\n")

    text = soup.get_text()
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def tag_text(tag: Tag) -> str:
    return html_to_text(str(tag))


def find_images(node) -> List[Tag]:
    return [img for img in node.find_all("img") if img.get("src") is not None]


def find_links(node) -> List[Tag]:
    return node.find_all("a", href=True)


def top_level_list_items(html: str) -> List[Tag]:
    """``li`` elements of the outermost lists in a fragment, nested items excluded."""
    soup = parse_html(html)
    items = []
    for lst in soup.find_all(["ul", "ol"]):
        if lst.find_parent(["ul", "ol"]) is not None:
            continue
        items.extend(lst.find_all("li", recursive=False))
    return items
