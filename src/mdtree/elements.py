"""Split a block's own content into typed elements.

Chunking works on markdown lines so every element keeps its own source. A
chunk is one of:
- a fenced code block, kept whole
- a list: items plus indented or lazy continuation lines, running across blank
  lines while the next line still continues the list
- a paragraph: consecutive content lines up to a blank line or marker

A paragraph that is nothing but an image becomes an image element, one that is
nothing but a link becomes a link element. Everything else about the element
(attributes, list items, inline links and images) is read back from the
rendered HTML.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .markers import FENCE_RE, Token, TokenKind, closes_fence
from .models import (
    BaseElement,
    CodeElement,
    ElementKind,
    HeadingElement,
    ImageElement,
    LinkElement,
    ListElement,
    ListItem,
    ParagraphElement,
)
from .render import find_images, find_links, html_to_text, parse_html, tag_text, top_level_list_items
from .utils import is_blank

LIST_ITEM_RE = re.compile(r"^([ \t]*)([-+*]|\d{1,9}[.)])([ \t]+|$)")
ORDERED_ITEM_RE = re.compile(r"^[ \t]*\d{1,9}[.)]([ \t]|$)")
IMAGE_ONLY_RE = re.compile(r'^!\[([^\]]*)\]\(\s*<?([^)\s>]+)>?(?:\s+"([^"]*)")?\s*\)$')
LINK_ONLY_RE = re.compile(r'^\[([^\]]+)\]\(\s*<?([^)\s>]+)>?(?:\s+"([^"]*)")?\s*\)$')
INLINE_IMAGE_RE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
INLINE_LINK_RE = re.compile(r"(?<!!)\[[^\]]*\]\([^)]*\)")


@dataclass
class ChunkDraft:
    """Source lines of one element before rendering."""

    kind: ElementKind
    line: int
    lines: List[str]
    language: Optional[str] = None

    @property
    def markdown(self) -> str:
        return "\n".join(self.lines)

    def leading_run(self) -> ChunkDraft:
        """This list chunk cut at its first blank line, or the chunk itself."""
        if self.kind is not ElementKind.LIST:
            return self
        for i, text in enumerate(self.lines):
            if is_blank(text):
                return ChunkDraft(self.kind, self.line, self.lines[:i], self.language)
        return self


def _indent(text: str) -> int:
    return len(text.expandtabs(4)) - len(text.expandtabs(4).lstrip())


def _continues_list(text: str) -> bool:
    return LIST_ITEM_RE.match(text) is not None or text[:1] in (" ", "\t")


def _collect_fence(tokens: List[Token], i: int) -> Tuple[List[Token], int]:
    fence = FENCE_RE.match(tokens[i].text).group(1)
    taken = [tokens[i]]
    j = i + 1
    while j < len(tokens):
        taken.append(tokens[j])
        j += 1
        if closes_fence(taken[-1].text, fence):
            break
    return taken, j


def _collect_list(tokens: List[Token], i: int) -> Tuple[List[Token], int]:
    taken = [tokens[i]]
    j = i + 1
    while j < len(tokens):
        tok = tokens[j]
        if tok.kind is TokenKind.CONTENT:
            taken.append(tok)
            j += 1
            continue
        if tok.kind is TokenKind.BLANK:
            k = j
            while k < len(tokens) and tokens[k].kind is TokenKind.BLANK:
                k += 1
            if k < len(tokens) and tokens[k].kind is TokenKind.CONTENT and _continues_list(tokens[k].text):
                taken.extend(tokens[j:k])
                j = k
                continue
        break
    return taken, j


def _collect_paragraph(tokens: List[Token], i: int) -> Tuple[List[Token], int]:
    j = i
    while j < len(tokens) and tokens[j].kind is TokenKind.CONTENT:
        j += 1
    return tokens[i:j], j


def _paragraph_kind(lines: List[str]) -> ElementKind:
    if len(lines) == 1:
        text = lines[0].strip()
        if IMAGE_ONLY_RE.match(text):
            return ElementKind.IMAGE
        if LINK_ONLY_RE.match(text):
            return ElementKind.LINK
    return ElementKind.PARAGRAPH


def chunk_tokens(tokens: List[Token]) -> List[ChunkDraft]:
    """Group content tokens into element chunks.

    Blank lines and marker lines separate chunks. Heading tokens are expected
    to have been removed by the caller.
    """
    chunks: List[ChunkDraft] = []
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.kind is not TokenKind.CONTENT:
            i += 1
            continue

        fence = FENCE_RE.match(tok.text)
        if fence:
            taken, i = _collect_fence(tokens, i)
            info = fence.group(2).strip()
            chunks.append(
                ChunkDraft(ElementKind.CODE, tok.line, [t.text for t in taken], language=info.split()[0] if info else None)
            )
        elif LIST_ITEM_RE.match(tok.text):
            taken, i = _collect_list(tokens, i)
            chunks.append(ChunkDraft(ElementKind.LIST, tok.line, [t.text for t in taken]))
        else:
            taken, i = _collect_paragraph(tokens, i)
            lines = [t.text for t in taken]
            chunks.append(ChunkDraft(_paragraph_kind(lines), tok.line, lines))
    return chunks


def split_list_items(lines: List[str]) -> List[str]:
    """Markdown of each top-level item of a list chunk."""
    base = _indent(lines[0])
    items: List[List[str]] = []
    for line in lines:
        if LIST_ITEM_RE.match(line) and _indent(line) <= base + 1:
            items.append([line])
        elif items:
            items[-1].append(line)
    return ["\n".join(item).strip("\n") for item in items]


def _image_from_tag(tag, markdown: str, line: int) -> ImageElement:
    src = tag.get("src", "")
    alt = tag.get("alt", "")
    return ImageElement(
        markdown=markdown or f"![{alt}]({src})",
        html=str(tag),
        text=alt,
        line=line,
        src=src,
        alt=alt,
        title=tag.get("title"),
    )


def _link_from_tag(tag, markdown: str, line: int) -> LinkElement:
    href = tag.get("href", "")
    text = tag_text(tag)
    return LinkElement(
        markdown=markdown or f"[{text}]({href})",
        html=str(tag),
        text=text,
        line=line,
        href=href,
        title=tag.get("title"),
    )


def inline_images(node, markdown: str, line: int) -> List[ImageElement]:
    tags = find_images(node)
    sources = INLINE_IMAGE_RE.findall(markdown)
    if len(sources) != len(tags):
        sources = [""] * len(tags)
    return [_image_from_tag(tag, md, line) for tag, md in zip(tags, sources)]


def inline_links(node, markdown: str, line: int) -> List[LinkElement]:
    tags = find_links(node)
    sources = INLINE_LINK_RE.findall(markdown)
    if len(sources) != len(tags):
        sources = [""] * len(tags)
    return [_link_from_tag(tag, md, line) for tag, md in zip(tags, sources)]


def build_heading(token: Token, html: str) -> HeadingElement:
    return HeadingElement(
        markdown=token.text.strip(),
        html=html,
        text=html_to_text(html) or token.heading_text,
        line=token.line,
        level=token.level,
    )


def _build_list(chunk: ChunkDraft, html: str) -> ListElement:
    item_sources = split_list_items(chunk.lines)
    items = []
    for idx, li in enumerate(top_level_list_items(html)):
        source = item_sources[idx] if idx < len(item_sources) else ""
        items.append(
            ListItem(
                markdown=source,
                html=str(li),
                text=tag_text(li),
                images=inline_images(li, source, chunk.line),
                links=inline_links(li, source, chunk.line),
            )
        )
    return ListElement(
        markdown=chunk.markdown,
        html=html,
        text=html_to_text(html),
        line=chunk.line,
        ordered=ORDERED_ITEM_RE.match(chunk.lines[0]) is not None,
        items=items,
    )


def _build_paragraph(chunk: ChunkDraft, html: str) -> ParagraphElement:
    soup = parse_html(html)
    return ParagraphElement(
        markdown=chunk.markdown,
        html=html,
        text=html_to_text(html),
        line=chunk.line,
        images=inline_images(soup, chunk.markdown, chunk.line),
        links=inline_links(soup, chunk.markdown, chunk.line),
    )


def build_element(chunk: ChunkDraft, html: str) -> BaseElement:
    """Turn a rendered chunk into its element.

    Image and link chunks fall back to paragraphs when the rendered HTML does
    not hold exactly one image or link.
    """
    if chunk.kind is ElementKind.CODE:
        return CodeElement(
            markdown=chunk.markdown, html=html, text=html_to_text(html), line=chunk.line, language=chunk.language
        )
    if chunk.kind is ElementKind.LIST:
        return _build_list(chunk, html)

    soup = parse_html(html)
    if chunk.kind is ElementKind.IMAGE:
        tags = find_images(soup)
        if len(tags) == 1:
            image = _image_from_tag(tags[0], chunk.markdown.strip(), chunk.line)
            return image.model_copy(update={"html": html})
    elif chunk.kind is ElementKind.LINK:
        tags = find_links(soup)
        if len(tags) == 1:
            link = _link_from_tag(tags[0], chunk.markdown.strip(), chunk.line)
            return link.model_copy(update={"html": html, "text": html_to_text(html) or link.text})
    return _build_paragraph(chunk, html)
