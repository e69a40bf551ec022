"""Build the heading-driven block forest of a scope.

Building happens in two steps. ``build_block_drafts`` groups a scope's tokens
by heading, nests the groups by heading level and chunks their content. After
every draft of the document has been rendered, ``materialize`` turns the
drafts into ``Block`` models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, NamedTuple, Optional

from .config import logger
from .elements import ChunkDraft, build_element, build_heading, chunk_tokens
from .exceptions import StructureError
from .markers import Token, TokenKind
from .models import Block
from .utils import join_lines


@dataclass
class BlockDraft:
    heading: Optional[Token]
    tokens: List[Token]
    chunks: List[ChunkDraft] = field(default_factory=list)
    children: List[BlockDraft] = field(default_factory=list)

    @property
    def level(self) -> Optional[int]:
        return self.heading.level if self.heading is not None else None

    @property
    def line(self) -> int:
        return self.tokens[0].line

    def fragments(self) -> Iterator[str]:
        """Markdown of everything this draft and its children need rendered."""
        if self.heading is not None:
            yield self.heading.text.strip()
        for chunk in self.chunks:
            yield chunk.markdown
            run = chunk.leading_run()
            if run is not chunk:
                # What a regular field binds when it sits on a loose list
                yield run.markdown
        for child in self.children:
            yield from child.fragments()


class BlockForest(NamedTuple):
    """Root blocks of a scope and line bookkeeping for field binding.

    ``owners`` maps every line of the scope to the block whose own span holds
    it. ``extents`` maps ``id(block)`` to the last content line of the block
    and its descendants. ``chunks`` maps the first line of every element to
    the chunk it was built from.
    """

    blocks: List[Block]
    owners: Dict[int, Block]
    extents: Dict[int, int]
    chunks: Dict[int, ChunkDraft]

    def extent(self, block: Block) -> int:
        return self.extents.get(id(block), block.line)


def content_markdown(tokens: List[Token]) -> str:
    """Source of ``tokens`` with marker lines removed.

    A blank line left on both sides of a removed marker is kept once.
    """
    kept: List[Token] = []
    after_marker = False
    for tok in tokens:
        if tok.is_marker:
            after_marker = True
            continue
        if tok.kind is TokenKind.BLANK:
            if after_marker and kept and kept[-1].kind is TokenKind.BLANK:
                continue
        else:
            after_marker = False
        kept.append(tok)
    return join_lines(t.text for t in kept)


def _group_by_heading(tokens: List[Token]) -> List[BlockDraft]:
    leading: List[Token] = []
    drafts: List[BlockDraft] = []
    for tok in tokens:
        if tok.kind is TokenKind.HEADING:
            drafts.append(BlockDraft(tok, [tok]))
        elif drafts:
            drafts[-1].tokens.append(tok)
        else:
            leading.append(tok)

    if any(t.kind is TokenKind.CONTENT for t in leading):
        drafts.insert(0, BlockDraft(None, leading))
    elif leading and drafts:
        # Markers ahead of the first heading belong to it
        drafts[0].tokens[:0] = leading
    return drafts


def nest_drafts(drafts: List[BlockDraft], max_depth: int = 64) -> List[BlockDraft]:
    """Attach each heading draft under the nearest preceding shallower heading."""
    roots: List[BlockDraft] = []
    stack: List[BlockDraft] = []
    for draft in drafts:
        if draft.heading is None:
            roots.append(draft)
            continue
        while stack and stack[-1].level >= draft.level:
            stack.pop()
        if stack:
            stack[-1].children.append(draft)
        else:
            roots.append(draft)
        stack.append(draft)
        if len(stack) > max_depth:
            raise StructureError(len(stack), max_depth, draft.heading.line)
    return roots


def build_block_drafts(tokens: List[Token], max_depth: int = 64) -> List[BlockDraft]:
    drafts = _group_by_heading(tokens)
    for draft in drafts:
        draft.chunks = chunk_tokens([t for t in draft.tokens if t is not draft.heading])
    return nest_drafts(drafts, max_depth)


def iter_fragments(drafts: List[BlockDraft]) -> Iterator[str]:
    for draft in drafts:
        yield from draft.fragments()


def _materialize_one(draft: BlockDraft, rendered: Dict[str, str], forest: BlockForest) -> Block:
    elements = []
    heading = None
    if draft.heading is not None:
        heading = build_heading(draft.heading, rendered.get(draft.heading.text.strip(), ""))
        elements.append(heading)
    for chunk in draft.chunks:
        elements.append(build_element(chunk, rendered.get(chunk.markdown, "")))
        forest.chunks[chunk.line] = chunk

    block = Block(
        heading=heading,
        level=draft.level,
        line=draft.line,
        markdown=content_markdown(draft.tokens),
        elements=elements,
        children=[_materialize_one(child, rendered, forest) for child in draft.children],
    )
    last = draft.line
    for tok in draft.tokens:
        forest.owners[tok.line] = block
        if tok.kind in (TokenKind.CONTENT, TokenKind.HEADING):
            last = max(last, tok.line)
    for child in block.children:
        last = max(last, forest.extent(child))
    forest.extents[id(block)] = last
    return block


def materialize(drafts: List[BlockDraft], rendered: Dict[str, str]) -> BlockForest:
    """Turn rendered drafts into blocks.

    Args:
        drafts: Root drafts of one scope
        rendered: HTML of every fragment, keyed by its markdown
    """
    forest = BlockForest([], {}, {}, {})
    forest.blocks.extend(_materialize_one(d, rendered, forest) for d in drafts)
    logger.debug(f"Built {len(forest.blocks)} root blocks over {len(forest.owners)} lines")
    return forest
