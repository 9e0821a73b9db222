"""
Position arithmetic over the tagged-variant document model.

Positions follow the ProseMirror convention: every text block and every
container (list, list item, blockquote, callout) contributes an opening and a
closing token, every character, hard break and ContentRef has size 1, and an
opaque html block is a leaf of size 1. Position 0 sits before the first block.
"""
from __future__ import annotations
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .models import Block, Container, ContentRef, Document, HardBreak, Inline, MARKS, Text

OBJECT_REPLACEMENT = "\ufffc"


def normalize_inlines(nodes: Iterable[Inline]) -> Tuple[Inline, ...]:
    """Merge adjacent text runs that share formatting and drop empty runs."""
    out: List[Inline] = []
    for node in nodes:
        if isinstance(node, Text):
            if not node.text:
                continue
            node = Text(node.text, tuple(m for m in MARKS if m in node.marks), node.href, node.elements)
            prev = out[-1] if out else None
            if isinstance(prev, Text) and prev.same_format(node):
                out[-1] = prev.with_text(prev.text + node.text)
                continue
        out.append(node)
    return tuple(out)


def inline_size(nodes: Iterable[Inline]) -> int:
    return sum(n.size for n in nodes)


def _leaf_text(node: Inline, leaf_text: str) -> str:
    if isinstance(node, Text):
        return node.text
    if isinstance(node, HardBreak):
        return "\n"
    return leaf_text


def inline_text(nodes: Iterable[Inline], leaf_text: str = "") -> str:
    return "".join(_leaf_text(n, leaf_text) for n in nodes)


def slice_inlines(nodes: Sequence[Inline], start: int, end: int) -> Tuple[Inline, ...]:
    """Cut [start, end) out of a block's inline content (block-relative offsets)."""
    out: List[Inline] = []
    pos = 0
    for node in nodes:
        node_end = pos + node.size
        if node_end > start and pos < end:
            if isinstance(node, Text):
                a = max(start, pos) - pos
                b = min(end, node_end) - pos
                out.append(node.with_text(node.text[a:b]))
            else:
                out.append(node)
        pos = node_end
    return normalize_inlines(out)


# ---------- layout ----------

def common_prefix(a: Sequence[Container], b: Sequence[Container]) -> int:
    """Number of leading containers two container paths share."""
    n = 0
    for x, y in zip(a, b):
        if x != y:
            break
        n += 1
    return n


def layout(doc: Document) -> Tuple[List[int], int]:
    """Start position of every block (before its opening token) and the document size."""
    starts: List[int] = []
    pos = 0
    open_: Tuple[Container, ...] = ()
    for block in doc.blocks:
        keep = common_prefix(open_, block.path)
        pos += (len(open_) - keep) + (len(block.path) - keep)
        starts.append(pos)
        pos += block.size
        open_ = block.path
    return starts, pos + len(open_)


def content_size(doc: Document) -> int:
    return layout(doc)[1]


def block_content_start(doc: Document, index: int) -> int:
    return layout(doc)[0][index] + 1


def text_blocks(doc: Document) -> Iterator[Tuple[int, int, Block]]:
    """Yield (index, content start, block) for every text block."""
    starts, _ = layout(doc)
    for i, block in enumerate(doc.blocks):
        if block.is_textblock:
            yield i, starts[i] + 1, block


def first_text_position(doc: Document) -> int:
    for _, inner, _ in text_blocks(doc):
        return inner
    raise ValueError("document has no text block")


def next_uid(doc: Document) -> int:
    return 1 + max((c.uid for b in doc.blocks for c in b.path), default=0)


# ---------- queries ----------

def resolve(doc: Document, pos: int) -> Tuple[int, int]:
    """Return (block_index, offset_in_block_content) for a text position."""
    for i, inner, block in text_blocks(doc):
        if inner <= pos <= inner + block.content_size:
            return i, pos - inner
    raise ValueError(f"position {pos} is not inside a text block")


def is_text_position(doc: Document, pos: int) -> bool:
    try:
        resolve(doc, pos)
    except ValueError:
        return False
    return True


def adjacent_text_block(doc: Document, index: int, step: int) -> Optional[int]:
    """Index of the nearest text block before (step=-1) or after (step=1) index."""
    i = index + step
    while 0 <= i < len(doc.blocks):
        if doc.blocks[i].is_textblock:
            return i
        i += step
    return None


def text_between(
    doc: Document,
    from_: int,
    to: int,
    block_separator: str = "",
    leaf_text: str = "",
) -> str:
    """Plain text of [from_, to); blocks crossed by the range are joined with block_separator."""
    from_ = max(0, from_)
    to = min(content_size(doc), to)
    pieces: List[str] = []
    for _, inner, block in text_blocks(doc):
        inner_end = inner + block.content_size
        if inner_end >= from_ and inner <= to and from_ < to:
            a = max(from_, inner) - inner
            b = min(to, inner_end) - inner
            if a <= b:
                pieces.append(inline_text(slice_inlines(block.content, a, b), leaf_text))
    return block_separator.join(pieces)


def char_before(doc: Document, pos: int, leaf_text: str = OBJECT_REPLACEMENT) -> str:
    """The single character (or leaf placeholder) right before pos in its block."""
    index, offset = resolve(doc, pos)
    if offset == 0:
        return ""
    return inline_text(slice_inlines(doc.blocks[index].content, offset - 1, offset), leaf_text)


def node_at(doc: Document, pos: int) -> Optional[Inline]:
    """The inline node starting right after pos, if any."""
    index, offset = resolve(doc, pos)
    cursor = 0
    for node in doc.blocks[index].content:
        if cursor <= offset < cursor + node.size:
            if isinstance(node, Text):
                return node.with_text(node.text[offset - cursor])
            return node
        cursor += node.size
    return None


def marks_at(doc: Document, pos: int) -> Tuple[str, ...]:
    """Marks a character typed at pos inherits (those of the run before it)."""
    index, offset = resolve(doc, pos)
    if offset == 0:
        return ()
    before = slice_inlines(doc.blocks[index].content, offset - 1, offset)
    node = before[0] if before else None
    return node.marks if isinstance(node, Text) else ()


# ---------- changes ----------

def replace(doc: Document, from_: int, to: int, nodes: Sequence[Inline] = ()) -> Document:
    """
    Replace [from_, to) with inline nodes. A range that spans blocks joins the
    first and last text block; the first block keeps its kind and containers,
    and everything in between is dropped.
    """
    if from_ > to:
        raise ValueError(f"invalid range [{from_}, {to})")
    ia, oa = resolve(doc, from_)
    ib, ob = resolve(doc, to)
    a, b = doc.blocks[ia], doc.blocks[ib]
    head = slice_inlines(a.content, 0, oa)
    tail = slice_inlines(b.content, ob, b.content_size)
    merged = Block(a.kind, normalize_inlines(head + tuple(nodes) + tail), a.level, a.path)
    return Document(doc.blocks[:ia] + (merged,) + doc.blocks[ib + 1:])


def _swap_container(block: Block, old: Container, new: Container) -> Block:
    if old not in block.path:
        return block
    path = tuple(new if c == old else c for c in block.path)
    return Block(block.kind, block.content, block.level, path, block.html)


def split_block(doc: Document, pos: int) -> Document:
    """
    Split the text block at pos. Inside a list item the item is split too:
    the new block and whatever followed it in the item move to a fresh item.
    """
    index, offset = resolve(doc, pos)
    block = doc.blocks[index]
    head = slice_inlines(block.content, 0, offset)
    tail = slice_inlines(block.content, offset, block.content_size)
    path = block.path
    rest = doc.blocks[index + 1:]
    if path and path[-1].kind == "list_item":
        item = path[-1]
        fresh = Container("list_item", next_uid(doc), item.attrs)
        path = path[:-1] + (fresh,)
        rest = tuple(_swap_container(b, item, fresh) for b in rest)
    # Enter at the end of a heading continues with a paragraph
    if offset == block.content_size and block.kind != "paragraph":
        second = Block("paragraph", tail, None, path)
    else:
        second = Block(block.kind, tail, block.level, path)
    first = Block(block.kind, head, block.level, block.path)
    return Document(doc.blocks[:index] + (first, second) + rest)


def map_position(
    pos: int,
    from_: int,
    to: int,
    inserted: int,
    assoc: int = 1,
    tail_end: Optional[int] = None,
    shift: int = 0,
) -> int:
    """
    Map a position through the replacement of [from_, to) by `inserted` units.
    Past tail_end (end of the block the range ends in) positions move by shift,
    the change in document size, which differs when a join drops containers.
    """
    if pos < from_:
        return pos
    if pos > to:
        if tail_end is not None and pos > tail_end:
            return pos + shift
        return pos - (to - from_) + inserted
    return from_ + inserted if assoc > 0 else from_


def iter_refs(doc: Document) -> Iterator[Tuple[int, ContentRef]]:
    """Yield (position, node) for every ContentRef in document order."""
    for _, pos, block in text_blocks(doc):
        for node in block.content:
            if isinstance(node, ContentRef):
                yield pos, node
            pos += node.size


def count_refs(doc: Document) -> int:
    return sum(1 for _ in iter_refs(doc))
