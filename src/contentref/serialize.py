"""
HTML form of documents. The reference node is stored as

    <content-ref data-type="activity" data-slug="trek-atlas" data-entity-id="7">Trek dans l'Atlas</content-ref>

with the display title as element text. Alongside it the editor content holds
paragraphs, h2/h3 headings, bold/italic/underline/strike/highlight marks,
links, hard breaks, bullet and ordered lists, blockquotes and callouts
(<div data-callout data-callout-type="tip">). Markup without a node of its own
(tables, rules, images, spans...) is carried through verbatim.

Everything here must round-trip: to_html(from_html(to_html(doc))) == to_html(doc).
"""
from __future__ import annotations

import re
from html import escape
from itertools import groupby
from html.parser import HTMLParser
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_CALLOUT_TYPE, FALLBACK_ENTITY_TYPE
from .document import common_prefix, normalize_inlines
from .models import (
    LIST_KINDS,
    MARKS,
    Block,
    Container,
    ContentRef,
    Document,
    Element,
    HardBreak,
    Inline,
    InlineHtml,
    Text,
)

REF_TAG = "content-ref"
LINK_ATTRS = ' target="_blank" rel="noopener noreferrer"'

_MARK_TAGS = {"bold": "strong", "italic": "em", "underline": "u", "strike": "s", "highlight": "mark"}
_TAG_MARKS = {
    "strong": "bold", "b": "bold",
    "em": "italic", "i": "italic",
    "u": "underline",
    "s": "strike", "del": "strike", "strike": "strike",
    "mark": "highlight",
}
_HEADINGS = {"h1": 2, "h2": 2, "h3": 3, "h4": 3, "h5": 3, "h6": 3}
_CONTAINER_TAGS = {"ul": "bullet_list", "ol": "ordered_list", "li": "list_item", "blockquote": "blockquote"}
_CONTAINER_ELEMENTS = {**{v: k for k, v in _CONTAINER_TAGS.items()}, "callout": "div"}
# wrappers that add nothing to the model; their text lands in an implicit paragraph
_TRANSPARENT = {"div", "section", "article", "main", "body", "html"}
# block markup with no node of its own, kept verbatim
_OPAQUE = {
    "hr", "table", "pre", "figure", "iframe", "video", "audio", "dl", "details",
    "form", "fieldset", "nav", "aside", "header", "footer", "address", "svg",
}
_VOID = {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
_NEWLINE_RUN = re.compile(r"\s*\n\s*")


# ---------- serialize ----------

def start_tag(tag: str, attrs: Sequence[Tuple[str, Optional[str]]] = ()) -> str:
    parts = [tag]
    for name, value in attrs:
        parts.append(name if value is None else f'{name}="{escape(value)}"')
    return f"<{' '.join(parts)}>"


def _render_text(node: Text) -> str:
    html = escape(node.text, quote=False)
    for mark in reversed(MARKS):
        if mark in node.marks:
            tag = _MARK_TAGS[mark]
            html = f"<{tag}>{html}</{tag}>"
    return html


def render_ref(ref: ContentRef) -> str:
    attrs = [f'data-type="{escape(ref.type)}"', f'data-slug="{escape(ref.slug)}"']
    if ref.entity_id:
        attrs.append(f'data-entity-id="{escape(ref.entity_id)}"')
    text = escape(ref.title or ref.slug, quote=False)
    return f"<{REF_TAG} {' '.join(attrs)}>{text}</{REF_TAG}>"


def _render_inline(node: Inline, ref_renderer: Callable[[ContentRef], str]) -> str:
    if isinstance(node, ContentRef):
        return ref_renderer(node)
    if isinstance(node, HardBreak):
        return "<br>"
    if isinstance(node, InlineHtml):
        return node.html
    return _render_text(node)


def _wrapping(node: Inline) -> Tuple[Optional[str], Tuple[Element, ...]]:
    if isinstance(node, Text):
        return node.href, node.elements
    return None, ()


def render_inlines(nodes, ref_renderer: Callable[[ContentRef], str] = render_ref) -> str:
    """Render inline content; neighbouring runs under the same link or element share one tag."""
    parts = []
    for (href, elements), group in groupby(nodes, key=_wrapping):
        html = "".join(_render_inline(n, ref_renderer) for n in group)
        if href is not None:
            html = f'<a href="{escape(href)}"{LINK_ATTRS}>{html}</a>'
        for element in reversed(elements):
            html = f"{start_tag(element.tag, element.attrs)}{html}</{element.tag}>"
        parts.append(html)
    return "".join(parts)


def _block_tag(block: Block) -> str:
    if block.kind == "heading":
        return f"h{block.level or 2}"
    return "p"


def _container_tag(container: Container) -> str:
    return _CONTAINER_ELEMENTS[container.kind]


def _open_container(container: Container) -> str:
    if container.kind == "callout":
        kind = container.attr("type", DEFAULT_CALLOUT_TYPE)
        return start_tag("div", [
            ("data-callout", ""),
            ("class", f"callout callout-{kind}"),
            ("data-callout-type", kind),
        ])
    tag = _container_tag(container)
    start = container.attr("start")
    if container.kind == "ordered_list" and start and start != "1":
        return start_tag(tag, [("start", start)])
    return f"<{tag}>"


def to_html(doc: Document, ref_renderer: Callable[[ContentRef], str] = render_ref) -> str:
    """Serialize a document; ref_renderer swaps the reference markup (e.g. for chip previews)."""
    parts = []
    open_: List[Container] = []
    for block in doc.blocks:
        keep = common_prefix(open_, block.path)
        while len(open_) > keep:
            parts.append(f"</{_container_tag(open_.pop())}>")
        for container in block.path[keep:]:
            parts.append(_open_container(container))
            open_.append(container)
        if not block.is_textblock:
            parts.append(block.html)
            continue
        tag = _block_tag(block)
        parts.append(f"<{tag}>{render_inlines(block.content, ref_renderer)}</{tag}>")
    while open_:
        parts.append(f"</{_container_tag(open_.pop())}>")
    return "".join(parts)


# ---------- parse ----------

def parse_ref_element(attrs: Mapping[str, Optional[str]], text: str) -> ContentRef:
    """Build a ContentRef from element attributes, defaulting anything missing."""
    return ContentRef(
        type=attrs.get("data-type") or FALLBACK_ENTITY_TYPE,
        slug=attrs.get("data-slug") or "",
        title=text or "",
        entity_id=attrs.get("data-entity-id") or None,
    )


class _DocumentParser(HTMLParser):

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.blocks: List[Block] = []
        self._kind: Optional[Tuple[str, Optional[int]]] = None   # open text block (kind, level)
        self._inlines: List[Inline] = []
        self._inline_frames: List[Tuple[str, str, object]] = []  # (tag, "mark"|"link"|"element", value)
        self._block_frames: List[Tuple[str, Optional[Container], int]] = []  # (tag, container, blocks before)
        self._path: List[Container] = []
        self._uid = 0
        self._ref_attrs: Optional[Dict[str, Optional[str]]] = None
        self._ref_text: List[str] = []
        self._raw: Optional[List[str]] = None   # verbatim capture of an opaque block
        self._raw_tag = ""
        self._raw_depth = 0

    # -- block helpers --
    def _open(self, kind: str, level: Optional[int] = None) -> None:
        self._flush()
        self._ensure_item()
        self._kind = (kind, level)

    def _ensure_block(self) -> None:
        if self._kind is None:
            self._ensure_item()
            self._kind = ("paragraph", None)

    def _ensure_item(self) -> None:
        # lists only hold list items
        if self._path and self._path[-1].kind in LIST_KINDS:
            self._push("li", "list_item")

    def _flush(self) -> None:
        if self._kind is None:
            return
        kind, level = self._kind
        self.blocks.append(Block(kind, normalize_inlines(self._inlines), level, tuple(self._path)))
        self._kind = None
        self._inlines = []

    def _container(self, kind: str, attrs: Tuple[Tuple[str, str], ...] = ()) -> Container:
        self._uid += 1
        return Container(kind, self._uid, attrs)

    def _push(self, tag: str, kind: Optional[str] = None, attrs: Tuple[Tuple[str, str], ...] = ()) -> None:
        self._flush()
        container = None
        if kind == "list_item":
            if self._path and self._path[-1].kind == "list_item":
                self._pop("li")   # <li> implicitly ends the open item
            if not self._path or self._path[-1].kind not in LIST_KINDS:
                self._push("ul", "bullet_list")
        elif kind is not None:
            self._ensure_item()
        if kind is not None:
            container = self._container(kind, attrs)
            self._path.append(container)
        self._block_frames.append((tag, container, len(self.blocks)))

    def _pop(self, tag: str) -> None:
        """Close the innermost open tag and everything opened inside it."""
        for i in range(len(self._block_frames) - 1, -1, -1):
            if self._block_frames[i][0] == tag:
                break
        else:
            return   # stray end tag
        self._flush()
        while len(self._block_frames) > i:
            _, container, before = self._block_frames.pop()
            if container is None:
                continue
            if len(self.blocks) == before:
                # containers always hold at least one block
                path = tuple(self._path)
                if container.kind in LIST_KINDS:
                    path += (self._container("list_item"),)
                self.blocks.append(Block("paragraph", path=path))
            self._path.pop()

    def _emit_html(self, html: str) -> None:
        self._flush()
        self._ensure_item()
        self.blocks.append(Block("html", path=tuple(self._path), html=html))

    def _format(self) -> Tuple[Tuple[str, ...], Optional[str], Tuple[Element, ...]]:
        marks = {v for _, kind, v in self._inline_frames if kind == "mark"}
        links = [v for _, kind, v in self._inline_frames if kind == "link"]
        elements = tuple(v for _, kind, v in self._inline_frames if kind == "element")
        return tuple(m for m in MARKS if m in marks), (links[-1] if links else None), elements

    # -- HTMLParser hooks --
    def handle_starttag(self, tag: str, attrs) -> None:
        if self._raw is not None:
            self._raw.append(self.get_starttag_text())
            if tag == self._raw_tag:
                self._raw_depth += 1
            return
        if self._ref_attrs is not None:
            return
        named = dict(attrs)
        if tag == REF_TAG:
            self._ensure_block()
            self._ref_attrs = named
            self._ref_text = []
        elif tag == "p":
            self._open("paragraph")
        elif tag in _HEADINGS:
            self._open("heading", _HEADINGS[tag])
        elif tag in _CONTAINER_TAGS:
            kind = _CONTAINER_TAGS[tag]
            start = named.get("start")
            self._push(tag, kind, (("start", start),) if kind == "ordered_list" and start else ())
        elif tag == "div" and "data-callout" in named:
            kind = named.get("data-callout-type") or DEFAULT_CALLOUT_TYPE
            self._push(tag, "callout", (("type", kind),))
        elif tag in _TRANSPARENT:
            self._push(tag)
        elif tag in _OPAQUE:
            if tag in _VOID:
                self._emit_html(self.get_starttag_text())
            else:
                self._flush()
                self._raw, self._raw_tag, self._raw_depth = [self.get_starttag_text()], tag, 1
        elif tag == "br":
            self._ensure_block()
            self._inlines.append(HardBreak())
        elif tag in _VOID:
            self._ensure_block()
            self._inlines.append(InlineHtml(self.get_starttag_text()))
        elif tag == "a" and named.get("href") is not None:
            self._inline_frames.append((tag, "link", named["href"]))
        elif tag in _TAG_MARKS:
            self._inline_frames.append((tag, "mark", _TAG_MARKS[tag]))
        else:
            self._inline_frames.append((tag, "element", Element(tag, tuple(attrs))))

    def handle_startendtag(self, tag: str, attrs) -> None:
        if self._raw is not None:
            self._raw.append(self.get_starttag_text())
            return
        self.handle_starttag(tag, attrs)
        if tag not in _VOID:
            self.handle_endtag(tag)

    def handle_endtag(self, tag: str) -> None:
        if self._raw is not None:
            if tag in _VOID:
                return
            self._raw.append(f"</{tag}>")
            if tag == self._raw_tag:
                self._raw_depth -= 1
                if self._raw_depth == 0:
                    html, self._raw = "".join(self._raw), None
                    self._emit_html(html)
            return
        if self._ref_attrs is not None:
            if tag == REF_TAG:
                self._inlines.append(parse_ref_element(self._ref_attrs, "".join(self._ref_text)))
                self._ref_attrs = None
            return
        if tag == "p" or tag in _HEADINGS:
            self._flush()
        elif tag in _CONTAINER_TAGS or tag in _TRANSPARENT:
            self._pop(tag)
        elif tag not in _VOID:
            for i in range(len(self._inline_frames) - 1, -1, -1):
                if self._inline_frames[i][0] == tag:
                    del self._inline_frames[i]
                    break

    def handle_data(self, data: str) -> None:
        if self._raw is not None:
            self._raw.append(escape(data, quote=False))
            return
        if self._ref_attrs is not None:
            self._ref_text.append(data)
            return
        if self._kind is None and not data.strip():
            return   # formatting whitespace between blocks
        self._ensure_block()
        marks, href, elements = self._format()
        self._inlines.append(Text(_NEWLINE_RUN.sub(" ", data), marks, href, elements))

    def handle_comment(self, data: str) -> None:
        if self._raw is not None:
            self._raw.append(f"<!--{data}-->")

    def close(self) -> None:
        super().close()
        if self._raw is not None:
            # unterminated opaque block
            html = "".join(self._raw) + f"</{self._raw_tag}>" * self._raw_depth
            self._raw = None
            self._emit_html(html)
        if self._ref_attrs is not None:
            # unterminated <content-ref>
            self._inlines.append(parse_ref_element(self._ref_attrs, "".join(self._ref_text)))
            self._ref_attrs = None
        self._flush()
        while self._block_frames:
            self._pop(self._block_frames[0][0])


def from_html(html: str) -> Document:
    parser = _DocumentParser()
    parser.feed(html or "")
    parser.close()
    blocks = parser.blocks
    if not any(b.is_textblock for b in blocks):
        # the cursor needs somewhere to live
        blocks.append(Block("paragraph"))
    return Document(tuple(blocks))
