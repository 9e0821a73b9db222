from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Tuple, Union

from .config import FALLBACK_ENTITY_TYPE

@dataclass(frozen=True)
class Translation:
    title: str
    slug: str
    language_code: str = "fr"

@dataclass(frozen=True)
class ContentEntity:
    """Read-only search hit supplied by the content-search collaborator."""
    id: Union[int, str]
    entity_type: str
    translations: Tuple[Translation, ...] = ()

    @property
    def title(self) -> str:
        return self.translations[0].title if self.translations else ""

    @property
    def slug(self) -> str:
        return self.translations[0].slug if self.translations else ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentEntity":
        translations = tuple(
            Translation(
                title=t.get("title") or "",
                slug=t.get("slug") or "",
                language_code=t.get("language_code") or "fr",
            )
            for t in data.get("translations") or []
        )
        return cls(
            id=data["id"],
            entity_type=data.get("entity_type") or FALLBACK_ENTITY_TYPE,
            translations=translations,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entity_type": self.entity_type,
            "translations": [
                {"title": t.title, "slug": t.slug, "language_code": t.language_code}
                for t in self.translations
            ],
        }

# ---------- document content (tagged variants) ----------

MARKS: Tuple[str, ...] = ("bold", "italic", "underline", "strike", "highlight")

@dataclass(frozen=True)
class Element:
    """An HTML element the model has no node for, kept as tag + attributes."""
    tag: str
    attrs: Tuple[Tuple[str, Optional[str]], ...] = ()

@dataclass(frozen=True)
class Text:
    text: str
    marks: Tuple[str, ...] = ()   # kept in MARKS order
    href: Optional[str] = None    # link target
    elements: Tuple[Element, ...] = ()   # unmodeled inline tags around the run, outermost first

    @property
    def size(self) -> int:
        return len(self.text)

    def with_text(self, text: str) -> "Text":
        return replace(self, text=text)

    def same_format(self, other: object) -> bool:
        return (
            isinstance(other, Text)
            and other.marks == self.marks
            and other.href == self.href
            and other.elements == self.elements
        )

@dataclass(frozen=True)
class ContentRef:
    """Atomic inline reference to a content entity. Never holds content."""
    type: str
    slug: str
    title: str
    entity_id: Optional[str] = None

    @property
    def size(self) -> int:
        return 1

    def attrs(self) -> dict[str, Optional[str]]:
        return {"type": self.type, "slug": self.slug, "title": self.title, "entityId": self.entity_id}

@dataclass(frozen=True)
class HardBreak:
    """Line break inside a block (<br>)."""

    @property
    def size(self) -> int:
        return 1

@dataclass(frozen=True)
class InlineHtml:
    """Void inline markup (<img>, <wbr>...) carried through verbatim."""
    html: str

    @property
    def size(self) -> int:
        return 1

Inline = Union[Text, ContentRef, HardBreak, InlineHtml]

CONTAINER_KINDS: Tuple[str, ...] = ("bullet_list", "ordered_list", "list_item", "blockquote", "callout")
LIST_KINDS: Tuple[str, ...] = ("bullet_list", "ordered_list")

@dataclass(frozen=True)
class Container:
    """
    A wrapping block node (list, list item, blockquote, callout). Blocks carry
    the chain of containers they sit in; uid tells two sibling lists apart.
    """
    kind: str
    uid: int
    attrs: Tuple[Tuple[str, str], ...] = ()

    def attr(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return dict(self.attrs).get(name, default)

@dataclass(frozen=True)
class Block:
    kind: str                          # "paragraph" | "heading" | "html"
    content: Tuple[Inline, ...] = ()
    level: Optional[int] = None        # heading level (2 or 3)
    path: Tuple[Container, ...] = ()   # enclosing containers, outermost first
    html: str = ""                     # verbatim markup of an "html" block

    @property
    def is_textblock(self) -> bool:
        return self.kind != "html"

    @property
    def content_size(self) -> int:
        return sum(node.size for node in self.content)

    @property
    def size(self) -> int:
        if not self.is_textblock:
            return 1   # opaque leaf
        # opening + closing token
        return self.content_size + 2

@dataclass(frozen=True)
class Document:
    blocks: Tuple[Block, ...] = field(default_factory=lambda: (Block("paragraph"),))

# ---------- autocomplete session ----------

@dataclass(frozen=True)
class AutocompleteState:
    is_open: bool = False
    query: str = ""
    from_: int = 0    # position of the first trigger character
    to: int = 0       # current cursor position

@dataclass(frozen=True)
class ResultItem:
    icon: str
    title: str
    slug: str
    type_label: str
    selected: bool

@dataclass(frozen=True)
class PopupView:
    is_open: bool
    header: str
    is_searching: bool
    items: List[ResultItem]
    empty_message: Optional[str]
    footer: str
    anchor: int
