# contentref/editor.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .document import (
    adjacent_text_block,
    block_content_start,
    content_size,
    first_text_position,
    inline_size,
    is_text_position,
    map_position,
    marks_at,
    replace,
    resolve,
    split_block,
    text_between,
)
from .models import Document, HardBreak, Inline, Text
from .serialize import from_html, to_html

log = logging.getLogger(__name__)

# handler(editor, from, to, text) -> True blocks the insertion
TextInputHandler = Callable[["Editor", int, int, str], bool]


class Subscription:
    """Disposable handle for a registered listener. Disposing twice is a no-op."""

    def __init__(self, dispose: Callable[[], None]) -> None:
        self._dispose: Optional[Callable[[], None]] = dispose

    @property
    def active(self) -> bool:
        return self._dispose is not None

    def dispose(self) -> None:
        fn, self._dispose = self._dispose, None
        if fn is not None:
            fn()


@dataclass
class KeyEvent:
    key: str
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


KeyListener = Callable[[KeyEvent], None]


class KeyboardSurface:
    """
    Document-level key listeners. Capture listeners run before the editor's own
    key handling and can pre-empt it with prevent_default().
    """

    def __init__(self) -> None:
        self._capture: List[KeyListener] = []
        self._bubble: List[KeyListener] = []

    def listen(self, fn: KeyListener, *, capture: bool = False) -> Subscription:
        bucket = self._capture if capture else self._bubble
        bucket.append(fn)

        def _remove() -> None:
            if fn in bucket:
                bucket.remove(fn)

        return Subscription(_remove)

    @property
    def listener_count(self) -> int:
        return len(self._capture) + len(self._bubble)

    def dispatch(self, event: KeyEvent, *, capture: bool) -> None:
        for fn in list(self._capture if capture else self._bubble):
            fn(event)

    def clear(self) -> None:
        self._capture.clear()
        self._bubble.clear()


class Transaction:
    """A batch of document steps applied to the editor as one atomic change."""

    def __init__(self, doc: Document, cursor: int) -> None:
        self.before = doc
        self.doc = doc
        self.cursor = cursor
        self.add_to_history = True
        # (from, to, inserted size, end of the block holding `to`, document size change)
        self.steps: List[Tuple[int, int, int, Optional[int], int]] = []

    @property
    def doc_changed(self) -> bool:
        return bool(self.steps)

    def map(self, pos: int, assoc: int = 1) -> int:
        for from_, to, inserted, tail_end, shift in self.steps:
            pos = map_position(pos, from_, to, inserted, assoc, tail_end, shift)
        return pos

    def replace(self, from_: int, to: int, nodes: Sequence[Inline] = ()) -> "Transaction":
        nodes = tuple(nodes)
        if from_ == to and not nodes:
            return self
        index, _ = resolve(self.doc, to)
        tail_end = block_content_start(self.doc, index) + self.doc.blocks[index].content_size
        before = content_size(self.doc)
        self.doc = replace(self.doc, from_, to, nodes)
        size = inline_size(nodes)
        shift = content_size(self.doc) - before
        self.cursor = map_position(self.cursor, from_, to, size, 1, tail_end, shift)
        self.steps.append((from_, to, size, tail_end, shift))
        return self

    def delete_range(self, from_: int, to: int) -> "Transaction":
        return self.replace(from_, to)

    def insert(self, pos: int, nodes: Sequence[Inline]) -> "Transaction":
        return self.replace(pos, pos, nodes)

    def insert_text(self, text: str, pos: Optional[int] = None) -> "Transaction":
        pos = self.cursor if pos is None else pos
        return self.insert(pos, [Text(text, marks_at(self.doc, pos))])

    def split_block(self, pos: int) -> "Transaction":
        index, _ = resolve(self.doc, pos)
        self.doc = split_block(self.doc, pos)
        # closing and opening tokens now sit between the halves
        tokens = block_content_start(self.doc, index + 1) - pos
        self.cursor = map_position(self.cursor, pos, pos, tokens)
        self.steps.append((pos, pos, tokens, None, tokens))
        return self

    def set_cursor(self, pos: int) -> "Transaction":
        if not is_text_position(self.doc, pos):
            raise ValueError(f"cursor position {pos} is outside any text block")
        self.cursor = pos
        return self


class Editor:
    """
    Single-writer editing surface: owns the document and the cursor, applies
    transactions, keeps undo history and notifies listeners.

    Events: "update" (document changed), "selectionUpdate" (cursor moved),
    "destroy".
    """

    def __init__(self, content: Union[str, Document] = "", *, editable: bool = True) -> None:
        self.doc: Document = from_html(content) if isinstance(content, str) else content
        self.cursor: int = first_text_position(self.doc)
        self.editable = editable
        self.keyboard = KeyboardSurface()
        self.destroyed = False
        self._listeners: Dict[str, List[Callable[..., None]]] = {}
        self._text_input: List[TextInputHandler] = []
        self._undo: List[Tuple[Document, int]] = []
        self._redo: List[Tuple[Document, int]] = []

    @property
    def is_editable(self) -> bool:
        return self.editable and not self.destroyed

    # ------------- events -------------

    def on(self, event: str, fn: Callable[..., None]) -> Subscription:
        self._listeners.setdefault(event, []).append(fn)
        return Subscription(lambda: self.off(event, fn))

    def off(self, event: str, fn: Callable[..., None]) -> None:
        handlers = self._listeners.get(event, [])
        if fn in handlers:
            handlers.remove(fn)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def _emit(self, event: str, *args) -> None:
        for fn in list(self._listeners.get(event, [])):
            fn(*args)

    def add_text_input_handler(self, fn: TextInputHandler) -> Subscription:
        self._text_input.append(fn)

        def _remove() -> None:
            if fn in self._text_input:
                self._text_input.remove(fn)

        return Subscription(_remove)

    # ------------- transactions -------------

    def transaction(self) -> Transaction:
        return Transaction(self.doc, self.cursor)

    def dispatch(self, tr: Transaction) -> None:
        if self.destroyed:
            raise RuntimeError("Editor has been destroyed")
        doc_changed = tr.doc_changed
        selection_changed = tr.cursor != self.cursor
        if doc_changed and tr.add_to_history:
            self._undo.append((self.doc, self.cursor))
            self._redo.clear()
        self.doc = tr.doc
        self.cursor = tr.cursor
        if doc_changed:
            self._emit("update", self)
        if selection_changed:
            self._emit("selectionUpdate", self)

    # ------------- input -------------

    def type_text(self, text: str) -> None:
        """Insert text character by character, offering each one to the text-input handlers."""
        if not self.is_editable:
            return
        for ch in text:
            if ch == "\n":
                self.split()
                continue
            pos = self.cursor
            if any(handler(self, pos, pos, ch) for handler in list(self._text_input)):
                continue
            self.dispatch(self.transaction().insert_text(ch))

    def press_key(self, key: str) -> bool:
        """Route a key press: capture listeners, then the editor's defaults. Returns True if handled."""
        if self.destroyed:
            return False
        event = KeyEvent(key)
        self.keyboard.dispatch(event, capture=True)
        if not event.default_prevented:
            self._default_key(event)
        self.keyboard.dispatch(event, capture=False)
        return event.default_prevented

    def _default_key(self, event: KeyEvent) -> None:
        actions: Dict[str, Callable[[], bool]] = {
            "Backspace": self.backspace,
            "Delete": self.delete_forward,
            "Enter": self.split,
            "Shift+Enter": self.insert_hard_break,
            "ArrowLeft": lambda: self.move_cursor(-1),
            "ArrowRight": lambda: self.move_cursor(1),
            "Home": self.move_to_block_start,
            "End": self.move_to_block_end,
        }
        action = actions.get(event.key)
        if action is not None and action():
            event.prevent_default()

    def backspace(self) -> bool:
        if not self.is_editable:
            return False
        index, offset = resolve(self.doc, self.cursor)
        if offset == 0:
            prev = adjacent_text_block(self.doc, index, -1)
            if prev is None:
                return False
            # join with the previous text block
            end = block_content_start(self.doc, prev) + self.doc.blocks[prev].content_size
            self.dispatch(self.transaction().delete_range(end, self.cursor))
            return True
        self.dispatch(self.transaction().delete_range(self.cursor - 1, self.cursor))
        return True

    def delete_forward(self) -> bool:
        if not self.is_editable:
            return False
        index, offset = resolve(self.doc, self.cursor)
        if offset == self.doc.blocks[index].content_size:
            following = adjacent_text_block(self.doc, index, 1)
            if following is None:
                return False
            start = block_content_start(self.doc, following)
            self.dispatch(self.transaction().delete_range(self.cursor, start))
            return True
        self.dispatch(self.transaction().delete_range(self.cursor, self.cursor + 1))
        return True

    def split(self) -> bool:
        if not self.is_editable:
            return False
        self.dispatch(self.transaction().split_block(self.cursor))
        return True

    def insert_hard_break(self) -> bool:
        if not self.is_editable:
            return False
        self.dispatch(self.transaction().insert(self.cursor, [HardBreak()]))
        return True

    def move_cursor(self, delta: int) -> bool:
        index, offset = resolve(self.doc, self.cursor)
        if 0 <= offset + delta <= self.doc.blocks[index].content_size:
            self.set_cursor(self.cursor + delta)
            return True
        # step into the neighbouring text block
        other = adjacent_text_block(self.doc, index, 1 if delta > 0 else -1)
        if other is None:
            return False
        start = block_content_start(self.doc, other)
        self.set_cursor(start if delta > 0 else start + self.doc.blocks[other].content_size)
        return True

    def move_to_block_start(self) -> bool:
        _, offset = resolve(self.doc, self.cursor)
        self.set_cursor(self.cursor - offset)
        return True

    def move_to_block_end(self) -> bool:
        index, offset = resolve(self.doc, self.cursor)
        self.set_cursor(self.cursor + self.doc.blocks[index].content_size - offset)
        return True

    def set_cursor(self, pos: int) -> None:
        self.dispatch(self.transaction().set_cursor(pos))

    # ------------- history -------------

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append((self.doc, self.cursor))
        self._restore(*self._undo.pop())
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append((self.doc, self.cursor))
        self._restore(*self._redo.pop())
        return True

    def _restore(self, doc: Document, cursor: int) -> None:
        moved = cursor != self.cursor
        self.doc, self.cursor = doc, cursor
        self._emit("update", self)
        if moved:
            self._emit("selectionUpdate", self)

    # ------------- content -------------

    def get_html(self) -> str:
        return to_html(self.doc)

    def get_text(self, block_separator: str = "\n") -> str:
        return text_between(self.doc, 0, content_size(self.doc), block_separator)

    def set_content(self, content: Union[str, Document]) -> None:
        """Replace the whole document without recording history or emitting update."""
        self.doc = from_html(content) if isinstance(content, str) else content
        self.cursor = first_text_position(self.doc)
        self._undo.clear()
        self._redo.clear()

    def destroy(self) -> None:
        if self.destroyed:
            return
        self._emit("destroy", self)
        self.destroyed = True
        self._listeners.clear()
        self._text_input.clear()
        self.keyboard.clear()
        log.debug("Editor destroyed")
