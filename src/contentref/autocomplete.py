"""
Inline `{{` autocomplete for content references.

Flow: the text-input hook spots the trigger and opens a session, the update
and selection listeners keep the query in sync with the document, the query
feeds a DebouncedSearch, and arrow/enter/escape drive the result list until a
result is committed through insert_content_ref().
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional

from . import config as CFG
from .commands import insert_content_ref
from .document import char_before, text_between
from .editor import Editor, KeyEvent, Subscription
from .models import AutocompleteState, ContentEntity, PopupView, ResultItem
from .scheduling import Scheduler
from .search import DebouncedSearch
from .sources.api import ContentSource

log = logging.getLogger(__name__)

FOOTER_HINT = "↑↓ naviguer · Entrée sélectionner · Échap fermer"
EMPTY_MESSAGE = "Aucun contenu trouvé"


def result_item(entity: ContentEntity, selected: bool = False) -> ResultItem:
    return ResultItem(
        icon=CFG.TYPE_ICONS.get(entity.entity_type, CFG.FALLBACK_ICON),
        title=entity.title or entity.entity_type or "—",
        slug=entity.slug,
        type_label=CFG.TYPE_LABELS.get(entity.entity_type, entity.entity_type),
        selected=selected,
    )


class ContentRefAutocomplete:

    def __init__(
        self,
        editor: Editor,
        source: ContentSource,
        scheduler: Scheduler,
        *,
        limit: int = CFG.AUTOCOMPLETE_LIMIT,
        delay: float = CFG.DEBOUNCE_SECONDS,
        on_change: Optional[Callable[["ContentRefAutocomplete"], None]] = None,
    ) -> None:
        self.editor = editor
        self.state = AutocompleteState()
        self.selected_index = 0
        self.on_change = on_change
        self._search = DebouncedSearch(
            source, scheduler, limit=limit, delay=delay, on_change=self._on_search_change
        )
        self._keys: Optional[Subscription] = None
        self._subscriptions: List[Subscription] = [
            editor.add_text_input_handler(self._handle_text_input),
            editor.on("update", self._track_query),
            editor.on("selectionUpdate", self._track_query),
            editor.on("destroy", lambda _editor: self.destroy()),
        ]

    # ------------- read-only state -------------

    @property
    def is_open(self) -> bool:
        return self.state.is_open

    @property
    def results(self) -> List[ContentEntity]:
        return self._search.results

    @property
    def is_searching(self) -> bool:
        return self._search.is_searching

    @property
    def listening_for_keys(self) -> bool:
        return self._keys is not None

    # ------------- trigger detection -------------

    def _handle_text_input(self, editor: Editor, from_: int, to: int, text: str) -> bool:
        if char_before(editor.doc, from_) + text == CFG.TRIGGER:
            # the second trigger character is still inserted by the editor
            self._set_state(AutocompleteState(True, "", from_ - 1, to + 1))
        return False

    # ------------- query tracking -------------

    def _track_query(self, editor: Editor) -> None:
        prev = self.state
        if not prev.is_open:
            return
        cursor = editor.cursor
        trigger_end = prev.from_ + len(CFG.TRIGGER)
        if cursor < trigger_end:
            self.close()
            return
        query = text_between(editor.doc, trigger_end, cursor, " ")
        if CFG.CLOSE_TRIGGER in query or cursor - trigger_end > CFG.MAX_QUERY_LENGTH:
            self.close()
            return
        self._set_state(replace(prev, query=query, to=cursor))

    def _set_state(self, new: AutocompleteState) -> None:
        old, self.state = self.state, new
        if new.is_open and self._keys is None:
            self._keys = self.editor.keyboard.listen(self._on_key, capture=True)
        elif not new.is_open and self._keys is not None:
            self._keys.dispose()
            self._keys = None

        if (old.is_open, old.query) != (new.is_open, new.query):
            if new.is_open:
                self._search.update(new.query)
            else:
                self._search.cancel()
                self.selected_index = 0
        self._notify()

    # ------------- search results -------------

    def _on_search_change(self, search: DebouncedSearch) -> None:
        if not search.is_searching:
            self.selected_index = 0
        self._notify()

    # ------------- keyboard -------------

    def _on_key(self, event: KeyEvent) -> None:
        if self.handle_key(event.key):
            event.prevent_default()

    def handle_key(self, key: str) -> bool:
        """Navigate/commit/cancel. Returns True when the key was consumed."""
        if not self.state.is_open:
            return False
        last = len(self.results) - 1
        if key == "ArrowDown":
            self.selected_index = max(0, min(self.selected_index + 1, last))
        elif key == "ArrowUp":
            self.selected_index = max(self.selected_index - 1, 0)
        elif key == "Enter" and self.results:
            self.select_result(self.results[self.selected_index])
            return True
        elif key == "Escape":
            self.close()
            return True
        else:
            return False
        self._notify()
        return True

    def click(self, index: int) -> bool:
        if 0 <= index < len(self.results):
            return self.select_result(self.results[index])
        return False

    # ------------- commit / cancel -------------

    def select_result(self, entity: ContentEntity) -> bool:
        if not self.state.is_open:
            return False
        span = (self.state.from_, self.state.to)
        inserted = insert_content_ref(self.editor, entity, replace=span)
        if not inserted:
            log.info("Reference range %s no longer matches the trigger; closing", span)
        self.close()
        return inserted

    def close(self) -> None:
        if not self.state.is_open:
            return
        self._set_state(replace(self.state, is_open=False))

    def destroy(self) -> None:
        for sub in self._subscriptions:
            sub.dispose()
        self._subscriptions = []
        if self._keys is not None:
            self._keys.dispose()
            self._keys = None
        self._search.cancel()
        self.state = replace(self.state, is_open=False)

    # ------------- view -------------

    def view(self) -> PopupView:
        query = self.state.query
        items = [result_item(e, i == self.selected_index) for i, e in enumerate(self.results)]
        empty = EMPTY_MESSAGE if not items and len(query) >= 1 and not self.is_searching else None
        return PopupView(
            is_open=self.state.is_open,
            header=f'Recherche : "{query}"' if query else "Tapez pour rechercher...",
            is_searching=self.is_searching,
            items=items,
            empty_message=empty,
            footer=FOOTER_HINT,
            anchor=self.state.from_,
        )

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
