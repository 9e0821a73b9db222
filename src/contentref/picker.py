# contentref/picker.py
# Toolbar-driven reference dialog: same insertion command, no trigger span.
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from . import config as CFG
from .autocomplete import result_item
from .commands import insert_content_ref
from .editor import Editor
from .models import ContentEntity, ResultItem
from .scheduling import Scheduler
from .search import DebouncedSearch
from .sources.api import ContentSource

PLACEHOLDER = "Rechercher un contenu (attraction, hôtel, activité...)"
BUTTON_TITLE = "Insérer une référence contenu ({{)"
SEARCHING_MESSAGE = "Recherche en cours..."
EMPTY_MESSAGE = "Aucun contenu trouvé. Tapez pour rechercher."


class ContentRefPicker:

    def __init__(
        self,
        editor: Editor,
        source: ContentSource,
        scheduler: Scheduler,
        *,
        limit: int = CFG.PICKER_LIMIT,
        delay: float = CFG.DEBOUNCE_SECONDS,
        on_change: Optional[Callable[["ContentRefPicker"], None]] = None,
    ) -> None:
        self.editor = editor
        self.is_open = False
        self.on_change = on_change
        self._search = DebouncedSearch(
            source, scheduler, limit=limit, delay=delay, on_change=lambda _s: self._notify()
        )

    @property
    def results(self) -> List[ContentEntity]:
        return self._search.results

    @property
    def is_searching(self) -> bool:
        return self._search.is_searching

    def open(self) -> None:
        self.is_open = True
        self._notify()

    def close(self) -> None:
        self._search.cancel()
        self.is_open = False
        self._notify()

    def set_query(self, query: str) -> None:
        self._search.update(query)

    def groups(self) -> List[Tuple[str, List[ContentEntity]]]:
        """Results grouped by entity type, headings in order of first appearance."""
        grouped: Dict[str, List[ContentEntity]] = {}
        for entity in self.results:
            grouped.setdefault(entity.entity_type, []).append(entity)
        return [(CFG.TYPE_LABELS.get(t, t), rows) for t, rows in grouped.items()]

    def grouped_items(self) -> List[Tuple[str, List[ResultItem]]]:
        return [(label, [result_item(e) for e in rows]) for label, rows in self.groups()]

    @property
    def empty_message(self) -> Optional[str]:
        if self.results:
            return None
        return SEARCHING_MESSAGE if self.is_searching else EMPTY_MESSAGE

    def select(self, entity: ContentEntity) -> bool:
        inserted = insert_content_ref(self.editor, entity)
        self.close()
        return inserted

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
