# contentref/search.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional

from .config import DEBOUNCE_SECONDS
from .models import ContentEntity
from .scheduling import Scheduler
from .sources.api import ContentSource

log = logging.getLogger(__name__)


class DebouncedSearch:
    """
    Turns a live query into results without flooding the content source.

    Each keystroke replaces the pending timer; only a quiet period of `delay`
    seconds lets a search through. Every fired search gets a new generation
    number and aborts the one before it, and a response is applied only when
    its generation is still current, so an old slow response can never
    overwrite a newer result set. Errors end as an empty result list.
    """

    def __init__(
        self,
        source: ContentSource,
        scheduler: Scheduler,
        *,
        limit: int,
        delay: float = DEBOUNCE_SECONDS,
        on_change: Optional[Callable[["DebouncedSearch"], None]] = None,
    ) -> None:
        self._source = source
        self._scheduler = scheduler
        self.limit = limit
        self.delay = delay
        self.on_change = on_change
        self.query = ""
        self.results: List[ContentEntity] = []
        self.is_searching = False
        self.generation = 0
        self._timer: Any = None
        self._inflight: Any = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    # ------------- public -------------

    def update(self, query: str) -> None:
        self.query = query
        self._cancel_timer()
        if not query:
            self._abort()
            self._set([], searching=False)
            return
        self._timer = self._scheduler.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        """Forget the pending timer and any in-flight call; results are cleared."""
        self._cancel_timer()
        self._abort()
        self.query = ""
        self._set([], searching=False)

    # ------------- internals -------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._scheduler.cancel(self._timer)
            self._timer = None

    def _abort(self) -> None:
        self.generation += 1
        if self._inflight is not None:
            self._scheduler.cancel(self._inflight)
            self._inflight = None

    def _fire(self) -> None:
        self._timer = None
        self._abort()
        generation = self.generation
        self.is_searching = True
        self._notify()
        self._inflight = self._scheduler.run(self._search(self.query, generation))

    async def _search(self, query: str, generation: int) -> None:
        try:
            rows = list(await self._source.search(query, limit=self.limit))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.warning("Content search failed for %r: %s", query, exc)
            rows = []
        self._scheduler.call_soon(lambda: self._apply(generation, rows))

    def _apply(self, generation: int, rows: List[ContentEntity]) -> None:
        if generation != self.generation:
            log.debug("Discarding stale results for generation %d", generation)
            return
        self._inflight = None
        self._set(rows, searching=False)

    def _set(self, rows: List[ContentEntity], *, searching: bool) -> None:
        self.results = rows
        self.is_searching = searching
        self._notify()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
