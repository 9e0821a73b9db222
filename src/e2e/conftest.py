# src/e2e/conftest.py
# Shared doubles: a hand-driven scheduler and scriptable content sources.

import pytest

from contentref.models import ContentEntity, Translation


class _Timer:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class _Task:
    def __init__(self, coro):
        self.coro = coro
        self.done = False
        self.cancelled = False

    def cancel(self):
        if not self.done and not self.cancelled:
            self.cancelled = True
            self.coro.close()

    def step(self):
        """Advance the coroutine once; True when it finished."""
        try:
            self.coro.send(None)
        except StopIteration:
            self.done = True
            return True
        return False


class ManualScheduler:
    """
    Deterministic Scheduler:
      - call_later timers fire only when advance() moves the clock past them
      - run() coroutines are stepped by drain(); call_soon callbacks run there too
    """

    def __init__(self):
        self.now = 0.0
        self._timers = []
        self._soon = []
        self.tasks = []

    def call_later(self, delay, callback):
        t = _Timer(self.now + delay, callback)
        self._timers.append(t)
        return t

    def cancel(self, handle):
        handle.cancel()

    def call_soon(self, callback):
        self._soon.append(callback)

    def run(self, coro):
        task = _Task(coro)
        self.tasks.append(task)
        return task

    @property
    def pending_timers(self):
        return [t for t in self._timers if not t.cancelled]

    def advance(self, seconds):
        self.now += seconds
        while True:
            due = [t for t in self.pending_timers if t.due <= self.now + 1e-9]
            if not due:
                break
            t = min(due, key=lambda x: x.due)
            self._timers.remove(t)
            t.callback()
            self.drain()
        self.drain()

    def drain(self):
        progressed = True
        while progressed:
            progressed = False
            for task in list(self.tasks):
                if task.done or task.cancelled:
                    self.tasks.remove(task)
                    continue
                if task.step():
                    self.tasks.remove(task)
                    progressed = True
            while self._soon:
                self._soon.pop(0)()
                progressed = True


class Gate:
    """Awaitable that stays pending until resolve()/fail() is called."""

    def __init__(self):
        self.done = False
        self.value = None
        self.error = None

    def resolve(self, value):
        self.done, self.value = True, value

    def fail(self, error):
        self.done, self.error = True, error

    def __await__(self):
        while not self.done:
            yield self
        if self.error is not None:
            raise self.error
        return self.value


class RecordingSource:
    """Answers every query with the same rows (cut to limit) and records the calls."""

    def __init__(self, rows=(), error=None):
        self.rows = list(rows)
        self.error = error
        self.calls = []

    async def search(self, query, *, limit, types=None, language=None):
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.rows[:limit]


class GatedSource:
    """Each call waits on its own Gate; tests decide when (and how) it answers."""

    def __init__(self):
        self.calls = []

    async def search(self, query, *, limit, types=None, language=None):
        gate = Gate()
        self.calls.append((query, gate))
        return await gate


def entity(id, entity_type, title, slug, language_code="fr"):
    return ContentEntity(id, entity_type, (Translation(title, slug, language_code),))


RIAD = entity(42, "accommodation", "Riad Jnane", "riad-jnane")
TREK = entity(7, "activity", "Trek dans l'Atlas", "trek-atlas")
JEMAA = entity(3, "attraction", "Place Jemaa el-Fna", "jemaa-el-fna")
MARRAKECH = entity(11, "destination", "Marrakech", "marrakech")
TAGINE = entity(19, "eating", "Tagine Café", "tagine-cafe")
ATLAS = entity(23, "region", "Haut Atlas", "haut-atlas")
DAR = entity(44, "accommodation", "Dar Atlas", "dar-atlas")

CATALOG = [RIAD, TREK, JEMAA, MARRAKECH, TAGINE, ATLAS, DAR]


@pytest.fixture
def scheduler():
    return ManualScheduler()
