# contentref/sources/memory_store.py
from __future__ import annotations
import json
import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .api import ContentSource
from ..models import ContentEntity
from ..normalize import normalize, tokens

log = logging.getLogger(__name__)

# Penalty tables by 1-based position of the typo
_REPLACE = {1: 5, 2: 4, 3: 3, 4: 2}
_INSERT_DEL = {1: 10, 2: 8, 3: 6, 4: 4}

# Match tiers, best first
_TITLE_PREFIX, _WORD_PREFIX, _TITLE_SUBSTRING, _SLUG_SUBSTRING, _FUZZY = 4, 3, 2, 1, 0


def _hamming_one(q: str, t: str) -> Optional[int]:
    """1-based position of the single differing character, or None if not exactly one."""
    diff_pos = 0
    for i, (a, b) in enumerate(zip(q, t), start=1):
        if a != b:
            if diff_pos != 0:
                return None
            diff_pos = i
    return diff_pos or None


def _one_gap(longer: str, shorter: str) -> Optional[int]:
    """1-based position where `longer` carries one extra character, or None."""
    i = j = 0
    gap: Optional[int] = None
    while i < len(longer) and j < len(shorter):
        if longer[i] == shorter[j]:
            i += 1
            j += 1
            continue
        if gap is not None:
            return None
        gap = i + 1
        i += 1
    return gap if gap is not None else len(longer)


def _edit_penalty(tok: str, word: str) -> Optional[int]:
    """
    Penalty (<= 0) for matching tok against the start of word with at most ONE
    edit (substitution OR single added/missing letter); None when it needs more.
    """
    if word.startswith(tok):
        return 0
    best: Optional[int] = None
    same = word[:len(tok)]
    if len(same) == len(tok):
        pos = _hamming_one(tok, same)
        if pos is not None:
            best = -_REPLACE.get(pos, 1)
    if len(tok) >= 2:
        shorter = word[:len(tok) - 1]
        if len(shorter) == len(tok) - 1:
            pos = _one_gap(tok, shorter)           # extra letter typed
            if pos is not None:
                pen = -_INSERT_DEL.get(pos, 2)
                best = pen if best is None else max(best, pen)
    longer = word[:len(tok) + 1]
    if len(longer) == len(tok) + 1:
        pos = _one_gap(longer, tok)                # letter missing
        if pos is not None:
            pen = -_INSERT_DEL.get(pos, 2)
            best = pen if best is None else max(best, pen)
    return best


def _fuzzy_score(q_tokens: List[str], words: List[str]) -> Optional[int]:
    """Every query token must hit some title word within one edit."""
    total = 0
    for tok in q_tokens:
        if len(tok) < 3:
            # too short for typo tolerance
            pen = 0 if any(w.startswith(tok) for w in words) else None
        else:
            pens = [p for p in (_edit_penalty(tok, w) for w in words) if p is not None]
            pen = max(pens) if pens else None
        if pen is None:
            return None
        total += 2 * len(tok) + pen
    return total


class MemoryCatalog(ContentSource):
    """In-memory content catalog with accent-insensitive, typo-tolerant title search."""

    def __init__(self, entities: Optional[Iterable[ContentEntity]] = None) -> None:
        self._rows: Dict[str, ContentEntity] = {}
        if entities:
            self.bulk_create(entities)

    @classmethod
    def from_json(cls, path: str) -> "MemoryCatalog":
        """Load a JSON export: either a list of entities or {"items": [...]}."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        rows = data.get("items", []) if isinstance(data, dict) else data
        catalog = cls(ContentEntity.from_dict(r) for r in rows)
        log.info("Loaded %d content entities from %s", catalog.count(), path)
        return catalog

    # C
    def create(self, entity: ContentEntity) -> None:
        self._rows[str(entity.id)] = entity

    def bulk_create(self, items: Iterable[ContentEntity]) -> int:
        n = 0
        for e in items:
            self._rows[str(e.id)] = e; n += 1
        return n

    # R
    def read(self, entity_id: Union[int, str]) -> ContentEntity:
        try:
            return self._rows[str(entity_id)]
        except KeyError:
            raise KeyError(entity_id)

    def count(self) -> int:
        return len(self._rows)

    # D
    def delete(self, entity_id: Union[int, str]) -> None:
        self._rows.pop(str(entity_id), None)

    def close(self) -> None:
        self._rows.clear()

    # ------------- search -------------

    @staticmethod
    def _localized(entity: ContentEntity, language: Optional[str]) -> ContentEntity:
        """Move the translation in `language` (if any) to the front."""
        if not language:
            return entity
        hits = tuple(t for t in entity.translations if t.language_code == language)
        if not hits:
            return entity
        rest = tuple(t for t in entity.translations if t.language_code != language)
        return ContentEntity(entity.id, entity.entity_type, hits + rest)

    @staticmethod
    def _rank(entity: ContentEntity, q: str, q_tokens: List[str]) -> Optional[Tuple[int, int]]:
        title = normalize(entity.title)
        if title.startswith(q):
            return _TITLE_PREFIX, 2 * len(q)
        if f" {q}" in f" {title}":
            return _WORD_PREFIX, 2 * len(q)
        if q in title:
            return _TITLE_SUBSTRING, 2 * len(q)
        if q in normalize(entity.slug):
            return _SLUG_SUBSTRING, 2 * len(q)
        score = _fuzzy_score(q_tokens, tokens(entity.title))
        if score is None:
            return None
        return _FUZZY, score

    def find(
        self,
        query: str,
        *,
        limit: int = 10,
        types: Optional[Iterable[str]] = None,
        language: Optional[str] = None,
    ) -> List[ContentEntity]:
        q = normalize(query)
        if not q or limit <= 0:
            return []
        q_tokens = q.split(" ")
        wanted = set(types) if types else None

        ranked: List[Tuple[int, int, str, ContentEntity]] = []
        for entity in self._rows.values():
            if wanted is not None and entity.entity_type not in wanted:
                continue
            entity = self._localized(entity, language)
            rank = self._rank(entity, q, q_tokens)
            if rank is None:
                continue
            tier, score = rank
            ranked.append((tier, score, normalize(entity.title), entity))

        ranked.sort(key=lambda r: (-r[0], -r[1], r[2]))
        return [r[3] for r in ranked[:limit]]

    async def search(
        self,
        query: str,
        *,
        limit: int,
        types: Optional[Iterable[str]] = None,
        language: Optional[str] = None,
    ) -> List[ContentEntity]:
        return self.find(query, limit=limit, types=types, language=language)
