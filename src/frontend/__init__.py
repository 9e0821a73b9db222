"""Public API for the content-reference services (catalog search + HTML normalization)."""
from __future__ import annotations
import logging
import os
import time
from typing import Any, Iterable

from contentref import config as CFG
from contentref.document import iter_refs
from contentref.models import ContentEntity
from contentref.nodeview import preview_html
from contentref.serialize import from_html, to_html
from contentref.sources.memory_store import MemoryCatalog

log = logging.getLogger(__name__)

_catalog: MemoryCatalog | None = None

def initialize(catalog: str | None = None,
               entities: Iterable[ContentEntity] | None = None,
               verbose: bool = False) -> MemoryCatalog:
    """
    Load the search catalog:
      1) from a JSON export (`catalog` path), or
      2) from entities passed directly (tests, embedding).
    With neither, the catalog starts empty.
    """
    global _catalog
    if verbose or CFG.VERBOSE:
        logging.basicConfig(level=logging.INFO)
        os.environ["CONTENTREF_VERBOSE"] = "1"
    t0 = time.perf_counter()
    if catalog:
        if not os.path.exists(catalog):
            raise FileNotFoundError(catalog)
        _catalog = MemoryCatalog.from_json(catalog)
    else:
        _catalog = MemoryCatalog(entities)
    log.info("Catalog ready: %d entities in %.2fs", _catalog.count(), time.perf_counter() - t0)
    return _catalog

def search(query: str, limit: int = 10,
           types: Iterable[str] | None = None,
           language: str | None = None) -> list[ContentEntity]:
    """Ranked catalog hits for query."""
    if _catalog is None:
        raise RuntimeError("Catalog not initialized. Call initialize(...) first.")
    return _catalog.find(query, limit=limit, types=types, language=language)

def normalize_html(html: str) -> dict[str, Any]:
    """Parse and re-serialize stored HTML; lists the references it holds."""
    doc = from_html(html)
    return {
        "html": to_html(doc),
        "refs": [dict(ref.attrs(), position=pos) for pos, ref in iter_refs(doc)],
    }

def preview(html: str, editable: bool = False) -> str:
    """Stored HTML with references rendered as chips."""
    return preview_html(from_html(html), editable=editable)
