# contentref/sources/api.py
from __future__ import annotations
from typing import Iterable, List, Optional, Protocol

from ..models import ContentEntity


class ContentSource(Protocol):
    """Anything that answers content searches (in-memory catalog, remote API)."""

    async def search(
        self,
        query: str,
        *,
        limit: int,
        types: Optional[Iterable[str]] = None,
        language: Optional[str] = None,
    ) -> List[ContentEntity]: ...


def make_source(dsn: str, *, token: Optional[str] = None) -> ContentSource:
    """
    Factory:
      - memory://               -> empty MemoryCatalog
      - json:///path/file.json  -> MemoryCatalog loaded from a JSON export
      - http(s)://host          -> HttpContentSource against the backend API
    """
    # Lazy imports avoid a circular import with the implementations
    if dsn.startswith("memory://"):
        from .memory_store import MemoryCatalog
        return MemoryCatalog()

    if dsn.startswith("json://"):
        from .memory_store import MemoryCatalog
        return MemoryCatalog.from_json(dsn.removeprefix("json://"))

    if dsn.startswith(("http://", "https://")):
        from .http_client import ApiClient, HttpContentSource
        return HttpContentSource(ApiClient(dsn, token=token))

    raise ValueError(f"Unsupported source DSN: {dsn}")


async def close_source(source: ContentSource) -> None:
    """Release whatever the source holds open (HTTP connections, catalog rows)."""
    aclose = getattr(source, "aclose", None)
    if aclose is not None:
        await aclose()
        return
    close = getattr(source, "close", None)
    if close is not None:
        close()
