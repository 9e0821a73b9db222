from .api import ContentSource, close_source, make_source
from .http_client import ApiClient, ApiError, HttpContentSource
from .memory_store import MemoryCatalog

__all__ = ["ContentSource", "close_source", "make_source", "ApiClient", "ApiError", "HttpContentSource", "MemoryCatalog"]
