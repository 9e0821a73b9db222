"""
JSON client for the back-office REST API.

Every request goes through the `/api` prefix, carries a bearer token when
one is available, and turns failures into ApiError(detail, status) with
status 0 when the server could not be reached at all.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Union

import httpx

from .. import config as CFG
from ..models import ContentEntity

log = logging.getLogger(__name__)

TokenGetter = Callable[[], Union[Optional[str], Awaitable[Optional[str]]]]


class ApiError(Exception):
    """API failure with the server's `detail` message and HTTP status (0 = unreachable)."""

    def __init__(self, detail: str, status: int) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status = status


class ApiClient:

    def __init__(
        self,
        base_url: str = CFG.API_URL,
        *,
        token: Optional[str] = CFG.API_TOKEN,
        token_getter: Optional[TokenGetter] = None,
        timeout: float = CFG.API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._token_getter = token_getter
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    # ------------- auth -------------

    def set_token(self, token: str) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None

    def set_token_getter(self, getter: TokenGetter) -> None:
        self._token_getter = getter

    async def _get_token(self) -> Optional[str]:
        if self._token:
            return self._token
        if self._token_getter is not None:
            token = self._token_getter()
            if inspect.isawaitable(token):
                token = await token
            return token
        return None

    # ------------- requests -------------

    async def request(self, method: str, endpoint: str, *, json: Any = None, params: Any = None) -> Any:
        path = endpoint if endpoint.startswith("/api") else f"/api{endpoint}"
        headers = {"Content-Type": "application/json"}
        token = await self._get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        log.debug("API %s %s (token=%s)", method, path, bool(token))

        try:
            response = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.RequestError as exc:
            log.error("API network error: %r", exc)
            raise ApiError(
                f"Impossible de contacter le serveur ({self.base_url}). "
                "Vérifiez que le backend est démarré.",
                0,
            ) from exc

        if response.is_error:
            detail = "An error occurred"
            try:
                detail = response.json().get("detail") or detail
            except (ValueError, AttributeError):
                pass
            if response.status_code == 401:
                detail = "Session expirée. Veuillez vous reconnecter."
            elif response.status_code == 403:
                detail = "Accès non autorisé."
            raise ApiError(detail, response.status_code)

        if response.status_code == 204:
            return {}
        return response.json()

    async def get(self, endpoint: str, *, params: Any = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("POST", endpoint, json=data)

    async def put(self, endpoint: str, data: Any) -> Any:
        return await self.request("PUT", endpoint, json=data)

    async def patch(self, endpoint: str, data: Any) -> Any:
        return await self.request("PATCH", endpoint, json=data)

    async def delete(self, endpoint: str) -> Any:
        return await self.request("DELETE", endpoint)

    async def aclose(self) -> None:
        await self._client.aclose()


class HttpContentSource:
    """ContentSource backed by GET /api/content/search."""

    BASE_PATH = "/content"

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def search(
        self,
        query: str,
        *,
        limit: int,
        types: Optional[Iterable[str]] = None,
        language: Optional[str] = None,
    ) -> List[ContentEntity]:
        params = {"q": query}
        if types:
            params["types"] = ",".join(types)
        if language:
            params["language"] = language
        if limit:
            params["limit"] = str(limit)
        rows = await self.client.get(f"{self.BASE_PATH}/search", params=params)
        return [ContentEntity.from_dict(r) for r in rows or []]

    async def aclose(self) -> None:
        await self.client.aclose()
