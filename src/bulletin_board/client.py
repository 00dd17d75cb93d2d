"""
HTTP client for the remote bulletin service.

Speaks a small JSON REST API; see ``scripts/fake_bulletin.py`` for a local
stand-in server.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from .config import ServiceConfig
from .models import Comment, Filters, Option, Record, RecordType, RoleContext
from .service import BulletinService, BulletinServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BulletinClient(BulletinService):
    """Async client for the bulletin service API."""

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the bulletin client.

        Args:
            base_url: Root of the bulletin API
            api_token: Optional bearer token
            timeout_seconds: Request timeout in seconds
            transport: Optional httpx transport (e.g. a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.timeout = timeout_seconds
        self._transport = transport

    @classmethod
    def from_config(cls, config: ServiceConfig) -> "BulletinClient":
        return cls(
            base_url=config.api_base,
            api_token=config.get_api_token(),
            timeout_seconds=config.timeout_seconds,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """
        Send one request and decode the JSON response.

        Raises:
            BulletinServiceError: on transport failure or an error status
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.request(
                    method,
                    url,
                    headers=self._headers(),
                    params=params,
                    json=json,
                )
            except httpx.RequestError as e:
                logger.warning(f"Bulletin service unreachable for {method} {path}: {e}")
                raise BulletinServiceError(f"Could not reach bulletin service: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"{method} {path} failed with {response.status_code}: {message}")
            raise BulletinServiceError(message, status_code=response.status_code)

        if response.status_code == 204:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{method} {path} returned a non-JSON body: {e}")
            raise BulletinServiceError(
                f"Bulletin service returned an unreadable response for {path}",
                status_code=response.status_code,
            ) from e

    # -------------------------------------------------------------------------
    # Context and vocabularies
    # -------------------------------------------------------------------------

    async def get_context(self) -> RoleContext:
        data = await self._request("GET", "/context")
        return _parse("/context", data, RoleContext.from_dict)

    async def list_active_categories(self) -> list[Option]:
        data = await self._request("GET", "/categories")
        return _parse("/categories", data, _rows(Option.from_dict))

    async def list_active_category_names(self) -> list[str]:
        data = await self._request("GET", "/categories/names")
        return _parse("/categories/names", data, _rows(str))

    async def list_active_status_options(self, record_type: RecordType) -> list[Option]:
        data = await self._request("GET", "/statuses", params={"type": record_type.value})
        return _parse("/statuses", data, _rows(Option.from_dict))

    async def get_support_owner_options(self) -> list[Option]:
        data = await self._request("GET", "/support/owners")
        return _parse("/support/owners", data, _rows(Option.from_dict))

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    async def list_suggestions(self, filters: Filters) -> list[Record]:
        data = await self._request("GET", "/suggestions", params=filters.to_payload())
        return _parse("/suggestions", data, _rows(Record.from_dict))

    async def list_support_tickets(self, filters: Filters) -> list[Record]:
        data = await self._request("GET", "/support", params=filters.to_payload())
        return _parse("/support", data, _rows(Record.from_dict))

    async def get_request(self, record_id: str) -> Record:
        path = f"/requests/{record_id}"
        return _parse(path, await self._request("GET", path), Record.from_dict)

    async def create_request(
        self,
        record_type: RecordType,
        title: str,
        body_html: str,
        category_ids: list[str],
    ) -> Record:
        data = await self._request(
            "POST",
            "/requests",
            json={
                "type": record_type.value,
                "title": title,
                "bodyHtml": body_html,
                "categoryIds": list(category_ids),
            },
        )
        return _parse("/requests", data, Record.from_dict)

    async def update_status(self, record_id: str, status: str) -> Record:
        path = f"/requests/{record_id}/status"
        data = await self._request("PATCH", path, json={"status": status})
        return _parse(path, data, Record.from_dict)

    async def update_description(self, record_id: str, body_html: str) -> Record:
        path = f"/requests/{record_id}/description"
        data = await self._request("PATCH", path, json={"bodyHtml": body_html})
        return _parse(path, data, Record.from_dict)

    async def update_owner(self, record_id: str, owner_id: str | None) -> Record:
        path = f"/requests/{record_id}/owner"
        data = await self._request("PATCH", path, json={"ownerId": owner_id})
        return _parse(path, data, Record.from_dict)

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    async def list_comments(self, request_id: str) -> list[Comment]:
        path = f"/requests/{request_id}/comments"
        return _parse(path, await self._request("GET", path), _rows(Comment.from_dict))

    async def create_comment(self, request_id: str, body: str) -> Comment:
        path = f"/requests/{request_id}/comments"
        data = await self._request("POST", path, json={"body": body})
        return _parse(path, data, Comment.from_dict)


def _rows(convert: Callable[[Any], T]) -> Callable[[Any], list[T]]:
    """Convert every row of a JSON array; null counts as empty."""

    def convert_rows(data: Any) -> list[T]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise TypeError(f"expected a JSON array, got {type(data).__name__}")
        return [convert(row) for row in data]

    return convert_rows


def _parse(path: str, data: Any, convert: Callable[[Any], T]) -> T:
    """Build models from a decoded body; malformed payloads become service errors."""
    try:
        return convert(data)
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Unexpected response shape from {path}: {e!r}")
        raise BulletinServiceError(f"Bulletin service sent an unexpected response for {path}") from e


def _error_message(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"Bulletin service returned HTTP {response.status_code}"
