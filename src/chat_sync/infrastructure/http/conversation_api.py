"""httpx client for the chat REST endpoints."""
from __future__ import annotations

import logging
from typing import Any

import httpx
import pydantic
from pydantic import TypeAdapter

from chat_sync.application.dto.records import ConversationRecord, UserRecord
from chat_sync.application.exceptions import ApiError
from chat_sync.application.mappers import record_to_conversation
from chat_sync.application.ports.auth import TokenProvider
from chat_sync.domain.entities.conversation import Conversation

logger = logging.getLogger(__name__)

_conversation_list: TypeAdapter[list[ConversationRecord]] = TypeAdapter(list[ConversationRecord])
_user_list: TypeAdapter[list[UserRecord]] = TypeAdapter(list[UserRecord])


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    return str(body)


def _unwrap(body: Any) -> Any:
    # list endpoints answer either a bare array or {"items": [...]}
    if isinstance(body, dict):
        for key in ("items", "data"):
            if key in body:
                return body[key]
    return body


class HttpConversationApi:
    """Implements application.ports.api.ConversationApi."""

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_conversations(self) -> list[Conversation]:
        body = await self._get("/conversation")
        try:
            records = _conversation_list.validate_python(_unwrap(body))
        except pydantic.ValidationError as exc:
            raise ApiError(f"malformed conversation list: {exc}") from exc
        return [record_to_conversation(r) for r in records]

    async def search_users(self, query: str) -> list[UserRecord]:
        body = await self._get("/user/search", params={"q": query})
        try:
            return _user_list.validate_python(_unwrap(body))
        except pydantic.ValidationError as exc:
            raise ApiError(f"malformed user search result: {exc}") from exc

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        credentials = await self._token_provider.get_credentials()
        try:
            response = await self._client.get(
                path,
                params=params,
                headers={"Authorization": f"Bearer {credentials.token}"},
            )
        except httpx.HTTPError as exc:
            raise ApiError(f"GET {path} failed: {exc}") from exc

        if not response.is_success:
            detail = _error_detail(response)
            logger.warning("GET %s -> %d: %s", path, response.status_code, detail)
            raise ApiError(detail, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(f"GET {path} returned invalid JSON") from exc
