"""
Remote API - Transport-agnostic access to remote progress.

Two calls:
    fetch_init()    -> InitData (remote discovered names, table, username)
    save_progress() -> bool

Implementations:
- HttpRemoteAPI: httpx client for the progress server in crucible.api
- LocalRemoteAPI: calls a ProgressService in process (single-process
  deployments and tests)

Failures raise RemoteError subclasses. Callers in the engine catch them;
nothing here retries.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import json
import logging

import httpx
from pydantic import ValidationError

from ..api.schemas import InitResponse, SaveProgressRequest, SaveProgressResponse, TokenRecord
from ..engine_core.state import Token
from ..errors import PayloadTooLargeError, RemoteUnavailableError

if TYPE_CHECKING:
    from ..api.service import ProgressService

logger = logging.getLogger(__name__)


@dataclass
class InitData:
    """Remote state at session start."""
    discovered: list[str] = field(default_factory=list)
    tokens: list[Token] = field(default_factory=list)
    username: str | None = None

    @classmethod
    def from_response(cls, response: InitResponse) -> InitData:
        return cls(
            discovered=list(response.discovered),
            tokens=[Token(id=r.id, name=r.name, x=r.x, y=r.y) for r in response.elements],
            username=response.username,
        )


def to_records(tokens: list[Token]) -> list[TokenRecord]:
    return [TokenRecord(id=t.id, name=t.name, x=t.x, y=t.y) for t in tokens]


class RemoteAPI(ABC):
    """Abstract remote progress API."""

    @abstractmethod
    async def fetch_init(self) -> InitData:
        pass

    @abstractmethod
    async def save_progress(self, discovered: list[str], tokens: list[Token]) -> bool:
        pass

    async def close(self):
        pass


class HttpRemoteAPI(RemoteAPI):
    """
    Progress server client.

    Usage:
        remote = HttpRemoteAPI("http://localhost:8000", user_id="u1")
        init = await remote.fetch_init()
    """

    def __init__(
        self,
        base_url: str,
        user_id: str | None = None,
        username: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.username = username
        self.timeout = timeout
        self._client = client

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        if self.username:
            headers["X-Username"] = self.username
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    def _handle_error(self, response: httpx.Response):
        try:
            message = response.json().get("error", response.text)
        except (json.JSONDecodeError, AttributeError):
            message = response.text or f"HTTP {response.status_code}"

        if response.status_code == 413:
            raise PayloadTooLargeError(message, status_code=response.status_code)
        raise RemoteUnavailableError(
            f"Progress server error: {message}",
            status_code=response.status_code,
        )

    async def fetch_init(self) -> InitData:
        try:
            response = await self._get_client().get("/api/v1/init", headers=self.headers)
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(f"Init request failed: {e}") from e

        if response.status_code != 200:
            self._handle_error(response)
        try:
            return InitData.from_response(InitResponse.model_validate(response.json()))
        except (ValidationError, json.JSONDecodeError) as e:
            raise RemoteUnavailableError(f"Malformed init response: {e}") from e

    async def save_progress(self, discovered: list[str], tokens: list[Token]) -> bool:
        body = SaveProgressRequest(discovered=discovered, elements=to_records(tokens))
        try:
            response = await self._get_client().post(
                "/api/v1/progress",
                content=body.model_dump_json(),
                headers=self.headers,
            )
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(f"Save request failed: {e}") from e

        if response.status_code != 200:
            self._handle_error(response)
        try:
            return SaveProgressResponse.model_validate(response.json()).success
        except (ValidationError, json.JSONDecodeError) as e:
            raise RemoteUnavailableError(f"Malformed save response: {e}") from e

    async def close(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()


class LocalRemoteAPI(RemoteAPI):
    """Remote API served by an in-process ProgressService."""

    def __init__(self, service: ProgressService, user_id: str | None, username: str | None = None):
        self.service = service
        self.user_id = user_id
        self.username = username

    async def fetch_init(self) -> InitData:
        return InitData.from_response(self.service.init(self.user_id, self.username))

    async def save_progress(self, discovered: list[str], tokens: list[Token]) -> bool:
        request = SaveProgressRequest(discovered=discovered, elements=to_records(tokens))
        return self.service.save_progress(self.user_id, request).success
