"""HTTP client for submitting commands to a cmdrelay server.

Example usage::

    async with CommandClient(base_url="http://localhost:3000") as client:
        outcome = await client.send("whoami")
        print(outcome.result)
"""

from __future__ import annotations

import logging

import httpx
from pydantic import TypeAdapter

from cmdrelay.domain.errors import ClientError, CommandTimeoutError
from cmdrelay.domain.models import (
    COMMAND_TIMEOUT,
    REQUEST_SLACK,
    TIMEOUT_MESSAGE,
    LogEntry,
    SubmitResult,
)

logger = logging.getLogger(__name__)

_ENTRIES = TypeAdapter(list[LogEntry])


class CommandClient:
    """Submits commands and reads the execution log over HTTP.

    Args:
        base_url: Root URL of the cmdrelay server.
        timeout: Per-request timeout in seconds. The default outlasts the
                 server's timeout window so a 504 is received rather than
                 a client-side timeout.
        transport: Optional httpx transport (for testing).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        timeout: float = COMMAND_TIMEOUT + REQUEST_SLACK,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the HTTP client and verify the server is reachable."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        try:
            resp = await self._client.get("/health")
            resp.raise_for_status()
            logger.info("Connected to cmdrelay server at %s", self._base_url)
        except httpx.HTTPError as e:
            await self._client.aclose()
            self._client = None
            raise ClientError(f"Failed to connect to server: {e}") from e

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from cmdrelay server")

    async def send(self, command: str) -> SubmitResult:
        """Submit a command and wait for the agent's result.

        Raises:
            CommandTimeoutError: If the server reports the window elapsed.
            ClientError: On any other failure.
        """
        resp = await self._request("POST", "/api/send", json={"command": command})
        return SubmitResult.model_validate(resp.json())

    async def logs(self) -> list[LogEntry]:
        """Fetch the full execution log."""
        resp = await self._request("GET", "/api/logs")
        return _ENTRIES.validate_python(resp.json())

    async def _request(self, method: str, path: str, **kwargs: object) -> httpx.Response:
        if self._client is None:
            raise ClientError("Not connected to server")
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ClientError(f"HTTP request to {path} failed: {e}") from e

        if resp.status_code == 504:
            raise CommandTimeoutError(None, _error_message(resp) or TIMEOUT_MESSAGE)
        if resp.is_error:
            raise ClientError(
                f"{path} returned {resp.status_code}: {_error_message(resp)}",
                status_code=resp.status_code,
            )
        return resp

    async def __aenter__(self) -> CommandClient:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)
