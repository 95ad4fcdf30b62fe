from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from .config import Settings
from .credentials import Credential
from .errors import (
    HTTPStatusError,
    ProtocolError,
    TransportError,
    UnauthenticatedError,
    cap_body,
)

logger = logging.getLogger(__name__)


class GraphQLClient:
    """Thin GraphQL client for the Linear API."""

    def __init__(self, settings: Settings, credential: Credential | None) -> None:
        self.settings = settings
        self.credential = credential

    async def execute(
        self,
        query: str,
        variables: Mapping[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Run one request/response cycle and return the ``data`` object.

        Raises UnauthenticatedError before touching the network when no credential
        is available, TransportError for connection problems and deadline expiry,
        HTTPStatusError for non-2xx answers and ProtocolError for GraphQL errors.
        """
        if self.credential is None:
            raise UnauthenticatedError("No credentials found.")

        deadline = timeout if timeout is not None else self.settings.request_timeout
        headers = {
            **self.credential.authorization_header(),
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.settings.user_agent,
        }
        payload: dict[str, Any] = {"query": query, "variables": dict(variables or {})}

        try:
            resp = await asyncio.wait_for(self._post(payload, headers, deadline), timeout=deadline)
        except TimeoutError as exc:
            raise TransportError(f"request timed out after {deadline:g}s") from exc
        except httpx.TimeoutException as exc:
            raise TransportError(f"request timed out after {deadline:g}s") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"request failed: {type(exc).__name__}: {exc}") from exc

        if resp.is_error:
            logger.debug("GraphQL HTTP %s from %s", resp.status_code, self.settings.api_url)
            raise HTTPStatusError(resp.status_code, cap_body(resp.text))

        try:
            data_raw: Any = resp.json()
        except ValueError as exc:
            raise ProtocolError([f"invalid JSON response: {cap_body(resp.text)}"]) from exc
        if not isinstance(data_raw, dict):
            raise ProtocolError(["response is not a JSON object"])

        errors = data_raw.get("errors")
        if errors:
            messages = [_error_message(err) for err in errors] if isinstance(errors, list) else []
            raise ProtocolError(messages or [str(errors)])

        data_section = data_raw.get("data")
        return data_section if isinstance(data_section, dict) else {}

    async def _post(
        self, payload: dict[str, Any], headers: dict[str, str], deadline: float
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=deadline) as client:
            return await client.post(self.settings.api_url, json=payload, headers=headers)


def _error_message(err: Any) -> str:
    if isinstance(err, dict):
        message = str(err.get("message") or "unknown GraphQL error")
        path = err.get("path")
        if path:
            message = f"{message} (path: {'.'.join(str(p) for p in path)})"
        return message
    return str(err)
