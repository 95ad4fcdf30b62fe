"""OAuth 2.0 authorization code flow with PKCE for Linear.

The flow is interactive and single-shot:

1. A fresh verifier/challenge/state triple is generated.
2. A loopback-only HTTP listener is started for this attempt.
3. The authorization URL is handed to the caller, who opens it in a browser.
4. The first ``/callback`` request is captured and the listener shuts down.
5. The state is checked and the code is exchanged for a token together with the
   original verifier.
6. The token is persisted through :class:`CredentialResolver`.

Nothing is retried; every failure ends the attempt with a distinct error.
"""

from __future__ import annotations

import asyncio
import base64
import enum
import hashlib
import html
import ipaddress
import logging
import secrets
import socket
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlencode, urlparse

import httpx
from pydantic import BaseModel, ConfigDict

from .config import Settings
from .credentials import CredentialResolver
from .errors import (
    AuthError,
    AuthorizationDeniedError,
    AuthorizationTimeoutError,
    CSRFMismatchError,
    TokenExchangeError,
    cap_body,
)
from .session import OAuthSession

logger = logging.getLogger(__name__)

VERIFIER_LENGTH = 64
STATE_LENGTH = 32
CALLBACK_PATH = "/callback"

SUCCESS_PAGE = """<!DOCTYPE html>
<html>
<head><title>Authentication Successful</title></head>
<body style="font-family: sans-serif; text-align: center; padding: 50px;">
  <h1>Authentication Successful</h1>
  <p>You can close this window and return to the terminal.</p>
</body>
</html>"""

FAILURE_PAGE = """<!DOCTYPE html>
<html>
<head><title>Authentication Failed</title></head>
<body style="font-family: sans-serif; text-align: center; padding: 50px;">
  <h1>Authentication Failed</h1>
  <p>Error: {error}</p>
  <p>You can close this window.</p>
</body>
</html>"""


def random_string(length: int) -> str:
    """URL-safe random string of exactly ``length`` characters."""
    return secrets.token_urlsafe(length)[:length]


def code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


class PKCEChallenge(BaseModel):
    model_config = ConfigDict(frozen=True)

    verifier: str
    challenge: str
    state: str

    @classmethod
    def generate(cls) -> PKCEChallenge:
        verifier = random_string(VERIFIER_LENGTH)
        return cls(
            verifier=verifier,
            challenge=code_challenge(verifier),
            state=random_string(STATE_LENGTH),
        )


@dataclass(frozen=True)
class CallbackResult:
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None


class AuthorizationState(enum.Enum):
    IDLE = "idle"
    CHALLENGE_GENERATED = "challenge_generated"
    LISTENER_STARTED = "listener_started"
    AWAITING_CALLBACK = "awaiting_callback"
    VALIDATED = "validated"
    REJECTED = "rejected"
    DENIED = "denied"
    TIMED_OUT = "timed_out"
    EXCHANGED = "exchanged"
    EXCHANGE_FAILED = "exchange_failed"


def is_loopback(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


class _CallbackHandler(BaseHTTPRequestHandler):
    server: CallbackServer

    def do_GET(self) -> None:  # noqa: N802 - http.server naming
        parsed = urlparse(self.path)
        if parsed.path != self.server.callback_path:
            self.send_error(404)
            return

        params = parse_qs(parsed.query)

        def first(name: str) -> str | None:
            values = params.get(name)
            return values[0] if values else None

        result = CallbackResult(
            code=first("code"),
            state=first("state"),
            error=first("error"),
            error_description=first("error_description"),
        )
        if result.error:
            body = FAILURE_PAGE.format(error=html.escape(result.error)).encode()
            status = 400
        else:
            body = SUCCESS_PAGE.encode()
            status = 200
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)
        self.server.deliver(result)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        logger.debug("callback listener: " + format, *args)


class CallbackServer(HTTPServer):
    """Loopback listener that accepts exactly one OAuth callback.

    One instance serves one authorization attempt. The accept loop runs on a
    background thread and stops as soon as a callback was delivered or
    :meth:`close` is called.
    """

    poll_interval = 0.2

    def __init__(
        self,
        host: str,
        port: int,
        on_result: Callable[[CallbackResult], None],
        *,
        callback_path: str = CALLBACK_PATH,
    ) -> None:
        if not is_loopback(host):
            raise ValueError(f"callback listener must bind to a loopback address, got {host!r}")
        if ":" in host:
            self.address_family = socket.AF_INET6
        super().__init__((host, port), _CallbackHandler)
        self.host = host
        self.callback_path = callback_path
        self.timeout = self.poll_interval
        self._on_result = on_result
        self._done = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        return int(self.server_address[1])

    @property
    def redirect_uri(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}{self.callback_path}"

    def start(self) -> None:
        self._thread = threading.Thread(target=self._serve, name="oauth-callback", daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            while not self._done.is_set():
                self.handle_request()
        finally:
            self.server_close()
            logger.debug("Callback listener on port %s closed", self.port)

    def deliver(self, result: CallbackResult) -> None:
        if self._done.is_set():
            return
        self._done.set()
        self._on_result(result)

    def close(self) -> None:
        """Stop accepting requests and release the socket."""
        self._done.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.poll_interval * 10)
        self.server_close()


class PKCEAuthorizer:
    """Drives one interactive authorization attempt and persists the resulting token."""

    def __init__(self, settings: Settings, resolver: CredentialResolver) -> None:
        self.settings = settings
        self.resolver = resolver
        self.state = AuthorizationState.IDLE

    def build_authorization_url(self, challenge: PKCEChallenge, redirect_uri: str) -> str:
        params = {
            "client_id": self.settings.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "state": challenge.state,
            "scope": self.settings.oauth_scope,
            "code_challenge": challenge.challenge,
            "code_challenge_method": "S256",
            "prompt": "consent",
        }
        return f"{self.settings.authorize_url}?{urlencode(params)}"

    async def authorize(self, open_url: Callable[[str], None]) -> OAuthSession:
        """Run the flow; ``open_url`` receives the authorization URL to show or open."""
        if not self.settings.client_id:
            raise AuthError(
                "Missing OAuth client ID.",
                hint="Set LINEAR_CLIENT_ID to the client ID of your Linear OAuth application.",
            )

        challenge = PKCEChallenge.generate()
        self.state = AuthorizationState.CHALLENGE_GENERATED

        loop = asyncio.get_running_loop()
        received: asyncio.Future[CallbackResult] = loop.create_future()

        def _set(result: CallbackResult) -> None:
            if not received.done():
                received.set_result(result)

        try:
            server = CallbackServer(
                self.settings.redirect_host,
                self.settings.redirect_port,
                lambda result: loop.call_soon_threadsafe(_set, result),
            )
        except OSError as exc:
            raise AuthError(
                f"cannot start callback listener on port {self.settings.redirect_port}: {exc}",
                hint="Free the port or set LINEAR_REDIRECT_PORT to match your OAuth application.",
            ) from exc

        try:
            server.start()
            self.state = AuthorizationState.LISTENER_STARTED
            redirect_uri = server.redirect_uri
            open_url(self.build_authorization_url(challenge, redirect_uri))
            self.state = AuthorizationState.AWAITING_CALLBACK
            try:
                result = await asyncio.wait_for(received, timeout=self.settings.callback_timeout)
            except TimeoutError as exc:
                self.state = AuthorizationState.TIMED_OUT
                raise AuthorizationTimeoutError(
                    f"timed out after {self.settings.callback_timeout:g}s waiting for authorization"
                ) from exc
        finally:
            await asyncio.to_thread(server.close)

        code = self.validate(result, challenge)
        session = await self.exchange_code(code, challenge.verifier, redirect_uri)
        self.resolver.persist(session)
        self.state = AuthorizationState.EXCHANGED
        logger.info("OAuth session stored in %s", self.resolver.session_file.path)
        return session

    def validate(self, result: CallbackResult, challenge: PKCEChallenge) -> str:
        if result.error:
            self.state = AuthorizationState.DENIED
            detail = f" ({result.error_description})" if result.error_description else ""
            raise AuthorizationDeniedError(f"authorization error: {result.error}{detail}")
        if result.state != challenge.state:
            self.state = AuthorizationState.REJECTED
            raise CSRFMismatchError("state mismatch: possible CSRF attack")
        if not result.code:
            self.state = AuthorizationState.DENIED
            raise AuthorizationDeniedError("no authorization code received")
        self.state = AuthorizationState.VALIDATED
        return result.code

    async def exchange_code(self, code: str, verifier: str, redirect_uri: str) -> OAuthSession:
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "client_id": self.settings.client_id,
            "code_verifier": verifier,
        }
        if self.settings.client_secret:
            data["client_secret"] = self.settings.client_secret

        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
                resp = await client.post(
                    self.settings.token_url,
                    data=data,
                    headers={"Accept": "application/json", "User-Agent": self.settings.user_agent},
                )
        except httpx.HTTPError as exc:
            self.state = AuthorizationState.EXCHANGE_FAILED
            raise TokenExchangeError(
                f"token request failed: {type(exc).__name__}",
                hint="Check your network connection, then run `linear auth oauth` again.",
            ) from exc

        if resp.is_error:
            self.state = AuthorizationState.EXCHANGE_FAILED
            raise TokenExchangeError(
                f"token exchange failed: HTTP {resp.status_code} - {cap_body(resp.text)}"
            )

        try:
            payload = resp.json()
            if not isinstance(payload, dict):
                raise ValueError("token response is not an object")
            return OAuthSession.model_validate({**payload, "obtained_at": datetime.now(UTC)})
        except ValueError as exc:
            self.state = AuthorizationState.EXCHANGE_FAILED
            raise TokenExchangeError("failed to parse token response") from exc
