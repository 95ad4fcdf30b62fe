"""Error hierarchy shared by the auth, session and transport layers.

Every error carries a stable ``kind`` the presentation layer can branch on and a
``hint`` telling the user what to do next. Messages never include secrets.
"""

from __future__ import annotations

from collections.abc import Sequence


class LinearError(RuntimeError):
    """Base class for all linear-cli errors."""

    kind = "error"
    hint = ""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class AuthError(LinearError):
    """Raised when obtaining, storing or reading a credential fails."""

    kind = "auth"


class UnauthenticatedError(AuthError):
    kind = "unauthenticated"
    hint = "Run `linear auth login` or `linear auth oauth`, or set LINEAR_API_KEY."


class CredentialStoreError(AuthError):
    """The OS secret store or the session file could not be accessed."""

    kind = "credential_store_unavailable"
    hint = "Check that the system keyring is unlocked, or set LINEAR_API_KEY instead."


class DecryptionError(AuthError):
    kind = "decryption_failed"
    hint = (
        "The stored session is corrupt or was created on another machine. "
        "Run `linear auth logout --oauth` and `linear auth oauth` again."
    )


class CSRFMismatchError(AuthError):
    kind = "csrf_mismatch"
    hint = "The callback did not belong to this login attempt. Run `linear auth oauth` again."


class AuthorizationTimeoutError(AuthError):
    kind = "authorization_timeout"
    hint = "Complete the browser consent sooner, then run `linear auth oauth` again."


class AuthorizationDeniedError(AuthError):
    kind = "authorization_denied"
    hint = "Authorization was declined. Run `linear auth oauth` again and approve access."


class TokenExchangeError(AuthError):
    kind = "token_exchange_failed"
    hint = "Check LINEAR_CLIENT_ID / LINEAR_CLIENT_SECRET, then run `linear auth oauth` again."


class ApiError(LinearError):
    """Raised when the Linear API call fails."""

    kind = "api"


class TransportError(ApiError):
    kind = "transport"
    hint = "Check your network connection and try again."


class HTTPStatusError(ApiError):
    kind = "http_status"
    hint = (
        "If the status is 401 or 403, re-authenticate with "
        "`linear auth login` or `linear auth oauth`."
    )

    def __init__(self, status_code: int, body: str, *, hint: str | None = None) -> None:
        super().__init__(f"HTTP {status_code}: {body}", hint=hint)
        self.status_code = status_code
        self.body = body


class ProtocolError(ApiError):
    """The server answered with one or more GraphQL errors."""

    kind = "protocol"
    hint = "Check the identifiers and filters you passed; the server rejected the query."

    def __init__(self, errors: Sequence[str], *, hint: str | None = None) -> None:
        self.errors = list(errors) or ["unknown GraphQL error"]
        message = self.errors[0]
        if len(self.errors) > 1:
            message = f"{message} (and {len(self.errors) - 1} more)"
        super().__init__(message, hint=hint)


class NotFoundError(ApiError):
    kind = "not_found"


class PaginationError(ApiError):
    """The server claimed more pages without advancing the cursor."""

    kind = "pagination_invariant"
    hint = "The server returned inconsistent pagination data. Retry later or use --limit."


MAX_ERROR_BODY = 200


def cap_body(text: str, limit: int = MAX_ERROR_BODY) -> str:
    """Trim a response body before it ends up in an error message or a log line."""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "...(truncated)"
