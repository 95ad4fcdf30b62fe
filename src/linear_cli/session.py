from __future__ import annotations

import logging
import os
from collections.abc import Callable
from contextlib import suppress
from datetime import UTC, datetime, timedelta
from pathlib import Path

from pydantic import BaseModel, ValidationError, field_validator

from . import crypto
from .errors import CredentialStoreError, DecryptionError

logger = logging.getLogger(__name__)

DIR_MODE = 0o700
FILE_MODE = 0o600


class OAuthSession(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    scope: str | None = None
    obtained_at: datetime | None = None

    @field_validator("scope", mode="before")
    @classmethod
    def _join_scope(cls, value: object) -> object:
        if isinstance(value, list | tuple):
            return " ".join(str(part) for part in value)
        return value

    @property
    def expires_at(self) -> datetime | None:
        if self.expires_in is None or self.obtained_at is None:
            return None
        return self.obtained_at + timedelta(seconds=self.expires_in)

    def is_expired(self, now: datetime | None = None) -> bool:
        expires_at = self.expires_at
        if expires_at is None:
            return False
        return (now or datetime.now(UTC)) >= expires_at

    def authorization_header(self) -> dict[str, str]:
        """Return Authorization header for API calls."""
        prefix = self.token_type or "Bearer"
        return {"Authorization": f"{prefix} {self.access_token}"}


class SessionFile:
    """Persists the OAuth session encrypted on disk.

    The key is derived again on every load and save; nothing is cached between calls.
    """

    def __init__(self, path: Path, key_source: Callable[[], bytes] = crypto.derive_key) -> None:
        self.path = path
        self.key_source = key_source

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> OAuthSession | None:
        try:
            blob = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CredentialStoreError(f"cannot read session file {self.path}: {exc}") from exc

        plaintext = crypto.decrypt(blob.strip(), self.key_source())
        try:
            return OAuthSession.model_validate_json(plaintext)
        except ValidationError as exc:
            raise DecryptionError("failed to decrypt session: unexpected content") from exc

    def save(self, session: OAuthSession) -> None:
        blob = crypto.encrypt(session.model_dump_json().encode(), self.key_source())
        directory = self.path.parent
        try:
            directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            with suppress(PermissionError):
                directory.chmod(DIR_MODE)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "wb") as fh:
                fh.write(blob)
            # O_CREAT honours the mode only for new files and is masked by umask.
            os.chmod(self.path, FILE_MODE)
        except OSError as exc:
            raise CredentialStoreError(f"cannot write session file {self.path}: {exc}") from exc
        logger.debug("Saved encrypted session to %s", self.path)

    def delete(self) -> bool:
        """Remove the session file; returns False when there was nothing to remove."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise CredentialStoreError(f"cannot remove session file {self.path}: {exc}") from exc
        return True
