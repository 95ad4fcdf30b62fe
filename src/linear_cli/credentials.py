from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel

from .config import Settings
from .errors import CredentialStoreError, LinearError
from .secret_store import SecretStore
from .session import OAuthSession, SessionFile

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "lin_api_"

Strategy = Literal["oauth", "api_key"]


class StaticKey(BaseModel):
    key: str
    source: str = "System keyring"

    @property
    def looks_valid(self) -> bool:
        return self.key.startswith(API_KEY_PREFIX)

    def authorization_header(self) -> dict[str, str]:
        # Personal API keys are sent without a scheme prefix.
        return {"Authorization": self.key}


Credential = StaticKey | OAuthSession


class AuthStatus(BaseModel):
    authenticated: bool
    source: str


class CredentialResolver:
    """Decides which credential to present: override, OAuth session, keyring key."""

    def __init__(
        self,
        settings: Settings,
        *,
        session_file: SessionFile | None = None,
        secret_store: SecretStore | None = None,
    ) -> None:
        self.settings = settings
        self.session_file = session_file or SessionFile(settings.session_file)
        self.secret_store = secret_store or SecretStore(
            settings.keyring_service,
            settings.keyring_username,
            allow_insecure=settings.keyring_allow_insecure,
        )

    def resolve(self) -> Credential | None:
        """Return the active credential, or None when unauthenticated.

        Absence of a stored credential is not an error; a failing keyring or an
        undecryptable session file is.
        """
        override = (self.settings.api_key or "").strip()
        if override:
            key = StaticKey(key=override, source="Environment variable (LINEAR_API_KEY)")
            if not key.looks_valid:
                logger.warning("LINEAR_API_KEY does not start with %r", API_KEY_PREFIX)
            return key

        session = self.session_file.load()
        if session is not None:
            if not session.is_expired():
                return session
            logger.info("Stored OAuth session expired at %s", session.expires_at)

        secret = self.secret_store.get()
        if secret:
            return StaticKey(key=secret, source="System keyring")
        return None

    def persist(self, credential: Credential) -> None:
        if isinstance(credential, OAuthSession):
            self.session_file.save(credential)
        else:
            self.secret_store.set(credential.key)

    def clear(self, strategy: Strategy | None = None) -> bool:
        """Remove stored credentials; returns True if anything was removed."""
        removed = False
        if strategy in (None, "oauth"):
            removed = self.session_file.delete() or removed
        if strategy == "api_key":
            removed = self.secret_store.delete() or removed
        elif strategy is None:
            # An unusable keyring cannot hold a key, so a full logout still succeeds.
            try:
                removed = self.secret_store.delete() or removed
            except CredentialStoreError as exc:
                logger.debug("Skipping keyring during logout: %s", exc)
        return removed

    def status(self) -> AuthStatus:
        try:
            credential = self.resolve()
        except LinearError as exc:
            return AuthStatus(authenticated=False, source=f"Error reading credentials: {exc}")
        if credential is None:
            return AuthStatus(authenticated=False, source="Not authenticated")
        if isinstance(credential, OAuthSession):
            source = f"OAuth session ({self.session_file.path})"
            return AuthStatus(authenticated=True, source=source)
        return AuthStatus(authenticated=True, source=credential.source)
