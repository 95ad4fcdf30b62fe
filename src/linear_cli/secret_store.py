from __future__ import annotations

import logging

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from .errors import CredentialStoreError

logger = logging.getLogger(__name__)

# Backends below this priority are plaintext/file fallbacks or the "fail" backend.
# A chainer writes to its highest-priority member, so it is rated by that member.
SECURE_PRIORITY = 1


class SecretStore:
    """Single secret held in the platform keyring (Keychain, Credential Manager, Secret Service).

    ``allow_insecure`` decides whether low-priority backends such as plaintext files are
    acceptable. Leaving it off means a machine without a real keyring cannot store the
    key, and the user has to fall back to the LINEAR_API_KEY environment variable.
    """

    def __init__(
        self,
        service: str,
        username: str,
        *,
        backend: KeyringBackend | None = None,
        allow_insecure: bool = False,
    ) -> None:
        self.service = service
        self.username = username
        self._backend = backend
        self.allow_insecure = allow_insecure

    def _open(self) -> KeyringBackend:
        try:
            backend = self._backend or keyring.get_keyring()
        except KeyringError as exc:
            raise CredentialStoreError(f"failed to access keyring: {exc}") from exc
        if not self.allow_insecure and _priority(backend) < SECURE_PRIORITY:
            raise CredentialStoreError(
                f"keyring backend {type(backend).__name__} is not a secure system keyring",
                hint="Unlock or install a system keyring, set LINEAR_KEYRING_ALLOW_INSECURE=1 "
                "to accept it anyway, or use the LINEAR_API_KEY environment variable.",
            )
        return backend

    def get(self) -> str | None:
        backend = self._open()
        try:
            value = backend.get_password(self.service, self.username)
        except KeyringError as exc:
            raise CredentialStoreError(f"failed to read from keyring: {exc}") from exc
        return value or None

    def set(self, secret: str) -> None:
        backend = self._open()
        try:
            backend.set_password(self.service, self.username, secret)
        except KeyringError as exc:
            raise CredentialStoreError(f"failed to save to keyring: {exc}") from exc
        logger.debug("Stored secret in keyring service %s", self.service)

    def delete(self) -> bool:
        """Remove the secret; returns False when it was not set."""
        backend = self._open()
        try:
            backend.delete_password(self.service, self.username)
        except PasswordDeleteError:
            return False
        except KeyringError as exc:
            raise CredentialStoreError(f"failed to remove from keyring: {exc}") from exc
        return True


def _priority(backend: KeyringBackend) -> float:
    children = getattr(backend, "backends", None)
    if children:
        return max(_priority(child) for child in children)
    try:
        return float(backend.priority)
    except Exception:  # noqa: BLE001 - viability checks raise arbitrary errors
        return 0.0
