from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from linear_cli.config import Settings
from linear_cli.credentials import CredentialResolver
from linear_cli.secret_store import SecretStore
from linear_cli.session import SessionFile

TEST_KEY = bytes(range(32))


class FakeKeyring(KeyringBackend):
    """In-memory keyring backend."""

    priority = 5  # type: ignore[assignment]

    def __init__(self) -> None:
        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        try:
            del self.passwords[(service, username)]
        except KeyError as exc:
            raise PasswordDeleteError("not found") from exc


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep every test away from the real home directory and environment."""
    for name in ("LINEAR_API_KEY", "LINEAR_CLIENT_ID", "LINEAR_CLIENT_SECRET", "LINEAR_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LINEAR_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("LINEAR_SESSION_FILE", str(tmp_path / "config" / "tokens.enc"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def fake_keyring() -> Iterator[FakeKeyring]:
    previous = keyring.get_keyring()
    backend = FakeKeyring()
    keyring.set_keyring(backend)
    try:
        yield backend
    finally:
        keyring.set_keyring(previous)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        config_dir=tmp_path / "config",
        session_file=tmp_path / "config" / "tokens.enc",
        client_id="client-123",
    )


@pytest.fixture()
def session_file(settings: Settings) -> SessionFile:
    return SessionFile(settings.session_file, key_source=lambda: TEST_KEY)


@pytest.fixture()
def secret_store(settings: Settings, fake_keyring: FakeKeyring) -> SecretStore:
    return SecretStore(settings.keyring_service, settings.keyring_username, backend=fake_keyring)


@pytest.fixture()
def resolver(
    settings: Settings, session_file: SessionFile, secret_store: SecretStore
) -> CredentialResolver:
    return CredentialResolver(settings, session_file=session_file, secret_store=secret_store)
