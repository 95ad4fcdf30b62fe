from __future__ import annotations

from pathlib import Path

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):  # type: ignore[misc]
    """CLI configuration loaded from environment or .env."""

    api_key: str | None = Field(
        default=None,
        description="Static API key override (LINEAR_API_KEY). Wins over any stored credential.",
    )
    client_id: str = Field(
        default="",
        description="OAuth application client ID registered with Linear.",
    )
    client_secret: str | None = Field(
        default=None,
        description="OAuth client secret, if the application was registered with one.",
    )
    authorize_url: str = Field(
        default="https://linear.app/oauth/authorize",
        description="OAuth authorization endpoint.",
    )
    token_url: str = Field(
        default="https://api.linear.app/oauth/token",
        description="OAuth token endpoint.",
    )
    api_url: str = Field(
        default="https://api.linear.app/graphql",
        description="Linear GraphQL endpoint for authenticated calls.",
    )
    oauth_scope: str = Field(default="read write", description="Scopes requested during OAuth.")
    redirect_host: str = Field(
        default="127.0.0.1",
        description="Loopback address the OAuth callback listener binds to.",
    )
    redirect_port: int = Field(
        default=8793,
        description="Port of the OAuth callback listener (must match the registered redirect URI).",
    )
    callback_timeout: float = Field(
        default=300.0,
        description="Seconds to wait for the browser to complete the OAuth redirect.",
    )
    request_timeout: float = Field(
        default=30.0, description="Deadline in seconds for a single GraphQL request."
    )
    fetch_all_timeout: float = Field(
        default=120.0,
        description="Overall deadline in seconds when fetching every page of a connection.",
    )
    page_size: int = Field(default=50, description="Default page size for single-page listings.")
    fetch_all_page_size: int = Field(
        default=100, description="Page size used when walking all pages."
    )
    config_dir: Path = Field(
        default=Path.home() / ".linear",
        description="Config directory holding the session file (created with 0700).",
    )
    session_file: Path = Field(
        default=None,
        validate_default=True,
        description="Encrypted OAuth session file (written with 0600). "
        "Defaults to tokens.enc inside config_dir.",
    )
    keyring_service: str = Field(
        default="linear-cli", description="Service name of the keyring entry."
    )
    keyring_username: str = Field(
        default="api-key", description="Entry name of the API key inside the keyring service."
    )
    keyring_allow_insecure: bool = Field(
        default=False,
        description="Accept low-priority keyring backends (plaintext or file based). "
        "Convenient on headless machines, but the API key is then only as safe as that file.",
    )
    debug: bool = Field(
        default=False,
        description="Enable verbose logging and error causes (set via LINEAR_DEBUG=1).",
    )
    user_agent: str = Field(default="linear-cli", description="User-Agent header sent to Linear.")

    model_config = SettingsConfigDict(env_prefix="LINEAR_", env_file=".env", extra="ignore")

    @field_validator("session_file", mode="before")
    @classmethod
    def _session_in_config_dir(cls, value: object, info: ValidationInfo) -> object:
        if value is None or value == "":
            return Path(info.data.get("config_dir", Path.home() / ".linear")) / "tokens.enc"
        return value

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.redirect_host}:{self.redirect_port}/callback"
