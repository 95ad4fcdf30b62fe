# ruff: noqa: B008
from __future__ import annotations

import webbrowser

import typer
from rich.markup import escape

from ..credentials import API_KEY_PREFIX, CredentialResolver, StaticKey, Strategy
from ..errors import LinearError
from ..helpers import call_api, console, env, fail, load_settings, run
from ..oauth import PKCEAuthorizer


def register_auth(app: typer.Typer) -> None:
    @app.command()
    def login(
        api_key: str = typer.Option(
            ...,
            prompt=f"Linear API key (starts with '{API_KEY_PREFIX}')",
            hide_input=True,
            help="Personal API key from https://linear.app/settings/api.",
        ),
    ) -> None:
        """Store a Linear API key in the system keyring."""
        settings = load_settings()
        key = StaticKey(key=api_key.strip())
        if not key.key:
            console.print("[red]API key cannot be empty.[/red]")
            raise typer.Exit(code=1)
        if not key.looks_valid:
            console.print(
                f"[yellow]Warning: API key should start with '{API_KEY_PREFIX}'.[/yellow]"
            )

        try:
            CredentialResolver(settings).persist(key)
        except LinearError as exc:
            fail(exc, settings, label="Saving API key failed")
        console.print("[green]Authenticated.[/green] API key stored in the system keyring.")

    @app.command()
    def oauth(
        browser: bool = typer.Option(
            True, "--browser/--no-browser", help="Open the authorization URL automatically."
        ),
    ) -> None:
        """Authenticate through the browser (OAuth 2.0 with PKCE)."""
        settings = load_settings()
        authorizer = PKCEAuthorizer(settings, CredentialResolver(settings))

        def _open(url: str) -> None:
            console.print("Open this URL to authorize linear-cli:")
            console.print(escape(url), soft_wrap=True)
            if browser:
                webbrowser.open(url)
            console.print(
                f"Waiting up to {settings.callback_timeout:g}s for the browser to redirect..."
            )

        try:
            run(authorizer.authorize(_open))
        except LinearError as exc:
            fail(exc, settings, label="Authentication failed")
        console.print(
            f"[green]Authentication successful.[/green] Session saved to {settings.session_file}"
        )

    @app.command()
    def status(
        json_output: bool = typer.Option(False, "--json", help="Print status as JSON."),
    ) -> None:
        """Show whether a credential is available and where it comes from."""
        auth_status = CredentialResolver(load_settings()).status()
        if json_output:
            console.print_json(data=auth_status.model_dump())
            return
        if auth_status.authenticated:
            console.print("Status: Authenticated")
            console.print(f"Source: {escape(auth_status.source)}")
        else:
            console.print("Status: Not authenticated")
            console.print(f"Details: {escape(auth_status.source)}")
            console.print("\nTo authenticate, run: linear auth login (or linear auth oauth)")
            console.print("Or set the LINEAR_API_KEY environment variable")

    @app.command()
    def whoami(
        json_output: bool = typer.Option(False, "--json", help="Print the user as JSON."),
    ) -> None:
        """Show the Linear user the active credential belongs to."""
        settings, api = env()
        user = call_api(settings, api.viewer, label="Fetching user failed")
        if json_output:
            console.print_json(data=user.model_dump(by_alias=True))
            return
        console.print(f"Name:  {escape(user.name)}")
        console.print(f"Email: {escape(user.email or '-')}")
        console.print(f"ID:    {user.id}")

    @app.command()
    def logout(
        oauth_only: bool = typer.Option(False, "--oauth", help="Only remove the OAuth session."),
        api_key_only: bool = typer.Option(
            False, "--api-key", help="Only remove the API key from the keyring."
        ),
    ) -> None:
        """Remove stored credentials (LINEAR_API_KEY is left untouched)."""
        settings = load_settings()
        strategy: Strategy | None = None
        if oauth_only and not api_key_only:
            strategy = "oauth"
        elif api_key_only and not oauth_only:
            strategy = "api_key"

        try:
            removed = CredentialResolver(settings).clear(strategy)
        except LinearError as exc:
            fail(exc, settings, label="Logout failed")
        if removed:
            console.print("[green]Stored credentials removed.[/green]")
        else:
            console.print("No stored credentials found.")
        if settings.api_key:
            console.print("[yellow]LINEAR_API_KEY is still set in the environment.[/yellow]")
