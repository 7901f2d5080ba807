"""StockPlan CLI application using Typer.

Command-line utilities for deployment and operations: secret generation,
schema creation, a one-off token cleanup and the API server.
"""

import asyncio
import secrets

import typer
import uvicorn
from rich.console import Console

from stockplan.application.services import CleanupResult, TokenCleanupService
from stockplan.presentation.api.dependencies import (
    create_engine,
    create_session_maker,
    create_tables,
)
from stockplan_auth.persistence.sqlalchemy import auth_repository_scope
from stockplan_config.settings import Settings, get_settings

app = typer.Typer(
    name="stockplan",
    help="StockPlan auth service CLI",
    no_args_is_help=True,
)
console = Console()


secrets_app = typer.Typer(
    name="secrets",
    help="Secret generation utilities",
    no_args_is_help=True,
)
app.add_typer(secrets_app)

tokens_app = typer.Typer(
    name="tokens",
    help="Refresh and reset token maintenance",
    no_args_is_help=True,
)
app.add_typer(tokens_app)

db_app = typer.Typer(
    name="db",
    help="Database schema utilities",
    no_args_is_help=True,
)
app.add_typer(db_app)


@secrets_app.command("generate")
def generate_secrets() -> None:
    """Generate secure secrets for StockPlan configuration.

    Generates the required secrets:
    - JWT_SECRET_KEY: Secret for signing access tokens
    - POSTGRES_PASSWORD: Database password

    Copy the output to your .env file.
    """
    console.print("\n[bold green]StockPlan Secret Generation[/bold green]")
    console.print("=" * 60)
    console.print(
        "\nGenerated secrets for your [bold].env[/bold] configuration file:\n"
    )

    jwt_secret = secrets.token_urlsafe(64)
    console.print(f"[cyan]JWT_SECRET_KEY[/cyan]={jwt_secret}", soft_wrap=True)

    db_password = secrets.token_urlsafe(32)
    console.print(f"[cyan]POSTGRES_PASSWORD[/cyan]={db_password}", soft_wrap=True)

    console.print("\n" + "=" * 60)
    console.print(
        "[yellow]Keep these secrets secure and never commit them "
        "to version control![/yellow]"
    )
    console.print(
        "[dim]Copy the above values to your config/.env (Docker) or "
        "config/.env.dev (local) file.[/dim]\n"
    )


async def _run_cleanup(settings: Settings) -> CleanupResult:
    engine = create_engine(settings)
    try:
        cleanup = TokenCleanupService(
            repository_factory=auth_repository_scope(create_session_maker(engine)),
            interval_seconds=settings.auth_token_cleanup_interval_seconds,
        )
        return await cleanup.sweep()
    finally:
        await engine.dispose()


@tokens_app.command("cleanup")
def cleanup_tokens() -> None:
    """Delete expired reset codes and expired or revoked refresh tokens once."""
    result = asyncio.run(_run_cleanup(get_settings()))
    console.print(
        f"[green]Removed[/green] {result.password_reset_tokens_deleted} reset "
        f"token(s) and {result.refresh_tokens_deleted} refresh token(s)"
    )


async def _init_schema(settings: Settings) -> None:
    engine = create_engine(settings)
    try:
        await create_tables(engine)
    finally:
        await engine.dispose()


@db_app.command("init")
def init_db() -> None:
    """Create the auth tables if they do not exist."""
    asyncio.run(_init_schema(get_settings()))
    console.print("[green]Database schema is up to date[/green]")


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, help="Bind address (default: API_HOST)"),
    port: int | None = typer.Option(None, help="Bind port (default: API_PORT)"),
) -> None:
    """Run the HTTP API with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "stockplan.presentation.api.app:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
    )


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()
