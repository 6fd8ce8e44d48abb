"""Command-line interface for Campus Autofill."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from campus_autofill.config import settings
from campus_autofill.core.errors import AutofillError
from campus_autofill.core.models import Diagnostics, StartResult
from campus_autofill.core.profiles import JsonProfileStore
from campus_autofill.core.session import SessionManager
from campus_autofill.utils.logging import configure_logging

app = typer.Typer(
    name="campus-autofill",
    help="Campus Autofill - fill placement forms from a stored student profile",
    add_completion=False,
)
console = Console()


@app.command()
def serve(
    host: str = typer.Option(settings.host, help="Host to bind to"),
    port: int = typer.Option(settings.port, help="Port to bind to"),
    reload: bool = typer.Option(settings.reload, help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    console.print(f"Starting Campus Autofill on {host}:{port}")
    uvicorn.run(
        "campus_autofill.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=None,
    )


@app.command()
def config() -> None:
    """Show current configuration."""
    table = Table(title="Campus Autofill Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Log Level", settings.log_level)
    table.add_row("Browser Headless", str(settings.browser_headless))
    table.add_row("Browser Profiles", settings.browser_profiles_dir)
    table.add_row("Profiles Directory", settings.profiles_dir)
    table.add_row("Max Pages", str(settings.max_pages))
    table.add_row("Navigation Retries", str(settings.navigation_retries))
    table.add_row("Fuzzy Threshold", str(settings.fuzzy_threshold))

    console.print(table)


def render_diagnostics(diagnostics: Diagnostics) -> None:
    """Print fill results as a table."""
    table = Table(title=f"Fill results ({diagnostics.pages_visited} pages, stop: {diagnostics.stop_reason})")
    table.add_column("Question", style="cyan")
    table.add_column("Key")
    table.add_column("Result")
    table.add_column("Value / Reason", style="green")

    for outcome in diagnostics.fields_filled:
        table.add_row(outcome.label, outcome.key or "", outcome.method or "filled", str(outcome.value))
    for outcome in diagnostics.unmatched_mandatory:
        table.add_row(outcome.label, outcome.key or "", "[red]missing (required)[/red]", outcome.reason.value)
    for outcome in diagnostics.unmatched_optional:
        table.add_row(outcome.label, outcome.key or "", "[yellow]skipped[/yellow]", outcome.reason.value)

    console.print(table)
    for warning in diagnostics.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")


async def _run_fill(user_key: str, form_url: str, profiles_dir: Optional[str], headless: Optional[bool]) -> None:
    profile = await JsonProfileStore(profiles_dir).get_profile(user_key)
    manager = SessionManager()

    try:
        result: StartResult = await manager.start(user_key, form_url, profile, headless=headless)
        while result.needs_login:
            console.print("Sign-in required. Finish signing in inside the browser window.")
            if not typer.confirm("Signed in?", default=True):
                await manager.cancel(result.session_id)
                console.print("Cancelled.")
                return
            result = await manager.continue_session(result.session_id, profile)

        if result.diagnostics:
            render_diagnostics(result.diagnostics)

        if typer.confirm("Review the browser window. Submit the form?", default=False):
            submitted = await manager.submit(result.session_id)
            if submitted.success:
                status = "confirmed" if submitted.confirmed else "not confirmed"
                console.print(f"Submitted ({status}).")
            else:
                console.print(f"[red]Not submitted:[/red] {submitted.reason}")
        else:
            await manager.cancel(result.session_id)
            console.print("Cancelled without submitting.")
    finally:
        await manager.shutdown()


@app.command()
def fill(
    user_key: str = typer.Argument(..., help="User whose stored profile to use"),
    form_url: str = typer.Argument(..., help="Form URL"),
    profiles_dir: Optional[str] = typer.Option(None, help="Directory of <user_key>.json profiles"),
    headless: Optional[bool] = typer.Option(None, "--headless/--headed", help="Browser window mode"),
) -> None:
    """Fill a form interactively and submit after confirmation."""
    configure_logging()
    try:
        asyncio.run(_run_fill(user_key, form_url, profiles_dir, headless))
    except AutofillError as e:
        console.print(f"[red]{type(e).__name__}:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version information."""
    from campus_autofill import __version__
    console.print(f"Campus Autofill v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
