"""nefos CLI - Main commands."""
import asyncio
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from nefos.core.api.config import default_config_dir

app = typer.Typer(
    name="nefos",
    help="iCloud web session CLI",
    add_completion=False
)
console = Console()

ConfigDirOption = typer.Option(
    None, "--config-dir", "-c",
    help="Directory holding session.json and cookies.json (default: ~/.config/nefos)"
)


def get_config(config_dir: Optional[Path]):
    from nefos import APIConfig
    return APIConfig.in_directory(config_dir or default_config_dir())


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


async def _resume_or_exit(config):
    """Resume the saved session or exit with a hint."""
    from nefos import resume_from_file, NefosException, SessionExpiredError

    if not config.session_file.exists():
        console.print("[red]Not logged in. Run 'nefos login' first.[/red]")
        raise typer.Exit(1)

    try:
        return await resume_from_file(config.session_file, config)
    except SessionExpiredError:
        console.print("[red]Saved session expired. Run 'nefos login' again.[/red]")
        raise typer.Exit(1)
    except NefosException as e:
        console.print(f"[red]Could not resume session: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def login(
    apple_id: str = typer.Option(None, "--apple-id", "-u", help="Apple ID (or $APPLE_ID)"),
    password: str = typer.Option(None, "--password", "-p", help="Password (or $APPLE_PASSWORD)"),
    config_dir: Optional[Path] = ConfigDirOption,
):
    """Sign in to iCloud and save the session and cookies."""
    from nefos import ICloudClient, NefosException

    apple_id = apple_id or os.environ.get("APPLE_ID")
    password = password or os.environ.get("APPLE_PASSWORD") or os.environ.get("PASSWORD")

    if not apple_id:
        apple_id = typer.prompt("Apple ID")
    if not password:
        password = typer.prompt("Password", hide_input=True)

    def prompt_code() -> str:
        console.print("[cyan]Two-factor authentication required.[/cyan]")
        return typer.prompt("Code from your trusted device")

    async def do_login():
        config = get_config(config_dir)
        client = ICloudClient(
            config,
            apple_id=apple_id,
            password=password,
            code_callback=prompt_code
        )

        try:
            service = await client.start()
            console.print(f"[green]Logged in as {service.name}[/green]")
            console.print(f"Session saved to: {config.session_file}")
        except NefosException as e:
            console.print(f"[red]Login failed: {e}[/red]")
            raise typer.Exit(1)
        finally:
            await client.close()

    run_async(do_login())


@app.command()
def logout(config_dir: Optional[Path] = ConfigDirOption):
    """Delete the saved session and cookies."""
    config = get_config(config_dir)
    removed = False
    for path in (config.session_file, config.cookie_file):
        if path.exists():
            path.unlink()
            removed = True

    if removed:
        console.print("[green]Logged out successfully[/green]")
    else:
        console.print("[yellow]No active session[/yellow]")


@app.command()
def whoami(config_dir: Optional[Path] = ConfigDirOption):
    """Show the account of the saved session."""

    async def show():
        config = get_config(config_dir)
        async with await _resume_or_exit(config) as icloud:
            info = icloud.profile.info
            console.print(f"Name: {info.full_name}")
            console.print(f"Email: {info.email}")
            console.print(f"Locale: {info.locale} ({info.language_code}, {info.country_code})")
            if info.aliases:
                console.print(f"Aliases: {', '.join(info.aliases)}")
            await icloud.save_cookies()

    run_async(show())


@app.command()
def services(config_dir: Optional[Path] = ConfigDirOption):
    """List the web services discovered for the account."""

    async def show():
        config = get_config(config_dir)
        async with await _resume_or_exit(config) as icloud:
            table = Table()
            table.add_column("Service", style="cyan")
            table.add_column("Status")
            table.add_column("URL", style="dim")

            for name, service in sorted(icloud.profile.webservices.items()):
                status = service.status if service.is_active else f"[yellow]{service.status}[/yellow]"
                table.add_row(name, status, service.url)

            console.print(table)
            await icloud.save_cookies()

    run_async(show())


@app.command()
def calendar(
    timezone: str = typer.Option("UTC", "--tz", help="IANA timezone, e.g. America/Chicago"),
    start: str = typer.Option(..., "--from", help="Start date, e.g. 2023-11-01"),
    end: str = typer.Option(..., "--to", help="End date, e.g. 2023-11-30"),
    config_dir: Optional[Path] = ConfigDirOption,
):
    """Print calendar events between two dates (raw JSON)."""
    from nefos import NefosException

    async def show():
        config = get_config(config_dir)
        async with await _resume_or_exit(config) as icloud:
            try:
                events = await icloud.fetch_calendars(timezone, start, end)
            except NefosException as e:
                console.print(f"[red]Calendar request failed: {e}[/red]")
                raise typer.Exit(1)
            console.print(events, markup=False, highlight=False)
            await icloud.save_cookies()

    run_async(show())


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
