"""``roomscout settings`` -- print or check the resolved configuration."""

from __future__ import annotations

import tomllib

import typer
from pydantic import ValidationError
from rich.console import Console

settings_app = typer.Typer(help="Inspect and validate roomscout configuration.")
console = Console()


@settings_app.command("show")
def show_settings() -> None:
    """Print every setting, grouped by section, after all layers are applied."""
    from roomscout.settings import get_settings

    settings = get_settings()
    console.print(f"[bold]env[/bold] = {settings.env}  [dim]({settings.project_root / 'config'})[/dim]")
    for section, values in settings.model_dump(mode="json", exclude={"env", "project_root", "debug"}).items():
        console.print(f"\n[bold cyan]\\[{section}][/bold cyan]", highlight=False)
        for key, value in values.items():
            console.print(f"  {key} = {value!r}", markup=False, highlight=False, soft_wrap=True)


@settings_app.command("validate")
def validate_settings() -> None:
    """Load the settings and exit non-zero if any layer is invalid."""
    from roomscout.settings import get_settings

    try:
        settings = get_settings()
    except (ValidationError, tomllib.TOMLDecodeError) as exc:
        console.print(f"[red]✗[/red] Settings validation failed: {exc}")
        raise typer.Exit(code=1) from exc

    console.print(
        f"[green]✓[/green] Settings are valid ({settings.env}): "
        f"{settings.site.base_url}, headless={settings.browser.headless}"
    )
