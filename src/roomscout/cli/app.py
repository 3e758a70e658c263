"""``roomscout`` command-line entry point (``search`` and ``settings``).

Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml -> env vars (ROOMSCOUT_* with double underscores) -> CLI flags.
"""

from __future__ import annotations

from typing import Optional

import typer

from roomscout.cli.search_cmd import search
from roomscout.cli.settings_cmd import settings_app

try:
    from importlib.metadata import version

    VERSION = version("roomscout")
except Exception:
    VERSION = "unknown"

APP_HELP = (
    "roomscout: scripted Airbnb searches that survive markup changes and popups. "
    "Config precedence: settings.default.toml -> settings.<env>.toml -> settings.local.toml -> env vars (ROOMSCOUT_* with __) -> CLI flags."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.command("search")(search)
app.add_typer(settings_app, name="settings")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level."),
) -> None:
    """Configure logging for the subcommand, or print help when there is none."""
    if version:
        typer.echo(f"roomscout {VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    from pydantic import ValidationError

    from roomscout.log_config import configure_logging
    from roomscout.settings import get_settings

    try:
        logging_settings = get_settings().logging
    except ValidationError:
        # Leave the error to the subcommand (``settings validate`` reports it)
        configure_logging(log_level or "INFO")
        return
    configure_logging(log_level or logging_settings.level, json_logs=logging_settings.json_logs)


if __name__ == "__main__":
    app()
