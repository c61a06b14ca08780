from pathlib import Path
from typing import Optional

import typer

from noteschema.config import NoteSchemaConfig
from noteschema.logging import setup_logging


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        import noteschema

        typer.echo(f"noteschema version: {noteschema.__version__}")
        raise typer.Exit()


app = typer.Typer(name="noteschema", help="Validate note frontmatter against schemas.")


@app.callback()
def app_callback(
    ctx: typer.Context,
    vault: Optional[Path] = typer.Option(
        None,
        "--vault",
        help="Root folder of the notes (default: current directory)",
        envvar="NOTESCHEMA_VAULT_PATH",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Schema definitions file (YAML or JSON)",
        envvar="NOTESCHEMA_CONFIG_FILE",
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level for stderr output (default: INFO)"
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """noteschema - schema validation for markdown note frontmatter."""
    overrides = {}
    if vault is not None:
        overrides["vault_path"] = vault
    if config_file is not None:
        overrides["config_file"] = config_file
    if log_level is not None:
        overrides["log_level"] = log_level

    config = NoteSchemaConfig(**overrides)
    setup_logging(config.log_level)
    ctx.obj = config
