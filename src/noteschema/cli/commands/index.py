"""Tag index commands for noteschema."""

import typer
from loguru import logger
from rich.table import Table

from noteschema.cli.app import app
from noteschema.cli.commands.command_utils import (
    build_engine,
    console,
    get_config,
    run_with_cleanup,
)
from noteschema.config import NoteSchemaConfig
from noteschema.errors import NoteSchemaError

index_app = typer.Typer(help="Tag index commands")
app.add_typer(index_app, name="index")


async def _run_rebuild(config: NoteSchemaConfig):
    engine = build_engine(config, use_cache=False)
    await engine.tag_index.rebuild()
    stats = engine.tag_index.stats()
    console.print(
        f"[green]Rebuilt tag index: {stats['tags']} tags across {stats['documents']} notes[/green]"
    )


async def _run_stats(config: NoteSchemaConfig, show_tags: bool = False):
    engine = build_engine(config, use_cache=False)
    try:
        await engine.tag_index.initialize()
    finally:
        await engine.shutdown()

    stats = engine.tag_index.stats()
    table = Table(title="Tag Index")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Tags", str(stats["tags"]))
    table.add_row("Tagged notes", str(stats["documents"]))
    table.add_row("Memberships", str(stats["memberships"]))
    console.print(table)

    if show_tags:
        tags = Table(title="Tags")
        tags.add_column("Tag", style="cyan")
        tags.add_column("Notes", justify="right")
        for tag, ids in engine.tag_index.as_dict().items():
            tags.add_row(f"#{tag}", str(len(ids)))
        console.print(tags)


def _handle(name: str, coro) -> None:
    try:
        run_with_cleanup(coro)
    except NoteSchemaError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        if not isinstance(e, typer.Exit):
            logger.error(f"Error during index {name}: {e}")
            typer.echo(f"Error during index {name}: {e}", err=True)
            raise typer.Exit(1)
        raise


@index_app.command()
def rebuild(ctx: typer.Context):
    """Rescan every note and rewrite the tag index."""
    _handle("rebuild", _run_rebuild(get_config(ctx)))


@index_app.command()
def stats(
    ctx: typer.Context,
    show_tags: bool = typer.Option(False, "--tags", help="List every tag with its note count"),
):
    """Show tag index statistics, building the index if needed."""
    _handle("stats", _run_stats(get_config(ctx), show_tags))
