"""Query command for noteschema.

`noteschema query "#book and Library/* not #draft"` lists the notes a schema
query would select, which makes it easy to check a query before using it.
"""

import json
from typing import Annotated

import typer
from loguru import logger

from noteschema.cli.app import app
from noteschema.cli.commands.command_utils import (
    build_engine,
    console,
    get_config,
    run_with_cleanup,
)
from noteschema.config import NoteSchemaConfig
from noteschema.errors import NoteSchemaError
from noteschema.query.matcher import describe_query
from noteschema.query.parser import parse_query


async def _run_query(config: NoteSchemaConfig, query_text: str, as_json: bool = False):
    # Parse first so syntax errors surface before any scanning
    parsed = parse_query(query_text)

    engine = build_engine(config, use_cache=False)
    try:
        await engine.tag_index.initialize()
        files = engine.query_files(parsed.source)
    finally:
        await engine.shutdown()

    if as_json:
        typer.echo(json.dumps({"query": query_text, "files": files}, indent=2))
        return

    console.print(f"[bold]Query:[/bold] {describe_query(parsed)}")
    if not files:
        console.print("[yellow]No notes matched.[/yellow]")
        return

    for document_id in files:
        console.print(f"  {document_id}", highlight=False)
    console.print(f"\n{len(files)} notes matched")


@app.command()
def query(
    ctx: typer.Context,
    query_text: Annotated[str, typer.Argument(help="Query, e.g. '#book and Library/*'")],
    as_json: bool = typer.Option(False, "--json", help="Print matches as JSON"),
):
    """List the notes matching a folder/tag query."""
    try:
        run_with_cleanup(_run_query(get_config(ctx), query_text, as_json))
    except NoteSchemaError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        if not isinstance(e, typer.Exit):
            logger.error(f"Error during query: {e}")
            typer.echo(f"Error during query: {e}", err=True)
            raise typer.Exit(1)
        raise
