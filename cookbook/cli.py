"""Typer CLI for the cookbook (init-db, serve, list, show, create, digest, steal)."""

from __future__ import annotations

import json
import sys

import typer
from rich.console import Console
from rich.table import Table

from dotenv import load_dotenv
# load .env immediately so subsequent imports (which read settings at import time)
# pick up values from the .env file
load_dotenv()

# Configure top-level logging early so other modules pick it up.
import logging
from cookbook.settings import settings

log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))
logging.basicConfig(
    level=log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    handlers=handlers,
)

# Quiet noisy third-party loggers while keeping our app logs
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("google_genai").setLevel(logging.WARNING)
logging.getLogger("trafilatura").setLevel(logging.WARNING)

from cookbook.models.result import Failure, Result
from cookbook.orchestrate.run import steal as steal_recipe, steal_and_digest
from cookbook.services import recipes
from cookbook.services.digest import digest_recipe
from cookbook.settings import validate_required
from cookbook.store.db import connect, ensure_db

app = typer.Typer()
console = Console()


def _unwrap(result: Result):
    if isinstance(result, Failure):
        console.print(f"[red]Error:[/red] {result.message}")
        raise typer.Exit(code=1)
    return result.data


def _open():
    ensure_db()
    return connect()


@app.command("init-db")
def init_db():
    """Create the SQLite database and tables."""
    ensure_db()
    console.print(f"Database ready at {settings.DB_PATH}")


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8000, reload: bool = False):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("cookbook.main:app", host=host, port=port, reload=reload)


@app.command("list")
def list_recipes(page: int = 1):
    """List recipes, newest first."""
    conn = _open()
    try:
        data = _unwrap(recipes.list_recipes(conn, page))
    finally:
        conn.close()
    table = Table(title=f"Recipes (page {data.page}/{max(data.total_pages, 1)}, {data.total} total)")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Serves", justify="right")
    table.add_column("Prep", justify="right")
    table.add_column("Cook", justify="right")
    for r in data.items:
        table.add_row(str(r.id), r.title, str(r.servings), f"{r.preptime}m", f"{r.cooktime}m")
    console.print(table)


@app.command()
def show(recipe_id: int):
    """Show one recipe with its ingredients and steps."""
    conn = _open()
    try:
        data = _unwrap(recipes.get_recipe(conn, recipe_id))
    finally:
        conn.close()
    r = data.recipe
    console.print(f"[bold]{r.title}[/bold]  serves {r.servings} | prep {r.preptime}m | cook {r.cooktime}m")
    if r.description:
        console.print(r.description)
    console.print("\n[bold]Ingredients[/bold]")
    for g in data.ingredients:
        console.print(f"  - {g.amount:g} {g.unit} {g.name}")
    console.print("\n[bold]Instructions[/bold]")
    for step in data.instructions:
        console.print(f"  {step.order}. {step.content}")
    if r.notes:
        console.print(f"\n[bold]Notes[/bold]\n{r.notes}")


@app.command()
def create(
    title: str,
    preptime: int = typer.Option(..., help="Prep time in minutes"),
    cooktime: int = typer.Option(..., help="Cook time in minutes"),
    servings: int = 1,
    description: str = typer.Option(None),
):
    """Create a recipe without ingredients or steps."""
    conn = _open()
    try:
        recipe = _unwrap(
            recipes.create_recipe(
                conn,
                {
                    "title": title,
                    "description": description,
                    "servings": servings,
                    "preptime": preptime,
                    "cooktime": cooktime,
                },
            )
        )
    finally:
        conn.close()
    console.print(f"Created recipe {recipe.id}: {recipe.title}")


@app.command()
def digest(path: str = typer.Argument(..., help="JSON file with the recipe, or - for stdin")):
    """Store a pasted recipe JSON (recipe + ingredients + instructions) in one go."""
    try:
        if path == "-":
            payload = json.load(sys.stdin)
        else:
            with open(path, "r", encoding="utf8") as fh:
                payload = json.load(fh)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error:[/red] could not read recipe JSON: {e}")
        raise typer.Exit(code=1)
    if not isinstance(payload, dict):
        console.print("[red]Error:[/red] recipe JSON must be an object")
        raise typer.Exit(code=1)
    conn = _open()
    try:
        recipe = _unwrap(digest_recipe(conn, payload))
    finally:
        conn.close()
    console.print(f"Digested recipe {recipe.id}: {recipe.title}")


@app.command()
def steal(url: str, save: bool = typer.Option(False, "--save", help="Digest the extracted recipe")):
    """Extract a recipe from a URL with Gemini; print it or save it."""
    try:
        validate_required()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    if not save:
        payload = _unwrap(steal_recipe(url))
        console.print_json(payload.model_dump_json())
        return
    conn = _open()
    try:
        recipe = _unwrap(steal_and_digest(conn, url))
    finally:
        conn.close()
    console.print(f"Stole recipe {recipe.id}: {recipe.title}")


if __name__ == "__main__":
    app()
