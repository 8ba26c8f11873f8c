"""Typer-based command line browser over a JSON node tree."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .appctx import AppContext
from .application.dtos import CollectionView
from .config import LOCAL_ROOT_ID
from .domain.models.collection import FolderChildren, SearchFilter
from .domain.models.sort import SortSpec, sort_tokens
from .errors import IFilesError, InvalidCursorError, NodeNotFoundError, SettingsError
from .gui.utils.console_logger import ensure_console_logger
from .infrastructure.repositories.in_memory_node_repository import InMemoryNodeRepository

app = typer.Typer(help="Browse sorted, paginated folder listings from a JSON node tree")
console = Console()


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (NodeNotFoundError, InvalidCursorError, SettingsError) as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except IFilesError as exc:
            typer.echo(f"Unexpected error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _parse_sort(value: Optional[str]) -> Optional[SortSpec]:
    if value is None:
        return None
    try:
        return SortSpec.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(f"expected one of {', '.join(sort_tokens())}") from exc


def _build_context(tree: Path, settings_path: Optional[Path], page_size: Optional[int], verbose: bool) -> AppContext:
    if verbose:
        ensure_console_logger(logging.getLogger("iFiles"), "ifiles-cli", level=logging.DEBUG)
    settings = None
    if settings_path is not None:
        from .settings.manager import SettingsManager

        settings = SettingsManager(settings_path)
        settings.load()
    repository = InMemoryNodeRepository.load_tree(tree)
    return AppContext(source=repository, settings=settings, page_size=page_size)


def _load_pages(ctx: AppContext, collection_key, sort: SortSpec, pages: int) -> CollectionView:
    view = ctx.loader.load_first_page(collection_key, sort)
    for _ in range(pages - 1):
        if not view.has_more:
            break
        view = ctx.loader.load_next_page()
    return view


def _render(title: str, view: CollectionView) -> None:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Updated")
    for row, node in enumerate(view.items, start=1):
        table.add_row(
            str(row),
            node.name,
            node.type.value,
            "" if node.size is None else str(node.size),
            node.updated_at.isoformat(sep=" ", timespec="seconds") if node.updated_at else "",
        )
    console.print(table)
    if view.has_more:
        console.print("[yellow]More items available; raise --pages to load them")
    else:
        console.print(f"[green]{len(view)} item(s), fully loaded")


@app.command()
@_handle_errors
def browse(
    tree: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with node records"),
    folder: str = typer.Argument(LOCAL_ROOT_ID, help="Folder whose children are listed"),
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help="Sort token such as NAME_ASC"),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1),
    pages: int = typer.Option(1, "--pages", min=1, help="Number of pages to fetch"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Settings file to read defaults from"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List the children of FOLDER page by page."""

    ctx = _build_context(tree, settings_path, page_size, verbose)
    spec = _parse_sort(sort) or ctx.default_sort
    view = _load_pages(ctx, FolderChildren(folder), spec, pages)
    _render(f"{folder} ({spec.token})", view)


@app.command()
@_handle_errors
def search(
    tree: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with node records"),
    keywords: List[str] = typer.Argument(None, help="Words the name must contain"),
    folder: Optional[str] = typer.Option(None, "--folder", help="Limit results to this folder"),
    cascade: bool = typer.Option(True, "--cascade/--direct", help="Include nested folders"),
    flagged: Optional[bool] = typer.Option(None, "--flagged/--not-flagged"),
    trashed: Optional[bool] = typer.Option(None, "--trashed/--not-trashed"),
    sort: Optional[str] = typer.Option(None, "--sort", "-s", help="Sort token such as NAME_ASC"),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1),
    pages: int = typer.Option(1, "--pages", min=1, help="Number of pages to fetch"),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="Settings file to read defaults from"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Search node names for KEYWORDS."""

    ctx = _build_context(tree, settings_path, page_size, verbose)
    spec = _parse_sort(sort) or ctx.default_sort
    key = SearchFilter(folder_id=folder, cascade=cascade, flagged=flagged, trashed=trashed)
    key = key.with_keywords(*(keywords or ()))
    view = _load_pages(ctx, key, spec, pages)
    _render(f"Search {' '.join(key.keywords) or '*'} ({spec.token})", view)


@app.command()
def sorts() -> None:
    """Print every accepted sort token."""

    for token in sort_tokens():
        console.print(token)


def main() -> None:  # pragma: no cover - console script entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
