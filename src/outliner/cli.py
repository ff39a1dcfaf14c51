"""CLI entrypoints for the outliner.

Every command loads the outline file, applies one action through an
:class:`~outliner.session.OutlineSession` and saves the result. Items can be referred to
by any unique prefix of their id.
"""

from __future__ import annotations

import json
from datetime import date
from enum import Enum
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from outliner.config import Settings, load_settings
from outliner.io.snapshot import export_items
from outliner.io.store import OutlineFile
from outliner.logging import configure_logging, get_logger
from outliner.models.item import Forest, Item
from outliner.recording.file_recorder import FileEventRecorder, replay
from outliner.recording.recents import RecentsIndex
from outliner.search import highlight_terms
from outliner.session import OutlineSession
from outliner.tree.store import iter_items
from outliner.tree.zoom import breadcrumbs, scope
from outliner.utils.tags import tokenize_inline

app = typer.Typer(add_completion=False, help="Outline editor engine CLI")
console = Console()
logger = get_logger(__name__)

_TOKEN_STYLES = {
    "tag": "cyan",
    "link": "bold magenta",
    "mdlink": "underline blue",
    "url": "underline blue",
    "email": "underline blue",
}


class MoveDirection(str, Enum):
    up = "up"
    down = "down"


FileOption = typer.Option(None, "--file", "-f", help="Outline JSON file (overrides OUTLINER_DATA_DIR)")


def _settings() -> Settings:
    settings = load_settings()
    configure_logging(settings.log_level)
    return settings


def _open(file: Path | None, settings: Settings | None = None) -> tuple[OutlineFile, OutlineSession]:
    settings = settings or _settings()
    store = OutlineFile(file or settings.outline_path, daily_log_root_text=settings.daily_log_root_text)
    subscribers = []
    if settings.record_events:
        subscribers.append(FileEventRecorder(store.path.with_name(settings.events_file)))
    session = OutlineSession(
        store.load(),
        subscribers=subscribers,
        suggestion_limit=settings.suggestion_limit,
        daily_log_root_text=settings.daily_log_root_text,
    )
    return store, session


def _resolve(tree: Forest, ref: str) -> str:
    """Expand an id prefix to the full id of exactly one item."""

    candidates = [n.id for n in iter_items(tree) if n.id.startswith(ref)]
    if ref in candidates:
        return ref
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        raise typer.BadParameter(f"No item with id starting with {ref!r}")
    raise typer.BadParameter(f"Id prefix {ref!r} is ambiguous ({len(candidates)} items)")


def _label(node: Item, *, show_ids: bool) -> Text:
    label = Text()
    if node.has_children:
        label.append("▸ " if node.is_collapsed else "▾ ", style="dim")
    else:
        label.append("• ", style="dim")
    for tok in tokenize_inline(node.text):
        label.append(tok.text, style=_TOKEN_STYLES.get(tok.kind, ""))
    if not node.text:
        label.append("…", style="dim")
    if node.is_read_only:
        label.append(" [ro]", style="dim red")
    if node.is_favorite:
        label.append(" ★", style="yellow")
    if node.is_collapsed and node.children:
        label.append(f" (+{len(node.children)})", style="dim")
    if show_ids:
        label.append(f"  {node.id[:8]}", style="dim")
    return label


def _add_branch(parent: Tree, nodes: Forest, *, expand_all: bool, show_ids: bool) -> None:
    for node in nodes:
        branch = parent.add(_label(node, show_ids=show_ids))
        if node.children and (expand_all or not node.is_collapsed):
            _add_branch(branch, node.children, expand_all=expand_all, show_ids=show_ids)


def _save(store: OutlineFile, session: OutlineSession, changed: bool, action: str) -> None:
    if not changed:
        console.print(f"[yellow]{action}: nothing to do[/yellow]")
        return
    store.save(session.tree)
    logger.info("%s saved to %s", action, store.path)


@app.command()
def show(
    zoom: str | None = typer.Option(None, "--zoom", "-z", help="Show only this item's subtree"),
    expand_all: bool = typer.Option(False, "--all", "-a", help="Ignore folding"),
    ids: bool = typer.Option(True, "--ids/--no-ids", help="Show short item ids"),
    file: Path | None = FileOption,
) -> None:
    """Print the outline as a tree."""

    _store, session = _open(file)
    zoomed = _resolve(session.tree, zoom) if zoom else None
    crumbs = breadcrumbs(session.tree, zoomed)
    title = " › ".join(["Home", *(c.text or "…" for c in crumbs)])
    root = Tree(Text(title, style="bold"))
    _add_branch(root, scope(session.tree, zoomed), expand_all=expand_all, show_ids=ids)
    console.print(root)


@app.command("search")
def search_cmd(
    query: str = typer.Argument(..., help="Terms; all must match. Separate alternatives with OR."),
    file: Path | None = FileOption,
) -> None:
    """Quick-find across the whole outline."""

    _store, session = _open(file)
    hits = session.search(query)
    terms = highlight_terms(query)
    table = Table(show_header=True, header_style="bold")
    table.add_column("id", style="dim", no_wrap=True)
    table.add_column("item")
    table.add_column("path", style="dim")
    for hit in hits:
        text = Text(hit.text)
        if terms:
            text.highlight_words(terms, style="black on yellow", case_sensitive=False)
        table.add_row(hit.id[:8], text, " › ".join(hit.path))
    console.print(table)
    console.print(f"{len(hits)} match(es)")


@app.command()
def add(
    text: str = typer.Argument("", help="Item text"),
    under: str | None = typer.Option(None, "--under", "-u", help="Append as last child of this item"),
    after: str | None = typer.Option(None, "--after", help="Insert right after this item"),
    file: Path | None = FileOption,
) -> None:
    """Add an item at the root, under an item, or after an item."""

    store, session = _open(file)
    if after:
        changed = session.add_sibling(_resolve(session.tree, after), text)
    else:
        changed = session.add_item(_resolve(session.tree, under) if under else None, text)
    _save(store, session, changed, "add")
    if changed and session.focused_id:
        typer.echo(session.focused_id)


@app.command()
def edit(
    item: str = typer.Argument(..., help="Item id (or prefix)"),
    text: str = typer.Argument(..., help="New text"),
    file: Path | None = FileOption,
) -> None:
    """Replace an item's text."""

    store, session = _open(file)
    _save(store, session, session.edit_text(_resolve(session.tree, item), text), "edit")


@app.command()
def indent(item: str, file: Path | None = FileOption) -> None:
    """Make an item the last child of its previous sibling."""

    store, session = _open(file)
    _save(store, session, session.indent(_resolve(session.tree, item)), "indent")


@app.command()
def outdent(item: str, file: Path | None = FileOption) -> None:
    """Move an item after its parent; later siblings become its children."""

    store, session = _open(file)
    _save(store, session, session.outdent(_resolve(session.tree, item)), "outdent")


@app.command()
def move(item: str, direction: MoveDirection, file: Path | None = FileOption) -> None:
    """Swap an item with its previous or next sibling."""

    store, session = _open(file)
    _save(store, session, session.move(_resolve(session.tree, item), direction.value), "move")


@app.command()
def merge(item: str, file: Path | None = FileOption) -> None:
    """Merge an item into its previous sibling."""

    store, session = _open(file)
    _save(store, session, session.merge(_resolve(session.tree, item)), "merge")


@app.command()
def delete(item: str, file: Path | None = FileOption) -> None:
    """Delete an item and its subtree."""

    store, session = _open(file)
    _save(store, session, session.delete(_resolve(session.tree, item)), "delete")


@app.command()
def fold(
    item: str,
    expand: bool = typer.Option(False, "--expand", "-e", help="Expand instead of collapse"),
    file: Path | None = FileOption,
) -> None:
    """Collapse (or expand) an item and all of its descendants."""

    store, session = _open(file)
    _save(store, session, session.fold_all(_resolve(session.tree, item), not expand), "fold")


@app.command()
def favorite(item: str, file: Path | None = FileOption) -> None:
    """Toggle the favorite flag of an item."""

    store, session = _open(file)
    _save(store, session, session.toggle_favorite(_resolve(session.tree, item)), "favorite")


@app.command()
def links(
    query: str = typer.Argument("", help="Text typed after [["),
    exclude: str | None = typer.Option(None, "--exclude", help="Item being edited"),
    file: Path | None = FileOption,
) -> None:
    """List [[link]] completions for a query."""

    _store, session = _open(file)
    if exclude:
        session.set_focus(_resolve(session.tree, exclude))
    for s in session.suggest_links(query):
        marker = "^" if s.exact_prefix else "~"
        path = " › ".join(s.path)
        typer.echo(f"{marker} {s.id[:8]}  {s.text}" + (f"  ({path})" if path else ""))


@app.command()
def tags(
    query: str = typer.Argument("", help="Text typed after #"),
    file: Path | None = FileOption,
) -> None:
    """List #tag completions for a query."""

    _store, session = _open(file)
    for tag in session.suggest_tags(query):
        typer.echo(tag)


@app.command("import")
def import_cmd(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON export to import"),
    under: str | None = typer.Option(None, "--under", "-u", help="Nest the import under this item"),
    file: Path | None = FileOption,
) -> None:
    """Import an exported outline with fresh ids."""

    store, session = _open(file)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"{source} is not valid JSON: {e}") from e
    target = _resolve(session.tree, under) if under else None
    try:
        changed = session.import_items(payload, target)
    except ValidationError as e:
        raise typer.BadParameter(f"{source} is not an outline export: {e.error_count()} error(s)") from e
    _save(store, session, changed, "import")


@app.command("export")
def export_cmd(
    output: Path = typer.Argument(..., help="Destination JSON file"),
    file: Path | None = FileOption,
) -> None:
    """Write the whole outline, view state included, as a JSON backup."""

    _store, session = _open(file)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(export_items(session.tree), ensure_ascii=False, indent=2), encoding="utf-8")
    typer.echo(str(output))


@app.command()
def today(
    day: str | None = typer.Option(None, "--date", help="ISO date (defaults to today)"),
    file: Path | None = FileOption,
) -> None:
    """Find or create the daily-log item for a day."""

    store, session = _open(file)
    when = date.fromisoformat(day) if day else date.today()
    before = session.tree
    day_id = session.go_to_today(when)
    _save(store, session, session.tree is not before, "today")
    if day_id:
        typer.echo(day_id)


@app.command()
def recents(file: Path | None = FileOption) -> None:
    """Replay the event log into the recents and favorites lists."""

    settings = _settings()
    store, _session = _open(file, settings)
    index = RecentsIndex(limit=settings.recent_limit)
    replay(store.path.with_name(settings.events_file), index)
    console.print("[bold]Recent[/bold]")
    for r in index.recents:
        console.print(f"  {r.id[:8]}  {r.text or '…'}")
    console.print("[bold]Favorites[/bold]")
    for f in index.favorites:
        console.print(f"  {f.id[:8]}  {f.text or '…'}")


if __name__ == "__main__":
    app()
