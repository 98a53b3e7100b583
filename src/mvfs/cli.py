"""mvfs CLI: namespace-isolated virtual filesystem backed by SQLite.

Commands:
    mvfs init                  create vfs.toml
    mvfs init-db               create tables (and the isolation policy)
    mvfs serve                 start stdio MCP server
    mvfs ls|cat|stat PATH      inspect a namespace
    mvfs write|append PATH [CONTENT]   (content from stdin when omitted)
    mvfs mkdir|rm PATH
    mvfs mv SRC DEST
    mvfs glob PATTERN
    mvfs grep PATTERN [--filter GLOB]
    mvfs stores                list persistent stores

Every filesystem command takes --session/-s (default: config session id or
"cli") and --store to target a persistent named store.
"""

from __future__ import annotations

import functools
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.markup import escape as _markup_escape
from rich.table import Table

from mvfs.config import VfsConfig, init_config, load_config
from mvfs.errors import VfsError
from mvfs.storage import create_backend
from mvfs.vfs import VirtualFS

if TYPE_CHECKING:
    from collections.abc import Callable

_DEFAULT_CLI_SESSION = "cli"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg() -> VfsConfig:
    try:
        cfg = load_config()
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    return cfg


def _fs_command(fn: Callable[..., None]) -> Callable[..., None]:
    """Add --session/--store and turn VfsError into a click error."""

    @click.option("--session", "-s", "session", default=None, help="Session namespace id")
    @click.option("--store", default=None, help="Persistent named store")
    @functools.wraps(fn)
    def wrapper(session: str | None, store: str | None, **kwargs: Any) -> None:
        cfg = _load_cfg()
        backend = create_backend(cfg.database)
        vfs = VirtualFS(backend)
        sid = session or cfg.session.id or _DEFAULT_CLI_SESSION
        try:
            fn(vfs, sid, store, **kwargs)
        except VfsError as exc:
            raise click.ClickException(f"{exc.code}: {exc}") from exc
        finally:
            backend.close()

    return wrapper


def _read_content(content: str | None) -> str:
    if content is not None:
        return content
    return click.get_text_stream("stdin").read()


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="mvfs")
def cli() -> None:
    """mvfs: durable, namespace-isolated virtual filesystem."""


@cli.command()
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
@click.option("--isolation", is_flag=True, help="Enable namespace isolation in the database")
def init(root: str, isolation: bool) -> None:
    """Create vfs.toml in the current directory."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path, isolation=isolation)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("vfs.toml already exists, skipping init")


@cli.command("init-db")
@click.option("--isolation/--no-isolation", default=None, help="Install the isolation policy (default: from config)")
def init_db(isolation: bool | None) -> None:
    """Create tables and indexes (idempotent)."""
    cfg = _load_cfg()
    backend = create_backend(cfg.database)
    try:
        backend.init_schema(with_isolation=isolation)
    finally:
        backend.close()
    click.echo(f"Schema ready: {cfg.database.path}")


@cli.command()
def serve() -> None:
    """Start the stdio MCP server."""
    from mvfs.mcp import run_server

    run_server()


# ---------------------------------------------------------------------------
# Filesystem commands
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("path", default="/")
@_fs_command
def ls(vfs: VirtualFS, sid: str, store: str | None, path: str) -> None:
    """List a directory."""
    entries = vfs.ls(sid, path, store)
    if not entries:
        click.echo("(empty)")
        return
    console = Console()
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Type")
    for e in entries:
        name = f"[bold blue]{_markup_escape(e.name)}/[/]" if e.type == "directory" else _markup_escape(e.name)
        table.add_row(name, e.type)
    console.print(table)


@cli.command()
@click.argument("path")
@_fs_command
def cat(vfs: VirtualFS, sid: str, store: str | None, path: str) -> None:
    """Print a file."""
    click.echo(vfs.read(sid, path, store), nl=False)


@cli.command()
@click.argument("path")
@_fs_command
def stat(vfs: VirtualFS, sid: str, store: str | None, path: str) -> None:
    """Show whether a path exists, its type and size or child count."""
    result = vfs.stat(sid, path, store)
    if not result.exists:
        click.echo(f"{path}: does not exist")
    elif result.type == "file":
        click.echo(f"{path}: file, {result.size} chars")
    else:
        click.echo(f"{path}: directory, {result.children} children")


@cli.command()
@click.argument("path")
@click.argument("content", required=False)
@_fs_command
def write(vfs: VirtualFS, sid: str, store: str | None, path: str, content: str | None) -> None:
    """Write CONTENT (or stdin) to a file, replacing it."""
    created = vfs.write(sid, path, _read_content(content), store)
    click.echo(f"Wrote {path}" + (" (created parents)" if created else ""))


@cli.command()
@click.argument("path")
@click.argument("content", required=False)
@_fs_command
def append(vfs: VirtualFS, sid: str, store: str | None, path: str, content: str | None) -> None:
    """Append CONTENT (or stdin) to a file."""
    data = _read_content(content)
    vfs.append(sid, path, data, store)
    click.echo(f"Appended {len(data)} chars to {path}")


@cli.command()
@click.argument("path")
@_fs_command
def mkdir(vfs: VirtualFS, sid: str, store: str | None, path: str) -> None:
    """Create a directory and missing parents."""
    existed = vfs.mkdir(sid, path, store)
    click.echo(f"{path} already exists" if existed else f"Created {path}")


@cli.command()
@click.argument("path")
@_fs_command
def rm(vfs: VirtualFS, sid: str, store: str | None, path: str) -> None:
    """Remove a file or directory recursively."""
    deleted = vfs.rm(sid, path, store)
    click.echo(f"Removed {path} ({deleted} node{'s' if deleted != 1 else ''})")


@cli.command()
@click.argument("source")
@click.argument("destination")
@_fs_command
def mv(vfs: VirtualFS, sid: str, store: str | None, source: str, destination: str) -> None:
    """Move or rename a file or directory."""
    vfs.move(sid, source, destination, store)
    click.echo(f"Moved {source} -> {destination}")


@cli.command()
@click.argument("pattern")
@_fs_command
def glob(vfs: VirtualFS, sid: str, store: str | None, pattern: str) -> None:
    """List files matching a glob pattern."""
    files = vfs.glob(sid, pattern, store)
    if not files:
        click.echo("(no matches)")
        return
    for f in files:
        click.echo(f)


@cli.command()
@click.argument("pattern")
@click.option("--filter", "path_filter", default=None, help="Glob limiting which files are searched")
@_fs_command
def grep(vfs: VirtualFS, sid: str, store: str | None, pattern: str, path_filter: str | None) -> None:
    """Search file contents with a regular expression."""
    matches = vfs.grep(sid, pattern, path_filter, store)
    if not matches:
        click.echo("(no matches)")
        return
    console = Console()
    table = Table(show_header=True, header_style="bold")
    table.add_column("Path")
    table.add_column("Line", justify="right")
    table.add_column("Text")
    for m in matches:
        table.add_row(_markup_escape(m.path), str(m.line_number), _markup_escape(m.line))
    console.print(table)


@cli.command()
def stores() -> None:
    """List persistent stores."""
    cfg = _load_cfg()
    backend = create_backend(cfg.database)
    try:
        names = VirtualFS(backend).list_stores()
    finally:
        backend.close()
    if not names:
        click.echo("(no stores)")
        return
    for name in names:
        click.echo(name)


if __name__ == "__main__":
    cli()
