"""beamdrop-browser entry point.

Changes:
  - 2026-10-09: Added `move` and `cp`.
  - 2026-10-08: Added `get`, `status` and `--server` override.
  - 2026-10-07: Initial CLI (ls, search, rm, star, mkdir, mv, upload).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Container, Sequence
from pathlib import Path

from rich.console import Console
from rich.table import Table

from beamdrop_browser.client import BeamdropClient
from beamdrop_browser.config import Settings, get_settings
from beamdrop_browser.errors import BrowserError
from beamdrop_browser.logging_setup import setup_logging
from beamdrop_browser.models import FileEntry, ListingState, MutationResult, SortOrder
from beamdrop_browser.paths import ROOT, basename, parent
from beamdrop_browser.session import BrowserSession, SessionContext

logger = logging.getLogger(__name__)
console = Console()


def _entries_table(
    title: str,
    entries: Sequence[FileEntry],
    starred: Container[str] = (),
    show_path: bool = False,
) -> Table:
    table = Table(title=title, title_justify="left")
    table.add_column("", width=1)
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    if show_path:
        table.add_column("Path")
    for entry in entries:
        marker = "*" if entry.path in starred else ""
        name = f"{entry.name}/" if entry.isDir else entry.name
        row = [marker, name, "" if entry.isDir else entry.size, entry.modTime]
        if show_path:
            row.append(entry.path)
        table.add_row(*row)
    return table


def _print_result(result: MutationResult, success: str) -> int:
    if result.ok:
        console.print(f"[green]{success}[/green]")
        return 0
    console.print(f"[red]{result.kind.value} failed:[/red] {result.error}")
    return 1


async def _cmd_ls(client: BeamdropClient, settings: Settings, args: argparse.Namespace) -> int:
    context = SessionContext.from_settings(settings, initial_path=args.path)
    session = BrowserSession(client, context)
    if args.all:
        session.set_show_hidden(True)
    if args.sort or args.desc:
        session.set_sort(
            args.sort or session.view_params.sort_field,
            SortOrder.DESC if args.desc else SortOrder.ASC,
        )
    listing = await session.open()
    if listing.state == ListingState.ERROR:
        console.print(f"[red]Cannot list {listing.path}:[/red] {listing.error}")
        return 1
    if args.filter:
        session.set_search_term(args.filter)

    entries = session.visible_entries()
    title = f"{listing.path} ({len(entries)} item{'s' if len(entries) != 1 else ''})"
    console.print(_entries_table(title, entries, session.mutations.starred))
    return 0


async def _cmd_search(client: BeamdropClient, settings: Settings, args: argparse.Namespace) -> int:
    session = BrowserSession(client, SessionContext.from_settings(settings))
    response = await session.search.search(args.term, args.path)
    if not response.count:
        console.print(f'No files found matching "{response.query}"')
        return 0
    console.print(_entries_table(f"{response.count} result(s)", response.results, show_path=True))
    return 0


async def _cmd_mutation(
    client: BeamdropClient, settings: Settings, args: argparse.Namespace
) -> int:
    target = args.target if args.command == "upload" else parent(args.path)
    session = BrowserSession(client, SessionContext.from_settings(settings, initial_path=target))
    mutations = session.mutations

    if args.command == "rm":
        return _print_result(await mutations.delete_entry(args.path), f"Deleted {args.path}")
    if args.command == "star":
        result = await mutations.toggle_star(args.path)
        return _print_result(result, f"Toggled star on {args.path}")
    if args.command == "mkdir":
        result = await mutations.create_folder(basename(args.path), parent(args.path))
        return _print_result(result, f"Created {args.path}")
    if args.command == "mv":
        result = await mutations.rename_entry(args.path, args.new_name)
        return _print_result(result, f"Renamed to {result.details.get('newPath', args.new_name)}")
    if args.command == "move":
        result = await mutations.move_entry(args.path, args.target)
        return _print_result(result, f"Moved {args.path} to {args.target}")
    if args.command == "cp":
        result = await mutations.copy_entry(args.path, args.target)
        return _print_result(result, f"Copied {args.path} to {args.target}")
    if args.command == "upload":
        result = await session.drop_files([Path(f) for f in args.files])
        return _print_result(result, f"Uploaded {len(args.files)} file(s) to {args.target}")
    raise ValueError(f"Unknown command {args.command}")


async def _cmd_get(client: BeamdropClient, settings: Settings, args: argparse.Namespace) -> int:
    info = await client.download(args.path, Path(args.output) if args.output else None)
    console.print(f"Saved {info['name']} ({info['size']} bytes) to {info['path']}")
    return 0


async def _cmd_status(client: BeamdropClient, settings: Settings, args: argparse.Namespace) -> int:
    health = await client.health()
    stats = await client.stats()
    console.print(f"{client.base_url}: {health.get('status', 'unknown')}")
    console.print(f"Downloads: {stats.downloads}  Uploads: {stats.uploads}")
    return 0


_COMMANDS = {
    "ls": _cmd_ls,
    "search": _cmd_search,
    "rm": _cmd_mutation,
    "star": _cmd_mutation,
    "mkdir": _cmd_mutation,
    "mv": _cmd_mutation,
    "move": _cmd_mutation,
    "cp": _cmd_mutation,
    "upload": _cmd_mutation,
    "get": _cmd_get,
    "status": _cmd_status,
}


async def run(args: argparse.Namespace, settings: Settings) -> int:
    async with BeamdropClient.from_settings(settings) as client:
        try:
            return await _COMMANDS[args.command](client, settings, args)
        except BrowserError as e:
            console.print(f"[red]Error:[/red] {e}")
            return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beamdrop-browser",
        description="Browse and manage files on a beamdrop server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  beamdrop-browser ls                        List the shared root
  beamdrop-browser ls docs --sort size --desc
  beamdrop-browser search report --path docs
  beamdrop-browser move b.txt docs/b.txt     Move a file into docs
  beamdrop-browser upload docs a.txt b.txt   Upload two files into docs
""",
    )
    parser.add_argument("--server", help="Server URL (default: BEAMDROP_SERVER_URL)")
    parser.add_argument("--password", help="Server password (default: BEAMDROP_PASSWORD)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("ls", help="List a directory")
    ls.add_argument("path", nargs="?", default=ROOT)
    ls.add_argument("--sort", choices=["name", "size", "modTime"])
    ls.add_argument("--desc", action="store_true", help="Sort descending")
    ls.add_argument("--all", "-a", action="store_true", help="Include dot-files")
    ls.add_argument("--filter", help="Only names containing this text")

    search = sub.add_parser("search", help="Search file names recursively")
    search.add_argument("term")
    search.add_argument("--path", help="Limit the search to this directory")

    rm = sub.add_parser("rm", help="Delete a file or directory")
    rm.add_argument("path")

    star = sub.add_parser("star", help="Toggle the star on an entry")
    star.add_argument("path")

    mkdir = sub.add_parser("mkdir", help="Create a directory")
    mkdir.add_argument("path")

    mv = sub.add_parser("mv", help="Rename an entry in place")
    mv.add_argument("path")
    mv.add_argument("new_name")

    move = sub.add_parser("move", help="Move an entry to a new path")
    move.add_argument("path")
    move.add_argument("target", help="Full destination path")

    cp = sub.add_parser("cp", help="Copy a file to a new path")
    cp.add_argument("path")
    cp.add_argument("target", help="Full destination path")

    upload = sub.add_parser("upload", help="Upload local files into a directory")
    upload.add_argument("target")
    upload.add_argument("files", nargs="+")

    get = sub.add_parser("get", help="Download a file")
    get.add_argument("path")
    get.add_argument("--output", "-o", help="Destination file or directory")

    sub.add_parser("status", help="Show server health and transfer counters")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    overrides = {}
    if args.server:
        overrides["server_url"] = args.server
    if args.password:
        overrides["password"] = args.password
    if overrides:
        settings = settings.model_copy(update=overrides)

    setup_logging(level="DEBUG" if args.verbose else settings.log_level)
    sys.exit(asyncio.run(run(args, settings)))


if __name__ == "__main__":
    main()
