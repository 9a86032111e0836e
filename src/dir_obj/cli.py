"""CLI for Dir Obj."""

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from . import CONFIG_FILE, __version__
from .config import DirObjConfig, get_config_path, load_config
from .errors import DirObjError
from .snapshot import create_snapshot, load_snapshot, save_snapshot
from .tree import Dir, DumpStats, File, LoadStats

console = Console()
error_console = Console(stderr=True)

EXISTING_DIR = click.Path(exists=True, file_okay=False, path_type=Path)
NEW_PATH = click.Path(path_type=Path)


@contextmanager
def reported_errors() -> Iterator[None]:
    """Print library, filesystem and validation errors and exit with status 1."""
    try:
        yield
    except (DirObjError, OSError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


def load_source(src: Path, config: DirObjConfig, stats: LoadStats | None = None) -> Dir:
    """Load a source directory, exiting on failure."""
    with reported_errors():
        return Dir.load(src, config=config, stats=stats)


@click.group()
@click.version_option(version=__version__, prog_name="dirobj")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help=f"Config file (default: ./{CONFIG_FILE} if present)",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None) -> None:
    """Dir Obj - load directory trees into memory and dump them back out."""
    if config_path is None:
        config_path = get_config_path(Path.cwd())
    with reported_errors():
        ctx.obj = load_config(config_path)


@main.command()
@click.argument("src", type=EXISTING_DIR)
@click.pass_obj
def show(config: DirObjConfig, src: Path) -> None:
    """Print the tree rooted at SRC."""
    directory = load_source(src, config)

    tree = Tree(f"[bold]{escape(src.name or str(src))}/[/bold]")
    _add_branch(tree, directory)
    console.print(tree)


@main.command()
@click.argument("src", type=EXISTING_DIR)
@click.pass_obj
def stats(config: DirObjConfig, src: Path) -> None:
    """Show entry counts, size and digest for SRC."""
    load_stats = LoadStats()
    directory = load_source(src, config, load_stats)

    table = Table(title="Directory Statistics")
    table.add_column("Property", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Source", escape(str(src)))
    table.add_row("Top-level entries", str(len(directory)))
    table.add_row("Total entries", str(directory.count()))
    table.add_row("Files", str(load_stats.files_loaded))
    table.add_row("Directories", str(load_stats.directories_loaded - 1))
    table.add_row("Bytes", str(load_stats.bytes_read))
    table.add_row("Digest", directory.digest())

    console.print(table)


@main.command()
@click.argument("src", type=EXISTING_DIR)
@click.argument("dest", type=NEW_PATH)
@click.pass_obj
def copy(config: DirObjConfig, src: Path, dest: Path) -> None:
    """Load SRC into memory and dump it to a new directory DEST."""
    directory = load_source(src, config)

    dump_stats = DumpStats()
    with reported_errors():
        directory.dump(dest, config=config, stats=dump_stats)

    console.print(
        f"[green]Copied {directory.count()} entries to {escape(str(dest))}[/green] "
        f"[dim]({dump_stats.bytes_written} bytes)[/dim]"
    )


@main.command()
@click.argument("src", type=EXISTING_DIR)
@click.argument("output", type=NEW_PATH)
@click.pass_obj
def snapshot(config: DirObjConfig, src: Path, output: Path) -> None:
    """Save the tree at SRC as a JSON snapshot OUTPUT."""
    directory = load_source(src, config)

    captured = create_snapshot(directory)
    with reported_errors():
        save_snapshot(captured, output)

    console.print(
        f"[green]Saved {captured.stats.total_files} files and "
        f"{captured.stats.total_directories} directories[/green] to {escape(str(output))}"
    )


@main.command()
@click.argument("snapshot_path", metavar="SNAPSHOT", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("dest", type=NEW_PATH)
@click.pass_obj
def restore(config: DirObjConfig, snapshot_path: Path, dest: Path) -> None:
    """Recreate the tree stored in SNAPSHOT as a new directory DEST."""
    with reported_errors():
        directory = load_snapshot(snapshot_path).to_dir()
        directory.dump(dest, config=config)

    console.print(f"[green]Restored {directory.count()} entries to {escape(str(dest))}[/green]")


def _add_branch(branch: Tree, directory: Dir) -> None:
    """Add the children of a Dir to a rich tree, directories first."""
    names = directory.names()
    for name in names:
        entry = directory[name]
        if isinstance(entry, Dir):
            _add_branch(branch.add(f"[bold blue]{escape(name)}/[/bold blue]"), entry)
    for name in names:
        entry = directory[name]
        if isinstance(entry, File):
            branch.add(f"{escape(name)} [dim]({entry.size} bytes)[/dim]")


if __name__ == "__main__":
    main()
