"""Command line interface for smelter."""

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Confirm
from rich.table import Table

from . import __version__
from .core.metadata import read_audio_metadata
from .exceptions import SmelterError
from .models.audio_metadata import AudioMetadata, FileOperation, OrganizeMode
from .models.config import Config, load_config
from .service import SmelterService

console = Console()

MODE_CHOICES = [mode.value for mode in OrganizeMode]
MAX_LISTED_ERRORS = 10


def setup_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=Console(stderr=True), show_path=verbose, markup=False)
    logger = logging.getLogger("smelter")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def _build_service(ctx: click.Context) -> SmelterService:
    config: Config = ctx.obj["config"]
    service = SmelterService(config, reader=read_audio_metadata)
    ctx.call_on_close(service.close)
    return service


def _collect(service: SmelterService, sources: Tuple[Path, ...]) -> List[AudioMetadata]:
    """Scan files and directories given on the command line."""
    records: List[AudioMetadata] = []
    files = [p for p in sources if not p.is_dir()]
    for source in sources:
        if source.is_dir():
            records.extend(service.scan_directory(source))
    if files:
        records.extend(service.scan(files))
    return records


def _print_records(records: List[AudioMetadata]) -> None:
    table = Table(title=f"{len(records)} audio files")
    table.add_column("File", style="cyan")
    for column in ("Title", "Artist", "Genre", "Mood", "Energy"):
        table.add_column(column)
    table.add_column("BPM", justify="right")

    for record in records:
        table.add_row(
            record.filename,
            record.title or "",
            record.artist or "",
            record.genre or "",
            record.mood or "",
            record.energy or "",
            str(record.bpm) if record.bpm is not None else "",
        )
    console.print(table)


def _print_preview(preview: dict) -> None:
    table = Table(title="Organization Preview")
    table.add_column("Category", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("Examples")

    for category in sorted(preview):
        names = preview[category]
        examples = ", ".join(names[:3]) + (" ..." if len(names) > 3 else "")
        table.add_row(category, str(len(names)), examples)
    console.print(table)


def _print_errors(errors: List[str]) -> None:
    if not errors:
        return
    console.print("\n[red]Errors encountered:[/red]")
    for error in errors[:MAX_LISTED_ERRORS]:
        console.print(f"  • {error}", markup=False)
    if len(errors) > MAX_LISTED_ERRORS:
        console.print(f"  ... and {len(errors) - MAX_LISTED_ERRORS} more errors")


def _report_duplicates(service: SmelterService, records, target: Path, mode: str):
    """Print source and destination duplicates and return them."""
    groups = service.find_source_duplicates(records, mode)
    existing = service.find_destination_duplicates(records, target, mode)

    if groups:
        console.print(f"\n[yellow]{len(groups)} filenames appear more than once in the source:[/yellow]")
        for group in groups:
            folders = ", ".join(f.folder for f in group.files)
            console.print(f"  {group.category}/{group.filename}  ({folders})", markup=False)

    if existing:
        console.print(f"\n[yellow]{len(existing)} files already exist in {target}:[/yellow]")
        for dup in existing:
            console.print(f"  {dup.existing_path}", markup=False)

    return groups, existing


@click.group()
@click.version_option(__version__)
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Configuration file path')
@click.option('--cache-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Directory for the metadata cache')
@click.option('--verbose', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], cache_dir: Optional[Path], verbose: bool):
    """Sort audio files into category folders using their tags."""
    setup_logging(verbose)
    try:
        config = load_config(config_path) if config_path else Config.default()
    except SmelterError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    if cache_dir is not None:
        config.cache.cache_dir = cache_dir
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option('--json', 'as_json', is_flag=True, help='Print records as JSON')
@click.pass_context
def scan(ctx: click.Context, paths: Tuple[Path, ...], as_json: bool):
    """Read tags of audio files and directories, using the cache."""
    try:
        records = _collect(_build_service(ctx), paths)
    except SmelterError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in records], indent=2))
    else:
        _print_records(records)


@cli.command()
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def rescan(ctx: click.Context, paths: Tuple[Path, ...]):
    """Read tags again, ignoring cached entries."""
    records = _build_service(ctx).rescan(list(paths))
    _print_records(records)


@cli.command()
@click.argument('sources', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option('--by', 'mode', type=click.Choice(MODE_CHOICES), default='mood', show_default=True,
              help='Tag used to pick the category folder')
@click.pass_context
def preview(ctx: click.Context, sources: Tuple[Path, ...], mode: str):
    """Show which category folder each file would go to."""
    service = _build_service(ctx)
    try:
        records = _collect(service, sources)
    except SmelterError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    _print_preview(service.preview(records, mode))


@cli.command()
@click.argument('source', type=click.Path(exists=True, path_type=Path))
@click.argument('target', type=click.Path(path_type=Path))
@click.option('--by', 'mode', type=click.Choice(MODE_CHOICES), default='mood', show_default=True,
              help='Tag used to pick the category folder')
@click.option('--copy', 'copy_files', is_flag=True, help='Copy files instead of moving them')
@click.option('--dry-run', is_flag=True, help='Show what would be done without making changes')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def organize(ctx: click.Context, source: Path, target: Path, mode: str,
             copy_files: bool, dry_run: bool, yes: bool):
    """Organize audio files from SOURCE into category folders under TARGET."""
    operation = FileOperation.COPY if copy_files else FileOperation.MOVE
    service = _build_service(ctx)

    try:
        records = _collect(service, (source,))
        if not records:
            console.print("[yellow]No audio files found[/yellow]")
            return

        console.print("\n[bold cyan]Organization Plan[/bold cyan]")
        console.print(f"Source: {source}", markup=False)
        console.print(f"Target: {target}", markup=False)
        console.print(f"Organize by: {mode}")
        console.print(f"Operation: {operation.value}")
        _print_preview(service.preview(records, mode))
        _report_duplicates(service, records, target, mode)

        if dry_run:
            console.print("\n[yellow]Dry run, no files changed[/yellow]")
            return

        if not yes and not Confirm.ask(f"\n{operation.value.capitalize()} {len(records)} files?"):
            console.print("[yellow]Cancelled[/yellow]")
            return

        result = service.organize(records, target, mode, operation)
    except SmelterError as e:
        console.print(f"\n[red]Error: {e}[/red]")
        sys.exit(1)

    results_table = Table(title="Results")
    results_table.add_column("Outcome", style="cyan")
    results_table.add_column("Count", justify="right")
    results_table.add_row("Succeeded", str(result.success_count))
    results_table.add_row("Failed", str(result.error_count))
    results_table.add_row("Skipped", str(result.skipped_count))
    console.print(results_table)
    _print_errors(result.errors)


@cli.command()
@click.argument('source', type=click.Path(exists=True, path_type=Path))
@click.argument('target', type=click.Path(path_type=Path))
@click.option('--by', 'mode', type=click.Choice(MODE_CHOICES), default='mood', show_default=True,
              help='Tag used to pick the category folder')
@click.option('--delete-existing', is_flag=True,
              help='Delete files in TARGET that the source would collide with')
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def duplicates(ctx: click.Context, source: Path, target: Path, mode: str,
               delete_existing: bool, yes: bool):
    """Find source files that collide with each other or with TARGET."""
    service = _build_service(ctx)
    try:
        records = _collect(service, (source,))
    except SmelterError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    groups, found = _report_duplicates(service, records, target, mode)
    if not groups and not found:
        console.print("[green]✓ No duplicates found[/green]")
        return

    existing = [dup.existing_path for dup in found]
    if not delete_existing or not existing:
        return
    if not yes and not Confirm.ask(f"\nDelete {len(existing)} existing files?"):
        console.print("[yellow]Cancelled[/yellow]")
        return

    deleted, errors = service.delete_paths(existing)
    console.print(f"\n[green]Deleted {deleted} files[/green]")
    _print_errors(errors)


@cli.group()
def cache():
    """Manage the metadata cache."""
    pass


@cache.command('clear')
@click.pass_context
def cache_clear(ctx: click.Context):
    """Remove every cached entry."""
    try:
        count = _build_service(ctx).clear_cache()
    except SmelterError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    console.print(f"[green]Cleared {count} cache entries[/green]")


@cache.command('info')
@click.pass_context
def cache_info(ctx: click.Context):
    """Show cache location and size."""
    try:
        stats = _build_service(ctx).cache_stats()
    except SmelterError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    table = Table(title="Metadata Cache")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Location", str(stats.get('db_path', '-')))
    table.add_row("Entries", str(stats['total_entries']))
    table.add_row("Size", f"{stats.get('size_mb', 0.0):.2f} MB")
    console.print(table)


def main() -> None:
    cli(obj={})


if __name__ == '__main__':
    main()
