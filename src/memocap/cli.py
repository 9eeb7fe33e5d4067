"""Typer-based CLI for memocap."""

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import ConfigManager, MemocapConfig
from .logging_setup import configure_logging, log_operation, shutdown_logging
from .models.record import ClipboardCapture
from .paths import AppDataPaths
from .store import InvalidStatusError, RecordStore

app = typer.Typer(
    name="memocap",
    help="memocap - screenshot and clipboard notes stored as local JSON records",
    add_completion=False,
)

console = Console()

ROOT_OPTION_HELP = "Storage root (default: configured custom_save_path or the default captures dir)"


def _open_store(root: Optional[str]) -> RecordStore:
    """Load config, set up file logging and open the record store."""
    manager = ConfigManager.from_env()
    config = MemocapConfig.from_env(manager.init())
    configure_logging(config.log_level, AppDataPaths.from_env().logs, console=False)
    return RecordStore.open(root or config.custom_save_path)


def _read_file_bytes(path_str: str) -> bytes:
    path = Path(path_str)
    if not path.is_file():
        console.print(f"[red]Error: File not found: {path}[/red]")
        raise typer.Exit(code=1)
    return path.read_bytes()


def _truncate(text: str, limit: int = 50) -> str:
    text = text.replace("\n", " ")
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


@app.command()
def init(
    root: str = typer.Option(None, "--root", "-r", help=ROOT_OPTION_HELP),
):
    """Create the storage root and the config file if missing.

    Idempotent - existing data is never overwritten.
    """
    store = _open_store(root)
    shutdown_logging()
    console.print(f"[green]Storage root ready:[/green] {store.captures_dir}")
    console.print(f"[dim]Config file:[/dim] {AppDataPaths.from_env().config_file}")


@app.command()
def capture(
    image: str = typer.Option(..., "--image", "-i", help="Screenshot PNG to store"),
    text: str = typer.Option(None, "--text", "-t", help="Clipboard text at capture time"),
    clipboard_image: str = typer.Option(
        None,
        "--clipboard-image",
        "-c",
        help="Clipboard image PNG at capture time",
    ),
    root: str = typer.Option(None, "--root", "-r", help=ROOT_OPTION_HELP),
):
    """Store a screenshot together with a clipboard snapshot.

    The note starts as the clipboard text.
    """
    image_bytes = _read_file_bytes(image)
    clipboard_bytes = _read_file_bytes(clipboard_image) if clipboard_image else None

    types = []
    if text:
        types.append("text")
    if clipboard_bytes:
        types.append("image")

    store = _open_store(root)
    try:
        record = store.create_from_capture(
            image_bytes,
            ClipboardCapture(types=types, text=text, image=clipboard_bytes),
        )
        log_operation(
            "Screenshot Success",
            imagePath=record.image_path,
            clipboardLength=len(text) if text else 0,
            hasClipboard=bool(text),
        )
    except OSError as e:
        log_operation("Screenshot Failed", error=str(e))
        console.print(f"[red]Error during capture: {e}[/red]")
        raise typer.Exit(code=1)
    finally:
        shutdown_logging()

    console.print("[green]Captured:[/green]")
    console.print(f"  Image: {record.image_path}")
    console.print(f"  Meta:  {record.metadata_path}")
    console.print(f"  ID:    {record.id}")


@app.command()
def note(
    text: str = typer.Argument(..., help="Note text"),
    clipboard_image: str = typer.Option(
        None,
        "--clipboard-image",
        "-c",
        help="Attach a clipboard image PNG",
    ),
    root: str = typer.Option(None, "--root", "-r", help=ROOT_OPTION_HELP),
):
    """Create a record without a screenshot."""
    clipboard_bytes = _read_file_bytes(clipboard_image) if clipboard_image else None

    store = _open_store(root)
    try:
        if clipboard_bytes:
            record = store.create_with_clipboard_image(text, clipboard_bytes)
        else:
            record = store.create_note_only(text)
    except OSError as e:
        console.print(f"[red]Error creating note: {e}[/red]")
        raise typer.Exit(code=1)
    finally:
        shutdown_logging()

    console.print("[green]Note created:[/green]")
    console.print(f"  Meta: {record.metadata_path}")
    console.print(f"  ID:   {record.id}")


@app.command("list")
def list_records(
    status_filter: str = typer.Option(
        "all",
        "--filter",
        "-f",
        help="Filter by status: all, todo or done",
    ),
    root: str = typer.Option(None, "--root", "-r", help=ROOT_OPTION_HELP),
):
    """List records, highest order first."""
    store = _open_store(root)
    try:
        records = store.list_all_records(status_filter)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    finally:
        shutdown_logging()

    if not records:
        console.print("[dim]No records[/dim]")
        return

    table = Table(title=f"{len(records)} Record(s) ({status_filter})")
    table.add_column("Order", style="cyan", no_wrap=True)
    table.add_column("Status", style="magenta")
    table.add_column("Created (UTC)", style="yellow", no_wrap=True)
    table.add_column("Note")
    table.add_column("Metadata", style="dim", overflow="fold")

    for record in records:
        table.add_row(
            str(record.order),
            record.status.value,
            record.created_at,
            _truncate(record.note.text) or "-",
            str(record.metadata_path),
        )

    console.print(table)


@app.command()
def edit(
    metadata_path: str = typer.Argument(..., help="Record metadata file"),
    text: str = typer.Argument(..., help="New note text"),
    bump: bool = typer.Option(
        False,
        "--bump",
        help="Refresh the note timestamp (default keeps it)",
    ),
    root: str = typer.Option(None, "--root", "-r", help=ROOT_OPTION_HELP),
):
    """Replace a record's note text."""
    store = _open_store(root)
    try:
        ok = store.update_note(metadata_path, text, is_edit_mode=not bump)
    finally:
        shutdown_logging()

    if not ok:
        console.print(f"[red]Error: Failed to update note in {metadata_path}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Note updated:[/green] {metadata_path}")


@app.command()
def status(
    metadata_path: str = typer.Argument(..., help="Record metadata file"),
    value: str = typer.Argument(..., help="todo or done"),
    root: str = typer.Option(None, "--root", "-r", help=ROOT_OPTION_HELP),
):
    """Mark a record todo or done."""
    store = _open_store(root)
    try:
        ok = store.update_status(metadata_path, value)
    except InvalidStatusError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    finally:
        shutdown_logging()

    if not ok:
        console.print(f"[red]Error: Failed to update status in {metadata_path}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Status set to {value}:[/green] {metadata_path}")


@app.command()
def reorder(
    assignments: list[str] = typer.Argument(..., help="METADATA_PATH=ORDER pairs"),
    root: str = typer.Option(None, "--root", "-r", help=ROOT_OPTION_HELP),
):
    """Set order values for several records at once.

    Every pair is attempted; failures are reported per record.
    """
    updates = []
    for assignment in assignments:
        path_str, sep, order_str = assignment.rpartition("=")
        if not sep or not path_str:
            console.print(f"[red]Error: Expected METADATA_PATH=ORDER, got {assignment!r}[/red]")
            raise typer.Exit(code=1)
        try:
            order = int(order_str)
        except ValueError:
            console.print(f"[red]Error: Order must be an integer, got {order_str!r}[/red]")
            raise typer.Exit(code=1)
        updates.append({"metadataPath": path_str, "order": order})

    store = _open_store(root)
    try:
        result = store.batch_update_order(updates)
    finally:
        shutdown_logging()

    console.print(f"Updated {result.success_count}/{result.total_count} record(s)")
    for error in result.errors:
        console.print(f"[red]  {error.metadata_path}: {error.error}[/red]")
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def delete(
    metadata_path: str = typer.Argument(..., help="Record metadata file"),
    keep_images: bool = typer.Option(
        False,
        "--keep-images",
        help="Delete only the metadata file",
    ),
    root: str = typer.Option(None, "--root", "-r", help=ROOT_OPTION_HELP),
):
    """Delete a record and, unless --keep-images, its image files."""
    store = _open_store(root)
    try:
        result = store.delete_record(metadata_path, delete_images=not keep_images)
        log_operation("Delete Record", metadataPath=metadata_path, success=result.success)
    finally:
        shutdown_logging()

    if not result.success:
        console.print(f"[red]Error: {result.error}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted:[/green] {metadata_path}")


config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show():
    """Print the current configuration."""
    manager = ConfigManager.from_env()
    config = manager.init()

    table = Table(title=f"Config ({manager.config_path})")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in config.model_dump().items():
        table.add_row(key, str(value) if value != "" else "[dim](empty)[/dim]")
    console.print(table)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Config key"),
    value: str = typer.Argument(..., help="New value"),
):
    """Set one configuration value."""
    manager = ConfigManager.from_env()
    manager.init()
    try:
        ok = manager.set(key, value)
    except KeyError as e:
        console.print(f"[red]Error: {e.args[0]}[/red]")
        raise typer.Exit(code=1)
    except ValidationError as e:
        console.print(f"[red]Error: Invalid value for {key}: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(code=1)

    if not ok:
        console.print("[red]Error: Failed to save configuration[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]{key}[/green] = {value}")


@config_app.command("reset")
def config_reset():
    """Restore default configuration."""
    manager = ConfigManager.from_env()
    if not manager.reset():
        console.print("[red]Error: Failed to save configuration[/red]")
        raise typer.Exit(code=1)
    console.print("[green]Configuration reset to defaults[/green]")


@app.command()
def version():
    """Show memocap version."""
    from . import __version__
    console.print(f"memocap v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
