"""Command-line interface for editing env files and managing their backups."""

import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dotenv_editor.config import ConfigError, EditorConfig, load_config
from dotenv_editor.constants import (
    APP_NAME,
    BACKUP_COLUMNS,
    PRODUCTION_ENVIRONMENTS,
    TABLE_COLUMNS,
)
from dotenv_editor.editor import DotenvEditor
from dotenv_editor.errors import DotenvEditorError

app = typer.Typer(
    name=APP_NAME,
    help="Edit .env files in place with automatic backups",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Module-level defaults for Typer arguments
_FILEPATH_HELP = "The env file to work on. Defaults to the configured file or ./.env"
_FORCE_HELP = "Force the operation to run when in production."
_RESTORE_PATH_HELP = "File to restore from. Defaults to the latest backup."

_FilePathOption = typer.Option(None, "--filepath", "-f", help=_FILEPATH_HELP)  # noqa: B008
_ForceOption = typer.Option(False, "--force", help=_FORCE_HELP)  # noqa: B008


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Path | None = typer.Option(  # noqa: B008
        None, "--config", help="Path to config.json"
    ),
    verbose: bool = typer.Option(  # noqa: B008
        False, "--verbose", "-v", help="Enable debug logging"
    ),
) -> None:
    """Edit .env files in place with automatic backups."""
    _setup_logging(verbose)
    try:
        ctx.obj = load_config(config_path)
    except ConfigError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc


def _open_editor(ctx: typer.Context, filepath: Path | None) -> DotenvEditor:
    config: EditorConfig = ctx.obj or EditorConfig()
    editor = DotenvEditor(config)
    editor.backup_manager.initialize()
    return editor.load(filepath)


def _fail(exc: DotenvEditorError) -> typer.Exit:
    err_console.print(f"[red]{escape(str(exc))}[/red]")
    return typer.Exit(exc.exit_code)


def _is_production() -> bool:
    return os.environ.get("APP_ENV", "").lower() in PRODUCTION_ENVIRONMENTS


def _confirm_to_proceed(force: bool) -> bool:
    """Gate destructive commands behind --force or a prompt when in production."""
    if force or not _is_production():
        return True
    return typer.confirm("Application in production! Do you really wish to run this command?")


@app.command("keys")
def list_keys(ctx: typer.Context, filepath: Path | None = _FilePathOption) -> None:
    """List every key set in the file."""
    editor = _open_editor(ctx, filepath)
    table = Table(*TABLE_COLUMNS)
    for record in editor.get_keys().values():
        table.add_row(
            str(record.line),
            record.key,
            record.value or "",
            record.comment or "",
            "yes" if record.export else "",
        )
    console.print(table)


@app.command("get")
def get_value(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key to look up"),  # noqa: B008
    filepath: Path | None = _FilePathOption,
) -> None:
    """Print the value of one key."""
    editor = _open_editor(ctx, filepath)
    try:
        value = editor.get_value(key)
    except DotenvEditorError as exc:
        raise _fail(exc) from exc
    typer.echo(value or "")


@app.command("set")
def set_key(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key to add or update"),  # noqa: B008
    value: str | None = typer.Argument(  # noqa: B008
        None, help="New value; omit for an empty assignment"
    ),
    comment: str | None = typer.Option(  # noqa: B008
        None, "--comment", "-c", help="Trailing comment"
    ),
    export: bool = typer.Option(  # noqa: B008
        False, "--export", help="Prefix the line with 'export '"
    ),
    no_backup: bool = typer.Option(  # noqa: B008
        False, "--no-backup", help="Skip the automatic backup"
    ),
    filepath: Path | None = _FilePathOption,
) -> None:
    """Add a key or update it in place."""
    editor = _open_editor(ctx, filepath)
    if no_backup:
        editor.auto_backup(False)
    try:
        editor.set_key(key, value, comment, export).save()
    except DotenvEditorError as exc:
        raise _fail(exc) from exc
    except ValueError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    typer.echo(f"The key [{key}] is set successfully.")


@app.command("delete-key")
def delete_key(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key name will be deleted"),  # noqa: B008
    filepath: Path | None = _FilePathOption,
    force: bool = _ForceOption,
) -> None:
    """Delete one setter in the env file."""
    if not _confirm_to_proceed(force):
        raise typer.Exit(1)
    editor = _open_editor(ctx, filepath)
    typer.echo("Deleting key in your file...")
    try:
        editor.delete_key(key).save()
    except DotenvEditorError as exc:
        raise _fail(exc) from exc
    typer.echo(f"The key [{key}] is deleted successfully.")


@app.command("backup")
def backup(ctx: typer.Context, filepath: Path | None = _FilePathOption) -> None:
    """Back up the env file now."""
    editor = _open_editor(ctx, filepath)
    try:
        record = editor.backup_manager.backup(editor.file_path)
    except DotenvEditorError as exc:
        raise _fail(exc) from exc
    typer.echo(f"Your file was backed up to {record.filepath}")


@app.command("backups")
def list_backups(ctx: typer.Context) -> None:
    """List available backups, newest last."""
    editor = _open_editor(ctx, None)
    records = editor.get_backups()
    if not records:
        typer.echo("There are no available backups.")
        return
    table = Table(*BACKUP_COLUMNS)
    for record in records:
        table.add_row(
            record.filename, f"{record.created_at:%Y-%m-%d %H:%M:%S}", str(record.filepath)
        )
    console.print(table)


@app.command("restore")
def restore(
    ctx: typer.Context,
    filepath: Path | None = _FilePathOption,
    restore_path: Path | None = typer.Option(  # noqa: B008
        None, "--restore-path", help=_RESTORE_PATH_HELP
    ),
    force: bool = _ForceOption,
) -> None:
    """Restore the env file from a backup or a given file."""
    if not _confirm_to_proceed(force):
        raise typer.Exit(1)
    editor = _open_editor(ctx, filepath)
    typer.echo("Restoring your file...")
    try:
        editor.restore(restore_path)
    except DotenvEditorError as exc:
        raise _fail(exc) from exc
    typer.echo("Your file is restored successfully.")


@app.command("delete-backups")
def delete_backups(
    ctx: typer.Context,
    paths: list[Path] | None = typer.Argument(  # noqa: B008
        None, help="Backups to delete; all when omitted"
    ),
    force: bool = _ForceOption,
) -> None:
    """Delete the given backups, or every backup."""
    if not _confirm_to_proceed(force):
        raise typer.Exit(1)
    editor = _open_editor(ctx, None)
    removed = editor.backup_manager.delete_backups(paths or None)
    typer.echo(f"Deleted {len(removed)} backup(s).")
