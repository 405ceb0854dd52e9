"""Fluent load / mutate / save / backup / restore API over one env file.

``DotenvEditor`` composes the reader, writer and backup manager. The
reader's key map reflects the last ``load``; edits go to the writer's
buffer and are only re-parsed by loading again.
"""

import logging
import shutil
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from dotenv_editor.backups import BackupManager
from dotenv_editor.config import EditorConfig, resolve_backup_path, resolve_env_path
from dotenv_editor.domain.formatter import format_key, format_setter_line, is_valid_key
from dotenv_editor.errors import FileNotFound, KeyNotFound, NoBackupAvailable
from dotenv_editor.models import BackupRecord, SetterRecord
from dotenv_editor.reader import DotenvReader
from dotenv_editor.writer import DotenvWriter

logger = logging.getLogger(__name__)


class DotenvEditor:
    """Edits an env file in place, taking backups before overwriting it.

    Args:
        config: Backup directory and auto-backup policy. Defaults apply when omitted.
        default_path: Called by ``load`` when no path is given.
        backups: Backup manager to use instead of one built from ``config``.
    """

    def __init__(
        self,
        config: EditorConfig | None = None,
        default_path: Callable[[], Path] | None = None,
        backups: BackupManager | None = None,
    ) -> None:
        self._config = config or EditorConfig()
        self._default_path = default_path or (lambda: resolve_env_path(self._config))
        self._reader = DotenvReader()
        self._writer = DotenvWriter()
        self._backups = backups or BackupManager(resolve_backup_path(self._config))
        self._auto_backup = self._config.auto_backup
        self._file_path: Path | None = None

    def initialize(self) -> "DotenvEditor":
        """Create the backup directory and load the default file."""
        self._backups.initialize()
        return self.load()

    @property
    def file_path(self) -> Path | None:
        return self._file_path

    @property
    def backup_manager(self) -> BackupManager:
        return self._backups

    def _require_path(self) -> Path:
        if self._file_path is None:
            raise FileNotFound("No file has been loaded")
        return self._file_path

    def load(
        self,
        file_path: str | Path | None = None,
        restore_if_not_found: bool = False,
        restore_path: str | Path | None = None,
    ) -> "DotenvEditor":
        """Start working on ``file_path`` (or the default env file).

        A missing file is not an error: the editor starts from an empty
        buffer, unless ``restore_if_not_found`` asks to restore it first.
        """
        self._reset()
        self._file_path = Path(file_path) if file_path is not None else self._default_path()
        self._reader.load(self._file_path)

        if self._file_path.is_file():
            self._writer.set_buffer(self.get_content())
            logger.debug("Editing %s", self._file_path)
            return self
        if restore_if_not_found:
            return self.restore(restore_path)
        logger.debug("Editing %s (file does not exist yet)", self._file_path)
        return self

    def _reset(self) -> None:
        self._file_path = None
        self._reader.load(None)
        self._writer.set_buffer(None)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_content(self) -> str | None:
        return self._reader.content()

    def get_lines(self) -> list[str]:
        return self._reader.lines()

    def get_keys(self, keys: Iterable[str] | None = None) -> dict[str, SetterRecord]:
        """Return all records, or only those for ``keys`` that exist."""
        all_keys = self._reader.keys()
        wanted = set(keys or [])
        if not wanted:
            return all_keys
        return {k: v for k, v in all_keys.items() if k in wanted}

    def key_exists(self, key: str) -> bool:
        return key in self._reader.keys()

    def get_value(self, key: str) -> str | None:
        record = self._reader.keys().get(key)
        if record is None:
            raise KeyNotFound(f"Requested key {key} not found in your file.")
        return record.value

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def get_buffer(self) -> str | None:
        return self._writer.get_buffer()

    def add_empty(self) -> "DotenvEditor":
        self._writer.append_empty_line()
        return self

    def add_comment(self, comment: str) -> "DotenvEditor":
        self._writer.append_comment_line(comment)
        return self

    def set_keys(self, entries: Sequence[Mapping[str, Any]]) -> "DotenvEditor":
        """Append or update each entry; entries without a ``key`` are skipped.

        Updating an existing key without a ``comment`` keeps the comment it
        had when the file was loaded. Every entry is checked before the
        buffer changes: a key that is not an identifier after normalizing,
        or a value or comment with a line break, raises ValueError and
        leaves the buffer as it was.
        """
        prepared = []
        for entry in entries:
            if "key" not in entry:
                continue
            key = format_key(entry["key"])
            if not is_valid_key(key):
                raise ValueError(f"Invalid key name: {entry['key']!r}")
            value = entry.get("value")
            comment = entry.get("comment")
            export = bool(entry.get("export", False))
            # Rendering raises on line breaks.
            format_setter_line(key, value, comment, export)
            prepared.append((key, value, comment, export))

        file_exists = self._file_path is not None and self._file_path.is_file()
        existing = self._reader.keys()
        for key, value, comment, export in prepared:
            if not file_exists or key not in existing:
                self._writer.append_setter(key, value, comment, export)
            else:
                if comment is None:
                    comment = existing[key].comment
                self._writer.update_setter(key, value, comment, export)
        return self

    def set_key(
        self,
        key: str,
        value: str | None = None,
        comment: str | None = None,
        export: bool = False,
    ) -> "DotenvEditor":
        return self.set_keys([{"key": key, "value": value, "comment": comment, "export": export}])

    def delete_keys(self, keys: Iterable[str]) -> "DotenvEditor":
        for key in keys:
            self._writer.delete_setter(key)
        return self

    def delete_key(self, key: str) -> "DotenvEditor":
        return self.delete_keys([key])

    def save(self) -> "DotenvEditor":
        """Write the buffer out, backing up the current file first if enabled."""
        path = self._require_path()
        if path.is_file() and self._auto_backup:
            self.backup()
        self._writer.save(path)
        return self

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def auto_backup(self, on: bool = True) -> "DotenvEditor":
        self._auto_backup = on
        return self

    @property
    def auto_backup_enabled(self) -> bool:
        return self._auto_backup

    def backup(self) -> "DotenvEditor":
        self._backups.backup(self._require_path())
        return self

    def get_backups(self) -> list[BackupRecord]:
        return self._backups.list_backups()

    def get_latest_backup(self) -> BackupRecord | None:
        return self._backups.latest_backup()

    def restore(self, file_path: str | Path | None = None) -> "DotenvEditor":
        """Overwrite the loaded file with ``file_path`` or the latest backup.

        Only the buffer is refreshed; call ``load`` again for fresh keys.
        """
        target = self._require_path()
        if file_path is None:
            latest = self._backups.latest_backup()
            if latest is None:
                raise NoBackupAvailable("There are no available backups!")
            source = latest.filepath
        else:
            source = Path(file_path)

        if not source.is_file():
            raise FileNotFound(f"File does not exist at path {source}")

        self._writer.ensure_writable(target)
        shutil.copyfile(source, target)
        with target.open(encoding="utf-8", newline="") as f:
            self._writer.set_buffer(f.read())
        logger.info("Restored %s from %s", target, source)
        return self

    def delete_backups(self, file_paths: Iterable[str | Path] | None = None) -> "DotenvEditor":
        self._backups.delete_backups(file_paths)
        return self

    def delete_backup(self, file_path: str | Path) -> "DotenvEditor":
        return self.delete_backups([file_path])
