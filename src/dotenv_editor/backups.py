"""Timestamped snapshots of the edited file.

Backups live flat in one directory and are named
``<prefix><YYYY_MM_DD_HHmmss><suffix>``. Ordering is derived from the
timestamp embedded in the name, never from file-system metadata.
"""

import logging
import re
import shutil
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path

from dotenv_editor.constants import (
    BACKUP_FILENAME_PREFIX,
    BACKUP_FILENAME_SUFFIX,
    BACKUP_TIMESTAMP_FORMAT,
    SENTINEL_CONTENT,
    SENTINEL_FILENAME,
)
from dotenv_editor.errors import FileNotFound
from dotenv_editor.models import BackupRecord

logger = logging.getLogger(__name__)


class BackupManager:
    """Creates, lists, ranks and deletes backups in ``backup_dir``.

    Construction does no I/O; call ``initialize`` (or take a backup) to
    create the directory.

    Args:
        backup_dir: Directory holding the backups.
        prefix: Fixed filename prefix.
        suffix: Fixed filename suffix, may be empty.
        clock: Returns the current local time; injectable for tests.
    """

    def __init__(
        self,
        backup_dir: str | Path,
        prefix: str = BACKUP_FILENAME_PREFIX,
        suffix: str = BACKUP_FILENAME_SUFFIX,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._dir = Path(backup_dir)
        self._prefix = prefix
        self._suffix = suffix
        self._clock = clock
        self._name_re = re.compile(
            rf"^{re.escape(prefix)}(?P<stamp>\d{{4}}_\d{{2}}_\d{{2}}_\d{{6}}){re.escape(suffix)}$"
        )

    @property
    def directory(self) -> Path:
        return self._dir

    def initialize(self) -> "BackupManager":
        """Create the backup directory if needed.

        The sentinel ignore-file is written into the parent directory only
        when the backup directory is created here, so it is written once.
        """
        if self._dir.is_dir():
            return self
        self._dir.mkdir(parents=True, exist_ok=True)
        sentinel = self._dir.parent / SENTINEL_FILENAME
        if not sentinel.exists():
            sentinel.write_text(SENTINEL_CONTENT)
        logger.info("Created backup directory %s", self._dir)
        return self

    def filename_for(self, moment: datetime) -> str:
        return f"{self._prefix}{moment.strftime(BACKUP_TIMESTAMP_FORMAT)}{self._suffix}"

    def backup(self, source: str | Path) -> BackupRecord:
        """Copy ``source`` into the backup directory.

        Two backups taken within the same second share a name; the later
        one overwrites the earlier.
        """
        source = Path(source)
        if not source.is_file():
            raise FileNotFound(f"File does not exist at path {source}")

        self.initialize()
        # Second precision, matching what the filename can hold.
        created_at = self._clock().replace(microsecond=0)
        filename = self.filename_for(created_at)
        target = self._dir / filename
        shutil.copyfile(source, target)
        logger.info("Backed up %s to %s", source, target)
        return BackupRecord(filename=filename, filepath=target, created_at=created_at)

    def _parse(self, entry: Path) -> BackupRecord | None:
        m = self._name_re.match(entry.name)
        if m is None:
            return None
        try:
            created_at = datetime.strptime(m.group("stamp"), BACKUP_TIMESTAMP_FORMAT)
        except ValueError:
            return None
        return BackupRecord(filename=entry.name, filepath=entry, created_at=created_at)

    def list_backups(self) -> list[BackupRecord]:
        """Return every backup in the directory, oldest first."""
        if not self._dir.is_dir():
            return []
        records = []
        for entry in self._dir.iterdir():
            if not entry.is_file():
                continue
            record = self._parse(entry)
            if record is not None:
                records.append(record)
        return sorted(records, key=lambda r: (r.created_at, r.filename))

    def latest_backup(self) -> BackupRecord | None:
        """Return the backup with the greatest embedded timestamp, or None."""
        records = self.list_backups()
        if not records:
            return None
        return max(records, key=lambda r: r.created_at)

    def delete_backup(self, path: str | Path) -> None:
        self.delete_backups([path])

    def delete_backups(self, paths: Iterable[str | Path] | None = None) -> list[Path]:
        """Delete the given backup files, or all backups when ``paths`` is empty.

        Missing files and paths outside the backup directory are skipped.
        Returns the paths actually removed.
        """
        targets = [Path(p) for p in paths or []]
        if not targets:
            targets = [r.filepath for r in self.list_backups()]

        backup_dir = self._dir.resolve()
        removed = []
        for target in targets:
            if target.resolve().parent != backup_dir:
                logger.warning("Refusing to delete %s: not in %s", target, self._dir)
                continue
            if target.is_file():
                target.unlink()
                removed.append(target)
                logger.info("Deleted backup %s", target)
        return removed
