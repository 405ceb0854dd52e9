"""Domain models."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass
class SetterRecord:
    """One ``KEY=value`` line as found by the reader.

    ``line_index`` is zero-based; ``line`` is the 1-based number users see.
    """

    key: str
    value: str | None
    comment: str | None = None
    export: bool = False
    line_index: int = 0

    @property
    def line(self) -> int:
        return self.line_index + 1


@dataclass(frozen=True)
class BackupRecord:
    """An immutable, timestamped snapshot of the edited file.

    ``created_at`` is parsed from the filename, never from file metadata.
    """

    filename: str
    filepath: Path
    created_at: datetime
