"""Loads an env file and derives its setter records.

The reader never raises: a missing or unreadable file simply produces
empty results and callers decide whether absence matters.
"""

import logging
import re
from pathlib import Path

from dotenv_editor.domain.formatter import parse_setter_line
from dotenv_editor.models import SetterRecord

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r?\n")


class DotenvReader:
    """Holds the content and line sequence of the most recently loaded file."""

    def __init__(self) -> None:
        self._path: Path | None = None
        self._content: str | None = None
        self._lines: list[str] = []

    def load(self, path: str | Path | None) -> "DotenvReader":
        """Replace the loaded state with the contents of ``path``.

        ``None`` resets to the empty state.
        """
        self._path = Path(path) if path is not None else None
        self._content = None
        self._lines = []

        if self._path is None or not self._path.is_file():
            return self

        try:
            # newline="" keeps \r\n intact so lines match the file byte-for-byte.
            with self._path.open(encoding="utf-8", newline="") as f:
                self._content = f.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unable to read %s: %s", self._path, exc)
            return self

        self._lines = _LINE_BREAK_RE.split(self._content)
        if self._lines and self._lines[-1] == "":
            self._lines.pop()
        logger.debug("Loaded %s (%d lines)", self._path, len(self._lines))
        return self

    def content(self) -> str | None:
        return self._content

    def lines(self) -> list[str]:
        return list(self._lines)

    def keys(self) -> dict[str, SetterRecord]:
        """Map each key to its record, scanning top to bottom.

        A key that appears on several lines is reported from its last line.
        """
        records: dict[str, SetterRecord] = {}
        for index, line in enumerate(self._lines):
            parsed = parse_setter_line(line)
            if parsed is None:
                continue
            records[parsed.key] = SetterRecord(
                key=parsed.key,
                value=parsed.value,
                comment=parsed.comment,
                export=parsed.export,
                line_index=index,
            )
        return records
