"""In-memory buffer mutations and atomic persistence.

All edits are done by scanning the buffer line by line, so the text of a
replacement is never interpreted by a substitution engine and every line
that is not targeted keeps its exact bytes, terminator included.
"""

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path

from dotenv_editor.constants import LINE_TERMINATOR
from dotenv_editor.domain.formatter import (
    extract_setter_key,
    format_comment_line,
    format_setter_line,
)
from dotenv_editor.errors import WriteUnauthorized

logger = logging.getLogger(__name__)

# Each chunk is one line plus its "\n" (absent on an unterminated last line).
_LINE_CHUNK_RE = re.compile(r"[^\n]*\n|[^\n]+")


def _split_chunks(buffer: str) -> list[str]:
    return _LINE_CHUNK_RE.findall(buffer)


def _split_terminator(chunk: str) -> tuple[str, str]:
    if chunk.endswith("\r\n"):
        return chunk[:-2], "\r\n"
    if chunk.endswith("\n"):
        return chunk[:-1], "\n"
    return chunk, ""


def _is_writable(path: Path) -> bool:
    return os.access(path, os.W_OK)


class DotenvWriter:
    """Owns the mutable text buffer that ``save`` writes out."""

    def __init__(self) -> None:
        self._buffer: str | None = None

    def set_buffer(self, content: str | None) -> "DotenvWriter":
        self._buffer = content
        return self

    def get_buffer(self) -> str | None:
        return self._buffer

    # ------------------------------------------------------------------
    # Appends
    # ------------------------------------------------------------------

    def _append_line(self, text: str = "") -> "DotenvWriter":
        buffer = self._buffer or ""
        # Keep the current last line intact when the file had no final newline.
        if buffer and not buffer.endswith("\n"):
            buffer += LINE_TERMINATOR
        self._buffer = buffer + text + LINE_TERMINATOR
        return self

    def append_empty_line(self) -> "DotenvWriter":
        logger.debug("Appending empty line")
        return self._append_line()

    def append_comment_line(self, comment: str) -> "DotenvWriter":
        logger.debug("Appending comment line")
        return self._append_line(format_comment_line(comment))

    def append_setter(
        self,
        key: str,
        value: str | None = None,
        comment: str | None = None,
        export: bool = False,
    ) -> "DotenvWriter":
        logger.debug("Appending setter %s", key)
        return self._append_line(format_setter_line(key, value, comment, export))

    # ------------------------------------------------------------------
    # In-place edits
    # ------------------------------------------------------------------

    def update_setter(
        self,
        key: str,
        value: str | None = None,
        comment: str | None = None,
        export: bool = False,
    ) -> "DotenvWriter":
        """Rewrite every line that sets ``key``; all other lines are untouched."""
        if not self._buffer:
            return self
        line = format_setter_line(key, value, comment, export)
        chunks = _split_chunks(self._buffer)
        updated = 0
        for i, chunk in enumerate(chunks):
            body, terminator = _split_terminator(chunk)
            if extract_setter_key(body) == key:
                chunks[i] = line + terminator
                updated += 1
        self._buffer = "".join(chunks)
        logger.debug("Updated %d line(s) for %s", updated, key)
        return self

    def delete_setter(self, key: str) -> "DotenvWriter":
        """Remove every line (with its terminator) that sets ``key``."""
        if not self._buffer:
            return self
        chunks = _split_chunks(self._buffer)
        kept = [c for c in chunks if extract_setter_key(_split_terminator(c)[0]) != key]
        self._buffer = "".join(kept)
        logger.debug("Deleted %d line(s) for %s", len(chunks) - len(kept), key)
        return self

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def ensure_writable(self, path: Path) -> None:
        """Raise WriteUnauthorized unless ``path`` can be written or created."""
        if path.is_file():
            if not _is_writable(path):
                raise WriteUnauthorized(f"Unable to write to the file at {path}.")
        elif not _is_writable(path.parent):
            raise WriteUnauthorized(f"Unable to write to the file at {path}.")

    def save(self, path: str | Path) -> "DotenvWriter":
        """Write the whole buffer to ``path``.

        Readers see either the old file or the new one: content goes to a
        temp file in the same directory which is then renamed over the target.
        When the file is writable but its directory is not, no temp file can
        be created and the file is truncated and rewritten in place. That
        path is not atomic and a concurrent reader may see partial content.
        """
        target = Path(path)
        self.ensure_writable(target)
        content = self._buffer or ""

        if not _is_writable(target.parent):
            # Not atomic: the target is truncated before the new content lands.
            with target.open("w", encoding="utf-8", newline="") as f:
                f.write(content)
            logger.info("Saved %s in place", target)
            return self

        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
        )
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            if target.exists():
                shutil.copymode(target, tmp)
            os.replace(tmp, target)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        logger.info("Saved %s", target)
        return self
