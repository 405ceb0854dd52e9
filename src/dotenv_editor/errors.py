"""Error kinds raised by the editor core.

Every class carries an ``exit_code`` so command surfaces can map a failure
to a distinct non-zero status without inspecting messages.
"""


class DotenvEditorError(Exception):
    """Base class for all editor failures."""

    exit_code: int = 1


class FileNotFound(DotenvEditorError):
    """Raised when a file an operation requires does not exist."""

    exit_code = 2


class KeyNotFound(DotenvEditorError):
    """Raised when a value is requested for a key the file does not set."""

    exit_code = 3


class NoBackupAvailable(DotenvEditorError):
    """Raised when restoring from the latest backup but none exist."""

    exit_code = 4


class WriteUnauthorized(DotenvEditorError):
    """Raised when the target file (or its directory, for creation) is not writable."""

    exit_code = 5
