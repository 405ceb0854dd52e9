"""Application-wide constants."""

from pathlib import Path

APP_NAME = "dotenv-editor"

DEFAULT_ENV_FILENAME = ".env"

# Relative to the working directory when no backup path is configured.
DEFAULT_BACKUP_DIR = Path("storage") / "dotenv-editor" / "backups"

BACKUP_FILENAME_PREFIX = ".env.backup_"
BACKUP_FILENAME_SUFFIX = ""

# Renders as YYYY_MM_DD_HHmmss, e.g. 2024_03_01_134502.
BACKUP_TIMESTAMP_FORMAT = "%Y_%m_%d_%H%M%S"

# Written next to the backup directory the first time it is created.
SENTINEL_FILENAME = ".gitignore"
SENTINEL_CONTENT = "*\n!.gitignore\n"

LINE_TERMINATOR = "\n"

# APP_ENV values that make destructive CLI commands ask for confirmation.
PRODUCTION_ENVIRONMENTS: tuple[str, ...] = ("production", "prod")

TABLE_COLUMNS = ("#", "Key", "Value", "Comment", "Export")
BACKUP_COLUMNS = ("Filename", "Created at", "Path")
