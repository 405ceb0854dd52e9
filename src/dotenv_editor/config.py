"""Editor settings read from a JSON file.

Location and shape (~/.config/dotenv-editor/config.json):

    {
        "backup_path": "/srv/app/storage/dotenv-editor/backups",
        "auto_backup": true,
        "env_file": "/srv/app/.env"
    }

Every field is optional; a field left out takes the default relative to
the working directory. Names starting with "_" hold free-form notes.
"""

import json
from pathlib import Path

from pydantic import BaseModel, ValidationError

from dotenv_editor.constants import DEFAULT_BACKUP_DIR, DEFAULT_ENV_FILENAME

CONFIG_PATH = Path("~/.config/dotenv-editor/config.json").expanduser()

_README_NAME = "README.md"

_README_CONTENT = """\
# dotenv-editor configuration

Edit `config.json` in this directory to change where backups are kept and
whether a backup is taken before every save.

## Schema

```json
{
    "backup_path": "<directory for backups, default ./storage/dotenv-editor/backups>",
    "auto_backup": true,
    "env_file": "<file edited when --filepath is not given, default ./.env>"
}
```

Keys prefixed with `_` (e.g. `_comment`) are ignored by dotenv-editor.
"""


class EditorConfig(BaseModel):
    """Settings the editor reads at start-up."""

    backup_path: Path | None = None
    auto_backup: bool = True
    env_file: Path | None = None


class ConfigError(Exception):
    """The settings file is present but unreadable as editor settings."""


def load_config(path: Path | None = None) -> EditorConfig:
    """Read editor settings from ``path`` (default: ``CONFIG_PATH``).

    A missing file is created empty, with a README beside it, and the
    defaults are returned. Keys beginning with ``_`` are ignored so the
    file can carry notes.
    """
    path = path or CONFIG_PATH
    if not path.exists():
        _bootstrap(path)
        return EditorConfig()

    try:
        settings = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Could not parse {path} as JSON: {exc}") from exc
    if not isinstance(settings, dict):
        raise ConfigError(f"Expected a JSON object of settings in {path}")

    try:
        return EditorConfig.model_validate(
            {name: value for name, value in settings.items() if not name.startswith("_")}
        )
    except ValidationError as exc:
        raise ConfigError(f"{path} has invalid editor settings: {exc}") from exc


def save_config(config: EditorConfig, path: Path | None = None) -> None:
    """Write ``config`` as indented JSON, leaving out unset paths."""
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.model_dump(mode="json", exclude_none=True), indent=2))


def resolve_backup_path(config: EditorConfig) -> Path:
    """Return the configured backup directory, or the default under the working directory."""
    if config.backup_path is not None:
        return config.backup_path.expanduser()
    return Path.cwd() / DEFAULT_BACKUP_DIR


def resolve_env_path(config: EditorConfig) -> Path:
    """Return the env file to edit when no explicit path is given."""
    if config.env_file is not None:
        return config.env_file.expanduser()
    return Path.cwd() / DEFAULT_ENV_FILENAME


def _bootstrap(path: Path) -> None:
    """First run: write an empty settings file and explain its fields in a README."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{}\n")
    readme = path.parent / _README_NAME
    if not readme.exists():
        readme.write_text(_README_CONTENT)
