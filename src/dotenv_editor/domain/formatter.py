"""Pure functions converting between setter fields and their one-line text form.

A setter line looks like::

    export KEY="some value"  # optional comment

None of these functions touch the file system.
"""

import re
from typing import NamedTuple

KEY_PATTERN = r"[A-Za-z_][A-Za-z0-9_]*"
_KEY_RE = re.compile(rf"^{KEY_PATTERN}$")

# Same shape the writer matches on: optional export prefix, optional
# indentation, then the key immediately followed by "=".
_SETTER_RE = re.compile(rf"^(?P<export>export\s+)?\s*(?P<key>{KEY_PATTERN})=(?P<rest>.*)$")

_EXPORT_PREFIX_RE = re.compile(r"^export\s+")
_QUOTES_RE = re.compile(r"[\"']")
_WHITESPACE_RE = re.compile(r"\s+")

# A quoted value spanning the whole text wins over a shorter one followed by a comment.
_QUOTED_WHOLE_RE = re.compile(r"^(?P<q>[\"'])(?P<value>.*)(?P=q)\s*$")
_QUOTED_VALUE_RE = re.compile(r"^(?P<q>[\"'])(?P<value>.*?)(?P=q)\s*(?:#\s?(?P<comment>.*))?$")
_UNQUOTED_VALUE_RE = re.compile(r"^(?P<value>.*?)(?:(?:^|\s+)#\s?(?P<comment>.*))?$")

_NEEDS_QUOTES_RE = re.compile(r"[\s#]")
_LINE_BREAK_RE = re.compile(r"[\r\n]")


class ParsedSetter(NamedTuple):
    key: str
    value: str
    comment: str | None
    export: bool


def is_valid_key(key: str) -> bool:
    return _KEY_RE.match(key) is not None


def _reject_line_breaks(text: str | None) -> None:
    if text and _LINE_BREAK_RE.search(text):
        raise ValueError(f"Line breaks are not allowed in values or comments: {text!r}")


def format_key(raw: str) -> str:
    """Normalize a raw key token.

    Drops a leading ``export`` marker, any quote characters and all
    whitespace. The result contains neither quotes nor whitespace, so
    applying the function again is a no-op.
    """
    key = _EXPORT_PREFIX_RE.sub("", raw.strip())
    key = _QUOTES_RE.sub("", key)
    return _WHITESPACE_RE.sub("", key)


def format_value(value: str | None) -> str:
    """Render a value for the right-hand side of ``=``.

    ``None`` renders as nothing (``KEY=``). Empty strings and values with
    whitespace or ``#`` are wrapped in double quotes.
    """
    if value is None:
        return ""
    if value == "" or _NEEDS_QUOTES_RE.search(value):
        return f'"{value}"'
    return value


def format_setter_line(
    key: str,
    value: str | None = None,
    comment: str | None = None,
    export: bool = False,
) -> str:
    """Build a single setter line without a trailing terminator.

    Raises ValueError if the value or comment contains a line break, since
    the result must stay on one line.
    """
    for part in (value, comment):
        _reject_line_breaks(part)
    line = f"{'export ' if export else ''}{key}={format_value(value)}"
    if comment:
        line += f"  # {comment}"
    return line


def format_comment_line(text: str) -> str:
    _reject_line_breaks(text)
    return f"# {text}"


def _match_setter(line: str) -> re.Match[str] | None:
    stripped = line.lstrip()
    if not stripped or stripped.startswith("#"):
        return None
    return _SETTER_RE.match(line.rstrip("\r\n"))


def extract_setter_key(line: str) -> str | None:
    """Return the key assigned by ``line``, or None for comments, blanks and other text."""
    m = _match_setter(line)
    return m.group("key") if m else None


def parse_value(raw: str) -> tuple[str, str | None]:
    """Split the text after ``=`` into (value, comment).

    Surrounding single or double quotes are stripped from the value. When
    the whole text is one quoted string it is all value, inner quotes
    included. Otherwise a comment follows the first closing quote, or for
    unquoted values a ``#`` that starts the value or follows whitespace.
    ``abc#def`` stays one value.
    """
    raw = raw.strip()
    m = _QUOTED_WHOLE_RE.match(raw) or _QUOTED_VALUE_RE.match(raw)
    if m is None:
        m = _UNQUOTED_VALUE_RE.match(raw)
        value = m.group("value").rstrip()
    else:
        value = m.group("value")
    comment = m.groupdict().get("comment")
    if comment is not None:
        comment = comment.strip()
    return value, comment


def parse_setter_line(line: str) -> ParsedSetter | None:
    """Parse a full setter line, or return None if ``line`` is not one."""
    m = _match_setter(line)
    if m is None:
        return None
    value, comment = parse_value(m.group("rest"))
    return ParsedSetter(
        key=format_key(m.group("key")),
        value=value,
        comment=comment,
        export=m.group("export") is not None,
    )
