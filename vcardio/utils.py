from __future__ import annotations

import re
import unicodedata

CRLF = "\r\n"
FOLD_WIDTH = 75

_UNFOLD_RE = re.compile(r"\n[ \t]")
_GROUP_RE = re.compile(r"^[A-Za-z0-9_]+\.")
_TYPE_PREFIX_RE = re.compile(r"^type=", re.IGNORECASE)
# PHP-style trim set: space, tab, LF, CR, NUL, VT
_TRIM_CHARS = " \t\n\r\0\x0b"


def escape_text(s: object) -> str:
    """Escape newlines for vCard value context (RFC 2425 section 5.8.4).

    Only line breaks are escaped. Semicolons, commas and backslashes are left
    untouched, so structured values written here are emitted verbatim.
    """
    if s is None:
        return ""
    value = str(s)
    return value.replace("\r\n", "\\n").replace("\n", "\\n")


def unescape_text(s: str) -> str:
    return s.replace("\\n", "\n")


def fold_line(line: str, width: int = FOLD_WIDTH) -> str:
    """Fold a content line according to RFC 2425 section 5.8.1.

    Chunks are counted in code points, never in encoded bytes, so a
    multi-byte character is never split across two physical lines. Each
    continuation line starts with a single space.
    """
    if len(line) <= width:
        return line
    chunks = [line[i:i + width] for i in range(0, len(line), width)]
    return (CRLF + " ").join(chunks)


def unfold(text: str) -> list[str]:
    """Normalize line endings, unfold continuation lines and split."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _UNFOLD_RE.sub("", text)
    return text.split("\n")


def trim_line(line: str) -> str:
    return line.strip(_TRIM_CHARS)


def strip_group(line: str) -> str:
    return _GROUP_RE.sub("", line, count=1)


def normalize_type_param(param: str) -> str:
    """``type=WORK`` and ``WORK`` are equivalent; keep the bare token."""
    return _TYPE_PREFIX_RE.sub("", param, count=1)


def split_fields(value: str, count: int, sep: str = ";") -> list[str]:
    """Split a structured value into exactly ``count`` positional fields."""
    parts = value.split(sep)
    parts = parts[:count]
    return parts + [""] * (count - len(parts))


def to_text(value: str | bytes) -> str:
    """Coerce a decoded value to clean text, assuming UTF-8 for raw octets."""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # surrogate-escaped octets from a byte source
        return value.encode("utf-8", "surrogateescape").decode("utf-8", errors="replace")
    return value


def urlize(value: str, separator: str = "-") -> str:
    """Turn arbitrary text into a lowercase ASCII filename fragment."""
    if not value:
        return ""
    ascii_value = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    )
    cleaned = re.sub(r"[^A-Za-z0-9]+", separator, ascii_value.lower())
    return cleaned.strip(separator)


__all__ = [
    "CRLF",
    "FOLD_WIDTH",
    "escape_text",
    "unescape_text",
    "fold_line",
    "unfold",
    "trim_line",
    "strip_group",
    "normalize_type_param",
    "split_fields",
    "to_text",
    "urlize",
]
