from __future__ import annotations

import base64
import binascii
import logging
import quopri
import re
from datetime import datetime
from os import PathLike
from types import MappingProxyType
from typing import Any, Iterator

from .errors import MalformedDateError, SourceUnreadableError
from .models import Address, Applied, ContactRecord, Error, Ignored, LineOutcome
from .utils import (
    normalize_type_param,
    split_fields,
    strip_group,
    to_text,
    trim_line,
    unescape_text,
    unfold,
)

logger = logging.getLogger("vcardio")

DEFAULT_ADDRESS_KEY = "WORK;POSTAL"
DEFAULT_TYPE_KEY = "default"

_NAME_FIELDS = ("lastname", "firstname", "additional", "prefix", "suffix")
_SCALARS = {
    "FN": "fullname",
    "REV": "revision",
    "VERSION": "version",
    "ORG": "organization",
    "TITLE": "title",
    "LABEL": "label",
}
_COLLECTIONS = {"TEL": "phone", "EMAIL": "email", "URL": "url"}
_WHITESPACE_RE = re.compile(rb"\s+")


def parse_birthday(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise MalformedDateError(value) from exc


def parse_name(value: str) -> dict[str, str]:
    return dict(zip(_NAME_FIELDS, split_fields(value, len(_NAME_FIELDS))))


def parse_address(value: str) -> Address:
    return Address(*split_fields(value, 7))


def _decode_value(value: str | bytes, params: list[str]) -> tuple[str | bytes, list[str], bool]:
    """Apply transfer encodings and charsets in the order they appear.

    Returns the decoded value, the parameters left over for the type-key and
    whether the value was decoded from a binary transfer encoding.
    """
    remaining: list[str] = []
    raw = False
    for param in params:
        lowered = param.lower()
        if "base64" in lowered or "encoding=b" in lowered:
            data = value.encode("utf-8", "surrogateescape") if isinstance(value, str) else value
            # folded 2.1 payloads keep the indentation of continuation lines
            value = base64.b64decode(_WHITESPACE_RE.sub(b"", data), validate=True)
            raw = True
        elif "quoted-printable" in lowered:
            data = value.encode("utf-8", "surrogateescape") if isinstance(value, str) else value
            value = quopri.decodestring(data)
            raw = True
        elif lowered.startswith("charset="):
            value = _transcode(value, param[len("charset="):])
        else:
            remaining.append(param)
    return value, remaining, raw


def _transcode(value: str | bytes, charset: str) -> str | bytes:
    try:
        if isinstance(value, bytes):
            return value.decode(charset)
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            # octets that were not valid UTF-8 survive as surrogate escapes
            return value.encode("utf-8", "surrogateescape").decode(charset)
        return value
    except (LookupError, UnicodeError):
        logger.debug("Could not transcode value from %s, keeping it unchanged", charset)
        return value


def decode_line(line: str) -> LineOutcome:
    """Decode one unfolded content line into a tagged outcome."""
    line = strip_group(line)
    type_spec, _, value = line.partition(":")
    params = type_spec.split(";")
    element = params.pop(0).upper()
    params = [normalize_type_param(p) for p in params]

    try:
        decoded, params, raw = _decode_value(value, params)
    except (binascii.Error, ValueError) as exc:
        return Ignored(element, f"undecodable value: {exc}")

    if element in _SCALARS:
        return Applied(element, {_SCALARS[element]: to_text(decoded)})
    if element == "N":
        return Applied(element, parse_name(to_text(decoded)))
    if element == "BDAY":
        text = to_text(decoded)
        if not text.strip():
            return Ignored(element, "empty date")
        try:
            return Applied(element, {"birthday": parse_birthday(text)})
        except MalformedDateError as exc:
            return Error(element, exc)
    if element == "ADR":
        key = ";".join(params) if params else DEFAULT_ADDRESS_KEY
        return Applied(element, entry=("address", key, parse_address(to_text(decoded))))
    if element in _COLLECTIONS:
        key = ";".join(params) if params else DEFAULT_TYPE_KEY
        return Applied(element, entry=(_COLLECTIONS[element], key, to_text(decoded)))
    if element in ("PHOTO", "LOGO"):
        name = element.lower()
        if raw:
            data = decoded if isinstance(decoded, bytes) else decoded.encode("utf-8")
            return Applied(element, {f"raw_{name}": data})
        return Applied(element, {name: to_text(decoded)})
    if element == "NOTE":
        return Applied(element, {"note": unescape_text(to_text(decoded))})
    if element == "CATEGORIES":
        cats = tuple(c.strip() for c in to_text(decoded).split(","))
        return Applied(element, {"categories": cats})
    return Ignored(element, "unknown element")


class _RecordDraft:
    """Mutable accumulator for a record between BEGIN and END."""

    def __init__(self) -> None:
        self.fields: dict[str, Any] = {}
        self.collections: dict[str, dict[str, list[Any]]] = {}

    def apply(self, outcome: LineOutcome) -> None:
        if isinstance(outcome, Error):
            raise outcome.error
        if isinstance(outcome, Ignored):
            logger.debug("Ignored %s line: %s", outcome.element, outcome.reason)
            return
        self.fields.update(outcome.fields)
        if outcome.entry is not None:
            collection, key, value = outcome.entry
            self.collections.setdefault(collection, {}).setdefault(key, []).append(value)

    def freeze(self) -> ContactRecord:
        buckets = {
            name: MappingProxyType({key: tuple(values) for key, values in bucket.items()})
            for name, bucket in self.collections.items()
        }
        return ContactRecord(**self.fields, **buckets)


class VCardParser:
    """Decode vCard text into an ordered list of ContactRecords.

    Records are available by position (``current``/``advance``/``rewind``),
    by index and by iteration.
    """

    def __init__(self, content: str | bytes) -> None:
        if isinstance(content, bytes):
            content = content.decode("utf-8", "surrogateescape")
        self.content = content
        self._cards: list[ContactRecord] = []
        self._position = 0
        self._parse()

    @classmethod
    def from_file(cls, filename: str | PathLike[str]) -> VCardParser:
        try:
            with open(filename, "rb") as f:
                data = f.read()
        except OSError as exc:
            raise SourceUnreadableError(filename) from exc
        return cls(data)

    def _parse(self) -> None:
        draft: _RecordDraft | None = None
        for line in unfold(self.content):
            line = trim_line(line)
            upper = line.upper()
            if upper == "BEGIN:VCARD":
                if draft is not None:
                    logger.debug("Discarding vCard without END:VCARD")
                draft = _RecordDraft()
            elif upper == "END:VCARD":
                if draft is not None:
                    self._cards.append(draft.freeze())
                    draft = None
            elif draft is not None and line:
                draft.apply(decode_line(line))
        if draft is not None:
            logger.debug("Discarding unterminated vCard at end of input")
        logger.debug("Parsed %d vCard(s)", len(self._cards))

    # -- positioning ------------------------------------------------------

    @property
    def position(self) -> int:
        return self._position

    def rewind(self) -> None:
        self._position = 0

    def valid(self) -> bool:
        return 0 <= self._position < len(self._cards)

    def current(self) -> ContactRecord:
        if not self.valid():
            raise IndexError("invalid")
        return self._cards[self._position]

    def advance(self) -> None:
        self._position += 1

    # -- random access -----------------------------------------------------

    @property
    def cards(self) -> list[ContactRecord]:
        return list(self._cards)

    def card_at(self, index: int) -> ContactRecord:
        if 0 <= index < len(self._cards):
            return self._cards[index]
        raise IndexError(index)

    def __getitem__(self, index: int) -> ContactRecord:
        return self.card_at(index)

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[ContactRecord]:
        return iter(self._cards)


__all__ = [
    "DEFAULT_ADDRESS_KEY",
    "DEFAULT_TYPE_KEY",
    "VCardParser",
    "decode_line",
    "parse_address",
    "parse_birthday",
    "parse_name",
]
