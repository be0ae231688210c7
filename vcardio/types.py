from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Protocol, TypedDict


class Property(TypedDict):
    key: str
    value: str


class MediaFetcher(Protocol):
    """Byte-retrieval boundary used for PHOTO and LOGO attachments."""

    def content_type(self, source: str) -> str | None: ...

    def read(self, source: str) -> bytes: ...


Clock = Callable[[], datetime]
Transliterator = Callable[[str], str]


__all__ = [
    "Property",
    "MediaFetcher",
    "Clock",
    "Transliterator",
]
