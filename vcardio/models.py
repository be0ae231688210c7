from __future__ import annotations

from dataclasses import dataclass, field
from collections.abc import Mapping
from datetime import datetime
from types import MappingProxyType
from typing import Any, Optional, Tuple, Union


@dataclass(frozen=True)
class Address:
    name: str = ""
    extended: str = ""
    street: str = ""
    city: str = ""
    region: str = ""
    zip: str = ""
    country: str = ""


def _empty_buckets() -> Mapping[str, Tuple[Any, ...]]:
    return MappingProxyType({})


@dataclass(frozen=True)
class ContactRecord:
    fullname: Optional[str] = None
    lastname: Optional[str] = None
    firstname: Optional[str] = None
    additional: Optional[str] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    birthday: Optional[datetime] = None
    organization: Optional[str] = None
    title: Optional[str] = None
    note: Optional[str] = None
    categories: Optional[Tuple[str, ...]] = None
    label: Optional[str] = None
    revision: Optional[str] = None
    version: Optional[str] = None
    photo: Optional[str] = None
    raw_photo: Optional[bytes] = None
    logo: Optional[str] = None
    raw_logo: Optional[bytes] = None
    address: Mapping[str, Tuple[Address, ...]] = field(default_factory=_empty_buckets)
    phone: Mapping[str, Tuple[str, ...]] = field(default_factory=_empty_buckets)
    email: Mapping[str, Tuple[str, ...]] = field(default_factory=_empty_buckets)
    url: Mapping[str, Tuple[str, ...]] = field(default_factory=_empty_buckets)


# Outcome of decoding one physical line.
@dataclass(frozen=True)
class Applied:
    element: str
    fields: dict[str, Any] = field(default_factory=dict)
    # (collection, type-key, value) for multi-valued elements
    entry: Optional[Tuple[str, str, Any]] = None


@dataclass(frozen=True)
class Ignored:
    element: str
    reason: str


@dataclass(frozen=True)
class Error:
    element: str
    error: Exception


LineOutcome = Union[Applied, Ignored, Error]
