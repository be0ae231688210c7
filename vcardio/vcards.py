from __future__ import annotations

import base64
from dataclasses import asdict, fields
from os import PathLike
from typing import Any

from .models import ContactRecord
from .parser import VCardParser


def parse_vcards(text: str | bytes) -> list[ContactRecord]:
    """Parse vCard text into a list of decoded contact records.

    Output shape per record (see ``ContactRecord``):
      fullname, lastname, firstname, additional, prefix, suffix: str | None
      birthday: datetime | None
      organization, title, note, label, revision, version: str | None
      categories: tuple[str, ...] | None
      photo / logo: str | None         # URL or path as written
      raw_photo / raw_logo: bytes | None  # decoded inline payload
      address: {type-key: (Address, ...)}
      phone, email, url: {type-key: (str, ...)}
    """
    return VCardParser(text).cards


def read_vcard_file(path: str | PathLike[str]) -> list[ContactRecord]:
    return VCardParser.from_file(path).cards


def record_to_json(record: ContactRecord) -> dict[str, Any]:
    """JSON-ready dict: bytes as base64, dates as ISO 8601, tuples as lists."""
    data = {f.name: getattr(record, f.name) for f in fields(record)}
    for key in ("raw_photo", "raw_logo"):
        if data[key] is not None:
            data[key] = base64.b64encode(data[key]).decode("ascii")
    if data["birthday"] is not None:
        data["birthday"] = data["birthday"].isoformat()
    if data["categories"] is not None:
        data["categories"] = list(data["categories"])
    data["address"] = {
        k: [asdict(a) for a in v] for k, v in record.address.items()
    }
    for key in ("phone", "email", "url"):
        data[key] = {k: list(v) for k, v in data[key].items()}
    return data


__all__ = ["parse_vcards", "read_vcard_file", "record_to_json"]
