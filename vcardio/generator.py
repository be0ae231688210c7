from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from .media import MediaResolver
from .store import PropertyStore
from .types import Clock, MediaFetcher, Property, Transliterator
from .utils import CRLF, escape_text, fold_line, urlize

VERSION = "3.0"
DEFAULT_ADDRESS_TYPE = "WORK;POSTAL"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VCardBuilder:
    """Collects vCard 3.0 properties and serializes them to wire text.

    Single-valued elements (name, company, note, ...) may be added once;
    email, address, phone number, url and label may repeat.
    """

    def __init__(
        self,
        charset: str = "utf-8",
        clock: Clock | None = None,
        transliterate: Transliterator | None = None,
        fetcher: MediaFetcher | None = None,
    ) -> None:
        self.charset = charset
        self._clock = clock or _utcnow
        self._transliterate = transliterate or urlize
        self._media = MediaResolver(fetcher)
        self._store = PropertyStore()
        self._filename: str | None = None

    # -- charset / filename ------------------------------------------------

    def set_charset(self, charset: str) -> None:
        self.charset = charset

    @property
    def charset_string(self) -> str:
        return f";CHARSET={self.charset}"

    @property
    def filename(self) -> str:
        return self._filename or "unknown"

    @property
    def file_extension(self) -> str:
        return "vcf"

    def set_filename(
        self, value: str | Iterable[str], overwrite: bool = True, separator: str = "-"
    ) -> None:
        if not isinstance(value, str):
            value = separator.join(value)
        value = value.strip(separator)
        value = re.sub(r"\s+", separator, value)
        if not value:
            return
        value = self._transliterate(value.lower())
        if not value:
            return
        if overwrite or self._filename is None:
            self._filename = value
        else:
            self._filename = f"{self._filename}{separator}{value}"

    # -- properties --------------------------------------------------------

    @property
    def properties(self) -> list[Property]:
        return self._store.properties

    def has_property(self, key: str) -> bool:
        return self._store.has_property(key)

    def when(self, value: Any, callback: Callable[[VCardBuilder, Any], Any]) -> VCardBuilder:
        """Apply ``callback(self, value)`` only when ``value`` is truthy."""
        if value:
            callback(self, value)
        return self

    def add_name(
        self,
        last_name: str = "",
        first_name: str = "",
        additional: str = "",
        prefix: str = "",
        suffix: str = "",
    ) -> VCardBuilder:
        self._store.ensure_definable("name")
        values = [v for v in (prefix, first_name, additional, last_name, suffix) if v]
        self.set_filename(values)

        self._store.set_property(
            "name",
            "N" + self.charset_string,
            ";".join([last_name, first_name, additional, prefix, suffix]),
        )
        fn_key = "FN" + self.charset_string
        if not self.has_property(fn_key):
            self._store.set_property("fullname", fn_key, " ".join(values).strip())
        return self

    def add_address(
        self,
        name: str = "",
        extended: str = "",
        street: str = "",
        city: str = "",
        region: str = "",
        zip: str = "",
        country: str = "",
        type: str = DEFAULT_ADDRESS_TYPE,
    ) -> VCardBuilder:
        """Add an ADR property.

        ``type`` may be DOM, INTL, POSTAL, PARCEL, HOME, WORK or any
        ``;``-separated combination such as ``"WORK;PARCEL;POSTAL"``.
        """
        value = ";".join([name, extended, street, city, region, zip, country])
        type_part = f";{type}" if type else ""
        self._store.set_property("address", f"ADR{type_part}{self.charset_string}", value)
        return self

    def add_birthday(self, date: str) -> VCardBuilder:
        """``date`` is expected as YYYY-MM-DD."""
        self._store.set_property("birthday", "BDAY", date)
        return self

    def add_company(self, company: str, department: str = "") -> VCardBuilder:
        value = company + (f";{department}" if department else "")
        self._store.set_property("company", "ORG" + self.charset_string, value)
        if self._filename is None:
            self.set_filename(company)
        return self

    def add_email(self, address: str, type: str = "") -> VCardBuilder:
        """``type`` may be PREF, WORK, HOME or a combination like ``"PREF;WORK"``."""
        type_part = f";{type}" if type else ""
        self._store.set_property("email", f"EMAIL;INTERNET{type_part}", address)
        return self

    def add_jobtitle(self, jobtitle: str) -> VCardBuilder:
        self._store.set_property("jobtitle", "TITLE" + self.charset_string, jobtitle)
        return self

    def add_role(self, role: str) -> VCardBuilder:
        self._store.set_property("role", "ROLE" + self.charset_string, role)
        return self

    def add_label(self, label: str, type: str = "") -> VCardBuilder:
        type_part = f";{type}" if type else ""
        self._store.set_property("label", f"LABEL{type_part}{self.charset_string}", label)
        return self

    def add_note(self, note: str) -> VCardBuilder:
        self._store.set_property("note", "NOTE" + self.charset_string, note)
        return self

    def add_categories(self, categories: Iterable[str]) -> VCardBuilder:
        self._store.set_property(
            "categories",
            "CATEGORIES" + self.charset_string,
            ",".join(categories).strip(),
        )
        return self

    def add_phone_number(self, number: str, type: str = "") -> VCardBuilder:
        """``type`` may be PREF, WORK, HOME, VOICE, FAX, MSG, CELL, PAGER, BBS,
        CAR, MODEM, ISDN, VIDEO or a combination like ``"PREF;WORK;VOICE"``.
        """
        type_part = f";{type}" if type else ""
        self._store.set_property("phone_number", f"TEL{type_part}", number)
        return self

    def add_url(self, url: str, type: str = "") -> VCardBuilder:
        type_part = f";{type}" if type else ""
        self._store.set_property("url", f"URL{type_part}", url)
        return self

    # -- media -------------------------------------------------------------

    def add_photo(self, source: str, include: bool = True) -> VCardBuilder:
        return self._add_media("PHOTO", "photo", source, include)

    def add_logo(self, source: str, include: bool = True) -> VCardBuilder:
        return self._add_media("LOGO", "logo", source, include)

    def add_photo_content(self, content: bytes) -> VCardBuilder:
        return self._add_media_content("PHOTO", "photo", content)

    def add_logo_content(self, content: bytes) -> VCardBuilder:
        return self._add_media_content("LOGO", "logo", content)

    def _add_media(self, prop: str, element: str, source: str, include: bool) -> VCardBuilder:
        self._store.ensure_definable(element)
        key, value = self._media.resolve(prop, source, include)
        self._store.set_property(element, key, value)
        return self

    def _add_media_content(self, prop: str, element: str, content: bytes) -> VCardBuilder:
        self._store.ensure_definable(element)
        key, value = self._media.resolve_content(prop, content)
        self._store.set_property(element, key, value)
        return self

    # -- output ------------------------------------------------------------

    def build_vcard(self) -> str:
        rev = self._clock().strftime("%Y-%m-%dT%H:%M:%SZ")
        lines = ["BEGIN:VCARD", f"VERSION:{VERSION}", f"REV:{rev}"]
        for prop in self._store.properties:
            lines.append(fold_line(prop["key"] + ":" + escape_text(prop["value"])))
        lines.append("END:VCARD")
        return CRLF.join(lines) + CRLF


__all__ = ["VCardBuilder", "VERSION", "DEFAULT_ADDRESS_TYPE"]
