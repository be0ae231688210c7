from __future__ import annotations

import logging

from .errors import DuplicateElementError
from .types import Property

logger = logging.getLogger("vcardio")

MULTIPLE_PROPERTIES_ALLOWED = frozenset(
    {"email", "address", "phone_number", "url", "label"}
)


class PropertyStore:
    """Ordered property list guarded by per-element uniqueness."""

    def __init__(self) -> None:
        self._properties: list[Property] = []
        self._defined: dict[str, bool] = {}

    def ensure_definable(self, element: str) -> None:
        if element not in MULTIPLE_PROPERTIES_ALLOWED and self._defined.get(element):
            raise DuplicateElementError(element)

    def set_property(self, element: str, key: str, value: str) -> None:
        self.ensure_definable(element)
        self._defined[element] = True
        self._properties.append({"key": key, "value": value})
        logger.debug("Set %s property %s", element, key)

    def has_property(self, key: str) -> bool:
        for prop in self._properties:
            if prop["key"] == key and prop["value"] != "":
                return True
        return False

    @property
    def properties(self) -> list[Property]:
        return list(self._properties)

    def __len__(self) -> int:
        return len(self._properties)


__all__ = ["MULTIPLE_PROPERTIES_ALLOWED", "PropertyStore"]
