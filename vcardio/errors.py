from __future__ import annotations


class VCardError(ValueError):
    """Base class for every error raised by vcardio."""


class DuplicateElementError(VCardError):
    def __init__(self, element: str) -> None:
        super().__init__(f'You can only set "{element}" once.')
        self.element = element


class InvalidAttachmentError(VCardError):
    def __init__(self, message: str = "Returned data is not an image.") -> None:
        super().__init__(message)


class EmptyAttachmentPayloadError(VCardError):
    def __init__(self, message: str = "Nothing returned from URL.") -> None:
        super().__init__(message)


class MalformedDateError(VCardError):
    def __init__(self, value: str) -> None:
        super().__init__(f"Could not parse date: {value!r}")
        self.value = value


class SourceUnreadableError(VCardError):
    def __init__(self, source: object) -> None:
        super().__init__(f"File {source} is not readable, or doesn't exist.")
        self.source = source


__all__ = [
    "VCardError",
    "DuplicateElementError",
    "InvalidAttachmentError",
    "EmptyAttachmentPayloadError",
    "MalformedDateError",
    "SourceUnreadableError",
]
