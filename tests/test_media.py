import base64
import io

import pytest
import requests
from PIL import Image

from vcardio import media
from vcardio.errors import (
    DuplicateElementError,
    EmptyAttachmentPayloadError,
    InvalidAttachmentError,
)
from vcardio.generator import VCardBuilder
from vcardio.media import HttpMediaFetcher, image_subtype, is_url, sniff_content_type


def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (2, 2), (255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


class FakeFetcher:
    def __init__(self, types, payloads=None):
        self.types = types
        self.payloads = payloads or {}
        self.probed = []
        self.reads = []

    def content_type(self, source):
        self.probed.append(source)
        if source not in self.types:
            raise FileNotFoundError(source)
        return self.types[source]

    def read(self, source):
        self.reads.append(source)
        return self.payloads.get(source, b"")


URL = "https://example.com/avatar.jpg"


def test_inline_url_is_base64_encoded():
    payload = b"\xff\xd8\xff\xe0fake-jpeg"
    fetcher = FakeFetcher({URL: "image/jpeg"}, {URL: payload})
    b = VCardBuilder(fetcher=fetcher).add_photo(URL)
    assert b.properties == [
        {
            "key": "PHOTO;ENCODING=b;TYPE=JPEG",
            "value": base64.b64encode(payload).decode("ascii"),
        }
    ]
    assert fetcher.reads == [URL]


def test_url_reference_is_not_fetched():
    fetcher = FakeFetcher({URL: "image/jpeg; charset=binary"})
    b = VCardBuilder(fetcher=fetcher).add_logo(URL, include=False)
    assert b.properties == [{"key": "LOGO;VALUE=URL;TYPE=JPEG", "value": URL}]
    assert fetcher.reads == []


def test_local_path_reference_is_stored_verbatim():
    fetcher = FakeFetcher({"/srv/logo.png": "image/png"})
    b = VCardBuilder(fetcher=fetcher).add_logo("/srv/logo.png", include=False)
    assert b.properties == [{"key": "LOGO", "value": "/srv/logo.png"}]


def test_non_image_is_rejected_before_mutation():
    fetcher = FakeFetcher({URL: "text/html; charset=utf-8"}, {URL: b"<html>"})
    b = VCardBuilder(fetcher=fetcher)
    with pytest.raises(InvalidAttachmentError):
        b.add_photo(URL)
    assert b.properties == []
    assert fetcher.reads == []


def test_unreadable_source_is_invalid():
    b = VCardBuilder(fetcher=FakeFetcher({}))
    with pytest.raises(InvalidAttachmentError):
        b.add_photo("/does/not/exist.png")


def test_empty_payload():
    fetcher = FakeFetcher({URL: "image/png"}, {URL: b""})
    b = VCardBuilder(fetcher=fetcher)
    with pytest.raises(EmptyAttachmentPayloadError):
        b.add_photo(URL)
    assert b.properties == []


def test_second_photo_fails_without_probing():
    fetcher = FakeFetcher({URL: "image/jpeg"})
    b = VCardBuilder(fetcher=fetcher).add_photo(URL, include=False)
    with pytest.raises(DuplicateElementError):
        b.add_photo(URL, include=False)
    assert fetcher.probed == [URL]


def test_photo_content_is_sniffed():
    data = png_bytes()
    b = VCardBuilder().add_photo_content(data)
    assert b.properties[0]["key"] == "PHOTO;ENCODING=b;TYPE=PNG"
    assert base64.b64decode(b.properties[0]["value"]) == data
    with pytest.raises(InvalidAttachmentError):
        VCardBuilder().add_logo_content(b"plain text, not an image")


def test_sniff_and_subtype_helpers():
    assert sniff_content_type(png_bytes()) == "image/png"
    assert sniff_content_type(b"") is None
    assert image_subtype("image/svg+xml") == "SVG+XML"
    assert image_subtype("IMAGE/gif") == "GIF"
    with pytest.raises(InvalidAttachmentError):
        image_subtype(None)
    with pytest.raises(InvalidAttachmentError):
        image_subtype("application/pdf")
    assert is_url("http://example.com/a.png")
    assert not is_url("/tmp/a.png")
    assert not is_url("relative/a.png")


def test_http_fetcher_reads_local_files(tmp_path):
    image = tmp_path / "avatar.png"
    image.write_bytes(png_bytes())
    text = tmp_path / "notes.txt"
    text.write_text("hello", encoding="utf-8")

    fetcher = HttpMediaFetcher()
    assert fetcher.content_type(str(image)) == "image/png"
    assert fetcher.content_type(str(text)) == "text/plain"
    assert fetcher.read(str(image)) == image.read_bytes()

    b = VCardBuilder(fetcher=fetcher).add_photo(str(image))
    assert b.properties[0]["key"] == "PHOTO;ENCODING=b;TYPE=PNG"


def test_extension_alone_does_not_make_an_image(tmp_path):
    fake = tmp_path / "fake.png"
    fake.write_text("definitely not a png", encoding="utf-8")
    fetcher = HttpMediaFetcher()
    assert fetcher.content_type(str(fake)) is None

    b = VCardBuilder(fetcher=fetcher)
    with pytest.raises(InvalidAttachmentError):
        b.add_photo(str(fake))
    assert b.properties == []


def test_svg_is_accepted_only_with_svg_content(tmp_path):
    logo = tmp_path / "logo.svg"
    logo.write_text(
        '<svg xmlns="http://www.w3.org/2000/svg" width="1" height="1"/>', encoding="utf-8"
    )
    broken = tmp_path / "broken.svg"
    broken.write_text("plain text", encoding="utf-8")

    fetcher = HttpMediaFetcher()
    assert fetcher.content_type(str(logo)) == "image/svg+xml"
    assert fetcher.content_type(str(broken)) is None


class FakeResponse:
    def __init__(self, status=200, headers=None):
        self.status_code = status
        self.ok = status < 400
        self.headers = headers or {}

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(str(self.status_code))

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.mark.parametrize(
    "head", [FakeResponse(405), FakeResponse(200, {})], ids=["rejected", "no-header"]
)
def test_remote_type_falls_back_to_get(monkeypatch, head):
    gets = []

    def fake_get(url, **kwargs):
        gets.append(url)
        return FakeResponse(200, {"Content-Type": "image/png"})

    monkeypatch.setattr(media.requests, "head", lambda url, **kwargs: head)
    monkeypatch.setattr(media.requests, "get", fake_get)
    assert HttpMediaFetcher().content_type(URL) == "image/png"
    assert gets == [URL]


def test_remote_type_uses_head_when_it_answers(monkeypatch):
    def fail_get(url, **kwargs):
        raise AssertionError("GET should not be needed")

    monkeypatch.setattr(
        media.requests, "head", lambda url, **kwargs: FakeResponse(200, {"Content-Type": "image/gif"})
    )
    monkeypatch.setattr(media.requests, "get", fail_get)
    assert HttpMediaFetcher().content_type(URL) == "image/gif"
