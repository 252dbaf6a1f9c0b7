import re
from types import SimpleNamespace

import pytest

from core.errors import UploadError, ValidationError
from core.storage import (
    ImageKitImageStore,
    check_image_size,
    make_object_name,
    resolve_content_type,
    upload_image,
)


def test_object_name_keeps_extension_and_adds_time_and_suffix():
    name = make_object_name("Burner Head.JPEG", now=1700000000.123)
    assert re.fullmatch(r"1700000000123-[0-9a-f]{6}\.jpeg", name)


def test_object_names_differ_for_same_file_and_time():
    names = {make_object_name("photo.png", now=1700000000) for _ in range(20)}
    assert len(names) > 1


def test_object_name_prefix_and_default_extension():
    assert make_object_name("no-extension", prefix="category-").startswith("category-")
    assert make_object_name(None).endswith(".jpg")


def test_content_type_from_extension_when_missing():
    assert resolve_content_type("part.png", None) == "image/png"
    assert resolve_content_type("part.png", "application/octet-stream") == "image/png"
    assert resolve_content_type("part", None) == "image/jpeg"


def test_non_images_are_rejected():
    with pytest.raises(ValidationError):
        resolve_content_type("notes.txt", "text/plain")
    with pytest.raises(ValidationError):
        resolve_content_type("notes.txt", None)


def test_tiny_files_are_rejected():
    with pytest.raises(ValidationError):
        check_image_size(b"abc")


class FakeImageKit:
    def __init__(self, url="https://ik.example.com/item-images/x.png", error=None):
        self.url = url
        self.error = error
        self.calls = []

    def upload_file(self, file, file_name, options):
        self.calls.append((file_name, file.read()))
        if self.error:
            raise self.error
        return SimpleNamespace(url=self.url, file_id="f1", name=file_name)


async def test_imagekit_store_returns_cdn_url(png_bytes):
    client = FakeImageKit()
    store = ImageKitImageStore(bucket="item-images", client=client)

    url = await upload_image(store, png_bytes, "photo.png")

    assert url == "https://ik.example.com/item-images/x.png"
    file_name, sent = client.calls[0]
    assert file_name.endswith(".png")
    assert sent == png_bytes


async def test_imagekit_failure_is_upload_error(png_bytes):
    store = ImageKitImageStore(bucket="item-images", client=FakeImageKit(error=RuntimeError("401 unauthorized")))
    with pytest.raises(UploadError) as exc:
        await upload_image(store, png_bytes, "photo.png")
    assert "401" in str(exc.value)


async def test_imagekit_without_url_is_upload_error(png_bytes):
    store = ImageKitImageStore(bucket="item-images", client=FakeImageKit(url=None))
    with pytest.raises(UploadError):
        await upload_image(store, png_bytes, "photo.png")
