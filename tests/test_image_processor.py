"""Tests for image loading, thumbnails and data-URI helpers."""

import pytest
from PIL import Image

from conftest import make_png_data_uri
from text_image_prompt_tools.image_processor import (
    ImageProcessor,
    aspect_ratio,
    data_uri_size,
    image_dimensions,
    is_image_too_large,
    make_thumbnail,
)


@pytest.mark.parametrize(
    "width, height, expected",
    [(1920, 1080, "16:9"), (1024, 1024, "1:1"), (800, 1200, "2:3"), (0, 10, "")],
)
def test_aspect_ratio(width, height, expected):
    assert aspect_ratio(width, height) == expected


def test_dimensions_of_data_uri():
    assert image_dimensions(make_png_data_uri(64, 48)) == (64, 48)


def test_dimensions_of_garbage_is_none():
    assert image_dimensions("data:image/png;base64,!!!") is None


def test_size_and_large_check():
    uri = make_png_data_uri()
    assert data_uri_size("https://example.com/a.png") == 0
    assert data_uri_size(uri) == len(uri.split(",", 1)[1])
    assert not is_image_too_large(uri)
    assert is_image_too_large(uri, limit=10)


def test_thumbnail_fits_bounds():
    thumb = make_thumbnail(make_png_data_uri(800, 400), max_size=100)

    assert thumb.startswith("data:image/jpeg;base64,")
    assert image_dimensions(thumb) == (100, 50)


def test_thumbnail_passes_urls_through():
    assert make_thumbnail("https://example.com/a.png") == "https://example.com/a.png"


class TestImageProcessor:

    def test_process_file_resizes_and_reports_metadata(self, tmp_path):
        path = tmp_path / "wide.jpg"
        Image.new("RGB", (2048, 1152), color="blue").save(path, format="JPEG")

        result = ImageProcessor(quality="quick").load(path)

        assert result["image_url"].startswith("data:image/jpeg;base64,")
        assert image_dimensions(result["image_url"]) == (512, 288)
        metadata = result["metadata"]
        assert metadata["filename"] == "wide.jpg"
        assert (metadata["width"], metadata["height"]) == (2048, 1152)
        assert metadata["aspect_ratio"] == "16:9"

    def test_transparent_png_stays_png(self, tmp_path):
        path = tmp_path / "logo.png"
        Image.new("RGBA", (40, 40), color=(0, 0, 0, 0)).save(path, format="PNG")

        result = ImageProcessor().load(path)

        assert result["image_url"].startswith("data:image/png;base64,")

    def test_same_file_is_cached(self, tmp_path):
        path = tmp_path / "a.png"
        Image.new("RGB", (10, 10)).save(path, format="PNG")
        processor = ImageProcessor()

        assert processor.load(path) is processor.load(path)

    def test_url_kept_as_is(self):
        result = ImageProcessor().load("https://example.com/cat.jpg")
        assert result == {"image_url": "https://example.com/cat.jpg", "metadata": {"source": "url"}}

    def test_data_uri_metadata(self):
        result = ImageProcessor().load(make_png_data_uri(32, 18))
        assert result["metadata"]["aspect_ratio"] == "16:9"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ImageProcessor().load(tmp_path / "missing.png")

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ValueError, match="Unsupported"):
            ImageProcessor().load(path)
