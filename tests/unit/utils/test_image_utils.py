#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Unit tests for image sniffing helpers."""

import pytest

from mimetree.utils.images import (
    ImageSize,
    detect_image_format_from_bytes,
    detect_image_type,
    filename_from_url,
    read_image_size,
)


@pytest.mark.unit
class TestDetectImageFormat:
    """Tests for magic byte detection."""

    @pytest.mark.parametrize(
        "data,expected",
        [
            (b"\x89PNG\r\n\x1a\n" + b"\x00" * 8, "png"),
            (b"\xff\xd8\xff\xe0" + b"\x00" * 8, "jpg"),
            (b"GIF89a" + b"\x00" * 8, "gif"),
            (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "webp"),
            (b"BM" + b"\x00" * 10, "bmp"),
            (b"II*\x00" + b"\x00" * 8, "tiff"),
            (b"\x00\x00\x01\x00" + b"\x00" * 8, "ico"),
            (b'  <svg xmlns="http://www.w3.org/2000/svg"></svg>', "svg"),
            (b'<?xml version="1.0"?>\n<svg></svg>', "svg"),
        ],
    )
    def test_known_formats(self, data, expected):
        """Test each supported signature."""
        assert detect_image_format_from_bytes(data) == expected

    @pytest.mark.parametrize(
        "data", [b"", b"abc", b"<html><body>not an image</body></html>", b'<?xml version="1.0"?><a/>']
    )
    def test_unknown(self, data):
        """Test that non-image content is not detected."""
        assert detect_image_format_from_bytes(data) is None

    def test_detect_image_type(self, png_bytes):
        """Test extension and MIME type together."""
        image_type = detect_image_type(png_bytes)
        assert image_type.ext == "png"
        assert image_type.mime == "image/png"
        assert detect_image_type(b"plain text") is None


@pytest.mark.unit
class TestReadImageSize:
    """Tests for read_image_size."""

    def test_png_size(self, png_bytes):
        """Test dimensions of the 1x1 fixture."""
        size = read_image_size(png_bytes)
        assert (size.width, size.height) == (1, 1)
        assert size.orientation is None

    def test_size_kept_when_exif_unreadable(self, png_bytes, monkeypatch):
        """Test that header dimensions survive a failing EXIF read."""
        from PIL import PngImagePlugin

        def broken_exif(self):
            raise OSError("broken data stream when reading image file")

        monkeypatch.setattr(PngImagePlugin.PngImageFile, "getexif", broken_exif)
        assert read_image_size(png_bytes) == ImageSize(width=1, height=1, orientation=None)

    def test_jpeg_orientation(self):
        """Test that the EXIF orientation tag is reported."""
        import io

        from PIL import Image

        exif = Image.Exif()
        exif[0x0112] = 6
        buffer = io.BytesIO()
        Image.new("RGB", (4, 2), "white").save(buffer, "JPEG", exif=exif)
        assert read_image_size(buffer.getvalue()) == ImageSize(width=4, height=2, orientation=6)

    def test_undecodable(self):
        """Test that unreadable data gives an empty size."""
        assert read_image_size(b"<svg></svg>") == ImageSize(width=None, height=None)


@pytest.mark.unit
class TestFilenameFromUrl:
    """Tests for filename_from_url."""

    def test_forces_detected_extension(self):
        """Test replacing a mismatched extension."""
        assert filename_from_url("https://example.com/img/photo.jpeg?size=2", "jpg") == "photo.jpg"

    def test_keeps_matching_extension(self):
        """Test an extension that already matches."""
        assert filename_from_url("https://example.com/logo.PNG", "png") == "logo.PNG"

    def test_adds_missing_extension(self):
        """Test a path without extension."""
        assert filename_from_url("https://example.com/avatar", "png") == "avatar.png"

    def test_quoted_path(self):
        """Test percent-decoding of the path."""
        assert filename_from_url("https://example.com/my%20image.gif") == "my image.gif"

