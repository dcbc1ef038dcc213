"""
Unit tests for discordterm/image.py

Tests image decoding, output sizing and glyph rasterization using
small in-memory Pillow images.
"""
import io
from unittest.mock import Mock

import pytest
from PIL import Image

from discordterm.error import ImageError
from discordterm.image import decode, target_size, glyph, rasterize, GLYPHS


def png_bytes(size, color):
    buf = io.BytesIO()
    Image.new('RGB', size, color).save(buf, format='PNG')
    return buf.getvalue()


class TestDecode:
    """Test decoding of image bytes"""

    def test_decode_png(self):
        image = decode(png_bytes((4, 2), 'white'))
        assert image.size == (4, 2)

    def test_decode_garbage_raises(self):
        with pytest.raises(ImageError):
            decode(b'definitely not an image')

    def test_decode_empty_raises(self):
        with pytest.raises(ImageError):
            decode(b'')


class TestTargetSize:
    """Test output grid sizing"""

    def test_height_from_aspect_ratio(self):
        # 2:1 character cells halve the line count
        assert target_size((100, 100), 50) == (50, 25)

    def test_explicit_height(self):
        assert target_size((100, 100), 50, 7) == (50, 7)

    def test_no_size_uses_source_width(self):
        assert target_size((20, 40), 0) == (20, 20)

    def test_never_empty(self):
        assert target_size((1000, 1), 10) == (10, 1)


class TestGlyph:
    """Test luminance to glyph mapping"""

    def test_palette_has_no_blank(self):
        assert ' ' not in GLYPHS

    def test_monotonic(self):
        indexes = [GLYPHS.index(glyph(lum)) for lum in range(256)]
        assert indexes == sorted(indexes)

    def test_mid_grey(self):
        assert glyph(128) == GLYPHS[4]


class TestRasterize:
    """Test rasterizing images into lines"""

    def test_black_image(self):
        lines = rasterize(Image.new('RGB', (8, 4), 'black'), 4)
        assert lines == ['....']

    def test_white_image(self):
        lines = rasterize(Image.new('RGB', (8, 8), 'white'), 3, 2)
        assert lines == ['@@@', '@@@']

    def test_converts_palette_images(self):
        image = Image.new('P', (4, 4))
        lines = rasterize(image, 2, 2)
        assert len(lines) == 2
        assert all(len(line) == 2 for line in lines)

    def test_color_prefixes_each_glyph(self):
        term = Mock()
        term.color_rgb.return_value = '<c>'
        term.normal = '</c>'
        lines = rasterize(Image.new('RGB', (2, 2), (255, 0, 0)), 2, 1,
                          color=True, term=term)
        assert len(lines) == 1
        assert lines[0].startswith('<c>')
        assert lines[0].endswith('</c>')
        assert lines[0].count('<c>') == 2
        term.color_rgb.assert_called_with(255, 0, 0)

    def test_color_needs_terminal(self):
        lines = rasterize(Image.new('RGB', (2, 2), 'white'), 2, 1, color=True)
        assert lines == ['@@']


def test_decompression_bomb_raises_image_error(monkeypatch):
    """Oversized images are reported like any other undecodable image"""
    data = png_bytes((200, 200), 'white')
    monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 100)
    with pytest.raises(ImageError):
        decode(data)
