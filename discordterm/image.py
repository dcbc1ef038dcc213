#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Rasterize images into lines of text glyphs for the console."""
import io
import logging

from PIL import Image, UnidentifiedImageError

from .error import ImageError


logger = logging.getLogger(__name__)

# Reversed brightness palette, darkest first. The blank glyph is left out
# so dark pixels stay visible on a dark terminal.
PALETTE = ' .:-=+*#%@'
GLYPHS = PALETTE[1:]

# Terminal character cells are about twice as tall as they are wide
CELL_ASPECT = 2.0


def decode(data):
    """Decode raw image bytes.

    Parameters
    ----------
    data : `bytes`

    Returns
    -------
    `PIL.Image.Image`

    Raises
    ------
    `discordterm.error.ImageError`
        If the bytes are not a supported image.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as ex:
        raise ImageError('cannot decode image: %s' % ex) from ex
    return image


def target_size(size, width, height=0):
    """Compute the glyph grid size for an image.

    Parameters
    ----------
    size : (`int`, `int`)
        Source image size in pixels.
    width : `int`
        Requested width in glyphs, 0 to derive it from `height`.
    height : `int`, optional
        Requested height in lines, 0 to derive it from `width`.

    Returns
    -------
    (`int`, `int`)

    Examples
    --------
    >>> target_size((200, 100), 100)
    (100, 25)
    >>> target_size((200, 100), 40, 10)
    (40, 10)
    >>> target_size((200, 100), 0, 25)
    (100, 25)
    """
    src_width, src_height = size
    if width <= 0 and height <= 0:
        width = src_width
    if width <= 0:
        width = round(height * src_width * CELL_ASPECT / src_height)
    if height <= 0:
        height = round(width * src_height / src_width / CELL_ASPECT)
    return max(1, int(width)), max(1, int(height))


def glyph(luminance, palette=GLYPHS):
    """Map a 0-255 luminance onto a palette glyph.

    Examples
    --------
    >>> glyph(0)
    '.'
    >>> glyph(255)
    '@'
    """
    return palette[luminance * (len(palette) - 1) // 255]


def rasterize(image, width, height=0, color=False, term=None, palette=GLYPHS):
    """Convert an image into lines of glyphs.

    Parameters
    ----------
    image : `PIL.Image.Image`
    width : `int`
        Output width in glyphs.
    height : `int`, optional
        Output height in lines, 0 to keep the aspect ratio.
    color : `bool`, optional
        Prefix every glyph with the pixel colour. Requires `term`.
    term : `blessed.Terminal`, optional
    palette : `str`, optional
        Glyphs ordered from dark to bright.

    Returns
    -------
    `list` of `str`
    """
    size = target_size(image.size, width, height)
    rgb = image.convert('RGB').resize(size)
    gray = rgb.convert('L')
    color = color and term is not None
    logger.debug('rasterize %s -> %s color=%s', image.size, size, color)

    lines = []
    for y in range(size[1]):
        line = []
        for x in range(size[0]):
            ch = glyph(gray.getpixel((x, y)), palette)
            if color:
                ch = term.color_rgb(*rgb.getpixel((x, y))) + ch
            line.append(ch)
        if color:
            line.append(term.normal)
        lines.append(''.join(line))
    return lines
