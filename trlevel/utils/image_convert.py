"""Texture page conversion utilities.

Handles conversion of level texture pages to RGBA8888:
- 6-bit VGA palette -> synthetic 256x256 palette page
- 8-bit palette-indexed pages -> RGBA (through the palette page)
- 16-bit ARGB1555 pages -> RGBA

All pages are 256x256; results are (256, 256, 4) uint8 numpy arrays.
"""

import numpy as np

from ..tr_format.tr_constants import (
    PALETTE_COMPONENT_SCALE,
    PALETTE_SIZE,
    TEXPAGE_SIZE,
)


def build_palette_page(palette):
    """Build the palette page from 256 RGB triplets of 6-bit components.

    Row 0 holds the palette colours; index 0 is the transparent colour.
    Every other row is transparent black.

    Args:
        palette: (256, 3) uint8 array-like of 6-bit VGA components

    Returns:
        (256, 256, 4) uint8 array
    """
    rgb = np.asarray(palette, dtype=np.uint16).reshape(PALETTE_SIZE, 3)
    page = np.zeros((TEXPAGE_SIZE, TEXPAGE_SIZE, 4), dtype=np.uint8)
    page[0, :, :3] = (rgb * PALETTE_COMPONENT_SCALE).astype(np.uint8)
    page[0, :, 3] = 255
    page[0, 0, 3] = 0
    return page


def expand_indexed_pages(indices, palette_page):
    """Expand 8-bit palette-indexed pages through row 0 of the palette page.

    Args:
        indices: (P, 256, 256) uint8 array of palette indices
        palette_page: page returned by build_palette_page()

    Returns:
        list of P (256, 256, 4) uint8 arrays
    """
    lut = palette_page[0]
    return [lut[page] for page in indices]


def decode_argb1555_pages(pixels):
    """Decode 16-bit ARGB1555 pages to RGBA.

    Bit 15 is alpha (0 or 255), then 5 bits each of R, G, B. Channels are
    widened by replicating their top bits into the low bits.

    Args:
        pixels: (P, 256, 256) uint16 array

    Returns:
        list of P (256, 256, 4) uint8 arrays
    """
    pixels = np.asarray(pixels, dtype=np.uint16)
    pages = []
    for page in pixels:
        out = np.empty((TEXPAGE_SIZE, TEXPAGE_SIZE, 4), dtype=np.uint8)
        for channel, shift in enumerate((10, 5, 0)):
            c = (page >> shift) & 0x1F
            out[:, :, channel] = ((c << 3) | (c >> 2)).astype(np.uint8)
        out[:, :, 3] = np.where(page & 0x8000, 255, 0).astype(np.uint8)
        pages.append(out)
    return pages
