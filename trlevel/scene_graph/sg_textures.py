"""Palette, texture pages, texinfos and texture-animation rings.

Page 0 of every level is a synthetic palette page and texinfos [0, 256)
address its 256 colours, one texel each. Coloured polygons index those
texinfos directly; real pages therefore start at index 1 and real
texinfos at index 256.

Texinfo record (20 bytes):
    u16 alpha mode
    u16 texture page (0-based, before the palette page shift)
    4 x (u8 sub-pixel, u8 x, u8 sub-pixel, u8 y) corner coordinates

Texture-animation data (u16 words):
    u16 chain count
    per chain: u16 (length - 1), then `length` texinfo indices
"""

import logging

import numpy as np

from ..errors import FormatError, LevelReferenceError
from ..tr_format.tr_constants import (
    PALETTE_PAGE_INDEX,
    PALETTE_SIZE,
    PALETTE_TEXINFO_COUNT,
    TEXPAGE_PIXELS,
    TEXPAGE_SIZE,
)
from ..tr_format.tr_stream import LevelStream
from ..utils.image_convert import (
    build_palette_page,
    decode_argb1555_pages,
    expand_indexed_pages,
)
from .sg_types import Texinfo

_log = logging.getLogger("trlevel.textures")


def _texel_center(value):
    return (value + 0.5) / TEXPAGE_SIZE


def load_palette(data, directory, profile, level):
    """Register the palette page and the 256 palette texinfos."""
    if level.texpages or level.texinfos:
        raise RuntimeError("Palette must be the first thing loaded into a Level")

    stream = LevelStream(data, directory.offset("palette8"))
    palette = stream.read_array(np.uint8, PALETTE_SIZE * 3).reshape(PALETTE_SIZE, 3)
    level.texpages.append(build_palette_page(palette))

    v = _texel_center(0)
    for i in range(PALETTE_TEXINFO_COUNT):
        u = _texel_center(i)
        level.texinfos.append(Texinfo(
            texcoords=((u, v), (u, v), (u, v), (u, v)),
            alpha_mode=0,
            page=PALETTE_PAGE_INDEX,
        ))


def load_texpages(data, directory, profile, level):
    """Decode every real texture page to RGBA and append it after the palette page."""
    num_pages = directory.count("texpages8")

    if profile.has_16bit_texpages:
        stream = LevelStream(data, directory.offset("texpages16"))
        pixels = stream.read_array(np.uint16, num_pages * TEXPAGE_PIXELS)
        pages = decode_argb1555_pages(
            pixels.reshape(num_pages, TEXPAGE_SIZE, TEXPAGE_SIZE)
        )
    else:
        stream = LevelStream(data, directory.offset("texpages8"))
        indices = stream.read_array(np.uint8, num_pages * TEXPAGE_PIXELS)
        pages = expand_indexed_pages(
            indices.reshape(num_pages, TEXPAGE_SIZE, TEXPAGE_SIZE),
            level.texpages[PALETTE_PAGE_INDEX],
        )

    level.texpages.extend(pages)
    _log.debug("Loaded %d texture pages", num_pages)


def load_texinfos(data, directory, profile, level):
    """Decode texinfo records and link texture-animation rings."""
    stream = LevelStream(data, directory.offset("texinfos"))
    num_pages = len(level.texpages)

    for i in range(directory.count("texinfos")):
        alpha_mode, page = stream.read("HH")
        page += 1   # skip the palette page
        if page >= num_pages:
            raise LevelReferenceError(
                f"Texinfo {i} references texture page {page - 1}, "
                f"only {num_pages - 1} pages present"
            )
        raw = stream.read("BBBBBBBBBBBBBBBB")
        texcoords = tuple(
            (_texel_center(raw[j * 4 + 1]), _texel_center(raw[j * 4 + 3]))
            for j in range(4)
        )
        level.texinfos.append(Texinfo(
            texcoords=texcoords,
            alpha_mode=alpha_mode,
            page=page,
        ))

    num_chains = _link_texture_animations(data, directory, level)
    _log.debug("Loaded %d texinfos, %d animation rings",
               directory.count("texinfos"), num_chains)


def _link_texture_animations(data, directory, level):
    """Turn each animation chain into a ring of `next` links. Returns the chain count."""
    num_words = directory.count("texanim_chains")
    if num_words == 0:
        return 0

    stream = LevelStream(data, directory.offset("texanim_chains"))
    end = stream.tell() + num_words * 2

    num_chains = stream.read_u16()
    for _ in range(num_chains):
        length = stream.read_u16() + 1
        members = [stream.read_u16() + PALETTE_TEXINFO_COUNT for _ in range(length)]
        for member in members:
            level.require("texinfos", member)
        for j, member in enumerate(members):
            level.texinfos[member].next = members[(j + 1) % length]

    if stream.tell() > end:
        raise FormatError(
            f"Texture animation chains overrun their section by {stream.tell() - end} bytes"
        )
    return num_chains


def follow_ring(level, texinfo_id):
    """Return the texinfo ids of the animation ring starting at `texinfo_id`."""
    ring = [texinfo_id]
    current = level.texinfos[texinfo_id].next
    while current is not None and current != texinfo_id:
        ring.append(current)
        current = level.texinfos[current].next
        if len(ring) > len(level.texinfos):
            raise FormatError(f"Texinfo {texinfo_id} is on a chain that never closes")
    return ring
