"""Sprites and sprite sequences.

Sprite record (16 bytes):
    u16 texture page
    u8  x, u8 y           top-left texel on the page
    u16 w, u16 h          size as (texels * 256 + 255)
    i16 left, top, right, bottom   quad corners in world units, Y down

Sprite sequence record (8 bytes):
    u32 type id
    i16 negated frame count
    u16 first sprite

Corner order is bottom-left, top-left, top-right, bottom-right; the
vertical axis is flipped so +Y points up in the generated quad.
"""

import logging

from ..tr_format.tr_constants import TEXPAGE_SIZE
from ..tr_format.tr_stream import LevelStream
from .sg_types import Sprite, SpriteSequence

_log = logging.getLogger("trlevel.sprites")


def sprite_geometry(x, y, w, h, left, top, right, bottom):
    """Return (positions, texcoords) of a sprite quad.

    Returns:
        Two 4-tuples of (u, v) / (x, y) pairs in corner order
        bottom-left, top-left, top-right, bottom-right.
    """
    u0 = (x + 0.5) / TEXPAGE_SIZE
    v0 = (y + 0.5) / TEXPAGE_SIZE
    u1 = (x + 0.5 + (w - 255.0) / TEXPAGE_SIZE) / TEXPAGE_SIZE
    v1 = (y + 0.5 + (h - 255.0) / TEXPAGE_SIZE) / TEXPAGE_SIZE

    texcoords = ((u0, v1), (u0, v0), (u1, v0), (u1, v1))
    positions = (
        (float(left), float(-bottom)),
        (float(left), float(-top)),
        (float(right), float(-top)),
        (float(right), float(-bottom)),
    )
    return positions, texcoords


def load_sprites(data, directory, profile, level):
    stream = LevelStream(data, directory.offset("sprites"))
    for i in range(directory.count("sprites")):
        page, x, y, w, h, left, top, right, bottom = stream.read("HBBHHhhhh")
        page += 1   # skip the palette page
        level.require("texpages", page)
        positions, texcoords = sprite_geometry(x, y, w, h, left, top, right, bottom)
        level.sprites.append(Sprite(
            id=i,
            positions=positions,
            texcoords=texcoords,
            page=page,
        ))
    _log.debug("Loaded %d sprites", len(level.sprites))


def load_sprite_sequences(data, directory, profile, level):
    stream = LevelStream(data, directory.offset("sprite_sequences"))
    for _ in range(directory.count("sprite_sequences")):
        type_id, neg_count, first = stream.read("IhH")
        count = (-neg_count) & 0xFFFF
        sequence = SpriteSequence(id=type_id)
        for j in range(count):
            level.require("sprites", first + j)
            sequence.sprites.append(first + j)
        level.sprite_sequences.append(sequence)
    _log.debug("Loaded %d sprite sequences", len(level.sprite_sequences))
