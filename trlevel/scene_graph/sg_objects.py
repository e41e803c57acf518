"""Placed objects (items).

Object record (22 bytes V1, 24 bytes V2):
    u16 type id             matched against model / sprite sequence ids
    u16 room
    i32 x, y, z             world position
    u16 orientation         top two bits = quarter turns about +Y
    u16 light intensity     0xFFFF = fully lit
    [u16 second light intensity, V2 only]
    u16 flags

One record may instance a model, a sprite sequence, or both.
"""

import logging

from mathutils import Vector

from ..actor.animation_runtime import ModelObject
from ..tr_format.tr_stream import LevelStream
from .sg_lights import object_intensity
from .sg_rooms import placement_transform
from .sg_types import SpriteObject

_log = logging.getLogger("trlevel.objects")


def load_objects(data, directory, profile, level):
    """Instance every placed object. Needs models, sequences and rooms loaded."""
    models_by_id = {}
    for i, model in enumerate(level.models):
        models_by_id.setdefault(model.id, i)
    sequences_by_id = {}
    for i, sequence in enumerate(level.sprite_sequences):
        sequences_by_id.setdefault(sequence.id, i)

    fmt = "HHiiiHHHH" if profile.object_has_second_light else "HHiiiHHH"
    stream = LevelStream(data, directory.offset("objects"))
    for i in range(directory.count("objects")):
        fields = stream.read(fmt)
        type_id, room, x, y, z, orientation, light = fields[:7]
        level.require("rooms", room)
        intensity = object_intensity(light)

        model_index = models_by_id.get(type_id)
        sequence_index = sequences_by_id.get(type_id)

        if model_index is not None:
            level.model_objects.append(ModelObject(
                level,
                model_index,
                room=room,
                transform=placement_transform((x, y, z), orientation),
                light_intensity=intensity,
            ))

        if sequence_index is not None:
            level.sprite_objects.append(SpriteObject(
                sequence=sequence_index,
                room=room,
                position=Vector((float(x), float(y), float(z))),
                light_intensity=intensity,
            ))

        if model_index is None and sequence_index is None:
            _log.debug("Object %d: type id %d matches no model or sprite sequence", i, type_id)

    _log.debug("Placed %d model objects, %d sprite objects",
               len(level.model_objects), len(level.sprite_objects))
