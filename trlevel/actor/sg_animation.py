"""Parse animation tables and normalize animation frames.

Animation header (32 bytes):
    u32 frame offset        byte offset into the raw frame words
    u8  ticks per frame
    u8  frame size          words per frame (V2), always 0 in V1
    u16 state id
    8 bytes                 unknown (speed / acceleration)
    u16 first tick, u16 last tick
    u16 next animation, u16 next animation tick
    u16 state change count, u16 state change offset
    u16 command count, u16 command offset

State change (6 bytes):  u16 state id, u16 range count, u16 range offset
Anim range (8 bytes):    u16 first tick, u16 last tick, u16 next anim, u16 next tick

Raw frame encodings:
    V1 (angle sets): 6 bbox words, 3 translation words, u16 angle set count,
        then count x 2 words. The two words of each set are stored swapped
        relative to V2.
    V2 (fixed stride): `frame size` words per frame, same field order as the
        canonical record below.

Canonical frame record (Level.anim_frame_data):
    u16 length              words following this one
    6 words                 bounding box (ignored)
    3 x i16                 root translation x, y, z
    rotation codes, one per model node:
        tag 00 -> two words, Euler triple of three 10-bit angles
                  word0 bits 4..13 = X
                  word0 bits 0..3 | word1 bits 10..15 = Y
                  word1 bits 0..9 = Z
        tag 01/10/11 -> one word, rotation about X / Y / Z by the low 10 bits
    Angle units are 1/1024 of a full turn.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
from mathutils import Quaternion, Vector

from ..errors import FormatError
from ..format_profiles import FRAME_ENCODING_ANGLE_SETS, FRAME_ENCODING_FIXED_STRIDE
from ..scene_graph.sg_types import Animation, AnimRange, AnimStateChange
from ..tr_format.tr_constants import (
    FRAME_ANGLE_SET_COUNT_INDEX,
    FRAME_BBOX_WORDS,
    FRAME_HEADER_WORDS,
    FRAME_TRANSLATION_WORDS,
    ROTATION_ANGLE_MASK,
    ROTATION_TAG_EULER,
    ROTATION_TAG_MASK,
    ROTATION_TAG_X,
    ROTATION_TAG_Y,
    ROTATION_TAG_Z,
    ROTATION_UNITS_PER_TURN,
)
from ..tr_format.tr_stream import LevelStream

_log = logging.getLogger("trlevel.animations")

ANGLE_SCALE = 2.0 * math.pi / ROTATION_UNITS_PER_TURN

_SINGLE_AXES = {
    ROTATION_TAG_X: (1.0, 0.0, 0.0),
    ROTATION_TAG_Y: (0.0, 1.0, 0.0),
    ROTATION_TAG_Z: (0.0, 0.0, 1.0),
}


@dataclass
class AnimFrame:
    """One decoded keyframe: root translation and a rotation per node."""
    translation: Vector
    rotations: List[Quaternion] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Table loading + frame normalization
# ---------------------------------------------------------------------------

def load_animations(data, directory, profile, level):
    """Decode animation tables and rewrite the raw frame words canonically."""
    stream = LevelStream(data, directory.offset("anim_frames"))
    raw_frames = stream.read_array(np.uint16, directory.count("anim_frames")).tolist()

    stream = LevelStream(data, directory.offset("anim_commands"))
    level.anim_commands = stream.read_array(np.int16, directory.count("anim_commands")).tolist()

    stream = LevelStream(data, directory.offset("anim_ranges"))
    for _ in range(directory.count("anim_ranges")):
        level.anim_ranges.append(AnimRange(*stream.read("HHHH")))

    stream = LevelStream(data, directory.offset("anim_state_changes"))
    for _ in range(directory.count("anim_state_changes")):
        level.anim_state_changes.append(AnimStateChange(*stream.read("HHH")))

    stream = LevelStream(data, directory.offset("animations"))
    headers = []
    for i in range(directory.count("animations")):
        (frame_offset, ticks_per_frame, frame_size, state_id, _unknown,
         first_tick, last_tick, next_anim, next_anim_tick,
         num_state_changes, state_change_offset,
         num_commands, command_offset) = stream.read("IBBH8sHHHHHHHH")

        if frame_offset % 2:
            raise FormatError(f"Animation {i} frame offset {frame_offset} is not word aligned")
        _check_frame_size(profile, i, frame_size)

        headers.append((frame_offset // 2, frame_size))
        level.animations.append(Animation(
            state_id=state_id,
            ticks_per_frame=ticks_per_frame,
            first_tick=first_tick,
            last_tick=last_tick,
            next_anim=next_anim,
            next_anim_tick=next_anim_tick,
            num_state_changes=num_state_changes,
            state_change_offset=state_change_offset,
            num_commands=num_commands,
            command_offset=command_offset,
        ))

    _normalize_frames(raw_frames, headers, profile, level)

    _log.debug("Loaded %d animations, %d canonical frame words",
               len(level.animations), len(level.anim_frame_data))


def _check_frame_size(profile, anim_index, frame_size):
    if profile.frame_encoding == FRAME_ENCODING_ANGLE_SETS and frame_size != 0:
        raise FormatError(
            f"Animation {anim_index}: {profile.name} frames carry no frame size, got {frame_size}"
        )
    if profile.frame_encoding == FRAME_ENCODING_FIXED_STRIDE and frame_size == 0:
        raise FormatError(f"Animation {anim_index}: {profile.name} frames need a non-zero frame size")


def _normalize_frames(raw, headers, profile, level):
    """Emit every animation's frames into level.anim_frame_data.

    Each animation must consume exactly the words between its own frame
    offset and the next animation's (or the end of the raw data).
    """
    out = level.anim_frame_data
    offset = 0
    for i, (raw_offset, frame_size) in enumerate(headers):
        level.animations[i].frame_offset = len(out)

        if raw_offset != offset:
            raise FormatError(
                f"Animation {i} frame data starts at word {raw_offset}, "
                f"expected word {offset}"
            )

        end = headers[i + 1][0] if i + 1 < len(headers) else len(raw)
        while offset < end:
            if profile.frame_encoding == FRAME_ENCODING_ANGLE_SETS:
                offset = emit_angle_set_frame(raw, offset, out)
            else:
                offset = emit_fixed_stride_frame(raw, offset, frame_size, out)

        if offset != end:
            raise FormatError(
                f"Animation {i} frames overrun their span by {offset - end} words"
            )


def emit_angle_set_frame(raw, offset, out):
    """Append one V1 frame to `out` in canonical form. Returns the next raw offset."""
    if len(raw) < offset + FRAME_HEADER_WORDS + 1:
        raise FormatError(f"Frame at word {offset} is truncated")

    num_sets = raw[offset + FRAME_ANGLE_SET_COUNT_INDEX]
    if len(raw) < offset + FRAME_HEADER_WORDS + 1 + num_sets * 2:
        raise FormatError(f"Frame at word {offset} declares {num_sets} angle sets past the data end")

    out.append(FRAME_HEADER_WORDS + num_sets * 2)
    out.extend(raw[offset:offset + FRAME_HEADER_WORDS])
    offset += FRAME_HEADER_WORDS + 1

    for _ in range(num_sets):
        out.append(raw[offset + 1])
        out.append(raw[offset])
        offset += 2
    return offset


def emit_fixed_stride_frame(raw, offset, stride, out):
    """Append one V2 frame of `stride` words to `out`. Returns the next raw offset."""
    if len(raw) < offset + stride:
        raise FormatError(f"Frame at word {offset} with stride {stride} is truncated")
    out.append(stride)
    out.extend(raw[offset:offset + stride])
    return offset + stride


# ---------------------------------------------------------------------------
# Rotation codes
# ---------------------------------------------------------------------------

def euler_to_quaternion(x, y, z):
    """Quaternion of the Euler triple (radians), half-angle composition."""
    sx, sy, sz = math.sin(x / 2), math.sin(y / 2), math.sin(z / 2)
    cx, cy, cz = math.cos(x / 2), math.cos(y / 2), math.cos(z / 2)
    sxsy, cxcy = sx * sy, cx * cy
    sxcy, cxsy = sx * cy, cx * sy
    return Quaternion((
        sxsy * sz + cxcy * cz,
        sxcy * cz + cxsy * sz,
        cxsy * cz - sxcy * sz,
        cxcy * sz - sxsy * cz,
    ))


def axis_angle_to_quaternion(axis, angle):
    return Quaternion(axis, angle)


def decode_rotation(words, pos, end):
    """Decode the rotation code at words[pos].

    Returns:
        (Quaternion, position after the code)
    """
    if pos >= end:
        raise FormatError(f"Rotation code at word {pos} overruns its frame")
    w0 = words[pos]
    tag = w0 & ROTATION_TAG_MASK

    if tag == ROTATION_TAG_EULER:
        if pos + 1 >= end:
            raise FormatError(f"Euler rotation at word {pos} overruns its frame")
        w1 = words[pos + 1]
        x = (w0 & 0x3FF0) >> 4
        y = ((w0 & 0x000F) << 6) | ((w1 & 0xFC00) >> 10)
        z = w1 & 0x03FF
        return euler_to_quaternion(x * ANGLE_SCALE, y * ANGLE_SCALE, z * ANGLE_SCALE), pos + 2

    angle = (w0 & ROTATION_ANGLE_MASK) * ANGLE_SCALE
    return axis_angle_to_quaternion(_SINGLE_AXES[tag], angle), pos + 1


def _signed16(word):
    return word - 0x10000 if word & 0x8000 else word


def decode_frame(words, offset, node_count):
    """Decode the canonical frame record at `offset` for a model of `node_count` nodes."""
    if offset >= len(words):
        raise FormatError(f"Frame offset {offset} is outside the frame buffer")
    end = offset + 1 + words[offset]
    if end > len(words):
        raise FormatError(f"Frame at word {offset} runs past the frame buffer")

    pos = offset + 1 + FRAME_BBOX_WORDS
    if pos + FRAME_TRANSLATION_WORDS > end:
        raise FormatError(f"Frame at word {offset} is too short for a translation")
    translation = Vector([float(_signed16(w)) for w in words[pos:pos + FRAME_TRANSLATION_WORDS]])
    pos += FRAME_TRANSLATION_WORDS

    frame = AnimFrame(translation=translation)
    for _ in range(node_count):
        rotation, pos = decode_rotation(words, pos, end)
        frame.rotations.append(rotation)
    return frame


def decode_animation_frames(level, anim_index, node_count) -> Dict[int, AnimFrame]:
    """Decode every frame of an animation for a given node count, once.

    Returns:
        Dict mapping canonical frame offset -> AnimFrame. The dict is cached
        on the level and shared by every instance using the same animation
        and node count.
    """
    animation = level.require("animations", anim_index)
    key = (animation.frame_offset, animation.num_frames, node_count)
    frames = level.frame_cache.get(key)
    if frames is not None:
        return frames

    words = level.anim_frame_data
    frames = {}
    offset = animation.frame_offset
    for _ in range(animation.num_frames):
        frames[offset] = decode_frame(words, offset, node_count)
        offset += words[offset] + 1

    level.frame_cache[key] = frames
    return frames
