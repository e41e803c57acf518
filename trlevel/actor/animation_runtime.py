"""Animation playback for placed model instances.

A ModelObject owns a playback cursor (integer tick plus sub-tick time) and
a flat list of per-node world transforms, rebuilt from scratch every time
the cursor moves. Only looping within the active animation is performed;
next-animation links are kept on the Animation but never followed here.
"""

import logging
from typing import List, Optional

from mathutils import Matrix, Quaternion, Vector

from ..errors import AnimationRuntimeError
from ..tr_format.tr_constants import TICKS_PER_SECOND
from .sg_animation import AnimFrame, decode_animation_frames

_log = logging.getLogger("trlevel.runtime")

TICK_DURATION = 1.0 / TICKS_PER_SECOND


def slerp(q0: Quaternion, q1: Quaternion, t: float) -> Quaternion:
    """Shortest-arc spherical interpolation. The end points are returned exactly."""
    if t <= 0.0:
        return q0.copy()
    if t >= 1.0:
        return q1.copy()
    if q0 == q1:
        return q0.copy()
    return q0.slerp(q1, t)


class ModelObject:
    """A model placed in a room, with its own animation cursor."""

    def __init__(self, level, model_index: int, room: int = 0,
                 transform: Optional[Matrix] = None, light_intensity: float = 1.0):
        self.level = level
        self.model_index = model_index
        self.model = level.require("models", model_index)
        self.room = room
        self.transform = transform if transform is not None else Matrix.Identity(4)
        self.light_intensity = light_intensity

        self.animation: Optional[int] = self.model.animation
        self.anim_tick = 0
        self.anim_tick_time = 0.0
        self.node_transforms: List[Matrix] = []

        self._frames = None
        if self.animation is not None:
            anim = level.require("animations", self.animation)
            self.anim_tick = anim.first_tick
            self._frames = decode_animation_frames(level, self.animation, len(self.model.nodes))
        else:
            _log.debug("Model %d has no default animation, holding bind pose", self.model.id)

        self.update_node_transforms()

    def __repr__(self):
        return (f"ModelObject(model={self.model.id}, room={self.room}, "
                f"animation={self.animation}, tick={self.anim_tick})")

    # -- Playback ----------------------------------------------------------

    def tick(self, dt: float) -> None:
        """Advance the cursor by `dt` seconds and refresh node transforms."""
        if self.animation is None or dt <= 0.0:
            return
        anim = self.level.animations[self.animation]

        self.anim_tick_time += dt
        while self.anim_tick_time >= TICK_DURATION:
            self.anim_tick_time -= TICK_DURATION
            self.anim_tick += 1
            if self.anim_tick > anim.last_tick:
                self.anim_tick = anim.first_tick

        self.update_node_transforms()

    def update_node_transforms(self) -> None:
        """Rebuild the world transform of every node from the current frame."""
        frame = self.smooth_frame()

        transforms = []
        for i, node in enumerate(self.model.nodes):
            if i == 0:
                base = Matrix.Translation(frame.translation)
            else:
                base = transforms[node.parent]
            transform = base @ Matrix.Translation(Vector(node.offset))
            transform = transform @ frame.rotations[i].to_matrix().to_4x4()
            transforms.append(transform)

        self.node_transforms = transforms

    # -- Frame lookup --------------------------------------------------------

    def smooth_frame(self) -> AnimFrame:
        """Interpolate the two frames around the cursor."""
        if self.animation is None:
            return AnimFrame(
                translation=Vector((0.0, 0.0, 0.0)),
                rotations=[Quaternion() for _ in self.model.nodes],
            )

        anim = self.level.animations[self.animation]
        words = self.level.anim_frame_data
        ticks_per_frame = max(1, anim.ticks_per_frame)

        elapsed = self.anim_tick - anim.first_tick
        frame = elapsed // ticks_per_frame

        offset0 = self._frame_offset(anim, frame)
        if frame >= anim.num_frames - 1:
            offset1 = anim.frame_offset
        else:
            offset1 = offset0 + words[offset0] + 1

        f0 = self._lookup(offset0)
        f1 = self._lookup(offset1)

        alpha = ((elapsed % ticks_per_frame) + self.anim_tick_time * TICKS_PER_SECOND) / ticks_per_frame
        return AnimFrame(
            translation=f0.translation.lerp(f1.translation, alpha),
            rotations=[slerp(q0, q1, alpha) for q0, q1 in zip(f0.rotations, f1.rotations)],
        )

    def _frame_offset(self, anim, frame):
        """Word offset of canonical frame number `frame` of `anim`."""
        words = self.level.anim_frame_data
        offset = anim.frame_offset
        for _ in range(frame):
            if offset >= len(words):
                break
            offset += words[offset] + 1
        if offset >= len(words):
            raise AnimationRuntimeError(
                f"Frame {frame} of animation {self.animation} lies outside the "
                f"{len(words)}-word frame buffer"
            )
        return offset

    def _lookup(self, offset):
        frame = self._frames.get(offset)
        if frame is None:
            raise AnimationRuntimeError(
                f"No decoded frame at word {offset} for animation {self.animation}"
            )
        return frame
