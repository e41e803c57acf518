"""Texture animation stepping.

Every step moves each room polygon whose texinfo sits on an animation ring
to the next texinfo of that ring, then notifies the level's room listeners
so the renderer can re-upload the changed rooms.
"""

import logging

_log = logging.getLogger("trlevel.texanim")

DEFAULT_PERIOD = 0.1   # seconds per step


class TextureAnimator:
    """Steps texture-animation rings of one level on wall-clock time."""

    def __init__(self, level, period: float = DEFAULT_PERIOD):
        if period <= 0.0:
            raise ValueError(f"Texture animation period must be positive, got {period}")
        self.level = level
        self.period = period
        self.elapsed = 0.0

    def tick(self, dt: float) -> int:
        """Accumulate `dt` seconds and step once per whole period.

        Returns:
            Number of steps taken.
        """
        self.elapsed += dt
        steps = 0
        while self.elapsed >= self.period:
            self.elapsed -= self.period
            self.step()
            steps += 1
        return steps

    def step(self):
        """Advance every animated room polygon by one ring member.

        Returns:
            Ids of the rooms that changed.
        """
        texinfos = self.level.texinfos
        changed = []
        for room in self.level.rooms:
            dirty = False
            for poly in room.geometry.polygons:
                nxt = texinfos[poly.texinfo].next
                if nxt is not None:
                    poly.texinfo = nxt
                    dirty = True
            if dirty:
                changed.append(room.id)

        for room_id in changed:
            self.level.notify_room_changed(room_id)
        if changed:
            _log.debug("Texture animation step changed %d rooms", len(changed))
        return changed
