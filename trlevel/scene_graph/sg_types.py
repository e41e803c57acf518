"""Decoded level entities.

The Level owns every decoded entity in flat, append-only lists. Entities
refer to each other only by index into those lists (texinfo ids, mesh ids,
sprite ids, room ids, ...), never by holding the other object.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from mathutils import Matrix, Vector

from ..errors import LevelReferenceError

_log = logging.getLogger("trlevel.level")

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]


class LightMode(enum.Enum):
    """How a mesh's per-vertex light attribute is interpreted."""
    INTERNAL = "internal"   # baked RGB intensity
    EXTERNAL = "external"   # vertex normal, lit at runtime


@dataclass
class Texinfo:
    """Texture coordinates, page and alpha mode of one texture tile."""
    texcoords: Tuple[Vec2, Vec2, Vec2, Vec2]
    alpha_mode: int
    page: int
    next: Optional[int] = None   # next texinfo id in an animation ring


@dataclass
class MeshVertex:
    position: Vec3
    light: Vec3     # intensity (r, g, b) or normal, per Mesh.light_mode


@dataclass
class MeshPolygon:
    vertices: Tuple[int, ...]   # 3 or 4 vertex indices
    texinfo: int

    @property
    def is_quad(self):
        return len(self.vertices) == 4


@dataclass
class Mesh:
    id: int
    light_mode: LightMode
    vertices: List[MeshVertex] = field(default_factory=list)
    polygons: List[MeshPolygon] = field(default_factory=list)

    def vertex_array(self) -> np.ndarray:
        """Return an (N, 6) float32 array of position + light attribute."""
        arr = np.array(
            [v.position + v.light for v in self.vertices], dtype=np.float32
        ).reshape(len(self.vertices), 6)
        arr.setflags(write=False)
        return arr

    def triangles(self):
        """Yield (i0, i1, i2, texinfo) per triangle, splitting quads 0-1-2 / 0-2-3."""
        for poly in self.polygons:
            v = poly.vertices
            yield (v[0], v[1], v[2], poly.texinfo)
            if poly.is_quad:
                yield (v[0], v[2], v[3], poly.texinfo)


@dataclass
class ModelNode:
    parent: int     # -1 for the root
    offset: Vec3
    mesh: int


@dataclass
class Model:
    id: int
    nodes: List[ModelNode] = field(default_factory=list)
    animation: Optional[int] = None   # default animation id


@dataclass
class AnimRange:
    """Tick range of a state change and the animation it dispatches to."""
    first_tick: int
    last_tick: int
    next_anim: int
    next_anim_tick: int


@dataclass
class AnimStateChange:
    state_id: int
    num_ranges: int
    range_offset: int


@dataclass
class Animation:
    state_id: int
    ticks_per_frame: int
    first_tick: int
    last_tick: int
    next_anim: int
    next_anim_tick: int
    frame_offset: int = 0   # word offset into Level.anim_frame_data
    num_state_changes: int = 0
    state_change_offset: int = 0
    num_commands: int = 0
    command_offset: int = 0

    @property
    def num_frames(self):
        return (self.last_tick - self.first_tick) // max(1, self.ticks_per_frame) + 1


@dataclass
class Sprite:
    id: int
    positions: Tuple[Vec2, Vec2, Vec2, Vec2]
    texcoords: Tuple[Vec2, Vec2, Vec2, Vec2]
    page: int


@dataclass
class SpriteSequence:
    id: int
    sprites: List[int] = field(default_factory=list)


@dataclass
class RoomLight:
    position: Vec3
    intensity: float
    falloff: float


@dataclass
class RoomStaticMesh:
    mesh: int
    transform: Matrix
    light_intensity: float


@dataclass
class RoomStaticSprite:
    sprite: int
    position: Vec3
    light_intensity: float


@dataclass
class Room:
    id: int
    geometry: Mesh
    ambient_intensity: float = 1.0
    lights: List[RoomLight] = field(default_factory=list)
    static_meshes: List[RoomStaticMesh] = field(default_factory=list)
    static_sprites: List[RoomStaticSprite] = field(default_factory=list)
    alternate_room: int = -1
    flags: int = 0


@dataclass
class SpriteObject:
    sequence: int
    room: int
    position: Vector
    light_intensity: float
    frame: int = 0


@dataclass
class Level:
    """Aggregate owning every decoded entity of one level file."""

    version: object = None

    rooms: List[Room] = field(default_factory=list)
    texpages: List[np.ndarray] = field(default_factory=list)
    texinfos: List[Texinfo] = field(default_factory=list)
    meshes: List[Mesh] = field(default_factory=list)
    models: List[Model] = field(default_factory=list)
    sprites: List[Sprite] = field(default_factory=list)
    sprite_sequences: List[SpriteSequence] = field(default_factory=list)

    animations: List[Animation] = field(default_factory=list)
    anim_state_changes: List[AnimStateChange] = field(default_factory=list)
    anim_ranges: List[AnimRange] = field(default_factory=list)
    anim_commands: List[int] = field(default_factory=list)
    anim_frame_data: List[int] = field(default_factory=list)

    model_objects: list = field(default_factory=list)
    sprite_objects: List[SpriteObject] = field(default_factory=list)

    # Decoded frames keyed by (frame offset, frame count, node count).
    frame_cache: Dict[tuple, dict] = field(default_factory=dict, repr=False)
    _room_listeners: List[Callable[[int], None]] = field(default_factory=list, repr=False)

    def require(self, kind: str, index: int):
        """Return entity `index` from the list named `kind`, or raise LevelReferenceError."""
        seq = getattr(self, kind)
        if not 0 <= index < len(seq):
            raise LevelReferenceError(
                f"{kind} index {index} out of range (have {len(seq)})"
            )
        return seq[index]

    def texpage_array(self) -> np.ndarray:
        """Stack all pages into one (P, 256, 256, 4) uint8 array."""
        if not self.texpages:
            return np.zeros((0, 256, 256, 4), dtype=np.uint8)
        return np.stack(self.texpages)

    def add_room_listener(self, callback: Callable[[int], None]) -> None:
        """Register a callback invoked with a room id after its geometry changes."""
        self._room_listeners.append(callback)

    def remove_room_listener(self, callback: Callable[[int], None]) -> None:
        self._room_listeners.remove(callback)

    def notify_room_changed(self, room_id: int) -> None:
        """Tell every registered listener that room `room_id` needs re-uploading."""
        self.require("rooms", room_id)
        _log.debug("Room %d geometry changed", room_id)
        for callback in list(self._room_listeners):
            callback(room_id)

    def summary(self):
        return (
            f"{len(self.rooms)} rooms, {len(self.texpages)} texpages, "
            f"{len(self.texinfos)} texinfos, {len(self.meshes)} meshes, "
            f"{len(self.models)} models, {len(self.animations)} animations, "
            f"{len(self.sprites)} sprites, {len(self.sprite_sequences)} sequences, "
            f"{len(self.model_objects)} model objects, "
            f"{len(self.sprite_objects)} sprite objects"
        )
