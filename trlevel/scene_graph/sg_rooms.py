"""Room decoding.

Room record (widths per FormatProfile.room):
    i32 x, z, y_bottom, y_top       room origin and vertical extent
    u32 room data word count, then room data:
        u16 vertices, each i16 x,y,z + u16 light [+ u16 attributes, u16 light2]
        u16 quads,    each 4 x u16 vertex + u16 texture
        u16 tris,     each 3 x u16 vertex + u16 texture
        u16 static sprites, each u16 vertex + u16 sprite
    u16 portals (skipped)
    u16 z sectors, u16 x sectors (skipped)
    i16 ambient [+ i16 ambient2, u16 light mode]
    u16 lights, each i32 x,y,z + i16 intensity [+ i16] + i32 falloff [+ i32]
    u16 static meshes, each i32 x,y,z + u16 orientation + u16 light [+ u16] + u16 id
    u16 alternate room, u16 flags

Static mesh descriptor (32 bytes):
    u32 id, u16 mesh, 12 x i16 bounding boxes, u16 flags

Room geometry is always internally lit. Vertex world position is the local
position plus the room origin on the horizontal axes only.
"""

import logging
import math
from dataclasses import dataclass

from mathutils import Matrix, Vector

from ..errors import FormatError, LevelReferenceError
from ..tr_format.tr_constants import (
    MAX_ROOM_LIGHTS,
    NO_INDEX_16,
    ORIENTATION_QUARTER_MASK,
    ORIENTATION_QUARTER_SHIFT,
)
from ..tr_format.tr_stream import LevelStream
from .sg_geometry import textured_texinfo
from .sg_lights import intensity_from_raw, room_light_intensity
from .sg_types import (
    LightMode,
    Mesh,
    MeshPolygon,
    MeshVertex,
    Room,
    RoomLight,
    RoomStaticMesh,
    RoomStaticSprite,
)

_log = logging.getLogger("trlevel.rooms")


@dataclass
class StaticMeshInfo:
    """Static mesh descriptor: maps a static mesh id to a mesh."""
    id: int
    mesh: int
    flags: int


def placement_transform(position, orientation):
    """Translate to `position`, then turn about +Y by the orientation's quarter turns."""
    quarters = (orientation >> ORIENTATION_QUARTER_SHIFT) & ORIENTATION_QUARTER_MASK
    rotation = Matrix.Rotation(quarters * math.pi / 2.0, 4, 'Y')
    return Matrix.Translation(Vector(position)) @ rotation


def load_static_mesh_infos(data, directory, profile, level):
    """Read the static mesh descriptor table."""
    stream = LevelStream(data, directory.offset("static_meshes"))
    infos = {}
    for _ in range(directory.count("static_meshes")):
        static_id, mesh = stream.read("IH")
        stream.skip(24)   # visibility + collision boxes
        flags = stream.read_u16()
        level.require("meshes", mesh)
        infos.setdefault(static_id, StaticMeshInfo(static_id, mesh, flags))
    return infos


def load_rooms(data, directory, profile, level):
    """Decode every room. Needs texinfos, sprites and meshes already loaded."""
    static_infos = load_static_mesh_infos(data, directory, profile, level)

    stream = LevelStream(data, directory.offset("rooms"))
    for room_id in range(directory.count("rooms")):
        level.rooms.append(_read_room(stream, profile.room, level, room_id, static_infos))

    _log.debug("Loaded %d rooms", len(level.rooms))


def _read_room(stream, layout, level, room_id, static_infos):
    x, z, _y_bottom, _y_top = stream.read("iiii")
    origin = (float(x), 0.0, float(z))

    num_data_words = stream.read_u32()
    data_start = stream.tell()
    data_end = data_start + num_data_words * 2

    geometry = Mesh(id=room_id, light_mode=LightMode.INTERNAL)
    raw_lights = []

    for _ in range(stream.read_u16()):
        vx, vy, vz, light = stream.read("hhhH")
        if layout.vertex_has_attributes:
            stream.read("HH")   # attributes, second light value
        intensity = intensity_from_raw(light)
        raw_lights.append(intensity)
        geometry.vertices.append(MeshVertex(
            (vx + origin[0], vy + origin[1], vz + origin[2]),
            (intensity, intensity, intensity),
        ))

    for corners in (4, 3):
        for _ in range(stream.read_u16()):
            raw = stream.read("H" * (corners + 1))
            vertices = raw[:corners]
            for v in vertices:
                if v >= len(geometry.vertices):
                    raise LevelReferenceError(
                        f"Room {room_id} polygon references vertex {v}, "
                        f"room has {len(geometry.vertices)}"
                    )
            geometry.polygons.append(
                MeshPolygon(vertices, textured_texinfo(level, raw[corners]))
            )

    static_sprites = []
    for _ in range(stream.read_u16()):
        vertex, sprite = stream.read("HH")
        if vertex >= len(geometry.vertices):
            raise LevelReferenceError(
                f"Room {room_id} static sprite references vertex {vertex}"
            )
        level.require("sprites", sprite)
        static_sprites.append(RoomStaticSprite(
            sprite=sprite,
            position=geometry.vertices[vertex].position,
            light_intensity=raw_lights[vertex],
        ))

    if stream.tell() > data_end:
        raise FormatError(
            f"Room {room_id} geometry overruns its {num_data_words}-word data block"
        )
    stream.seek(data_end)

    # Portals and sectors are consumed but not decoded.
    num_portals = stream.read_u16()
    stream.skip(num_portals * layout.portal_size)
    num_z_sectors, num_x_sectors = stream.read("HH")
    stream.skip(num_z_sectors * num_x_sectors * layout.sector_size)

    ambient = stream.read_i16()
    if layout.ambient_has_light_mode:
        stream.read("hH")   # second ambient, light mode

    lights = []
    for _ in range(stream.read_u16()):
        lx, ly, lz, intensity = stream.read("iiih")
        if layout.light_has_second_set:
            stream.read_i16()
        falloff = stream.read_i32()
        if layout.light_has_second_set:
            stream.read_i32()
        lights.append(RoomLight(
            position=(float(lx), float(ly), float(lz)),
            intensity=room_light_intensity(intensity),
            falloff=float(falloff),
        ))
    if len(lights) > MAX_ROOM_LIGHTS:
        _log.warning("Room %d has %d lights, renderers expect at most %d",
                     room_id, len(lights), MAX_ROOM_LIGHTS)

    static_meshes = []
    for _ in range(stream.read_u16()):
        sx, sy, sz, orientation, light = stream.read("iiiHH")
        if layout.static_mesh_has_second_light:
            stream.read_u16()
        static_id = stream.read_u16()

        info = static_infos.get(static_id)
        if info is None:
            raise LevelReferenceError(
                f"Room {room_id} places unknown static mesh id {static_id}"
            )
        if level.meshes[info.mesh].light_mode is LightMode.EXTERNAL:
            _log.warning(
                "Room %d: static mesh %d references externally-lit mesh %d, dropping it",
                room_id, static_id, info.mesh)
            continue
        static_meshes.append(RoomStaticMesh(
            mesh=info.mesh,
            transform=placement_transform((sx, sy, sz), orientation),
            light_intensity=intensity_from_raw(light),
        ))

    alternate_room, flags = stream.read("HH")

    return Room(
        id=room_id,
        geometry=geometry,
        ambient_intensity=intensity_from_raw(ambient),
        lights=lights,
        static_meshes=static_meshes,
        static_sprites=static_sprites,
        alternate_room=-1 if alternate_room == NO_INDEX_16 else alternate_room,
        flags=flags,
    )
