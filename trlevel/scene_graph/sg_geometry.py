"""Mesh decoding.

Meshes live in one shared word blob, addressed through a table of byte
offsets (mesh pointers). Several pointers may share one mesh body.

Mesh body:
    10 bytes  bounding sphere (skipped)
    i16       vertex count, then count x (i16 x, i16 y, i16 z)
    i16       light attribute count:
                > 0  -> that many normals (i16 x3), mesh is externally lit
                <= 0 -> -count baked intensities (i16), mesh is internally lit
    i16       textured quads,  each 4 x u16 vertex + u16 texture
    i16       textured tris,   each 3 x u16 vertex + u16 texture
    i16       coloured quads,  each 4 x u16 vertex + u16 palette index
    i16       coloured tris,   each 3 x u16 vertex + u16 palette index
"""

import logging

import numpy as np

from ..errors import FormatError
from ..tr_format.tr_constants import (
    COLORED_POLY_MASK,
    MESH_BOUNDING_SPHERE_SIZE,
    PALETTE_TEXINFO_COUNT,
    TEXTURED_POLY_MASK,
)
from ..tr_format.tr_stream import LevelStream
from .sg_lights import intensity_from_raw
from .sg_types import LightMode, Mesh, MeshPolygon, MeshVertex

_log = logging.getLogger("trlevel.meshes")


def textured_texinfo(level, raw):
    """Resolve a textured polygon's texture field to a texinfo id."""
    texinfo = (raw & TEXTURED_POLY_MASK) + PALETTE_TEXINFO_COUNT
    level.require("texinfos", texinfo)
    return texinfo


def colored_texinfo(level, raw):
    """Resolve a coloured polygon's texture field to a palette texinfo id."""
    return raw & COLORED_POLY_MASK


def read_polygons(stream, level, mesh, count, num_vertices, colored):
    """Append `count` polygons of `num_vertices` corners each to `mesh`."""
    resolve = colored_texinfo if colored else textured_texinfo
    fmt = "H" * (num_vertices + 1)
    for _ in range(count):
        raw = stream.read(fmt)
        vertices = raw[:num_vertices]
        for v in vertices:
            if v >= len(mesh.vertices):
                raise FormatError(
                    f"Mesh {mesh.id} polygon references vertex {v}, "
                    f"mesh has {len(mesh.vertices)}"
                )
        mesh.polygons.append(MeshPolygon(vertices, resolve(level, raw[num_vertices])))


def load_meshes(data, directory, profile, level):
    """Decode every mesh addressed by the mesh pointer table."""
    stream = LevelStream(data, directory.offset("mesh_pointers"))
    pointers = stream.read_array(np.uint32, directory.count("mesh_pointers"))

    mesh_data_offset = directory.offset("mesh_data")
    mesh_data_size = directory.count("mesh_data") * 2

    for i, pointer in enumerate(pointers.tolist()):
        if pointer >= mesh_data_size:
            raise FormatError(
                f"Mesh pointer {i} (byte {pointer}) is outside the "
                f"{mesh_data_size}-byte mesh data"
            )
        stream = LevelStream(data, mesh_data_offset + pointer)
        level.meshes.append(_read_mesh(stream, level, i))

    _log.debug("Loaded %d meshes", len(level.meshes))


def _read_mesh(stream, level, mesh_id):
    stream.skip(MESH_BOUNDING_SPHERE_SIZE)

    num_vertices = stream.read_i16()
    if num_vertices < 0:
        raise FormatError(f"Mesh {mesh_id} has negative vertex count {num_vertices}")
    positions = [stream.read("hhh") for _ in range(num_vertices)]

    num_light_attribs = stream.read_i16()
    if num_light_attribs > 0:
        if num_light_attribs != num_vertices:
            raise FormatError(
                f"Mesh {mesh_id} has {num_light_attribs} normals for {num_vertices} vertices"
            )
        light_mode = LightMode.EXTERNAL
        lights = [tuple(float(c) for c in stream.read("hhh")) for _ in range(num_vertices)]
    else:
        if -num_light_attribs != num_vertices:
            raise FormatError(
                f"Mesh {mesh_id} has {-num_light_attribs} intensities for {num_vertices} vertices"
            )
        light_mode = LightMode.INTERNAL
        lights = []
        for _ in range(num_vertices):
            intensity = intensity_from_raw(stream.read_i16())
            lights.append((intensity, intensity, intensity))

    mesh = Mesh(id=mesh_id, light_mode=light_mode)
    mesh.vertices = [
        MeshVertex(tuple(float(c) for c in pos), light)
        for pos, light in zip(positions, lights)
    ]

    read_polygons(stream, level, mesh, stream.read_i16(), 4, colored=False)
    read_polygons(stream, level, mesh, stream.read_i16(), 3, colored=False)
    read_polygons(stream, level, mesh, stream.read_i16(), 4, colored=True)
    read_polygons(stream, level, mesh, stream.read_i16(), 3, colored=True)

    return mesh
