"""Parse models (skeleton node trees) from a level file.

Model record (18 bytes):
    u32 type id
    u16 mesh count          one node per mesh
    u16 first mesh          index into the mesh pointer table
    u32 bone data offset    dword index into the bone data
    u32 frame data offset   (unused, animations carry their own)
    u16 default animation   0xFFFF = none

Bone data (one record per non-root node, 4 x i32):
    u32 bone op             bit0 = pop parent from stack, bit1 = push parent
    i32 x, y, z             offset from the parent node

The parent of node j defaults to node j-1. A pop replaces it with the
top of the parent stack; a push then saves the (possibly replaced) parent.
"""

import logging

import numpy as np

from ..errors import FormatError
from ..scene_graph.sg_types import Model, ModelNode
from ..tr_format.tr_constants import (
    BONE_OP_POP,
    BONE_OP_PUSH,
    BONE_RECORD_DWORDS,
    NO_INDEX_16,
)
from ..tr_format.tr_stream import LevelStream

_log = logging.getLogger("trlevel.models")


def load_models(data, directory, profile, level):
    """Decode every model. Needs meshes and animations already loaded."""
    stream = LevelStream(data, directory.offset("bone_data"))
    bone_data = stream.read_array(np.int32, directory.count("bone_data")).tolist()

    stream = LevelStream(data, directory.offset("models"))
    for _ in range(directory.count("models")):
        model_id, num_meshes, first_mesh, bone_offset, _frame_offset, animation = \
            stream.read("IHHIIH")

        model = Model(id=model_id)
        if animation != NO_INDEX_16:
            level.require("animations", animation)
            model.animation = animation

        model.nodes = build_nodes(level, bone_data, model_id, num_meshes, first_mesh, bone_offset)
        level.models.append(model)

    _log.debug("Loaded %d models", len(level.models))


def build_nodes(level, bone_data, model_id, num_meshes, first_mesh, bone_offset):
    """Run the bone stack machine for one model and return its node list."""
    nodes = []
    stack = []
    for j in range(num_meshes):
        mesh = first_mesh + j
        level.require("meshes", mesh)

        if j == 0:
            nodes.append(ModelNode(parent=-1, offset=(0.0, 0.0, 0.0), mesh=mesh))
            continue

        base = bone_offset + (j - 1) * BONE_RECORD_DWORDS
        if base + BONE_RECORD_DWORDS > len(bone_data):
            raise FormatError(
                f"Model {model_id} node {j} bone record at dword {base} "
                f"is past the {len(bone_data)}-dword bone data"
            )
        bone_op, x, y, z = bone_data[base:base + BONE_RECORD_DWORDS]

        parent = j - 1
        if bone_op & BONE_OP_POP:
            if not stack:
                raise FormatError(f"Model {model_id} node {j} pops an empty parent stack")
            parent = stack.pop()
        if bone_op & BONE_OP_PUSH:
            stack.append(parent)

        nodes.append(ModelNode(parent=parent, offset=(float(x), float(y), float(z)), mesh=mesh))
    return nodes
