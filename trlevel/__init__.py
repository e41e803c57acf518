"""Level file loader for the two 3D level file generations (V1 / V2).

Decodes rooms, meshes, texture pages, sprites, placed objects and skeletal
animation into a Level, and plays animations back for placed models.

Usage:
    from trlevel import load_level
    level = load_level("LEVEL1.PHD", "v1")
    for obj in level.model_objects:
        obj.tick(1.0 / 30.0)
        obj.node_transforms
"""

from .actor.animation_runtime import ModelObject
from .errors import (
    AnimationRuntimeError,
    FormatError,
    LevelLoadError,
    LevelReferenceError,
    UnsupportedVersionError,
)
from .format_profiles import FormatVersion, get_profile
from .scene_graph.sg_texanim import TextureAnimator
from .scene_graph.sg_types import Level
from .tr_format.tr_reader import LevelReader, load_level, parse_level

__all__ = [
    "AnimationRuntimeError",
    "FormatError",
    "FormatVersion",
    "Level",
    "LevelLoadError",
    "LevelReader",
    "LevelReferenceError",
    "ModelObject",
    "TextureAnimator",
    "UnsupportedVersionError",
    "get_profile",
    "load_level",
    "parse_level",
]
