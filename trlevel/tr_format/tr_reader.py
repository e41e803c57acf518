"""Full level file reader.

Reads a level file and produces a fully populated Level. Loading is one
all-or-nothing pass: the section directory is scanned first, then every
decoder runs in dependency order. Any failure propagates to the caller
and no partial Level is returned.
"""

import logging
import struct

from ..actor.sg_animation import load_animations
from ..actor.sg_skeleton import load_models
from ..errors import FormatError
from ..format_profiles import get_profile
from ..scene_graph.sg_geometry import load_meshes
from ..scene_graph.sg_objects import load_objects
from ..scene_graph.sg_rooms import load_rooms
from ..scene_graph.sg_sprites import load_sprite_sequences, load_sprites
from ..scene_graph.sg_textures import load_palette, load_texinfos, load_texpages
from ..scene_graph.sg_types import Level
from .tr_directory import LevelDirectory
from .tr_stream import LevelStream

_log = logging.getLogger("trlevel.reader")

# Decoders in dependency order: texinfos before meshes and rooms,
# meshes and animations before models, everything before objects.
_DECODERS = (
    load_palette,
    load_texpages,
    load_texinfos,
    load_meshes,
    load_animations,
    load_models,
    load_sprites,
    load_sprite_sequences,
    load_rooms,
    load_objects,
)


class LevelReader:
    """Reads and decodes one level file.

    Usage:
        reader = LevelReader("path/to/level.phd", "v1")
        level = reader.read()
        # reader.directory - LevelDirectory of the file
        # reader.level     - the decoded Level (also returned by read())
    """

    def __init__(self, filepath, version):
        # Resolve first so an unknown version never touches the file.
        self.profile = get_profile(version)
        self.filepath = filepath
        self.data = None
        self.directory = None
        self.level = None

    def read(self) -> Level:
        """Read the file from disk and decode it."""
        with open(self.filepath, "rb") as f:
            data = f.read()
        return self.read_bytes(data)

    def read_bytes(self, data) -> Level:
        """Decode a level from an in-memory byte string."""
        self.data = data
        self.directory = None
        self.level = None

        try:
            # 1. Directory (validates the overall layout against the file size)
            directory = LevelDirectory.scan(data, self.profile)

            # 2. Version word
            self._check_version_word(data, directory)

            # 3. Section decoders
            level = Level(version=self.profile.version)
            for decode in _DECODERS:
                decode(data, directory, self.profile, level)
        except (struct.error, IndexError) as e:
            raise FormatError(f"Malformed {self.profile.name} level data: {e}") from e

        self.directory = directory
        self.level = level
        _log.info("Loaded %s level: %s", self.profile.name, level.summary())
        return level

    def _check_version_word(self, data, directory):
        stream = LevelStream(data, directory.offset("version"))
        version_word = stream.read_u32()
        if version_word != self.profile.version_word:
            _log.warning(
                "Version word 0x%08X does not match %s (0x%08X), decoding as %s anyway",
                version_word, self.profile.name, self.profile.version_word,
                self.profile.name)


def load_level(filepath, version) -> Level:
    """Load the level file at `filepath` laid out as `version` ("v1" / "v2")."""
    return LevelReader(filepath, version).read()


def parse_level(data, version) -> Level:
    """Decode a level from bytes already in memory."""
    return LevelReader(None, version).read_bytes(data)
