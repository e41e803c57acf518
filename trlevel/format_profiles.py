"""Format profiles for the two supported level file generations.

Both generations share the same overall structure (a long run of
count-prefixed sections), but differ in which sections exist, where the
palette lives, and the byte width of many records. Each generation is
described by a FormatProfile holding:

    - the ordered section table the directory scanner walks
    - the room record layout (light / static-mesh / vertex widths)
    - object record width and texture page flavour
    - the animation frame encoding

Profiles are registered in a global dict and selected by an explicit
version parameter; nothing is auto-detected from the file contents.

Adding a new generation:
    1. Write down its section order and per-element strides
    2. Create a FormatProfile with those parameters
    3. Call register_profile() to add it to the registry
"""

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union

from .errors import UnsupportedVersionError


class FormatVersion(enum.Enum):
    V1 = "v1"
    V2 = "v2"


# Animation frame encodings
FRAME_ENCODING_ANGLE_SETS = "angle_sets"      # variable length, per-frame count
FRAME_ENCODING_FIXED_STRIDE = "fixed_stride"  # stride from the animation header

# Section kinds understood by the directory scanner
SECTION_FIXED = "fixed"       # constant byte size, no count field
SECTION_COUNTED = "counted"   # count field followed by count * stride bytes
SECTION_DERIVED = "derived"   # count taken from an earlier section
SECTION_ROOMS = "rooms"       # variable-size room records


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SectionSpec:
    """One entry of a profile's section table.

    For SECTION_FIXED, `stride` is the total payload size and `count` the
    element count recorded in the directory (e.g. 256 palette entries).
    For SECTION_COUNTED, `count_format` is the struct code of the count field.
    For SECTION_DERIVED, `count_from` names the section supplying the count.
    """
    name: str
    kind: str
    stride: int = 0
    count_format: str = "I"
    count_from: str = ""
    count: int = 0


@dataclass(frozen=True)
class RoomLayout:
    """Byte widths of the variable-layout parts of a room record."""

    info_size: int = 16          # x, z, y_bottom, y_top (4 x int32)
    vertex_size: int = 8
    quad_size: int = 10
    tri_size: int = 8
    static_sprite_size: int = 4
    portal_size: int = 32
    sector_size: int = 8
    ambient_size: int = 2
    light_size: int = 18
    static_mesh_size: int = 18
    trailer_size: int = 4        # alternate room + flags

    # Extra fields present in the wider records.
    vertex_has_attributes: bool = False
    ambient_has_light_mode: bool = False
    light_has_second_set: bool = False
    static_mesh_has_second_light: bool = False


@dataclass(frozen=True)
class FormatProfile:
    """Complete layout description of one level file generation."""

    version: FormatVersion = FormatVersion.V1
    name: str = ""

    # First u32 of the file.
    version_word: int = 0

    sections: Tuple[SectionSpec, ...] = ()
    room: RoomLayout = field(default_factory=RoomLayout)

    object_size: int = 22
    object_has_second_light: bool = False

    # V2 files carry 16-bit ARGB1555 copies of every page.
    has_16bit_texpages: bool = False

    frame_encoding: str = FRAME_ENCODING_ANGLE_SETS

    aliases: Tuple[str, ...] = ()

    def section_names(self) -> List[str]:
        return [s.name for s in self.sections]


def _fixed(name, size, count=0):
    return SectionSpec(name, SECTION_FIXED, stride=size, count=count)


def _counted(name, stride, count_format="I"):
    return SectionSpec(name, SECTION_COUNTED, stride=stride, count_format=count_format)


def _derived(name, count_from, stride):
    return SectionSpec(name, SECTION_DERIVED, stride=stride, count_from=count_from)


def _rooms():
    return SectionSpec("rooms", SECTION_ROOMS, count_format="H")


# ---------------------------------------------------------------------------
# Profile registry
# ---------------------------------------------------------------------------

FORMAT_PROFILES: Dict[FormatVersion, FormatProfile] = {}


def register_profile(profile: FormatProfile) -> None:
    """Register a format profile in the global registry."""
    FORMAT_PROFILES[profile.version] = profile


def resolve_version(version: Union[FormatVersion, str]) -> FormatVersion:
    """Map a version selector (enum member or alias string) to a FormatVersion.

    Raises:
        UnsupportedVersionError: if the selector names no registered profile.
    """
    if isinstance(version, FormatVersion):
        if version in FORMAT_PROFILES:
            return version
    elif isinstance(version, str):
        key = version.strip().lower()
        for profile in FORMAT_PROFILES.values():
            if key == profile.version.value or key in profile.aliases:
                return profile.version
    raise UnsupportedVersionError(f"Unsupported level format version: {version!r}")


def get_profile(version: Union[FormatVersion, str]) -> FormatProfile:
    """Look up the profile for a version selector."""
    return FORMAT_PROFILES[resolve_version(version)]


# ---------------------------------------------------------------------------
# Built-in profiles
# ---------------------------------------------------------------------------

# Sections shared by both generations, from floor data up to the objects.
def _common_sections(box_size, zone_size, object_size):
    return (
        _counted("floor_data", 2),
        _counted("mesh_data", 2),
        _counted("mesh_pointers", 4),
        _counted("animations", 32),
        _counted("anim_state_changes", 6),
        _counted("anim_ranges", 8),
        _counted("anim_commands", 2),
        _counted("bone_data", 4),
        _counted("anim_frames", 2),
        _counted("models", 18),
        _counted("static_meshes", 32),
        _counted("texinfos", 20),
        _counted("sprites", 16),
        _counted("sprite_sequences", 8),
        _counted("cameras", 16),
        _counted("sound_sources", 16),
        _counted("boxes", box_size),
        _counted("overlaps", 2),
        _derived("zones", "boxes", zone_size),
        _counted("texanim_chains", 2),
        _counted("objects", object_size),
        _fixed("light_map", 32 * 256),
    )


register_profile(FormatProfile(
    version=FormatVersion.V1,
    name="Generation 1",
    version_word=0x00000020,
    sections=(
        _fixed("version", 4),
        _counted("texpages8", 256 * 256),
        _fixed("unused", 4),
        _rooms(),
    ) + _common_sections(box_size=20, zone_size=12, object_size=22) + (
        _fixed("palette8", 256 * 3, count=256),
        _counted("cinematic_frames", 16, count_format="H"),
        _counted("demo_data", 1, count_format="H"),
        _fixed("sound_map", 256 * 2),
        _counted("sound_details", 8),
        _counted("samples", 1),
        _counted("sample_indices", 4),
    ),
    room=RoomLayout(
        vertex_size=8,
        ambient_size=2,
        light_size=18,
        static_mesh_size=18,
    ),
    object_size=22,
    has_16bit_texpages=False,
    frame_encoding=FRAME_ENCODING_ANGLE_SETS,
    aliases=("1", "tr1", "version_tr1"),
))

register_profile(FormatProfile(
    version=FormatVersion.V2,
    name="Generation 2",
    version_word=0x0000002D,
    sections=(
        _fixed("version", 4),
        _fixed("palette8", 256 * 3, count=256),
        _fixed("palette16", 256 * 4, count=256),
        _counted("texpages8", 256 * 256),
        _derived("texpages16", "texpages8", 256 * 256 * 2),
        _fixed("unused", 4),
        _rooms(),
    ) + _common_sections(box_size=8, zone_size=20, object_size=24) + (
        _counted("cinematic_frames", 16, count_format="H"),
        _counted("demo_data", 1, count_format="H"),
        _fixed("sound_map", 370 * 2),
        _counted("sound_details", 8),
        _counted("sample_indices", 4),
    ),
    room=RoomLayout(
        vertex_size=12,
        ambient_size=6,
        light_size=24,
        static_mesh_size=20,
        vertex_has_attributes=True,
        ambient_has_light_mode=True,
        light_has_second_set=True,
        static_mesh_has_second_light=True,
    ),
    object_size=24,
    object_has_second_light=True,
    has_16bit_texpages=True,
    frame_encoding=FRAME_ENCODING_FIXED_STRIDE,
    aliases=("2", "tr2", "version_tr2"),
))
