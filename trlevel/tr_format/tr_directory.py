"""Section directory for a level file.

Walks the file once, front to back, reading only the count/length fields
and skipping every payload by its per-element stride. The result records
the absolute offset and element count of every section, so the decoders
can seek straight to the data they need.

The walk is driven entirely by the profile's section table; the two format
generations differ only in that table and in the room record widths. A
directory that does not end exactly at end-of-file is rejected.
"""

import logging
from dataclasses import dataclass
from typing import Dict

from ..errors import FormatError
from ..format_profiles import (
    FormatProfile,
    SECTION_COUNTED,
    SECTION_DERIVED,
    SECTION_FIXED,
    SECTION_ROOMS,
)
from .tr_stream import LevelStream

_log = logging.getLogger("trlevel.directory")


@dataclass(frozen=True)
class SectionInfo:
    """Offset of a section's payload (after its count field) and its element count."""
    offset: int
    count: int


class LevelDirectory:
    """Offsets and counts of every section in a level file.

    Usage:
        directory = LevelDirectory.scan(data, profile)
        directory.offset("texinfos"), directory.count("texinfos")
    """

    def __init__(self, profile: FormatProfile):
        self.profile = profile
        self.sections: Dict[str, SectionInfo] = {}
        self.end_offset = 0

    def __contains__(self, name):
        return name in self.sections

    def __getitem__(self, name) -> SectionInfo:
        try:
            return self.sections[name]
        except KeyError:
            raise FormatError(
                f"Section {name!r} is not present in {self.profile.name} files"
            ) from None

    def offset(self, name):
        return self[name].offset

    def count(self, name):
        return self[name].count

    @classmethod
    def scan(cls, data, profile: FormatProfile) -> "LevelDirectory":
        """Build the directory for `data` laid out per `profile`.

        Raises:
            FormatError: if a count field lies past the end of the data or the
                walk does not finish exactly at end-of-file.
        """
        directory = cls(profile)
        stream = LevelStream(data)

        for section in profile.sections:
            if section.kind == SECTION_FIXED:
                directory._record(section.name, stream.tell(), section.count)
                stream.skip(section.stride)

            elif section.kind == SECTION_COUNTED:
                count = stream.read_count(section.count_format)
                directory._record(section.name, stream.tell(), count)
                stream.skip(count * section.stride)

            elif section.kind == SECTION_DERIVED:
                count = directory.count(section.count_from)
                directory._record(section.name, stream.tell(), count)
                stream.skip(count * section.stride)

            elif section.kind == SECTION_ROOMS:
                count = stream.read_count(section.count_format)
                directory._record(section.name, stream.tell(), count)
                for _ in range(count):
                    directory._skip_room(stream)

            else:
                raise ValueError(f"Unknown section kind {section.kind!r} for {section.name!r}")

        directory.end_offset = stream.tell()
        if directory.end_offset != len(data):
            raise FormatError(
                f"Level directory ends at offset {directory.end_offset}, "
                f"but the file is {len(data)} bytes ({profile.name})"
            )

        _log.debug("Scanned %d sections, end offset %d",
                   len(directory.sections), directory.end_offset)
        return directory

    def _record(self, name, offset, count):
        self.sections[name] = SectionInfo(offset, count)

    def _skip_room(self, stream):
        """Skip one room record, reading only its internal count fields."""
        layout = self.profile.room

        stream.skip(layout.info_size)

        num_room_data_words = stream.read_u32()
        stream.skip(num_room_data_words * 2)

        num_portals = stream.read_u16()
        stream.skip(num_portals * layout.portal_size)

        num_z_sectors = stream.read_u16()
        num_x_sectors = stream.read_u16()
        stream.skip(num_z_sectors * num_x_sectors * layout.sector_size)

        stream.skip(layout.ambient_size)

        num_lights = stream.read_u16()
        stream.skip(num_lights * layout.light_size)

        num_static_meshes = stream.read_u16()
        stream.skip(num_static_meshes * layout.static_mesh_size)

        stream.skip(layout.trailer_size)
