"""Light intensity conversion.

Level files store brightness as a 13-bit raw value on an inverted scale:
0 is full brightness and 8191 is black. Placed objects may instead carry
the 0xFFFF sentinel, meaning "fully lit".
"""

from ..tr_format.tr_constants import LIGHT_FULL_BRIGHT_SENTINEL, LIGHT_RAW_MAX


def intensity_from_raw(raw):
    """Convert a raw inverted intensity to a float, 0 -> 1.0, 8191 -> 0.0."""
    return 1.0 - raw / LIGHT_RAW_MAX


def object_intensity(raw):
    """Intensity of a placed object; the 0xFFFF sentinel means fully lit."""
    if raw == LIGHT_FULL_BRIGHT_SENTINEL:
        return 1.0
    return intensity_from_raw(raw)


def room_light_intensity(raw):
    """Intensity of a room point light from its signed raw value.

    Negative raw values give 0.0 here, while every other light path
    (ambient, vertices, placements) applies the plain inverted formula.
    """
    if raw >= 0:
        return intensity_from_raw(raw)
    return 0.0
