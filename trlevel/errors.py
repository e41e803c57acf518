"""Exceptions raised while loading and animating a level.

A load either completes or raises one of these; no partially decoded
Level is ever handed back to the caller.
"""


class LevelLoadError(Exception):
    """Base class for every failure raised by the level loader."""


class FormatError(LevelLoadError, ValueError):
    """The file layout is inconsistent with the selected format version.

    Raised when the section directory does not end exactly at end-of-file,
    when a read runs past the end of the data, or when a section's declared
    span does not match what was decoded from it.
    """


class LevelReferenceError(LevelLoadError, LookupError):
    """An index or id used by one section does not resolve in another."""


class UnsupportedVersionError(LevelLoadError, ValueError):
    """The version selector does not name a registered format profile."""


class AnimationRuntimeError(LevelLoadError, RuntimeError):
    """A frame lookup left the canonical frame buffer.

    Unreachable for data that passed load-time validation; treated as fatal.
    """
