"""Package version."""

from typing import NamedTuple


class VersionInfo(NamedTuple):
    major: int
    minor: int
    patch: int


__version__ = "0.1.0"
version_info = VersionInfo(*(int(part) for part in __version__.split(".")))
