"""
MongoDB Version Resolution

Known MongoDB releases, named aliases for them, and a generic fallback for
release strings that are not known yet. The release string of a version is
used as the tag of the MongoDB image that gets launched.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

logger = logging.getLogger(__name__)


class Version(Enum):
    """Known MongoDB releases."""

    V3_6_5 = "3.6.5"
    V3_6_22 = "3.6.22"
    V3_6_23 = "3.6.23"
    V4_0_2 = "4.0.2"
    V4_0_12 = "4.0.12"
    V4_0_28 = "4.0.28"
    V4_2_0 = "4.2.0"
    V4_2_8 = "4.2.8"
    V4_2_25 = "4.2.25"
    V4_4_5 = "4.4.5"
    V4_4_29 = "4.4.29"
    V5_0_2 = "5.0.2"
    V5_0_31 = "5.0.31"
    V6_0_19 = "6.0.19"
    V7_0_14 = "7.0.14"

    @property
    def release(self) -> str:
        return self.value


class Main(Enum):
    """Named aliases for the releases most callers want."""

    LEGACY = Version.V4_4_29
    PRODUCTION = Version.V6_0_19
    DEVELOPMENT = Version.V7_0_14

    @property
    def release(self) -> str:
        return self.value.release


@dataclass(frozen=True)
class GenericVersion:
    """A release string that is not one of the known versions."""

    release: str

    def __str__(self) -> str:
        return self.release


VersionSelector = Union[Version, Main, GenericVersion]


def parse_version(version: str) -> VersionSelector:
    """
    Resolve a release string to a known version.

    The string is upper-cased, dots become underscores and a leading "V" is
    added when missing, so "4.2.0", "v4.2.0" and "V4_2_0" all resolve to
    Version.V4_2_0. Anything that does not match falls back to a
    GenericVersion holding the string verbatim.

    Args:
        version: Non-empty release string

    Returns:
        The matching Version member, or a GenericVersion
    """
    enum_name = version.upper().replace(".", "_")
    if not enum_name.startswith("V"):
        enum_name = "V" + enum_name

    try:
        return Version[enum_name]
    except KeyError:
        logger.warning(
            f"Unrecognised MongoDB version '{version}', this might be a new version "
            f"that we don't yet know about. Attempting download anyway..."
        )
        return GenericVersion(version)
