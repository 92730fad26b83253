"""MongoDB version resolution for embedmongo."""

from .version import GenericVersion, Main, Version, VersionSelector, parse_version

__all__ = ['GenericVersion', 'Main', 'Version', 'VersionSelector', 'parse_version']
