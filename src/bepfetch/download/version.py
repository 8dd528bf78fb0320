"""
Version Model for the bepfetch Download Subsystem

This module provides the semantic-version value type shared by both release
sources, plus the forgiving parser that turns the framework's historical,
not-always-conformant version strings into comparable values.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from bepfetch.constants import LEGACY_FOUR_PART_PATTERN, SEMVER_PATTERN
from bepfetch.log_utils import logger

_SEMVER_RX = re.compile(SEMVER_PATTERN)
_LEGACY_FOUR_PART_RX = re.compile(LEGACY_FOUR_PART_PATTERN)

PrereleaseKey = Tuple[Tuple[int, Union[int, str]], ...]


@dataclass(frozen=True, eq=False)
class Version:
    """
    A semantic version: major.minor.patch, optional pre-release, optional build metadata.

    Ordering and equality follow semantic-versioning precedence: a pre-release sorts
    below its release, and build metadata is carried but ignored when comparing.
    """

    major: int
    minor: int
    patch: int
    pre: str = ""
    build: str = ""

    def _prerelease_key(self) -> PrereleaseKey:
        """
        Build a sort key for the pre-release identifiers.

        Numeric identifiers compare numerically and always rank below alphanumeric
        ones; a shorter identifier list ranks below a longer one with the same prefix.
        """
        key = []
        for identifier in self.pre.split("."):
            if _is_ascii_number(identifier):
                # No leading zeros, so length then text orders numerically
                key.append((0, len(identifier), identifier))
            else:
                key.append((1, identifier))
        return tuple(key)

    def _precedence_key(self) -> tuple:
        if not self.pre:
            # Release: sorts above every pre-release of the same major.minor.patch
            return (self.major, self.minor, self.patch, 1, ())
        return (self.major, self.minor, self.patch, 0, self._prerelease_key())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() == other._precedence_key()

    def __hash__(self) -> int:
        return hash(self._precedence_key())

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() < other._precedence_key()

    def __le__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() <= other._precedence_key()

    def __gt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() > other._precedence_key()

    def __ge__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() >= other._precedence_key()

    def __str__(self) -> str:
        rendered = self.mmp()
        if self.pre:
            rendered = f"{rendered}-{self.pre}"
        if self.build:
            rendered = f"{rendered}+{self.build}"
        return rendered

    def mmp(self) -> str:
        """Render `major.minor.patch`."""
        return f"{self.major}.{self.minor}.{self.patch}"

    def mmpp(self) -> str:
        """Render `major.minor.patch-pre`."""
        return f"{self.mmp()}-{self.pre}"

    def display(self) -> str:
        """Render the version without build metadata."""
        return self.mmpp() if self.pre else self.mmp()

    @property
    def is_prerelease(self) -> bool:
        return bool(self.pre)


def _is_ascii_number(text: str) -> bool:
    return text.isascii() and text.isdigit()


def _to_int(text: str) -> Optional[int]:
    """Convert an ASCII digit run to int, or None when it is not one or is too long."""
    if not _is_ascii_number(text):
        return None
    try:
        return int(text)
    except ValueError:
        # Longer than the interpreter's int conversion limit
        return None


def _leading_component(parts: list, index: int) -> int:
    if index < len(parts):
        value = _to_int(parts[index])
        if value is not None:
            return value
    return 0


def parse_version(raw: Optional[str]) -> Version:
    """
    Parse a version string into a Version; never raises.

    Steps, in order:
    1. Whitespace and a single leading "v"/"V" (tag-style) are stripped.
    2. A four-part 5.x string such as "5.4.11.0" drops its trailing build counter.
    3. A conformant semantic version is parsed as-is.
    4. Anything else is rebuilt as `major.minor.0` from the first two dot-separated
       components, each defaulting to 0 when missing or non-numeric.

    Args:
        raw: Version string from a release tag, an artifact name, or a binary's
            product-version field.

    Returns:
        Version: The parsed or reconstructed version.
    """
    text = (raw or "").strip()
    if text[:1] in ("v", "V"):
        text = text[1:]

    legacy = _LEGACY_FOUR_PART_RX.match(text)
    if legacy:
        text = legacy.group(1)

    match = _SEMVER_RX.match(text)
    if match:
        core = [_to_int(match.group(i)) for i in (1, 2, 3)]
        if None not in core:
            return Version(
                major=core[0],
                minor=core[1],
                patch=core[2],
                pre=match.group(4) or "",
                build=match.group(5) or "",
            )

    parts = text.split(".")
    fixed = Version(
        major=_leading_component(parts, 0),
        minor=_leading_component(parts, 1),
        patch=0,
    )
    logger.debug(f"Non-conformant version {raw!r} normalized to {fixed}")
    return fixed


class VersionManager:
    """
    Version helpers shared by the release sources and the catalog.

    This class encapsulates:
    - Tolerant parsing of tags and artifact names
    - Three-way comparison of raw version strings
    - Extraction of the bleeding-edge artifact id from a pre-release identifier
    """

    def parse(self, raw: Optional[str]) -> Version:
        return parse_version(raw)

    def compare_versions(self, version1: str, version2: str) -> int:
        """
        Compare two version strings by semantic-versioning precedence.

        Returns:
            int: 1 if version1 > version2, 0 if equal, -1 if version1 < version2
        """
        v1 = parse_version(version1)
        v2 = parse_version(version2)
        if v1 > v2:
            return 1
        if v1 < v2:
            return -1
        return 0

    def extract_artifact_id(self, version: Version) -> Optional[int]:
        """
        Return the first all-numeric pre-release identifier, or None.

        Bleeding-edge builds carry their artifact id in the pre-release part,
        e.g. "6.0.0-650.abcdef" or "6.0.0-be.697".
        """
        if not version.pre:
            return None
        for identifier in version.pre.split("."):
            artifact_id = _to_int(identifier)
            if artifact_id is not None:
                return artifact_id
        return None
