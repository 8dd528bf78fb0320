"""
Core Interfaces for the bepfetch Download Subsystem

This module defines the data structures shared by the release sources, the
catalog and the asset resolver, plus the abstract base for release sources.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from bepfetch.exceptions import ValidationError

from .version import Version


class ReleaseChannel(Enum):
    """Publication track a release came from."""

    STABLE = "stable"
    BLEEDING_EDGE = "bleeding_edge"

    @classmethod
    def from_string(cls, value: str) -> "ReleaseChannel":
        normalized = value.strip().lower().replace("-", "_")
        for channel in cls:
            if channel.value == normalized:
                return channel
        if normalized in ("be", "bleeding"):
            return cls.BLEEDING_EDGE
        raise ValidationError(
            "Unknown release channel", field="channel", value=value
        )


class EngineBackend(Enum):
    """
    Unity runtime flavor of the target game.

    MONO is the managed runtime, IL2CPP the natively compiled one. The values are
    the display tokens used by current builds; file names use `file_token`.
    """

    MONO = "Unity.Mono"
    IL2CPP = "Unity.IL2CPP"

    @property
    def file_token(self) -> str:
        """Display token with its internal dot collapsed, e.g. "UnityIL2CPP"."""
        return self.value.replace(".", "")

    @classmethod
    def from_string(cls, value: str) -> "EngineBackend":
        """
        Parse a backend name such as "Mono", "UnityMono", "Unity.IL2CPP" or "il2cpp".

        Raises:
            ValidationError: If the name matches neither backend.
        """
        normalized = value.strip().lower().replace(".", "")
        if normalized in ("mono", "unitymono"):
            return cls.MONO
        if normalized in ("il2cpp", "unityil2cpp"):
            return cls.IL2CPP
        raise ValidationError("Invalid game type", field="backend", value=value)


class Architecture(Enum):
    """CPU architecture of the target game."""

    X64 = "x64"
    X86 = "x86"

    @classmethod
    def from_string(cls, value: str) -> "Architecture":
        normalized = value.strip().lower()
        aliases = {"x64": cls.X64, "amd64": cls.X64, "x86": cls.X86, "i386": cls.X86}
        if normalized in aliases:
            return aliases[normalized]
        raise ValidationError(
            "Invalid architecture", field="architecture", value=value
        )


@dataclass(frozen=True)
class TargetDescriptor:
    """Platform characteristics of the game a release is resolved for."""

    engine_backend: Optional[EngineBackend] = None
    """Runtime backend; None when it could not be determined"""

    architecture: Optional[Architecture] = Architecture.X64
    """CPU architecture of the game executable"""


@dataclass(frozen=True)
class Asset:
    """Represents a downloadable asset from a release."""

    name: str
    """The exact filename of the asset"""

    download_url: str
    """Direct URL to download the asset"""


@dataclass(frozen=True)
class RawRelease:
    """One entry of the stable releases feed, with its tag already parsed."""

    tag_name: str
    version: Version
    prerelease: bool = False
    assets: List[Asset] = field(default_factory=list)


@dataclass(frozen=True)
class RawBuild:
    """One build scraped from the bleeding-edge index."""

    artifact_id: int
    build_hash: str
    version: Version
    assets: List[Asset] = field(default_factory=list)


@dataclass(frozen=True)
class Release:
    """A release from either channel, with its assets keyed by exact filename."""

    version: Version
    """Parsed release version"""

    channel: ReleaseChannel
    """Channel the release was published on"""

    assets: Dict[str, Asset] = field(default_factory=dict)
    """Assets keyed by filename"""

    artifact_id: Optional[int] = None
    """Bleeding-edge artifact id (None for stable releases)"""

    def __str__(self) -> str:
        return str(self.version)


class ReleaseSource(ABC):
    """
    Abstract base class for release sources.

    A ReleaseSource fetches one upstream feed through its own `fetch_all(...)`
    (whose filter arguments differ per feed), normalizes each record's version on
    receipt, and hands the raw records to the catalog.
    """

    channel: ReleaseChannel

    @abstractmethod
    def fetch_all(self, **filters) -> List:
        """
        Retrieve every record the source currently publishes, after filtering.

        Raises:
            SourceError: If the fetch fails or any record is malformed.
        """
