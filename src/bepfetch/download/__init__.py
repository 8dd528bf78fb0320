"""
bepfetch Download Subsystem

This package locates framework releases on the stable and bleeding-edge
channels and resolves the exact asset to download for a target game.

Core Components:
- version: Semantic version model and tolerant parser
- interfaces: Release, asset and target data structures
- github_source: Stable releases from the GitHub API
- builds_source: Bleeding-edge builds from the build index page
- catalog: Merged, channel-tagged release list
- resolver: Naming-convention based asset resolution
- files: Download and extraction of a resolved asset
"""

from .builds_source import BleedingEdgeSource
from .catalog import ReleaseCatalog, refresh_catalog
from .files import FileOperations
from .github_source import GithubReleaseSource
from .interfaces import (
    Architecture,
    Asset,
    EngineBackend,
    RawBuild,
    RawRelease,
    Release,
    ReleaseChannel,
    ReleaseSource,
    TargetDescriptor,
)
from .resolver import AssetResolver, is_supported
from .version import Version, VersionManager, parse_version

__all__ = [
    # Interfaces
    "ReleaseSource",
    "Release",
    "RawRelease",
    "RawBuild",
    "Asset",
    "ReleaseChannel",
    "EngineBackend",
    "Architecture",
    "TargetDescriptor",
    # Sources
    "GithubReleaseSource",
    "BleedingEdgeSource",
    # Catalog and resolution
    "ReleaseCatalog",
    "refresh_catalog",
    "AssetResolver",
    "is_supported",
    # Core components
    "Version",
    "VersionManager",
    "parse_version",
    "FileOperations",
]
