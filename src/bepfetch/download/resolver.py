"""
Asset Resolver

Maps a (release, target) pair to the one asset that must be downloaded. The
framework renamed its artifacts several times, so the expected filename is
composed per naming era and then looked up exactly; there is no fuzzy matching.

Naming eras:
- Stable 6.x:          BepInEx_<backend>_<arch>_<version>.zip
- Stable 5.x and older: BepInEx_<arch>_<major>.<minor>.<patch>.0.zip
- Bleeding edge >= 600: BepInEx-<backend>-win-<arch>-<version>.zip
- Bleeding edge < 600:  BepInEx_<backend>_<arch>_<build>_<major>.<minor>.<patch>-<pre>.zip
"""

from typing import Optional

from bepfetch.constants import (
    BE_NAMING_CUTOVER_ARTIFACT_ID,
    MIN_IL2CPP_STABLE_VERSION,
    STABLE_BACKEND_AWARE_MAJOR,
    ZIP_EXTENSION,
)
from bepfetch.exceptions import AssetNotFoundError, IndeterminateTargetError
from bepfetch.log_utils import logger

from .interfaces import (
    Asset,
    EngineBackend,
    Release,
    ReleaseChannel,
    TargetDescriptor,
)
from .version import Version, VersionManager, parse_version


class AssetResolver:
    """
    Composes expected asset filenames and looks them up in a release.

    Resolution is pure: the same release and target always give the same asset
    or the same error, and instances hold no mutable state.
    """

    def __init__(self, be_naming_cutover: int = BE_NAMING_CUTOVER_ARTIFACT_ID):
        """
        Parameters:
            be_naming_cutover (int): First bleeding-edge artifact id using the current naming scheme.
        """
        self.be_naming_cutover = be_naming_cutover
        self.version_manager = VersionManager()

    def resolve(self, release: Release, target: TargetDescriptor) -> Asset:
        """
        Return the asset of `release` built for `target`.

        Raises:
            IndeterminateTargetError: If the target's backend or architecture is unknown.
            AssetNotFoundError: If the composed filename is not among the release's assets.
        """
        asset_name = self.compose_asset_name(release, target)
        asset = release.assets.get(asset_name)
        if asset is None:
            raise AssetNotFoundError(
                "Asset not published for this target",
                asset_name=asset_name,
                details=f"{release.channel.value} {release.version}",
            )
        logger.debug(f"Resolved {release.version} for {target} to {asset_name}")
        return asset

    def compose_asset_name(self, release: Release, target: TargetDescriptor) -> str:
        """
        Compose the filename `release` publishes for `target`.

        Raises:
            IndeterminateTargetError: If the target's backend or architecture is unknown.
            AssetNotFoundError: If a bleeding-edge release carries no artifact id.
        """
        if target.engine_backend is None:
            raise IndeterminateTargetError(
                "Game backend could not be determined",
                details="refusing to guess between Mono and IL2CPP",
            )
        if target.architecture is None:
            raise IndeterminateTargetError("Game architecture could not be determined")

        backend = target.engine_backend.file_token
        arch = target.architecture.value
        version = release.version

        if release.channel == ReleaseChannel.STABLE:
            if version.major == STABLE_BACKEND_AWARE_MAJOR:
                return f"BepInEx_{backend}_{arch}_{version}{ZIP_EXTENSION}"
            return f"BepInEx_{arch}_{version.mmp()}.0{ZIP_EXTENSION}"

        artifact_id = self.artifact_id_of(release)
        if artifact_id is None:
            raise AssetNotFoundError(
                "Bleeding-edge release has no artifact id",
                details=str(version),
            )
        if artifact_id >= self.be_naming_cutover:
            return f"BepInEx-{backend}-win-{arch}-{version}{ZIP_EXTENSION}"
        return (
            f"BepInEx_{backend}_{arch}_{version.build}_{version.mmpp()}{ZIP_EXTENSION}"
        )

    def artifact_id_of(self, release: Release) -> Optional[int]:
        """Artifact id from the version's pre-release part, else the one recorded at fetch time."""
        from_version = self.version_manager.extract_artifact_id(release.version)
        if from_version is not None:
            return from_version
        return release.artifact_id


_MIN_IL2CPP_STABLE = parse_version(MIN_IL2CPP_STABLE_VERSION)


def is_supported(
    release: Release,
    target: TargetDescriptor,
    min_il2cpp_stable: Version = _MIN_IL2CPP_STABLE,
) -> bool:
    """
    Return False for combinations the framework never shipped.

    Stable releases before 6.0.0-pre.1 have no IL2CPP support; every
    bleeding-edge build does.
    """
    if (
        target.engine_backend == EngineBackend.IL2CPP
        and release.channel == ReleaseChannel.STABLE
    ):
        return release.version >= min_il2cpp_stable
    return True
