"""
Release Catalog

Merges the stable and bleeding-edge record lists into one list of
channel-tagged Releases and answers the "which releases are there" questions.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence

from bepfetch.constants import SOURCE_FETCH_WORKERS
from bepfetch.exceptions import SourceError
from bepfetch.log_utils import logger

from .interfaces import Asset, Release, ReleaseChannel, RawBuild, RawRelease
from .version import Version, parse_version


def _assets_by_name(assets: Sequence[Asset]) -> Dict[str, Asset]:
    # A release's own filenames are unique upstream; last write wins otherwise
    return {asset.name: asset for asset in assets}


class ReleaseCatalog:
    """
    The merged set of releases from both channels.

    The catalog is populated once by `merge` (or `refresh_catalog`) and not
    mutated afterwards. Every query sorts by Version explicitly; insertion
    order carries no meaning.

    Attributes:
        releases: All releases, in merge order.
        errors: The fetch error for each channel whose refresh failed.
    """

    def __init__(
        self,
        releases: Optional[List[Release]] = None,
        errors: Optional[Dict[ReleaseChannel, SourceError]] = None,
    ):
        self.releases: List[Release] = list(releases or [])
        self.errors: Dict[ReleaseChannel, SourceError] = dict(errors or {})

    @classmethod
    def merge(
        cls,
        stable: Sequence[RawRelease],
        bleeding: Sequence[RawBuild],
    ) -> "ReleaseCatalog":
        """
        Build a catalog from raw records of both sources.

        Stable records are de-duplicated by tag name, bleeding-edge records by
        artifact id; the first occurrence wins (a page boundary shifting during
        pagination can repeat a record).
        """
        releases: List[Release] = []

        seen_tags = set()
        for record in stable:
            if record.tag_name in seen_tags:
                logger.debug(f"Skipping duplicate stable release {record.tag_name}")
                continue
            seen_tags.add(record.tag_name)
            releases.append(
                Release(
                    version=record.version,
                    channel=ReleaseChannel.STABLE,
                    assets=_assets_by_name(record.assets),
                )
            )

        seen_ids = set()
        for build in bleeding:
            if build.artifact_id in seen_ids:
                logger.debug(f"Skipping duplicate build #{build.artifact_id}")
                continue
            seen_ids.add(build.artifact_id)
            releases.append(
                Release(
                    version=build.version,
                    channel=ReleaseChannel.BLEEDING_EDGE,
                    assets=_assets_by_name(build.assets),
                    artifact_id=build.artifact_id,
                )
            )

        return cls(releases)

    def __len__(self) -> int:
        return len(self.releases)

    def __bool__(self) -> bool:
        return bool(self.releases)

    def releases_for(self, channel: Optional[ReleaseChannel] = None) -> List[Release]:
        """Return the releases of `channel` (all channels when None), newest first."""
        selected = [
            release
            for release in self.releases
            if channel is None or release.channel == channel
        ]
        return sorted(selected, key=lambda release: release.version, reverse=True)

    def latest(self, channel: ReleaseChannel) -> Optional[Release]:
        releases = self.releases_for(channel)
        return releases[0] if releases else None

    def latest_stable(self) -> Optional[Release]:
        """Return the highest-versioned stable release, or None if there is none."""
        return self.latest(ReleaseChannel.STABLE)

    def find(
        self, version: str, channel: Optional[ReleaseChannel] = None
    ) -> Optional[Release]:
        """
        Look up a release by version string.

        Precedence decides the match, so build metadata is ignored unless the
        requested string carries some, in which case it must match exactly.
        """
        wanted: Version = parse_version(version)
        for release in self.releases_for(channel):
            if release.version != wanted:
                continue
            if wanted.build and release.version.build != wanted.build:
                continue
            return release
        return None


def refresh_catalog(
    stable_fetch: Optional[Callable[[], List[RawRelease]]],
    bleeding_fetch: Optional[Callable[[], List[RawBuild]]],
) -> ReleaseCatalog:
    """
    Run both source fetches concurrently and merge whatever succeeded.

    Each callable performs one source's complete fetch (filters already bound).
    A SourceError from one source is logged and recorded in `catalog.errors`;
    that channel is left empty while the other is still populated. Passing None
    skips a source.

    Returns:
        ReleaseCatalog: The merged catalog.
    """
    errors: Dict[ReleaseChannel, SourceError] = {}

    def _run(channel: ReleaseChannel, fetch: Optional[Callable[[], list]]) -> list:
        if fetch is None:
            return []
        try:
            return fetch()
        except SourceError as exc:
            logger.error(f"Could not refresh {channel.value} releases: {exc}")
            errors[channel] = exc
            return []

    with ThreadPoolExecutor(max_workers=SOURCE_FETCH_WORKERS) as executor:
        stable_future = executor.submit(_run, ReleaseChannel.STABLE, stable_fetch)
        bleeding_future = executor.submit(
            _run, ReleaseChannel.BLEEDING_EDGE, bleeding_fetch
        )
        stable = stable_future.result()
        bleeding = bleeding_future.result()

    catalog = ReleaseCatalog.merge(stable, bleeding)
    catalog.errors = errors
    logger.info(
        f"Release catalog: {len(stable)} stable, {len(bleeding)} bleeding-edge"
    )
    return catalog
