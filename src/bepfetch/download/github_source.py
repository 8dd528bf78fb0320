"""
GitHub Release Source

This module fetches the stable release feed from the GitHub releases API,
page by page, and normalizes each release into a RawRelease.
"""

import json
from typing import Any, Dict, List, Optional

import requests  # type: ignore[import-untyped]

from bepfetch.constants import BEPINEX_RELEASES_URL, GITHUB_MAX_PER_PAGE
from bepfetch.exceptions import MalformedSourceError, TransportError
from bepfetch.log_utils import logger
from bepfetch.utils import make_github_api_request

from .interfaces import Asset, ReleaseChannel, ReleaseSource, RawRelease
from .version import Version, parse_version

SOURCE_NAME = "stable"


class GithubReleaseSource(ReleaseSource):
    """
    Paginated reader for the stable GitHub releases feed.

    Pages of `per_page` releases are requested until one comes back empty. Any
    failing page aborts the whole fetch, so callers either get every release or
    an exception.

    Usage:
        source = GithubReleaseSource(github_token=token)
        releases = source.fetch_all(pre_releases=True, min_version=parse_version("5.4.11"))
    """

    channel = ReleaseChannel.STABLE

    def __init__(
        self,
        releases_url: str = BEPINEX_RELEASES_URL,
        github_token: Optional[str] = None,
        allow_env_token: bool = True,
        per_page: int = GITHUB_MAX_PER_PAGE,
    ):
        """
        Initialize the GitHub release source.

        Parameters:
            releases_url (str): The GitHub API URL for fetching releases.
            github_token (Optional[str]): Token used to raise the API rate limit.
            allow_env_token (bool): Whether the GITHUB_TOKEN environment variable may be used.
            per_page (int): Page size requested from the API.
        """
        self.releases_url = releases_url
        self.github_token = github_token
        self.allow_env_token = allow_env_token
        self.per_page = per_page

    def fetch_all(
        self,
        pre_releases: bool = False,
        min_version: Optional[Version] = None,
    ) -> List[RawRelease]:
        """
        Fetch every page of the feed, then filter.

        Parameters:
            pre_releases (bool): Keep releases flagged as pre-releases.
            min_version (Optional[Version]): Drop releases whose version is below this floor.

        Returns:
            List[RawRelease]: Surviving releases in feed order.

        Raises:
            TransportError: If any page request fails.
            MalformedSourceError: If any page or release has an unexpected shape, or a
                surviving release has no assets.
        """
        releases: List[RawRelease] = []
        page = 1
        while True:
            fetched = self.fetch_page(page)
            if not fetched:
                break
            releases.extend(fetched)
            page += 1

        logger.debug(
            "Fetched %d releases across %d pages from %s",
            len(releases),
            page - 1,
            self.releases_url,
        )

        kept = [
            release
            for release in releases
            if self.filter_release(release, pre_releases, min_version)
        ]
        for release in kept:
            if not release.assets:
                raise MalformedSourceError(
                    "Release has no assets",
                    source=SOURCE_NAME,
                    url=self.releases_url,
                    details=release.tag_name,
                )
        return kept

    @staticmethod
    def filter_release(
        release: RawRelease,
        pre_releases: bool,
        min_version: Optional[Version],
    ) -> bool:
        """Return True if the release passes the pre-release and minimum-version filters."""
        if not pre_releases and release.prerelease:
            return False
        if min_version is not None and release.version < min_version:
            return False
        return True

    def fetch_page(self, page: int) -> List[RawRelease]:
        """
        Fetch and parse one page of the feed.

        Returns:
            List[RawRelease]: The page's releases; empty once past the last page.
        """
        params = {"per_page": self.per_page, "page": page}
        try:
            response = make_github_api_request(
                self.releases_url,
                self.github_token,
                allow_env_token=self.allow_env_token,
                params=params,
            )
        except requests.RequestException as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            raise TransportError(
                "Failed to fetch stable releases",
                source=SOURCE_NAME,
                url=self.releases_url,
                status_code=status,
                details=f"page {page}: {exc}",
            ) from exc

        try:
            releases_data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise MalformedSourceError(
                "Stable releases page is not valid JSON",
                source=SOURCE_NAME,
                url=self.releases_url,
                details=f"page {page}: {exc}",
            ) from exc

        if not isinstance(releases_data, list):
            raise MalformedSourceError(
                "Stable releases page is not a list",
                source=SOURCE_NAME,
                url=self.releases_url,
                details=f"page {page}: got {type(releases_data).__name__}",
            )

        return [create_raw_release(entry, self.releases_url) for entry in releases_data]


def create_asset_from_github_data(
    asset_data: Any, tag_name: str, url: Optional[str] = None
) -> Asset:
    """
    Create an Asset from one entry of a GitHub release's `assets` list.

    Raises:
        MalformedSourceError: If the entry lacks a usable name or download URL.
    """
    if not isinstance(asset_data, dict):
        raise MalformedSourceError(
            "Malformed asset entry",
            source=SOURCE_NAME,
            url=url,
            details=f"release {tag_name}: expected object, got {type(asset_data).__name__}",
        )
    name = asset_data.get("name")
    download_url = asset_data.get("browser_download_url")
    if not isinstance(name, str) or not name.strip():
        raise MalformedSourceError(
            "Asset with missing name",
            source=SOURCE_NAME,
            url=url,
            details=f"release {tag_name}",
        )
    if not isinstance(download_url, str) or not download_url.strip():
        raise MalformedSourceError(
            "Asset with missing download URL",
            source=SOURCE_NAME,
            url=url,
            details=f"release {tag_name}, asset {name}",
        )
    return Asset(name=name, download_url=download_url)


def create_raw_release(
    release_data: Dict[str, Any], url: Optional[str] = None
) -> RawRelease:
    """
    Create a RawRelease from GitHub API release data, parsing its tag on receipt.

    Parameters:
        release_data (Dict[str, Any]): Raw release data from the GitHub API.
        url (Optional[str]): Feed URL, used in error reports.

    Raises:
        MalformedSourceError: When required fields are missing or of the wrong type.
    """
    if not isinstance(release_data, dict):
        raise MalformedSourceError(
            "Malformed release entry",
            source=SOURCE_NAME,
            url=url,
            details=f"expected object, got {type(release_data).__name__}",
        )

    tag_name = release_data.get("tag_name")
    if not isinstance(tag_name, str) or not tag_name.strip():
        raise MalformedSourceError(
            "Release with missing or invalid tag_name", source=SOURCE_NAME, url=url
        )

    prerelease = release_data.get("prerelease")
    if not isinstance(prerelease, bool):
        raise MalformedSourceError(
            "Release with missing or invalid prerelease flag",
            source=SOURCE_NAME,
            url=url,
            details=tag_name,
        )

    assets_data = release_data.get("assets")
    if not isinstance(assets_data, list):
        raise MalformedSourceError(
            "Release with invalid assets field",
            source=SOURCE_NAME,
            url=url,
            details=tag_name,
        )

    return RawRelease(
        tag_name=tag_name,
        version=parse_version(tag_name),
        prerelease=prerelease,
        assets=[
            create_asset_from_github_data(asset, tag_name, url)
            for asset in assets_data
        ],
    )
