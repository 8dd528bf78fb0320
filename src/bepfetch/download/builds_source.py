"""
Bleeding-Edge Build Source

This module scrapes the bleeding-edge build index (an HTML page listing CI
artifacts) into RawBuild records. The selectors follow the index markup and
break if it is restructured.
"""

import re
from typing import List, Optional
from urllib.parse import urljoin

import requests  # type: ignore[import-untyped]
from bs4 import BeautifulSoup
from bs4.element import Tag

from bepfetch.constants import (
    BE_ARTIFACT_ID_SELECTOR,
    BE_ARTIFACT_ITEM_SELECTOR,
    BE_ARTIFACT_LINK_SELECTOR,
    BE_ARTIFACTS_LIST_SELECTOR,
    BE_HASH_SELECTOR,
    BE_MAIN_SELECTOR,
    BE_VERSION_TOKEN_PATTERN,
    BLEEDING_EDGE_BASE_URL,
    BLEEDING_EDGE_INDEX_PATH,
)
from bepfetch.exceptions import MalformedSourceError, TransportError
from bepfetch.log_utils import logger
from bepfetch.utils import fetch_text

from .interfaces import Asset, ReleaseChannel, ReleaseSource, RawBuild
from .version import parse_version

SOURCE_NAME = "bleeding_edge"


class BleedingEdgeSource(ReleaseSource):
    """
    Reader for the bleeding-edge build index.

    One request fetches the whole index. Every build entry must yield an artifact
    id, a commit hash and a version token; a single malformed entry fails the
    whole fetch rather than producing a partially trusted list.
    """

    channel = ReleaseChannel.BLEEDING_EDGE

    VERSION_TOKEN_RX = re.compile(BE_VERSION_TOKEN_PATTERN)
    ARTIFACT_ID_RX = re.compile(r"[0-9]+")
    BUILD_HASH_RX = re.compile(r"^[0-9A-Za-z-]+$")

    def __init__(
        self,
        base_url: str = BLEEDING_EDGE_BASE_URL,
        index_path: str = BLEEDING_EDGE_INDEX_PATH,
    ):
        """
        Parameters:
            base_url (str): Root URL of the build server; download links are resolved against it.
            index_path (str): Path of the index page under `base_url`.
        """
        self.base_url = base_url.rstrip("/")
        self.index_path = index_path

    @property
    def index_url(self) -> str:
        return f"{self.base_url}{self.index_path}"

    def fetch_all(self, min_artifact_id: Optional[int] = None) -> List[RawBuild]:
        """
        Fetch the index page and parse every build on it.

        Parameters:
            min_artifact_id (Optional[int]): Drop builds whose artifact id is below this floor.

        Returns:
            List[RawBuild]: Builds in page order; empty if the page lists none.

        Raises:
            TransportError: If the page cannot be fetched.
            MalformedSourceError: If the page or any build entry cannot be parsed.
        """
        try:
            html = fetch_text(self.index_url)
        except requests.RequestException as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            raise TransportError(
                "Failed to fetch bleeding-edge index",
                source=SOURCE_NAME,
                url=self.index_url,
                status_code=status,
                details=str(exc),
            ) from exc

        builds = self.parse_index(html)
        logger.debug("Parsed %d builds from %s", len(builds), self.index_url)

        if min_artifact_id is None:
            return builds
        return [build for build in builds if build.artifact_id >= min_artifact_id]

    def parse_index(self, html: str) -> List[RawBuild]:
        """
        Parse the index document into RawBuilds.

        Raises:
            MalformedSourceError: If the main region is missing or any entry is malformed.
        """
        soup = BeautifulSoup(html, "html.parser")
        main = soup.select_one(BE_MAIN_SELECTOR)
        if main is None:
            raise self._malformed("Index page has no main content region")

        return [self.parse_build(item) for item in main.select(BE_ARTIFACT_ITEM_SELECTOR)]

    def parse_build(self, item: Tag) -> RawBuild:
        """Parse one artifact-item block."""
        artifact_id = self._parse_artifact_id(item)
        build_hash = self._parse_build_hash(item, artifact_id)

        links_list = item.select_one(BE_ARTIFACTS_LIST_SELECTOR)
        if links_list is None:
            raise self._malformed("Build has no artifact list", f"artifact #{artifact_id}")

        assets: List[Asset] = []
        version_token: Optional[str] = None
        for link in links_list.select(BE_ARTIFACT_LINK_SELECTOR):
            href = link.get("href")
            name = link.get_text(strip=True)
            if not href or not name:
                raise self._malformed(
                    "Artifact link without name or href", f"artifact #{artifact_id}"
                )
            if version_token is None:
                match = self.VERSION_TOKEN_RX.search(name)
                if match:
                    version_token = match.group(0)
            assets.append(
                Asset(name=name, download_url=urljoin(f"{self.base_url}/", href))
            )

        if version_token is None:
            raise self._malformed(
                "No artifact name carries a version", f"artifact #{artifact_id}"
            )

        return RawBuild(
            artifact_id=artifact_id,
            build_hash=build_hash,
            version=parse_version(f"{version_token}+{build_hash}"),
            assets=assets,
        )

    def _parse_artifact_id(self, item: Tag) -> int:
        id_spans = item.select(BE_ARTIFACT_ID_SELECTOR)
        if len(id_spans) != 1:
            raise self._malformed(
                "Build entry must have exactly one artifact id",
                f"found {len(id_spans)}",
            )
        text = id_spans[0].get_text(strip=True)
        match = self.ARTIFACT_ID_RX.search(text)
        if match is None:
            raise self._malformed("Artifact id is not numeric", repr(text))
        try:
            return int(match.group(0))
        except ValueError as exc:
            raise self._malformed("Artifact id is out of range", repr(text)) from exc

    def _parse_build_hash(self, item: Tag, artifact_id: int) -> str:
        hash_links = item.select(BE_HASH_SELECTOR)
        if len(hash_links) != 1:
            raise self._malformed(
                "Build entry must have exactly one commit hash",
                f"artifact #{artifact_id}: found {len(hash_links)}",
            )
        build_hash = hash_links[0].get_text(strip=True)
        if not self.BUILD_HASH_RX.match(build_hash):
            raise self._malformed(
                "Commit hash is not a valid token",
                f"artifact #{artifact_id}: {build_hash!r}",
            )
        return build_hash

    def _malformed(self, message: str, details: Optional[str] = None) -> MalformedSourceError:
        return MalformedSourceError(
            message, source=SOURCE_NAME, url=self.index_url, details=details
        )
