"""Tests for the paginated stable release source."""

from unittest.mock import Mock

import pytest
import requests

from bepfetch.download.github_source import (
    GithubReleaseSource,
    create_asset_from_github_data,
    create_raw_release,
)
from bepfetch.download.version import parse_version
from bepfetch.exceptions import MalformedSourceError, TransportError

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]

RELEASES_URL = "https://api.github.com/repos/owner/repo/releases"


def _response(payload):
    response = Mock()
    response.json.return_value = payload
    return response


def _patch_pages(mocker, pages):
    """Serve `pages` in order, then an empty page."""
    responses = [_response(page) for page in pages] + [_response([])]
    return mocker.patch(
        "bepfetch.download.github_source.make_github_api_request",
        side_effect=responses,
    )


class TestFetchAll:
    """Tests for GithubReleaseSource.fetch_all."""

    def test_paginates_until_empty_page(self, mocker, sample_release_data):
        mock_request = _patch_pages(
            mocker, [sample_release_data[:2], sample_release_data[2:]]
        )
        source = GithubReleaseSource(releases_url=RELEASES_URL, per_page=2)

        releases = source.fetch_all(pre_releases=True)

        assert [r.tag_name for r in releases] == [
            "v6.0.0-pre.2",
            "v5.4.23.2",
            "v5.4.11",
            "v5.4.10",
        ]
        assert mock_request.call_count == 3
        pages = [c.kwargs["params"]["page"] for c in mock_request.call_args_list]
        assert pages == [1, 2, 3]
        assert all(
            c.kwargs["params"]["per_page"] == 2 for c in mock_request.call_args_list
        )

    def test_default_page_size_is_api_maximum(self, mocker):
        mock_request = _patch_pages(mocker, [])
        GithubReleaseSource(releases_url=RELEASES_URL).fetch_all()
        assert mock_request.call_args.kwargs["params"] == {"per_page": 100, "page": 1}

    def test_empty_first_page_returns_empty_list(self, mocker):
        _patch_pages(mocker, [])
        assert GithubReleaseSource(releases_url=RELEASES_URL).fetch_all() == []

    def test_excludes_prereleases_by_default(self, mocker, sample_release_data):
        _patch_pages(mocker, [sample_release_data])
        releases = GithubReleaseSource(releases_url=RELEASES_URL).fetch_all()
        assert "v6.0.0-pre.2" not in [r.tag_name for r in releases]

    def test_min_version_floor(self, mocker, sample_release_data):
        _patch_pages(mocker, [sample_release_data])
        releases = GithubReleaseSource(releases_url=RELEASES_URL).fetch_all(
            pre_releases=True, min_version=parse_version("5.4.11")
        )
        assert [r.tag_name for r in releases] == [
            "v6.0.0-pre.2",
            "v5.4.23.2",
            "v5.4.11",
        ]

    def test_versions_are_parsed_on_receipt(self, mocker, sample_release_data):
        _patch_pages(mocker, [sample_release_data])
        releases = GithubReleaseSource(releases_url=RELEASES_URL).fetch_all(
            pre_releases=True
        )
        assert str(releases[0].version) == "6.0.0-pre.2"
        assert str(releases[1].version) == "5.4.23"

    def test_transport_failure_on_later_page_fails_whole_fetch(
        self, mocker, sample_release_data
    ):
        error_response = Mock(status_code=503)
        mocker.patch(
            "bepfetch.download.github_source.make_github_api_request",
            side_effect=[
                _response(sample_release_data),
                requests.HTTPError("503 Server Error", response=error_response),
            ],
        )
        source = GithubReleaseSource(releases_url=RELEASES_URL)

        with pytest.raises(TransportError) as exc_info:
            source.fetch_all()

        assert exc_info.value.status_code == 503
        assert exc_info.value.source == "stable"
        assert exc_info.value.url == RELEASES_URL

    def test_connection_error_has_no_status(self, mocker):
        mocker.patch(
            "bepfetch.download.github_source.make_github_api_request",
            side_effect=requests.ConnectionError("boom"),
        )
        with pytest.raises(TransportError) as exc_info:
            GithubReleaseSource(releases_url=RELEASES_URL).fetch_all()
        assert exc_info.value.status_code is None

    def test_invalid_json_is_malformed(self, mocker):
        response = Mock()
        response.json.side_effect = ValueError("Expecting value")
        mocker.patch(
            "bepfetch.download.github_source.make_github_api_request",
            return_value=response,
        )
        with pytest.raises(MalformedSourceError, match="not valid JSON"):
            GithubReleaseSource(releases_url=RELEASES_URL).fetch_all()

    def test_non_list_page_is_malformed(self, mocker):
        _patch_pages(mocker, [{"message": "Not Found"}])
        with pytest.raises(MalformedSourceError, match="not a list"):
            GithubReleaseSource(releases_url=RELEASES_URL).fetch_all()

    def test_surviving_release_without_assets_is_malformed(self, mocker):
        _patch_pages(
            mocker, [[{"tag_name": "v6.0.0", "prerelease": False, "assets": []}]]
        )
        with pytest.raises(MalformedSourceError, match="no assets"):
            GithubReleaseSource(releases_url=RELEASES_URL).fetch_all()

    def test_filtered_release_without_assets_is_ignored(self, mocker):
        _patch_pages(
            mocker,
            [[{"tag_name": "v5.0.0", "prerelease": False, "assets": []}]],
        )
        releases = GithubReleaseSource(releases_url=RELEASES_URL).fetch_all(
            min_version=parse_version("5.4.11")
        )
        assert releases == []

    def test_passes_token_settings(self, mocker):
        mock_request = _patch_pages(mocker, [])
        GithubReleaseSource(
            releases_url=RELEASES_URL, github_token="abc", allow_env_token=False
        ).fetch_all()
        args, kwargs = mock_request.call_args
        assert args == (RELEASES_URL, "abc")
        assert kwargs["allow_env_token"] is False


class TestRecordParsing:
    """Tests for create_raw_release and create_asset_from_github_data."""

    def test_create_raw_release(self, sample_release_data):
        raw = create_raw_release(sample_release_data[2], RELEASES_URL)
        assert raw.tag_name == "v5.4.11"
        assert raw.prerelease is False
        assert raw.version == parse_version("5.4.11")
        assert [a.name for a in raw.assets] == [
            "BepInEx_x64_5.4.11.0.zip",
            "BepInEx_x86_5.4.11.0.zip",
        ]

    @pytest.mark.parametrize(
        "release_data",
        [
            "not-a-dict",
            {"prerelease": False, "assets": []},
            {"tag_name": "", "prerelease": False, "assets": []},
            {"tag_name": "v1.0.0", "assets": []},
            {"tag_name": "v1.0.0", "prerelease": "no", "assets": []},
            {"tag_name": "v1.0.0", "prerelease": False, "assets": None},
        ],
    )
    def test_malformed_release(self, release_data):
        with pytest.raises(MalformedSourceError):
            create_raw_release(release_data, RELEASES_URL)

    @pytest.mark.parametrize(
        "asset_data",
        [
            None,
            {"browser_download_url": "https://example.com/a.zip"},
            {"name": "  ", "browser_download_url": "https://example.com/a.zip"},
            {"name": "a.zip"},
            {"name": "a.zip", "browser_download_url": 5},
        ],
    )
    def test_malformed_asset(self, asset_data):
        with pytest.raises(MalformedSourceError):
            create_asset_from_github_data(asset_data, "v1.0.0", RELEASES_URL)

    def test_filter_release(self, sample_release_data):
        prerelease = create_raw_release(sample_release_data[0])
        assert not GithubReleaseSource.filter_release(prerelease, False, None)
        assert GithubReleaseSource.filter_release(prerelease, True, None)
        assert not GithubReleaseSource.filter_release(
            prerelease, True, parse_version("6.0.0")
        )
