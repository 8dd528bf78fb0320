import time

import platformdirs
import pytest
import requests

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used to group the suite.

    Parameters:
        config: pytest.Config
            The pytest configuration object.
    """
    config.addinivalue_line("markers", "unit: fast isolated unit tests")
    config.addinivalue_line(
        "markers", "core_downloads: release sources, catalog and resolution"
    )
    config.addinivalue_line("markers", "configuration: configuration loading")
    config.addinivalue_line("markers", "cli: command-line interface")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point XDG variables and platformdirs at a temporary tree so tests never touch real user directories.
    """
    base = tmp_path_factory.mktemp("bepfetch")
    cache_dir = base / "cache"
    state_dir = base / "state"
    config_dir = base / "config"
    data_dir = base / "data"
    log_dir = state_dir / "log"

    for path in (cache_dir, state_dir, config_dir, data_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_STATE_HOME", str(state_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(data_dir))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)

    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_state_dir", lambda *_args, **_kwargs: str(state_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_data_dir", lambda *_args, **_kwargs: str(data_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.put = _block_network
    requests.delete = _block_network
    requests.head = _block_network
    requests.patch = _block_network
    requests.options = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests to prevent delays.

    Retry/backoff paths and the API call delay use time.sleep(). Tests that
    require real timing behavior should monkeypatch sleep back explicitly.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


# =============================================================================
# Shared release fixtures
# =============================================================================


@pytest.fixture
def sample_release_data():
    """Two pages' worth of GitHub release JSON, newest first."""
    return [
        {
            "tag_name": "v6.0.0-pre.2",
            "prerelease": True,
            "name": "BepInEx 6.0.0-pre.2",
            "assets": [
                {
                    "name": "BepInEx_UnityMono_x64_6.0.0-pre.2.zip",
                    "browser_download_url": "https://github.com/BepInEx/BepInEx/releases/download/v6.0.0-pre.2/BepInEx_UnityMono_x64_6.0.0-pre.2.zip",
                    "size": 1024000,
                },
                {
                    "name": "BepInEx_UnityIL2CPP_x64_6.0.0-pre.2.zip",
                    "browser_download_url": "https://github.com/BepInEx/BepInEx/releases/download/v6.0.0-pre.2/BepInEx_UnityIL2CPP_x64_6.0.0-pre.2.zip",
                    "size": 2048000,
                },
            ],
        },
        {
            "tag_name": "v5.4.23.2",
            "prerelease": False,
            "name": "BepInEx 5.4.23.2",
            "assets": [
                {
                    "name": "BepInEx_win_x64_5.4.23.2.zip",
                    "browser_download_url": "https://github.com/BepInEx/BepInEx/releases/download/v5.4.23.2/BepInEx_win_x64_5.4.23.2.zip",
                    "size": 512000,
                },
            ],
        },
        {
            "tag_name": "v5.4.11",
            "prerelease": False,
            "name": "BepInEx 5.4.11",
            "assets": [
                {
                    "name": "BepInEx_x64_5.4.11.0.zip",
                    "browser_download_url": "https://github.com/BepInEx/BepInEx/releases/download/v5.4.11/BepInEx_x64_5.4.11.0.zip",
                    "size": 512000,
                },
                {
                    "name": "BepInEx_x86_5.4.11.0.zip",
                    "browser_download_url": "https://github.com/BepInEx/BepInEx/releases/download/v5.4.11/BepInEx_x86_5.4.11.0.zip",
                    "size": 512000,
                },
            ],
        },
        {
            "tag_name": "v5.4.10",
            "prerelease": False,
            "name": "BepInEx 5.4.10",
            "assets": [
                {
                    "name": "BepInEx_x64_5.4.10.0.zip",
                    "browser_download_url": "https://github.com/BepInEx/BepInEx/releases/download/v5.4.10/BepInEx_x64_5.4.10.0.zip",
                    "size": 512000,
                },
            ],
        },
    ]


@pytest.fixture
def be_index_html():
    """A bleeding-edge index page with one current-era and one legacy-era build."""
    return """
<html>
  <body>
    <main>
      <div class="artifact-item">
        <div class="artifact-details">
          <span class="artifact-id">#697</span>
          <a class="hash-button" href="https://github.com/BepInEx/BepInEx/commit/5362580">5362580</a>
        </div>
        <div class="artifacts-list">
          <a class="artifact-link" href="/projects/bepinex_be/697/BepInEx-UnityMono-win-x64-6.0.0-be.697%2B5362580.zip">BepInEx-UnityMono-win-x64-6.0.0-be.697+5362580.zip</a>
          <a class="artifact-link" href="/projects/bepinex_be/697/BepInEx-UnityIL2CPP-win-x64-6.0.0-be.697%2B5362580.zip">BepInEx-UnityIL2CPP-win-x64-6.0.0-be.697+5362580.zip</a>
        </div>
      </div>
      <div class="artifact-item">
        <div class="artifact-details">
          <span class="artifact-id">#577</span>
          <a class="hash-button" href="https://github.com/BepInEx/BepInEx/commit/ec79ad0">ec79ad0</a>
        </div>
        <div class="artifacts-list">
          <a class="artifact-link" href="/projects/bepinex_be/577/BepInEx_UnityMono_x64_ec79ad0_6.0.0-be.577.zip">BepInEx_UnityMono_x64_ec79ad0_6.0.0-be.577.zip</a>
          <a class="artifact-link" href="/projects/bepinex_be/577/BepInEx_UnityIL2CPP_x86_ec79ad0_6.0.0-be.577.zip">BepInEx_UnityIL2CPP_x86_ec79ad0_6.0.0-be.577.zip</a>
        </div>
      </div>
    </main>
  </body>
</html>
"""
