"""
Constants and configuration values for bepfetch.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# Release sources
GITHUB_API_BASE = "https://api.github.com/repos"
BEPINEX_RELEASES_URL = f"{GITHUB_API_BASE}/BepInEx/BepInEx/releases"
BLEEDING_EDGE_BASE_URL = "https://builds.bepinex.dev"
BLEEDING_EDGE_INDEX_PATH = "/projects/bepinex_be"

# Network timeouts and delays (in seconds)
GITHUB_API_TIMEOUT = 10
HTML_REQUEST_TIMEOUT = 30

API_CALL_DELAY = 0.1  # Small delay to be respectful to GitHub API
GITHUB_MAX_PER_PAGE = 100
RATE_LIMIT_WARNING_THRESHOLD = 10
SOURCE_FETCH_WORKERS = 2

# Download and retry settings
DEFAULT_CONNECT_RETRIES = 5
DEFAULT_BACKOFF_FACTOR = 0.3
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_CHUNK_SIZE = 8192
RETRY_STATUS_FORCELIST = (408, 429, 500, 502, 503, 504)

# Supported version floors
MIN_SUPPORTED_STABLE_VERSION = "5.4.11"
MIN_IL2CPP_STABLE_VERSION = "6.0.0-pre.1"
OLDEST_SUPPORTED_BE_ARTIFACT_ID = 510

# Asset naming eras
STABLE_BACKEND_AWARE_MAJOR = 6
BE_NAMING_CUTOVER_ARTIFACT_ID = 600
ZIP_EXTENSION = ".zip"

# Bleeding-edge index markup
BE_MAIN_SELECTOR = "main"
BE_ARTIFACT_ITEM_SELECTOR = "div.artifact-item"
BE_ARTIFACT_ID_SELECTOR = "span.artifact-id"
BE_HASH_SELECTOR = "a.hash-button"
BE_ARTIFACTS_LIST_SELECTOR = "div.artifacts-list"
BE_ARTIFACT_LINK_SELECTOR = "a.artifact-link"

# Semantic version with a mandatory pre-release suffix, as embedded in
# bleeding-edge artifact names (e.g. BepInEx-UnityMono-win-x64-6.0.0-be.697+5362580.zip)
BE_VERSION_TOKEN_PATTERN = (
    r"(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)\.(?:0|[1-9]\d*)"
    r"-(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
)

# Full semantic version (semver.org reference grammar)
SEMVER_PATTERN = (
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

# Old 5.x builds report a fourth build-counter component (e.g. 5.4.11.0)
LEGACY_FOUR_PART_PATTERN = r"^(5\.\d+\.\d+)\.\d+$"

# Logging configuration
LOGGER_NAME = "bepfetch"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "bepfetch.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Configuration file names
APP_NAME = "bepfetch"
CONFIG_FILE_NAME = "bepfetch.yaml"
DOWNLOADS_DIR_NAME = "downloads"

# Environment variable names
LOG_LEVEL_ENV_VAR = "BEPFETCH_LOG_LEVEL"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
