import importlib.metadata
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry  # type: ignore

from bepfetch.constants import (
    API_CALL_DELAY,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONNECT_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    GITHUB_API_TIMEOUT,
    GITHUB_TOKEN_ENV_VAR,
    HTML_REQUEST_TIMEOUT,
    RATE_LIMIT_WARNING_THRESHOLD,
    RETRY_STATUS_FORCELIST,
)
from bepfetch.log_utils import logger

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    The GitHub releases feed throttles anonymous clients harder, so every request
    identifies itself.

    Returns:
        The string `bepfetch/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("bepfetch")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"bepfetch/{app_version}"

    return _USER_AGENT_CACHE


def get_effective_github_token(
    github_token: Optional[str], allow_env_token: bool = True
) -> Optional[str]:
    """
    Pick the GitHub token to authenticate with.

    An explicit, non-blank token wins; otherwise the GITHUB_TOKEN environment variable
    is used when `allow_env_token` is set.
    """
    if github_token and github_token.strip():
        return github_token.strip()
    if allow_env_token:
        env_token = os.environ.get(GITHUB_TOKEN_ENV_VAR, "").strip()
        return env_token or None
    return None


def _parse_rate_limit_header(header_value: Any) -> Optional[int]:
    try:
        return int(str(header_value).strip())
    except (TypeError, ValueError):
        return None


def _build_session() -> requests.Session:
    """
    Create a requests Session with the transport retry policy mounted for http and https.

    Status-based retries are applied by urllib3 before the caller sees the response;
    callers still call raise_for_status() to surface the final outcome.
    """
    session = requests.Session()
    retry_strategy: Retry = Retry(
        total=DEFAULT_CONNECT_RETRIES,
        connect=DEFAULT_CONNECT_RETRIES,
        read=DEFAULT_CONNECT_RETRIES,
        status=DEFAULT_CONNECT_RETRIES,
        backoff_factor=DEFAULT_BACKOFF_FACTOR,
        status_forcelist=list(RETRY_STATUS_FORCELIST),
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
        respect_retry_after_header=True,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers["User-Agent"] = get_user_agent()
    return session


def _log_rate_limit(response: requests.Response) -> None:
    resp_headers = getattr(response, "headers", None)
    if resp_headers is None or not hasattr(resp_headers, "get"):
        return

    remaining = _parse_rate_limit_header(resp_headers.get("X-RateLimit-Remaining"))
    if remaining is None:
        logger.debug("No rate limit information available")
        return

    logger.debug(f"GitHub API rate-limit remaining: {remaining}")
    if remaining <= RATE_LIMIT_WARNING_THRESHOLD:
        logger.warning(
            f"GitHub API rate limit running low: {remaining} requests remaining"
        )


def make_github_api_request(
    url: str,
    github_token: Optional[str] = None,
    allow_env_token: bool = True,
    params: Optional[Dict[str, Any]] = None,
    timeout: Optional[int] = None,
    _is_retry: bool = False,
) -> requests.Response:
    """
    Perform a GitHub API GET request with optional token authentication, retrying once without authentication if token-based auth returns 401.

    Parameters:
        url (str): GitHub API URL to request.
        github_token (Optional[str]): Explicit GitHub token to prefer for Authorization; trimmed before use.
        allow_env_token (bool): If True, allow falling back to the GITHUB_TOKEN environment variable when no explicit token is provided.
        params (Optional[Dict[str, Any]]): Query parameters to include in the request.
        timeout (Optional[int]): Request timeout in seconds; if omitted the module default is used.

    Returns:
        requests.Response: The HTTP response returned by GitHub.

    Raises:
        requests.HTTPError: For HTTP error responses (including a descriptive message when the rate limit is exhausted).
        requests.RequestException: For lower-level network or request errors.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }

    effective_token = get_effective_github_token(github_token, allow_env_token)
    if effective_token:
        headers["Authorization"] = f"token {effective_token}"
        logger.debug("Using GitHub token for API authentication")
    else:
        logger.debug("No GitHub token available - using unauthenticated API requests")

    session = _build_session()
    try:
        logger.debug(f"Making GitHub API request: {url} params={params}")
        response = session.get(
            url,
            timeout=timeout or GITHUB_API_TIMEOUT,
            headers=headers,
            params=params,
        )
        response.raise_for_status()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        if not _is_retry and status == 401 and effective_token:
            logger.warning(
                f"GitHub token authentication failed for {url}. Retrying without authentication."
            )
            return make_github_api_request(
                url,
                github_token=None,
                allow_env_token=False,
                params=params,
                timeout=timeout,
                _is_retry=True,
            )
        if status == 403:
            remaining = _parse_rate_limit_header(
                e.response.headers.get("X-RateLimit-Remaining")
            )
            if remaining == 0:
                reset_time = e.response.headers.get("X-RateLimit-Reset")
                reset_time_str = (
                    datetime.fromtimestamp(int(reset_time), timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                    if reset_time
                    else "unknown"
                )
                error_msg = (
                    f"GitHub API rate limit exceeded. Resets at {reset_time_str}. "
                    f"Set GITHUB_TOKEN environment variable for higher rate limits."
                )
            else:
                error_msg = "GitHub API access forbidden"
            logger.error(error_msg)
            raise requests.HTTPError(error_msg, response=e.response) from None
        raise
    finally:
        session.close()
        # Small delay to be respectful to GitHub API, even on errors
        time.sleep(API_CALL_DELAY)

    _log_rate_limit(response)
    return response


def fetch_text(url: str, timeout: Optional[int] = None) -> str:
    """
    GET a document and return its decoded text.

    Raises:
        requests.RequestException: For network failures and HTTP error statuses.
    """
    session = _build_session()
    try:
        logger.debug(f"Fetching document: {url}")
        response = session.get(url, timeout=timeout or HTML_REQUEST_TIMEOUT)
        logger.debug(
            f"Received HTTP response status code: {response.status_code} for URL: {url}"
        )
        response.raise_for_status()
        return response.text
    finally:
        session.close()


def download_file_with_retry(url: str, download_path: str) -> bool:
    """
    Download a remote file to disk and atomically install it.

    Streams the URL to a temporary file next to the destination, then replaces the
    destination in one step. Partially downloaded files are removed on failure.

    Parameters:
        url (str): The HTTP(S) URL of the remote file to download.
        download_path (str): Final filesystem path where the downloaded file will be installed.

    Returns:
        bool: `True` if the file was downloaded and installed successfully, `False` otherwise.
    """
    parent_dir = os.path.dirname(download_path)
    if parent_dir:
        os.makedirs(parent_dir, exist_ok=True)

    temp_path = f"{download_path}.tmp.{os.getpid()}.{int(time.time() * 1000)}"
    session = _build_session()
    try:
        logger.debug(f"Downloading {url} to temp path: {temp_path}")
        start_time = time.time()
        with session.get(url, stream=True, timeout=DEFAULT_REQUEST_TIMEOUT) as response:
            response.raise_for_status()
            downloaded_bytes = 0
            with open(temp_path, "wb") as handle:
                for chunk in response.iter_content(chunk_size=DEFAULT_CHUNK_SIZE):
                    if chunk:
                        handle.write(chunk)
                        downloaded_bytes += len(chunk)

        os.replace(temp_path, download_path)
        elapsed = time.time() - start_time
        logger.info(
            f"Downloaded {os.path.basename(download_path)} ({downloaded_bytes} bytes) in {elapsed:.1f}s"
        )
        return True
    except requests.RequestException as e:
        logger.error(f"Network error downloading {url}: {e}")
        return False
    except OSError as e:
        logger.error(f"File error writing {download_path}: {e}")
        return False
    finally:
        session.close()
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e_rm:
                logger.debug(f"Error removing temp file {temp_path}: {e_rm}")
