"""
Custom exceptions for bepfetch.

This module defines domain-specific exceptions that separate failures to
refresh the release list from failures to pick an asset for a target.
"""


class BepfetchError(Exception):
    """
    Base exception for all bepfetch errors.

    All custom exceptions in bepfetch should inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(BepfetchError):
    """
    Exception raised when configuration is invalid or missing.

    This includes:
    - Configuration file parsing errors
    - Invalid configuration values
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when configuration file cannot be read or parsed."""

    pass


class ConfigValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    pass


# =============================================================================
# Source Errors
# =============================================================================


class SourceError(BepfetchError):
    """
    Base exception for failures while fetching one release source.

    Any SourceError aborts the whole fetch of that source; no partial
    result is returned alongside it.

    Attributes:
        source: Short name of the source that failed ("stable", "bleeding_edge").
        url: The URL being fetched when the error occurred.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the source exception.

        Args:
            message: The primary error message.
            source: Name of the failing source.
            url: The URL that was being fetched.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.source = source
        self.url = url


class TransportError(SourceError):
    """
    Exception raised for network-level failures during a fetch.

    Attributes:
        status_code: The HTTP status code, when the server answered at all.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, source=source, url=url, details=details)
        self.status_code = status_code


class MalformedSourceError(SourceError):
    """
    Exception raised when a page or document parsed but has an unexpected shape.

    This includes:
    - Non-JSON or non-list release pages
    - Missing required fields on a release or asset
    - Unmatched selectors in the bleeding-edge index
    - Builds without a recognizable version token
    """

    pass


# =============================================================================
# Resolution Errors
# =============================================================================


class ResolutionError(BepfetchError):
    """
    Base exception for failures to pick an asset for a target.

    Attributes:
        asset_name: The composed asset filename, when one could be composed.
    """

    def __init__(
        self,
        message: str,
        asset_name: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.asset_name = asset_name


class IndeterminateTargetError(ResolutionError):
    """Exception raised when the target lacks an attribute needed to pick an asset."""

    pass


class AssetNotFoundError(ResolutionError):
    """Exception raised when the composed asset name is not published in the release."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(BepfetchError):
    """
    Exception raised when user-supplied input fails validation.

    This includes:
    - Unknown engine backend names
    - Unknown architecture names
    - Version strings that match no release
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: str | None = None,
        details: str | None = None,
    ) -> None:
        """
        Initialize the validation exception.

        Args:
            message: The primary error message.
            field: The name of the field that failed validation.
            value: The value that failed validation.
            details: Optional additional context.
        """
        super().__init__(message, details)
        self.field = field
        self.value = value


class VersionError(ValidationError):
    """Exception raised when a requested version cannot be matched."""

    pass


# =============================================================================
# Download / Archive Errors
# =============================================================================


class DownloadError(BepfetchError):
    """Exception raised when an asset download fails."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url


class ArchiveError(BepfetchError):
    """
    Exception raised for archive-related errors.

    Attributes:
        archive_path: Path to the problematic archive.
    """

    def __init__(
        self,
        message: str,
        archive_path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.archive_path = archive_path


class ExtractionError(ArchiveError):
    """Exception raised when archive extraction fails."""

    pass
