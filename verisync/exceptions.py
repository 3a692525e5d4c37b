# verisync/exceptions.py
"""
Defines custom exception classes for verisync.

Fatal conditions (a source that cannot be fetched, a configuration that
cannot be loaded) are raised as exceptions and abort the run before any
comparison is made. Per-line manifest problems are not exceptions; they
are collected as ParseIssue records alongside the successful result.
"""
from typing import Optional


class VerisyncError(Exception):
    """Base exception class for all custom errors in verisync."""

    pass


class ConfigurationError(VerisyncError):
    """Raised when there is an error in loading or validating configuration.

    This can include a missing sources.yaml, an unresolvable secret, or a
    source argument that cannot be mapped to any known kind.
    """

    pass


class FetchError(VerisyncError):
    """Raised when a manifest cannot be obtained from a source.

    Covers transport failures, authentication failures and non-zero exit
    codes from the remote manifest script. The failing source is always
    recorded so the caller can attribute the error.
    """

    def __init__(self, source: str, message: str):
        super().__init__(f"[{source}] {message}")
        self.source = source
        self.reason = message


class FetchTimeout(FetchError):
    """Raised when fetching a manifest exceeds the caller-supplied timeout."""

    def __init__(self, source: str, timeout: Optional[float]):
        super().__init__(source, f"fetch timed out after {timeout} seconds")
        self.timeout = timeout


class ManifestParseError(VerisyncError):
    """Raised when raw manifest data is unusable as a whole.

    Individual malformed lines never raise this; they are skipped and
    reported. This is reserved for input that cannot be read as text.
    """

    def __init__(self, source: str, message: str):
        super().__init__(f"[{source}] {message}")
        self.source = source
