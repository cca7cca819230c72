"""
Error types for AutoPatch.

Configuration and resolver errors mean the patch set itself cannot be
trusted and always abort the run. Fetch and application errors are
reported per patch; whether they abort is up to `exit-on-patch-failure`.
"""

from typing import Optional


class PatcherError(Exception):
    """Base class for all AutoPatch errors."""


class ConfigurationError(PatcherError):
    """Malformed configuration or patch manifest."""


class ResolverError(PatcherError):
    """A resolver provider returned something that is not a list of resolvers."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class FetchError(PatcherError):
    """A patch payload could not be retrieved."""

    def __init__(self, message: str, patch=None):
        super().__init__(message)
        self.patch = patch


class ApplicationError(PatcherError):
    """A patch could not be applied at any configured strip-level."""

    def __init__(self, message: str, patch=None):
        super().__init__(message)
        self.patch = patch
