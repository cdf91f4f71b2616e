"""Error taxonomy for scrapes."""

from __future__ import annotations

from enum import Enum

import httpx


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    IDENTITY = "identity"
    TRANSPORT = "transport"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


class ScraperError(Exception):
    """Base class for errors raised by fetchers and the orchestrator."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class ConfigurationError(ScraperError):
    """A credential or setting required by a platform is missing."""

    kind = ErrorKind.CONFIGURATION


class IdentityResolutionError(ScraperError):
    """A handle or id could not be resolved to a platform entity."""

    kind = ErrorKind.IDENTITY

    def __init__(self, platform: str, handle: str) -> None:
        self.platform = platform
        self.handle = handle
        super().__init__(f"{platform}: not found: {handle}")


class UnsupportedPlatformError(ScraperError):
    kind = ErrorKind.UNSUPPORTED

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unsupported platform: {name}")


def classify_error(exc: BaseException) -> ErrorKind:
    """Map any exception raised by a fetch onto an :class:`ErrorKind`."""
    if isinstance(exc, ScraperError):
        return exc.kind
    if isinstance(exc, httpx.HTTPError):
        return ErrorKind.TRANSPORT
    # Matched by module so the browser stack stays out of this import graph.
    if type(exc).__module__.startswith("playwright"):
        return ErrorKind.TRANSPORT
    return ErrorKind.UNKNOWN
