"""Error taxonomy for the project repositories loader.

Every failure surfaced by the loader is a ``LoaderError`` subclass tagged
with an ``ErrorKind`` so callers can branch on ``exc.kind`` instead of
comparing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    PARSE = "parse"
    VALIDATION = "validation"


class LoaderError(RuntimeError):
    """Base exception for all loader failures."""

    kind: ClassVar[ErrorKind]


class ConfigurationError(LoaderError):
    """Raised when the run configuration is unusable (e.g. missing project key)."""

    kind = ErrorKind.CONFIGURATION


class TransportError(LoaderError):
    """Raised when the repository server cannot be reached or answers with an error."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(LoaderError):
    """Raised when a response body is not a valid project repositories payload."""

    kind = ErrorKind.PARSE


class RepositoryValidationError(LoaderError):
    """Raised when a well-formed payload cannot be used for an analysis."""

    kind = ErrorKind.VALIDATION


class NoQualityProfileError(RepositoryValidationError):
    MESSAGE: ClassVar[str] = (
        "No quality profiles has been found this project, you probably don't "
        "have any language plugin suitable for this analysis."
    )

    def __init__(self) -> None:
        super().__init__(self.MESSAGE)
