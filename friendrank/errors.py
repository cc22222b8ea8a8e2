"""Failure kinds and the few exceptions that leave the pipeline.

Page-level failures are reported as a FailureKind on the fetch result and
end the affected crawl quietly. Only seed identity resolution and export
surface exceptions to the caller.
"""
from enum import Enum


class FailureKind(Enum):
    UNREACHABLE = "unreachable"   # attempts exhausted or non-2xx status
    UNPARSEABLE = "unparseable"   # fetched, but no recognizable structure


class ScrapeError(Exception):
    """Exception carrying a FailureKind for boundary callers."""

    def __init__(self, kind: FailureKind, message: str = ""):
        self.kind = kind
        super().__init__(message or kind.value)


class UnknownIdentityError(ScrapeError):
    """The handle is malformed or has no reachable profile."""

    def __init__(self, handle: str, kind: FailureKind = FailureKind.UNREACHABLE):
        self.handle = handle
        super().__init__(kind, f'The user "{handle}" does not exist.')


class ExportError(Exception):
    """The export destination could not be written."""
