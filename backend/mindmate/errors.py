"""
Caller-visible errors.

Only two conditions ever reach the caller: structurally invalid
classification input and an empty session.  Remote-provider problems are
raised as RemoteProviderError inside a fallback chain and never escape it.
"""
from __future__ import annotations


class MindMateError(Exception):
    """Base class for every error raised by this package."""


class InvalidInputError(MindMateError, ValueError):
    """Classification input is not a string or is blank."""


class EmptySessionError(MindMateError, ValueError):
    """A session summary was requested for zero turns."""


class RemoteProviderError(MindMateError):
    """A remote provider answered, but not with something usable."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason
