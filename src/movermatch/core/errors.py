"""
Error kinds raised by the matching core.

Callers can catch `MoverMatchError` for everything, or the specific kinds:
- `InvalidRequest`: caller bug (bad coordinate, non-positive radius). Never retry.
- `ParseError`: malformed point text, rejected before any dispatch.
- `MatcherUnavailable`: the spatial-query collaborator failed. Safe to retry.
- `Cancelled`: the caller's timeout or cancellation signal fired first.
"""

from __future__ import annotations


class MoverMatchError(Exception):
    """Base class for all matching errors."""


class InvalidRequest(MoverMatchError, ValueError):
    pass


class ParseError(MoverMatchError, ValueError):
    pass


class MatcherUnavailable(MoverMatchError):
    pass


class Cancelled(MoverMatchError):
    pass
