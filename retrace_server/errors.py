"""Error taxonomy for retrace lookups."""

from __future__ import annotations


class RetraceError(Exception):
    """Base class for failures reported back to a client."""


class RequestMalformed(RetraceError):
    """The request line could not be parsed."""


class MappingUnavailable(RetraceError):
    """No mapping source exists (or is readable) for a version."""


class MappingCorrupt(RetraceError):
    """A mapping source was found but could not be parsed."""
