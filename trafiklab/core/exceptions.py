"""
Core Exceptions

Errors raised by the pure identifier, polyline and stop filter helpers.
All of them are deterministic and depend only on the input.
"""


class TrafiklabError(Exception):
    """Base exception for trafiklab errors."""


class FormatError(TrafiklabError, ValueError):
    """Raised when a site identifier has the wrong shape."""


class InvalidFilterName(TrafiklabError, ValueError):
    """Raised when a stop filter name is not recognized."""


class MalformedPolyline(TrafiklabError, ValueError):
    """Raised when a coordinate sequence cannot be split into pairs."""
