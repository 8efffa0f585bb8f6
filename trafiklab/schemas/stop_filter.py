"""
Stop Filter

Bit set of location categories a stop finder search should match. The
combined value is sent to the stop finder as ``any_obj_filter_sf``.
"""

from enum import IntFlag
from typing import Dict, Iterable

from trafiklab.core.exceptions import InvalidFilterName


class StopFilter(IntFlag):
    """Location categories for the stop finder."""

    NONE = 0
    SUBURB = 1
    STOP = 2
    STREET = 4
    ADDRESS = 8
    UNKNOWN = 16
    POINT_OF_INTEREST = 32

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "StopFilter":
        """
        Combine filter names as accepted by the stop finder.

        Args:
            names: Any of "none", "suburb", "stop", "street", "singlehouse",
                "unknown2", "poi"

        Raises:
            InvalidFilterName: If no name is given or a name is not recognized
        """
        names = list(names)
        if not names:
            raise InvalidFilterName("no stop filter provided")

        combined = cls.NONE
        for name in names:
            try:
                combined = combined.add(NAME_TO_STOP_FILTER[name])
            except KeyError as e:
                raise InvalidFilterName(f"invalid stop filter: {name}") from e
        return combined

    @property
    def filter_name(self) -> str:
        """Name of a single filter value as used by the API."""
        try:
            return STOP_FILTER_TO_NAME[self]
        except KeyError as e:
            raise InvalidFilterName(f"{self!r} is not a single stop filter") from e

    def has(self, other: "StopFilter") -> bool:
        return bool(self & other)

    def add(self, other: "StopFilter") -> "StopFilter":
        return self | other

    def remove(self, other: "StopFilter") -> "StopFilter":
        return self & ~other


NAME_TO_STOP_FILTER: Dict[str, StopFilter] = {
    "none": StopFilter.NONE,
    "suburb": StopFilter.SUBURB,
    "stop": StopFilter.STOP,
    "street": StopFilter.STREET,
    "singlehouse": StopFilter.ADDRESS,
    "unknown2": StopFilter.UNKNOWN,
    "poi": StopFilter.POINT_OF_INTEREST,
}

STOP_FILTER_TO_NAME: Dict[StopFilter, str] = {
    StopFilter.NONE: "none",
    StopFilter.SUBURB: "suburb",
    StopFilter.STOP: "stop",
    StopFilter.STREET: "street",
    StopFilter.ADDRESS: "singlehouse",
    StopFilter.UNKNOWN: "unknown2",
    StopFilter.POINT_OF_INTEREST: "poi",
}
