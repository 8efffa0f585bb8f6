"""
Location and Coordinate Type Definitions

Pydantic models for geographic coordinates and the textual formats the
journey planner accepts for them.
"""

from pydantic import BaseModel, Field

TRAFIKLAB_COORD_SUFFIX = "WGS84[dd.ddddd]"


class Coordinates(BaseModel):
    """
    Geographic coordinates (latitude and longitude).
    """

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in decimal degrees")

    @classmethod
    def from_string(cls, value: str) -> "Coordinates":
        """
        Parse either the Trafiklab format "lng:lat:WGS84[dd.ddddd]" or a
        plain "lat,lng" pair.

        Raises:
            ValueError: If the string matches neither format
        """
        if TRAFIKLAB_COORD_SUFFIX in value:
            coord_part = value.removesuffix(":" + TRAFIKLAB_COORD_SUFFIX)
            parts = coord_part.split(":")
            if len(parts) != 2:
                raise ValueError(f"invalid Trafiklab format: {value}")
            # Trafiklab puts longitude first
            try:
                longitude, latitude = float(parts[0]), float(parts[1])
            except ValueError as e:
                raise ValueError(f"invalid coordinate in Trafiklab format: {value}") from e
            return cls(latitude=latitude, longitude=longitude)

        parts = value.split(",")
        if len(parts) != 2:
            raise ValueError(f"invalid lat,lng format: {value}")
        try:
            latitude, longitude = float(parts[0]), float(parts[1])
        except ValueError as e:
            raise ValueError(f"invalid lat,lng format: {value}") from e
        return cls(latitude=latitude, longitude=longitude)

    def to_trafiklab_string(self) -> str:
        return f"{self.longitude:f}:{self.latitude:f}:{TRAFIKLAB_COORD_SUFFIX}"

    def __str__(self) -> str:
        return f"({self.latitude}, {self.longitude})"
