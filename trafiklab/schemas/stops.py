"""
Stops Schema

Pydantic models for the stop typeahead (typeahead.xml) and nearby stops
(nearbystopsv2.xml) APIs.
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from trafiklab.schemas.geo import Coordinates


class StopsQueryRequest(BaseModel):
    """Free text stop search."""

    search_string: str = Field(..., min_length=1)
    stations_only: bool = False
    max_results: Optional[int] = Field(None, ge=1, le=50)
    type: Optional[Literal["S", "P", "A", "SP", "SA", "PA", "SPA"]] = Field(
        None, description="S stops, P points of interest, A addresses"
    )

    def to_params(self, api_key: str = "") -> Dict[str, str]:
        params: Dict[str, str] = {}
        if api_key:
            params["key"] = api_key
        params["SearchString"] = self.search_string
        params["StationsOnly"] = "True" if self.stations_only else "False"
        if self.max_results is not None:
            params["MaxResults"] = str(self.max_results)
        if self.type:
            params["type"] = self.type
        return params


class TypeaheadStop(BaseModel):
    name: str = ""
    site_id: str = ""
    type: str = ""
    x: str = Field("", description="Longitude in micro degrees")
    y: str = Field("", description="Latitude in micro degrees")

    def coordinates(self) -> Optional[Coordinates]:
        if not self.x or not self.y:
            return None
        return Coordinates(latitude=float(self.y) / 1e6, longitude=float(self.x) / 1e6)


class TypeaheadResponse(BaseModel):
    status_code: int = 0
    message: str = ""
    execution_time: int = 0
    stops: List[TypeaheadStop] = Field(default_factory=list)


class StopsNearbyRequest(BaseModel):
    """Stops around a position."""

    position: Coordinates
    max_results: Optional[int] = Field(None, ge=1, le=1000)
    radius: Optional[int] = Field(None, ge=1, le=10000, description="Meters")
    type: Optional[Literal["S", "P", "SP"]] = None

    def to_params(self, api_key: str = "") -> Dict[str, str]:
        params: Dict[str, str] = {}
        if api_key:
            params["key"] = api_key
        params["originCoordLat"] = str(self.position.latitude)
        params["originCoordLong"] = str(self.position.longitude)
        if self.max_results is not None:
            params["maxNo"] = str(self.max_results)
        if self.radius is not None:
            params["r"] = str(self.radius)
        if self.type:
            params["type"] = self.type
        return params


class NearbyStop(BaseModel):
    """A stop near the requested position."""

    name: str = ""
    id: str = ""
    ext_id: str = ""
    main_mast_ext_id: str = Field("", description="EFA global id of the site")
    lat: float = 0.0
    lon: float = 0.0
    distance: int = Field(0, ge=0, description="Distance in meters")


class NearbyStopsResponse(BaseModel):
    stops: List[NearbyStop] = Field(default_factory=list)
