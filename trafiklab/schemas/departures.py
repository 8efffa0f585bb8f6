"""
Departures Schema

Pydantic models for SL's real-time departures API
(/v1/sites/{site_id}/departures).
"""

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, Field

from trafiklab.core.exceptions import FormatError
from trafiklab.core.identifiers import EFA_ID_LENGTH, MAX_SHORT_ID_LENGTH
from trafiklab.core.timeutils import parse_iso_local


class TransportMode(str, Enum):
    """Transport modes of SL lines."""

    BUS = "BUS"
    TRAM = "TRAM"
    METRO = "METRO"
    TRAIN = "TRAIN"
    FERRY = "FERRY"
    SHIP = "SHIP"
    TAXI = "TAXI"


class DeparturesRequest(BaseModel):
    """
    Departures from one site.

    The API only filters on a single mode, so the mode flags are applied to
    the decoded response instead. All modes are included by default.
    """

    site_id: str = Field(..., min_length=1, description="Legacy SL site id, e.g. 9192")
    forecast: int = Field(0, ge=0, description="Time window in minutes, 0 for the API default")
    bus: bool = True
    metro: bool = True
    train: bool = True
    tram: bool = True
    ship: bool = True

    def site_path(self) -> str:
        """
        Raises:
            FormatError: If site_id is not a legacy site id
        """
        if len(self.site_id) == EFA_ID_LENGTH:
            raise FormatError(
                f"EFA id {self.site_id!r} cannot be used for departures, pass the site id"
            )
        digits = self.site_id.isascii() and self.site_id.isdigit()
        if not digits or len(self.site_id) > MAX_SHORT_ID_LENGTH:
            raise FormatError(f"invalid site id {self.site_id!r}")
        return f"/v1/sites/{int(self.site_id)}/departures"

    def to_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.forecast:
            params["forecast"] = str(self.forecast)
        return params

    def transport_modes(self) -> FrozenSet[str]:
        """Modes selected by the flags. Ships include ferries."""
        modes = set()
        if self.bus:
            modes.add(TransportMode.BUS.value)
        if self.metro:
            modes.add(TransportMode.METRO.value)
        if self.train:
            modes.add(TransportMode.TRAIN.value)
        if self.tram:
            modes.add(TransportMode.TRAM.value)
        if self.ship:
            modes.update((TransportMode.SHIP.value, TransportMode.FERRY.value))
        return frozenset(modes)

    @property
    def all_modes(self) -> bool:
        return self.bus and self.metro and self.train and self.tram and self.ship


class DepartureJourney(BaseModel):
    id: int = 0
    state: str = ""
    prediction_state: str = ""
    passenger_level: str = ""


class StopArea(BaseModel):
    id: int = 0
    name: str = ""
    sname: str = ""
    type: str = ""


class StopPoint(BaseModel):
    id: int = 0
    name: str = ""
    designation: str = ""


class Line(BaseModel):
    id: int = 0
    designation: str = ""
    transport_mode: str = ""
    group_of_lines: str = ""


class DepartureDeviation(BaseModel):
    consequence: str = ""
    importance_level: int = 0
    message: str = ""


class StopDeviation(BaseModel):
    importance: int = 0
    consequence: str = ""
    message: str = ""


class Departure(BaseModel):
    """A single departure from a stop point."""

    direction: str = ""
    direction_code: int = 0
    via: Optional[str] = None
    destination: str = ""
    state: str = ""
    scheduled: Optional[str] = Field(None, description="Local time, e.g. 2024-01-15T11:30:00")
    expected: Optional[str] = None
    display: str = Field("", description='Display text, e.g. "Nu" or "5 min"')
    journey: DepartureJourney = Field(default_factory=DepartureJourney)
    stop_area: StopArea = Field(default_factory=StopArea)
    stop_point: StopPoint = Field(default_factory=StopPoint)
    line: Line = Field(default_factory=Line)
    deviations: List[DepartureDeviation] = Field(default_factory=list)

    def parse_time(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Scheduled and expected times; expected falls back to scheduled."""
        scheduled = parse_iso_local(self.scheduled)
        expected = parse_iso_local(self.expected)
        return scheduled, expected if expected is not None else scheduled


class DeparturesResponse(BaseModel):
    departures: List[Departure] = Field(default_factory=list)
    stop_deviations: List[StopDeviation] = Field(default_factory=list)

    def filter_transport_modes(self, modes: FrozenSet[str]) -> "DeparturesResponse":
        """Return a copy keeping only departures of the given modes."""
        return self.model_copy(
            update={
                "departures": [
                    departure
                    for departure in self.departures
                    if departure.line.transport_mode in modes
                ]
            }
        )
