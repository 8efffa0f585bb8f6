"""
Travelplanner Schema

Pydantic models for the HAFAS based Travelplanner v3.1 API: trip search
requests and the trips, legs and stops decoded from its XML responses.
"""

from datetime import datetime
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from trafiklab.core.identifiers import convert_id_to_hafas
from trafiklab.core.legs import LegVisitor, combine_walks, each_leg_contextual
from trafiklab.core.polyline import decode_polyline
from trafiklab.core.timeutils import parse_scheduled_and_realtime, to_stockholm


class ProductRef(IntEnum):
    """Product classes, combined into a bitmask for the products parameter."""

    TRAIN = 1
    METRO = 2
    TRAM = 4
    BUS = 8
    BOAT = 96
    COMMUTE = 128


ALL_PRODUCTS = sum(ProductRef)


class Walk(BaseModel):
    """Walking options at the start or end of a trip."""

    allow: bool = False
    min: int = Field(0, ge=0, description="Minimum walking distance in meters")
    max: int = Field(0, ge=0, description="Maximum walking distance in meters")
    linear: bool = False

    def to_param(self) -> str:
        return f"{int(self.allow)},{self.min},{self.max},{int(self.linear)}"


def _flag(value: bool) -> str:
    return "1" if value else "0"


class TripsRequest(BaseModel):
    """
    Trip search request.

    Site ids (origin, destination, via and avoid) may be given as legacy
    short ids; they are converted to HAFAS ids when building the query.
    """

    lang: str = "en"
    origin_id: Optional[str] = None
    origin_ext_id: Optional[str] = None
    origin_coord_lat: Optional[float] = None
    origin_coord_long: Optional[float] = None
    dest_id: Optional[str] = None
    dest_ext_id: Optional[str] = None
    dest_coord_lat: Optional[float] = None
    dest_coord_long: Optional[float] = None
    via: List[str] = Field(default_factory=list)
    via_id: Optional[str] = None
    via_wait_time: Optional[int] = Field(None, ge=0, description="Wait time at via stop in minutes")
    avoid: List[str] = Field(default_factory=list)
    avoid_id: Optional[str] = None
    change_time_percent: Optional[int] = None
    min_change_time: Optional[int] = None
    max_change_time: Optional[int] = None
    add_change_time: Optional[int] = None
    max_change: Optional[int] = None
    time: Optional[datetime] = Field(None, description="Departure (or arrival) time")
    search_for_arrival: bool = False
    num_f: Optional[int] = Field(None, description="Number of trips after the search time")
    num_b: Optional[int] = Field(None, description="Number of trips before the search time")
    products: List[ProductRef] = Field(default_factory=list)
    avoid_products: List[ProductRef] = Field(default_factory=list)
    lines: List[str] = Field(default_factory=list)
    context: Optional[str] = Field(None, description="Scroll context from a previous search")
    poly: bool = False
    passlist: bool = False
    origin_walk: Optional[Walk] = None
    dest_walk: Optional[Walk] = None

    def to_params(self, api_key: str = "") -> Dict[str, str]:
        """
        Build the query parameters for trip.xml.

        Raises:
            FormatError: If a site id cannot be converted to a HAFAS id
        """
        params: Dict[str, str] = {}
        if api_key:
            params["key"] = api_key
        params["lang"] = self.lang or "en"

        if self.origin_id:
            params["originId"] = convert_id_to_hafas(self.origin_id)
        if self.origin_ext_id:
            params["originExtId"] = self.origin_ext_id
        if self.origin_coord_lat is not None:
            params["originCoordLat"] = str(self.origin_coord_lat)
        if self.origin_coord_long is not None:
            params["originCoordLong"] = str(self.origin_coord_long)
        if self.dest_id:
            params["destId"] = convert_id_to_hafas(self.dest_id)
        if self.dest_ext_id:
            params["destExtId"] = self.dest_ext_id
        if self.dest_coord_lat is not None:
            params["destCoordLat"] = str(self.dest_coord_lat)
        if self.dest_coord_long is not None:
            params["destCoordLong"] = str(self.dest_coord_long)

        if self.via:
            params["via"] = ";".join(convert_id_to_hafas(v) for v in self.via)
        if self.via_id:
            params["viaId"] = convert_id_to_hafas(self.via_id)
        if self.via_wait_time is not None:
            params["viaWaitTime"] = str(self.via_wait_time)
        if self.avoid:
            params["avoid"] = ";".join(self.avoid)
        if self.avoid_id:
            params["avoidId"] = convert_id_to_hafas(self.avoid_id)

        for name, value in (
            ("changeTimePercent", self.change_time_percent),
            ("minChangeTime", self.min_change_time),
            ("maxChangeTime", self.max_change_time),
            ("addChangeTime", self.add_change_time),
            ("maxChange", self.max_change),
        ):
            if value is not None:
                params[name] = str(value)

        if self.time is not None:
            local = to_stockholm(self.time)
            params["date"] = local.strftime("%Y-%m-%d")
            params["time"] = local.strftime("%H:%M")
        params["searchForArrival"] = _flag(self.search_for_arrival)

        if self.num_f is not None:
            params["numF"] = str(self.num_f)
        if self.num_b is not None:
            params["numB"] = str(self.num_b)

        if self.products:
            params["products"] = str(sum(set(self.products)))
        elif self.avoid_products:
            params["products"] = str(ALL_PRODUCTS - sum(set(self.avoid_products)))

        lines = [line for line in self.lines if line]
        if lines:
            params["lines"] = ",".join(lines)
        if self.context:
            params["context"] = self.context

        params["poly"] = _flag(self.poly)
        params["passlist"] = _flag(self.passlist)

        if self.origin_walk is not None:
            params["originWalk"] = self.origin_walk.to_param()
        if self.dest_walk is not None:
            params["destWalk"] = self.dest_walk.to_param()

        return params


class JourneyDetailRequest(BaseModel):
    """Request for the stops and geometry of a single journey."""

    id: str = Field(..., min_length=1, description="Journey reference from a leg")
    poly: bool = False

    def to_params(self, api_key: str = "") -> Dict[str, str]:
        params: Dict[str, str] = {}
        if api_key:
            params["key"] = api_key
        params["id"] = self.id
        if self.poly:
            params["poly"] = "1"
        return params


class ServiceDay(BaseModel):
    """Validity window of a trip."""

    s_days_r: str = ""
    s_days_i: str = ""
    s_days_b: str = ""
    planning_period_begin: str = ""
    planning_period_end: str = ""


class Location(BaseModel):
    """Origin or destination of a leg."""

    id: str = ""
    ext_id: str = ""
    name: str = ""
    type: str = ""
    lon: float = 0.0
    lat: float = 0.0
    has_main_mast: bool = False
    main_mast_id: str = ""
    main_mast_ext_id: str = ""
    date: str = ""
    rt_date: str = ""
    time: str = ""
    rt_time: str = ""
    track: str = ""
    prognosis_type: str = ""

    def parse_time(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Scheduled and real-time timestamps; real-time falls back to scheduled."""
        return parse_scheduled_and_realtime(self.date, self.time, self.rt_date, self.rt_time)


class JourneyDetailRef(BaseModel):
    ref: str = ""


class Message(BaseModel):
    """Service deviation message attached to a leg."""

    id: str = ""
    act: bool = False
    head: str = ""
    text: str = ""
    priority: int = 0
    category: str = ""
    products: int = 0
    start_time: str = ""
    start_date: str = ""
    end_time: str = ""
    end_date: str = ""


class Note(BaseModel):
    priority: int = 0
    text: str = ""


class Product(BaseModel):
    """Line and operator of a transport leg."""

    category_code: int = 0
    category_in: str = ""
    category_out: str = ""
    category_out_locale: str = ""
    category_out_short: str = ""
    line: str = ""
    name: str = ""
    num: str = ""
    operator: str = ""
    operator_code: str = ""
    admin: str = ""


class Polyline(BaseModel):
    """Geometry of a leg as a flat, optionally delta encoded, coordinate list."""

    type: str = ""
    dim: str = ""
    crd_enc_s: str = ""
    delta: bool = False
    crd: List[float] = Field(default_factory=list)

    def lat_lng(self) -> List[Tuple[float, float]]:
        """
        Raises:
            MalformedPolyline: If crd has an odd number of values
        """
        return decode_polyline(self.crd, self.delta)


class Stop(BaseModel):
    """Intermediate stop of a leg."""

    departure_date: str = ""
    rt_departure_date: str = ""
    departure_time: str = ""
    rt_departure_time: str = ""
    arrival_date: str = ""
    rt_arrival_date: str = ""
    arrival_time: str = ""
    rt_arrival_time: str = ""
    route_idx: int = 0
    name: str = ""
    id: str = ""
    ext_id: str = ""
    lon: float = 0.0
    lat: float = 0.0
    has_main_mast: bool = False
    main_mast_id: str = ""
    main_mast_ext_id: str = ""
    departure_track: str = ""
    arrival_track: str = ""

    def parse_arrival(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        return parse_scheduled_and_realtime(
            self.arrival_date, self.arrival_time, self.rt_arrival_date, self.rt_arrival_time
        )

    def parse_departure(self) -> Tuple[Optional[datetime], Optional[datetime]]:
        return parse_scheduled_and_realtime(
            self.departure_date,
            self.departure_time,
            self.rt_departure_date,
            self.rt_departure_time,
        )


class FareItem(BaseModel):
    name: str = ""
    description: str = ""
    currency: str = ""
    price: int = 0


class FareSetItem(BaseModel):
    name: str = ""
    description: str = ""
    fares: List[FareItem] = Field(default_factory=list)


class Leg(BaseModel):
    """A single segment of a trip, either a walk or a transport leg."""

    distance: int = Field(0, ge=0, description="Distance in meters")
    type: str = Field("", description='Leg type, "WALK" for walking segments')
    idx: int = 0
    cancelled: bool = False
    name: str = ""
    number: str = ""
    category: str = ""
    reachable: bool = False
    direction: str = ""
    origin: Location = Field(default_factory=Location)
    destination: Location = Field(default_factory=Location)
    journey_detail: JourneyDetailRef = Field(default_factory=JourneyDetailRef)
    messages: List[Message] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    journey_status: str = ""
    product: Optional[Product] = None
    polyline: Optional[Polyline] = None
    stops: List[Stop] = Field(default_factory=list)

    @property
    def is_walk(self) -> bool:
        return self.type == "WALK"


class Trip(BaseModel):
    """A complete journey option."""

    idx: str = ""
    ctx_recon: str = Field("", description="Reconstruction context for Reconstruction.xml")
    checksum: str = ""
    trip_id: str = ""
    valid: bool = True
    duration: str = Field("", description="ISO 8601 duration, e.g. PT32M")
    service_days: List[ServiceDay] = Field(default_factory=list)
    legs: List[Leg] = Field(default_factory=list)
    tariff: List[FareSetItem] = Field(default_factory=list)

    def combine_walks(self) -> "Trip":
        """Return a copy of the trip with adjacent walks merged and short walks removed."""
        return self.model_copy(update={"legs": combine_walks(self.legs)})

    def each_leg_contextual(self, visit: LegVisitor) -> None:
        """
        Call visit(leg, prev_leg, prev_transport_leg, next_leg,
        next_transport_leg, i) for every leg. Absent neighbours are None.
        """
        each_leg_contextual(self.legs, visit)


class TripsResponse(BaseModel):
    """Response of a trip search."""

    scr_b: str = Field("", description="Scroll context for earlier trips")
    scr_f: str = Field("", description="Scroll context for later trips")
    trips: List[Trip] = Field(default_factory=list)

    def combine_walks(self) -> "TripsResponse":
        return self.model_copy(update={"trips": [trip.combine_walks() for trip in self.trips]})


class TripResponse(BaseModel):
    """Response of a trip reconstruction."""

    scr_b: str = ""
    scr_f: str = ""
    trip: Optional[Trip] = None
