"""
Journey Planner Schema

Pydantic models for the EFA based Journey planner v2 API: validated trip
and stop finder requests, and the JSON responses of /trips and
/stop-finder.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from trafiklab.core.timeutils import to_stockholm
from trafiklab.schemas.geo import Coordinates
from trafiklab.schemas.stop_filter import StopFilter

SEARCH_TYPE_COORD = "coord"
SEARCH_TYPE_ANY = "any"

ROUTE_TYPE_LEAST_INTERCHANGE = "leastinterchange"
ROUTE_TYPE_LEAST_TIME = "leasttime"
ROUTE_TYPE_LEAST_WALKING = "leastwalking"

MOT_FLAG_COMMUTER_TRAIN = "commuter_train"
MOT_FLAG_METRO = "metro"
MOT_FLAG_TRAMS_TRAINS = "trams_trains"
MOT_FLAG_BUS = "bus"
MOT_FLAG_SHIP_FERRY = "ship_ferry"
MOT_FLAG_TRANSIT_ON_DEMAND = "transit_on_demand"
MOT_FLAG_NATIONAL_TRAIN = "national_train"
MOT_FLAG_ACCESSIBLE_BUS = "accessible_bus"

# Readable mode names to the incl_mot_* parameters of the API
MOT_FLAG_PARAMS: Dict[str, str] = {
    MOT_FLAG_COMMUTER_TRAIN: "incl_mot_0",
    MOT_FLAG_METRO: "incl_mot_2",
    MOT_FLAG_TRAMS_TRAINS: "incl_mot_4",
    MOT_FLAG_BUS: "incl_mot_5",
    MOT_FLAG_SHIP_FERRY: "incl_mot_9",
    MOT_FLAG_TRANSIT_ON_DEMAND: "incl_mot_10",
    MOT_FLAG_NATIONAL_TRAIN: "incl_mot_14",
    MOT_FLAG_ACCESSIBLE_BUS: "incl_mot_19",
}

VALID_FLAGS = frozenset(
    {
        "compute_monomodal_trip_pedestrian",
        "compute_monomodal_trip_bicycle",
        "calc_one_direction",
        "must_excl",
        "sel_op",
        "sel_line",
        "no_alt",
        "prefer_incl",
        "use_prox_foot_search",
        "use_only",
        "prefer_excl",
        "gen_c",
    }
)

SearchType = Literal["coord", "any"]


class TripsRequest(BaseModel):
    """
    Trip search request.

    Coordinate origins and destinations may be given as "lat,lng" and are
    normalized to the Trafiklab format. When neither include nor avoid mot
    flags are given, all modes are included.
    """

    at: datetime = Field(..., description="Date and time of the trip")
    num_trips: int = Field(..., ge=1, le=3, description="Number of trips to return")
    flags: List[str] = Field(default_factory=list)
    avoid_mot_flags: List[str] = Field(default_factory=list)
    include_mot_flags: List[str] = Field(default_factory=list)
    language: Optional[Literal["sv", "en"]] = None
    type_origin: SearchType
    name_origin: str = Field(..., min_length=1, description="lat,lng for coord, else id or name")
    type_destination: SearchType
    name_destination: str = Field(..., min_length=1)
    type_via: Optional[Literal["any"]] = None
    via_id: Optional[str] = None
    type_not_via: Optional[Literal["any"]] = None
    not_via_id: Optional[str] = None
    max_changes: int = Field(0, ge=0, le=9)
    max_time_pedestrian: int = Field(0, ge=0, le=120, description="Minutes")
    max_time_bicycle: int = Field(0, ge=0, le=120, description="Minutes")
    max_length_pedestrian: int = Field(0, ge=0, le=1000, description="Meters")
    min_length_pedestrian: int = Field(0, ge=0, le=1000, description="Meters")
    max_length_bicycle: int = Field(0, ge=0, le=1000, description="Meters")
    min_length_bicycle: int = Field(0, ge=0, le=1000, description="Meters")
    change_speed: int = Field(0, description="Walking speed in percent, 25-400")
    route_type: Optional[Literal["leastinterchange", "leasttime", "leastwalking"]] = None
    trip_date_time_dep_arr: Optional[Literal["dep", "arr"]] = None
    dwell_time: Optional[str] = Field(None, description="Extra waiting time at via stop (HHMM)")
    must_excl_lines: List[str] = Field(default_factory=list)
    prefer_excl_lines: List[str] = Field(default_factory=list)
    prefer_incl_lines: List[str] = Field(default_factory=list)
    use_only_operators: List[str] = Field(default_factory=list)
    must_excl_operators: List[str] = Field(default_factory=list)
    prefer_excl_operators: List[str] = Field(default_factory=list)
    prefer_incl_operators: List[str] = Field(default_factory=list)

    @field_validator("flags")
    @classmethod
    def validate_flags(cls, v: List[str]) -> List[str]:
        for flag in v:
            if flag not in VALID_FLAGS:
                raise ValueError(f"invalid flag: {flag}")
        return v

    @field_validator("avoid_mot_flags", "include_mot_flags")
    @classmethod
    def validate_mot_flags(cls, v: List[str]) -> List[str]:
        for flag in v:
            if flag not in MOT_FLAG_PARAMS:
                raise ValueError(f"invalid mot flag: {flag}")
        return v

    @field_validator("change_speed")
    @classmethod
    def validate_change_speed(cls, v: int) -> int:
        if v != 0 and not 25 <= v <= 400:
            raise ValueError("change_speed must be between 25 and 400")
        return v

    @model_validator(mode="after")
    def normalize(self) -> "TripsRequest":
        if self.avoid_mot_flags and self.include_mot_flags:
            raise ValueError("avoid_mot_flags and include_mot_flags cannot be used together")

        if self.type_origin == SEARCH_TYPE_COORD:
            self.name_origin = Coordinates.from_string(self.name_origin).to_trafiklab_string()
        if self.type_destination == SEARCH_TYPE_COORD:
            self.name_destination = Coordinates.from_string(
                self.name_destination
            ).to_trafiklab_string()

        if not self.avoid_mot_flags and not self.include_mot_flags:
            self.include_mot_flags = list(MOT_FLAG_PARAMS)
        return self

    def to_params(self) -> List[Tuple[str, str]]:
        """Build the query parameters for /trips. Repeated keys are kept in order."""
        local = to_stockholm(self.at)
        params: Dict[str, str] = {
            "itd_date": local.strftime("%Y%m%d"),
            "itd_time": local.strftime("%H%M"),
            "name_origin": self.name_origin,
            "name_destination": self.name_destination,
            "type_origin": self.type_origin,
            "type_destination": self.type_destination,
            "calc_number_of_trips": str(self.num_trips),
        }

        for flag in self.flags:
            params[flag] = "true"

        if self.avoid_mot_flags:
            for flag, param in MOT_FLAG_PARAMS.items():
                params[param] = "false" if flag in self.avoid_mot_flags else "true"
        else:
            for flag, param in MOT_FLAG_PARAMS.items():
                params[param] = "true" if flag in self.include_mot_flags else "false"

        optional: Dict[str, Any] = {
            "language": self.language,
            "type_via": self.type_via,
            "name_via": self.via_id,
            "type_not_via": self.type_not_via,
            "name_not_via": self.not_via_id,
            "route_type": self.route_type,
            "itd_trip_date_time_dep_arr": self.trip_date_time_dep_arr,
            "dwell_time": self.dwell_time,
        }
        for name, value in optional.items():
            if value:
                params[name] = value

        limits = {
            "max_changes": self.max_changes,
            "max_time_pedestrian": self.max_time_pedestrian,
            "max_time_bicycle": self.max_time_bicycle,
            "max_length_pedestrian": self.max_length_pedestrian,
            "min_length_pedestrian": self.min_length_pedestrian,
            "max_length_bicycle": self.max_length_bicycle,
            "min_length_bicycle": self.min_length_bicycle,
            "change_speed": self.change_speed,
        }
        for name, value in limits.items():
            if value > 0:
                params[name] = str(value)

        query = list(params.items())
        for name, values in (
            ("must_excl_line", self.must_excl_lines),
            ("prefer_excl_line", self.prefer_excl_lines),
            ("prefer_incl_line", self.prefer_incl_lines),
            ("use_only_op", self.use_only_operators),
            ("must_excl_op", self.must_excl_operators),
            ("prefer_excl_op", self.prefer_excl_operators),
            ("prefer_incl_op", self.prefer_incl_operators),
        ):
            query.extend((name, value) for value in values)

        return query


class StopFinderSearchRequest(BaseModel):
    """Stop finder search by name."""

    name: str = Field(..., min_length=1, description="Search string")
    filter: List[str] = Field(
        ..., description='Any of "none", "suburb", "stop", "street", "singlehouse", "unknown2", "poi"'
    )

    def to_params(self) -> Dict[str, str]:
        """
        Raises:
            InvalidFilterName: If the filter list is empty or has unknown names
        """
        stop_filter = StopFilter.from_names(self.filter)
        return {
            "name_sf": self.name,
            "type_sf": SEARCH_TYPE_ANY,
            "any_obj_filter_sf": str(int(stop_filter)),
        }


class StopFinderPosRequest(BaseModel):
    """Stop finder search around a position."""

    position: Coordinates
    filter: List[str]

    def to_params(self) -> Dict[str, str]:
        stop_filter = StopFilter.from_names(self.filter)
        return {
            "name_sf": self.position.to_trafiklab_string(),
            "type_sf": SEARCH_TYPE_COORD,
            "any_obj_filter_sf": str(int(stop_filter)),
        }


class ApiModel(BaseModel):
    """Base for response models using the provider's camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class SystemMessage(ApiModel):
    type: str = Field("", description='Type of message, e.g. "error"')
    module: str = Field("", description="Back-end module reporting the message")
    code: int = 0
    text: str = ""
    sub_type: str = Field("", alias="subType")


class JourneyProduct(ApiModel):
    id: int = 0
    product_class: int = Field(0, alias="class")
    name: str = ""
    icon_id: int = Field(0, alias="iconId")


class JourneyOperator(ApiModel):
    id: str = ""
    name: str = ""


class JourneyDestination(ApiModel):
    id: str = ""
    name: str = ""
    type: str = ""


class JourneyTransportation(ApiModel):
    """Line information of a leg."""

    id: str = ""
    name: str = ""
    number: str = ""
    product: JourneyProduct = Field(default_factory=JourneyProduct)
    operator: JourneyOperator = Field(default_factory=JourneyOperator)
    destination: JourneyDestination = Field(default_factory=JourneyDestination)
    properties: Dict[str, Any] = Field(default_factory=dict)
    is_samtrafik: bool = Field(False, alias="isSamtrafik")
    disassembled_name: str = Field("", alias="disassembledName")


class JourneyStop(ApiModel):
    """Stop or point along a journey leg."""

    is_global_id: bool = Field(False, alias="isGlobalId")
    id: str = ""
    name: str = Field("", description="Name including locality")
    disassembled_name: str = Field("", alias="disassembledName")
    type: str = ""
    coord: List[float] = Field(default_factory=list)
    level: int = Field(0, alias="niveau")
    parent: Optional["JourneyStop"] = None
    product_classes: List[int] = Field(default_factory=list, alias="productClasses")
    departure_time_base_timetable: Optional[datetime] = Field(
        None, alias="departureTimeBaseTimetable"
    )
    departure_time_planned: Optional[datetime] = Field(None, alias="departureTimePlanned")
    departure_time_estimated: Optional[datetime] = Field(None, alias="departureTimeEstimated")
    arrival_time_base_timetable: Optional[datetime] = Field(
        None, alias="arrivalTimeBaseTimetable"
    )
    arrival_time_planned: Optional[datetime] = Field(None, alias="arrivalTimePlanned")
    arrival_time_estimated: Optional[datetime] = Field(None, alias="arrivalTimeEstimated")
    properties: Dict[str, Any] = Field(default_factory=dict)


class JourneyInfoLink(ApiModel):
    properties: Dict[str, Any] = Field(default_factory=dict)
    title: str = ""
    url: str = ""


class JourneyInfo(ApiModel):
    """Service information attached to a leg."""

    id: str = ""
    info_links: List[JourneyInfoLink] = Field(default_factory=list, alias="infoLinks")
    priority: str = ""
    type: str = ""
    version: int = 0


class LegHint(ApiModel):
    provider_code: str = Field("", alias="providerCode")
    content: str = ""


class FootPathStop(ApiModel):
    coord: List[float] = Field(default_factory=list)
    id: str = ""
    is_global_id: bool = Field(False, alias="isGlobalId")
    name: str = ""
    properties: Dict[str, Any] = Field(default_factory=dict)
    type: str = ""


class FootPathElement(ApiModel):
    attributes: Dict[str, Any] = Field(default_factory=dict)
    description: str = ""
    origin: FootPathStop = Field(default_factory=FootPathStop)
    destination: FootPathStop = Field(default_factory=FootPathStop)
    level: str = ""
    level_from: int = Field(0, alias="levelFrom")
    level_to: int = Field(0, alias="levelTo")
    opening_hours: List[int] = Field(default_factory=list, alias="openingHours")


class FootPathInfo(ApiModel):
    duration: int = 0
    foot_path_elements: List[FootPathElement] = Field(default_factory=list, alias="footPathElem")
    position: str = ""


class JourneyDaysOfService(ApiModel):
    rvb: str = ""


class JourneyLeg(ApiModel):
    """A single segment of a journey."""

    infos: List[JourneyInfo] = Field(default_factory=list)
    hints: List[LegHint] = Field(default_factory=list)
    distance: int = Field(0, ge=0, description="Distance in meters")
    duration: int = Field(0, description="Duration in seconds")
    foot_path_info: List[FootPathInfo] = Field(default_factory=list, alias="footPathInfo")
    origin: JourneyStop = Field(default_factory=JourneyStop)
    destination: JourneyStop = Field(default_factory=JourneyStop)
    transportation: JourneyTransportation = Field(default_factory=JourneyTransportation)
    stop_sequence: List[JourneyStop] = Field(default_factory=list, alias="stopSequence")
    coords: List[List[float]] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)


class Journey(ApiModel):
    """A complete journey from origin to destination."""

    id: str = Field("", alias="tripId")
    duration: int = Field(0, alias="tripDuration", description="Duration in seconds")
    realtime_duration: int = Field(0, alias="tripRtDuration")
    rating: int = 0
    is_additional: bool = Field(False, alias="isAdditional")
    interchanges: int = 0
    is_realtime_only_informative: bool = Field(False, alias="isRealtimeOnlyInformative")
    realtime_explanation_idx: str = Field("", alias="realtimeExplanationIdx")
    legs: List[JourneyLeg] = Field(default_factory=list)
    days_of_service: JourneyDaysOfService = Field(
        default_factory=JourneyDaysOfService, alias="daysOfService"
    )
    trip_impossible: bool = Field(False, alias="tripImpossible")


class TripsResponse(ApiModel):
    system_messages: List[SystemMessage] = Field(
        default_factory=list,
        validation_alias=AliasChoices("systemMessages", "systemmessages"),
    )
    journeys: List[Journey] = Field(default_factory=list)


class ParentLocation(ApiModel):
    id: str = ""
    name: str = Field("", description="Name of the municipality")
    type: str = ""


class StopLocation(ApiModel):
    """A single stop finder match."""

    id: str = ""
    is_global_id: bool = Field(False, alias="isGlobalId")
    name: str = Field("", description="Name including municipality")
    disassembled_name: str = Field("", alias="disassembledName")
    coordinates: Optional[Coordinates] = Field(None, alias="coord")
    street_name: str = Field("", alias="streetName")
    building_number: str = Field("", alias="buildingNumber")
    type: str = Field("", description="address, stop, singlehouse, poi or street")
    match_quality: int = Field(0, alias="matchQuality")
    is_best: bool = Field(False, alias="isBest")
    product_classes: List[int] = Field(default_factory=list, alias="productClasses")
    parent: Optional[ParentLocation] = None

    @field_validator("coordinates", mode="before")
    @classmethod
    def coordinates_from_pair(cls, v: Any) -> Any:
        """The API sends coordinates as a [lat, lon] array."""
        if isinstance(v, (list, tuple)):
            if len(v) != 2:
                raise ValueError(f"expected 2 elements for coordinates, got {len(v)}")
            return {"latitude": v[0], "longitude": v[1]}
        return v


class StopFinderResponse(ApiModel):
    system_messages: List[SystemMessage] = Field(
        default_factory=list,
        validation_alias=AliasChoices("systemMessages", "systemmessages"),
    )
    locations: List[StopLocation] = Field(default_factory=list)
