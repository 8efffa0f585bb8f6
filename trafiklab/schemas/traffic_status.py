"""
Traffic Status Schema

Pydantic models for the traffic situation overview (trafficsituation.xml).
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class EventIcon(str, Enum):
    PLANNED = "EventPlanned"
    GOOD = "EventGood"
    MINOR = "EventMinor"
    MAJOR = "EventMajor"


class TrafficEvent(BaseModel):
    event_id: int = 0
    message: str = ""
    line_numbers: str = ""
    expanded: bool = False
    planned: bool = False
    sort_index: int = 0
    traffic_line: str = ""
    event_info_url: str = ""
    status_icon: str = ""


class TrafficType(BaseModel):
    """Status of one mode of transport, e.g. metro."""

    name: str = ""
    type: str = ""
    status_icon: str = Field("", description="One of the EventIcon values")
    expanded: bool = False
    has_planned_event: bool = False
    events: List[TrafficEvent] = Field(default_factory=list)

    @property
    def is_good(self) -> bool:
        return self.status_icon == EventIcon.GOOD


class TrafficStatusResponse(BaseModel):
    status_code: int = 0
    message: str = ""
    execution_time: int = 0
    traffic_types: List[TrafficType] = Field(default_factory=list)
