"""
Deviations Schema

Pydantic models for SL's service deviations API (/v1/messages).
"""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, RootModel

from trafiklab.schemas.departures import TransportMode


class DeviationsRequest(BaseModel):
    """Filters for current (and optionally future) deviation messages."""

    future: bool = Field(False, description="Include deviations that have not started yet")
    transport_authority: int = Field(0, ge=0, description="1 for SL, 0 to leave unset")
    line_numbers: List[int] = Field(default_factory=list)
    transport_modes: List[TransportMode] = Field(default_factory=list)
    site_ids: List[int] = Field(default_factory=list)

    def to_params(self) -> List[Tuple[str, str]]:
        """Repeated filters are sent as repeated parameters."""
        params: List[Tuple[str, str]] = []
        params.extend(("transport_mode", mode.value) for mode in self.transport_modes)
        params.extend(("line", str(line)) for line in self.line_numbers)
        params.extend(("site", str(site)) for site in self.site_ids)
        if self.future:
            params.append(("future", "true"))
        if self.transport_authority:
            params.append(("transport_authority", str(self.transport_authority)))
        return params


class Publish(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_time: Optional[datetime] = Field(None, alias="from")
    upto: Optional[datetime] = None


class Priority(BaseModel):
    importance_level: int = 0
    influence_level: int = 0
    urgency_level: int = 0


class MessageVariant(BaseModel):
    header: str = ""
    details: str = ""
    scope_alias: str = ""
    weblink: Optional[str] = None
    language: str = Field("", description='"sv" or "en"')


class DeviationStopPoint(BaseModel):
    id: int = 0
    name: str = ""


class DeviationStopArea(BaseModel):
    id: int = 0
    transport_authority: int = 0
    name: str = ""
    type: str = ""
    stop_points: List[DeviationStopPoint] = Field(default_factory=list)


class DeviationLine(BaseModel):
    id: int = 0
    transport_authority: int = 0
    designation: str = ""
    transport_mode: str = ""
    name: str = ""
    group_of_lines: str = ""


class Scope(BaseModel):
    stop_areas: List[DeviationStopArea] = Field(default_factory=list)
    lines: List[DeviationLine] = Field(default_factory=list)


class DeviationMessage(BaseModel):
    """A deviation case with its message in one or more languages."""

    version: int = 0
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    deviation_case_id: int = 0
    publish: Publish = Field(default_factory=Publish)
    priority: Priority = Field(default_factory=Priority)
    message_variants: List[MessageVariant] = Field(default_factory=list)
    scope: Scope = Field(default_factory=Scope)

    def variant(self, language: str) -> Optional[MessageVariant]:
        """The message in the given language, falling back to the first variant."""
        for message in self.message_variants:
            if message.language == language:
                return message
        return self.message_variants[0] if self.message_variants else None


class DeviationsResponse(RootModel[List[DeviationMessage]]):
    """The API answers with a bare JSON array."""

    def __iter__(self):
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)
