"""Response models — Shapes returned to the host widget."""

from __future__ import annotations

from pydantic import BaseModel, Field

from timelinesource.models.request import FacetOption


class HostDisplayRecord(BaseModel):
    """A record in the host's renderable shape."""

    id: str = Field(description="Record identifier")
    sort_date_value: str = Field(description="Timestamp the host positions the record by")
    header: str = Field(description="First line of the timeline card")
    body: str = Field(default="", description="Card body text")
    footer: str = Field(default="", description="Card footer text")
    icon_url: str | None = Field(default=None, description="Icon shown next to the card")
    data: str = Field(default="", description="Serialized record payload, passed back for get_record_ux")


class PageResult(BaseModel):
    """One page of records for the host."""

    request_id: str = Field(default="", description="Echo of PageRequest.request_id")
    records: list[HostDisplayRecord] = Field(default_factory=list, description="Records of this page")
    more_available: bool = Field(default=False, description="Whether records remain after this page")

    @classmethod
    def empty(cls, request_id: str) -> PageResult:
        return cls(request_id=request_id, records=[], more_available=False)


class FacetGroupDescriptor(BaseModel):
    """A facet group the host can render in its filter pane."""

    name: str = Field(description="Group name sent back in FilterSpec")
    field: str = Field(description="Record field the group filters on")
    label: str = Field(description="Display label")
    options: list[FacetOption] = Field(default_factory=list, description="Available options, none selected")


class SourceInfo(BaseModel):
    """Identification of the record source."""

    name: str = Field(description="Record source name")
