"""Request models — What the host widget sends with every records call."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt


class PageRequest(BaseModel):
    """Paging and ordering for one ``get_records_data`` call."""

    page_size: PositiveInt = Field(default=10, description="Maximum number of records to return")
    ascending: bool = Field(default=False, description="Sort oldest first when true")
    cursor: str | None = Field(default=None, description="Id of the last record the host already shows")
    request_id: str = Field(default="", description="Opaque token echoed back in the result")


class FacetOption(BaseModel):
    """One option of a facet group, with the host's current selection state."""

    value: str = Field(description="Value matched against the record's facet field")
    label: str | None = Field(default=None, description="Display label")
    is_selected: bool = Field(default=False, description="Whether the user ticked this option")


class FacetGroup(BaseModel):
    """A named group of facet options."""

    name: str = Field(description="Group name")
    options: list[FacetOption] = Field(default_factory=list, description="Options of the group")


class FilterSpec(BaseModel):
    """Search and facet constraints for one records call.

    Facet selection is global: the selected values of every group are
    flattened into one set, and a record passes when any of its facet fields
    holds one of them.  Two groups offering the same value therefore select
    the same records.
    """

    keyword: str | None = Field(default=None, description="Free-text search keyword")
    facets: list[FacetGroup] = Field(default_factory=list, description="Facet groups with selection state")

    def selected_values(self) -> set[str]:
        """Union of the selected option values across all groups."""
        return {option.value for group in self.facets for option in group.options if option.is_selected}


class SourceContext(BaseModel):
    """What the host hands to ``init``.

    ``record_id`` comes from the host's table context; ``fallback_record_id``
    is the legacy page-level lookup used when the table context is empty.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    record_id: str | None = Field(default=None, description="Host record identifier")
    fallback_record_id: str | None = Field(default=None, description="Legacy page-level record identifier")
    gateway: Any = Field(default=None, description="RecordGateway used to query the backing store")
