"""Data models shared by the gateway, cache, pipeline and API layers."""

from timelinesource.models.record import (
    MalformedRecordError,
    NormalizedRecord,
    RawItem,
    RecordFields,
    Snapshot,
)
from timelinesource.models.request import FacetGroup, FacetOption, FilterSpec, PageRequest, SourceContext
from timelinesource.models.response import FacetGroupDescriptor, HostDisplayRecord, PageResult, SourceInfo

__all__ = [
    "FacetGroup",
    "FacetGroupDescriptor",
    "FacetOption",
    "FilterSpec",
    "HostDisplayRecord",
    "MalformedRecordError",
    "NormalizedRecord",
    "PageRequest",
    "PageResult",
    "RawItem",
    "RecordFields",
    "Snapshot",
    "SourceContext",
    "SourceInfo",
]
