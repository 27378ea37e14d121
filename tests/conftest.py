"""Shared test fixtures and configuration."""

from __future__ import annotations

from typing import Any

import pytest

from timelinesource.config.settings import Settings, SourceSettings
from timelinesource.gateways.memory.gateway import MemoryGateway
from timelinesource.models.record import NormalizedRecord, RecordFields, Snapshot

ACCOUNT_ID = "5f1c0e2a-9b7d-4c3e-8a61-0d2f4b6c8e10"
OTHER_ACCOUNT_ID = "0a9b8c7d-6e5f-4a3b-2c1d-0e9f8a7b6c5d"


def _record(record_id: str, status: str | None, sort_key: str, **fields: Any) -> NormalizedRecord:
    """Build a NormalizedRecord with a well-formed payload."""
    payload = RecordFields(status=status, created_on=sort_key, **fields).model_dump_json()
    return NormalizedRecord(id=record_id, sort_key=sort_key, payload=payload)


@pytest.fixture
def account_id() -> str:
    """Host record id the sample emails are regarding."""
    return ACCOUNT_ID


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance backed by the memory gateway."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        gateway={"backend": "memory"},
        observability={"log_format": "console", "log_level": "debug"},
    )


@pytest.fixture
def source_settings() -> SourceSettings:
    return SourceSettings(icon_url="https://example.com/icons/email.svg")


@pytest.fixture
def abc_snapshot() -> Snapshot:
    """Three records: A(Shipped, day1), B(Delivered, day3), C(Shipped, day2)."""
    return Snapshot(
        records=(
            _record("A", "Shipped", "2024-03-01T09:00:00Z", title="Order 1001", recipient="alice@example.com"),
            _record("B", "Delivered", "2024-03-03T09:00:00Z", title="Order 1002", recipient="bob@example.com"),
            _record("C", "Shipped", "2024-03-02T09:00:00Z", title="Order 1003", tracking="1Z999AA10123456784"),
        )
    )


@pytest.fixture
def raw_emails() -> list[dict[str, Any]]:
    """Raw email activities as the Web API returns them."""
    return [
        {
            "activityid": "e-001",
            "subject": "Your order has shipped",
            "statuscode": 3,
            "statuscode@OData.Community.Display.V1.FormattedValue": "Shipped",
            "torecipients": "alice@example.com",
            "trackingtoken": "TRK-1001",
            "createdon": "2024-03-01T09:00:00Z",
            "_regardingobjectid_value": ACCOUNT_ID,
            "mrc_methodofcommunication": 1,
        },
        {
            "activityid": "e-002",
            "subject": "Delivery confirmation",
            "statuscode": 4,
            "statuscode@OData.Community.Display.V1.FormattedValue": "Delivered",
            "torecipients": "alice@example.com",
            "trackingtoken": "TRK-1001",
            "createdon": "2024-03-03T15:30:00Z",
            "_regardingobjectid_value": ACCOUNT_ID,
            "mrc_methodofcommunication": 1,
        },
        {
            "activityid": "e-003",
            "subject": "Second parcel on its way",
            "statuscode": 3,
            "statuscode@OData.Community.Display.V1.FormattedValue": "Shipped",
            "torecipients": "carol@example.com",
            "trackingtoken": "TRK-2002",
            "createdon": "2024-03-02T11:15:00Z",
            "_regardingobjectid_value": ACCOUNT_ID,
            "mrc_methodofcommunication": 2,
        },
        {
            "activityid": "e-004",
            "subject": "Internal note",
            "statuscode": 1,
            "createdon": "2024-03-04T08:00:00Z",
            "_regardingobjectid_value": ACCOUNT_ID,
            "mrc_methodofcommunication": 4,
        },
        {
            "activityid": "e-005",
            "subject": "Unrelated account",
            "statuscode": 3,
            "createdon": "2024-03-05T08:00:00Z",
            "_regardingobjectid_value": OTHER_ACCOUNT_ID,
            "mrc_methodofcommunication": 1,
        },
    ]


@pytest.fixture
def memory_gateway(raw_emails: list[dict[str, Any]]) -> MemoryGateway:
    return MemoryGateway(items={"emails": raw_emails})
