"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (TIMELINESOURCE_ prefix)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ServerSettings(BaseModel):
    """HTTP surface configuration."""

    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class GatewaySettings(BaseModel):
    """Remote fetch gateway configuration."""

    backend: str = Field(default="webapi", description="Gateway backend: webapi, memory")
    base_url: str = Field(default="http://localhost:8081", description="Organization root URL of the Web API")
    api_version: str = Field(default="9.2", description="Web API version segment")
    access_token: str | None = Field(default=None, description="Bearer token for the Web API")
    timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")
    max_page_size: int = Field(default=500, ge=1, description="Preferred server page size (odata.maxpagesize)")
    max_pages: int = Field(default=20, ge=1, description="Maximum @odata.nextLink pages followed per fetch")

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class FieldMapping(BaseModel):
    """Column names of the backing entity consumed by the record source."""

    primary_key: str = Field(default="activityid", description="Primary key column")
    title: str = Field(default="subject", description="Title column")
    status: str = Field(default="statuscode", description="Status code column")
    recipient: str = Field(default="torecipients", description="Recipient column")
    tracking: str = Field(default="trackingtoken", description="Tracking code column")
    timestamp: str = Field(default="createdon", description="Creation timestamp column")

    def select(self) -> list[str]:
        """Column list for the ``$select`` clause, primary key first."""
        return [self.primary_key, self.title, self.status, self.recipient, self.tracking, self.timestamp]


class FacetOptionConfig(BaseModel):
    """One selectable value of a facet group."""

    value: str = Field(description="Value matched against the record field")
    label: str | None = Field(default=None, description="Display label (defaults to value)")


class FacetGroupConfig(BaseModel):
    """A facet group offered to the host filter pane."""

    name: str = Field(description="Group name sent back by the host")
    field: str = Field(default="status", description="Record field the group filters on")
    label: str | None = Field(default=None, description="Display label (defaults to name)")
    options: list[FacetOptionConfig] = Field(default_factory=list, description="Selectable values")


def _default_facet_groups() -> list[FacetGroupConfig]:
    return [
        FacetGroupConfig(
            name="status",
            field="status",
            label="Status",
            options=[
                FacetOptionConfig(value="Shipped"),
                FacetOptionConfig(value="Delivered"),
                FacetOptionConfig(value="Pending"),
            ],
        ),
    ]


class SourceSettings(BaseModel):
    """Record source behaviour."""

    name: str = Field(default="TimelineRecordSource", description="Name reported to the host")
    entity_set: str = Field(default="emails", description="Entity set queried on the backing store")
    regarding_field: str = Field(
        default="_regardingobjectid_value",
        description="Column compared against the host record id",
    )
    extra_filter: str | None = Field(
        default="mrc_methodofcommunication ne 4",
        description="Additional predicate joined with 'and'",
    )
    fields: FieldMapping = Field(default_factory=FieldMapping)
    search_fields: list[str] = Field(
        default=["title", "status", "recipient", "tracking"],
        description="Record fields concatenated for keyword search",
    )
    facet_groups: list[FacetGroupConfig] = Field(default_factory=_default_facet_groups)
    icon_url: str | None = Field(default=None, description="Icon shown next to each timeline record")
    session_idle_ttl: float = Field(default=1800.0, gt=0, description="Seconds before an unused session is closed")
    max_sessions: int = Field(default=1000, ge=1, description="Open sessions before the least recently used is closed")

    @field_validator("search_fields", mode="before")
    @classmethod
    def _parse_search_fields(cls, v: Any) -> list[str]:
        """Accept a comma separated string (env var) or a list."""
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return list(v)

    @property
    def facet_fields(self) -> list[str]:
        """Distinct record fields referenced by the facet groups, in order."""
        return list(dict.fromkeys(group.field for group in self.facet_groups))


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the TIMELINESOURCE_ prefix.
    Nested settings use double underscores: TIMELINESOURCE_GATEWAY__BASE_URL=https://org.example.com

    Example:
        TIMELINESOURCE_GATEWAY__ACCESS_TOKEN=eyJ...
        TIMELINESOURCE_SOURCE__ENTITY_SET=emails
        TIMELINESOURCE_OBSERVABILITY__LOG_FORMAT=console
    """

    model_config = {
        "env_prefix": "TIMELINESOURCE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="timelinesource", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    server: ServerSettings = Field(default_factory=ServerSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    source: SourceSettings = Field(default_factory=SourceSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are passed as init arguments and therefore
        take precedence over environment variables.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
