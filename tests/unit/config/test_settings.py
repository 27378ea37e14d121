"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from timelinesource.config.settings import Settings, SourceSettings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.gateway.backend == "webapi"
        assert settings.source.entity_set == "emails"
        assert settings.source.facet_fields == ["status"]
        assert settings.source.fields.select()[0] == "activityid"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TIMELINESOURCE_GATEWAY__BASE_URL", "https://org.example.com/")
        monkeypatch.setenv("TIMELINESOURCE_SOURCE__ENTITY_SET", "tasks")
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.gateway.base_url == "https://org.example.com"
        assert settings.source.entity_set == "tasks"

    def test_search_fields_from_string(self) -> None:
        assert SourceSettings(search_fields="title, tracking").search_fields == ["title", "tracking"]

    def test_facet_fields_deduplicated(self) -> None:
        source = SourceSettings(
            facet_groups=[
                {"name": "a", "field": "status"},
                {"name": "b", "field": "recipient"},
                {"name": "c", "field": "status"},
            ]
        )
        assert source.facet_fields == ["status", "recipient"]

    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("gateway:\n  backend: memory\nsource:\n  name: Shipments\n  extra_filter: null\n")
        settings = Settings.from_yaml(path)
        assert settings.gateway.backend == "memory"
        assert settings.source.name == "Shipments"
        assert settings.source.extra_filter is None

    def test_from_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")
