"""Tests for the session registry."""

from __future__ import annotations

import pytest

from timelinesource.config.settings import SourceSettings
from timelinesource.core.sessions import SessionNotFoundError, SessionRegistry
from timelinesource.gateways.memory.gateway import MemoryGateway
from timelinesource.models.request import PageRequest


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestSessionRegistry:
    async def test_open_binds_source(self, memory_gateway: MemoryGateway, account_id: str) -> None:
        registry = SessionRegistry(SourceSettings(), memory_gateway)
        session_id, source = await registry.open(account_id)

        assert session_id.startswith("ses_")
        assert await registry.get(session_id) is source
        assert source.record_id == account_id
        assert len(registry) == 1

    async def test_sessions_have_separate_snapshots(self, memory_gateway: MemoryGateway, account_id: str) -> None:
        registry = SessionRegistry(SourceSettings(), memory_gateway)
        _, first = await registry.open(account_id)
        _, second = await registry.open(account_id)

        await first.get_records_data(PageRequest())
        await first.get_records_data(PageRequest())
        await second.get_records_data(PageRequest())

        assert first.cache is not second.cache
        assert memory_gateway.fetch_count == 2

    async def test_close(self, memory_gateway: MemoryGateway, account_id: str) -> None:
        registry = SessionRegistry(SourceSettings(), memory_gateway)
        session_id, source = await registry.open(account_id)
        await source.get_records_data(PageRequest())

        await registry.close(session_id)

        assert source.cache.get() is None
        with pytest.raises(SessionNotFoundError):
            await registry.get(session_id)
        with pytest.raises(SessionNotFoundError):
            await registry.close(session_id)

    async def test_close_all(self, memory_gateway: MemoryGateway, account_id: str) -> None:
        registry = SessionRegistry(SourceSettings(), memory_gateway)
        await registry.open(account_id)
        await registry.open(None, fallback_record_id=account_id)

        await registry.close_all()

        assert len(registry) == 0


class TestSessionEviction:
    async def test_idle_session_expires(self, memory_gateway: MemoryGateway, account_id: str) -> None:
        clock = FakeClock()
        registry = SessionRegistry(SourceSettings(session_idle_ttl=60), memory_gateway, clock=clock)
        session_id, source = await registry.open(account_id)
        await source.get_records_data(PageRequest())

        clock.now += 61

        with pytest.raises(SessionNotFoundError):
            await registry.get(session_id)
        assert len(registry) == 0
        assert source.cache.get() is None

    async def test_use_keeps_session_alive(self, memory_gateway: MemoryGateway, account_id: str) -> None:
        clock = FakeClock()
        registry = SessionRegistry(SourceSettings(session_idle_ttl=60), memory_gateway, clock=clock)
        session_id, source = await registry.open(account_id)

        for _ in range(3):
            clock.now += 45
            assert await registry.get(session_id) is source

    async def test_open_sweeps_expired_sessions(self, memory_gateway: MemoryGateway, account_id: str) -> None:
        clock = FakeClock()
        registry = SessionRegistry(SourceSettings(session_idle_ttl=60), memory_gateway, clock=clock)
        stale_id, stale = await registry.open(account_id)
        clock.now += 30
        fresh_id, _ = await registry.open(account_id)
        clock.now += 40

        await registry.open(account_id)

        assert len(registry) == 2
        assert stale.cache.get() is None
        await registry.get(fresh_id)
        with pytest.raises(SessionNotFoundError):
            await registry.get(stale_id)

    async def test_capacity_evicts_least_recently_used(self, memory_gateway: MemoryGateway, account_id: str) -> None:
        clock = FakeClock()
        registry = SessionRegistry(SourceSettings(max_sessions=2), memory_gateway, clock=clock)
        first_id, _ = await registry.open(account_id)
        clock.now += 1
        second_id, second = await registry.open(account_id)
        clock.now += 1
        await registry.get(first_id)

        third_id, _ = await registry.open(account_id)

        assert len(registry) == 2
        assert second.cache.get() is None
        await registry.get(first_id)
        await registry.get(third_id)
        with pytest.raises(SessionNotFoundError):
            await registry.get(second_id)
