"""Unit tests for the coordinator's agent registry."""

from datetime import datetime, timedelta, timezone

import pytest

from workplace_agents.coordination.models import AgentDescriptor, RecordStatus
from workplace_agents.coordination.registry import AgentRegistry

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_descriptor(agent_id="hr-agent-1", name="hr"):
    return AgentDescriptor(
        agent_id=agent_id,
        name=name,
        description=f"{name} agent",
        url=f"http://{name}.test",
        capabilities=["Answer questions"],
        llm_providers=["ollama"],
    )


class TestAgentRegistry:
    """Test cases for AgentRegistry."""

    @pytest.mark.asyncio
    async def test_register(self, settings):
        """Test registering creates an active record."""
        registry = AgentRegistry(settings)

        record = await registry.register(make_descriptor(), now=T0)

        assert record.status == RecordStatus.ACTIVE
        assert record.registered_at == T0
        assert record.last_heartbeat_at == T0
        assert await registry.get("hr-agent-1") is record

    @pytest.mark.asyncio
    async def test_reregister_keeps_registration_time(self, settings):
        """Test re-registering the same id replaces the record but keeps registered_at."""
        registry = AgentRegistry(settings)
        await registry.register(make_descriptor(), now=T0)

        later = T0 + timedelta(seconds=120)
        record = await registry.register(make_descriptor(), now=later)

        assert record.registered_at == T0
        assert record.last_heartbeat_at == later
        assert len(await registry.list_records()) == 1

    @pytest.mark.asyncio
    async def test_heartbeat(self, settings):
        """Test heartbeats refresh known agents only."""
        registry = AgentRegistry(settings)
        await registry.register(make_descriptor(), now=T0)

        later = T0 + timedelta(seconds=30)

        assert await registry.heartbeat("hr-agent-1", now=later)
        assert (await registry.get("hr-agent-1")).last_heartbeat_at == later
        assert not await registry.heartbeat("unknown-agent", now=later)

    @pytest.mark.asyncio
    async def test_sweep_marks_suspect_then_evicts(self, settings):
        """Test records age from active to suspect to evicted."""
        registry = AgentRegistry(settings)
        await registry.register(make_descriptor(), now=T0)

        evicted = await registry.sweep(now=T0 + timedelta(seconds=60))
        assert evicted == []
        assert (await registry.get("hr-agent-1")).status == RecordStatus.ACTIVE

        await registry.sweep(now=T0 + timedelta(seconds=91))
        assert (await registry.get("hr-agent-1")).status == RecordStatus.SUSPECT
        assert await registry.list_records(only_active=True) == []

        evicted = await registry.sweep(now=T0 + timedelta(seconds=301))
        assert [r.agent_id for r in evicted] == ["hr-agent-1"]
        assert evicted[0].status == RecordStatus.EXPIRED
        assert await registry.get("hr-agent-1") is None

    @pytest.mark.asyncio
    async def test_heartbeat_reactivates_suspect(self, settings):
        """Test a heartbeat brings a suspect record back to active."""
        registry = AgentRegistry(settings)
        await registry.register(make_descriptor(), now=T0)
        await registry.sweep(now=T0 + timedelta(seconds=100))

        await registry.heartbeat("hr-agent-1", now=T0 + timedelta(seconds=101))

        assert (await registry.get("hr-agent-1")).status == RecordStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_unregister(self, settings):
        """Test unregistering removes the record."""
        registry = AgentRegistry(settings)
        await registry.register(make_descriptor(), now=T0)

        removed = await registry.unregister("hr-agent-1")

        assert removed.agent_id == "hr-agent-1"
        assert await registry.list_records() == []
        assert await registry.unregister("hr-agent-1") is None

    @pytest.mark.asyncio
    async def test_records_are_independent(self, settings):
        """Test aging one agent does not affect another."""
        registry = AgentRegistry(settings)
        await registry.register(make_descriptor("hr-agent-1", "hr"), now=T0)
        await registry.register(make_descriptor("it-agent-1", "it"), now=T0 + timedelta(seconds=250))

        await registry.sweep(now=T0 + timedelta(seconds=301))

        remaining = await registry.list_records()
        assert [r.agent_id for r in remaining] == ["it-agent-1"]
        assert remaining[0].status == RecordStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_public_view(self, settings):
        """Test the public record view uses the wire keys."""
        registry = AgentRegistry(settings)
        record = await registry.register(make_descriptor(), now=T0)

        view = record.to_public_dict()

        assert view["agentId"] == "hr-agent-1"
        assert view["LLMProviders"] == ["ollama"]
        assert view["status"] == "active"
        assert view["registeredAt"] == T0.isoformat()

    @pytest.mark.asyncio
    async def test_start_stop(self, settings):
        """Test the sweep task starts and stops cleanly."""
        registry = AgentRegistry(settings)

        await registry.start()
        assert registry._sweep_task is not None

        await registry.stop()
        assert registry._sweep_task is None
