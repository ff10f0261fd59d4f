"""Unit tests for the dispatch resolver."""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import pytest

from workplace_agents.coordination.dispatch import (
    DispatchResolver,
    HttpScoreProvider,
    LocalScoreProvider,
    ScoreProvider,
    select_agent,
)
from workplace_agents.coordination.errors import NoAgentAvailable
from workplace_agents.coordination.models import (
    AgentDescriptor,
    ConnectionState,
    RecordStatus,
    RegistrationRecord,
    ScoreResult,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_record(agent_id, name, registered_at=T0, status=RecordStatus.ACTIVE, url=None):
    descriptor = AgentDescriptor(
        agent_id=agent_id,
        name=name,
        url=url or f"http://{name}.test",
    )
    return RegistrationRecord(
        descriptor=descriptor,
        registered_at=registered_at,
        last_heartbeat_at=registered_at,
        status=status,
    )


class StaticScoreProvider(ScoreProvider):
    """Returns canned scores; exceptions are raised, coroutines awaited."""

    def __init__(self, scores):
        self.scores = scores
        self.calls = []

    async def score(self, record, query):
        self.calls.append(record.agent_id)
        value = self.scores[record.agent_id]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return await value()
        return value


class TestSelectAgent:
    """Test cases for select_agent."""

    def setup_method(self):
        """Set up test fixtures."""
        self.records = {
            "hr-1": make_record("hr-1", "hr"),
            "it-1": make_record("it-1", "it"),
            "general-1": make_record("general-1", "general"),
        }

    def test_highest_score_wins(self):
        """Test the maximum score is selected."""
        scores = [ScoreResult("hr-1", 15), ScoreResult("it-1", 45), ScoreResult("general-1", 10)]
        assert select_agent(scores, self.records, "general").agent_id == "it-1"

    def test_fallback_excluded_when_specialist_matches(self):
        """Test the fallback never outranks a matching specialist."""
        scores = [ScoreResult("hr-1", 15), ScoreResult("it-1", 0), ScoreResult("general-1", 60)]
        assert select_agent(scores, self.records, "general").agent_id == "hr-1"

    def test_fallback_when_no_specialist_matches(self):
        """Test the fallback wins when every specialist scores zero."""
        scores = [ScoreResult("hr-1", 0), ScoreResult("it-1", 0), ScoreResult("general-1", 10)]
        assert select_agent(scores, self.records, "general").agent_id == "general-1"

    def test_tie_goes_to_most_recent_registration(self):
        """Test equal scores resolve to the most recently registered agent."""
        records = {
            "hr-old": make_record("hr-old", "hr", registered_at=T0),
            "hr-new": make_record("hr-new", "hr", registered_at=T0 + timedelta(seconds=5)),
        }
        scores = [ScoreResult("hr-old", 30), ScoreResult("hr-new", 30)]

        assert select_agent(scores, records, "general").agent_id == "hr-new"

    def test_tie_with_same_registration_uses_agent_id(self):
        """Test full ties resolve to the smallest agent id, whatever the input order."""
        records = {
            "hr-b": make_record("hr-b", "hr"),
            "hr-a": make_record("hr-a", "hr"),
        }
        scores = [ScoreResult("hr-b", 30), ScoreResult("hr-a", 30)]

        assert select_agent(scores, records, "general").agent_id == "hr-a"
        assert select_agent(list(reversed(scores)), records, "general").agent_id == "hr-a"

    def test_empty_scores(self):
        """Test no scores raises NoAgentAvailable."""
        with pytest.raises(NoAgentAvailable):
            select_agent([], self.records, "general")


class TestDispatchResolver:
    """Test cases for DispatchResolver."""

    def setup_method(self):
        """Set up test fixtures."""
        self.records = [
            make_record("hr-1", "hr"),
            make_record("it-1", "it"),
            make_record("general-1", "general"),
        ]

    @pytest.mark.asyncio
    async def test_resolve(self, settings):
        """Test resolve returns the best agent id."""
        provider = StaticScoreProvider({"hr-1": 15, "it-1": 0, "general-1": 10})
        resolver = DispatchResolver(provider, settings)

        assert await resolver.resolve("what is my salary", self.records) == "hr-1"

    @pytest.mark.asyncio
    async def test_inactive_records_are_not_scored(self, settings):
        """Test suspect agents are never considered."""
        records = self.records + [make_record("it-2", "it", status=RecordStatus.SUSPECT)]
        provider = StaticScoreProvider({"hr-1": 0, "it-1": 15, "it-2": 100, "general-1": 10})
        resolver = DispatchResolver(provider, settings)

        assert await resolver.resolve("vpn down", records) == "it-1"
        assert "it-2" not in provider.calls

    @pytest.mark.asyncio
    async def test_no_active_agents(self, settings):
        """Test an empty registry raises NoAgentAvailable."""
        resolver = DispatchResolver(StaticScoreProvider({}), settings)

        with pytest.raises(NoAgentAvailable):
            await resolver.resolve("hello", [])

    @pytest.mark.asyncio
    async def test_failed_scores_are_dropped(self, settings):
        """Test agents whose score fails are skipped."""
        provider = StaticScoreProvider({
            "hr-1": ConnectionError("unreachable"),
            "it-1": 0,
            "general-1": 10,
        })
        resolver = DispatchResolver(provider, settings)

        assert await resolver.resolve("what is my salary", self.records) == "general-1"

    @pytest.mark.asyncio
    async def test_slow_scores_time_out(self, settings):
        """Test a score slower than the timeout is dropped."""
        async def slow():
            await asyncio.sleep(5)
            return 100

        provider = StaticScoreProvider({"hr-1": slow, "it-1": 15, "general-1": 10})
        resolver = DispatchResolver(provider, settings)

        assert await resolver.resolve("printer", self.records) == "it-1"

    @pytest.mark.asyncio
    async def test_all_scores_failed(self, settings):
        """Test NoAgentAvailable when no agent could be scored."""
        provider = StaticScoreProvider({
            "hr-1": ConnectionError("down"),
            "it-1": ConnectionError("down"),
            "general-1": ConnectionError("down"),
        })
        resolver = DispatchResolver(provider, settings)

        with pytest.raises(NoAgentAvailable):
            await resolver.resolve("anything", self.records)

    @pytest.mark.asyncio
    async def test_rank(self, settings):
        """Test rank orders every obtained score best first."""
        provider = StaticScoreProvider({"hr-1": 15, "it-1": 30, "general-1": 10})
        resolver = DispatchResolver(provider, settings)

        ranked = await resolver.rank("query", self.records)

        assert [r.agent_id for r in ranked] == ["it-1", "hr-1", "general-1"]


class TestLocalScoreProvider:
    """Test cases for LocalScoreProvider."""

    @pytest.mark.asyncio
    async def test_disconnected_agent_skipped(self, settings):
        """Test an agent that lost its coordinator link is not waited on."""
        connected = SimpleNamespace(connection_state=ConnectionState(), can_handle=lambda q: 15)
        disconnected = SimpleNamespace(
            connection_state=ConnectionState(is_connected=False),
            can_handle=lambda q: 100,
        )
        provider = LocalScoreProvider({"hr-1": connected, "it-1": disconnected})
        resolver = DispatchResolver(provider, settings)

        records = [make_record("hr-1", "hr"), make_record("it-1", "it")]

        assert await provider.score(records[1], "query") is None
        assert await resolver.resolve("query", records) == "hr-1"

    @pytest.mark.asyncio
    async def test_unknown_agent(self):
        """Test a record without a local agent raises."""
        provider = LocalScoreProvider({})
        with pytest.raises(LookupError):
            await provider.score(make_record("hr-1", "hr"), "query")


class TestHttpScoreProvider:
    """Test cases for HttpScoreProvider."""

    @pytest.mark.asyncio
    async def test_posts_query_and_clamps(self):
        """Test the agent's /can_handle endpoint is called and the score clamped."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"agent": "hr", "confidence": 150})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = HttpScoreProvider(client, timeout_seconds=1.0)
            score = await provider.score(make_record("hr-1", "hr"), "salary")

        assert score == 100
        assert str(requests[0].url) == "http://hr.test/can_handle"
        assert json.loads(requests[0].content) == {"query": "salary"}

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        """Test a failing agent raises instead of scoring."""
        def handler(request):
            return httpx.Response(500)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            provider = HttpScoreProvider(client, timeout_seconds=1.0)
            with pytest.raises(httpx.HTTPStatusError):
                await provider.score(make_record("hr-1", "hr"), "salary")
