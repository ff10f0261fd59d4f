"""
Dispatch resolver: picks the agent that should answer a query.

Scores are collected from every active agent, then the highest score wins.
The fallback agent is only eligible when no specialist matched at all.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import httpx

from workplace_agents.coordination.errors import NoAgentAvailable
from workplace_agents.coordination.models import RecordStatus, RegistrationRecord, ScoreResult
from workplace_agents.coordination.scoring import MAX_SCORE
from workplace_agents.utils.config import Settings, get_settings
from workplace_agents.utils.logger import get_logger


class ScoreProvider(ABC):
    """Source of capability scores for registered agents."""

    @abstractmethod
    async def score(self, record: RegistrationRecord, query: str) -> Optional[int]:
        """
        Score one agent for a query.

        Returns:
            Score in [0, 100], or None if the agent must not be considered
        """
        pass


class LocalScoreProvider(ScoreProvider):
    """Scores agents running in the same process."""

    def __init__(self, agents: Mapping[str, object]):
        """
        Args:
            agents: Agents keyed by agent id; each must expose ``can_handle``
                and ``connection_state``
        """
        self.agents = agents

    async def score(self, record: RegistrationRecord, query: str) -> Optional[int]:
        agent = self.agents.get(record.agent_id)
        if agent is None:
            raise LookupError(f"No local agent with id {record.agent_id}")

        if not agent.connection_state.is_connected:
            return None

        return agent.can_handle(query)


class HttpScoreProvider(ScoreProvider):
    """Asks remote agents for their score over ``POST /can_handle``."""

    def __init__(self, http_client: httpx.AsyncClient, timeout_seconds: float):
        self.http_client = http_client
        self.timeout = timeout_seconds

    async def score(self, record: RegistrationRecord, query: str) -> Optional[int]:
        response = await self.http_client.post(
            f"{record.descriptor.url.rstrip('/')}/can_handle",
            json={"query": query},
            timeout=self.timeout
        )
        response.raise_for_status()

        confidence = int(response.json()["confidence"])
        return max(0, min(confidence, MAX_SCORE))


def _ranking_key(result: ScoreResult, records: Mapping[str, RegistrationRecord]):
    registered_at = records[result.agent_id].registered_at.timestamp()
    # Highest score first, then most recent registration, then smallest id
    return (-result.score, -registered_at, result.agent_id)


def order_scores(
    scores: Iterable[ScoreResult],
    records: Mapping[str, RegistrationRecord]
) -> List[ScoreResult]:
    """Deterministic ranking of score results."""
    return sorted(scores, key=lambda r: _ranking_key(r, records))


def select_agent(
    scores: Sequence[ScoreResult],
    records: Mapping[str, RegistrationRecord],
    fallback_agent_name: str
) -> ScoreResult:
    """
    Pick the winning score.

    Args:
        scores: Scores of the candidate agents
        records: Registration records keyed by agent id
        fallback_agent_name: Name of the fallback agent

    Returns:
        The selected ScoreResult

    Raises:
        NoAgentAvailable: If there is nothing to choose from
    """
    if not scores:
        raise NoAgentAvailable("No agent returned a capability score")

    def is_fallback(result: ScoreResult) -> bool:
        return records[result.agent_id].name == fallback_agent_name

    candidates = list(scores)
    if any(r.score > 0 and not is_fallback(r) for r in candidates):
        candidates = [r for r in candidates if not is_fallback(r)]

    return order_scores(candidates, records)[0]


class DispatchResolver:
    """Resolves a query to the agent id that should answer it."""

    def __init__(
        self,
        score_provider: ScoreProvider,
        settings: Optional[Settings] = None,
        log=None
    ):
        settings = settings or get_settings()

        self.score_provider = score_provider
        self.fallback_agent_name = settings.fallback_agent_name
        self.score_timeout = settings.agent_score_timeout_seconds
        self.logger = log or get_logger().bind(component="dispatch")

    async def resolve(self, query: str, records: Iterable[RegistrationRecord]) -> str:
        """
        Choose the agent for a query.

        Args:
            query: User query
            records: Known registration records

        Returns:
            agent_id of the selected agent

        Raises:
            NoAgentAvailable: If no active agent could be scored
        """
        by_id = self._active(records)
        scores = await self._gather_scores(query, by_id)

        selected = select_agent(scores, by_id, self.fallback_agent_name)

        self.logger.info(
            f"Routing query '{query[:50]}' to {by_id[selected.agent_id].name} "
            f"({selected.agent_id}) with confidence {selected.score}"
        )
        self.logger.debug(f"Scores: {[(s.agent_id, s.score) for s in scores]}")
        return selected.agent_id

    async def rank(self, query: str, records: Iterable[RegistrationRecord]) -> List[ScoreResult]:
        """All obtainable scores for a query, best first."""
        by_id = self._active(records)
        scores = await self._gather_scores(query, by_id)
        return order_scores(scores, by_id)

    def _active(self, records: Iterable[RegistrationRecord]) -> Dict[str, RegistrationRecord]:
        by_id = {r.agent_id: r for r in records if r.status == RecordStatus.ACTIVE}
        if not by_id:
            raise NoAgentAvailable("No active agents are registered")
        return by_id

    async def _gather_scores(
        self,
        query: str,
        records: Mapping[str, RegistrationRecord]
    ) -> List[ScoreResult]:
        agent_ids = list(records)
        results = await asyncio.gather(
            *(
                asyncio.wait_for(
                    self.score_provider.score(records[agent_id], query),
                    timeout=self.score_timeout
                )
                for agent_id in agent_ids
            ),
            return_exceptions=True
        )

        scores = []
        for agent_id, result in zip(agent_ids, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                self.logger.warning(
                    f"Could not score agent {records[agent_id].name} ({agent_id}): "
                    f"{str(result) or result.__class__.__name__}"
                )
                continue
            if result is None:
                self.logger.debug(f"Skipping disconnected agent {agent_id}")
                continue
            scores.append(ScoreResult(agent_id=agent_id, score=result))

        if not scores:
            raise NoAgentAvailable("No agent could be scored for this query")

        return scores
