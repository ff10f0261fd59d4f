"""Agent coordination and query routing.

- Registration Protocol: announce an agent to the coordinator, with retries
- Health Channel: heartbeat loop that triggers re-registration
- Capability Scorer: keyword confidence of an agent for a query
- Dispatch Resolver: pick the agent that answers a query
- Agent Registry: the coordinator's record store
"""

from workplace_agents.coordination.backoff import calculate_backoff_delay
from workplace_agents.coordination.coordinator_client import CoordinatorClient
from workplace_agents.coordination.dispatch import (
    DispatchResolver,
    HttpScoreProvider,
    LocalScoreProvider,
    ScoreProvider,
    select_agent,
)
from workplace_agents.coordination.errors import (
    AgentUnreachable,
    CoordinationError,
    KnowledgeSourceError,
    MissingParameter,
    ModelBackendError,
    NoAgentAvailable,
    RegistrationRejected,
    RegistryUnavailable,
    ResourceNotFound,
)
from workplace_agents.coordination.heartbeat import HeartbeatMonitor
from workplace_agents.coordination.models import (
    AgentDescriptor,
    ConnectionState,
    RecordStatus,
    RegistrationRecord,
    ScoreResult,
)
from workplace_agents.coordination.registry import AgentRegistry
from workplace_agents.coordination.scoring import (
    FALLBACK_PROFILE,
    SPECIALIST_PROFILE,
    KeywordScorer,
    ScoringProfile,
)
