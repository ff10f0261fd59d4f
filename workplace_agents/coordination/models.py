"""Data models shared by agents and the coordinator."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def generate_agent_id(name: str) -> str:
    """Build a process-unique agent id, e.g. ``hr-agent-<uuid4>``."""
    return f"{name}-agent-{uuid.uuid4()}"


class RecordStatus(str, Enum):
    """Lifecycle status of a registration record."""
    ACTIVE = "active"
    SUSPECT = "suspect"    # Missed heartbeats, not routable
    EXPIRED = "expired"    # Past the grace period, evicted


class AgentDescriptor(BaseModel):
    """Identity of one agent process.

    Serialized with the registration wire keys (``agentId``, ``LLMProviders``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    agent_id: str = Field(
        ...,
        alias="agentId",
        description="Stable id generated once per process"
    )
    name: str = Field(..., min_length=1, description="Human agent name (hr, it, general)")
    description: str = Field(default="", description="Free-text description")
    url: str = Field(..., description="Base URL the coordinator can reach the agent on")
    capabilities: List[str] = Field(
        default_factory=list,
        description="Capability statements announced to the coordinator"
    )
    llm_providers: List[str] = Field(
        default_factory=list,
        alias="LLMProviders",
        description="Model providers the agent can use"
    )

    def to_registration_payload(self) -> Dict[str, Any]:
        """Body of ``POST /api/agents/register``."""
        return self.model_dump(by_alias=True)


class RegistrationRecord(BaseModel):
    """The coordinator's view of a registered agent."""

    descriptor: AgentDescriptor
    registered_at: datetime = Field(default_factory=utcnow)
    last_heartbeat_at: datetime = Field(default_factory=utcnow)
    status: RecordStatus = RecordStatus.ACTIVE

    @property
    def agent_id(self) -> str:
        return self.descriptor.agent_id

    @property
    def name(self) -> str:
        return self.descriptor.name

    def touch(self, now: datetime | None = None) -> None:
        """Refresh the heartbeat timestamp and mark the record active."""
        self.last_heartbeat_at = now or utcnow()
        self.status = RecordStatus.ACTIVE

    def to_public_dict(self) -> Dict[str, Any]:
        """Return a public view of the record (for agent listings)."""
        return {
            **self.descriptor.to_registration_payload(),
            "status": self.status.value,
            "registeredAt": self.registered_at.isoformat(),
            "lastHeartbeatAt": self.last_heartbeat_at.isoformat(),
        }


@dataclass
class ConnectionState:
    """Agent-side view of the link to the coordinator."""
    is_connected: bool = True
    consecutive_failures: int = 0
    registration_retries: int = 0


@dataclass(frozen=True)
class ScoreResult:
    """Capability score of one agent for one query."""
    agent_id: str
    score: int
