"""
Agent Registry

In-memory store of registration records kept by the coordinator.
Records are refreshed by heartbeats, demoted to suspect after missed
heartbeats and evicted once the grace period expires.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from workplace_agents.coordination.models import (
    AgentDescriptor,
    RecordStatus,
    RegistrationRecord,
    utcnow,
)
from workplace_agents.utils.config import Settings, get_settings
from workplace_agents.utils.logger import get_logger


class AgentRegistry:
    """
    Manages agent registration, heartbeats and liveness.

    All record mutations go through one asyncio lock; each record is only
    touched by its own agent's registration and heartbeat events.
    """

    def __init__(self, settings: Optional[Settings] = None, log=None):
        settings = settings or get_settings()

        self.suspect_after = timedelta(seconds=settings.registry_suspect_after_seconds)
        self.expire_after = timedelta(seconds=settings.registry_expire_after_seconds)
        self.sweep_interval = settings.registry_sweep_interval_seconds
        self.logger = log or get_logger().bind(component="registry")

        self._records: Dict[str, RegistrationRecord] = {}
        self._lock = asyncio.Lock()
        self._sweep_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start background liveness sweeps."""
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            self.logger.info("Agent registry sweep task started")

    async def stop(self) -> None:
        """Stop background liveness sweeps."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
            self.logger.info("Agent registry sweep task stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                await self.sweep()
            except Exception as e:
                self.logger.error(f"Error in registry sweep: {e}")

    async def register(
        self,
        descriptor: AgentDescriptor,
        now: Optional[datetime] = None
    ) -> RegistrationRecord:
        """
        Register an agent, replacing any record with the same id.

        A re-registration keeps the original ``registered_at``.
        """
        now = now or utcnow()

        async with self._lock:
            existing = self._records.get(descriptor.agent_id)
            record = RegistrationRecord(
                descriptor=descriptor,
                registered_at=existing.registered_at if existing else now,
                last_heartbeat_at=now,
                status=RecordStatus.ACTIVE,
            )
            self._records[descriptor.agent_id] = record

        action = "re-registered" if existing else "registered"
        self.logger.info(
            f"Agent {descriptor.name} ({descriptor.agent_id}) {action} "
            f"with capabilities: {descriptor.capabilities}"
        )
        return record

    async def unregister(self, agent_id: str) -> Optional[RegistrationRecord]:
        """Remove an agent. Returns the removed record, or None if unknown."""
        async with self._lock:
            record = self._records.pop(agent_id, None)

        if record:
            self.logger.info(f"Agent {record.name} ({agent_id}) unregistered")
        return record

    async def heartbeat(self, agent_id: str, now: Optional[datetime] = None) -> bool:
        """Refresh an agent's heartbeat. Returns False if the agent is unknown."""
        async with self._lock:
            record = self._records.get(agent_id)
            if record is None:
                return False

            if record.status != RecordStatus.ACTIVE:
                self.logger.info(f"Agent {record.name} ({agent_id}) is active again")
            record.touch(now)
            return True

    async def sweep(self, now: Optional[datetime] = None) -> List[RegistrationRecord]:
        """
        Update record statuses from heartbeat age and evict expired records.

        Returns:
            The records evicted by this sweep
        """
        now = now or utcnow()
        evicted = []

        async with self._lock:
            for agent_id, record in list(self._records.items()):
                age = now - record.last_heartbeat_at

                if age > self.expire_after:
                    record.status = RecordStatus.EXPIRED
                    evicted.append(self._records.pop(agent_id))
                elif age > self.suspect_after and record.status == RecordStatus.ACTIVE:
                    record.status = RecordStatus.SUSPECT
                    self.logger.warning(
                        f"Agent {record.name} ({agent_id}) marked suspect "
                        f"(last heartbeat: {record.last_heartbeat_at.isoformat()})"
                    )

        for record in evicted:
            self.logger.warning(f"Evicted expired agent {record.name} ({record.agent_id})")

        return evicted

    async def get(self, agent_id: str) -> Optional[RegistrationRecord]:
        async with self._lock:
            return self._records.get(agent_id)

    async def list_records(self, only_active: bool = False) -> List[RegistrationRecord]:
        """Snapshot of records, optionally only the routable ones."""
        async with self._lock:
            records = list(self._records.values())

        if only_active:
            records = [r for r in records if r.status == RecordStatus.ACTIVE]
        return records
