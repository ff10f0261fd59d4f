"""
Coordinator client for agent registration, heartbeats and unregistration.

Talks to the coordinator's HTTP surface:
    GET  /health
    POST /api/agents/register
    POST /api/agents/{agentId}/heartbeat
    POST /api/agents/{agentId}/unregister
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from workplace_agents.coordination.backoff import calculate_backoff_delay
from workplace_agents.coordination.errors import RegistrationRejected, RegistryUnavailable
from workplace_agents.coordination.models import AgentDescriptor, ConnectionState
from workplace_agents.utils.config import Settings, get_settings
from workplace_agents.utils.logger import get_logger


class CoordinatorClient:
    """
    Registration Protocol client owned by one agent process.

    Registration failures are recovered here: ``register_with_retry`` keeps
    trying forever, since the coordinator may come up after the agent.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        state: Optional[ConnectionState] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        log=None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize coordinator client.

        Args:
            settings: Application settings (defaults to global settings)
            state: Connection state shared with the agent's heartbeat monitor
            http_client: HTTP client to use (created and owned if omitted)
            log: Logger to use (defaults to the application logger)
            sleep: Coroutine used to wait between registration attempts
        """
        self.settings = settings or get_settings()
        self.state = state or ConnectionState()
        self.base_url = self.settings.coordinator_url.rstrip("/")
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient()
        self.logger = log or get_logger().bind(component="coordinator_client")
        self._sleep = sleep

    async def close(self):
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def check_availability(self) -> bool:
        """
        Probe the coordinator's health endpoint.

        Returns:
            True if the coordinator answered with a success status in time
        """
        try:
            response = await self.http_client.get(
                f"{self.base_url}/health",
                timeout=self.settings.coordinator_health_timeout_seconds
            )
            return response.is_success
        except httpx.HTTPError as e:
            self.logger.debug(f"Coordinator health probe failed: {e}")
            return False

    async def register(self, descriptor: AgentDescriptor) -> Dict[str, Any]:
        """
        Register this agent with the coordinator (single attempt).

        Args:
            descriptor: Agent identity to announce

        Returns:
            Registration result returned by the coordinator

        Raises:
            RegistryUnavailable: If the health probe fails
            RegistrationRejected: If the register call fails
        """
        if not await self.check_availability():
            raise RegistryUnavailable(f"Coordinator at {self.base_url} is not available")

        payload = descriptor.to_registration_payload()

        self.logger.info(f"Registering {descriptor.name} with coordinator at {self.base_url}...")
        self.logger.debug(f"Registration data: {payload}")

        try:
            response = await self.http_client.post(
                f"{self.base_url}/api/agents/register",
                json=payload,
                timeout=self.settings.registration_timeout_seconds
            )
        except httpx.HTTPError as e:
            raise RegistrationRejected(f"Registration request failed: {e}") from e

        if response.status_code != 200:
            raise RegistrationRejected(
                f"Registration failed with status: {response.status_code}"
            )

        try:
            result = response.json()
        except ValueError as e:
            raise RegistrationRejected("Registration response is not valid JSON") from e

        if not isinstance(result, dict) or not result.get("agentId"):
            raise RegistrationRejected("Registration response did not include agentId")

        self.logger.info(f"Successfully registered {descriptor.name} with coordinator")
        self.logger.debug(f"Registration result: {result}")
        self.state.registration_retries = 0
        return result

    async def register_with_retry(self, descriptor: AgentDescriptor) -> Dict[str, Any]:
        """
        Register, retrying until the coordinator accepts the agent.

        An unavailable coordinator does not consume the retry budget. Rejected
        attempts back off exponentially up to ``registration_retries`` times,
        then fall back to a fixed periodic retry.

        Returns:
            Registration result of the first successful attempt
        """
        max_retries = self.settings.registration_retries

        while True:
            try:
                return await self.register(descriptor)

            except RegistryUnavailable as e:
                delay = self._backoff_seconds(self.state.registration_retries)
                self.logger.warning(f"{e}. Retrying registration in {delay:.1f}s")

            except RegistrationRejected as e:
                self.state.registration_retries += 1

                if self.state.registration_retries <= max_retries:
                    delay = self._backoff_seconds(self.state.registration_retries)
                    self.logger.warning(
                        f"Failed to register with coordinator: {e}. Retrying in {delay:.1f}s "
                        f"(attempt {self.state.registration_retries}/{max_retries})"
                    )
                else:
                    delay = self.settings.registration_periodic_retry_seconds
                    self.logger.error(
                        f"Failed to register with coordinator: {e}. Max registration retries "
                        f"exceeded, retrying every {delay:.0f}s"
                    )

            await self._sleep(delay)

    async def send_heartbeat(self, agent_id: str) -> bool:
        """
        Heartbeat probe used by the health channel.

        Probes ``/health`` and then acknowledges the heartbeat for this agent.

        Returns:
            False if the coordinator is up but no longer knows this agent

        Raises:
            httpx.HTTPError: If the coordinator is unreachable or unhealthy
        """
        timeout = self.settings.heartbeat_timeout_seconds

        response = await self.http_client.get(f"{self.base_url}/health", timeout=timeout)
        response.raise_for_status()

        try:
            ack = await self.http_client.post(
                f"{self.base_url}/api/agents/{agent_id}/heartbeat",
                timeout=timeout
            )
        except httpx.HTTPError as e:
            self.logger.debug(f"Heartbeat acknowledgement failed: {e}")
            return True

        return ack.status_code != 404

    async def unregister(self, agent_id: str) -> None:
        """Unregister from the coordinator. Best effort, never raises."""
        self.logger.info("Unregistering from coordinator...")

        try:
            response = await self.http_client.post(
                f"{self.base_url}/api/agents/{agent_id}/unregister",
                timeout=self.settings.unregister_timeout_seconds
            )
        except httpx.HTTPError as e:
            self.logger.warning(f"Failed to unregister from coordinator: {e}")
            return

        if response.status_code == 200:
            self.logger.info("Successfully unregistered from coordinator")
        else:
            self.logger.warning(
                f"Coordinator answered {response.status_code} to unregister request"
            )

    def _backoff_seconds(self, attempt: int) -> float:
        return calculate_backoff_delay(
            attempt,
            self.settings.retry_backoff_base_ms,
            self.settings.retry_backoff_max_ms
        ) / 1000
