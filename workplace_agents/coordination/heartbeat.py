"""
Agent health channel.

Periodically probes the coordinator, tracks consecutive failures and asks
the owning agent to re-register when the link looks broken.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, Optional, Union

from workplace_agents.coordination.models import ConnectionState
from workplace_agents.utils.config import Settings, get_settings
from workplace_agents.utils.logger import get_logger

# Returns False when the coordinator is up but has forgotten the agent
HeartbeatProbe = Callable[[], Awaitable[Optional[bool]]]
ReconnectCallback = Callable[[], Union[Awaitable[None], None]]


def _describe(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


class HeartbeatMonitor:
    """
    Heartbeat task for a single agent.

    The reconnection callback fires when the coordinator comes back after a
    disconnection, when it reports the agent as unknown, and on every failing
    tick once the failure streak reaches the threshold.
    """

    def __init__(
        self,
        probe: HeartbeatProbe,
        state: Optional[ConnectionState] = None,
        settings: Optional[Settings] = None,
        log=None,
        interval_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        failure_threshold: Optional[int] = None,
    ):
        """
        Initialize heartbeat monitor.

        Args:
            probe: Coroutine function performing one liveness probe
            state: Connection state shared with the registration client
            settings: Application settings (defaults to global settings)
            log: Logger to use (defaults to the application logger)
            interval_seconds: Override for the heartbeat interval
            timeout_seconds: Override for the per-probe timeout
            failure_threshold: Override for the reconnect threshold
        """
        settings = settings or get_settings()

        self._probe = probe
        self.state = state or ConnectionState()
        self.logger = log or get_logger().bind(component="heartbeat")
        self.interval = interval_seconds or settings.heartbeat_interval_seconds
        self.timeout = timeout_seconds or settings.heartbeat_timeout_seconds
        self.failure_threshold = failure_threshold or settings.heartbeat_failure_threshold

        self.task: Optional[asyncio.Task] = None
        self.is_running = False
        self.tick_count = 0
        self._on_reconnect: Optional[ReconnectCallback] = None

    async def start(self, on_reconnect: Optional[ReconnectCallback] = None):
        """Start the heartbeat task. Calling it again while running is a no-op."""
        if self.is_running:
            self.logger.warning("Heartbeat already started")
            return

        self.is_running = True
        self._on_reconnect = on_reconnect
        self.state.consecutive_failures = 0
        self.task = asyncio.create_task(self._heartbeat_loop())

        self.logger.info(
            f"Heartbeat started - interval: {self.interval}s, timeout: {self.timeout}s"
        )

    async def stop(self):
        """Stop the heartbeat task."""
        if not self.is_running:
            return

        self.is_running = False

        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None

        self.logger.info("Heartbeat stopped")

    async def _heartbeat_loop(self):
        """Tick every interval until stopped."""
        while self.is_running:
            await asyncio.sleep(self.interval)

            try:
                await self.tick()
            except Exception as e:
                self.logger.exception(f"Unexpected error in heartbeat loop: {e}")

    async def tick(self):
        """Perform a single heartbeat probe and update the connection state."""
        self.tick_count += 1

        try:
            known = await asyncio.wait_for(self._probe(), timeout=self.timeout)
        except Exception as e:
            await self._handle_failure(e)
            return

        await self._handle_success(known is not False)

    async def _handle_success(self, known: bool):
        was_disconnected = (
            not self.state.is_connected or self.state.consecutive_failures > 0
        )

        self.state.consecutive_failures = 0
        self.state.is_connected = True

        if was_disconnected:
            self.logger.info("Reconnected to coordinator")
            await self._notify_reconnect()
        elif not known:
            self.logger.warning("Coordinator no longer knows this agent, re-registering...")
            await self._notify_reconnect()

    async def _handle_failure(self, error: Exception):
        self.state.consecutive_failures += 1

        if self.state.is_connected:
            self.logger.warning(f"Lost connection to coordinator: {_describe(error)}")
            self.state.is_connected = False

        self.logger.warning(
            f"Heartbeat failed ({self.state.consecutive_failures} consecutive failures): "
            f"{_describe(error)}"
        )

        if self.state.consecutive_failures >= self.failure_threshold:
            self.logger.warning("Multiple heartbeat failures detected, triggering reconnection...")
            await self._notify_reconnect()

    async def _notify_reconnect(self):
        if self._on_reconnect is None:
            return

        try:
            result = self._on_reconnect()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.logger.error(f"Reconnection callback failed: {e}")
