"""Base agent class for all workplace agents."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from workplace_agents.agents.knowledge import KnowledgeSource
from workplace_agents.agents.profiles import AgentProfile
from workplace_agents.agents.query_processor import QueryProcessor
from workplace_agents.coordination.coordinator_client import CoordinatorClient
from workplace_agents.coordination.errors import (
    KnowledgeSourceError,
    MissingParameter,
    ModelBackendError,
)
from workplace_agents.coordination.heartbeat import HeartbeatMonitor
from workplace_agents.coordination.models import AgentDescriptor, generate_agent_id, utcnow
from workplace_agents.coordination.scoring import KeywordScorer
from workplace_agents.resources.manager import ResourceManager
from workplace_agents.utils.config import Settings, get_settings
from workplace_agents.utils.logger import get_logger


class BaseAgent(ABC):
    """
    Abstract base class for all agents.

    An agent owns its descriptor, its resources and its link to the
    coordinator: ``start()`` registers in the background and keeps the
    registration alive with heartbeats, ``stop()`` tears it all down.
    """

    def __init__(
        self,
        profile: AgentProfile,
        knowledge: KnowledgeSource,
        settings: Optional[Settings] = None,
        query_processor: Optional[QueryProcessor] = None,
        coordinator_client: Optional[CoordinatorClient] = None,
        log=None
    ):
        """
        Initialize base agent.

        Args:
            profile: Agent profile (keywords, capabilities, prompt)
            knowledge: Domain data the agent answers from
            settings: Application settings (defaults to global settings)
            query_processor: Model backend (defaults to Ollama)
            coordinator_client: Coordinator client (created if omitted)
            log: Logger to use (defaults to the application logger)
        """
        self.profile = profile
        self.name = profile.name
        self.settings = settings or get_settings()
        self.agent_id = generate_agent_id(self.name)
        self.logger = log or get_logger().bind(agent=self.name)

        self.knowledge = knowledge
        self.scorer = KeywordScorer(profile.keywords, profile.scoring.to_profile())
        self.query_processor = query_processor or QueryProcessor(self.name, self.settings)

        self.coordinator = coordinator_client or CoordinatorClient(self.settings)
        self.connection_state = self.coordinator.state
        self.heartbeat = HeartbeatMonitor(
            probe=lambda: self.coordinator.send_heartbeat(self.agent_id),
            state=self.connection_state,
            settings=self.settings,
            log=self.logger.bind(component="heartbeat"),
        )

        self.resources = ResourceManager(self.name, log=self.logger.bind(component="resources"))
        self.initialized = False
        self.registered = False
        self._registration_task: Optional[asyncio.Task] = None
        self._reregistration_task: Optional[asyncio.Task] = None

        self.setup_resources()
        self._register_query_resource()
        self.resources.log_resource_summary()

        self.logger.info(f"Initialized {self.name} agent ({self.agent_id})")

    @property
    def url(self) -> str:
        """Base URL the coordinator reaches this agent on."""
        if self.settings.agent_public_url:
            return self.settings.agent_public_url
        host = self.settings.agent_host
        if host in ("0.0.0.0", "::"):
            host = "localhost"
        return f"http://{host}:{self.settings.agent_port}"

    @property
    def descriptor(self) -> AgentDescriptor:
        return AgentDescriptor(
            agent_id=self.agent_id,
            name=self.name,
            description=self.profile.description,
            url=self.url,
            capabilities=self.get_capabilities(),
            llm_providers=self.query_processor.providers(),
        )

    # Agent interface

    def get_capabilities(self) -> List[str]:
        return list(self.profile.capabilities)

    def get_metadata(self) -> Dict[str, Any]:
        return self.profile.get_metadata()

    def can_handle(self, query: str) -> int:
        """Keyword confidence in [0, 100] that this agent can answer the query."""
        return self.scorer.score(query)

    async def process_query(self, query: str) -> str:
        """
        Answer a query with the model backend.

        Never raises: failures are logged and answered with the agent's
        apology message.
        """
        self.logger.info(f"Processing query: '{query[:50]}...'")

        try:
            prompt = self.build_prompt(query)
            return await self.query_processor.process_with_model(prompt, query)
        except Exception as e:
            self.logger.error(f"Error processing query: {e}")
            return self.profile.error_message

    def build_prompt(self, query: str) -> str:
        """System prompt: profile instructions, domain context and the question."""
        return f"{self.profile.prompt}\n\n{self.build_context(query)}\n\nQuestion: {query}"

    @abstractmethod
    def build_context(self, query: str) -> str:
        """
        Domain data included in the prompt.

        Raises:
            KnowledgeSourceError: If the agent's data cannot be loaded
        """
        pass

    @abstractmethod
    def setup_resources(self):
        """Register the agent's own resources on ``self.resources``."""
        pass

    def _register_query_resource(self):
        async def handle_query(uri: str, params: Dict[str, Any]) -> str:
            query = params.get("q")
            if isinstance(query, list):
                query = query[0] if query else None

            self.logger.debug(f"Processing {self.name} query resource: '{query}'")

            if not query:
                raise MissingParameter("query")

            return await self.process_query(query)

        self.resources.register_template_resource(
            "query",
            f"{self.name}://query{{?q*}}",
            f"Handle {self.name} queries",
            "text/plain",
            handle_query,
        )

    async def health_check(self) -> Dict[str, Any]:
        """Health summary of the agent. Never raises."""
        try:
            models = await self.query_processor.get_available_models()
            model = {"status": "available", "models": models}
        except ModelBackendError as e:
            model = {"status": "unavailable", "error": str(e)}
        except Exception as e:
            model = {"status": "unavailable", "error": f"Unexpected error: {e}"}

        try:
            self.knowledge.load()
            knowledge = {"status": "available"}
        except KnowledgeSourceError as e:
            knowledge = {"status": "unavailable", "error": str(e)}
        except Exception as e:
            knowledge = {"status": "unavailable", "error": f"Unexpected error: {e}"}

        if not self.initialized:
            status = "not_initialized"
        elif model["status"] == "available" and knowledge["status"] == "available":
            status = "healthy"
        else:
            status = "degraded"

        return {
            "name": self.name,
            "agentId": self.agent_id,
            "status": status,
            "initialized": self.initialized,
            "registered": self.registered,
            "connected": self.connection_state.is_connected,
            "consecutiveFailures": self.connection_state.consecutive_failures,
            "resources": len(self.resources.list()),
            "model": model,
            "knowledge": knowledge,
            "timestamp": utcnow().isoformat(),
        }

    # Lifecycle

    async def initialize(self):
        """Warm the knowledge source. A failure leaves the agent degraded, not down."""
        try:
            self.knowledge.load()
        except KnowledgeSourceError as e:
            self.logger.error(f"Knowledge source unavailable: {e}")

        self.initialized = True
        self.logger.info(f"{self.name} agent initialized")

    async def start(self):
        """Initialize and register with the coordinator in the background."""
        if not self.initialized:
            await self.initialize()

        if self._registration_task is not None:
            self.logger.warning("Agent already started")
            return

        self._registration_task = asyncio.create_task(self._register_and_monitor())

    async def _register_and_monitor(self):
        await self.coordinator.register_with_retry(self.descriptor)
        self.registered = True
        await self.heartbeat.start(on_reconnect=self._on_reconnect)

    def _on_reconnect(self):
        if self._registration_task is not None and not self._registration_task.done():
            self.logger.debug("Initial registration still in progress, skipping re-registration")
            return

        if self._reregistration_task is not None and not self._reregistration_task.done():
            self.logger.debug("Re-registration already in progress")
            return

        self._reregistration_task = asyncio.create_task(self._reregister())

    async def _reregister(self):
        self.logger.info("Re-registering with coordinator...")
        self.connection_state.registration_retries = 0
        await self.coordinator.register_with_retry(self.descriptor)
        self.registered = True

    async def stop(self):
        """Stop heartbeats, cancel registration and unregister."""
        await self.heartbeat.stop()

        for task in (self._registration_task, self._reregistration_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self._registration_task = None
        self._reregistration_task = None

        if self.registered:
            await self.coordinator.unregister(self.agent_id)
            self.registered = False

        await self.coordinator.close()
        self.logger.info(f"{self.name} agent stopped")
