"""General workplace agent, the fallback for queries no specialist matches."""

from typing import Optional

from workplace_agents.agents.base_agent import BaseAgent
from workplace_agents.agents.knowledge import (
    WORKPLACE_POLICIES,
    KnowledgeSource,
    StaticKnowledgeSource,
)
from workplace_agents.agents.profiles import AgentProfile, get_profile
from workplace_agents.utils.config import Settings, get_settings


class GeneralAgent(BaseAgent):
    """Answers general workplace and policy questions."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        profile: Optional[AgentProfile] = None,
        knowledge: Optional[KnowledgeSource] = None,
        **kwargs
    ):
        settings = settings or get_settings()
        super().__init__(
            profile=profile or get_profile("general", settings.agent_profiles_path),
            knowledge=knowledge or StaticKnowledgeSource(WORKPLACE_POLICIES),
            settings=settings,
            **kwargs
        )

    def setup_resources(self):
        self.resources.register_static_resource(
            "workplace-policies",
            "general://policies",
            "General workplace policies, procedures, and guidelines",
            "text/plain",
            self.knowledge.load,
        )

    def build_context(self, query: str) -> str:
        return f"WORKPLACE POLICIES:\n{self.knowledge.load()}"
