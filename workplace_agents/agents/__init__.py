"""Workplace agents.

- HR Agent: employee directory, leave, salary and team structure
- IT Agent: support tickets and troubleshooting
- General Agent: workplace policies, the fallback for everything else
"""

from typing import Optional

from workplace_agents.agents.base_agent import BaseAgent
from workplace_agents.agents.general_agent import GeneralAgent
from workplace_agents.agents.hr_agent import HRAgent
from workplace_agents.agents.it_agent import ITAgent
from workplace_agents.utils.config import Settings

AGENT_TYPES = {
    "hr": HRAgent,
    "it": ITAgent,
    "general": GeneralAgent,
}


def create_agent(name: str, settings: Optional[Settings] = None, **kwargs) -> BaseAgent:
    """
    Build an agent by profile name.

    Args:
        name: Agent name (hr, it, general)
        settings: Application settings (defaults to global settings)

    Returns:
        The agent instance
    """
    agent_class = AGENT_TYPES.get(name.lower())
    if agent_class is None:
        raise ValueError(f"Unknown agent: {name}. Available: {sorted(AGENT_TYPES)}")
    return agent_class(settings=settings, **kwargs)
