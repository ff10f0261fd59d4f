"""Agent profiles loaded from YAML."""

from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from workplace_agents.coordination.scoring import ScoringProfile
from workplace_agents.utils.logger import get_logger

logger = get_logger()

DEFAULT_PROFILES_PATH = Path(__file__).parent / "profiles.yml"


class ScoringConfig(BaseModel):
    """Scoring section of a profile."""
    base: int = Field(default=0, ge=0, le=100)
    increment: int = Field(default=15, ge=0)
    cap: int = Field(default=100, ge=0, le=100)

    def to_profile(self) -> ScoringProfile:
        return ScoringProfile(base=self.base, increment=self.increment, cap=self.cap)


class AgentProfile(BaseModel):
    """Static description of one agent kind."""
    name: str
    description: str = ""
    category: str = "Specialist"
    fallback: bool = False
    capabilities: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    prompt: str = ""
    error_message: str = "I encountered an error while processing your request. Please try again."

    def get_metadata(self) -> Dict[str, object]:
        """Descriptive metadata returned alongside capabilities."""
        return {
            "name": self.name,
            "displayName": f"{self.name.capitalize()} Agent",
            "description": self.description,
            "version": "1.0.0",
            "category": self.category,
            "fallback": self.fallback,
            "tags": [self.name],
        }


def load_profiles(path: Optional[str] = None) -> Dict[str, AgentProfile]:
    """
    Load agent profiles from a YAML file.

    Args:
        path: Profiles file (defaults to the bundled profiles.yml)

    Returns:
        Profiles keyed by agent name
    """
    profiles_path = Path(path) if path else DEFAULT_PROFILES_PATH

    try:
        with open(profiles_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"Error loading agent profiles from {profiles_path}: {e}")
        raise

    profiles = {
        name: AgentProfile(name=name, **(data or {}))
        for name, data in raw.items()
    }

    logger.debug(f"Loaded {len(profiles)} agent profiles from {profiles_path}")
    return profiles


def get_profile(name: str, path: Optional[str] = None) -> AgentProfile:
    """Load a single profile by agent name."""
    profiles = load_profiles(path)
    if name not in profiles:
        raise KeyError(f"Unknown agent profile: {name}. Available: {sorted(profiles)}")
    return profiles[name]
