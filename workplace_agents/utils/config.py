"""Configuration management using environment variables and pydantic."""

from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Coordinator Configuration
    coordinator_url: str = "http://localhost:3001"
    coordinator_port: int = 3001
    coordinator_health_timeout_seconds: float = 3.0
    registration_timeout_seconds: float = 10.0
    unregister_timeout_seconds: float = 5.0

    # Heartbeat Configuration
    heartbeat_interval_seconds: float = 30.0
    heartbeat_timeout_seconds: float = 5.0
    heartbeat_failure_threshold: int = 3

    # Registration Retry Configuration
    registration_retries: int = 5
    retry_backoff_base_ms: int = 1000
    retry_backoff_max_ms: int = 30000
    registration_periodic_retry_seconds: float = 60.0

    # Registry Configuration (coordinator side)
    registry_suspect_after_seconds: float = 90.0
    registry_expire_after_seconds: float = 300.0
    registry_sweep_interval_seconds: float = 15.0

    # Dispatch Configuration
    fallback_agent_name: str = "general"
    agent_score_timeout_seconds: float = 3.0
    agent_forward_timeout_seconds: float = 120.0

    # Ollama Configuration
    ollama_base_url: str = "http://localhost:11434"
    ollama_model_name: str = "llama3.2:3b"
    response_temperature: float = 0.3
    max_response_tokens: int = 2000
    model_timeout_seconds: float = 60.0
    llm_providers: str = "ollama"

    # Agent Configuration
    agent_name: str = "general"
    agent_host: str = "0.0.0.0"
    agent_port: int = 3000
    agent_public_url: Optional[str] = None
    agent_profiles_path: Optional[str] = None  # None = bundled profiles.yml

    # Data Sources
    hr_employees_path: str = "data/employees.csv"
    it_tickets_path: str = "data/tickets.csv"

    # Logging Configuration
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file_path: Optional[str] = "logs/agents.log"
    log_max_size_mb: int = 100
    log_backup_count: int = 5

    @property
    def llm_provider_list(self) -> List[str]:
        """Configured LLM provider names as a list."""
        return [p.strip() for p in self.llm_providers.split(",") if p.strip()]


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
