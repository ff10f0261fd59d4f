"""Language-model backend used by agents to answer queries."""

import asyncio
from typing import List, Optional

import ollama

from workplace_agents.coordination.errors import ModelBackendError
from workplace_agents.utils.config import Settings, get_settings
from workplace_agents.utils.logger import get_logger


class QueryProcessor:
    """Calls the Ollama chat API with a system prompt and a user query."""

    def __init__(
        self,
        agent_name: str,
        settings: Optional[Settings] = None,
        client: Optional[ollama.AsyncClient] = None,
        log=None
    ):
        """
        Initialize query processor.

        Args:
            agent_name: Owning agent name (for logs)
            settings: Application settings (defaults to global settings)
            client: Ollama client to use (created if omitted)
            log: Logger to use (defaults to the application logger)
        """
        self.agent_name = agent_name
        self.settings = settings or get_settings()
        self.model = self.settings.ollama_model_name
        self.timeout = self.settings.model_timeout_seconds
        self.client = client or ollama.AsyncClient(
            host=self.settings.ollama_base_url,
            timeout=self.timeout
        )
        self.logger = log or get_logger().bind(component="query_processor", agent=agent_name)

    def providers(self) -> List[str]:
        """Provider names announced as ``LLMProviders`` at registration."""
        return self.settings.llm_provider_list

    async def process_with_model(self, system_prompt: str, query: str) -> str:
        """
        Generate an answer.

        Args:
            system_prompt: Prompt with instructions and domain data
            query: User query

        Returns:
            Generated response text

        Raises:
            ModelBackendError: If the model call fails or times out
        """
        self.logger.debug(
            f"Calling Ollama with model {self.model} "
            f"(prompt length: {len(system_prompt)} characters)"
        )

        try:
            response = await asyncio.wait_for(
                self.client.chat(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": query}
                    ],
                    options={
                        "temperature": self.settings.response_temperature,
                        "num_predict": self.settings.max_response_tokens,
                    }
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            self.logger.error(f"Model call timed out after {self.timeout}s")
            raise ModelBackendError(f"Model call timed out after {self.timeout}s") from e
        except Exception as e:
            self.logger.error(f"LLM generation failed: {e}")
            raise ModelBackendError(f"LLM generation failed: {e}") from e

        response_text = response["message"]["content"]
        self.logger.debug(f"LLM generated {len(response_text)} characters")
        return response_text

    async def get_available_models(self) -> List[str]:
        """
        List models installed on the Ollama server.

        Raises:
            ModelBackendError: If the server cannot be queried
        """
        try:
            response = await asyncio.wait_for(self.client.list(), timeout=self.timeout)
        except Exception as e:
            raise ModelBackendError(f"Failed to list models: {e}") from e

        return [m["model"] for m in response["models"]]
