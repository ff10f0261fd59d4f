"""Shared fixtures: settings, a fake model backend and agent builders."""

from pathlib import Path

import httpx
import pytest

from workplace_agents.agents import create_agent
from workplace_agents.agents.query_processor import QueryProcessor
from workplace_agents.coordination.coordinator_client import CoordinatorClient
from workplace_agents.utils.config import Settings

DATA_DIR = Path(__file__).parent.parent / "data"
COORDINATOR_URL = "http://coordinator.test"


class FakeModelClient:
    """Stands in for ollama.AsyncClient."""

    def __init__(self, reply="Generated answer", models=("llama3.2:3b",), fail=False):
        self.reply = reply
        self.models = list(models)
        self.fail = fail
        self.calls = []

    async def chat(self, model, messages, options=None):
        self.calls.append({"model": model, "messages": messages, "options": options})
        if self.fail:
            raise ConnectionError("model backend down")
        return {"message": {"role": "assistant", "content": self.reply}}

    async def list(self):
        if self.fail:
            raise ConnectionError("model backend down")
        return {"models": [{"model": m} for m in self.models]}


def coordinator_down(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("coordinator down", request=request)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        coordinator_url=COORDINATOR_URL,
        hr_employees_path=str(DATA_DIR / "employees.csv"),
        it_tickets_path=str(DATA_DIR / "tickets.csv"),
        agent_profiles_path=None,
        agent_public_url=None,
        log_file_path=None,
        agent_score_timeout_seconds=0.2,
    )


@pytest.fixture
def model_client():
    return FakeModelClient()


@pytest.fixture
def make_agent(settings, model_client):
    """Build an agent wired to a fake model and a mock coordinator transport."""

    def _make(name, handler=coordinator_down, sleep=None, **kwargs):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client_kwargs = {"sleep": sleep} if sleep else {}
        coordinator = CoordinatorClient(settings, http_client=http_client, **client_kwargs)
        query_processor = QueryProcessor(name, settings, client=model_client)
        return create_agent(
            name,
            settings=settings,
            query_processor=query_processor,
            coordinator_client=coordinator,
            **kwargs
        )

    return _make
