"""
Coordinator HTTP service.

Keeps the agent registry, routes user queries to the best agent and
forwards them to that agent's query resource.
"""

import argparse
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import uvicorn
from fastapi import FastAPI, HTTPException, status

from workplace_agents import __version__
from workplace_agents.coordination.dispatch import DispatchResolver, HttpScoreProvider
from workplace_agents.coordination.errors import AgentUnreachable, NoAgentAvailable
from workplace_agents.coordination.models import AgentDescriptor, RegistrationRecord
from workplace_agents.coordination.registry import AgentRegistry
from workplace_agents.server.models import (
    AgentScore,
    CoordinatorHealthResponse,
    QueryRequest,
    QueryResponse,
    RegistrationResponse,
)
from workplace_agents.utils.config import Settings, get_settings
from workplace_agents.utils.logger import get_logger, setup_logger

logger = get_logger()

QUERY_EXPANSION = "{?q*}"


class AgentGateway:
    """Forwards queries to registered agents over HTTP."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Optional[Settings] = None, log=None):
        self.settings = settings or get_settings()
        self.http_client = http_client
        self.timeout = self.settings.agent_forward_timeout_seconds
        self.logger = log or get_logger().bind(component="gateway")

    async def close(self):
        await self.http_client.aclose()

    async def forward(self, record: RegistrationRecord, query: str) -> str:
        """
        Send a query to an agent and return its answer.

        Uses the agent's ``<name>://query{?q*}`` resource when it lists one,
        otherwise its ``/process_query`` endpoint.

        Raises:
            AgentUnreachable: If the agent cannot be reached or answers with an error
        """
        base_url = record.descriptor.url.rstrip("/")

        try:
            template = await self._find_query_template(base_url)

            if template is None:
                response = await self.http_client.post(
                    f"{base_url}/process_query",
                    json={"query": query},
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.json()["response"]

            uri = template.replace(QUERY_EXPANSION, f"?q={quote(query)}")
            self.logger.debug(f"Reading {uri} from {record.name} ({record.agent_id})")

            response = await self.http_client.get(
                f"{base_url}/resources/read",
                params={"uri": uri},
                timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()["text"]

        except (httpx.HTTPError, KeyError, ValueError) as e:
            self.logger.error(f"Failed to forward query to {record.name} ({record.agent_id}): {e}")
            raise AgentUnreachable(f"Agent {record.name} could not be reached: {e}") from e

    async def _find_query_template(self, base_url: str) -> Optional[str]:
        response = await self.http_client.get(f"{base_url}/resources", timeout=self.timeout)
        response.raise_for_status()

        for resource in response.json():
            if resource.get("template") and resource.get("uri", "").endswith(f"query{QUERY_EXPANSION}"):
                return resource["uri"]
        return None


def create_coordinator_app(
    settings: Optional[Settings] = None,
    registry: Optional[AgentRegistry] = None,
    gateway: Optional[AgentGateway] = None,
    resolver: Optional[DispatchResolver] = None,
) -> FastAPI:
    """
    Build the coordinator FastAPI app.

    Collaborators default to HTTP-backed implementations built from settings.
    """
    settings = settings or get_settings()
    registry = registry or AgentRegistry(settings)
    gateway = gateway or AgentGateway(httpx.AsyncClient(), settings)
    resolver = resolver or DispatchResolver(
        HttpScoreProvider(gateway.http_client, settings.agent_score_timeout_seconds),
        settings
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await registry.start()
        try:
            yield
        finally:
            await registry.stop()
            await gateway.close()

    app = FastAPI(
        title="Workplace Agents Coordinator",
        description="Registers agents and routes queries to the best one.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.gateway = gateway
    app.state.resolver = resolver

    @app.get("/health", response_model=CoordinatorHealthResponse, tags=["Health"])
    async def health():
        records = await registry.list_records()
        return CoordinatorHealthResponse(status="healthy", registeredAgents=len(records))

    @app.post("/api/agents/register", response_model=RegistrationResponse, tags=["Registry"])
    async def register_agent(descriptor: AgentDescriptor):
        record = await registry.register(descriptor)
        return RegistrationResponse(
            success=True,
            agentId=record.agent_id,
            message=f"Agent {record.name} registered successfully",
        )

    async def _unregister(agent_id: str) -> Dict[str, Any]:
        record = await registry.unregister(agent_id)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Agent {agent_id} not found")
        return {"success": True, "agentId": agent_id, "message": f"Agent {record.name} unregistered"}

    @app.post("/api/agents/{agent_id}/unregister", tags=["Registry"])
    async def unregister_agent(agent_id: str):
        return await _unregister(agent_id)

    @app.delete("/api/agents/{agent_id}", tags=["Registry"])
    async def delete_agent(agent_id: str):
        return await _unregister(agent_id)

    @app.post("/api/agents/{agent_id}/heartbeat", tags=["Registry"])
    async def heartbeat(agent_id: str):
        if not await registry.heartbeat(agent_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Agent {agent_id} not found")
        return {"success": True, "agentId": agent_id}

    @app.get("/api/agents", tags=["Registry"])
    async def list_agents(only_active: bool = False) -> List[Dict[str, Any]]:
        records = await registry.list_records(only_active=only_active)
        return [r.to_public_dict() for r in records]

    @app.post("/api/query", response_model=QueryResponse, tags=["Query"])
    async def query(request: QueryRequest):
        records = await registry.list_records()

        try:
            agent_id = await resolver.resolve(request.query, records)
        except NoAgentAvailable as e:
            logger.warning(f"No agent available for query: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Service unavailable: no agent is available to handle this query",
            )

        record = next(r for r in records if r.agent_id == agent_id)

        try:
            response = await gateway.forward(record, request.query)
        except AgentUnreachable as e:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

        return QueryResponse(agentId=record.agent_id, agentName=record.name, response=response)

    @app.post("/api/query/rank", response_model=List[AgentScore], tags=["Query"])
    async def rank(request: QueryRequest):
        records = await registry.list_records()
        names = {r.agent_id: r.name for r in records}

        try:
            scores = await resolver.rank(request.query, records)
        except NoAgentAvailable:
            return []

        return [AgentScore(agentId=s.agent_id, agentName=names[s.agent_id], score=s.score) for s in scores]

    return app


def main(argv=None):
    """Run the coordinator."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Run the workplace agents coordinator")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=settings.coordinator_port)
    args = parser.parse_args(argv)

    setup_logger(settings)

    app = create_coordinator_app(settings)

    logger.info(f"Starting coordinator on {args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
