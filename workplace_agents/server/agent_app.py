"""HTTP service of a single agent process."""

import argparse
from contextlib import asynccontextmanager
from typing import Any, Dict, List

import uvicorn
from fastapi import FastAPI, HTTPException, Query, status

from workplace_agents import __version__
from workplace_agents.agents import AGENT_TYPES, BaseAgent, create_agent
from workplace_agents.coordination.errors import ResourceNotFound
from workplace_agents.server.models import (
    CanHandleResponse,
    CapabilitiesResponse,
    ProcessQueryResponse,
    QueryRequest,
    ResourceReadResponse,
)
from workplace_agents.utils.config import get_settings
from workplace_agents.utils.logger import get_logger, setup_logger

logger = get_logger()


def create_agent_app(agent: BaseAgent, manage_lifecycle: bool = True) -> FastAPI:
    """
    Build the FastAPI app serving one agent.

    Args:
        agent: The agent to serve
        manage_lifecycle: Start (register, heartbeat) and stop the agent with the app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_lifecycle:
            await agent.start()
        else:
            await agent.initialize()
        try:
            yield
        finally:
            if manage_lifecycle:
                await agent.stop()

    app = FastAPI(
        title=f"{agent.name.upper()} Agent",
        description=agent.profile.description,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.agent = agent

    @app.get("/health", tags=["Health"])
    async def health() -> Dict[str, Any]:
        return await agent.health_check()

    @app.get("/resources", tags=["Resources"])
    async def list_resources() -> List[Dict[str, Any]]:
        return agent.resources.list()

    @app.get("/resources/read", response_model=ResourceReadResponse, tags=["Resources"])
    async def read_resource(uri: str = Query(..., description="Resource URI")):
        try:
            content = await agent.resources.read(uri)
        except ResourceNotFound as e:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
        return ResourceReadResponse(**content.to_dict())

    @app.post("/can_handle", response_model=CanHandleResponse, tags=["Agent"])
    async def can_handle(request: QueryRequest):
        return CanHandleResponse(agent=agent.name, confidence=agent.can_handle(request.query))

    @app.post("/process_query", response_model=ProcessQueryResponse, tags=["Agent"])
    async def process_query(request: QueryRequest):
        response = await agent.process_query(request.query)
        return ProcessQueryResponse(agent=agent.name, response=response)

    @app.get("/capabilities", response_model=CapabilitiesResponse, tags=["Agent"])
    async def capabilities():
        return CapabilitiesResponse(
            capabilities=agent.get_capabilities(),
            metadata=agent.get_metadata(),
        )

    return app


def main(argv=None):
    """Run one agent as an HTTP service."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Run a workplace agent")
    parser.add_argument(
        "agent",
        nargs="?",
        default=settings.agent_name,
        choices=sorted(AGENT_TYPES),
        help="Agent to run"
    )
    parser.add_argument("--host", default=settings.agent_host)
    parser.add_argument("--port", type=int, default=settings.agent_port)
    args = parser.parse_args(argv)

    settings = settings.model_copy(
        update={"agent_name": args.agent, "agent_host": args.host, "agent_port": args.port}
    )

    setup_logger(settings)

    agent = create_agent(args.agent, settings=settings)
    app = create_agent_app(agent)

    logger.info(f"Starting {args.agent} agent on {args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
