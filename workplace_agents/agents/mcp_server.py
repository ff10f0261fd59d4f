"""MCP server exposing one agent's resources and tools over stdio."""

import argparse
import asyncio
import json
import sys
from typing import Any, Iterable

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import Resource, ResourceTemplate, TextContent, Tool
from pydantic import AnyUrl

from workplace_agents.agents import AGENT_TYPES, BaseAgent, create_agent
from workplace_agents.utils.logger import get_logger, setup_logger

logger = get_logger()


class AgentMCPServer:
    """MCP Server for a single workplace agent."""

    def __init__(self, agent: BaseAgent):
        """
        Initialize MCP server.

        Args:
            agent: Agent whose resources and tools are exposed
        """
        self.agent = agent
        self.server = Server(f"{agent.name}-agent")

        logger.info(f"AgentMCPServer initialized for {agent.name}")

        # Register handlers
        self._register_handlers()

    def _query_schema(self, description: str) -> dict:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": description,
                },
            },
            "required": ["query"],
        }

    def list_tools(self) -> list[Tool]:
        name = self.agent.name
        return [
            Tool(
                name="process_query",
                description=f"Process a query using the {name} agent",
                inputSchema=self._query_schema("The query to process"),
            ),
            Tool(
                name="can_handle",
                description=f"Check if the {name} agent can handle a specific query",
                inputSchema=self._query_schema("The query to evaluate"),
            ),
            Tool(
                name="get_capabilities",
                description=f"Get the capabilities of the {name} agent",
                inputSchema={"type": "object", "properties": {}},
            ),
            Tool(
                name="health_check",
                description=f"Check the health status of the {name} agent",
                inputSchema={"type": "object", "properties": {}},
            ),
        ]

    async def call_tool(self, name: str, arguments: Any) -> list[TextContent]:
        """Run a tool. Failures are reported as text."""
        arguments = arguments or {}

        try:
            logger.info(f"Tool called: {name} with arguments: {arguments}")

            if name == "process_query":
                result = await self.agent.process_query(arguments["query"])

            elif name == "can_handle":
                result = {
                    "agent": self.agent.name,
                    "confidence": self.agent.can_handle(arguments["query"]),
                }

            elif name == "get_capabilities":
                result = {
                    "capabilities": self.agent.get_capabilities(),
                    "metadata": self.agent.get_metadata(),
                }

            elif name == "health_check":
                result = await self.agent.health_check()

            else:
                raise ValueError(f"Unknown tool: {name}")

            text = result if isinstance(result, str) else json.dumps(result, indent=2)
            return [TextContent(type="text", text=text)]

        except Exception as e:
            logger.error(f"Error in tool {name}: {e}")
            return [TextContent(type="text", text=f"Error: {str(e)}")]

    def list_resources(self) -> list[Resource]:
        return [
            Resource(
                uri=AnyUrl(r.uri),
                name=r.name,
                description=r.description,
                mimeType=r.mime_type,
            )
            for r in self.agent.resources.static_resources
        ]

    def list_resource_templates(self) -> list[ResourceTemplate]:
        return [
            ResourceTemplate(
                uriTemplate=r.uri,
                name=r.name,
                description=r.description,
                mimeType=r.mime_type,
            )
            for r in self.agent.resources.template_resources
        ]

    async def read_resource(self, uri: str) -> Iterable[ReadResourceContents]:
        content = await self.agent.resources.read(uri)
        return [ReadResourceContents(content=content.text, mime_type=content.mime_type)]

    def _register_handlers(self):
        """Register MCP handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return self.list_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Any) -> list[TextContent]:
            return await self.call_tool(name, arguments)

        @self.server.list_resources()
        async def list_resources() -> list[Resource]:
            return self.list_resources()

        @self.server.list_resource_templates()
        async def list_resource_templates() -> list[ResourceTemplate]:
            return self.list_resource_templates()

        @self.server.read_resource()
        async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
            return await self.read_resource(str(uri))

    async def run(self):
        """Run the MCP server."""
        logger.info(f"Starting MCP server for {self.agent.name} agent...")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options()
            )


async def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run a workplace agent as an MCP server over stdio")
    parser.add_argument("agent", choices=sorted(AGENT_TYPES), help="Agent to expose")
    args = parser.parse_args(argv)

    # stdout carries the MCP protocol
    setup_logger(stream=sys.stderr)

    agent = create_agent(args.agent)
    await agent.initialize()

    server = AgentMCPServer(agent)
    await server.run()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
