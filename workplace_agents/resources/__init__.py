"""Resources an agent exposes to the coordinator and to MCP clients."""
