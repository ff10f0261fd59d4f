"""Workplace assistant agents with a coordinator-based routing core.

Packages:
- coordination: registration, heartbeats, capability scoring and dispatch
- resources: named, URI-addressable resources exposed by each agent
- agents: HR, IT and General specialist agents
- server: HTTP services for agents and the coordinator
"""

__version__ = "1.0.0"
