"""IT support specialized agent."""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from workplace_agents.agents.base_agent import BaseAgent
from workplace_agents.agents.knowledge import FileKnowledgeSource, KnowledgeSource
from workplace_agents.agents.profiles import AgentProfile, get_profile
from workplace_agents.utils.config import Settings, get_settings

# First matching pattern wins
QUERY_PATTERNS = {
    "ticket_lookup": re.compile(r"ticket|find ticket|lookup ticket|search ticket|ticket id", re.I),
    "issue_diagnosis": re.compile(r"issue|problem|error|troubleshoot|why|not working|slow|crash", re.I),
    "status_check": re.compile(r"status|pending|resolved|assigned|priority|urgency", re.I),
    "system_info": re.compile(r"system|software|hardware|network|connectivity|service", re.I),
    "access_issue": re.compile(r"access|login|password|permission|account|locked|reset", re.I),
    "device_issue": re.compile(r"printer|scanner|monitor|keyboard|mouse|device", re.I),
}

TICKET_ID_PATTERN = re.compile(r"TKT-\d+", re.I)


@dataclass
class QueryAnalysis:
    """What an IT query is about."""
    type: str = "general"
    confidence: int = 0
    keywords: List[str] = field(default_factory=list)
    ticket_ids: List[str] = field(default_factory=list)


class ITAgent(BaseAgent):
    """Answers questions about IT tickets, incidents and troubleshooting."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        profile: Optional[AgentProfile] = None,
        knowledge: Optional[KnowledgeSource] = None,
        **kwargs
    ):
        settings = settings or get_settings()
        super().__init__(
            profile=profile or get_profile("it", settings.agent_profiles_path),
            knowledge=knowledge or FileKnowledgeSource(settings.it_tickets_path),
            settings=settings,
            **kwargs
        )

    def setup_resources(self):
        self.resources.register_static_resource(
            "tickets",
            "it://tickets",
            "Complete IT support tickets database with ticket details",
            "text/csv",
            self.knowledge.load,
        )
        self.resources.register_template_resource(
            "ticket",
            "it://tickets/{ticketId}",
            "Individual IT ticket information and status",
            "text/plain",
            self._read_ticket,
        )

    def analyze_query(self, query: str) -> QueryAnalysis:
        analysis = QueryAnalysis()

        for query_type, pattern in QUERY_PATTERNS.items():
            if pattern.search(query):
                analysis.type = query_type
                analysis.confidence = 85
                break

        analysis.keywords = self.scorer.matches(query)
        analysis.ticket_ids = [t.upper() for t in TICKET_ID_PATTERN.findall(query)]
        return analysis

    def find_ticket(self, ticket_id: str) -> Optional[Dict[str, str]]:
        wanted = ticket_id.strip().upper()
        for ticket in self.knowledge.records():
            if ticket.get("ticket_id", "").upper() == wanted:
                return ticket
        return None

    def _read_ticket(self, uri: str, params: Dict[str, str]) -> str:
        ticket_id = params["ticketId"]
        ticket = self.find_ticket(ticket_id)

        if ticket is None:
            return f"Ticket {ticket_id} not found"

        return _format_ticket(ticket)

    def build_context(self, query: str) -> str:
        analysis = self.analyze_query(query)
        tickets = self.knowledge.records()

        parts = [f"IT Tickets Database ({len(tickets)} tickets):\n{self.knowledge.load()}"]

        if analysis.type in ("ticket_lookup", "status_check"):
            statuses = _distinct(tickets, "status")
            priorities = _distinct(tickets, "priority")
            parts.append(
                f"TICKET SUMMARY:\nStatuses: {', '.join(statuses)}\n"
                f"Priorities: {', '.join(priorities)}"
            )

        if analysis.type == "ticket_lookup":
            assignees = _distinct(tickets, "assigned_to")
            parts.append(f"ASSIGNMENT INFO:\nAssigned To: {', '.join(assignees)}")

        referenced = [t for t in (self.find_ticket(i) for i in analysis.ticket_ids) if t]
        if referenced:
            parts.append(
                "REFERENCED TICKETS:\n" + "\n\n".join(_format_ticket(t) for t in referenced)
            )

        parts.append(
            f"QUERY ANALYSIS:\nType: {analysis.type}\n"
            f"Matched keywords: {', '.join(analysis.keywords) or 'none'}"
        )

        return "\n\n".join(parts)


def _distinct(rows: List[Dict[str, str]], column: str) -> List[str]:
    values = []
    for row in rows:
        value = row.get(column)
        if value and value not in values:
            values.append(value)
    return values


def _format_ticket(ticket: Dict[str, str]) -> str:
    return "\n".join(f"{key}: {value}" for key, value in ticket.items())
