"""HR specialized agent."""

from typing import Dict, Optional

from workplace_agents.agents.base_agent import BaseAgent
from workplace_agents.agents.knowledge import FileKnowledgeSource, KnowledgeSource
from workplace_agents.agents.profiles import AgentProfile, get_profile
from workplace_agents.utils.config import Settings, get_settings


class HRAgent(BaseAgent):
    """Answers questions about employees, leave, salary and team structure."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        profile: Optional[AgentProfile] = None,
        knowledge: Optional[KnowledgeSource] = None,
        **kwargs
    ):
        settings = settings or get_settings()
        super().__init__(
            profile=profile or get_profile("hr", settings.agent_profiles_path),
            knowledge=knowledge or FileKnowledgeSource(settings.hr_employees_path),
            settings=settings,
            **kwargs
        )

    def setup_resources(self):
        self.resources.register_static_resource(
            "employees",
            "hr://employees",
            "Complete employee database with personal information",
            "text/csv",
            self.knowledge.load,
        )
        self.resources.register_template_resource(
            "employee-profile",
            "hr://employees/{employeeId}/profile",
            "Individual employee profile information",
            "text/plain",
            self._read_employee_profile,
        )

    def find_employee(self, employee_id: str) -> Optional[Dict[str, str]]:
        """Look an employee up by email, then by name (case-insensitive)."""
        wanted = employee_id.strip().lower()
        employees = self.knowledge.records()

        for field in ("email", "name"):
            for employee in employees:
                if employee.get(field, "").lower() == wanted:
                    return employee
        return None

    def _read_employee_profile(self, uri: str, params: Dict[str, str]) -> str:
        employee_id = params["employeeId"]
        employee = self.find_employee(employee_id)

        if employee is None:
            return f"Employee {employee_id} not found"

        return "\n".join(f"{key}: {value}" for key, value in employee.items())

    def build_context(self, query: str) -> str:
        employees = self.knowledge.records()
        return f"Employee Database ({len(employees)} employees):\n{self.knowledge.load()}"
