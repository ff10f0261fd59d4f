"""Data sources an agent grounds its answers on."""

import csv
import io
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from workplace_agents.coordination.errors import KnowledgeSourceError


class KnowledgeSource(ABC):
    """Text source of an agent's domain data."""

    @abstractmethod
    def load(self) -> str:
        """
        Return the full source text.

        Raises:
            KnowledgeSourceError: If the data cannot be loaded
        """
        pass

    def records(self) -> List[Dict[str, str]]:
        """Rows of the source when it is CSV, keyed by lower-cased header."""
        reader = csv.DictReader(io.StringIO(self.load()))
        return [
            {(k or "").strip().lower(): (v or "").strip() for k, v in row.items()}
            for row in reader
        ]


class FileKnowledgeSource(KnowledgeSource):
    """Reads a file once and caches its text."""

    def __init__(self, path: str):
        self.path = Path(path)
        self._cache: Optional[str] = None

    def load(self) -> str:
        if self._cache is None:
            try:
                self._cache = self.path.read_text(encoding="utf-8")
            except OSError as e:
                raise KnowledgeSourceError(f"Cannot read {self.path}: {e}") from e
        return self._cache

    def invalidate(self):
        """Drop the cached text so the next load re-reads the file."""
        self._cache = None


class StaticKnowledgeSource(KnowledgeSource):
    """In-memory text."""

    def __init__(self, text: str):
        self.text = text

    def load(self) -> str:
        return self.text


WORKPLACE_POLICIES = """WORKPLACE POLICIES AND GENERAL INFORMATION

WORKING HOURS:
- Standard hours: 9:00 AM - 5:00 PM, Monday to Friday
- Flexible hours available with manager approval
- Remote work options available

LEAVE POLICIES:
- Annual leave: 20 days per year
- Sick leave: 10 days per year
- Personal days: 3 days per year
- Maternity/Paternity leave: As per local regulations

DRESS CODE:
- Business casual attire
- Casual Fridays
- Professional attire for client meetings

COMMUNICATION:
- Email for formal communications
- Slack for team communications
- Phone for urgent matters

OFFICE FACILITIES:
- Kitchen facilities available
- Parking available on-site
- Gym membership discount available

EMERGENCY CONTACTS:
- General Support: support@company.com
- HR Department: hr@company.com
- IT Support: it@company.com
- Facilities: facilities@company.com"""
