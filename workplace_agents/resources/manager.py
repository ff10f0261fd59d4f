"""
Resource registration and lookup for an agent.

Resources are addressed by URI. Static resources match exactly; template
resources use RFC 6570 style URIs with path variables (``it://tickets/{ticketId}``)
and an optional query expansion (``hr://query{?q*}``).
"""

import inspect
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from urllib.parse import parse_qs, unquote

from workplace_agents.coordination.errors import ResourceNotFound
from workplace_agents.utils.logger import get_logger

TextResult = Union[str, Awaitable[str]]
StaticHandler = Callable[[], TextResult]
TemplateHandler = Callable[[str, Dict[str, Any]], TextResult]

_PATH_VARIABLE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")
_QUERY_EXPANSION = re.compile(r"\{\?[^}]*\}$")


@dataclass
class ResourceContent:
    """Text payload returned when a resource is read."""
    uri: str
    text: str
    mime_type: str = "text/plain"
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "text": self.text,
            "mimeType": self.mime_type,
            "error": self.error,
        }


@dataclass
class Resource:
    """A registered resource."""
    name: str
    uri: str
    description: str
    mime_type: str
    handler: Callable[..., TextResult]
    template: bool = False
    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _expands_query: bool = field(default=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }
        if self.template:
            data["template"] = True
        return data

    def match(self, uri: str) -> Optional[Dict[str, Any]]:
        """
        Match a concrete URI against this template.

        Returns:
            Extracted parameters, or None if the URI does not match
        """
        path, _, query = uri.partition("?")
        match = self._pattern.fullmatch(path)
        if match is None:
            return None

        params: Dict[str, Any] = {k: unquote(v) for k, v in match.groupdict().items()}

        if self._expands_query and query:
            for key, values in parse_qs(query, keep_blank_values=True).items():
                params[key] = values[0] if len(values) == 1 else values

        return params


def compile_template(uri_template: str):
    """Build the path regex of a URI template and whether it expands a query."""
    expands_query = bool(_QUERY_EXPANSION.search(uri_template))
    path_template = _QUERY_EXPANSION.sub("", uri_template)

    pattern = ""
    position = 0
    for variable in _PATH_VARIABLE.finditer(path_template):
        pattern += re.escape(path_template[position:variable.start()])
        pattern += f"(?P<{variable.group(1)}>[^/?]+)"
        position = variable.end()
    pattern += re.escape(path_template[position:])

    return re.compile(pattern), expands_query


async def _resolve(result: TextResult) -> str:
    if inspect.isawaitable(result):
        result = await result
    return result


class ResourceManager:
    """Holds the resources of one agent and reads them by URI."""

    def __init__(self, agent_name: str, log=None):
        self.agent_name = agent_name
        self.logger = log or get_logger().bind(component="resources", agent=agent_name)
        self._resources: List[Resource] = []

    def register_static_resource(
        self,
        name: str,
        uri: str,
        description: str,
        mime_type: str,
        handler: StaticHandler
    ) -> Resource:
        """Register a resource served at a fixed URI."""
        self.logger.debug(f"Registering static resource: {name}")

        resource = Resource(
            name=name,
            uri=uri,
            description=description,
            mime_type=mime_type,
            handler=handler,
        )
        self._resources.append(resource)
        return resource

    def register_template_resource(
        self,
        name: str,
        uri_template: str,
        description: str,
        mime_type: str,
        handler: TemplateHandler
    ) -> Resource:
        """Register a resource whose URI carries parameters."""
        self.logger.debug(f"Registering template resource: {name}")

        pattern, expands_query = compile_template(uri_template)
        resource = Resource(
            name=name,
            uri=uri_template,
            description=description,
            mime_type=mime_type,
            handler=handler,
            template=True,
            _pattern=pattern,
            _expands_query=expands_query,
        )
        self._resources.append(resource)
        return resource

    def list(self) -> List[Dict[str, Any]]:
        """Public view of every registered resource, in registration order."""
        self.logger.debug(f"Returning {len(self._resources)} resources")
        return [r.to_dict() for r in self._resources]

    @property
    def static_resources(self) -> List[Resource]:
        return [r for r in self._resources if not r.template]

    @property
    def template_resources(self) -> List[Resource]:
        return [r for r in self._resources if r.template]

    async def read(self, uri: str) -> ResourceContent:
        """
        Read a resource.

        Handler failures are returned as an error payload instead of raised.

        Raises:
            ResourceNotFound: If no resource matches the URI
        """
        for resource in self.static_resources:
            if resource.uri == uri:
                return await self._invoke(resource, uri)

        for resource in self.template_resources:
            params = resource.match(uri)
            if params is not None:
                return await self._invoke(resource, uri, params)

        raise ResourceNotFound(f"Resource not found: {uri}")

    async def _invoke(
        self,
        resource: Resource,
        uri: str,
        params: Optional[Dict[str, Any]] = None
    ) -> ResourceContent:
        try:
            if resource.template:
                text = await _resolve(resource.handler(uri, params))
            else:
                text = await _resolve(resource.handler())
        except Exception as e:
            self.logger.error(f"Error reading resource {uri}: {e}")
            return ResourceContent(
                uri=uri,
                text=f"Error processing query: {e}",
                mime_type=resource.mime_type,
                error=e.__class__.__name__,
            )

        return ResourceContent(uri=uri, text=text, mime_type=resource.mime_type)

    def log_resource_summary(self):
        """Log which resources this agent exposes."""
        self.logger.info(f"{len(self._resources)} resources registered:")
        for resource in self._resources:
            self.logger.debug(f"  - {resource.uri} ({resource.name})")
