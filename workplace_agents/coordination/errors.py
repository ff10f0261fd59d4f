"""Exceptions raised by the coordination and routing core."""


class CoordinationError(Exception):
    """Base class for coordination errors."""
    pass


class RegistryUnavailable(CoordinationError):
    """The coordinator's health probe failed; registration was not attempted."""
    pass


class RegistrationRejected(CoordinationError):
    """The coordinator was reachable but the register call failed."""
    pass


class NoAgentAvailable(CoordinationError):
    """Dispatch found no active agent able to take the query."""
    pass


class MissingParameter(CoordinationError):
    """A templated resource was read without its required parameter."""

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"No {parameter} parameter provided")


class ResourceNotFound(CoordinationError):
    """No registered resource matches the requested URI."""
    pass


class ModelBackendError(CoordinationError):
    """The language-model call failed or timed out."""
    pass


class KnowledgeSourceError(CoordinationError):
    """An agent's data source could not be loaded."""
    pass


class AgentUnreachable(CoordinationError):
    """The selected agent could not be reached while forwarding a query."""
    pass
