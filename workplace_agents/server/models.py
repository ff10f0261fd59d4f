"""Request and response models of the HTTP services."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Natural-language query")


class CanHandleResponse(BaseModel):
    agent: str
    confidence: int


class ProcessQueryResponse(BaseModel):
    agent: str
    response: str


class CapabilitiesResponse(BaseModel):
    capabilities: List[str]
    metadata: Dict[str, Any]


class ResourceReadResponse(BaseModel):
    uri: str
    text: str
    mimeType: str = "text/plain"
    error: Optional[str] = None


class CoordinatorHealthResponse(BaseModel):
    status: str = "healthy"
    registeredAgents: int = 0


class RegistrationResponse(BaseModel):
    success: bool = True
    agentId: str
    message: str


class QueryResponse(BaseModel):
    agentId: str
    agentName: str
    response: str


class AgentScore(BaseModel):
    agentId: str
    agentName: str
    score: int
