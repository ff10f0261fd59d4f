"""Tests for the agent HTTP service."""

from fastapi.testclient import TestClient

from workplace_agents.server.agent_app import create_agent_app


class TestAgentApp:
    """Test cases for the agent FastAPI app."""

    def test_health(self, make_agent):
        """Test the health endpoint reports an initialized agent."""
        agent = make_agent("hr")

        with TestClient(create_agent_app(agent, manage_lifecycle=False)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "hr"
        assert body["agentId"] == agent.agent_id
        assert body["status"] == "healthy"

    def test_list_resources(self, make_agent):
        """Test resources are listed with templates flagged."""
        with TestClient(create_agent_app(make_agent("it"), manage_lifecycle=False)) as client:
            resources = client.get("/resources").json()

        assert [r["uri"] for r in resources] == [
            "it://tickets",
            "it://tickets/{ticketId}",
            "it://query{?q*}",
        ]
        assert resources[2]["template"] is True

    def test_read_resource(self, make_agent):
        """Test reading a resource by URI."""
        with TestClient(create_agent_app(make_agent("it"), manage_lifecycle=False)) as client:
            response = client.get("/resources/read", params={"uri": "it://tickets/TKT-1001"})

        assert response.status_code == 200
        body = response.json()
        assert body["uri"] == "it://tickets/TKT-1001"
        assert "title: VPN disconnects" in body["text"]
        assert body["mimeType"] == "text/plain"
        assert body["error"] is None

    def test_read_query_resource(self, make_agent):
        """Test the query resource answers through the model."""
        with TestClient(create_agent_app(make_agent("hr"), manage_lifecycle=False)) as client:
            response = client.get("/resources/read", params={"uri": "hr://query?q=Who%20is%20Bob"})

        assert response.json()["text"] == "Generated answer"

    def test_read_unknown_resource(self, make_agent):
        """Test unknown URIs answer 404."""
        with TestClient(create_agent_app(make_agent("hr"), manage_lifecycle=False)) as client:
            response = client.get("/resources/read", params={"uri": "hr://payroll"})

        assert response.status_code == 404

    def test_can_handle(self, make_agent):
        """Test the keyword confidence endpoint."""
        with TestClient(create_agent_app(make_agent("it"), manage_lifecycle=False)) as client:
            response = client.post("/can_handle", json={"query": "My printer is broken"})

        assert response.json() == {"agent": "it", "confidence": 30}

    def test_can_handle_requires_query(self, make_agent):
        """Test empty queries are rejected."""
        with TestClient(create_agent_app(make_agent("it"), manage_lifecycle=False)) as client:
            response = client.post("/can_handle", json={"query": ""})

        assert response.status_code == 422

    def test_process_query(self, make_agent):
        """Test the process_query endpoint."""
        with TestClient(create_agent_app(make_agent("general"), manage_lifecycle=False)) as client:
            response = client.post("/process_query", json={"query": "What are the office hours?"})

        assert response.json() == {"agent": "general", "response": "Generated answer"}

    def test_capabilities(self, make_agent):
        """Test the capabilities endpoint."""
        with TestClient(create_agent_app(make_agent("general"), manage_lifecycle=False)) as client:
            body = client.get("/capabilities").json()

        assert "Answer general workplace questions" in body["capabilities"]
        assert body["metadata"]["category"] == "General"
