"""Tests for the conversation endpoints."""

import pytest
from fastapi.testclient import TestClient

from conftest import ScriptedProvider, calls, text
from wayfinder_agent.api.dependencies import get_agent
from wayfinder_agent.api.main import app
from wayfinder_agent.errors import ProviderRejectedError, ProviderUnavailableError
from wayfinder_agent.models import Invocation
from wayfinder_agent.orchestration import OrchestrationLoop

client = TestClient(app)


@pytest.fixture
def use_agent(registry):
    """Install an agent driven by a scripted provider for the duration of a test."""

    def install(*script):
        agent = OrchestrationLoop(
            provider=ScriptedProvider(list(script)),
            registry=registry,
            instruction="Be helpful.",
            ceiling=4,
            execution_id="api-test",
        )
        app.dependency_overrides[get_agent] = lambda: agent
        return agent

    yield install
    app.dependency_overrides.clear()


class TestChatEndpoint:
    """Tests for POST /v1/chat."""

    def test_text_answer(self, use_agent):
        """A direct answer comes back with no tool activity."""
        use_agent(text("Starbucks is on level 2."))

        response = client.post("/v1/chat", json={"message": "Where is Starbucks?"})

        assert response.status_code == 200
        data = response.json()
        assert data["text"] == "Starbucks is on level 2."
        assert data["invocations"] == []
        assert data["iterations"] == 1
        assert data["history"] is None

    def test_tool_activity_reported(self, use_agent):
        """Invocations and outcomes of the turn are returned in order."""
        use_agent(
            calls(Invocation("find", {"term": "coffee"}), Invocation("broken")),
            text("Found coffee."),
        )

        response = client.post("/v1/chat", json={"message": "coffee"})

        data = response.json()
        assert data["text"] == "Found coffee."
        assert [inv["name"] for inv in data["invocations"]] == ["find", "broken"]
        assert data["outcomes"][0]["value"] == [{"poiId": 108, "name": "coffee place"}]
        assert data["outcomes"][1]["error"] == "venue map unavailable"
        assert data["iterations"] == 2

    def test_include_history(self, use_agent):
        """History is included on request, in its persisted layout."""
        use_agent(text("Hi!"))

        response = client.post("/v1/chat", json={"message": "hello", "include_history": True})

        history = response.json()["history"]
        assert [m["type"] for m in history] == ["user_input", "assistant_response"]
        assert history[1]["content"] == "Hi!"

    def test_empty_message_rejected(self, use_agent):
        """Empty messages fail validation with 400."""
        use_agent(text("unused"))

        response = client.post("/v1/chat", json={"message": ""})

        assert response.status_code == 400

    def test_missing_message_rejected(self, use_agent):
        use_agent(text("unused"))
        response = client.post("/v1/chat", json={})
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "error",
        [
            ProviderUnavailableError("upstream timed out", status_code=503),
            ProviderRejectedError("invalid api key", status_code=401),
        ],
    )
    def test_provider_failure_returns_502(self, use_agent, error):
        """Provider failures map to 502 without leaking provider details."""
        agent = use_agent(error)

        response = client.post("/v1/chat", json={"message": "coffee"})

        assert response.status_code == 502
        detail = response.json()["detail"]
        assert "Please try again" in detail
        assert str(error) not in detail
        # The user message stays in the history; nothing else is appended.
        assert len(agent.get_history()) == 1

    def test_concurrent_turn_returns_409(self, use_agent):
        agent = use_agent(text("ok"))
        agent._in_turn = True

        response = client.post("/v1/chat", json={"message": "coffee"})

        assert response.status_code == 409

    def test_unexpected_runtime_error_is_not_a_conflict(self, use_agent):
        """Failures other than a running turn take the server error path."""
        use_agent(RuntimeError("Cannot send a request, as the client has been closed."))
        server_error_client = TestClient(app, raise_server_exceptions=False)

        response = server_error_client.post("/v1/chat", json={"message": "coffee"})

        assert response.status_code == 500


class TestHistoryEndpoints:
    """Tests for /v1/history."""

    def test_history_after_turn(self, use_agent):
        use_agent(calls(Invocation("details", {"poiId": 108})), text("Starbucks."))
        client.post("/v1/chat", json={"message": "tell me about 108"})

        response = client.get("/v1/history")

        assert response.status_code == 200
        messages = response.json()["messages"]
        assert [m["type"] for m in messages] == [
            "user_input",
            "tool_calls",
            "tool_results",
            "assistant_response",
        ]
        assert messages[1]["content"][0]["args"] == {"poiId": 108}

    def test_reset_history(self, use_agent):
        agent = use_agent(text("Hi!"))
        client.post("/v1/chat", json={"message": "hello"})

        response = client.delete("/v1/history")

        assert response.status_code == 204
        assert agent.get_history() == []
        assert client.get("/v1/history").json() == {"messages": []}


class TestToolsEndpoint:
    """Tests for GET /v1/tools."""

    def test_lists_registered_tools(self, use_agent):
        use_agent(text("unused"))

        response = client.get("/v1/tools")

        assert response.status_code == 200
        tools = response.json()["tools"]
        assert [t["name"] for t in tools] == ["find", "details", "broken"]
        assert tools[0]["description"] == "Find places"
