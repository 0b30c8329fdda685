"""Tests for API routes."""
import pytest
from unittest.mock import AsyncMock, patch

from research_chat.config import settings
from research_chat.services import streaming


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setattr(settings, "database_url", "")

    from research_chat.main import app
    yield app


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app)


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "research-chat"}


def test_list_tools(client):
    response = client.get("/api/tools")
    assert response.status_code == 200
    names = [t["name"] for t in response.json()["tools"]]
    assert names[:5] == ["getWeather", "analyzeURL", "performSearch", "simpleDeepResearch", "advancedDeepResearch"]
    assert {"searchFlights", "createReservation", "verifyPayment"} <= set(names)


def test_list_prompts(client):
    response = client.get("/api/prompts")
    assert response.status_code == 200
    data = response.json()
    assert "advanced_research" in data["prompts"]
    assert data["default"] == settings.default_prompt


def test_chat_streams_agent_events(client):
    class FakeAgent:
        seen: dict = {}

        def __init__(self, system_prompt):
            FakeAgent.seen["system"] = system_prompt
            self.response_messages = []

        async def run(self, messages):
            FakeAgent.seen["messages"] = messages
            yield streaming.text_delta("Hi")
            yield streaming.finish("Hi", steps=1)

    with patch("research_chat.api.routes.chat.ChatAgent", FakeAgent):
        response = client.post(
            "/api/chat",
            json={
                "id": "chat-1",
                "prompt": "advanced_research",
                "maxSearches": 3,
                "messages": [
                    {"role": "system", "content": "ignored"},
                    {"role": "user", "content": "Research remote work"},
                    {"role": "assistant", "content": ""},
                ],
            },
        )

    assert response.status_code == 200
    assert "event: text_delta" in response.text
    assert "event: finish" in response.text
    assert FakeAgent.seen["messages"] == [{"role": "user", "content": "Research remote work"}]
    assert "maxSearches=3" in FakeAgent.seen["system"]


def test_chat_rejects_unknown_prompt(client):
    response = client.post(
        "/api/chat",
        json={"id": "c", "prompt": "pirate", "messages": [{"role": "user", "content": "ahoy"}]},
    )
    assert response.status_code == 400
    assert "pirate" in response.json()["detail"]


def test_chat_rejects_empty_history(client):
    response = client.post(
        "/api/chat",
        json={"id": "c", "messages": [{"role": "user", "content": "   "}]},
    )
    assert response.status_code == 400


def test_delete_without_id_is_not_found(client):
    response = client.delete("/api/chat")
    assert response.status_code == 404


def test_delete_without_database(client):
    response = client.delete("/api/chat", params={"id": "chat-1"})
    assert response.status_code == 503


def test_delete_existing_chat(client, monkeypatch):
    monkeypatch.setattr(settings, "database_url", "postgresql://localhost/test")

    with patch("research_chat.api.routes.chat.db.get_chat", new=AsyncMock(return_value={"id": "chat-1"})), \
         patch("research_chat.api.routes.chat.db.delete_chat", new=AsyncMock(return_value=True)) as delete:
        response = client.delete("/api/chat", params={"id": "chat-1"})

    assert response.status_code == 200
    assert response.text == "Chat deleted"
    delete.assert_awaited_once_with("chat-1")


def test_delete_unknown_chat(client, monkeypatch):
    monkeypatch.setattr(settings, "database_url", "postgresql://localhost/test")

    with patch("research_chat.api.routes.chat.db.get_chat", new=AsyncMock(return_value=None)):
        response = client.delete("/api/chat", params={"id": "missing"})

    assert response.status_code == 404


def _stored_reservation(paid: bool) -> dict:
    return {
        "id": "r-1",
        "user_id": None,
        "details": {"id": "r-1", "flightNumber": "UA 1234", "totalPriceInUSD": 512.25},
        "has_completed_payment": paid,
    }


def test_get_reservation_without_database(client):
    response = client.get("/api/reservation", params={"id": "r-1"})
    assert response.status_code == 503


def test_get_reservation(client, monkeypatch):
    monkeypatch.setattr(settings, "database_url", "postgresql://localhost/test")

    with patch(
        "research_chat.api.routes.reservation.db.get_reservation",
        new=AsyncMock(return_value=_stored_reservation(paid=False)),
    ):
        response = client.get("/api/reservation", params={"id": "r-1"})

    assert response.status_code == 200
    assert response.json() == {
        "id": "r-1",
        "flightNumber": "UA 1234",
        "totalPriceInUSD": 512.25,
        "hasCompletedPayment": False,
    }


def test_pay_reservation(client, monkeypatch):
    monkeypatch.setattr(settings, "database_url", "postgresql://localhost/test")

    with patch(
        "research_chat.api.routes.reservation.db.get_reservation",
        new=AsyncMock(return_value=_stored_reservation(paid=False)),
    ), patch(
        "research_chat.api.routes.reservation.db.mark_reservation_paid", new=AsyncMock(return_value=True)
    ) as mark_paid:
        response = client.patch("/api/reservation", params={"id": "r-1"})

    assert response.status_code == 200
    assert response.text == "Reservation updated"
    mark_paid.assert_awaited_once_with("r-1")


def test_pay_reservation_twice_is_rejected(client, monkeypatch):
    monkeypatch.setattr(settings, "database_url", "postgresql://localhost/test")

    with patch(
        "research_chat.api.routes.reservation.db.get_reservation",
        new=AsyncMock(return_value=_stored_reservation(paid=True)),
    ):
        response = client.patch("/api/reservation", params={"id": "r-1"})

    assert response.status_code == 400


def test_pay_unknown_reservation(client, monkeypatch):
    monkeypatch.setattr(settings, "database_url", "postgresql://localhost/test")

    with patch("research_chat.api.routes.reservation.db.get_reservation", new=AsyncMock(return_value=None)):
        response = client.patch("/api/reservation", params={"id": "missing"})

    assert response.status_code == 404
