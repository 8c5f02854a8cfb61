import json

import pytest
from fastapi.testclient import TestClient

from honeymoon_ai.agents.chat_agent import ChatAgent, get_chat_agent
from honeymoon_ai.agents.personalization_engine import PersonalizationEngine, get_personalization_engine
from honeymoon_ai.llm.package_directives import PackageDirectiveParser
from honeymoon_ai.main import app


@pytest.fixture
def client(registry, conversation_store, profile_store, package_store, sync_queue, scripted_generator):
    agent = ChatAgent(
        registry=registry,
        store=conversation_store,
        generator=scripted_generator(["Try Bali! ", "**SHOW_PACKAGES:Bali**"]),
        parser=PackageDirectiveParser(store=package_store),
        sync_queue=sync_queue,
    )
    engine = PersonalizationEngine(registry, profile_store=profile_store, package_store=package_store)

    app.dependency_overrides[get_chat_agent] = lambda: agent
    app.dependency_overrides[get_personalization_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    body = client.get("/").json()

    assert body["status"] == "running"
    assert "/api/ai/chat" in body["endpoints"]


def test_chat_turn(client):
    response = client.post("/api/ai/chat", json={"message": "Where should we go?", "session_id": "s1"})

    assert response.status_code == 200
    body = response.json()
    assert body["display_text"] == "Try Bali!"
    assert [p["id"] for p in body["packages"]] == ["pkg-bali-jungle"]
    assert body["persisted"] is True


@pytest.mark.parametrize("payload", [
    {"message": "hello", "session_id": ""},
    {"message": "   ", "session_id": "s1"},
])
def test_chat_rejects_empty_input(client, payload):
    assert client.post("/api/ai/chat", json=payload).status_code == 400


def test_stream_emits_updates_then_completion(client):
    response = client.post("/api/ai/chat/stream", json={"message": "Ideas?", "session_id": "s1"})

    events = [json.loads(line) for line in response.text.splitlines() if line]

    assert response.status_code == 200
    assert [e["event"] for e in events] == ["message-updated"] * 3 + ["message-completed"]
    assert events[2]["data"]["done"] is True
    assert events[-1]["data"]["display_text"] == "Try Bali!"


def test_history_context_and_delete(client):
    assert client.get("/api/ai/context/s1").status_code == 404

    client.post("/api/ai/chat", json={"message": "Bali for two people?", "session_id": "s1"})

    chats = client.get("/api/ai/history/s1").json()["chats"]
    assert len(chats) == 1
    assert chats[0]["title"] == "Bali for two people?"

    context = client.get("/api/ai/context/s1").json()
    assert context["user_preferences"]["destinations"] == ["bali"]
    assert context["user_preferences"]["group_size"] == 2

    assert client.delete("/api/ai/history/s1").json() == {"session_id": "s1", "deleted": 2}
    assert client.get("/api/ai/history/s1").json()["chats"] == []


def test_resolve_packages(client):
    body = client.post(
        "/api/ai/packages/resolve",
        json={"text": "Lovely! **SHOW_PACKAGES:cultural**"}
    ).json()

    assert body["display_text"] == "Lovely!"
    assert {p["category"] for p in body["packages"]} == {"cultural"}


def test_personalize_unknown_user(client):
    response = client.post(
        "/api/personalization/personalize",
        json={"user_id": "ghost", "session_id": "s1"},
        headers={"X-User-Id": "from-header"},
    )

    body = response.json()
    assert body["user_id"] == "from-header"
    assert body["confidence"] == 0.3


def test_record_action(client):
    client.post("/api/personalization/personalize", json={"user_id": "u1", "session_id": "s1"})

    quiet = client.post("/api/personalization/actions/s1", json={"type": "hover"}).json()
    loud = client.post("/api/personalization/actions/s1", json={"type": "package_view"}).json()

    assert quiet["recomputed"] is False
    assert loud["recomputed"] is True
    assert loud["personalization"]["session_id"] == "s1"
