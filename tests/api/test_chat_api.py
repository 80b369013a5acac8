from __future__ import annotations

import uuid

from support_chat.app import GENERIC_ERROR_MESSAGE
from support_chat.app.errors import ModelCallError
from support_chat.app.services.fallbacks import fallback_reply


def test_send_then_read_history(client, fake_completion) -> None:
    response = client.post("/api/chat/message", json={"message": "What is your return policy?"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["reply"] == "Happy to help with that!"
    session_id = body["sessionId"]
    assert str(uuid.UUID(session_id)) == session_id

    system_prompt = fake_completion.calls[0]["messages"][0]
    assert system_prompt["role"] == "system"
    assert "TechStyle" in system_prompt["content"]

    history = client.get(f"/api/chat/{session_id}/history")
    assert history.status_code == 200
    payload = history.get_json()
    assert payload["sessionId"] == session_id
    assert [m["sender"] for m in payload["messages"]] == ["user", "ai"]
    assert payload["messages"][0]["text"] == "What is your return policy?"
    assert set(payload["messages"][1]) == {"id", "sender", "text", "timestamp"}


def test_session_id_is_reused_across_turns(client) -> None:
    first = client.post("/api/chat/message", json={"message": "Hi"}).get_json()
    second = client.post(
        "/api/chat/message", json={"message": "Still there?", "sessionId": first["sessionId"]}
    ).get_json()

    assert second["sessionId"] == first["sessionId"]
    history = client.get(f"/api/chat/{first['sessionId']}/history").get_json()
    assert len(history["messages"]) == 4


def test_whitespace_message_is_rejected_and_nothing_is_stored(client, store, fake_completion) -> None:
    response = client.post("/api/chat/message", json={"message": "   "})

    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "Bad Request"
    assert body["message"] == "Message cannot be empty"
    assert body["code"] == "EMPTY"
    assert store.count_conversations() == 0
    assert fake_completion.calls == []


def test_missing_or_malformed_body_is_rejected(client, store) -> None:
    assert client.post("/api/chat/message", json={}).status_code == 400
    assert client.post("/api/chat/message", data="not json").status_code == 400

    response = client.post("/api/chat/message", json=["hello"])
    assert response.status_code == 400
    assert response.get_json()["code"] == "INVALID_BODY"
    assert store.count_conversations() == 0


def test_history_token_errors(client) -> None:
    invalid = client.get("/api/chat/not-a-uuid/history")
    assert invalid.status_code == 400
    assert invalid.get_json()["message"] == "Invalid session ID format"

    missing = client.get(f"/api/chat/{uuid.uuid4()}/history")
    assert missing.status_code == 404
    assert missing.get_json() == {
        "error": "Not Found",
        "message": "Conversation not found",
        "code": "NOT_FOUND",
    }


def test_model_failure_still_answers_with_fallback(client, fake_completion) -> None:
    fake_completion.error = ModelCallError(ModelCallError.RATE_LIMITED)

    response = client.post("/api/chat/message", json={"message": "Where is my order?"})

    assert response.status_code == 200
    body = response.get_json()
    assert body["reply"] == fallback_reply(
        ModelCallError.RATE_LIMITED, support_email="support@techstyle.com"
    )
    history = client.get(f"/api/chat/{body['sessionId']}/history").get_json()
    assert history["messages"][-1]["text"] == body["reply"]


def test_storage_failure_returns_generic_error(client, store) -> None:
    store.close()

    response = client.post("/api/chat/message", json={"message": "Hello"})

    assert response.status_code == 500
    assert response.get_json() == {
        "error": "Internal Server Error",
        "message": GENERIC_ERROR_MESSAGE,
    }


def test_health_endpoints(client, store) -> None:
    chat_health = client.get("/api/chat/health")
    assert chat_health.status_code == 200
    assert chat_health.get_json()["status"] == "ok"

    service_health = client.get("/api/health")
    assert service_health.status_code == 200
    payload = service_health.get_json()
    assert payload["storage"] == "ok"
    assert payload["llm_configured"] is True
    assert payload["llm_provider"] == "openai"

    store.close()
    degraded = client.get("/api/health")
    assert degraded.status_code == 503
    assert degraded.get_json()["status"] == "degraded"


def test_unknown_route_returns_json_404(client) -> None:
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.get_json()["message"] == "The requested resource was not found"


def test_cors_allows_configured_origin(client) -> None:
    response = client.get("/api/chat/health", headers={"Origin": "http://localhost:5173"})

    assert response.headers.get("Access-Control-Allow-Origin") == "http://localhost:5173"
