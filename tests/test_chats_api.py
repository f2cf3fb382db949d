import pytest
from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.main import create_app
from app.services.relay_service import RelayError, RelayErrorKind

from conftest import FakeRelay


def client_for(store, relay, **settings_overrides):
    settings = Settings(groq_api_key="test-key", **settings_overrides)
    return TestClient(create_app(settings=settings, session_store=store, relay=relay))


class TestSystemEndpoints:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "OK", "message": "Chatbot API is running"}

    def test_security_headers_are_set(self, client):
        response = client.get("/api/health")

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "SAMEORIGIN"

    def test_provider_probe_success(self, client, relay):
        relay.replies = ["Hello! How can I help you today?"]

        response = client.get("/api/test-groq")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "Groq API is working!"
        assert body["response"] == "Hello! How can I help you today?..."
        assert relay.calls == [[{"role": "user", "content": "Hello, this is a test message."}]]

    def test_provider_probe_failure(self, store):
        relay = FakeRelay(error=RelayError(kind=RelayErrorKind.AUTHENTICATION, message="Invalid API Key", status_code=401))

        with client_for(store, relay) as client:
            response = client.get("/api/test-groq")

        assert response.status_code == 500
        assert response.json() == {"error": "Groq API test failed", "details": "Invalid API Key", "status": 401}


class TestSessionEndpoints:
    def test_create_then_list(self, client):
        first = client.post("/api/chats").json()
        second = client.post("/api/chats").json()

        listed = client.get("/api/chats").json()

        assert first["message"] == "New chat session created"
        assert [s["sessionId"] for s in listed] == [second["sessionId"], first["sessionId"]]
        assert set(listed[0]) == {"sessionId", "createdAt", "updatedAt"}

    def test_get_session(self, client):
        session_id = client.post("/api/chats").json()["sessionId"]

        response = client.get(f"/api/chats/{session_id}")

        assert response.status_code == 200
        assert response.json()["sessionId"] == session_id
        assert response.json()["messages"] == []

    def test_get_missing_session(self, client):
        response = client.get("/api/chats/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Chat session not found"}

    def test_delete_missing_session(self, client):
        response = client.delete("/api/chats/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Chat session not found"}

    def test_delete_removes_session_from_listing(self, client):
        keep = client.post("/api/chats").json()["sessionId"]
        drop = client.post("/api/chats").json()["sessionId"]

        response = client.delete(f"/api/chats/{drop}")

        assert response.status_code == 200
        assert response.json() == {"message": "Chat session deleted successfully"}
        assert [s["sessionId"] for s in client.get("/api/chats").json()] == [keep]


class TestMessageEndpoint:
    @pytest.mark.parametrize("body", [{"message": ""}, {"message": "   "}, {}])
    def test_empty_message_is_rejected(self, client, relay, store, body):
        session_id = client.post("/api/chats").json()["sessionId"]

        response = client.post(f"/api/chats/{session_id}/message", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}
        assert relay.calls == []
        assert client.get(f"/api/chats/{session_id}").json()["messages"] == []

    def test_successful_post_appends_two_messages(self, client, relay):
        relay.replies = ["Paris."]
        created = client.post("/api/chats").json()["sessionId"]
        before = client.get(f"/api/chats/{created}").json()

        response = client.post(f"/api/chats/{created}/message", json={"message": "Capital of France?"})

        assert response.status_code == 200
        assert response.json() == {
            "sessionId": created,
            "response": "Paris.",
            "message": "Message sent successfully",
        }
        after = client.get(f"/api/chats/{created}").json()
        assert [(m["role"], m["content"]) for m in after["messages"]] == [
            ("user", "Capital of France?"),
            ("assistant", "Paris."),
        ]
        assert after["updatedAt"] > before["updatedAt"]

    def test_post_to_unknown_session_creates_it(self, client):
        response = client.post("/api/chats/fresh/message", json={"message": "hi"})

        assert response.status_code == 200
        assert [s["sessionId"] for s in client.get("/api/chats").json()] == ["fresh"]

    @pytest.mark.parametrize(
        "error, status_code, message",
        [
            (
                RelayError(kind=RelayErrorKind.RATE_LIMITED, message="try again in 30s", retry_after=30),
                429,
                "Rate limit exceeded. Please wait 30s before trying again.",
            ),
            (
                RelayError(kind=RelayErrorKind.RATE_LIMITED, message="slow down"),
                429,
                "Rate limit exceeded. Please wait a moment before trying again.",
            ),
            (RelayError(kind=RelayErrorKind.AUTHENTICATION, message="bad key"), 401, "Invalid Groq API key"),
            (
                RelayError(kind=RelayErrorKind.MODEL_NOT_FOUND, message="no model"),
                404,
                "AI model not found. Please check your API configuration.",
            ),
            (
                RelayError(kind=RelayErrorKind.FAILED, message="boom"),
                500,
                "Failed to process message. Please try again later.",
            ),
        ],
    )
    def test_relay_failures_map_to_status_codes(self, store, error, status_code, message):
        with client_for(store, FakeRelay(error=error)) as client:
            response = client.post("/api/chats/s1/message", json={"message": "hi"})
            stored = client.get("/api/chats/s1").json()

        assert response.status_code == status_code
        assert response.json() == {"error": message}
        assert [m["role"] for m in stored["messages"]] == ["user"]

    def test_missing_api_key(self, store):
        with client_for(store, FakeRelay(configured=False)) as client:
            response = client.post("/api/chats/s1/message", json={"message": "hi"})

        assert response.status_code == 500
        assert response.json() == {"error": "Groq API key not configured"}

    def test_missing_body_is_reported_as_missing_message(self, client, relay):
        response = client.post("/api/chats/s1/message")

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}
        assert relay.calls == []

    def test_oversized_payload_is_rejected(self, client, relay):
        response = client.post("/api/chats/s1/message", json={"message": "x" * 2048})

        assert response.status_code == 413
        assert relay.calls == []

    def test_oversized_chunked_payload_is_rejected(self, client, relay):
        def chunks():
            yield b'{"message": "'
            for _ in range(64):
                yield b"x" * 64
            yield b'"}'

        response = client.post(
            "/api/chats/s1/message",
            content=chunks(),
            headers={"Content-Type": "application/json"},
        )

        assert "content-length" not in response.request.headers
        assert response.status_code == 413
        assert response.json() == {"error": "Request entity too large"}
        assert relay.calls == []
        assert client.get("/api/chats").json() == []

    def test_small_chunked_payload_reaches_the_handler(self, client, relay):
        def chunks():
            yield b'{"message": '
            yield b'"hello"}'

        response = client.post(
            "/api/chats/s1/message",
            content=chunks(),
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert relay.calls == [[{"role": "user", "content": "hello"}]]

    def test_timestamps_are_sent_with_utc_offset(self, client):
        client.post("/api/chats/s1/message", json={"message": "hi"})

        listed = client.get("/api/chats").json()
        session = client.get("/api/chats/s1").json()

        assert listed[0]["updatedAt"].endswith("Z")
        assert session["createdAt"].endswith("Z")
        assert all(m["timestamp"].endswith("Z") for m in session["messages"])
