from __future__ import annotations

from flask import g, jsonify


def test_request_trace_header(app):
    @app.get("/trace-check")
    def trace_check():
        return jsonify({"trace": getattr(g, "correlation_id", None)})

    client = app.test_client()
    response = client.get("/trace-check")
    payload = response.get_json()
    trace = payload["trace"]

    assert isinstance(trace, str)
    assert trace.startswith("req_")
    assert response.headers["X-Request-Id"] == trace


def test_incoming_correlation_id_is_propagated(client):
    response = client.get("/api/chat/health", headers={"X-Correlation-Id": "abc-123"})

    assert response.headers["X-Correlation-Id"] == "abc-123"
