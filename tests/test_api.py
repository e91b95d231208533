"""
Tests for the HTTP layer, using FastAPI's TestClient.
"""

import json

import pytest
from fastapi.testclient import TestClient

from main import app, normalize_expression


@pytest.fixture
def client():
    return TestClient(app)


def read_events(response):
    """Decodes a text/event-stream body into its JSON payloads."""
    events = []
    for chunk in response.text.split("\n\n"):
        if chunk.startswith("data: "):
            events.append(json.loads(chunk[len("data: "):]))
    return events


# ============================================================================
# HEALTH
# ============================================================================

class TestHealth:
    """Uptime endpoints."""

    def test_ping(self, client):
        response = client.get("/ping")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_uptime(self, client):
        body = client.get("/uptime").json()
        assert body["status"] == "alive"
        assert body["seconds"] >= 0


# ============================================================================
# CALCULATOR ENDPOINTS
# ============================================================================

class TestParseAndEvaluate:
    """/parse and /evaluate."""

    def test_parse(self, client):
        body = client.post("/parse", json={"expression": "2x"}).json()
        assert body == {"canonical": "multiply([2,0],x)", "tex": "2x"}

    def test_symbols_are_normalized(self, client):
        body = client.post("/parse", json={"expression": "2π"}).json()
        assert body["canonical"] == "multiply([2,0],[pi,0])"

    def test_normalize_expression(self):
        assert normalize_expression("√(4)×3−1") == "sqrt(4)*3-1"

    def test_parse_error(self, client):
        response = client.post("/parse", json={"expression": ""})
        assert response.status_code == 400
        assert response.json()["detail"] == {"type": "SyntaxError", "message": "Enter something..."}

    def test_evaluate(self, client):
        body = client.post("/evaluate", json={"expression": "2+3*4"}).json()
        assert body == {"result": "[14,0]", "tex": "14", "is_number": True}

    def test_evaluate_with_value(self, client):
        body = client.post("/evaluate", json={"expression": "x^2", "variable": "x", "value": [3, 0]}).json()
        assert body["result"] == "[9,0]"

    def test_partial_evaluation(self, client):
        body = client.post("/evaluate", json={"expression": "x+2*3"}).json()
        assert body == {"result": "add(x,[6,0])", "tex": "x+6", "is_number": False}

    def test_infinity_is_a_string(self, client):
        body = client.post("/evaluate", json={"expression": "1/0"}).json()
        assert body["result"] == "[Infinity,0]"
        assert body["tex"] == "\\infty "

    def test_real_mode(self, client):
        response = client.post("/evaluate", json={"expression": "sqrt(-4)", "complex_mode": False})
        assert response.status_code == 400
        assert response.json()["detail"]["type"] == "NonrealError"

    def test_variable_without_value(self, client):
        response = client.post("/evaluate", json={"expression": "x+1", "variable": "x"})
        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "No value provided for x."

    def test_value_must_be_a_pair(self, client):
        response = client.post("/evaluate", json={"expression": "x", "variable": "x", "value": [1, 2, 3]})
        assert response.status_code == 422


class TestSymbolic:
    """/differentiate, /simplify and /roots."""

    def test_differentiate(self, client):
        body = client.post("/differentiate", json={"expression": "x^2"}).json()
        assert body == {"derivative": "multiply([2,0],x)", "tex": "2x"}

    def test_not_differentiable(self, client):
        response = client.post("/differentiate", json={"expression": "arccsc(x)"})
        assert response.status_code == 400
        assert response.json()["detail"] == {
            "type": "FunctionError",
            "message": "Function: arccsc is not differentiable.",
        }

    def test_simplify_factored(self, client):
        body = client.post("/simplify", json={"expression": "x^2+3x", "factor": True}).json()
        assert body["simplified"] == "multiply(x,add(x,[3,0]))"

    def test_roots(self, client):
        body = client.post("/roots", json={"expression": "x^2-2", "start": 1}).json()
        assert float(body["root"]) == pytest.approx(1.41421356, abs=1e-8)

    def test_no_root(self, client):
        body = client.post("/roots", json={"expression": "x^2+1", "start": 0}).json()
        assert body["root"] == "NaN"


# ============================================================================
# STREAMING AND GENERATION
# ============================================================================

class TestSolveStream:
    """Server-sent events from /solve_stream."""

    def test_stages(self, client):
        response = client.get("/solve_stream", params={"expression": "x^2"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = read_events(response)
        assert [event["type"] for event in events] == ["parse", "evaluate", "derivative", "complete"]
        assert events[2]["result"] == "multiply([2,0],x)"

    def test_parse_failure_stops_the_stream(self, client):
        events = read_events(client.get("/solve_stream", params={"expression": "2$"}))
        assert len(events) == 1
        assert events[0]["stage"] == "parse"
        assert events[0]["kind"] == "SyntaxError"

    def test_stage_failure_continues(self, client):
        events = read_events(client.get("/solve_stream", params={"expression": "arccsc(x)"}))
        assert events[2] == {
            "type": "error",
            "stage": "derivative",
            "kind": "FunctionError",
            "detail": "Function: arccsc is not differentiable.",
        }
        assert events[-1]["type"] == "complete"


class TestGenerate:
    """/generate."""

    def test_generate(self, client):
        body = client.post("/generate", json={"num_terms": 2, "max_depth": 1}).json()
        assert set(body) == {"expression_string", "expression_latex"}
        assert body["expression_string"]
