import json

import pytest
from fastapi.testclient import TestClient

from dummysource.api import app


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def parse_stream(text):
    return [json.loads(chunk[len("data: "):]) for chunk in text.split("\n\n") if chunk]


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["plugins_available"] >= 1


def test_list_plugins(client):
    response = client.get("/plugins")
    assert response.status_code == 200
    assert "dummy" in [p["name"] for p in response.json()]


def test_list_fields(client):
    response = client.get("/plugins/dummy/fields")
    assert response.status_code == 200
    assert [f["name"] for f in response.json()] == ["dummy.divisible", "dummy.value", "dummy.strvalue"]
    assert response.json()[0]["arg_required"] is True


def test_unknown_plugin(client):
    assert client.get("/plugins/nope/fields").status_code == 404


def test_stream_events(client):
    response = client.post("/plugins/dummy/stream", json={
        "config": {"jitter": 0},
        "params": {"start": 10, "maxEvents": 5},
        "batch_size": 2,
    })
    assert response.status_code == 200

    records = parse_stream(response.text)
    assert [r["payload"] for r in records] == ["11", "12", "13", "14", "15"]
    assert records[0]["rendered"] == '{"sample": "11"}'
    assert all(r["timestamp"] > 0 for r in records)


def test_stream_missing_parameter(client):
    response = client.post("/plugins/dummy/stream", json={"params": {"start": 5}})
    assert response.status_code == 400
    assert "maxEvents" in response.json()["detail"]


def test_stream_invalid_config(client):
    response = client.post("/plugins/dummy/stream", json={
        "config": {"jitter": -2},
        "params": {"start": 1, "maxEvents": 1},
    })
    assert response.status_code == 400


@pytest.mark.parametrize("body,expected", [
    ({"field": "dummy.divisible", "arg": "7", "payload": "42"}, 1),
    ({"field": "dummy.divisible", "arg": "5", "payload": "42"}, 0),
    ({"field": "dummy.value", "payload": "42"}, 42),
    ({"field": "dummy.strvalue", "payload": "42"}, "42"),
    ({"field": 1, "payload": "42"}, 42),
])
def test_extract(client, body, expected):
    response = client.post("/plugins/dummy/extract", json=body)
    assert response.status_code == 200
    assert response.json()["value"] == expected


@pytest.mark.parametrize("body", [
    {"field": 99, "payload": "42"},
    {"field": "dummy.nope", "payload": "42"},
    {"field": "dummy.value", "payload": "x"},
    {"field": "dummy.divisible", "arg": "0", "payload": "42"},
])
def test_extract_errors(client, body):
    response = client.post("/plugins/dummy/extract", json=body)
    assert response.status_code == 400
