import pytest
from fastapi.testclient import TestClient

import todo_store
from app import create_app


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


def test_index(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "Todo MCP server"


def test_add_and_list(client):
    response = client.post("/api/todos", json={"title": "  Buy milk "})
    assert response.status_code == 201
    body = response.json()
    assert body["todo"] == {"id": "todo-1", "title": "Buy milk", "completed": False}
    assert body["todos"] == [body["todo"]]

    assert client.get("/api/todos").json() == {"todos": [body["todo"]]}


@pytest.mark.parametrize("payload", [{}, {"title": ""}, {"title": "   "}])
def test_add_rejects_blank_title(client, payload):
    response = client.post("/api/todos", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": "Missing or empty title"}


def test_add_without_body(client):
    response = client.post("/api/todos")
    assert response.status_code == 400
    assert response.json() == {"error": "Missing or empty title"}

    missing_index = client.post("/api/todos/complete-by-index")
    assert missing_index.json() == {"error": "Invalid index"}


def test_invalid_json_body(client):
    response = client.post(
        "/api/todos",
        content="{oops",
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_complete_by_index(client):
    client.post("/api/todos", json={"title": "Buy milk"})

    response = client.post("/api/todos/complete-by-index", json={"index": 1})
    assert response.status_code == 200
    assert response.json()["todo"]["completed"] is True
    assert response.json()["index"] == 1

    for index in (0, 2):
        bad = client.post("/api/todos/complete-by-index", json={"index": index})
        assert bad.status_code == 400
        assert bad.json() == {"error": "Invalid index"}


def test_complete_by_title(client):
    client.post("/api/todos", json={"title": "Walk dog"})

    missing = client.post("/api/todos/complete-by-title", json={"title": "cat"})
    assert missing.status_code == 400

    response = client.post("/api/todos/complete-by-title", json={"title": "DOG"})
    assert response.status_code == 200
    assert response.json()["todo"]["id"] == "todo-1"


def test_complete_and_delete_by_id(client):
    client.post("/api/todos", json={"title": "Buy milk"})
    client.post("/api/todos", json={"title": "Walk dog"})

    done = client.put("/api/todos/todo-1")
    assert done.status_code == 200
    assert done.json()["todo"]["completed"] is True

    assert client.put("/api/todos/todo-9").status_code == 404

    deleted = client.delete("/api/todos/todo-2")
    assert deleted.status_code == 200
    assert deleted.json()["todo"]["title"] == "Walk dog"
    assert [t["id"] for t in deleted.json()["todos"]] == ["todo-1"]

    missing = client.delete("/api/todos/todo-2")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Todo todo-2 not found"}


def test_delete_completed(client):
    client.post("/api/todos", json={"title": "Buy milk"})
    client.post("/api/todos", json={"title": "Walk dog"})
    client.put("/api/todos/todo-2")

    response = client.delete("/api/todos/completed")
    assert response.status_code == 200
    assert [t["id"] for t in response.json()["deleted"]] == ["todo-2"]
    assert [t["id"] for t in response.json()["todos"]] == ["todo-1"]


def test_persistence_failure_is_500(client, store, monkeypatch):
    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(todo_store.os, "replace", boom)
    response = client.post("/api/todos", json={"title": "Buy milk"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to persist todos"}
    assert store.list() == []
