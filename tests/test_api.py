import pytest
from fastapi.testclient import TestClient

from schema_studio.app.dependencies import (
    get_llm_provider,
    get_schema_assistant,
    get_workspace_service,
)
from schema_studio.app.main import app
from schema_studio.assistant.agent import SchemaAssistant
from schema_studio.llm.interface import AssistantTurn, LLMProvider, ToolCall
from schema_studio.repositories.workspace import InMemoryWorkspaceRepository
from schema_studio.services.exceptions import AssistantUnavailableError
from schema_studio.services.workspace import WorkspaceService

USERS = {"action": "create_table", "tableId": "users", "columns": [{"title": "id", "type": "integer", "pk": True}]}
ORDERS = {
    "action": "create_table",
    "tableId": "orders",
    "columns": [
        {"title": "id", "type": "integer", "pk": True},
        {"title": "user_id", "type": "integer", "fk": "users.id", "required": True},
    ],
}


class OneShotLLM(LLMProvider):
    def __init__(self):
        self.turns = [
            AssistantTurn(tool_calls=[ToolCall(id="c1", name="create_table", arguments='{"tableId": "tags"}')]),
            AssistantTurn(content="Added a tags table."),
        ]

    async def generate_with_tools(self, messages, tools, temperature=0.0):
        return self.turns.pop(0)


@pytest.fixture
def client():
    service = WorkspaceService(repository=InMemoryWorkspaceRepository(max_history_entries=None))
    app.dependency_overrides[get_workspace_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_id(client):
    response = client.post("/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def apply(client, session_id, *operations):
    return client.post(f"/sessions/{session_id}/operations", json={"operations": list(operations)})


def test_session_lifecycle(client, session_id):
    response = client.get(f"/sessions/{session_id}")
    assert response.status_code == 200
    body = response.json()
    assert body["tables"] == {}
    assert body["history"]["canUndo"] is False

    assert client.delete(f"/sessions/{session_id}").status_code == 204
    assert client.get(f"/sessions/{session_id}").status_code == 404
    assert client.delete(f"/sessions/{session_id}").status_code == 404


def test_apply_batch_response_shape(client, session_id):
    response = apply(client, session_id, USERS, {"action": "drop_table", "tableId": "missing"})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is False
    assert list(body["tables"]) == ["users"]
    assert body["operationsApplied"] == [
        {"action": "create_table", "tableId": "users", "detail": "Created table 'users' with 1 columns", "status": "success"},
        {"action": "drop_table", "tableId": "missing", "detail": "Table 'missing' not found", "status": "error"},
    ]


def test_malformed_batch_is_rejected(client, session_id):
    response = apply(client, session_id, {"action": "drop_everything"})

    assert response.status_code == 422
    assert client.get(f"/sessions/{session_id}").json()["tables"] == {}


def test_unknown_session_is_404(client):
    assert apply(client, "nope", USERS).status_code == 404
    assert client.post("/sessions/nope/undo").status_code == 404
    assert client.get("/sessions/nope/sql").status_code == 404


def test_undo_redo_and_history(client, session_id):
    apply(client, session_id, USERS)
    apply(client, session_id, ORDERS)

    history = client.get(f"/sessions/{session_id}/history").json()
    assert history["cursor"] == 2
    assert history["undoLabel"] == "Created table 'orders' with 2 columns"
    assert [e["tableId"] for e in history["entries"]] == ["users", "orders"]

    undone = client.post(f"/sessions/{session_id}/undo").json()
    assert list(undone["tables"]) == ["users"]
    assert undone["history"]["canRedo"] is True

    redone = client.post(f"/sessions/{session_id}/redo").json()
    assert set(redone["tables"]) == {"users", "orders"}

    cleared = client.delete(f"/sessions/{session_id}/history").json()
    assert cleared["history"]["canUndo"] is False
    assert set(cleared["tables"]) == {"users", "orders"}


def test_undo_with_empty_history_is_a_no_op(client, session_id):
    response = client.post(f"/sessions/{session_id}/undo")

    assert response.status_code == 200
    assert response.json()["tables"] == {}


def test_sql_export(client, session_id):
    apply(client, session_id, ORDERS, USERS)

    response = client.get(f"/sessions/{session_id}/sql")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text.index('CREATE TABLE "users"') < response.text.index('CREATE TABLE "orders"')


def test_import_tables_replaces_schema_and_history(client, session_id):
    apply(client, session_id, USERS)

    response = client.put(f"/sessions/{session_id}/tables", json={
        "definitions": {
            "tags": {"properties": {"id": {"type": "number", "format": "integer", "description": "<pk/>"}}},
        },
        "paths": {"/tags": {"get": {}, "post": {}}},
    })

    assert response.status_code == 200
    body = response.json()
    assert list(body["tables"]) == ["tags"]
    assert body["tables"]["tags"]["columns"][0]["pk"] is True
    assert body["history"]["canUndo"] is False


def test_introspection_rejects_non_postgres_urls(client, session_id):
    response = client.post("/schema/postgres", json={"connectionString": "mysql://localhost/db"})
    assert response.status_code == 400

    response = client.post(
        f"/sessions/{session_id}/import/postgres", json={"connectionString": "sqlite:///x.db"}
    )
    assert response.status_code == 400


def test_chat_applies_assistant_operations(client, session_id):
    app.dependency_overrides[get_schema_assistant] = lambda: SchemaAssistant(OneShotLLM())

    response = client.post(f"/sessions/{session_id}/messages", json={"text": "add tags"})

    assert response.status_code == 200
    body = response.json()
    assert body["reply"] == "Added a tags table."
    assert body["ok"] is True
    assert list(body["tables"]) == ["tags"]
    assert body["operationsApplied"][0]["action"] == "create_table"

    session = client.get(f"/sessions/{session_id}").json()
    assert [m["role"] for m in session["messages"]] == ["user", "assistant"]
    assert session["history"]["undoLabel"] == "Created table 'tags' with 0 columns"


def test_chat_without_llm_is_503(client, session_id):
    def unavailable():
        raise AssistantUnavailableError("OPENAI_API_KEY is not configured")

    app.dependency_overrides[get_llm_provider] = unavailable

    response = client.post(f"/sessions/{session_id}/messages", json={"text": "hi"})

    assert response.status_code == 503
