import httpx
import pytest
from sqlalchemy.exc import DBAPIError

from rls_api.api.main import app
from rls_api.core.deps import get_current_user
from rls_api.core.security import create_access_token, create_refresh_token
from rls_api.db.session import get_async_session
from tests.fakes import FakeResult, FakeSession, make_todo, make_user


@pytest.fixture
def session_override():
    def install(session: FakeSession, user=None) -> FakeSession:
        app.dependency_overrides[get_async_session] = lambda: session
        if user is not None:
            app.dependency_overrides[get_current_user] = lambda: user
        return session

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def test_health_echoes_correlation_id(client):
    r = await client.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})

    assert r.status_code == 200
    assert r.json()["message"] == "Healthy"
    assert r.headers["X-Correlation-ID"] == "abc-123"


async def test_todos_require_a_bearer_token(client):
    r = await client.get("/api/v1/todos")

    assert r.status_code == 401
    body = r.json()
    assert body["error"]["type"] == "http_error"
    assert body["path"] == "/api/v1/todos"
    assert body["correlation_id"] == r.headers["X-Correlation-ID"]


async def test_invalid_token_is_rejected(client, session_override):
    session_override(FakeSession())

    r = await client.get("/api/v1/todos", headers={"Authorization": "Bearer not-a-jwt"})

    assert r.status_code == 401
    assert r.json()["error"]["message"] == "Invalid token"


async def test_refresh_token_is_not_an_access_token(client, session_override):
    session_override(FakeSession())
    token = create_refresh_token(1)

    r = await client.get("/api/v1/todos", headers={"Authorization": f"Bearer {token}"})

    assert r.status_code == 401


async def test_list_runs_in_scoped_transaction(client, session_override):
    session = session_override(
        FakeSession(results=[FakeResult([make_todo(1, 1), make_todo(3, 1, title="Ship it")])]),
        user=make_user(1),
    )

    r = await client.get("/api/v1/todos")

    assert r.status_code == 200
    assert [t["id"] for t in r.json()] == [1, 3]
    assert all(t["user_id"] == 1 for t in r.json())
    assert session.events == ["begin", "commit"]
    bind_sql, bind_params = session.statements[0]
    assert "set_config" in bind_sql and bind_params["user_id"] == "1"


async def test_token_identity_is_the_bound_identity(client, session_override):
    # user lookup, then the scoped transaction reads the binding back
    session = session_override(FakeSession(results=[FakeResult([make_user(7)])]))
    token = create_access_token(7)

    r = await client.get("/api/v1/health/identity", headers={"Authorization": f"Bearer {token}"})

    assert r.status_code == 200
    assert r.json() == {"user_id": 7, "bound_user_id": 7}
    assert session.events == ["begin", "commit", "begin", "commit"]


async def test_inactive_user_is_forbidden(client, session_override):
    session_override(FakeSession(results=[FakeResult([make_user(7, is_active=False)])]))
    token = create_access_token(7)

    r = await client.get("/api/v1/todos", headers={"Authorization": f"Bearer {token}"})

    assert r.status_code == 403


async def test_policy_rejection_is_reported_as_generic_failure(client, session_override):
    rejection = DBAPIError(
        "INSERT INTO todos", {}, Exception('new row violates row-level security policy for table "todos"')
    )
    session = session_override(FakeSession(results=[rejection]), user=make_user(1))

    r = await client.post("/api/v1/todos", json={"title": "Not mine", "user_id": 2})

    assert r.status_code == 500
    body = r.json()
    assert body["error"] == {"type": "operation_failed", "message": "Operation failed", "details": None}
    assert "row-level" not in r.text
    assert session.events == ["begin", "rollback"]


async def test_create_returns_engine_assigned_id(client, session_override):
    session_override(FakeSession(results=[FakeResult([make_todo(11, 1, title="New")])]), user=make_user(1))

    r = await client.post("/api/v1/todos", json={"title": "New"})

    assert r.status_code == 201
    assert r.json()["id"] == 11
    assert r.json()["user_id"] == 1


async def test_invisible_todo_is_not_found(client, session_override):
    session = session_override(FakeSession(results=[FakeResult([])]), user=make_user(1))

    r = await client.get("/api/v1/todos/99")

    assert r.status_code == 404
    assert r.json()["error"]["message"] == "Todo not found"
    assert session.events == ["begin", "commit"]


async def test_delete_returns_no_content(client, session_override):
    session_override(FakeSession(results=[FakeResult([4])]), user=make_user(1))

    r = await client.delete("/api/v1/todos/4")

    assert r.status_code == 204
    assert r.content == b""


async def test_empty_title_fails_validation(client, session_override):
    session = session_override(FakeSession(), user=make_user(1))

    r = await client.post("/api/v1/todos", json={"title": ""})

    assert r.status_code == 422
    assert r.json()["error"]["type"] == "validation_error"
    assert session.events == []


async def test_patch_rejects_null_title(client, session_override):
    session_override(FakeSession(), user=make_user(1))

    r = await client.patch("/api/v1/todos/1", json={"title": None})

    assert r.status_code == 422


async def test_me_returns_current_user(client, session_override):
    session_override(FakeSession(results=[FakeResult([make_user(3, email="carol@example.com")])]))
    token = create_access_token(3)

    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert r.status_code == 200
    assert r.json()["email"] == "carol@example.com"


@pytest.mark.parametrize("todo_id", [0, 2**63])
async def test_todo_id_outside_bigint_range_fails_validation(client, session_override, todo_id):
    session = session_override(FakeSession(), user=make_user(1))

    r = await client.get(f"/api/v1/todos/{todo_id}")

    assert r.status_code == 422
    assert r.json()["error"]["type"] == "validation_error"
    assert session.events == []


async def test_owner_outside_bigint_range_fails_validation(client, session_override):
    session = session_override(FakeSession(), user=make_user(1))

    r = await client.post("/api/v1/todos", json={"title": "x", "user_id": 2**63})

    assert r.status_code == 422
    assert session.events == []


async def test_oversized_token_subject_is_unauthorized(client, session_override):
    session = session_override(FakeSession())
    token = create_access_token(2**63)

    r = await client.get("/api/v1/todos", headers={"Authorization": f"Bearer {token}"})

    assert r.status_code == 401
    assert session.statements == []
