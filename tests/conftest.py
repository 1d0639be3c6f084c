"""
Pytest fixtures and in-memory Supabase stand-ins for naitai tests.
"""
import asyncio
import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from naitai.core.dependencies import get_user_supabase
from naitai.database.supabase_client import get_supabase
from naitai.main import app

VALID_TOKEN = "valid-token"
TEST_USER_ID = "test-user-id"


class FakeAuthApiError(Exception):
    """Shaped like supabase_auth's AuthApiError: message, status and code."""

    def __init__(self, message, status=400, code=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code


# ---------------------------------------------------------------------------
# Server side: sync table API and token verification
# ---------------------------------------------------------------------------

class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.limit_to = None

    def select(self, columns="*"):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.limit_to = count
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self):
        if self.db.error is not None:
            raise self.db.error
        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            row = {
                "id": str(uuid.uuid4()),
                "created_at": "2024-01-02T00:00:00+00:00",
                "updated_at": "2024-01-02T00:00:00+00:00",
                **self.payload,
            }
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])
        matched = [row for row in rows if self._matches(row)]
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(row) for row in matched])
        if self.op == "delete":
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=[dict(row) for row in matched])
        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda row: row.get(column) or "", reverse=desc)
        if self.limit_to is not None:
            matched = matched[:self.limit_to]
        return SimpleNamespace(data=[dict(row) for row in matched])


class FakeDatabase:
    def __init__(self, tables=None):
        self.tables = tables or {}
        self.error = None

    def table(self, name):
        return FakeQuery(self, name)


class FakeServerAuth:
    def __init__(self):
        self.error = None
        self.calls = []

    def get_user(self, jwt=None):
        self.calls.append(jwt)
        if self.error is not None:
            raise self.error
        if jwt != VALID_TOKEN:
            raise FakeAuthApiError("invalid JWT: unable to parse or verify signature", status=403)
        user = SimpleNamespace(
            id=TEST_USER_ID,
            email="test@example.com",
            user_metadata={},
            app_metadata={"provider": "email"},
            created_at="2024-01-01T00:00:00+00:00",
        )
        return SimpleNamespace(user=user)


@pytest.fixture
def habit_rows():
    return [
        {
            "id": "1",
            "name": "Daily Exercise",
            "description": "Go for a 30-minute walk",
            "completed": False,
            "user_id": TEST_USER_ID,
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
        },
        {
            "id": "2",
            "name": "Read",
            "description": "",
            "completed": True,
            "user_id": TEST_USER_ID,
            "created_at": "2024-01-03T00:00:00+00:00",
            "updated_at": "2024-01-03T00:00:00+00:00",
        },
    ]


@pytest.fixture
def fake_db(habit_rows):
    return FakeDatabase({"habits": habit_rows})


@pytest.fixture
def fake_auth():
    return FakeServerAuth()


@pytest.fixture
def client(fake_db, fake_auth):
    app.dependency_overrides[get_supabase] = lambda: SimpleNamespace(auth=fake_auth)
    app.dependency_overrides[get_user_supabase] = lambda: fake_db
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {VALID_TOKEN}"}


# ---------------------------------------------------------------------------
# Client side: async auth API
# ---------------------------------------------------------------------------

class FakeSubscription:
    def __init__(self, owner, callback):
        self.owner = owner
        self.callback = callback

    def unsubscribe(self):
        if self.callback in self.owner.callbacks:
            self.owner.callbacks.remove(self.callback)


class FakeClientAuth:
    """Async stand-in for AsyncClient.auth. Set ``errors[name]`` to make a call fail,
    or ``gates[name]`` to an asyncio.Event to hold a call pending until it is set."""

    def __init__(self):
        self.user = SimpleNamespace(id="1", email="a@b.com")
        self.session = SimpleNamespace(access_token="access-1", refresh_token="refresh-1", user=self.user)
        self.sign_up_session = None
        self.current_session = None
        self.errors = {}
        self.gates = {}
        self.calls = []
        self.callbacks = []

    async def _enter(self, name, *args):
        self.calls.append((name, args))
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        if name in self.errors:
            raise self.errors[name]

    async def sign_up(self, credentials):
        await self._enter("sign_up", credentials)
        return SimpleNamespace(user=self.user, session=self.sign_up_session)

    async def sign_in_with_password(self, credentials):
        await self._enter("sign_in_with_password", credentials)
        return SimpleNamespace(user=self.user, session=self.session)

    async def sign_in_with_oauth(self, credentials):
        await self._enter("sign_in_with_oauth", credentials)
        return SimpleNamespace(
            provider=credentials["provider"],
            url=f"https://example.supabase.co/auth/v1/authorize?provider={credentials['provider']}",
        )

    async def sign_out(self):
        await self._enter("sign_out")

    async def get_session(self):
        await self._enter("get_session")
        return self.current_session

    async def get_user(self, jwt=None):
        await self._enter("get_user")
        return SimpleNamespace(user=self.user)

    async def exchange_code_for_session(self, params):
        await self._enter("exchange_code_for_session", params)
        return SimpleNamespace(user=self.user, session=self.session)

    async def resend(self, credentials):
        await self._enter("resend", credentials)

    async def reset_password_for_email(self, email, options=None):
        await self._enter("reset_password_for_email", email, options)

    async def update_user(self, attributes):
        await self._enter("update_user", attributes)
        return SimpleNamespace(user=self.user)

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)
        return FakeSubscription(self, callback)

    def emit(self, event, session):
        for callback in list(self.callbacks):
            callback(event, session)


@pytest.fixture
def client_auth():
    return FakeClientAuth()


@pytest.fixture
def opened_urls():
    return []


@pytest.fixture
def gateway(client_auth, opened_urls):
    from naitai.client.auth_gateway import AuthGateway
    return AuthGateway(client_auth, site_url="http://localhost:5173", open_url=opened_urls.append)


@pytest.fixture
def store(gateway):
    from naitai.client.session_store import AuthState, SessionStore
    return SessionStore(gateway, AuthState(loading=False, initialized=True))


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Coroutine function that lets queued callbacks and tasks run."""
    return _settle


@pytest.fixture
def auth_api_error():
    return FakeAuthApiError
