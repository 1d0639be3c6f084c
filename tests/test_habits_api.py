import json

import httpx
import pytest

from naitai.client.habits_api import ApiError, HabitCollection, HabitsApi, NetworkError

HABIT = {
    "id": "1",
    "name": "Daily Exercise",
    "description": "Go for a 30-minute walk",
    "completed": False,
    "user_id": "test-user-id",
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-01T00:00:00Z",
}


def make_api(handler, token="access-1"):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HabitsApi("http://api.test/", lambda: token, http_client=http_client)


@pytest.mark.asyncio
async def test_list_sends_bearer_token():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"data": [HABIT]})

    api = make_api(handler)
    habits = await api.list()

    assert seen == {"auth": "Bearer access-1", "url": "http://api.test/api/habits"}
    assert habits[0].name == "Daily Exercise"
    await api.aclose()


@pytest.mark.asyncio
async def test_no_token_no_header():
    def handler(request):
        assert "Authorization" not in request.headers
        return httpx.Response(401, json={"error": "Authentication required", "message": "Please provide a valid authorization token"})

    api = make_api(handler, token=None)
    with pytest.raises(ApiError) as exc_info:
        await api.list()

    assert exc_info.value.status == 401
    assert exc_info.value.message == "Please provide a valid authorization token"


@pytest.mark.asyncio
async def test_create_posts_name_and_description():
    def handler(request):
        assert request.method == "POST"
        assert json.loads(request.content) == {"name": "Run", "description": "5k"}
        return httpx.Response(201, json={"data": {**HABIT, "id": "9", "name": "Run", "description": "5k"}})

    habit = await make_api(handler).create("Run", "5k")
    assert habit.id == "9"


@pytest.mark.asyncio
async def test_error_body_falls_back_to_error_field():
    api = make_api(lambda request: httpx.Response(400, json={"error": "Habit name is required"}))

    with pytest.raises(ApiError) as exc_info:
        await api.create("")

    assert exc_info.value.status == 400
    assert exc_info.value.message == "Habit name is required"


@pytest.mark.asyncio
async def test_error_without_json_body():
    api = make_api(lambda request: httpx.Response(502, text="Bad Gateway"))

    with pytest.raises(ApiError) as exc_info:
        await api.health()

    assert exc_info.value.message == "HTTP 502: Bad Gateway"


@pytest.mark.asyncio
async def test_transport_failure_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError) as exc_info:
        await make_api(handler).list()

    assert str(exc_info.value) == "Network error: connection refused"


@pytest.mark.asyncio
async def test_collection_replaces_toggled_habit_by_id():
    other = {**HABIT, "id": "2", "name": "Read"}

    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json={"data": [HABIT, other]})
        if request.method == "PATCH":
            assert request.url.path == "/api/habits/1/toggle"
            return httpx.Response(200, json={"data": {**HABIT, "completed": True}})
        if request.method == "DELETE":
            return httpx.Response(200, json={"data": {"id": "2", "success": True}})
        return httpx.Response(201, json={"data": {**HABIT, "id": "3", "name": "New"}})

    collection = HabitCollection(make_api(handler))
    await collection.refresh()
    await collection.toggle("1")

    assert [h.completed for h in collection.items] == [True, False]
    assert collection.items[1].name == "Read"

    await collection.add("New")
    await collection.remove("2")
    assert [h.id for h in collection.items] == ["3", "1"]
