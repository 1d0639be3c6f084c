"""
HTTP client for the habits API plus the in-memory list views read through.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the habits API."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(message)


class NetworkError(Exception):
    """The request never produced a response."""


class Habit(BaseModel):
    id: str
    name: str
    description: str = ""
    completed: bool = False
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class HabitsApi:
    def __init__(
        self,
        base_url: str,
        token_provider: Callable[[], Optional[str]],
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self._client = http_client or httpx.AsyncClient()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, endpoint: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(
                method, f"{self.base_url}{endpoint}", headers=headers, json=json
            )
        except httpx.HTTPError as e:
            logger.error(f"{method} {endpoint} failed: {e}")
            raise NetworkError(f"Network error: {str(e) or type(e).__name__}") from e

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = (
                body.get("message")
                or body.get("error")
                or f"HTTP {response.status_code}: {response.reason_phrase}"
            )
            raise ApiError(response.status_code, message)

        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Network error: invalid JSON from {endpoint}") from e

    async def list(self) -> List[Habit]:
        body = await self._request("GET", "/api/habits")
        return [Habit(**habit) for habit in body["data"]]

    async def create(self, name: str, description: Optional[str] = None) -> Habit:
        payload: Dict[str, Any] = {"name": name}
        if description is not None:
            payload["description"] = description
        body = await self._request("POST", "/api/habits", json=payload)
        return Habit(**body["data"])

    async def toggle(self, habit_id: str) -> Habit:
        body = await self._request("PATCH", f"/api/habits/{habit_id}/toggle")
        return Habit(**body["data"])

    async def delete(self, habit_id: str) -> None:
        await self._request("DELETE", f"/api/habits/{habit_id}")

    async def health(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/health")


class HabitCollection:
    """Read-through cache of the user's habits, refreshed on demand."""

    def __init__(self, api: HabitsApi):
        self.api = api
        self.items: List[Habit] = []

    async def refresh(self) -> List[Habit]:
        self.items = await self.api.list()
        return self.items

    async def add(self, name: str, description: Optional[str] = None) -> Habit:
        habit = await self.api.create(name, description)
        self.items = [habit] + self.items
        return habit

    async def toggle(self, habit_id: str) -> Habit:
        updated = await self.api.toggle(habit_id)
        self.items = [updated if habit.id == habit_id else habit for habit in self.items]
        return updated

    async def remove(self, habit_id: str) -> None:
        await self.api.delete(habit_id)
        self.items = [habit for habit in self.items if habit.id != habit_id]
