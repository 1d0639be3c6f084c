"""
Keeps the session store in step with Supabase Auth.

The one-shot session fetch and provider-pushed auth events both feed a single
queue drained by one worker task, so they are applied in arrival order. A
fetched session that arrives after a push event is dropped; the event is newer.
"""

import asyncio
import logging
from typing import Any, Optional, Tuple

from naitai.client.auth_gateway import AuthGateway
from naitai.client.session_store import SessionStore

logger = logging.getLogger(__name__)

# Events that end any pending email-verification state
VERIFICATION_CLEARING_EVENTS = ("SIGNED_IN", "SIGNED_OUT")

_EVENT = "event"
_INITIAL = "initial"
_INITIAL_FAILED = "initial_failed"


class SessionBootstrap:
    def __init__(self, gateway: AuthGateway, store: SessionStore):
        self.gateway = gateway
        self.store = store
        self._queue: "asyncio.Queue[Tuple[str, Any, Any]]" = asyncio.Queue()
        self._subscription = None
        self._worker: Optional[asyncio.Task] = None
        self._fetch: Optional[asyncio.Task] = None
        self._event_applied = False

    @property
    def running(self) -> bool:
        return self._worker is not None

    async def start(self) -> None:
        if self.running:
            return
        self._event_applied = False
        # Messages left over from a previous run belong to a released subscription
        self._queue = asyncio.Queue()
        self._subscription = self.gateway.on_auth_state_change(self._on_auth_state_change)
        self._worker = asyncio.create_task(self._drain())
        if not self.store.state.initialized:
            self._fetch = asyncio.create_task(self._fetch_initial_session())

    async def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for task in (self._fetch, self._worker):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._fetch = None
        self._worker = None

    async def wait_until_idle(self) -> None:
        """Wait for the initial fetch (if any) and every queued message to be applied."""
        if self._fetch is not None:
            await asyncio.shield(self._fetch)
        await self._queue.join()

    async def __aenter__(self) -> "SessionBootstrap":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def _on_auth_state_change(self, event: str, session: Optional[Any]) -> None:
        logger.info(f"Auth state changed: {event}")
        self._queue.put_nowait((_EVENT, event, session))

    async def _fetch_initial_session(self) -> None:
        try:
            session = await self.gateway.get_session()
        except Exception as e:
            logger.error(f"Error initializing auth: {e}")
            self._queue.put_nowait((_INITIAL_FAILED, None, e))
            return
        self._queue.put_nowait((_INITIAL, None, session))

    async def _drain(self) -> None:
        while True:
            kind, event, payload = await self._queue.get()
            try:
                self._apply(kind, event, payload)
            except Exception:
                logger.exception(f"Failed to apply auth message {kind}")
            finally:
                self._queue.task_done()

    def _apply(self, kind: str, event: Optional[str], payload: Any) -> None:
        # One replacement per message so no snapshot pairs a session with pending verification
        if kind == _EVENT:
            self._event_applied = True
            changes = {
                "session": payload,
                "user": getattr(payload, "user", None),
                "loading": False,
            }
            if event in VERIFICATION_CLEARING_EVENTS:
                changes["email_verification_required"] = False
                changes["pending_verification_email"] = None
            self.store.apply(**changes)
            return

        changes = {"loading": False, "initialized": True}
        if kind == _INITIAL and not self._event_applied:
            changes["session"] = payload
            changes["user"] = getattr(payload, "user", None)
        elif kind == _INITIAL:
            logger.debug("Discarding fetched session; a newer auth event was already applied")
        self.store.apply(**changes)
