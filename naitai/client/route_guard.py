from enum import Enum
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict

from naitai.client.session_store import LOGIN_PATH, AuthState, SessionStore


class GuardStatus(str, Enum):
    INITIALIZING = "initializing"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class GuardDecision(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: GuardStatus
    # Shown while initializing; None means the neutral loading placeholder
    fallback: Optional[Any] = None
    redirect_to: Optional[str] = None
    state: Optional[Dict[str, Any]] = None
    replace: bool = False

    @property
    def renders_content(self) -> bool:
        return self.status is GuardStatus.AUTHENTICATED


class RouteGuard:
    """Decides whether a protected view renders, waits, or redirects to login."""

    def __init__(self, store: SessionStore, login_path: str = LOGIN_PATH, fallback: Optional[Any] = None):
        self.store = store
        self.login_path = login_path
        self.fallback = fallback

    def evaluate(self, location: str, state: Optional[AuthState] = None) -> GuardDecision:
        state = state or self.store.state
        if not state.initialized:
            return GuardDecision(status=GuardStatus.INITIALIZING, fallback=self.fallback)
        if state.user is None:
            return GuardDecision(
                status=GuardStatus.UNAUTHENTICATED,
                redirect_to=self.login_path,
                state={"from": location},
                replace=True,
            )
        return GuardDecision(status=GuardStatus.AUTHENTICATED)

    def watch(self, location: str, callback: Callable[[GuardDecision], None]) -> Callable[[], None]:
        """Call back with a fresh decision on every store update; returns the unsubscribe function."""
        return self.store.subscribe(lambda state: callback(self.evaluate(location, state)))
