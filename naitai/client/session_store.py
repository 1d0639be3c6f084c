"""
Observable auth state for one running client.

State is an immutable ``AuthState`` replaced wholesale on every change; listeners
get the new snapshot after each replacement. Async operations set ``loading``
while the provider call is pending and always clear it again, re-raising the
provider error on failure.
"""

import logging
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict

from naitai.client.auth_gateway import AuthError, AuthGateway

logger = logging.getLogger(__name__)

HOME_PATH = "/habits"
LOGIN_PATH = "/auth/login"

Listener = Callable[["AuthState"], None]


class AuthState(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    user: Optional[Any] = None
    session: Optional[Any] = None
    loading: bool = True
    initialized: bool = False
    email_verification_required: bool = False
    pending_verification_email: Optional[str] = None


class SessionStore:
    def __init__(self, gateway: AuthGateway, initial: Optional[AuthState] = None):
        self.gateway = gateway
        self._state = initial or AuthState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            listener(self._state)

    def apply(self, **changes) -> None:
        """Replace several fields at once; listeners see a single new snapshot."""
        self._set(**changes)

    # Actions

    async def sign_in(self, email: str, password: str) -> None:
        self._set(loading=True)
        try:
            result = await self.gateway.sign_in(email, password)
        except Exception:
            self._set(loading=False)
            raise
        self._set(user=result.user, session=result.session, loading=False)

    async def sign_up(self, email: str, password: str) -> None:
        self._set(loading=True)
        try:
            result = await self.gateway.sign_up(email, password)
        except Exception:
            self._set(loading=False)
            raise

        if result.session is None:
            # Account exists but is unconfirmed until the emailed link is followed
            self._set(
                user=None,
                session=None,
                email_verification_required=True,
                pending_verification_email=email.strip(),
                loading=False,
            )
        else:
            self._set(
                user=result.user,
                session=result.session,
                email_verification_required=False,
                pending_verification_email=None,
                loading=False,
            )

    async def sign_in_with_google(self) -> str:
        return await self._sign_in_with_oauth(self.gateway.sign_in_with_google)

    async def sign_in_with_facebook(self) -> str:
        return await self._sign_in_with_oauth(self.gateway.sign_in_with_facebook)

    async def _sign_in_with_oauth(self, start: Callable[[], Any]) -> str:
        # loading stays set on success: the app is leaving for the provider's page
        self._set(loading=True)
        try:
            return await start()
        except Exception:
            self._set(loading=False)
            raise

    async def sign_out(self) -> None:
        self._set(loading=True)
        try:
            await self.gateway.sign_out()
        except Exception:
            # user and session are kept as they were
            self._set(loading=False)
            raise
        self._set(
            user=None,
            session=None,
            email_verification_required=False,
            pending_verification_email=None,
            loading=False,
        )

    async def complete_oauth_callback(self, auth_code: Optional[str] = None) -> str:
        """Finish an OAuth redirect and return where the app should navigate next."""
        self._set(loading=True)
        try:
            if auth_code:
                session = (await self.gateway.exchange_code_for_session(auth_code)).session
            else:
                session = await self.gateway.get_session()
        except AuthError as e:
            logger.error(f"Auth callback error: {e.message}")
            return LOGIN_PATH
        finally:
            self._set(loading=False)

        if session is None:
            return LOGIN_PATH
        self._set(session=session, user=getattr(session, "user", None))
        return HOME_PATH

    async def resend_verification_email(self, email: str) -> None:
        await self.gateway.resend_verification_email(email)

    async def reset_password(self, email: str) -> None:
        await self.gateway.reset_password(email)

    async def update_password(self, password: str) -> None:
        await self.gateway.update_password(password)

    # Setters

    def set_user(self, user: Optional[Any]) -> None:
        self._set(user=user)

    def set_session(self, session: Optional[Any]) -> None:
        self._set(session=session)

    def set_loading(self, loading: bool) -> None:
        self._set(loading=loading)

    def set_initialized(self, initialized: bool) -> None:
        self._set(initialized=initialized)

    def set_email_verification_required(self, required: bool) -> None:
        self._set(email_verification_required=required)

    def set_pending_verification_email(self, email: Optional[str]) -> None:
        self._set(pending_verification_email=email)
