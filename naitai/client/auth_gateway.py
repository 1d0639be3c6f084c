"""
Supabase Auth calls behind one result/error shape.

Every provider failure leaves this module as an ``AuthError`` whose ``kind``
names what went wrong; the provider's message is kept verbatim on the error
for logging and for failures no kind describes.
"""

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from supabase_auth.errors import (
    AuthRetryableError,
    AuthSessionMissingError,
    AuthWeakPasswordError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CALLBACK_PATH = "/auth/callback"
RESET_PASSWORD_PATH = "/auth/reset-password"


class AuthErrorKind(str, Enum):
    VALIDATION = "validation"
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    USER_EXISTS = "user_exists"
    WEAK_PASSWORD = "weak_password"
    RATE_LIMITED = "rate_limited"
    SESSION_MISSING = "session_missing"
    NETWORK = "network"
    UNKNOWN = "unknown"


# Supabase error codes (AuthApiError.code) that map onto a kind directly
_CODE_KINDS = {
    "invalid_credentials": AuthErrorKind.INVALID_CREDENTIALS,
    "email_not_confirmed": AuthErrorKind.EMAIL_NOT_CONFIRMED,
    "user_already_exists": AuthErrorKind.USER_EXISTS,
    "email_exists": AuthErrorKind.USER_EXISTS,
    "weak_password": AuthErrorKind.WEAK_PASSWORD,
    "over_request_rate_limit": AuthErrorKind.RATE_LIMITED,
    "over_email_send_rate_limit": AuthErrorKind.RATE_LIMITED,
    "session_not_found": AuthErrorKind.SESSION_MISSING,
    "validation_failed": AuthErrorKind.VALIDATION,
}

_KIND_MESSAGES = {
    AuthErrorKind.VALIDATION: "Please fill in all required fields.",
    AuthErrorKind.INVALID_CREDENTIALS: "Invalid email or password.",
    AuthErrorKind.EMAIL_NOT_CONFIRMED: "Please confirm your email address before signing in.",
    AuthErrorKind.USER_EXISTS: "An account with this email already exists.",
    AuthErrorKind.WEAK_PASSWORD: "Password is too weak.",
    AuthErrorKind.RATE_LIMITED: "Too many attempts. Please wait a moment and try again.",
    AuthErrorKind.SESSION_MISSING: "Your session has ended. Please sign in again.",
    AuthErrorKind.NETWORK: "Couldn't reach the authentication service.",
    AuthErrorKind.UNKNOWN: "Something went wrong. Please try again.",
}


class AuthError(Exception):
    """Identity-provider failure tagged with an AuthErrorKind."""

    def __init__(self, kind: AuthErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(message)

    @classmethod
    def from_exception(cls, exc: Exception) -> "AuthError":
        message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        return cls(classify_error(exc), message)


def classify_error(exc: Exception) -> AuthErrorKind:
    if isinstance(exc, (httpx.TransportError, AuthRetryableError)):
        return AuthErrorKind.NETWORK
    if isinstance(exc, AuthSessionMissingError):
        return AuthErrorKind.SESSION_MISSING
    if isinstance(exc, AuthWeakPasswordError):
        return AuthErrorKind.WEAK_PASSWORD
    code = getattr(exc, "code", None)
    if code in _CODE_KINDS:
        return _CODE_KINDS[code]
    if getattr(exc, "status", None) == 429:
        return AuthErrorKind.RATE_LIMITED
    message = str(exc).lower()
    if "invalid login credentials" in message:
        return AuthErrorKind.INVALID_CREDENTIALS
    if "email not confirmed" in message:
        return AuthErrorKind.EMAIL_NOT_CONFIRMED
    if "already registered" in message or "already exists" in message:
        return AuthErrorKind.USER_EXISTS
    return AuthErrorKind.UNKNOWN


def describe_auth_error(error: AuthError) -> str:
    """User-facing text for an auth failure.

    Known kinds get our own wording; only unclassified failures show the
    provider message, since it is the only description available.
    """
    if error.kind is AuthErrorKind.UNKNOWN and error.message:
        return error.message
    return _KIND_MESSAGES[error.kind]


class Credentials(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AuthResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    user: Optional[Any] = None
    session: Optional[Any] = None


def _credentials(email: str, password: str) -> Credentials:
    try:
        return Credentials(email=(email or "").strip(), password=password or "")
    except ValidationError:
        raise AuthError(AuthErrorKind.VALIDATION, "Email and password are required")


class AuthGateway:
    """Thin async wrapper around ``AsyncClient.auth``."""

    def __init__(
        self,
        auth: Any,
        site_url: str = "http://localhost:5173",
        open_url: Optional[Callable[[str], Any]] = None,
    ):
        self.auth = auth
        self.site_url = site_url.rstrip("/")
        self.open_url = open_url

    async def _run(self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except AuthError:
            raise
        except Exception as e:
            error = AuthError.from_exception(e)
            logger.warning(f"Auth {operation} failed ({error.kind.value}): {error.message}")
            raise error from e

    async def sign_up(self, email: str, password: str) -> AuthResult:
        creds = _credentials(email, password)
        response = await self._run("sign_up", self.auth.sign_up({
            "email": creds.email,
            "password": creds.password,
        }))
        return AuthResult(user=response.user, session=response.session)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        creds = _credentials(email, password)
        response = await self._run("sign_in", self.auth.sign_in_with_password({
            "email": creds.email,
            "password": creds.password,
        }))
        return AuthResult(user=response.user, session=response.session)

    async def sign_in_with_oauth(self, provider: str) -> str:
        """Start the provider's redirect flow and return the URL the user is sent to."""
        response = await self._run(f"sign_in_with_oauth[{provider}]", self.auth.sign_in_with_oauth({
            "provider": provider,
            "options": {"redirect_to": f"{self.site_url}{CALLBACK_PATH}"},
        }))
        if self.open_url is not None:
            self.open_url(response.url)
        return response.url

    async def sign_in_with_google(self) -> str:
        return await self.sign_in_with_oauth("google")

    async def sign_in_with_facebook(self) -> str:
        return await self.sign_in_with_oauth("facebook")

    async def sign_out(self) -> None:
        await self._run("sign_out", self.auth.sign_out())

    async def get_session(self) -> Optional[Any]:
        return await self._run("get_session", self.auth.get_session())

    async def get_user(self) -> Optional[Any]:
        response = await self._run("get_user", self.auth.get_user())
        return response.user if response else None

    async def exchange_code_for_session(self, auth_code: str) -> AuthResult:
        response = await self._run("exchange_code_for_session", self.auth.exchange_code_for_session({
            "auth_code": auth_code,
        }))
        return AuthResult(user=response.user, session=response.session)

    async def resend_verification_email(self, email: str) -> None:
        await self._run("resend_verification_email", self.auth.resend({
            "type": "signup",
            "email": email,
        }))

    async def reset_password(self, email: str) -> None:
        await self._run("reset_password", self.auth.reset_password_for_email(
            email, {"redirect_to": f"{self.site_url}{RESET_PASSWORD_PATH}"}
        ))

    async def update_password(self, password: str) -> None:
        await self._run("update_password", self.auth.update_user({"password": password}))

    async def update_profile(self, email: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> None:
        attributes: Dict[str, Any] = {}
        if email is not None:
            attributes["email"] = email
        if data is not None:
            attributes["data"] = data
        await self._run("update_profile", self.auth.update_user(attributes))

    def on_auth_state_change(self, callback: Callable[[str, Optional[Any]], None]) -> Any:
        """Subscribe to provider-pushed auth events; the result has ``unsubscribe()``."""
        return self.auth.on_auth_state_change(callback)
