"""
Bearer-token authentication for API routes
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from naitai.config.settings import settings
from naitai.core.errors import ApiError
from naitai.database.supabase_client import SupabaseClient, get_supabase
from supabase import Client
from typing import Any, Dict, Optional
import jwt
import logging

logger = logging.getLogger(__name__)

# auto_error is off so a missing header yields our 401 body instead of FastAPI's
security = HTTPBearer(auto_error=False)


def _auth_required() -> ApiError:
    return ApiError(
        401, "Authentication required", message="Please provide a valid authorization token"
    )


def _invalid_token() -> ApiError:
    return ApiError(401, "Invalid token", message="The provided token is invalid or expired")


def _is_token_rejection(exc: Exception) -> bool:
    status = getattr(exc, "status", None)
    if status in (400, 401, 403):
        return True
    error_msg = str(exc)
    return "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower()


def _check_signature(token: str) -> None:
    """Reject forged or expired tokens locally when the project's JWT secret is configured."""
    if not settings.jwt_secret:
        return
    try:
        jwt.decode(token, settings.jwt_secret, algorithms=["HS256"], audience="authenticated")
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected bearer token locally: {e}")
        raise _invalid_token()


def verify_token(token: str, supabase: Client) -> Dict[str, Any]:
    """Resolve a bearer token to the principal it belongs to."""
    _check_signature(token)
    try:
        user_response = supabase.auth.get_user(jwt=token)
    except Exception as e:
        if _is_token_rejection(e):
            raise _invalid_token()
        logger.error(f"Authentication error: {e}")
        raise ApiError(
            500, "Authentication failed", message="An error occurred while verifying your token"
        )
    if not user_response or not user_response.user:
        raise _invalid_token()
    user = user_response.user
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
        "created_at": user.created_at,
    }


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    supabase: Client = Depends(get_supabase),
) -> Dict[str, Any]:
    """Require a valid bearer token and attach the principal to the request"""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise _auth_required()
    token = credentials.credentials
    user_data = verify_token(token, supabase)
    request.state.user = user_data
    request.state.access_token = token
    return user_data


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    supabase: Client = Depends(get_supabase),
) -> Optional[Dict[str, Any]]:
    """Attach the principal when a valid token is present; never fails the request"""
    if credentials is None or not credentials.credentials:
        return None
    try:
        user_data = verify_token(credentials.credentials, supabase)
    except ApiError as e:
        logger.debug(f"Optional auth ignored token: {e.error}")
        return None
    request.state.user = user_data
    request.state.access_token = credentials.credentials
    return user_data


def get_user_supabase(
    request: Request,
    user_data: Dict[str, Any] = Depends(get_current_user),
) -> Client:
    """Supabase client scoped to the caller's token"""
    return SupabaseClient.get_user_client(request.state.access_token)
