"""User authentication for Clerk session tokens and the local shared token."""

from __future__ import annotations

from dataclasses import dataclass
from hmac import compare_digest
from typing import TYPE_CHECKING

import httpx
from clerk_backend_api import Clerk
from clerk_backend_api.security.types import AuthenticateRequestOptions, AuthStatus, RequestState
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from crewboard.core.auth_mode import AuthMode
from crewboard.core.config import settings
from crewboard.core.logging import get_logger
from crewboard.db import crud
from crewboard.db.session import get_session
from crewboard.models.users import User

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)
SESSION_DEP = Depends(get_session)
LOCAL_AUTH_USER_ID = "local-auth-user"
LOCAL_AUTH_EMAIL = "admin@home.local"
LOCAL_AUTH_NAME = "Local User"


class ClerkTokenPayload(BaseModel):
    """JWT claims payload shape required from Clerk tokens."""

    sub: str


@dataclass
class AuthContext:
    """Authenticated user resolved from the inbound bearer token."""

    user: User


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", maxsplit=1)[1].strip()
    return token or None


def _non_empty_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _extract_claim_email(claims: dict[str, object]) -> str | None:
    for key in ("email", "email_address", "primary_email_address"):
        email = _non_empty_str(claims.get(key))
        if email:
            return email.lower()
    return None


def _extract_claim_name(claims: dict[str, object]) -> str | None:
    for key in ("name", "full_name"):
        text = _non_empty_str(claims.get(key))
        if text:
            return text
    first = _non_empty_str(claims.get("given_name")) or _non_empty_str(claims.get("first_name"))
    last = _non_empty_str(claims.get("family_name")) or _non_empty_str(claims.get("last_name"))
    parts = [part for part in (first, last) if part]
    return " ".join(parts) if parts else None


def _extract_claim_email_verified(claims: dict[str, object]) -> bool:
    value = claims.get("email_verified")
    return value is True or (isinstance(value, str) and value.lower() == "true")


def _make_authenticate_request_options() -> AuthenticateRequestOptions:
    return AuthenticateRequestOptions(
        secret_key=settings.clerk_secret_key.strip(),
        clock_skew_in_ms=int(settings.clerk_leeway * 1000),
        accepts_token=["session_token"],
    )


async def _authenticate_clerk_request(request: Request) -> RequestState:
    # The SDK expects an httpx.Request; rebuild one from the ASGI request.
    httpx_request = httpx.Request(
        request.method,
        str(request.url),
        headers=dict(request.headers),
    )
    options = _make_authenticate_request_options()
    sdk = Clerk(bearer_auth=options.secret_key or "")
    return await run_in_threadpool(sdk.authenticate_request, httpx_request, options)


async def _get_or_sync_user(
    session: AsyncSession,
    *,
    external_id: str,
    claims: dict[str, object],
) -> User:
    email = _extract_claim_email(claims)
    name = _extract_claim_name(claims)
    email_verified = _extract_claim_email_verified(claims)
    user, created = await crud.get_or_create(
        session,
        User,
        external_id=external_id,
        defaults={"email": email, "name": name, "email_verified": email_verified},
    )
    if created:
        logger.info("auth.user.created", extra={"user_id": str(user.id)})
        return user

    changes: dict[str, object] = {}
    if email and user.email != email:
        changes["email"] = email
    if name and user.name != name:
        changes["name"] = name
    if email_verified != user.email_verified:
        changes["email_verified"] = email_verified
    if changes:
        user = await crud.update(session, user, **changes)
        logger.info(
            "auth.user.sync",
            extra={"user_id": str(user.id), "fields": sorted(changes)},
        )
    return user


async def _get_or_create_local_user(session: AsyncSession) -> User:
    user, _created = await crud.get_or_create(
        session,
        User,
        external_id=LOCAL_AUTH_USER_ID,
        defaults={
            "email": LOCAL_AUTH_EMAIL,
            "name": LOCAL_AUTH_NAME,
            "email_verified": True,
        },
    )
    return user


async def _resolve_local_auth_context(request: Request, session: AsyncSession) -> AuthContext:
    token = _extract_bearer_token(request.headers.get("Authorization"))
    expected = settings.local_auth_token.strip()
    if token is None or not expected or not compare_digest(token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return AuthContext(user=await _get_or_create_local_user(session))


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext:
    """Resolve the authenticated user for the configured auth mode."""
    if settings.auth_mode == AuthMode.LOCAL:
        return await _resolve_local_auth_context(request, session)

    request_state = await _authenticate_clerk_request(request)
    if request_state.status != AuthStatus.SIGNED_IN or not isinstance(request_state.payload, dict):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    claims: dict[str, object] = {str(k): v for k, v in request_state.payload.items()}
    try:
        external_id = ClerkTokenPayload.model_validate(claims).sub
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc
    if not external_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    user = await _get_or_sync_user(session, external_id=external_id, claims=claims)
    return AuthContext(user=user)
