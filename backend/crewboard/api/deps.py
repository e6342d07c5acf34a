"""Reusable FastAPI dependencies for auth, sessions and the AI client.

Routers stay thin: they resolve the caller here, then hand off to services
that read fresh membership state and enforce the policy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends

from crewboard.core.auth import AuthContext, get_auth_context
from crewboard.db.session import get_session
from crewboard.services.ai_matching import get_ai_client

if TYPE_CHECKING:
    from crewboard.models.users import User

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)
AI_CLIENT_DEP = Depends(get_ai_client)


def require_user(auth: AuthContext = AUTH_DEP) -> User:
    """Return the authenticated user acting on this request."""
    return auth.user


USER_DEP = Depends(require_user)
