"""Account and session routes.

Routes:
  POST /auth/sign-up   -> Create an account
  POST /auth/sign-in   -> Verify credentials, return a bearer token
  POST /auth/sign-out  -> End the session for the bearer token
  GET  /auth/session   -> The signed-in user for the bearer token
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from social_analytics.auth import (
    AuthError,
    EmailTakenError,
    get_current_session,
    sign_in,
    sign_out,
    sign_up,
)
from social_analytics.database import get_session
from social_analytics.models import User

logger = logging.getLogger(__name__)

router = APIRouter()

_bearer = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str | None:
    return credentials.credentials if credentials is not None else None


def optional_user(
    token: str | None = Depends(bearer_token),
    db: Session = Depends(get_session),
) -> User | None:
    """The signed-in user, or None for anonymous requests."""
    auth_session = get_current_session(db, token)
    return auth_session.user if auth_session is not None else None


def require_user(user: User | None = Depends(optional_user)) -> User:
    if user is None:
        raise HTTPException(status_code=401, detail="Sign in required.")
    return user


async def _credentials(request: Request) -> tuple[str, str]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON request body.")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object.")
    email = body.get("email")
    password = body.get("password")
    if not isinstance(email, str) or not isinstance(password, str):
        raise HTTPException(status_code=400, detail="'email' and 'password' are required.")
    return email, password


def _user_json(user: User) -> dict[str, Any]:
    return {"id": user.id, "email": user.email}


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/auth/sign-up", status_code=201)
async def auth_sign_up(request: Request, db: Session = Depends(get_session)) -> dict[str, Any]:
    """Create an account. 409 if the email is taken, 400 for invalid input."""
    email, password = await _credentials(request)
    try:
        user = sign_up(db, email, password)
    except EmailTakenError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except AuthError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"user": _user_json(user)}


@router.post("/auth/sign-in")
async def auth_sign_in(request: Request, db: Session = Depends(get_session)) -> dict[str, Any]:
    email, password = await _credentials(request)
    try:
        signed_in = sign_in(db, email, password)
    except AuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    return {
        "token": signed_in.token,
        "token_type": "bearer",
        "expires_at": signed_in.expires_at.isoformat(),
        "user": _user_json(signed_in.user),
    }


@router.post("/auth/sign-out")
async def auth_sign_out(
    token: str | None = Depends(bearer_token),
    db: Session = Depends(get_session),
) -> dict[str, bool]:
    return {"signed_out": sign_out(db, token)}


@router.get("/auth/session")
async def auth_session_status(
    token: str | None = Depends(bearer_token),
    db: Session = Depends(get_session),
) -> dict[str, Any]:
    """Current session, or 401 when the token is missing, unknown or expired."""
    auth_session = get_current_session(db, token)
    if auth_session is None:
        raise HTTPException(status_code=401, detail="No active session.")
    return {
        "user": _user_json(auth_session.user),
        "expires_at": auth_session.expires_at.isoformat(),
    }
