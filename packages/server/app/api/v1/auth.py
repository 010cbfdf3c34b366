"""
Authentication endpoints.

- Email/Password registration & login
- JWT session management (logout, current identity)

Registration is the boundary that guarantees a profile exists before any
sharing or permission call sees the user.
"""

from __future__ import annotations

import uuid

import jwt
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    AuthenticatedUser,
    create_jwt,
    decode_jwt,
    generate_csrf_token,
    get_authenticated_user,
    hash_password,
    revoke_jwt,
    verify_password,
)
from app.core.config import get_settings
from app.core.store import RecordStore, find_one, get_store
from app.services.profiles import ensure_profile_exists, get_profile_by_email
from creator_hub_shared.schemas.users import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
)

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()


def _set_session_cookies(response: Response, token: str, csrf: str) -> None:
    """Set the session JWT and CSRF cookies on a response."""
    max_age = settings.jwt_expire_minutes * 60
    secure = not settings.debug
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
        max_age=max_age,
    )
    response.set_cookie(
        key=CSRF_COOKIE,
        value=csrf,
        httponly=False,  # JS must read this
        secure=secure,
        samesite="lax",
        path="/",
        max_age=max_age,
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    store: RecordStore = Depends(get_store),
):
    """Register with email/password and start a session."""
    if await get_profile_by_email(store, body.email):
        raise HTTPException(status_code=409, detail="Email already registered")

    profile = await ensure_profile_exists(
        store,
        uuid.uuid4(),
        body.email,
        body.role,
        telegram=body.telegram,
        password_hash=hash_password(body.password),
    )

    token, _jti = create_jwt(profile.id, profile.email)
    _set_session_cookies(response, token, generate_csrf_token())

    log.info("user.registered", user_id=str(profile.id))
    return AuthResponse(
        user_id=str(profile.id),
        email=profile.email,
        message="Registration successful",
        access_token=token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    store: RecordStore = Depends(get_store),
):
    """Authenticate with email/password and receive a JWT session."""
    profile = await get_profile_by_email(store, body.email)
    if not profile or not profile.password_hash:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(body.password, profile.password_hash):
        log.warning("auth.login_failure", user_id=str(profile.id), reason="bad_password")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token, _jti = create_jwt(profile.id, profile.email)
    _set_session_cookies(response, token, generate_csrf_token())

    log.info("auth.login_success", user_id=str(profile.id))
    return AuthResponse(
        user_id=str(profile.id),
        email=profile.email,
        message="Login successful",
        access_token=token,
    )


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Invalidate the current session."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            payload = {}  # already invalid, just clear cookies
        jti = payload.get("jti")
        if jti:
            await revoke_jwt(jti, ttl_seconds=settings.jwt_expire_minutes * 60)

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return {"message": "Logged out"}


@router.get("/me", response_model=ProfileResponse)
async def me(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    store: RecordStore = Depends(get_store),
):
    profile = await find_one(store, "profiles", {"id": auth.user_id})
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile
