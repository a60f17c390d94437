"""Bearer token identity resolution and role checks."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from apps.api.app.core.config import Settings, get_settings
from apps.api.app.db.models import User
from apps.api.app.db.session import get_db_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenIdentity:
    email: str
    object_id: str | None
    name: str | None


class TokenValidationError(ValueError):
    pass


def _b64url_decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def decode_unsigned_token(token: str, *, now: float | None = None) -> TokenIdentity:
    """Read the identity claims of a JWT without verifying its signature.

    Only used when unsigned tokens are explicitly accepted (dev and test).
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise TokenValidationError("token must have three segments")
    try:
        claims = json.loads(_b64url_decode(parts[1]))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise TokenValidationError("token payload is not valid base64url JSON") from exc
    if not isinstance(claims, dict):
        raise TokenValidationError("token payload must be a JSON object")

    email = claims.get("email") or claims.get("preferred_username") or claims.get("upn")
    if not email:
        raise TokenValidationError("token has no email claim")
    expires_at = claims.get("exp")
    if expires_at is not None:
        current = time.time() if now is None else now
        if not isinstance(expires_at, (int, float)) or expires_at <= current:
            raise TokenValidationError("token has expired")
    return TokenIdentity(email=str(email), object_id=claims.get("oid"), name=claims.get("name"))


def fetch_graph_identity(token: str, *, settings: Settings) -> TokenIdentity:
    """Resolve the token owner through Microsoft Graph, which validates the token."""
    url = f"{settings.auth_graph_base_url.rstrip('/')}/me"
    try:
        response = httpx.get(
            url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=settings.auth_graph_timeout_seconds,
        )
    except httpx.TimeoutException as exc:
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            detail="timed out contacting identity provider",
        ) from exc
    except httpx.HTTPError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="identity provider is unavailable",
        ) from exc

    if response.status_code in {401, 403}:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token")
    if response.status_code != 200:
        logger.error("Graph profile lookup failed with status %s", response.status_code)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="identity provider is unavailable",
        )

    try:
        profile = response.json()
    except ValueError as exc:
        logger.error("Graph profile response was not valid JSON")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="identity provider is unavailable",
        ) from exc
    if not isinstance(profile, dict):
        logger.error("Graph profile response was not a JSON object")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="identity provider is unavailable",
        )
    email = profile.get("mail") or profile.get("userPrincipalName")
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token")
    return TokenIdentity(email=email, object_id=profile.get("id"), name=profile.get("displayName"))


def extract_token(request: Request, *, settings: Settings) -> str | None:
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.auth_cookie_name) or None


def resolve_identity(token: str, *, settings: Settings) -> TokenIdentity:
    if settings.auth_accept_unsigned_tokens:
        try:
            return decode_unsigned_token(token)
        except TokenValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token"
            ) from exc
    return fetch_graph_identity(token, settings=settings)


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(func.lower(User.email) == email.strip().lower()))


def require_identity(request: Request) -> TokenIdentity:
    settings = get_settings()
    token = extract_token(request, settings=settings)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing token")
    return resolve_identity(token, settings=settings)


def require_current_user(
    identity: TokenIdentity = Depends(require_identity),
    db: Session = Depends(get_db_session),
) -> User:
    user = find_user_by_email(db, identity.email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="user not found")
    return user


def require_roles(*roles: str) -> Callable[..., User]:
    allowed = frozenset(str(getattr(role, "value", role)) for role in roles)

    def dependency(user: User = Depends(require_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="insufficient permissions",
            )
        return user

    return dependency
