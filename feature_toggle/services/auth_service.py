"""Business logic for authentication and authorization."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..clients.entra import SigningKeyError, get_key_set
from ..config import get_settings
from ..constants import RESOURCE_ADMIN_DETAIL, ROLE_ADMIN, ROLE_READ_ONLY
from ..database import get_session
from ..models import User
from ..security.secrets import MissingSecretError, require_secret

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)

DEFAULT_TOKEN_MINUTES = 60


@dataclass(frozen=True)
class TokenIdentity:
    subject: str | None
    email: str
    name: str


@lru_cache(maxsize=1)
def _get_jwt_secret() -> str:
    try:
        return require_secret("JWT_SECRET_KEY")
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    subject: str,
    *,
    email: str,
    name: str | None = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a locally signed token; only accepted when AUTH_MODE=local."""

    expire_delta = timedelta(minutes=expires_minutes or DEFAULT_TOKEN_MINUTES)
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "oid": subject,
        "email": email,
        "name": name or email,
        "exp": now + expire_delta,
        "iat": now,
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=get_settings().jwt_algorithm)


def _decode_local(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            _get_jwt_secret(),
            algorithms=[get_settings().jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError as exc:
        raise _unauthorized("Invalid token") from exc


def _expected_issuers() -> set[str]:
    settings = get_settings()
    tenant_id = settings.azure_ad_tenant_id
    return {
        f"{settings.azure_ad_instance.rstrip('/')}/{tenant_id}/v2.0",
        f"https://sts.windows.net/{tenant_id}/",
    }


async def _decode_entra(token: str) -> dict[str, Any]:
    settings = get_settings()
    if not settings.azure_ad_tenant_id or not settings.expected_audiences:
        logger.error("AZURE_AD_TENANT_ID and AZURE_AD_CLIENT_ID must be set to validate Azure AD tokens")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Authentication is not configured")

    try:
        header = jwt.get_unverified_header(token)
    except JWTError as exc:
        raise _unauthorized("Invalid token") from exc

    kid = header.get("kid")
    if not kid:
        raise _unauthorized("Invalid token")

    try:
        signing_key = await get_key_set().get_key(kid)
    except SigningKeyError as exc:
        logger.warning("Token signing key could not be resolved: %s", exc)
        raise _unauthorized("Invalid token") from exc

    try:
        claims = jwt.decode(
            token,
            signing_key,
            algorithms=["RS256"],
            options={"verify_aud": False, "verify_iss": False},
        )
    except JWTError as exc:
        logger.info("Rejected access token: %s", exc)
        raise _unauthorized("Invalid token") from exc

    audience = claims.get("aud")
    audiences = audience if isinstance(audience, list) else [audience]
    if not set(audiences) & set(settings.expected_audiences):
        raise _unauthorized("Token audience is not accepted")
    if claims.get("iss") not in _expected_issuers():
        raise _unauthorized("Token issuer is not accepted")
    return claims


async def decode_access_token(token: str) -> dict[str, Any]:
    """Validate a bearer token and return its claims."""

    if get_settings().auth_mode == "local":
        return _decode_local(token)
    return await _decode_entra(token)


def identity_from_claims(claims: dict[str, Any]) -> TokenIdentity:
    email = claims.get("email") or claims.get("preferred_username") or claims.get("upn")
    if not email or not isinstance(email, str):
        raise _unauthorized("Token does not identify a user")
    email = email.strip().lower()
    subject = claims.get("oid") or claims.get("sub")
    name = claims.get("name") or email
    return TokenIdentity(subject=str(subject) if subject else None, email=email, name=str(name))


def resolve_user(db: Session, identity: TokenIdentity) -> User:
    """Return the user for ``identity``, creating it on first sign-in."""

    user = db.scalar(select(User).where(User.email == identity.email))
    now = datetime.now(timezone.utc)

    if user is None:
        role = ROLE_ADMIN if identity.email in get_settings().admin_email_set else ROLE_READ_ONLY
        user = User(
            external_id=identity.subject,
            name=identity.name,
            email=identity.email,
            role=role,
            last_active_at=now,
        )
        db.add(user)
        logger.info("Provisioned user %s with role %s", identity.email, role)
    else:
        user.last_active_at = now
        if identity.subject and not user.external_id:
            user.external_id = identity.subject
        if identity.name and user.name != identity.name:
            user.name = identity.name

    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist user %s", identity.email)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to load user") from exc

    return user


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> str | None:
    """Return the raw bearer token so it can be exchanged on behalf of the user."""

    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    db: Session = Depends(get_session),
) -> User:
    """Resolve the authenticated user from the provided bearer token."""

    if not credentials or credentials.scheme.lower() != "bearer":
        raise _unauthorized("Missing bearer token")

    claims = await decode_access_token(credentials.credentials)
    return resolve_user(db, identity_from_claims(claims))


def require_roles(*allowed_roles: str, detail: str = "Insufficient permissions"):
    normalized = {role.lower() for role in allowed_roles if role}

    async def _resolver(user: User = Depends(get_current_user)) -> User:
        role = (getattr(user, "role", None) or ROLE_READ_ONLY).lower()
        if normalized and role not in normalized:
            logger.warning("User %s with role %s denied: %s", user.email, role, detail)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return user

    return _resolver


def require_admin(detail: str = "Admin access required"):
    return require_roles(ROLE_ADMIN, detail=detail)


async def require_resource_manager(user: User = Depends(get_current_user)) -> User:
    """Gate resource mutations on the admin role unless RESOURCES_REQUIRE_ADMIN is off."""

    if get_settings().resources_require_admin and (user.role or ROLE_READ_ONLY) != ROLE_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=RESOURCE_ADMIN_DETAIL)
    return user


__all__ = [
    "TokenIdentity",
    "create_access_token",
    "decode_access_token",
    "get_bearer_token",
    "get_current_user",
    "identity_from_claims",
    "require_admin",
    "require_resource_manager",
    "require_roles",
    "resolve_user",
]
