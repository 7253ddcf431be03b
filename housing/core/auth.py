"""
Authentication utilities for Supabase JWT verification.

The frontend signs in with Supabase and sends the JWT in the Authorization
header. This module verifies the JWT, makes sure a matching `users` row exists
and hands routes a CurrentUser carrying the role and sector used for scoping.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

import requests
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from housing.api.deps import get_db
from housing.core.config import settings
from housing.core.scope import Scope, scope_for
from housing.models.user import User

logger = logging.getLogger(__name__)

# Security scheme for Bearer token
security = HTTPBearer()

ADMIN_ROLE = "admin"


class CurrentUser:
    """The authenticated caller, as seen by routes."""

    def __init__(
        self,
        id: int,
        open_id: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
        role: Optional[str] = None,
        sector_id: Optional[int] = None,
    ):
        self.id = id
        self.open_id = open_id
        self.email = email
        self.name = name
        self.role = role or "user"
        self.sector_id = sector_id

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @property
    def scope(self) -> Scope:
        return scope_for(self.sector_id)

    @property
    def label(self) -> str:
        """Used as ImportLog.imported_by."""
        return self.email or self.name or self.open_id

    @classmethod
    def from_row(cls, user: User) -> "CurrentUser":
        return cls(
            id=user.id,
            open_id=user.open_id,
            email=user.email,
            name=user.name,
            role=user.role,
            sector_id=user.sector_id,
        )


# Cache for JWKS keys (to avoid fetching on every request)
_jwks_cache = None


def get_supabase_jwks():
    """Fetch (once) the Supabase JSON Web Key Set used to verify tokens."""
    global _jwks_cache

    if _jwks_cache is not None:
        return _jwks_cache

    try:
        jwks_url = f"{settings.SUPABASE_URL}/auth/v1/.well-known/jwks.json"
        response = requests.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        return _jwks_cache
    except requests.RequestException as e:
        logger.exception("Failed to fetch JWKS from %s", settings.SUPABASE_URL)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to fetch JWKS from Supabase: {str(e)}",
        )


def verify_token(token: str) -> dict:
    """
    Verify a Supabase JWT and return its payload.

    Supabase signs with ES256 on newer projects and RS256 on older ones;
    python-jose picks the key from the JWKS by the token's `kid`.
    """
    try:
        jwks = get_supabase_jwks()
        payload = jwt.decode(
            token,
            jwks,
            algorithms=["ES256", "RS256"],
            audience="authenticated",
            options={"verify_aud": True},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


def upsert_user(db: Session, open_id: str, email: Optional[str], name: Optional[str]) -> User:
    """Create the users row on first sign-in, refresh it afterwards."""
    user = db.query(User).filter(User.open_id == open_id).first()
    now = datetime.now(timezone.utc)
    if user is None:
        user = User(open_id=open_id, email=email, name=name, last_signed_in=now)
        db.add(user)
        logger.info("Registered user %s (%s)", open_id, email)
    else:
        user.email = email or user.email
        user.name = name or user.name
        user.last_signed_in = now
    db.commit()
    db.refresh(user)
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated caller.

    Role and sector come from the users table, not from the token, so an admin
    can change them without the user signing in again.
    """
    payload = verify_token(credentials.credentials)

    # Supabase JWT structure: {"sub": "user_id", "email": "user@example.com", "user_metadata": {...}}
    open_id = payload.get("sub")
    if not open_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate user",
            headers={"WWW-Authenticate": "Bearer"},
        )
    metadata = payload.get("user_metadata") or {}
    user = upsert_user(db, open_id, payload.get("email"), metadata.get("full_name") or metadata.get("name"))
    return CurrentUser.from_row(user)


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient permissions. Required role: {ADMIN_ROLE}",
        )
    return current_user
