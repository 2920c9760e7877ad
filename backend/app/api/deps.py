from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.config import settings
from app.core.security import decode_access_token
from app.database import get_db
from app.models import RoleName, User

_TOKEN_URL = f"{settings.api_prefix.rstrip('/')}/auth/token" if settings.api_prefix else "/auth/token"

oauth2_optional = OAuth2PasswordBearer(tokenUrl=_TOKEN_URL, auto_error=False)

_DB_DEP = Depends(get_db)
_TOKEN_OPT_DEP = Depends(oauth2_optional)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_from_headers(request: Request) -> Optional[str]:
    # Some reverse proxies rewrite Authorization; accept the forwarded copy.
    raw = (request.headers.get("authorization") or request.headers.get("x-authorization") or "").strip()
    if not raw:
        return None
    scheme, _, value = raw.partition(" ")
    if scheme.lower() == "bearer":
        return value.strip() or None
    return raw


def get_current_user(
    request: Request,
    db: Session = _DB_DEP,
    token: Optional[str] = _TOKEN_OPT_DEP,
) -> User:
    token = token or _bearer_from_headers(request)
    if not token:
        raise _unauthorized("Not authenticated")

    email = decode_access_token(token)
    if not email:
        raise _unauthorized("Invalid credentials")

    user = db.query(User).filter(User.email == email, User.active.is_(True)).first()
    if user is None:
        raise _unauthorized("User not found or inactive")
    return user


def _role_of(user) -> Optional[RoleName]:
    name = getattr(getattr(user, "role", None), "name", None)
    if name is None or isinstance(name, RoleName):
        return name
    try:
        return RoleName(str(name))
    except ValueError:
        return None


def require_roles(*roles: RoleName) -> Callable:
    """Dependency that lets through `roles` plus admin, and returns the user."""

    allowed = set(roles) | {RoleName.admin}
    _CURRENT_USER_DEP = Depends(get_current_user)

    def dependency(user: User = _CURRENT_USER_DEP) -> User:
        if roles and _role_of(user) not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user

    return dependency


def idempotency_key(request: Request) -> Optional[str]:
    key = (request.headers.get("idempotency-key") or "").strip()
    return key or None


def request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
