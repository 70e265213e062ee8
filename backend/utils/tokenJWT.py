# utils/tokenJWT.py
import enum
from datetime import datetime, timedelta, timezone
from typing import Optional, Set

from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User, ROLE_ADMIN

# Authorization scheme; auto_error=False lets guest requests through to resolve as Guest
bearer_scheme = HTTPBearer(auto_error=False)


class Capability(str, enum.Enum):
    GUEST = "guest"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


# Resolve the user behind the bearer token, or None for anonymous requests.
# A token that is present but invalid is still rejected.
def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if credentials is None:
        return None

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise _credentials_exception()
    except JWTError:
        raise _credentials_exception()

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _credentials_exception()
    return user


# Retrieve the currently authenticated user based on the JWT token
def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise _credentials_exception()
    return user


def resolve_capabilities(user: Optional[User]) -> Set[Capability]:
    caps = {Capability.GUEST}
    if user is not None:
        caps.add(Capability.AUTHENTICATED)
        if (user.role or "").lower() == ROLE_ADMIN:
            caps.add(Capability.ADMIN)
    return caps


# Dependency factory: reject the request before the endpoint runs
# unless the caller holds the required capability
def capability_required(required: Capability):
    def _checker(user: Optional[User] = Depends(get_optional_user)):
        caps = resolve_capabilities(user)
        if required in caps:
            return user
        if Capability.AUTHENTICATED not in caps:
            raise _credentials_exception()
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return _checker


require_admin = capability_required(Capability.ADMIN)
