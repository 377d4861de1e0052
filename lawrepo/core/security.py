# lawrepo/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from lawrepo.core.config import settings
from lawrepo.db.session import get_db
from lawrepo.models.user import User

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise credentials_exception

    email = payload.get("sub")
    if email is None:
        raise credentials_exception

    user = db.query(User).filter(User.email == email).first()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def get_current_user_optional(
    token: str | None = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Anonymous callers get None; a bad token is still rejected.
    """
    if not token:
        return None
    return get_current_user(token=token, db=db)


def permission_matches(granted: str, required: str) -> bool:
    """
    `*` grants everything, `articles:*` grants every `articles:<action>`.
    """
    if granted == "*" or granted == required:
        return True
    if granted.endswith(":*"):
        return required.split(":", 1)[0] == granted[:-2]
    return False


def has_permission(permissions: Iterable[str], required: str) -> bool:
    return any(permission_matches(p, required) for p in permissions)


def get_user_permissions(user: User) -> List[str]:
    perms: List[str] = []
    for role in user.roles:
        for perm in role.permissions or []:
            if perm not in perms:
                perms.append(perm)
    return perms


def require_permission(required: str):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(get_user_permissions(current_user), required):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {required}",
            )
        return current_user

    return dependency
