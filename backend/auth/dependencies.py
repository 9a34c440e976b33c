"""FastAPI dependency for resolving the current authenticated user."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from backend.auth.user_store import UserStore
from backend.auth.utils import decode_token
from backend.core.exceptions import UserNotFoundError
from backend.core.models import UserInfo

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_user_store() -> UserStore:
    return UserStore()


def get_current_user(
    token: str = Depends(oauth2_scheme),
    store: UserStore = Depends(get_user_store),
) -> UserInfo:
    """Return the caller's UserInfo. Raises 401 on invalid/expired token."""
    try:
        payload = decode_token(token)
        user_id = payload.get("sub")
        if not user_id:
            raise ValueError("Missing sub claim")
        user = store.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return UserInfo(**user)
    except UserNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
