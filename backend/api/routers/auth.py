"""Authentication endpoints: register, login, profile, password, account deletion."""

from contextlib import contextmanager
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from backend.api.schemas import (
    ChangePasswordRequest,
    DeleteAccountRequest,
    LoginResponse,
    RegisterRequest,
    UserResponse,
)
from backend.auth.dependencies import get_current_user, get_user_store
from backend.auth.user_store import UserStore
from backend.auth.utils import create_access_token, hash_password, verify_password
from backend.core.exceptions import DuplicateEmailError, InvalidCredentialsError, UserNotFoundError
from backend.core.logging import get_logger
from backend.core.models import UserInfo

router = APIRouter(prefix="/auth", tags=["auth"])
logger = get_logger(__name__)


def _authenticate(store: UserStore, email: str, password: str) -> dict:
    user = store.get_by_email(email)
    if not user or not verify_password(password, user["hashed_pw"]):
        raise InvalidCredentialsError("Incorrect email or password")
    return user


def _check_password(store: UserStore, user_id: str, password: str) -> None:
    user = store.get_by_id(user_id, with_password=True)
    if not user:
        raise UserNotFoundError(user_id)
    if not verify_password(password, user["hashed_pw"]):
        raise InvalidCredentialsError("Password is incorrect")


@contextmanager
def _account_errors():
    """Map account failures on an authenticated caller to 404 / 400."""
    try:
        yield
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(body: RegisterRequest, store: UserStore = Depends(get_user_store)):
    """Register a new user account and return a JWT access token."""
    try:
        user = store.create_user(
            name=body.name,
            email=body.email,
            hashed_pw=hash_password(body.password),
            address=body.address,
            phone_number=body.phone_number,
        )
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    logger.info("user_registered", user_id=user["id"])
    token = create_access_token(user["id"], user["email"], user["name"])
    return UserResponse(**user, access_token=token)


@router.post("/login", response_model=LoginResponse)
async def login(
    form: OAuth2PasswordRequestForm = Depends(),
    store: UserStore = Depends(get_user_store),
):
    """Authenticate with email (as ``username``) + password and return a JWT."""
    try:
        user = _authenticate(store, form.username, form.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return LoginResponse(access_token=create_access_token(user["id"], user["email"], user["name"]))


@router.get("/me", response_model=UserResponse)
async def me(current_user: UserInfo = Depends(get_current_user)):
    """Return the currently authenticated user."""
    return UserResponse(**current_user.model_dump())


@router.put("/me", response_model=UserResponse)
async def edit_me(
    name: Optional[str] = None,
    address: Optional[str] = None,
    phone_number: Optional[str] = None,
    current_user: UserInfo = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    """Edit the caller's profile; omitted fields are kept."""
    with _account_errors():
        user = store.update_profile(current_user.id, name=name, address=address, phone_number=phone_number)
        if not user:
            raise UserNotFoundError(current_user.id)
    logger.info("user_updated", user_id=current_user.id)
    return UserResponse(**user)


@router.put("/me/password")
async def change_password(
    body: ChangePasswordRequest,
    current_user: UserInfo = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    with _account_errors():
        _check_password(store, current_user.id, body.old_password)
    store.update_password(current_user.id, hash_password(body.new_password))
    logger.info("user_password_changed", user_id=current_user.id)
    return {"detail": "Password changed"}


@router.delete("/me", status_code=204)
async def delete_me(
    body: DeleteAccountRequest,
    current_user: UserInfo = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
):
    """Delete the caller's account together with its customers and invoices."""
    with _account_errors():
        _check_password(store, current_user.id, body.password_confirmation)
    store.delete_user(current_user.id)
    logger.info("user_deleted", user_id=current_user.id)
