"""Registration, login and logout."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...models import User
from ..dependencies import current_user, get_session_manager, get_user_service
from ..schemas import DetailResponse, LoginIn, RegisterIn, UserOut, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_response(user: User, detail: str, status_code: int = 200) -> JSONResponse:
    body = UserResponse(user=UserOut.from_user(user), detail=detail)
    return JSONResponse(body.model_dump(mode="json", by_alias=True), status_code=status_code)


@router.post("/register", response_model=UserResponse, status_code=201)
def register(request: Request, payload: RegisterIn):
    """Create an account and sign it in."""
    user = get_user_service(request).register(payload.to_registration())
    response = _user_response(user, "User registered successfully", status_code=201)
    get_session_manager(request).sign_in(response, user.id)
    return response


@router.post("/login", response_model=UserResponse)
def login(request: Request, payload: LoginIn):
    user = get_user_service(request).authenticate(payload.email, payload.password)
    response = _user_response(user, "Login successful")
    get_session_manager(request).sign_in(response, user.id)
    logger.info(f"User {user.id} logged in")
    return response


@router.post("/logout", response_model=DetailResponse)
def logout(request: Request):
    response = JSONResponse({"detail": "Logged out"})
    get_session_manager(request).sign_out(response)
    return response


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(current_user)) -> UserResponse:
    return UserResponse(user=UserOut.from_user(user))
