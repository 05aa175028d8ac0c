"""User profile and administration endpoints."""

from fastapi import APIRouter, Depends, Query, Request

from ...models import User
from ..dependencies import current_user, get_config, get_user_service
from ..schemas import PaginationOut, ProfileIn, RoleIn, UserListResponse, UserOut, UserResponse

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def list_users(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    search: str = "",
    user: User = Depends(current_user),
) -> UserListResponse:
    """List accounts (admin only)."""
    users, window = get_user_service(request).list_users(
        user,
        page=page,
        limit=limit or get_config(request).mail.user_page_size,
        search=search,
    )
    return UserListResponse(
        users=[UserOut.from_user(u) for u in users],
        pagination=PaginationOut.from_page(window),
    )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: int, user: User = Depends(current_user)) -> UserResponse:
    return UserResponse(user=UserOut.from_user(get_user_service(request).get_user(user, user_id)))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: int,
    payload: ProfileIn,
    user: User = Depends(current_user),
) -> UserResponse:
    updated = get_user_service(request).update_profile(user, user_id, payload.to_profile())
    return UserResponse(user=UserOut.from_user(updated), detail="Profile updated successfully")


@router.put("/{user_id}/role", response_model=UserResponse)
def update_role(
    request: Request,
    user_id: int,
    payload: RoleIn,
    user: User = Depends(current_user),
) -> UserResponse:
    updated = get_user_service(request).set_role(user, user_id, payload.role)
    return UserResponse(user=UserOut.from_user(updated), detail="User role updated successfully")


@router.put("/{user_id}/activate", response_model=UserResponse)
def activate_user(request: Request, user_id: int, user: User = Depends(current_user)) -> UserResponse:
    updated = get_user_service(request).activate(user, user_id)
    return UserResponse(user=UserOut.from_user(updated), detail="User activated successfully")


@router.delete("/{user_id}", response_model=UserResponse)
def deactivate_user(request: Request, user_id: int, user: User = Depends(current_user)) -> UserResponse:
    """Deactivate an account. Accounts are never deleted."""
    updated = get_user_service(request).deactivate(user, user_id)
    return UserResponse(user=UserOut.from_user(updated), detail="User deactivated successfully")
