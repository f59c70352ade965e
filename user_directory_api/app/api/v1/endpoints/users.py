"""
User endpoints for API v1.

Registration and login are open; every other route requires a bearer
token.  The friend list of a user is exposed as the ``/friends``
sub‑resource of that user.  Permission decisions are made in the
service layer; this module only maps service errors to HTTP status
codes.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from user_directory_api.app.api.v1.errors import http_error
from user_directory_api.app.core.errors import DirectoryError, ForbiddenError
from user_directory_api.app.core.security import Requester, create_access_token, get_current_user
from user_directory_api.app.schemas.user import UserCreate, UserLogin, UserRead, UserUpdate
from user_directory_api.app.services.friend_service import FriendService
from user_directory_api.app.services.permission_service import Action, PermissionService
from user_directory_api.app.services.user_service import UserService


router = APIRouter()


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(user: UserCreate) -> UserRead:
    """Register a new user.

    Open to anonymous callers.  New users always receive the default
    role; a role in the payload is ignored.
    """
    try:
        return await UserService.create_user(user)
    except DirectoryError as e:
        raise http_error(e)


@router.post("/login")
async def login_user(credentials: UserLogin) -> Dict[str, str]:
    """Check login and password and return a bearer token."""
    user = await UserService.authenticate(credentials.login, credentials.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = create_access_token({"sub": str(user.id)})
    return {"access_token": token, "token_type": "bearer"}


@router.get("/", response_model=List[UserRead])
async def list_users(current_user: Requester = Depends(get_current_user)) -> List[UserRead]:
    """List all users.  Any authenticated caller may do this."""
    return await UserService.list_users()


@router.get("/me", response_model=UserRead)
async def read_current_user(current_user: Requester = Depends(get_current_user)) -> UserRead:
    try:
        return await UserService.get_user_by_id(current_user.user_id)
    except DirectoryError as e:
        raise http_error(e)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: int, current_user: Requester = Depends(get_current_user)) -> UserRead:
    try:
        return await UserService.get_user_by_id(user_id)
    except DirectoryError as e:
        raise http_error(e)


@router.patch("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    patch: UserUpdate,
    current_user: Requester = Depends(get_current_user),
) -> UserRead:
    """Update a user.

    Callers may edit any field of their own record except the role.
    On another user's record only the role may be changed, and only by
    an elevated caller.
    """
    try:
        return await UserService.update_user_by_id(user_id, patch, current_user)
    except DirectoryError as e:
        raise http_error(e)


@router.delete("/{user_id}")
async def delete_user(user_id: int, current_user: Requester = Depends(get_current_user)) -> Dict[str, Any]:
    """Delete a user.

    Elevated callers may delete anyone, other callers only themselves.
    The user's zones and friendships are removed with it.
    """
    try:
        deleted = await UserService.delete_user_by_id(user_id, current_user)
    except DirectoryError as e:
        raise http_error(e)
    return {"success": deleted}


# ---------------------------------------------------------------------------
# Friend list sub‑resource
# ---------------------------------------------------------------------------

async def _ensure_can_edit_friends(user_id: int, current_user: Requester) -> None:
    """Only the owner of a friend list (or an elevated caller) may change it."""
    target = await UserService.get_user_by_id(user_id)
    if not PermissionService.can_perform(Action.UPDATE, current_user, target, {"friends"}):
        raise ForbiddenError("You are not allowed to change friends of that user")


@router.get("/{user_id}/friends", response_model=List[UserRead])
async def list_friends(user_id: int, current_user: Requester = Depends(get_current_user)) -> List[UserRead]:
    try:
        return await FriendService.list_friends(user_id)
    except DirectoryError as e:
        raise http_error(e)


@router.patch("/{user_id}/friends", response_model=List[UserRead])
async def add_friend(
    user_id: int,
    candidate_friend_id: int = Query(..., description="ID of the user to add"),
    current_user: Requester = Depends(get_current_user),
) -> List[UserRead]:
    """Add a user to the friend list and return the updated list.

    Adding yourself yields 409; adding an existing friend changes
    nothing.
    """
    try:
        await _ensure_can_edit_friends(user_id, current_user)
        return await FriendService.add_friend(user_id, candidate_friend_id, actor_id=current_user.user_id)
    except DirectoryError as e:
        raise http_error(e)


@router.delete("/{user_id}/friends")
async def remove_friend(
    user_id: int,
    candidate_friend_id: int = Query(..., description="ID of the user to remove"),
    current_user: Requester = Depends(get_current_user),
) -> Dict[str, Any]:
    """Remove a user from the friend list.

    Removing somebody who is not on the list yields 400.
    """
    try:
        await _ensure_can_edit_friends(user_id, current_user)
        await FriendService.remove_friend(user_id, candidate_friend_id, actor_id=current_user.user_id)
    except DirectoryError as e:
        raise http_error(e)
    return {"success": True, "message": "Friend has been removed"}
