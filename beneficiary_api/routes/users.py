# beneficiary_api/routes/users.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from beanie import PydanticObjectId

from beneficiary_api.core.gate import Actor
from beneficiary_api.dependencies.auth import get_admin_actor
from beneficiary_api.models.user import UserStatus
from beneficiary_api.schemas.user import UserApproval, UserPublic
from beneficiary_api.services.user_service import user_service

router = APIRouter()


# --- Admin-only User Management Endpoints ---


@router.get("/", response_model=List[UserPublic])
async def get_all_users(
    user_status: Optional[UserStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    actor: Actor = Depends(get_admin_actor),
):
    """
    Retrieve users (admin only), e.g. `?status=pending` for the approval queue.
    """
    users, _ = await user_service.get_all_users(user_status, skip=skip, limit=limit)
    return users


@router.put("/{user_id}/approve", response_model=UserPublic)
async def approve_user(
    user_id: PydanticObjectId,
    approval: UserApproval,
    actor: Actor = Depends(get_admin_actor),
):
    """
    Approve or reject an account and set its role and assigned areas (admin only).
    """
    if str(user_id) == actor.id and approval.role is not None and approval.role.value != actor.role:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot change their own role.",
        )
    user = await user_service.approve_user(actor, user_id, approval)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="User not found."
        )
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: PydanticObjectId,
    actor: Actor = Depends(get_admin_actor),
):
    """
    Deletes a user by ID (admin only).
    """
    if str(user_id) == actor.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot delete their own account.",
        )

    success = await user_service.delete_user(actor, user_id)
    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found or deletion failed.",
        )
    return
