# beneficiary_api/dependencies/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from beneficiary_api.core.gate import Actor
from beneficiary_api.services.auth_service import auth_service, credentials_error
from beneficiary_api.services.user_service import user_service
from beneficiary_api.models.user import User, UserRole, UserStatus

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    """
    Dependency that decodes the JWT token and fetches the current authenticated user.
    Raises HTTPException if the token is invalid, the user is gone, or the
    account has not been approved.
    """
    user_email = auth_service.token_subject(token)
    user = await user_service.get_user_by_email(user_email)
    if user is None:
        raise credentials_error("User not found")
    if user.status != UserStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is {user.status.value}",
        )
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins are allowed to perform this action.",
        )
    return current_user


def to_actor(user: User) -> Actor:
    return Actor(
        id=str(user.id),
        name=user.name,
        role=user.role.value,
        assigned_areas=tuple(user.assigned_areas or ()),
    )


async def get_actor(current_user: User = Depends(get_current_user)) -> Actor:
    """The signed-in user as seen by the access gate."""
    return to_actor(current_user)


async def get_admin_actor(current_user: User = Depends(require_admin)) -> Actor:
    return to_actor(current_user)
