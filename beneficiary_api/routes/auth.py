# beneficiary_api/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from beneficiary_api.dependencies.auth import get_current_user
from beneficiary_api.models.user import User, UserStatus
from beneficiary_api.schemas.user import Token, UserCreate, UserPublic
from beneficiary_api.services.auth_service import auth_service
from beneficiary_api.services.user_service import user_service

router = APIRouter()


@router.post(
    "/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED
)
async def register_user(user_create: UserCreate):
    """
    Self-registration. The account stays pending until an admin approves it
    and assigns its areas.
    """
    return await user_service.create_user(user_create)


@router.post("/token", response_model=Token)
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    """
    Authenticates a user and returns an access token upon successful login.
    """
    user = await user_service.authenticate(form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user.status != UserStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is {user.status.value}; wait for an admin to approve it",
        )
    access_token = auth_service.create_access_token(user.email, user.role.value)
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserPublic)
async def read_users_me(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user's details.
    """
    return current_user
