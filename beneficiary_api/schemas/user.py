# beneficiary_api/schemas/user.py
from typing import Optional, List
from datetime import datetime
from pydantic import (
    BaseModel,
    EmailStr,
    Field,
    ConfigDict,
)
from beanie import PydanticObjectId
from beneficiary_api.models.user import UserRole, UserStatus


# --- Base User Schemas ---
class UserBase(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


# --- User Schemas for API Operations ---


class UserCreate(UserBase):
    password: str = Field(min_length=6)


class UserApproval(BaseModel):
    """Admin decision on an account; only the fields sent are applied."""

    status: Optional[UserStatus] = None
    role: Optional[UserRole] = None
    assigned_areas: Optional[List[str]] = None

    model_config = ConfigDict(extra="ignore")


class UserPublic(UserBase):
    id: PydanticObjectId = Field(..., alias="_id")
    role: UserRole
    status: UserStatus
    assigned_areas: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        json_encoders={PydanticObjectId: str},
    )


# --- Authentication Schemas ---
class Token(BaseModel):
    access_token: str
    token_type: str
