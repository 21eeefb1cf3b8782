# beneficiary_api/models/user.py
from enum import Enum
from typing import List
from datetime import datetime
from pydantic import Field, EmailStr
from beanie import Document
from pymongo import ASCENDING, IndexModel


# --- UserRole Enum ---
class UserRole(str, Enum):
    """Admins bypass area scoping; users are confined to their assigned areas."""

    ADMIN = "admin"
    USER = "user"


class UserStatus(str, Enum):
    """Accounts start pending and cannot sign in until an admin approves them."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# --- User Model ---
class User(Document):
    name: str
    email: EmailStr
    hashed_password: str
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Area references (id, PSGC code or name) this user may see and edit.
    # Only changed through the admin approval flow.
    assigned_areas: List[str] = Field(default_factory=list)

    class Settings:
        name = "users"  # MongoDB collection name
        indexes = [IndexModel([("email", ASCENDING)], unique=True)]
