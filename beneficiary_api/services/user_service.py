# beneficiary_api/services/user_service.py
import json
import logging
from typing import List, Optional, Tuple
from fastapi import HTTPException, status
from beanie import PydanticObjectId
from datetime import datetime

from beneficiary_api.core.authorization import normalize_references
from beneficiary_api.core.gate import Actor
from beneficiary_api.models.user import User, UserRole, UserStatus
from beneficiary_api.schemas.user import UserApproval, UserCreate
from beneficiary_api.services.audit_service import log_audit
from beneficiary_api.services.auth_service import auth_service

logger = logging.getLogger(__name__)


class UserService:
    async def create_user(
        self,
        user_create_data: UserCreate,
        role: UserRole = UserRole.USER,
        user_status: UserStatus = UserStatus.PENDING,
    ) -> User:
        """
        Creates a new user. Self-registered accounts start pending and cannot
        sign in until an admin approves them.
        """
        existing_user = await self.get_user_by_email(user_create_data.email)
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User with this email already exists.",
            )

        new_user = User(
            **user_create_data.model_dump(exclude={"password"}),
            hashed_password=auth_service.hash_password(user_create_data.password),
            role=role,
            status=user_status,
        )
        await new_user.insert()
        logger.info("Registered user %s (%s)", new_user.email, new_user.status.value)
        return new_user

    async def get_user_by_id(self, user_id: PydanticObjectId) -> Optional[User]:
        """Retrieves a user by their ID."""
        return await User.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Retrieves a user by their email address."""
        return await User.find_one(User.email == email)

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        user = await self.get_user_by_email(email)
        if not user or not auth_service.verify_password(password, user.hashed_password):
            return None
        return user

    async def get_all_users(
        self, user_status: Optional[UserStatus] = None, skip: int = 0, limit: int = 100
    ) -> Tuple[List[User], int]:
        """Retrieves users, optionally only those with a given status."""
        query = {"status": user_status.value} if user_status else {}
        total = await User.find(query).count()
        users = await User.find(query).sort("-created_at").skip(skip).limit(limit).to_list()
        return users, total

    async def approve_user(
        self, actor: Actor, user_id: PydanticObjectId, approval: UserApproval
    ) -> Optional[User]:
        """
        Applies an admin decision: status, role and the areas the user is scoped to.
        Assigned areas are de-duplicated, keeping their first-seen order.
        """
        user = await self.get_user_by_id(user_id)
        if not user:
            return None

        update_data = approval.model_dump(exclude_unset=True, exclude_none=True)
        if "assigned_areas" in update_data:
            update_data["assigned_areas"] = normalize_references(update_data["assigned_areas"])
        if not update_data:
            return user

        old_values = user.model_dump(mode="json", include=set(update_data))
        update_data["updated_at"] = datetime.utcnow()
        await user.set(update_data)

        await log_audit(
            actor,
            "UPDATE",
            "users",
            str(user.id),
            json.dumps(old_values),
            json.dumps(user.model_dump(mode="json", include=set(old_values))),
            field_name=", ".join(sorted(old_values)),
        )
        return user

    async def delete_user(self, actor: Actor, user_id: PydanticObjectId) -> bool:
        """Deletes a user by their ID."""
        user = await self.get_user_by_id(user_id)
        if not user:
            return False
        await user.delete()
        await log_audit(actor, "DELETE", "users", str(user_id), user.email, "")
        return True


user_service = UserService()
