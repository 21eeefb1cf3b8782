# beneficiary_api/schemas/audit_log.py
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from beanie import PydanticObjectId


class AuditLogPublic(BaseModel):
    id: PydanticObjectId = Field(..., alias="_id")
    user_id: str
    user_name: str
    user_role: str
    action: str
    module: str
    record_id: str
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    timestamp: datetime

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        json_encoders={PydanticObjectId: str},
    )


class AuditLogList(BaseModel):
    logs: List[AuditLogPublic]
    total: int
    skip: int
    limit: int
