# beneficiary_api/schemas/attendance.py
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from beanie import PydanticObjectId

from beneficiary_api.models.attendance import NESAttendance, RedemptionAttendance


# --- Redemption Schemas ---
class RedemptionUpsert(BaseModel):
    beneficiary_id: str
    frm_period: str = Field(min_length=1)
    attendance: RedemptionAttendance
    reason: str = ""
    date_recorded: str = Field(min_length=1)

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class RedemptionPublic(RedemptionUpsert):
    id: PydanticObjectId = Field(..., alias="_id")
    hhid: str
    recorded_by: PydanticObjectId
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        json_encoders={PydanticObjectId: str},
    )


class RedemptionList(BaseModel):
    records: List[RedemptionPublic]
    total: int
    skip: int
    limit: int


# --- NES Schemas ---
class NESUpsert(BaseModel):
    beneficiary_id: str
    frm_period: str = Field(min_length=1)
    attendance: NESAttendance
    reason: str = ""
    action: str = ""  # Action taken for an absence
    date_recorded: str = Field(min_length=1)

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class NESPublic(NESUpsert):
    id: PydanticObjectId = Field(..., alias="_id")
    hhid: str
    recorded_by: PydanticObjectId
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        json_encoders={PydanticObjectId: str},
    )


class NESList(BaseModel):
    records: List[NESPublic]
    total: int
    skip: int
    limit: int
