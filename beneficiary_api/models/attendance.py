# beneficiary_api/models/attendance.py
from enum import Enum
from datetime import datetime
from pydantic import Field
from beanie import Document, PydanticObjectId
from pymongo import ASCENDING, DESCENDING, IndexModel


class RedemptionAttendance(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    NONE = "none"


class NESAttendance(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    NONE = "none"
    REDEEMED = "redeemed"
    UNREDEEMED = "unredeemed"


# One record per beneficiary per FRM period.
_PERIOD_INDEXES = [
    IndexModel(
        [("beneficiary_id", ASCENDING), ("frm_period", ASCENDING)], unique=True
    ),
    IndexModel([("hhid", ASCENDING)]),
    IndexModel([("created_at", DESCENDING)]),
]


class Redemption(Document):
    """Monthly redemption attendance of a beneficiary."""

    beneficiary_id: str
    hhid: str
    frm_period: str
    attendance: RedemptionAttendance
    reason: str = ""
    date_recorded: str
    recorded_by: PydanticObjectId
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "redemptions"
        indexes = _PERIOD_INDEXES


class NESRecord(Document):
    """Monthly NES session attendance, with the action taken for absences."""

    beneficiary_id: str
    hhid: str
    frm_period: str
    attendance: NESAttendance
    reason: str = ""
    action: str = ""
    date_recorded: str
    recorded_by: PydanticObjectId
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "nes_records"
        indexes = _PERIOD_INDEXES
