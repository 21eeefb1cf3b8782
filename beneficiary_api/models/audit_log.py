# beneficiary_api/models/audit_log.py
from typing import Optional
from datetime import datetime
from pydantic import Field
from beanie import Document
from pymongo import ASCENDING, DESCENDING, IndexModel


# --- Audit Log Entry Model ---
class AuditLog(Document):
    """
    One mutation performed through the API (create, update, delete, bulk ops).
    """

    user_id: str
    user_name: str
    user_role: str
    action: str
    module: str
    record_id: str
    field_name: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "audit_logs"
        indexes = [
            IndexModel([("timestamp", DESCENDING)]),
            IndexModel([("module", ASCENDING), ("record_id", ASCENDING)]),
        ]
