# beneficiary_api/models/area.py
from datetime import datetime
from typing import Optional
from pydantic import Field
from beanie import Document
from pymongo import ASCENDING, IndexModel

from beneficiary_api.core.types import AreaKind, AreaNode


# --- Area Model ---
class Area(Document):
    """
    A node of the PSGC hierarchy (region, province, municipality/city, barangay).
    """

    name: str
    code: Optional[str] = None  # PSGC code
    type: AreaKind
    parent_id: Optional[str] = None  # ID of the parent Area
    # Parent's PSGC code, used to link parent_id after an import
    parent_code: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "areas"
        indexes = [
            IndexModel(
                [("code", ASCENDING)],
                unique=True,
                partialFilterExpression={"code": {"$type": "string"}},
            ),
            IndexModel([("type", ASCENDING)]),
            IndexModel([("name", ASCENDING)]),
            IndexModel([("parent_id", ASCENDING)]),
            IndexModel([("parent_code", ASCENDING)]),
            IndexModel([("type", ASCENDING), ("parent_id", ASCENDING)]),
        ]

    def to_node(self, parent: Optional[AreaNode] = None) -> AreaNode:
        return AreaNode(
            id=str(self.id),
            name=self.name,
            code=self.code,
            kind=self.type,
            parent_id=self.parent_id,
            parent_code=self.parent_code,
            parent=parent,
        )
