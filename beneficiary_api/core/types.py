# beneficiary_api/core/types.py
from enum import Enum
from typing import Optional
from pydantic import BaseModel


# --- Area Kinds (PSGC levels) ---
class AreaKind(str, Enum):
    """The four levels of the geographic hierarchy, most general first."""

    REGION = "region"
    PROVINCE = "province"
    MUNICIPALITY = "municipality"
    BARANGAY = "barangay"

    @property
    def depth(self) -> int:
        return _DEPTH[self]

    @property
    def record_field(self) -> str:
        """Name of the denormalized field a beneficiary record carries for this kind."""
        return self.value


_DEPTH = {
    AreaKind.REGION: 0,
    AreaKind.PROVINCE: 1,
    AreaKind.MUNICIPALITY: 2,
    AreaKind.BARANGAY: 3,
}

# Kinds a child may attach under. Independent/highly-urbanized cities have no
# province and hang directly off their region.
ALLOWED_PARENT_KINDS = {
    AreaKind.REGION: (),
    AreaKind.PROVINCE: (AreaKind.REGION,),
    AreaKind.MUNICIPALITY: (AreaKind.PROVINCE, AreaKind.REGION),
    AreaKind.BARANGAY: (AreaKind.MUNICIPALITY,),
}

GEOGRAPHIC_FIELDS = ("region", "province", "municipality", "barangay")


class AreaNode(BaseModel):
    """
    Storage-agnostic view of a hierarchy node.
    `parent` is only populated when the store was asked to expand the parent chain.
    """

    id: str
    name: str
    code: Optional[str] = None
    kind: AreaKind
    parent_id: Optional[str] = None
    parent_code: Optional[str] = None
    parent: Optional["AreaNode"] = None


AreaNode.model_rebuild()


def validate_parent_kind(child: AreaKind, parent: Optional[AreaKind]) -> bool:
    """True when `parent` is a legal parent kind for `child` (None means root)."""
    if parent is None:
        return child == AreaKind.REGION
    return parent in ALLOWED_PARENT_KINDS[child]
