# beneficiary_api/schemas/area.py
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
from beanie import PydanticObjectId
from beneficiary_api.core.types import AreaKind


class AreaBase(BaseModel):
    name: str = Field(min_length=1)
    code: Optional[str] = None
    type: AreaKind
    parent_id: Optional[str] = None
    parent_code: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)


class AreaCreate(AreaBase):
    pass


class AreaUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    parent_id: Optional[str] = None  # Allow changing parent_id or setting to None
    parent_code: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)


class AreaPublic(AreaBase):
    id: PydanticObjectId = Field(..., alias="_id")

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        json_encoders={PydanticObjectId: str},
    )


class AreaList(BaseModel):
    areas: List[AreaPublic]
    total: int
    skip: int
    limit: int
