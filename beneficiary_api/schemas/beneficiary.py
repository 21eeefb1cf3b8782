# beneficiary_api/schemas/beneficiary.py
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from beanie import PydanticObjectId


# --- Base Beneficiary Schemas ---
class BeneficiaryBase(BaseModel):
    hhid: str = Field(min_length=1)
    pkno: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    middle_name: str = ""
    birthdate: str = Field(min_length=1)
    gender: str = Field(min_length=1)
    address: str = ""
    region: str = ""
    province: str = Field(min_length=1)
    municipality: str = Field(min_length=1)
    barangay: str = Field(min_length=1)
    contact: str = ""
    status: Optional[str] = None

    # CSV cells arrive as numbers for codes like HHID or PKNO.
    model_config = ConfigDict(
        extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True
    )


class BeneficiaryCreate(BeneficiaryBase):
    pass


class BeneficiaryUpdate(BaseModel):
    # All fields optional; only the ones sent are applied.
    hhid: Optional[str] = None
    pkno: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    middle_name: Optional[str] = None
    birthdate: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    region: Optional[str] = None
    province: Optional[str] = None
    municipality: Optional[str] = None
    barangay: Optional[str] = None
    contact: Optional[str] = None
    status: Optional[str] = None

    model_config = ConfigDict(
        extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True
    )


class BeneficiaryPublic(BeneficiaryBase):
    id: PydanticObjectId = Field(..., alias="_id")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        json_encoders={PydanticObjectId: str},
    )


class BeneficiaryFilters(BaseModel):
    """Geographic listing filters; "all" or empty means no filter."""

    region: Optional[str] = None
    province: Optional[str] = None
    municipality: Optional[str] = None
    barangay: Optional[str] = None


class BeneficiaryList(BaseModel):
    beneficiaries: List[BeneficiaryPublic]
    total: int
    skip: int
    limit: int


# --- Bulk Operations ---
class BulkImportRequest(BaseModel):
    beneficiaries: List[Dict[str, Any]]


class BulkImportResult(BaseModel):
    success: int
    failed: int
    errors: List[str] = Field(default_factory=list)


class CheckDuplicatesRequest(BaseModel):
    beneficiaries: List[Dict[str, Any]]


class DuplicateCheckResult(BaseModel):
    duplicates: List[BeneficiaryPublic]


class BulkDeleteRequest(BaseModel):
    ids: Optional[List[PydanticObjectId]] = None
    all: bool = False
    filters: Optional[BeneficiaryFilters] = None


class BulkDeleteResult(BaseModel):
    success: bool = True
    count: int
