# beneficiary_api/models/beneficiary.py
from datetime import datetime
from typing import Optional
from pydantic import Field
from beanie import Document
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.collation import Collation, CollationStrength

# Case-insensitive comparison for the natural key, matching the duplicate pre-check.
CASE_INSENSITIVE = Collation(locale="en", strength=CollationStrength.SECONDARY)


class Beneficiary(Document):
    hhid: str
    pkno: str
    first_name: str
    last_name: str
    middle_name: str = ""
    birthdate: str
    gender: str
    address: str = ""
    # Denormalized area names; must match Area names for scoping to find them
    region: str = ""
    province: str
    municipality: str
    barangay: str
    contact: str = ""
    status: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "beneficiaries"
        indexes = [
            IndexModel(
                [
                    ("first_name", ASCENDING),
                    ("middle_name", ASCENDING),
                    ("last_name", ASCENDING),
                    ("birthdate", ASCENDING),
                    ("barangay", ASCENDING),
                    ("municipality", ASCENDING),
                    ("province", ASCENDING),
                ],
                name="beneficiary_natural_key",
                unique=True,
                collation=CASE_INSENSITIVE,
            ),
            IndexModel([("hhid", ASCENDING)]),
            IndexModel([("region", ASCENDING)]),
            IndexModel([("province", ASCENDING)]),
            IndexModel([("municipality", ASCENDING)]),
            IndexModel([("barangay", ASCENDING)]),
            IndexModel([("created_at", DESCENDING)]),
        ]
