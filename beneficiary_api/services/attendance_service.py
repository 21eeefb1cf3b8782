# beneficiary_api/services/attendance_service.py
"""
Monthly attendance records (redemptions and NES sessions).

These records only carry the beneficiary's HHID, not its area, so a scoped
actor sees the records whose HHID belongs to a beneficiary inside their areas.
"""
import json
import logging
from datetime import datetime
from typing import List, Optional, Tuple, Type, Union

from beanie import PydanticObjectId

from beneficiary_api.core.errors import BeneficiaryAPIError, NotFoundError
from beneficiary_api.core.gate import Actor, ensure_assigned
from beneficiary_api.core.predicate import FieldEquals, FieldIn, all_of, to_query
from beneficiary_api.models.attendance import NESRecord, Redemption
from beneficiary_api.schemas.attendance import NESUpsert, RedemptionUpsert
from beneficiary_api.services.audit_service import log_audit
from beneficiary_api.services.beneficiary_service import BeneficiaryService

logger = logging.getLogger(__name__)

NOT_FOR_RECORDING = "Not for Recording"

AttendanceRecord = Union[Redemption, NESRecord]


def split_ids(value: Optional[str]) -> Optional[List[str]]:
    """Parse a comma-separated id list from a query string."""
    ids = [part.strip() for part in (value or "").split(",") if part.strip()]
    return ids or None


class AttendanceService:
    def __init__(
        self,
        document: Type[AttendanceRecord],
        module: str,
        refuse_not_for_recording: bool = False,
        beneficiary_service: Optional[BeneficiaryService] = None,
    ):
        self.document = document
        self.module = module
        self.refuse_not_for_recording = refuse_not_for_recording
        self.beneficiaries = beneficiary_service or BeneficiaryService()

    async def get_records(
        self,
        actor: Actor,
        beneficiary_id: Optional[str] = None,
        beneficiary_ids: Optional[List[str]] = None,
        hhid: Optional[str] = None,
        frm_period: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[AttendanceRecord], int]:
        clauses = []
        if beneficiary_id:
            clauses.append(FieldEquals("beneficiary_id", beneficiary_id, case_insensitive=False))
        if beneficiary_ids:
            clauses.append(FieldIn("beneficiary_id", tuple(beneficiary_ids)))
        if hhid:
            clauses.append(FieldEquals("hhid", hhid, case_insensitive=False))
        if frm_period:
            clauses.append(FieldEquals("frm_period", frm_period, case_insensitive=False))

        allowed = await self.beneficiaries.allowed_hhids(actor)
        if allowed is not None:
            if not allowed or (hhid and hhid not in allowed):
                return [], 0
            clauses.append(FieldIn("hhid", tuple(allowed)))

        query = to_query(all_of(*clauses))
        total = await self.document.find(query).count()
        records = (
            await self.document.find(query).sort("-created_at").skip(skip).limit(limit).to_list()
        )
        return records, total

    async def upsert_record(
        self, actor: Actor, data: Union[RedemptionUpsert, NESUpsert]
    ) -> AttendanceRecord:
        """
        Create or replace the record of a beneficiary for one FRM period.
        The beneficiary must be visible to the actor.
        """
        ensure_assigned(actor, f"record {self.module}")
        beneficiary = await self.beneficiaries.get_beneficiary(actor, data.beneficiary_id)
        if self.refuse_not_for_recording and beneficiary.status == NOT_FOR_RECORDING:
            raise BeneficiaryAPIError(
                f"This beneficiary is set to '{NOT_FOR_RECORDING}' status"
            )

        values = data.model_dump()
        values.update(
            hhid=beneficiary.hhid,
            recorded_by=PydanticObjectId(actor.id),
            updated_at=datetime.utcnow(),
        )
        record = await self.document.find_one(
            {"beneficiary_id": data.beneficiary_id, "frm_period": data.frm_period}
        )
        if record is None:
            record = self.document(**values)
            await record.insert()
            action, old_value = "CREATE", ""
        else:
            old_value = record.model_dump_json(exclude={"id", "revision_id"})
            await record.set(values)
            action = "UPDATE"

        await log_audit(
            actor,
            action,
            self.module,
            str(record.id),
            old_value,
            json.dumps(values, default=str),
        )
        return record

    async def delete_record(self, actor: Actor, record_id: str) -> None:
        ensure_assigned(actor, f"delete {self.module}")
        record = None
        if PydanticObjectId.is_valid(record_id):
            record = await self.document.get(PydanticObjectId(record_id))
        if record is not None:
            allowed = await self.beneficiaries.allowed_hhids(actor)
            if allowed is not None and record.hhid not in allowed:
                record = None
        if record is None:
            raise NotFoundError("Record not found or you are not authorized to delete it")

        await record.delete()
        await log_audit(
            actor,
            "DELETE",
            self.module,
            record_id,
            record.model_dump_json(exclude={"id", "revision_id"}),
            "",
        )


redemption_service = AttendanceService(Redemption, "redemptions")
nes_service = AttendanceService(NESRecord, "nes", refuse_not_for_recording=True)
