# beneficiary_api/routes/redemptions.py
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from beneficiary_api.core.gate import Actor
from beneficiary_api.dependencies.auth import get_actor, get_admin_actor
from beneficiary_api.schemas.attendance import RedemptionList, RedemptionPublic, RedemptionUpsert
from beneficiary_api.services.attendance_service import redemption_service, split_ids

router = APIRouter()


@router.get("/", response_model=RedemptionList)
async def get_redemptions(
    beneficiary_id: Optional[str] = None,
    beneficiary_ids: Optional[str] = Query(None, description="Comma-separated beneficiary IDs"),
    hhid: Optional[str] = None,
    frm_period: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    actor: Actor = Depends(get_actor),
):
    """Redemption records of beneficiaries inside the caller's areas."""
    records, total = await redemption_service.get_records(
        actor,
        beneficiary_id=beneficiary_id,
        beneficiary_ids=split_ids(beneficiary_ids),
        hhid=hhid,
        frm_period=frm_period,
        skip=skip,
        limit=limit,
    )
    return {"records": records, "total": total, "skip": skip, "limit": limit}


@router.put("/", response_model=RedemptionPublic)
async def upsert_redemption(record: RedemptionUpsert, actor: Actor = Depends(get_actor)):
    """Records (or re-records) a beneficiary's attendance for one FRM period."""
    return await redemption_service.upsert_record(actor, record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_redemption(record_id: str, actor: Actor = Depends(get_admin_actor)):
    await redemption_service.delete_record(actor, record_id)
    return
