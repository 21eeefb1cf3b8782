# beneficiary_api/routes/nes.py
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from beneficiary_api.core.gate import Actor
from beneficiary_api.dependencies.auth import get_actor, get_admin_actor
from beneficiary_api.schemas.attendance import NESList, NESPublic, NESUpsert
from beneficiary_api.services.attendance_service import nes_service, split_ids

router = APIRouter()


@router.get("/", response_model=NESList)
async def get_nes_records(
    beneficiary_id: Optional[str] = None,
    beneficiary_ids: Optional[str] = Query(None, description="Comma-separated beneficiary IDs"),
    hhid: Optional[str] = None,
    frm_period: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    actor: Actor = Depends(get_actor),
):
    records, total = await nes_service.get_records(
        actor,
        beneficiary_id=beneficiary_id,
        beneficiary_ids=split_ids(beneficiary_ids),
        hhid=hhid,
        frm_period=frm_period,
        skip=skip,
        limit=limit,
    )
    return {"records": records, "total": total, "skip": skip, "limit": limit}


@router.put("/", response_model=NESPublic)
async def upsert_nes_record(record: NESUpsert, actor: Actor = Depends(get_actor)):
    """
    Records NES attendance for one FRM period. Beneficiaries marked
    "Not for Recording" are refused.
    """
    return await nes_service.upsert_record(actor, record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_nes_record(record_id: str, actor: Actor = Depends(get_admin_actor)):
    await nes_service.delete_record(actor, record_id)
    return
