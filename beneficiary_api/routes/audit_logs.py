# beneficiary_api/routes/audit_logs.py
from fastapi import APIRouter, Depends, Query
from typing import Optional

from beneficiary_api.core.gate import Actor
from beneficiary_api.dependencies.auth import get_admin_actor
from beneficiary_api.schemas.audit_log import AuditLogList
from beneficiary_api.services.audit_service import get_audit_logs

router = APIRouter()


@router.get("/", response_model=AuditLogList)
async def list_audit_logs(
    module: Optional[str] = None,
    record_id: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    actor: Actor = Depends(get_admin_actor),
):
    """Audit trail, newest first (admin only)."""
    logs, total = await get_audit_logs(module, record_id, skip=skip, limit=limit)
    return {"logs": logs, "total": total, "skip": skip, "limit": limit}
