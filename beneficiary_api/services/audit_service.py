# beneficiary_api/services/audit_service.py
import logging
from typing import List, Optional, Tuple

from beneficiary_api.core.gate import Actor
from beneficiary_api.models.audit_log import AuditLog

logger = logging.getLogger(__name__)

_DEFAULT_FIELD_NAMES = {
    "CREATE": "All Fields (Initial)",
    "DELETE": "All Fields (Deleted)",
    "UPDATE": "Modified Fields",
}


async def log_audit(
    actor: Optional[Actor],
    action: str,
    module: str,
    record_id: str,
    old_value: str = "",
    new_value: str = "",
    field_name: Optional[str] = None,
) -> None:
    """
    Record a mutation. Audit failures are logged and never fail the request
    that triggered them.
    """
    if actor is None:
        return
    try:
        await AuditLog(
            user_id=actor.id,
            user_name=actor.name,
            user_role=actor.role,
            action=action,
            module=module,
            record_id=str(record_id),
            old_value=old_value,
            new_value=new_value,
            field_name=field_name or _DEFAULT_FIELD_NAMES.get(action),
        ).insert()
    except Exception:
        logger.exception("Audit logging failed for %s %s/%s", action, module, record_id)


async def get_audit_logs(
    module: Optional[str] = None,
    record_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[AuditLog], int]:
    query = {}
    if module:
        query["module"] = module
    if record_id:
        query["record_id"] = record_id
    total = await AuditLog.find(query).count()
    logs = await AuditLog.find(query).sort("-timestamp").skip(skip).limit(limit).to_list()
    return logs, total
