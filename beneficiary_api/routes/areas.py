# beneficiary_api/routes/areas.py
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Optional

from beneficiary_api.core.gate import Actor
from beneficiary_api.core.types import AreaKind
from beneficiary_api.dependencies.auth import get_actor, get_admin_actor
from beneficiary_api.schemas.area import AreaCreate, AreaList, AreaPublic, AreaUpdate
from beneficiary_api.services.area_service import AreaService
from beneficiary_api.services.audit_service import log_audit

router = APIRouter()
area_service = AreaService()


# --- Area Endpoints ---


@router.get("/", response_model=AreaList)
async def get_areas(
    type: Optional[AreaKind] = None,
    parent_id: Optional[str] = None,
    parent_code: Optional[str] = None,
    code: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=5000),
    actor: Actor = Depends(get_actor),
):
    """
    Lists hierarchy nodes. The hierarchy itself is reference data and is
    visible to every signed-in user; `parent_id=null` lists the roots.
    """
    areas, total = await area_service.get_areas(
        kind=type,
        parent_id=parent_id,
        parent_code=parent_code,
        code=code,
        skip=skip,
        limit=limit,
    )
    return {"areas": areas, "total": total, "skip": skip, "limit": limit}


@router.post("/", response_model=AreaPublic, status_code=status.HTTP_201_CREATED)
async def create_area(area_create: AreaCreate, actor: Actor = Depends(get_admin_actor)):
    """Creates a new area (admin only)."""
    area = await area_service.create_area(area_create)
    await log_audit(actor, "CREATE", "areas", str(area.id), "", area.model_dump_json())
    return area


@router.get("/{area_id}", response_model=AreaPublic)
async def get_area(area_id: str, actor: Actor = Depends(get_actor)):
    """Retrieves a single area by ID."""
    area = await area_service.get_area_by_id(area_id)
    if not area:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Area not found."
        )
    return area


@router.get("/{area_id}/children", response_model=List[AreaPublic])
async def get_children(area_id: str, actor: Actor = Depends(get_actor)):
    """Immediate children of an area, ordered by PSGC code."""
    return await area_service.get_children_areas(area_id)


@router.put("/{area_id}", response_model=AreaPublic)
async def update_area(
    area_id: str,
    area_update: AreaUpdate,
    actor: Actor = Depends(get_admin_actor),
):
    """Updates an existing area (admin only)."""
    area = await area_service.get_area_by_id(area_id)
    if not area:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Area not found."
        )
    old_value = area.model_dump_json()
    area = await area_service.update_area(area_id, area_update)
    await log_audit(actor, "UPDATE", "areas", area_id, old_value, area.model_dump_json())
    return area


@router.delete("/{area_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_area(area_id: str, actor: Actor = Depends(get_admin_actor)):
    """Deletes an area without children (admin only)."""
    area = await area_service.delete_area(area_id)
    await log_audit(actor, "DELETE", "areas", area_id, area.model_dump_json(), "")
    return
