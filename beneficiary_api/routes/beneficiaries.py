# beneficiary_api/routes/beneficiaries.py
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from typing import Optional

from beneficiary_api.core.gate import Actor
from beneficiary_api.dependencies.auth import get_actor, get_admin_actor
from beneficiary_api.schemas.beneficiary import (
    BeneficiaryCreate,
    BeneficiaryFilters,
    BeneficiaryList,
    BeneficiaryPublic,
    BeneficiaryUpdate,
    BulkDeleteRequest,
    BulkDeleteResult,
    BulkImportRequest,
    BulkImportResult,
    CheckDuplicatesRequest,
    DuplicateCheckResult,
)
from beneficiary_api.services.beneficiary_service import BeneficiaryService

router = APIRouter()
beneficiary_service = BeneficiaryService()


@router.get("/", response_model=BeneficiaryList)
async def get_beneficiaries(
    region: Optional[str] = None,
    province: Optional[str] = None,
    municipality: Optional[str] = None,
    barangay: Optional[str] = None,
    hhid: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    actor: Actor = Depends(get_actor),
):
    """
    Beneficiaries inside the caller's assigned areas (everything for admins),
    narrowed by the geographic filters. "all" means no filter.
    """
    filters = BeneficiaryFilters(
        region=region, province=province, municipality=municipality, barangay=barangay
    )
    beneficiaries, total = await beneficiary_service.get_beneficiaries(
        actor, filters, hhid=hhid, skip=skip, limit=limit
    )
    return {"beneficiaries": beneficiaries, "total": total, "skip": skip, "limit": limit}


@router.post("/", response_model=BeneficiaryPublic, status_code=status.HTTP_201_CREATED)
async def create_beneficiary(
    beneficiary: BeneficiaryCreate, actor: Actor = Depends(get_admin_actor)
):
    """Adds one beneficiary; area names are canonicalized and the region filled in."""
    return await beneficiary_service.create_beneficiary(actor, beneficiary)


@router.post("/bulk", response_model=BulkImportResult, status_code=status.HTTP_201_CREATED)
async def bulk_create_beneficiaries(
    request: BulkImportRequest, actor: Actor = Depends(get_admin_actor)
):
    """Imports many beneficiaries; per-row failures are reported, not raised."""
    result = await beneficiary_service.bulk_create(actor, request.beneficiaries)
    return result.model_dump()


@router.post(
    "/bulk/csv", response_model=BulkImportResult, status_code=status.HTTP_201_CREATED
)
async def bulk_create_from_csv(
    file: UploadFile = File(...), actor: Actor = Depends(get_admin_actor)
):
    """Same as /bulk, reading the rows from an uploaded CSV file."""
    content = await file.read()
    result = await beneficiary_service.bulk_create_from_csv(actor, content)
    return result.model_dump()


@router.post("/check-duplicates", response_model=DuplicateCheckResult)
async def check_duplicates(
    request: CheckDuplicatesRequest, actor: Actor = Depends(get_admin_actor)
):
    """Stored beneficiaries that an import would collide with."""
    duplicates = await beneficiary_service.check_duplicates(request.beneficiaries)
    return {"duplicates": duplicates}


@router.post("/bulk-delete", response_model=BulkDeleteResult)
async def bulk_delete_beneficiaries(
    request: BulkDeleteRequest, actor: Actor = Depends(get_admin_actor)
):
    count = await beneficiary_service.bulk_delete(actor, request)
    return {"success": True, "count": count}


@router.get("/{beneficiary_id}", response_model=BeneficiaryPublic)
async def get_beneficiary(beneficiary_id: str, actor: Actor = Depends(get_actor)):
    return await beneficiary_service.get_beneficiary(actor, beneficiary_id)


@router.put("/{beneficiary_id}", response_model=BeneficiaryPublic)
async def update_beneficiary(
    beneficiary_id: str,
    beneficiary_update: BeneficiaryUpdate,
    actor: Actor = Depends(get_actor),
):
    """
    Updates a beneficiary the caller can see. Moving it to an area outside the
    caller's assignment is refused.
    """
    return await beneficiary_service.update_beneficiary(actor, beneficiary_id, beneficiary_update)


@router.delete("/{beneficiary_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_beneficiary(beneficiary_id: str, actor: Actor = Depends(get_admin_actor)):
    await beneficiary_service.delete_beneficiary(actor, beneficiary_id)
    return
