# beneficiary_api/services/beneficiary_service.py
import io
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from beanie import PydanticObjectId
from pymongo.errors import BulkWriteError, DuplicateKeyError

from beneficiary_api.configs import configs
from beneficiary_api.core.authorization import filter_predicate
from beneficiary_api.core.canonicalizer import canonicalize_record
from beneficiary_api.core.errors import (
    BeneficiaryAPIError,
    DuplicateRecordError,
    NotFoundError,
    UnauthorizedAreaError,
)
from beneficiary_api.core.gate import (
    Actor,
    Denied,
    actor_predicate,
    ensure_assigned,
    ensure_can_write,
    gate,
)
from beneficiary_api.core.importer import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_ERRORS,
    ChunkOutcome,
    ImportIndexes,
    ImportResult,
    describe,
    duplicate_predicate,
    run_bulk_import,
)
from beneficiary_api.core.names import clean, fold
from beneficiary_api.core.predicate import FieldEquals, FieldIn, Predicate, all_of, any_of, to_query
from beneficiary_api.core.regions import resolve_region
from beneficiary_api.core.store import AreaStore
from beneficiary_api.models.beneficiary import Beneficiary
from beneficiary_api.schemas.beneficiary import (
    BeneficiaryCreate,
    BeneficiaryFilters,
    BeneficiaryUpdate,
    BulkDeleteRequest,
)
from beneficiary_api.services.area_store import area_store
from beneficiary_api.services.audit_service import log_audit

logger = logging.getLogger(__name__)

MODULE = "beneficiaries"
DUPLICATE_KEY_CODE = 11000

import_settings = configs.get("import") or {}
chunk_size = import_settings.get("chunk_size", DEFAULT_CHUNK_SIZE)
max_errors = import_settings.get("max_errors", DEFAULT_MAX_ERRORS)
duplicate_check_chunk_size = import_settings.get("duplicate_check_chunk_size", 50)

# CSV headers people actually send, mapped to field names.
CSV_HEADER_ALIASES = {
    "household_id": "hhid",
    "hh_id": "hhid",
    "firstname": "first_name",
    "lastname": "last_name",
    "middlename": "middle_name",
    "birthday": "birthdate",
    "date_of_birth": "birthdate",
    "sex": "gender",
    "city": "municipality",
    "city_municipality": "municipality",
    "brgy": "barangay",
    "contact_number": "contact",
}


def _to_json(values: Any) -> str:
    return json.dumps(values, default=str)


def normalize_header(header: Any) -> str:
    key = str(header).strip().lower().replace("/", "_").replace("-", "_")
    key = "_".join(key.split())
    return CSV_HEADER_ALIASES.get(key, key)


def rows_from_csv(content: bytes) -> List[Dict[str, Any]]:
    """Read an uploaded CSV as a list of row dicts; every cell stays a string."""
    frame = pd.read_csv(io.BytesIO(content), dtype=str, keep_default_na=False)
    frame.columns = [normalize_header(c) for c in frame.columns]
    return frame.to_dict(orient="records")


async def insert_beneficiaries(documents: List[Dict[str, Any]]) -> ChunkOutcome:
    """
    Unordered insert of one import chunk. Rows rejected by the store (usually
    the natural-key unique index) are reported back instead of aborting the chunk.
    """
    now = datetime.utcnow()
    payload = [dict(doc, created_at=now, updated_at=now) for doc in documents]
    try:
        result = await Beneficiary.get_pymongo_collection().insert_many(payload, ordered=False)
        return ChunkOutcome(inserted=len(result.inserted_ids))
    except BulkWriteError as exc:
        details = exc.details or {}
        failures: List[Tuple[int, str]] = []
        for error in details.get("writeErrors", []):
            index = error.get("index", 0)
            if error.get("code") == DUPLICATE_KEY_CODE:
                message = f"Duplicate beneficiary already exists: {describe(documents[index])}"
            else:
                message = error.get("errmsg", "Insert failed")
            failures.append((index, message))
        logger.warning("Bulk insert chunk had %d failed rows", len(failures))
        return ChunkOutcome(inserted=details.get("nInserted", 0), failures=failures)


class BeneficiaryService:
    def __init__(self, store: AreaStore = area_store):
        self.store = store

    async def scope_for(self, actor: Actor, base_query: Optional[Predicate] = None):
        """The gated query for `actor` (None = everything, Denied = nothing)."""
        predicate = await actor_predicate(self.store, actor)
        return gate(actor, predicate, base_query)

    async def get_beneficiaries(
        self,
        actor: Actor,
        filters: Optional[BeneficiaryFilters] = None,
        hhid: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Beneficiary], int]:
        """Beneficiaries visible to `actor`, newest first."""
        base = filter_predicate(filters.model_dump() if filters else None)
        if hhid:
            base = all_of(base, FieldEquals("hhid", clean(hhid), case_insensitive=False))
        scope = await self.scope_for(actor, base)
        if isinstance(scope, Denied):
            logger.info("Listing denied for %s: %s", actor.id, scope.reason)
            return [], 0

        query = to_query(scope)
        total = await Beneficiary.find(query).count()
        beneficiaries = (
            await Beneficiary.find(query).sort("-created_at").skip(skip).limit(limit).to_list()
        )
        return beneficiaries, total

    async def get_beneficiary(self, actor: Actor, beneficiary_id: str) -> Beneficiary:
        """A single beneficiary inside the actor's scope; anything else is a 404."""
        if not PydanticObjectId.is_valid(beneficiary_id):
            raise NotFoundError("Beneficiary not found")
        scope = await self.scope_for(actor, FieldEquals("_id", PydanticObjectId(beneficiary_id)))
        if isinstance(scope, Denied):
            raise NotFoundError("Beneficiary not found or you are not authorized to access it")
        beneficiary = await Beneficiary.find_one(to_query(scope))
        if beneficiary is None:
            raise NotFoundError("Beneficiary not found or you are not authorized to access it")
        return beneficiary

    async def allowed_hhids(self, actor: Actor) -> Optional[List[str]]:
        """
        HHIDs of the beneficiaries `actor` may see, or None when unrestricted.
        Used to scope attendance records, which carry no area fields.
        """
        scope = await self.scope_for(actor)
        if scope is None:
            return None
        if isinstance(scope, Denied):
            return []
        collection = Beneficiary.get_pymongo_collection()
        return await collection.distinct("hhid", to_query(scope))

    async def _prepare(self, values: Dict[str, Any], province_changed: bool) -> Dict[str, Any]:
        values = await canonicalize_record(self.store, values)
        if clean(values.get("province")) and (province_changed or not clean(values.get("region"))):
            region = await resolve_region(self.store, values["province"])
            if region:
                values["region"] = region
            elif province_changed:
                # The old region belonged to the old province.
                values["region"] = ""
        return values

    async def find_duplicate(self, values: Dict[str, Any]) -> Optional[Beneficiary]:
        return await Beneficiary.find_one(duplicate_predicate(values).to_mongo())

    async def create_beneficiary(self, actor: Actor, data: BeneficiaryCreate) -> Beneficiary:
        """Canonicalize, scope-check and insert a single beneficiary."""
        values = await self._prepare(data.model_dump(), province_changed=False)
        predicate = await actor_predicate(self.store, actor)
        ensure_can_write(actor, predicate, values, action="add beneficiaries")

        existing = await self.find_duplicate(values)
        if existing:
            raise DuplicateRecordError(
                f"Duplicate beneficiary already exists: {describe(existing.model_dump())}"
            )

        beneficiary = Beneficiary(**values)
        try:
            await beneficiary.insert()
        except DuplicateKeyError:
            raise DuplicateRecordError(
                f"Duplicate beneficiary already exists: {describe(values)}"
            )
        await log_audit(actor, "CREATE", MODULE, str(beneficiary.id), "", _to_json(values))
        return beneficiary

    async def update_beneficiary(
        self, actor: Actor, beneficiary_id: str, data: BeneficiaryUpdate
    ) -> Beneficiary:
        """
        Apply a partial update. The record must be visible to the actor and the
        merged result must still fall inside the actor's areas.
        """
        ensure_assigned(actor, "update beneficiaries")
        beneficiary = await self.get_beneficiary(actor, beneficiary_id)
        # Explicit nulls only make sense for the optional status.
        update_data = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key == "status"
        }
        old_values = beneficiary.model_dump(exclude={"id", "revision_id"})

        province_changed = "province" in update_data and fold(update_data["province"]) != fold(
            beneficiary.province
        )
        merged = await self._prepare({**old_values, **update_data}, province_changed)

        predicate = await actor_predicate(self.store, actor)
        ensure_can_write(actor, predicate, merged, action="move a beneficiary to this area")

        changes = {
            key: value for key, value in merged.items()
            if key in BeneficiaryUpdate.model_fields and value != old_values.get(key)
        }
        if not changes:
            return beneficiary
        changes["updated_at"] = datetime.utcnow()
        try:
            await beneficiary.set(changes)
        except DuplicateKeyError:
            raise DuplicateRecordError(
                f"Another beneficiary already has these details: {describe(merged)}"
            )

        changes.pop("updated_at")
        await log_audit(
            actor,
            "UPDATE",
            MODULE,
            beneficiary_id,
            _to_json({k: old_values.get(k) for k in changes}),
            _to_json(changes),
            field_name=", ".join(sorted(changes)),
        )
        return beneficiary

    async def delete_beneficiary(self, actor: Actor, beneficiary_id: str) -> None:
        ensure_assigned(actor, "delete beneficiaries")
        beneficiary = await self.get_beneficiary(actor, beneficiary_id)
        await beneficiary.delete()
        await log_audit(
            actor,
            "DELETE",
            MODULE,
            beneficiary_id,
            _to_json(beneficiary.model_dump(exclude={"id", "revision_id"})),
            "",
        )

    async def bulk_delete(self, actor: Actor, request: BulkDeleteRequest) -> int:
        """Delete by ids, or by filters when `all` is set; always within scope."""
        if request.all:
            base = filter_predicate(request.filters.model_dump() if request.filters else None)
        elif request.ids:
            base = FieldIn("_id", tuple(request.ids))
        else:
            raise BeneficiaryAPIError("No IDs provided for deletion")

        scope = await self.scope_for(actor, base)
        if isinstance(scope, Denied):
            logger.info("Bulk delete denied for %s: %s", actor.id, scope.reason)
            return 0

        result = await Beneficiary.find(to_query(scope)).delete()
        count = result.deleted_count if result else 0
        await log_audit(
            actor,
            "BULK_DELETE",
            MODULE,
            "multiple",
            "",
            f"Deleted {count} beneficiaries",
            field_name="Multiple Records",
        )
        return count

    async def check_duplicates(self, rows: List[Dict[str, Any]]) -> List[Beneficiary]:
        """Stored beneficiaries matching any of `rows` on the natural key."""
        duplicates: List[Beneficiary] = []
        if not rows:
            return duplicates
        indexes = await ImportIndexes.load(self.store)
        size = max(1, int(duplicate_check_chunk_size))
        for start in range(0, len(rows), size):
            chunk = [row for row in rows[start : start + size] if isinstance(row, dict)]
            prepared = [indexes.names.canonicalize_record(row) for row in chunk]
            predicate = any_of(*(duplicate_predicate(values) for values in prepared))
            if predicate is None:
                continue
            duplicates.extend(await Beneficiary.find(predicate.to_mongo()).to_list())
        return duplicates

    async def bulk_create(self, actor: Actor, rows: List[Any]) -> ImportResult:
        """
        Import many beneficiaries at once. Reference data is loaded once for the
        whole batch; individual row failures never abort the import.
        """
        scope: Optional[Predicate] = None
        if not actor.is_admin:
            scope = await actor_predicate(self.store, actor)
            denied = gate(actor, scope, None)
            if isinstance(denied, Denied):
                raise UnauthorizedAreaError(f"{denied.reason}; you cannot import beneficiaries")

        indexes = await ImportIndexes.load(self.store)
        result = await run_bulk_import(
            rows,
            indexes,
            insert_beneficiaries,
            chunk_size=chunk_size,
            max_errors=max_errors,
            scope=scope,
        )
        logger.info(
            "Bulk import by %s: %d imported, %d failed", actor.id, result.success, result.failed
        )
        await log_audit(
            actor,
            "BULK_CREATE",
            MODULE,
            "multiple",
            "",
            f"Imported {result.success} beneficiaries, {result.failed} failed",
            field_name="Multiple Records",
        )
        return result

    async def bulk_create_from_csv(self, actor: Actor, content: bytes) -> ImportResult:
        try:
            rows = rows_from_csv(content)
        except (ValueError, pd.errors.ParserError) as exc:
            raise BeneficiaryAPIError(f"Could not read CSV file: {exc}")
        return await self.bulk_create(actor, rows)

