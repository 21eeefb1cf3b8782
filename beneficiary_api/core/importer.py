# beneficiary_api/core/importer.py
"""
Bulk beneficiary import pipeline.

Reference data (canonical names, province -> region) is loaded once per batch
into an `ImportIndexes` object and passed to the per-row work, so processing a
row never touches the store. Rows are handled in input order only so that
error messages can cite a 1-based row number.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, Field, ValidationError

from beneficiary_api.core.authorization import area_condition
from beneficiary_api.core.canonicalizer import CanonicalIndex
from beneficiary_api.core.names import clean, fold, municipality_core
from beneficiary_api.core.predicate import And, FieldEquals, Predicate
from beneficiary_api.core.regions import RegionIndex
from beneficiary_api.core.store import AreaStore
from beneficiary_api.core.types import AreaKind
from beneficiary_api.schemas.beneficiary import BeneficiaryCreate

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 500
DEFAULT_MAX_ERRORS = 50

# Natural key of a beneficiary; mirrored by the unique index on the collection.
DUPLICATE_KEY_FIELDS = (
    "first_name",
    "middle_name",
    "last_name",
    "birthdate",
    "barangay",
    "municipality",
    "province",
)


class ImportResult(BaseModel):
    success: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)

    def record_error(self, message: str, max_errors: int) -> None:
        if len(self.errors) < max_errors:
            self.errors.append(message)


@dataclass
class ChunkOutcome:
    """What the store accepted from one chunk; `failures` index into the chunk."""

    inserted: int
    failures: List[Tuple[int, str]] = field(default_factory=list)


InsertChunk = Callable[[List[Dict[str, Any]]], Awaitable[ChunkOutcome]]


@dataclass
class ImportIndexes:
    names: CanonicalIndex
    regions: RegionIndex

    @classmethod
    async def load(cls, store: AreaStore) -> "ImportIndexes":
        provinces = await store.find_by_kind(AreaKind.PROVINCE, expand_parents=True)
        municipalities = await store.find_by_kind(AreaKind.MUNICIPALITY)
        regions = await store.find_by_kind(AreaKind.REGION)
        logger.info(
            "Loaded import indexes: %d regions, %d provinces, %d municipalities",
            len(regions),
            len(provinces),
            len(municipalities),
        )
        return cls(
            names=CanonicalIndex.build(list(provinces) + list(municipalities)),
            regions=RegionIndex.build(provinces, regions),
        )

    def prepare(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Canonicalize names and fill a missing region from the province."""
        values = self.names.canonicalize_record(row)
        if clean(values.get("province")) and not clean(values.get("region")):
            region = self.regions.resolve(values["province"])
            if region:
                values["region"] = region
        return values


def duplicate_key(values: Mapping[str, Any]) -> Tuple[str, ...]:
    """In-batch natural key; the municipality counts by its core, as in `duplicate_predicate`."""
    return tuple(
        fold(municipality_core(values.get(f)))
        if f == AreaKind.MUNICIPALITY.value
        else fold(values.get(f))
        for f in DUPLICATE_KEY_FIELDS
    )


def duplicate_predicate(values: Mapping[str, Any]) -> Predicate:
    """
    Stored records sharing the natural key of `values`. Names compare
    case-insensitively and the municipality by its core, so this catches a
    little more than the unique index does.
    """
    clauses = []
    for key in DUPLICATE_KEY_FIELDS:
        if key == AreaKind.MUNICIPALITY.value:
            clauses.append(area_condition(AreaKind.MUNICIPALITY, values.get(key)))
        else:
            clauses.append(FieldEquals(key, clean(values.get(key))))
    return And(tuple(clauses))


def describe(values: Mapping[str, Any]) -> str:
    name = f"{clean(values.get('first_name'))} {clean(values.get('last_name'))}".strip()
    return f"{name} (HHID: {clean(values.get('hhid')) or 'unknown'})"


def validation_messages(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error.get("loc", ()))
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return ", ".join(parts)


async def run_bulk_import(
    rows: Sequence[Any],
    indexes: ImportIndexes,
    insert_chunk: InsertChunk,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_errors: int = DEFAULT_MAX_ERRORS,
    scope: Optional[Predicate] = None,
    schema: Type[BaseModel] = BeneficiaryCreate,
) -> ImportResult:
    """
    Validate, canonicalize and insert `rows` chunk by chunk.

    Args:
        rows: Raw row mappings, in file order.
        indexes: Reference maps loaded once for this batch.
        insert_chunk: Writes one chunk without aborting on individual failures.
        chunk_size: Rows per write.
        max_errors: Cap on the number of error messages kept.
        scope: When given, rows whose area falls outside it are rejected.
        schema: Pydantic model each prepared row must satisfy.

    Returns:
        ImportResult where `success + failed == len(rows)`.
    """
    result = ImportResult()
    seen_keys = set()
    chunk_size = max(1, int(chunk_size))

    for start in range(0, len(rows), chunk_size):
        chunk = rows[start : start + chunk_size]
        valid: List[Dict[str, Any]] = []
        row_numbers: List[int] = []

        for offset, raw in enumerate(chunk):
            row_number = start + offset + 1
            if not isinstance(raw, Mapping):
                result.failed += 1
                result.record_error(f"Row {row_number}: expected an object", max_errors)
                continue

            try:
                document = schema.model_validate(indexes.prepare(raw))
            except ValidationError as exc:
                result.failed += 1
                result.record_error(f"Row {row_number}: {validation_messages(exc)}", max_errors)
                continue
            values = document.model_dump()

            if scope is not None and not scope.evaluate(values):
                result.failed += 1
                result.record_error(
                    f"Row {row_number}: {describe(values)} is outside your assigned areas",
                    max_errors,
                )
                continue

            key = duplicate_key(values)
            if key in seen_keys:
                result.failed += 1
                result.record_error(
                    f"Row {row_number}: Duplicate beneficiary in this import: {describe(values)}",
                    max_errors,
                )
                continue
            seen_keys.add(key)
            valid.append(values)
            row_numbers.append(row_number)

        if not valid:
            continue

        outcome = await insert_chunk(valid)
        result.success += outcome.inserted
        result.failed += len(valid) - outcome.inserted
        for index, message in outcome.failures:
            result.record_error(f"Row {row_numbers[index]}: {message}", max_errors)
        logger.debug(
            "Chunk at row %d: %d inserted, %d failed",
            start + 1,
            outcome.inserted,
            len(valid) - outcome.inserted,
        )

    return result
