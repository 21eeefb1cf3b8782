"""
Bulk import tests.

Goal: every input row is accounted for exactly once (inserted or reported
with its 1-based row number), names and regions come out the same as the
single-record path, and reference data is loaded once per batch.
"""
import asyncio

from beneficiary_api.core.authorization import build_authorization_predicate
from beneficiary_api.core.importer import (
    ChunkOutcome,
    ImportIndexes,
    duplicate_key,
    duplicate_predicate,
    run_bulk_import,
)
from beneficiary_api.core.regions import resolve_region


def run(coro):
    return asyncio.run(coro)


class RecordingInsert:
    """Stands in for the collection write; `fail_at` are chunk offsets the store rejects."""

    def __init__(self, fail_at=()):
        self.fail_at = fail_at
        self.chunks = []

    async def __call__(self, documents):
        self.chunks.append(documents)
        failures = [
            (index, "Duplicate beneficiary already exists")
            for index in self.fail_at
            if index < len(documents)
        ]
        return ChunkOutcome(inserted=len(documents) - len(failures), failures=failures)

    @property
    def documents(self):
        return [doc for chunk in self.chunks for doc in chunk]


def _import(store, rows, **kwargs):
    indexes = run(ImportIndexes.load(store))
    insert = RecordingInsert(kwargs.pop("fail_at", ()))
    result = run(run_bulk_import(rows, indexes, insert, **kwargs))
    return result, insert


def test_indexes_load_reference_data_once(store, make_row):
    rows = [make_row(first_name=f"Person {i}") for i in range(6)]
    indexes = run(ImportIndexes.load(store))
    loads = list(store.calls)

    run(run_bulk_import(rows, indexes, RecordingInsert(), chunk_size=2))

    assert store.calls == loads
    assert set(loads) == {"find_by_kind"}


def test_missing_regions_match_single_record_lookup(store, make_row):
    provinces = ["negros occidental", "Cebu", "City of Bacolod", "ILOILO", "Atlantis"]
    rows = [
        make_row(first_name=f"Person {i}", province=province)
        for i, province in enumerate(provinces)
    ]

    result, insert = _import(store, rows)

    assert result.success == len(rows)
    for province, document in zip(provinces, insert.documents):
        expected = run(resolve_region(store, province))
        assert (document["region"] or None) == expected, province


def test_explicit_region_is_kept(store, make_row):
    _, insert = _import(store, [make_row(region="Custom Region")])
    assert insert.documents[0]["region"] == "Custom Region"


def test_names_are_canonicalized(store, make_row):
    _, insert = _import(store, [make_row(municipality="City of Bacolod")])
    document = insert.documents[0]
    assert document["province"] == "NEGROS OCCIDENTAL"
    assert document["municipality"] == "BACOLOD CITY"
    assert document["barangay"] == "Mandalagan"


def test_duplicates_within_a_batch_are_reported_by_row(store, make_row):
    rows = [
        make_row(),
        make_row(first_name="MARIA", municipality="City of Bacolod", hhid="other"),
        make_row(first_name="Jose"),
    ]

    result, insert = _import(store, rows)

    assert (result.success, result.failed) == (2, 1)
    assert len(insert.documents) == 2
    assert result.errors == [
        "Row 2: Duplicate beneficiary in this import: MARIA Dela Cruz (HHID: other)"
    ]


def test_invalid_rows_are_reported_and_skipped(store, make_row):
    rows = [make_row(), make_row(first_name="", pkno="PK-2"), "not a row"]

    result, _ = _import(store, rows)

    assert (result.success, result.failed) == (1, 2)
    assert result.errors[0].startswith("Row 2: first_name")
    assert result.errors[1] == "Row 3: expected an object"


def test_rows_are_written_in_chunks(store, make_row):
    rows = [make_row(first_name=f"Person {i}") for i in range(5)]

    result, insert = _import(store, rows, chunk_size=2)

    assert result.success == 5
    assert [len(chunk) for chunk in insert.chunks] == [2, 2, 1]


def test_error_messages_are_capped_but_counted(store, make_row):
    rows = [make_row(first_name="") for _ in range(5)]

    result, insert = _import(store, rows, max_errors=2)

    assert result.failed == 5
    assert len(result.errors) == 2
    assert insert.chunks == []


def test_rows_outside_scope_are_rejected(store, make_row):
    scope = run(build_authorization_predicate(store, ["negocc"]))
    rows = [
        make_row(),
        make_row(province="Iloilo", municipality="Oton", barangay="Poblacion"),
    ]

    result, insert = _import(store, rows, scope=scope)

    assert (result.success, result.failed) == (1, 1)
    assert insert.documents[0]["province"] == "NEGROS OCCIDENTAL"
    assert result.errors[0].startswith("Row 2: ")
    assert "outside your assigned areas" in result.errors[0]


def test_store_rejections_map_back_to_input_rows(store, make_row):
    rows = [make_row(first_name=f"Person {i}") for i in range(3)]

    result, _ = _import(store, rows, chunk_size=2, fail_at=(1,))

    assert (result.success, result.failed) == (2, 1)
    assert result.errors == ["Row 2: Duplicate beneficiary already exists"]
    assert result.success + result.failed == len(rows)


def test_duplicate_predicate_matches_across_name_styles(make_row):
    stored = make_row(province="NEGROS OCCIDENTAL", municipality="BACOLOD CITY")
    candidate = make_row(first_name="maria", municipality="City of Bacolod")

    assert duplicate_predicate(candidate).evaluate(stored)
    assert not duplicate_predicate(make_row(birthdate="1990-01-01")).evaluate(stored)
    assert duplicate_key(make_row()) == duplicate_key(make_row(first_name=" MARIA "))


def test_in_batch_duplicates_compare_municipality_by_core(store, make_row):
    first = make_row(municipality="Atlantis City")
    second = make_row(municipality="City of Atlantis", hhid="other")
    assert duplicate_key(first) == duplicate_key(second)
    assert duplicate_predicate(second).evaluate(first)

    result, insert = _import(store, [first, second])

    assert (result.success, result.failed) == (1, 1)
    assert result.errors[0].startswith("Row 2: Duplicate beneficiary in this import")
