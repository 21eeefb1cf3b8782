"""
Area authorization tests.

Goal: an assignment expands into a predicate that covers the assigned
subtree through the denormalized fields, excludes siblings, and degrades to
"no predicate" (never an exception) when nothing resolves.
"""
import asyncio

from beneficiary_api.core.authorization import (
    build_authorization_predicate,
    filter_predicate,
    normalize_references,
)
from beneficiary_api.core.predicate import FieldEquals, FieldMatchesPattern


def run(coro):
    return asyncio.run(coro)


def test_province_assignment_covers_its_municipalities_only(store):
    predicate = run(build_authorization_predicate(store, ["negocc"]))

    inside = {"province": "Negros Occidental", "municipality": "City of Bacolod"}
    sibling = {"province": "Iloilo", "municipality": "Oton"}
    assert predicate.evaluate(inside)
    assert predicate.evaluate({"province": "NEGROS OCCIDENTAL", "barangay": "Guimbala-on"})
    assert not predicate.evaluate(sibling)
    assert predicate.to_mongo() == {
        "province": {"$regex": "^NEGROS OCCIDENTAL$", "$options": "i"}
    }


def test_references_by_code_name_or_object_resolve_alike(store):
    by_id = run(build_authorization_predicate(store, ["negocc"]))
    assert run(build_authorization_predicate(store, ["0604500000"])) == by_id
    assert run(build_authorization_predicate(store, ["NEGROS OCCIDENTAL"])) == by_id
    assert run(build_authorization_predicate(store, [{"_id": "negocc", "name": "x"}])) == by_id
    # The same node referenced twice yields a single condition.
    assert run(build_authorization_predicate(store, ["negocc", "0604500000"])) == by_id


def test_municipality_assignment_is_format_tolerant(store):
    predicate = run(build_authorization_predicate(store, ["bacolod"]))
    assert isinstance(predicate, FieldMatchesPattern)
    assert predicate.evaluate({"municipality": "City of Bacolod"})
    assert predicate.evaluate({"municipality": "bacolod"})
    assert not predicate.evaluate({"municipality": "City of Silay"})


def test_mixed_assignment_is_a_union(store):
    predicate = run(build_authorization_predicate(store, ["iloilo", "mandalagan"]))
    assert predicate.evaluate({"province": "ILOILO", "barangay": "Poblacion"})
    assert predicate.evaluate({"province": "NEGROS OCCIDENTAL", "barangay": "Mandalagan"})
    assert not predicate.evaluate({"province": "NEGROS OCCIDENTAL", "barangay": "Guimbala-on"})
    assert set(predicate.to_mongo()) == {"$or"}


def test_empty_missing_or_unresolvable_assignment_yields_none(store):
    assert run(build_authorization_predicate(store, [])) is None
    assert run(build_authorization_predicate(store, None)) is None
    assert run(build_authorization_predicate(store, ["", "  "])) is None
    assert run(build_authorization_predicate(store, ["does-not-exist"])) is None


def test_store_failure_is_absorbed(unreachable_store):
    assert run(build_authorization_predicate(unreachable_store, ["negocc"])) is None


def test_normalize_references():
    class Ref:
        id = "abc"

    assert normalize_references([" a ", "a", {"code": "0600000000"}, Ref(), None]) == [
        "a",
        "0600000000",
        "abc",
    ]


def test_filter_predicate_ignores_all_and_blanks():
    assert filter_predicate({"region": "all", "province": "", "barangay": None}) is None
    assert filter_predicate(None) is None

    predicate = filter_predicate({"province": "ALL", "municipality": "Bacolod"})
    assert isinstance(predicate, FieldMatchesPattern)
    assert predicate.evaluate({"municipality": "BACOLOD CITY"})

    both = filter_predicate({"region": "Region VI", "barangay": "Poblacion"})
    assert both.evaluate({"region": "REGION VI", "barangay": "POBLACION"})
    assert not both.evaluate({"region": "REGION VI", "barangay": "Mandalagan"})
    assert FieldEquals("region", "Region VI") in both.clauses
