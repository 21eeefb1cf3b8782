# beneficiary_api/core/authorization.py
import logging
from typing import Any, Iterable, List, Mapping, Optional

from beneficiary_api.core.canonicalizer import ALL_PLACEHOLDER
from beneficiary_api.core.names import clean, fold, municipality_pattern
from beneficiary_api.core.predicate import (
    FieldEquals,
    FieldMatchesPattern,
    Predicate,
    all_of,
    any_of,
)
from beneficiary_api.core.store import AreaStore
from beneficiary_api.core.types import GEOGRAPHIC_FIELDS, AreaKind, AreaNode

logger = logging.getLogger(__name__)


def normalize_reference(reference: Any) -> str:
    """
    Comparable string for an assigned-area reference. References are usually
    plain strings (id, code or name) but populated objects/dicts show up too.
    """
    if reference is None:
        return ""
    if isinstance(reference, str):
        return reference.strip()
    if isinstance(reference, Mapping):
        for key in ("_id", "id", "code", "name"):
            if reference.get(key):
                return clean(reference[key])
        return ""
    for attr in ("id", "_id"):
        value = getattr(reference, attr, None)
        if value:
            return clean(value)
    return clean(reference)


def normalize_references(references: Optional[Iterable[Any]]) -> List[str]:
    seen = set()
    result = []
    for reference in references or []:
        value = normalize_reference(reference)
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def area_condition(kind: AreaKind, name: Any) -> Predicate:
    """
    Records whose `kind` field names `name`. Municipalities are matched
    format-tolerantly so "City of Bacolod" and "Bacolod City" records both count.
    """
    if kind == AreaKind.MUNICIPALITY:
        return FieldMatchesPattern(kind.record_field, municipality_pattern(name))
    return FieldEquals(kind.record_field, clean(name))


def condition_for(node: AreaNode) -> Predicate:
    """Record condition granted by one assigned node."""
    return area_condition(node.kind, node.name)


def filter_predicate(filters: Optional[Mapping[str, Any]]) -> Optional[Predicate]:
    """AND of the geographic listing filters present; blanks and "all" are ignored."""
    clauses = []
    for field in GEOGRAPHIC_FIELDS:
        value = clean((filters or {}).get(field))
        if value and fold(value) != ALL_PLACEHOLDER:
            clauses.append(area_condition(AreaKind(field), value))
    return all_of(*clauses)


def predicate_for_nodes(nodes: Iterable[AreaNode]) -> Optional[Predicate]:
    seen = set()
    conditions = []
    for node in nodes:
        if node.id in seen:
            continue
        seen.add(node.id)
        conditions.append(condition_for(node))
    return any_of(*conditions)


async def build_authorization_predicate(
    store: AreaStore, assigned_areas: Optional[Iterable[Any]]
) -> Optional[Predicate]:
    """
    Predicate matching records inside any of the assigned areas (and, through the
    denormalized fields, their descendants).

    Returns None when nothing resolves, including when the hierarchy lookup
    fails. Callers decide what None means for a scoped actor; see `core.gate`.
    """
    references = normalize_references(assigned_areas)
    if not references:
        return None

    try:
        nodes = await store.find_by_ids_or_codes_or_names(references)
    except Exception:
        logger.exception("Hierarchy lookup failed for assigned areas %s", references)
        return None

    if not nodes:
        logger.warning("None of the assigned areas %s resolved to a hierarchy node", references)
        return None
    return predicate_for_nodes(nodes)
