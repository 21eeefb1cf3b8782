# beneficiary_api/core/canonicalizer.py
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from beneficiary_api.core.names import (
    clean,
    exact_pattern,
    fold,
    municipality_core,
    municipality_keys,
    municipality_pattern,
)
from beneficiary_api.core.store import AreaStore
from beneficiary_api.core.types import GEOGRAPHIC_FIELDS, AreaKind, AreaNode

logger = logging.getLogger(__name__)

# Listing/filter placeholder meaning "no value selected".
ALL_PLACEHOLDER = "ALL"


def match_order(node: AreaNode):
    # Coded (PSGC) nodes before hand-made ones.
    return (not node.code, node.code or "", node.name)


def pick_best_match(candidates: List[AreaNode], value: str) -> Optional[AreaNode]:
    """
    Choose among nodes matching `value`: an exact (case-insensitive) name wins,
    then the lowest code. Keeps canonicalization deterministic and idempotent.
    """
    if not candidates:
        return None
    wanted = fold(value)
    ordered = sorted(candidates, key=match_order)
    for node in ordered:
        if fold(node.name) == wanted:
            return node
    return ordered[0]


def name_pattern(value: str, kind: AreaKind) -> str:
    """The matching rule the hierarchy is queried with for a name of `kind`."""
    if kind == AreaKind.MUNICIPALITY:
        return municipality_pattern(value)
    return exact_pattern(value)


async def canonicalize(store: AreaStore, raw_name: Any, kind: AreaKind) -> str:
    """
    Return the canonical hierarchy name for `raw_name`, or the trimmed input when
    no node of `kind` matches. Unmatched names are legitimate data, not errors.
    """
    value = clean(raw_name)
    if not value:
        return value
    kind = AreaKind(kind)

    candidates = await store.find_by_kind_and_name_pattern(kind, name_pattern(value, kind))
    best = pick_best_match(candidates, value)
    return best.name if best else value


def _wants_canonical(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip()) and fold(value) != ALL_PLACEHOLDER


async def canonicalize_record(store: AreaStore, values: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of `values` with every present geographic field canonicalized."""
    result = dict(values)
    for field in GEOGRAPHIC_FIELDS:
        if _wants_canonical(result.get(field)):
            result[field] = await canonicalize(store, result[field], AreaKind(field))
    return result


class CanonicalIndex:
    """
    In-memory canonicalizer for bulk imports.

    Built once per batch from pre-loaded province and municipality nodes so each
    row is a pair of dict lookups instead of a round trip to the store.
    """

    def __init__(self, provinces: Dict[str, str], municipalities: Dict[str, str]):
        self.provinces = provinces
        self.municipalities = municipalities

    @classmethod
    def build(cls, nodes: Iterable[AreaNode]) -> "CanonicalIndex":
        provinces: Dict[str, str] = {}
        municipalities: Dict[str, str] = {}
        ordered = sorted(nodes, key=match_order)

        for node in ordered:
            if node.kind == AreaKind.PROVINCE:
                provinces.setdefault(fold(node.name), node.name)
            elif node.kind == AreaKind.MUNICIPALITY:
                municipalities.setdefault(fold(node.name), node.name)

        # Affix variants only fill gaps left by real names.
        for node in ordered:
            if node.kind == AreaKind.MUNICIPALITY:
                for key in municipality_keys(node.name):
                    municipalities.setdefault(key, node.name)

        logger.debug(
            "Canonical index built: %d provinces, %d municipality keys",
            len(provinces),
            len(municipalities),
        )
        return cls(provinces, municipalities)

    def canonicalize(self, raw_name: Any, kind: AreaKind) -> str:
        value = clean(raw_name)
        if not value:
            return value
        kind = AreaKind(kind)

        if kind == AreaKind.PROVINCE:
            return self.provinces.get(fold(value), value)
        if kind == AreaKind.MUNICIPALITY:
            hit = self.municipalities.get(fold(value))
            if hit is None:
                hit = self.municipalities.get(fold(municipality_core(value)))
            return hit or value
        return value

    def canonicalize_record(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        result = dict(values)
        for field in (AreaKind.PROVINCE.value, AreaKind.MUNICIPALITY.value):
            if _wants_canonical(result.get(field)):
                result[field] = self.canonicalize(result[field], AreaKind(field))
        return result
