# beneficiary_api/core/predicate.py
"""
Small composable query predicate.

Predicates are built once by the core (authorization scope, listing filters,
duplicate checks) and translated to a MongoDB filter only at the storage
boundary via `to_mongo()`. `evaluate()` runs the same predicate against an
in-memory record, which is how pending writes are re-validated.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from beneficiary_api.core import names


class Predicate:
    def to_mongo(self) -> Dict[str, Any]:
        raise NotImplementedError

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "Predicate":
        return all_of(self, other)

    def __or__(self, other: "Predicate") -> "Predicate":
        return any_of(self, other)


@dataclass(frozen=True)
class FieldEquals(Predicate):
    """Exact match; case-insensitive for strings unless told otherwise."""

    field: str
    value: Any
    case_insensitive: bool = True

    def _as_pattern(self) -> bool:
        return self.case_insensitive and isinstance(self.value, str)

    def to_mongo(self) -> Dict[str, Any]:
        if self._as_pattern():
            return {
                self.field: {"$regex": names.exact_pattern(self.value), "$options": "i"}
            }
        return {self.field: self.value}

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        if self._as_pattern():
            return names.matches(names.exact_pattern(self.value), record.get(self.field))
        return record.get(self.field) == self.value


@dataclass(frozen=True)
class FieldMatchesPattern(Predicate):
    """Case-insensitive pattern match; the pattern must come from `core.names`."""

    field: str
    pattern: str

    def to_mongo(self) -> Dict[str, Any]:
        return {self.field: {"$regex": self.pattern, "$options": "i"}}

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        return names.matches(self.pattern, record.get(self.field))


@dataclass(frozen=True)
class FieldIn(Predicate):
    field: str
    values: Tuple[Any, ...]

    def to_mongo(self) -> Dict[str, Any]:
        return {self.field: {"$in": list(self.values)}}

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) in self.values


@dataclass(frozen=True)
class And(Predicate):
    clauses: Tuple[Predicate, ...]

    def to_mongo(self) -> Dict[str, Any]:
        return {"$and": [clause.to_mongo() for clause in self.clauses]}

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        return all(clause.evaluate(record) for clause in self.clauses)


@dataclass(frozen=True)
class Or(Predicate):
    clauses: Tuple[Predicate, ...]

    def to_mongo(self) -> Dict[str, Any]:
        return {"$or": [clause.to_mongo() for clause in self.clauses]}

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        return any(clause.evaluate(record) for clause in self.clauses)


def all_of(*clauses: Optional[Predicate]) -> Optional[Predicate]:
    """AND the non-None clauses; None when there is nothing to AND."""
    kept = tuple(c for c in clauses if c is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return And(kept)


def any_of(*clauses: Optional[Predicate]) -> Optional[Predicate]:
    kept = tuple(c for c in clauses if c is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return Or(kept)


def to_query(predicate: Optional[Predicate]) -> Dict[str, Any]:
    """MongoDB filter for `predicate`; None matches the whole collection."""
    return predicate.to_mongo() if predicate is not None else {}
