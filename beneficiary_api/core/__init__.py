# beneficiary_api/core/__init__.py
# Area-scoped access filtering and geographic name reconciliation.
# Nothing in this package talks to MongoDB directly; storage goes through AreaStore.
from beneficiary_api.core.authorization import build_authorization_predicate
from beneficiary_api.core.canonicalizer import canonicalize, canonicalize_record
from beneficiary_api.core.gate import Actor, Denied, ensure_can_write, gate
from beneficiary_api.core.regions import resolve_region
from beneficiary_api.core.types import AreaKind, AreaNode

__all__ = [
    "Actor",
    "AreaKind",
    "AreaNode",
    "Denied",
    "build_authorization_predicate",
    "canonicalize",
    "canonicalize_record",
    "ensure_can_write",
    "gate",
    "resolve_region",
]
