# beneficiary_api/core/gate.py
"""
Record access gate.

Admins see and mutate everything. Everyone else is confined to the predicate
built from their assigned areas; an empty or unresolvable assignment denies
everything rather than falling back to the whole collection.
"""
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from beneficiary_api.core.authorization import build_authorization_predicate
from beneficiary_api.core.errors import UnauthorizedAreaError
from beneficiary_api.core.predicate import Predicate, all_of
from beneficiary_api.core.store import AreaStore
from beneficiary_api.core.types import GEOGRAPHIC_FIELDS

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Actor:
    id: str
    name: str
    role: str
    assigned_areas: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


@dataclass(frozen=True)
class Denied:
    reason: str


Scope = Union[Optional[Predicate], Denied]


async def actor_predicate(store: AreaStore, actor: Actor) -> Optional[Predicate]:
    """Authorization predicate for a non-admin actor (None for admins)."""
    if actor.is_admin:
        return None
    return await build_authorization_predicate(store, actor.assigned_areas)


def gate(actor: Actor, predicate: Optional[Predicate], base_query: Optional[Predicate]) -> Scope:
    """
    Compose the final query for `actor`.

    Returns the predicate to run (None meaning "no restriction", admins only)
    or a `Denied` marker the caller turns into an empty result or a 403.
    """
    if actor.is_admin:
        return base_query
    if not actor.assigned_areas:
        return Denied("You are not assigned to any areas")
    if predicate is None:
        return Denied("None of your assigned areas could be resolved")
    return all_of(predicate, base_query)


def ensure_assigned(actor: Actor, action: str = "modify beneficiaries") -> None:
    """A non-admin without any assigned area may not write anything."""
    if not actor.is_admin and not actor.assigned_areas:
        raise UnauthorizedAreaError(
            f"You are not assigned to any areas and cannot {action}"
        )


def ensure_can_write(
    actor: Actor,
    predicate: Optional[Predicate],
    values: Mapping[str, Any],
    action: str = "modify beneficiaries",
) -> None:
    """
    Reject a pending write whose geographic fields fall outside the actor's
    areas. `values` is the record as it would be stored.
    """
    ensure_assigned(actor, action)
    if actor.is_admin:
        return
    if predicate is None:
        raise UnauthorizedAreaError(
            f"Your assigned areas could not be resolved; you cannot {action}"
        )
    if not predicate.evaluate(values):
        location = ", ".join(
            str(values.get(f)) for f in reversed(GEOGRAPHIC_FIELDS) if values.get(f)
        )
        raise UnauthorizedAreaError(
            f"You are not authorized to {action} in this area ({location or 'no area given'})"
        )


def can_access(actor: Actor, predicate: Optional[Predicate], values: Mapping[str, Any]) -> bool:
    """In-memory visibility check for a single record."""
    scope = gate(actor, predicate, None)
    if isinstance(scope, Denied):
        return False
    return scope is None or scope.evaluate(values)
