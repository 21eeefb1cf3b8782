# beneficiary_api/core/store.py
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from beneficiary_api.core.types import AreaKind, AreaNode


class AreaStore(ABC):
    """
    Read-only view of the geographic hierarchy consumed by the core.

    Every lookup may be asked to expand the parent chain, in which case the
    returned nodes carry their `parent` (and the parent's parent, up to the region).
    """

    @abstractmethod
    async def find_by_kind_and_name_pattern(
        self, kind: AreaKind, pattern: str, expand_parents: bool = False
    ) -> List[AreaNode]:
        """Nodes of `kind` whose name matches `pattern` case-insensitively."""

    @abstractmethod
    async def find_by_ids_or_codes_or_names(
        self, references: Iterable[str], expand_parents: bool = False
    ) -> List[AreaNode]:
        """Nodes whose id, code, or exact name equals any of `references`, in one lookup."""

    @abstractmethod
    async def find_by_code(
        self, code: str, kind: Optional[AreaKind] = None
    ) -> Optional[AreaNode]:
        """The node carrying `code`, optionally restricted to `kind`."""

    @abstractmethod
    async def find_by_kind(
        self, kind: AreaKind, expand_parents: bool = False
    ) -> List[AreaNode]:
        """Every node of `kind`; used to pre-load bulk import indexes."""
