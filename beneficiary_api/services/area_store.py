# beneficiary_api/services/area_store.py
from typing import Dict, Iterable, List, Optional
from beanie import PydanticObjectId
from bson import ObjectId

from beneficiary_api.core.store import AreaStore
from beneficiary_api.core.types import AreaKind, AreaNode
from beneficiary_api.models.area import Area

# Region is at most three hops above a barangay.
MAX_PARENT_DEPTH = 3


def object_ids(values: Iterable[str]) -> List[PydanticObjectId]:
    return [PydanticObjectId(v) for v in values if v and ObjectId.is_valid(v)]


class BeanieAreaStore(AreaStore):
    """AreaStore backed by the `areas` collection."""

    async def _expand(self, areas: List[Area]) -> List[AreaNode]:
        """Attach parent chains, fetching each level of parents in one query."""
        by_id: Dict[str, Area] = {str(area.id): area for area in areas}
        frontier = {area.parent_id for area in areas if area.parent_id}

        for _ in range(MAX_PARENT_DEPTH):
            missing = object_ids(pid for pid in frontier if pid not in by_id)
            if not missing:
                break
            parents = await Area.find({"_id": {"$in": missing}}).to_list()
            for parent in parents:
                by_id[str(parent.id)] = parent
            frontier = {p.parent_id for p in parents if p.parent_id}

        def build(area: Area, depth: int = 0) -> AreaNode:
            parent = by_id.get(area.parent_id) if area.parent_id else None
            if parent is None or depth >= MAX_PARENT_DEPTH:
                return area.to_node()
            return area.to_node(build(parent, depth + 1))

        return [build(area) for area in areas]

    async def _nodes(self, areas: List[Area], expand_parents: bool) -> List[AreaNode]:
        if expand_parents:
            return await self._expand(areas)
        return [area.to_node() for area in areas]

    async def find_by_kind_and_name_pattern(
        self, kind: AreaKind, pattern: str, expand_parents: bool = False
    ) -> List[AreaNode]:
        areas = await Area.find(
            {"type": kind.value, "name": {"$regex": pattern, "$options": "i"}}
        ).to_list()
        return await self._nodes(areas, expand_parents)

    async def find_by_ids_or_codes_or_names(
        self, references: Iterable[str], expand_parents: bool = False
    ) -> List[AreaNode]:
        references = list(references)
        if not references:
            return []
        conditions = [
            {"code": {"$in": references}},
            {"name": {"$in": references}},
        ]
        ids = object_ids(references)
        if ids:
            conditions.append({"_id": {"$in": ids}})
        areas = await Area.find({"$or": conditions}).to_list()
        return await self._nodes(areas, expand_parents)

    async def find_by_code(
        self, code: str, kind: Optional[AreaKind] = None
    ) -> Optional[AreaNode]:
        query = {"code": code}
        if kind is not None:
            query["type"] = kind.value
        area = await Area.find_one(query)
        return area.to_node() if area else None

    async def find_by_kind(
        self, kind: AreaKind, expand_parents: bool = False
    ) -> List[AreaNode]:
        areas = await Area.find({"type": kind.value}).to_list()
        return await self._nodes(areas, expand_parents)


area_store = BeanieAreaStore()
