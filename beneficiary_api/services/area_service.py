# beneficiary_api/services/area_service.py
import logging
from datetime import datetime
from typing import List, Dict, Optional, Any, Tuple
from beanie import PydanticObjectId
from bson import ObjectId

from beneficiary_api.core.errors import DuplicateRecordError, HierarchyError, NotFoundError
from beneficiary_api.core.types import AreaKind, validate_parent_kind
from beneficiary_api.models.area import Area
from beneficiary_api.schemas.area import AreaCreate, AreaUpdate
from beneficiary_api.services.psgc import region_code_of

logger = logging.getLogger(__name__)


class AreaService:
    async def get_areas(
        self,
        kind: Optional[AreaKind] = None,
        parent_id: Optional[str] = None,
        parent_code: Optional[str] = None,
        code: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Area], int]:
        """Fetches areas filtered by type/parent/code, ordered by PSGC code."""
        query: Dict[str, Any] = {}
        if kind:
            query["type"] = kind.value
        if code:
            query["code"] = code

        parent_conditions = []
        if parent_code:
            parent_conditions.append({"parent_code": parent_code})
        if parent_id == "null":
            parent_conditions.append({"parent_id": None})
        elif parent_id:
            parent_conditions.append({"parent_id": parent_id})
        if parent_conditions:
            query["$or"] = parent_conditions

        cursor = Area.find(query)
        total = await cursor.count()
        areas = await Area.find(query).sort("+code").skip(skip).limit(limit).to_list()
        return areas, total

    async def get_area_by_id(self, area_id: str) -> Optional[Area]:
        """Fetches a single area by its ID."""
        if not area_id or not ObjectId.is_valid(area_id):
            return None
        return await Area.get(PydanticObjectId(area_id))

    async def get_area_by_code(self, code: str) -> Optional[Area]:
        return await Area.find_one({"code": code})

    async def _check_code_free(self, code: Optional[str], area_id: Optional[str] = None):
        if not code:
            return
        existing = await self.get_area_by_code(code)
        if existing and str(existing.id) != area_id:
            raise DuplicateRecordError(
                f"Area code {code} is already used by {existing.name}"
            )

    async def _check_parent(
        self, kind: AreaKind, parent_id: Optional[str], area_id: Optional[str] = None
    ) -> None:
        """
        Parent must exist, sit exactly one level up (municipalities may hang off a
        region), and must not be the area itself or one of its descendants.
        """
        if not parent_id:
            return
        parent = await self.get_area_by_id(parent_id)
        if not parent:
            raise HierarchyError(f"Parent area with ID {parent_id} not found.")
        if not validate_parent_kind(kind, parent.type):
            raise HierarchyError(
                f"A {kind.value} cannot be placed under a {parent.type.value}."
            )
        if area_id:
            ancestors = await self.get_ancestor_area_ids(parent_id)
            if parent_id == area_id or area_id in ancestors:
                raise HierarchyError("An area cannot be placed under itself.")

    async def create_area(self, area_create: AreaCreate) -> Area:
        """Creates a new area after validating its place in the hierarchy."""
        kind = area_create.type
        if kind == AreaKind.REGION and (area_create.parent_id or area_create.parent_code):
            raise HierarchyError("Regions cannot have a parent area.")
        if kind != AreaKind.REGION and not (area_create.parent_id or area_create.parent_code):
            raise HierarchyError(f"A {kind.value} needs a parent area.")

        await self._check_code_free(area_create.code)
        await self._check_parent(kind, area_create.parent_id)

        new_area = Area(**area_create.model_dump())
        await new_area.insert()
        logger.info("Created %s %s (%s)", kind.value, new_area.name, new_area.code)
        return new_area

    async def update_area(self, area_id: str, area_update: AreaUpdate) -> Optional[Area]:
        """Updates an existing area; parent changes are re-validated."""
        area = await self.get_area_by_id(area_id)
        if not area:
            return None

        update_data = area_update.model_dump(exclude_unset=True)
        if "code" in update_data:
            await self._check_code_free(update_data["code"], area_id)
        if "parent_id" in update_data:
            if update_data["parent_id"] in ("", "null"):
                update_data["parent_id"] = None
            if update_data["parent_id"] is None and area.type != AreaKind.REGION:
                if not (update_data.get("parent_code") or area.parent_code):
                    raise HierarchyError(f"A {area.type.value} needs a parent area.")
            await self._check_parent(area.type, update_data["parent_id"], area_id)

        update_data["updated_at"] = datetime.utcnow()
        await area.set(update_data)
        return area

    async def delete_area(self, area_id: str) -> Area:
        """Deletes an area that has no children."""
        area = await self.get_area_by_id(area_id)
        if not area:
            raise NotFoundError("Area not found")
        children = await self.get_children_areas(area_id)
        if children:
            raise HierarchyError("Cannot delete an area that still has child areas.")
        await area.delete()
        return area

    async def get_children_areas(self, parent_id: str) -> List[Area]:
        """Fetches immediate children of a given parent ID."""
        return await Area.find({"parent_id": parent_id}).sort("+code").to_list()

    async def get_ancestor_area_ids(self, area_id: str) -> List[str]:
        """
        Fetches all ancestor area IDs for a given area ID, up to the region.
        Stops if the chain loops back on itself.
        """
        ancestors: List[str] = []
        current = await self.get_area_by_id(area_id)
        while current and current.parent_id and current.parent_id not in ancestors:
            ancestors.append(current.parent_id)
            current = await self.get_area_by_id(current.parent_id)
        return ancestors[::-1]  # Highest ancestor first

    # --- PSGC import support ---

    async def upsert_by_code(
        self, code: str, name: str, kind: AreaKind, parent_code: Optional[str]
    ) -> Area:
        """Insert or refresh the area carrying `code`."""
        area = await self.get_area_by_code(code)
        if area:
            await area.set(
                {
                    "name": name,
                    "type": kind,
                    "parent_code": parent_code,
                    "updated_at": datetime.utcnow(),
                }
            )
            return area
        area = Area(name=name, code=code, type=kind, parent_code=parent_code)
        await area.insert()
        return area

    async def link_parents(self) -> int:
        """
        Set parent_id from parent_code for every area that has one. Cities whose
        derived province does not exist are attached to their region instead.
        """
        areas = await Area.find({"parent_code": {"$nin": [None, ""]}}).to_list()
        ids_by_code = {
            a.code: (str(a.id), a.type) for a in await Area.find_all().to_list() if a.code
        }

        linked = 0
        for area in areas:
            parent = ids_by_code.get(area.parent_code)
            if parent is None and area.type == AreaKind.MUNICIPALITY and area.code:
                parent = ids_by_code.get(region_code_of(area.code))
            if parent is None:
                logger.warning("No parent %s found for %s (%s)", area.parent_code, area.name, area.code)
                continue
            parent_id, parent_kind = parent
            if not validate_parent_kind(area.type, parent_kind):
                logger.warning(
                    "Skipping %s (%s): parent %s is a %s",
                    area.name, area.code, area.parent_code, parent_kind.value,
                )
                continue
            if area.parent_id != parent_id:
                await area.set({"parent_id": parent_id})
            linked += 1
            if linked % 500 == 0:
                logger.info("Linked %d parents...", linked)
        return linked
