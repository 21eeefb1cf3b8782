# beneficiary_api/core/regions.py
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from beneficiary_api.core.canonicalizer import match_order, name_pattern, pick_best_match
from beneficiary_api.core.names import clean, fold
from beneficiary_api.core.store import AreaStore
from beneficiary_api.core.types import AreaKind, AreaNode

logger = logging.getLogger(__name__)

# Provincial-equivalent cities that are not province nodes in the hierarchy.
REGION_OVERRIDES: Dict[str, str] = {
    "CITY OF BACOLOD": "NEGROS ISLAND REGION (NIR)",
}


def region_override(province_name: Any) -> Optional[str]:
    return REGION_OVERRIDES.get(fold(province_name))


def region_of_province(
    province: AreaNode, regions_by_code: Mapping[str, str]
) -> Optional[str]:
    """
    Region name for a province node: the expanded parent when it is a region,
    otherwise the region carrying the province's `parent_code`.
    """
    parent = province.parent
    if parent is not None and parent.kind == AreaKind.REGION and parent.name:
        return parent.name
    if province.parent_code:
        return regions_by_code.get(province.parent_code)
    return None


async def resolve_region(store: AreaStore, province_name: Any) -> Optional[str]:
    """Walk up from a (raw or canonical) province name to its region name."""
    value = clean(province_name)
    if not value:
        return None

    override = region_override(value)
    if override:
        return override

    candidates = await store.find_by_kind_and_name_pattern(
        AreaKind.PROVINCE, name_pattern(value, AreaKind.PROVINCE), expand_parents=True
    )
    province = pick_best_match(candidates, value)
    if province is None:
        return None

    region = region_of_province(province, {})
    if region:
        return region
    if province.parent_code:
        region_node = await province_parent_region(store, province.parent_code)
        if region_node:
            return region_node.name
    logger.info("No region could be determined for province %r", value)
    return None


async def province_parent_region(store: AreaStore, code: str) -> Optional[AreaNode]:
    return await store.find_by_code(code, kind=AreaKind.REGION)


class RegionIndex:
    """Province -> region map computed once per bulk import batch."""

    def __init__(self, province_to_region: Dict[str, str]):
        self.province_to_region = province_to_region

    @classmethod
    def build(
        cls, provinces: Iterable[AreaNode], regions: Iterable[AreaNode]
    ) -> "RegionIndex":
        regions_by_code = {r.code: r.name for r in regions if r.code}
        # Same pick as `resolve_region`: the first node per name in match order,
        # even when that node has no region.
        chosen: Dict[str, AreaNode] = {}
        for province in sorted(provinces, key=match_order):
            chosen.setdefault(fold(province.name), province)

        mapping: Dict[str, str] = {}
        for key, province in chosen.items():
            region = region_of_province(province, regions_by_code)
            if region:
                mapping[key] = region
        return cls(mapping)

    def resolve(self, province_name: Any) -> Optional[str]:
        value = clean(province_name)
        if not value:
            return None
        return region_override(value) or self.province_to_region.get(fold(value))
