# beneficiary_api/scripts/import_psgc.py
"""
Seed or refresh the area hierarchy from a PSGC CSV export.

    python -m beneficiary_api.scripts.import_psgc path/to/psgc.csv

Areas are upserted by PSGC code, so the import can be re-run after a new
PSGC release. Parent links are rebuilt from the codes once every row is in.
"""
import argparse
import asyncio
import logging

from beneficiary_api.core.types import AreaKind
from beneficiary_api.services.area_service import AreaService
from beneficiary_api.services.db import close_db, init_db
from beneficiary_api.services.psgc import read_psgc_csv

logger = logging.getLogger(__name__)

# Parents first so that a partially failed run still leaves a usable tree.
IMPORT_ORDER = [AreaKind.REGION, AreaKind.PROVINCE, AreaKind.MUNICIPALITY, AreaKind.BARANGAY]


async def import_psgc(path: str, kinds=None) -> int:
    frame = read_psgc_csv(path)
    logger.info("Read %d areas from %s", len(frame), path)

    area_service = AreaService()
    imported = 0
    for kind in IMPORT_ORDER:
        if kinds and kind not in kinds:
            continue
        rows = frame[frame["kind"] == kind]
        for row in rows.itertuples(index=False):
            await area_service.upsert_by_code(row.code, row.name, kind, row.parent_code)
            imported += 1
        logger.info("Imported %d %s areas", len(rows), kind.value)

    linked = await area_service.link_parents()
    logger.info("Linked %d areas to their parents", linked)
    return imported


async def main(path: str, kinds=None) -> None:
    await init_db()
    try:
        await import_psgc(path, kinds)
    finally:
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    parser = argparse.ArgumentParser(description="Import the PSGC area hierarchy")
    parser.add_argument("csv", help="PSGC CSV file (code, name and geographic level columns)")
    parser.add_argument(
        "--kind",
        action="append",
        type=AreaKind,
        choices=list(AreaKind),
        help="Only import this level (repeatable); default is all levels",
    )
    args = parser.parse_args()
    asyncio.run(main(args.csv, args.kind))
