# beneficiary_api/services/psgc.py
"""
Helpers for seeding the area hierarchy from a PSGC publication export.

The CSV needs a code column, a name column and a geographic level column;
headers are matched loosely ("10-digit PSGC", "Name", "Geographic Level" all work).
"""
from typing import Dict, List, Optional, Union
from pathlib import Path
import pandas as pd

from beneficiary_api.core.types import AreaKind

# Digits of a PSGC code that identify the parent, per kind.
_PARENT_PREFIX = {
    AreaKind.PROVINCE: 2,
    AreaKind.MUNICIPALITY: 5,
    AreaKind.BARANGAY: 7,
}


def level_to_kind(level: str) -> Optional[AreaKind]:
    """Map a PSGC geographic level ("Reg", "Prov", "City", "Mun", "Bgy") to a kind."""
    level = (level or "").strip().lower()
    if "reg" in level:
        return AreaKind.REGION
    if "prov" in level:
        return AreaKind.PROVINCE
    if "city" in level or "mun" in level:
        return AreaKind.MUNICIPALITY
    if "bgy" in level or "brgy" in level:
        return AreaKind.BARANGAY
    return None


def derive_parent_code(code: str, kind: AreaKind) -> Optional[str]:
    """
    Parent PSGC code implied by `code`: keep the parent's prefix, zero the rest.
    e.g. barangay 0645501001 -> municipality 0645501000.
    """
    prefix = _PARENT_PREFIX.get(kind)
    if prefix is None or len(code) <= prefix:
        return None
    parent = code[:prefix] + "0" * (len(code) - prefix)
    return None if parent == code else parent


def region_code_of(code: str) -> str:
    return code[:2] + "0" * (len(code) - 2)


def detect_columns(columns: List[str]) -> Dict[str, str]:
    """Find the code, name and level columns; raises ValueError if one is missing."""
    found: Dict[str, str] = {}
    for column in columns:
        lowered = str(column).strip().lower()
        if "code" not in found and ("code" in lowered or "psgc" in lowered):
            found["code"] = column
        elif "name" not in found and ("name" in lowered or "description" in lowered):
            found["name"] = column
        elif "level" not in found and ("level" in lowered or "geographic" in lowered):
            found["level"] = column
    missing = {"code", "name", "level"} - set(found)
    if missing:
        raise ValueError(
            f"CSV must contain code, name and level columns; missing {sorted(missing)} "
            f"in {list(columns)}"
        )
    return found


def read_psgc_csv(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a PSGC CSV into a frame with `code`, `name`, `kind`, `parent_code`.
    Rows with an unknown level are dropped.
    """
    raw = pd.read_csv(path, dtype=str, keep_default_na=False)
    columns = detect_columns(list(raw.columns))

    frame = pd.DataFrame(
        {
            "code": raw[columns["code"]].str.strip().str.replace('"', "", regex=False),
            "name": raw[columns["name"]].str.strip().str.replace('"', "", regex=False),
            "kind": raw[columns["level"]].map(level_to_kind),
        }
    )
    frame = frame[(frame["code"] != "") & (frame["name"] != "") & frame["kind"].notna()].copy()
    frame["parent_code"] = [
        derive_parent_code(code, kind) for code, kind in zip(frame["code"], frame["kind"])
    ]
    return frame.reset_index(drop=True)
