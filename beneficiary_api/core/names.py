# beneficiary_api/core/names.py
"""
Single home for geographic name normalization.

Every place that compares a free-text area name against the hierarchy (the
canonicalizer, the authorization resolver, listing filters, duplicate checks)
goes through these helpers so trimming, escaping and case-folding stay
consistent. Patterns produced here are valid both for Python's `re` and for
MongoDB's `$regex` operator.
"""
import re
from typing import Any, List

# Characters with special meaning in a pattern. Kept to the set both engines share.
_PATTERN_SPECIALS = re.compile(r"[.*+?^${}()|\[\]\\]")

CITY_STYLE = re.compile(r"^(city of\s+)?(.+?)(\s+city)?(\s*\(.+?\))?$", re.IGNORECASE)
MUNICIPALITY_STYLE = re.compile(
    r"^(municipality of\s+)?(.+?)(\s+municipality)?(\s*\(.+?\))?$", re.IGNORECASE
)


def clean(value: Any) -> str:
    """Trimmed string form of `value`; None becomes an empty string."""
    if value is None:
        return ""
    return str(value).strip()


def fold(value: Any) -> str:
    """Key used by in-memory lookups: trimmed and upper-cased."""
    return clean(value).upper()


def escape_pattern(value: str) -> str:
    return _PATTERN_SPECIALS.sub(lambda m: "\\" + m.group(0), value)


def exact_pattern(value: Any) -> str:
    """Anchored pattern matching `value` literally (use case-insensitively)."""
    return f"^{escape_pattern(clean(value))}$"


def municipality_core(value: Any) -> str:
    """
    Strip "City of", "City", "Municipality of", "Municipality" affixes and a
    trailing parenthetical, e.g. "City of Bacolod" -> "Bacolod",
    "E.B. Magalona (Saravia)" -> "E.B. Magalona".

    The city-style reading wins when it removed an affix; the municipality-style
    reading is tried next; otherwise only the parenthetical suffix is dropped.
    """
    val = clean(value)
    if not val:
        return ""

    city = CITY_STYLE.match(val)
    muni = MUNICIPALITY_STYLE.match(val)
    if city and (city.group(1) or city.group(3)):
        return city.group(2).strip()
    if muni and (muni.group(1) or muni.group(3)):
        return muni.group(2).strip()
    if city:
        return city.group(2).strip()
    return val


def municipality_pattern(value: Any) -> str:
    """
    Anchored pattern accepting the core of `value` in either affix style, with
    an optional parenthetical suffix. The suffix content is not validated.
    """
    core = municipality_core(value)
    if not core:
        return exact_pattern("")
    core = escape_pattern(core)
    return (
        rf"^((city of\s+)?{core}(\s+city)?|(municipality of\s+)?{core}(\s+municipality)?)"
        r"(\s*\(.+?\))?$"
    )


def municipality_keys(name: Any) -> List[str]:
    """Upper-cased lookup keys under which a municipality name can be written."""
    core = fold(municipality_core(name))
    if not core:
        return []
    return [
        core,
        f"{core} CITY",
        f"CITY OF {core}",
        f"{core} MUNICIPALITY",
        f"MUNICIPALITY OF {core}",
    ]


def matches(pattern: str, value: Any) -> bool:
    """Case-insensitive in-memory evaluation of a pattern built by this module."""
    text = "" if value is None else str(value)
    return re.search(pattern, text, re.IGNORECASE) is not None
