"""
Test setup helpers: an in-memory hierarchy store, a seeded PSGC slice, and
in-memory stand-ins for the Beanie documents the services write to.
"""
import json
import re
import sys
from types import SimpleNamespace
from pathlib import Path
from typing import Iterable, List, Optional

import pytest
from beanie import PydanticObjectId

# Ensure project root is on sys.path for beneficiary_api imports.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from beneficiary_api.core.store import AreaStore  # noqa: E402
from beneficiary_api.core.types import AreaKind, AreaNode  # noqa: E402


class InMemoryAreaStore(AreaStore):
    """AreaStore over a list of nodes; records every lookup in `calls`."""

    def __init__(self, nodes: Iterable[AreaNode]):
        self.nodes = {node.id: node for node in nodes}
        self.calls: List[str] = []

    def _with_parents(self, node: AreaNode, depth: int = 0) -> AreaNode:
        parent = self.nodes.get(node.parent_id) if node.parent_id else None
        if parent is None or depth >= 3:
            return node.model_copy(update={"parent": None})
        return node.model_copy(update={"parent": self._with_parents(parent, depth + 1)})

    def _out(self, nodes: Iterable[AreaNode], expand_parents: bool) -> List[AreaNode]:
        if expand_parents:
            return [self._with_parents(node) for node in nodes]
        return [node.model_copy(update={"parent": None}) for node in nodes]

    async def find_by_kind_and_name_pattern(
        self, kind: AreaKind, pattern: str, expand_parents: bool = False
    ) -> List[AreaNode]:
        self.calls.append("find_by_kind_and_name_pattern")
        found = [
            node
            for node in self.nodes.values()
            if node.kind == kind and re.search(pattern, node.name, re.IGNORECASE)
        ]
        return self._out(found, expand_parents)

    async def find_by_ids_or_codes_or_names(
        self, references: Iterable[str], expand_parents: bool = False
    ) -> List[AreaNode]:
        self.calls.append("find_by_ids_or_codes_or_names")
        wanted = set(references)
        found = [
            node
            for node in self.nodes.values()
            if node.id in wanted or node.code in wanted or node.name in wanted
        ]
        return self._out(found, expand_parents)

    async def find_by_code(
        self, code: str, kind: Optional[AreaKind] = None
    ) -> Optional[AreaNode]:
        self.calls.append("find_by_code")
        for node in self.nodes.values():
            if node.code == code and (kind is None or node.kind == kind):
                return node.model_copy(update={"parent": None})
        return None

    async def find_by_kind(
        self, kind: AreaKind, expand_parents: bool = False
    ) -> List[AreaNode]:
        self.calls.append("find_by_kind")
        found = [node for node in self.nodes.values() if node.kind == kind]
        return self._out(found, expand_parents)


class UnreachableAreaStore(InMemoryAreaStore):
    """Every lookup fails as if the database were down."""

    def __init__(self):
        super().__init__([])

    async def find_by_ids_or_codes_or_names(self, references, expand_parents=False):
        raise ConnectionError("hierarchy store unreachable")


def _node(id, name, code, kind, parent_id=None, parent_code=None) -> AreaNode:
    return AreaNode(
        id=id, name=name, code=code, kind=kind, parent_id=parent_id, parent_code=parent_code
    )


def seed_nodes() -> List[AreaNode]:
    region, province = AreaKind.REGION, AreaKind.PROVINCE
    municipality, barangay = AreaKind.MUNICIPALITY, AreaKind.BARANGAY
    return [
        _node("r6", "REGION VI", "0600000000", region),
        _node("r7", "REGION VII (CENTRAL VISAYAS)", "0700000000", region),
        _node("negocc", "NEGROS OCCIDENTAL", "0604500000", province, "r6", "0600000000"),
        _node("iloilo", "ILOILO", "0603000000", province, "r6", "0600000000"),
        # Not linked yet: only the PSGC parent code is known.
        _node("cebu", "CEBU", "0702200000", province, None, "0700000000"),
        # Neither linked nor coded.
        _node("dinagat", "DINAGAT ISLANDS", None, province),
        _node("bacolod", "BACOLOD CITY", "0604501000", municipality, "negocc", "0604500000"),
        _node("silay", "CITY OF SILAY", "0604522000", municipality, "negocc", "0604500000"),
        _node("ebm", "E.B. MAGALONA (SARAVIA)", "0604508000", municipality, "negocc", "0604500000"),
        _node("oton", "OTON", "0603037000", municipality, "iloilo", "0603000000"),
        _node("naga", "CITY OF NAGA", "0702234000", municipality, "cebu", "0702200000"),
        _node("mandalagan", "MANDALAGAN", "0604501030", barangay, "bacolod", "0604501000"),
        _node("guimbalaon", "GUIMBALA-ON", "0604522005", barangay, "silay", "0604522000"),
        _node("poblacion", "POBLACION", "0603037050", barangay, "oton", "0603037000"),
    ]


@pytest.fixture
def store() -> InMemoryAreaStore:
    return InMemoryAreaStore(seed_nodes())


@pytest.fixture
def make_store():
    """Factory for a seeded store with extra nodes added."""

    def build(*extra: AreaNode) -> InMemoryAreaStore:
        return InMemoryAreaStore(seed_nodes() + list(extra))

    return build


@pytest.fixture
def unreachable_store() -> UnreachableAreaStore:
    return UnreachableAreaStore()


def _beneficiary_row(**overrides) -> dict:
    row = {
        "hhid": "160450001-0001",
        "pkno": "PK-0001",
        "first_name": "Maria",
        "middle_name": "Santos",
        "last_name": "Dela Cruz",
        "birthdate": "1985-03-14",
        "gender": "Female",
        "province": "Negros Occidental",
        "municipality": "Bacolod City",
        "barangay": "Mandalagan",
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_row():
    """Factory for a valid beneficiary row; keyword arguments override fields."""
    return _beneficiary_row


# --- In-memory documents ---


def matches_query(doc: dict, query: dict) -> bool:
    """Evaluate the subset of MongoDB filters the services build."""
    for key, condition in query.items():
        if key == "$and":
            ok = all(matches_query(doc, q) for q in condition)
        elif key == "$or":
            ok = any(matches_query(doc, q) for q in condition)
        elif isinstance(condition, dict) and "$regex" in condition:
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            value = doc.get(key)
            ok = value is not None and re.search(condition["$regex"], str(value), flags) is not None
        elif isinstance(condition, dict) and "$in" in condition:
            ok = doc.get(key) in condition["$in"]
        else:
            ok = doc.get(key) == condition
        if not ok:
            return False
    return True


class FakeQuery:
    def __init__(self, model, query):
        self.model = model
        self.query = query or {}
        self._skip = 0
        self._limit = None

    def _matching(self):
        return [d for d in self.model.records if matches_query(d.as_mongo(), self.query)]

    async def count(self) -> int:
        return len(self._matching())

    def sort(self, *args):
        return self

    def skip(self, n: int):
        self._skip = n
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    async def to_list(self):
        found = self._matching()[self._skip :]
        return found if self._limit is None else found[: self._limit]

    async def delete(self):
        found = self._matching()
        for doc in found:
            self.model.records.remove(doc)
        return SimpleNamespace(deleted_count=len(found))


class FakeCollection:
    def __init__(self, model):
        self.model = model

    async def distinct(self, field: str, query: dict):
        values = []
        for doc in await FakeQuery(self.model, query).to_list():
            value = getattr(doc, field, None)
            if value not in values:
                values.append(value)
        return values

    async def insert_many(self, documents, ordered: bool = True):
        ids = []
        for values in documents:
            doc = self.model(**values)
            await doc.insert()
            ids.append(doc.id)
        return SimpleNamespace(inserted_ids=ids)


class FakeDocument:
    """Just enough of a Beanie Document for the services; each subclass owns `records`."""

    records: List["FakeDocument"] = []

    def __init__(self, **values):
        self.id = values.pop("id", None)
        self.__dict__.update(values)

    def as_mongo(self) -> dict:
        doc = self.model_dump()
        doc["_id"] = self.id
        return doc

    def model_dump(self, exclude=None, **kwargs) -> dict:
        return {
            k: v for k, v in vars(self).items() if k != "id" and k not in (exclude or ())
        }

    def model_dump_json(self, exclude=None) -> str:
        return json.dumps(self.model_dump(exclude=exclude), default=str)

    @classmethod
    def find(cls, query=None) -> FakeQuery:
        return FakeQuery(cls, query)

    @classmethod
    async def find_one(cls, query=None):
        found = await FakeQuery(cls, query).to_list()
        return found[0] if found else None

    @classmethod
    async def get(cls, document_id):
        return next((d for d in cls.records if d.id == document_id), None)

    @classmethod
    def get_pymongo_collection(cls) -> FakeCollection:
        return FakeCollection(cls)

    async def insert(self):
        self.id = PydanticObjectId()
        type(self).records.append(self)
        return self

    async def set(self, changes: dict):
        self.__dict__.update(changes)
        return self

    async def delete(self):
        type(self).records.remove(self)


def fake_document(name: str):
    return type(name, (FakeDocument,), {"records": []})


@pytest.fixture
def fake_documents():
    return fake_document


@pytest.fixture
def audit_trail(monkeypatch):
    """Replaces the audit writer; collects (action, module, record_id)."""
    entries = []

    async def record(actor, action, module, record_id, old_value="", new_value="", field_name=None):
        entries.append((action, module, record_id))

    monkeypatch.setattr("beneficiary_api.services.beneficiary_service.log_audit", record)
    monkeypatch.setattr("beneficiary_api.services.attendance_service.log_audit", record)
    return entries


@pytest.fixture
def beneficiary_db(monkeypatch, audit_trail):
    model = fake_document("Beneficiary")
    monkeypatch.setattr("beneficiary_api.services.beneficiary_service.Beneficiary", model)
    return model
