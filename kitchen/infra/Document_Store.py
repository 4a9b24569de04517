"""Generic async document store used by every kitchen service.

Documents are JSON-shaped dicts identified by "_id". Filters follow a small
Mongo-like language:

    {"household_id": "h1", "scope": "override"}          equality
    {"is_archived": {"$ne": True}}                        $ne / $in / $nin / $exists
    {"week_start": {"$gte": "2025-01-06"}}                $gt / $gte / $lt / $lte
    {"$or": [{"days.main_dish_id": d}, {"days.side_dish_id": d}]}

Dotted paths walk into nested dicts and match any element of an array.
Unique indexes (optionally partial) are enforced on every write and raise
DuplicateKeyError, which is how concurrent creators detect that they lost a
race.
"""
import asyncio
import copy
import json
import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from kitchen.domain.Document import new_id
from kitchen.utilities.config import DATA_FILE
from kitchen.utilities.constants import (
    CATEGORIES, DISHES, HIDDEN_MASTERS, INGREDIENTS, SHOPPING_LISTS, WEEK_PLANS
)
from kitchen.utilities.errors import DuplicateKeyError

logger = logging.getLogger(__name__)

Filter = Mapping[str, Any]
SortSpec = Union[Sequence[Tuple[str, int]], Mapping[str, int], None]

_MISSING = object()


# -------------------- Filter matching --------------------
def _resolve_path(value: Any, parts: Sequence[str]) -> List[Any]:
    if not parts:
        return [value]
    if isinstance(value, list):
        found: List[Any] = []
        for element in value:
            found.extend(_resolve_path(element, parts))
        return found
    if isinstance(value, dict) and parts[0] in value:
        return _resolve_path(value[parts[0]], parts[1:])
    return []


def get_path(doc: Mapping[str, Any], path: str) -> Any:
    '''First value at a dotted path, or None.'''
    values = _resolve_path(doc, path.split("."))
    return values[0] if values else None


def _equals(value: Any, expected: Any) -> bool:
    if value is _MISSING:
        return expected is None
    if value == expected:
        return True
    return isinstance(value, list) and not isinstance(expected, list) and expected in value


def _compare(value: Any, op: str, arg: Any) -> bool:
    if value is _MISSING or value is None or arg is None:
        return False
    try:
        if op == "$gt":
            return value > arg
        if op == "$gte":
            return value >= arg
        if op == "$lt":
            return value < arg
        return value <= arg
    except TypeError:
        return False


def _match_condition(values: List[Any], condition: Any) -> bool:
    if not (isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition)):
        return any(_equals(v, condition) for v in values)
    for op, arg in condition.items():
        if op == "$ne":
            ok = not any(_equals(v, arg) for v in values)
        elif op == "$in":
            ok = any(_equals(v, candidate) for v in values for candidate in arg)
        elif op == "$nin":
            ok = not any(_equals(v, candidate) for v in values for candidate in arg)
        elif op == "$exists":
            present = any(v is not _MISSING for v in values)
            ok = present == bool(arg)
        elif op in ("$gt", "$gte", "$lt", "$lte"):
            ok = any(_compare(v, op, arg) for v in values)
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
        if not ok:
            return False
    return True


def matches(doc: Mapping[str, Any], filter: Optional[Filter]) -> bool:
    for key, condition in (filter or {}).items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
        elif key == "$and":
            if not all(matches(doc, sub) for sub in condition):
                return False
        else:
            values = _resolve_path(doc, key.split(".")) or [_MISSING]
            if not _match_condition(values, condition):
                return False
    return True


def _sort_docs(docs: List[Dict[str, Any]], sort: SortSpec) -> List[Dict[str, Any]]:
    if not sort:
        return docs
    spec = list(sort.items()) if isinstance(sort, Mapping) else list(sort)
    result = list(docs)
    # Stable sorts applied from the least to the most significant key
    for field, direction in reversed(spec):
        def key(doc, field=field):
            value = get_path(doc, field)
            return (value is not None, value if value is not None else 0)
        result.sort(key=key, reverse=direction < 0)
    return result


# -------------------- Unique indexes --------------------
class UniqueIndex:
    """Unique constraint over ``fields``; only documents matching ``partial`` take part."""

    def __init__(self, fields: Sequence[str], partial: Optional[Filter] = None):
        self.fields = tuple(fields)
        self.partial = dict(partial) if partial else None

    def key_for(self, doc: Mapping[str, Any]) -> Optional[Tuple[Any, ...]]:
        if self.partial is not None and not matches(doc, self.partial):
            return None
        return tuple(json.dumps(get_path(doc, f), sort_keys=True, default=str) for f in self.fields)

    def __repr__(self) -> str:
        return f"UniqueIndex({self.fields}, partial={self.partial})"


def default_unique_indexes() -> Dict[str, List[UniqueIndex]]:
    '''The constraints the kitchen services rely on for race safety.'''
    def override_index():
        return UniqueIndex(("household_id", "master_id"),
                           partial={"scope": "override", "is_archived": {"$ne": True}})
    return {
        CATEGORIES: [
            override_index(),
            UniqueIndex(("scope", "household_id", "slug"),
                        partial={"scope": {"$in": ["master", "household"]}, "is_archived": {"$ne": True}}),
        ],
        INGREDIENTS: [override_index()],
        DISHES: [override_index()],
        HIDDEN_MASTERS: [UniqueIndex(("household_id", "type", "master_id"))],
        WEEK_PLANS: [UniqueIndex(("household_id", "week_start"))],
        SHOPPING_LISTS: [UniqueIndex(("household_id", "week_start"))],
    }


# -------------------- Store interface --------------------
class DocumentStore(ABC):
    """Async persistence port. Every method returns copies, never live documents."""

    @abstractmethod
    async def find_one(self, collection: str, filter: Optional[Filter] = None,
                       sort: SortSpec = None) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def find(self, collection: str, filter: Optional[Filter] = None, sort: SortSpec = None,
                   limit: Optional[int] = None) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def create(self, collection: str, doc: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def save(self, collection: str, doc: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update_many(self, collection: str, filter: Filter, patch: Mapping[str, Any]) -> int:
        ...

    @abstractmethod
    async def delete_many(self, collection: str, filter: Filter) -> int:
        ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store. Each call yields to the event loop once, like real I/O,
    then applies its read or write atomically."""

    def __init__(self, unique_indexes: Optional[Dict[str, List[UniqueIndex]]] = None):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self._indexes = default_unique_indexes() if unique_indexes is None else unique_indexes

    # --- hooks ---------------------------------------------------------------
    def _changed(self):
        '''Called after every successful write.'''

    # --- helpers -------------------------------------------------------------
    def _check_unique(self, collection: str, candidates: Iterable[Dict[str, Any]]):
        candidates = list(candidates)
        replaced = {c["_id"] for c in candidates}
        for index in self._indexes.get(collection, []):
            taken: Dict[Tuple[Any, ...], str] = {}
            for doc_id, doc in self._data[collection].items():
                if doc_id in replaced:
                    continue
                key = index.key_for(doc)
                if key is not None:
                    taken[key] = doc_id
            for candidate in candidates:
                key = index.key_for(candidate)
                if key is None:
                    continue
                if key in taken and taken[key] != candidate["_id"]:
                    values = [get_path(candidate, f) for f in index.fields]
                    raise DuplicateKeyError(collection, index.fields, values)
                taken[key] = candidate["_id"]

    def _select(self, collection: str, filter: Optional[Filter]) -> List[Dict[str, Any]]:
        return [doc for doc in self._data[collection].values() if matches(doc, filter)]

    # --- reads ---------------------------------------------------------------
    async def find_one(self, collection, filter=None, sort=None):
        await asyncio.sleep(0)
        docs = _sort_docs(self._select(collection, filter), sort)
        return copy.deepcopy(docs[0]) if docs else None

    async def find(self, collection, filter=None, sort=None, limit=None):
        await asyncio.sleep(0)
        docs = _sort_docs(self._select(collection, filter), sort)
        if limit is not None and limit > 0:
            docs = docs[:limit]
        return copy.deepcopy(docs)

    # --- writes --------------------------------------------------------------
    async def create(self, collection, doc):
        await asyncio.sleep(0)
        new_doc = copy.deepcopy(dict(doc))
        new_doc["_id"] = new_doc.get("_id") or new_id()
        if new_doc["_id"] in self._data[collection]:
            raise DuplicateKeyError(collection, ("_id",), (new_doc["_id"],))
        self._check_unique(collection, [new_doc])
        now = _now()
        new_doc["created_at"] = now
        new_doc["updated_at"] = now
        self._data[collection][new_doc["_id"]] = new_doc
        self._changed()
        return copy.deepcopy(new_doc)

    async def save(self, collection, doc):
        '''Replace the document with the same "_id" (insert when new).'''
        await asyncio.sleep(0)
        new_doc = copy.deepcopy(dict(doc))
        new_doc["_id"] = new_doc.get("_id") or new_id()
        self._check_unique(collection, [new_doc])
        existing = self._data[collection].get(new_doc["_id"])
        now = _now()
        new_doc["created_at"] = (existing or {}).get("created_at") or new_doc.get("created_at") or now
        new_doc["updated_at"] = now
        self._data[collection][new_doc["_id"]] = new_doc
        self._changed()
        return copy.deepcopy(new_doc)

    async def update_many(self, collection, filter, patch):
        await asyncio.sleep(0)
        changes = dict(patch.get("$set", patch)) if isinstance(patch, Mapping) else {}
        changes.pop("_id", None)
        targets = self._select(collection, filter)
        if not targets:
            return 0
        now = _now()
        updated = [{**copy.deepcopy(doc), **copy.deepcopy(changes), "updated_at": now} for doc in targets]
        self._check_unique(collection, updated)
        for doc in updated:
            self._data[collection][doc["_id"]] = doc
        self._changed()
        return len(updated)

    async def delete_many(self, collection, filter):
        await asyncio.sleep(0)
        doomed = [doc["_id"] for doc in self._select(collection, filter)]
        for doc_id in doomed:
            del self._data[collection][doc_id]
        if doomed:
            self._changed()
        return len(doomed)


class JsonDocumentStore(InMemoryDocumentStore):
    """In-memory store mirrored to a single JSON file (atomic replace on every write)."""

    def __init__(self, path: Union[str, Path] = DATA_FILE,
                 unique_indexes: Optional[Dict[str, List[UniqueIndex]]] = None):
        super().__init__(unique_indexes)
        self.path = Path(path)
        self._load()

    def _load(self):
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f) or {}
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in store file %s: %s", self.path, e)
            raise
        for collection, docs in raw.items():
            self._data[collection] = {doc["_id"]: doc for doc in docs}
        logger.info("Loaded %d collections from %s", len(raw), self.path)

    def _changed(self):
        self._atomic_write({name: list(docs.values()) for name, docs in self._data.items()})

    def _atomic_write(self, data: Dict[str, List[Dict[str, Any]]]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".kitchen_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(data, tmp, indent=2, ensure_ascii=False)
            shutil.move(tmp_path, str(self.path))
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)


__all__ = [
    "DocumentStore", "InMemoryDocumentStore", "JsonDocumentStore", "UniqueIndex",
    "default_unique_indexes", "matches", "get_path",
]
