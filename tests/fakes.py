"""In-memory DocumentStore used by the tests.

Evaluates only the Mongo filter operators the services issue:
equality, $in, $ne, $gte, $lte, $regex/$options, $and, $or.
"""

import copy
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId

_MISSING = object()


def _get_path(document: Dict[str, Any], path: str) -> Any:
    value: Any = document
    for part in path.split("."):
        if isinstance(value, list):
            values = [_get_path(item, part) for item in value if isinstance(item, dict)]
            return [v for v in values if v is not _MISSING]
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _is_operator_dict(condition: Any) -> bool:
    return isinstance(condition, dict) and bool(condition) and all(key.startswith("$") for key in condition)


def _candidates(value: Any) -> List[Any]:
    if value is _MISSING:
        return [None]
    if isinstance(value, list):
        return value + [value]
    return [value]


def _match_operator(value: Any, op: str, arg: Any, condition: Dict[str, Any]) -> bool:
    candidates = _candidates(value)
    if op == "$in":
        return any(candidate in arg for candidate in candidates)
    if op == "$ne":
        return all(candidate != arg for candidate in candidates)
    if op == "$gte":
        return any(candidate is not None and candidate >= arg for candidate in candidates)
    if op == "$lte":
        return any(candidate is not None and candidate <= arg for candidate in candidates)
    if op == "$regex":
        flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
        return any(isinstance(candidate, str) and re.search(arg, candidate, flags) for candidate in candidates)
    if op == "$options":
        return True
    raise NotImplementedError(f"operator {op} is not supported by the in-memory store")


def matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$and":
            if not all(matches(document, sub) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        else:
            value = _get_path(document, key)
            if _is_operator_dict(condition):
                if not all(_match_operator(value, op, arg, condition) for op, arg in condition.items()):
                    return False
            elif condition not in _candidates(value):
                return False
    return True


def _project(document: Dict[str, Any], projection: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not projection:
        return document
    projected = {"_id": document["_id"]}
    for key, include in projection.items():
        if include and key in document:
            projected[key] = document[key]
    return projected


class InMemoryDocumentStore:
    def __init__(self):
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_with: Optional[Exception] = None
        self.calls: List[str] = []

    def _collection(self, name: str) -> List[Dict[str, Any]]:
        if self.fail_with is not None:
            raise self.fail_with
        return self.collections.setdefault(name, [])

    def all(self, name: str) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.collections.get(name, []))

    async def insert_one(self, collection, document):
        self.calls.append(f"insert_one:{collection}")
        document.setdefault("_id", ObjectId())
        self._collection(collection).append(copy.deepcopy(document))
        return document

    async def find_one(self, collection, query):
        self.calls.append(f"find_one:{collection}")
        for document in self._collection(collection):
            if matches(document, query):
                return copy.deepcopy(document)
        return None

    async def find(self, collection, query, sort=None, skip=0, limit=0, projection=None):
        self.calls.append(f"find:{collection}")
        documents = [document for document in self._collection(collection) if matches(document, query)]
        for field, direction in reversed(list(sort or [])):
            documents.sort(
                key=lambda document: (_get_path(document, field) not in (None, _MISSING), _get_path(document, field) if _get_path(document, field) is not _MISSING else None),
                reverse=direction < 0,
            )
        if skip:
            documents = documents[skip:]
        if limit:
            documents = documents[:limit]
        return [copy.deepcopy(_project(document, projection)) for document in documents]

    async def count(self, collection, query):
        self.calls.append(f"count:{collection}")
        return sum(1 for document in self._collection(collection) if matches(document, query))

    async def distinct(self, collection, key, query=None):
        self.calls.append(f"distinct:{collection}")
        values: List[Any] = []
        for document in self._collection(collection):
            if matches(document, query or {}):
                value = _get_path(document, key)
                if value is not _MISSING and value not in values:
                    values.append(value)
        return values

    async def update_one(self, collection, query, values):
        self.calls.append(f"update_one:{collection}")
        for document in self._collection(collection):
            if matches(document, query):
                document.update(copy.deepcopy(values))
                return copy.deepcopy(document)
        return None

    async def update_many(self, collection, query, values):
        self.calls.append(f"update_many:{collection}")
        modified = 0
        for document in self._collection(collection):
            if matches(document, query):
                document.update(copy.deepcopy(values))
                modified += 1
        return modified

    async def delete_one(self, collection, query):
        self.calls.append(f"delete_one:{collection}")
        documents = self._collection(collection)
        for index, document in enumerate(documents):
            if matches(document, query):
                return documents.pop(index)
        return None

    async def delete_many(self, collection, query):
        self.calls.append(f"delete_many:{collection}")
        documents = self._collection(collection)
        kept = [document for document in documents if not matches(document, query)]
        deleted = len(documents) - len(kept)
        documents[:] = kept
        return deleted

    async def ping(self):
        if self.fail_with is not None:
            raise self.fail_with
        return True


def variant_payload(product_id, actual_color="red", sku=None, price=100.0, **overrides):
    payload = {
        "productId": str(product_id),
        "sku": sku or f"SKU-{actual_color.upper()}",
        "price": price,
        "color": {"baseColor": actual_color, "actualColor": actual_color, "colorName": actual_color.title()},
        "images": {
            "main": {"url": f"https://img.example.com/{actual_color}/main.jpg", "public_id": f"{actual_color}-main"},
            "hover": {"url": f"https://img.example.com/{actual_color}/hover.jpg", "public_id": f"{actual_color}-hover"},
            "product": [],
        },
        "attributes": [{"attribute": "material", "value": "Cotton"}],
        "sizes": [{"size": "M", "stock": 5}, {"size": "L", "stock": 0}],
    }
    payload.update(overrides)
    return payload
