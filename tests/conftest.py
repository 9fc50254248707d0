import copy
import math
import re
from datetime import datetime
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.config import Settings
from app.main import create_app

# ------------------------------------------------------
# In-memory stand-in for an async MongoDB collection.
# Understands only the query and pipeline shapes the API emits.
# ------------------------------------------------------

def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _type_rank(value):
    if value is None:
        return 1
    if _is_number(value):
        return 2
    if isinstance(value, str):
        return 3
    if isinstance(value, ObjectId):
        return 7
    if isinstance(value, bool):
        return 8
    if isinstance(value, datetime):
        return 9
    return 5


def _sort_key(field):
    def key(doc):
        value = doc.get(field)
        rank = _type_rank(value)
        if rank in (1, 5):
            return (rank, 0)
        return (rank, value)
    return key


def _equals(actual, expected):
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return actual == expected


def _field_matches(doc, field, condition):
    if isinstance(condition, dict) and list(condition) == ["$ne"]:
        return not (field in doc and _equals(doc[field], condition["$ne"]))

    if field not in doc:
        return False
    value = doc[field]

    if isinstance(condition, dict) and any(k.startswith("$") for k in condition):
        for op, operand in condition.items():
            if op == "$regex":
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if not isinstance(value, str) or not re.search(operand, value, flags):
                    return False
            elif op == "$options":
                continue
            elif op == "$gte":
                if not _is_number(value) or value < operand:
                    return False
            elif op == "$lte":
                if not _is_number(value) or value > operand:
                    return False
            else:
                raise NotImplementedError(op)
        return True

    return _equals(value, condition)


def matches(doc, query):
    for key, condition in query.items():
        if key == "$and":
            if not all(matches(doc, sub) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
        elif not _field_matches(doc, key, condition):
            return False
    return True


MISSING = object()


def _bson_type(value):
    if value is MISSING:
        return "missing"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    if isinstance(value, ObjectId):
        return "objectId"
    if isinstance(value, datetime):
        return "date"
    if isinstance(value, list):
        return "array"
    return "object"


def _compare(op, left, right):
    # null and missing sort below every number
    if not _is_number(left) or not _is_number(right):
        return False
    if op == "$gt":
        return left > right
    if op == "$gte":
        return left >= right
    return left < right


def _convert_double(spec, doc, variables):
    value = evaluate(spec["input"], doc, variables)
    if value is MISSING or value is None:
        return spec.get("onNull")
    try:
        return float(value)
    except (TypeError, ValueError):
        return spec.get("onError")


def evaluate(expr, doc, variables=None):
    """Aggregation expressions used by the listing pipeline."""
    variables = variables or {}

    if isinstance(expr, str):
        if expr.startswith("$$"):
            return variables[expr[2:]]
        if expr.startswith("$"):
            return doc.get(expr[1:], MISSING)
        return expr

    if isinstance(expr, list):
        return [evaluate(e, doc, variables) for e in expr]

    if not isinstance(expr, dict) or len(expr) != 1 or not next(iter(expr)).startswith("$"):
        return expr

    (op, arg), = expr.items()
    if op == "$let":
        scope = dict(variables)
        scope.update({k: evaluate(v, doc, variables) for k, v in arg["vars"].items()})
        return evaluate(arg["in"], doc, scope)
    if op == "$cond":
        condition, then, otherwise = arg
        return evaluate(then if evaluate(condition, doc, variables) else otherwise, doc, variables)
    if op == "$convert":
        assert arg["to"] == "double"
        return _convert_double(arg, doc, variables)
    if op == "$type":
        return _bson_type(evaluate(arg, doc, variables))
    if op == "$trim":
        return evaluate(arg["input"], doc, variables).strip()
    if op == "$trunc":
        value = evaluate(arg, doc, variables)
        return float(math.trunc(value)) if _is_number(value) and math.isfinite(value) else value

    args = evaluate(arg, doc, variables)
    if op == "$and":
        return all(args)
    if op == "$eq":
        return args[0] == args[1]
    if op == "$in":
        return args[0] in args[1]
    if op in ("$gt", "$gte", "$lt"):
        return _compare(op, *args)
    raise NotImplementedError(op)


def run_stages(docs, stages):
    for stage in stages:
        (name, arg), = stage.items()
        if name == "$addFields":
            docs = [dict(d, **{f: evaluate(e, d) for f, e in arg.items()}) for d in docs]
        elif name == "$match":
            docs = [d for d in docs if matches(d, arg)]
        elif name == "$sort":
            for field, direction in reversed(list(arg.items())):
                docs = sorted(docs, key=_sort_key(field), reverse=direction < 0)
        elif name == "$skip":
            docs = docs[arg:]
        elif name == "$limit":
            docs = docs[:arg]
        elif name == "$count":
            docs = [{arg: len(docs)}] if docs else []
        elif name == "$facet":
            docs = [{out: run_stages(docs, sub) for out, sub in arg.items()}]
        else:
            raise NotImplementedError(name)
    return docs


class FakeCursor:
    def __init__(self, docs):
        self.docs = docs

    async def to_list(self, length=None):
        return copy.deepcopy(self.docs if length is None else self.docs[:length])


class FakeCollection:
    def __init__(self, name):
        self.name = name
        self.docs = []
        self.unique_fields = set()
        self.fail = False
        self.pipelines = []

    def _check(self):
        if self.fail:
            raise PyMongoError("connection refused")

    async def create_index(self, keys, unique=False):
        if unique:
            for field, _ in keys:
                self.unique_fields.add(field)
        return "_".join(f"{field}_{direction}" for field, direction in keys)

    async def insert_one(self, doc):
        self._check()
        for field in self.unique_fields:
            if any(d.get(field) == doc.get(field) for d in self.docs):
                raise DuplicateKeyError(f"E11000 duplicate key error: {field}")

        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query):
        self._check()
        for doc in self.docs:
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def find_one_and_update(self, query, update, return_document=None):
        self._check()
        for doc in self.docs:
            if matches(doc, query):
                doc.update(copy.deepcopy(update["$set"]))
                return copy.deepcopy(doc)
        return None

    async def delete_one(self, query):
        self._check()
        for i, doc in enumerate(self.docs):
            if matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def aggregate(self, pipeline):
        self._check()
        self.pipelines.append(pipeline)
        return FakeCursor(run_stages(list(self.docs), pipeline))

    def seed(self, *docs):
        ids = []
        for doc in docs:
            doc = dict(doc)
            doc.setdefault("_id", ObjectId())
            self.docs.append(doc)
            ids.append(doc["_id"])
        return ids


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection(name))


# ------------------------------------------------------
# Fixtures
# ------------------------------------------------------

@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def movies(database):
    return database["movies"]


@pytest.fixture
def users(database):
    return database["users"]


@pytest.fixture
def settings():
    return Settings(jwt_secret="test-secret", log_level="WARNING")


@pytest.fixture
def client(settings, database):
    app = create_app(settings, database=database)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def legacy_client(database):
    app = create_app(Settings(jwt_secret="test-secret", require_title=False, log_level="WARNING"), database=database)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def movie_payload():
    return {
        "title": "Inception",
        "genre": "Action",
        "rating": 8,
        "image": "http://x/y.jpg",
        "featured": True,
        "description": "A thief who steals corporate secrets.",
        "year": 2010,
        "trailerUrl": "http://x/t.mp4",
    }
