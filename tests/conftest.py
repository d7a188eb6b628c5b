import itertools
import os
import tempfile
from typing import Any, Dict, List, Optional

os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "schema-graph-importer-logs"))

import pytest
from pymongo.errors import DuplicateKeyError, PyMongoError

from core.id_generator import IdGenerator
from core.storage import GraphStore


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return list(self._documents if length is None else self._documents[:length])


class FakeResult:
    def __init__(self, deleted_count: int = 0):
        self.deleted_count = deleted_count


class FakeCollection:
    """
    In-memory stand-in for a motor collection, keyed by ``_id``. Only the
    calls the graph store makes are implemented.
    """

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise PyMongoError("connection refused")

    def find(self, query: Dict[str, Any]) -> FakeCursor:
        self._check()
        return FakeCursor([dict(d) for d in self.documents.values()])

    async def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self._check()
        document = self.documents.get(query["_id"])
        return dict(document) if document is not None else None

    async def insert_one(self, document: Dict[str, Any]) -> None:
        self._check()
        if document["_id"] in self.documents:
            raise DuplicateKeyError(f"duplicate key: {document['_id']}")
        self.documents[document["_id"]] = dict(document)

    async def replace_one(self, query: Dict[str, Any], document: Dict[str, Any], upsert: bool = False) -> None:
        self._check()
        if query["_id"] in self.documents or upsert:
            self.documents[query["_id"]] = dict(document)

    async def delete_one(self, query: Dict[str, Any]) -> FakeResult:
        self._check()
        removed = self.documents.pop(query["_id"], None)
        return FakeResult(1 if removed is not None else 0)

    async def delete_many(self, query: Dict[str, Any]) -> FakeResult:
        self._check()
        count = len(self.documents)
        self.documents.clear()
        return FakeResult(count)


def counting_generator(prefix: str = "id") -> IdGenerator:
    """Deterministic generator: id1, id2, ..."""
    counter = itertools.count(1)
    return IdGenerator(factory=lambda: f"{prefix}{next(counter)}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def store(collection: FakeCollection) -> GraphStore:
    return GraphStore(collection)


@pytest.fixture
def id_generator() -> IdGenerator:
    return counting_generator()


@pytest.fixture
def make_generator():
    return counting_generator


USERS_ORDERS_DBML = """
Table users {
  id integer [pk, increment]
  name varchar
}

Table orders {
  id integer [pk]
  user_id integer [not null]
}

Ref: orders.user_id > users.id
"""


@pytest.fixture
def users_orders_dbml() -> str:
    return USERS_ORDERS_DBML
