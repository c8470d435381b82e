from types import SimpleNamespace

import pytest
from bson import ObjectId


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs = sorted(self._docs, key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return dict(next(self._iter))
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """Coleção em memória com o subconjunto da API do motor usado pelo serviço e pelo worker."""

    def __init__(self):
        self.docs = {}

    def _matches(self, doc, query):
        return all(doc.get(k) == v for k, v in query.items())

    async def find_one(self, query):
        for doc in self.docs.values():
            if self._matches(doc, query):
                return dict(doc)
        return None

    async def insert_one(self, doc):
        _id = ObjectId()
        doc["_id"] = _id
        self.docs[_id] = dict(doc)
        return SimpleNamespace(inserted_id=_id)

    def find(self, query=None):
        return FakeCursor([d for d in self.docs.values() if self._matches(d, query or {})])

    async def delete_one(self, query):
        for _id, doc in list(self.docs.items()):
            if self._matches(doc, query):
                del self.docs[_id]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def update_one(self, query, update):
        for _id, doc in self.docs.items():
            if self._matches(doc, query):
                doc.update(update.get("$set", {}))
                return SimpleNamespace(matched_count=1)
        return SimpleNamespace(matched_count=0)


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.lists = {}
        self.closed = False

    async def rpush(self, key, value):
        if self.fail:
            raise ConnectionError("redis indisponível")
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_collection():
    return FakeCollection()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def credentials_file(tmp_path, monkeypatch):
    path = tmp_path / "basic_auth.txt"
    path.write_text("# usuario:senha\nadmin:admin123\n", encoding="utf-8")
    monkeypatch.setenv("BASIC_AUTH_CREDENTIALS_FILE", str(path))
    return path


@pytest.fixture
def failing_redis():
    return FakeRedis(fail=True)
