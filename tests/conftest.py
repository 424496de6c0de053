"""テスト共通のフィクスチャ。

FakeFirestoreClient は google.cloud.firestore.AsyncClient のうち
Store層が使う部分（collection / document / add / stream / delete）だけを
インメモリで再現するテストダブル。
"""

import itertools

import pytest


class FakeSnapshot:
    def __init__(self, doc_id: str, data: dict):
        self.id = doc_id
        self._data = data

    def to_dict(self) -> dict:
        return dict(self._data)


class FakeDocumentReference:
    def __init__(self, client: "FakeFirestoreClient", path: tuple[str, ...]):
        self._client = client
        self._path = path

    @property
    def id(self) -> str:
        return self._path[-1]

    def collection(self, name: str) -> "FakeCollectionReference":
        return FakeCollectionReference(self._client, self._path + (name,))

    async def delete(self) -> None:
        self._client.delete_calls.append(self.id)
        if self.id in self._client.fail_delete_ids:
            raise RuntimeError(f"delete failed: {self.id}")
        self._client.documents(self._path[:-1]).pop(self.id, None)


class FakeCollectionReference:
    def __init__(self, client: "FakeFirestoreClient", path: tuple[str, ...]):
        self._client = client
        self._path = path

    def document(self, doc_id: str) -> FakeDocumentReference:
        return FakeDocumentReference(self._client, self._path + (doc_id,))

    async def add(self, data: dict):
        if self._client.fail_writes:
            raise RuntimeError("write failed")
        doc_id = f"doc{next(self._client.ids)}"
        self._client.documents(self._path)[doc_id] = dict(data)
        return None, self.document(doc_id)

    async def stream(self):
        if self._client.fail_reads:
            raise RuntimeError("read failed")
        for doc_id, data in list(self._client.documents(self._path).items()):
            yield FakeSnapshot(doc_id, data)


class FakeFirestoreClient:
    """インメモリの Firestore 非同期クライアント。"""

    def __init__(self):
        self.collections: dict[tuple[str, ...], dict[str, dict]] = {}
        self.ids = itertools.count(1)
        self.delete_calls: list[str] = []
        self.fail_delete_ids: set[str] = set()
        self.fail_reads = False
        self.fail_writes = False

    def collection(self, name: str) -> FakeCollectionReference:
        return FakeCollectionReference(self, (name,))

    def documents(self, path: tuple[str, ...]) -> dict[str, dict]:
        return self.collections.setdefault(path, {})


@pytest.fixture
def firestore_client() -> FakeFirestoreClient:
    return FakeFirestoreClient()
