"""Store層の Firestore 実装。

全体共有のコレクション（``weights``）を使う GlobalFirestoreRecordStore と、
ユーザーごとのサブコレクション（``users/{uid}/weights``）を使う
TenantFirestoreRecordStore を提供する。
"""

import asyncio
from abc import abstractmethod

from google.cloud import firestore

from weight_tracker.interfaces.errors import MalformedRecordError, NotAuthenticated
from weight_tracker.interfaces.record_store import (
    Record,
    RecordStoreInterface,
    Scope,
    weights_match,
)
from weight_tracker.logger import get_logger

logger = get_logger(__name__)


def _to_record(doc_id: str, data: dict | None) -> Record:
    """Firestore ドキュメントを Record に変換する。"""
    if not data or "date" not in data or "weight" not in data:
        raise MalformedRecordError(f"document {doc_id} is missing date/weight")
    date = data["date"]
    weight = data["weight"]
    if not isinstance(date, str) or isinstance(weight, bool) or not isinstance(weight, (int, float)):
        raise MalformedRecordError(f"document {doc_id} has invalid field types")
    return Record(date=date, weight=float(weight), id=doc_id)


def _matches_value(data: dict | None, record: Record) -> bool:
    if not data:
        return False
    weight = data.get("weight")
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        return False
    return data.get("date") == record.date and weights_match(float(weight), record.weight)


class FirestoreRecordStore(RecordStoreInterface):
    """Firestore によるStore層実装の基底クラス。

    サブクラスは _collection() で scope に対応するコレクションを返す。
    ドキュメント id がそのまま Record.id になる。
    """

    def __init__(
        self,
        client: firestore.AsyncClient,
        collection_name: str = "weights",
        clear_concurrency: int = 10,
    ) -> None:
        """初期化。

        Args:
            client: プロセス共有の Firestore 非同期クライアント
            collection_name: 記録を格納するコレクション名
            clear_concurrency: clear() で同時に発行する削除の上限
        """
        self._client = client
        self._collection_name = collection_name
        self._clear_concurrency = clear_concurrency

    @abstractmethod
    def _collection(self, scope: Scope):
        """scope に対応するコレクション参照を返す。"""
        ...

    async def list_records(self, scope: Scope) -> list[Record]:
        collection = self._collection(scope)
        return [_to_record(doc.id, doc.to_dict()) async for doc in collection.stream()]

    async def add_record(self, scope: Scope, record: Record) -> Record:
        collection = self._collection(scope)
        # created_at は参考情報。ソートには使わない
        _, doc_ref = await collection.add(
            {
                "date": record.date,
                "weight": record.weight,
                "created_at": firestore.SERVER_TIMESTAMP,
            }
        )
        return Record(date=record.date, weight=record.weight, id=doc_ref.id)

    async def remove_record(self, scope: Scope, record: Record) -> None:
        """記録を削除する。

        id があればそのドキュメントだけを削除する。
        id が無ければ (date, weight) が一致するドキュメントを全て削除する。
        """
        collection = self._collection(scope)
        if record.id is not None:
            await collection.document(record.id).delete()
            return

        doc_ids = [
            doc.id
            async for doc in collection.stream()
            if _matches_value(doc.to_dict(), record)
        ]
        await self._delete_all(collection, doc_ids)

    async def clear(self, scope: Scope) -> None:
        """全ドキュメントを削除する。

        削除は並行に発行し、全件の完了を待ってから返る。
        1件でも失敗すれば例外を送出する（ロールバックはしない）。
        """
        collection = self._collection(scope)
        doc_ids = [doc.id async for doc in collection.stream()]
        await self._delete_all(collection, doc_ids)
        logger.debug("deleted %d document(s)", len(doc_ids))

    async def _delete_all(self, collection, doc_ids: list[str]) -> None:
        semaphore = asyncio.Semaphore(self._clear_concurrency)

        async def _delete(doc_id: str) -> None:
            async with semaphore:
                await collection.document(doc_id).delete()

        results = await asyncio.gather(
            *(_delete(doc_id) for doc_id in doc_ids), return_exceptions=True
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            logger.debug("%d of %d deletion(s) failed", len(errors), len(doc_ids))
            raise errors[0]


class GlobalFirestoreRecordStore(FirestoreRecordStore):
    """全ユーザーで1つのコレクションを共有する実装。scope は無視する。"""

    def _collection(self, scope: Scope):
        return self._client.collection(self._collection_name)


class TenantFirestoreRecordStore(FirestoreRecordStore):
    """ユーザーごとのサブコレクションに保存する実装。

    パスは ``{users_collection}/{tenant_id}/{collection_name}``。
    tenant_id の無い scope での操作は NotAuthenticated。
    """

    def __init__(
        self,
        client: firestore.AsyncClient,
        collection_name: str = "weights",
        users_collection: str = "users",
        clear_concurrency: int = 10,
    ) -> None:
        super().__init__(client, collection_name, clear_concurrency)
        self._users_collection = users_collection

    def _collection(self, scope: Scope):
        if not scope.tenant_id:
            raise NotAuthenticated("Sign in to access your records")
        return (
            self._client.collection(self._users_collection)
            .document(scope.tenant_id)
            .collection(self._collection_name)
        )
