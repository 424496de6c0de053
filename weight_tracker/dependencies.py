"""DI用ファクトリ関数。

weight_tracker/ 直下に配置することで、api/ や service/ から store/ への
直接依存を避けつつ、FastAPI の Depends() で注入できる。
どのバックエンドを使うかは settings.WEIGHT_TRACKER_BACKEND で決まる。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from weight_tracker.config import (
    BACKEND_CSV,
    BACKEND_FIRESTORE,
    Settings,
    settings,
)
from weight_tracker.interfaces.record_store import RecordStoreInterface
from weight_tracker.service.record_service import RecordService
from weight_tracker.service.tenancy import (
    MultiTenantResolver,
    SingleTenantResolver,
    TenancyResolver,
)

if TYPE_CHECKING:
    from google.cloud import firestore

_firestore_client: firestore.AsyncClient | None = None
_record_store: RecordStoreInterface | None = None
_record_service: RecordService | None = None
_tenancy_resolver: TenancyResolver | None = None


def get_firestore_client() -> firestore.AsyncClient:
    """Firestore クライアントのシングルトンを返す。初回呼び出し時に生成する。"""
    global _firestore_client
    if _firestore_client is None:
        from weight_tracker.store.google_credentials import create_firestore_client

        _firestore_client = create_firestore_client(settings.WEIGHT_TRACKER_FIRESTORE_PROJECT)
    return _firestore_client


def create_record_store(config: Settings) -> RecordStoreInterface:
    """設定に対応するStore層の実装を生成する。"""
    if config.WEIGHT_TRACKER_BACKEND == BACKEND_CSV:
        from weight_tracker.store.csv_file import CsvFileRecordStore

        return CsvFileRecordStore(config.WEIGHT_TRACKER_CSV_PATH)

    if config.WEIGHT_TRACKER_BACKEND == BACKEND_FIRESTORE:
        from weight_tracker.store.firestore import GlobalFirestoreRecordStore

        return GlobalFirestoreRecordStore(
            get_firestore_client(),
            collection_name=config.WEIGHT_TRACKER_COLLECTION,
            clear_concurrency=config.WEIGHT_TRACKER_CLEAR_CONCURRENCY,
        )

    from weight_tracker.store.firestore import TenantFirestoreRecordStore

    return TenantFirestoreRecordStore(
        get_firestore_client(),
        collection_name=config.WEIGHT_TRACKER_COLLECTION,
        users_collection=config.WEIGHT_TRACKER_USERS_COLLECTION,
        clear_concurrency=config.WEIGHT_TRACKER_CLEAR_CONCURRENCY,
    )


def get_record_store() -> RecordStoreInterface:
    """RecordStoreのシングルトンインスタンスを返す。"""
    global _record_store
    if _record_store is None:
        _record_store = create_record_store(settings)
    return _record_store


def get_record_service() -> RecordService:
    """RecordServiceのシングルトンインスタンスを返す。"""
    global _record_service
    if _record_service is None:
        _record_service = RecordService(get_record_store())
    return _record_service


def get_tenancy_resolver() -> TenancyResolver:
    """TenancyResolverのシングルトンインスタンスを返す。"""
    global _tenancy_resolver
    if _tenancy_resolver is None:
        if settings.is_multi_tenant:
            _tenancy_resolver = MultiTenantResolver()
        else:
            _tenancy_resolver = SingleTenantResolver()
    return _tenancy_resolver


def _reset_all() -> None:
    """全シングルトンをリセットする（テスト用）。"""
    global _firestore_client, _record_store, _record_service, _tenancy_resolver
    _firestore_client = None
    _record_store = None
    _record_service = None
    _tenancy_resolver = None
