"""RecordSession — 認証状態の遷移と表示中の記録一覧を保持する.

状態遷移（マルチテナント）:
    PENDING / SIGNED_OUT --サインイン--> SIGNED_IN  : 一覧を自動で再読み込み
    SIGNED_IN           --サインアウト--> SIGNED_OUT : 一覧をメモリ上でのみ消去

再読み込みに失敗しても、前回読み込めた一覧は破棄しない。
"""

import enum
from typing import Any

from weight_tracker.analysis.summary import WeightSummary, summarize
from weight_tracker.interfaces.errors import (
    InvalidInput,
    NotAuthenticated,
    StoreUnavailable,
)
from weight_tracker.interfaces.record_store import Identity, Record, Scope
from weight_tracker.logger import get_logger
from weight_tracker.service.record_service import RecordService
from weight_tracker.service.tenancy import TenancyResolver

logger = get_logger(__name__)

_USER_ERRORS = (InvalidInput, NotAuthenticated, StoreUnavailable)


class AuthState(enum.Enum):
    """IDプロバイダから見た認証状態."""

    PENDING = "pending"
    SIGNED_OUT = "signed_out"
    SIGNED_IN = "signed_in"


class RecordSession:
    """1人の利用者が見ている記録一覧.

    表示層は records / error / loading を参照して描画する。
    add / remove / clear は成功後に一覧を再読み込みする。
    失敗は例外ではなく error にメッセージとして残る。
    """

    def __init__(self, service: RecordService, resolver: TenancyResolver) -> None:
        self._service = service
        self._resolver = resolver
        self._identity: Identity | None = None
        self._state = AuthState.PENDING if resolver.requires_identity else AuthState.SIGNED_OUT
        self._records: list[Record] = []
        self._error: str | None = None
        self._loading = False

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def records(self) -> list[Record]:
        return list(self._records)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def summary(self) -> WeightSummary:
        return summarize(self._records)

    def _scope(self) -> Scope:
        return self._resolver.resolve(self._identity)

    async def on_auth_state_changed(self, identity: Identity | None) -> None:
        """IDプロバイダからの認証状態変更通知を処理する.

        Args:
            identity: サインイン中のユーザー。None はサインアウト
        """
        if not self._resolver.requires_identity:
            # 単一テナントではスコープが変わらないので一覧も保持する
            self._identity = identity
            return

        if identity is None:
            previous = self._state
            self._state = AuthState.SIGNED_OUT
            self._identity = None
            self._records = []
            self._error = None
            if previous is AuthState.SIGNED_IN:
                logger.info("signed out; cleared in-memory records")
            return

        if self._state is AuthState.SIGNED_IN and self._identity == identity:
            return

        # 別ユーザーへの切り替えでは前のユーザーの一覧を残さない
        if self._identity is not None and self._identity.uid != identity.uid:
            self._records = []
        self._identity = identity
        self._state = AuthState.SIGNED_IN
        logger.info("signed in as %s", identity.uid)
        await self.reload()

    async def reload(self) -> bool:
        """一覧を再読み込みする. 成功すれば True."""
        self._loading = True
        try:
            scope = self._scope()
            records = await self._service.list_records(scope)
        except _USER_ERRORS as exc:
            self._error = str(exc)
            return False
        finally:
            self._loading = False

        # 読み込み中にサインアウト・ユーザー切り替えがあった場合は結果を捨てる
        if self._current_scope_or_none() != scope:
            return False
        self._records = records
        self._error = None
        return True

    def _current_scope_or_none(self) -> Scope | None:
        try:
            return self._scope()
        except NotAuthenticated:
            return None

    async def add(self, date: Any, weight: Any) -> bool:
        """記録を追加して再読み込みする."""
        self._error = None
        try:
            await self._service.add_record(self._scope(), date, weight)
        except _USER_ERRORS as exc:
            self._error = str(exc)
            return False
        return await self.reload()

    async def remove(self, record: Record) -> bool:
        """記録を削除して再読み込みする."""
        self._error = None
        try:
            await self._service.remove_record(self._scope(), record)
        except _USER_ERRORS as exc:
            self._error = str(exc)
            return False
        return await self.reload()

    async def clear(self) -> bool:
        """全記録を削除して再読み込みする."""
        self._error = None
        try:
            await self._service.clear_records(self._scope())
        except _USER_ERRORS as exc:
            self._error = str(exc)
            return False
        return await self.reload()
