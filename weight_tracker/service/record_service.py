"""RecordService — 表示層が呼び出すファサード。

入力を検証し、Store層へ委譲し、日付昇順に並べた一覧を返す。
Store層の例外は全てここで InvalidInput / NotAuthenticated / StoreUnavailable に変換され、
表示層が生の例外を受け取ることはない。
"""

import math
from collections.abc import Awaitable
from typing import Any, TypeVar

from weight_tracker.interfaces.errors import (
    InvalidInput,
    StoreUnavailable,
    WeightTrackerError,
)
from weight_tracker.interfaces.record_store import (
    Record,
    RecordStoreInterface,
    Scope,
    parse_record_date,
)
from weight_tracker.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _sort_key(record: Record) -> tuple:
    # 解釈できない日付は末尾に回し、元の順序を保つ
    ts = parse_record_date(record.date)
    if ts is None:
        return (1,)
    return (0, ts)


def sort_records(records: list[Record]) -> list[Record]:
    """日付昇順の安定ソート。日付が解釈できない記録も除外しない。"""
    return sorted(records, key=_sort_key)


def _coerce_weight(value: Any) -> float:
    """数値または数値文字列を float に変換する。"""
    if value is None or isinstance(value, bool):
        raise InvalidInput("weight is required")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidInput("weight is required")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidInput("weight must be a number") from None


def validate_entry(date: Any, weight: Any) -> tuple[str, float]:
    """追加する記録の日付と体重を検証する。

    Returns:
        (date, weight)

    Raises:
        InvalidInput: 日付が空・解釈不能、または体重が正の有限数でない場合
    """
    if not isinstance(date, str) or not date.strip():
        raise InvalidInput("date is required")
    date = date.strip()
    if parse_record_date(date) is None:
        raise InvalidInput(f"date {date!r} is not a valid date")

    value = _coerce_weight(weight)
    if not math.isfinite(value) or value <= 0:
        raise InvalidInput("weight must be a positive number")
    return date, value


def removal_target(date: Any, weight: Any, record_id: str | None = None) -> Record:
    """削除対象の Record を組み立てる。

    id があれば id で、無ければ (date, weight) の完全一致で削除される。
    既存の不正な記録も消せるよう、体重の正値チェックはしない。
    null や数値でない体重は NaN とし、保存済みの NaN の記録に一致させる。
    """
    if not isinstance(date, str) or not date.strip():
        raise InvalidInput("date and weight are required to delete a record")
    try:
        value = _coerce_weight(weight)
    except InvalidInput:
        value = math.nan
    return Record(date=date.strip(), weight=value, id=record_id or None)


class RecordService:
    """体重記録のファサード。

    どのバックエンドが使われているかは知らない。
    同一セッション内の操作は await の順に適用されるが、
    複数セッション間の排他制御は行わない（後勝ち）。
    """

    def __init__(self, store: RecordStoreInterface) -> None:
        self._store = store

    async def _call(self, action: str, operation: Awaitable[T]) -> T:
        """Store層を呼び出し、失敗を StoreUnavailable に変換する。"""
        try:
            return await operation
        except WeightTrackerError:
            raise
        except Exception as exc:
            logger.exception("failed to %s", action)
            raise StoreUnavailable() from exc

    async def list_records(self, scope: Scope) -> list[Record]:
        """scope 内の全記録を日付昇順で返す。"""
        records = await self._call("list records", self._store.list_records(scope))
        return sort_records(records)

    async def add_record(self, scope: Scope, date: Any, weight: Any) -> Record:
        """記録を1件追加する。

        Args:
            scope: 保存先スコープ
            date: YYYY-MM-DD 形式の日付
            weight: 体重（kg）。数値文字列も受け付ける

        Returns:
            保存された記録（バックエンドが採番した id を含む）
        """
        date, value = validate_entry(date, weight)
        return await self._call(
            "add record", self._store.add_record(scope, Record(date=date, weight=value))
        )

    async def remove_record(self, scope: Scope, record: Record) -> None:
        """記録を削除する。存在しない記録の削除は成功扱い。"""
        await self._call("remove record", self._store.remove_record(scope, record))

    async def clear_records(self, scope: Scope) -> None:
        """scope 内の全記録を削除する。失敗時の途中状態は巻き戻さない。"""
        await self._call("clear records", self._store.clear(scope))
