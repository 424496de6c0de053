"""Store層の抽象インターフェース。

Store層は体重記録の永続化を担う。
バックエンド（CSVファイル / Firestore 全体共有 / Firestore ユーザー単位）は
全てこのインターフェースを実装し、RecordService は実装の種類を知らない。
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True)
class Identity:
    """IDプロバイダが通知するサインイン済みユーザー。"""

    uid: str
    display_name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class Scope:
    """記録コレクションの論理区画。

    tenant_id が None なら全体共有スコープ、
    それ以外はそのユーザー専用のスコープ。
    1回の操作の間は変化しない。
    """

    tenant_id: str | None = None

    @property
    def is_global(self) -> bool:
        return self.tenant_id is None


GLOBAL_SCOPE = Scope()


@dataclass(frozen=True)
class Record:
    """体重記録（ドメインモデル）。

    date は ISO-8601 の日付文字列（YYYY-MM-DD）で、表示値とソートキーを兼ねる。
    id はバックエンドが採番する。CSVバックエンドでは常に None。
    """

    date: str
    weight: float
    id: str | None = None


def weights_match(a: float, b: float) -> bool:
    """体重が一致するか。数値でない体重（NaN）同士も一致とみなす。"""
    if math.isnan(a) or math.isnan(b):
        return math.isnan(a) and math.isnan(b)
    return a == b


def parse_record_date(value: str) -> pd.Timestamp | None:
    """日付文字列を比較可能なタイムスタンプに変換する。

    ISO-8601 として解釈できなければ None を返す。
    タイムゾーン付きの値はタイムゾーン情報を落として扱う。
    """
    if not isinstance(value, str) or not value.strip():
        return None
    ts = pd.to_datetime(value.strip(), format="ISO8601", errors="coerce")
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


class RecordStoreInterface(ABC):
    """Store層の抽象インターフェース。

    全ての操作は非同期で、scope ごとに独立したコレクションを扱う。
    エラーは握りつぶさずに送出すること。変換は RecordService の責務。
    """

    @abstractmethod
    async def list_records(self, scope: Scope) -> list[Record]:
        """scope 内の全記録を取得する。順序はバックエンドの自然順。"""
        ...

    @abstractmethod
    async def add_record(self, scope: Scope, record: Record) -> Record:
        """記録を1件追加する。

        Returns:
            保存された記録（バックエンドが採番した id を含む）
        """
        ...

    @abstractmethod
    async def remove_record(self, scope: Scope, record: Record) -> None:
        """記録を削除する。存在しない記録の削除はエラーにしない。"""
        ...

    @abstractmethod
    async def clear(self, scope: Scope) -> None:
        """scope 内の全記録を削除する。"""
        ...
