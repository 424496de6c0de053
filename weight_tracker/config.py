"""環境変数から読み込む設定。

プロジェクトルートに .env を置くか、シェルで export する。
未設定の値はデフォルトにフォールバックする。
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from weight_tracker.interfaces.errors import ConfigurationError

load_dotenv()

BACKEND_CSV = "csv"
BACKEND_FIRESTORE = "firestore"
BACKEND_FIRESTORE_TENANT = "firestore_tenant"

VALID_BACKENDS = {BACKEND_CSV, BACKEND_FIRESTORE, BACKEND_FIRESTORE_TENANT}
_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _int_env(name: str, default: str) -> int:
    """整数の環境変数を読む。整数でなければ ConfigurationError。"""
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name}={raw!r}: must be an integer") from None


@dataclass(frozen=True)
class Settings:
    """アプリ全体の設定。各フィールドは環境変数に対応する。

    引数なしで生成すると環境変数の値、明示的に渡すとその値を使う（テスト用）。
    """

    ## バックエンド

    WEIGHT_TRACKER_BACKEND: str = os.environ.get("WEIGHT_TRACKER_BACKEND", BACKEND_CSV).lower()
    """csv / firestore / firestore_tenant のいずれか。"""

    WEIGHT_TRACKER_CSV_PATH: Path = Path(os.environ.get("WEIGHT_TRACKER_CSV_PATH", "data/weights.csv"))

    WEIGHT_TRACKER_FIRESTORE_PROJECT: str = os.environ.get("WEIGHT_TRACKER_FIRESTORE_PROJECT", "")
    """空なら認証情報から自動判定する。"""

    WEIGHT_TRACKER_COLLECTION: str = os.environ.get("WEIGHT_TRACKER_COLLECTION", "weights")

    WEIGHT_TRACKER_USERS_COLLECTION: str = os.environ.get("WEIGHT_TRACKER_USERS_COLLECTION", "users")

    WEIGHT_TRACKER_CLEAR_CONCURRENCY: int = _int_env("WEIGHT_TRACKER_CLEAR_CONCURRENCY", "10")
    """全削除時に同時発行する削除リクエストの上限。"""

    ## ログ

    WEIGHT_TRACKER_LOG_LEVEL: str = os.environ.get("WEIGHT_TRACKER_LOG_LEVEL", "INFO").upper()

    WEIGHT_TRACKER_LOG_FORMAT: str = os.environ.get(
        "WEIGHT_TRACKER_LOG_FORMAT", "[%(asctime)s] %(levelname)s:%(name)s: %(message)s"
    )

    WEIGHT_TRACKER_LOG_DATE_FORMAT: str = os.environ.get("WEIGHT_TRACKER_LOG_DATE_FORMAT", "%Y-%m-%d %H:%M:%S")

    def __post_init__(self) -> None:
        """生成時に値を検証する。"""
        if self.WEIGHT_TRACKER_BACKEND not in VALID_BACKENDS:
            raise ConfigurationError(
                f"WEIGHT_TRACKER_BACKEND={self.WEIGHT_TRACKER_BACKEND!r}: "
                f"must be one of {sorted(VALID_BACKENDS)}"
            )

        if self.WEIGHT_TRACKER_LOG_LEVEL not in _VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"WEIGHT_TRACKER_LOG_LEVEL={self.WEIGHT_TRACKER_LOG_LEVEL!r}: "
                f"must be one of {sorted(_VALID_LOG_LEVELS)}"
            )

        if self.WEIGHT_TRACKER_CLEAR_CONCURRENCY < 1:
            raise ConfigurationError(
                f"WEIGHT_TRACKER_CLEAR_CONCURRENCY={self.WEIGHT_TRACKER_CLEAR_CONCURRENCY}: "
                "must be at least 1"
            )

    @property
    def WEIGHT_TRACKER_LOG_LEVEL_INT(self) -> int:
        """logging モジュールで使える int のログレベル。"""
        return getattr(logging, self.WEIGHT_TRACKER_LOG_LEVEL, logging.INFO)

    @property
    def is_multi_tenant(self) -> bool:
        return self.WEIGHT_TRACKER_BACKEND == BACKEND_FIRESTORE_TENANT


settings = Settings()
