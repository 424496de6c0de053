"""体重記録システム共通の例外クラス。

Store層は I/O 由来の例外をそのまま送出する。
RecordService がそれらを以下の3種類に変換してから表示層へ渡す。
"""


class WeightTrackerError(Exception):
    """本パッケージの例外の基底クラス。"""


class InvalidInput(WeightTrackerError, ValueError):
    """日付・体重の入力が不正。バックエンド呼び出し前に検出される。"""


class NotAuthenticated(WeightTrackerError):
    """テナント単位のストアに未サインインでアクセスした。"""


class StoreUnavailable(WeightTrackerError):
    """バックエンドの読み書きに失敗した。

    元の例外は __cause__ に連鎖させるが、利用者には表示しない。
    """

    def __init__(self, message: str = "Failed to access the weight records") -> None:
        super().__init__(message)


class MalformedRecordError(ValueError):
    """保存済みデータが Record に変換できない。"""


class ConfigurationError(ValueError):
    """設定値が不正または未設定。"""
