"""Store層のCSVファイル実装。

1行目がヘッダ ``date,weight``、以降1行1記録の UTF-8 テキストファイルに保存する。
単一プロセス・低頻度書き込みを前提とし、ファイルロックは行わない。
並行書き込みがあると行が混ざる可能性がある。
async メソッドもファイル I/O と pandas の処理はイベントループ上で同期的に行う。
"""

import io
import math
import os
import tempfile
from pathlib import Path

import pandas as pd

from weight_tracker.interfaces.record_store import (
    Record,
    RecordStoreInterface,
    Scope,
    weights_match,
)
from weight_tracker.logger import get_logger

HEADER = "date,weight"

logger = get_logger(__name__)


def _format_weight(weight: float) -> str:
    """体重をファイル上の表記に変換する（82.5 → "82.5", 83.0 → "83"）。"""
    weight = float(weight)
    if weight.is_integer():
        return str(int(weight))
    if math.isnan(weight):
        return "NaN"
    return repr(weight)


def _format_line(record: Record) -> str:
    return f"{record.date},{_format_weight(record.weight)}"


def parse_csv(content: str) -> list[Record]:
    """ファイル内容を Record のリストに変換する。

    ヘッダ行（1行目）と空行は読み飛ばす。
    数値として解釈できない体重は NaN になる。
    """
    lines = [line.strip() for line in content.strip().splitlines()[1:]]
    body = "\n".join(line for line in lines if line)
    if not body:
        return []

    df = pd.read_csv(
        io.StringIO(body),
        header=None,
        names=["date", "weight"],
        index_col=False,
        dtype=str,
        keep_default_na=False,
    )
    weights = pd.to_numeric(df["weight"].str.strip(), errors="coerce")
    return [
        Record(date=date, weight=float(weight))
        for date, weight in zip(df["date"], weights, strict=True)
    ]


class CsvFileRecordStore(RecordStoreInterface):
    """CSVファイルによる単一テナントのStore層実装。

    scope は無視する（常に1つのファイルを共有する）。
    記録に id は付与されず、(date, weight) の組で同一性を判定する。
    """

    def __init__(self, csv_path: str | Path):
        """初期化。

        Args:
            csv_path: 保存先CSVファイルのパス
        """
        self._csv_path = Path(csv_path)

    @property
    def csv_path(self) -> Path:
        return self._csv_path

    def ensure_initialized(self) -> None:
        """ファイルが無ければヘッダ行だけのファイルを作成する。何度呼んでもよい。"""
        if self._csv_path.exists():
            return
        self._csv_path.parent.mkdir(parents=True, exist_ok=True)
        self._csv_path.write_text(HEADER + "\n", encoding="utf-8")
        logger.debug("created %s", self._csv_path)

    def read_all(self) -> list[Record]:
        """ファイル全体を読み込む。"""
        self.ensure_initialized()
        return parse_csv(self._csv_path.read_text(encoding="utf-8"))

    def append_one(self, record: Record) -> None:
        """1件を追記する。ファイル全体を書き換えない唯一の操作。"""
        self.ensure_initialized()
        with self._csv_path.open("a", encoding="utf-8") as f:
            f.write("\n" + _format_line(record))

    def write_all(self, records: list[Record]) -> None:
        """ヘッダ + 全記録でファイルを上書きする。

        一時ファイルに書いてから置き換えるので、途中で失敗しても
        元のファイルは壊れない。
        """
        content = HEADER + "\n" + "\n".join(_format_line(r) for r in records)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._csv_path.parent, prefix=f".{self._csv_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.replace(tmp_name, self._csv_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def list_records(self, scope: Scope) -> list[Record]:
        return self.read_all()

    async def add_record(self, scope: Scope, record: Record) -> Record:
        stored = Record(date=record.date, weight=record.weight)
        self.append_one(stored)
        return stored

    async def remove_record(self, scope: Scope, record: Record) -> None:
        """(date, weight) が一致する記録を全て削除する。

        数値でない体重（NaN）の記録は、体重に NaN を指定すると一致する。
        一致が無ければファイルには触れない。
        """
        records = self.read_all()
        kept = [
            r
            for r in records
            if not (r.date == record.date and weights_match(r.weight, record.weight))
        ]
        if len(kept) == len(records):
            return
        self.write_all(kept)
        logger.debug("removed %d record(s)", len(records) - len(kept))

    async def clear(self, scope: Scope) -> None:
        self.ensure_initialized()
        self.write_all([])
