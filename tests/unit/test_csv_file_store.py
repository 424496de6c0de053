"""CSVファイル実装固有のテスト（ファイル形式・同一性・初期化）。"""

import asyncio
import math

from weight_tracker.interfaces.record_store import GLOBAL_SCOPE, Record
from weight_tracker.store.csv_file import CsvFileRecordStore, parse_csv


def _run(coro):
    return asyncio.run(coro)


class TestEnsureInitialized:
    """ファイル初期化のテスト。"""

    def test_creates_header_only_file(self, tmp_path):
        """存在しなければヘッダ行だけのファイルを作る。"""
        path = tmp_path / "weights.csv"
        store = CsvFileRecordStore(path)
        store.ensure_initialized()
        assert path.read_text(encoding="utf-8") == "date,weight\n"

    def test_creates_parent_directory(self, tmp_path):
        """親ディレクトリが無くても作成される。"""
        path = tmp_path / "data" / "weights.csv"
        CsvFileRecordStore(path).ensure_initialized()
        assert path.exists()

    def test_idempotent(self, tmp_path):
        """既存ファイルは上書きしない。"""
        path = tmp_path / "weights.csv"
        path.write_text("date,weight\n2024-01-01,80", encoding="utf-8")
        store = CsvFileRecordStore(path)
        store.ensure_initialized()
        store.ensure_initialized()
        assert path.read_text(encoding="utf-8") == "date,weight\n2024-01-01,80"

    def test_list_on_empty_store(self, tmp_path):
        """空のストアの一覧は空で、ファイルはヘッダ行のみ。"""
        path = tmp_path / "weights.csv"
        store = CsvFileRecordStore(path)
        assert _run(store.list_records(GLOBAL_SCOPE)) == []
        assert path.read_text(encoding="utf-8") == "date,weight\n"


class TestFileFormat:
    """ファイル形式のテスト。"""

    def test_append_writes_newline_then_line(self, tmp_path):
        """追記は改行 + date,weight を書き込む。"""
        path = tmp_path / "weights.csv"
        store = CsvFileRecordStore(path)
        _run(store.add_record(GLOBAL_SCOPE, Record(date="2024-01-10", weight=82.5)))
        _run(store.add_record(GLOBAL_SCOPE, Record(date="2024-01-05", weight=83.0)))
        assert path.read_text(encoding="utf-8") == (
            "date,weight\n\n2024-01-10,82.5\n2024-01-05,83"
        )

    def test_write_all_rewrites_whole_file(self, tmp_path):
        """write_all はヘッダ + 1行1記録で上書きする。"""
        path = tmp_path / "weights.csv"
        store = CsvFileRecordStore(path)
        store.ensure_initialized()
        store.write_all(
            [Record(date="2024-01-01", weight=80.2), Record(date="2024-01-02", weight=80.0)]
        )
        assert path.read_text(encoding="utf-8") == "date,weight\n2024-01-01,80.2\n2024-01-02,80"

    def test_clear_leaves_header(self, tmp_path):
        """clear 後はヘッダ行だけが残る。"""
        path = tmp_path / "weights.csv"
        store = CsvFileRecordStore(path)
        _run(store.add_record(GLOBAL_SCOPE, Record(date="2024-01-10", weight=82.5)))
        _run(store.clear(GLOBAL_SCOPE))
        assert path.read_text(encoding="utf-8") == "date,weight\n"

    def test_no_temp_files_left_behind(self, tmp_path):
        """上書き後に一時ファイルが残らない。"""
        store = CsvFileRecordStore(tmp_path / "weights.csv")
        _run(store.add_record(GLOBAL_SCOPE, Record(date="2024-01-10", weight=82.5)))
        _run(store.clear(GLOBAL_SCOPE))
        assert [p.name for p in tmp_path.iterdir()] == ["weights.csv"]


class TestParseCsv:
    """読み込み時のパースのテスト。"""

    def test_skips_header_and_blank_lines(self):
        """ヘッダ行と空行（末尾含む）は読み飛ばす。"""
        content = "date,weight\n\n2024-01-10,82.5\n\n2024-01-05,83\n\n\n"
        records = parse_csv(content)
        assert records == [
            Record(date="2024-01-10", weight=82.5),
            Record(date="2024-01-05", weight=83.0),
        ]

    def test_header_only(self):
        """ヘッダ行だけなら空リスト。"""
        assert parse_csv("date,weight\n") == []

    def test_empty_content(self):
        """空ファイルでも例外にならない。"""
        assert parse_csv("") == []

    def test_non_numeric_weight_becomes_nan(self):
        """数値でない体重は 0 ではなく NaN になる。"""
        records = parse_csv("date,weight\n2024-01-10,abc\n2024-01-11,81")
        assert records[0].date == "2024-01-10"
        assert math.isnan(records[0].weight)
        assert records[1].weight == 81.0

    def test_missing_weight_becomes_nan(self):
        """体重の欠けた行も NaN として読み込む。"""
        records = parse_csv("date,weight\n2024-01-10")
        assert len(records) == 1
        assert math.isnan(records[0].weight)

    def test_windows_line_endings(self):
        """CRLF の改行でも読み込める。"""
        records = parse_csv("date,weight\r\n2024-01-10,82.5\r\n")
        assert records == [Record(date="2024-01-10", weight=82.5)]


class TestRemoveByValue:
    """値による同一性のテスト。"""

    def test_removes_all_duplicates(self, tmp_path):
        """date と weight が同じ記録は区別できず、全て削除される。"""
        store = CsvFileRecordStore(tmp_path / "weights.csv")

        async def _test():
            for _ in range(2):
                await store.add_record(GLOBAL_SCOPE, Record(date="2024-01-10", weight=82.5))
            await store.add_record(GLOBAL_SCOPE, Record(date="2024-01-10", weight=82.0))
            await store.remove_record(GLOBAL_SCOPE, Record(date="2024-01-10", weight=82.5))
            return await store.list_records(GLOBAL_SCOPE)

        assert _run(_test()) == [Record(date="2024-01-10", weight=82.0)]

    def test_missing_record_leaves_file_untouched(self, tmp_path):
        """一致する記録が無ければファイルはバイト単位で変わらない。"""
        path = tmp_path / "weights.csv"
        store = CsvFileRecordStore(path)
        _run(store.add_record(GLOBAL_SCOPE, Record(date="2024-01-10", weight=82.5)))
        before = path.read_bytes()

        _run(store.remove_record(GLOBAL_SCOPE, Record(date="2024-01-10", weight=82.4)))

        assert path.read_bytes() == before

    def test_weight_compared_numerically(self, tmp_path):
        """ファイル上の "83" と 83.0 は同じ記録として扱う。"""
        path = tmp_path / "weights.csv"
        path.write_text("date,weight\n2024-01-05,83\n2024-01-06,82", encoding="utf-8")
        store = CsvFileRecordStore(path)
        _run(store.remove_record(GLOBAL_SCOPE, Record(date="2024-01-05", weight=83.0)))
        assert path.read_text(encoding="utf-8") == "date,weight\n2024-01-06,82"

    def test_nan_target_removes_non_numeric_rows(self, tmp_path):
        """体重に NaN を指定すると、同じ日付の数値でない体重の行だけが削除される。"""
        path = tmp_path / "weights.csv"
        path.write_text(
            "date,weight\n2024-01-01,abc\n2024-01-01,80\n2024-01-02,oops", encoding="utf-8"
        )
        store = CsvFileRecordStore(path)
        _run(store.remove_record(GLOBAL_SCOPE, Record(date="2024-01-01", weight=math.nan)))
        assert path.read_text(encoding="utf-8") == "date,weight\n2024-01-01,80\n2024-01-02,NaN"

    def test_numeric_target_does_not_match_nan_row(self, tmp_path):
        path = tmp_path / "weights.csv"
        path.write_text("date,weight\n2024-01-01,abc", encoding="utf-8")
        before = path.read_bytes()
        store = CsvFileRecordStore(path)
        _run(store.remove_record(GLOBAL_SCOPE, Record(date="2024-01-01", weight=80.0)))
        assert path.read_bytes() == before
