"""Tests for dataset upload storage, row estimates and previews."""
import io

import pytest

from model_builder.api.errors import UnsupportedFileTypeError, UploadTooLargeError
from model_builder.api.services.dataset_service import (
    build_preview,
    check_extension,
    estimate_rows,
    save_upload,
    secure_filename,
    stored_filename,
)


class _FakeUpload:
    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    async def read(self, size=-1):
        return self._buf.read(size)


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_secure_filename():
    assert secure_filename("../../etc/passwd") == "passwd"
    assert secure_filename("my data (v2).csv") == "my_data_v2_.csv"
    assert secure_filename("") == "file"
    assert secure_filename("..") == "file"


def test_stored_filename_prefix():
    name = stored_filename("a b.csv")
    prefix, rest = name.split("_", 1)
    assert prefix.isdigit()
    assert rest == "a_b.csv"


@pytest.mark.parametrize("name", ["x.csv", "X.TSV", "y.json", "notes.txt"])
def test_check_extension_accepts(name):
    check_extension(name)


@pytest.mark.parametrize("name", ["x.parquet", "noext", ""])
def test_check_extension_rejects(name):
    with pytest.raises(UnsupportedFileTypeError):
        check_extension(name)


@pytest.mark.asyncio
async def test_save_upload_streams_chunks(tmp_path):
    dest = tmp_path / "nested" / "out.csv"
    written = await save_upload(_FakeUpload(b"a,b\n1,2\n"), dest, chunk_size=3)
    assert written == 8
    assert dest.read_bytes() == b"a,b\n1,2\n"


@pytest.mark.asyncio
async def test_save_upload_too_large_removes_partial(tmp_path):
    dest = tmp_path / "big.csv"
    with pytest.raises(UploadTooLargeError):
        await save_upload(_FakeUpload(b"x" * 100), dest, max_size=10, chunk_size=4)
    assert not dest.exists()


def test_estimate_rows(tmp_path):
    assert estimate_rows(_write(tmp_path, "a.csv", "h\n1\n2\n")) == 2
    assert estimate_rows(_write(tmp_path, "b.csv", "h")) == 0
    assert estimate_rows(_write(tmp_path, "c.csv", "")) == 0
    assert estimate_rows(tmp_path / "missing.csv") is None


def test_estimate_rows_respects_scan_limit(tmp_path):
    path = _write(tmp_path, "long.csv", "r\n" * 1000)
    assert estimate_rows(path, limit=20, chunk_size=8) == 9


def test_preview_tsv(tmp_path):
    path = _write(tmp_path, "s.tsv", "x\ty\n1\t2\n")
    preview = build_preview(path, "s.tsv")
    assert preview == {"format": "tsv", "columns": ["x", "y"], "rows": [["1", "2"]]}


def test_preview_csv_row_and_column_limits(tmp_path):
    header = ",".join(f"c{i}" for i in range(40))
    body = "\n".join(",".join(str(r) for _ in range(40)) for r in range(100))
    path = _write(tmp_path, "wide.csv", header + "\n" + body + "\n")
    preview = build_preview(path, "wide.csv")
    assert len(preview["columns"]) == 30
    assert len(preview["rows"]) == 24
    assert all(len(r) == 30 for r in preview["rows"])


def test_preview_json_detected_by_content(tmp_path):
    path = _write(tmp_path, "blob.txt", '[["a", "b"], [1, 2], [3, 4]]')
    preview = build_preview(path, "blob.txt")
    assert preview["format"] == "json"
    assert preview["columns"] == ["a", "b"]
    assert preview["rows"] == [[1, 2], [3, 4]]


def test_preview_json_scalars(tmp_path):
    path = _write(tmp_path, "v.json", "[1, 2, 3]")
    preview = build_preview(path, "v.json")
    assert preview["columns"] == ["value"]
    assert preview["rows"] == [["1"], ["2"], ["3"]]


@pytest.mark.parametrize("text", ['{"not": "a list"}', "[", "[]"])
def test_preview_json_unusable_is_empty(tmp_path, text):
    path = _write(tmp_path, "bad.json", text)
    assert build_preview(path, "bad.json") == {"format": "json", "columns": [], "rows": []}


def test_preview_empty_csv(tmp_path):
    path = _write(tmp_path, "empty.csv", "")
    assert build_preview(path, "empty.csv") == {"format": "csv", "columns": [], "rows": []}
