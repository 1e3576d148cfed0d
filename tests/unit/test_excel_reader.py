from __future__ import annotations

import importlib.util
from pathlib import Path

import pandas as pd
import pytest

from resource_forge.excel import reader
from resource_forge.excel.reader import DecodeError, read_rows, rows_from_frame


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_read_csv_rows_as_strings(tmp_path: Path):
    f = _write(tmp_path / "tasks.csv", "TaskID,Duration,Notes\nT1,2,\n,,\nT2,x,late\n")
    ds = read_rows(f)
    assert ds.columns == ["TaskID", "Duration", "Notes"]
    # 全空行はスキップ
    assert ds.rows == [
        {"TaskID": "T1", "Duration": "2", "Notes": None},
        {"TaskID": "T2", "Duration": "x", "Notes": "late"},
    ]


def test_read_xlsx_first_sheet(tmp_path: Path):
    f = tmp_path / "workers.xlsx"
    pd.DataFrame({"WorkerID": ["W1", "W2"], "MaxLoadPerPhase": [2, 3]}).to_excel(f, index=False, engine="openpyxl")
    ds = read_rows(f)
    assert [r["WorkerID"] for r in ds.rows] == ["W1", "W2"]
    assert [int(r["MaxLoadPerPhase"]) for r in ds.rows] == [2, 3]


def test_read_legacy_xls_uses_xlrd(tmp_path: Path, monkeypatch):
    calls = []

    def fake_read_excel(path, **kwargs):
        calls.append(kwargs)
        return pd.DataFrame({"TaskID": ["T1"], "Duration": [2]})

    monkeypatch.setattr(reader.pd, "read_excel", fake_read_excel)
    f = _write(tmp_path / "tasks.xls", "")
    ds = read_rows(f)
    assert ds.rows == [{"TaskID": "T1", "Duration": 2}]
    assert calls[0]["engine"] == "xlrd"
    assert calls[0]["sheet_name"] == 0


def test_excel_engines_are_importable():
    for suffix, engine in reader.EXCEL_ENGINES.items():
        assert suffix in reader.SUPPORTED_SUFFIXES
        assert importlib.util.find_spec(engine) is not None, engine


def test_keep_na_strings(tmp_path: Path):
    f = _write(tmp_path / "clients.csv", "ClientID,GroupTag\nC1,NA\n")
    assert read_rows(f).rows[0]["GroupTag"] is None
    assert read_rows(f, keep_na_strings=["NA"]).rows[0]["GroupTag"] == "NA"


def test_unsupported_format(tmp_path: Path):
    f = _write(tmp_path / "data.txt", "a,b\n1,2\n")
    with pytest.raises(DecodeError, match="Unsupported file format. Please use CSV or XLSX files."):
        read_rows(f)


def test_missing_file(tmp_path: Path):
    with pytest.raises(DecodeError, match="file not found"):
        read_rows(tmp_path / "nope.csv")


@pytest.mark.parametrize("content", ["", "TaskID,Duration\n"])
def test_no_data(tmp_path: Path, content: str):
    f = _write(tmp_path / "empty.csv", content)
    with pytest.raises(DecodeError, match="No data found in the file."):
        read_rows(f)


def test_corrupt_xlsx(tmp_path: Path):
    f = tmp_path / "broken.xlsx"
    f.write_bytes(b"not a zip archive")
    with pytest.raises(DecodeError, match="Error parsing file"):
        read_rows(f)


def test_rows_from_frame_turns_nan_into_none():
    df = pd.DataFrame({" A ": [1.0, None], "B": ["x", None]})
    assert rows_from_frame(df) == [{"A": 1.0, "B": "x"}]
