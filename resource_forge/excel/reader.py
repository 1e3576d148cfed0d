from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Spreadsheet decoding: CSV / XLSX / XLS file -> list of raw row dicts.

The first row of the file is the header row; every following non-empty row
becomes one raw row keyed by header. Cells are handed back loosely typed
(str / int / float / None) exactly as pandas decodes them, with NaN turned
into None. Decoding problems raise DecodeError; callers abort only the file
that failed.
"""

__all__ = [
    "DecodeError",
    "EXCEL_ENGINES",
    "RawDataset",
    "SUPPORTED_SUFFIXES",
    "read_rows",
    "rows_from_frame",
]

SUPPORTED_SUFFIXES = {".csv", ".xlsx", ".xls"}

# 旧形式 .xls は xlrd で読む
EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}


class DecodeError(Exception):
    """Raised when a file cannot be decoded into rows."""


@dataclass
class RawDataset:
    path: Path
    columns: list[str]
    rows: list[dict[str, Any]]  # 列名→値 (未正規化)


def _na_options(keep_na_strings: Iterable[str] | None) -> tuple[list[str] | None, bool]:
    # pandas 既定の NA 文字列集合から keep_na_strings を除外
    import pandas._libs.parsers as parsers

    if keep_na_strings:
        custom_na = parsers.STR_NA_VALUES.copy() - set(keep_na_strings)
        return list(custom_na), False
    return None, True


def rows_from_frame(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a DataFrame to row dicts, skipping rows that are entirely empty."""
    columns = [str(c).strip() for c in df.columns]
    rows: list[dict[str, Any]] = []
    for values in df.itertuples(index=False, name=None):
        row: dict[str, Any] = {}
        for col, val in zip(columns, values, strict=False):
            row[col] = None if pd.isna(val) else val
        if all(v is None or (isinstance(v, str) and v.strip() == "") for v in row.values()):
            continue
        rows.append(row)
    return rows


def read_rows(path: Path, keep_na_strings: Iterable[str] | None = None) -> RawDataset:
    """Decode a CSV or Excel file (first sheet) into raw rows.

    Parameters
    ----------
    path: CSV / XLSX / XLS file
    keep_na_strings: strings pandas would normally turn into NaN but that must
        be kept verbatim (e.g. ``['NA']``)

    Raises
    ------
    DecodeError: unsupported format, unreadable file or no data rows
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise DecodeError("Unsupported file format. Please use CSV or XLSX files.")
    if not path.exists():
        raise DecodeError(f"file not found: {path}")

    na_values, keep_default_na = _na_options(keep_na_strings)
    try:
        if suffix == ".csv":
            df = pd.read_csv(
                path,
                dtype=str,
                skip_blank_lines=True,
                keep_default_na=keep_default_na,
                na_values=na_values,
            )
        else:
            df = pd.read_excel(
                path,
                sheet_name=0,
                engine=EXCEL_ENGINES[suffix],
                keep_default_na=keep_default_na,
                na_values=na_values,
            )
    except pd.errors.EmptyDataError as e:
        raise DecodeError("No data found in the file.") from e
    except Exception as e:
        raise DecodeError(f"Error parsing file: {e}") from e

    rows = rows_from_frame(df)
    if not rows:
        raise DecodeError("No data found in the file.")
    return RawDataset(path=path, columns=[str(c).strip() for c in df.columns], rows=rows)
