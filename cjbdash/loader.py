"""
Dataset loader (CSV / Excel / JSON -> raw rows)
===============================================

This module reads an incident export and returns its rows as plain dicts keyed
by header text. Turning those rows into `Incident` objects is the normalizer's
job (see normalize.py).

Key ideas:
- The file type is picked from the extension (.csv, .xlsx, .json). Legacy
  .xls workbooks must be re-saved as .xlsx first.
- Headers are stripped so "Tipo " and "Tipo" are the same column.
- Completely empty rows are dropped.
- A bad or empty file raises a LoadError; the caller keeps whatever data it
  already had.
"""

from __future__ import annotations
from typing import Any, Dict, List
import logging
import os
import zipfile
import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException
from .feed import FeedError, read_feed_file

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = (".csv",)
EXCEL_EXTENSIONS = (".xlsx",)
JSON_EXTENSIONS = (".json",)


class LoadError(Exception):
    """The file could not be turned into incident rows."""


class UnsupportedFormatError(LoadError):
    pass


class EmptyDatasetError(LoadError):
    pass


def _frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    df = df.dropna(how="all")
    # NaN -> None so empty cells look the same as in the JSON feed
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")

def read_csv_rows(path: str) -> List[Dict[str, Any]]:
    df = pd.read_csv(path, dtype=str, skip_blank_lines=True, encoding="utf-8-sig")
    return _frame_to_rows(df)

def read_excel_rows(path: str, sheet: Any = 0) -> List[Dict[str, Any]]:
    """Rows of the first sheet (dates stay datetimes)."""
    df = pd.read_excel(path, sheet_name=sheet, engine="openpyxl")
    return _frame_to_rows(df)

def read_rows(path: str) -> List[Dict[str, Any]]:
    """Read any supported export into raw rows.

    Raises:
        UnsupportedFormatError: extension is not csv/xlsx/json.
        EmptyDatasetError: the file has no data rows.
        LoadError: the file exists but could not be parsed.
    """
    ext = os.path.splitext(path)[1].lower()
    try:
        if ext in CSV_EXTENSIONS:
            rows = read_csv_rows(path)
        elif ext in EXCEL_EXTENSIONS:
            rows = read_excel_rows(path)
        elif ext in JSON_EXTENSIONS:
            rows = read_feed_file(path).rows
        else:
            raise UnsupportedFormatError(f"Unsupported format {ext or '(none)'}: use CSV, Excel (.xlsx) or JSON")
    except pd.errors.EmptyDataError as e:
        raise EmptyDatasetError(f"Empty file: {path}") from e
    except (FeedError, ValueError, OSError, InvalidFileException, zipfile.BadZipFile) as e:
        raise LoadError(f"Could not read {path}: {e}") from e

    if not rows:
        raise EmptyDatasetError(f"Empty file: {path}")
    logger.info("Read %d rows from %s", len(rows), path)
    return rows
