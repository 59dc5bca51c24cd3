"""Read uploaded CSV/XLSX files into records."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List

import pandas as pd

from chart_engine.errors import FileParseError
from chart_engine.utils.logging import log_event

CSV_EXTENSIONS = {".csv", ".tsv", ".txt"}
EXCEL_EXTENSIONS = {".xlsx", ".xls"}


@dataclass
class ParsedTable:
    file_name: str
    data: List[Dict[str, Any]]
    headers: List[str]
    record_count: int
    type: str = "csv"
    frame: pd.DataFrame = field(default=None, repr=False)


def _file_name(file, file_name):
    if file_name:
        return file_name
    name = getattr(file, "name", None)
    if name:
        return os.path.basename(str(name))
    if isinstance(file, (str, os.PathLike)):
        return os.path.basename(str(file))
    return "upload.csv"


def _clean(df: pd.DataFrame) -> pd.DataFrame:
    """
    - header names trimmed
    - fully empty rows dropped (blank strings count as empty)
    - NaN -> None
    """
    df = df.copy()
    df.columns = [str(col).strip() for col in df.columns]
    blank = df.apply(lambda col: col.map(lambda v: v is None or (isinstance(v, str) and not v.strip())))
    df = df[~(df.isna() | blank).all(axis=1)].reset_index(drop=True)
    return df.astype(object).where(pd.notna(df), None)


def read_table(file, file_name: str | None = None) -> ParsedTable:
    """
    Parse one CSV or XLSX file (path or file-like object).
    Raises FileParseError for unsupported types and empty or unreadable files.
    """
    name = _file_name(file, file_name)
    extension = os.path.splitext(name)[1].lower()

    if extension in CSV_EXTENSIONS:
        kind = "csv"
        try:
            # sep=None sniffs , \t | ;
            df = pd.read_csv(file, sep=None, engine="python", skip_blank_lines=True)
        except pd.errors.EmptyDataError:
            raise FileParseError(f"CSV file {name} appears to be empty or has no valid data rows.") from None
        except Exception as exc:
            log_event("file_parse_failed", {"file": name, "error": str(exc)}, level="error")
            raise FileParseError(f"Failed to parse CSV file {name}: {exc}") from exc
    elif extension in EXCEL_EXTENSIONS:
        kind = "xlsx"
        try:
            df = pd.read_excel(file, sheet_name=0)
        except Exception as exc:
            log_event("file_parse_failed", {"file": name, "error": str(exc)}, level="error")
            raise FileParseError(f"Failed to parse XLSX file {name}: {exc}") from exc
    else:
        raise FileParseError(
            f"Unsupported file type: {extension or '(none)'} for file {name}. "
            "Only CSV and XLSX files are supported."
        )

    df = _clean(df)
    if df.empty:
        raise FileParseError(f"{kind.upper()} file {name} appears to be empty or has no valid data rows.")

    records = df.to_dict(orient="records")
    log_event("file_parsed", {"file": name, "type": kind, "records": len(records), "columns": len(df.columns)})
    return ParsedTable(
        file_name=name,
        data=records,
        headers=list(df.columns),
        record_count=len(records),
        type=kind,
        frame=df,
    )


def read_tables(files) -> List[ParsedTable]:
    if not files:
        raise FileParseError("No files provided. Please upload a CSV/XLSX file.")
    return [read_table(file) for file in files]
