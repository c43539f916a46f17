from __future__ import annotations

import io
import logging
import re
import zipfile
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
import xlrd
from xlrd.compdoc import CompDocError

from ..models.cell import CellValue, coerce_scalar, is_blank, to_text
from ..models.config_models import AnalysisConfig
from ..models.dataset import Dataset

"""Source readers and the row model normalizer.

Two source shapes are supported:
- array-of-records (CSV): headers are the parser's declared field names
- 2D grid (spreadsheet): the first row is the header row

Grid headers that are blank are dropped, but each surviving header keeps its
original column index so that data rows read the correct cell even when the
header row is sparse (["Name", "", "Age"] must not shift "Age" onto column 1).
Rows whose every value is blank are dropped; order is otherwise preserved.
"""

__all__ = [
    "SourceError",
    "UnsupportedFormatError",
    "EmptySourceError",
    "NoSheetError",
    "CSV_EXTENSIONS",
    "EXCEL_EXTENSIONS",
    "normalize_records",
    "normalize_grid",
    "read_source",
    "read_source_bytes",
]

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = frozenset({".csv"})
EXCEL_EXTENSIONS = frozenset({".xlsx", ".xlsm", ".xls"})

# pandas が空ヘッダに付ける列名
_UNNAMED_RE = re.compile(r"^Unnamed: \d+$")


class SourceError(Exception):
    """Base class for ingestion failures surfaced to the end user."""


class UnsupportedFormatError(SourceError):
    """Raised when the file is neither CSV nor a readable spreadsheet."""


class EmptySourceError(SourceError):
    """Raised when the source decodes to no content at all."""


class NoSheetError(SourceError):
    """Raised when a workbook contains no sheet."""


def _clean_cell(value: Any, null_sentinels: frozenset[str] | None) -> CellValue:
    cell = coerce_scalar(value)
    if null_sentinels and isinstance(cell, str) and cell.strip().upper() in null_sentinels:
        return None
    return cell


def _unique_headers(names: Iterable[str]) -> list[str]:
    """Disambiguate duplicate header names as name, name.1, name.2 ..."""
    seen: dict[str, int] = {}
    result: list[str] = []
    for name in names:
        if name not in seen:
            seen[name] = 0
            result.append(name)
            continue
        n = seen[name]
        candidate = f"{name}.{n + 1}"
        while candidate in seen:
            n += 1
            candidate = f"{name}.{n + 1}"
        seen[name] = n + 1
        seen[candidate] = 0
        result.append(candidate)
    return result


def _finalize(headers: list[str], rows: list[dict[str, CellValue]], **meta: Any) -> Dataset:
    kept = [r for r in rows if not all(is_blank(v) for v in r.values())]
    if not headers and kept:
        headers = list(kept[0].keys())
        kept = [{k: v for k, v in r.items() if k in headers} for r in kept]
    logger.debug("normalized %d rows (%d blank dropped), headers=%s", len(kept), len(rows) - len(kept), headers)
    return Dataset.from_rows(headers, kept, **meta)


def normalize_records(
    records: Iterable[Mapping[str, Any]],
    fields: Sequence[Any] | None = None,
    *,
    null_sentinels: frozenset[str] | None = None,
    **meta: Any,
) -> Dataset:
    """Normalize array-of-records input (CSV-like readers).

    Parameters
    ----------
    records: parsed records (field name -> value)
    fields: declared field names in column order; None when the parser did not
        report any, in which case the first record's keys are used
    null_sentinels: upper-cased strings that read as null
    """
    records = list(records)
    names = [] if fields is None else [to_text(f).strip() for f in fields if not is_blank(f)]
    headers = _unique_headers(names)
    raw_names = [] if fields is None else [f for f in fields if not is_blank(f)]
    rows: list[dict[str, CellValue]] = []
    for record in records:
        if headers:
            row = {h: _clean_cell(record.get(raw), null_sentinels) for h, raw in zip(headers, raw_names)}
        else:
            row = {str(k): _clean_cell(v, null_sentinels) for k, v in record.items()}
        rows.append(row)
    return _finalize(headers, rows, **meta)


def normalize_grid(
    grid: Sequence[Sequence[Any]],
    *,
    null_sentinels: frozenset[str] | None = None,
    **meta: Any,
) -> Dataset:
    """Normalize a 2D array whose first row holds the headers.

    Steps:
    1. Keep header cells that are not blank, remembering their column index
    2. Map every following row onto the surviving headers by that index
       (a row shorter than the index yields None)
    3. Drop rows that are blank across every header
    """
    if not grid:
        return _finalize([], [], **meta)
    header_row = grid[0]
    surviving = [(to_text(coerce_scalar(h)).strip(), idx) for idx, h in enumerate(header_row) if not is_blank(coerce_scalar(h))]
    headers = _unique_headers(name for name, _ in surviving)
    mapping = list(zip(headers, (idx for _, idx in surviving)))

    rows: list[dict[str, CellValue]] = []
    for raw in grid[1:]:
        row: dict[str, CellValue] = {}
        for header, idx in mapping:
            row[header] = _clean_cell(raw[idx], null_sentinels) if idx < len(raw) else None
        rows.append(row)
    return _finalize(headers, rows, **meta)


def _na_options(keep_na_strings: Sequence[str] | None) -> dict[str, Any]:
    """pandas NA options: default NA strings minus ``keep_na_strings``."""
    # pandas._libs.parsers.STR_NA_VALUES には既定の NA 文字列集合が格納されている
    import pandas._libs.parsers as parsers

    if keep_na_strings:
        custom_na = parsers.STR_NA_VALUES - set(keep_na_strings)
        return {"keep_default_na": False, "na_values": list(custom_na)}
    return {"keep_default_na": True, "na_values": None}


def _read_csv(text: str, config: AnalysisConfig, file_name: str | None) -> Dataset:
    try:
        df = pd.read_csv(io.StringIO(text), skip_blank_lines=True, **_na_options(config.keep_na_strings))
    except pd.errors.EmptyDataError as e:
        raise EmptySourceError(f"no content to parse in {file_name or 'source'}") from e
    except pd.errors.ParserError as e:
        raise UnsupportedFormatError(f"could not parse CSV {file_name or 'source'}: {e}") from e
    fields = [str(c) for c in df.columns]
    # 空ヘッダ列はシートと同じく捨てる
    fields = [f for f in fields if not _UNNAMED_RE.match(f)]
    records = df[fields].astype(object).to_dict(orient="records")
    return normalize_records(
        records,
        fields,
        null_sentinels=config.null_sentinels,
        file_name=file_name,
    )


def _read_excel(
    content: bytes, config: AnalysisConfig, file_name: str | None, sheet_name: str | None
) -> Dataset:
    try:
        xls = pd.ExcelFile(io.BytesIO(content))
    except (ValueError, zipfile.BadZipFile, xlrd.XLRDError, CompDocError, OSError) as e:
        raise UnsupportedFormatError(f"could not open workbook {file_name or 'source'}: {e}") from e
    with xls:
        sheet_names = [str(n) for n in xls.sheet_names]
        if not sheet_names:
            raise NoSheetError(f"no sheets found in {file_name or 'workbook'}")
        requested = sheet_name or config.default_sheet
        if requested and requested in sheet_names:
            chosen = requested
        else:
            if requested:
                logger.debug("sheet %r not found in %s, falling back to %r", requested, file_name, sheet_names[0])
            chosen = sheet_names[0]
        # ヘッダなしで生読み (1 行目をヘッダとして後で適用)
        df = xls.parse(chosen, header=None, **_na_options(config.keep_na_strings))
    grid = df.astype(object).values.tolist()
    return normalize_grid(
        grid,
        null_sentinels=config.null_sentinels,
        file_name=file_name,
        sheet_name=chosen,
        sheet_names=tuple(sheet_names),
    )


def _extension(file_name: str) -> str:
    return Path(file_name).suffix.lower()


def read_source_bytes(
    content: bytes,
    file_name: str,
    *,
    sheet_name: str | None = None,
    config: AnalysisConfig | None = None,
) -> Dataset:
    """Parse an uploaded file held in memory.

    Raises:
        UnsupportedFormatError: extension not CSV/Excel, or unreadable content
        EmptySourceError: zero bytes or nothing to parse
        NoSheetError: workbook without sheets
    """
    config = config or AnalysisConfig()
    ext = _extension(file_name)
    if ext not in CSV_EXTENSIONS and ext not in EXCEL_EXTENSIONS:
        raise UnsupportedFormatError(
            f"unsupported file format {ext or '(none)'!r}: please upload a CSV or Excel file"
        )
    if not content:
        raise EmptySourceError(f"{file_name} is empty")

    if ext in CSV_EXTENSIONS:
        text = content.decode("utf-8-sig", errors="replace")
        if not text.strip():
            raise EmptySourceError(f"{file_name} has no content")
        dataset = _read_csv(text, config, file_name)
    else:
        dataset = _read_excel(content, config, file_name, sheet_name)
    logger.info("read %s: %d rows x %d columns", file_name, len(dataset.rows), len(dataset.headers))
    return dataset


def read_source(
    path: Path | str,
    *,
    sheet_name: str | None = None,
    config: AnalysisConfig | None = None,
) -> Dataset:
    """Read a CSV or Excel file from disk into a normalized Dataset."""
    path = Path(path)
    if _extension(path.name) not in CSV_EXTENSIONS | EXCEL_EXTENSIONS:
        raise UnsupportedFormatError(
            f"unsupported file format {path.suffix or '(none)'!r}: please upload a CSV or Excel file"
        )
    return read_source_bytes(path.read_bytes(), path.name, sheet_name=sheet_name, config=config)
