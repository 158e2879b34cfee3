"""Row sources: where raw IOLP rows come from.

The GSA publishes the inventory as two Excel workbooks (buildings and
leases), one sheet each, with column labels in the first row. A JSON array
of row objects with the same labels is also accepted, which is handy for
fixtures and for re-importing an export.

Usage:
    rows = ExcelRowSource("2025-5-23-iolp-buildings.xlsx").read_rows()
    rows = source_for(Path("leases.json")).read_rows()
"""

import json
import logging
import zipfile
from pathlib import Path
from typing import Any, Protocol

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from .errors import SourceReadError

logger = logging.getLogger(__name__)

RawRow = dict[str, Any]


class RowSource(Protocol):
    """Produces the raw rows for one run. Not restartable."""

    def read_rows(self) -> list[RawRow]: ...


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class ExcelRowSource:
    """Rows from an .xlsx workbook, first sheet unless one is named."""

    def __init__(self, path: str | Path, sheet: str | None = None):
        self.path = Path(path)
        self.sheet = sheet

    def read_rows(self) -> list[RawRow]:
        if not self.path.exists():
            raise SourceReadError(f"Workbook not found: {self.path}")

        try:
            wb = openpyxl.load_workbook(self.path, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError) as e:
            raise SourceReadError(f"Cannot open workbook {self.path}: {e}") from e

        try:
            if self.sheet is not None:
                if self.sheet not in wb.sheetnames:
                    raise SourceReadError(f"{self.path} has no sheet named {self.sheet!r}")
                ws = wb[self.sheet]
            else:
                ws = wb.worksheets[0]

            rows = ws.iter_rows(values_only=True)
            header = next(rows, None)
            if header is None:
                logger.warning("%s: sheet %s is empty", self.path.name, ws.title)
                return []

            labels = [str(h).strip() if not _is_blank(h) else None for h in header]
            records = []
            for values in rows:
                # Blank cells are left out, the same way missing keys are
                record = {
                    label: value
                    for label, value in zip(labels, values)
                    if label is not None and not _is_blank(value)
                }
                if record:
                    records.append(record)
        finally:
            wb.close()

        logger.info("Read %d rows from %s", len(records), self.path.name)
        return records


class JsonRowSource:
    """Rows from a JSON file holding an array of objects."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read_rows(self) -> list[RawRow]:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise SourceReadError(f"JSON file not found: {self.path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise SourceReadError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise SourceReadError(f"{self.path} must contain a JSON array of objects")

        logger.info("Read %d rows from %s", len(data), self.path.name)
        return data


def source_for(path: str | Path) -> RowSource:
    """Pick a row source by file extension."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        return JsonRowSource(path)
    return ExcelRowSource(path)
