"""
Spreadsheet Ingestion Agent.

Validates a marketplace review export against its exact column contract
and converts each row into a ReviewRecord.
"""

import logging
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd

from src.models.review import ReviewRecord
from src.utils.coercion import parse_float, round_half_up

logger = logging.getLogger(__name__)


# Exact header labels of the export; every one is mandatory.
REQUIRED_COLUMNS = (
    "ASIN",
    "标题",
    "内容",
    "VP评论",
    "Vine Voice评论",
    "型号",
    "是否有视频",
    "视频地址",
    "评论链接",
    "评论人",
    "头像地址",
    "所属国家",
    "评论人主页",
    "红人计划链接",
    "评论时间",
    "rate",
)

RATING_COLUMN = "rate"

# Legacy rating headers tried in order when the rate cell is empty
RATING_FALLBACK_COLUMNS = ("评分", "Star", "Rating")

TRUE_MARKER = "是"


class IngestionError(ValueError):
    """Base class for structural problems with an uploaded export."""


class EmptyInput(IngestionError):
    """The file contained no data rows."""

    def __init__(self, message: str = "文件为空"):
        super().__init__(message)


class SchemaMismatch(IngestionError):
    """One or more required columns are absent from the header."""

    def __init__(self, missing_columns: Sequence[str]):
        self.missing_columns = list(missing_columns)
        super().__init__(
            f"文件缺少必要字段: {', '.join(self.missing_columns)}. "
            f"请确认是否为 Sellersprite/领星 导出的原始评论数据."
        )


def _is_missing(value: Any) -> bool:
    """Blank cell: None, NaN/NaT from pandas, or empty string."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT:
        return True
    return isinstance(value, str) and value == ""


def _cell_text(row: Dict[str, Any], column: str) -> str:
    value = row.get(column)
    if _is_missing(value):
        return ""
    if isinstance(value, (datetime, date)):
        # pandas.Timestamp is a datetime subclass
        return value.strftime("%Y-%m-%d")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _cell_optional(row: Dict[str, Any], column: str):
    text = _cell_text(row, column)
    return text or None


def _cell_flag(row: Dict[str, Any], column: str) -> bool:
    value = row.get(column)
    return value is True or value == TRUE_MARKER


def extract_rating(row: Dict[str, Any]) -> int:
    """
    Rating of a row, 1-5, or 0 when unknown.

    The rate column is authoritative; legacy headers are only consulted
    when it is empty. Unparseable or out-of-range values become 0.
    """
    primary = row.get(RATING_COLUMN)
    rating = math.nan
    if not _is_missing(primary):
        rating = parse_float(primary)
    else:
        for column in RATING_FALLBACK_COLUMNS:
            fallback = row.get(column)
            if not _is_missing(fallback) and fallback is not False and fallback != 0:
                rating = parse_float(fallback)
                break

    if not math.isfinite(rating) or rating < 0 or rating > 5:
        if not _is_missing(primary):
            logger.debug(f"Unparseable rating {primary!r}, treating as unknown")
        return 0
    return round_half_up(rating)


class SpreadsheetIngestionAgent:
    """
    Parses review exports into ReviewRecord lists.

    Only the first sheet of a workbook is read. The header must contain
    every REQUIRED_COLUMNS label verbatim; there is no partial parse.
    """

    def __init__(self, required_columns: Sequence[str] = REQUIRED_COLUMNS):
        self.required_columns = tuple(required_columns)
        logger.info(
            f"Initialized SpreadsheetIngestionAgent with {len(self.required_columns)} required columns"
        )

    def parse_file(self, path: str) -> List[ReviewRecord]:
        """
        Read the first sheet of a spreadsheet file and parse its rows.

        Args:
            path: Path to an .xlsx/.xls workbook or a .csv export

        Returns:
            List of ReviewRecord objects in row order

        Raises:
            EmptyInput: If the sheet has no non-blank data rows
            SchemaMismatch: If required columns are missing
        """
        file_path = Path(path)
        logger.info(f"Reading review export {file_path.name}")

        try:
            if file_path.suffix.lower() == ".csv":
                df = pd.read_csv(file_path, dtype=object, keep_default_na=False)
            else:
                df = pd.read_excel(file_path, sheet_name=0, dtype=object)
        except pd.errors.EmptyDataError:
            logger.error(f"Review export {file_path.name} is empty")
            raise EmptyInput()

        df.columns = [str(c) for c in df.columns]
        df = df.dropna(how="all")
        rows = [
            {k: v for k, v in row.items() if not _is_missing(v)}
            for row in df.to_dict(orient="records")
        ]
        # Blank rows have no keys left once empty cells are dropped
        rows = [row for row in rows if row]

        if rows:
            # Header labels are the keys of the first row, even where its cell is blank
            rows[0] = {**{c: None for c in df.columns}, **rows[0]}

        return self.parse_rows(rows)

    def parse_rows(self, rows: Sequence[Dict[str, Any]]) -> List[ReviewRecord]:
        """
        Validate and convert already-tabulated rows.

        Args:
            rows: One dict per data row, keyed by header label

        Returns:
            List of ReviewRecord objects in row order
        """
        if not rows:
            logger.error("Review export contains no rows")
            raise EmptyInput()

        first_row = rows[0]
        missing = [col for col in self.required_columns if col not in first_row]
        if missing:
            logger.error(f"Review export is missing columns: {missing}")
            raise SchemaMismatch(missing)

        records = [self._to_record(row) for row in rows]

        unknown = sum(1 for r in records if r.rating == 0)
        if unknown:
            logger.warning(f"{unknown} of {len(records)} reviews have no usable rating")
        logger.info(f"Parsed {len(records)} reviews")
        return records

    def _to_record(self, row: Dict[str, Any]) -> ReviewRecord:
        return ReviewRecord(
            asin=_cell_text(row, "ASIN"),
            title=_cell_text(row, "标题"),
            content=_cell_text(row, "内容"),
            is_vp=_cell_flag(row, "VP评论"),
            is_vine=_cell_flag(row, "Vine Voice评论"),
            variant=_cell_text(row, "型号"),
            has_video=_cell_flag(row, "是否有视频"),
            video_url=_cell_optional(row, "视频地址"),
            review_url=_cell_text(row, "评论链接"),
            author=_cell_text(row, "评论人"),
            avatar_url=_cell_optional(row, "头像地址"),
            country=_cell_text(row, "所属国家"),
            author_url=_cell_optional(row, "评论人主页"),
            influencer_url=_cell_optional(row, "红人计划链接"),
            date=_cell_text(row, "评论时间"),
            rating=extract_rating(row)
        )
