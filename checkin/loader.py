"""
loader.py - Scan-ID Export Loader
==================================
This module reads the CSV export written by the Scan-ID device and picks the
most recent scan out of it.

Export Format:
--------------
A header row followed by one row per scanned ID. The columns used are:

    FIRST NAME, LAST NAME, FULL NAME, BIRTHDATE, AGE, DRV LC NO,
    EXPIRES ON, ISSUED ON, CREATED, Image1

CREATED holds the capture time, e.g. "06/01/2024 10:00". Only the date part
is compared when looking for the latest scan, so two scans on the same day
resolve to the one that appears first in the file.

Errors are returned as ErrorResult values instead of being raised, so the
caller can show a message without wrapping every call in try/except.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .errors import CheckinError, EmptyDataError, NotFoundError
from .models import ErrorResult, ScanRecord

logger = logging.getLogger(__name__)

# The column holding the capture timestamp
CREATED_COLUMN = "CREATED"

# Accepted date layouts for the date part of CREATED
DATE_FORMATS = ("%m/%d/%Y", "%m-%d-%Y", "%Y-%m-%d", "%Y/%m/%d")


# =============================================================================
# TIMESTAMP PARSING
# =============================================================================

def parse_scan_date(value: Any) -> Optional[date]:
    """
    Parse the calendar date out of a CREATED value.

    Examples:
        parse_scan_date("06/01/2024 10:00") -> date(2024, 6, 1)
        parse_scan_date("2024-06-01")       -> date(2024, 6, 1)
        parse_scan_date("not a date")       -> None

    Returns:
        The parsed date, or None when the value can't be read as a date
    """
    if value is None:
        return None

    text = str(value).strip()
    if not text:
        return None

    # "06/01/2024 10:00" -> "06/01/2024"
    day_part = text.split()[0]

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(day_part, fmt).date()
        except ValueError:
            continue
    return None


def sort_newest_first(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Order export rows by capture date, newest first.

    Rows with a readable date come first, sorted stably so same-day scans
    keep their file order. Rows whose date can't be parsed follow in file
    order; they never disturb the ordering of the readable ones.
    """
    dated = []
    undated = []
    for row in rows:
        parsed = parse_scan_date(row.get(CREATED_COLUMN))
        if parsed is None:
            undated.append(row)
        else:
            dated.append((parsed, row))

    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [row for _, row in dated] + undated


# =============================================================================
# FILE LOADING
# =============================================================================

def load_scan_rows(filepath: str | Path) -> List[Dict[str, Any]]:
    """
    Read every data row of the export.

    Values are kept as strings exactly as the scanner wrote them (no number
    or NaN conversion, so ID numbers keep their leading zeros).

    Args:
        filepath: Path to the Scan-ID export CSV

    Returns:
        List of dictionaries keyed by the (whitespace-trimmed) header names

    Raises:
        NotFoundError: If the export file doesn't exist
        EmptyDataError: If the file has no data rows
    """
    path = Path(filepath)
    if not path.exists():
        raise NotFoundError(f"Scan-ID CSV file not found: {path}")

    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",  # scanner exports on Windows carry a BOM
        )
    except pd.errors.EmptyDataError:
        raise EmptyDataError(f"No records found in CSV file: {path}")

    # Header cells sometimes carry stray spaces ("FIRST NAME ")
    df.columns = [str(col).strip() for col in df.columns]

    # Short rows come back as NaN even with keep_default_na=False
    df = df.fillna("")

    # Rows made only of separators (",,,,") are not scans
    df = df.loc[~df.eq("").all(axis=1)]

    if df.empty:
        raise EmptyDataError(f"No records found in CSV file: {path}")

    return df.to_dict("records")


def get_latest_scan(filepath: str | Path) -> ScanRecord | ErrorResult:
    """
    Return the most recent scan from the export.

    Args:
        filepath: Path to the Scan-ID export CSV

    Returns:
        ScanRecord for the newest row, or an ErrorResult describing why
        no scan could be read (missing file, no rows, unreadable CSV)
    """
    logger.info(f"Looking for Scan-ID CSV at: {filepath}")

    try:
        rows = load_scan_rows(filepath)
    except CheckinError as e:
        logger.warning(str(e))
        return e.to_result()
    except (OSError, ValueError) as e:
        # pandas ParserError and UnicodeDecodeError are both ValueErrors
        logger.error(f"Error reading Scan-ID CSV: {e}")
        return ErrorResult(error=f"Error reading Scan-ID CSV: {e}", kind=type(e).__name__)

    logger.info(f"Found {len(rows)} records, returning the latest one")

    latest = sort_newest_first(rows)[0]
    return ScanRecord.from_row(latest)
