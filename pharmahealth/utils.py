import logging
import re
from datetime import date, datetime
from pathlib import Path
import pandas as pd

logger = logging.getLogger(__name__)

_DATE_SUFFIX = re.compile(r"(\d{4}-\d{2}-\d{2})$")


def get_date_suffix_for_filename(as_of: date = None) -> str:
    """Returns the date as a YYYY-MM-DD string for filenames (today by default)."""
    return (as_of or datetime.now()).strftime("%Y-%m-%d")


def find_latest_report(directory: Path, prefix: str) -> tuple[Path, date] | None:
    """
    Finds the newest '<prefix><YYYY-MM-DD>.csv' file in a directory.
    Returns the path together with the date parsed from its name, or None.
    """
    if not directory.exists():
        logger.warning(f"Input directory {directory} does not exist.")
        return None

    candidates = []
    for path in directory.glob(f"{prefix}*.csv"):
        match = _DATE_SUFFIX.search(path.stem[len(prefix):])
        if not match:
            logger.info(f"Ignoring {path.name}: no date in filename.")
            continue
        try:
            report_date = date.fromisoformat(match.group(1))
        except ValueError:
            logger.info(f"Ignoring {path.name}: invalid date in filename.")
            continue
        candidates.append((report_date, path))

    if not candidates:
        return None

    report_date, path = max(candidates)
    return path, report_date


def load_csv(file_path: Path, skiprows: int = 0) -> pd.DataFrame | None:
    """
    A robust CSV loader with an encoding fallback.
    It will attempt to read a file in the following order:
    1. UTF-8 with BOM support ('utf-8-sig') - what the document store export writes.
    2. Latin-1 - A permissive fallback that never fails but might misinterpret characters.
    Identifier-like columns are read as text so ids such as '007' survive.
    """
    dtype = {"id": str, "batchNumber": str, "batch": str}
    try:
        # Attempt 1: Try the most common and correct encoding first.
        return pd.read_csv(file_path, encoding="utf-8-sig", skiprows=skiprows, dtype=dtype)

    except UnicodeDecodeError:
        logger.info(f"UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'.")
        try:
            return pd.read_csv(file_path, encoding="latin-1", skiprows=skiprows, dtype=dtype)
        except Exception as e_latin1:
            logger.error(f"❌ Could not read {file_path.name} even with latin-1. Reason: {e_latin1}")
            return None

    except FileNotFoundError:
        logger.info(f"Report not found at {file_path}, skipping.")
        return None

    except Exception as e_general:
        logger.error(
            f"❌ An unexpected error occurred while reading {file_path.name}. Reason: {e_general}"
        )
        return None
