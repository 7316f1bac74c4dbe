from __future__ import annotations

import logging
import warnings
from io import BytesIO, StringIO
from pathlib import Path
from typing import IO, List, Optional, Tuple, Union

import pandas as pd

from carbonsnapshot.emissions import REQUIRED_COLUMNS, FootprintResult, compute_footprint
from carbonsnapshot.errors import ExternalToolError, StructuralError
from carbonsnapshot.factors import EmissionFactorTable

logger = logging.getLogger(__name__)

CsvSource = Union[bytes, str, Path, IO[bytes], IO[str]]


def _keep_bad_line(fields: List[str]) -> List[str]:
    # Cells past the header width are dropped by pandas; the row itself still counts.
    logger.debug("Row has %d cells, more than the header: %s", len(fields), fields)
    return fields


def _as_buffer(file: CsvSource) -> Union[IO[bytes], IO[str], Path]:
    if isinstance(file, bytes):
        return BytesIO(file)
    if isinstance(file, Path):
        return file
    if isinstance(file, str):
        # A string is CSV text unless it names an existing file.
        candidate = Path(file)
        if "\n" not in file and candidate.suffix.lower() == ".csv" and candidate.exists():
            return candidate
        return StringIO(file)
    if hasattr(file, "seek"):
        file.seek(0)
    return file


def parse_csv(file: Optional[CsvSource]) -> Tuple[List[str], List[List[str]]]:
    """Read uploaded CSV content into a header row and raw string rows."""
    if file is None:
        raise ValueError("No file uploaded. Please upload a .csv file.")

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            frame = pd.read_csv(
                _as_buffer(file),
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=_keep_bad_line,
            )
    except pd.errors.EmptyDataError:
        raise StructuralError(missing_columns=REQUIRED_COLUMNS, required=REQUIRED_COLUMNS) from None
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        logger.warning("CSV parser rejected upload: %s", exc)
        raise ExternalToolError(
            "csv",
            f"Error parsing CSV file: {exc}. Please ensure it's a valid CSV.",
        ) from exc

    records = frame.fillna("").values.tolist()
    if not records:
        raise StructuralError(missing_columns=REQUIRED_COLUMNS, required=REQUIRED_COLUMNS)

    header = [str(cell) for cell in records[0]]
    rows = [[str(cell) for cell in row] for row in records[1:]]
    logger.debug("Parsed CSV with %d column(s) and %d data row(s)", len(header), len(rows))
    return header, rows


def compute_footprint_from_csv(
    file: Optional[CsvSource],
    factor_table: Optional[EmissionFactorTable] = None,
) -> FootprintResult:
    header, rows = parse_csv(file)
    return compute_footprint(header, rows, factor_table=factor_table)
