"""
Datalog CSV Parser Service.
Turns an uploaded BM3 / MHD export into an immutable row set with cached
numeric channel columns.
"""

import csv
from pathlib import Path
from types import MappingProxyType
from typing import Optional, Dict, List, Tuple, Mapping, Union

import numpy as np
import pandas as pd

from ..config.logging_config import get_logger
from ..utils.validators import Validators

logger = get_logger(__name__)

MAX_UPLOAD_BYTES = 20 * 1024 * 1024


class LogParseError(Exception):
    """Raised when a datalog cannot be split into a header and data rows."""
    pass


def split_line(line: str) -> List[str]:
    """Split one CSV line into stripped cells; quote state ends with the line."""
    cells = next(csv.reader([line], skipinitialspace=True), [])
    return [cell.strip() for cell in cells]


def unique_headers(headers: List[str]) -> List[str]:
    """Suffix repeated header names with .1, .2, ... in order of appearance."""
    seen: Dict[str, int] = {}
    result = []
    for header in headers:
        name = header
        while name in seen:
            seen[header] += 1
            name = f"{header}.{seen[header]}"
        seen[name] = 0
        result.append(name)
    return result


class LogData:
    """
    Parsed datalog: header order, raw string cells and numeric views.

    Rows are never modified after parsing. Numeric columns are computed once
    per header and handed out as read-only arrays, with unparsable cells
    (blank, text, inf) as NaN.
    """

    def __init__(self, frame: pd.DataFrame):
        self._frame = frame
        self.headers: Tuple[str, ...] = tuple(frame.columns)
        self._numeric: Dict[str, np.ndarray] = {}
        self._rows: Optional[Tuple[Mapping[str, str], ...]] = None

    def __len__(self) -> int:
        return len(self._frame)

    @property
    def row_count(self) -> int:
        return len(self._frame)

    @property
    def rows(self) -> Tuple[Mapping[str, str], ...]:
        """Rows as read-only header -> raw value mappings."""
        if self._rows is None:
            self._rows = tuple(
                MappingProxyType(record)
                for record in self._frame.to_dict(orient="records")
            )
        return self._rows

    def raw(self, column: Optional[str], index: int) -> str:
        if column is None or column not in self._frame.columns:
            return ""
        return self._frame[column].iat[index]

    def numeric(self, column: Optional[str]) -> np.ndarray:
        """Float view of a column; an absent column reads as all-NaN."""
        if column is None or column not in self._frame.columns:
            values = np.full(len(self._frame), np.nan)
            values.setflags(write=False)
            return values

        if column not in self._numeric:
            values = pd.to_numeric(self._frame[column], errors="coerce").astype(float).to_numpy(copy=True)
            values[~np.isfinite(values)] = np.nan
            values.setflags(write=False)
            self._numeric[column] = values
        return self._numeric[column]

    def sample(self, column: Optional[str], limit: int) -> np.ndarray:
        """Parsable values among the first `limit` rows."""
        head = self.numeric(column)[:limit]
        return head[~np.isnan(head)]


class LogParser:
    """
    Parser for BM3 and MHD datalog exports (CSV).

    Neither logger uses a fixed schema, so every header is kept verbatim and
    channel lookup is left to the column resolver.
    """

    def __init__(self, max_upload_bytes: int = MAX_UPLOAD_BYTES):
        self.max_upload_bytes = max_upload_bytes

    def validate_file(self, file_path: Union[str, Path]) -> Tuple[bool, str]:
        """
        Validate an uploaded datalog before reading it.

        Args:
            file_path: Path to the file to validate

        Returns:
            Tuple of (is_valid, message)
        """
        is_valid, message = Validators.validate_file_path(str(file_path), ".csv")
        if not is_valid:
            return False, message

        is_valid, message = Validators.validate_upload_size(
            Path(file_path).stat().st_size, self.max_upload_bytes
        )
        if not is_valid:
            return False, message

        return True, "Valid datalog file."

    def parse_file(self, file_path: Union[str, Path]) -> LogData:
        """
        Read and parse a datalog from disk.

        Raises:
            LogParseError: If the file is rejected or cannot be parsed
        """
        is_valid, message = self.validate_file(file_path)
        if not is_valid:
            raise LogParseError(message)

        logger.info(f"Reading datalog: {file_path}")
        return self.parse_bytes(Path(file_path).read_bytes())

    def parse_bytes(self, data: bytes) -> LogData:
        """Decode an upload buffer and parse it."""
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError:
            # Older BM3 builds write the degree sign in Latin-1
            logger.warning("Datalog is not valid UTF-8, decoding as Latin-1")
            text = data.decode("latin-1")
        return self.parse_text(text)

    def parse_text(self, text: str) -> LogData:
        """
        Parse CSV text into a LogData.

        Each line is tokenized on its own, so an unbalanced quote only
        affects the line it appears on. Rows are padded or cut to the
        header's width.

        Args:
            text: Whole file contents

        Returns:
            Parsed log with at least one data row

        Raises:
            LogParseError: If there is no header plus data row
        """
        lines = [line for line in (text or "").lstrip("\ufeff").splitlines() if line.strip()]
        if len(lines) < 2:
            raise LogParseError("CSV file is empty or could not be parsed.")

        is_datalog, message = Validators.validate_csv_content("\n".join(lines[:2]))
        if not is_datalog:
            logger.warning(f"{message}; analyzing anyway")

        try:
            records = [split_line(line) for line in lines]
        except csv.Error as e:
            logger.error(f"Error parsing datalog: {e}")
            raise LogParseError(f"CSV file is empty or could not be parsed: {e}") from e

        headers = unique_headers(records[0])
        width = len(headers)
        resized = 0
        rows = []
        for record in records[1:]:
            if len(record) != width:
                resized += 1
            rows.append((record + [""] * width)[:width])
        if resized:
            logger.debug(f"{resized} rows did not match the header width of {width}")

        frame = pd.DataFrame(rows, columns=headers, dtype=str)

        logger.debug(f"Parsed {len(frame)} rows x {len(frame.columns)} columns")
        return LogData(frame)
