"""Structural validation of CSV import files against header contracts."""

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from loguru import logger

from ..constants import CSV_SUFFIX
from ..core.exceptions import (
    CsvFileNotFoundError,
    EmptyInputError,
    InsufficientRowsError,
    MissingHeadersError,
)

MIN_LINES = 2  # header + at least one data row


@dataclass(frozen=True)
class CsvValidationResult:
    """Facts about a contract-valid CSV file."""

    path: str
    byte_size: int
    line_count: int
    headers: Tuple[str, ...]

    @property
    def data_rows(self) -> int:
        return self.line_count - 1


class CsvContractValidator:
    """Check that a CSV file exists, has data and satisfies a header contract."""

    def validate(
        self,
        path_or_dir: Union[str, Path],
        required_headers: Iterable[str],
        import_type: Optional[str] = None,
    ) -> CsvValidationResult:
        """
        Validate a CSV file (or pick one from a directory) for an import type.

        Args:
            path_or_dir: File path, or directory to pick the file from
            required_headers: Tokens each contained in some header, case-insensitively
            import_type: Import type used for directory selection and errors

        Returns:
            Validation result

        Raises:
            CsvFileNotFoundError: If no file exists or none can be picked
            EmptyInputError: If the file has zero bytes
            InsufficientRowsError: If there are fewer than two non-blank lines
            MissingHeadersError: If a required token is in no header
        """
        path = Path(path_or_dir)
        if path.is_dir():
            path = self.select_file(path, import_type)

        if not path.is_file():
            raise CsvFileNotFoundError(str(path), import_type)

        byte_size = path.stat().st_size
        if byte_size == 0:
            raise EmptyInputError(str(path), import_type)

        content = path.read_text(encoding="utf-8-sig", errors="replace")
        lines = [line for line in content.splitlines() if line.strip()]
        if len(lines) < MIN_LINES:
            raise InsufficientRowsError(str(path), len(lines), import_type)

        headers = parse_headers(lines[0])
        missing = missing_tokens(required_headers, headers)
        if missing:
            raise MissingHeadersError(str(path), missing, headers, import_type)

        logger.debug(f"CSV file validated: {path} ({byte_size} bytes, {len(lines)} lines)")
        return CsvValidationResult(
            path=str(path),
            byte_size=byte_size,
            line_count=len(lines),
            headers=tuple(headers),
        )

    @staticmethod
    def select_file(directory: Path, import_type: Optional[str]) -> Path:
        """
        Pick the CSV file for ``import_type`` from ``directory``.

        Precedence: name contains the import type; name contains "template"
        and the import type; first CSV file (with a warning).
        """
        files = sorted(
            p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == CSV_SUFFIX
        )
        wanted = (import_type or "").lower()

        if wanted:
            for candidate in files:
                if wanted in candidate.name.lower():
                    return candidate
            for candidate in files:
                name = candidate.name.lower()
                if "template" in name and wanted in name:
                    return candidate

        if files:
            logger.warning(
                f"⚠️ No CSV file named for '{import_type}' in {directory}, using {files[0].name}"
            )
            return files[0]

        raise CsvFileNotFoundError(str(directory), import_type)


def parse_headers(header_line: str) -> List[str]:
    """Header cells with quotes stripped and whitespace trimmed."""
    row = next(csv.reader([header_line]), [])
    return [cell.strip().strip('"').strip() for cell in row]


def missing_tokens(required: Iterable[str], headers: Iterable[str]) -> List[str]:
    """Required tokens not contained (case-insensitively) in any header."""
    lowered = [h.lower() for h in headers]
    return sorted(
        token for token in set(required) if not any(token.lower() in h for h in lowered)
    )
