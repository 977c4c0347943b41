"""
Abstract base class for transfer ledgers.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from config import TERMINAL_STATUSES, ReconcilerConfig
from normalizer.value_parser import is_blank, parse_bool, parse_text

logger = logging.getLogger(__name__)


class LedgerAccessError(Exception):
    """Raised when the ledger cannot be read or written, or has the wrong structure."""


@dataclass
class LedgerRow:
    """
    Represents one tracked item in the ledger.

    row_index is the 1-based sheet row (the header is row 1) and is the
    address used when writing the acceptance status back.
    """
    row_index: int
    id: str
    title: str = ""
    mime_type: str = ""
    parent_id: str = ""
    path: str = ""
    owner_email: str = ""
    owner_name: str = ""
    tag_processed: bool = False
    transfer_processed: bool = False
    transfer_accepted: str = ""

    @classmethod
    def from_values(cls, row_index: int, values: Sequence[Any]) -> 'LedgerRow':
        """Create a row from raw cell values in ledger column order."""
        cells = list(values) + [None] * (10 - len(values))
        return cls(
            row_index=row_index,
            id=parse_text(cells[0]),
            title=parse_text(cells[1]),
            mime_type=parse_text(cells[2]),
            parent_id=parse_text(cells[3]),
            path=parse_text(cells[4]),
            owner_email=parse_text(cells[5]),
            owner_name=parse_text(cells[6]),
            tag_processed=parse_bool(cells[7]),
            transfer_processed=parse_bool(cells[8]),
            transfer_accepted=parse_text(cells[9]),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert row to dictionary."""
        return {
            'row_index': self.row_index,
            'id': self.id,
            'title': self.title,
            'mime_type': self.mime_type,
            'parent_id': self.parent_id,
            'path': self.path,
            'owner_email': self.owner_email,
            'owner_name': self.owner_name,
            'tag_processed': self.tag_processed,
            'transfer_processed': self.transfer_processed,
            'transfer_accepted': self.transfer_accepted,
        }

    @property
    def is_terminal(self) -> bool:
        """Check if the transfer has already been accepted or relocated."""
        return self.transfer_accepted in TERMINAL_STATUSES


class BaseLedger(ABC):
    """
    Abstract base class for ledger storage.

    Subclasses only provide raw cell access; header validation and row
    normalization happen here.
    """

    def __init__(self, config: ReconcilerConfig):
        """
        Initialize the ledger.

        Args:
            config: Reconciler settings (sheet name, expected header, acceptance column)
        """
        self.config = config

    @abstractmethod
    def read_values(self) -> List[List[Any]]:
        """
        Read every row of the ledger sheet, header included.

        Returns:
            List of rows, each a list of raw cell values

        Raises:
            LedgerAccessError: If the ledger cannot be read
        """
        pass

    @abstractmethod
    def write_cell(self, row_index: int, column: int, value: str) -> None:
        """
        Write a single cell (both indexes 1-based).

        Raises:
            LedgerAccessError: If the write fails
        """
        pass

    def read_rows(self) -> List[LedgerRow]:
        """
        Read and normalize all data rows.

        Returns:
            LedgerRow objects in sheet order

        Raises:
            LedgerAccessError: If the ledger is unreachable or its header is wrong
        """
        values = self.read_values()
        if not values:
            raise LedgerAccessError(f"Ledger sheet '{self.config.sheet_name}' is empty (no header row)")

        self._validate_header(values[0])

        rows: List[LedgerRow] = []
        for offset, raw in enumerate(values[1:]):
            row_index = offset + 2
            if all(is_blank(cell) for cell in raw):
                continue
            rows.append(LedgerRow.from_values(row_index, raw))

        logger.info("Read %d ledger rows from '%s'", len(rows), self.config.sheet_name)
        return rows

    def write_acceptance(self, row_index: int, status: str) -> None:
        """
        Record the acceptance status for one row.

        Args:
            row_index: 1-based sheet row of the item
            status: "Accepted" or "Moved to Default Folder"
        """
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"Invalid acceptance status: {status!r}")
        if row_index < 2:
            raise ValueError(f"Row {row_index} is not a data row")

        self.write_cell(row_index, self.config.acceptance_column, status)
        logger.info("Row %d updated with status: %s", row_index, status)

    def _validate_header(self, header: Sequence[Any]) -> None:
        expected = [h.strip().lower() for h in self.config.headers]
        actual = [parse_text(h).lower() for h in list(header)[:len(expected)]]
        if actual != expected:
            raise LedgerAccessError(
                f"Unexpected ledger header in '{self.config.sheet_name}': "
                f"expected {self.config.headers}, found {list(header)}"
            )
