"""
Ledger backed by a local Excel workbook.
"""
import logging
import os
from typing import Any, List

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from config import ReconcilerConfig
from ledger.base_ledger import BaseLedger, LedgerAccessError

logger = logging.getLogger(__name__)


class XLSXLedger(BaseLedger):
    """
    Ledger stored in an .xlsx file, one sheet with the standard header.

    Rows are read with openpyxl rather than pandas so blank rows keep their
    position and row_index always matches the sheet row.
    """

    def __init__(self, filepath: str, config: ReconcilerConfig):
        """
        Initialize the workbook ledger.

        Args:
            filepath: Path to the Excel file
            config: Reconciler settings; config.sheet_name selects the sheet
        """
        super().__init__(config)
        self.filepath = filepath

    def read_values(self) -> List[List[Any]]:
        """Read the whole sheet as raw cell values."""
        wb = self._open_workbook(read_only=True)
        try:
            ws = self._get_sheet(wb)
            values = [list(row) for row in ws.iter_rows(values_only=True)]
        finally:
            wb.close()

        logger.debug("Loaded %d raw rows from %s", len(values), self.filepath)
        return values

    def write_cell(self, row_index: int, column: int, value: str) -> None:
        """Write one cell and save the workbook in place."""
        wb = self._open_workbook(read_only=False)
        ws = self._get_sheet(wb)
        ws.cell(row=row_index, column=column, value=value)

        try:
            wb.save(self.filepath)
        except OSError as e:
            raise LedgerAccessError(f"Could not save ledger file {self.filepath}: {e}") from e

    def _open_workbook(self, read_only: bool):
        if not os.path.exists(self.filepath):
            raise LedgerAccessError(f"Ledger file not found: {self.filepath}")
        try:
            # data_only is only safe for reads; saving would drop formulas
            return load_workbook(self.filepath, read_only=read_only, data_only=read_only)
        except (OSError, InvalidFileException) as e:
            raise LedgerAccessError(f"Could not open ledger file {self.filepath}: {e}") from e

    def _get_sheet(self, wb):
        if self.config.sheet_name not in wb.sheetnames:
            raise LedgerAccessError(f"Sheet '{self.config.sheet_name}' not found in {self.filepath}")
        return wb[self.config.sheet_name]
