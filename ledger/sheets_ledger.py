"""
Ledger backed by a Google Sheets spreadsheet (Sheets API v4).
"""
import logging
import re
from typing import Any, List

from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from openpyxl.utils import get_column_letter

from config import ReconcilerConfig
from ledger.base_ledger import BaseLedger, LedgerAccessError

logger = logging.getLogger(__name__)

_SIMPLE_TITLE_RE = re.compile(r"^[A-Za-z0-9_]+$")


def quote_sheet_title(title: str) -> str:
    """Return a worksheet title safely formatted for A1 notation."""
    if _SIMPLE_TITLE_RE.fullmatch(title):
        return title
    escaped = title.replace("'", "''")
    return f"'{escaped}'"


class SheetsLedger(BaseLedger):
    """
    Ledger stored in one tab of a Google spreadsheet.
    """

    def __init__(self, service, config: ReconcilerConfig):
        """
        Initialize the spreadsheet ledger.

        Args:
            service: Sheets v4 client from googleapiclient.discovery.build
            config: Reconciler settings; ledger_id and sheet_name locate the tab
        """
        super().__init__(config)
        if not config.ledger_id:
            raise LedgerAccessError("No ledger spreadsheet id configured (LEDGER_SPREADSHEET_ID)")
        self._service = service
        self._sheet_checked = False

    def read_values(self) -> List[List[Any]]:
        self._ensure_sheet_exists()
        try:
            response = self._service.spreadsheets().values().get(
                spreadsheetId=self.config.ledger_id,
                range=quote_sheet_title(self.config.sheet_name),
                valueRenderOption="UNFORMATTED_VALUE",
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as e:
            raise LedgerAccessError(f"Could not read ledger spreadsheet {self.config.ledger_id}: {e}") from e
        return response.get("values", [])

    def write_cell(self, row_index: int, column: int, value: str) -> None:
        a1 = f"{quote_sheet_title(self.config.sheet_name)}!{get_column_letter(column)}{row_index}"
        try:
            self._service.spreadsheets().values().update(
                spreadsheetId=self.config.ledger_id,
                range=a1,
                valueInputOption="RAW",
                body={"values": [[value]]},
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as e:
            raise LedgerAccessError(f"Could not write {a1}: {e}") from e

    def _ensure_sheet_exists(self) -> None:
        if self._sheet_checked:
            return
        logger.info("Using ledger spreadsheet ID: %s", self.config.ledger_id)
        try:
            metadata = self._service.spreadsheets().get(
                spreadsheetId=self.config.ledger_id,
                fields="sheets.properties.title",
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as e:
            raise LedgerAccessError(f"Could not open ledger spreadsheet {self.config.ledger_id}: {e}") from e

        titles = [s.get("properties", {}).get("title") for s in metadata.get("sheets", [])]
        if self.config.sheet_name not in titles:
            raise LedgerAccessError(f"Sheet '{self.config.sheet_name}' not found in the ledger spreadsheet")
        self._sheet_checked = True
