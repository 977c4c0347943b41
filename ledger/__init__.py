"""
Ledger module for reading transfer records and writing acceptance statuses.
"""
from .base_ledger import BaseLedger, LedgerAccessError, LedgerRow
from .sheets_ledger import SheetsLedger
from .xlsx_ledger import XLSXLedger

__all__ = ['BaseLedger', 'LedgerAccessError', 'LedgerRow', 'SheetsLedger', 'XLSXLedger']
