"""Reconciliation module for transfer acceptance."""
from reconciler.transfer_reconciler import (
    FILES,
    FOLDERS,
    ReconciliationReport,
    RowResult,
    RowStatus,
    TransferReconciler,
    decide_transfer,
)

__all__ = [
    "FILES", "FOLDERS", "ReconciliationReport", "RowResult", "RowStatus",
    "TransferReconciler", "decide_transfer",
]
