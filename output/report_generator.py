"""
Excel run report for transfer reconciliation.

Creates a formatted Excel workbook with two sheets:
1. Summary (one row per pass)
2. Row Results (one row per eligible ledger row)
"""
import logging
from typing import List

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows

from reconciler.transfer_reconciler import ReconciliationReport, RowStatus

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
ERROR_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
PENDING_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
ALT_ROW_FILL = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")

SUMMARY_COLUMNS = [
    ("kind", "Pass"),
    ("acting_user_email", "Acting User"),
    ("dry_run", "Dry Run"),
    ("eligible_rows", "Eligible Rows"),
    ("skipped_rows", "Skipped Rows"),
    ("accepted", "Accepted"),
    ("moved_to_default", "Moved to Default Folder"),
    ("awaiting_ownership", "Awaiting Ownership"),
    ("errors", "Errors"),
]

RESULT_HEADERS = [
    "Pass", "Row", "ID", "Title", "MimeType", "Status", "Target Folder", "Target Folder ID", "Message",
]


def results_dataframe(reports: List[ReconciliationReport]) -> pd.DataFrame:
    """
    Flatten the row results of several passes into one table.

    Args:
        reports: Reports in run order

    Returns:
        DataFrame with RESULT_HEADERS columns
    """
    records = []
    for report in reports:
        for result in report.results:
            records.append({
                "Pass": report.kind,
                "Row": result.row.row_index,
                "ID": result.row.id,
                "Title": result.item_title or result.row.title,
                "MimeType": result.row.mime_type,
                "Status": result.status.value,
                "Target Folder": result.target_folder_name,
                "Target Folder ID": result.target_folder_id,
                "Message": result.message,
            })
    return pd.DataFrame(records, columns=RESULT_HEADERS)


def generate_report_excel(reports: List[ReconciliationReport], output_path: str) -> str:
    """
    Generate an Excel workbook describing a reconciliation run.

    Args:
        reports: Reports returned by the reconciler passes
        output_path: Path to save the Excel file

    Returns:
        Path to the generated file
    """
    logger.info("Generating run report: %s", output_path)

    wb = Workbook()

    # Remove default sheet
    if 'Sheet' in wb.sheetnames:
        del wb['Sheet']

    _create_summary_sheet(wb, reports)
    _create_results_sheet(wb, results_dataframe(reports))

    wb.save(output_path)
    logger.info("Run report saved: %s", output_path)

    return output_path


def _write_header(ws, headers: List[str]) -> None:
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal='center')


def _create_summary_sheet(wb: Workbook, reports: List[ReconciliationReport]) -> None:
    """Create the Summary sheet."""
    ws = wb.create_sheet("Summary")
    _write_header(ws, [label for _, label in SUMMARY_COLUMNS])

    for row_idx, report in enumerate(reports, 2):
        summary = report.summary()
        for col, (key, _) in enumerate(SUMMARY_COLUMNS, 1):
            cell = ws.cell(row=row_idx, column=col, value=summary[key])
            if key == "errors" and summary[key]:
                cell.fill = ERROR_FILL

    for col in range(1, len(SUMMARY_COLUMNS) + 1):
        ws.column_dimensions[get_column_letter(col)].width = 22
    ws.freeze_panes = "A2"


def _create_results_sheet(wb: Workbook, df: pd.DataFrame) -> None:
    """Create the Row Results sheet."""
    ws = wb.create_sheet("Row Results")

    for row in dataframe_to_rows(df, index=False, header=True):
        ws.append(row)

    _write_header(ws, RESULT_HEADERS)

    status_col = RESULT_HEADERS.index("Status") + 1
    terminal = (RowStatus.ACCEPTED.value, RowStatus.MOVED.value)
    for row_idx in range(2, len(df) + 2):
        status = ws.cell(row=row_idx, column=status_col).value
        if status == RowStatus.AWAITING_OWNERSHIP.value:
            fill = PENDING_FILL
        elif status not in terminal:
            fill = ERROR_FILL
        elif row_idx % 2 == 0:
            fill = ALT_ROW_FILL
        else:
            continue
        for col in range(1, len(RESULT_HEADERS) + 1):
            ws.cell(row=row_idx, column=col).fill = fill

    column_widths = [10, 6, 36, 40, 36, 24, 36, 36, 60]
    for col, width in enumerate(column_widths, 1):
        ws.column_dimensions[get_column_letter(col)].width = width

    # Add autofilter
    ws.auto_filter.ref = f"A1:{get_column_letter(len(RESULT_HEADERS))}{len(df) + 1}"

    # Freeze header row
    ws.freeze_panes = "A2"
