#!/usr/bin/env python3
"""
Transfer Reconciler - Main Entry Point

Confirms ownership transfers recorded in the ledger spreadsheet: items the
acting user now owns are marked "Accepted", or moved to a
"Transferidos de <owner>" folder at the Drive root when their original parent
folder is gone or belongs to someone else.

Usage:
    python main.py [--folders | --files] [options]

Examples:
    python main.py
    python main.py --folders --dry-run
    python main.py --ledger-xlsx ledger.xlsx --acting-user me@example.com --report run.xlsx
"""
import argparse
import logging
import sys
from typing import List

from config import APP_NAME, APP_VERSION, get_config
from ledger.base_ledger import BaseLedger, LedgerAccessError
from ledger.sheets_ledger import SheetsLedger
from ledger.xlsx_ledger import XLSXLedger
from output.report_generator import generate_report_excel
from reconciler.transfer_reconciler import FILES, FOLDERS, ReconciliationReport, TransferReconciler
from storage.base_storage import StorageError
from storage.drive_storage import DriveStorage
from storage.google_client import (
    CredentialsError,
    build_drive_service,
    build_sheets_service,
    load_credentials,
)


def parse_arguments() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Accept pending Drive ownership transfers recorded in the ledger.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --files --dry-run
  python main.py --ledger-xlsx ledger.xlsx --report run.xlsx

Environment Variables:
  LEDGER_SPREADSHEET_ID    - Google Sheets id of the ledger
  LEDGER_SHEET_NAME        - Ledger tab name (default: Database)
  GOOGLE_CREDENTIALS_FILE  - Service account key (default: credentials.json)
  GOOGLE_TOKEN_FILE        - Authorized-user token (default: token.json)
  GOOGLE_DELEGATED_USER    - User to impersonate with a service account
  ACTING_USER_EMAIL        - Override the acting user's email
        """
    )

    passes = parser.add_mutually_exclusive_group()
    passes.add_argument(
        '--folders',
        action='store_true',
        help='Only reconcile folder transfers'
    )
    passes.add_argument(
        '--files',
        action='store_true',
        help='Only reconcile file transfers'
    )

    parser.add_argument(
        '--ledger-xlsx',
        default=None,
        help='Use a local Excel workbook as the ledger instead of the Google Sheet'
    )
    parser.add_argument(
        '--sheet',
        default=None,
        help='Ledger sheet name (overrides LEDGER_SHEET_NAME)'
    )
    parser.add_argument(
        '--acting-user',
        default=None,
        help='Email of the user accepting the transfers (defaults to the authenticated user)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Report decisions without moving items or writing the ledger'
    )
    parser.add_argument(
        '--report', '-r',
        default=None,
        help='Write an Excel run report to this path'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    return parser.parse_args()


def configure_logging(level: str) -> None:
    """Set up root logging at the given level name."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def print_summary(reports: List[ReconciliationReport]) -> None:
    """Print per-pass counters and any row-scoped errors."""
    for report in reports:
        summary = report.summary()
        print(f"\n--- {report.kind.capitalize()} ---")
        print(f"Eligible rows: {summary['eligible_rows']}")
        print(f"Accepted: {summary['accepted']}")
        print(f"Moved to default folder: {summary['moved_to_default']}")
        print(f"Awaiting ownership: {summary['awaiting_ownership']}")
        print(f"Skipped rows: {summary['skipped_rows']}")
        if report.errors:
            print(f"Errors ({len(report.errors)}):")
            for result in report.errors[:10]:
                print(f"  - Row {result.row.row_index} ({result.row.id}): {result.status.value}: {result.message}")
            if len(report.errors) > 10:
                print(f"  ... and {len(report.errors) - 10} more")


def main() -> int:
    """Main entry point."""
    args = parse_arguments()
    config = get_config()
    configure_logging("DEBUG" if args.verbose else config.get("log_level", "INFO"))

    if args.sheet:
        config.set("ledger_sheet_name", args.sheet)
    if args.acting_user:
        config.set("acting_user_email", args.acting_user)
    reconciler_config = config.reconciler_config()

    print(f"\n{'='*60}")
    print(f"{APP_NAME} v{APP_VERSION}")
    print(f"{'='*60}")
    print(f"Ledger: {args.ledger_xlsx or reconciler_config.ledger_id or '(not configured)'}")
    print(f"Sheet: {reconciler_config.sheet_name}")
    print(f"Dry run: {args.dry_run}")
    print(f"{'='*60}\n")

    try:
        credentials = load_credentials(
            config.get("credentials_file"),
            token_file=config.get("token_file"),
            delegated_user=config.get("delegated_user") or None,
        )
        storage = DriveStorage(build_drive_service(credentials))

        ledger: BaseLedger
        if args.ledger_xlsx:
            ledger = XLSXLedger(args.ledger_xlsx, reconciler_config)
        else:
            ledger = SheetsLedger(build_sheets_service(credentials), reconciler_config)

        reconciler = TransferReconciler(ledger, storage, reconciler_config, dry_run=args.dry_run)

        if args.folders:
            reports = [reconciler.reconcile(FOLDERS)]
        elif args.files:
            reports = [reconciler.reconcile(FILES)]
        else:
            reports = reconciler.reconcile_all()

    except CredentialsError as e:
        print(f"Error: {e}")
        return 1
    except LedgerAccessError as e:
        print(f"Error: could not access the ledger: {e}")
        return 1
    except StorageError as e:
        print(f"Error: {e}")
        return 1

    print_summary(reports)

    if args.report:
        try:
            generate_report_excel(reports, args.report)
        except OSError as e:
            print(f"Error: could not write the report: {e}")
            return 1
        print(f"\nReport saved to: {args.report}")

    print(f"\n{'='*60}")
    print("Done!")
    print(f"{'='*60}\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
