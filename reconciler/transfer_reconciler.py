"""
Transfer Reconciliation Module.

Confirms ownership transfers recorded in the ledger by:
1. Selecting rows whose transfer was initiated but not yet accepted
2. Checking that the acting user now owns the live item
3. Verifying the intended parent folder from the item's description
4. Relocating the item to a fallback folder when that parent is unusable
5. Writing the terminal status back to the ledger
"""
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from config import STATUS_ACCEPTED, STATUS_MOVED, ReconcilerConfig
from ledger.base_ledger import BaseLedger, LedgerAccessError, LedgerRow
from normalizer.description_parser import TransferDescriptor, intended_parent_id, parse_description
from storage.base_storage import (
    ItemFetchError,
    RemoteItem,
    StorageBackend,
    StorageError,
)

logger = logging.getLogger(__name__)

FOLDERS = "folders"
FILES = "files"


class TransferAction(Enum):
    ACCEPT = "accept"
    MOVE_TO_DEFAULT = "move_to_default"


class RowStatus(Enum):
    ACCEPTED = "Accepted"
    MOVED = "Moved to Default Folder"
    AWAITING_OWNERSHIP = "Awaiting ownership"
    FETCH_FAILED = "Fetch failed"
    MOVE_FAILED = "Move failed"
    FAILED = "Failed"


@dataclass
class TransferDecision:
    """What to do with an item the acting user already owns."""
    action: TransferAction
    parent_id: str = ""
    original_owner: str = ""
    default_folder_name: str = ""
    reason: str = ""


@dataclass
class RowResult:
    """Outcome of processing one eligible ledger row."""
    row: LedgerRow
    status: RowStatus
    item_title: str = ""
    target_folder_name: str = ""
    target_folder_id: str = ""
    message: str = ""
    error: Optional[Exception] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


@dataclass
class ReconciliationReport:
    """Results of one reconciliation pass."""
    kind: str
    acting_user_email: str = ""
    dry_run: bool = False
    skipped: int = 0
    results: List[RowResult] = field(default_factory=list)

    def count(self, status: RowStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def errors(self) -> List[RowResult]:
        return [r for r in self.results if r.is_error]

    def summary(self) -> Dict[str, Any]:
        """Counters for logging and the run report."""
        by_status = Counter(r.status for r in self.results)
        return {
            "kind": self.kind,
            "acting_user_email": self.acting_user_email,
            "dry_run": self.dry_run,
            "eligible_rows": len(self.results),
            "skipped_rows": self.skipped,
            "accepted": by_status[RowStatus.ACCEPTED],
            "moved_to_default": by_status[RowStatus.MOVED],
            "awaiting_ownership": by_status[RowStatus.AWAITING_OWNERSHIP],
            "errors": len(self.errors),
        }


def decide_transfer(
    row: LedgerRow,
    descriptor: TransferDescriptor,
    parent_folder: Optional[RemoteItem],
    acting_user_email: str,
    config: ReconcilerConfig,
) -> TransferDecision:
    """
    Decide between accepting in place and moving to the fallback folder.

    Args:
        row: Ledger row of the item (its owner name is the fallback for the original owner)
        descriptor: Parsed item description
        parent_folder: The intended parent as fetched, or None if absent or unreachable
        acting_user_email: Email of the user accepting the transfer
        config: Reconciler settings

    Returns:
        TransferDecision
    """
    parent_id = intended_parent_id(descriptor, config.no_parent_sentinel)
    original_owner = descriptor.original_owner or row.owner_name

    if parent_folder is not None and parent_folder.is_owned_by(acting_user_email):
        return TransferDecision(
            action=TransferAction.ACCEPT,
            parent_id=parent_id,
            original_owner=original_owner,
            reason=f"parent folder '{parent_folder.title}' belongs to the acting user",
        )

    if not parent_id:
        reason = "no valid parent folder id in description"
    elif parent_folder is None:
        reason = f"parent folder {parent_id} does not exist"
    else:
        reason = f"parent folder {parent_id} is owned by {parent_folder.first_owner_email or 'nobody'}"

    return TransferDecision(
        action=TransferAction.MOVE_TO_DEFAULT,
        parent_id=parent_id,
        original_owner=original_owner,
        default_folder_name=config.default_folder_name(original_owner),
        reason=reason,
    )


class TransferReconciler:
    """
    Accepts pending ownership transfers recorded in the ledger.

    Rows move from pending to "Accepted" or "Moved to Default Folder" and never
    back. Rows whose item is not yet owned by the acting user, or that hit a
    row-scoped error, stay pending and are retried on the next run.
    """

    def __init__(
        self,
        ledger: BaseLedger,
        storage: StorageBackend,
        config: Optional[ReconcilerConfig] = None,
        dry_run: bool = False,
    ):
        """
        Initialize the reconciler.

        Args:
            ledger: Ledger to read rows from and write statuses to
            storage: Storage backend holding the items
            config: Reconciler settings (defaults to ReconcilerConfig())
            dry_run: Decide only; never create folders, move items or write the ledger
        """
        self.ledger = ledger
        self.storage = storage
        self.config = config or ReconcilerConfig()
        self.dry_run = dry_run
        self._default_folder_ids: Dict[str, str] = {}

    def reconcile_folders(self) -> ReconciliationReport:
        """Accept pending folder transfers."""
        return self.reconcile(FOLDERS)

    def reconcile_files(self) -> ReconciliationReport:
        """Accept pending file transfers."""
        return self.reconcile(FILES)

    def reconcile_all(self) -> List[ReconciliationReport]:
        """Run the folder pass to completion, then the file pass."""
        return [self.reconcile_folders(), self.reconcile_files()]

    def reconcile(self, kind: str) -> ReconciliationReport:
        """
        Run one pass over the ledger.

        Args:
            kind: FOLDERS or FILES

        Returns:
            ReconciliationReport for the pass

        Raises:
            LedgerAccessError: If the ledger cannot be read
            StorageError: If the acting user cannot be determined
        """
        if kind not in (FOLDERS, FILES):
            raise ValueError(f"Unknown reconciliation pass: {kind!r}")

        logger.info("===== Starting %s transfer acceptance%s =====", kind, " (dry run)" if self.dry_run else "")
        rows = self.ledger.read_rows()
        acting_user_email = self._acting_user_email()
        logger.info("Acting user: %s", acting_user_email)

        report = ReconciliationReport(kind=kind, acting_user_email=acting_user_email, dry_run=self.dry_run)

        for row in rows:
            if not self.is_eligible(row, kind):
                logger.debug("Row %d skipped: not a pending %s transfer", row.row_index, kind[:-1])
                report.skipped += 1
                continue

            result = self._process_row(row, acting_user_email)
            report.results.append(result)

        summary = report.summary()
        logger.info(
            "===== %s transfer acceptance done: %d accepted, %d moved, %d awaiting ownership, "
            "%d errors, %d skipped =====",
            kind.capitalize(),
            summary["accepted"],
            summary["moved_to_default"],
            summary["awaiting_ownership"],
            summary["errors"],
            summary["skipped_rows"],
        )
        return report

    def is_eligible(self, row: LedgerRow, kind: str) -> bool:
        """Check if a row is a pending transfer of the pass's item type."""
        is_folder = row.mime_type == self.config.folder_mime_type
        if is_folder != (kind == FOLDERS):
            return False
        return row.transfer_processed and not row.is_terminal

    def _process_row(self, row: LedgerRow, acting_user_email: str) -> RowResult:
        logger.info("Processing row %d (ID: %s)", row.row_index, row.id)
        item: Optional[RemoteItem] = None
        try:
            item = self.storage.get_item(row.id)

            if not item.is_owned_by(acting_user_email):
                logger.info(
                    "'%s' (ID: %s) has not been transferred to the acting user yet",
                    row.title or item.title, row.id,
                )
                return RowResult(
                    row=row,
                    status=RowStatus.AWAITING_OWNERSHIP,
                    item_title=item.title,
                    message=f"owned by {item.first_owner_email or 'unknown'}",
                )

            descriptor = parse_description(item.description)
            parent_id = intended_parent_id(descriptor, self.config.no_parent_sentinel)
            parent_folder = self.storage.get_folder_or_none(parent_id) if parent_id else None

            decision = decide_transfer(row, descriptor, parent_folder, acting_user_email, self.config)
            logger.info("Row %d: %s (%s)", row.row_index, decision.action.value, decision.reason)
            return self._apply(row, item, decision)

        except ItemFetchError as e:
            logger.warning("Row %d: %s", row.row_index, e)
            return RowResult(row=row, status=RowStatus.FETCH_FAILED, message=str(e), error=e)
        except LedgerAccessError as e:
            logger.error("Row %d: could not record the outcome: %s", row.row_index, e)
            return RowResult(row=row, status=RowStatus.FAILED, item_title=item.title if item else "",
                             message=str(e), error=e)
        except Exception as e:
            logger.exception("Error processing row %d (ID: %s)", row.row_index, row.id)
            return RowResult(row=row, status=RowStatus.FAILED, item_title=item.title if item else "",
                             message=str(e), error=e)

    def _apply(self, row: LedgerRow, item: RemoteItem, decision: TransferDecision) -> RowResult:
        if decision.action == TransferAction.ACCEPT:
            if not self.dry_run:
                self.ledger.write_acceptance(row.row_index, STATUS_ACCEPTED)
            return RowResult(row=row, status=RowStatus.ACCEPTED, item_title=item.title, message=decision.reason)

        if not decision.original_owner:
            logger.warning("Row %d: original owner unknown, using folder '%s'", row.row_index,
                           decision.default_folder_name)

        try:
            folder_id = self._resolve_default_folder(decision.default_folder_name)
            if not self.dry_run:
                remove_ids = [p for p in item.parents if p != folder_id]
                logger.info("Moving '%s' (ID: %s) to '%s' (ID: %s)",
                            item.title, item.id, decision.default_folder_name, folder_id)
                self.storage.update_parents(item.id, folder_id, remove_ids)
        except StorageError as e:
            logger.error("Row %d: relocation failed: %s", row.row_index, e)
            return RowResult(
                row=row,
                status=RowStatus.MOVE_FAILED,
                item_title=item.title,
                target_folder_name=decision.default_folder_name,
                message=str(e),
                error=e,
            )

        if not self.dry_run:
            self.ledger.write_acceptance(row.row_index, STATUS_MOVED)
        return RowResult(
            row=row,
            status=RowStatus.MOVED,
            item_title=item.title,
            target_folder_name=decision.default_folder_name,
            target_folder_id=folder_id,
            message=decision.reason,
        )

    def _resolve_default_folder(self, name: str) -> str:
        """
        Return the id of the root folder called `name`, creating it if needed.

        Ids are cached per reconciler, so each name is looked up or created
        at most once per run. In dry run a missing folder resolves to "".
        """
        if name in self._default_folder_ids:
            return self._default_folder_ids[name]

        root_id = self.config.root_folder_id
        existing = self.storage.find_folders_by_name(name, root_id)
        if existing:
            if len(existing) > 1:
                logger.warning("Found %d folders named '%s', using %s", len(existing), name, existing[0])
            folder_id = existing[0]
            logger.info("Default folder found: '%s' (ID: %s)", name, folder_id)
        elif self.dry_run:
            logger.info("Default folder '%s' would be created", name)
            return ""
        else:
            folder_id = self.storage.create_folder(name, root_id)
            logger.info("Created default folder: '%s' (ID: %s)", name, folder_id)

        self._default_folder_ids[name] = folder_id
        return folder_id

    def _acting_user_email(self) -> str:
        email = self.config.acting_user_email or self.storage.get_current_user_email()
        if not email:
            raise StorageError("Could not determine the acting user's email")
        return email.lower()
