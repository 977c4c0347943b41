"""
Parser for the item description written when a transfer is initiated.

The transfer-initiation step stores a fixed three-line layout in the item's
description:

    ID da pasta: <parent folder id>
    <path>
    Proprietário antes da transferência: <original owner name>
"""
import logging
import re
from dataclasses import dataclass
from typing import Optional

from config import DESCRIPTION_OWNER_LABEL, DESCRIPTION_PARENT_LABEL, NO_PARENT_SENTINEL

logger = logging.getLogger(__name__)

_PARENT_ID_PATTERN = re.compile(re.escape(DESCRIPTION_PARENT_LABEL) + r"\s*(.+)")
_ORIGINAL_OWNER_PATTERN = re.compile(re.escape(DESCRIPTION_OWNER_LABEL) + r"\s*(.+)")


@dataclass
class TransferDescriptor:
    """Parent folder and previous owner recorded at transfer initiation."""
    parent_id: str = ""
    original_owner: str = ""


def parse_description(description: Optional[str]) -> TransferDescriptor:
    """
    Extract the intended parent id and the original owner from a description.

    Never raises: a missing line or a line that does not match its label
    leaves the corresponding field empty.

    Args:
        description: Raw description text (may be empty or None)

    Returns:
        TransferDescriptor with whatever could be extracted
    """
    result = TransferDescriptor()
    if not description:
        logger.debug("Empty description, nothing to extract")
        return result

    lines = str(description).split("\n")

    match = _PARENT_ID_PATTERN.search(lines[0])
    if match:
        result.parent_id = match.group(1).strip()

    if len(lines) >= 3:
        match = _ORIGINAL_OWNER_PATTERN.search(lines[2])
        if match:
            result.original_owner = match.group(1).strip()

    if not result.parent_id:
        logger.warning("Description present but no parent id found in line 1: %r", lines[0][:80])

    return result


def intended_parent_id(descriptor: TransferDescriptor, sentinel: str = NO_PARENT_SENTINEL) -> str:
    """Return the descriptor's parent id, or "" when absent or the no-parent sentinel."""
    if not descriptor.parent_id or descriptor.parent_id == sentinel:
        return ""
    return descriptor.parent_id
