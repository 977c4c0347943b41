"""
Configuration and constants for the transfer reconciler.

This module provides:
- The fixed ledger schema and acceptance statuses
- The ReconcilerConfig struct injected into the reconciler
- Support for user-configurable settings via environment variables
- Loading overrides from YAML files
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# Ledger Schema
# =============================================================================

# Expected header of the ledger sheet, in column order
LEDGER_HEADERS: List[str] = [
    "ID",
    "Title",
    "MimeType",
    "ParentID",
    "Path",
    "OwnerEmail",
    "OwnerName",
    "TagProcessed",
    "TransferProcessed",
    "TransferAccepted",
]

# Default tab name inside the ledger spreadsheet
LEDGER_SHEET_NAME: str = "Database"

# 1-indexed column holding the acceptance status (the only column we write)
ACCEPTANCE_COLUMN: int = 10

# =============================================================================
# Acceptance Statuses
# =============================================================================

STATUS_PENDING: str = ""
STATUS_ACCEPTED: str = "Accepted"
STATUS_MOVED: str = "Moved to Default Folder"

TERMINAL_STATUSES: Tuple[str, ...] = (STATUS_ACCEPTED, STATUS_MOVED)

# =============================================================================
# Storage Conventions
# =============================================================================

FOLDER_MIME_TYPE: str = "application/vnd.google-apps.folder"

# Parent id written by the transfer-initiation step when there was no parent
NO_PARENT_SENTINEL: str = "N/A"

# Fallback folders are created at the root as "<prefix><original owner>"
DEFAULT_FOLDER_PREFIX: str = "Transferidos de "

ROOT_FOLDER_ID: str = "root"

# =============================================================================
# Description Layout
# =============================================================================

# Line 1 and line 3 of the description written at transfer initiation
DESCRIPTION_PARENT_LABEL: str = "ID da pasta:"
DESCRIPTION_OWNER_LABEL: str = "Proprietário antes da transferência:"

# =============================================================================
# Google API Settings
# =============================================================================

DRIVE_SCOPES: List[str] = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/spreadsheets",
]

DEFAULT_CREDENTIALS_FILE: str = "credentials.json"
DEFAULT_TOKEN_FILE: str = "token.json"

# =============================================================================
# Application Info
# =============================================================================

APP_NAME: str = "Transfer Reconciler"
APP_VERSION: str = "1.0.0"


@dataclass
class ReconcilerConfig:
    """
    Settings injected into the ledger adapters and the reconciler.

    Built from the global Config by default, but tests and callers can
    construct it directly.
    """
    ledger_id: str = ""
    sheet_name: str = LEDGER_SHEET_NAME
    headers: List[str] = field(default_factory=lambda: list(LEDGER_HEADERS))
    acceptance_column: int = ACCEPTANCE_COLUMN
    folder_mime_type: str = FOLDER_MIME_TYPE
    no_parent_sentinel: str = NO_PARENT_SENTINEL
    default_folder_prefix: str = DEFAULT_FOLDER_PREFIX
    root_folder_id: str = ROOT_FOLDER_ID
    acting_user_email: str = ""

    def default_folder_name(self, original_owner: str) -> str:
        """Return the fallback folder name for items transferred by original_owner."""
        return f"{self.default_folder_prefix}{original_owner}"


# =============================================================================
# Flexible Configuration System
# =============================================================================

class Config:
    """
    Flexible configuration manager that supports:
    - Environment variables
    - Custom YAML configuration files
    - Runtime overrides
    """

    _instance: Optional["Config"] = None
    _settings: Dict[str, Any] = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._load_defaults()
            cls._instance._load_custom_config()
        return cls._instance

    def _load_defaults(self) -> None:
        """Load default settings."""
        self._settings = {
            # Ledger settings
            "ledger_spreadsheet_id": os.environ.get("LEDGER_SPREADSHEET_ID", ""),
            "ledger_sheet_name": os.environ.get("LEDGER_SHEET_NAME", LEDGER_SHEET_NAME),

            # Google credentials
            "credentials_file": os.environ.get("GOOGLE_CREDENTIALS_FILE", DEFAULT_CREDENTIALS_FILE),
            "token_file": os.environ.get("GOOGLE_TOKEN_FILE", DEFAULT_TOKEN_FILE),
            "delegated_user": os.environ.get("GOOGLE_DELEGATED_USER", ""),

            # Reconciliation settings
            "acting_user_email": os.environ.get("ACTING_USER_EMAIL", ""),
            "no_parent_sentinel": NO_PARENT_SENTINEL,
            "default_folder_prefix": DEFAULT_FOLDER_PREFIX,

            # Logging
            "log_level": os.environ.get("LOG_LEVEL", "INFO").upper(),
        }

    def _load_custom_config(self) -> None:
        """Load custom configuration from YAML file if available."""
        config_paths = [
            Path.cwd() / "config.yaml",
            Path.cwd() / "config.yml",
            Path(__file__).parent / "config.yaml",
            Path.home() / ".transferreconciler" / "config.yaml",
        ]

        for config_path in config_paths:
            if config_path.exists():
                try:
                    with open(config_path, 'r', encoding='utf-8') as f:
                        custom_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning("Could not load config from %s: %s", config_path, e)
                    continue
                if not isinstance(custom_config, dict):
                    logger.warning("Ignoring %s: top level must be a mapping", config_path)
                    continue
                self._settings.update(custom_config)
                logger.info("Loaded config from %s", config_path)
                break

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        return self._settings.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value at runtime."""
        self._settings[key] = value

    def reconciler_config(self) -> ReconcilerConfig:
        """Build the ReconcilerConfig from the current settings."""
        return ReconcilerConfig(
            ledger_id=str(self.get("ledger_spreadsheet_id") or ""),
            sheet_name=str(self.get("ledger_sheet_name") or LEDGER_SHEET_NAME),
            no_parent_sentinel=str(self.get("no_parent_sentinel", NO_PARENT_SENTINEL)),
            default_folder_prefix=str(self.get("default_folder_prefix", DEFAULT_FOLDER_PREFIX)),
            acting_user_email=str(self.get("acting_user_email") or ""),
        )

    def reload(self) -> None:
        """Reload configuration from files."""
        self._load_defaults()
        self._load_custom_config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
