"""
Credential loading and Google API service construction.

Two credential types are supported:
- a service account key, optionally impersonating a Workspace user
  (domain-wide delegation), which is how a scheduled job acts as the
  receiving user
- an authorized-user token file produced by an OAuth consent flow
"""
import json
import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account
from googleapiclient.discovery import build

from config import DRIVE_SCOPES

logger = logging.getLogger(__name__)


class CredentialsError(Exception):
    """Raised when Google credentials are missing or unusable."""


def load_credentials(
    credentials_file: str,
    token_file: Optional[str] = None,
    delegated_user: Optional[str] = None,
    scopes: Iterable[str] = DRIVE_SCOPES,
):
    """
    Load Google credentials.

    Args:
        credentials_file: Service account key, or OAuth client secrets when a token file is used
        token_file: Authorized-user token JSON (used when credentials_file is not a service account)
        delegated_user: Workspace user to impersonate with a service account
        scopes: OAuth scopes to request

    Returns:
        A google.auth credentials object
    """
    scopes = list(scopes)
    path = Path(os.path.expanduser(credentials_file))

    if path.exists() and _is_service_account(path):
        try:
            creds = service_account.Credentials.from_service_account_file(str(path), scopes=scopes)
        except (ValueError, GoogleAuthError) as e:
            raise CredentialsError(f"Invalid service account key {path}: {e}") from e
        if delegated_user:
            creds = creds.with_subject(delegated_user)
            logger.info("Using service account %s as %s", creds.service_account_email, delegated_user)
        return creds

    if not token_file or not Path(os.path.expanduser(token_file)).exists():
        raise CredentialsError(
            f"No service account key at {path} and no token file at {token_file}. "
            "Provide one of them (see GOOGLE_CREDENTIALS_FILE / GOOGLE_TOKEN_FILE)."
        )

    token_path = Path(os.path.expanduser(token_file))
    try:
        creds = user_credentials.Credentials.from_authorized_user_file(str(token_path), scopes=scopes)
    except ValueError as e:
        raise CredentialsError(f"Invalid token file {token_path}: {e}") from e

    if not creds.valid and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as e:
            raise CredentialsError(f"Could not refresh token from {token_path}: {e}") from e
        token_path.write_text(creds.to_json(), encoding="utf-8")
        logger.info("Refreshed token saved to %s", token_path)

    return creds


def build_drive_service(credentials):
    """Return a Drive v3 API client."""
    return build("drive", "v3", credentials=credentials, cache_discovery=False)


def build_sheets_service(credentials):
    """Return a Sheets v4 API client."""
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def _is_service_account(path: Path) -> bool:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CredentialsError(f"Could not read credentials file {path}: {e}") from e
    return isinstance(data, dict) and data.get("type") == "service_account"
