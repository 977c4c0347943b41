"""
Google Drive (API v3) storage backend.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError

from config import FOLDER_MIME_TYPE, ROOT_FOLDER_ID
from storage.base_storage import (
    ItemFetchError,
    MoveError,
    Owner,
    RemoteItem,
    StorageBackend,
    StorageError,
)

logger = logging.getLogger(__name__)

ITEM_FIELDS = "id, name, mimeType, owners(emailAddress, displayName), parents, description"


def _escape_query_value(value: str) -> str:
    """Escape a string literal for a Drive search query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def item_from_resource(resource: Mapping[str, Any]) -> RemoteItem:
    """Convert a Drive v3 files resource into a RemoteItem."""
    owners = [
        Owner(email=o.get("emailAddress", ""), display_name=o.get("displayName", ""))
        for o in resource.get("owners") or []
    ]
    return RemoteItem(
        id=resource.get("id", ""),
        title=resource.get("name", ""),
        mime_type=resource.get("mimeType", ""),
        owners=owners,
        parents=list(resource.get("parents") or []),
        description=resource.get("description") or "",
    )


class DriveStorage(StorageBackend):
    """
    StorageBackend implemented on a googleapiclient Drive v3 service.
    """

    def __init__(self, service, supports_all_drives: bool = True):
        """
        Initialize the Drive backend.

        Args:
            service: Drive v3 client from googleapiclient.discovery.build
            supports_all_drives: Pass supportsAllDrives on item requests
        """
        self._service = service
        self._supports_all_drives = supports_all_drives
        self._current_user_email: Optional[str] = None

    def get_item(self, item_id: str) -> RemoteItem:
        try:
            resource = self._service.files().get(
                fileId=item_id,
                fields=ITEM_FIELDS,
                supportsAllDrives=self._supports_all_drives,
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as e:
            raise ItemFetchError(f"Could not fetch item {item_id}: {e}") from e
        return item_from_resource(resource)

    def create_folder(self, name: str, parent_id: str = ROOT_FOLDER_ID) -> str:
        body = {"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]}
        try:
            created = self._service.files().create(
                body=body,
                fields="id",
                supportsAllDrives=self._supports_all_drives,
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as e:
            raise MoveError(f"Could not create folder '{name}': {e}") from e
        logger.debug("Created folder '%s' (ID: %s)", name, created["id"])
        return created["id"]

    def find_folders_by_name(self, name: str, parent_id: str = ROOT_FOLDER_ID) -> List[str]:
        query = (
            f"name = '{_escape_query_value(name)}' "
            f"and mimeType = '{FOLDER_MIME_TYPE}' "
            f"and '{_escape_query_value(parent_id)}' in parents "
            "and trashed = false"
        )
        folder_ids: List[str] = []
        page_token = None
        try:
            while True:
                response: Dict[str, Any] = self._service.files().list(
                    q=query,
                    spaces="drive",
                    fields="nextPageToken, files(id, name)",
                    pageToken=page_token,
                ).execute()
                # exact-name matches only
                folder_ids.extend(f["id"] for f in response.get("files", []) if f.get("name") == name)
                page_token = response.get("nextPageToken")
                if not page_token:
                    break
        except (HttpError, GoogleAuthError, OSError) as e:
            raise StorageError(f"Could not list folders named '{name}': {e}") from e
        return folder_ids

    def update_parents(self, item_id: str, add_parent_id: str, remove_parent_ids: List[str]) -> None:
        try:
            self._service.files().update(
                fileId=item_id,
                addParents=add_parent_id,
                removeParents=",".join(remove_parent_ids),
                fields="id, parents",
                supportsAllDrives=self._supports_all_drives,
            ).execute()
        except (HttpError, GoogleAuthError, OSError) as e:
            raise MoveError(f"Could not move item {item_id} to {add_parent_id}: {e}") from e

    def get_current_user_email(self) -> str:
        if self._current_user_email is None:
            try:
                about = self._service.about().get(fields="user(emailAddress)").execute()
            except (HttpError, GoogleAuthError, OSError) as e:
                raise StorageError(f"Could not resolve the current user: {e}") from e
            self._current_user_email = about.get("user", {}).get("emailAddress", "")
        return self._current_user_email
