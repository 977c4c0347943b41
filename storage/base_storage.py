"""
Abstract storage backend and the live item snapshot it returns.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for storage backend failures."""


class ItemFetchError(StorageError):
    """Raised when an item's metadata cannot be retrieved."""


class MoveError(StorageError):
    """Raised when an item cannot be relocated or a folder cannot be created."""


@dataclass
class Owner:
    """An owner entry as reported by the storage backend."""
    email: str
    display_name: str = ""


@dataclass
class RemoteItem:
    """
    Live snapshot of a storage item.

    Always re-fetched; never cached across runs.
    """
    id: str
    title: str = ""
    mime_type: str = ""
    owners: List[Owner] = field(default_factory=list)
    parents: List[str] = field(default_factory=list)
    description: str = ""

    @property
    def first_owner_email(self) -> str:
        """Lower-cased email of the first owner, or "" when unknown."""
        if not self.owners:
            return ""
        return (self.owners[0].email or "").lower()

    def is_owned_by(self, email: str) -> bool:
        """Check if the first owner is the given user (case-insensitive)."""
        return bool(email) and self.first_owner_email == email.lower()


class StorageBackend(ABC):
    """
    Operations the reconciler needs from the storage service.
    """

    @abstractmethod
    def get_item(self, item_id: str) -> RemoteItem:
        """
        Fetch id, title, mime type, owners, parents and description.

        Raises:
            ItemFetchError: If the item does not exist or cannot be read
        """
        pass

    @abstractmethod
    def create_folder(self, name: str, parent_id: str = "root") -> str:
        """
        Create a folder and return its id.

        Raises:
            MoveError: If the folder cannot be created
        """
        pass

    @abstractmethod
    def find_folders_by_name(self, name: str, parent_id: str = "root") -> List[str]:
        """
        Return ids of non-trashed folders named exactly `name` inside parent_id.

        Raises:
            StorageError: If the listing fails
        """
        pass

    @abstractmethod
    def update_parents(self, item_id: str, add_parent_id: str, remove_parent_ids: List[str]) -> None:
        """
        Add one parent and remove the given parents in a single update.

        Raises:
            MoveError: If the update fails
        """
        pass

    @abstractmethod
    def get_current_user_email(self) -> str:
        """Email of the user the backend acts as."""
        pass

    def get_folder_or_none(self, folder_id: str) -> Optional[RemoteItem]:
        """
        Fetch a folder, treating any fetch failure as "does not exist".

        Args:
            folder_id: Id of the folder

        Returns:
            The folder snapshot, or None
        """
        try:
            return self.get_item(folder_id)
        except Exception as e:
            logger.info("Could not find folder with ID %s: %s", folder_id, e)
            return None
