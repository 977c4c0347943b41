"""
Storage module for live item metadata and relocation.
"""
from .base_storage import ItemFetchError, MoveError, Owner, RemoteItem, StorageBackend, StorageError
from .drive_storage import DriveStorage

__all__ = [
    'ItemFetchError', 'MoveError', 'Owner', 'RemoteItem', 'StorageBackend', 'StorageError',
    'DriveStorage',
]
