"""
Unit tests for the Google Drive storage backend.
"""
import json
import os
import sys
import tempfile
import unittest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from googleapiclient.errors import HttpError

from config import FOLDER_MIME_TYPE
from storage.base_storage import ItemFetchError, MoveError, StorageError
from storage.drive_storage import DriveStorage, item_from_resource
from storage.google_client import CredentialsError, load_credentials


def http_error(status: int) -> HttpError:
    resp = MagicMock(status=status, reason="error")
    return HttpError(resp, b'{"error": {"message": "boom"}}')


class TestItemFromResource(unittest.TestCase):
    """Tests for Drive resource conversion."""

    def test_full_resource(self):
        item = item_from_resource({
            "id": "f1",
            "name": "Report.pdf",
            "mimeType": "application/pdf",
            "owners": [{"emailAddress": "Me@Example.com", "displayName": "Me"}],
            "parents": ["p1", "p2"],
            "description": "ID da pasta: p1",
        })
        self.assertEqual(item.title, "Report.pdf")
        self.assertEqual(item.first_owner_email, "me@example.com")
        self.assertTrue(item.is_owned_by("ME@example.com"))
        self.assertEqual(item.parents, ["p1", "p2"])

    def test_sparse_resource(self):
        """Test missing owners, parents and description."""
        item = item_from_resource({"id": "f1"})
        self.assertEqual(item.owners, [])
        self.assertEqual(item.first_owner_email, "")
        self.assertFalse(item.is_owned_by(""))
        self.assertEqual(item.description, "")


class TestDriveStorage(unittest.TestCase):
    """Tests for DriveStorage API calls."""

    def setUp(self):
        self.service = MagicMock()
        self.files = self.service.files.return_value
        self.storage = DriveStorage(self.service)

    def test_get_item(self):
        self.files.get.return_value.execute.return_value = {"id": "f1", "name": "Doc"}

        item = self.storage.get_item("f1")

        self.assertEqual(item.id, "f1")
        kwargs = self.files.get.call_args.kwargs
        self.assertEqual(kwargs["fileId"], "f1")
        self.assertIn("owners", kwargs["fields"])
        self.assertIn("description", kwargs["fields"])

    def test_get_item_not_found(self):
        self.files.get.return_value.execute.side_effect = http_error(404)
        with self.assertRaises(ItemFetchError):
            self.storage.get_item("gone")

    def test_get_folder_or_none_swallows_fetch_errors(self):
        """Test an unreachable folder is reported as missing."""
        self.files.get.return_value.execute.side_effect = http_error(403)
        self.assertIsNone(self.storage.get_folder_or_none("p1"))

    def test_find_folders_by_name_query(self):
        """Test the search query escapes quotes and limits to root folders."""
        self.files.list.return_value.execute.return_value = {
            "files": [{"id": "d1", "name": "Transferidos de O'Brien"}, {"id": "d2", "name": "other"}]
        }

        ids = self.storage.find_folders_by_name("Transferidos de O'Brien")

        self.assertEqual(ids, ["d1"])
        query = self.files.list.call_args.kwargs["q"]
        self.assertIn("name = 'Transferidos de O\\'Brien'", query)
        self.assertIn(f"mimeType = '{FOLDER_MIME_TYPE}'", query)
        self.assertIn("'root' in parents", query)
        self.assertIn("trashed = false", query)

    def test_find_folders_follows_pages(self):
        self.files.list.return_value.execute.side_effect = [
            {"files": [{"id": "d1", "name": "X"}], "nextPageToken": "t2"},
            {"files": [{"id": "d2", "name": "X"}]},
        ]
        self.assertEqual(self.storage.find_folders_by_name("X"), ["d1", "d2"])

    def test_find_folders_failure(self):
        self.files.list.return_value.execute.side_effect = http_error(500)
        with self.assertRaises(StorageError):
            self.storage.find_folders_by_name("X")

    def test_create_folder(self):
        self.files.create.return_value.execute.return_value = {"id": "new"}

        folder_id = self.storage.create_folder("Transferidos de Ana")

        self.assertEqual(folder_id, "new")
        body = self.files.create.call_args.kwargs["body"]
        self.assertEqual(body, {"name": "Transferidos de Ana", "mimeType": FOLDER_MIME_TYPE, "parents": ["root"]})

    def test_create_folder_failure(self):
        self.files.create.return_value.execute.side_effect = http_error(403)
        with self.assertRaises(MoveError):
            self.storage.create_folder("X")

    def test_update_parents(self):
        """Test add and remove parents go in one update call."""
        self.storage.update_parents("f1", "dest", ["p1", "p2"])

        kwargs = self.files.update.call_args.kwargs
        self.assertEqual(kwargs["fileId"], "f1")
        self.assertEqual(kwargs["addParents"], "dest")
        self.assertEqual(kwargs["removeParents"], "p1,p2")

    def test_update_parents_failure(self):
        self.files.update.return_value.execute.side_effect = http_error(403)
        with self.assertRaises(MoveError):
            self.storage.update_parents("f1", "dest", ["p1"])

    def test_current_user_email_cached(self):
        about = self.service.about.return_value
        about.get.return_value.execute.return_value = {"user": {"emailAddress": "me@example.com"}}

        self.assertEqual(self.storage.get_current_user_email(), "me@example.com")
        self.assertEqual(self.storage.get_current_user_email(), "me@example.com")
        self.assertEqual(about.get.return_value.execute.call_count, 1)


class TestLoadCredentials(unittest.TestCase):
    """Tests for credential loading errors."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self._tmp.cleanup()

    def test_no_credentials_at_all(self):
        missing = os.path.join(self._tmp.name, "credentials.json")
        with self.assertRaises(CredentialsError):
            load_credentials(missing, token_file=os.path.join(self._tmp.name, "token.json"))

    def test_unreadable_credentials_file(self):
        path = os.path.join(self._tmp.name, "credentials.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("not json")
        with self.assertRaises(CredentialsError):
            load_credentials(path)

    def test_invalid_service_account_key(self):
        """Test a service account file without a usable key is rejected."""
        path = os.path.join(self._tmp.name, "credentials.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"type": "service_account", "client_email": "sa@example.iam.gserviceaccount.com"}, f)
        with self.assertRaises(CredentialsError):
            load_credentials(path)


if __name__ == '__main__':
    unittest.main()
