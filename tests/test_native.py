"""Tests for the google-cloud-firestore backend (client mocked)"""

import datetime
from unittest.mock import MagicMock

import pytest
from google.api_core.exceptions import ServiceUnavailable
from google.cloud import firestore

from bcup.backup import BackupService
from bcup.exceptions import UpstreamFailureError
from bcup.firestore.native import NativeFirestoreDatabase, to_plain


def snapshot(doc_id, data):
    snap = MagicMock()
    snap.id = doc_id
    snap.to_dict.return_value = data
    return snap


@pytest.fixture
def client():
    mock = MagicMock()
    mock.project = "demo"
    return mock


class TestToPlain:
    """Tests for SDK value conversion"""

    def test_timestamp(self):
        """Datetimes become ISO strings"""
        when = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
        assert to_plain(when) == "2024-01-01T00:00:00+00:00"

    def test_geo_point(self):
        """GeoPoints become latitude/longitude dicts"""
        assert to_plain(firestore.GeoPoint(1.5, 2.5)) == {"latitude": 1.5, "longitude": 2.5}

    def test_bytes(self):
        """Bytes become base64 text"""
        assert to_plain(b"hi") == "aGk="

    def test_nested(self):
        """Containers are converted recursively, plain values pass through"""
        assert to_plain({"a": [b"hi", 1, None], "b": {"c": "x"}}) == {
            "a": ["aGk=", 1, None],
            "b": {"c": "x"},
        }


class TestNativeFirestoreDatabase:
    """Tests for NativeFirestoreDatabase with a mocked client"""

    def test_list_documents(self, client):
        """Snapshots become documents with their id"""
        client.collection.return_value.stream.return_value = [
            snapshot("p1", {"name": "bolt"}),
            snapshot("p2", None),
        ]

        docs = NativeFirestoreDatabase(client=client).list_documents("parts")

        client.collection.assert_called_with("parts")
        assert docs == [{"id": "p1", "name": "bolt"}, {"id": "p2"}]

    def test_list_collection_names(self, client):
        """Collection references are reduced to their ids"""
        orders, parts = MagicMock(), MagicMock()
        orders.id, parts.id = "orders", "parts"
        client.collections.return_value = [orders, parts]

        assert NativeFirestoreDatabase(client=client).list_collection_names() == [
            "orders",
            "parts",
        ]

    def test_write_document_sets_fields(self, client):
        """Writes replace the document with set()"""
        NativeFirestoreDatabase(client=client).write_document("orders", "o1", {"total": 3})

        client.collection.assert_called_with("orders")
        client.collection.return_value.document.assert_called_with("o1")
        client.collection.return_value.document.return_value.set.assert_called_once_with(
            {"total": 3}
        )

    def test_read_error_is_upstream_failure(self, client):
        """API errors while reading raise UpstreamFailureError"""
        client.collection.return_value.stream.side_effect = ServiceUnavailable("down")

        with pytest.raises(UpstreamFailureError) as exc_info:
            NativeFirestoreDatabase(client=client).list_documents("parts")
        assert exc_info.value.collection == "parts"

    def test_write_error_is_upstream_failure(self, client):
        """API errors while writing raise UpstreamFailureError naming the document"""
        client.collection.return_value.document.return_value.set.side_effect = (
            ServiceUnavailable("down")
        )

        with pytest.raises(UpstreamFailureError) as exc_info:
            NativeFirestoreDatabase(client=client).write_document("orders", "o1", {})
        assert exc_info.value.document_id == "o1"


    def test_invalid_document_path_is_upstream_failure(self, client):
        """SDK argument errors for unaddressable ids raise UpstreamFailureError"""
        client.collection.return_value.document.side_effect = ValueError(
            "A document must have an even number of path elements"
        )

        with pytest.raises(UpstreamFailureError) as exc_info:
            NativeFirestoreDatabase(client=client).write_document("parts", "a/b", {"x": 1})
        assert exc_info.value.collection == "parts"
        assert exc_info.value.document_id == "a/b"

    def test_restore_continues_past_invalid_id(self, client, store, write_backup):
        """A slash in one id fails that document only; the rest are written"""

        def document(doc_id):
            if "/" in doc_id:
                raise ValueError("A document must have an even number of path elements")
            return MagicMock()

        client.collection.return_value.document.side_effect = document
        service = BackupService(store, database=NativeFirestoreDatabase(client=client))
        write_backup("demo", "parts_x.json.gz", [{"id": "a/b", "x": 1}, {"id": "ok", "x": 2}])

        report = service.restore_backup("demo", "parts_x.json.gz")

        assert report.restored == 1
        assert report.failed == 1
        assert report.failures[0].document_id == "a/b"

    def test_close(self, client):
        """close closes the client"""
        NativeFirestoreDatabase(client=client).close()
        client.close.assert_called_once()
