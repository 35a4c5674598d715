"""Tests for the flat JSON document store and per-id legacy documents."""

import json

import pytest

from conftest import run_async
from src.services.storage import (
    SINGLETON_ID,
    DataCorruptionError,
    InvalidArgumentError,
    JsonDocumentStore,
    LegacyFileStore,
    StorageError,
    StorageOpenError,
    StoreState,
)


class TestJsonDocumentStore:
    """JSON document specific behaviour."""

    def test_open_writes_every_table(self, json_store):
        """Test a new document holds an empty object per table."""
        document = json.loads(json_store.path.read_text(encoding="utf-8"))
        assert document["products"] == {}
        assert document["purchase_orders"] == {}

    def test_writes_are_flushed(self, json_store):
        """Test inserted rows are on disk immediately."""
        record_id = run_async(json_store.insert("products", {"name": "Widget", "unitPrice": 2}))
        document = json.loads(json_store.path.read_text(encoding="utf-8"))
        assert document["products"][record_id]["name"] == "Widget"

    def test_reopen_keeps_data(self, tmp_path):
        """Test rows persist across close and open."""
        path = tmp_path / "acctrack.json"
        store = JsonDocumentStore()
        run_async(store.open(path))
        run_async(store.upsert_singleton(
            "contact_data", SINGLETON_ID, {"houseNumber": "9", "subDistrict": "A",
                                           "district": "B", "province": "C",
                                           "country": "TH", "postalCode": "10330",
                                           "phoneNumber": "021234567"}
        ))
        run_async(store.close())

        reopened = JsonDocumentStore()
        run_async(reopened.open(path))
        try:
            row = run_async(reopened.get_singleton("contact_data", SINGLETON_ID))
            assert row["postalCode"] == "10330"
        finally:
            run_async(reopened.close())

    def test_unreadable_document_fails_to_open(self, tmp_path):
        """Test a document that is not JSON cannot be opened."""
        path = tmp_path / "acctrack.json"
        path.write_text("{broken", encoding="utf-8")
        store = JsonDocumentStore()
        with pytest.raises(StorageOpenError):
            run_async(store.open(path))
        assert store.state == StoreState.UNINITIALIZED

    def test_stored_blobs_are_detached(self, json_store):
        """Test later mutation of a caller's dict does not leak into the store."""
        details = {"type": "บริษัทจำกัด"}
        run_async(json_store.upsert_singleton(
            "business_data", SINGLETON_ID,
            {"businessType": "นิติบุคคล", "juristicDetails": details},
        ))
        details["type"] = "changed"
        row = run_async(json_store.get_singleton("business_data", SINGLETON_ID))
        assert row["juristicDetails"] == {"type": "บริษัทจำกัด"}

    def test_wrong_blob_shape_raises_corruption(self, json_store):
        """Test a blob of the wrong shape is reported as corruption."""
        run_async(json_store.upsert_singleton(
            "business_data", SINGLETON_ID, {"businessType": "นิติบุคคล"}
        ))
        document = json.loads(json_store.path.read_text(encoding="utf-8"))
        document["business_data"][SINGLETON_ID]["vatDetails"] = ["not", "an", "object"]
        json_store.path.write_text(json.dumps(document), encoding="utf-8")

        run_async(json_store.relocate(json_store.path))
        with pytest.raises(DataCorruptionError):
            run_async(json_store.get_singleton("business_data", SINGLETON_ID))



class TestFailedWrites:
    """Tests for writes the disk refuses."""

    @pytest.fixture
    def blocked_store(self, json_store):
        """A store holding one product whose next write cannot land."""
        record_id = run_async(json_store.insert("products", {"name": "Widget", "unitPrice": 2}))
        blocker = json_store.path.with_name(f"{json_store.path.name}.tmp")
        blocker.mkdir()
        yield json_store, record_id
        if blocker.exists():
            blocker.rmdir()

    def _on_disk(self, store):
        return json.loads(store.path.read_text(encoding="utf-8"))

    def test_failed_insert_leaves_no_row(self, blocked_store):
        """Test a rejected insert is not visible afterwards."""
        store, record_id = blocked_store
        with pytest.raises(StorageError):
            run_async(store.insert("products", {"name": "Gadget", "unitPrice": 3}))

        rows = run_async(store.list_records("products"))
        assert [row["id"] for row in rows] == [record_id]
        assert list(self._on_disk(store)["products"]) == [record_id]

    def test_failed_update_keeps_old_values(self, blocked_store):
        """Test a rejected update leaves the row as it was."""
        store, record_id = blocked_store
        with pytest.raises(StorageError):
            run_async(store.update("products", record_id, {"stock": 7}))
        assert run_async(store.list_records("products"))[0]["stock"] == 0

    def test_failed_delete_keeps_row(self, blocked_store):
        """Test a rejected delete leaves the row in place."""
        store, record_id = blocked_store
        with pytest.raises(StorageError):
            run_async(store.delete("products", record_id))
        assert run_async(store.list_records("products"))[0]["id"] == record_id

    def test_failed_singleton_save_keeps_nothing(self, blocked_store):
        """Test a rejected singleton save is not readable."""
        store, _ = blocked_store
        with pytest.raises(StorageError):
            run_async(store.upsert_singleton(
                "business_data", SINGLETON_ID, {"businessType": "นิติบุคคล"}
            ))
        assert run_async(store.get_singleton("business_data", SINGLETON_ID)) is None

    def test_later_write_does_not_resurrect_rejected_row(self, blocked_store):
        """Test a successful write after a failure only carries its own change."""
        store, record_id = blocked_store
        with pytest.raises(StorageError):
            run_async(store.insert("products", {"name": "Gadget", "unitPrice": 3}))
        store.path.with_name(f"{store.path.name}.tmp").rmdir()

        run_async(store.update("products", record_id, {"stock": 1}))
        names = [row["name"] for row in self._on_disk(store)["products"].values()]
        assert names == ["Widget"]


class TestLegacyFileStore:
    """Tests for per-id documents."""

    def test_save_and_read(self, tmp_path):
        """Test a document reads back unchanged."""
        files = LegacyFileStore(tmp_path)
        files.save("user-1", {"businessName": "ร้านดี", "nested": {"a": [1, 2]}})
        assert files.read("user-1") == {"businessName": "ร้านดี", "nested": {"a": [1, 2]}}
        assert (tmp_path / "user-1.json").exists()

    def test_missing_document_reads_empty(self, tmp_path):
        """Test a never-saved id reads as {}."""
        assert LegacyFileStore(tmp_path).read("nobody") == {}

    def test_path_like_ids_are_rejected(self, tmp_path):
        """Test ids cannot escape the data directory."""
        files = LegacyFileStore(tmp_path)
        for key in ("../evil", "a/b", "", ".hidden", "a..b"):
            with pytest.raises(InvalidArgumentError):
                files.save(key, {})

    def test_non_object_documents_are_rejected(self, tmp_path):
        """Test only JSON objects can be stored."""
        with pytest.raises(InvalidArgumentError):
            LegacyFileStore(tmp_path).save("user-1", ["a"])

    def test_unreadable_document_raises_corruption(self, tmp_path):
        """Test a broken file is reported as corruption."""
        (tmp_path / "user-1.json").write_text("{broken", encoding="utf-8")
        with pytest.raises(DataCorruptionError):
            LegacyFileStore(tmp_path).read("user-1")
