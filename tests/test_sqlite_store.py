"""
Tests for the record stores

Contract tests run against both backends through the parametrized
`store` fixture; SQLite specifics are grouped separately.
"""

import sqlite3

import pytest

from conftest import run_async
from src.services.storage import (
    SINGLETON_ID,
    ConstraintViolationError,
    DataCorruptionError,
    InvalidArgumentError,
    NotInitializedError,
    SQLiteRecordStore,
    StorageOpenError,
    StoreState,
)
from src.services.storage.codec import decode_value, encode_fields
from src.services.storage.schema import BUSINESS_DATA, PRODUCTS, QUOTATIONS, get_table


WIDGET = {"name": "Widget", "unitPrice": 9.5, "stock": 3, "minStock": 1}


def _quotation(number: str) -> dict:
    return {
        "quotationNumber": number,
        "customerName": "Buyer Ltd",
        "status": "draft",
        "items": [{"description": "Consulting", "quantity": 2, "unitPrice": 100, "amount": 200}],
        "subtotal": 200,
        "total": 214,
    }


class TestSchemaAndCodec:
    """Tests for table declarations and the row codec."""

    def test_unknown_table_is_rejected(self):
        """Test looking up an undeclared table."""
        with pytest.raises(InvalidArgumentError):
            get_table("customers")

    def test_unknown_field_is_rejected(self):
        """Test encoding a field the table does not declare."""
        with pytest.raises(InvalidArgumentError, match="Unknown field"):
            encode_fields(PRODUCTS, {"colour": "red"})

    def test_blobs_are_json_encoded(self):
        """Test object fields become JSON text and booleans integers."""
        encoded = encode_fields(
            BUSINESS_DATA,
            {"vatRegistered": True, "vatDetails": {"vatRegistrationDate": "2024-01-01"}},
        )
        assert encoded["vat_registered"] == 1
        assert encoded["vat_details"] == '{"vatRegistrationDate": "2024-01-01"}'

    def test_full_encoding_fills_missing_columns(self):
        """Test full encoding writes NULL for every missing column."""
        encoded = encode_fields(BUSINESS_DATA, {"businessType": "นิติบุคคล"}, full=True)
        assert encoded["business_type"] == "นิติบุคคล"
        assert encoded["branch"] is None
        assert len(encoded) == len(BUSINESS_DATA.columns)

    def test_null_blob_reads_as_empty_shape(self):
        """Test NULL blobs decode to {} or []."""
        assert decode_value(BUSINESS_DATA, BUSINESS_DATA.column("vatDetails"), None) == {}
        assert decode_value(QUOTATIONS, QUOTATIONS.column("items"), None) == []

    def test_unparseable_blob_raises_corruption(self):
        """Test a broken blob is reported as corruption."""
        with pytest.raises(DataCorruptionError):
            decode_value(BUSINESS_DATA, BUSINESS_DATA.column("vatDetails"), "{not json")

    def test_wrong_blob_shape_raises_corruption(self):
        """Test an array where an object belongs is reported as corruption."""
        with pytest.raises(DataCorruptionError):
            decode_value(BUSINESS_DATA, BUSINESS_DATA.column("vatDetails"), "[1, 2]")


class TestStoreContract:
    """Behaviour every backend must share."""

    def test_singleton_round_trip(self, store):
        """Test a saved singleton reads back with its blobs intact."""
        fields = {
            "businessType": "นิติบุคคล",
            "businessName": "Acme Co.",
            "juristicDetails": {"type": "บริษัทจำกัด"},
            "vatRegistered": True,
            "vatDetails": {"vatRegistrationDate": "2024-01-01"},
        }
        run_async(store.upsert_singleton("business_data", SINGLETON_ID, fields))
        row = run_async(store.get_singleton("business_data", SINGLETON_ID))

        assert row["id"] == SINGLETON_ID
        assert row["businessName"] == "Acme Co."
        assert row["juristicDetails"] == {"type": "บริษัทจำกัด"}
        assert row["vatRegistered"] is True
        assert row["vatDetails"] == {"vatRegistrationDate": "2024-01-01"}
        assert row["individualDetails"] == {}
        assert row["createdAt"]
        assert row["updatedAt"]

    def test_missing_singleton_is_none(self, store):
        """Test reading a never-saved singleton."""
        assert run_async(store.get_singleton("contact_data", SINGLETON_ID)) is None

    def test_singleton_upsert_replaces_and_keeps_created_at(self, store):
        """Test repeated saves leave one row holding the latest values."""
        run_async(store.upsert_singleton(
            "business_data", SINGLETON_ID, {"businessType": "นิติบุคคล", "branch": "Old"}
        ))
        first = run_async(store.get_singleton("business_data", SINGLETON_ID))
        run_async(store.upsert_singleton(
            "business_data", SINGLETON_ID, {"businessType": "บุคคลธรรมดา"}
        ))
        second = run_async(store.get_singleton("business_data", SINGLETON_ID))

        assert second["businessType"] == "บุคคลธรรมดา"
        assert second["branch"] is None
        assert second["createdAt"] == first["createdAt"]
        assert second["updatedAt"] >= first["updatedAt"]

    def test_insert_and_list(self, store):
        """Test inserted rows are listed newest first with generated ids."""
        first_id = run_async(store.insert("products", WIDGET))
        second_id = run_async(store.insert("products", {**WIDGET, "name": "Gadget"}))
        rows = run_async(store.list_records("products"))

        assert [row["id"] for row in rows] == [second_id, first_id]
        assert first_id != second_id
        assert rows[1]["name"] == "Widget"
        assert rows[1]["unitPrice"] == 9.5
        assert rows[1]["stock"] == 3
        assert rows[1]["minStock"] == 1

    def test_list_oldest_first(self, store):
        """Test ascending order."""
        first_id = run_async(store.insert("products", WIDGET))
        run_async(store.insert("products", {**WIDGET, "name": "Gadget"}))
        rows = run_async(store.list_records("products", descending=False))
        assert rows[0]["id"] == first_id

    def test_insert_applies_column_defaults(self, store):
        """Test stock defaults to 0 when omitted."""
        run_async(store.insert("products", {"name": "Bare", "unitPrice": 1}))
        row = run_async(store.list_records("products"))[0]
        assert row["stock"] == 0
        assert row["minStock"] == 0

    def test_insert_missing_required_field(self, store):
        """Test a missing NOT NULL field is a constraint violation."""
        with pytest.raises(ConstraintViolationError):
            run_async(store.insert("products", {"name": "No price"}))

    def test_partial_update(self, store):
        """Test update writes only the supplied fields."""
        record_id = run_async(store.insert("products", WIDGET))
        before = run_async(store.list_records("products"))[0]

        matched = run_async(store.update("products", record_id, {"stock": 5}))
        after = run_async(store.list_records("products"))[0]

        assert matched == 1
        assert after["stock"] == 5
        for field in ("name", "unitPrice", "minStock", "createdAt", "id"):
            assert after[field] == before[field]
        assert after["updatedAt"] >= before["updatedAt"]

    def test_update_missing_id_matches_nothing(self, store):
        """Test updating an unknown id changes nothing and reports 0."""
        run_async(store.insert("products", WIDGET))
        assert run_async(store.update("products", "missing", {"stock": 1})) == 0
        assert run_async(store.list_records("products"))[0]["stock"] == 3

    def test_update_without_fields(self, store):
        """Test update with no fields is an invalid argument."""
        record_id = run_async(store.insert("products", WIDGET))
        with pytest.raises(InvalidArgumentError):
            run_async(store.update("products", record_id, {}))

    def test_update_with_only_managed_fields(self, store):
        """Test update carrying only id/timestamps is an invalid argument."""
        record_id = run_async(store.insert("products", WIDGET))
        with pytest.raises(InvalidArgumentError):
            run_async(store.update("products", record_id, {"createdAt": "2000-01-01"}))

    def test_delete_is_idempotent(self, store):
        """Test deleting a missing id is not an error."""
        record_id = run_async(store.insert("products", WIDGET))
        run_async(store.delete("products", "missing"))
        assert len(run_async(store.list_records("products"))) == 1

        run_async(store.delete("products", record_id))
        run_async(store.delete("products", record_id))
        assert run_async(store.list_records("products")) == []

    def test_unique_sequence_number(self, store):
        """Test a duplicate quotation number is rejected and not stored."""
        run_async(store.insert("quotations", _quotation("QT-0001")))
        with pytest.raises(ConstraintViolationError, match="UNIQUE"):
            run_async(store.insert("quotations", _quotation("QT-0001")))

        rows = run_async(store.list_records("quotations"))
        assert [row["quotationNumber"] for row in rows] == ["QT-0001"]
        assert rows[0]["items"][0]["description"] == "Consulting"

    def test_relocate_to_empty_location(self, store, tmp_path):
        """Test a relocated store reads the new, empty location."""
        run_async(store.upsert_singleton(
            "business_data", SINGLETON_ID, {"businessType": "นิติบุคคล"}
        ))
        old_path = store.path
        new_path = tmp_path / "moved" / old_path.name

        run_async(store.relocate(new_path))
        assert store.path == new_path
        assert store.state == StoreState.READY
        assert run_async(store.get_singleton("business_data", SINGLETON_ID)) is None

        run_async(store.relocate(old_path))
        row = run_async(store.get_singleton("business_data", SINGLETON_ID))
        assert row["businessType"] == "นิติบุคคล"

    def test_relocate_failure_keeps_old_location(self, store, tmp_path):
        """Test a failed relocate leaves the store usable where it was."""
        record_id = run_async(store.insert("products", WIDGET))
        old_path = store.path
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(StorageOpenError):
            run_async(store.relocate(blocker / "nested" / old_path.name))

        assert store.state == StoreState.READY
        assert store.path == old_path
        assert run_async(store.list_records("products"))[0]["id"] == record_id

    def test_closed_store_rejects_operations(self, store):
        """Test every operation fails after close."""
        run_async(store.close())
        assert store.state == StoreState.CLOSED
        with pytest.raises(NotInitializedError):
            run_async(store.list_records("products"))
        with pytest.raises(NotInitializedError):
            run_async(store.insert("products", WIDGET))
        # closing twice is harmless
        run_async(store.close())


class TestSQLiteRecordStore:
    """SQLite specific behaviour."""

    def test_unopened_store_rejects_operations(self):
        """Test operations before open fail fast."""
        store = SQLiteRecordStore()
        assert store.state == StoreState.UNINITIALIZED
        with pytest.raises(NotInitializedError):
            run_async(store.get_singleton("business_data", SINGLETON_ID))

    def test_open_creates_all_tables(self, sqlite_store):
        """Test the schema is created on open."""
        conn = sqlite3.connect(sqlite_store.path)
        try:
            names = {
                row[0]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
        finally:
            conn.close()
        assert {
            "business_data",
            "contact_data",
            "products",
            "quotations",
            "invoices",
            "purchase_orders",
        } <= names

    def test_open_failure_raises_storage_open_error(self, tmp_path):
        """Test an unusable path fails to open."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = SQLiteRecordStore()
        with pytest.raises(StorageOpenError):
            run_async(store.open(blocker / "acctrack.db"))
        assert store.state == StoreState.UNINITIALIZED

    def test_corrupted_blob_surfaces_and_row_survives(self, sqlite_store):
        """Test a broken blob raises on read and the row is left as is."""
        run_async(sqlite_store.upsert_singleton(
            "business_data", SINGLETON_ID, {"businessType": "นิติบุคคล"}
        ))
        conn = sqlite3.connect(sqlite_store.path)
        try:
            with conn:
                conn.execute("UPDATE business_data SET vat_details = '{broken'")
        finally:
            conn.close()

        with pytest.raises(DataCorruptionError):
            run_async(sqlite_store.get_singleton("business_data", SINGLETON_ID))

        conn = sqlite3.connect(sqlite_store.path)
        try:
            raw = conn.execute("SELECT vat_details FROM business_data").fetchone()[0]
        finally:
            conn.close()
        assert raw == "{broken"

    def test_reopen_keeps_data(self, tmp_path):
        """Test rows persist across close and open."""
        path = tmp_path / "acctrack.db"
        store = SQLiteRecordStore()
        run_async(store.open(path))
        record_id = run_async(store.insert("products", WIDGET))
        run_async(store.close())

        reopened = SQLiteRecordStore()
        run_async(reopened.open(path))
        try:
            assert run_async(reopened.list_records("products"))[0]["id"] == record_id
        finally:
            run_async(reopened.close())
