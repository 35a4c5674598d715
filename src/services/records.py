"""
Typed Record Operations

Per-entity CRUD on top of the table-level storage interface. This layer
owns the mapping between pydantic records and stored field dicts; the
store itself never sees a model.

Rows that come back from the store but no longer validate against their
model are reported as DataCorruptionError, never as a raw validation
failure.
"""

from typing import Optional, TypeVar

from pydantic import ValidationError

from src.models.records import (
    BusinessProfile,
    ContactAddress,
    Invoice,
    Product,
    ProductUpdate,
    PurchaseOrder,
    Quotation,
    StoredRecord,
)
from src.services.storage import (
    SINGLETON_ID,
    DataCorruptionError,
    RecordStorageInterface,
)


BUSINESS_TABLE = "business_data"
CONTACT_TABLE = "contact_data"
PRODUCTS_TABLE = "products"
QUOTATIONS_TABLE = "quotations"
INVOICES_TABLE = "invoices"
PURCHASE_ORDERS_TABLE = "purchase_orders"

RecordT = TypeVar("RecordT", bound=StoredRecord)


def _to_model(model: type[RecordT], table: str, row: dict) -> RecordT:
    try:
        return model.model_validate(row)
    except ValidationError as e:
        raise DataCorruptionError(
            f"Stored {table} row {row.get('id')} is invalid: {e.error_count()} error(s)"
        )


class RecordService:
    """
    Typed CRUD for every bookkeeping entity.

    The store is injected; the service holds no connection of its own
    and follows the store through relocations.
    """

    def __init__(self, store: RecordStorageInterface):
        self._store = store

    @property
    def store(self) -> RecordStorageInterface:
        return self._store

    # =========================================================================
    # SINGLETONS
    # =========================================================================

    async def save_business_profile(self, profile: BusinessProfile) -> str:
        """Replace the business profile. Returns its fixed id."""
        await self._store.upsert_singleton(BUSINESS_TABLE, SINGLETON_ID, profile.to_record())
        return SINGLETON_ID

    async def get_business_profile(self) -> Optional[BusinessProfile]:
        row = await self._store.get_singleton(BUSINESS_TABLE, SINGLETON_ID)
        if row is None:
            return None
        return _to_model(BusinessProfile, BUSINESS_TABLE, row)

    async def save_contact_address(self, address: ContactAddress) -> str:
        """Replace the contact address. Returns its fixed id."""
        await self._store.upsert_singleton(CONTACT_TABLE, SINGLETON_ID, address.to_record())
        return SINGLETON_ID

    async def get_contact_address(self) -> Optional[ContactAddress]:
        row = await self._store.get_singleton(CONTACT_TABLE, SINGLETON_ID)
        if row is None:
            return None
        return _to_model(ContactAddress, CONTACT_TABLE, row)

    # =========================================================================
    # PRODUCTS
    # =========================================================================

    async def add_product(self, product: Product) -> str:
        return await self._store.insert(PRODUCTS_TABLE, product.to_record())

    async def list_products(self) -> list[Product]:
        rows = await self._store.list_records(PRODUCTS_TABLE)
        return [_to_model(Product, PRODUCTS_TABLE, row) for row in rows]

    async def update_product(self, product_id: str, changes: ProductUpdate) -> int:
        """
        Write only the changed product fields.

        Returns:
            Rows changed; 0 when no product has this id
        """
        return await self._store.update(PRODUCTS_TABLE, product_id, changes.to_changes())

    async def delete_product(self, product_id: str) -> None:
        await self._store.delete(PRODUCTS_TABLE, product_id)

    # =========================================================================
    # TRADE DOCUMENTS
    # =========================================================================

    async def add_quotation(self, quotation: Quotation) -> str:
        return await self._store.insert(QUOTATIONS_TABLE, quotation.to_record())

    async def list_quotations(self) -> list[Quotation]:
        rows = await self._store.list_records(QUOTATIONS_TABLE)
        return [_to_model(Quotation, QUOTATIONS_TABLE, row) for row in rows]

    async def add_invoice(self, invoice: Invoice) -> str:
        return await self._store.insert(INVOICES_TABLE, invoice.to_record())

    async def list_invoices(self) -> list[Invoice]:
        rows = await self._store.list_records(INVOICES_TABLE)
        return [_to_model(Invoice, INVOICES_TABLE, row) for row in rows]

    async def add_purchase_order(self, order: PurchaseOrder) -> str:
        return await self._store.insert(PURCHASE_ORDERS_TABLE, order.to_record())

    async def list_purchase_orders(self) -> list[PurchaseOrder]:
        rows = await self._store.list_records(PURCHASE_ORDERS_TABLE)
        return [_to_model(PurchaseOrder, PURCHASE_ORDERS_TABLE, row) for row in rows]
