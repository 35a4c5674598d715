"""
Access Facade

The only way the UI process reaches the record store. Each endpoint is a
name, a plain-data payload and a plain-data result.

DESIGN DECISION: No exception crosses this boundary.
- Write endpoints answer {"success": False, "error": message}
- Read endpoints degrade to their natural empty value ({} / [] / None),
  getBusinessData adding the error message to its {}
- Every failure is written to the audit log before it is swallowed

The store must have been opened by the entry point before the first
request; until then every data endpoint fails with NotInitializedError.
"""

from typing import Any, Awaitable, Callable, Optional

import structlog

from src.audit import AuditLogger
from src.models.records import (
    BusinessProfile,
    ContactAddress,
    Product,
    ProductUpdate,
    Quotation,
)
from src.models.storage import FolderProbe, OperationResult, StorageSettings
from src.services.preferences import RecentFoldersStore, StorageSettingsStore
from src.services.records import RecordService
from src.services.resolver import StorageLocationResolver
from src.services.storage import (
    InvalidArgumentError,
    LegacyFileStore,
    NotInitializedError,
)
from src.validation import require_text, validate_payload


logger = structlog.get_logger(__name__)

Handler = Callable[[Any], Awaitable[Any]]
ErrorShape = Callable[[Exception], Any]


def _write_failure(error: Exception) -> dict[str, Any]:
    return OperationResult.failure(str(error)).to_payload()


def _payload_id(payload: Any, name: str = "id") -> str:
    """Accept either a bare id string or an object carrying it."""
    if isinstance(payload, dict):
        payload = payload.get(name)
    return require_text(payload, name)


class AccessFacade:
    """
    Named request/response endpoints over the record service and the
    preference documents.
    """

    def __init__(
        self,
        records: RecordService,
        settings_store: StorageSettingsStore,
        recent_folders: RecentFoldersStore,
        resolver: StorageLocationResolver,
        legacy_files: LegacyFileStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._records = records
        self._settings_store = settings_store
        self._recent_folders = recent_folders
        self._resolver = resolver
        self._legacy_files = legacy_files
        self._audit_logger = audit_logger or AuditLogger()

        self._endpoints: dict[str, tuple[Handler, ErrorShape]] = {
            # Business profile
            "saveBusinessData": (self.save_business_data, _write_failure),
            "getBusinessData": (self.get_business_data, lambda e: {"error": str(e)}),
            # Products
            "saveProduct": (self.save_product, _write_failure),
            "getProducts": (self.get_products, _write_failure),
            "updateProduct": (self.update_product, _write_failure),
            "deleteProduct": (self.delete_product, _write_failure),
            # Contact address
            "saveContactData": (self.save_contact_data, _write_failure),
            "getContactData": (self.get_contact_data, _write_failure),
            # Quotations
            "saveQuotation": (self.save_quotation, _write_failure),
            "getQuotations": (self.get_quotations, _write_failure),
            # Storage preferences and location
            "saveStorageSettings": (self.save_storage_settings, _write_failure),
            "getStorageSettings": (self.get_storage_settings, lambda e: None),
            "checkFolderForExistingData": (
                self.check_folder_for_existing_data,
                lambda e: FolderProbe(has_data=False, error=str(e)).to_payload(),
            ),
            "getRecentFolders": (self.get_recent_folders, lambda e: []),
            "addToRecentFolders": (self.add_to_recent_folders, lambda e: None),
            "changeStorageLocation": (self.change_storage_location, _write_failure),
            "getStorageLocation": (self.get_storage_location, _write_failure),
            # Per-id documents
            "saveFile": (self.save_file, _write_failure),
            "readFile": (self.read_file, lambda e: {}),
        }

    @property
    def endpoints(self) -> list[str]:
        return sorted(self._endpoints)

    async def handle(self, name: str, payload: Any = None) -> Any:
        """
        Run one endpoint.

        Args:
            name: Endpoint name, e.g. "saveProduct"
            payload: Plain-data request payload

        Returns:
            The endpoint result, or its failure shape
        """
        entry = self._endpoints.get(name)
        if entry is None:
            logger.warning("unknown_endpoint", endpoint=name)
            return OperationResult.failure(f"Unknown endpoint: {name}").to_payload()

        handler, on_error = entry
        try:
            return await handler(payload)
        except Exception as e:
            self._audit_logger.log_endpoint_failed(name, e)
            return on_error(e)

    # =========================================================================
    # BUSINESS PROFILE
    # =========================================================================

    async def save_business_data(self, payload: Any) -> dict[str, Any]:
        profile = validate_payload(BusinessProfile, payload)
        await self._records.save_business_profile(profile)
        return OperationResult.ok().to_payload()

    async def get_business_data(self, payload: Any = None) -> dict[str, Any]:
        profile = await self._records.get_business_profile()
        return profile.to_payload() if profile else {}

    # =========================================================================
    # PRODUCTS
    # =========================================================================

    async def save_product(self, payload: Any) -> dict[str, Any]:
        product = validate_payload(Product, payload)
        product_id = await self._records.add_product(product)
        return OperationResult.ok(id=product_id).to_payload()

    async def get_products(self, payload: Any = None) -> dict[str, Any]:
        products = await self._records.list_products()
        return OperationResult.ok(data=[p.to_payload() for p in products]).to_payload()

    async def update_product(self, payload: Any) -> dict[str, Any]:
        """Apply {id, data}. An id matching no product still succeeds."""
        if not isinstance(payload, dict):
            raise InvalidArgumentError("Payload must be an object")
        product_id = _payload_id(payload)
        changes = validate_payload(ProductUpdate, payload.get("data"))
        await self._records.update_product(product_id, changes)
        return OperationResult.ok().to_payload()

    async def delete_product(self, payload: Any) -> dict[str, Any]:
        await self._records.delete_product(_payload_id(payload))
        return OperationResult.ok().to_payload()

    # =========================================================================
    # CONTACT ADDRESS
    # =========================================================================

    async def save_contact_data(self, payload: Any) -> dict[str, Any]:
        address = validate_payload(ContactAddress, payload)
        contact_id = await self._records.save_contact_address(address)
        return OperationResult.ok(id=contact_id).to_payload()

    async def get_contact_data(self, payload: Any = None) -> dict[str, Any]:
        address = await self._records.get_contact_address()
        return OperationResult.ok(
            data=address.to_payload() if address else None
        ).to_payload()

    # =========================================================================
    # QUOTATIONS
    # =========================================================================

    async def save_quotation(self, payload: Any) -> dict[str, Any]:
        quotation = validate_payload(Quotation, payload)
        quotation_id = await self._records.add_quotation(quotation)
        return OperationResult.ok(id=quotation_id).to_payload()

    async def get_quotations(self, payload: Any = None) -> dict[str, Any]:
        quotations = await self._records.list_quotations()
        return OperationResult.ok(data=[q.to_payload() for q in quotations]).to_payload()

    # =========================================================================
    # STORAGE PREFERENCES
    # =========================================================================

    async def save_storage_settings(self, payload: Any) -> dict[str, Any]:
        settings = validate_payload(StorageSettings, payload)
        self._settings_store.save(settings)
        return OperationResult.ok().to_payload()

    async def get_storage_settings(self, payload: Any = None) -> Optional[dict[str, Any]]:
        settings = self._settings_store.load()
        return settings.to_payload() if settings else None

    async def check_folder_for_existing_data(self, payload: Any) -> dict[str, Any]:
        folder = _payload_id(payload, "folder")
        return self._resolver.probe_location_for_existing_data(folder).to_payload()

    async def get_recent_folders(self, payload: Any = None) -> list[str]:
        return self._recent_folders.load()

    async def add_to_recent_folders(self, payload: Any) -> None:
        self._recent_folders.add(_payload_id(payload, "folder"))
        return None

    async def change_storage_location(self, payload: Any) -> dict[str, Any]:
        folder = _payload_id(payload, "folder")
        await self._resolver.change_location(self._records.store, folder)
        return OperationResult.ok().to_payload()

    async def get_storage_location(self, payload: Any = None) -> dict[str, Any]:
        path = self._records.store.path
        if path is None:
            raise NotInitializedError("Record store is not open")
        return OperationResult.ok(data=str(path)).to_payload()

    # =========================================================================
    # PER-ID DOCUMENTS
    # =========================================================================

    async def save_file(self, payload: Any) -> dict[str, Any]:
        """Store {id, businessData} as the document for id."""
        if not isinstance(payload, dict):
            raise InvalidArgumentError("Payload must be an object")
        key = _payload_id(payload)
        self._legacy_files.save(key, payload.get("businessData"))
        self._audit_logger.log_legacy_file_saved(key)
        return OperationResult.ok().to_payload()

    async def read_file(self, payload: Any) -> dict[str, Any]:
        return self._legacy_files.read(_payload_id(payload))
