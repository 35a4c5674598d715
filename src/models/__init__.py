"""
Data Models Package

This package contains all Pydantic models used by AccTrack.
All data crossing the facade or entering the store conforms to these schemas.
"""

from src.models.records import (
    BusinessProfile,
    BusinessType,
    ContactAddress,
    IndividualDetails,
    Invoice,
    InvoiceStatus,
    JuristicDetails,
    LineItem,
    OfficeType,
    Product,
    ProductUpdate,
    PurchaseOrder,
    PurchaseOrderStatus,
    Quotation,
    QuotationStatus,
    StoredRecord,
    TradeDocument,
    VatDetails,
)
from src.models.storage import (
    FolderProbe,
    OperationResult,
    StorageSettings,
    StorageType,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "BusinessProfile",
    "BusinessType",
    "ContactAddress",
    "IndividualDetails",
    "Invoice",
    "InvoiceStatus",
    "JuristicDetails",
    "LineItem",
    "OfficeType",
    "Product",
    "ProductUpdate",
    "PurchaseOrder",
    "PurchaseOrderStatus",
    "Quotation",
    "QuotationStatus",
    "StoredRecord",
    "TradeDocument",
    "VatDetails",
    # Storage models
    "FolderProbe",
    "OperationResult",
    "StorageSettings",
    "StorageType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
