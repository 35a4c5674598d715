"""
Business Record Models for AccTrack

These models define the schemas of every record the store persists.
They are designed to:
1. Validate payloads arriving from the UI process
2. Map between camelCase wire names and Python attributes
3. Produce plain-data field dicts for the record store
4. Rebuild typed records from stored rows

Wire names are camelCase (the UI's contract), attributes are snake_case.
Nested detail objects are opaque blobs to the store: unknown keys are
kept so that whatever the UI writes is exactly what it reads back.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BusinessType(str, Enum):
    """Business classification, stored as the label the UI shows."""
    INDIVIDUAL = "บุคคลธรรมดา"
    JURISTIC = "นิติบุคคล"


class OfficeType(str, Enum):
    """Registered office type."""
    HEAD_OFFICE = "สำนักงานใหญ่"
    BRANCH = "สาขา"
    UNSPECIFIED = "ไม่ระบุ"


class QuotationStatus(str, Enum):
    """Quotation lifecycle status."""
    DRAFT = "draft"
    SENT = "sent"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PurchaseOrderStatus(str, Enum):
    """Purchase order lifecycle status."""
    DRAFT = "draft"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


# =============================================================================
# BASE RECORD
# =============================================================================

_META_FIELDS = {"id", "created_at", "updated_at"}


class StoredRecord(BaseModel):
    """
    Base for every persisted record.

    The id and both timestamps are owned by the store. They are accepted
    on input (the UI echoes them back) but never written from a payload.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(
        default=None,
        description="Store-assigned identifier"
    )
    created_at: Optional[str] = Field(
        default=None,
        alias="createdAt",
        description="Store-managed creation timestamp"
    )
    updated_at: Optional[str] = Field(
        default=None,
        alias="updatedAt",
        description="Store-managed last update timestamp"
    )

    def to_record(self) -> dict[str, Any]:
        """Get the writable fields keyed by wire name."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude=_META_FIELDS,
        )

    def to_payload(self) -> dict[str, Any]:
        """Get the full record as plain data for the UI process."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# BUSINESS PROFILE (singleton)
# =============================================================================

class IndividualDetails(BaseModel):
    """Sub-type of an individual business (e.g. shop, ordinary partnership)."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: Optional[str] = None


class JuristicDetails(BaseModel):
    """Sub-type of a juristic person (e.g. limited company, foundation)."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: Optional[str] = None


class VatDetails(BaseModel):
    """VAT registration details."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    vat_registration_date: Optional[str] = Field(
        default=None,
        alias="vatRegistrationDate"
    )


class BusinessProfile(StoredRecord):
    """
    The registered business this installation keeps books for.

    Exactly one exists per store, addressed by the fixed id "default".
    """

    business_type: BusinessType = Field(
        ...,
        alias="businessType",
        description="Individual or juristic person"
    )
    registration_number: Optional[str] = Field(
        default=None,
        alias="registrationNumber",
        description="Tax / company registration number"
    )
    office_type: Optional[OfficeType] = Field(
        default=None,
        alias="officeType"
    )
    branch: Optional[str] = Field(
        default=None,
        description="Branch label when office type is a branch"
    )
    individual_details: IndividualDetails = Field(
        default_factory=IndividualDetails,
        alias="individualDetails"
    )
    juristic_details: JuristicDetails = Field(
        default_factory=JuristicDetails,
        alias="juristicDetails"
    )
    business_name: Optional[str] = Field(
        default=None,
        alias="businessName"
    )
    business_description: Optional[str] = Field(
        default=None,
        alias="businessDescription"
    )
    registration_date: Optional[str] = Field(
        default=None,
        alias="registrationDate"
    )
    vat_registered: bool = Field(
        default=False,
        alias="vatRegistered"
    )
    vat_details: VatDetails = Field(
        default_factory=VatDetails,
        alias="vatDetails"
    )


# =============================================================================
# CONTACT ADDRESS (singleton)
# =============================================================================

class ContactAddress(StoredRecord):
    """Postal address and phone number of the business."""

    building: Optional[str] = None
    room_number: Optional[str] = Field(default=None, alias="roomNumber")
    floor: Optional[str] = None
    village: Optional[str] = None
    house_number: str = Field(..., min_length=1, alias="houseNumber")
    moo: Optional[str] = None
    soi: Optional[str] = None
    road: Optional[str] = None
    sub_district: str = Field(..., min_length=1, alias="subDistrict")
    district: str = Field(..., min_length=1)
    province: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1, alias="postalCode")
    phone_number: str = Field(..., min_length=1, alias="phoneNumber")


# =============================================================================
# PRODUCTS
# =============================================================================

class Product(StoredRecord):
    """A product or service the business sells."""

    name: str = Field(
        ...,
        min_length=1,
        description="Product name"
    )
    description: Optional[str] = None
    category: Optional[str] = None
    unit_price: float = Field(
        ...,
        ge=0,
        alias="unitPrice",
        description="Price per unit"
    )
    stock: int = Field(default=0, description="Units in stock")
    min_stock: int = Field(
        default=0,
        ge=0,
        alias="minStock",
        description="Reorder threshold"
    )


class ProductUpdate(BaseModel):
    """
    Partial product change.

    Only the fields present in the payload are written. Unknown fields
    are rejected rather than silently dropped.
    """
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
    )

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    unit_price: Optional[float] = Field(default=None, ge=0, alias="unitPrice")
    stock: Optional[int] = None
    min_stock: Optional[int] = Field(default=None, ge=0, alias="minStock")

    @model_validator(mode='after')
    def reject_null_required(self) -> 'ProductUpdate':
        """A supplied field that every product must have cannot be null."""
        for name in ("name", "unit_price", "stock", "min_stock"):
            if name in self.model_fields_set and getattr(self, name) is None:
                field = type(self).model_fields[name]
                raise ValueError(f"{field.alias or name} cannot be null")
        return self

    def to_changes(self) -> dict[str, Any]:
        """Get only the fields the caller supplied, keyed by wire name."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# =============================================================================
# TRADE DOCUMENTS (quotations, invoices, purchase orders)
# =============================================================================

class LineItem(BaseModel):
    """One line of a quotation, invoice or purchase order."""
    model_config = ConfigDict(populate_by_name=True)

    description: str = Field(..., min_length=1)
    quantity: float = Field(..., ge=0)
    unit_price: float = Field(..., ge=0, alias="unitPrice")
    amount: Optional[float] = Field(
        default=None,
        ge=0,
        description="quantity x unitPrice, computed when omitted"
    )

    @model_validator(mode='after')
    def compute_amount(self) -> 'LineItem':
        """Fill in the line amount when the caller did not supply one."""
        if self.amount is None:
            self.amount = round(self.quantity * self.unit_price, 2)
        return self


class TradeDocument(StoredRecord):
    """Fields shared by every priced document."""

    items: list[LineItem] = Field(default_factory=list)
    subtotal: float = Field(default=0, ge=0)
    vat: Optional[float] = Field(
        default=None,
        ge=0,
        description="Tax amount"
    )
    total: float = Field(default=0, ge=0)
    notes: Optional[str] = None


class Quotation(TradeDocument):
    """A price quotation sent to a customer."""

    quotation_number: str = Field(
        ...,
        min_length=1,
        alias="quotationNumber",
        description="Human-facing number, unique per store"
    )
    customer_name: str = Field(..., min_length=1, alias="customerName")
    customer_contact: Optional[str] = Field(default=None, alias="customerContact")
    customer_address: Optional[str] = Field(default=None, alias="customerAddress")
    date: Optional[str] = None
    description: Optional[str] = None
    status: QuotationStatus = QuotationStatus.DRAFT


class Invoice(TradeDocument):
    """An invoice issued to a customer."""

    invoice_number: str = Field(..., min_length=1, alias="invoiceNumber")
    customer_name: str = Field(..., min_length=1, alias="customerName")
    customer_address: Optional[str] = Field(default=None, alias="customerAddress")
    status: InvoiceStatus = InvoiceStatus.DRAFT
    due_date: Optional[str] = Field(default=None, alias="dueDate")


class PurchaseOrder(TradeDocument):
    """An order placed with a supplier."""

    po_number: str = Field(..., min_length=1, alias="poNumber")
    supplier_name: str = Field(..., min_length=1, alias="supplierName")
    supplier_address: Optional[str] = Field(default=None, alias="supplierAddress")
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    delivery_date: Optional[str] = Field(default=None, alias="deliveryDate")
