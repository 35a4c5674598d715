"""
Table Schemas

Every table the record store owns is declared once here. The SQLite
backend generates its DDL from these declarations and both backends use
them to map wire field names to columns, to know which columns hold
JSON blobs and which fields must be unique.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from src.services.storage.interface import InvalidArgumentError


# Millisecond resolution keeps created_at ordering meaningful for rows
# inserted within the same second
NOW_SQL = "strftime('%Y-%m-%d %H:%M:%f', 'now')"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

META_COLUMNS = {
    "id": "id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


class ColumnKind(str, Enum):
    """Storage type of a column."""
    TEXT = "text"
    REAL = "real"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    JSON_OBJECT = "json_object"
    JSON_ARRAY = "json_array"

    @property
    def sql_type(self) -> str:
        if self is ColumnKind.REAL:
            return "REAL"
        if self in (ColumnKind.INTEGER, ColumnKind.BOOLEAN):
            return "INTEGER"
        return "TEXT"

    @property
    def is_json(self) -> bool:
        return self in (ColumnKind.JSON_OBJECT, ColumnKind.JSON_ARRAY)


class Column(BaseModel):
    """One stored field."""
    model_config = ConfigDict(frozen=True)

    field: str
    name: str
    kind: ColumnKind = ColumnKind.TEXT
    required: bool = False
    unique: bool = False
    default_sql: Optional[str] = None

    def ddl(self) -> str:
        parts = [self.name, self.kind.sql_type]
        if self.required:
            parts.append("NOT NULL")
        if self.unique:
            parts.append("UNIQUE")
        if self.default_sql is not None:
            parts.append(f"DEFAULT {self.default_sql}")
        return " ".join(parts)


class TableSchema(BaseModel):
    """Declaration of one table."""
    model_config = ConfigDict(frozen=True)

    name: str
    columns: tuple[Column, ...]
    singleton: bool = False

    def column(self, field: str) -> Column:
        """
        Get the column backing a wire field.

        Raises:
            InvalidArgumentError: If the table has no such field
        """
        for column in self.columns:
            if column.field == field:
                return column
        raise InvalidArgumentError(f"Unknown field for {self.name}: {field}")

    def order_column(self, field: str) -> str:
        """Get the column name to sort on, including the store-managed ones."""
        if field in META_COLUMNS:
            return META_COLUMNS[field]
        return self.column(field).name

    @property
    def unique_columns(self) -> list[Column]:
        return [column for column in self.columns if column.unique]

    @property
    def required_columns(self) -> list[Column]:
        return [column for column in self.columns if column.required]

    def create_sql(self) -> str:
        """Build the create-if-absent statement for this table."""
        lines = ["id TEXT PRIMARY KEY"]
        lines.extend(column.ddl() for column in self.columns)
        lines.append(f"created_at TEXT NOT NULL DEFAULT ({NOW_SQL})")
        lines.append(f"updated_at TEXT NOT NULL DEFAULT ({NOW_SQL})")
        body = ",\n    ".join(lines)
        return f"CREATE TABLE IF NOT EXISTS {self.name} (\n    {body}\n)"


def _text(field: str, name: str, required: bool = False, unique: bool = False) -> Column:
    return Column(field=field, name=name, required=required, unique=unique)


def _trade_columns() -> tuple[Column, ...]:
    return (
        Column(field="items", name="items", kind=ColumnKind.JSON_ARRAY),
        Column(field="subtotal", name="subtotal", kind=ColumnKind.REAL, required=True, default_sql="0"),
        Column(field="vat", name="vat", kind=ColumnKind.REAL),
        Column(field="total", name="total", kind=ColumnKind.REAL, required=True, default_sql="0"),
        _text("notes", "notes"),
    )


BUSINESS_DATA = TableSchema(
    name="business_data",
    singleton=True,
    columns=(
        _text("businessType", "business_type", required=True),
        _text("registrationNumber", "registration_number"),
        _text("officeType", "office_type"),
        _text("branch", "branch"),
        Column(field="individualDetails", name="individual_details", kind=ColumnKind.JSON_OBJECT),
        Column(field="juristicDetails", name="juristic_details", kind=ColumnKind.JSON_OBJECT),
        _text("businessName", "business_name"),
        _text("businessDescription", "business_description"),
        _text("registrationDate", "registration_date"),
        Column(field="vatRegistered", name="vat_registered", kind=ColumnKind.BOOLEAN, required=True, default_sql="0"),
        Column(field="vatDetails", name="vat_details", kind=ColumnKind.JSON_OBJECT),
    ),
)

CONTACT_DATA = TableSchema(
    name="contact_data",
    singleton=True,
    columns=(
        _text("building", "building"),
        _text("roomNumber", "room_number"),
        _text("floor", "floor"),
        _text("village", "village"),
        _text("houseNumber", "house_number", required=True),
        _text("moo", "moo"),
        _text("soi", "soi"),
        _text("road", "road"),
        _text("subDistrict", "sub_district", required=True),
        _text("district", "district", required=True),
        _text("province", "province", required=True),
        _text("country", "country", required=True),
        _text("postalCode", "postal_code", required=True),
        _text("phoneNumber", "phone_number", required=True),
    ),
)

PRODUCTS = TableSchema(
    name="products",
    columns=(
        _text("name", "name", required=True),
        _text("description", "description"),
        _text("category", "category"),
        Column(field="unitPrice", name="unit_price", kind=ColumnKind.REAL, required=True),
        Column(field="stock", name="stock", kind=ColumnKind.INTEGER, default_sql="0"),
        Column(field="minStock", name="min_stock", kind=ColumnKind.INTEGER, default_sql="0"),
    ),
)

QUOTATIONS = TableSchema(
    name="quotations",
    columns=(
        _text("quotationNumber", "quotation_number", required=True, unique=True),
        _text("customerName", "customer_name", required=True),
        _text("customerContact", "customer_contact"),
        _text("customerAddress", "customer_address"),
        _text("date", "quotation_date"),
        _text("description", "description"),
        _text("status", "status", required=True),
    ) + _trade_columns(),
)

INVOICES = TableSchema(
    name="invoices",
    columns=(
        _text("invoiceNumber", "invoice_number", required=True, unique=True),
        _text("customerName", "customer_name", required=True),
        _text("customerAddress", "customer_address"),
        _text("status", "status", required=True),
        _text("dueDate", "due_date"),
    ) + _trade_columns(),
)

PURCHASE_ORDERS = TableSchema(
    name="purchase_orders",
    columns=(
        _text("poNumber", "po_number", required=True, unique=True),
        _text("supplierName", "supplier_name", required=True),
        _text("supplierAddress", "supplier_address"),
        _text("status", "status", required=True),
        _text("deliveryDate", "delivery_date"),
    ) + _trade_columns(),
)

TABLES: dict[str, TableSchema] = {
    schema.name: schema
    for schema in (
        BUSINESS_DATA,
        CONTACT_DATA,
        PRODUCTS,
        QUOTATIONS,
        INVOICES,
        PURCHASE_ORDERS,
    )
}


def get_table(name: str) -> TableSchema:
    """
    Look up a declared table.

    Raises:
        InvalidArgumentError: If the table is not declared
    """
    try:
        return TABLES[name]
    except KeyError:
        raise InvalidArgumentError(f"Unknown table: {name}")
