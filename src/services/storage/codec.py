"""
Row Codec

Converts between wire-named field dicts and stored column values.

Blob columns are written as JSON text and read back to the same
structure. A blob that no longer decodes, or decodes to the wrong shape,
raises DataCorruptionError instead of a raw parse error. NULL blobs read
back as the empty shape.
"""

import json
from typing import Any, Mapping

from src.services.storage.interface import DataCorruptionError
from src.services.storage.schema import META_COLUMNS, Column, ColumnKind, TableSchema


def encode_value(column: Column, value: Any) -> Any:
    """Convert one field value into its stored form."""
    if value is None:
        return None
    if column.kind.is_json:
        return json.dumps(value, ensure_ascii=False)
    if column.kind == ColumnKind.BOOLEAN:
        return 1 if value else 0
    return value


def encode_fields(
    schema: TableSchema,
    fields: Mapping[str, Any],
    full: bool = False,
) -> dict[str, Any]:
    """
    Map wire fields to column values.

    Args:
        schema: Table the fields belong to
        fields: Field values keyed by wire name
        full: Emit every column, writing NULL for missing fields

    Raises:
        InvalidArgumentError: If a field is not declared for the table
    """
    encoded = {}
    for field, value in fields.items():
        if field in META_COLUMNS:
            continue
        column = schema.column(field)
        encoded[column.name] = encode_value(column, value)
    if full:
        for column in schema.columns:
            encoded.setdefault(column.name, None)
    return encoded


def check_blob_shape(schema: TableSchema, column: Column, value: Any) -> Any:
    """Validate a decoded blob has the declared top-level shape."""
    expected = dict if column.kind == ColumnKind.JSON_OBJECT else list
    if not isinstance(value, expected):
        raise DataCorruptionError(
            f"{schema.name}.{column.name} holds {type(value).__name__}, "
            f"expected {expected.__name__}"
        )
    return value


def decode_value(schema: TableSchema, column: Column, value: Any) -> Any:
    """Convert one stored value back into its field form."""
    if column.kind.is_json:
        if value is None or value == "":
            return {} if column.kind == ColumnKind.JSON_OBJECT else []
        try:
            decoded = json.loads(value)
        except (TypeError, ValueError) as e:
            raise DataCorruptionError(
                f"{schema.name}.{column.name} is not valid JSON: {e}"
            )
        return check_blob_shape(schema, column, decoded)
    if column.kind == ColumnKind.BOOLEAN:
        return bool(value)
    return value


def decode_row(schema: TableSchema, row: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map a stored row (keyed by column name) to wire fields.

    Raises:
        DataCorruptionError: If a blob column cannot be decoded
    """
    decoded = {field: row[name] for field, name in META_COLUMNS.items()}
    for column in schema.columns:
        decoded[column.field] = decode_value(schema, column, row[column.name])
    return decoded
