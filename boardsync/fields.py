"""Coercion of caller-supplied strings into typed board field values.

Resolution is pure: field metadata must already be fetched, nothing here
touches the network, and every failure is raised before a mutation is built.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any

from boardsync.exceptions import FieldValueError, UnsupportedFieldTypeError
from boardsync.models import FieldOption, ProjectField

TEXT = "TEXT"
NUMBER = "NUMBER"
DATE = "DATE"
SINGLE_SELECT = "SINGLE_SELECT"

SUPPORTED_DATA_TYPES = frozenset({TEXT, NUMBER, DATE, SINGLE_SELECT})

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class ResolvedValue:
    """A field value ready to be sent.

    Attributes:
        field_id: Server-side field identifier
        data_type: One of the supported data types
        value: Typed value (str for TEXT/DATE, float for NUMBER, None when clearing)
        option_id: Selected option for SINGLE_SELECT fields
        clear: True when the field's value should be removed instead of set
    """

    field_id: str
    data_type: str
    value: Any = None
    option_id: str = ""
    clear: bool = False


def find_field(fields: list[ProjectField], name: str) -> ProjectField | None:
    """Return the first field named exactly name (case-sensitive)"""
    for f in fields:
        if f.name == name:
            return f
    return None


def find_option(field: ProjectField, name: str) -> FieldOption | None:
    for option in field.options:
        if option.name == name:
            return option
    return None


def parse_number(raw: str | float) -> float:
    """Parse a finite number; NaN and infinities have no JSON form"""
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise FieldValueError(f"invalid number value: {raw}") from None
    if not math.isfinite(number):
        raise FieldValueError(f"invalid number value: {raw}")
    return number


def validate_date(raw: str) -> str:
    """Accept only YYYY-MM-DD naming a real calendar date, returned unchanged"""
    if DATE_PATTERN.match(raw):
        try:
            date.fromisoformat(raw)
            return raw
        except ValueError:
            pass
    raise FieldValueError(f'invalid date format (expected YYYY-MM-DD): "{raw}"')


def resolve_field_value(field: ProjectField, raw: str) -> ResolvedValue:
    """Coerce raw into the representation the server expects for field.

    Args:
        field: Field metadata (id, data type, options)
        raw: Caller-supplied display value

    Returns:
        ResolvedValue. An empty DATE value resolves to a clear operation.

    Raises:
        FieldValueError: If raw is not a valid value for the field
        UnsupportedFieldTypeError: If the field's data type cannot be set
    """
    data_type = field.data_type

    if data_type == TEXT:
        return ResolvedValue(field.id, TEXT, value=raw)

    if data_type == NUMBER:
        return ResolvedValue(field.id, NUMBER, value=parse_number(raw))

    if data_type == DATE:
        if raw == "":
            return ResolvedValue(field.id, DATE, clear=True)
        return ResolvedValue(field.id, DATE, value=validate_date(raw))

    if data_type == SINGLE_SELECT:
        option = find_option(field, raw)
        if option is None:
            raise FieldValueError(f'option "{raw}" not found for field "{field.name}"')
        return ResolvedValue(field.id, SINGLE_SELECT, value=raw, option_id=option.id)

    raise UnsupportedFieldTypeError(f"unsupported field type: {data_type}")


def resolve_named_field(fields: list[ProjectField], name: str, raw: str) -> ResolvedValue:
    """Look up a field by name, then resolve raw against it"""
    field = find_field(fields, name)
    if field is None:
        raise FieldValueError(f'field "{name}" not found in project')
    return resolve_field_value(field, raw)


def field_value_input(data_type: str, value: Any = None, option_id: str = "") -> dict[str, Any]:
    """Build the GraphQL ProjectV2FieldValue input object for a resolved value

    Raises:
        UnsupportedFieldTypeError: For any data type outside the supported four
    """
    if data_type == SINGLE_SELECT:
        return {"singleSelectOptionId": option_id}
    if data_type == TEXT:
        return {"text": value}
    if data_type == NUMBER:
        return {"number": parse_number(value)}
    if data_type == DATE:
        return {"date": value}
    raise UnsupportedFieldTypeError(f"unsupported field type: {data_type}")
