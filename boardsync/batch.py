"""Compilation of many field updates into one aliased GraphQL mutation.

N independent updates cost one round trip: each update becomes an aliased
sub-operation (u0, u1, ...) with its own typed input variable (input0,
input1, ...). The response shape depends on N, so it is decoded generically
by alias instead of against a fixed structure.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, TypeVar

from boardsync.exceptions import UnsupportedFieldTypeError
from boardsync.fields import (
    DATE,
    NUMBER,
    SUPPORTED_DATA_TYPES,
    ResolvedValue,
    field_value_input,
    parse_number,
)

T = TypeVar("T")

# Maximum aliased operations per request
BATCH_SIZE = 50

UPDATE_INPUT_TYPE = "UpdateProjectV2ItemFieldValueInput!"
CLEAR_INPUT_TYPE = "ClearProjectV2ItemFieldValueInput!"


@dataclass
class FieldUpdate:
    """One requested field change: set field_name on item_id to value.

    The remaining attributes are filled in by resolution and only exist for
    the duration of one batch call.
    """

    item_id: str
    field_name: str
    value: str
    field_id: str = ""
    option_id: str = ""
    data_type: str = ""
    clear: bool = False

    def apply_resolution(self, resolved: ResolvedValue) -> None:
        self.field_id = resolved.field_id
        self.option_id = resolved.option_id
        self.data_type = resolved.data_type
        self.clear = resolved.clear


@dataclass
class BatchUpdateResult:
    item_id: str
    field_name: str
    success: bool
    error: str = ""


def alias_for(index: int) -> str:
    return f"u{index}"


def variable_for(index: int) -> str:
    return f"input{index}"


def _compile_value(update: FieldUpdate) -> dict[str, Any]:
    if update.data_type not in SUPPORTED_DATA_TYPES:
        raise UnsupportedFieldTypeError(f"unsupported field type: {update.data_type}")
    value: Any = update.value
    if update.data_type == NUMBER:
        value = parse_number(update.value)
    return field_value_input(update.data_type, value, update.option_id)


def compile_batch_mutation(project_id: str, updates: list[FieldUpdate]) -> tuple[str, str]:
    """Build the mutation document and JSON request body for resolved updates.

    Values only ever reach the request through json.dumps, so quotes,
    backslashes and newlines in them cannot break the payload.

    Args:
        project_id: Board the items belong to
        updates: Updates that already passed resolution

    Returns:
        (document, body). Both are empty strings for no updates; callers
        must skip sending in that case.

    Raises:
        FieldValueError: If a NUMBER update is not a finite number
        UnsupportedFieldTypeError: If an update carries an unsupported data type
    """
    if not updates:
        return "", ""

    declarations: list[str] = []
    operations: list[str] = []
    variables: dict[str, Any] = {}

    for i, update in enumerate(updates):
        alias = alias_for(i)
        var_name = variable_for(i)
        input_obj: dict[str, Any] = {
            "projectId": project_id,
            "itemId": update.item_id,
            "fieldId": update.field_id,
        }

        if update.clear and update.data_type == DATE:
            declarations.append(f"${var_name}: {CLEAR_INPUT_TYPE}")
            operations.append(
                f"{alias}: clearProjectV2ItemFieldValue(input: ${var_name}) "
                "{ projectV2Item { id } }"
            )
        else:
            input_obj["value"] = _compile_value(update)
            declarations.append(f"${var_name}: {UPDATE_INPUT_TYPE}")
            operations.append(
                f"{alias}: updateProjectV2ItemFieldValue(input: ${var_name}) "
                "{ projectV2Item { id } }"
            )
        variables[var_name] = input_obj

    document = f"mutation BatchUpdate({', '.join(declarations)}) {{ {' '.join(operations)} }}"
    body = json.dumps({"query": document, "variables": variables}, allow_nan=False)
    return document, body


def parse_batch_response(
    envelope: dict[str, Any], updates: list[FieldUpdate]
) -> list[BatchUpdateResult]:
    """Attribute a batch response back to its updates, one result per update.

    An error whose path starts with an update's alias fails that update. An
    alias missing from the data while errors are present takes the first
    error. Everything else succeeded.
    """
    data = envelope.get("data") or {}
    errors = envelope.get("errors") or []

    results = []
    for i, update in enumerate(updates):
        alias = alias_for(i)
        result = BatchUpdateResult(update.item_id, update.field_name, success=True)

        for err in errors:
            path = err.get("path") or []
            if path and path[0] == alias:
                result.success = False
                result.error = str(err.get("message", "unknown error"))
                break

        if result.success and data.get(alias) is None and errors:
            result.success = False
            result.error = str(errors[0].get("message", "unknown error"))

        results.append(result)
    return results


def chunked(items: list[T], size: int = BATCH_SIZE) -> list[list[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]
