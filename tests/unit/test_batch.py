"""
Unit tests for batch mutation compilation and response attribution
"""

import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path to import boardsync module
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from boardsync.batch import (
    BATCH_SIZE,
    FieldUpdate,
    chunked,
    compile_batch_mutation,
    parse_batch_response,
)
from boardsync.exceptions import FieldValueError, UnsupportedFieldTypeError


def resolved(item_id, field_name, value, data_type, field_id="F1", option_id="", clear=False):
    return FieldUpdate(
        item_id=item_id,
        field_name=field_name,
        value=value,
        field_id=field_id,
        option_id=option_id,
        data_type=data_type,
        clear=clear,
    )


class TestCompileBatchMutation:
    """Test compilation of resolved updates into one aliased document"""

    def test_empty_updates_compile_to_nothing(self):
        assert compile_batch_mutation("P1", []) == ("", "")

    def test_aliases_and_variables(self):
        """Each update gets alias u{i} and variable input{i}"""
        updates = [
            resolved("I1", "Status", "Done", "SINGLE_SELECT", "F_status", "O_done"),
            resolved("I2", "Points", "5", "NUMBER", "F_points"),
        ]

        document, body = compile_batch_mutation("P1", updates)

        assert document.startswith(
            "mutation BatchUpdate($input0: UpdateProjectV2ItemFieldValueInput!, "
            "$input1: UpdateProjectV2ItemFieldValueInput!)"
        )
        assert "u0: updateProjectV2ItemFieldValue(input: $input0) { projectV2Item { id } }" in document
        assert "u1: updateProjectV2ItemFieldValue(input: $input1)" in document

        payload = json.loads(body)
        assert payload["query"] == document
        assert payload["variables"]["input0"] == {
            "projectId": "P1",
            "itemId": "I1",
            "fieldId": "F_status",
            "value": {"singleSelectOptionId": "O_done"},
        }
        assert payload["variables"]["input1"]["value"] == {"number": 5.0}

    def test_values_with_special_characters_survive_encoding(self):
        """Quotes, backslashes and newlines must round-trip exactly"""
        text = 'He said "hi"\\ then\nleft'
        _, body = compile_batch_mutation("P1", [resolved("I1", "Notes", text, "TEXT")])

        assert json.loads(body)["variables"]["input0"]["value"] == {"text": text}

    def test_cleared_date_compiles_to_clear_mutation(self):
        updates = [resolved("I1", "Due", "", "DATE", "F_due", clear=True)]

        document, body = compile_batch_mutation("P1", updates)

        assert "$input0: ClearProjectV2ItemFieldValueInput!" in document
        assert "u0: clearProjectV2ItemFieldValue(input: $input0)" in document
        assert "value" not in json.loads(body)["variables"]["input0"]

    def test_unsupported_data_type_raises(self):
        with pytest.raises(UnsupportedFieldTypeError):
            compile_batch_mutation("P1", [resolved("I1", "Sprint", "S1", "ITERATION")])

    def test_invalid_number_raises_value_error(self):
        with pytest.raises(FieldValueError, match="invalid number value"):
            compile_batch_mutation("P1", [resolved("I1", "Points", "many", "NUMBER")])

    @pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity", "1e400"])
    def test_non_finite_number_rejected_before_encoding(self, raw):
        with pytest.raises(FieldValueError, match="invalid number value"):
            compile_batch_mutation("P1", [resolved("I1", "Points", raw, "NUMBER")])


class TestParseBatchResponse:
    """Test per-alias attribution of a batch response"""

    def updates(self, n):
        return [resolved(f"I{i}", "Status", "Done", "SINGLE_SELECT") for i in range(n)]

    def test_all_succeed(self):
        envelope = {"data": {"u0": {"projectV2Item": {"id": "I0"}}, "u1": {"projectV2Item": {"id": "I1"}}}}

        results = parse_batch_response(envelope, self.updates(2))

        assert [r.success for r in results] == [True, True]
        assert [r.item_id for r in results] == ["I0", "I1"]

    def test_error_attributed_by_path(self):
        """An error whose path starts with an alias fails only that update"""
        envelope = {
            "data": {"u0": {"projectV2Item": {"id": "I0"}}, "u1": None, "u2": {"projectV2Item": {"id": "I2"}}},
            "errors": [{"message": "Item not found", "path": ["u1"]}],
        }

        results = parse_batch_response(envelope, self.updates(3))

        assert [r.success for r in results] == [True, False, True]
        assert results[1].error == "Item not found"

    def test_missing_alias_with_unattributed_error(self):
        envelope = {
            "data": {"u0": {"projectV2Item": {"id": "I0"}}},
            "errors": [{"message": "Something failed"}],
        }

        results = parse_batch_response(envelope, self.updates(2))

        assert results[0].success is True
        assert results[1].success is False
        assert results[1].error == "Something failed"

    def test_one_result_per_update_in_order(self):
        results = parse_batch_response({"data": {}}, self.updates(5))

        assert [r.item_id for r in results] == ["I0", "I1", "I2", "I3", "I4"]


class TestChunked:
    def test_splits_at_batch_size(self):
        items = list(range(BATCH_SIZE * 2 + 1))

        chunks = chunked(items)

        assert [len(c) for c in chunks] == [BATCH_SIZE, BATCH_SIZE, 1]
        assert [x for c in chunks for x in c] == items

    def test_batch_size_is_fifty(self):
        assert BATCH_SIZE == 50
