"""Tests for the JSON Repairer."""

import json

import pytest

from jobj.core.errors import JSONRepairError
from jobj.core.repair import JSONRepairer, compact_json, is_valid_json, repair_json


class TestJSONRepairer:
    """Test repair of malformed model output."""

    @pytest.fixture
    def repairer(self) -> JSONRepairer:
        return JSONRepairer(empty_structure_fallback=True, degraded_extraction=True)

    def test_valid_json_is_compacted(self, repairer: JSONRepairer) -> None:
        """Valid JSON should come back compact and semantically identical."""
        raw = '{\n  "name": "John Smith",\n  "tags": ["a", "b"],\n  "age": 30\n}'

        result = repairer.repair(raw)

        assert result == '{"name":"John Smith","tags":["a","b"],"age":30}'

    @pytest.mark.parametrize(
        "raw",
        [
            '{"a": 1}',
            "[1, 2.5, -3e2]",
            '{"nested": {"list": [true, false, null]}}',
            '"just a string"',
            "123",
            '{"text": "keeps , commas ] and } braces ... inside"}',
            '{"unicode": "caf\\u00e9", "escaped": "say \\"hi\\""}',
        ],
    )
    def test_valid_json_is_idempotent(self, repairer: JSONRepairer, raw: str) -> None:
        """Repairing valid JSON never changes its value."""
        result = repairer.repair(raw)

        assert json.loads(result) == json.loads(raw)
        assert repairer.repair(result) == result

    def test_empty_input_returns_empty(self, repairer: JSONRepairer) -> None:
        """Empty input is not an error."""
        assert repairer.repair("") == ""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("[", "[]"),
            ("{", "{}"),
            ("[{]", "[{}]"),
            ('{"', "{}"),
            ('["', "[]"),
            ("]", '""'),
            ("}", '""'),
            ('"', '""'),
            ("   ", '""'),
        ],
    )
    def test_degenerate_inputs(self, repairer: JSONRepairer, raw: str, expected: str) -> None:
        """Minimal inputs map to fixed results."""
        assert repairer.repair(raw) == expected

    def test_strips_markdown_fence(self, repairer: JSONRepairer) -> None:
        """Should strip ```json fences."""
        raw = '```json\n{"name": "John", "age": 30}\n```'

        result = repairer.repair_with_report(raw)

        assert json.loads(result.text) == {"name": "John", "age": 30}
        assert "stripped_code_fence" in result.repairs_applied

    def test_anchors_to_first_bracket(self, repairer: JSONRepairer) -> None:
        """Leading prose is dropped."""
        result = repairer.repair_with_report("stringbeforeobject {}")

        assert result.text == "{}"
        assert "anchored_to_bracket" in result.repairs_applied

    def test_whitespace_wrapped_object(self, repairer: JSONRepairer) -> None:
        assert repairer.repair("   {  }   ") == "{}"

    def test_plain_text_fails(self, repairer: JSONRepairer) -> None:
        """Text with no brackets is unrecoverable."""
        with pytest.raises(JSONRepairError):
            repairer.repair("justsomeplaintext")

    def test_single_quotes(self, repairer: JSONRepairer) -> None:
        """Should convert single quotes to double quotes."""
        result = repairer.repair_with_report("{'name': 'John', 'age': 30}")

        assert json.loads(result.text) == {"name": "John", "age": 30}
        assert "normalized_quotes" in result.repairs_applied

    def test_mixed_quotes(self, repairer: JSONRepairer) -> None:
        result = repairer.repair("{'name': \"John\", \"city\": 'Paris'}")

        assert json.loads(result) == {"name": "John", "city": "Paris"}

    def test_escaped_single_quote_becomes_apostrophe(self, repairer: JSONRepairer) -> None:
        result = repairer.repair("{'msg': 'it\\'s fine'}")

        assert json.loads(result) == {"msg": "it's fine"}

    def test_double_quote_inside_single_quoted_string(self, repairer: JSONRepairer) -> None:
        """A double quote inside a single-quoted string is content."""
        result = repairer.repair("{'quote': 'say \"hi\"'}")

        assert json.loads(result) == {"quote": 'say "hi"'}

    def test_escaped_double_quotes_are_kept(self, repairer: JSONRepairer) -> None:
        raw = '{"key": "value with \\"escaped\\" quotes",}'

        result = repairer.repair(raw)

        assert json.loads(result) == {"key": 'value with "escaped" quotes'}

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("[1, 2, 3,]", [1, 2, 3]),
            ('{"a":1,}', {"a": 1}),
            ('{"a": [1, 2,], "b": {"c": 3,},}', {"a": [1, 2], "b": {"c": 3}}),
        ],
    )
    def test_removes_trailing_commas(self, repairer: JSONRepairer, raw: str, expected: object) -> None:
        assert json.loads(repairer.repair(raw)) == expected

    def test_trailing_comma_inside_string_is_content(self, repairer: JSONRepairer) -> None:
        """Rewrites never touch string literals."""
        result = repairer.repair('{"note": "a, }", "x": 1,}')

        assert json.loads(result) == {"note": "a, }", "x": 1}

    def test_balances_brackets(self, repairer: JSONRepairer) -> None:
        result = repairer.repair_with_report('{"a": [1, 2, 3')

        assert json.loads(result.text) == {"a": [1, 2, 3]}
        assert "balanced_brackets" in result.repairs_applied

    def test_balances_nested_structures(self, repairer: JSONRepairer) -> None:
        result = repairer.repair('{"a": {"b": [1, 2')

        assert json.loads(result) == {"a": {"b": [1, 2]}}

    def test_closes_unterminated_string(self, repairer: JSONRepairer) -> None:
        result = repairer.repair('{"name": "Jo')

        assert json.loads(result) == {"name": "Jo"}

    def test_partial_closers_are_completed(self, repairer: JSONRepairer) -> None:
        assert repairer.repair("[[1\n\n]") == "[[1]]"

    def test_unquoted_keys_and_values(self, repairer: JSONRepairer) -> None:
        """Should quote bare keys and bare word values."""
        result = repairer.repair_with_report("{name: John, age: 30}")

        assert json.loads(result.text) == {"name": "John", "age": 30}
        assert "quoted_keys" in result.repairs_applied
        assert "quoted_values" in result.repairs_applied

    def test_unquoted_value_with_spaces(self, repairer: JSONRepairer) -> None:
        result = repairer.repair('{"status": in progress}')

        assert json.loads(result) == {"status": "in progress"}

    def test_literals_are_lowercased(self, repairer: JSONRepairer) -> None:
        result = repairer.repair('{"a": True, "b": FALSE, "c": Null}')

        assert json.loads(result) == {"a": True, "b": False, "c": None}

    def test_array_ellipsis(self, repairer: JSONRepairer) -> None:
        """Truncation markers are dropped from arrays."""
        result = repairer.repair_with_report("[1, 2, 3, ...]")

        assert result.text == "[1,2,3]"
        assert "removed_ellipsis" in result.repairs_applied

    def test_truncated_array_of_objects(self, repairer: JSONRepairer) -> None:
        result = repairer.repair('[{"a": 1}, {"b": 2}, ...')

        assert json.loads(result) == [{"a": 1}, {"b": 2}]

    def test_ellipsis_inside_object(self, repairer: JSONRepairer) -> None:
        result = repairer.repair('{"items": [1, 2, ...]}')

        assert json.loads(result) == {"items": [1, 2]}

    def test_dangling_array_comma(self, repairer: JSONRepairer) -> None:
        result = repairer.repair_with_report("[1, 2, 3,")

        assert result.text == "[1,2,3]"
        assert "closed_dangling_array" in result.repairs_applied

    def test_space_separated_elements(self, repairer: JSONRepairer) -> None:
        assert repairer.repair('["a" "b" "c" 1') == '["a","b","c",1]'

    def test_space_separated_elements_keep_their_values(self, repairer: JSONRepairer) -> None:
        assert json.loads(repairer.repair('["x" "y" 2.5]')) == ["x", "y", 2.5]

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            # Truncated arrays
            (r'["a, b", "c", ...', ["a, b", "c"]),
            (r'["x]", "y", ...', ["x]", "y"]),
            (r'["wait...", "b", ...]', ["wait...", "b"]),
            (r"['wait...', 'b']", ["wait...", "b"]),
            (r"[[1, 2], [3, 4], ...", [[1, 2], [3, 4]]),
            # Dangling commas
            (r'["a,", "b",', ["a,", "b"]),
            (r'["x,]", 1,', ["x,]", 1]),
            # Space-separated elements
            (r'["line\nbreak" "x" 1', ["line\nbreak", "x", 1]),
            (r'["say \"hi\"" "x"', ['say "hi"', "x"]),
            (r'["caf\u00e9" "b"]', ["café", "b"]),
            (r"['it\'s' 'ok'", ["it's", "ok"]),
            # Later passes
            (r'{"items": ["wait...", 1, ...]}', {"items": ["wait...", 1]}),
            (r'[1 "a b" 2]', [1, "a b", 2]),
            (r'{note: "key: value, more"}', {"note": "key: value, more"}),
        ],
    )
    def test_string_content_survives_array_passes(
        self, repairer: JSONRepairer, raw: str, expected: object
    ) -> None:
        """Commas, brackets, escapes and ellipses inside strings are content."""
        assert json.loads(repairer.repair(raw)) == expected

    def test_inserts_missing_array_commas(self, repairer: JSONRepairer) -> None:
        result = repairer.repair_with_report("[1 2 3]")

        assert json.loads(result.text) == [1, 2, 3]
        assert "inserted_array_commas" in result.repairs_applied

    def test_inserts_commas_between_objects(self, repairer: JSONRepairer) -> None:
        result = repairer.repair('[{"a": 1} {"b": 2}]')

        assert json.loads(result) == [{"a": 1}, {"b": 2}]

    def test_complex_structure(self, repairer: JSONRepairer) -> None:
        raw = """```json
{
    name: 'John',
    'address': {'city': 'Paris', zip: '75001',},
    tags: ['a', 'b',],
    active: True
```"""
        result = repairer.repair(raw)

        assert json.loads(result) == {
            "name": "John",
            "address": {"city": "Paris", "zip": "75001"},
            "tags": ["a", "b"],
            "active": True,
        }


class TestRepairPolicies:
    """Test the degraded extraction and empty structure policies."""

    # Unbalanced and missing a comma: only key/value extraction recovers it
    UNBALANCED = '{"a": 1, "b": "x" "c": 2'
    # Balanced but missing a comma
    BALANCED = '{"a": 1 "b": 2}'

    def test_degraded_extraction(self) -> None:
        repairer = JSONRepairer(empty_structure_fallback=False, degraded_extraction=True)

        result = repairer.repair_with_report(self.UNBALANCED)

        assert json.loads(result.text) == {"a": 1, "b": "x", "c": 2}
        assert "extracted_key_values" in result.repairs_applied

    def test_degraded_extraction_only_for_unbalanced_input(self) -> None:
        repairer = JSONRepairer(empty_structure_fallback=False, degraded_extraction=True)

        with pytest.raises(JSONRepairError):
            repairer.repair(self.BALANCED)

    def test_empty_structure_fallback(self) -> None:
        repairer = JSONRepairer(empty_structure_fallback=True, degraded_extraction=False)

        result = repairer.repair_with_report(self.UNBALANCED)

        assert result.text == "{}"
        assert "empty_structure_fallback" in result.repairs_applied

    def test_empty_array_fallback(self) -> None:
        repairer = JSONRepairer(empty_structure_fallback=True)

        assert repairer.repair('[{"a": 1 : 2}]') == "[]"

    def test_both_policies_disabled_raise(self) -> None:
        repairer = JSONRepairer(empty_structure_fallback=False, degraded_extraction=False)

        with pytest.raises(JSONRepairError):
            repairer.repair(self.UNBALANCED)


class TestHelpers:
    """Test module-level helpers."""

    def test_is_valid_json_rejects_nan(self) -> None:
        assert is_valid_json('{"a": 1}')
        assert not is_valid_json('{"a": NaN}')
        assert not is_valid_json("{'a': 1}")

    def test_compact_json_keeps_string_whitespace(self) -> None:
        assert compact_json('{ "a" : "x  y" ,\n "b": [ 1 ] }') == '{"a":"x  y","b":[1]}'

    def test_repair_json_entry_point(self) -> None:
        assert json.loads(repair_json("{'a': 1,}")) == {"a": 1}
