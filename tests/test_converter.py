"""Tests for JSON to YAML conversion."""

from __future__ import annotations

import json

import pytest
import yaml

from json2yaml.converter import convert_json_to_yaml
from json2yaml.types import ConversionError, OutputConfig


class TestConvertJsonToYaml:
    def test_structure_is_preserved(self):
        source = '{"a": 1, "b": [true, null, "x"]}'
        result = convert_json_to_yaml(source)
        assert yaml.safe_load(result) == {"a": 1, "b": [True, None, "x"]}

    def test_block_style_output(self):
        result = convert_json_to_yaml('{"a": 1, "b": [true, null, "x"]}')
        assert result == "a: 1\nb:\n- true\n- null\n- x\n"

    def test_key_order_kept_by_default(self):
        result = convert_json_to_yaml('{"zeta": 1, "alpha": 2}')
        assert result.index("zeta") < result.index("alpha")

    def test_sort_keys_option(self):
        result = convert_json_to_yaml(
            '{"zeta": 1, "alpha": 2}', OutputConfig(sort_keys=True),
        )
        assert result.index("alpha") < result.index("zeta")

    def test_indent_option(self):
        result = convert_json_to_yaml('{"a": {"b": 1}}', OutputConfig(indent=4))
        assert result == "a:\n    b: 1\n"

    def test_unicode_kept_readable(self):
        result = convert_json_to_yaml('{"name": "Zo\\u00eb"}')
        assert "Zoë" in result

    def test_nested_documents(self):
        doc = {"servers": [{"host": "a", "ports": [80, 443]}, {"host": "b", "tls": False}]}
        result = convert_json_to_yaml(json.dumps(doc))
        assert yaml.safe_load(result) == doc

    def test_top_level_scalar(self):
        assert yaml.safe_load(convert_json_to_yaml("42")) == 42

    def test_strings_that_look_like_yaml_stay_strings(self):
        doc = {"a": "yes", "b": "1.0", "c": "null"}
        assert yaml.safe_load(convert_json_to_yaml(json.dumps(doc))) == doc


class TestConversionErrors:
    def test_truncated_json(self):
        with pytest.raises(ConversionError, match="failed to parse JSON"):
            convert_json_to_yaml('{"a":')

    def test_empty_input(self):
        with pytest.raises(ConversionError):
            convert_json_to_yaml("")

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            convert_json_to_yaml("not json")

    def test_deeply_nested_input(self):
        with pytest.raises(ConversionError, match="failed to parse JSON"):
            convert_json_to_yaml("[" * 100000)

    def test_nesting_too_deep_to_render(self):
        with pytest.raises(ConversionError, match="failed to render YAML"):
            convert_json_to_yaml("[" * 400 + "]" * 400)
