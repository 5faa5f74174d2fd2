"""Tests for taskrecover.core.cleanup — structural rewrites."""

from __future__ import annotations

import json

import pytest

from taskrecover.core.cleanup import (
    collapse_concatenation,
    quote_bare_keys,
    quote_bare_values,
    remove_trailing_commas,
    structural_cleanup,
)


class TestConcatenation:
    def test_line_boundary_artifact(self):
        raw = '{"R1": "part one",\n\' + \'R2": "two"}'
        assert collapse_concatenation(raw) == '{"R1": "part one", "R2": "two"}'

    def test_joined_string_halves(self):
        raw = '{"R1": "Go to " + "dock A", "R2": "x"}'
        assert collapse_concatenation(raw) == '{"R1": "Go to dock A", "R2": "x"}'

    def test_plain_json_untouched(self):
        raw = '{"R1": "a", "R2": "b"}'
        assert collapse_concatenation(raw) == raw

    def test_operator_inside_value_untouched(self):
        raw = '{"R1": "Stack crate A + \'B\'", "R2": "x"}'
        assert collapse_concatenation(raw) == raw


class TestTrailingCommas:
    def test_object(self):
        assert remove_trailing_commas('{"R1": "a", "R2": "b",}') == '{"R1": "a", "R2": "b"}'

    def test_array_and_whitespace(self):
        assert remove_trailing_commas('{"R1": [1, 2, ],}') == '{"R1": [1, 2]}'

    def test_inside_string_untouched(self):
        raw = '{"R1": "a,}"}'
        assert remove_trailing_commas(raw) == raw


class TestBareKeys:
    def test_quotes_identifiers(self):
        assert quote_bare_keys('{R1: "a", R2: "b"}') == '{"R1": "a", "R2": "b"}'

    def test_prose_in_value_untouched(self):
        raw = '{"R1": "Note, go north, then: turn"}'
        assert quote_bare_keys(raw) == raw


class TestBareValues:
    def test_quotes_text_keeps_literals(self):
        raw = '{"R1": go to dock, "R2": 5, "R3": true, "R4": null}'
        assert quote_bare_values(raw) == '{"R1": "go to dock", "R2": 5, "R3": true, "R4": null}'

    def test_last_value(self):
        assert quote_bare_values('{"R1": wait here}') == '{"R1": "wait here"}'


class TestStructuralCleanup:
    def test_combined_damage_parses(self):
        raw = "{R1: \"Navigate to dock\", R2: hold position,}"
        assert json.loads(structural_cleanup(raw)) == {"R1": "Navigate to dock", "R2": "hold position"}

    def test_valid_json_unchanged(self, clean_response):
        assert structural_cleanup(clean_response) == clean_response

    @pytest.mark.parametrize(
        "raw",
        [
            '{R1: "a", R2: b,}',
            '{"R1": "Go to " + "dock A",\n\' + \'R2": "two",}',
            '{"R1": "say "hi", then go", R2: x}',
            '{"R1": [[0,0],[0,1],],}',
        ],
    )
    def test_idempotent(self, raw):
        once = structural_cleanup(raw)
        assert structural_cleanup(once) == once
