"""Tests for taskrecover.core.envelope — fence stripping and object extraction."""

from __future__ import annotations

from taskrecover.core.envelope import extract_envelope, find_envelope, strip_fences


class TestStripFences:
    def test_json_fence(self):
        assert strip_fences('```json\n{"R1": "a"}\n```') == '{"R1": "a"}'

    def test_bare_fence(self):
        assert strip_fences('```\n{"R1": "a"}\n```') == '{"R1": "a"}'

    def test_no_fence_untouched(self):
        assert strip_fences('  {"R1": "a"}  ') == '{"R1": "a"}'

    def test_inner_backticks_kept(self):
        raw = '{"R1": "run ```make``` first"}'
        assert strip_fences(raw) == raw


class TestFindEnvelope:
    def test_surrounding_prose(self):
        raw = 'Sure! Here are the tasks:\n{"R1": "a"}\nLet me know.'
        assert find_envelope(raw) == '{"R1": "a"}'

    def test_nested_objects(self):
        raw = 'x {"R1": {"step": 1}, "R2": "b"} y {"other": 2}'
        assert find_envelope(raw) == '{"R1": {"step": 1}, "R2": "b"}'

    def test_unbalanced(self):
        assert find_envelope('{"R1": "cut off') is None

    def test_no_brace(self):
        assert find_envelope("no object here") is None


class TestExtractEnvelope:
    def test_found(self):
        envelope, found = extract_envelope('```json\nHere: {"R1": "a"}\n```')
        assert found
        assert envelope == '{"R1": "a"}'

    def test_not_found_returns_stripped_text(self):
        envelope, found = extract_envelope('```\n{"R1": "a", "R2": "trunc\n```')
        assert not found
        assert envelope == '{"R1": "a", "R2": "trunc'
