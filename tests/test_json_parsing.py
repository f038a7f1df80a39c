"""Tests for JSON extraction from free-form provider output."""

import pytest

from config.exceptions import MalformedResponseError


class TestExtractJson:
    def test_direct_json(self):
        from tools.json_parsing import extract_json
        assert extract_json('{"key": "value", "num": 42}') == {"key": "value", "num": 42}

    def test_code_fence_and_prose_parse_like_bare_json(self):
        from tools.json_parsing import extract_json
        bare = '{"title": "Book", "chapters": [{"title": "One", "description": "d"}]}'
        wrapped = f"Sure! Here is the outline you asked for:\n\n```json\n{bare}\n```\n\nLet me know if you need changes."
        assert extract_json(wrapped) == extract_json(bare)

    def test_code_fence_without_lang(self):
        from tools.json_parsing import extract_json
        assert extract_json('```\n{"key": "value"}\n```') == {"key": "value"}

    def test_json_array(self):
        from tools.json_parsing import extract_json
        assert extract_json('Sections: [{"title": "a"}, {"title": "b"}]') == [{"title": "a"}, {"title": "b"}]

    def test_braces_inside_strings_are_ignored(self):
        from tools.json_parsing import extract_json
        text = 'Result: {"title": "The } and { chars", "n": 1} trailing }'
        assert extract_json(text) == {"title": "The } and { chars", "n": 1}

    def test_escaped_quotes_inside_strings(self):
        from tools.json_parsing import extract_json
        assert extract_json(r'{"quote": "she said \"hi\""}') == {"quote": 'she said "hi"'}

    def test_raw_newlines_inside_strings(self):
        from tools.json_parsing import extract_json
        text = '{"content": "line one\nline two"}'
        assert extract_json(text) == {"content": "line one\nline two"}

    def test_skips_unparseable_span(self):
        from tools.json_parsing import extract_json
        text = 'Note {not json} then {"ok": true}'
        assert extract_json(text) == {"ok": True}

    def test_first_literal_wins(self):
        from tools.json_parsing import extract_json
        assert extract_json('{"a": 1} and {"b": 2}') == {"a": 1}

    def test_no_json_raises(self):
        from tools.json_parsing import extract_json
        with pytest.raises(MalformedResponseError, match="No valid JSON"):
            extract_json("I could not produce an outline, sorry.")

    def test_unbalanced_raises(self):
        from tools.json_parsing import extract_json
        with pytest.raises(MalformedResponseError):
            extract_json('{"title": "cut off')

    def test_empty_raises(self):
        from tools.json_parsing import extract_json
        with pytest.raises(MalformedResponseError, match="Empty"):
            extract_json("   ")

    def test_provider_recorded(self):
        from tools.json_parsing import extract_json
        with pytest.raises(MalformedResponseError) as exc_info:
            extract_json("nothing", provider="gemini")
        assert exc_info.value.provider == "gemini"
        assert exc_info.value.raw_response == "nothing"


class TestRequireFields:
    def test_present(self):
        from tools.json_parsing import require_fields
        data = {"title": "x", "chapters": [1]}
        assert require_fields(data, ("title", "chapters")) is data

    def test_missing(self):
        from tools.json_parsing import require_fields
        with pytest.raises(MalformedResponseError, match="chapters"):
            require_fields({"title": "x"}, ("title", "chapters"))

    def test_empty_values_count_as_missing(self):
        from tools.json_parsing import require_fields
        with pytest.raises(MalformedResponseError, match="title"):
            require_fields({"title": ""}, ("title",))
        with pytest.raises(MalformedResponseError, match="sections"):
            require_fields({"sections": []}, ("sections",))

    def test_non_object(self):
        from tools.json_parsing import require_fields
        with pytest.raises(MalformedResponseError, match="Expected a JSON object"):
            require_fields(["a"], ("title",))
