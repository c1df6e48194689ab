import pytest

from deck_extractor import extract_records, parse_strict
from models import DEFAULT_NARRATIVE


# ---------------------------------------------------------------------------
# Strict parser
# ---------------------------------------------------------------------------

class TestParseStrict:

    def test_accepts_deck_object(self):
        result = parse_strict('{"thoughtProcess": "x", "slides": []}')
        assert result.ok
        assert result.value == {"thoughtProcess": "x", "slides": []}

    def test_rejects_invalid_json(self):
        result = parse_strict('{"slides": [}')
        assert not result.ok
        assert result.stage == "strict-parse"
        assert result.reason.startswith("JSON parsing error")

    @pytest.mark.parametrize("text", ['[1, 2]', '"slides"', '{"slides": "none"}', '{"title": "A"}'])
    def test_rejects_wrong_shape(self, text):
        assert not parse_strict(text).ok


# ---------------------------------------------------------------------------
# Regex extractor
# ---------------------------------------------------------------------------

RAW = (
    'Sure! Here it is:\n'
    '{"thoughtProcess": "Plan \\"A\\"", "slides": [\n'
    '  {"title": "One", "content": ["a", " b ", ""], "imagePrompt": "pic"},\n'
    '  {"title": "Two", "content": []},\n'
    '  {"title": "Three", "content": ["c", "d'
)


class TestExtractRecords:

    def test_rebuilds_records(self):
        result = extract_records(RAW)
        assert result.ok
        assert result.stage == "regex-extract"
        slides = result.value["slides"]
        assert [s["title"] for s in slides] == ["One", "Three"]
        assert slides[0] == {"title": "One", "content": ["a", "b"], "imagePrompt": "pic"}

    def test_unterminated_content_array(self):
        slides = extract_records(RAW).value["slides"]
        assert slides[1]["content"] == ["c"]
        assert "imagePrompt" not in slides[1]

    def test_brackets_inside_items_do_not_end_the_array(self):
        raw = '"title": "A", "content": ["see [1] here", "second"]'
        slides = extract_records(raw).value["slides"]
        assert slides == [{"title": "A", "content": ["see [1] here", "second"]}]

    def test_narrative_is_unescaped(self):
        assert extract_records(RAW).value["narrative"] == 'Plan "A"'

    def test_loose_narrative_form(self):
        raw = 'thoughtProcess: "Loose" {title stuff "title": "A", "content": ["b"]'
        assert extract_records(raw).value["narrative"] == "Loose"

    def test_default_narrative(self):
        result = extract_records('"title": "A", "content": ["b"]')
        assert result.value["narrative"] == DEFAULT_NARRATIVE

    def test_content_does_not_leak_across_records(self):
        raw = '"title": "A", "imagePrompt": "x" "title": "B", "content": ["b"]'
        slides = extract_records(raw).value["slides"]
        assert slides == [{"title": "B", "content": ["b"]}]

    def test_empty_title_is_kept_for_the_validator(self):
        slides = extract_records('"title": "", "content": ["b"]').value["slides"]
        assert slides == [{"title": "", "content": ["b"]}]

    @pytest.mark.parametrize("raw", ["", "just prose", '"title": "A", "content": ["", "  "]'])
    def test_nothing_recoverable(self, raw):
        result = extract_records(raw)
        assert not result.ok
        assert result.reason == "Could not extract slides from response"
