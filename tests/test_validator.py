import pytest
from metasearch.services.validator import validate_image, validate_images, validate_result, validate_results


class TestValidateResult:
    """Test the result shape validator"""

    def test_valid_result(self):
        result = validate_result({"title": "Example", "url": "https://example.com", "snippet": "An example"})
        assert result.title == "Example"
        assert result.url == "https://example.com"
        assert result.snippet == "An example"

    def test_missing_title_is_dropped(self):
        assert validate_result({"url": "https://x.com"}) is None

    def test_missing_url_is_dropped(self):
        assert validate_result({"title": "No url"}) is None

    @pytest.mark.parametrize("raw", [
        {"title": 1, "url": "https://x.com"},
        {"title": "T", "url": ["https://x.com"]},
        {"title": None, "url": "https://x.com"},
        {"title": "", "url": "https://x.com"},
        {"title": "T", "url": ""},
    ])
    def test_wrong_types_are_not_coerced(self, raw):
        assert validate_result(raw) is None

    @pytest.mark.parametrize("raw", [None, "string", 42, ["title", "url"], True])
    def test_non_object_input(self, raw):
        assert validate_result(raw) is None

    def test_snippet_defaults_to_empty_string(self):
        result = validate_result({"title": "T", "url": "https://x.com"})
        assert result.snippet == ""

    def test_description_used_when_snippet_absent(self):
        result = validate_result({"title": "T", "url": "u", "description": "from description"})
        assert result.snippet == "from description"

    def test_snippet_preferred_over_description(self):
        result = validate_result({"title": "T", "url": "u", "snippet": "s", "description": "d"})
        assert result.snippet == "s"

    def test_non_string_snippet_falls_through_to_description(self):
        result = validate_result({"title": "T", "url": "u", "snippet": 7, "description": "d"})
        assert result.snippet == "d"

    def test_empty_snippet_is_kept(self):
        result = validate_result({"title": "T", "url": "u", "snippet": "", "description": "d"})
        assert result.snippet == ""


class TestValidateImage:
    """Test the image shape validator"""

    def test_camel_case_source(self):
        image = validate_image({"title": "T", "url": "https://i/1.png", "sourceUrl": "https://page"})
        assert image.source_url == "https://page"

    def test_snake_case_source(self):
        image = validate_image({"title": "T", "url": "https://i/1.png", "source_url": "https://page"})
        assert image.source_url == "https://page"

    def test_camel_case_wins(self):
        image = validate_image({"title": "T", "url": "u", "sourceUrl": "a", "source_url": "b"})
        assert image.source_url == "a"

    def test_missing_source_is_none_not_empty(self):
        image = validate_image({"title": "T", "url": "u"})
        assert image.source_url is None

    def test_missing_title_is_dropped(self):
        assert validate_image({"url": "https://i/1.png"}) is None

    def test_non_object_input(self):
        assert validate_image("https://i/1.png") is None


class TestValidateLists:
    """Test list-level validation helpers"""

    def test_non_list_is_empty(self):
        assert validate_results({"title": "T", "url": "u"}) == []
        assert validate_images(None) == []

    def test_invalid_entries_dropped_order_kept(self):
        raw = [
            {"title": "A", "url": "a"},
            {"url": "x"},
            "garbage",
            {"title": "B", "url": "b"},
        ]
        assert [r.title for r in validate_results(raw)] == ["A", "B"]
