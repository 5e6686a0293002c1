import pytest

from secretenv.core.errors import ParseError
from secretenv.core.parser import (
    contains_references,
    parse_references,
    substitute_references,
)
from secretenv.core.types import ReferenceSyntax


class TestDelimitedReferences:
    """Test {{...}} reference parsing."""

    def test_whole_value(self):
        """Test a delimited reference spanning the whole value."""
        refs = parse_references("{{op://vault/item/field}}")
        assert len(refs) == 1
        assert refs[0].text == "op://vault/item/field"
        assert refs[0].syntax == ReferenceSyntax.DELIMITED
        assert (refs[0].start, refs[0].end) == (0, 25)

    def test_embedded_in_url(self):
        """Test a delimited reference inside a URL."""
        value = "https://h/{{op://v/i/f}}/tail"
        refs = parse_references(value)
        assert [r.text for r in refs] == ["op://v/i/f"]
        assert value[refs[0].start : refs[0].end] == "{{op://v/i/f}}"

    def test_multiple_references_in_order(self):
        """Test that several references come back in order."""
        value = "{{op://a/b/c}}:{{vault://secret/db#password}}"
        refs = parse_references(value)
        assert [r.text for r in refs] == ["op://a/b/c", "vault://secret/db#password"]
        assert refs[0].end <= refs[1].start

    def test_text_taken_verbatim(self):
        """Test that text between the delimiters is kept verbatim."""
        refs = parse_references("{{ op://Private/My Item/API Key }}")
        assert refs[0].text == " op://Private/My Item/API Key "

    def test_no_bare_parsing_when_delimited(self):
        """Test that bare parsing is skipped once delimiters are present."""
        refs = parse_references("{{op://a/b/c}} op://x/y/z")
        assert [r.text for r in refs] == ["op://a/b/c"]

    def test_stray_closing_delimiter_is_literal(self):
        """Test that a lone closing delimiter is plain text."""
        assert parse_references("plain }} text") == []

    def test_unterminated(self):
        """Test that an unterminated delimiter is rejected."""
        with pytest.raises(ParseError, match="Unterminated") as exc_info:
            parse_references("prefix {{op://v/i/f")
        assert exc_info.value.position == 7

    def test_nested(self):
        """Test that nested delimiters are rejected."""
        with pytest.raises(ParseError, match="Nested"):
            parse_references("{{a{{b}}c}}")

    def test_empty(self):
        """Test that an empty reference is rejected."""
        with pytest.raises(ParseError, match="Empty"):
            parse_references("x{{}}y")

    def test_whitespace_only(self):
        """Test that a whitespace-only reference is rejected."""
        with pytest.raises(ParseError, match="Empty"):
            parse_references("{{   }}")


class TestBareReferences:
    """Test legacy bare reference parsing."""

    def test_whole_value(self):
        """Test a bare reference spanning the whole value."""
        refs = parse_references("op://vault/item/field")
        assert len(refs) == 1
        assert refs[0].syntax == ReferenceSyntax.BARE
        assert refs[0].text == "op://vault/item/field"

    def test_whole_value_with_spaces(self):
        """Test a bare reference with spaces in its names."""
        refs = parse_references("op://Private/My Item/API Key")
        assert [r.text for r in refs] == ["op://Private/My Item/API Key"]

    def test_trailing_text_after_complete_reference(self):
        """Test that a space ends a bare reference that is already complete."""
        value = "op://vault/test-item/api-key --verbose"
        refs = parse_references(value)
        assert [r.text for r in refs] == ["op://vault/test-item/api-key"]
        assert value[refs[0].end :] == " --verbose"

    def test_spaces_inside_item_name_keep_whole_value(self):
        """Test that an incomplete first token keeps the whole value."""
        refs = parse_references("op://Private/My Item/API Key")
        assert refs[0].end == len("op://Private/My Item/API Key")

    def test_four_segments_with_query(self):
        """Test a four segment reference with a query."""
        refs = parse_references("op://vault/item/section/field?attribute=otp")
        assert refs[0].text == "op://vault/item/section/field?attribute=otp"

    def test_surrounding_whitespace_is_not_part_of_reference(self):
        """Test that surrounding whitespace is excluded from the span."""
        value = "  op://v/i/f  "
        refs = parse_references(value)
        assert refs[0].text == "op://v/i/f"
        assert value[refs[0].start : refs[0].end] == "op://v/i/f"

    def test_whitespace_delimited_tokens(self):
        """Test several whitespace-delimited bare references."""
        refs = parse_references("Bearer op://v/i/token op://v/i/other")
        assert [r.text for r in refs] == ["op://v/i/token", "op://v/i/other"]

    def test_embedded_in_text_is_rejected(self):
        """Test that a bare reference inside a URL is rejected."""
        with pytest.raises(ParseError, match="embedded"):
            parse_references("https://h/op://v/i/f/tail")

    def test_assignment_is_rejected(self):
        """Test that a bare reference after '=' is rejected."""
        with pytest.raises(ParseError, match="embedded"):
            parse_references("token=op://v/i/f")

    def test_too_few_segments(self):
        """Test that two segments are not enough."""
        with pytest.raises(ParseError, match="Ambiguous"):
            parse_references("op://vault/item")

    def test_too_many_segments(self):
        """Test that five segments are too many."""
        with pytest.raises(ParseError, match="Ambiguous"):
            parse_references("op://a/b/c/d/e")

    def test_similar_scheme_is_not_a_reference(self):
        """Test that top:// does not match op://."""
        assert parse_references("top://a/b/c") == []

    def test_disabled(self):
        """Test that bare parsing can be switched off."""
        assert parse_references("op://v/i/f", allow_bare=False) == []

    def test_custom_schemes(self):
        """Test bare parsing with other schemes."""
        refs = parse_references("vault://secret/db/pw", bare_schemes=("vault://",))
        assert [r.text for r in refs] == ["vault://secret/db/pw"]
        assert parse_references("op://v/i/f", bare_schemes=("vault://",)) == []

    def test_plain_values(self):
        """Test values without references."""
        assert parse_references("") == []
        assert parse_references("just a value") == []
        assert parse_references("$OTHER/path") == []


class TestHelpers:
    """Test contains_references and substitute_references."""

    def test_contains_references(self):
        """Test the reference pre-check."""
        assert contains_references("{{anything}}")
        assert contains_references("op://v/i/f")
        assert not contains_references("op://v/i/f", allow_bare=False)
        assert not contains_references("plain")

    def test_substitute_right_to_left(self):
        """Test substitution of spans of different lengths."""
        value = "{{a}}-{{bb}}-{{a}}"
        refs = parse_references(value)
        result = substitute_references(value, refs, {"a": "1", "bb": "22222"})
        assert result == "1-22222-1"

    def test_substituted_value_is_not_reparsed(self):
        """Test that substituted values are inserted literally."""
        value = "{{a}}"
        refs = parse_references(value)
        assert substitute_references(value, refs, {"a": "{{b}}"}) == "{{b}}"
