"""headers module tests: canonical_header_key, convert, parse_header_list."""
from fluxcors.headers import canonical_header_key, convert, parse_header_list


class TestCanonicalHeaderKey:
    def test_lower_case(self):
        assert canonical_header_key("x-requested-with") == "X-Requested-With"

    def test_upper_case(self):
        assert canonical_header_key("CONTENT-TYPE") == "Content-Type"

    def test_idempotent(self):
        """Canonicalizing a canonical name changes nothing"""
        once = canonical_header_key("numb3r3d-h34d3r")
        assert canonical_header_key(once) == once == "Numb3r3d-H34d3r"


class TestConvert:
    def test_lower(self):
        assert convert(["A", "b", "C"], str.lower) == ["a", "b", "c"]

    def test_empty(self):
        assert convert([], str.upper) == []


class TestParseHeaderList:
    def test_mixed_case(self):
        """Tokens are trimmed and canonicalized"""
        h = parse_header_list("header, second-header, THIRD-HEADER, Numb3r3d-H34d3r")
        assert h == ["Header", "Second-Header", "Third-Header", "Numb3r3d-H34d3r"]

    def test_empty(self):
        assert parse_header_list("") == []

    def test_only_separators(self):
        """", "" parses to nothing, not to a single empty name"""
        assert parse_header_list(", ") == []

    def test_whitespace_only(self):
        assert parse_header_list(" \t ") == []

    def test_deduplicates_case_insensitively(self):
        """First occurrence wins, order preserved"""
        assert parse_header_list("x-b, X-A, X-B, x-a") == ["X-B", "X-A"]

    def test_skips_empty_tokens(self):
        assert parse_header_list("a,,b, ,c") == ["A", "B", "C"]

    def test_tabs_trimmed(self):
        assert parse_header_list("\tx-one\t,x-two ") == ["X-One", "X-Two"]


class TestCanonicalHeaderKeyEdgeCases:
    """Only ASCII letters change case; invalid names are left alone"""

    def test_non_ascii_unchanged(self):
        assert canonical_header_key("ß-x") == "ß-x"

    def test_non_ascii_idempotent(self):
        once = canonical_header_key("ß-x")
        assert canonical_header_key(once) == once

    def test_invalid_characters_unchanged(self):
        assert canonical_header_key("x header") == "x header"
        assert canonical_header_key("x:header") == "x:header"

    def test_token_punctuation_allowed(self):
        assert canonical_header_key("x_custom.header") == "X_custom.header"
