"""Tests for conservation status descriptors and formatting rules."""

import pytest

from taxonlists.species.status import (
    FlagFilter,
    describe,
    get_descriptor,
    is_extinct,
    resolve,
    special_label,
    template_code,
)


class TestGetDescriptor:
    """Test descriptor lookup."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            pytest.param("CR", "CR", id="plain"),
            pytest.param("cr(pe)", "CR(PE)", id="qualified-lowercase"),
            pytest.param("CR(XYZ)", "CR", id="unknown-qualifier"),
            pytest.param(" lr/cd ", "LR/cd", id="legacy-code"),
        ],
    )
    def test_known_codes(self, code, expected):
        """Should resolve codes case-insensitively."""
        assert get_descriptor(code).code == expected

    @pytest.mark.parametrize("code", [None, "", "  ", "ZZ"])
    def test_unknown_codes(self, code):
        """Should return None for blank or unknown codes."""
        assert get_descriptor(code) is None

    def test_describe_unknown_code(self):
        """Should synthesize a pass-through descriptor for unknown codes."""
        descriptor = describe("ZZ(q)")
        assert descriptor.code == "ZZ"
        assert descriptor.label == "ZZ"


class TestResolve:
    """Test resolving a record's descriptor from category and flags."""

    @pytest.mark.parametrize(
        "category,possibly_extinct,in_wild,expected",
        [
            pytest.param("CR", False, False, "CR", id="cr"),
            pytest.param("CR", True, False, "CR(PE)", id="possibly-extinct"),
            pytest.param("CR", False, True, "CR(PEW)", id="possibly-extinct-in-wild"),
            pytest.param("Critically Endangered", False, False, "CR", id="full-name"),
            pytest.param("en", True, False, "EN", id="flags-ignored-outside-cr"),
            pytest.param("LR/nt", False, False, "LR/nt", id="legacy"),
        ],
    )
    def test_resolve(self, category, possibly_extinct, in_wild, expected):
        """Should pick the first descriptor whose category and flags match."""
        assert resolve(category, possibly_extinct, in_wild).code == expected

    def test_unknown_category_passes_through(self):
        """Should keep an unknown category as its own code."""
        assert resolve(" XX ", False, False).code == "XX"


class TestFlagFilter:
    """Test flag constraints."""

    @pytest.mark.parametrize(
        "flag_filter,value,expected",
        [
            (FlagFilter.ANY, True, True),
            (FlagFilter.ANY, False, True),
            (FlagFilter.TRUE, True, True),
            (FlagFilter.TRUE, False, False),
            (FlagFilter.FALSE, False, True),
            (FlagFilter.FALSE, True, False),
        ],
    )
    def test_matches(self, flag_filter, value, expected):
        """Should constrain flags as configured."""
        assert flag_filter.matches(value) is expected


class TestTemplateCode:
    """Test status template codes."""

    @pytest.mark.parametrize(
        "code,possibly_extinct,in_wild,expected",
        [
            pytest.param("CR", True, False, "CR(PE)", id="pe-flag"),
            pytest.param("CR", False, True, "CR(PEW)", id="pew-flag"),
            pytest.param("cr", False, False, "CR", id="plain"),
            pytest.param("PE", False, False, "CR(PE)", id="legacy-pe"),
            pytest.param("CD", False, False, "LR/cd", id="legacy-cd"),
            pytest.param("LR/NT", False, False, "LR/nt", id="legacy-nt"),
            pytest.param("nt", False, False, "NT", id="uppercased"),
        ],
    )
    def test_template_code(self, code, possibly_extinct, in_wild, expected):
        """Should map codes and flags to template codes."""
        assert template_code(code, possibly_extinct, in_wild) == expected


class TestSpecialLabel:
    """Test status qualifiers on list lines."""

    @pytest.mark.parametrize(
        "code,context,expected",
        [
            pytest.param("CR(PE)", "CR", "possibly\u00a0extinct", id="pe-in-cr"),
            pytest.param("CR(PE)", "CR,CR(PE)", None, id="pe-in-pe-section"),
            pytest.param("CR(PE)", None, "possibly\u00a0extinct", id="pe-no-context"),
            pytest.param("CR(PEW)", "CR", "possibly extinct in the wild", id="pew-in-cr"),
            pytest.param("CR(PEW)", "CR(PEW)", None, id="pew-in-pew-section"),
            pytest.param("EW", "EX", "extinct in the wild", id="ew-in-ex"),
            pytest.param("EW", "EX,EW", None, id="ew-in-ew-section"),
            pytest.param("EN", "CR", None, id="no-qualifier"),
        ],
    )
    def test_special_label(self, code, context, expected):
        """Should qualify PE, PEW and EW unless the section already implies it."""
        assert special_label(code, context) == expected

    def test_pe_not_suppressed_by_pew_section(self):
        """Should still qualify possibly-extinct records in a PEW-only section."""
        assert special_label("CR(PE)", "CR(PEW)") == "possibly\u00a0extinct"


@pytest.mark.parametrize(
    "code,expected",
    [("EX", True), ("ew", True), ("CR", False), ("CR(PE)", False)],
)
def test_is_extinct(code, expected):
    """Should treat EX and EW as extinct."""
    assert is_extinct(code) is expected
