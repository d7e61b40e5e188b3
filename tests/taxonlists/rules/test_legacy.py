"""Tests for the legacy flat rules file."""

import pytest

from taxonlists.config.models import ListConfigurationError
from taxonlists.rules.legacy import LegacyTaxaRuleList, LegacyTaxonRules, strip_comment

RULES_TEXT = """\
// Felids
Felidae = cat   // common name
Felidae plural cats
Felidae adj feline
Puma wikilink Puma (genus)

Ursidae rank family
"""


class TestLegacyTaxaRuleList:
    """Test parsing and lookup."""

    def test_fields_accumulate_per_taxon(self):
        """Should merge every directive for a taxon into one entry."""
        rules = LegacyTaxaRuleList(RULES_TEXT.splitlines())
        assert rules.get("Felidae") == LegacyTaxonRules(
            common_name="cat", common_plural="cats", adjective="feline"
        )

    def test_lookup_ignores_case(self):
        """Should find taxa regardless of case and padding."""
        rules = LegacyTaxaRuleList(RULES_TEXT.splitlines())
        assert rules.get("  FELIDAE ").common_plural == "cats"
        assert rules.get("puma").wikilink == "Puma (genus)"

    def test_unknown_directives_ignored(self):
        """Should skip lines with unsupported directives."""
        rules = LegacyTaxaRuleList(RULES_TEXT.splitlines())
        assert rules.get("Ursidae") is None
        assert len(rules) == 2

    @pytest.mark.parametrize("taxon", [None, "", "   "])
    def test_blank_lookup(self, taxon):
        """Should return None for blank taxa."""
        assert LegacyTaxaRuleList(RULES_TEXT.splitlines()).get(taxon) is None

    @pytest.mark.parametrize(
        "line",
        [
            pytest.param("= cat", id="missing-taxon"),
            pytest.param("Felidae plural", id="missing-value"),
        ],
    )
    def test_malformed_line(self, line):
        """Should reject a directive with a blank side."""
        with pytest.raises(ListConfigurationError, match="Malformed rules line 1"):
            LegacyTaxaRuleList([line])

    def test_load_from_file(self, tmp_path):
        """Should parse a rules file from disk."""
        path = tmp_path / "rules-list.txt"
        path.write_text(RULES_TEXT)
        assert len(LegacyTaxaRuleList.load(path)) == 2

    def test_load_missing_file(self, tmp_path):
        """Should raise FileNotFoundError for a missing file."""
        with pytest.raises(FileNotFoundError):
            LegacyTaxaRuleList.load(tmp_path / "missing.txt")


@pytest.mark.parametrize(
    "line,expected",
    [
        ("Felidae = cat // note", "Felidae = cat"),
        ("// only a comment", ""),
        ("  Felidae plural cats  ", "Felidae plural cats"),
    ],
)
def test_strip_comment(line, expected):
    """Should drop trailing comments and whitespace."""
    assert strip_comment(line) == expected
