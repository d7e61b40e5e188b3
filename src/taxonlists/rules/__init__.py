"""Taxon rules package.

This package contains the per-taxon rule tables consulted during list generation:
- TaxonRulesService: Structured rules (naming, exclusions, force-split, virtual groups)
- LegacyTaxaRuleList: Flat rules-list.txt entries (common names, plurals, wikilinks)
"""

from taxonlists.rules.legacy import LegacyTaxaRuleList, LegacyTaxonRules
from taxonlists.rules.taxon_rules import TaxonRulesService

__all__ = [
    "LegacyTaxaRuleList",
    "LegacyTaxonRules",
    "TaxonRulesService",
]
