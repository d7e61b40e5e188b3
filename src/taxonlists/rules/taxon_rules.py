"""Lookup service over the structured taxon rules (taxon-rules.yml).

One instance is built per generation run from a validated TaxonRulesConfig and passed
to the components that need it. All lookups ignore case.
"""

import logging
import re

from taxonlists.config.models import TaxonRule, TaxonRulesConfig, VirtualGroup, VirtualGroupConfig

logger = logging.getLogger(__name__)


class TaxonRulesService:
    """Answers exclusion, naming, force-split and virtual group questions for taxa."""

    def __init__(self, config: TaxonRulesConfig | None = None):
        config = config or TaxonRulesConfig()
        self._rules: dict[str, TaxonRule] = {
            name.lower(): rule for name, rule in config.taxa.items()
        }
        self._virtual_groups: dict[str, VirtualGroupConfig] = {
            name.lower(): groups for name, groups in config.virtual_groups.items()
        }
        self._exclusions = [
            re.compile(pattern, re.IGNORECASE) for pattern in config.global_exclusions
        ]

    def _lookup(self, taxon_name: str | None) -> TaxonRule | None:
        if not taxon_name or not taxon_name.strip():
            return None
        return self._rules.get(taxon_name.strip().lower())

    def should_exclude(self, taxon_name: str | None, list_id: str | None = None) -> bool:
        """Check global exclusion patterns, then the taxon's own exclude rule.

        A list override, when present, decides on its own.
        """
        if not taxon_name or not taxon_name.strip():
            return False

        if any(pattern.search(taxon_name) for pattern in self._exclusions):
            return True

        rule = self._lookup(taxon_name)
        if rule is None:
            return False

        if list_id and rule.list_overrides and list_id in rule.list_overrides:
            return rule.list_overrides[list_id].exclude

        return rule.exclude

    def get_rule(self, taxon_name: str | None, list_id: str | None = None) -> TaxonRule | None:
        """Get a taxon's rule with any list-specific override merged in."""
        rule = self._lookup(taxon_name)
        if rule is None:
            return None

        override = (rule.list_overrides or {}).get(list_id or "")
        if override is None:
            return rule

        return rule.model_copy(
            update={
                "common_name": override.common_name or rule.common_name,
                "wikilink": override.wikilink or rule.wikilink,
                "exclude": override.exclude,
                "list_overrides": None,
            }
        )

    def should_force_split(self, taxon_name: str | None) -> bool:
        """Whether the taxon should never get its own heading."""
        rule = self._lookup(taxon_name)
        return rule is not None and rule.force_split

    def get_main_article(self, taxon_name: str | None) -> str | None:
        """Get the taxon's main article override."""
        rule = self._lookup(taxon_name)
        return rule.main_article if rule else None

    def get_wikilink(self, taxon_name: str | None, list_id: str | None = None) -> str | None:
        """Get the taxon's wikilink override for a list."""
        rule = self.get_rule(taxon_name, list_id)
        return rule.wikilink if rule else None

    def should_use_virtual_groups(self, taxon_name: str | None) -> bool:
        """Whether the taxon's rule enables virtual groups."""
        rule = self._lookup(taxon_name)
        return rule is not None and rule.use_virtual_groups

    def has_virtual_groups(self, parent_taxon: str | None) -> bool:
        """Whether virtual groups are configured for the taxon."""
        return bool(parent_taxon) and parent_taxon.strip().lower() in self._virtual_groups

    def has_any_virtual_groups(self) -> bool:
        """Whether any taxon has virtual groups configured."""
        return bool(self._virtual_groups)

    def get_virtual_groups(self, parent_taxon: str | None) -> VirtualGroupConfig | None:
        """Get the ordered virtual groups configured for the taxon."""
        if not parent_taxon:
            return None
        return self._virtual_groups.get(parent_taxon.strip().lower())

    def resolve_virtual_group(
        self,
        parent_taxon: str,
        family: str | None,
        superfamily: str | None = None,
        clade: str | None = None,
    ) -> VirtualGroup | None:
        """Find the virtual group a record belongs to under a parent taxon.

        Groups are checked in configured order; within a group superfamily, family and
        clade membership are tried in turn and the first matching group wins. Records
        matching nothing fall to the default group.

        Returns:
            The matching group, the default group, or None
        """
        config = self.get_virtual_groups(parent_taxon)
        if config is None or not config.groups:
            return None

        criteria = [
            (_normalized(superfamily), lambda group: group.superfamilies),
            (_normalized(family), lambda group: group.families),
            (_normalized(clade), lambda group: group.clades),
        ]

        for group in config.groups:
            if group.default:
                continue
            for wanted, members in criteria:
                if wanted and any(m.strip().lower() == wanted for m in members(group)):
                    return group

        return next((group for group in config.groups if group.default), None)


def _normalized(value: str | None) -> str | None:
    if not value or not value.strip():
        return None
    return value.strip().lower()
