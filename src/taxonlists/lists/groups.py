"""Membership-based groups that override rank-based grouping.

Virtual groups reorganise everything under a configured parent taxon (e.g. Squamata
into snakes, lizards and worm lizards) by superfamily, family or clade membership.
Custom groups split a whole section by family (e.g. marine mammals into cetaceans,
pinnipeds and sirenians) and take the place of the first grouping level.
"""

import logging
from collections.abc import Callable

from taxonlists.config.models import CustomGroup
from taxonlists.lists.tree import GroupingLevel, TreeNode, build
from taxonlists.rules.taxon_rules import TaxonRulesService
from taxonlists.species.models import SpeciesRecord

logger = logging.getLogger(__name__)

OTHER_GROUP = "Other"
UNKNOWN_FAMILY = "Unknown"


def _scientific_sort_key(record: SpeciesRecord) -> str:
    return (record.display_scientific_name or "").lower()


class GroupOverrideResolver:
    """Applies virtual and custom group definitions to record sets and built trees."""

    def __init__(self, rules: TaxonRulesService | None = None):
        self.rules = rules or TaxonRulesService()

    # Virtual groups

    def uses_virtual_groups(self, taxon: str | None) -> bool:
        """Whether a headed taxon should be split into its virtual groups."""
        return (
            bool(taxon)
            and self.rules.should_use_virtual_groups(taxon)
            and self.rules.has_virtual_groups(taxon)
        )

    def apply_virtual_groups(self, node: TreeNode) -> None:
        """Replace the subtree of every configured headed taxon with its virtual groups.

        The tree is walked top-down; once a node is regrouped its new group nodes are
        not searched again.
        """
        for child in node.children:
            regroup = child.group is None and not child.synthetic
            if regroup and self.uses_virtual_groups(child.value):
                self._regroup(child)
            else:
                self.apply_virtual_groups(child)

    def _regroup(self, node: TreeNode) -> None:
        parent_taxon = node.value or ""
        config = self.rules.get_virtual_groups(parent_taxon)
        groups = config.groups if config else []
        records = list(node.iter_records())

        assigned: list[list[SpeciesRecord]] = [[] for _ in groups]
        unmatched: list[SpeciesRecord] = []
        for record in records:
            group = self.rules.resolve_virtual_group(
                parent_taxon, record.family, record.superfamily, record.clade
            )
            if group is None:
                unmatched.append(record)
            else:
                index = next(i for i, candidate in enumerate(groups) if candidate is group)
                assigned[index].append(record)

        logger.debug(
            "Regrouped %d records under %s into %d virtual groups (%d unmatched)",
            len(records),
            parent_taxon,
            sum(1 for members in assigned if members),
            len(unmatched),
        )

        node.children = []
        node.items = []
        for group, members in zip(groups, assigned, strict=True):
            if not members:
                continue
            group_node = node.append_child(TreeNode("group", group.name, group=group))
            self._split_by_family(group_node, members)

        if unmatched:
            other = node.append_child(TreeNode("group", OTHER_GROUP, synthetic=True))
            other.add_items(unmatched)

    def _split_by_family(self, group_node: TreeNode, records: list[SpeciesRecord]) -> None:
        """Add per-family sub-headings when a group spans more than one family."""
        families: dict[str, list[SpeciesRecord]] = {}
        spelling: dict[str, str] = {}
        for record in records:
            family = (record.family or "").strip() or UNKNOWN_FAMILY
            key = family.lower()
            spelling.setdefault(key, family)
            families.setdefault(key, []).append(record)

        if len(families) <= 1:
            group_node.add_items(records)
            return

        for key in sorted(families):
            family_node = group_node.add_child(
                "family", spelling[key], synthetic=spelling[key] == UNKNOWN_FAMILY
            )
            family_node.add_items(families[key])

    # Custom groups

    def build_custom_groups(
        self,
        records: list[SpeciesRecord],
        custom_groups: list[CustomGroup],
        remaining_levels: list[GroupingLevel],
        should_skip: Callable[[str], bool] | None = None,
    ) -> TreeNode:
        """Build a tree whose first level is the configured custom groups.

        Args:
            records: Records of one section
            custom_groups: Groups in display order
            remaining_levels: Grouping plan without its first level
            should_skip: Force-split predicate passed to the tree builder

        Returns:
            Root node with one child per non-empty group, plus "Other" for records
            matching no group when there is no default group
        """
        root = TreeNode()
        assigned: list[list[SpeciesRecord]] = [[] for _ in custom_groups]
        default_index = next(
            (i for i, group in enumerate(custom_groups) if group.default), None
        )
        unmatched: list[SpeciesRecord] = []

        for record in records:
            index = self.match_custom_group(record, custom_groups)
            if index is None:
                index = default_index
            if index is None:
                unmatched.append(record)
            else:
                assigned[index].append(record)

        for group, members in zip(custom_groups, assigned, strict=True):
            if members:
                group_node = root.append_child(TreeNode("group", group.name, group=group))
                self._fill_custom_group(group_node, members, remaining_levels, should_skip)

        if unmatched:
            logger.info("%d records matched no custom group", len(unmatched))
            other = root.append_child(TreeNode("group", OTHER_GROUP, synthetic=True))
            other.add_items(sorted(unmatched, key=_scientific_sort_key))

        return root

    @staticmethod
    def match_custom_group(record: SpeciesRecord, custom_groups: list[CustomGroup]) -> int | None:
        """Index of the first non-default group listing the record's family."""
        family = (record.family or "").strip().lower()
        if not family:
            return None

        for index, group in enumerate(custom_groups):
            if group.default:
                continue
            if any(member.strip().lower() == family for member in group.families):
                return index
        return None

    def _fill_custom_group(
        self,
        group_node: TreeNode,
        records: list[SpeciesRecord],
        remaining_levels: list[GroupingLevel],
        should_skip: Callable[[str], bool] | None,
    ) -> None:
        if remaining_levels:
            build(records, remaining_levels, should_skip, root=group_node)
        else:
            group_node.add_items(sorted(records, key=_scientific_sort_key))
