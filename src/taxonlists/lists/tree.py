"""Taxonomy tree construction.

Records are partitioned level by level according to a grouping plan. Each level can
merge small groups into an "Other" bucket, elide itself when it would produce a single
heading, and skip named taxa (force-split) so their members are grouped by the next
level instead.
"""

import logging
from collections.abc import Callable, Iterator
from operator import attrgetter
from typing import NamedTuple

from taxonlists.config.models import (
    CustomGroup,
    GroupingLevelConfig,
    ListConfigurationError,
    VirtualGroup,
)
from taxonlists.species.models import RANK_FIELDS, SpeciesRecord

logger = logging.getLogger(__name__)

Selector = Callable[[SpeciesRecord], str | None]

# Rank name -> record accessor, compiled once
RANK_SELECTORS: dict[str, Selector] = {
    rank: attrgetter(field) for rank, field in RANK_FIELDS.items()
}


class GroupingLevel(NamedTuple):
    """One compiled level of a grouping plan."""

    rank: str
    label: str
    selector: Selector
    always_display: bool = False
    unknown_label: str | None = None
    min_items: int = 1
    other_label: str | None = None

    @property
    def unknown_value(self) -> str:
        """Bucket value for records with no value at this rank."""
        if self.unknown_label is not None:
            return self.unknown_label
        return f"Unknown {self.label}"

    @property
    def other_value(self) -> str:
        """Bucket value small groups are merged into."""
        return self.other_label or f"Other {self.label.lower()}"


def compile_grouping_plan(levels: list[GroupingLevelConfig]) -> list[GroupingLevel]:
    """Compile configured levels into selectors.

    Raises:
        ListConfigurationError: If a level names an unknown rank
    """
    compiled = []
    for level in levels:
        selector = RANK_SELECTORS.get(level.level)
        if selector is None:
            supported = ", ".join(sorted(RANK_SELECTORS))
            raise ListConfigurationError(
                f"Unknown grouping rank '{level.level}'. Supported: {supported}"
            )
        compiled.append(
            GroupingLevel(
                rank=level.level,
                label=level.label or level.level,
                selector=selector,
                always_display=level.always_display,
                unknown_label=level.unknown_label,
                min_items=level.min_items,
                other_label=level.other_label,
            )
        )
    return compiled


class TreeNode:
    """A heading in the built tree. The root has no label or value."""

    def __init__(
        self,
        label: str | None = None,
        value: str | None = None,
        synthetic: bool = False,
        group: VirtualGroup | CustomGroup | None = None,
    ):
        self.label = label
        self.value = value
        self.synthetic = synthetic  # Other/Unknown buckets render verbatim
        self.group = group  # Set for virtual and custom group headings
        self.children: list[TreeNode] = []
        self.items: list[SpeciesRecord] = []

    def __repr__(self) -> str:
        return (
            f"TreeNode({self.label!r}, {self.value!r}, "
            f"children={len(self.children)}, items={len(self.items)})"
        )

    def add_child(self, label: str, value: str, synthetic: bool = False) -> "TreeNode":
        """Get or create the child with this value, keeping children ordered by value."""
        key = value.lower()
        for child in self.children:
            if (child.value or "").lower() == key:
                return child

        node = TreeNode(label, value, synthetic=synthetic)
        self.children.append(node)
        self.children.sort(key=lambda c: (c.value or "").lower())
        return node

    def append_child(self, node: "TreeNode") -> "TreeNode":
        """Append a child as-is, for groups rendered in configured order."""
        self.children.append(node)
        return node

    def add_items(self, items: list[SpeciesRecord]) -> None:
        self.items.extend(items)

    def iter_records(self) -> Iterator[SpeciesRecord]:
        """Yield this node's items, then every descendant's."""
        yield from self.items
        for child in self.children:
            yield from child.iter_records()

    @property
    def item_count(self) -> int:
        return len(self.items) + sum(child.item_count for child in self.children)

    @property
    def kingdom(self) -> str | None:
        """Kingdom of the first record under this node, used to disambiguate names."""
        return next((record.kingdom for record in self.iter_records() if record.kingdom), None)


class _Bucket:
    def __init__(self, value: str, synthetic: bool):
        self.value = value
        self.synthetic = synthetic
        self.items: list[SpeciesRecord] = []


def build(
    records: list[SpeciesRecord],
    levels: list[GroupingLevel],
    should_skip: Callable[[str], bool] | None = None,
    root: TreeNode | None = None,
) -> TreeNode:
    """Partition records into a tree following the grouping plan.

    Args:
        records: Records in the order their leaves should keep
        levels: Compiled grouping plan
        should_skip: Predicate naming taxa that get no heading of their own
        root: Node to build under, a new root by default

    Returns:
        The root node. Every record ends up in exactly one leaf list.
    """
    root = root if root is not None else TreeNode()
    _build_level(root, list(records), levels, 0, should_skip)
    return root


def _build_level(
    parent: TreeNode,
    items: list[SpeciesRecord],
    levels: list[GroupingLevel],
    index: int,
    should_skip: Callable[[str], bool] | None,
) -> None:
    if not items:
        return

    if index >= len(levels):
        parent.add_items(items)
        return

    level = levels[index]
    buckets = _bucket_records(items, level)
    if level.min_items > 1:
        position = {id(record): i for i, record in enumerate(items)}
        buckets = _merge_small_buckets(buckets, level, position)

    skipped: list[SpeciesRecord] = []
    if should_skip is not None:
        kept = []
        for bucket in buckets:
            if not bucket.synthetic and should_skip(bucket.value):
                logger.debug("Force-splitting %s %s", level.rank, bucket.value)
                skipped.extend(bucket.items)
            else:
                kept.append(bucket)
        buckets = kept

    if not buckets:
        _build_level(parent, skipped, levels, index + 1, should_skip)
        return

    if len(buckets) == 1 and not level.always_display:
        # Elide the level, keeping the input order of the surviving items
        remaining = _in_order(items, buckets[0].items, skipped) if skipped else buckets[0].items
        _build_level(parent, remaining, levels, index + 1, should_skip)
        return

    for bucket in buckets:
        child = parent.add_child(level.label, bucket.value, synthetic=bucket.synthetic)
        _build_level(child, bucket.items, levels, index + 1, should_skip)

    if skipped:
        _build_level(parent, skipped, levels, index + 1, should_skip)


def _in_order(items: list[SpeciesRecord], *groups: list[SpeciesRecord]) -> list[SpeciesRecord]:
    wanted = {id(record) for group in groups for record in group}
    return [record for record in items if id(record) in wanted]


def _bucket_records(items: list[SpeciesRecord], level: GroupingLevel) -> list[_Bucket]:
    """Group records by the level's value, ignoring case and surrounding whitespace."""
    buckets: dict[str, _Bucket] = {}

    for record in items:
        raw = level.selector(record)
        value = raw.strip() if raw and raw.strip() else None
        synthetic = value is None
        if value is None:
            value = level.unknown_value.strip()
            if not value:
                logger.warning(
                    "Blank unknown label for %s, using 'Unknown %s' for %s",
                    level.rank,
                    level.label,
                    record.display_scientific_name,
                )
                value = f"Unknown {level.label}"

        key = value.lower()
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = _Bucket(value, synthetic)
        bucket.items.append(record)

    return sorted(buckets.values(), key=lambda b: b.value.lower())


def _merge_small_buckets(
    buckets: list[_Bucket], level: GroupingLevel, position: dict[int, int]
) -> list[_Bucket]:
    """Merge buckets smaller than the level's threshold into one Other bucket."""
    small = [bucket for bucket in buckets if len(bucket.items) < level.min_items]
    if not small or sum(len(bucket.items) for bucket in small) == 0:
        return buckets

    other_value = level.other_value
    kept = [bucket for bucket in buckets if bucket not in small]
    other = next((b for b in kept if b.value.lower() == other_value.lower()), None)
    if other is None:
        other = _Bucket(other_value, synthetic=True)
        kept.append(other)

    for bucket in small:
        other.items.extend(bucket.items)
    other.items.sort(key=lambda record: position[id(record)])

    return sorted(kept, key=lambda b: b.value.lower())
