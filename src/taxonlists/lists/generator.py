"""List generation: from records and a list definition to one wikitext document.

The generator validates the definition, drops excluded records, partitions the rest
into the definition's sections by status code and renders each section's tree
between the header and footer templates. It performs no file I/O beyond reading
templates; writing the document is the caller's job.
"""

import logging
import threading
from datetime import UTC, datetime
from typing import NamedTuple

from taxonlists.config.models import (
    DisplayPreferences,
    GeneratorConfig,
    ListConfigurationError,
    ListDefaults,
    ListDefinition,
    SectionDefinition,
    TaxonFilter,
)
from taxonlists.lists.assembler import DocumentAssembler, heading_line
from taxonlists.lists.formatter import LineFormatter, status_context
from taxonlists.lists.groups import GroupOverrideResolver
from taxonlists.lists.naming import HeadingNamer
from taxonlists.lists.templates import TemplateRenderer
from taxonlists.lists.tree import GroupingLevel, TreeNode, build, compile_grouping_plan
from taxonlists.rules.legacy import LegacyTaxaRuleList
from taxonlists.rules.taxon_rules import TaxonRulesService
from taxonlists.species.models import SpeciesRecord
from taxonlists.species.name_store import NameStore, RedirectLookup
from taxonlists.species.source import filter_records, sort_records
from taxonlists.species.status import get_descriptor

logger = logging.getLogger(__name__)

EMPTY_SECTION = "''No taxa currently listable.''"

RANK_ORDER = {
    "kingdom": 1,
    "phylum": 2,
    "class": 3,
    "order": 4,
    "family": 5,
    "genus": 6,
    "species": 7,
}

EXCLUSION_RANKS = ("kingdom", "phylum", "class_name", "order", "family", "genus")


class ListGenerationCancelled(RuntimeError):
    """Raised when a generation run is cancelled through its cancel event."""


class ListResult(NamedTuple):
    """A generated document and its summary."""

    document: str
    total_entries: int
    heading_count: int
    dataset_version: str


def _canonical(code: str) -> str:
    descriptor = get_descriptor(code)
    return (descriptor.code if descriptor else code).lower()


class _Section:
    def __init__(self, definition: SectionDefinition):
        self.definition = definition
        self.codes = [s.code.strip() for s in definition.statuses if s.code and s.code.strip()]
        # Qualified aliases such as "cr(pe)" match the canonical record code
        self.code_set = {_canonical(code) for code in self.codes}
        self.context = status_context(self.codes)
        self.records: list[SpeciesRecord] = []


def build_scope_label(filters: list[TaxonFilter]) -> str:
    """Filter values ordered by rank, e.g. "Mammalia › Carnivora", or "global"."""
    if not filters:
        return "global"

    ordered = sorted(filters, key=lambda f: RANK_ORDER.get(f.rank.strip().lower(), 99))
    values = []
    for taxon_filter in ordered:
        values.extend(v.strip() for v in (taxon_filter.values or [taxon_filter.value]) if v)
    return " › ".join(values)


def validate_sections(definition: ListDefinition) -> None:
    """Check every section status code before anything is rendered.

    Raises:
        ListConfigurationError: If a section references an unknown status code
    """
    for section in definition.sections:
        for status in section.statuses:
            if not status.code or not status.code.strip():
                continue
            if get_descriptor(status.code) is None:
                raise ListConfigurationError(
                    f"Unknown status code '{status.code}' referenced by list '{definition.id}'"
                )


class ListGenerator:
    """Generates wikitext list documents.

    One generator is built per run with the run's read-only rules and naming sources;
    each call to generate() gets its own HeadingNamer so per-list name overrides do
    not leak between lists.
    """

    def __init__(
        self,
        rules: TaxonRulesService | None = None,
        legacy: LegacyTaxaRuleList | None = None,
        name_store: NameStore | None = None,
        redirects: RedirectLookup | None = None,
        templates: TemplateRenderer | None = None,
        config: GeneratorConfig | None = None,
    ):
        self.rules = rules or TaxonRulesService()
        self.legacy = legacy
        self.name_store = name_store
        self.redirects = redirects
        self.templates = templates or TemplateRenderer()
        self.config = config or GeneratorConfig()
        self.groups = GroupOverrideResolver(self.rules)

    def generate(
        self,
        definition: ListDefinition,
        defaults: ListDefaults,
        records: list[SpeciesRecord],
        dataset_version: str,
        limit: int | None = None,
        cancel: threading.Event | None = None,
    ) -> ListResult:
        """Generate one list document.

        Args:
            definition: Expanded list definition
            defaults: Defaults of the lists file
            records: All loaded records; the definition's filters are applied here
            dataset_version: Version of the record export
            limit: Maximum number of records to consider, for previews
            cancel: Event checked periodically while records are partitioned

        Returns:
            ListResult with the document and its summary

        Raises:
            ListConfigurationError: If the definition is invalid
            ListGenerationCancelled: If the cancel event is set during the run
        """
        validate_sections(definition)
        grouping = definition.grouping or defaults.grouping or []
        levels = compile_grouping_plan(grouping)
        display = definition.display or defaults.display or DisplayPreferences()

        sections = [_Section(section) for section in definition.sections]
        wanted_codes = set().union(*(section.code_set for section in sections))

        selected = sort_records(filter_records(records, definition.filters))
        selected = [r for r in selected if r.status_code.lower() in wanted_codes]
        if limit is not None:
            selected = selected[:limit]

        kept = [r for r in selected if not self._is_excluded(r, definition.id)]
        if len(kept) != len(selected):
            logger.info(
                "Excluded %d records from %s by taxon rules",
                len(selected) - len(kept),
                definition.id,
            )

        self._partition(kept, sections, cancel)
        total_entries = sum(len(section.records) for section in sections)

        context = {
            "title": definition.title,
            "description": definition.description,
            "scope_label": build_scope_label(definition.filters),
            "dataset_version": dataset_version,
            "generated_at": datetime.now(UTC).strftime("%Y-%m-%d"),
            "total_entries": total_entries,
            "sections_summary": "; ".join(
                f"{section.definition.heading} ({len(section.records)})" for section in sections
            ),
        }

        namer = HeadingNamer(
            self.rules,
            self.legacy,
            self.name_store,
            self.redirects,
            list_id=definition.id,
            allow_ambiguous=self.config.allow_ambiguous_names,
        )
        assembler = DocumentAssembler(namer, LineFormatter(namer), self.config.max_heading_depth)

        header_name = definition.templates.header or defaults.header_template
        header = self.templates.render(header_name, context)
        parts = [header.rstrip() + "\n\n"]
        heading_count = 0

        for section in sections:
            if not section.records:
                continue

            if not section.definition.hide_heading:
                parts.append(heading_line(section.definition.heading, 2) + "\n")
                heading_count += 1

            description = section.definition.description
            if description and description.strip():
                parts.append(description + "\n\n")

            body, body_headings = self._section_body(
                section, definition, levels, display, assembler
            )
            heading_count += body_headings
            parts.append(body + "\n\n")

        footer_name = definition.templates.footer or defaults.footer_template
        footer = self.templates.render(footer_name, context)
        parts.append(footer.rstrip() + "\n")

        logger.info(
            "Generated %s: %d entries, %d headings", definition.id, total_entries, heading_count
        )
        return ListResult("".join(parts), total_entries, heading_count, dataset_version)

    def _is_excluded(self, record: SpeciesRecord, list_id: str) -> bool:
        scientific_name = record.display_scientific_name
        if scientific_name and self.rules.should_exclude(scientific_name, list_id):
            return True

        for field in EXCLUSION_RANKS:
            taxon = getattr(record, field)
            if not taxon or not taxon.strip():
                continue
            rule = self.rules.get_rule(taxon, list_id)
            if rule is not None and rule.exclude:
                return True
        return False

    def _partition(
        self,
        records: list[SpeciesRecord],
        sections: list[_Section],
        cancel: threading.Event | None,
    ) -> None:
        interval = max(self.config.cancel_check_interval, 1)
        for index, record in enumerate(records):
            if cancel is not None and index % interval == 0 and cancel.is_set():
                raise ListGenerationCancelled(f"Cancelled after {index} records")

            code = record.status_code.lower()
            for section in sections:
                if code in section.code_set:
                    section.records.append(record)

    def _section_body(
        self,
        section: _Section,
        definition: ListDefinition,
        levels: list[GroupingLevel],
        display: DisplayPreferences,
        assembler: DocumentAssembler,
    ) -> tuple[str, int]:
        records = section.records
        if not records:
            return EMPTY_SECTION, 0

        should_skip = self.rules.should_force_split
        if definition.custom_groups:
            tree = self.groups.build_custom_groups(
                records, definition.custom_groups, levels[1:], should_skip
            )
        elif not levels:
            tree = TreeNode()
            tree.add_items(records)
        else:
            tree = build(records, levels, should_skip)

        self.groups.apply_virtual_groups(tree)
        body, heading_count = assembler.assemble(
            tree, self.config.section_heading_depth, section.context, display
        )
        return body.rstrip(), heading_count
