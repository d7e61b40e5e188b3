"""Species line formatting.

A line reads:

    * [[Lion]] (''Panthera leo'') {{IUCN status|VU|15951/259030422|1|year=2023}}

with an optional status qualifier and subpopulation between the name and the marker.
"""

from taxonlists.config.models import DisplayPreferences
from taxonlists.lists.naming import HeadingNamer
from taxonlists.species.models import SpeciesRecord
from taxonlists.species.status import is_extinct, special_label, template_code


def status_context(codes: list[str]) -> str:
    """Comma-joined section codes, used to suppress redundant status qualifiers."""
    return ",".join(code.strip().upper() for code in codes if code and code.strip())


def status_marker(record: SpeciesRecord) -> str:
    """Build the {{IUCN status}} template for a record."""
    code = template_code(
        record.status_code, record.possibly_extinct, record.possibly_extinct_in_wild
    )
    marker = f"{{{{IUCN status|{code}|{record.taxon_id}/{record.assessment_id}|1"
    year = (record.year_published or "").strip()
    if year and not is_extinct(record.status_code):
        marker += f"|year={year}"
    return marker + "}}"


class LineFormatter:
    """Renders leaf records as wikitext bullet lines."""

    def __init__(self, namer: HeadingNamer):
        self.namer = namer

    def format_line(
        self,
        record: SpeciesRecord,
        display: DisplayPreferences,
        context: str | None = None,
    ) -> str:
        """Format one record as a `* ` line.

        Args:
            record: Leaf record
            display: Display preferences of the list
            context: Status context of the enclosing section

        Returns:
            The line without a trailing newline
        """
        parts = ["* ", self.name_fragment(record, display)]

        if display.include_status_label:
            qualifier = special_label(record.status_code, context)
            if qualifier:
                parts.append(f" ({qualifier})")

        if record.subpopulation and record.subpopulation.strip():
            parts.append(f" (subpopulation: {record.subpopulation.strip()})")

        if display.include_status_template:
            parts.append(" " + status_marker(record))

        return "".join(parts)

    def name_fragment(self, record: SpeciesRecord, display: DisplayPreferences) -> str:
        """Linked common name with the scientific name, or the scientific name alone."""
        raw_scientific = record.display_scientific_name
        scientific = raw_scientific
        if display.italicize_scientific and raw_scientific:
            scientific = f"''{raw_scientific}''"

        common = self.namer.common_name_for(record) if display.prefer_common_names else None
        if common is None or not common.text:
            return scientific or record.genus

        if common.link:
            if common.link == common.text:
                link = f"[[{common.text}]]"
            else:
                link = f"[[{common.link}|{common.text}]]"
            return f"{link} ({scientific})" if scientific else link

        if raw_scientific:
            return f"[[{raw_scientific}|{common.text}]] ({scientific})"
        return f"[[{common.text}]]"

    def format_items(
        self,
        records: list[SpeciesRecord],
        display: DisplayPreferences,
        context: str | None = None,
    ) -> list[str]:
        """Format a node's leaves, nesting subspecies when the list asks for it."""
        if not display.group_subspecies:
            return [self.format_line(record, display, context) for record in records]

        species: list[SpeciesRecord] = []
        infraspecific: dict[str, list[SpeciesRecord]] = {}
        for record in records:
            if record.is_infraspecific:
                infraspecific.setdefault(record.parent_species_key, []).append(record)
            else:
                species.append(record)

        lines = []
        placed: set[str] = set()
        for record in species:
            lines.append(self.format_line(record, display, context))
            key = record.parent_species_key
            if key in infraspecific and key not in placed:
                lines.extend(self._children(infraspecific[key], display, context))
                placed.add(key)

        for key, children in infraspecific.items():
            if key in placed:
                continue
            first = children[0]
            lines.append(f"* ''{first.genus} {first.species}''")
            lines.extend(self._children(children, display, context))

        return lines

    def _children(
        self,
        records: list[SpeciesRecord],
        display: DisplayPreferences,
        context: str | None,
    ) -> list[str]:
        ordered = sorted(records, key=lambda r: (r.infra_name or "").lower())
        return ["*" + self.format_line(record, display, context) for record in ordered]
