"""Taxon record model consumed by the list pipeline.

A record is one assessed taxon (species, subspecies or subpopulation) as exported by
the record source. Records are immutable: the pipeline groups, names and formats them
but never changes them.
"""

from typing import NamedTuple

from taxonlists.species.names import build_from_parts, build_with_rank_label
from taxonlists.species.status import resolve


class SpeciesRecord(NamedTuple):
    """One assessed taxon with its full lineage and conservation status.

    Identification: taxon_id / assessment_id (used by the status template).
    Lineage: kingdom through species, with the intermediate ranks filled in when the
    source enriched the record from a fuller checklist (superfamily, suborder, ...).
    Status: the assessment category plus the possibly-extinct flags.
    """

    taxon_id: int
    assessment_id: int
    kingdom: str
    genus: str
    species: str  # Specific epithet, e.g. "tigris"
    status_category: str  # Assessment category, e.g. "CR", "LR/cd"
    phylum: str | None = None
    class_name: str | None = None
    order: str | None = None
    family: str | None = None
    infra_type: str | None = None  # Infra-rank label, e.g. "ssp."
    infra_name: str | None = None
    subpopulation: str | None = None
    scientific_name: str | None = None  # Name from the taxonomy table
    assessment_name: str | None = None  # Name as published in the assessment
    authority: str | None = None
    infra_authority: str | None = None
    possibly_extinct: bool = False
    possibly_extinct_in_wild: bool = False
    year_published: str | None = None
    # Intermediate ranks from an enriched checklist
    subkingdom: str | None = None
    subphylum: str | None = None
    superclass: str | None = None
    subclass: str | None = None
    infraclass: str | None = None
    superorder: str | None = None
    suborder: str | None = None
    infraorder: str | None = None
    parvorder: str | None = None
    superfamily: str | None = None
    subfamily: str | None = None
    tribe: str | None = None
    subtribe: str | None = None
    subgenus: str | None = None
    clade: str | None = None  # Unranked clade, e.g. "Iguania"

    @property
    def is_infraspecific(self) -> bool:
        """Whether this record is below species rank (has both infra-rank and infra-name)."""
        return bool(self.infra_type and self.infra_type.strip()) and bool(
            self.infra_name and self.infra_name.strip()
        )

    @property
    def parent_species_key(self) -> str:
        """Case-insensitive (genus, species) key shared by a species and its subspecies."""
        return f"{(self.genus or '').lower()}|{(self.species or '').lower()}"

    @property
    def status_code(self) -> str:
        """Section-level status code resolved from the category and flags, e.g. "CR(PE)"."""
        return resolve(
            self.status_category, self.possibly_extinct, self.possibly_extinct_in_wild
        ).code

    @property
    def display_scientific_name(self) -> str | None:
        """Best scientific name: taxonomy name, assessment name, then built from parts."""
        if self.scientific_name and self.scientific_name.strip():
            return self.scientific_name.strip()
        if self.assessment_name and self.assessment_name.strip():
            return self.assessment_name.strip()

        with_rank = build_with_rank_label(
            self.genus, self.species, self.infra_type, self.infra_name
        )
        if with_rank:
            return with_rank
        return build_from_parts(self.genus, self.species, self.infra_name)

    def __str__(self) -> str:
        """Return string representation for debugging."""
        return f"{self.display_scientific_name} ({self.status_category})"


# Rank name -> record attribute, used to compile grouping selectors once per plan
RANK_FIELDS: dict[str, str] = {
    "kingdom": "kingdom",
    "phylum": "phylum",
    "class": "class_name",
    "order": "order",
    "family": "family",
    "genus": "genus",
    "species": "species",
    "subkingdom": "subkingdom",
    "subphylum": "subphylum",
    "superclass": "superclass",
    "subclass": "subclass",
    "infraclass": "infraclass",
    "superorder": "superorder",
    "suborder": "suborder",
    "infraorder": "infraorder",
    "parvorder": "parvorder",
    "superfamily": "superfamily",
    "subfamily": "subfamily",
    "tribe": "tribe",
    "subtribe": "subtribe",
    "subgenus": "subgenus",
    "clade": "clade",
}
