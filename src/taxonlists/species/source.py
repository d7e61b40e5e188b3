"""Record source: reads exported taxon records and applies list scope filters.

The export is a YAML or JSON document:

    dataset_version: "2025-1"
    records:
      - taxon_id: 15955
        assessment_id: 214509401
        kingdom: ANIMALIA
        class: MAMMALIA
        order: CARNIVORA
        family: FELIDAE
        genus: Panthera
        species: tigris
        status_category: EN
        year_published: "2022"
"""

import json
import logging
from pathlib import Path
from typing import Any, NamedTuple

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from taxonlists.config.models import ListConfigurationError, TaxonFilter
from taxonlists.species.models import RANK_FIELDS, SpeciesRecord

logger = logging.getLogger(__name__)


class RecordEntry(BaseModel):
    """One record as written in the export file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    taxon_id: int
    assessment_id: int
    kingdom: str
    genus: str
    species: str
    status_category: str = Field(validation_alias=AliasChoices("status_category", "category"))
    phylum: str | None = None
    class_name: str | None = Field(
        default=None, validation_alias=AliasChoices("class_name", "class")
    )
    order: str | None = None
    family: str | None = None
    infra_type: str | None = None
    infra_name: str | None = None
    subpopulation: str | None = None
    scientific_name: str | None = None
    assessment_name: str | None = None
    authority: str | None = None
    infra_authority: str | None = None
    possibly_extinct: bool = False
    possibly_extinct_in_wild: bool = False
    year_published: str | None = None
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
    clade: str | None = None

    @field_validator("year_published", mode="before")
    @classmethod
    def coerce_year(cls, v: Any) -> Any:  # noqa: ANN401
        """YAML reads bare years as integers."""
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("possibly_extinct", "possibly_extinct_in_wild", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> Any:  # noqa: ANN401
        """Missing flags in the export are empty strings or nulls."""
        if v is None or v == "":
            return False
        return v

    def to_record(self) -> SpeciesRecord:
        """Convert to the immutable pipeline record."""
        return SpeciesRecord(**self.model_dump())


class RecordFile(BaseModel):
    """Top-level structure of an export file."""

    dataset_version: str = "unknown"
    records: list[RecordEntry] = Field(default_factory=list)

    @field_validator("dataset_version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> Any:  # noqa: ANN401
        """Accept numeric dataset versions."""
        if isinstance(v, int | float):
            return str(v)
        return v


class RecordSet(NamedTuple):
    """Records loaded from one export, with the dataset version they came from."""

    records: list[SpeciesRecord]
    dataset_version: str


def load_records(path: Path) -> RecordSet:
    """Load and validate an export file.

    Args:
        path: YAML (.yml/.yaml) or JSON (.json) export

    Returns:
        RecordSet with the records in file order

    Raises:
        FileNotFoundError: If the export does not exist
        ValueError: If the export cannot be parsed or fails validation
    """
    if not path.exists():
        raise FileNotFoundError(f"Record export not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        raw = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Unable to parse record export {path}: {e}") from e

    try:
        parsed = RecordFile.model_validate(raw or {})
    except ValidationError as e:
        raise ValueError(f"Invalid record export {path}: {e}") from e

    records = [entry.to_record() for entry in parsed.records]
    logger.info(
        "Loaded %d records from %s (dataset %s)", len(records), path, parsed.dataset_version
    )
    return RecordSet(records, parsed.dataset_version)


def filter_records(records: list[SpeciesRecord], filters: list[TaxonFilter]) -> list[SpeciesRecord]:
    """Restrict records to a list's taxonomic scope.

    Every filter must match (AND); a filter with several values matches any of them
    (OR). Comparison is case-insensitive, so "Mammalia" matches "MAMMALIA".

    Raises:
        ListConfigurationError: If a filter names a rank records do not carry
    """
    compiled: list[tuple[str, set[str]]] = []
    for taxon_filter in filters:
        rank = taxon_filter.rank.strip().lower()
        field = RANK_FIELDS.get(rank)
        if field is None:
            raise ListConfigurationError(f"Unknown filter rank '{taxon_filter.rank}'")

        values = taxon_filter.values or [taxon_filter.value]
        wanted = {value.strip().lower() for value in values if value and value.strip()}
        if not wanted:
            logger.warning("Ignoring %s filter with no value", rank)
            continue
        compiled.append((field, wanted))

    if not compiled:
        return list(records)

    return [
        record
        for record in records
        if all(
            (getattr(record, field) or "").strip().lower() in wanted for field, wanted in compiled
        )
    ]


def sort_records(records: list[SpeciesRecord]) -> list[SpeciesRecord]:
    """Order records by order, family, genus and species, ignoring case."""
    return sorted(
        records,
        key=lambda r: (
            (r.order or "").lower(),
            (r.family or "").lower(),
            (r.genus or "").lower(),
            (r.species or "").lower(),
        ),
    )
