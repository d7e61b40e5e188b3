from pathlib import Path

import pytest

from taxonlists.config.models import TaxonRulesConfig
from taxonlists.rules.taxon_rules import TaxonRulesService
from taxonlists.species.models import SpeciesRecord
from taxonlists.system.path_resolver import PathResolver

_ids = iter(range(1000, 1_000_000))


def _record(
    genus: str = "Panthera",
    species: str = "leo",
    status: str = "VU",
    **fields,
) -> SpeciesRecord:
    taxon_id = next(_ids)
    defaults = {
        "taxon_id": taxon_id,
        "assessment_id": taxon_id * 10,
        "kingdom": "ANIMALIA",
        "phylum": "CHORDATA",
        "class_name": "MAMMALIA",
        "order": "CARNIVORA",
        "family": "FELIDAE",
    }
    defaults.update(fields)
    return SpeciesRecord(genus=genus, species=species, status_category=status, **defaults)


@pytest.fixture
def make_record():
    """Build a SpeciesRecord with mammal lineage defaults.

    Usage: make_record("Panthera", "tigris", "EN", family="FELIDAE", year_published="2022")
    """
    return _record


@pytest.fixture
def make_rules():
    """Build a TaxonRulesService from a plain dict in taxon-rules.yml shape."""

    def factory(raw: dict | None = None) -> TaxonRulesService:
        return TaxonRulesService(TaxonRulesConfig.model_validate(raw or {}))

    return factory


@pytest.fixture
def path_resolver(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> PathResolver:
    """PathResolver rooted in a temporary directory.

    Environment variables are cleared so tests never read a developer's real rules or data.
    """
    monkeypatch.delenv("TAXONLISTS_CONFIG", raising=False)
    monkeypatch.setenv("TAXONLISTS_APP", str(tmp_path / "app"))
    monkeypatch.setenv("TAXONLISTS_DATA", str(tmp_path / "data"))
    return PathResolver()
