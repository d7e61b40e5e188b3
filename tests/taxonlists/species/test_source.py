"""Tests for loading and filtering record exports."""

import json

import pytest

from taxonlists.config.models import ListConfigurationError, TaxonFilter
from taxonlists.species.source import filter_records, load_records, sort_records

EXPORT_YAML = """\
dataset_version: 2025
records:
  - taxon_id: 15955
    assessment_id: 214509401
    kingdom: ANIMALIA
    class: MAMMALIA
    order: CARNIVORA
    family: FELIDAE
    genus: Panthera
    species: tigris
    category: EN
    year_published: 2022
    possibly_extinct: ""
  - taxon_id: 12519
    assessment_id: 50655794
    kingdom: ANIMALIA
    class_name: MAMMALIA
    order: CARNIVORA
    family: FELIDAE
    genus: Lynx
    species: pardinus
    status_category: EN
"""


class TestLoadRecords:
    """Test reading export files."""

    def test_load_yaml(self, tmp_path):
        """Should accept field aliases and coerce numeric values."""
        path = tmp_path / "export.yml"
        path.write_text(EXPORT_YAML)

        records, version = load_records(path)

        assert version == "2025"
        assert len(records) == 2
        tiger = records[0]
        assert tiger.class_name == "MAMMALIA"
        assert tiger.status_category == "EN"
        assert tiger.year_published == "2022"
        assert tiger.possibly_extinct is False
        assert records[1].genus == "Lynx"

    def test_load_json(self, tmp_path):
        """Should read JSON exports by file suffix."""
        path = tmp_path / "export.json"
        path.write_text(
            json.dumps(
                {
                    "dataset_version": "2025-1",
                    "records": [
                        {
                            "taxon_id": 1,
                            "assessment_id": 2,
                            "kingdom": "PLANTAE",
                            "genus": "Wollemia",
                            "species": "nobilis",
                            "category": "CR",
                        }
                    ],
                }
            )
        )

        result = load_records(path)

        assert result.dataset_version == "2025-1"
        assert result.records[0].display_scientific_name == "Wollemia nobilis"

    def test_empty_export(self, tmp_path):
        """Should treat an empty file as no records of an unknown version."""
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_records(path) == ([], "unknown")

    def test_missing_file(self, tmp_path):
        """Should raise FileNotFoundError for a missing export."""
        with pytest.raises(FileNotFoundError):
            load_records(tmp_path / "missing.yml")

    def test_unparseable_export(self, tmp_path):
        """Should raise ValueError for malformed YAML."""
        path = tmp_path / "broken.yml"
        path.write_text("records: [unclosed\n")
        with pytest.raises(ValueError, match="Unable to parse"):
            load_records(path)

    def test_invalid_record(self, tmp_path):
        """Should raise ValueError when a record misses required fields."""
        path = tmp_path / "invalid.yml"
        path.write_text("records:\n  - genus: Panthera\n")
        with pytest.raises(ValueError, match="Invalid record export"):
            load_records(path)


class TestFilterRecords:
    """Test scope filters."""

    @pytest.fixture
    def records(self, make_record):
        """Felids, a canid and a primate."""
        return [
            make_record("Panthera", "tigris"),
            make_record("Canis", "lupus", family="CANIDAE"),
            make_record("Gorilla", "gorilla", order="PRIMATES", family="HOMINIDAE"),
        ]

    def test_no_filters_keeps_everything(self, records):
        """Should return every record without filters."""
        assert filter_records(records, []) == records

    def test_single_filter_ignores_case(self, records):
        """Should match filter values case-insensitively."""
        result = filter_records(records, [TaxonFilter(rank="Family", value="felidae")])
        assert [record.genus for record in result] == ["Panthera"]

    def test_values_are_or_filters_are_and(self, records):
        """Should OR values within a filter and AND the filters."""
        filters = [
            TaxonFilter(rank="family", values=["Felidae", "Hominidae"]),
            TaxonFilter(rank="order", value="Carnivora"),
        ]
        assert [record.genus for record in filter_records(records, filters)] == ["Panthera"]

    def test_blank_filter_ignored(self, records, caplog):
        """Should skip a filter without any value."""
        assert filter_records(records, [TaxonFilter(rank="family", value=" ")]) == records
        assert "no value" in caplog.text

    def test_unknown_rank(self, records):
        """Should reject filters on ranks records do not carry."""
        with pytest.raises(ListConfigurationError, match="Unknown filter rank 'cohort'"):
            filter_records(records, [TaxonFilter(rank="cohort", value="x")])


def test_sort_records(make_record):
    """Should order by order, family, genus and species ignoring case."""
    records = [
        make_record("Panthera", "tigris"),
        make_record("canis", "lupus", family="CANIDAE"),
        make_record("Panthera", "leo"),
        make_record("Gorilla", "gorilla", order="PRIMATES", family="HOMINIDAE"),
    ]
    names = [record.display_scientific_name for record in sort_records(records)]
    assert names == ["canis lupus", "Panthera leo", "Panthera tigris", "Gorilla gorilla"]
