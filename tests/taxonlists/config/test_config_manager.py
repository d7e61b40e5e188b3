"""Tests for ConfigManager loading and list expansion."""

from textwrap import dedent

import pytest

from taxonlists.config import ConfigManager, GeneratorConfig, ListConfigurationError
from taxonlists.config.manager import expand_template, to_slug


@pytest.fixture
def rules_dir(path_resolver):
    """Rules directory under the temporary app dir."""
    directory = path_resolver.get_rules_dir()
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def manager(path_resolver):
    """ConfigManager reading from the temporary directories."""
    return ConfigManager(path_resolver)


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dedent(text))
    return path


class TestLoadGeneratorConfig:
    """Test generator settings."""

    def test_defaults_without_file(self, manager):
        """Should return defaults when no settings file exists."""
        assert manager.load() == GeneratorConfig()

    def test_load_from_file(self, manager):
        """Should read settings from the data config directory."""
        _write(
            manager.config_path,
            """
            allow_ambiguous_names: true
            section_heading_depth: 4
            logging:
              level: DEBUG
            """,
        )

        config = manager.load()

        assert config.allow_ambiguous_names is True
        assert config.section_heading_depth == 4
        assert config.logging.level == "DEBUG"

    def test_config_path_from_environment(self, monkeypatch, tmp_path, path_resolver):
        """Should honour TAXONLISTS_CONFIG."""
        custom = tmp_path / "custom.yaml"
        monkeypatch.setenv("TAXONLISTS_CONFIG", str(custom))
        assert ConfigManager(path_resolver).config_path == custom

    def test_invalid_heading_depth(self, manager):
        """Should reject heading depths wikitext cannot express."""
        _write(manager.config_path, "max_heading_depth: 9\n")
        with pytest.raises(ListConfigurationError, match="validation failed"):
            manager.load()

    def test_unparseable_yaml(self, manager):
        """Should wrap YAML errors."""
        _write(manager.config_path, "logging: [unclosed\n")
        with pytest.raises(ListConfigurationError, match="Unable to parse"):
            manager.load()

    def test_non_mapping_document(self, manager):
        """Should reject a document that is not a mapping."""
        _write(manager.config_path, "- one\n- two\n")
        with pytest.raises(ListConfigurationError, match="Expected a mapping"):
            manager.load()


class TestLoadLists:
    """Test list definitions."""

    def test_missing_lists_file(self, manager):
        """Should fail when the lists file does not exist."""
        with pytest.raises(ListConfigurationError, match="not found"):
            manager.load_lists()

    def test_explicit_list(self, manager, rules_dir):
        """Should load a fully written list and default its output file."""
        _write(
            rules_dir / "wikipedia-lists.yml",
            """
            defaults:
              header_template: header
              grouping:
                - level: family
            lists:
              - id: felids-threatened
                title: List of threatened felids
                filters:
                  - rank: family
                    value: Felidae
                sections:
                  - key: en
                    heading: Endangered
                    statuses:
                      - code: EN
            """,
        )

        config = manager.load_lists()

        assert config.defaults.header_template == "header"
        assert config.defaults.grouping[0].level == "family"
        definition = config.lists[0]
        assert definition.id == "felids-threatened"
        assert definition.output_file == "felids-threatened.wikitext"
        assert definition.sections[0].statuses[0].code == "EN"
        assert definition.grouping is None

    def test_taxa_group_with_preset(self, manager, rules_dir):
        """Should expand a taxa group and preset into a full definition."""
        _write(
            rules_dir / "taxa-groups.yml",
            """
            groups:
              ray_finned:
                name: Ray-finned fishes
                filters:
                  - rank: class
                    value: Actinopterygii
            """,
        )
        _write(
            rules_dir / "list-presets.yml",
            """
            presets:
              cr:
                title_template: List of critically endangered {taxa_name_lower}
                output_template: cr_{taxa_slug}.wikitext
                templates:
                  header: cr-header
                sections:
                  - key: cr
                    heading: Critically endangered
                    statuses:
                      - code: CR
            """,
        )
        _write(
            rules_dir / "wikipedia-lists.yml",
            """
            lists:
              - id: fish-cr
                taxa_group: ray_finned
                preset: cr
            """,
        )

        definition = manager.load_lists().lists[0]

        assert definition.title == "List of critically endangered ray-finned fishes"
        assert definition.output_file == "cr_ray_finned_fishes.wikitext"
        assert definition.templates.header == "cr-header"
        assert definition.filters[0].value == "Actinopterygii"
        assert definition.sections[0].key == "cr"

    def test_one_list_per_preset(self, manager, rules_dir):
        """Should generate one definition per entry of presets."""
        _write(
            rules_dir / "taxa-groups.yml",
            """
            groups:
              mammals:
                name: Mammals
                filters:
                  - rank: class
                    value: Mammalia
            """,
        )
        _write(
            rules_dir / "list-presets.yml",
            """
            presets:
              cr:
                title_template: List of critically endangered {taxa_name_lower}
              en:
                title_template: List of endangered {taxa_name_lower}
            """,
        )
        _write(
            rules_dir / "wikipedia-lists.yml",
            """
            lists:
              - taxa_group: mammals
                presets: [cr, en]
            """,
        )

        lists = manager.load_lists().lists

        assert [definition.id for definition in lists] == ["mammals-cr", "mammals-en"]
        assert lists[1].title == "List of endangered mammals"
        assert lists[1].output_file == "mammals-en.wikitext"

    def test_unknown_taxa_group(self, manager, rules_dir):
        """Should reject references to undefined taxa groups."""
        _write(rules_dir / "list-presets.yml", "presets:\n  cr: {}\n")
        _write(
            rules_dir / "wikipedia-lists.yml",
            """
            lists:
              - id: broken
                taxa_group: dragons
                preset: cr
            """,
        )
        with pytest.raises(ListConfigurationError, match="Unknown taxa_group 'dragons'"):
            manager.load_lists()

    def test_unknown_preset(self, manager, rules_dir):
        """Should reject references to undefined presets."""
        _write(rules_dir / "taxa-groups.yml", "groups:\n  mammals:\n    name: Mammals\n")
        _write(
            rules_dir / "wikipedia-lists.yml",
            """
            lists:
              - id: broken
                taxa_group: mammals
                preset: nope
            """,
        )
        with pytest.raises(ListConfigurationError, match="Unknown preset 'nope'"):
            manager.load_lists()


class TestLoadTaxonRules:
    """Test structured taxon rules."""

    def test_missing_file_means_no_rules(self, manager):
        """Should return empty rules when the file is absent."""
        rules = manager.load_taxon_rules()
        assert rules.taxa == {}
        assert rules.virtual_groups == {}

    def test_load_rules(self, manager, rules_dir):
        """Should parse taxa, exclusions and virtual groups."""
        _write(
            rules_dir / "taxon-rules.yml",
            """
            global_exclusions:
              - "^Homo "
            taxa:
              Felidae:
                common_plural: cats
                main_article: Felidae
              Squamata:
                use_virtual_groups: true
            virtual_groups:
              Squamata:
                groups:
                  - name: Serpentes
                    families: [Boidae]
                  - name: Lacertilia
                    default: true
            """,
        )

        rules = manager.load_taxon_rules()

        assert rules.taxa["Felidae"].common_plural == "cats"
        assert rules.global_exclusions == ["^Homo "]
        assert rules.virtual_groups["Squamata"].groups[1].default is True

    def test_invalid_exclusion_pattern(self, manager, rules_dir):
        """Should reject exclusion patterns that do not compile."""
        _write(rules_dir / "taxon-rules.yml", "global_exclusions:\n  - '(unclosed'\n")
        with pytest.raises(ListConfigurationError, match="Invalid exclusion pattern"):
            manager.load_taxon_rules()


class TestHelpers:
    """Test template expansion helpers."""

    def test_expand_template(self):
        """Should replace known placeholders and leave others alone."""
        result = expand_template("{taxa_name} and {other}", {"taxa_name": "Cats"})
        assert result == "Cats and {other}"

    def test_expand_empty_template(self):
        """Should return None for a missing template."""
        assert expand_template(None, {"taxa_name": "Cats"}) is None

    @pytest.mark.parametrize(
        "name,expected",
        [
            pytest.param("Ray-finned fishes", "ray_finned_fishes", id="hyphen"),
            pytest.param("  Mammals ", "mammals", id="whitespace"),
            pytest.param("Birds & bats", "birds_bats", id="symbols"),
        ],
    )
    def test_to_slug(self, name, expected):
        """Should produce lowercase underscore slugs."""
        assert to_slug(name) == expected
