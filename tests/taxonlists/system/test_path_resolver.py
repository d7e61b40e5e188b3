"""Tests for PathResolver."""

from pathlib import Path

import pytest

from taxonlists.system.path_resolver import PathResolver


class TestPathResolver:
    """Test PathResolver functionality."""

    def test_directories_from_environment(self, path_resolver, tmp_path):
        """Should take the app and data directories from the environment."""
        assert path_resolver.app_dir == tmp_path / "app"
        assert path_resolver.data_dir == tmp_path / "data"

    @pytest.mark.parametrize(
        "method_name,relative_path",
        [
            pytest.param("get_rules_dir", "rules", id="rules"),
            pytest.param("get_lists_config_path", "rules/wikipedia-lists.yml", id="lists"),
            pytest.param("get_taxon_rules_path", "rules/taxon-rules.yml", id="taxon-rules"),
            pytest.param("get_legacy_rules_path", "rules/rules-list.txt", id="legacy-rules"),
            pytest.param("get_templates_dir", "rules/templates", id="templates"),
        ],
    )
    def test_app_paths(self, path_resolver, method_name, relative_path):
        """Should place rules and templates under the app directory."""
        path = getattr(path_resolver, method_name)()
        assert path == path_resolver.app_dir / relative_path

    def test_output_dir(self, path_resolver):
        """Should write generated lists under the data directory."""
        assert path_resolver.get_output_dir() == path_resolver.data_dir / "output" / "wikipedia"

    def test_default_generator_config_path(self, path_resolver):
        """Should default the settings file to the data config directory."""
        expected = path_resolver.data_dir / "config" / "taxonlists.yaml"
        assert path_resolver.get_generator_config_path() == expected

    def test_generator_config_path_override(self, path_resolver, monkeypatch, tmp_path):
        """Should prefer TAXONLISTS_CONFIG when set."""
        monkeypatch.setenv("TAXONLISTS_CONFIG", str(tmp_path / "custom.yaml"))
        assert path_resolver.get_generator_config_path() == tmp_path / "custom.yaml"

    def test_defaults_without_environment(self, monkeypatch, tmp_path):
        """Should default to the working directory and its data subdirectory."""
        monkeypatch.delenv("TAXONLISTS_APP", raising=False)
        monkeypatch.delenv("TAXONLISTS_DATA", raising=False)
        monkeypatch.chdir(tmp_path)

        resolver = PathResolver()

        assert resolver.app_dir == Path.cwd()
        assert resolver.data_dir == Path.cwd() / "data"
