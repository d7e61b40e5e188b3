import os
from pathlib import Path


class PathResolver:
    """Central authority for all file path resolution in taxonlists.

    Uses environment variables for configuration with sensible defaults. The app
    directory holds versioned rules and templates; the data directory holds the
    record exports, naming caches and generated output.
    """

    def __init__(self) -> None:
        """Initialize PathResolver with environment-based configuration."""
        self.app_dir = Path(os.getenv("TAXONLISTS_APP", Path.cwd()))
        self.data_dir = Path(os.getenv("TAXONLISTS_DATA", self.app_dir / "data"))

    def get_generator_config_path(self) -> Path:
        """Get the path to the generator settings file.

        Checks TAXONLISTS_CONFIG environment variable first, then falls back to default.
        """
        config_path = os.getenv("TAXONLISTS_CONFIG")
        if config_path:
            return Path(config_path)

        return self.data_dir / "config" / "taxonlists.yaml"

    def get_rules_dir(self) -> Path:
        """Get the directory holding list definitions and taxon rules."""
        return self.app_dir / "rules"

    def get_lists_config_path(self) -> Path:
        """Get the path to the lists definition file."""
        return self.get_rules_dir() / "wikipedia-lists.yml"

    def get_taxon_rules_path(self) -> Path:
        """Get the path to the structured taxon rules."""
        return self.get_rules_dir() / "taxon-rules.yml"

    def get_legacy_rules_path(self) -> Path:
        """Get the path to the legacy flat rules file."""
        return self.get_rules_dir() / "rules-list.txt"

    def get_templates_dir(self) -> Path:
        """Get the directory holding header/footer templates."""
        return self.get_rules_dir() / "templates"

    def get_output_dir(self) -> Path:
        """Get the directory generated list documents are written to."""
        return self.data_dir / "output" / "wikipedia"
