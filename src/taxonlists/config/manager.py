"""Configuration loading for generator settings, list definitions and taxon rules."""

import logging
import re
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from taxonlists.config.models import (
    GeneratorConfig,
    ListConfigurationError,
    ListDefaults,
    ListDefinition,
    ListPresetDefinition,
    ListsConfig,
    RawListDefinition,
    RawListsConfig,
    TaxaGroupDefinition,
    TaxonRulesConfig,
    TemplateSettings,
)
from taxonlists.system.path_resolver import PathResolver

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

TAXA_GROUPS_FILE = "taxa-groups.yml"
LIST_PRESETS_FILE = "list-presets.yml"


class ConfigManager:
    """Loads and validates every configuration file a generation run needs."""

    def __init__(self, path_resolver: PathResolver | None = None):
        """Initialize ConfigManager.

        Args:
            path_resolver: Optional PathResolver instance. If None, creates a new one.
        """
        self.path_resolver = path_resolver or PathResolver()
        self.config_path = self.path_resolver.get_generator_config_path()

    def load(self) -> GeneratorConfig:
        """Load generator settings, falling back to defaults when no file exists.

        Returns:
            GeneratorConfig: Loaded and validated settings
        """
        if not self.config_path.exists():
            logger.info("No generator config at %s, using defaults", self.config_path)
            return GeneratorConfig()

        raw_config = self._read_yaml(self.config_path)
        return self._validate(GeneratorConfig, raw_config, self.config_path)

    def load_lists(self, lists_path: Path | None = None) -> ListsConfig:
        """Load the lists file and expand taxa-group/preset shorthand.

        Supporting files (taxa-groups.yml, list-presets.yml) are read from the
        same directory when present.

        Args:
            lists_path: Lists file, defaults to the resolver's location

        Returns:
            ListsConfig: Fully expanded list definitions

        Raises:
            ListConfigurationError: If the file is missing or invalid
        """
        path = lists_path or self.path_resolver.get_lists_config_path()
        if not path.exists():
            raise ListConfigurationError(f"Wikipedia list config not found: {path}")

        raw = self._validate(RawListsConfig, self._read_yaml(path), path)
        taxa_groups = self._load_keyed(
            path.parent / TAXA_GROUPS_FILE, "groups", TaxaGroupDefinition
        )
        presets = self._load_keyed(path.parent / LIST_PRESETS_FILE, "presets", ListPresetDefinition)

        return ListsConfig(
            defaults=raw.defaults or ListDefaults(),
            lists=self._expand_lists(raw.lists, taxa_groups, presets),
        )

    def load_taxon_rules(self, rules_path: Path | None = None) -> TaxonRulesConfig:
        """Load structured taxon rules. A missing file means no rules.

        Args:
            rules_path: Rules file, defaults to the resolver's location

        Returns:
            TaxonRulesConfig: Validated rules
        """
        path = rules_path or self.path_resolver.get_taxon_rules_path()
        if not path.exists():
            logger.info("No taxon rules at %s", path)
            return TaxonRulesConfig()

        return self._validate(TaxonRulesConfig, self._read_yaml(path), path)

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        """Read a YAML file into a dictionary."""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ListConfigurationError(f"Unable to parse {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ListConfigurationError(f"Expected a mapping at the top of {path}")
        return data

    def _validate(self, model: type[M], raw_config: dict[str, Any], path: Path) -> M:
        """Validate raw YAML against a model, converting errors to ListConfigurationError."""
        try:
            return model.model_validate(raw_config)
        except ValidationError as e:
            raise ListConfigurationError(f"Configuration validation failed for {path}: {e}") from e

    def _load_keyed(self, path: Path, key: str, model: type[M]) -> dict[str, M]:
        """Load a supporting file holding a mapping of named definitions."""
        if not path.exists():
            return {}

        raw = self._read_yaml(path).get(key) or {}
        if not isinstance(raw, dict):
            raise ListConfigurationError(f"Expected '{key}' to be a mapping in {path}")
        return {name: self._validate(model, value or {}, path) for name, value in raw.items()}

    def _expand_lists(
        self,
        raw_lists: list[RawListDefinition],
        taxa_groups: dict[str, TaxaGroupDefinition],
        presets: dict[str, ListPresetDefinition],
    ) -> list[ListDefinition]:
        """Expand shorthand entries into full list definitions."""
        expanded: list[ListDefinition] = []

        for raw in raw_lists:
            if raw.taxa_group and raw.presets:
                # One list per preset
                for preset_name in raw.presets:
                    synthetic = raw.model_copy(
                        update={
                            "id": f"{raw.taxa_group}-{preset_name}",
                            "preset": preset_name,
                            "presets": None,
                            "title": None,
                            "description": None,
                            "output_file": None,
                            "filters": None,
                            "sections": None,
                        }
                    )
                    expanded.append(self._expand_from_reference(synthetic, taxa_groups, presets))
            elif raw.taxa_group and raw.preset:
                expanded.append(self._expand_from_reference(raw, taxa_groups, presets))
            else:
                expanded.append(
                    ListDefinition(
                        id=raw.id,
                        title=raw.title or "",
                        description=raw.description,
                        output_file=raw.output_file or "",
                        templates=raw.templates or TemplateSettings(),
                        filters=raw.filters or [],
                        sections=raw.sections or [],
                        grouping=raw.grouping,
                        display=raw.display,
                        custom_groups=raw.custom_groups,
                    )
                )

        return expanded

    def _expand_from_reference(
        self,
        raw: RawListDefinition,
        taxa_groups: dict[str, TaxaGroupDefinition],
        presets: dict[str, ListPresetDefinition],
    ) -> ListDefinition:
        """Build a list definition from a taxa group and a preset."""
        taxa_group = taxa_groups.get(raw.taxa_group or "")
        if taxa_group is None:
            raise ListConfigurationError(
                f"Unknown taxa_group '{raw.taxa_group}' in list '{raw.id}'"
            )

        preset = presets.get(raw.preset or "")
        if preset is None:
            raise ListConfigurationError(f"Unknown preset '{raw.preset}' in list '{raw.id}'")

        taxa_name = taxa_group.name or raw.taxa_group or ""
        variables = {
            "taxa_name": taxa_name,
            "taxa_name_lower": taxa_name.lower(),
            "taxa_slug": to_slug(taxa_name),
        }

        title = raw.title or expand_template(preset.title_template, variables)
        description = raw.description or expand_template(preset.description_template, variables)
        output_file = raw.output_file or expand_template(preset.output_template, variables)
        preset_templates = preset.templates or TemplateSettings()

        return ListDefinition(
            id=raw.id,
            title=title or f"List of {variables['taxa_name_lower']}",
            description=description,
            output_file=output_file or "",
            templates=TemplateSettings(
                header=(raw.templates.header if raw.templates else None) or preset_templates.header,
                footer=(raw.templates.footer if raw.templates else None) or preset_templates.footer,
            ),
            filters=raw.filters or taxa_group.filters or [],
            sections=raw.sections or preset.sections or [],
            grouping=raw.grouping,
            display=raw.display,
            custom_groups=raw.custom_groups,
        )


def expand_template(template: str | None, variables: dict[str, str]) -> str | None:
    """Replace {name} placeholders in a preset template."""
    if not template:
        return None

    result = template
    for key, value in variables.items():
        result = result.replace(f"{{{key}}}", value)
    return result


def to_slug(name: str) -> str:
    """Convert "Ray-finned fishes" to "ray_finned_fishes"."""
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
