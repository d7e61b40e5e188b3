"""Configuration models for taxonlists.

This module contains all configuration-related Pydantic models: generator settings,
list definitions (sections, grouping plans, display preferences) and the structured
taxon rules that drive naming, exclusion, force-splitting and virtual groups.
"""

import re

from pydantic import BaseModel, Field, field_validator, model_validator


class ListConfigurationError(ValueError):
    """Raised when a list cannot be generated because its configuration is invalid."""


class LoggingConfig(BaseModel):
    """Structlog-based logging configuration."""

    level: str = "INFO"
    json_logs: bool | None = None  # None = auto-detect based on environment
    include_caller: bool = False  # Include file:line info (useful for debugging)
    extra_fields: dict[str, str] = Field(default_factory=lambda: {"service": "taxonlists"})


class GeneratorConfig(BaseModel):
    """Settings for a list generation run."""

    config_version: str = "1.0.0"
    allow_ambiguous_names: bool = False  # Accept common names flagged as ambiguous
    max_heading_depth: int = 6  # Wikitext supports ====== at most
    section_heading_depth: int = 3  # Depth of the first grouping heading inside a section
    cancel_check_interval: int = 500  # Records between cancellation checks
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("max_heading_depth", "section_heading_depth")
    @classmethod
    def validate_heading_depth(cls, v: int) -> int:
        """Heading depths must be valid wikitext heading levels."""
        if not 2 <= v <= 6:
            raise ValueError(f"Invalid heading depth {v}. Must be between 2 and 6.")
        return v


# =========== LIST DEFINITIONS ===========


class GroupingLevelConfig(BaseModel):
    """One level of a grouping plan, as written in the lists YAML."""

    level: str
    label: str | None = None
    always_display: bool = False
    unknown_label: str | None = None
    min_items: int = 1  # Groups smaller than this are merged into an "Other" bucket
    other_label: str | None = None  # Defaults to "Other {label}"

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Rank names are matched case-insensitively."""
        return v.strip().lower()


class DisplayPreferences(BaseModel):
    """How each species line is rendered."""

    prefer_common_names: bool = True
    italicize_scientific: bool = True
    include_status_template: bool = True
    include_status_label: bool = True
    group_subspecies: bool = False  # Nest subspecies under their parent species


class TemplateSettings(BaseModel):
    """Header and footer template names."""

    header: str | None = None
    footer: str | None = None


class TaxonFilter(BaseModel):
    """Restricts a list to one taxon (or several, OR-ed) at a given rank."""

    rank: str = ""
    value: str = ""
    values: list[str] | None = None  # Takes precedence over value when provided


class SectionStatus(BaseModel):
    """A status code included in a section."""

    code: str = ""
    label: str | None = None


class SectionDefinition(BaseModel):
    """A document section collecting records of one or more status codes."""

    key: str = ""
    heading: str = ""
    description: str | None = None
    statuses: list[SectionStatus] = Field(default_factory=list)
    hide_heading: bool = False


class CustomGroup(BaseModel):
    """A family-based group that replaces the first grouping level (e.g. marine mammals)."""

    name: str
    common_name: str | None = None
    common_plural: str | None = None
    main_article: str | None = None
    families: list[str] = Field(default_factory=list)
    default: bool = False


class ListDefinition(BaseModel):
    """A fully expanded list to generate."""

    id: str = ""
    title: str = ""
    description: str | None = None
    output_file: str = ""
    templates: TemplateSettings = Field(default_factory=TemplateSettings)
    filters: list[TaxonFilter] = Field(default_factory=list)
    sections: list[SectionDefinition] = Field(default_factory=list)
    grouping: list[GroupingLevelConfig] | None = None
    display: DisplayPreferences | None = None
    custom_groups: list[CustomGroup] | None = None

    @model_validator(mode="after")
    def default_output_file(self) -> "ListDefinition":
        """Fall back to '{id}.wikitext' when no output file is given."""
        if not self.output_file:
            self.output_file = f"{self.id}.wikitext"
        return self


class ListDefaults(BaseModel):
    """Defaults shared by every list in a lists file."""

    header_template: str | None = None
    footer_template: str | None = None
    grouping: list[GroupingLevelConfig] | None = None
    display: DisplayPreferences = Field(default_factory=DisplayPreferences)


class ListsConfig(BaseModel):
    """The expanded lists file."""

    defaults: ListDefaults = Field(default_factory=ListDefaults)
    lists: list[ListDefinition] = Field(default_factory=list)


# Shorthand structures, expanded by ConfigManager


class RawListDefinition(BaseModel):
    """A list entry before taxa-group/preset expansion."""

    id: str = ""
    taxa_group: str | None = None
    preset: str | None = None
    presets: list[str] | None = None  # Generates one list per preset
    title: str | None = None
    description: str | None = None
    output_file: str | None = None
    templates: TemplateSettings | None = None
    filters: list[TaxonFilter] | None = None
    sections: list[SectionDefinition] | None = None
    grouping: list[GroupingLevelConfig] | None = None
    display: DisplayPreferences | None = None
    custom_groups: list[CustomGroup] | None = None


class RawListsConfig(BaseModel):
    """The lists file as written."""

    defaults: ListDefaults | None = None
    lists: list[RawListDefinition] = Field(default_factory=list)


class TaxaGroupDefinition(BaseModel):
    """Named taxon scope referenced by `taxa_group` (taxa-groups.yml)."""

    name: str | None = None
    filters: list[TaxonFilter] | None = None


class ListPresetDefinition(BaseModel):
    """Reusable list shape referenced by `preset` (list-presets.yml)."""

    name: str | None = None
    title_template: str | None = None
    description_template: str | None = None
    output_template: str | None = None
    templates: TemplateSettings | None = None
    sections: list[SectionDefinition] | None = None


# =========== TAXON RULES ===========


class TaxonListOverride(BaseModel):
    """List-specific overrides for a taxon."""

    exclude: bool = False
    common_name: str | None = None
    wikilink: str | None = None


class TaxonRule(BaseModel):
    """Rules for a specific taxon."""

    common_name: str | None = None
    common_plural: str | None = None
    adjective: str | None = None
    wikilink: str | None = None  # Used when the taxon name leads to a disambiguation page
    main_article: str | None = None
    blurb: str | None = None
    comprises: str | None = None
    force_split: bool = False  # Never give this taxon its own heading
    use_virtual_groups: bool = False
    exclude: bool = False
    list_overrides: dict[str, TaxonListOverride] | None = None


class VirtualGroup(BaseModel):
    """A display group organising a parent taxon by superfamily/family/clade membership."""

    name: str = ""
    common_name: str | None = None
    common_plural: str | None = None
    main_article: str | None = None
    superfamilies: list[str] = Field(default_factory=list)
    families: list[str] = Field(default_factory=list)
    clades: list[str] = Field(default_factory=list)
    default: bool = False


class VirtualGroupConfig(BaseModel):
    """Ordered virtual groups for one parent taxon. First matching group wins."""

    groups: list[VirtualGroup] = Field(default_factory=list)

    @field_validator("groups")
    @classmethod
    def validate_single_default(cls, v: list[VirtualGroup]) -> list[VirtualGroup]:
        """At most one group may be the catch-all."""
        defaults = [group.name for group in v if group.default]
        if len(defaults) > 1:
            names = ", ".join(defaults)
            raise ValueError(f"Only one default virtual group is allowed, got: {names}")
        return v


class TaxonRulesConfig(BaseModel):
    """Structured taxon rules (taxon-rules.yml)."""

    taxa: dict[str, TaxonRule] = Field(default_factory=dict)
    global_exclusions: list[str] = Field(default_factory=list)  # Regex patterns
    virtual_groups: dict[str, VirtualGroupConfig] = Field(default_factory=dict)

    @field_validator("global_exclusions")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        """Exclusion patterns must compile."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid exclusion pattern '{pattern}': {e}") from e
        return v
