"""taxonlists configuration package.

This package provides centralized configuration management with:
- Generator settings (naming policy, heading depths, logging)
- List definitions with taxa-group and preset expansion
- Structured taxon rules and virtual group definitions
- YAML parsing and validation
"""

from .manager import ConfigManager
from .models import GeneratorConfig, ListConfigurationError, ListsConfig, TaxonRulesConfig

__all__ = [
    "ConfigManager",
    "GeneratorConfig",
    "ListConfigurationError",
    "ListsConfig",
    "TaxonRulesConfig",
]
