"""System domain package.

This package contains process-level components:
- PathResolver: Default locations for rules, templates, data and output
- StructlogConfigurator: Structured logging configuration
"""

from taxonlists.system import structlog_configurator
from taxonlists.system.path_resolver import PathResolver

__all__ = [
    "PathResolver",
    "structlog_configurator",
]
