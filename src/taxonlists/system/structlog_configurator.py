"""Structlog-based logging configuration for taxonlists.

Modules log through the standard library (`logging.getLogger(__name__)`); this module
routes those records through structlog's ProcessorFormatter so that stdlib and
structlog loggers share one pre-chain and one renderer.

Output selection:
- Explicit `logging.json_logs` setting wins
- Otherwise JSON lines unless stderr is a terminal (pipes, CI, batch runs)
- TAXONLISTS_ENV=development with TAXONLISTS_JSON_LOGS=true forces JSON
"""

import logging
import os
import subprocess
import sys
from importlib.metadata import PackageNotFoundError, version

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from taxonlists.config.models import GeneratorConfig, LoggingConfig

logger = logging.getLogger(__name__)

ENVIRONMENT_ENV = "TAXONLISTS_ENV"
JSON_LOGS_ENV = "TAXONLISTS_JSON_LOGS"


def get_build_version() -> str:
    """Installed package version, with the git commit appended inside a checkout.

    Returns "0.1.0+3f2a9c1d" in a checkout, "0.1.0" otherwise, and "unknown" when
    the package is not installed.
    """
    try:
        package_version = version("taxonlists")
    except PackageNotFoundError:
        package_version = "unknown"

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short=8", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except (subprocess.SubprocessError, FileNotFoundError):
        return package_version

    commit = result.stdout.strip() if result.returncode == 0 else ""
    return f"{package_version}+{commit}" if commit else package_version


class StaticFields:
    """Processor adding fixed fields (service, version, ...) to every event."""

    def __init__(self, fields: dict[str, str]):
        self.fields = dict(fields)

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.update(self.fields)
        return event_dict


def static_fields(settings: LoggingConfig) -> dict[str, str]:
    """Fields stamped on every event; SERVICE_NAME overrides the configured service."""
    fields = {"version": get_build_version(), **settings.extra_fields}
    service_name = os.environ.get("SERVICE_NAME")
    if service_name:
        fields["service"] = service_name
    return fields


def build_pre_chain(settings: LoggingConfig) -> list[Processor]:
    """Processors shared by structlog loggers and foreign (stdlib) log records."""
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        StaticFields(static_fields(settings)),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if settings.include_caller:
        chain.append(structlog.processors.CallsiteParameterAdder())
    return chain


def wants_json(settings: LoggingConfig, interactive: bool | None = None) -> bool:
    """Decide between JSON lines and human-readable console output.

    Args:
        settings: Logging settings
        interactive: Whether a human is watching stderr; detected when None
    """
    development = os.environ.get(ENVIRONMENT_ENV, "production") == "development"
    if development and os.environ.get(JSON_LOGS_ENV, "false").lower() == "true":
        return True
    if settings.json_logs is not None:
        return settings.json_logs
    if interactive is None:
        interactive = sys.stderr.isatty()
    return not interactive


def log_level(settings: LoggingConfig) -> int:
    """Numeric level for the configured name, INFO for unknown names."""
    level = logging.getLevelName(settings.level.upper())
    return level if isinstance(level, int) else logging.INFO


def install_handler(
    settings: LoggingConfig, use_json: bool, pre_chain: list[Processor]
) -> logging.Handler:
    """Replace the root logger's handlers with one structlog-rendered stderr handler."""
    renderer = (
        structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer()
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level(settings))
    return handler


def configure_structlog(config: GeneratorConfig) -> None:
    """Configure structlog and stdlib logging for a generation run.

    Args:
        config: The GeneratorConfig instance containing logging settings.
    """
    settings = config.logging
    pre_chain = build_pre_chain(settings)
    use_json = wants_json(settings)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    install_handler(settings, use_json, pre_chain)

    logger.info("Logging configured (level=%s, json=%s)", settings.level, use_json)
