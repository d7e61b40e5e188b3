"""Header and footer templates rendered around each generated list."""

import logging
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
)

from taxonlists.config.models import ListConfigurationError

logger = logging.getLogger(__name__)

TEMPLATE_SUFFIX = ".wikitext.j2"


class TemplateRenderer:
    """Renders named Jinja2 templates from the templates directory.

    Template names may omit the `.wikitext.j2` suffix. Undefined variables raise
    instead of rendering as empty text.
    """

    def __init__(self, template_dir: Path | None = None):
        self.template_dir = template_dir
        loader = FileSystemLoader(str(template_dir)) if template_dir is not None else None
        self.env = Environment(
            loader=loader,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def render(self, name: str | None, context: dict[str, Any]) -> str:
        """Render a template, or return an empty string when no template is named.

        Raises:
            ListConfigurationError: If the template cannot be found, parsed or rendered
        """
        if not name or not name.strip():
            return ""
        if self.env.loader is None:
            raise ListConfigurationError(f"Template '{name}' requested but no template directory")

        filename = name.strip()
        if not filename.endswith(TEMPLATE_SUFFIX):
            filename += TEMPLATE_SUFFIX

        try:
            template = self.env.get_template(filename)
        except TemplateNotFound as e:
            raise ListConfigurationError(
                f"Template '{name}' not found in {self.template_dir}"
            ) from e
        except TemplateError as e:
            raise ListConfigurationError(f"Template '{name}' is invalid: {e}") from e

        logger.debug("Rendering template %s", filename)
        try:
            return template.render(**context)
        except TemplateError as e:
            raise ListConfigurationError(f"Template '{name}' failed to render: {e}") from e
