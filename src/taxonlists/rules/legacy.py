"""Parser for the legacy flat taxon rules file (rules-list.txt).

Each non-comment line assigns one field to a taxon:

    Felidae = cat               // common name
    Felidae plural cats
    Felidae adj feline
    Puma wikilink Puma (genus)

Text after `//` is a comment. Lines using other directives are ignored.
"""

import logging
from pathlib import Path
from typing import NamedTuple

from taxonlists.config.models import ListConfigurationError

logger = logging.getLogger(__name__)

# Separator -> field, checked in this order
SEPARATORS: list[tuple[str, str]] = [
    (" = ", "common_name"),
    (" plural ", "common_plural"),
    (" adj ", "adjective"),
    (" wikilink ", "wikilink"),
]


class LegacyTaxonRules(NamedTuple):
    """Fields assigned to one taxon by the legacy rules file."""

    common_name: str | None = None
    common_plural: str | None = None
    adjective: str | None = None
    wikilink: str | None = None


class LegacyTaxaRuleList:
    """Case-insensitive lookup of legacy rules by taxon name."""

    def __init__(self, lines: list[str] | None = None):
        self._records: dict[str, LegacyTaxonRules] = {}
        if lines:
            self._compile(lines)

    @classmethod
    def load(cls, path: Path) -> "LegacyTaxaRuleList":
        """Parse a rules file.

        Raises:
            FileNotFoundError: If the file does not exist
            ListConfigurationError: If a line is malformed
        """
        if not path.exists():
            raise FileNotFoundError(f"rules-list.txt not found at {path}")

        rule_list = cls(path.read_text(encoding="utf-8").splitlines())
        logger.info("Loaded legacy rules for %d taxa from %s", len(rule_list), path)
        return rule_list

    def __len__(self) -> int:
        return len(self._records)

    def get(self, taxon: str | None) -> LegacyTaxonRules | None:
        """Get the rules for a taxon, ignoring case and surrounding whitespace."""
        if not taxon or not taxon.strip():
            return None
        return self._records.get(taxon.strip().lower())

    def _compile(self, lines: list[str]) -> None:
        for line_number, raw in enumerate(lines, start=1):
            line = strip_comment(raw)
            if not line:
                continue

            # Pad so a directive missing its taxon or value is still recognised
            padded = f" {line} "
            for separator, field in SEPARATORS:
                if separator in padded:
                    self._assign(line_number, padded, separator, field)
                    break
            else:
                logger.debug("Skipping unsupported rules line %d: %s", line_number, line)

    def _assign(self, line_number: int, line: str, separator: str, field: str) -> None:
        taxon, _, value = line.partition(separator)
        taxon = taxon.strip()
        value = value.strip()
        if not taxon or not value:
            raise ListConfigurationError(f"Malformed rules line {line_number}: {line.strip()}")

        key = taxon.lower()
        existing = self._records.get(key, LegacyTaxonRules())
        self._records[key] = existing._replace(**{field: value})


def strip_comment(line: str) -> str:
    """Remove a trailing `//` comment and surrounding whitespace."""
    index = line.find("//")
    return (line[:index] if index >= 0 else line).strip()
