"""Common-name store and redirect lookups consulted when naming headings and species.

The list pipeline only reads from these sources. The in-memory implementations are
loaded from YAML snapshots of the aggregated name store and the reference-wiki
redirect cache:

    names:
      Panthera leo:
        common_name: lion
        article: Lion
      Araneae:
        common_name: spiders
        ambiguous: false
        kingdom: ANIMALIA

    redirects:
      Araneae: Spider
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class NamingSourceUnavailableError(RuntimeError):
    """Raised by a name store or redirect cache that cannot be queried."""


class NameStore(ABC):
    """Abstract base class for aggregated common-name stores."""

    @abstractmethod
    def best_common_name(
        self, scientific_name: str, allow_ambiguous: bool = False, kingdom: str | None = None
    ) -> tuple[str, str | None] | None:
        """Get the preferred English common name for a scientific name.

        Args:
            scientific_name: Taxon name at any rank
            allow_ambiguous: Accept names flagged as shared with another taxon
            kingdom: Restrict to this kingdom when homonyms exist

        Returns:
            (common name, article title or None), or None if no name is known

        Raises:
            NamingSourceUnavailableError: If the store cannot be queried
        """
        pass

    @abstractmethod
    def article_title(self, scientific_name: str, kingdom: str | None = None) -> str | None:
        """Get the reference-wiki article title for a scientific name, if known."""
        pass


class RedirectLookup(ABC):
    """Abstract base class for reference-wiki redirect caches."""

    @abstractmethod
    def redirect_target(self, title: str) -> str | None:
        """Get the redirect target of a page title, or None if it is not a redirect.

        Raises:
            NamingSourceUnavailableError: If the cache cannot be queried
        """
        pass


class NameEntry(BaseModel):
    """One common name known for a scientific name."""

    common_name: str
    article: str | None = None
    ambiguous: bool = False  # Flagged by conflict detection as shared with other taxa
    kingdom: str | None = None


class NameStoreSnapshot(BaseModel):
    """YAML snapshot of the name store and redirect cache."""

    names: dict[str, NameEntry | list[NameEntry]] = Field(default_factory=dict)
    redirects: dict[str, str] = Field(default_factory=dict)


def _read_snapshot(path: Path) -> NameStoreSnapshot:
    if not path.exists():
        raise FileNotFoundError(f"Name snapshot not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return NameStoreSnapshot.model_validate(raw)
    except (yaml.YAMLError, ValidationError) as e:
        raise ValueError(f"Invalid name snapshot {path}: {e}") from e


class InMemoryNameStore(NameStore):
    """Name store backed by a dictionary keyed by lowercased scientific name."""

    def __init__(self, entries: dict[str, list[NameEntry]] | None = None):
        self._entries: dict[str, list[NameEntry]] = {}
        for name, values in (entries or {}).items():
            self._entries.setdefault(name.strip().lower(), []).extend(values)

    @classmethod
    def from_yaml(cls, path: Path) -> "InMemoryNameStore":
        """Load the `names` section of a snapshot file."""
        snapshot = _read_snapshot(path)
        entries = {
            name: value if isinstance(value, list) else [value]
            for name, value in snapshot.names.items()
        }
        logger.info("Loaded %d common-name entries from %s", len(entries), path)
        return cls(entries)

    def _candidates(self, scientific_name: str, kingdom: str | None) -> list[NameEntry]:
        entries = self._entries.get(scientific_name.strip().lower(), [])
        if not kingdom:
            return entries
        wanted = kingdom.strip().lower()
        return [e for e in entries if not e.kingdom or e.kingdom.strip().lower() == wanted]

    def best_common_name(
        self, scientific_name: str, allow_ambiguous: bool = False, kingdom: str | None = None
    ) -> tuple[str, str | None] | None:
        """Return the first acceptable entry for the name."""
        if not scientific_name or not scientific_name.strip():
            return None

        for entry in self._candidates(scientific_name, kingdom):
            if entry.ambiguous and not allow_ambiguous:
                continue
            if entry.common_name.strip():
                return entry.common_name.strip(), entry.article
        return None

    def article_title(self, scientific_name: str, kingdom: str | None = None) -> str | None:
        """Return the first article title recorded for the name."""
        if not scientific_name or not scientific_name.strip():
            return None

        for entry in self._candidates(scientific_name, kingdom):
            if entry.article:
                return entry.article
        return None


class InMemoryRedirectCache(RedirectLookup):
    """Redirect cache backed by a dictionary of normalized titles."""

    def __init__(self, redirects: dict[str, str] | None = None):
        self._redirects = {
            normalize_title(title): target for title, target in (redirects or {}).items()
        }

    @classmethod
    def from_yaml(cls, path: Path) -> "InMemoryRedirectCache":
        """Load the `redirects` section of a snapshot file."""
        snapshot = _read_snapshot(path)
        logger.info("Loaded %d redirects from %s", len(snapshot.redirects), path)
        return cls(snapshot.redirects)

    def redirect_target(self, title: str) -> str | None:
        """Look up a title after normalizing it the way the wiki does."""
        normalized = normalize_title(title)
        if not normalized:
            return None
        return self._redirects.get(normalized)


def normalize_title(title: str | None) -> str:
    """Normalize a page title: drop the fragment, underscores to spaces, first letter upper."""
    if not title or not title.strip():
        return ""

    text = title.strip().split("#", 1)[0]
    text = " ".join(text.replace("_", " ").split())
    if text and text[0].isalpha():
        text = text[0].upper() + text[1:]
    return text
