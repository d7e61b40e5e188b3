"""Heading and species name resolution.

Names come from an ordered chain of providers; the first one that knows a name wins:

1. Per-list manual override
2. Structured taxon rule (plural, then singular)
3. Legacy rules file entry
4. Aggregated common-name store
5. Redirect target of the scientific name's page
6. The taxon name itself, title-cased

Link targets follow their own precedence, independent of which provider named the
heading: main article > store article or redirect target > wikilink override >
the taxon name when a common name replaced it > no link.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import NamedTuple, TypeVar

from taxonlists.config.models import CustomGroup, VirtualGroup
from taxonlists.lists.tree import TreeNode
from taxonlists.rules.legacy import LegacyTaxaRuleList
from taxonlists.rules.taxon_rules import TaxonRulesService
from taxonlists.species.models import SpeciesRecord
from taxonlists.species.name_store import NameStore, NamingSourceUnavailableError, RedirectLookup
from taxonlists.species.names import (
    looks_like_scientific_name,
    remove_disambiguation_suffix,
    title_case,
    uppercase_first,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNASSIGNED = "Unassigned"


class HeadingInfo(NamedTuple):
    """Display text and optional link target of a heading or species name."""

    text: str
    link: str | None = None


def is_other_or_unknown(value: str) -> bool:
    """Whether a bucket value is an Other/Unknown label rather than a taxon."""
    trimmed = value.strip().lower()
    return (
        trimmed in ("other", "unknown")
        or trimmed.startswith("other ")
        or trimmed.startswith("unknown ")
    )


class NameProvider(ABC):
    """One step of the naming chain."""

    name = "provider"

    @abstractmethod
    def try_resolve(
        self, taxon: str, *, plural: bool = True, kingdom: str | None = None
    ) -> HeadingInfo | None:
        """Resolve a display name for a taxon.

        Args:
            taxon: Scientific name at any rank
            plural: Prefer the plural form (headings) over the singular (species)
            kingdom: Kingdom of the taxon, for homonym disambiguation

        Returns:
            HeadingInfo with the provider's own link suggestion, or None

        Raises:
            NamingSourceUnavailableError: If the provider's backing source is offline
        """
        pass


class ManualOverrideProvider(NameProvider):
    """Common names set for one list in the taxon rules' list_overrides."""

    name = "manual-override"

    def __init__(self, rules: TaxonRulesService, list_id: str | None):
        self.rules = rules
        self.list_id = list_id

    def try_resolve(
        self, taxon: str, *, plural: bool = True, kingdom: str | None = None
    ) -> HeadingInfo | None:
        if not self.list_id:
            return None
        rule = self.rules.get_rule(taxon)
        override = (rule.list_overrides or {}).get(self.list_id) if rule else None
        if override is None or not override.common_name:
            return None
        return HeadingInfo(uppercase_first(override.common_name.strip()))


class StructuredRuleProvider(NameProvider):
    """Common names from the structured taxon rules."""

    name = "structured-rule"

    def __init__(self, rules: TaxonRulesService):
        self.rules = rules

    def try_resolve(
        self, taxon: str, *, plural: bool = True, kingdom: str | None = None
    ) -> HeadingInfo | None:
        rule = self.rules.get_rule(taxon)
        if rule is None:
            return None
        if plural and rule.common_plural and rule.common_plural.strip():
            return HeadingInfo(uppercase_first(rule.common_plural.strip()))
        if rule.common_name and rule.common_name.strip():
            return HeadingInfo(uppercase_first(rule.common_name.strip()))
        return None


class LegacyRuleProvider(NameProvider):
    """Common names from the legacy rules-list.txt file."""

    name = "legacy-rule"

    def __init__(self, legacy: LegacyTaxaRuleList):
        self.legacy = legacy

    def try_resolve(
        self, taxon: str, *, plural: bool = True, kingdom: str | None = None
    ) -> HeadingInfo | None:
        rules = self.legacy.get(taxon)
        if rules is None:
            return None
        if plural and rules.common_plural:
            return HeadingInfo(uppercase_first(rules.common_plural))
        if rules.common_name:
            return HeadingInfo(uppercase_first(rules.common_name))
        return None


class NameStoreProvider(NameProvider):
    """Best common name from the aggregated name store, with its article title."""

    name = "name-store"

    def __init__(self, store: NameStore, allow_ambiguous: bool = False):
        self.store = store
        self.allow_ambiguous = allow_ambiguous

    def try_resolve(
        self, taxon: str, *, plural: bool = True, kingdom: str | None = None
    ) -> HeadingInfo | None:
        result = self.store.best_common_name(taxon, self.allow_ambiguous, kingdom)
        if result is None:
            return None
        common_name, article = result
        if not common_name or not common_name.strip():
            return None
        return HeadingInfo(uppercase_first(common_name.strip()), article or None)


class RedirectProvider(NameProvider):
    """Redirect target of the taxon's page, when it reads like a common name.

    "Araneae" redirects to "Spider"; a redirect to another scientific name (a synonym)
    is rejected.
    """

    name = "redirect"

    def __init__(self, redirects: RedirectLookup):
        self.redirects = redirects

    def try_resolve(
        self, taxon: str, *, plural: bool = True, kingdom: str | None = None
    ) -> HeadingInfo | None:
        target = self.redirects.redirect_target(taxon)
        if not target or not target.strip() or target.strip().lower() == taxon.strip().lower():
            return None

        display = remove_disambiguation_suffix(target)
        if not display or looks_like_scientific_name(display):
            return None
        return HeadingInfo(uppercase_first(display), target.strip())


class TitleCaseProvider(NameProvider):
    """Terminal fallback: the taxon name itself."""

    name = "title-case"

    def try_resolve(
        self, taxon: str, *, plural: bool = True, kingdom: str | None = None
    ) -> HeadingInfo | None:
        return HeadingInfo(title_case(taxon.strip()))


class HeadingNamer:
    """Resolves heading text and links for tree nodes, and common names for species.

    Results are memoised for the lifetime of the namer (one generation run). A
    provider whose source raises NamingSourceUnavailableError is dropped from the
    chain for the rest of the run.
    """

    def __init__(
        self,
        rules: TaxonRulesService | None = None,
        legacy: LegacyTaxaRuleList | None = None,
        name_store: NameStore | None = None,
        redirects: RedirectLookup | None = None,
        list_id: str | None = None,
        allow_ambiguous: bool = False,
    ):
        self.rules = rules or TaxonRulesService()
        self.legacy = legacy
        self.name_store = name_store
        self.list_id = list_id

        self._store_provider = (
            NameStoreProvider(name_store, allow_ambiguous) if name_store is not None else None
        )
        species_chain: list[NameProvider] = [
            ManualOverrideProvider(self.rules, list_id),
            StructuredRuleProvider(self.rules),
        ]
        if legacy is not None:
            species_chain.append(LegacyRuleProvider(legacy))
        if self._store_provider is not None:
            species_chain.append(self._store_provider)

        heading_chain = list(species_chain)
        if redirects is not None:
            heading_chain.append(RedirectProvider(redirects))
        heading_chain.append(TitleCaseProvider())

        self.heading_providers = heading_chain
        self.species_providers = species_chain

        self._memo: dict[tuple, HeadingInfo | None] = {}
        self._lock = threading.Lock()
        self._disabled: set[str] = set()

    # Public API

    def heading_for(self, node: TreeNode) -> HeadingInfo:
        """Heading text and link for a tree node."""
        if node.group is not None:
            return group_heading(node.group)

        value = (node.value or "").strip()
        if not value:
            return HeadingInfo(UNASSIGNED)

        if node.synthetic or is_other_or_unknown(value):
            return HeadingInfo(value)

        return self.resolve_heading(value, node.kingdom)

    def resolve_heading(self, taxon: str, kingdom: str | None = None) -> HeadingInfo:
        """Resolve a taxon heading through the full chain (plural names)."""
        key = ("heading", taxon.lower(), (kingdom or "").lower())
        cached = self._cached(key, lambda: self._resolve_heading(taxon, kingdom))
        return cached if cached is not None else HeadingInfo(title_case(taxon))

    def common_name_for(self, record: SpeciesRecord) -> HeadingInfo | None:
        """Common name and article for a species line, or None if no name is known.

        Uses the chain without the redirect and title-case steps, with singular names.
        """
        scientific_name = record.display_scientific_name
        if not scientific_name:
            return None

        key = ("species", scientific_name.lower(), (record.kingdom or "").lower())
        return self._cached(key, lambda: self._resolve_species(scientific_name, record.kingdom))

    # Resolution

    def _resolve_heading(self, taxon: str, kingdom: str | None) -> HeadingInfo:
        display_name = title_case(taxon)
        found = self._first(self.heading_providers, taxon, plural=True, kingdom=kingdom)
        if found is None:
            found = HeadingInfo(display_name)

        replaced = found.text != display_name
        link = (
            self.rules.get_main_article(taxon)
            or found.link
            or self._store_article(taxon, kingdom)
            or self._wikilink(taxon)
            or (display_name if replaced else None)
        )
        return HeadingInfo(found.text, link)

    def _resolve_species(self, scientific_name: str, kingdom: str | None) -> HeadingInfo | None:
        found = self._first(self.species_providers, scientific_name, plural=False, kingdom=kingdom)
        if found is None:
            return None

        link = (
            self.rules.get_main_article(scientific_name)
            or found.link
            or self._store_article(scientific_name, kingdom)
            or self._wikilink(scientific_name)
        )
        return HeadingInfo(found.text, link)

    def _first(
        self, providers: list[NameProvider], taxon: str, *, plural: bool, kingdom: str | None
    ) -> HeadingInfo | None:
        for provider in providers:
            result = self._guarded(
                provider,
                lambda p=provider: p.try_resolve(taxon, plural=plural, kingdom=kingdom),
            )
            if result is not None:
                logger.debug("Named %s via %s: %s", taxon, provider.name, result.text)
                return result
        return None

    def _wikilink(self, taxon: str) -> str | None:
        """Wikilink override: per-list, then structured, then legacy."""
        wikilink = self.rules.get_wikilink(taxon, self.list_id)
        if wikilink:
            return wikilink
        if self.legacy is not None:
            legacy = self.legacy.get(taxon)
            if legacy is not None and legacy.wikilink:
                return legacy.wikilink
        return None

    def _store_article(self, scientific_name: str, kingdom: str | None) -> str | None:
        if self._store_provider is None or self.name_store is None:
            return None
        store = self.name_store
        return self._guarded(
            self._store_provider, lambda: store.article_title(scientific_name, kingdom)
        )

    def _guarded(self, provider: NameProvider, call: Callable[[], T]) -> T | None:
        """Run a provider call, disabling the provider if its source is unavailable."""
        with self._lock:
            if provider.name in self._disabled:
                return None
        try:
            return call()
        except NamingSourceUnavailableError as e:
            with self._lock:
                first_failure = provider.name not in self._disabled
                self._disabled.add(provider.name)
            if first_failure:
                logger.warning(
                    "Naming source %s unavailable, skipping for this run: %s", provider.name, e
                )
            return None

    def _cached(self, key: tuple, compute: Callable[[], T]) -> T:
        with self._lock:
            if key in self._memo:
                return self._memo[key]

        value = compute()
        with self._lock:
            return self._memo.setdefault(key, value)


def group_heading(group: VirtualGroup | CustomGroup) -> HeadingInfo:
    """Heading for a virtual or custom group: plural, singular, then the group name."""
    for candidate in (group.common_plural, group.common_name):
        if candidate and candidate.strip():
            return HeadingInfo(uppercase_first(candidate.strip()), group.main_article)
    return HeadingInfo(group.name, group.main_article)
