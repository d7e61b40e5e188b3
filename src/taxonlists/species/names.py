"""Helpers for building and normalizing scientific and common names."""

import re

DISAMBIGUATION_SUFFIX = re.compile(r"\s*\([^)]+\)\s*$")

# Common epithet and genus endings used by the scientific name heuristic
EPITHET_ENDINGS = ("ii", "ae", "is", "us", "um", "a", "ensis", "oides", "ica", "icum", "icus")
GENUS_ENDINGS = ("us", "a", "um", "is", "on", "ia", "ops", "yx", "ax")


def _clean_parts(*parts: str | None) -> list[str]:
    return [part.strip() for part in parts if part and part.strip()]


def build_from_parts(genus: str | None, species: str | None, infra_name: str | None) -> str | None:
    """Join genus, epithet and infra-name, skipping blanks.

    Returns:
        "Panthera tigris sumatrae" style name, or None when every part is blank
    """
    pieces = _clean_parts(genus, species, infra_name)
    return " ".join(pieces) if pieces else None


def build_with_rank_label(
    genus: str | None, species: str | None, rank_label: str | None, infra_name: str | None
) -> str | None:
    """Build "Genus species ssp. infra", or None unless all four parts are present."""
    pieces = _clean_parts(genus, species, rank_label, infra_name)
    return " ".join(pieces) if len(pieces) == 4 else None


def remove_disambiguation_suffix(name: str) -> str:
    """Strip a trailing parenthetical, e.g. "Red fox (mammal)" -> "Red fox"."""
    return DISAMBIGUATION_SUFFIX.sub("", name.strip()).strip()


def uppercase_first(value: str | None) -> str | None:
    """Uppercase the first character and leave the rest untouched."""
    if not value or not value.strip():
        return value
    return value[0].upper() + value[1:]


def title_case(value: str) -> str:
    """Convert a rank value to title case, e.g. "ARTIODACTYLA" -> "Artiodactyla"."""
    if not value or not value.strip():
        return value
    return value[0].upper() + value[1:].lower()


def looks_like_scientific_name(name: str | None) -> bool:
    """Heuristic check for binomial/trinomial names.

    "Panthera leo" and "Ursus arctos horribilis" look scientific; "Spider" and
    "American Black Bear" do not.
    """
    if not name or not name.strip():
        return False

    words = name.split()
    if len(words) < 2 or len(words) > 4:
        return False

    # Genus capitalized, epithet lowercase
    if not words[0][0].isupper():
        return False
    if any(ch.isupper() for ch in words[1]):
        return False

    if len(words) >= 3:
        third = words[2]
        if all(ch.islower() or ch == "." for ch in third):
            return True
        if any(ch.isupper() for ch in third):
            return False

    epithet = words[1].lower()
    if epithet.endswith(EPITHET_ENDINGS):
        return True

    genus = words[0].lower()
    return genus.endswith(GENUS_ENDINGS) and words[1].islower()
