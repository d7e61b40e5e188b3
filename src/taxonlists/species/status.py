"""Conservation status descriptors and the status formatting rules used on list lines."""

from dataclasses import dataclass
from enum import Enum


class FlagFilter(str, Enum):
    """How a descriptor constrains a possibly-extinct flag."""

    ANY = "any"
    TRUE = "true"
    FALSE = "false"

    def matches(self, value: bool) -> bool:
        """Check a record flag against this filter."""
        if self is FlagFilter.ANY:
            return True
        return value is (self is FlagFilter.TRUE)


@dataclass(frozen=True)
class StatusDescriptor:
    """A known status code.

    `code` is the section-level code ("CR(PE)"), `category` the assessment category
    it is derived from ("CR"), `name` the category's full name.
    """

    code: str
    category: str
    label: str
    name: str
    possibly_extinct: FlagFilter = FlagFilter.ANY
    possibly_extinct_in_wild: FlagFilter = FlagFilter.ANY


DESCRIPTORS: list[StatusDescriptor] = [
    StatusDescriptor("EX", "EX", "Extinct", "Extinct"),
    StatusDescriptor("EW", "EW", "Extinct in the wild", "Extinct in the Wild"),
    StatusDescriptor(
        "CR(PE)",
        "CR",
        "Possibly extinct",
        "Critically Endangered",
        FlagFilter.TRUE,
        FlagFilter.FALSE,
    ),
    StatusDescriptor(
        "CR(PEW)",
        "CR",
        "Possibly extinct in the wild",
        "Critically Endangered",
        FlagFilter.FALSE,
        FlagFilter.TRUE,
    ),
    StatusDescriptor(
        "CR",
        "CR",
        "Critically endangered",
        "Critically Endangered",
        FlagFilter.FALSE,
        FlagFilter.FALSE,
    ),
    StatusDescriptor("EN", "EN", "Endangered", "Endangered"),
    StatusDescriptor("VU", "VU", "Vulnerable", "Vulnerable"),
    StatusDescriptor("NT", "NT", "Near threatened", "Near Threatened"),
    StatusDescriptor("LC", "LC", "Least concern", "Least Concern"),
    StatusDescriptor("DD", "DD", "Data deficient", "Data Deficient"),
    StatusDescriptor("LR/lc", "LR/lc", "Lower risk/least concern", "Lower Risk/least concern"),
    StatusDescriptor("LR/nt", "LR/nt", "Lower risk/near threatened", "Lower Risk/near threatened"),
    StatusDescriptor(
        "LR/cd", "LR/cd", "Conservation dependent", "Lower Risk/conservation dependent"
    ),
    StatusDescriptor("NA", "NA", "Not applicable", "Not Applicable"),
    StatusDescriptor("RE", "RE", "Regionally extinct", "Regionally Extinct"),
]

_BY_CODE: dict[str, StatusDescriptor] = {d.code.lower(): d for d in DESCRIPTORS}

EXTINCT_CODES = frozenset({"EX", "EW"})


def _strip_qualifier(code: str) -> str:
    """Drop a parenthesised qualifier: "CR(XYZ)" -> "CR"."""
    trimmed = code.strip()
    paren = trimmed.find("(")
    return trimmed[:paren] if paren > 0 else trimmed


def get_descriptor(code: str | None) -> StatusDescriptor | None:
    """Look up a descriptor by code, case-insensitively.

    Unknown qualifiers fall back to the bare category, so "cr(pe)" and "CR(x)" both
    resolve. Returns None for blank or unknown codes.
    """
    if not code or not code.strip():
        return None

    direct = _BY_CODE.get(code.strip().lower())
    if direct is not None:
        return direct
    return _BY_CODE.get(_strip_qualifier(code).lower())


def describe(code: str | None) -> StatusDescriptor:
    """Describe a code, synthesizing a pass-through descriptor for unknown codes."""
    descriptor = get_descriptor(code)
    if descriptor is not None:
        return descriptor

    fallback = _strip_qualifier(code or "")
    return StatusDescriptor(fallback, fallback, fallback, fallback)


def resolve(
    category: str, possibly_extinct: bool, possibly_extinct_in_wild: bool
) -> StatusDescriptor:
    """Resolve a record's descriptor from its assessment category and flags.

    The category may be given as a code ("CR") or a full name ("Critically Endangered").
    """
    wanted = (category or "").strip().lower()
    for descriptor in DESCRIPTORS:
        if wanted not in (descriptor.category.lower(), descriptor.name.lower()):
            continue
        if not descriptor.possibly_extinct.matches(possibly_extinct):
            continue
        if not descriptor.possibly_extinct_in_wild.matches(possibly_extinct_in_wild):
            continue
        return descriptor

    fallback = (category or "").strip()
    return StatusDescriptor(fallback, fallback, fallback, fallback)


def template_code(code: str, possibly_extinct: bool, possibly_extinct_in_wild: bool) -> str:
    """Map a status code to the code used in the status template.

    CR with a possibly-extinct flag becomes CR(PE) / CR(PEW). The fine-grained legacy
    lower-risk codes keep their lowercase suffix rather than collapsing to NT/LC.
    """
    normalized = code.strip().upper()

    if normalized in ("CR", "CRITICALLY ENDANGERED"):
        if possibly_extinct:
            return "CR(PE)"
        if possibly_extinct_in_wild:
            return "CR(PEW)"
        return "CR"

    legacy = {
        "CR(PE)": "CR(PE)",
        "PE": "CR(PE)",
        "CR(PEW)": "CR(PEW)",
        "PEW": "CR(PEW)",
        "LR/CD": "LR/cd",
        "CD": "LR/cd",
        "LR/NT": "LR/nt",
        "LR/LC": "LR/lc",
    }
    return legacy.get(normalized, normalized)


def is_extinct(code: str) -> bool:
    """EX and EW assessments carry no assessment year on list lines."""
    return code.strip().upper() in EXTINCT_CODES


def special_label(code: str, status_context: str | None) -> str | None:
    """Qualifier appended after the name for PE, PEW and EW records.

    Suppressed when the section's status context (its comma-joined codes) already
    says the same thing.
    """
    upper = code.strip().upper()
    context = (status_context or "").upper()

    if upper in ("CR(PE)", "PE"):
        if "CR(PE)" in context or ("PE" in context and "PEW" not in context):
            return None
        return "possibly\u00a0extinct"  # Non-breaking space

    if upper in ("CR(PEW)", "PEW"):
        if "CR(PEW)" in context or "PEW" in context:
            return None
        return "possibly extinct in the wild"

    if upper == "EW":
        if "EW" in context:
            return None
        return "extinct in the wild"

    return None
