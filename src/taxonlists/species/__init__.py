"""Species domain package.

This package contains the record side of list generation:
- SpeciesRecord: Immutable taxon record with lineage and status
- names: Scientific and common name helpers
- status: Conservation status descriptors and formatting rules
- source: Record export loading and scope filtering
- name_store: Common-name store and redirect lookups used for naming
"""

from taxonlists.species.models import SpeciesRecord
from taxonlists.species.source import RecordSet, filter_records, load_records

__all__ = [
    "RecordSet",
    "SpeciesRecord",
    "filter_records",
    "load_records",
]
