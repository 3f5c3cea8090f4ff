"""pedigree-core - pedigree graph, nuclear family inference and family ordering.

Builds an in-memory graph of samples and their relationships, extracts
nuclear families from it, and orders those families across generations for
downstream per-family processing.
"""

__version__ = "0.1.0"

from pedigree_core.exceptions import (
    ConflictingAttributeError,
    PedigreeCoreError,
    PedigreeCycleError,
    PedigreeError,
    PedigreeFormatError,
    PedigreeQueryError,
)
from pedigree_core.relation import (
    FamilyUnit,
    RelationshipGraph,
    RelationshipType,
    Sex,
    infer_all_families,
    infer_single_family,
    order_families_and_set_mates,
)

__all__ = [
    "__version__",
    "RelationshipGraph",
    "RelationshipType",
    "Sex",
    "FamilyUnit",
    "infer_single_family",
    "infer_all_families",
    "order_families_and_set_mates",
    "PedigreeCoreError",
    "ConflictingAttributeError",
    "PedigreeQueryError",
    "PedigreeError",
    "PedigreeCycleError",
    "PedigreeFormatError",
]
