"""Pedigree relationship graph, nuclear families, and family ordering.

Provides:
- RelationshipGraph with composable genome and relationship filters
- FamilyUnit validation and single/all-family inference
- Generational ordering of families with mate bookkeeping
"""
from .family import (
    FATHER_INDEX,
    FIRST_CHILD_INDEX,
    MOTHER_INDEX,
    FamilyUnit,
    ParentRoles,
    assign_parent_roles,
    infer_all_families,
    infer_single_family,
    resolve_parents,
)
from .filters import (
    DiseasedGenomeFilter,
    FamilyIdFilter,
    FirstInRelationshipFilter,
    FounderFilter,
    GenomeFilter,
    HasRelationshipFilter,
    IdFilter,
    NotGenomeFilter,
    NotRelationshipFilter,
    OrGenomeFilter,
    PrimaryGenomeFilter,
    RelationshipFilter,
    RelationshipTypeFilter,
    SampleRelationshipFilter,
    SecondInRelationshipFilter,
    SexFilter,
)
from .graph import RelationshipGraph
from .models import GenomeAttributes, Relationship, RelationshipType, Sex
from .ordering import is_monogamous, non_monogamous_samples, order_families_and_set_mates

__all__ = [
    # Graph
    "RelationshipGraph",
    "GenomeAttributes",
    "Relationship",
    "RelationshipType",
    "Sex",
    # Relationship filters
    "RelationshipFilter",
    "RelationshipTypeFilter",
    "FirstInRelationshipFilter",
    "SecondInRelationshipFilter",
    "SampleRelationshipFilter",
    "NotRelationshipFilter",
    # Genome filters
    "GenomeFilter",
    "HasRelationshipFilter",
    "PrimaryGenomeFilter",
    "DiseasedGenomeFilter",
    "IdFilter",
    "FamilyIdFilter",
    "SexFilter",
    "OrGenomeFilter",
    "NotGenomeFilter",
    "FounderFilter",
    # Families
    "FamilyUnit",
    "FATHER_INDEX",
    "MOTHER_INDEX",
    "FIRST_CHILD_INDEX",
    "ParentRoles",
    "assign_parent_roles",
    "resolve_parents",
    "infer_single_family",
    "infer_all_families",
    # Ordering
    "is_monogamous",
    "non_monogamous_samples",
    "order_families_and_set_mates",
]
