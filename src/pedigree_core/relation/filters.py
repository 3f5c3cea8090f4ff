"""Composable filters over relationships and genomes.

Queries on a RelationshipGraph take any number of filters and keep an item
only when every filter accepts it. Disjunction and negation are expressed
with OrGenomeFilter / NotGenomeFilter / NotRelationshipFilter.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pedigree_core.exceptions import PedigreeQueryError

from .models import Relationship, RelationshipType, Sex

if TYPE_CHECKING:
    from .graph import RelationshipGraph


class RelationshipFilter(ABC):
    """Accepts or rejects a Relationship."""

    @abstractmethod
    def accept(self, relationship: Relationship) -> bool:
        ...


class GenomeFilter(ABC):
    """Accepts or rejects a genome by name."""

    @abstractmethod
    def accept(self, genome: str) -> bool:
        ...


# ─────────────────────────────────────────
# Relationship filters
# ─────────────────────────────────────────


@dataclass(frozen=True)
class RelationshipTypeFilter(RelationshipFilter):
    """Accepts relationships of one type."""
    rel_type: RelationshipType

    def accept(self, relationship: Relationship) -> bool:
        return relationship.type is self.rel_type


@dataclass(frozen=True)
class FirstInRelationshipFilter(RelationshipFilter):
    """Accepts relationships with ``genome`` in the first position (the parent, for PARENT_CHILD)."""
    genome: str

    def accept(self, relationship: Relationship) -> bool:
        return relationship.first == self.genome


@dataclass(frozen=True)
class SecondInRelationshipFilter(RelationshipFilter):
    """Accepts relationships with ``genome`` in the second position (the child, for PARENT_CHILD)."""
    genome: str

    def accept(self, relationship: Relationship) -> bool:
        return relationship.second == self.genome


class SampleRelationshipFilter(RelationshipFilter):
    """Accepts relationships whose endpoints are both in a set of samples."""

    def __init__(self, samples: Iterable[str]) -> None:
        if isinstance(samples, str):
            raise PedigreeQueryError("SampleRelationshipFilter needs a collection of names, not a single string")
        self.samples = frozenset(samples)

    def accept(self, relationship: Relationship) -> bool:
        return relationship.first in self.samples and relationship.second in self.samples


class NotRelationshipFilter(RelationshipFilter):
    """Accepts relationships rejected by ``delegate``."""

    def __init__(self, delegate: RelationshipFilter) -> None:
        self.delegate = require_relationship_filters(delegate)[0]

    def accept(self, relationship: Relationship) -> bool:
        return not self.delegate.accept(relationship)


# ─────────────────────────────────────────
# Genome filters
# ─────────────────────────────────────────


class HasRelationshipFilter(GenomeFilter):
    """Accepts genomes taking part in at least ``min_count`` relationships of a
    type, in the given role.

    ``first=True`` requires the genome in the first position (e.g. a parent),
    ``first=False`` the second (e.g. a child).
    """

    def __init__(
        self,
        graph: RelationshipGraph,
        rel_type: RelationshipType,
        first: bool,
        min_count: int = 1,
    ) -> None:
        if min_count < 1:
            raise PedigreeQueryError(f"min_count must be at least 1, got {min_count}")
        self.graph = graph
        self.rel_type = rel_type
        self.first = first
        self.min_count = min_count

    def accept(self, genome: str) -> bool:
        if not self.graph.has_genome(genome):
            return False
        matches = 0
        for rel in self.graph.relationships_of(genome):
            in_role = rel.first == genome if self.first else rel.second == genome
            if rel.type is self.rel_type and in_role:
                matches += 1
                if matches == self.min_count:
                    return True
        return False


class PrimaryGenomeFilter(GenomeFilter):
    """Accepts genomes declared explicitly (not merely inferred from a relationship)."""

    def __init__(self, graph: RelationshipGraph) -> None:
        self.graph = graph

    def accept(self, genome: str) -> bool:
        return self.graph.has_genome(genome) and self.graph.attributes(genome).primary


class DiseasedGenomeFilter(GenomeFilter):
    def __init__(self, graph: RelationshipGraph) -> None:
        self.graph = graph

    def accept(self, genome: str) -> bool:
        return self.graph.is_diseased(genome)


class IdFilter(GenomeFilter):
    """Accepts genomes whose name is in ``ids``."""

    def __init__(self, graph: RelationshipGraph, ids: Iterable[str]) -> None:
        self.graph = graph
        self.ids = frozenset(ids)

    def accept(self, genome: str) -> bool:
        return self.graph.has_genome(genome) and genome in self.ids


class FamilyIdFilter(GenomeFilter):
    """Accepts genomes tagged with one of ``family_ids``."""

    def __init__(self, graph: RelationshipGraph, family_ids: Iterable[str]) -> None:
        self.graph = graph
        self.family_ids = frozenset(family_ids)

    def accept(self, genome: str) -> bool:
        if not self.graph.has_genome(genome):
            return False
        return self.graph.attributes(genome).family_id in self.family_ids


class SexFilter(GenomeFilter):
    """Accepts genomes whose recorded sex is one of ``sexes``.

    Genomes missing from the graph count as EITHER.
    """

    def __init__(self, graph: RelationshipGraph, sexes: Sex | Iterable[Sex]) -> None:
        self.graph = graph
        self.sexes = frozenset([sexes] if isinstance(sexes, Sex) else sexes)

    def accept(self, genome: str) -> bool:
        return self.graph.get_sex(genome) in self.sexes


class OrGenomeFilter(GenomeFilter):
    """Accepts genomes accepted by any delegate."""

    def __init__(self, *delegates: GenomeFilter) -> None:
        self.delegates = require_genome_filters(*delegates)

    def accept(self, genome: str) -> bool:
        return any(f.accept(genome) for f in self.delegates)


class NotGenomeFilter(GenomeFilter):
    """Accepts genomes rejected by ``delegate``."""

    def __init__(self, delegate: GenomeFilter) -> None:
        self.delegate = require_genome_filters(delegate)[0]

    def accept(self, genome: str) -> bool:
        return not self.delegate.accept(genome)


class FounderFilter(NotGenomeFilter):
    """Accepts founders: genomes with no recorded parent and no original sample.

    With ``include_half_founders`` genomes with only one recorded parent are
    accepted too.
    """

    def __init__(self, graph: RelationshipGraph, include_half_founders: bool = False) -> None:
        super().__init__(
            OrGenomeFilter(
                HasRelationshipFilter(
                    graph,
                    RelationshipType.PARENT_CHILD,
                    first=False,
                    min_count=2 if include_half_founders else 1,
                ),
                HasRelationshipFilter(graph, RelationshipType.ORIGINAL_DERIVED, first=False),
            )
        )


def require_relationship_filters(*filters: object) -> tuple[RelationshipFilter, ...]:
    for f in filters:
        if not isinstance(f, RelationshipFilter):
            raise PedigreeQueryError(f"Not a relationship filter: {f!r}")
    return filters  # type: ignore[return-value]


def require_genome_filters(*filters: object) -> tuple[GenomeFilter, ...]:
    for f in filters:
        if not isinstance(f, GenomeFilter):
            raise PedigreeQueryError(f"Not a genome filter: {f!r}")
    return filters  # type: ignore[return-value]
