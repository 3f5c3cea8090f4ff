"""In-memory relationship graph over named genomes.

Stores:
- the set of genomes and their typed attributes
- typed relationships, indexed under both endpoints

Filtered views are always fresh graphs sharing no mutable state with the
source, so they can be handed to independent workers.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator

import structlog

from pedigree_core.exceptions import ConflictingAttributeError

from .filters import (
    GenomeFilter,
    RelationshipFilter,
    SampleRelationshipFilter,
    require_genome_filters,
    require_relationship_filters,
)
from .models import GenomeAttributes, Relationship, RelationshipType, Sex

logger = structlog.get_logger(__name__)

RelationshipKey = tuple[str, str, RelationshipType]


class RelationshipGraph:
    """Genomes, their attributes, and typed pairwise relationships.

    Example:
        >>> from pedigree_core.relation.filters import FounderFilter
        >>> graph = RelationshipGraph()
        >>> graph.add_genome("dad", Sex.MALE).disease = True
        >>> rel = graph.add_parent_child("dad", "son")
        >>> graph.genomes_matching(FounderFilter(graph))
        ['dad']
    """

    def __init__(self) -> None:
        self._attributes: dict[str, GenomeAttributes] = {}
        # genome -> edges touching it, keyed by (first, second, type)
        self._index: dict[str, dict[RelationshipKey, Relationship]] = {}
        # every edge exactly once, in insertion order
        self._edges: dict[RelationshipKey, Relationship] = {}

    # ─────────────────────────────────────────
    # Genomes
    # ─────────────────────────────────────────

    def genomes(self) -> list[str]:
        """All genome names, sorted."""
        return sorted(self._attributes)

    def has_genome(self, genome: str) -> bool:
        return genome in self._attributes

    def __contains__(self, genome: object) -> bool:
        return genome in self._attributes

    def __len__(self) -> int:
        return len(self._attributes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.genomes())

    def attributes(self, genome: str) -> GenomeAttributes:
        """Mutable attributes of a genome. Raises KeyError for unknown genomes."""
        return self._attributes[genome]

    def get_sex(self, genome: str) -> Sex:
        """Recorded sex, EITHER when unknown or when the genome is absent."""
        attrs = self._attributes.get(genome)
        return Sex.EITHER if attrs is None else attrs.sex

    def is_diseased(self, genome: str) -> bool:
        attrs = self._attributes.get(genome)
        return attrs is not None and attrs.disease is True

    def add_genome(self, genome: str, sex: Sex | str | None = None) -> GenomeAttributes:
        """Declare a genome, returning its attributes.

        Idempotent. A known sex (MALE/FEMALE) is recorded if none is recorded
        yet; recording a different known sex raises ConflictingAttributeError
        and leaves the graph unchanged. EITHER/None never conflicts.
        """
        requested = Sex.parse(sex)
        attrs = self._attributes.get(genome)
        if attrs is not None and requested.is_known and attrs.sex.is_known and attrs.sex is not requested:
            raise ConflictingAttributeError(
                genome=genome,
                attribute="sex",
                existing=attrs.sex.value,
                requested=requested.value,
            )
        if attrs is None:
            attrs = GenomeAttributes()
            self._attributes[genome] = attrs
            self._index[genome] = {}
        if requested.is_known:
            attrs.sex = requested
        return attrs

    # ─────────────────────────────────────────
    # Relationships
    # ─────────────────────────────────────────

    def add_relationship(self, rel_type: RelationshipType, first: str, second: str) -> Relationship:
        """Add an edge (creating missing endpoints) and return it.

        Adding an edge that already exists returns the stored edge, so
        properties attached to it are preserved.
        """
        return self._insert(Relationship(first, second, rel_type))

    def add_parent_child(self, parent: str, child: str) -> Relationship:
        return self.add_relationship(RelationshipType.PARENT_CHILD, parent, child)

    def _insert(self, rel: Relationship) -> Relationship:
        existing = self._edges.get(rel.key)
        if existing is not None:
            return existing
        self.add_genome(rel.first)
        self.add_genome(rel.second)
        self._edges[rel.key] = rel
        self._index[rel.first][rel.key] = rel
        self._index[rel.second][rel.key] = rel
        return rel

    def relationships_of(self, genome: str, *filters: RelationshipFilter) -> list[Relationship]:
        """Edges touching ``genome`` accepted by every filter."""
        require_relationship_filters(*filters)
        edges = self._index.get(genome, {})
        return [r for r in edges.values() if all_accepted_relationship(r, filters)]

    def relationships_matching(self, *filters: RelationshipFilter) -> list[Relationship]:
        """All edges in the graph accepted by every filter, each once."""
        require_relationship_filters(*filters)
        return [r for r in self._edges.values() if all_accepted_relationship(r, filters)]

    def relationships_of_type(self, rel_type: RelationshipType) -> list[Relationship]:
        return [r for r in self._edges.values() if r.type is rel_type]

    def parents_of(self, child: str) -> list[str]:
        """Recorded PARENT_CHILD parents of ``child``."""
        return [
            r.first
            for r in self._index.get(child, {}).values()
            if r.type is RelationshipType.PARENT_CHILD and r.second == child
        ]

    def children_of(self, parent: str) -> list[str]:
        return [
            r.second
            for r in self._index.get(parent, {}).values()
            if r.type is RelationshipType.PARENT_CHILD and r.first == parent
        ]

    # ─────────────────────────────────────────
    # Queries and derived graphs
    # ─────────────────────────────────────────

    def genomes_matching(self, *filters: GenomeFilter) -> list[str]:
        """Sorted genome names accepted by every filter."""
        require_genome_filters(*filters)
        return [g for g in self.genomes() if all_accepted_genome(g, filters)]

    def filter_by_relationships(self, *filters: RelationshipFilter) -> RelationshipGraph:
        """Copy with every genome but only the edges accepted by the filters."""
        require_relationship_filters(*filters)
        result = RelationshipGraph()
        for genome in self.genomes():
            result.add_genome(genome).copy_from(self._attributes[genome])
        for rel in self.relationships_matching(*filters):
            result._insert(_copy_relationship(rel))
        logger.debug(
            "filtered_by_relationships",
            genomes=len(result),
            relationships=len(result._edges),
            dropped=len(self._edges) - len(result._edges),
        )
        return result

    def filter_by_genomes(self, *filters: GenomeFilter) -> RelationshipGraph:
        """Copy with only accepted genomes and the edges between them."""
        require_genome_filters(*filters)
        result = RelationshipGraph()
        kept = self.genomes_matching(*filters)
        for genome in kept:
            result.add_genome(genome).copy_from(self._attributes[genome])
        for rel in self.relationships_matching(SampleRelationshipFilter(kept)):
            result._insert(_copy_relationship(rel))
        logger.debug(
            "filtered_by_genomes",
            genomes=len(result),
            dropped=len(self) - len(result),
            relationships=len(result._edges),
        )
        return result

    def are_related(self, genome1: str, genome2: str) -> bool:
        """True for the same genome or two genomes sharing any edge."""
        if genome1 == genome2:
            return True
        edges = self._index.get(genome1)
        if not edges or genome2 not in self._attributes:
            return False
        return any(rel.involves(genome2) for rel in edges.values())

    def count_disconnected_groups(self, genomes: Iterable[str]) -> int:
        """Number of connected groups formed by ``genomes``.

        Only edges between members of ``genomes`` connect them. Pairs are
        visited once; when a genome joins two groups the higher group id is
        rewritten to the lower one everywhere already assigned. Quadratic in
        the number of genomes, which pedigrees keep small.
        """
        names = list(dict.fromkeys(genomes))
        groups = [0] * len(names)
        next_id = 1
        for j, g1 in enumerate(names):
            if groups[j] == 0:
                groups[j] = next_id
                next_id += 1
            for i in range(j + 1, len(names)):
                if not self.are_related(g1, names[i]):
                    continue
                if groups[i] == 0:
                    groups[i] = groups[j]
                elif groups[i] != groups[j]:
                    low, high = sorted((groups[i], groups[j]))
                    groups = [low if g == high else g for g in groups]
        return len(set(groups))

    def __str__(self) -> str:
        lines = [f"Genomes: {self.genomes()}", "GenomeProperties:"]
        for genome in self.genomes():
            props = self._attributes[genome].model_dump(mode="json", exclude_defaults=True)
            lines.append(f"  {genome}: {props}")
        lines.append("Relationships:")
        lines.extend(f"  {rel}" for rel in self._edges.values())
        return "\n".join(lines) + "\n"


def all_accepted_relationship(rel: Relationship, filters: Iterable[RelationshipFilter]) -> bool:
    return all(f.accept(rel) for f in filters)


def all_accepted_genome(genome: str, filters: Iterable[GenomeFilter]) -> bool:
    return all(f.accept(genome) for f in filters)


def _copy_relationship(rel: Relationship) -> Relationship:
    return Relationship(rel.first, rel.second, rel.type, dict(rel.properties))
