"""Nuclear family units inferred from a relationship graph.

A FamilyUnit is a father, a mother, and the children they share. Member
slots are fixed for the family's lifetime and index every per-sample array
downstream:

- FATHER_INDEX (0): father
- MOTHER_INDEX (1): mother
- FIRST_CHILD_INDEX (2) onwards: children in ascending name order
"""
from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from enum import Enum

import structlog

from pedigree_core.exceptions import (
    DuplicateParentError,
    NonFamilyParentError,
    ParentAsChildError,
    PedigreeError,
    SameParentError,
    UnresolvedParentSexError,
    WrongParentCountError,
)

from .filters import RelationshipFilter, RelationshipTypeFilter, SampleRelationshipFilter, SecondInRelationshipFilter
from .graph import RelationshipGraph
from .models import RelationshipType, Sex

logger = structlog.get_logger(__name__)

FATHER_INDEX = 0
MOTHER_INDEX = 1
FIRST_CHILD_INDEX = 2

_PARENT_CHILD = RelationshipTypeFilter(RelationshipType.PARENT_CHILD)


class ParentRoles(str, Enum):
    """Outcome of telling two parents apart by recorded sex."""
    FIRST_IS_FATHER = "first_is_father"
    SECOND_IS_FATHER = "second_is_father"
    AMBIGUOUS = "ambiguous"


def assign_parent_roles(sex_a: Sex, sex_b: Sex) -> ParentRoles:
    """Decide which of two parents is the father.

    Rules, first match wins:
    1. A is FEMALE or B is MALE -> B is the father
    2. A is MALE or B is FEMALE -> A is the father
    3. otherwise AMBIGUOUS

    Contradictory input (both MALE, both FEMALE) resolves by rule 1.
    """
    if sex_a is Sex.FEMALE or sex_b is Sex.MALE:
        return ParentRoles.SECOND_IS_FATHER
    if sex_a is Sex.MALE or sex_b is Sex.FEMALE:
        return ParentRoles.FIRST_IS_FATHER
    return ParentRoles.AMBIGUOUS


def resolve_parents(graph: RelationshipGraph, a: str, b: str, lenient: bool = False) -> tuple[str, str]:
    """Return ``(father, mother)`` for the parent pair ``a``, ``b``.

    When neither sex helps, lenient mode takes ``a`` as the father. Strict
    mode raises UnresolvedParentSexError unless the result has a MALE father
    and a FEMALE mother.
    """
    roles = assign_parent_roles(graph.get_sex(a), graph.get_sex(b))
    if roles is ParentRoles.SECOND_IS_FATHER:
        father, mother = b, a
    elif roles is ParentRoles.FIRST_IS_FATHER:
        father, mother = a, b
    elif lenient:
        father, mother = a, b
    else:
        raise UnresolvedParentSexError(
            sample=a,
            reason=f"Cannot determine sex of either parent ('{a}' and '{b}')",
        )
    if not lenient and (graph.get_sex(father) is not Sex.MALE or graph.get_sex(mother) is not Sex.FEMALE):
        raise UnresolvedParentSexError(
            sample=father,
            reason=f"Parents '{father}' and '{mother}' are not recorded as male and female",
        )
    return father, mother


class FamilyUnit:
    """A validated nuclear family within a RelationshipGraph.

    Construction checks:
    - father and mother differ
    - no child is also the father or mother
    - every child has exactly two PARENT_CHILD parents, namely father and mother

    The ordering annotations (``*_family_id``, ``*_distinct_mates``) are
    written by ``order_families_and_set_mates``.

    Example:
        >>> family = FamilyUnit.from_explicit_members("dad", "mom", "son", "daughter")
        >>> family.children
        ('daughter', 'son')
        >>> family.slot_index("son")
        3
    """

    def __init__(
        self,
        graph: RelationshipGraph,
        father: str,
        mother: str,
        children: Iterable[str] = (),
    ) -> None:
        if father == mother:
            raise SameParentError(
                sample=father,
                reason=f"Mother and father cannot be the same sample: '{father}'",
            )
        accepted: set[str] = set()
        for child in children:
            _check_child(graph, father, mother, child)
            accepted.add(child)

        self._graph = graph
        self._father = father
        self._mother = mother
        self._children = tuple(sorted(accepted))
        self._members = (father, mother) + self._children
        self._diseased = tuple(graph.is_diseased(m) for m in self._members)
        self._sample_ids = list(range(len(self._members)))

        self.father_family_id = 0
        self.mother_family_id = 0
        self.father_distinct_mates = 1
        self.mother_distinct_mates = 1

    @classmethod
    def from_explicit_members(cls, father: str, mother: str, *children: str) -> FamilyUnit:
        """Build a family from names alone, on a private graph holding just its edges."""
        graph = RelationshipGraph()
        graph.add_genome(father)
        graph.add_genome(mother)
        for child in children:
            graph.add_parent_child(father, child)
            graph.add_parent_child(mother, child)
        return cls(graph, father, mother, children)

    # ─────────────────────────────────────────
    # Members
    # ─────────────────────────────────────────

    @property
    def graph(self) -> RelationshipGraph:
        return self._graph

    @property
    def father(self) -> str:
        return self._father

    @property
    def mother(self) -> str:
        return self._mother

    @property
    def children(self) -> tuple[str, ...]:
        return self._children

    @property
    def members(self) -> tuple[str, ...]:
        """Father, mother, then children: position is the slot index."""
        return self._members

    @property
    def num_children(self) -> int:
        return len(self._children)

    def size(self) -> int:
        return len(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def slot_index(self, member: str) -> int:
        try:
            return self._members.index(member)
        except ValueError:
            raise ValueError(f"'{member}' is not a member of this family") from None

    def is_parent(self, genome: str) -> bool:
        return genome == self._father or genome == self._mother

    # ─────────────────────────────────────────
    # Output column mapping
    # ─────────────────────────────────────────

    @property
    def sample_ids(self) -> list[int]:
        """Output column for each slot; defaults to the slot index itself."""
        return self._sample_ids

    def set_sample_id(self, index: int, sample_id: int) -> None:
        self._sample_ids[index] = sample_id

    def set_sample_ids(self, sample_names: Sequence[str]) -> None:
        """Point each slot at its member's position in ``sample_names`` (-1 if absent)."""
        positions = {name: i for i, name in reversed(list(enumerate(sample_names)))}
        self._sample_ids = [positions.get(m, -1) for m in self._members]

    # ─────────────────────────────────────────
    # Disease status
    # ─────────────────────────────────────────

    def is_diseased(self, member: str | int) -> bool:
        """Disease status by slot index, or by name (False for non-members unknown to the graph)."""
        if isinstance(member, int):
            return self._diseased[member]
        return self._graph.is_diseased(member)

    def is_one_parent_diseased(self) -> bool:
        """Exactly one of father and mother is affected."""
        return self._diseased[FATHER_INDEX] != self._diseased[MOTHER_INDEX]

    # ─────────────────────────────────────────
    # Identity
    # ─────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FamilyUnit):
            return NotImplemented
        return self._graph is other._graph and self._father == other._father and self._mother == other._mother

    def __hash__(self) -> int:
        return hash((self._father, self._mother))

    def __repr__(self) -> str:
        return f"FamilyUnit(father={self._father!r}, mother={self._mother!r}, children={list(self._children)!r})"

    def __str__(self) -> str:
        sex = self._graph.get_sex
        ids = self._sample_ids
        lines = [
            f"Father: {self._father} sex: {sex(self._father).name} id:{ids[FATHER_INDEX]}",
            f"Mother: {self._mother} sex: {sex(self._mother).name} id:{ids[MOTHER_INDEX]}",
        ]
        for i, child in enumerate(self._children):
            lines.append(f"Child {i + 1}: {child} sex: {sex(child).name} id:{ids[FIRST_CHILD_INDEX + i]}")
        return "\n".join(lines) + "\n"


def _check_child(graph: RelationshipGraph, father: str, mother: str, child: str) -> None:
    rels = graph.relationships_of(child, _PARENT_CHILD, SecondInRelationshipFilter(child))
    if len(rels) != 2:
        raise WrongParentCountError(
            sample=child,
            reason=f"Child sample: '{child}' has {len(rels)} parents",
        )
    first, second = rels[0].first, rels[1].first
    # RelationshipGraph collapses repeated edges, so two edges never share a parent
    if first == second:
        raise DuplicateParentError(
            sample=child,
            reason=f"Child sample: '{child}' had the same parent '{first}' specified twice",
        )
    if child == father or child == mother:
        raise ParentAsChildError(
            sample=child,
            reason=f"The sample: '{child}' cannot be both a parent and a child in the family",
        )
    for parent in (first, second):
        if parent != father and parent != mother:
            raise NonFamilyParentError(
                sample=child,
                reason=f"The sample: '{child}' had non-family parent '{parent}'",
            )


def infer_single_family(graph: RelationshipGraph) -> FamilyUnit:
    """Treat the whole graph as one nuclear family.

    Exactly two genomes may act as parents; everything else reached by a
    PARENT_CHILD edge must be a child of both. If neither parent's sex is
    known the alphabetically first one is assumed to be the father (logged
    as a warning: a heuristic, not a guarantee).
    """
    parents: list[str] = []
    children: set[str] = set()
    for name in graph.genomes():
        for rel in graph.relationships_of(name, _PARENT_CHILD):
            if rel.first == name:
                if name not in parents:
                    if len(parents) == 2:
                        raise WrongParentCountError(sample=name, reason="There are more than two parents specified")
                    parents.append(name)
            else:
                children.add(name)
    if len(parents) < 2:
        raise WrongParentCountError(
            sample=parents[0] if parents else "",
            reason="There are fewer than two parents specified",
        )

    first, second = parents
    roles = assign_parent_roles(graph.get_sex(first), graph.get_sex(second))
    if roles is ParentRoles.SECOND_IS_FATHER:
        father, mother = second, first
    else:
        if roles is ParentRoles.AMBIGUOUS:
            logger.warning("parent_sex_unknown", assumed_father=first, assumed_mother=second)
        father, mother = first, second
    return FamilyUnit(graph, father, mother, children)


def infer_all_families(
    graph: RelationshipGraph,
    lenient: bool = False,
    sample_filter: Collection[str] | None = None,
    skip_invalid: bool = False,
) -> list[FamilyUnit]:
    """Extract every complete nuclear family, sorted by (father, mother).

    Children with exactly two parent edges (counting only edges between
    members of ``sample_filter`` when given) are grouped by their parent
    pair. Strict mode (``lenient=False``) drops a group unless its father
    is MALE, its mother FEMALE, and every child's sex is known. Lenient mode
    keeps groups of unknown sex, taking the alphabetically first parent as
    father.

    A group failing family validation raises its PedigreeError, or is logged
    and skipped when ``skip_invalid`` is set.
    """
    filters: list[RelationshipFilter] = [_PARENT_CHILD]
    if sample_filter is not None:
        filters.append(SampleRelationshipFilter(sample_filter))

    groups: dict[tuple[str, str], set[str]] = {}
    for child in graph.genomes():
        parents = graph.relationships_of(child, SecondInRelationshipFilter(child), *filters)
        if len(parents) == 2:
            key = tuple(sorted((parents[0].first, parents[1].first)))
            groups.setdefault(key, set()).add(child)  # type: ignore[arg-type]

    families: list[FamilyUnit] = []
    for (a, b), children in groups.items():
        try:
            father, mother = resolve_parents(graph, a, b, lenient=lenient)
        except UnresolvedParentSexError:
            logger.debug("family_dropped_parent_sex", parents=[a, b])
            continue
        if not lenient and not all(graph.get_sex(c).is_known for c in children):
            logger.debug("family_dropped_child_sex", father=father, mother=mother)
            continue
        try:
            families.append(FamilyUnit(graph, father, mother, children))
        except PedigreeError as e:
            if not skip_invalid:
                raise
            logger.warning("family_skipped", father=father, mother=mother, sample=e.sample, reason=e.reason)

    families.sort(key=lambda f: (f.father, f.mother))
    logger.debug("families_inferred", count=len(families), candidates=len(groups), lenient=lenient)
    return families
