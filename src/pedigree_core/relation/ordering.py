"""Processing order for families spanning several generations.

A family must be processed after every family that produced one of its
parents. Ordering uses Kahn's algorithm over families keyed by their
(father, mother) pair; as a side effect each family learns how many
families each of its parents belongs to.
"""
from __future__ import annotations

from collections import deque
from collections.abc import Iterable

import structlog

from pedigree_core.exceptions import PedigreeCycleError

from .family import FamilyUnit

logger = structlog.get_logger(__name__)

ParentPair = tuple[str, str]


def _pair(family: FamilyUnit) -> ParentPair:
    return (family.father, family.mother)


def is_monogamous(families: Iterable[FamilyUnit]) -> bool:
    """True if no sample is a parent in more than one family."""
    parents: set[str] = set()
    for f in families:
        for parent in (f.father, f.mother):
            if parent in parents:
                return False
            parents.add(parent)
    return True


def non_monogamous_samples(families: Iterable[FamilyUnit]) -> list[str]:
    """Samples that are a parent in more than one family, in order of first repeat."""
    parents: set[str] = set()
    repeated: dict[str, None] = {}
    for f in families:
        for parent in (f.father, f.mother):
            if parent in parents:
                repeated[parent] = None
            parents.add(parent)
    return list(repeated)


def order_families_and_set_mates(families: Iterable[FamilyUnit]) -> list[FamilyUnit]:
    """Order families so that each follows the families its parents were children in.

    Families ready at the same time keep their input order, so a stable
    input order (e.g. sorted by father then mother) gives a stable result.

    On success also sets, for every family:
    - ``father_distinct_mates`` / ``mother_distinct_mates``: number of
      families that parent belongs to
    - ``father_family_id`` / ``mother_family_id``: zero-based position of
      this family among that parent's families, in input order

    Raises:
        PedigreeCycleError: a family is its own descendant; no partial
            order is returned and no family is annotated.
    """
    by_pair: dict[ParentPair, FamilyUnit] = {}
    for f in families:
        by_pair.setdefault(_pair(f), f)

    # parent -> families they are a parent in, first-seen order
    as_parent: dict[str, list[FamilyUnit]] = {}
    for f in by_pair.values():
        as_parent.setdefault(f.father, []).append(f)
        as_parent.setdefault(f.mother, []).append(f)

    # Count edges from each family to the next-generation families of its children
    incoming: dict[ParentPair, int] = dict.fromkeys(by_pair, 0)
    for f in by_pair.values():
        for child in f.children:
            for next_gen in as_parent.get(child, ()):
                incoming[_pair(next_gen)] += 1

    ready: deque[FamilyUnit] = deque()
    for pair, count in list(incoming.items()):
        if count == 0:
            ready.append(by_pair[pair])
            del incoming[pair]

    ordered: list[FamilyUnit] = []
    while ready:
        current = ready.popleft()
        ordered.append(current)
        for child in current.children:
            for next_gen in as_parent.get(child, ()):
                pair = _pair(next_gen)
                incoming[pair] -= 1
                if incoming[pair] == 0:
                    ready.append(next_gen)
                    del incoming[pair]

    if incoming:
        unresolved = list(incoming)
        names = ", ".join(f"{father}+{mother}" for father, mother in unresolved)
        raise PedigreeCycleError(
            f"Cycles in pedigree detected, check pedigree structure (unresolved families: {names})",
            unresolved=unresolved,
        )

    for f in by_pair.values():
        f.father_distinct_mates = len(as_parent[f.father])
        f.mother_distinct_mates = len(as_parent[f.mother])
    for parent, member_of in as_parent.items():
        for family_id, f in enumerate(member_of):
            if f.father == parent:
                f.father_family_id = family_id
            else:
                f.mother_family_id = family_id

    logger.debug(
        "families_ordered",
        families=len(ordered),
        non_monogamous=len([p for p, fams in as_parent.items() if len(fams) > 1]),
    )
    return ordered
