from __future__ import annotations

from pathlib import Path

from pedigree_core.exceptions import PedigreeFormatError
from pedigree_core.relation.graph import RelationshipGraph
from pedigree_core.relation.models import Sex


def add_named_parent(graph: RelationshipGraph, parent: str, child: str, sex: Sex) -> None:
    """Record ``parent`` as the father (MALE) or mother (FEMALE) of ``child``.

    An unknown recorded sex is upgraded to ``sex``; an opposite recorded sex
    raises ConflictingAttributeError before the edge is added.
    """
    graph.add_genome(parent, sex)
    graph.add_parent_child(parent, child)


def undecodable(path: str | Path, error: UnicodeDecodeError) -> PedigreeFormatError:
    return PedigreeFormatError(f"{path} is not UTF-8 text (byte offset {error.start})")
