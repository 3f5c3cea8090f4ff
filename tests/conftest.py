from __future__ import annotations

import pytest
import structlog

from pedigree_core.relation import RelationshipGraph, Sex


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def nuclear_graph() -> RelationshipGraph:
    """father (male, unaffected), mother (affected), childa (male), childb (female, affected)."""
    graph = RelationshipGraph()
    graph.add_genome("father", Sex.MALE).disease = False
    graph.add_genome("mother", Sex.FEMALE).disease = True
    graph.add_genome("childa", Sex.MALE).disease = False
    graph.add_genome("childb", Sex.FEMALE).disease = True
    for parent in ("father", "mother"):
        for child in ("childa", "childb"):
            graph.add_parent_child(parent, child)
    return graph


@pytest.fixture
def three_generations() -> RelationshipGraph:
    """gf+gm -> dad; dad+mum -> kid1, kid2; dad+mum2 -> kid3. All sexes known."""
    graph = RelationshipGraph()
    for name in ("gf", "dad", "kid1", "kid3"):
        graph.add_genome(name, Sex.MALE)
    for name in ("gm", "mum", "mum2", "kid2"):
        graph.add_genome(name, Sex.FEMALE)
    for parent in ("gf", "gm"):
        graph.add_parent_child(parent, "dad")
    for parent in ("dad", "mum"):
        graph.add_parent_child(parent, "kid1")
        graph.add_parent_child(parent, "kid2")
    for parent in ("dad", "mum2"):
        graph.add_parent_child(parent, "kid3")
    return graph
