"""Tests for the relationship graph and its filters."""
from __future__ import annotations

import pytest

from pedigree_core.exceptions import ConflictingAttributeError, PedigreeQueryError
from pedigree_core.relation import (
    DiseasedGenomeFilter,
    FamilyIdFilter,
    FirstInRelationshipFilter,
    FounderFilter,
    HasRelationshipFilter,
    IdFilter,
    NotGenomeFilter,
    NotRelationshipFilter,
    OrGenomeFilter,
    PrimaryGenomeFilter,
    Relationship,
    RelationshipGraph,
    RelationshipType,
    RelationshipTypeFilter,
    SampleRelationshipFilter,
    SecondInRelationshipFilter,
    Sex,
    SexFilter,
)

PC = RelationshipType.PARENT_CHILD
OD = RelationshipType.ORIGINAL_DERIVED


class TestSex:
    """Tests for Sex parsing."""

    def test_parse_case_insensitive(self):
        """Test names parse regardless of case."""
        assert Sex.parse("MALE") is Sex.MALE
        assert Sex.parse(" female ") is Sex.FEMALE

    def test_parse_unknown(self):
        """Test None and unrecognised values map to EITHER."""
        assert Sex.parse(None) is Sex.EITHER
        assert Sex.parse("unknown") is Sex.EITHER
        assert not Sex.EITHER.is_known


class TestRelationship:
    """Tests for the Relationship edge."""

    def test_identity_ignores_properties(self):
        """Test equality and hashing use only the triple."""
        a = Relationship("x", "y", PC, {"contamination": "0.1"})
        b = Relationship("x", "y", PC)
        assert a == b
        assert hash(a) == hash(b)
        assert a != Relationship("y", "x", PC)
        assert a != Relationship("x", "y", OD)

    def test_contamination(self):
        """Test contamination properties parse as floats."""
        rel = Relationship("normal", "tumor", OD)
        assert rel.contamination is None
        rel.set_property("contamination", "0.03")
        rel.set_property("reverse-contamination", "0.5")
        assert rel.contamination == pytest.approx(0.03)
        assert rel.reverse_contamination == pytest.approx(0.5)

    def test_other_endpoint(self):
        """Test navigating to the opposite endpoint."""
        rel = Relationship("dad", "son", PC)
        assert rel.other("dad") == "son"
        assert rel.other("son") == "dad"
        assert rel.involves("dad")
        assert not rel.involves("mom")

    def test_str(self):
        """Test string form."""
        rel = Relationship("a", "b", OD, {"contamination": "0.03"})
        assert str(rel) == "ORIGINAL_DERIVED (a-b) :: {'contamination': '0.03'}"


class TestAddGenome:
    """Tests for genome declaration."""

    def test_idempotent(self):
        """Test declaring the same genome twice with the same sex."""
        graph = RelationshipGraph()
        graph.add_genome("x", Sex.MALE)
        graph.add_genome("x", Sex.MALE)
        assert graph.genomes() == ["x"]
        assert graph.get_sex("x") is Sex.MALE

    def test_conflicting_sex(self):
        """Test a different known sex is rejected without mutation."""
        graph = RelationshipGraph()
        graph.add_genome("x", Sex.MALE)
        with pytest.raises(ConflictingAttributeError) as exc_info:
            graph.add_genome("x", Sex.FEMALE)
        assert exc_info.value.genome == "x"
        assert exc_info.value.existing == "male"
        assert exc_info.value.requested == "female"
        assert graph.get_sex("x") is Sex.MALE

    def test_unknown_sex_never_conflicts(self):
        """Test EITHER and None leave a recorded sex alone."""
        graph = RelationshipGraph()
        graph.add_genome("x", Sex.FEMALE)
        graph.add_genome("x", Sex.EITHER)
        graph.add_genome("x")
        assert graph.get_sex("x") is Sex.FEMALE

    def test_unknown_sex_is_upgraded(self):
        """Test a known sex replaces EITHER."""
        graph = RelationshipGraph()
        graph.add_genome("x")
        graph.add_genome("x", "male")
        assert graph.get_sex("x") is Sex.MALE

    def test_attributes(self):
        """Test attributes of absent genomes."""
        graph = RelationshipGraph()
        assert graph.get_sex("ghost") is Sex.EITHER
        assert not graph.is_diseased("ghost")
        with pytest.raises(KeyError):
            graph.attributes("ghost")


class TestRelationships:
    """Tests for edge insertion and queries."""

    def test_deduplicated(self):
        """Test the same triple added twice is stored once."""
        graph = RelationshipGraph()
        first = graph.add_parent_child("a", "b")
        first.set_property("note", "kept")
        second = graph.add_parent_child("a", "b")
        assert second is first
        assert len(graph.relationships_matching()) == 1
        assert second.get_property("note") == "kept"

    def test_endpoints_created(self):
        """Test edge endpoints become genomes."""
        graph = RelationshipGraph()
        graph.add_relationship(OD, "normal", "tumor")
        assert graph.genomes() == ["normal", "tumor"]
        assert "tumor" in graph
        assert len(graph) == 2

    def test_relationships_of(self, nuclear_graph):
        """Test per-genome queries are conjunctive."""
        rels = nuclear_graph.relationships_of("childa", RelationshipTypeFilter(PC), SecondInRelationshipFilter("childa"))
        assert {r.first for r in rels} == {"father", "mother"}
        assert nuclear_graph.relationships_of("father", FirstInRelationshipFilter("mother")) == []
        assert nuclear_graph.relationships_of("ghost") == []

    def test_parents_and_children(self, nuclear_graph):
        """Test parent/child convenience lookups."""
        assert sorted(nuclear_graph.parents_of("childb")) == ["father", "mother"]
        assert sorted(nuclear_graph.children_of("mother")) == ["childa", "childb"]

    def test_not_filter(self, nuclear_graph):
        """Test negated relationship filters."""
        nuclear_graph.add_relationship(OD, "childa", "childa-tumor")
        others = nuclear_graph.relationships_matching(NotRelationshipFilter(RelationshipTypeFilter(PC)))
        assert others == [Relationship("childa", "childa-tumor", OD)]

    def test_non_filter_rejected(self, nuclear_graph):
        """Test passing something that is not a filter."""
        with pytest.raises(PedigreeQueryError):
            nuclear_graph.relationships_matching("PARENT_CHILD")
        with pytest.raises(PedigreeQueryError):
            nuclear_graph.genomes_matching(RelationshipTypeFilter(PC))

    def test_sample_filter_rejects_plain_string(self):
        """Test a bare string is not taken as a set of characters."""
        with pytest.raises(PedigreeQueryError):
            SampleRelationshipFilter("abc")


class TestGenomeFilters:
    """Tests for genome filters."""

    def test_sex_and_disease(self, nuclear_graph):
        """Test sex and disease filters."""
        assert nuclear_graph.genomes_matching(SexFilter(nuclear_graph, Sex.MALE)) == ["childa", "father"]
        assert nuclear_graph.genomes_matching(DiseasedGenomeFilter(nuclear_graph)) == ["childb", "mother"]

    def test_primary(self, nuclear_graph):
        """Test primary filter."""
        nuclear_graph.attributes("childa").primary = True
        assert nuclear_graph.genomes_matching(PrimaryGenomeFilter(nuclear_graph)) == ["childa"]

    def test_id_and_family_id(self, nuclear_graph):
        """Test id-based filters."""
        nuclear_graph.attributes("father").family_id = "fam1"
        assert nuclear_graph.genomes_matching(IdFilter(nuclear_graph, ["mother", "ghost"])) == ["mother"]
        assert nuclear_graph.genomes_matching(FamilyIdFilter(nuclear_graph, ["fam1"])) == ["father"]

    def test_or_and_not(self, nuclear_graph):
        """Test combinators."""
        either = OrGenomeFilter(IdFilter(nuclear_graph, ["father"]), IdFilter(nuclear_graph, ["mother"]))
        assert nuclear_graph.genomes_matching(either) == ["father", "mother"]
        assert nuclear_graph.genomes_matching(NotGenomeFilter(either)) == ["childa", "childb"]

    def test_has_relationship(self, nuclear_graph):
        """Test role and minimum count."""
        parents = HasRelationshipFilter(nuclear_graph, PC, first=True, min_count=2)
        assert nuclear_graph.genomes_matching(parents) == ["father", "mother"]
        three = HasRelationshipFilter(nuclear_graph, PC, first=True, min_count=3)
        assert nuclear_graph.genomes_matching(three) == []

    def test_has_relationship_min_count(self, nuclear_graph):
        """Test a minimum count below one is a malformed query."""
        with pytest.raises(PedigreeQueryError):
            HasRelationshipFilter(nuclear_graph, PC, first=True, min_count=0)

    def test_founders(self, nuclear_graph):
        """Test founders have no parents and no original."""
        nuclear_graph.add_relationship(OD, "father", "father-tumor")
        nuclear_graph.add_parent_child("father", "halfsib")
        assert nuclear_graph.genomes_matching(FounderFilter(nuclear_graph)) == ["father", "mother"]
        with_halfs = FounderFilter(nuclear_graph, include_half_founders=True)
        assert nuclear_graph.genomes_matching(with_halfs) == ["father", "halfsib", "mother"]


class TestDerivedGraphs:
    """Tests for filtered copies."""

    def test_filter_by_relationships(self, nuclear_graph):
        """Test every genome survives but only accepted edges."""
        nuclear_graph.add_relationship(OD, "mother", "mother-tumor").set_property("contamination", "0.2")
        derived = nuclear_graph.filter_by_relationships(RelationshipTypeFilter(OD))
        assert derived.genomes() == nuclear_graph.genomes()
        assert derived.relationships_matching() == [Relationship("mother", "mother-tumor", OD)]
        assert derived.relationships_matching()[0].contamination == pytest.approx(0.2)
        assert nuclear_graph.relationships_matching(RelationshipTypeFilter(PC))

    def test_filter_by_genomes(self, nuclear_graph):
        """Test only edges between kept genomes survive."""
        derived = nuclear_graph.filter_by_genomes(IdFilter(nuclear_graph, ["father", "childa"]))
        assert derived.genomes() == ["childa", "father"]
        assert derived.relationships_matching() == [Relationship("father", "childa", PC)]
        assert derived.get_sex("father") is Sex.MALE

    def test_copies_are_unaliased(self, nuclear_graph):
        """Test mutating a copy leaves the source alone."""
        nuclear_graph.attributes("father").extra["lab"] = "x"
        derived = nuclear_graph.filter_by_genomes(IdFilter(nuclear_graph, ["father"]))
        derived.attributes("father").disease = True
        derived.attributes("father").extra["lab"] = "y"
        derived.add_parent_child("father", "new")
        assert nuclear_graph.is_diseased("father") is False
        assert nuclear_graph.attributes("father").extra["lab"] == "x"
        assert "new" not in nuclear_graph


class TestConnectivity:
    """Tests for relatedness and group counting."""

    def test_are_related(self, nuclear_graph):
        """Test shared edges and identity."""
        assert nuclear_graph.are_related("father", "childa")
        assert nuclear_graph.are_related("childa", "mother")
        assert nuclear_graph.are_related("ghost", "ghost")
        assert not nuclear_graph.are_related("father", "mother")

    def test_unrelated_genomes(self):
        """Test three isolated genomes form three groups, linking two leaves two."""
        graph = RelationshipGraph()
        for name in ("a", "b", "c"):
            graph.add_genome(name)
        assert graph.count_disconnected_groups(["a", "b", "c"]) == 3
        graph.add_parent_child("a", "b")
        assert graph.count_disconnected_groups(["a", "b", "c"]) == 2

    def test_backward_repair(self):
        """Test a late link merges two groups already assigned."""
        graph = RelationshipGraph()
        graph.add_parent_child("a", "c")
        graph.add_parent_child("b", "d")
        graph.add_parent_child("c", "d")
        # a-c, b-d, c-d: one chain through c and d
        assert graph.count_disconnected_groups(["a", "b", "c", "d"]) == 1

    def test_subset_only(self, nuclear_graph):
        """Test only edges among the supplied genomes count."""
        assert nuclear_graph.count_disconnected_groups(["father", "mother"]) == 2
        assert nuclear_graph.count_disconnected_groups(["father", "mother", "childa"]) == 1
        assert nuclear_graph.count_disconnected_groups([]) == 0
