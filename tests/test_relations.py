"""Tests for the line-oriented relations format."""
from __future__ import annotations

from pathlib import Path

import pytest

from pedigree_core.exceptions import ConflictingAttributeError, PedigreeFormatError
from pedigree_core.io import format_relations, load_relationships, parse_relations
from pedigree_core.io.relations import parse_relations_line
from pedigree_core.relation import (
    FamilyUnit,
    Relationship,
    RelationshipGraph,
    RelationshipType,
    RelationshipTypeFilter,
    Sex,
)

RELATIONS = """\
genome father disease=true sex=male
genome twina\t\tdisease=false sex=female
genome twinb\t\tdisease=true
parent-child\tfather\ttwina
parent-child\t father\ttwinb
parent-child  mother twina
parent-child mother twinb
original-derived father fathercancer contamination=0.03
"""


class TestParseRelations:
    """Tests for reading relations text."""

    def test_genomes(self):
        """Test genome lines and implied genomes."""
        graph = parse_relations(RELATIONS.splitlines())
        assert graph.genomes() == ["father", "fathercancer", "mother", "twina", "twinb"]
        assert graph.get_sex("father") is Sex.MALE
        assert graph.get_sex("twina") is Sex.FEMALE
        assert graph.get_sex("mother") is Sex.EITHER
        assert graph.is_diseased("twinb")
        assert graph.attributes("twina").disease is False
        assert graph.attributes("mother").disease is None

    def test_relationships(self):
        """Test relationship lines and their properties."""
        graph = parse_relations(RELATIONS.splitlines())
        pc = graph.relationships_matching(RelationshipTypeFilter(RelationshipType.PARENT_CHILD))
        assert len(pc) == 4
        (derived,) = graph.relationships_of_type(RelationshipType.ORIGINAL_DERIVED)
        assert derived == Relationship("father", "fathercancer", RelationshipType.ORIGINAL_DERIVED)
        assert derived.contamination == pytest.approx(0.03)

    def test_family(self):
        """Test the twins form one family."""
        graph = parse_relations(RELATIONS.splitlines())
        family = FamilyUnit(graph, "father", "mother", ["twinb", "twina"])
        assert family.children == ("twina", "twinb")
        assert family.is_diseased("father")

    def test_typed_and_extra_keys(self):
        """Test known keys map to fields and the rest to extra."""
        graph = parse_relations(["genome s1 primary-genome=true family-id=F7 lab=broad"])
        attrs = graph.attributes("s1")
        assert attrs.primary is True
        assert attrs.family_id == "F7"
        assert attrs.extra == {"lab": "broad"}

    def test_conflicting_sex(self):
        """Test the same genome declared with two sexes."""
        with pytest.raises(ConflictingAttributeError):
            parse_relations(["genome x sex=male", "genome x sex=female"])

    @pytest.mark.parametrize("line", ["", "   \t "])
    def test_blank_line(self, line):
        """Test a blank line handed straight to the line parser."""
        with pytest.raises(PedigreeFormatError) as exc_info:
            parse_relations_line(RelationshipGraph(), line, 4)
        assert exc_info.value.line_number == 4

    @pytest.mark.parametrize(
        "line",
        [
            "sibling a b",
            "genome",
            "parent-child a",
            "genome a disease",
            "genome a disease=maybe",
        ],
    )
    def test_malformed(self, line):
        """Test malformed lines name the line."""
        with pytest.raises(PedigreeFormatError) as exc_info:
            parse_relations(["# header", line])
        assert exc_info.value.line == line
        assert exc_info.value.line_number == 2


class TestFormatRelations:
    """Tests for writing relations text."""

    def test_round_trip(self):
        """Test writing and re-reading gives the same graph."""
        graph = parse_relations(RELATIONS.splitlines())
        again = parse_relations(format_relations(graph).splitlines())
        assert str(again) == str(graph)
        assert again.relationships_of_type(RelationshipType.ORIGINAL_DERIVED)[0].contamination == pytest.approx(0.03)

    def test_load_by_extension(self, tmp_path: Path):
        """Test .relations files are dispatched to this parser."""
        path = tmp_path / "pedigree.relations"
        path.write_text(RELATIONS, encoding="utf-8")
        assert load_relationships(path).genomes() == parse_relations(RELATIONS.splitlines()).genomes()
