"""PLINK PED pedigree files.

Whitespace-delimited, one individual per line, exactly six columns:

    family-id  individual-id  paternal-id  maternal-id  sex  phenotype

- ids: ``0`` means unknown (parents only; never valid as individual id)
- sex: 1=male, 2=female, anything else unknown
- phenotype: 2=affected, 1=unaffected, 0 or -9=missing

Lines starting with ``#`` and blank lines are ignored. The alternate
quantitative phenotype coding is not supported.
"""
from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog

from pedigree_core.exceptions import PedigreeFormatError
from pedigree_core.relation.filters import RelationshipTypeFilter, SecondInRelationshipFilter
from pedigree_core.relation.graph import RelationshipGraph
from pedigree_core.relation.models import RelationshipType, Sex

from .common import add_named_parent, undecodable

logger = structlog.get_logger(__name__)

UNKNOWN = "0"
PED_MALE = "1"
PED_FEMALE = "2"
PHENOTYPE_UNAFFECTED = "1"
PHENOTYPE_AFFECTED = "2"
PHENOTYPE_MISSING = ("0", "-9")

HEADER = [
    "#fam-id/ind-id/pat-id/mat-id: 0=unknown",
    "#sex: 1=male; 2=female; 0=unknown",
    "#phenotype: -9=missing, 0=missing; 1=unaffected; 2=affected",
    "#",
    "#fam-id\tind-id\tpat-id\tmat-id\tsex\tphen",
]


def sex_from_ped(code: str) -> Sex:
    if code == PED_MALE:
        return Sex.MALE
    if code == PED_FEMALE:
        return Sex.FEMALE
    return Sex.EITHER


def sex_to_ped(sex: Sex) -> str:
    if sex is Sex.MALE:
        return PED_MALE
    if sex is Sex.FEMALE:
        return PED_FEMALE
    return UNKNOWN


def phenotype_from_ped(code: str) -> bool | None:
    """True affected, False unaffected, None missing."""
    if code == PHENOTYPE_AFFECTED:
        return True
    if code == PHENOTYPE_UNAFFECTED:
        return False
    if code in PHENOTYPE_MISSING:
        return None
    raise PedigreeFormatError(f"Unsupported PED phenotype value: {code}")


def phenotype_to_ped(diseased: bool | None) -> str:
    if diseased is True:
        return PHENOTYPE_AFFECTED
    if diseased is False:
        return PHENOTYPE_UNAFFECTED
    return PHENOTYPE_MISSING[0]


def parse_ped_line(graph: RelationshipGraph, line: str, line_number: int | None = None) -> None:
    """Apply one PED record to ``graph``."""
    fields = line.split()
    if len(fields) != 6:
        raise PedigreeFormatError(
            f"PED line should contain exactly 6 columns but contained: {len(fields)}",
            line=line,
            line_number=line_number,
        )
    family_id, individual, paternal, maternal, sex, phenotype = fields
    if individual == UNKNOWN:
        raise PedigreeFormatError("Individual ID cannot be 0", line=line, line_number=line_number)

    try:
        diseased = phenotype_from_ped(phenotype)
    except PedigreeFormatError as e:
        raise PedigreeFormatError(e.reason, line=line, line_number=line_number) from e

    attrs = graph.add_genome(individual, sex_from_ped(sex))
    if diseased is not None:
        attrs.disease = diseased
    attrs.family_id = family_id
    attrs.primary = True

    if paternal != UNKNOWN:
        add_named_parent(graph, paternal, individual, Sex.MALE)
    if maternal != UNKNOWN:
        add_named_parent(graph, maternal, individual, Sex.FEMALE)


def parse_ped(lines: Iterable[str]) -> RelationshipGraph:
    """Build a RelationshipGraph from PED lines."""
    graph = RelationshipGraph()
    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parse_ped_line(graph, line, number)
    logger.debug("ped_parsed", genomes=len(graph))
    return graph


def load_ped(path: str | Path) -> RelationshipGraph:
    try:
        with open(path, encoding="utf-8") as f:
            return parse_ped(f)
    except UnicodeDecodeError as e:
        raise undecodable(path, e) from e


def format_ped(graph: RelationshipGraph, *comment_lines: str) -> str:
    """PED text for ``graph``.

    Only PARENT_CHILD edges whose parent has a recorded sex are written;
    other relationship types and free-form attributes are not representable.
    """
    lines = ["#PED format pedigree", "#"]
    lines.extend(f"#{comment}" for comment in comment_lines)
    lines.extend(HEADER)
    for genome in graph.genomes():
        attrs = graph.attributes(genome)
        paternal = maternal = UNKNOWN
        for rel in graph.relationships_of(
            genome,
            RelationshipTypeFilter(RelationshipType.PARENT_CHILD),
            SecondInRelationshipFilter(genome),
        ):
            parent_sex = graph.get_sex(rel.first)
            if parent_sex is Sex.FEMALE:
                maternal = rel.first
            elif parent_sex is Sex.MALE:
                paternal = rel.first
        lines.append(
            "\t".join([
                attrs.family_id or UNKNOWN,
                genome,
                paternal,
                maternal,
                sex_to_ped(attrs.sex),
                phenotype_to_ped(attrs.disease),
            ])
        )
    return "\n".join(lines) + "\n"
