"""Pedigree information carried in VCF header lines.

Reads:
- genotype sample columns of the ``#CHROM`` line (primary genomes)
- ``##diseased=a,b,c``
- ``##SAMPLE=<ID=..,Sex=..>``
- ``##PEDIGREE=<Child=..,Father=..,Mother=..>`` and ``##PEDIGREE=<Derived=..,Original=..>``

and writes the same lines back for a graph. Only the header is read; the
file's records are never touched.
"""
from __future__ import annotations

import gzip
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

import structlog

from pedigree_core.exceptions import PedigreeFormatError
from pedigree_core.relation.family import infer_all_families
from pedigree_core.relation.filters import (
    PrimaryGenomeFilter,
    RelationshipTypeFilter,
    SecondInRelationshipFilter,
)
from pedigree_core.relation.graph import RelationshipGraph
from pedigree_core.relation.models import RelationshipType, Sex

from .common import add_named_parent, undecodable

logger = structlog.get_logger(__name__)

META = "##"
DISEASED_PREFIX = "##diseased="
SAMPLE_PREFIX = "##SAMPLE=<"
PEDIGREE_PREFIX = "##PEDIGREE=<"
HEADER_PREFIX = "#CHROM"
FORMAT_COLUMN = 8  # CHROM POS ID REF ALT QUAL FILTER INFO FORMAT, samples follow


def parse_meta_fields(body: str) -> dict[str, str]:
    """Split ``ID=x,Description="a, b"`` into a dict, honouring double quotes."""
    fields: dict[str, str] = {}
    key: list[str] = []
    value: list[str] = []
    current = key
    quoted = False
    for ch in body:
        if ch == '"':
            quoted = not quoted
        elif ch == "=" and current is key and not quoted:
            current = value
        elif ch == "," and not quoted:
            if key:
                fields["".join(key).strip()] = "".join(value).strip()
            key, value = [], []
            current = key
        else:
            current.append(ch)
    if quoted:
        raise PedigreeFormatError(f"Unterminated quote in header field: {body}")
    if key:
        fields["".join(key).strip()] = "".join(value).strip()
    return fields


def _bracketed(line: str, prefix: str) -> dict[str, str]:
    if not line.endswith(">"):
        raise PedigreeFormatError("Header line is missing closing '>'", line=line)
    return parse_meta_fields(line[len(prefix):-1])


def _apply_pedigree_line(graph: RelationshipGraph, line: str, fields: dict[str, str]) -> None:
    child = fields.get("Child")
    if child is not None:
        graph.add_genome(child)
        father = fields.get("Father")
        mother = fields.get("Mother")
        if father is not None:
            add_named_parent(graph, father, child, Sex.MALE)
        if mother is not None:
            add_named_parent(graph, mother, child, Sex.FEMALE)
        return
    derived = fields.get("Derived")
    original = fields.get("Original")
    if derived is not None and original is not None:
        graph.add_relationship(RelationshipType.ORIGINAL_DERIVED, original, derived)
    else:
        logger.warning("pedigree_line_empty", line=line)


def parse_vcf_header(lines: Iterable[str]) -> RelationshipGraph:
    """Build a RelationshipGraph from VCF header lines.

    Stops at the ``#CHROM`` line. Declarations are applied in a fixed order
    regardless of where they appear: sample columns, diseased list, SAMPLE
    lines, then PEDIGREE lines.
    """
    samples: list[str] = []
    diseased: list[str] = []
    sample_lines: list[dict[str, str]] = []
    pedigree_lines: list[tuple[str, dict[str, str]]] = []
    for raw in lines:
        line = raw.rstrip("\r\n")
        if line.startswith(HEADER_PREFIX):
            samples = line.split("\t")[FORMAT_COLUMN + 1:]
            break
        if line.startswith(DISEASED_PREFIX):
            diseased.extend(s for s in line[len(DISEASED_PREFIX):].split(",") if s)
        elif line.startswith(SAMPLE_PREFIX):
            sample_lines.append(_bracketed(line, SAMPLE_PREFIX))
        elif line.startswith(PEDIGREE_PREFIX):
            pedigree_lines.append((line, _bracketed(line, PEDIGREE_PREFIX)))
        elif not line.startswith(META) and line:
            raise PedigreeFormatError("Unexpected line in VCF header", line=line)

    graph = RelationshipGraph()
    for sample in samples:
        graph.add_genome(sample).primary = True
    for sample in diseased:
        graph.add_genome(sample).disease = True
    for fields in sample_lines:
        sample_id = fields.get("ID")
        if sample_id is None:
            raise PedigreeFormatError("SAMPLE header line has no ID")
        graph.add_genome(sample_id, Sex.parse(fields.get("Sex")))
    for line, fields in pedigree_lines:
        _apply_pedigree_line(graph, line, fields)

    logger.debug("vcf_header_parsed", genomes=len(graph), samples=len(samples))
    return graph


def _header_lines(path: Path) -> Iterator[str]:
    opener = gzip.open if path.name.endswith(".gz") else open
    with opener(path, "rt", encoding="utf-8") as f:
        for line in f:
            if not line.startswith("#"):
                return
            yield line


def load_vcf_header(path: str | Path) -> RelationshipGraph:
    try:
        return parse_vcf_header(_header_lines(Path(path)))
    except UnicodeDecodeError as e:
        raise undecodable(path, e) from e


def pedigree_header_lines(graph: RelationshipGraph, output_samples: Sequence[str] | None = None) -> list[str]:
    """VCF header lines describing ``graph``.

    ``output_samples`` are the genotype columns of the VCF being written
    (default: the primary genomes). Only relationships touching one of them
    are emitted.

    A lone ORIGINAL_DERIVED pair with a recorded contamination is written as
    a mixture of the two genomes instead.
    """
    if output_samples is None:
        output_samples = graph.genomes_matching(PrimaryGenomeFilter(graph))
    outputs = set(output_samples)
    derived = graph.relationships_of_type(RelationshipType.ORIGINAL_DERIVED)

    if len(derived) == 1 and len(graph) == 2 and derived[0].contamination is not None:
        return _somatic_lines(graph, derived[0].first, derived[0].second, derived[0].contamination)

    lines: list[str] = []
    diseased: list[str] = []
    for genome in output_samples:
        sex = graph.get_sex(genome)
        if sex.is_known:
            lines.append(f"{SAMPLE_PREFIX}ID={genome},Sex={sex.name}>")
        if graph.is_diseased(genome):
            diseased.append(genome)
    if diseased:
        lines.append(DISEASED_PREFIX + ",".join(diseased))

    if graph.relationships_of_type(RelationshipType.PARENT_CHILD):
        for family in infer_all_families(graph, lenient=True):
            for child in family.children:
                if outputs & {child, family.mother, family.father}:
                    lines.append(f"{PEDIGREE_PREFIX}Child={child},Mother={family.mother},Father={family.father}>")
        for child in graph.genomes():
            rels = graph.relationships_of(
                child,
                RelationshipTypeFilter(RelationshipType.PARENT_CHILD),
                SecondInRelationshipFilter(child),
            )
            if len(rels) != 1:
                continue
            parent = rels[0].first
            if outputs & {child, parent}:
                role = "Mother" if graph.get_sex(parent) is Sex.FEMALE else "Father"
                lines.append(f"{PEDIGREE_PREFIX}Child={child},{role}={parent}>")

    for rel in derived:
        if outputs & {rel.first, rel.second}:
            lines.append(f"{PEDIGREE_PREFIX}Derived={rel.second},Original={rel.first}>")
    return lines


def _somatic_lines(graph: RelationshipGraph, original: str, derived: str, contamination: float) -> list[str]:
    sex = graph.get_sex(original)
    sex_field = f",Sex={sex.name}" if sex.is_known else ""
    mixture = f"{contamination:.2f};{1 - contamination:.2f}"
    return [
        f'{SAMPLE_PREFIX}ID={original},Genomes={original},Mixture=1.0{sex_field},Description="Original genome">',
        f"{SAMPLE_PREFIX}ID={derived},Genomes={original};{derived},Mixture={mixture}{sex_field},"
        f'Description="Original genome;Derived genome">',
        f"{PEDIGREE_PREFIX}Derived={derived},Original={original}>",
    ]
