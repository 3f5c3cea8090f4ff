"""Line-oriented ``.relations`` pedigree files.

    genome father sex=male disease=true
    genome twina  disease=false sex=female
    parent-child father twina
    original-derived father fathercancer contamination=0.03

Tokens are whitespace separated; trailing ``key=value`` pairs attach to the
genome (typed attributes where the key is known, ``extra`` otherwise) or to
the relationship's property bag.
"""
from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog

from pedigree_core.exceptions import PedigreeFormatError
from pedigree_core.relation.graph import RelationshipGraph
from pedigree_core.relation.models import GenomeAttributes, RelationshipType, Sex

from .common import undecodable

logger = structlog.get_logger(__name__)

GENOME = "genome"
RELATION_KEYWORDS = {
    "parent-child": RelationshipType.PARENT_CHILD,
    "original-derived": RelationshipType.ORIGINAL_DERIVED,
}
KEYWORD_FOR_TYPE = {v: k for k, v in RELATION_KEYWORDS.items()}

SEX_KEY = "sex"
DISEASE_KEY = "disease"
PRIMARY_KEY = "primary-genome"
FAMILY_ID_KEY = "family-id"

_TRUE = {"true", "yes", "1"}
_FALSE = {"false", "no", "0"}


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise PedigreeFormatError(f"Invalid boolean for {key}: {value}")


def _parse_properties(tokens: list[str]) -> dict[str, str]:
    props: dict[str, str] = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if not sep or not key:
            raise PedigreeFormatError(f"Expected key=value but found: {token}")
        props[key] = value
    return props


def _apply_genome_properties(graph: RelationshipGraph, genome: str, props: dict[str, str]) -> None:
    attrs = graph.add_genome(genome, Sex.parse(props.get(SEX_KEY)))
    for key, value in props.items():
        if key == SEX_KEY:
            continue
        if key == DISEASE_KEY:
            attrs.disease = _parse_bool(key, value)
        elif key == PRIMARY_KEY:
            attrs.primary = _parse_bool(key, value)
        elif key == FAMILY_ID_KEY:
            attrs.family_id = value
        else:
            attrs.extra[key] = value


def parse_relations_line(graph: RelationshipGraph, line: str, line_number: int | None = None) -> None:
    tokens = line.split()
    if not tokens:
        raise PedigreeFormatError("Empty relationship line", line=line, line_number=line_number)
    keyword = tokens[0]
    try:
        if keyword == GENOME:
            if len(tokens) < 2:
                raise PedigreeFormatError("genome line requires a genome name")
            _apply_genome_properties(graph, tokens[1], _parse_properties(tokens[2:]))
        elif keyword in RELATION_KEYWORDS:
            if len(tokens) < 3:
                raise PedigreeFormatError(f"{keyword} line requires two genome names")
            rel = graph.add_relationship(RELATION_KEYWORDS[keyword], tokens[1], tokens[2])
            for key, value in _parse_properties(tokens[3:]).items():
                rel.set_property(key, value)
        else:
            raise PedigreeFormatError(f"Unrecognized relationship keyword: {keyword}")
    except PedigreeFormatError as e:
        if e.line is not None:
            raise
        raise PedigreeFormatError(e.reason, line=line, line_number=line_number) from e


def parse_relations(lines: Iterable[str]) -> RelationshipGraph:
    graph = RelationshipGraph()
    for number, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parse_relations_line(graph, line, number)
    logger.debug("relations_parsed", genomes=len(graph))
    return graph


def load_relations(path: str | Path) -> RelationshipGraph:
    try:
        with open(path, encoding="utf-8") as f:
            return parse_relations(f)
    except UnicodeDecodeError as e:
        raise undecodable(path, e) from e


def _genome_tokens(attrs: GenomeAttributes) -> list[str]:
    tokens = []
    if attrs.sex.is_known:
        tokens.append(f"{SEX_KEY}={attrs.sex.value}")
    if attrs.disease is not None:
        tokens.append(f"{DISEASE_KEY}={str(attrs.disease).lower()}")
    if attrs.primary:
        tokens.append(f"{PRIMARY_KEY}=true")
    if attrs.family_id is not None:
        tokens.append(f"{FAMILY_ID_KEY}={attrs.family_id}")
    tokens.extend(f"{k}={v}" for k, v in sorted(attrs.extra.items()))
    return tokens


def format_relations(graph: RelationshipGraph) -> str:
    """``.relations`` text for ``graph``; parsing it back gives an equal graph."""
    lines = []
    for genome in graph.genomes():
        lines.append(" ".join([GENOME, genome, *_genome_tokens(graph.attributes(genome))]))
    for rel in graph.relationships_matching():
        props = [f"{k}={v}" for k, v in sorted(rel.properties.items())]
        lines.append(" ".join([KEYWORD_FOR_TYPE[rel.type], rel.first, rel.second, *props]))
    return "\n".join(lines) + "\n"
