"""Pedigree file loaders and writers.

Provides:
- PED (``.ped``), the default for unrecognised extensions
- VCF header SAMPLE/PEDIGREE lines (``.vcf``, ``.vcf.gz``)
- legacy line-oriented relations (``.relations``)
"""
from __future__ import annotations

import gzip
from pathlib import Path

import structlog

from pedigree_core.relation.graph import RelationshipGraph

from .ped import format_ped, load_ped, parse_ped
from .relations import format_relations, load_relations, parse_relations
from .vcf_header import load_vcf_header, parse_vcf_header, pedigree_header_lines

logger = structlog.get_logger(__name__)

VCF_MAGIC = "##fileformat=VCF"


def _looks_like_vcf(path: Path) -> bool:
    with open(path, "rb") as f:
        start = f.read(2)
    opener = gzip.open if start == b"\x1f\x8b" else open
    with opener(path, "rt", encoding="utf-8", errors="replace") as f:
        return f.readline().startswith(VCF_MAGIC)


def load_relationships(path: str | Path) -> RelationshipGraph:
    """Load a pedigree, choosing the format from the file name.

    Files with none of the known extensions are sniffed for a VCF header and
    otherwise read as PED.

    Raises:
        FileNotFoundError: path does not exist
        PedigreeFormatError: malformed content
        ConflictingAttributeError: contradictory sex declarations
    """
    path = Path(path)
    name = path.name.lower()
    if name.endswith((".vcf", ".vcf.gz")):
        fmt = "vcf"
    elif name.endswith(".relations"):
        fmt = "relations"
    elif name.endswith(".ped"):
        fmt = "ped"
    else:
        fmt = "vcf" if _looks_like_vcf(path) else "ped"

    logger.debug("loading_pedigree", path=str(path), format=fmt)
    if fmt == "vcf":
        return load_vcf_header(path)
    if fmt == "relations":
        return load_relations(path)
    return load_ped(path)


__all__ = [
    "load_relationships",
    # PED
    "parse_ped",
    "load_ped",
    "format_ped",
    # VCF header
    "parse_vcf_header",
    "load_vcf_header",
    "pedigree_header_lines",
    # Relations
    "parse_relations",
    "load_relations",
    "format_relations",
]
