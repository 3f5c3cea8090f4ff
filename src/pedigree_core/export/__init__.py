"""Export modules for pedigree graphs.

Supported formats:
- GraphViz dot: pedigree drawing with marriage nodes
"""
from __future__ import annotations

from pedigree_core.export.graphviz import (
    REL_LABELS,
    export_graphviz,
    load_dot_properties,
    to_graphviz,
)

__all__ = [
    "REL_LABELS",
    "to_graphviz",
    "export_graphviz",
    "load_dot_properties",
]
