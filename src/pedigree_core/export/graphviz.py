"""GraphViz (dot) rendering of a pedigree.

Families with both parents known get a marriage node so their children hang
together; every other relationship is a labelled edge. Node look is
controlled by overridable attributes:

    font, color, bgcolor, gradientangle
    invisible.node
    male.shape, female.shape, unknown.shape
    male.fill, female.fill, unknown.fill, disease.fill
"""
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import structlog

from pedigree_core.relation.family import infer_all_families
from pedigree_core.relation.filters import RelationshipTypeFilter, SecondInRelationshipFilter
from pedigree_core.relation.graph import RelationshipGraph
from pedigree_core.relation.models import Relationship, RelationshipType, Sex

logger = structlog.get_logger(__name__)

REL_LABELS = {
    RelationshipType.PARENT_CHILD: "Child",
    RelationshipType.ORIGINAL_DERIVED: "Derived",
}

DEFAULTS = {
    "font": "",
    "color": "",
    "bgcolor": "",
    "gradientangle": "270",
    "invisible.node": '[shape=point,style=filled,label="",height=.001,width=.001]',
    "male.shape": "box",
    "female.shape": "oval",
    "unknown.shape": "diamond",
    "male.fill": "skyblue",
    "female.fill": "pink",
    "unknown.fill": "none",
    "disease.fill": "grey",
}


def load_dot_properties(path: str | Path) -> dict[str, str]:
    """Read ``key=value`` (or ``key: value``) overrides; ``#`` and ``!`` start comments."""
    props: dict[str, str] = {}
    with open(path, encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line[0] in "#!":
                continue
            sep = min((i for i in (line.find("="), line.find(":")) if i >= 0), default=-1)
            if sep < 0:
                props[line] = ""
            else:
                props[line[:sep].strip()] = line[sep + 1:].strip()
    return props


class _NodeIds:
    """Stable ``nodeN`` identifiers, allocated on first use."""

    def __init__(self) -> None:
        self._ids: dict[str, str] = {}

    def __call__(self, name: str) -> str:
        node = self._ids.get(name)
        if node is None:
            node = f"node{len(self._ids)}"
            self._ids[name] = node
        return node


def init_graph(props: Mapping[str, str], graph_name: str, title: str) -> list[str]:
    font, color = props["font"], props["color"]
    return [
        f"digraph {graph_name} {{",
        f'  graph [fontname = "{font}", color="{color}", bgcolor="{props["bgcolor"]}"];',
        f'  node [fontname = "{font}", color="{color}", gradientangle="{props["gradientangle"]}"];',
        f'  edge [fontname = "{font}", color="{color}"];',
        '  ratio ="auto";',
        "  mincross = 2.0;",
        '  labelloc = "t";',
        f'  label="{title}";',
        "",
    ]


def to_graphviz(
    graph: RelationshipGraph,
    title: str,
    simple_layout: bool = False,
    overrides: Mapping[str, str] | None = None,
) -> str:
    """Render ``graph`` as a dot ``digraph``.

    Args:
        graph: Pedigree to draw
        title: Graph label
        simple_layout: Skip the rank constraints that make a traditional
            pedigree drawing; dot copes better with large complex pedigrees
        overrides: Attribute overrides (see module docstring)

    Returns:
        The dot source, newline terminated
    """
    props = {**DEFAULTS, **(overrides or {})}
    invis = f" {props['invisible.node']};"
    node_id = _NodeIds()
    lines = init_graph(props, "Ped", title)
    seen: set[Relationship] = set()
    parent_child = RelationshipTypeFilter(RelationshipType.PARENT_CHILD)

    for family in infer_all_families(graph, lenient=True):
        father_id = node_id(family.father)
        mother_id = node_id(family.mother)
        marriage = node_id(f"m{family.father}x{family.mother}")
        children = family.children

        if simple_layout:
            lines += [
                "  {",
                f"    {father_id} -> {marriage} [dir=none];",
                f"    {mother_id} -> {marriage} [dir=none];",
                f"    {marriage}{invis}",
                "  }",
            ]
        else:
            lines += [
                "  {",
                "    rank = same;",
                f"    {father_id} -> {marriage}b [dir=none];",
                f"    {marriage}b{invis}",
                f"    {marriage}b -> {mother_id} [dir=none];",
                "  }",
                f"  {marriage}b -> {marriage} [dir=none];",
                f"  {marriage}{invis}",
            ]
            if len(children) > 1:
                # A horizontal bar of hidden nodes, with the marriage node in the middle
                lines += ["  {", "    rank = same;"]
                bar = [f"{node_id(c)}b" for c in children]
                lines += [f"  {b}{invis}" for b in bar]
                middle = len(bar) // 2
                bar.insert(middle, marriage)
                lines += [f"  {a} -> {b} [dir=none];" for a, b in zip(bar, bar[1:])]
                lines.append("  }")

        for child in children:
            source = marriage if len(children) == 1 or simple_layout else f"{node_id(child)}b"
            lines.append(f"  {source} -> {node_id(child)} [];")
            seen.update(graph.relationships_of(child, parent_child, SecondInRelationshipFilter(child)))

    for rel in graph.relationships_matching():
        if rel in seen:
            continue
        label = REL_LABELS.get(rel.type, rel.type.value)
        lines.append(f'  {node_id(rel.first)} -> {node_id(rel.second)} [label="{label}", fontsize=10];')
        seen.add(rel)

    for genome in graph.genomes():
        sex = graph.get_sex(genome)
        kind = "male" if sex is Sex.MALE else "female" if sex is Sex.FEMALE else "unknown"
        shape = props[f"{kind}.shape"]
        fill = props["disease.fill"] if graph.is_diseased(genome) else props[f"{kind}.fill"]
        lines.append(
            f'  {node_id(genome)} [label="{genome}", shape="{shape}", '
            f'style=filled, fillcolor="{fill}"];'
        )

    lines.append("}")
    logger.debug("graphviz_rendered", genomes=len(graph), layout="simple" if simple_layout else "ranked")
    return "\n".join(lines) + "\n"


def export_graphviz(
    graph: RelationshipGraph,
    out_file: Path,
    title: str,
    simple_layout: bool = False,
    overrides: Mapping[str, str] | None = None,
) -> Path:
    """Write ``to_graphviz`` output to ``out_file``."""
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(to_graphviz(graph, title, simple_layout, overrides), encoding="utf-8")
    return out_file
