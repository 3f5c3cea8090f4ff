"""CLI interface for pedigree-core: ``pedstats``.

Prints summary statistics for a pedigree file (PED, VCF header, or legacy
relations), or one of several alternative views of it.

For a quick pedigree picture with GraphViz:

    dot -Tpng <(pedstats --dot "A Title" family.ped) | display -
"""
from __future__ import annotations

import codecs
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pedigree_core.config import PedigreeConfig
from pedigree_core.exceptions import PedigreeCoreError
from pedigree_core.export.graphviz import load_dot_properties, to_graphviz
from pedigree_core.io import load_relationships
from pedigree_core.logging import configure_logging
from pedigree_core.relation.family import FamilyUnit, infer_all_families
from pedigree_core.relation.filters import (
    DiseasedGenomeFilter,
    FounderFilter,
    HasRelationshipFilter,
    NotRelationshipFilter,
    PrimaryGenomeFilter,
    RelationshipTypeFilter,
    SexFilter,
)
from pedigree_core.relation.graph import RelationshipGraph
from pedigree_core.relation.models import RelationshipType, Sex
from pedigree_core.relation.ordering import non_monogamous_samples, order_families_and_set_mates

app = typer.Typer(
    name="pedstats",
    help="Print information about a pedigree file",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def get_config() -> PedigreeConfig:
    """Load configuration from environment (and a local .env file)."""
    from dotenv import load_dotenv

    load_dotenv()
    return PedigreeConfig.from_env()


def _unescape(delimiter: str) -> str:
    # unicode_escape only round-trips ASCII input
    if not delimiter.isascii():
        return delimiter
    return codecs.decode(delimiter, "unicode_escape")


def collect_ids(
    graph: RelationshipGraph,
    primary: bool = False,
    male: bool = False,
    female: bool = False,
    paternal: bool = False,
    maternal: bool = False,
    founder: bool = False,
) -> list[str]:
    """Union of the selected id groups, sorted."""
    ids: set[str] = set()
    is_parent = HasRelationshipFilter(graph, RelationshipType.PARENT_CHILD, first=True)
    if primary:
        ids.update(graph.genomes_matching(PrimaryGenomeFilter(graph)))
    if male:
        ids.update(graph.genomes_matching(SexFilter(graph, [Sex.MALE])))
    if female:
        ids.update(graph.genomes_matching(SexFilter(graph, [Sex.FEMALE])))
    if maternal:
        ids.update(graph.genomes_matching(is_parent, SexFilter(graph, [Sex.FEMALE])))
    if paternal:
        ids.update(graph.genomes_matching(is_parent, SexFilter(graph, [Sex.MALE])))
    if founder:
        ids.update(graph.genomes_matching(FounderFilter(graph)))
    return sorted(ids)


def summary_table(graph: RelationshipGraph, families: list[FamilyUnit]) -> Table:
    parent_child = RelationshipTypeFilter(RelationshipType.PARENT_CHILD)
    rows = [
        ("Total samples:", len(graph)),
        ("Primary samples:", len(graph.genomes_matching(PrimaryGenomeFilter(graph)))),
        ("Male samples:", len(graph.genomes_matching(SexFilter(graph, [Sex.MALE])))),
        ("Female samples:", len(graph.genomes_matching(SexFilter(graph, [Sex.FEMALE])))),
        ("Afflicted samples:", len(graph.genomes_matching(DiseasedGenomeFilter(graph)))),
        ("Founder samples:", len(graph.genomes_matching(FounderFilter(graph)))),
        ("Parent-child relationships:", len(graph.relationships_matching(parent_child))),
        ("Other relationships:", len(graph.relationships_matching(NotRelationshipFilter(parent_child)))),
        ("Families:", len(families)),
    ]
    table = Table(show_header=False, box=None)
    table.add_column("Statistic", justify="left")
    table.add_column("Count", justify="left")
    for label, count in rows:
        table.add_row(label, str(count))
    return table


def family_flags(graph: RelationshipGraph, family: FamilyUnit) -> tuple[str, list[str]]:
    """Family caller arguments for ``family``, plus children left out for unknown sex."""
    flags = f"--father {family.father} --mother {family.mother}"
    unknown = []
    for child in family.children:
        sex = graph.get_sex(child)
        if sex is Sex.MALE:
            flags += f" --son {child}"
        elif sex is Sex.FEMALE:
            flags += f" --daughter {child}"
        else:
            unknown.append(child)
    return flags, unknown


@app.command()
def pedstats(
    pedigree_file: Path = typer.Argument(..., help="Pedigree file to process: PED, VCF, or .relations"),
    primary_ids: bool = typer.Option(False, "--primary-ids", help="Output ids of all primary individuals"),
    male_ids: bool = typer.Option(False, "--male-ids", help="Output ids of all males"),
    female_ids: bool = typer.Option(False, "--female-ids", help="Output ids of all females"),
    paternal_ids: bool = typer.Option(False, "--paternal-ids", help="Output ids of paternal individuals"),
    maternal_ids: bool = typer.Option(False, "--maternal-ids", help="Output ids of maternal individuals"),
    founder_ids: bool = typer.Option(False, "--founder-ids", help="Output ids of all founders"),
    delimiter: str = typer.Option("\\n", "--delimiter", "-d", help="Output id lists using this separator"),
    families_out: bool = typer.Option(False, "--families", help="Output information about family structures"),
    dot: Optional[str] = typer.Option(None, "--dot", help="Output pedigree in GraphViz format, using this text as title"),
    simple_dot: bool = typer.Option(
        False, "--simple-dot", help="GraphViz layout that copes better with large complex pedigrees"
    ),
    dot_properties: Optional[Path] = typer.Option(
        None, "--dot-properties", help="Properties file with overrides for GraphViz attributes"
    ),
    dump: bool = typer.Option(False, "--dump", help="Dump full relationships structure"),
    flags: bool = typer.Option(False, "--family-flags", help="Output command-line flags for the family caller"),
    ordering: bool = typer.Option(False, "--ordering", help="Output family processing order"),
    lenient: Optional[bool] = typer.Option(
        None, "--lenient/--strict", help="Accept families whose parent sex is unknown [env: PEDIGREE_LENIENT_FAMILIES]"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Output information from pedigree files of various formats."""
    config = get_config()
    configure_logging("DEBUG" if verbose else config.log_level, json=not verbose)  # type: ignore[arg-type]

    views = [families_out, dot is not None, dump, flags, ordering]
    id_lists = [primary_ids, male_ids, female_ids, paternal_ids, maternal_ids, founder_ids]
    if sum(views) > 1:
        raise typer.BadParameter("Only one of --families, --dot, --dump, --family-flags, --ordering may be set")
    if any(id_lists) and any(views):
        raise typer.BadParameter("Id lists cannot be combined with --families, --dot, --dump, --family-flags or --ordering")

    if not pedigree_file.exists():
        err_console.print(f"[red]Error: File not found: {pedigree_file}[/red]")
        raise typer.Exit(1)

    lenient = config.lenient_families if lenient is None else lenient
    try:
        graph = load_relationships(pedigree_file)

        if dot is not None:
            overrides = load_dot_properties(dot_properties) if dot_properties else None
            typer.echo(to_graphviz(graph, dot, simple_layout=simple_dot, overrides=overrides))
            return

        if dump:
            typer.echo(str(graph))
            return

        if any(id_lists):
            ids = collect_ids(graph, primary_ids, male_ids, female_ids, paternal_ids, maternal_ids, founder_ids)
            typer.echo(_unescape(delimiter).join(ids))
            return

        families = infer_all_families(graph, lenient=lenient, skip_invalid=config.skip_invalid_families)

        if families_out:
            for f in families:
                typer.echo(str(f))
        elif ordering:
            ordered = order_families_and_set_mates(families)
            typer.echo("Families in processing order:")
            for f in ordered:
                typer.echo(str(f))
            non_monogamous = non_monogamous_samples(ordered)
            if non_monogamous:
                typer.echo("The following individuals are not monogamous:")
                for sample in non_monogamous:
                    typer.echo(sample)
            else:
                typer.echo("Set of families is monogamous")
        elif flags:
            for f in families:
                line, unknown = family_flags(graph, f)
                for child in unknown:
                    err_console.print(f"[yellow]Child has unknown sex: {child}[/yellow]")
                typer.echo(line)
        else:
            typer.echo(f"Pedigree file: {pedigree_file}")
            typer.echo()
            console.print(summary_table(graph, families))
    except (PedigreeCoreError, OSError) as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def main() -> None:
    app()


if __name__ == "__main__":
    main()
