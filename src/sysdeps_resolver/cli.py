"""Typer CLI entry point for the sysdeps resolver."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from sysdeps_resolver.classify import classify_boms, collect_library_artifacts
from sysdeps_resolver.config import ResolverConfig
from sysdeps_resolver.exceptions import ResolverError
from sysdeps_resolver.parser import load_model
from sysdeps_resolver.plugins import plugin_artifact_candidates
from sysdeps_resolver.pom import PomParser
from sysdeps_resolver.resolution import DeclaredDependency, ResolutionSession
from sysdeps_resolver.scanner import find_pom_files
from sysdeps_resolver.visualize import (
    build_artifacts_table,
    build_dependency_tree,
    build_managed_table,
    build_problems_table,
    build_requesters_table,
    build_resolution_tree,
)

app = typer.Typer(add_completion=False, help="Resolve Maven dependencies against system-installed POMs and jars.")
console = Console(emoji=False)


@app.callback()
def main_options(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every resolution step.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _config(poms_dir: list[Path] | None, jars_dir: list[Path] | None, index: bool | None) -> ResolverConfig:
    config = ResolverConfig.from_env()
    if poms_dir:
        config.poms_dirs = list(dict.fromkeys(poms_dir))
    if jars_dir:
        config.jars_dirs = list(dict.fromkeys(jars_dir))
    if index is not None:
        config.use_index = index
    config.validate()
    return config


PomsDirOption = Annotated[
    list[Path] | None,
    typer.Option("--poms-dir", help="POM root (repeatable). Default: $SYSDEPS_POMS_DIR."),
]
JarsDirOption = Annotated[
    list[Path] | None,
    typer.Option("--jars-dir", help="Jar root (repeatable). Default: $SYSDEPS_JARS_DIR."),
]


@app.command()
def resolve(
    dependencies: Annotated[list[str], typer.Argument(help="Declared dependencies: group:artifact[:version].")],
    test: Annotated[
        list[str] | None,
        typer.Option("--test", help="Test-only dependency group:artifact[:version] (repeatable)."),
    ] = None,
    poms_dir: PomsDirOption = None,
    jars_dir: JarsDirOption = None,
    index: Annotated[bool | None, typer.Option("--index/--no-index", help="Index all POMs up front.")] = None,
    tree: Annotated[bool, typer.Option("--tree", help="Print the dependency tree.")] = False,
    why: Annotated[
        str | None,
        typer.Option("--why", help="Show which artifacts pull in this group:artifact."),
    ] = None,
) -> None:
    """Resolve DEPENDENCIES and their transitive closure against the system."""
    try:
        config = _config(poms_dir, jars_dir, index)
        declared = [DeclaredDependency.parse(d) for d in dependencies]
        declared += [DeclaredDependency.parse(d, test=True) for d in test or []]

        session = ResolutionSession(config)
        requested: dict[str, list[str | None]] = {}
        for d in declared:
            requested.setdefault(d.key, []).append(d.version)
        result = session.resolve(
            [d.key for d in declared if not d.test],
            [d.key for d in declared if d.test],
            requested,
        )

        console.print(build_artifacts_table(result))
        if result.managed_versions:
            console.print(build_managed_table(result.managed_versions))
        for substitution in result.substitutions:
            console.print(f"[cyan]{escape(substitution.describe())}[/cyan]")
        if result.skipped or result.not_found:
            console.print(build_problems_table(result))
        if tree:
            console.print(build_resolution_tree(result))
        if why:
            if why in result.artifacts:
                console.print(build_requesters_table(result, why))
            else:
                console.print(f"[yellow]Not resolved:[/yellow] {escape(why)}")
    except (ResolverError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from None


@app.command()
def inspect(
    pom: Annotated[Path, typer.Argument(help="Path to an installed *.pom file.")],
    show_path: Annotated[bool, typer.Option("--show-path/--no-show-path", help="Show the pom path header.")] = True,
) -> None:
    """Print the effective coordinate and direct dependencies of one POM."""
    try:
        load_model(pom)
        parser = PomParser()
        coordinate = parser.parse_pom(pom)
        if coordinate is None:
            raise ResolverError(f"Could not read POM: {pom}")
        if show_path:
            console.print(f"[dim]{escape(str(pom))}[/dim]")
        console.print(build_dependency_tree(coordinate, parser.parse_dependencies(pom)))
    except ResolverError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from None


@app.command()
def plugin(
    plugin_id: Annotated[str, typer.Argument(help="Gradle plugin id, e.g. com.example.shadow.")],
    poms_dir: PomsDirOption = None,
    jars_dir: JarsDirOption = None,
    candidates: Annotated[bool, typer.Option("--candidates", help="Also list the artifactIds tried.")] = False,
) -> None:
    """Find the installed artifact implementing PLUGIN_ID."""
    try:
        session = ResolutionSession(_config(poms_dir, jars_dir, None))
        if candidates:
            for artifact_id in plugin_artifact_candidates(plugin_id):
                console.print(f"[dim]{escape(plugin_id)}:{escape(artifact_id)}[/dim]")
        coordinate = session.plugin_matcher.resolve(plugin_id)
        if coordinate is None:
            console.print(f"[yellow]Plugin not resolved:[/yellow] {escape(plugin_id)}")
            raise typer.Exit(code=1)
        console.print(f"[green]{escape(plugin_id)}[/green] -> {escape(coordinate.compact())}")
    except (ResolverError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from None


@app.command()
def classify(
    root: Annotated[Path, typer.Argument(help="Root folder to scan for *.pom (or a single POM file).")],
    workers: Annotated[int | None, typer.Option("--workers", help="Worker threads; 1 runs single-threaded.")] = None,
    depth: Annotated[int, typer.Option("--depth", help="Maximum directory depth.")] = 3,
) -> None:
    """Classify every POM under ROOT as BOM or library and list library jars."""
    try:
        pom_files = find_pom_files(root, depth)
        if not pom_files:
            console.print("[bold red]Error:[/bold red] No POM files found.")
            raise typer.Exit(code=1)

        if workers is None:
            workers = ResolverConfig.from_env().workers
        if workers < 1:
            raise ValueError(f"--workers must be at least 1, got {workers}")

        parser = PomParser()
        boms = classify_boms(pom_files, parser, workers)
        libraries = collect_library_artifacts(
            [p for p in pom_files if p not in boms], parser, workers
        )

        table = Table(title=Text(f"POM files under {root}"))
        table.add_column("POM")
        table.add_column("Kind")
        table.add_column("Jar", style="dim")
        for p in pom_files:
            if p in boms:
                table.add_row(Text(str(p)), "BOM", "")
            elif p in libraries:
                table.add_row(Text(str(p)), "library", Text(str(libraries[p])))
            else:
                table.add_row(Text(str(p)), "other", "")
        console.print(table)
        console.print(
            f"[green]Classified[/green] {len(pom_files)} POM(s): {len(boms)} BOM(s), {len(libraries)} with jars."
        )
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from None


def main() -> None:
    """Console-script entry point."""
    app()
