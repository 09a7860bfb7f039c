"""Rich rendering utilities for resolution results.

Coordinates and file paths are wrapped in `Text` so rich never reads them as
markup or emoji codes (`g:a:1` would otherwise render an emoji for `:a:`).
"""

from __future__ import annotations

from collections.abc import Iterable

import networkx as nx
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from sysdeps_resolver.graph import build_graph, nodes_within_depth, reverse_dependencies, roots
from sysdeps_resolver.models import MavenCoordinate
from sysdeps_resolver.resolution import ResolutionResult


def build_dependency_tree(coordinate: MavenCoordinate, dependencies: Iterable[MavenCoordinate]) -> Tree:
    """Build a Rich Tree representing a POM's effective direct dependencies.

    Args:
        coordinate: Effective coordinate of the POM.
        dependencies: Its resolved direct dependencies.

    Returns:
        A Rich Tree object for rendering.
    """
    root = Tree(Text(coordinate.compact(), style="bold"))
    deps = list(dependencies)
    if not deps:
        root.add("[dim]No direct dependencies found[/dim]")
        return root

    deps_branch = root.add("dependencies")
    for dep in deps:
        deps_branch.add(Text(dep.label()))
    return root


def _add_children(branch: Tree, g: nx.DiGraph, node: str, seen: set[str]) -> None:
    for child in sorted(g.successors(node)):
        version = g.nodes[child].get("version")
        label = f"{child}:{version}" if version else child
        if child in seen:
            branch.add(Text(f"{label} (*)", style="dim"))
            continue
        seen.add(child)
        _add_children(branch.add(Text(label)), g, child, seen)


def build_resolution_tree(result: ResolutionResult) -> Tree:
    """Render resolved artifacts as a forest rooted at the declared artifacts.

    Nodes already printed elsewhere in the tree are marked `(*)` and not
    expanded again.
    """
    g = build_graph(result.edges, result.artifacts)
    tree = Tree("[bold]resolved[/bold]")
    seen: set[str] = set()
    # Nodes only reachable through a cycle have no root; list them afterwards.
    leftovers = sorted(str(n) for n in g.nodes)
    for node in roots(g) + leftovers:
        if node in seen:
            continue
        coordinate = result.artifacts.get(node)
        label = coordinate.label() if coordinate else node
        seen.add(node)
        _add_children(tree.add(Text(label)), g, node, seen)
    if not g.nodes:
        tree.add("[dim]Nothing resolved[/dim]")
    return tree


def _row(*cells: str) -> list[Text]:
    return [Text(cell) for cell in cells]


def build_artifacts_table(result: ResolutionResult) -> Table:
    table = Table(title="Resolved artifacts")
    table.add_column("Artifact")
    table.add_column("Version")
    table.add_column("Scope")
    table.add_column("Origin", style="dim")
    for key in sorted(result.artifacts):
        coordinate = result.artifacts[key]
        origin = "transitive" if key in result.transitive else "declared"
        if coordinate.test_context:
            origin += " (test)"
        table.add_row(*_row(key, coordinate.version or "", coordinate.scope or "", origin))
    return table


def build_managed_table(managed_versions: dict[str, str]) -> Table:
    table = Table(title="BOM-managed versions")
    table.add_column("Artifact")
    table.add_column("Version")
    for key in sorted(managed_versions):
        table.add_row(*_row(key, managed_versions[key]))
    return table


def build_problems_table(result: ResolutionResult) -> Table:
    table = Table(title="Skipped / not found")
    table.add_column("Artifact")
    table.add_column("Reason")
    for key in sorted(result.skipped):
        table.add_row(*_row(key, result.skipped[key].value))
    for key in sorted(result.not_found - set(result.skipped)):
        table.add_row(*_row(key, "Not found"))
    return table


def build_requesters_table(result: ResolutionResult, key: str, depth: int | None = None) -> Table:
    """List the artifacts that pull `key` in, up to `depth` hops upstream."""
    g = build_graph(result.edges, result.artifacts)
    direct = set(reverse_dependencies(g, key))
    table = Table(title=Text(f"Why {key}"))
    table.add_column("Requester")
    table.add_column("Relation", style="dim")
    for node in sorted(nodes_within_depth(g, key, direction="reverse", depth=depth) - {key}):
        table.add_row(*_row(node, "direct" if node in direct else "indirect"))
    return table
