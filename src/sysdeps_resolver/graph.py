from __future__ import annotations

from collections.abc import Iterable, Mapping

import networkx as nx

from sysdeps_resolver.models import MavenCoordinate


def build_graph(
    edges: Iterable[tuple[str, str]],
    artifacts: Mapping[str, MavenCoordinate] | None = None,
) -> nx.DiGraph:
    """Build a directed graph where A -> B means A depends on B.

    Nodes are `groupId:artifactId` identities. When `artifacts` is given,
    every artifact becomes a node (even without edges) carrying its version,
    scope and test context as attributes.
    """
    g = nx.DiGraph()
    for key, coordinate in (artifacts or {}).items():
        g.add_node(
            key,
            version=coordinate.version,
            scope=coordinate.scope,
            test_context=coordinate.test_context,
        )
    for a, b in edges:
        g.add_node(a)
        g.add_node(b)
        target = (artifacts or {}).get(b)
        g.add_edge(a, b, scope=target.scope if target else None)
    return g


def reverse_dependencies(g: nx.DiGraph, target: str) -> list[str]:
    """Identities that declare `target` as a dependency."""
    if target not in g:
        return []
    return sorted(g.predecessors(target))


def nodes_within_depth(
    g: nx.DiGraph,
    root: str,
    *,
    direction: str = "forward",
    depth: int | None = None,
) -> set[str]:
    """Collect the identities at most `depth` hops away from `root`.

    `direction="reverse"` walks towards dependents instead of dependencies.
    `depth=None` collects the whole closure. An unknown root yields nothing.
    """
    if root not in g:
        return set()
    view = g.reverse(copy=False) if direction == "reverse" else g
    return set(nx.single_source_shortest_path_length(view, root, cutoff=depth))


def roots(g: nx.DiGraph) -> list[str]:
    """Nodes nothing depends on, sorted."""
    return sorted(str(n) for n in g.nodes if g.in_degree(n) == 0)
