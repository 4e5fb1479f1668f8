from __future__ import annotations

from collections.abc import Iterable

import networkx as nx

from dep_scope.exceptions import GraphError
from dep_scope.models import Artifact, GraphNode, MavenProject


def build_graph(projects: Iterable[MavenProject]) -> nx.DiGraph:
    """Build a directed graph where A -> B means A depends on B.

    Node ids are full compact coordinates; every node carries its `artifact`.
    Edges carry the declared `scope` and `optional` flag.
    """
    g = nx.DiGraph()
    for proj in projects:
        a = proj.project.compact()
        _add_artifact(g, a, proj.project)
        for dep in proj.dependencies:
            b = dep.artifact.compact()
            _add_artifact(g, b, dep.artifact)
            g.add_edge(a, b, scope=dep.scope, optional=dep.optional)
    return g


def _add_artifact(g: nx.DiGraph, node_id: str, artifact: Artifact) -> None:
    if not g.has_node(node_id):
        g.add_node(node_id, artifact=artifact)


def dependency_tree(g: nx.DiGraph, root_id: str) -> GraphNode:
    """Unfold the graph below `root_id` into an immutable tree.

    Shared dependencies are repeated under every parent that declares them.
    A node already on the current path is emitted as a leaf, which cuts cycles.

    Raises:
        GraphError: If `root_id` is not in the graph or a node lacks its artifact.
    """
    if not g.has_node(root_id):
        raise GraphError(f"Root not in graph: {root_id}")

    def unfold(node_id: str, scope: str | None, on_path: frozenset[str]) -> GraphNode:
        artifact = g.nodes[node_id].get("artifact")
        if artifact is None:
            raise GraphError(f"Graph node has no artifact: {node_id}")
        if node_id in on_path:
            return GraphNode(artifact=artifact, scope=scope)

        below = on_path | {node_id}
        children = tuple(
            unfold(child_id, g.edges[node_id, child_id].get("scope"), below)
            for child_id in g.successors(node_id)
        )
        return GraphNode(artifact=artifact, scope=scope, children=children)

    return unfold(root_id, None, frozenset())


def project_node(project: MavenProject) -> GraphNode:
    """Return the root node of a project with its direct dependencies as children."""
    return GraphNode(
        artifact=project.project,
        children=tuple(
            GraphNode(artifact=dep.artifact, scope=dep.scope) for dep in project.dependencies
        ),
    )
