"""Rich rendering utilities for declaration sources and traversal contexts."""

from __future__ import annotations

from collections.abc import Iterable

from rich.tree import Tree

from dep_scope.context import TraversalContext
from dep_scope.models import Exclusion


def _sorted_rules(rules: Iterable[Exclusion]) -> list[str]:
    return sorted(rule.compact() for rule in rules)


def build_context_tree(root: TraversalContext, children: Iterable[TraversalContext]) -> Tree:
    """Build a Rich Tree describing a root context and its direct descents.

    Args:
        root: Context of the traversal root.
        children: Contexts obtained by stepping from `root` into its children.

    Returns:
        A Rich Tree object for rendering.
    """
    tree = Tree(f"[bold]{root.current_artifact.compact()}[/bold]")

    pins = tree.add("test-scoped artifacts")
    if not root.test_scoped_artifacts:
        pins.add("[dim]none[/dim]")
    for key in sorted(k.compact() for k in root.test_scoped_artifacts):
        pins.add(key)

    children = list(children)
    # Children entered from one source all carry the same management map.
    management =children[-1].dependency_management_exclusions if children else root.dependency_management_exclusions
    managed = tree.add("dependency management exclusions")
    if not management:
        managed.add("[dim]none[/dim]")
    for key in sorted(management, key=lambda k: k.compact()):
        branch = managed.add(key.compact())
        for rule in _sorted_rules(management[key]):
            branch.add(rule)

    deps = tree.add("dependencies")
    if not children:
        deps.add("[dim]No direct dependencies found[/dim]")
    for ctx in children:
        label = ctx.node.as_dependency().label()
        if root.is_overridden_to_test_scope(ctx.current_artifact):
            label += " [yellow](test scope pinned)[/yellow]"
        branch = deps.add(label)
        for rule in _sorted_rules(ctx.exclusions):
            branch.add(f"[dim]excludes[/dim] {rule}")
    return tree
