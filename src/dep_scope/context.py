"""Immutable traversal context for walking a resolved dependency tree.

A context describes one node of the tree. It carries everything a depth-first
walk needs to answer two questions about a dependency edge:

    - is the edge excluded by a rule declared somewhere above it?
    - did the root project pin the edge's artifact to test scope?

Contexts are never mutated. `step_into` builds the child's context from the
parent's and the declarations available for the parent, so sibling subtrees
can be walked in any order (or in parallel) without observing each other.

Typical driver loop:

    root_ctx = TraversalContext.new_root(root)
    for child in root.children:
        child_ctx = root_ctx.step_into(project, child)
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from dep_scope.exceptions import ContractViolationError
from dep_scope.models import (
    SCOPE_TEST,
    Artifact,
    ArtifactDescriptor,
    ConflictKey,
    Declaration,
    DeclarationSource,
    Dependency,
    Exclusion,
    GraphNode,
    MavenProject,
)

logger = logging.getLogger(__name__)

_EMPTY_EXCLUSIONS: frozenset[Exclusion] = frozenset()
_EMPTY_MANAGEMENT: Mapping[ConflictKey, frozenset[Exclusion]] = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class TraversalContext:
    """Accumulated exclusion and scope-override state at one tree node.

    Attributes:
        node: The graph node this context describes.
        path: Artifacts from the root down to `node`, root first.
        test_scoped_artifacts: Conflict keys of the root's direct test-scope
            dependencies. Shared unchanged by every context of one walk.
        exclusions: Rules in effect at `node`. Only ever grows along a path.
        dependency_management_exclusions: Rules registered by dependency
            management entries seen along the path, keyed by the managed
            artifact. Only ever grows along a path.
    """

    node: GraphNode
    path: tuple[Artifact, ...]
    test_scoped_artifacts: frozenset[ConflictKey]
    exclusions: frozenset[Exclusion]
    dependency_management_exclusions: Mapping[ConflictKey, frozenset[Exclusion]]

    @classmethod
    def new_root(cls, node: GraphNode) -> TraversalContext:
        """Create the context of a traversal root.

        Only the root's direct children count as test-scope pins; a test
        dependency declared deeper in the tree never contributes.

        Raises:
            ContractViolationError: If `node` is not a graph node.
        """
        _require_node(node)

        test_scoped = frozenset(
            child.conflict_key for child in node.children if child.scope == SCOPE_TEST
        )
        logger.debug(
            "Root %s pins %d artifact(s) to test scope",
            node.artifact.compact(),
            len(test_scoped),
        )
        return cls(
            node=node,
            path=(node.artifact,),
            test_scoped_artifacts=test_scoped,
            exclusions=_EMPTY_EXCLUSIONS,
            dependency_management_exclusions=_EMPTY_MANAGEMENT,
        )

    def step_into(self, source: DeclarationSource, node: GraphNode) -> TraversalContext:
        """Derive the context of `node`, a child of this context's node.

        `source` holds the declarations of the parent: a `MavenProject` when the
        parent is a project being built, an `ArtifactDescriptor` when it is a
        resolved artifact. Management entries are registered before the child
        is checked against them, because a management entry applies wherever
        its artifact shows up below, not only as a direct child.

        Raises:
            ContractViolationError: If `source` or `node` is malformed.
        """
        _require_node(node)
        if not isinstance(source, DeclarationSource):
            raise ContractViolationError(
                f"Expected a declaration source, got {type(source).__name__}"
            )

        key = node.conflict_key
        management = self._merge_management(source.managed_declarations())

        added: set[Exclusion] = set(management.get(key, _EMPTY_EXCLUSIONS))
        for declaration in _checked(source.declarations()):
            if declaration.key == key:
                added.update(declaration.exclusions)

        exclusions = self.exclusions
        if not added <= exclusions:
            exclusions = exclusions | added
            logger.debug(
                "Entering %s activates %d new exclusion(s)",
                key.compact(),
                len(exclusions) - len(self.exclusions),
            )

        return TraversalContext(
            node=node,
            path=self.path + (node.artifact,),
            test_scoped_artifacts=self.test_scoped_artifacts,
            exclusions=exclusions,
            dependency_management_exclusions=management,
        )

    def step_into_project(self, project: MavenProject, node: GraphNode) -> TraversalContext:
        """Descend using a project's dependencies and dependency management."""
        if not isinstance(project, MavenProject):
            raise ContractViolationError(f"Expected a MavenProject, got {type(project).__name__}")
        return self.step_into(project, node)

    def step_into_descriptor(self, descriptor: ArtifactDescriptor, node: GraphNode) -> TraversalContext:
        """Descend using a resolved artifact descriptor."""
        if not isinstance(descriptor, ArtifactDescriptor):
            raise ContractViolationError(
                f"Expected an ArtifactDescriptor, got {type(descriptor).__name__}"
            )
        return self.step_into(descriptor, node)

    def is_excluded(self, dependency: Dependency | Artifact) -> bool:
        """Check whether any exclusion in effect here matches `dependency`."""
        artifact = _candidate_artifact(dependency)
        return any(rule.matches(artifact) for rule in self.exclusions)

    def is_overridden_to_test_scope(self, dependency: Dependency | Artifact) -> bool:
        """Check whether `dependency` must be treated as test scope.

        The candidate is an edge declared by this context's node, evaluated
        before descending into it. It is overridden when the root pinned its
        conflict key to test scope and no exclusion in effect here matches it.
        """
        artifact = _candidate_artifact(dependency)
        if artifact.conflict_key not in self.test_scoped_artifacts:
            return False
        if self.is_excluded(artifact):
            logger.debug("Test-scope pin on %s is shadowed by an exclusion", artifact.compact())
            return False
        return True

    @property
    def current_artifact(self) -> Artifact:
        return self.node.artifact

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    def _merge_management(
        self, declarations: Iterable[Declaration]
    ) -> Mapping[ConflictKey, frozenset[Exclusion]]:
        # Copied lazily: descriptors and repeated entries leave the parent's map shared.
        merged: dict[ConflictKey, frozenset[Exclusion]] | None = None
        for declaration in _checked(declarations):
            seen = self.dependency_management_exclusions if merged is None else merged
            current = seen.get(declaration.key)
            if current is not None and declaration.exclusions <= current:
                continue
            if merged is None:
                merged = dict(self.dependency_management_exclusions)
            merged[declaration.key] = (
                declaration.exclusions if current is None else current | declaration.exclusions
            )

        if merged is None:
            return self.dependency_management_exclusions
        return MappingProxyType(merged)


def _require_node(node: object) -> None:
    if not isinstance(node, GraphNode):
        raise ContractViolationError(f"Expected a GraphNode, got {type(node).__name__}")


def _checked(declarations: Iterable[Declaration]) -> Iterable[Declaration]:
    for declaration in declarations:
        if not isinstance(declaration, Declaration):
            raise ContractViolationError(
                f"Declaration sources must yield Declaration records, got {type(declaration).__name__}"
            )
        yield declaration


def _candidate_artifact(dependency: Dependency | Artifact) -> Artifact:
    if isinstance(dependency, Dependency):
        return dependency.artifact
    if isinstance(dependency, Artifact):
        return dependency
    raise ContractViolationError(
        f"Expected a Dependency or Artifact, got {type(dependency).__name__}"
    )
