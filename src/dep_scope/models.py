"""Pydantic models for Maven artifacts, exclusions and declaration sources."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


UNKNOWN_VERSION = "Unknown"
DEFAULT_EXTENSION = "jar"
WILDCARD = "*"
SCOPE_TEST = "test"


class ConflictKey(BaseModel):
    """Version-independent artifact identity.

    Two artifacts that differ only by version share a conflict key, which is
    what exclusion and scope-override checks compare.
    """

    model_config = ConfigDict(frozen=True)

    group_id: str = Field(..., min_length=1)
    artifact_id: str = Field(..., min_length=1)
    extension: str = Field(default=DEFAULT_EXTENSION, min_length=1)
    classifier: str = ""

    def compact(self) -> str:
        """Return a compact string representation.

        Returns:
            A string like `groupId:artifactId:extension[:classifier]`.
        """
        key = f"{self.group_id}:{self.artifact_id}:{self.extension}"
        if self.classifier:
            key += f":{self.classifier}"
        return key


class Artifact(BaseModel):
    """Maven coordinates of a resolved artifact."""

    model_config = ConfigDict(frozen=True)

    group_id: str = Field(..., min_length=1)
    artifact_id: str = Field(..., min_length=1)
    version: str = Field(default=UNKNOWN_VERSION, min_length=1)
    extension: str = Field(default=DEFAULT_EXTENSION, min_length=1)
    classifier: str = ""

    @property
    def conflict_key(self) -> ConflictKey:
        return ConflictKey(
            group_id=self.group_id,
            artifact_id=self.artifact_id,
            extension=self.extension,
            classifier=self.classifier,
        )

    def compact(self) -> str:
        """Return a compact string representation.

        Returns:
            A string like `groupId:artifactId:extension[:classifier]:version`.
        """
        return f"{self.conflict_key.compact()}:{self.version}"


class Exclusion(BaseModel):
    """An exclusion rule.

    Extension and classifier may hold the literal wildcard `*`. Equality is
    plain field equality; the wildcard only matters in `matches`.
    """

    model_config = ConfigDict(frozen=True)

    group_id: str = Field(..., min_length=1)
    artifact_id: str = Field(..., min_length=1)
    extension: str = Field(default=WILDCARD, min_length=1)
    classifier: str = WILDCARD

    def matches(self, artifact: Artifact | ConflictKey) -> bool:
        """Check whether this rule excludes the given artifact.

        Group and artifact id must match exactly. Extension and classifier
        match when equal or when the rule holds the wildcard.
        """
        return (
            self.group_id == artifact.group_id
            and self.artifact_id == artifact.artifact_id
            and (self.extension == WILDCARD or self.extension == artifact.extension)
            and (self.classifier == WILDCARD or self.classifier == artifact.classifier)
        )

    def compact(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.extension}:{self.classifier}"


class Declaration(BaseModel):
    """What a declaration source says about one conflict key."""

    model_config = ConfigDict(frozen=True)

    key: ConflictKey
    exclusions: frozenset[Exclusion] = frozenset()
    test_scoped: bool = False


class Dependency(BaseModel):
    """A Maven dependency entry."""

    model_config = ConfigDict(frozen=True)

    artifact: Artifact
    scope: str | None = None
    optional: bool | None = None
    exclusions: tuple[Exclusion, ...] = ()

    @property
    def conflict_key(self) -> ConflictKey:
        return self.artifact.conflict_key

    def declaration(self) -> Declaration:
        """Return this entry as a declaration record, exclusions kept as given."""
        return Declaration(
            key=self.conflict_key,
            exclusions=frozenset(self.exclusions),
            test_scoped=self.scope == SCOPE_TEST,
        )

    def label(self) -> str:
        """Return a user-facing label for the dependency.

        Returns:
            A formatted string including coordinates and scope when present.
        """
        parts: list[str] = [self.artifact.compact()]
        if self.scope:
            parts.append(f"(scope={self.scope})")
        if self.optional is True:
            parts.append("(optional)")
        return " ".join(parts)


class GraphNode(BaseModel):
    """A node of a resolved dependency tree.

    `scope` is the scope the node was reached with; it is None for a root.
    """

    model_config = ConfigDict(frozen=True)

    artifact: Artifact
    scope: str | None = None
    children: tuple[GraphNode, ...] = ()

    @property
    def conflict_key(self) -> ConflictKey:
        return self.artifact.conflict_key

    def as_dependency(self) -> Dependency:
        return Dependency(artifact=self.artifact, scope=self.scope)


@runtime_checkable
class DeclarationSource(Protocol):
    """Anything that yields dependency declarations keyed by conflict key."""

    def declarations(self) -> Iterator[Declaration]: ...

    def managed_declarations(self) -> Iterator[Declaration]: ...


class MavenProject(BaseModel):
    """A parsed Maven project model.

    As a declaration source, a project yields its own dependencies and its
    dependency management entries. POM exclusions only name a group and an
    artifact, so every rule it yields is widened to wildcard extension and
    classifier.
    """

    model_config = ConfigDict(frozen=True)

    project: Artifact
    dependencies: tuple[Dependency, ...] = ()
    dependency_management: tuple[Dependency, ...] = ()

    def declarations(self) -> Iterator[Declaration]:
        for dep in self.dependencies:
            yield _project_declaration(dep)

    def managed_declarations(self) -> Iterator[Declaration]:
        for dep in self.dependency_management:
            yield _project_declaration(dep)


class ArtifactDescriptor(BaseModel):
    """The resolved descriptor of an artifact: its direct dependencies.

    Descriptor exclusions are carried with all four fields as given, and a
    descriptor never contributes dependency management.
    """

    model_config = ConfigDict(frozen=True)

    artifact: Artifact
    dependencies: tuple[Dependency, ...] = ()

    def declarations(self) -> Iterator[Declaration]:
        for dep in self.dependencies:
            yield dep.declaration()

    def managed_declarations(self) -> Iterator[Declaration]:
        return iter(())


def _project_declaration(dep: Dependency) -> Declaration:
    return Declaration(
        key=dep.conflict_key,
        exclusions=frozenset(
            Exclusion(group_id=e.group_id, artifact_id=e.artifact_id) for e in dep.exclusions
        ),
        test_scoped=dep.scope == SCOPE_TEST,
    )
