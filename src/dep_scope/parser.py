"""Load Maven pom.xml files into declaration sources using lxml."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Mapping

from lxml import etree

from dep_scope.exceptions import PomModelError, PomNotFoundError, PomParseError
from dep_scope.models import (
    DEFAULT_EXTENSION,
    UNKNOWN_VERSION,
    Artifact,
    ArtifactDescriptor,
    Dependency,
    Exclusion,
    MavenProject,
)

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_PROJECT = "/*[local-name()='project']"
_DEPENDENCIES = f"{_PROJECT}/*[local-name()='dependencies']/*[local-name()='dependency']"
_MANAGED_DEPENDENCIES = (
    f"{_PROJECT}/*[local-name()='dependencyManagement']"
    "/*[local-name()='dependencies']/*[local-name()='dependency']"
)


def _text_first(node: etree._Element, xpath_expr: str) -> str | None:
    """Get text of the first matching element using namespace-agnostic XPath.

    Args:
        node: Root element to query under.
        xpath_expr: XPath expression (should use local-name()).

    Returns:
        Text content if found and non-empty, otherwise None.
    """
    found = node.xpath(xpath_expr)
    if not found:
        return None
    first = found[0]
    if isinstance(first, etree._Element):
        text = (first.text or "").strip()
        return text or None
    if isinstance(first, str):
        text = first.strip()
        return text or None
    return None


def _bool_text(value: str | None) -> bool | None:
    """Convert Maven boolean-ish text to bool, or None when unrecognized."""
    if value is None:
        return None
    v = value.strip().lower()
    if v == "true":
        return True
    if v == "false":
        return False
    return None


def _parse_xml(path: Path) -> etree._Element:
    """Parse an XML file and return its root element.

    Raises:
        PomNotFoundError: If the file does not exist.
        PomParseError: If XML cannot be parsed.
    """
    if not path.exists():
        raise PomNotFoundError(f"pom.xml not found: {path}")
    try:
        parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
        tree = etree.parse(str(path), parser=parser)
        return tree.getroot()
    except (OSError, etree.XMLSyntaxError) as exc:
        raise PomParseError(f"Failed to parse pom.xml: {path}") from exc


def _resolve_placeholders(value: str, props: Mapping[str, str]) -> str:
    """Resolve ${...} placeholders using provided properties.

    Unknown placeholders are preserved as-is. Nested references are followed
    a bounded number of times so self-referencing properties terminate.
    """
    current = value
    for _ in range(5):
        changed = False

        def _sub(m: re.Match[str]) -> str:
            nonlocal changed
            replacement = props.get(m.group(1))
            if replacement:
                changed = True
                return replacement
            return m.group(0)

        current = _PLACEHOLDER_RE.sub(_sub, current)
        if not changed:
            break
    return current


def _resolve_required(value: str, props: Mapping[str, str]) -> str:
    return _resolve_placeholders(value, props).strip() or value


def _normalize_version(value: str | None, props: Mapping[str, str]) -> str:
    """Resolve and normalize a Maven version string.

    Rules:
      - Missing version => "Unknown"
      - Placeholders left after resolution => "Unknown"
    """
    if value is None:
        return UNKNOWN_VERSION

    resolved = _resolve_placeholders(value, props).strip()
    if not resolved or _PLACEHOLDER_RE.search(resolved):
        return UNKNOWN_VERSION
    return resolved


def _parse_properties(root: etree._Element) -> dict[str, str]:
    props: dict[str, str] = {}
    for n in root.xpath(f"{_PROJECT}/*[local-name()='properties']/*"):
        if not isinstance(n, etree._Element):
            continue
        key = etree.QName(n).localname
        val = (n.text or "").strip()
        if key and val:
            props[key] = val
    return props


def _parse_exclusions(dep: etree._Element, props: Mapping[str, str]) -> tuple[Exclusion, ...]:
    """Read `<exclusions>` of a dependency element.

    A POM exclusion names a group and an artifact only, so extension and
    classifier are left as wildcards.
    """
    rules: list[Exclusion] = []
    for node in dep.xpath("./*[local-name()='exclusions']/*[local-name()='exclusion']"):
        group_id = _text_first(node, "./*[local-name()='groupId']")
        artifact_id = _text_first(node, "./*[local-name()='artifactId']")
        if group_id is None or artifact_id is None:
            logger.debug("Skipping incomplete exclusion in dependency element")
            continue
        rules.append(
            Exclusion(
                group_id=_resolve_required(group_id, props),
                artifact_id=_resolve_required(artifact_id, props),
            )
        )
    return tuple(rules)


def _parse_dependencies(
    root: etree._Element,
    xpath_expr: str,
    props: Mapping[str, str],
) -> tuple[Dependency, ...]:
    deps: list[Dependency] = []
    for dep in root.xpath(xpath_expr):
        dep_group_id = _text_first(dep, "./*[local-name()='groupId']")
        dep_artifact_id = _text_first(dep, "./*[local-name()='artifactId']")
        if dep_group_id is None or dep_artifact_id is None:
            logger.debug("Skipping dependency without groupId/artifactId")
            continue

        dep_type = _text_first(dep, "./*[local-name()='type']")
        dep_classifier = _text_first(dep, "./*[local-name()='classifier']")

        deps.append(
            Dependency(
                artifact=Artifact(
                    group_id=_resolve_required(dep_group_id, props),
                    artifact_id=_resolve_required(dep_artifact_id, props),
                    version=_normalize_version(_text_first(dep, "./*[local-name()='version']"), props),
                    extension=_resolve_required(dep_type, props) if dep_type else DEFAULT_EXTENSION,
                    classifier=_resolve_placeholders(dep_classifier, props) if dep_classifier else "",
                ),
                scope=_text_first(dep, "./*[local-name()='scope']"),
                optional=_bool_text(_text_first(dep, "./*[local-name()='optional']")),
                exclusions=_parse_exclusions(dep, props),
            )
        )
    return tuple(deps)


def _read_project(path: str | Path) -> tuple[etree._Element, Artifact, dict[str, str]]:
    """Read the coordinates and the property table of a POM.

    Raises:
        PomModelError: If required fields are missing.
    """
    pom_path = Path(path)
    root = _parse_xml(pom_path)

    raw_group_id = _text_first(root, f"{_PROJECT}/*[local-name()='groupId']")
    raw_artifact_id = _text_first(root, f"{_PROJECT}/*[local-name()='artifactId']")
    raw_version = _text_first(root, f"{_PROJECT}/*[local-name()='version']")

    parent_group_id = _text_first(root, f"{_PROJECT}/*[local-name()='parent']/*[local-name()='groupId']")
    parent_version = _text_first(root, f"{_PROJECT}/*[local-name()='parent']/*[local-name()='version']")

    if raw_artifact_id is None:
        raise PomModelError(f"Missing required <artifactId> in {pom_path}")

    raw_group_id = raw_group_id or parent_group_id
    raw_version = raw_version or parent_version

    if raw_group_id is None:
        raise PomModelError(f"Missing required <groupId> (or parent <groupId>) in {pom_path}")

    effective_version = raw_version or UNKNOWN_VERSION
    builtins: dict[str, str] = {
        "project.groupId": raw_group_id,
        "project.artifactId": raw_artifact_id,
        "project.version": effective_version,
        "pom.groupId": raw_group_id,
        "pom.artifactId": raw_artifact_id,
        "pom.version": effective_version,
        "groupId": raw_group_id,
        "artifactId": raw_artifact_id,
        "version": effective_version,
    }
    props = {**_parse_properties(root), **builtins}

    project = Artifact(
        group_id=_resolve_required(raw_group_id, props),
        artifact_id=raw_artifact_id,
        version=_normalize_version(effective_version, props),
    )
    return root, project, props


def parse_pom(path: str | Path) -> MavenProject:
    """Parse a Maven pom.xml into a project declaration source.

    Notes:
        - Namespace handling: uses `local-name()` XPath so it works with or without XML namespaces.
        - Property placeholders like `${...}` are resolved when possible.
          If a version cannot be resolved, it is stored as "Unknown".
        - Both `<dependencies>` and `<dependencyManagement>` are read,
          including each entry's `<exclusions>`.

    Args:
        path: Path to a pom.xml.

    Raises:
        PomNotFoundError: If the file does not exist.
        PomParseError: If XML cannot be parsed.
        PomModelError: If required fields are missing.

    Returns:
        A `MavenProject` with its direct and managed dependencies.
    """
    root, project, props = _read_project(path)
    dependencies = _parse_dependencies(root, _DEPENDENCIES, props)
    managed = _parse_dependencies(root, _MANAGED_DEPENDENCIES, props)
    logger.debug(
        "Parsed %s: %d dependencies, %d managed",
        project.compact(),
        len(dependencies),
        len(managed),
    )
    return MavenProject(project=project, dependencies=dependencies, dependency_management=managed)


def parse_descriptor(path: str | Path) -> ArtifactDescriptor:
    """Parse a pom.xml as the resolved descriptor of the artifact it declares.

    Only direct dependencies and their exclusions are kept; a descriptor
    never contributes dependency management.

    Raises:
        PomNotFoundError: If the file does not exist.
        PomParseError: If XML cannot be parsed.
        PomModelError: If required fields are missing.
    """
    root, artifact, props = _read_project(path)
    return ArtifactDescriptor(
        artifact=artifact,
        dependencies=_parse_dependencies(root, _DEPENDENCIES, props),
    )
