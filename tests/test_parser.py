from __future__ import annotations

from pathlib import Path

import pytest

from dep_scope.exceptions import PomModelError, PomNotFoundError, PomParseError
from dep_scope.models import ArtifactDescriptor, Exclusion, MavenProject
from dep_scope.parser import parse_descriptor, parse_pom


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


MANAGED_POM = """<?xml version=\"1.0\" encoding=\"UTF-8\"?>
<project xmlns=\"http://maven.apache.org/POM/4.0.0\">
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.acme</groupId>
  <artifactId>service</artifactId>
  <version>1.0.0</version>

  <properties>
    <guava.version>33.0.0-jre</guava.version>
  </properties>

  <dependencyManagement>
    <dependencies>
      <dependency>
        <groupId>com.google.guava</groupId>
        <artifactId>guava</artifactId>
        <version>${guava.version}</version>
        <exclusions>
          <exclusion>
            <groupId>com.google.code.findbugs</groupId>
            <artifactId>jsr305</artifactId>
          </exclusion>
        </exclusions>
      </dependency>
    </dependencies>
  </dependencyManagement>

  <dependencies>
    <dependency>
      <groupId>com.google.guava</groupId>
      <artifactId>guava</artifactId>
    </dependency>
    <dependency>
      <groupId>junit</groupId>
      <artifactId>junit</artifactId>
      <version>4.13.2</version>
      <scope>test</scope>
      <exclusions>
        <exclusion>
          <groupId>org.hamcrest</groupId>
          <artifactId>hamcrest-core</artifactId>
        </exclusion>
        <exclusion>
          <groupId>org.incomplete</groupId>
        </exclusion>
      </exclusions>
    </dependency>
    <dependency>
      <groupId>com.acme</groupId>
      <artifactId>shared</artifactId>
      <version>${project.version}</version>
      <type>test-jar</type>
      <classifier>tests</classifier>
      <scope>test</scope>
      <optional>true</optional>
    </dependency>
    <dependency>
      <artifactId>no-group</artifactId>
    </dependency>
  </dependencies>
</project>
"""


def test_parse_pom_without_namespace(tmp_path: Path) -> None:
    pom = """<?xml version=\"1.0\" encoding=\"UTF-8\"?>
<project>
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.acme</groupId>
  <artifactId>demo</artifactId>
  <version>1.0.0</version>

  <dependencies>
    <dependency>
      <groupId>org.slf4j</groupId>
      <artifactId>slf4j-api</artifactId>
      <version>2.0.12</version>
      <scope>compile</scope>
    </dependency>
  </dependencies>
</project>
"""
    path = _write(tmp_path, "pom.xml", pom)
    model = parse_pom(path)

    assert isinstance(model, MavenProject)
    assert model.project.compact() == "com.acme:demo:jar:1.0.0"
    assert len(model.dependencies) == 1
    dep = model.dependencies[0]
    assert dep.artifact.compact() == "org.slf4j:slf4j-api:jar:2.0.12"
    assert dep.scope == "compile"
    assert dep.exclusions == ()
    assert model.dependency_management == ()


def test_parse_pom_reads_management_and_exclusions(tmp_path: Path) -> None:
    model = parse_pom(_write(tmp_path, "pom.xml", MANAGED_POM))

    (managed,) = model.dependency_management
    assert managed.artifact.compact() == "com.google.guava:guava:jar:33.0.0-jre"
    assert managed.exclusions == (Exclusion(group_id="com.google.code.findbugs", artifact_id="jsr305"),)

    deps = {d.artifact.artifact_id: d for d in model.dependencies}
    assert set(deps) == {"guava", "junit", "shared"}
    assert deps["guava"].artifact.version == "Unknown"
    assert deps["junit"].scope == "test"
    assert deps["junit"].exclusions == (Exclusion(group_id="org.hamcrest", artifact_id="hamcrest-core"),)


def test_parse_pom_reads_type_and_classifier(tmp_path: Path) -> None:
    model = parse_pom(_write(tmp_path, "pom.xml", MANAGED_POM))

    shared = next(d for d in model.dependencies if d.artifact.artifact_id == "shared")
    assert shared.conflict_key.compact() == "com.acme:shared:test-jar:tests"
    assert shared.artifact.version == "1.0.0"
    assert shared.optional is True


def test_exclusions_from_pom_are_wildcards(tmp_path: Path) -> None:
    model = parse_pom(_write(tmp_path, "pom.xml", MANAGED_POM))

    junit = next(d for d in model.dependencies if d.artifact.artifact_id == "junit")
    (rule,) = junit.exclusions
    assert (rule.extension, rule.classifier) == ("*", "*")


def test_parse_descriptor_keeps_only_direct_dependencies(tmp_path: Path) -> None:
    descriptor = parse_descriptor(_write(tmp_path, "service-1.0.0.pom", MANAGED_POM))

    assert isinstance(descriptor, ArtifactDescriptor)
    assert descriptor.artifact.compact() == "com.acme:service:jar:1.0.0"
    assert [d.artifact.artifact_id for d in descriptor.dependencies] == ["guava", "junit", "shared"]
    assert list(descriptor.managed_declarations()) == []


def test_preserve_property_placeholders(tmp_path: Path) -> None:
    pom = """<?xml version=\"1.0\" encoding=\"UTF-8\"?>
<project>
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.acme</groupId>
  <artifactId>demo</artifactId>

  <dependencies>
    <dependency>
      <groupId>org.example</groupId>
      <artifactId>lib</artifactId>
      <version>${lib.version}</version>
    </dependency>
  </dependencies>
</project>
"""
    model = parse_pom(_write(tmp_path, "pom.xml", pom))

    assert len(model.dependencies) == 1
    assert model.dependencies[0].artifact.version == "Unknown"


def test_resolve_properties_for_dependency_version(tmp_path: Path) -> None:
    pom = """<?xml version=\"1.0\" encoding=\"UTF-8\"?>
<project>
  <modelVersion>4.0.0</modelVersion>
  <groupId>com.acme</groupId>
  <artifactId>demo</artifactId>
  <version>1.0.0</version>

  <properties>
    <lib.version>2.3.4</lib.version>
  </properties>

  <dependencies>
    <dependency>
      <groupId>${project.groupId}</groupId>
      <artifactId>lib</artifactId>
      <version>${lib.version}</version>
    </dependency>
  </dependencies>
</project>
"""
    model = parse_pom(_write(tmp_path, "pom.xml", pom))
    assert model.dependencies[0].artifact.compact() == "com.acme:lib:jar:2.3.4"


def test_inherit_version_from_parent(tmp_path: Path) -> None:
    pom = """<?xml version=\"1.0\" encoding=\"UTF-8\"?>
<project xmlns=\"http://maven.apache.org/POM/4.0.0\">
  <modelVersion>4.0.0</modelVersion>

  <parent>
    <groupId>com.acme</groupId>
    <artifactId>parent</artifactId>
    <version>9.9.9</version>
  </parent>

  <artifactId>child</artifactId>
</project>
"""
    model = parse_pom(_write(tmp_path, "pom.xml", pom))
    assert model.project.compact() == "com.acme:child:jar:9.9.9"


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(PomNotFoundError):
        parse_pom(tmp_path / "missing.xml")


def test_malformed_xml_raises(tmp_path: Path) -> None:
    with pytest.raises(PomParseError):
        parse_pom(_write(tmp_path, "pom.xml", "<project><groupId>broken"))


def test_missing_artifact_id_raises(tmp_path: Path) -> None:
    pom = "<project><groupId>com.acme</groupId></project>"
    with pytest.raises(PomModelError):
        parse_descriptor(_write(tmp_path, "pom.xml", pom))


def test_missing_group_id_raises(tmp_path: Path) -> None:
    pom = "<project><artifactId>orphan</artifactId></project>"
    with pytest.raises(PomModelError):
        parse_pom(_write(tmp_path, "pom.xml", pom))
