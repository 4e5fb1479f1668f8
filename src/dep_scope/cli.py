"""Typer CLI entry point for dep-scope."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from dep_scope.config import AnalyzerConfig
from dep_scope.context import TraversalContext
from dep_scope.exceptions import DepScopeError
from dep_scope.graph import project_node
from dep_scope.logging_config import configure_logging
from dep_scope.models import DEFAULT_EXTENSION, Artifact
from dep_scope.parser import parse_pom
from dep_scope.visualize import build_context_tree

app = typer.Typer(add_completion=False, help="Inspect Maven test-scope pins and exclusions.")
console = Console()


def _setup_logging(verbose: bool) -> None:
    config = AnalyzerConfig.from_env()
    if verbose:
        config.log_level = "DEBUG"
    configure_logging(config)


def _parse_coordinate(text: str) -> Artifact:
    """Parse `groupId:artifactId[:extension[:classifier]]`.

    Raises:
        ValueError: If the coordinate has the wrong number of parts.
    """
    parts = (text or "").strip().split(":")
    if not 2 <= len(parts) <= 4 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid coordinate: {text!r} (expected groupId:artifactId[:extension[:classifier]])")
    extension = parts[2] if len(parts) > 2 and parts[2] else DEFAULT_EXTENSION
    classifier = parts[3] if len(parts) > 3 else ""
    return Artifact(group_id=parts[0], artifact_id=parts[1], extension=extension, classifier=classifier)


@app.command()
def show(
    pom: Annotated[Path, typer.Argument(help="Path to a Maven pom.xml file.")],
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Show test-scope pins and the exclusions active at each direct dependency."""
    try:
        _setup_logging(verbose)
        project = parse_pom(pom)
        node = project_node(project)
        root = TraversalContext.new_root(node)
        children = [root.step_into_project(project, child) for child in node.children]
        console.print(f"[dim]{pom}[/dim]")
        console.print(build_context_tree(root, children))
    except (DepScopeError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from None


@app.command()
def check(
    pom: Annotated[Path, typer.Argument(help="Path to a Maven pom.xml file.")],
    coordinate: Annotated[
        str,
        typer.Argument(help="Candidate: groupId:artifactId[:extension[:classifier]]"),
    ],
    via: Annotated[
        str | None,
        typer.Option("--via", help="Evaluate below this direct dependency instead of at the root."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Exit 0 if COORDINATE would be forced to test scope, 1 otherwise."""
    try:
        _setup_logging(verbose)
        candidate = _parse_coordinate(coordinate)
        project = parse_pom(pom)
        node = project_node(project)
        ctx = TraversalContext.new_root(node)

        if via is not None:
            via_key = _parse_coordinate(via).conflict_key
            child = next((c for c in node.children if c.conflict_key == via_key), None)
            if child is None:
                raise ValueError(f"{via} is not a direct dependency of {project.project.compact()}")
            ctx = ctx.step_into_project(project, child)

        overridden = ctx.is_overridden_to_test_scope(candidate)
    except (DepScopeError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from None

    where = " > ".join(a.conflict_key.compact() for a in ctx.path)
    if overridden:
        console.print(f"[green]overridden[/green] {candidate.conflict_key.compact()} is test scope at {where}")
        return
    console.print(f"[yellow]not overridden[/yellow] {candidate.conflict_key.compact()} at {where}")
    raise typer.Exit(code=1)


def main() -> None:
    """Console-script entry point."""
    app()
