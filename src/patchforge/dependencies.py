"""Dependency resolver: turn inclusion rules into the ordered build map."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from .collector import InclusionRule
from .errors import ResolutionError
from .graph import DependencyGraph
from .manifest import Variant

logger = logging.getLogger(__name__)


@dataclass
class ResolvedArtifact:
    """An artifact to process, with its sources and direct dependencies."""

    name: str
    sources: list[Path] = field(default_factory=list)
    depends: list[str] = field(default_factory=list)


@dataclass
class BuildMap:
    """Every artifact of a build, in first-seen rule order, plus variants."""

    artifacts: list[ResolvedArtifact] = field(default_factory=list)
    variants: list[Variant] = field(default_factory=list)

    def names(self) -> list[str]:
        return [a.name for a in self.artifacts]

    def get(self, name: str) -> ResolvedArtifact | None:
        for artifact in self.artifacts:
            if artifact.name == name:
                return artifact
        return None

    def graph(self) -> DependencyGraph:
        return DependencyGraph({a.name: a.depends for a in self.artifacts})


def _expand_sources(rule: InclusionRule, root: Path) -> list[Path]:
    """Expand a rule's source patterns relative to ``root``."""
    paths: list[Path] = []
    for pattern in rule.sources:
        candidate = Path(pattern)
        if candidate.is_absolute():
            matches = [candidate] if candidate.is_file() else []
        else:
            matches = sorted(p for p in root.glob(pattern) if p.is_file())
        if not matches:
            raise ResolutionError(
                f"artifact '{rule.name}': source '{pattern}' does not exist",
                entity=rule.name,
            )
        paths.extend(matches)
    return paths


T = TypeVar("T")


def _union(target: list[T], items: Iterable[T]) -> None:
    for item in items:
        if item not in target:
            target.append(item)


def resolve_build_map(rules: Iterable[InclusionRule], root: Path) -> BuildMap:
    """Resolve inclusion rules into a BuildMap.

    Rules naming the same artifact collapse into one entry; their sources and
    dependencies are unioned. Raises ResolutionError for a source that matches
    nothing or a dependency on an artifact no rule defines.
    """
    artifacts: dict[str, ResolvedArtifact] = {}
    variants: list[Variant] = []

    for rule in rules:
        sources = _expand_sources(rule, root)
        artifact = artifacts.get(rule.name)
        if artifact is None:
            artifact = artifacts[rule.name] = ResolvedArtifact(name=rule.name)
        else:
            logger.debug("Merging duplicate rule for '%s'", rule.name)
        _union(artifact.sources, sources)
        _union(artifact.depends, rule.depends)

        if rule.variant:
            _union(variants, [Variant(artifact=rule.name, tag=rule.variant)])

    for artifact in artifacts.values():
        for dep in artifact.depends:
            if dep not in artifacts:
                raise ResolutionError(
                    f"artifact '{artifact.name}' depends on undefined artifact '{dep}'",
                    entity=artifact.name,
                )

    build_map = BuildMap(artifacts=list(artifacts.values()), variants=variants)
    logger.info(
        "Resolved %d artifact(s) and %d variant(s)",
        len(build_map.artifacts),
        len(build_map.variants),
    )
    return build_map
