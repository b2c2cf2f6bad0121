"""Build error taxonomy."""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Base class for every failure that aborts a build run."""

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        entity: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.entity = entity

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class MissingContextError(BuildError):
    """A task asked for a context object that no earlier task published."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"context object not available: {kind}", entity=kind)
        self.kind = kind


class ParameterError(BuildError):
    """Build parameters cannot be used for this run."""


class ResolutionError(BuildError):
    """An inclusion rule cannot be resolved."""


class CyclicDependencyError(BuildError):
    """The artifact dependency graph contains a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        path = " -> ".join([*cycle, cycle[0]])
        super().__init__(f"cyclic dependency detected: {path}", entity=cycle[0])
        self.cycle = cycle


class CompilerError(BuildError):
    """The artifact compiler failed or produced incomplete output."""


class ManifestReadError(BuildError):
    """A manifest file exists but cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}", entity=str(path))
        self.path = path
        self.reason = reason
