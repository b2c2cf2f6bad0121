"""Patch manifest model, serialization and assembly."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import ManifestReadError

if TYPE_CHECKING:
    from .compiler import BuiltArtifact

logger = logging.getLogger(__name__)

MANIFEST_FORMAT = 1


class ArtifactRecord(BaseModel):
    """A single built artifact as recorded in the manifest."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(min_length=1)
    hash: str
    size: int = Field(ge=0)
    depends: list[str] = Field(default_factory=list)
    fingerprint: str = ""
    version: int = Field(default=0, ge=0)
    encrypted: bool = False


class Variant(BaseModel):
    """An alternate form of an artifact, e.g. a locale."""

    model_config = {"frozen": True, "extra": "forbid"}

    artifact: str = Field(min_length=1)
    tag: str = Field(min_length=1)

    @property
    def identifier(self) -> str:
        return f"{self.artifact}@{self.tag}"

    def __str__(self) -> str:
        return self.identifier


class PatchManifest(BaseModel):
    """Versioned record of every artifact and variant produced by one build."""

    model_config = {"extra": "forbid"}

    format: int = MANIFEST_FORMAT
    version: int = Field(default=0, ge=0)
    artifacts: list[ArtifactRecord] = Field(default_factory=list)
    variants: list[Variant] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> PatchManifest:
        names: set[str] = set()
        for record in self.artifacts:
            if record.name in names:
                raise ValueError(f"duplicate artifact '{record.name}'")
            names.add(record.name)
        for record in self.artifacts:
            for dep in record.depends:
                if dep not in names:
                    raise ValueError(f"artifact '{record.name}' depends on unknown artifact '{dep}'")
        return self

    def find(self, name: str) -> ArtifactRecord | None:
        """Return the record for ``name``, or None."""
        for record in self.artifacts:
            if record.name == name:
                return record
        return None

    def records(self) -> dict[str, ArtifactRecord]:
        """Return the artifact records keyed by name, in manifest order."""
        return {record.name: record for record in self.artifacts}

    def names(self) -> list[str]:
        return [record.name for record in self.artifacts]

    def __contains__(self, name: object) -> bool:
        return any(record.name == name for record in self.artifacts)

    def __len__(self) -> int:
        return len(self.artifacts)


def serialize(manifest: PatchManifest) -> str:
    """Render a manifest as stable, indented JSON."""
    return manifest.model_dump_json(indent=2) + "\n"


def deserialize(text: str) -> PatchManifest:
    """Parse manifest JSON; raises ValueError if the content is not a valid manifest."""
    try:
        manifest = PatchManifest.model_validate_json(text)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc
    if manifest.format > MANIFEST_FORMAT:
        raise ValueError(f"unsupported manifest format {manifest.format}")
    return manifest


def load_manifest(path: Path) -> PatchManifest:
    """Load a manifest file.

    A missing file is a fresh install and yields an empty manifest. A file
    that exists but cannot be read or parsed raises ManifestReadError.
    """
    if not path.is_file():
        logger.debug("No manifest at %s", path)
        return PatchManifest()

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestReadError(path, str(exc)) from exc

    try:
        manifest = deserialize(text)
    except ValueError as exc:
        raise ManifestReadError(path, str(exc)) from exc

    logger.debug("Loaded manifest v%d with %d artifact(s) from %s", manifest.version, len(manifest), path)
    return manifest


def save_manifest(manifest: PatchManifest, path: Path) -> None:
    """Write a manifest file, replacing any existing one."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(serialize(manifest), encoding="utf-8")
    tmp.replace(path)
    logger.debug("Wrote manifest v%d to %s", manifest.version, path)


class ManifestBuilder:
    """Assemble the manifest for a build version.

    Rebuilt artifacts take their hash and size from the compile output; reused
    artifacts copy them from the previous manifest. Records keep the order of
    the resolved artifact list.
    """

    def __init__(self, version: int, previous: PatchManifest) -> None:
        self.version = version
        self.previous = previous

    def build(
        self,
        artifacts: Sequence[tuple[str, Sequence[str]]],
        fingerprints: Mapping[str, str],
        outputs: Mapping[str, BuiltArtifact],
        variants: Sequence[Variant] = (),
    ) -> PatchManifest:
        previous = self.previous.records()
        records: list[ArtifactRecord] = []

        for name, depends in artifacts:
            prior = previous.get(name)
            built: BuiltArtifact | ArtifactRecord | None = outputs.get(name, prior)
            if built is None:
                raise ValueError(f"no build output for artifact '{name}'")

            if prior is not None and prior.hash == built.hash:
                version = prior.version or self.version
            else:
                version = self.version

            records.append(
                ArtifactRecord(
                    name=name,
                    hash=built.hash,
                    size=built.size,
                    depends=list(depends),
                    fingerprint=fingerprints.get(name, prior.fingerprint if prior else ""),
                    version=version,
                    encrypted=built.encrypted,
                )
            )

        manifest = PatchManifest(version=self.version, artifacts=records, variants=list(variants))
        logger.debug("Assembled manifest v%d with %d artifact(s)", self.version, len(records))
        return manifest
