"""Incremental build decisions based on input fingerprints."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .dependencies import BuildMap
from .hashing import hash_file, hash_sources, hash_strings
from .manifest import PatchManifest
from .params import BuildParameters

logger = logging.getLogger(__name__)


@dataclass
class RebuildPlan:
    """Per-artifact fingerprints and the rebuild/reuse split."""

    fingerprints: dict[str, str] = field(default_factory=dict)
    rebuild: list[str] = field(default_factory=list)
    reused: list[str] = field(default_factory=list)
    previous: PatchManifest = field(default_factory=PatchManifest)

    def needs_rebuild(self, name: str) -> bool:
        return name in self.rebuild


def settings_salt(params: BuildParameters) -> str:
    """Encode the build options that change compiled bytes or their recorded hashes."""
    return (
        f"compress={params.compress_option.value};"
        f"type_metadata={not params.disable_type_metadata};"
        f"hash={params.hash_type.value}"
    )


def compute_fingerprint(salt: str, source_hash: str, dependency_fingerprints: list[str]) -> str:
    return hash_strings([salt, source_hash, *dependency_fingerprints])


def plan_rebuild(
    build_map: BuildMap,
    previous: PatchManifest,
    params: BuildParameters,
    output_directory: Path,
) -> RebuildPlan:
    """Decide which artifacts must be rebuilt.

    Fingerprints are computed dependencies first, so a dependency's change
    reaches all of its dependents through their fingerprints. An artifact is
    only reused when its cached file still hashes to the recorded value.
    """
    salt = settings_salt(params)
    prior = previous.records()
    artifacts = {a.name: a for a in build_map.artifacts}
    plan = RebuildPlan(previous=previous)
    decisions: dict[str, bool] = {}

    for name in build_map.graph().topological_order():
        artifact = artifacts[name]
        output = output_directory / name

        source_hash = hash_sources(artifact.sources, params.project_root)
        fingerprint = compute_fingerprint(salt, source_hash, [plan.fingerprints[d] for d in artifact.depends])
        plan.fingerprints[name] = fingerprint

        record = prior.get(name)
        if params.force_rebuild:
            reason = "forced"
        elif record is None:
            reason = "new"
        elif record.fingerprint != fingerprint:
            reason = "inputs changed"
        elif not output.is_file():
            reason = "output missing"
        elif hash_file(output, params.hash_type) != record.hash:
            reason = "output does not match manifest"
        else:
            reason = None

        decisions[name] = reason is not None
        if reason:
            logger.debug("Rebuild '%s': %s", name, reason)
        else:
            logger.debug("Reuse '%s'", name)

    for name in build_map.names():
        (plan.rebuild if decisions[name] else plan.reused).append(name)

    logger.info("%d artifact(s) to rebuild, %d reused", len(plan.rebuild), len(plan.reused))
    return plan
