"""Manifest differ: which artifacts must be redistributed."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from .manifest import PatchManifest, load_manifest
from .params import MANIFEST_FILE_NAME, BuildParametersContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeSet:
    """Artifacts that are new or changed relative to the prior version.

    Names keep the order of the current manifest. ``removed`` lists artifacts
    of the prior version that are gone; they are not members of the set.
    """

    new: tuple[str, ...] = ()
    changed: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()
    order: tuple[str, ...] = field(default=(), repr=False)

    @property
    def names(self) -> list[str]:
        return list(self.order)

    def __contains__(self, name: object) -> bool:
        return name in self.order

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)


def diff_manifests(prior: PatchManifest, current: PatchManifest) -> ChangeSet:
    """Compute the artifacts of ``current`` that are absent from or differ in ``prior``.

    Hash identity decides; how an artifact was produced does not matter.
    """
    previous = prior.records()
    new: list[str] = []
    changed: list[str] = []
    order: list[str] = []

    for record in current.artifacts:
        old = previous.get(record.name)
        if old is None:
            new.append(record.name)
        elif old.hash != record.hash:
            changed.append(record.name)
        else:
            continue
        order.append(record.name)

    removed = [name for name in previous if name not in current]

    changes = ChangeSet(new=tuple(new), changed=tuple(changed), removed=tuple(removed), order=tuple(order))
    logger.info(
        "Manifest v%d -> v%d: %d new, %d changed, %d removed",
        prior.version,
        current.version,
        len(new),
        len(changed),
        len(removed),
    )
    return changes


def load_predecessor(params_ctx: BuildParametersContext) -> PatchManifest:
    """Load the manifest of the numeric predecessor of the current build version.

    Returns an empty manifest when that version was never built.
    """
    version = params_ctx.params.build_version - 1
    if version < 1:
        return PatchManifest()
    return load_manifest(params_ctx.version_directory(version) / MANIFEST_FILE_NAME)
