"""PatchBuilder: the single entry point for a build run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .collector import Collector
from .compiler import ArtifactCompiler
from .context import BuildContext
from .differ import ChangeSet
from .encryption import Encrypter
from .manifest import PatchManifest
from .params import BuildParameters, BuildParametersContext
from .runner import BuildRunner
from .tasks import (
    BuildTask,
    ChangeSetContext,
    CheckCycleTask,
    CompileTask,
    CopyUpdatesTask,
    CreateManifestTask,
    CreateReportTask,
    DiffManifestTask,
    EncryptTask,
    IncrementalTask,
    ManifestContext,
    PrepareTask,
    ResolveTask,
    WriteManifestTask,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of a successful build."""

    manifest: PatchManifest
    changes: ChangeSet
    package_directory: Path


class PatchBuilder:
    """Builds versioned artifact packages and their patch manifests."""

    def __init__(
        self,
        collector: Collector,
        compiler: ArtifactCompiler,
        encrypter: Encrypter | None = None,
    ) -> None:
        self.collector = collector
        self.compiler = compiler
        self.encrypter = encrypter

    def pipeline(self) -> list[BuildTask]:
        """Return the ordered build tasks."""
        return [
            PrepareTask(),
            ResolveTask(self.collector),
            CheckCycleTask(),
            IncrementalTask(),
            CompileTask(self.compiler),
            EncryptTask(self.encrypter),
            CreateManifestTask(),
            DiffManifestTask(),
            WriteManifestTask(),
            CreateReportTask(),
            CopyUpdatesTask(),
        ]

    def run(self, params: BuildParameters) -> BuildResult:
        """Run the full pipeline; raises BuildError on the first failing task."""
        context = BuildContext()
        params_ctx = BuildParametersContext(params)
        context.set(params_ctx)

        logger.info("Building '%s' version %d", params.platform, params.build_version)
        BuildRunner(self.pipeline()).run(context)

        result = BuildResult(
            manifest=context.get(ManifestContext).manifest,
            changes=context.get(ChangeSetContext).changes,
            package_directory=params_ctx.package_directory,
        )
        logger.info("Build complete: %d artifact(s), %d updated", len(result.manifest), len(result.changes))
        return result
