"""Build pipeline tasks and the context objects they publish."""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from . import report
from .collector import Collector
from .compiler import ArtifactCompiler, BuiltArtifact, artifact_path, compile_artifacts
from .context import BuildContext, ContextObject
from .dependencies import BuildMap, resolve_build_map
from .differ import ChangeSet, diff_manifests, load_predecessor
from .encryption import Encrypter, encrypt_artifacts
from .errors import ParameterError
from .incremental import RebuildPlan, plan_rebuild
from .manifest import ManifestBuilder, PatchManifest, load_manifest, save_manifest
from .params import MANIFEST_FILE_NAME, REPORT_FILE_NAME, BuildParametersContext

logger = logging.getLogger(__name__)

# -- Context Objects --


class BuildMapContext(ContextObject):
    def __init__(self, build_map: BuildMap) -> None:
        self.build_map = build_map


class RebuildPlanContext(ContextObject):
    def __init__(self, plan: RebuildPlan) -> None:
        self.plan = plan


class BuildOutputContext(ContextObject):
    """Hash and size of every artifact compiled in this run."""

    def __init__(self, outputs: dict[str, BuiltArtifact]) -> None:
        self.outputs = outputs


class ManifestContext(ContextObject):
    def __init__(self, manifest: PatchManifest) -> None:
        self.manifest = manifest


class ChangeSetContext(ContextObject):
    def __init__(self, changes: ChangeSet, prior: PatchManifest) -> None:
        self.changes = changes
        self.prior = prior


# -- Tasks --


class BuildTask(ABC):
    """A single pipeline stage; reads and publishes context objects."""

    name: str = "task"

    @abstractmethod
    def run(self, context: BuildContext) -> None: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class PrepareTask(BuildTask):
    """Validate the output location and create the build directories."""

    name = "prepare"

    def run(self, context: BuildContext) -> None:
        params_ctx = context.get(BuildParametersContext)
        params = params_ctx.params

        if not params.project_root.is_dir():
            raise ParameterError(f"project root does not exist: {params.project_root}", entity=str(params.project_root))
        if params_ctx.output_directory.exists() and not params_ctx.output_directory.is_dir():
            raise ParameterError(f"output path is not a directory: {params_ctx.output_directory}")

        if params.force_rebuild and params_ctx.output_directory.is_dir():
            logger.info("Force rebuild; clearing %s", params_ctx.output_directory)
            _clear_build_cache(params_ctx.output_directory)

        if params_ctx.package_directory.is_dir():
            logger.warning("Package directory already exists and will be replaced: %s", params_ctx.package_directory)
            shutil.rmtree(params_ctx.package_directory)

        params_ctx.output_directory.mkdir(parents=True, exist_ok=True)


class ResolveTask(BuildTask):
    """Collect inclusion rules and resolve the build map."""

    name = "resolve"

    def __init__(self, collector: Collector) -> None:
        self.collector = collector

    def run(self, context: BuildContext) -> None:
        params = context.get(BuildParametersContext).params
        rules = self.collector.collect(params.platform)
        build_map = resolve_build_map(rules, params.project_root)
        context.set(BuildMapContext(build_map))


class CheckCycleTask(BuildTask):
    """Reject dependency graphs that contain a cycle."""

    name = "check-cycle"

    def run(self, context: BuildContext) -> None:
        build_map = context.get(BuildMapContext).build_map
        build_map.graph().check_acyclic()


class IncrementalTask(BuildTask):
    """Decide which artifacts to rebuild against the most recent manifest."""

    name = "incremental"

    def run(self, context: BuildContext) -> None:
        params_ctx = context.get(BuildParametersContext)
        build_map = context.get(BuildMapContext).build_map

        previous = load_manifest(params_ctx.output_directory / MANIFEST_FILE_NAME)
        plan = plan_rebuild(build_map, previous, params_ctx.params, params_ctx.output_directory)
        context.set(RebuildPlanContext(plan))


class CompileTask(BuildTask):
    """Run the artifact compiler for the rebuild set."""

    name = "compile"

    def __init__(self, compiler: ArtifactCompiler) -> None:
        self.compiler = compiler

    def run(self, context: BuildContext) -> None:
        params_ctx = context.get(BuildParametersContext)
        build_map = context.get(BuildMapContext).build_map
        plan = context.get(RebuildPlanContext).plan

        outputs = compile_artifacts(
            self.compiler,
            build_map.artifacts,
            plan.rebuild,
            params_ctx.params,
            params_ctx.output_directory,
        )
        context.set(BuildOutputContext(outputs))


class EncryptTask(BuildTask):
    """Encrypt freshly built artifacts selected by the encrypter."""

    name = "encrypt"

    def __init__(self, encrypter: Encrypter | None = None) -> None:
        self.encrypter = encrypter

    def run(self, context: BuildContext) -> None:
        if self.encrypter is None:
            logger.debug("No encrypter configured")
            return
        params = context.get(BuildParametersContext).params
        output_ctx = context.get(BuildOutputContext)
        output_ctx.outputs = encrypt_artifacts(self.encrypter, output_ctx.outputs, params.hash_type)


class CreateManifestTask(BuildTask):
    """Assemble the manifest for the current version."""

    name = "create-manifest"

    def run(self, context: BuildContext) -> None:
        params = context.get(BuildParametersContext).params
        build_map = context.get(BuildMapContext).build_map
        plan = context.get(RebuildPlanContext).plan
        outputs = context.get(BuildOutputContext).outputs

        builder = ManifestBuilder(params.build_version, plan.previous)
        manifest = builder.build(
            [(a.name, a.depends) for a in build_map.artifacts],
            plan.fingerprints,
            outputs,
            build_map.variants,
        )
        context.set(ManifestContext(manifest))


class DiffManifestTask(BuildTask):
    """Compare the new manifest with the previous version's."""

    name = "diff-manifest"

    def run(self, context: BuildContext) -> None:
        params_ctx = context.get(BuildParametersContext)
        manifest = context.get(ManifestContext).manifest

        prior = load_predecessor(params_ctx)
        changes = diff_manifests(prior, manifest)
        context.set(ChangeSetContext(changes, prior))


class WriteManifestTask(BuildTask):
    """Persist the manifest to the package and build output directories."""

    name = "write-manifest"

    def run(self, context: BuildContext) -> None:
        params_ctx = context.get(BuildParametersContext)
        manifest = context.get(ManifestContext).manifest

        save_manifest(manifest, params_ctx.package_directory / MANIFEST_FILE_NAME)
        save_manifest(manifest, params_ctx.output_directory / MANIFEST_FILE_NAME)
        logger.info("Created manifest v%d with %d artifact(s)", manifest.version, len(manifest))


class CreateReportTask(BuildTask):
    """Write the human-readable build report."""

    name = "create-report"

    def run(self, context: BuildContext) -> None:
        params_ctx = context.get(BuildParametersContext)
        manifest = context.get(ManifestContext).manifest
        changes = context.get(ChangeSetContext).changes

        text = report.render_report(params_ctx.params, manifest, changes)
        report.write_report(params_ctx.package_directory / REPORT_FILE_NAME, text)


class CopyUpdatesTask(BuildTask):
    """Stage the changed artifact files in the package directory."""

    name = "copy-updates"

    def run(self, context: BuildContext) -> None:
        params_ctx = context.get(BuildParametersContext)
        manifest = context.get(ManifestContext).manifest
        changes = context.get(ChangeSetContext).changes
        records = manifest.records()

        for name in changes:
            src = artifact_path(params_ctx.output_directory, name)
            filename = f"{name}_{records[name].hash}" if params_ctx.params.append_hash else name
            dest = params_ctx.package_directory / filename
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dest)
            logger.debug("Copied '%s' to %s", name, dest)

        logger.info("Copied %d updated artifact(s) to %s", len(changes), params_ctx.package_directory)


def _clear_build_cache(directory: Path) -> None:
    """Delete compiled artifacts; the cached manifest survives for version tracking."""
    for entry in directory.iterdir():
        if entry.name == MANIFEST_FILE_NAME:
            continue
        if entry.is_dir():
            shutil.rmtree(entry)
        else:
            entry.unlink()
