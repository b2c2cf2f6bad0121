"""Artifact compiler interface, adapter and a reference zip compiler."""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .dependencies import ResolvedArtifact
from .errors import CompilerError
from .graph import DependencyGraph
from .hashing import hash_file
from .params import BuildParameters, CompressOption, HashType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltArtifact:
    """Final on-disk hash and size of a compiled artifact."""

    name: str
    path: Path
    hash: str
    size: int
    encrypted: bool = False


@dataclass
class CompileRequest:
    """Everything the compiler needs for one invocation."""

    artifacts: list[ResolvedArtifact]
    rebuild: list[str]
    output_directory: Path
    project_root: Path
    compress_option: CompressOption = CompressOption.UNCOMPRESSED
    append_hash: bool = False
    disable_type_metadata: bool = False
    ignore_type_metadata_changes: bool = True
    graph: dict[str, list[str]] = field(default_factory=dict)

    def targets(self) -> list[ResolvedArtifact]:
        """Artifacts that must be written by this invocation."""
        wanted = set(self.rebuild)
        return [a for a in self.artifacts if a.name in wanted]


class ArtifactCompiler(Protocol):
    """Writes each rebuilt artifact to ``output_directory / name``.

    Returns the names of the artifacts it produced.
    """

    def compile(self, request: CompileRequest) -> list[str]: ...


def artifact_path(output_directory: Path, name: str) -> Path:
    return output_directory / name


def describe(path: Path, name: str, hash_type: HashType, *, encrypted: bool = False) -> BuiltArtifact:
    """Hash a compiled file and return its BuiltArtifact."""
    return BuiltArtifact(
        name=name,
        path=path,
        hash=hash_file(path, hash_type),
        size=path.stat().st_size,
        encrypted=encrypted,
    )


def compile_artifacts(
    compiler: ArtifactCompiler,
    artifacts: list[ResolvedArtifact],
    rebuild: list[str],
    params: BuildParameters,
    output_directory: Path,
) -> dict[str, BuiltArtifact]:
    """Invoke the compiler for the rebuild set and hash what it produced.

    Any compiler failure, or a rebuilt artifact missing from its output,
    raises CompilerError.
    """
    if not rebuild:
        logger.info("Nothing to compile; all artifacts reused")
        return {}

    request = CompileRequest(
        artifacts=list(artifacts),
        rebuild=list(rebuild),
        output_directory=output_directory,
        project_root=params.project_root,
        compress_option=params.compress_option,
        append_hash=params.append_hash,
        disable_type_metadata=params.disable_type_metadata,
        ignore_type_metadata_changes=params.ignore_type_metadata_changes,
        graph={a.name: list(a.depends) for a in artifacts},
    )

    compiler_name = type(compiler).__name__
    logger.info("Compiling %d artifact(s) with %s", len(rebuild), compiler_name)
    try:
        produced = set(compiler.compile(request))
    except CompilerError:
        raise
    except Exception as exc:
        raise CompilerError(f"{compiler_name} failed: {exc}") from exc

    outputs: dict[str, BuiltArtifact] = {}
    for name in rebuild:
        path = artifact_path(output_directory, name)
        if name not in produced or not path.is_file():
            raise CompilerError(f"compiler did not produce artifact '{name}'", entity=name)
        outputs[name] = describe(path, name, params.hash_type)
        logger.debug("Built '%s' (%d bytes, %s)", name, outputs[name].size, outputs[name].hash)

    return outputs


_ZIP_COMPRESSION = {
    CompressOption.UNCOMPRESSED: zipfile.ZIP_STORED,
    CompressOption.DEFLATE: zipfile.ZIP_DEFLATED,
    CompressOption.LZMA: zipfile.ZIP_LZMA,
}

_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
_DEPENDS_MEMBER = ".depends"


class ZipCompiler:
    """Package each artifact's sources into a reproducible zip archive.

    Members are sorted and stamped with a fixed time, so identical sources
    give byte-identical archives. Each archive also lists the hashes of its
    dependencies' archives, so a dependency change changes its dependents.
    Type-metadata options do not apply.
    """

    def compile(self, request: CompileRequest) -> list[str]:
        compression = _ZIP_COMPRESSION[request.compress_option]
        targets = {a.name: a for a in request.targets()}
        produced: list[str] = []

        graph = request.graph or {a.name: a.depends for a in request.artifacts}
        for name in DependencyGraph(graph).topological_order():
            artifact = targets.get(name)
            if artifact is None:
                continue
            path = artifact_path(request.output_directory, artifact.name)
            path.parent.mkdir(parents=True, exist_ok=True)

            members = sorted((_arcname(src, request.project_root), src) for src in artifact.sources)
            with zipfile.ZipFile(path, "w", compression=compression) as archive:
                for arcname, src in members:
                    info = zipfile.ZipInfo(arcname, date_time=_ZIP_EPOCH)
                    info.compress_type = compression
                    info.external_attr = 0o644 << 16
                    archive.writestr(info, src.read_bytes())
                if artifact.depends:
                    info = zipfile.ZipInfo(_DEPENDS_MEMBER, date_time=_ZIP_EPOCH)
                    info.external_attr = 0o644 << 16
                    archive.writestr(info, _depends_listing(request.output_directory, artifact.depends))

            produced.append(artifact.name)

        return produced


def _arcname(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.name


def _depends_listing(output_directory: Path, depends: list[str]) -> str:
    lines = []
    for dep in depends:
        path = artifact_path(output_directory, dep)
        if not path.is_file():
            raise CompilerError(f"dependency '{dep}' has no compiled output", entity=dep)
        lines.append(f"{dep} {hash_file(path)}\n")
    return "".join(lines)
