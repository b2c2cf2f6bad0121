"""Tests for patchforge.compiler."""

from __future__ import annotations

import hashlib
import zipfile
from pathlib import Path

import pytest

from patchforge.compiler import CompileRequest, ZipCompiler, compile_artifacts
from patchforge.dependencies import ResolvedArtifact
from patchforge.errors import CompilerError
from patchforge.params import CompressOption, HashType


class RecordingCompiler:
    """Writes each target's name as its content and remembers the request."""

    def __init__(self, skip: set[str] | None = None) -> None:
        self.requests: list[CompileRequest] = []
        self.skip = skip or set()

    def compile(self, request: CompileRequest) -> list[str]:
        self.requests.append(request)
        produced = []
        for artifact in request.targets():
            if artifact.name in self.skip:
                continue
            path = request.output_directory / artifact.name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"built {artifact.name}")
            produced.append(artifact.name)
        return produced


class ExplodingCompiler:
    def compile(self, request: CompileRequest) -> list[str]:
        raise RuntimeError("engine crashed: out of memory")


def _artifacts() -> list[ResolvedArtifact]:
    return [ResolvedArtifact(name="a"), ResolvedArtifact(name="ui/b", depends=["a"])]


class TestCompileArtifacts:
    def test_hashes_and_sizes_outputs(self, make_params, tmp_path):
        out = tmp_path / "out"
        outputs = compile_artifacts(RecordingCompiler(), _artifacts(), ["a", "ui/b"], make_params(), out)
        assert set(outputs) == {"a", "ui/b"}
        expected = hashlib.sha256(b"built ui/b").hexdigest()
        assert outputs["ui/b"].hash == expected
        assert outputs["ui/b"].size == len(b"built ui/b")
        assert outputs["ui/b"].path == out / "ui/b"

    def test_request_carries_options(self, make_params, tmp_path):
        compiler = RecordingCompiler()
        params = make_params(compress_option=CompressOption.LZMA, append_hash=True, disable_type_metadata=True)
        compile_artifacts(compiler, _artifacts(), ["a"], params, tmp_path / "out")
        request = compiler.requests[0]
        assert request.rebuild == ["a"]
        assert [a.name for a in request.targets()] == ["a"]
        assert request.compress_option is CompressOption.LZMA
        assert request.append_hash is True
        assert request.disable_type_metadata is True
        assert request.graph == {"a": [], "ui/b": ["a"]}

    def test_empty_rebuild_skips_compiler(self, make_params, tmp_path):
        compiler = RecordingCompiler()
        assert compile_artifacts(compiler, _artifacts(), [], make_params(), tmp_path / "out") == {}
        assert compiler.requests == []

    def test_compiler_exception_wrapped(self, make_params, tmp_path):
        with pytest.raises(CompilerError, match="out of memory") as info:
            compile_artifacts(ExplodingCompiler(), _artifacts(), ["a"], make_params(), tmp_path / "out")
        assert isinstance(info.value.__cause__, RuntimeError)

    def test_missing_output_raises(self, make_params, tmp_path):
        compiler = RecordingCompiler(skip={"ui/b"})
        with pytest.raises(CompilerError, match="ui/b") as info:
            compile_artifacts(compiler, _artifacts(), ["a", "ui/b"], make_params(), tmp_path / "out")
        assert info.value.entity == "ui/b"

    def test_hash_type_selects_algorithm(self, make_params, tmp_path):
        params = make_params(hash_type=HashType.MD5)
        outputs = compile_artifacts(RecordingCompiler(), _artifacts(), ["a"], params, tmp_path / "out")
        assert outputs["a"].hash == hashlib.md5(b"built a").hexdigest()


class TestZipCompiler:
    def _request(self, project: Path, out: Path, **kwargs) -> CompileRequest:
        (project / "a.txt").write_text("alpha")
        (project / "b.txt").write_text("bravo")
        artifacts = [
            ResolvedArtifact(name="b", sources=[project / "b.txt"], depends=["a"]),
            ResolvedArtifact(name="a", sources=[project / "a.txt"]),
        ]
        return CompileRequest(
            artifacts=artifacts,
            rebuild=["b", "a"],
            output_directory=out,
            project_root=project,
            graph={"b": ["a"], "a": []},
            **kwargs,
        )

    def test_writes_archives_dependencies_first(self, project, tmp_path):
        out = tmp_path / "out"
        produced = ZipCompiler().compile(self._request(project, out))
        assert produced == ["a", "b"]
        with zipfile.ZipFile(out / "b") as archive:
            assert archive.read("b.txt") == b"bravo"
            listing = archive.read(".depends").decode()
        assert listing.startswith("a ")

    def test_output_is_reproducible(self, project, tmp_path):
        first = tmp_path / "one"
        second = tmp_path / "two"
        ZipCompiler().compile(self._request(project, first))
        ZipCompiler().compile(self._request(project, second))
        assert (first / "a").read_bytes() == (second / "a").read_bytes()
        assert (first / "b").read_bytes() == (second / "b").read_bytes()

    def test_compression_option(self, project, tmp_path):
        out = tmp_path / "out"
        ZipCompiler().compile(self._request(project, out, compress_option=CompressOption.DEFLATE))
        with zipfile.ZipFile(out / "a") as archive:
            assert archive.getinfo("a.txt").compress_type == zipfile.ZIP_DEFLATED
