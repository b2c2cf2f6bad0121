"""Tests for patchforge.incremental."""

from __future__ import annotations

from pathlib import Path

from patchforge.collector import InclusionRule
from patchforge.dependencies import resolve_build_map
from patchforge.hashing import hash_file
from patchforge.incremental import plan_rebuild
from patchforge.manifest import ArtifactRecord, PatchManifest
from patchforge.params import CompressOption, HashType


def _write(root: Path, relpath: str, content: str) -> Path:
    path = root / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def _rules() -> list[InclusionRule]:
    return [
        InclusionRule(name="b", sources=["b.txt"], depends=["a"]),
        InclusionRule(name="a", sources=["a.txt"]),
        InclusionRule(name="c", sources=["c.txt"]),
    ]


def _manifest_from(plan, names: list[str], output: Path) -> PatchManifest:
    """A previous manifest that recorded the plan's fingerprints and the cached file hashes."""

    def _hash(name: str) -> str:
        path = output / name
        return hash_file(path) if path.is_file() else "missing"

    return PatchManifest(
        version=1,
        artifacts=[ArtifactRecord(name=n, hash=_hash(n), size=1, fingerprint=plan.fingerprints[n]) for n in names],
    )


def _touch_outputs(output: Path, names: list[str]) -> None:
    output.mkdir(parents=True, exist_ok=True)
    for name in names:
        (output / name).write_bytes(b"built")


class TestPlanRebuild:
    def _setup(self, project: Path):
        _write(project, "a.txt", "alpha")
        _write(project, "b.txt", "bravo")
        _write(project, "c.txt", "charlie")
        return resolve_build_map(_rules(), project)

    def test_first_build_rebuilds_everything(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        plan = plan_rebuild(build_map, PatchManifest(), make_params(1), tmp_path / "out")
        assert plan.rebuild == ["b", "a", "c"]
        assert plan.reused == []
        assert set(plan.fingerprints) == {"a", "b", "c"}

    def test_unchanged_inputs_are_reused(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        out = tmp_path / "out"
        first = plan_rebuild(build_map, PatchManifest(), make_params(1), out)
        _touch_outputs(out, ["a", "b", "c"])

        second = plan_rebuild(build_map, _manifest_from(first, ["a", "b", "c"], out), make_params(2), out)
        assert second.rebuild == []
        assert second.reused == ["b", "a", "c"]
        assert second.fingerprints == first.fingerprints

    def test_dependency_change_rebuilds_dependents(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        out = tmp_path / "out"
        first = plan_rebuild(build_map, PatchManifest(), make_params(1), out)
        _touch_outputs(out, ["a", "b", "c"])

        _write(project, "a.txt", "alpha v2")
        second = plan_rebuild(build_map, _manifest_from(first, ["a", "b", "c"], out), make_params(2), out)
        assert second.rebuild == ["b", "a"]
        assert second.reused == ["c"]
        assert second.needs_rebuild("b")

    def test_dependent_change_does_not_rebuild_dependency(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        out = tmp_path / "out"
        first = plan_rebuild(build_map, PatchManifest(), make_params(1), out)
        _touch_outputs(out, ["a", "b", "c"])

        _write(project, "b.txt", "bravo v2")
        second = plan_rebuild(build_map, _manifest_from(first, ["a", "b", "c"], out), make_params(2), out)
        assert second.rebuild == ["b"]

    def test_force_rebuild_ignores_fingerprints(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        out = tmp_path / "out"
        first = plan_rebuild(build_map, PatchManifest(), make_params(1), out)
        _touch_outputs(out, ["a", "b", "c"])

        forced = plan_rebuild(build_map, _manifest_from(first, ["a", "b", "c"], out), make_params(2, force_rebuild=True), out)
        assert forced.rebuild == ["b", "a", "c"]
        assert forced.reused == []

    def test_missing_output_file_forces_rebuild(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        out = tmp_path / "out"
        first = plan_rebuild(build_map, PatchManifest(), make_params(1), out)
        _touch_outputs(out, ["a", "b"])

        second = plan_rebuild(build_map, _manifest_from(first, ["a", "b", "c"], out), make_params(2), out)
        assert second.rebuild == ["c"]

    def test_new_artifact_is_rebuilt(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        out = tmp_path / "out"
        first = plan_rebuild(build_map, PatchManifest(), make_params(1), out)
        _touch_outputs(out, ["a", "b", "c"])

        second = plan_rebuild(build_map, _manifest_from(first, ["a", "b"], out), make_params(2), out)
        assert second.rebuild == ["c"]

    def test_compression_change_rebuilds(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        out = tmp_path / "out"
        first = plan_rebuild(build_map, PatchManifest(), make_params(1), out)
        _touch_outputs(out, ["a", "b", "c"])

        params = make_params(2, compress_option=CompressOption.LZMA)
        second = plan_rebuild(build_map, _manifest_from(first, ["a", "b", "c"], out), params, out)
        assert second.rebuild == ["b", "a", "c"]

    def test_output_not_matching_manifest_rebuilds(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        out = tmp_path / "out"
        first = plan_rebuild(build_map, PatchManifest(), make_params(1), out)
        _touch_outputs(out, ["a", "b", "c"])
        previous = _manifest_from(first, ["a", "b", "c"], out)

        (out / "c").write_bytes(b"left over from an aborted run")
        second = plan_rebuild(build_map, previous, make_params(2), out)
        assert second.rebuild == ["c"]
        assert second.reused == ["b", "a"]

    def test_hash_type_change_rebuilds(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        out = tmp_path / "out"
        first = plan_rebuild(build_map, PatchManifest(), make_params(1), out)
        _touch_outputs(out, ["a", "b", "c"])

        params = make_params(2, hash_type=HashType.MD5)
        second = plan_rebuild(build_map, _manifest_from(first, ["a", "b", "c"], out), params, out)
        assert second.rebuild == ["b", "a", "c"]
        assert second.fingerprints != first.fingerprints

    def test_previous_manifest_is_kept(self, project, make_params, tmp_path):
        build_map = self._setup(project)
        previous = PatchManifest(version=9)
        plan = plan_rebuild(build_map, previous, make_params(10), tmp_path / "out")
        assert plan.previous is previous
