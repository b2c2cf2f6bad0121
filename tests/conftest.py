"""Shared fixtures for patchforge tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from patchforge.params import BuildParameters


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def make_params(tmp_path: Path, project: Path):
    def _make(version: int = 1, **kwargs) -> BuildParameters:
        kwargs.setdefault("output_root", tmp_path / "dist")
        kwargs.setdefault("platform", "linux")
        kwargs.setdefault("project_root", project)
        return BuildParameters(build_version=version, **kwargs)

    return _make
