"""Tests for patchforge.params."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from patchforge.params import BuildParameters, BuildParametersContext, CompressOption, HashType


class TestBuildParameters:
    def test_defaults(self, tmp_path):
        params = BuildParameters(output_root=tmp_path, platform="linux", build_version=1)
        assert params.hash_type is HashType.SHA256
        assert params.compress_option is CompressOption.UNCOMPRESSED
        assert params.force_rebuild is False
        assert params.append_hash is False
        assert params.disable_type_metadata is False
        assert params.ignore_type_metadata_changes is True
        assert params.project_root == Path.cwd()

    def test_version_must_be_positive(self, tmp_path):
        with pytest.raises(ValidationError):
            BuildParameters(output_root=tmp_path, platform="linux", build_version=0)

    def test_platform_required(self, tmp_path):
        with pytest.raises(ValidationError):
            BuildParameters(output_root=tmp_path, platform="", build_version=1)

    def test_frozen(self, tmp_path):
        params = BuildParameters(output_root=tmp_path, platform="linux", build_version=1)
        with pytest.raises(ValidationError):
            params.build_version = 2  # type: ignore[misc]

    def test_enums_from_strings(self, tmp_path):
        params = BuildParameters(
            output_root=str(tmp_path),
            platform="linux",
            build_version=1,
            hash_type="crc32",
            compress_option="deflate",
        )
        assert params.hash_type is HashType.CRC32
        assert params.compress_option is CompressOption.DEFLATE


class TestBuildParametersContext:
    def test_directories(self, tmp_path):
        ctx = BuildParametersContext(BuildParameters(output_root=tmp_path, platform="ios", build_version=7))
        assert ctx.platform_directory == tmp_path / "ios"
        assert ctx.output_directory == tmp_path / "ios" / "output"
        assert ctx.package_directory == tmp_path / "ios" / "7"
        assert ctx.version_directory(6) == tmp_path / "ios" / "6"
