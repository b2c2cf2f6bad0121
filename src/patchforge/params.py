"""Build parameters and the context object that carries them."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

from .context import ContextObject

MANIFEST_FILE_NAME = "patch_manifest.json"
REPORT_FILE_NAME = "build_report.txt"
OUTPUT_DIR_NAME = "output"


class HashType(StrEnum):
    """Hash algorithm used to verify artifact files."""

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    CRC32 = "crc32"


class CompressOption(StrEnum):
    """Compression applied by the artifact compiler."""

    UNCOMPRESSED = "uncompressed"
    DEFLATE = "deflate"
    LZMA = "lzma"


class BuildParameters(BaseModel):
    """Inputs for a single build run."""

    model_config = {"frozen": True, "extra": "forbid"}

    output_root: Path
    platform: str = Field(min_length=1)
    build_version: int = Field(ge=1)
    hash_type: HashType = HashType.SHA256
    compress_option: CompressOption = CompressOption.UNCOMPRESSED
    force_rebuild: bool = False
    project_root: Path = Field(default_factory=Path.cwd)

    # advanced options
    append_hash: bool = False
    disable_type_metadata: bool = False
    ignore_type_metadata_changes: bool = True


class BuildParametersContext(ContextObject):
    """Build parameters plus the directories derived from them."""

    def __init__(self, params: BuildParameters) -> None:
        self.params = params

    @property
    def platform_directory(self) -> Path:
        return self.params.output_root / self.params.platform

    @property
    def output_directory(self) -> Path:
        """Incremental build cache shared by every version of a platform."""
        return self.platform_directory / OUTPUT_DIR_NAME

    @property
    def package_directory(self) -> Path:
        """Directory holding the patch for the current build version."""
        return self.version_directory(self.params.build_version)

    def version_directory(self, version: int) -> Path:
        return self.platform_directory / str(version)

    def __repr__(self) -> str:
        return f"BuildParametersContext(platform={self.params.platform!r}, version={self.params.build_version})"
