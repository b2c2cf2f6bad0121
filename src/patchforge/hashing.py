"""File and content hashing helpers."""

from __future__ import annotations

import hashlib
import zlib
from collections.abc import Iterable
from pathlib import Path

from .params import HashType

_CHUNK_SIZE = 1024 * 1024


def hash_file(path: Path, hash_type: HashType = HashType.SHA256) -> str:
    """Return the hex digest of a file's bytes using the selected algorithm."""
    if hash_type is HashType.CRC32:
        crc = 0
        with path.open("rb") as fp:
            while chunk := fp.read(_CHUNK_SIZE):
                crc = zlib.crc32(chunk, crc)
        return f"{crc:08x}"

    digest = hashlib.new(hash_type.value)
    with path.open("rb") as fp:
        while chunk := fp.read(_CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


def hash_strings(parts: Iterable[str]) -> str:
    """SHA-256 over a sequence of strings, each terminated by a NUL byte."""
    digest = hashlib.sha256()
    for part in parts:
        digest.update(part.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


def hash_sources(sources: Iterable[Path], root: Path) -> str:
    """SHA-256 over the relative path and content of each source, in path order."""
    digest = hashlib.sha256()
    for path in sorted(sources, key=lambda p: _relative(p, root)):
        digest.update(_relative(path, root).encode("utf-8"))
        digest.update(b"\0")
        with path.open("rb") as fp:
            while chunk := fp.read(_CHUNK_SIZE):
                digest.update(chunk)
        digest.update(b"\0")
    return digest.hexdigest()


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
