"""Encryption of freshly built artifacts."""

from __future__ import annotations

import logging
from typing import Protocol

from .compiler import BuiltArtifact, describe
from .params import HashType

logger = logging.getLogger(__name__)


class Encrypter(Protocol):
    """Selects and encrypts artifact files."""

    def should_encrypt(self, name: str) -> bool: ...

    def encrypt(self, data: bytes) -> bytes: ...


def encrypt_artifacts(
    encrypter: Encrypter,
    outputs: dict[str, BuiltArtifact],
    hash_type: HashType,
) -> dict[str, BuiltArtifact]:
    """Encrypt selected outputs in place and re-hash them."""
    result: dict[str, BuiltArtifact] = {}
    count = 0
    for name, built in outputs.items():
        if built.encrypted or not encrypter.should_encrypt(name):
            result[name] = built
            continue
        built.path.write_bytes(encrypter.encrypt(built.path.read_bytes()))
        result[name] = describe(built.path, name, hash_type, encrypted=True)
        logger.debug("Encrypted '%s'", name)
        count += 1

    logger.info("Encrypted %d artifact(s)", count)
    return result
