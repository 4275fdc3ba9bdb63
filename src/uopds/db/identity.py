# ABOUTME: Stable identifier generation for catalog entries.
# ABOUTME: Content-hash (SHA-1, base32) or random UUID URNs, selected by configuration.

import base64
import hashlib
import uuid
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

_CHUNK_SIZE = 65536  # 64 KB


class IdentityMode(str, Enum):
    """Which identifier scheme a deployment uses for catalog entries."""

    CONTENT_HASH = "content-hash"
    RANDOM = "random"


@runtime_checkable
class IdentityPolicy(Protocol):
    """Protocol for catalog identifier generators."""

    def new_identifier(self, path: Path) -> str: ...


def random_urn() -> str:
    """Return a fresh urn:uuid: identifier."""
    return f"urn:uuid:{uuid.uuid4()}"


def compute_sha1(path: Path) -> bytes:
    """Compute the raw SHA-1 digest of a file, reading it in 64KB chunks.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    hasher = hashlib.sha1()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(_CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.digest()


class RandomIdentity:
    """Random UUID identifiers. No file access, never fails."""

    def new_identifier(self, path: Path) -> str:
        return random_urn()


class ContentHashIdentity:
    """Identifiers derived from the file's bytes.

    Byte-identical files get the same identifier regardless of where they
    live under the book root. The cost is one full read of the file.
    """

    def new_identifier(self, path: Path) -> str:
        """Return urn:sha1: followed by the unpadded base32 SHA-1 of the file.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        digest = compute_sha1(path)
        encoded = base64.b32encode(digest).decode("ascii").rstrip("=")
        return f"urn:sha1:{encoded}"


def identity_policy(mode: IdentityMode) -> IdentityPolicy:
    """Return the identifier generator for a deployment mode."""
    if mode is IdentityMode.RANDOM:
        return RandomIdentity()
    return ContentHashIdentity()


def new_identifier(mode: IdentityMode, path: Path) -> str:
    """Generate an identifier for the file at path under the given mode."""
    return identity_policy(mode).new_identifier(path)
