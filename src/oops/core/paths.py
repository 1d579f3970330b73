"""Canonical path handling and deterministic file hashing."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from oops.core.constants import FILE_HASH_LENGTH, TEXT_ENCODING


def canonical_path(file_path: str | Path) -> str:
    """Return the canonical absolute form of a path.

    Symlinks are resolved so two spellings of the same file share one
    store. Works for paths that do not exist (yet).
    """
    return os.path.realpath(os.path.abspath(os.fspath(file_path)))


def file_hash(file_path: str | Path) -> str:
    """Deterministic store key for a file, stable across processes."""
    digest = hashlib.sha256(canonical_path(file_path).encode(TEXT_ENCODING))
    return digest.hexdigest()[:FILE_HASH_LENGTH]


def content_checksum(content: str) -> str:
    """SHA256 checksum of text content."""
    return hashlib.sha256(content.encode(TEXT_ENCODING)).hexdigest()
