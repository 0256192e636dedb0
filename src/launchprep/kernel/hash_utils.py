"""Hash utilities with explicit rules for stable digests.

This module provides the hashing functions behind the build cache and the
reproducibility checks on fetched sources.

Key rules:
- Digests are SHA256, rendered as "sha256:<hex>" unless noted otherwise
- Files are streamed in fixed-size chunks
- Tree digests walk paths in sorted POSIX order and skip VCS metadata
- Binary checksums resolve bare names through PATH, like the shell would
"""

import hashlib
import os
import shutil
from pathlib import Path
from typing import Dict, Union

from launchprep._internal.canonical_json import canonical_dumps
from launchprep.errors import CacheChecksumError, ChecksumToolNotFound

CHUNK_SIZE = 1024 * 1024

# Directories never included in a source tree digest
IGNORED_TREE_DIRS = frozenset({".git"})


def bytes_sha256(content: Union[str, bytes]) -> str:
    """Compute the bare hex SHA256 of raw content."""
    if isinstance(content, str):
        content_bytes = content.encode('utf-8')
    else:
        content_bytes = content
    return hashlib.sha256(content_bytes).hexdigest()


def hash_bytes(content: Union[str, bytes]) -> str:
    """Compute SHA256 hash of raw content.

    Args:
        content: Content as string or bytes

    Returns:
        SHA256 hash as hex string (prefixed with "sha256:")
    """
    return f"sha256:{bytes_sha256(content)}"


def file_sha256(path: Union[str, Path]) -> str:
    """Compute the bare hex SHA256 of a file, streaming it in chunks."""
    h = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b''):
            h.update(chunk)
    return h.hexdigest()


def hash_file(path: Union[str, Path]) -> str:
    """Compute SHA256 hash of a file (prefixed with "sha256:")."""
    return f"sha256:{file_sha256(path)}"


def tree_manifest(root: Union[str, Path]) -> Dict[str, str]:
    """Map every regular file under root to its hash.

    Keys are POSIX relative paths, so the manifest is identical across
    platforms for identical trees. VCS metadata directories are skipped.
    """
    root_path = Path(root)
    manifest: Dict[str, str] = {}
    for dirpath, dirnames, filenames in os.walk(root_path):
        # Prune in place so os.walk never descends into ignored dirs
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_TREE_DIRS)
        for name in sorted(filenames):
            full = Path(dirpath) / name
            if full.is_symlink() or not full.is_file():
                continue
            rel = full.relative_to(root_path).as_posix()
            manifest[rel] = hash_file(full)
    return manifest


def hash_tree(root: Union[str, Path]) -> str:
    """Compute a single digest over a source tree.

    Two trees hash equal iff they contain the same relative paths with the
    same bytes.
    """
    return hash_bytes(canonical_dumps(tree_manifest(root)))


def resolve_binary(binary: Union[str, Path]) -> Path:
    """Resolve a binary name or path to an existing file.

    Raises:
        ChecksumToolNotFound: If the binary is neither a file nor on PATH
    """
    candidate = Path(binary)
    if candidate.is_file():
        return candidate
    if candidate.parent == Path("."):
        found = shutil.which(str(binary))
        if found:
            return Path(found)
    raise ChecksumToolNotFound(f"binary not found: {binary}")


def binary_checksum(binary: Union[str, Path]) -> str:
    """Compute the bare hex SHA256 of the binary currently on disk.

    Raises:
        ChecksumToolNotFound: If the binary does not exist
        CacheChecksumError: If the binary exists but cannot be read
    """
    path = resolve_binary(binary)
    try:
        return file_sha256(path)
    except OSError as e:
        raise CacheChecksumError(f"cannot checksum binary {path}: {e}") from e
