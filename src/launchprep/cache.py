"""Build cache: skip rebuilding a launch binary from unchanged sources.

Records live in a single canonical JSON file. Reads and writes are not locked
across processes; preparing the same launch concurrently is unsupported.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import NamedTuple, Optional, Union

from pydantic import ValidationError

from launchprep._internal.canonical_json import canonical_dumps
from launchprep._internal.fsutil import atomic_write_text
from launchprep.errors import CacheChecksumError, ChecksumToolNotFound
from launchprep.kernel.cache_record import BinaryCacheFile, CachedBinaryRecord
from launchprep.kernel.hash_utils import binary_checksum

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "binary-cache.json"


class CacheLookup(NamedTuple):
    binary: str
    hit: bool


class BuildCache:
    """Maps (launch id, source hash) to a checksum-verified binary."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @classmethod
    def in_directory(cls, directory: Union[str, Path]) -> "BuildCache":
        return cls(Path(directory) / CACHE_FILE_NAME)

    def _load(self) -> BinaryCacheFile:
        if not self.path.exists():
            return BinaryCacheFile()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return BinaryCacheFile(**json.load(f))
        except (ValueError, TypeError, ValidationError) as e:
            # A corrupt record only costs a rebuild
            logger.warning("ignoring unreadable build cache %s: %s", self.path, e)
            return BinaryCacheFile()

    def record(self, launch_id: int) -> Optional[CachedBinaryRecord]:
        """Return the stored record for a launch, if any."""
        return self._load().records.get(str(launch_id))

    def lookup(self, launch_id: int, source_hash: str, binary: str) -> CacheLookup:
        """Check whether ``binary`` can be reused for this launch and source.

        A hit needs a record for exactly (launch_id, source_hash) whose
        checksum equals the checksum of the binary on disk right now. A
        missing binary is a miss; any other checksum failure propagates.

        Raises:
            CacheChecksumError: If the binary exists but cannot be checksummed
        """
        if launch_id == 0:
            return CacheLookup(binary, False)
        rec = self.record(launch_id)
        if rec is None or rec.source_hash != source_hash:
            logger.debug("cache miss for launch %d: no record for %s", launch_id, source_hash)
            return CacheLookup(binary, False)
        try:
            current = binary_checksum(binary)
        except ChecksumToolNotFound:
            logger.info("cache miss for launch %d: binary %s not found", launch_id, binary)
            return CacheLookup(binary, False)
        if current != rec.binary_checksum:
            logger.info("cache miss for launch %d: binary %s changed since build", launch_id, binary)
            return CacheLookup(binary, False)
        logger.info("cache hit for launch %d at %s", launch_id, source_hash)
        return CacheLookup(binary, True)

    def store(self, launch_id: int, source_hash: str, binary_checksum_hex: str) -> None:
        """Record the checksum of a freshly built binary.

        Launch id 0 is never cached.
        """
        if launch_id == 0:
            return
        if not binary_checksum_hex:
            raise CacheChecksumError("refusing to cache an empty checksum")
        data = self._load()
        records = dict(data.records)
        records[str(launch_id)] = CachedBinaryRecord(
            launch_id=launch_id,
            source_hash=source_hash,
            binary_checksum=binary_checksum_hex,
        )
        data = BinaryCacheFile(records=records)
        atomic_write_text(self.path, canonical_dumps(data.model_dump()) + "\n")
        logger.debug("cached binary for launch %d at %s", launch_id, source_hash)
