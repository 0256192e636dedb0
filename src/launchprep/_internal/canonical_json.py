"""Centralized canonical JSON serialization.

This module provides a single function for byte-stable JSON serialization
used everywhere a document is persisted: genesis writes, the build-cache
record and source-tree digests.

Critical: re-running preparation over the same contributions must produce
byte-identical genesis documents, so every write goes through here.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Canonical JSON serialization for byte-stable documents.

    Rules:
    - UTF-8 encoding
    - Sorted keys
    - Stable separators (",", ":")
    - Deterministic list ordering (lists keep the order they were built in)
    - No trailing whitespace

    Args:
        obj: Python object to serialize

    Returns:
        Canonical JSON string (UTF-8 encoded)
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False  # UTF-8 encoding
    )
