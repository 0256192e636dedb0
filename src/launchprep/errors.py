"""Error taxonomy for launch preparation.

Every error raised by the pipeline derives from PreparationError. Layers add
context with ``with_context`` instead of re-wrapping, so callers can still
catch the precise error type while ``str(err)`` renders the full chain:

    error applying genesis validators to genesis: invalid peer: node0
"""

from typing import List


class PreparationError(Exception):
    """Root of every launch preparation failure."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.contexts: List[str] = []

    def with_context(self, context: str) -> "PreparationError":
        """Prepend a context layer and return the same error."""
        self.contexts.insert(0, context)
        return self

    def __str__(self) -> str:
        return ": ".join(self.contexts + [self.message])


class SourceUnavailable(PreparationError):
    """The remote cannot be reached or the reference does not exist."""


class RevisionNotFound(PreparationError):
    """A pinned hash was supplied but is absent from the remote history."""


class FetchCancelled(PreparationError):
    """A fetch or external tool invocation observed cancellation."""


class InvalidChainSource(PreparationError):
    """The fetched tree is not a buildable chain."""


class AddressFormatError(PreparationError):
    """An account address could not be decoded or re-encoded."""


class InvalidPeerDescriptor(PreparationError):
    """A validator peer descriptor matches neither supported topology."""


class ContributionFormatError(PreparationError):
    """A launch or genesis information file is structurally invalid."""


class CacheChecksumError(PreparationError):
    """The binary checksum could not be computed."""


class ChecksumToolNotFound(CacheChecksumError):
    """The binary to checksum does not exist; treated as a cache miss."""


class GenesisFetchError(PreparationError):
    """The initial genesis could not be downloaded or has the wrong hash."""


class AdapterError(PreparationError):
    """Opaque failure reported by the chain runtime."""
