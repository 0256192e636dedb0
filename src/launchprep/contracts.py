"""Public models for the launchprep package."""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from launchprep.errors import ContributionFormatError


class SourceReference(BaseModel):
    """Where to fetch a chain's source from.

    A pinned ``hash`` always wins over ``ref`` at resolution time.
    """
    url: str
    ref: Optional[str] = None  # branch or tag name
    hash: Optional[str] = None  # pinned commit

    model_config = ConfigDict(extra="forbid", frozen=True)


class FetchedSource(BaseModel):
    """An immutable local snapshot of a source reference.

    The caller owns ``path`` and must discard it when done.
    """
    path: Path
    hash: str  # resolved commit
    tree_hash: str  # digest of the checked-out tree, VCS metadata excluded
    reference: SourceReference

    model_config = ConfigDict(extra="forbid", frozen=True)


class ChainLaunch(BaseModel):
    """A chain launch as recorded by the coordination ledger."""
    id: int
    chain_id: str
    source_url: str
    source_hash: str
    genesis_url: Optional[str] = None
    genesis_hash: Optional[str] = None
    launch_time: int = 0  # unix seconds, 0 when not triggered yet
    launch_triggered: bool = False

    model_config = ConfigDict(extra="ignore", frozen=True)


class PreparedChain(BaseModel):
    """What a successful preparation hands back to the caller."""
    binary: str
    home: Path
    source_hash: str
    genesis_path: Path
    took_rebuild_branch: bool

    model_config = ConfigDict(extra="forbid", frozen=True)

    def start_command(self) -> str:
        return f"{self.binary} start --home {self.home}"


def load_chain_launch(path: Union[str, Path]) -> ChainLaunch:
    """Load a chain launch from a JSON file.

    Raises:
        ContributionFormatError: If the file is unreadable or malformed
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return ChainLaunch(**data)
    except (OSError, ValueError, TypeError) as e:
        raise ContributionFormatError(f"invalid chain launch {path}: {e}") from e
