"""Public API for the launchprep package.

High-level functions that run a complete operation and return structured
results. Callers should use these instead of wiring the pipeline pieces
together themselves.
"""

import os
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel

from launchprep import analysis
from launchprep._internal.vcs import VersionControl
from launchprep.cache import BuildCache
from launchprep.chain import AdapterFactory, NetworkChain
from launchprep.config import ChainConfig, Settings, get_settings
from launchprep.contracts import ChainLaunch, FetchedSource, PreparedChain, SourceReference
from launchprep.events import SinkLike
from launchprep.genesis import set_genesis_time
from launchprep.kernel.contributions import GenesisInformation
from launchprep.prepare import PreparationStateMachine
from launchprep.source import fetch_many, fetch_source


def _normalize_path(path: Union[str, os.PathLike, Path]) -> Path:
    """Normalize path input to Path object."""
    return Path(path) if not isinstance(path, Path) else path


class SourceReport(BaseModel):
    """Facts read from a chain source tree."""
    app_file: str
    binary_name: str
    address_prefix: str


def prepare_chain(
    config: ChainConfig,
    info: GenesisInformation,
    vcs: Optional[VersionControl] = None,
    adapter_factory: Optional[AdapterFactory] = None,
    cache: Optional[BuildCache] = None,
    events: Optional[SinkLike] = None,
    now: Optional[datetime] = None,
) -> PreparedChain:
    """Fetch, build and prepare a chain for launch.

    The fetched source is discarded when preparation ends, whether it
    succeeded or not.
    """
    with NetworkChain.new(
        config,
        vcs=vcs,
        adapter_factory=adapter_factory,
        cache=cache,
        events=events,
    ) as chain:
        return PreparationStateMachine(chain).run(info, now)


def prepare_launch(
    launch: ChainLaunch,
    info: GenesisInformation,
    home: Optional[Union[str, os.PathLike]] = None,
    settings: Optional[Settings] = None,
    **kwargs,
) -> PreparedChain:
    """Prepare a chain tied to a persisted launch (source pinned to its hash)."""
    config = ChainConfig.from_launch(
        launch,
        settings=settings,
        home=_normalize_path(home) if home is not None else None,
    )
    return prepare_chain(config, info, **kwargs)


def revert_launch(
    launch: ChainLaunch,
    home: Optional[Union[str, os.PathLike]] = None,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> Path:
    """Reset a prepared chain's genesis time to now. Returns the genesis path."""
    settings = settings if settings is not None else get_settings()
    chain_home = _normalize_path(home) if home is not None else settings.chain_home(launch.id)
    genesis_path = chain_home / "config" / "genesis.json"
    set_genesis_time(genesis_path, 0, now)
    return genesis_path


def fetch(
    url: str,
    ref: Optional[str] = None,
    hash: Optional[str] = None,
    vcs: Optional[VersionControl] = None,
) -> FetchedSource:
    """Fetch a single source; the caller owns the returned directory."""
    return fetch_source(SourceReference(url=url, ref=ref, hash=hash), vcs)


def fetch_all(
    references: Sequence[SourceReference],
    vcs: Optional[VersionControl] = None,
    max_workers: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
) -> List[FetchedSource]:
    """Fetch independent sources concurrently; fails fast on the first error."""
    workers = max_workers if max_workers is not None else get_settings().fetch_workers
    return fetch_many(references, vcs, max_workers=workers, cancel=cancel)


def inspect_source(path: Union[str, os.PathLike, Path]) -> SourceReport:
    """Validate a chain source tree and report what the pipeline reads from it."""
    source = _normalize_path(path)
    app_file = analysis.validate_chain_source(source)
    return SourceReport(
        app_file=str(app_file),
        binary_name=analysis.binary_name(source),
        address_prefix=analysis.detect_address_prefix(source),
    )
