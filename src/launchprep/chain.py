"""Network chain handle: a fetched, validated chain source bound to a home."""

from __future__ import annotations

import json
import logging
import threading
import urllib.request
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from launchprep import analysis
from launchprep._internal.vcs import VersionControl
from launchprep.adapter import ChainRuntimeAdapter, CosmosCLIAdapter
from launchprep.cache import BuildCache
from launchprep.config import ChainConfig, get_settings
from launchprep.contracts import FetchedSource
from launchprep.errors import GenesisFetchError, PreparationError
from launchprep.events import EventBus, SinkLike
from launchprep.genesis import GenesisAssembler
from launchprep.kernel.contributions import GenesisInformation
from launchprep.kernel.genesis_doc import genesis_chain_id
from launchprep.kernel.hash_utils import binary_checksum, bytes_sha256
from launchprep.kernel.peers import PeerPlan
from launchprep.network import PeerNetworkConfigurator
from launchprep.source import discard_source, fetch_source

logger = logging.getLogger(__name__)

GENESIS_FETCH_TIMEOUT = 60

AdapterFactory = Callable[[ChainConfig, FetchedSource], ChainRuntimeAdapter]


def cosmos_adapter_factory(config: ChainConfig, source: FetchedSource) -> ChainRuntimeAdapter:
    """Default substrate: the chain's own daemon CLI."""
    return CosmosCLIAdapter(
        binary_name=analysis.binary_name(source.path),
        home=config.home,
        bin_dir=config.bin_dir,
        chain_id=config.chain_id,
        keyring_backend=config.keyring_backend,
    )


class NetworkChain:
    """A chain whose source has been fetched and checked.

    Build with ``NetworkChain.new``; the handle does not change its
    configuration afterwards. It owns the fetched source directory until
    ``cleanup`` (or leaving the ``with`` block).
    """

    def __init__(
        self,
        config: ChainConfig,
        source: FetchedSource,
        adapter: ChainRuntimeAdapter,
        cache: BuildCache,
        events: EventBus,
    ):
        self.config = config
        self.source = source
        self.adapter = adapter
        self.cache = cache
        self.events = events
        self.configurator = PeerNetworkConfigurator(adapter, base_port=config.tunnel_base_port)
        self.assembler = GenesisAssembler(adapter, self.configurator)
        self._genesis_hash = config.genesis_hash

    @classmethod
    def new(
        cls,
        config: ChainConfig,
        vcs: Optional[VersionControl] = None,
        adapter_factory: Optional[AdapterFactory] = None,
        cache: Optional[BuildCache] = None,
        events: Optional[SinkLike] = None,
        cancel: Optional[threading.Event] = None,
    ) -> "NetworkChain":
        """Fetch the source, validate it and bind the runtime adapter.

        Raises:
            SourceUnavailable, RevisionNotFound: If fetching fails
            InvalidChainSource: If the tree is not a chain
        """
        bus = events if isinstance(events, EventBus) else EventBus(events)
        factory = adapter_factory if adapter_factory is not None else cosmos_adapter_factory
        cache = cache if cache is not None else BuildCache.in_directory(get_settings().root)

        bus.ongoing("Fetching the source code")
        source = fetch_source(config.source, vcs, cancel)
        bus.done("Source code fetched")

        bus.ongoing("Setting up the blockchain")
        try:
            app_file = analysis.validate_chain_source(source.path)
            logger.debug("chain app file: %s", app_file)
            adapter = factory(config, source)
        except Exception:
            discard_source(source)
            raise
        bus.done("Blockchain set up")
        return cls(config, source, adapter, cache, bus)

    def __enter__(self) -> "NetworkChain":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        discard_source(self.source)

    # -- accessors

    @property
    def source_hash(self) -> str:
        return self.source.hash

    @property
    def genesis_hash(self) -> Optional[str]:
        return self._genesis_hash

    def home(self) -> Path:
        return self.adapter.home()

    def genesis_path(self) -> Path:
        return self.adapter.genesis_path()

    def is_home_dir_exist(self) -> bool:
        return self.home().exists()

    def node_id(self) -> str:
        return self.adapter.show_node_id()

    def address_prefix(self) -> str:
        try:
            return analysis.detect_address_prefix(self.source.path)
        except PreparationError as e:
            raise e.with_context("error detecting chain prefix")

    # -- build

    def build(self) -> str:
        """Build the binary unless the cache holds a verified one for this source."""
        binary = self.adapter.binary()
        if self.config.launch_id != 0:
            lookup = self.cache.lookup(self.config.launch_id, self.source.hash, binary)
            if lookup.hit:
                logger.info("reusing cached binary %s", lookup.binary)
                return lookup.binary

        binary = self.adapter.build(self.source.path)
        self.cache.store(self.config.launch_id, self.source.hash, binary_checksum(binary))
        return binary

    # -- initialization

    def init(self) -> str:
        """Full initialization: build, then create keys, config and initial genesis."""
        self.events.ongoing("Building the blockchain")
        binary = self.build()
        self.events.done("Blockchain build complete")

        self.events.ongoing("Initializing the blockchain")
        self.adapter.init_validator(self.config.moniker)
        if self.config.genesis_url:
            self._genesis_from_url()
        self.check_initial_genesis()
        self.events.done("Blockchain initialized")
        return binary

    def init_genesis(self) -> None:
        """Re-derive the initial genesis, keeping the existing validator key."""
        genesis_path = self.genesis_path()
        if genesis_path.exists():
            genesis_path.unlink()
        if self.config.genesis_url:
            self._genesis_from_url()
        else:
            # init regenerates genesis and keeps existing node keys
            self.adapter.init_validator(self.config.moniker)
        self.check_initial_genesis()

    def _genesis_from_url(self) -> None:
        url = self.config.genesis_url
        logger.info("fetching initial genesis from %s", url)
        try:
            with urllib.request.urlopen(url, timeout=GENESIS_FETCH_TIMEOUT) as resp:
                content = resp.read()
        except (OSError, ValueError) as e:
            raise GenesisFetchError(f"cannot fetch genesis from {url}: {e}") from e

        digest = bytes_sha256(content)
        if not self._genesis_hash:
            self._genesis_hash = digest
        if digest != self._genesis_hash:
            raise GenesisFetchError(
                f"genesis from URL {url} is invalid. expected hash {self._genesis_hash}, actual hash {digest}"
            )
        genesis_path = self.genesis_path()
        genesis_path.parent.mkdir(parents=True, exist_ok=True)
        genesis_path.write_bytes(content)

    def check_initial_genesis(self) -> None:
        """The initial genesis must parse and belong to this chain."""
        genesis_path = self.genesis_path()
        try:
            with open(genesis_path, 'r', encoding='utf-8') as f:
                genesis = json.load(f)
        except (OSError, ValueError) as e:
            raise PreparationError(f"invalid initial genesis {genesis_path}: {e}") from e
        declared = genesis_chain_id(genesis)
        if self.config.chain_id and declared != self.config.chain_id:
            raise PreparationError(
                f"initial genesis has chain id {declared!r}, expected {self.config.chain_id!r}"
            )

    # -- genesis

    def build_genesis(self, info: GenesisInformation, now: Optional[datetime] = None) -> PeerPlan:
        self.events.ongoing("Building the genesis")
        plan = self.assembler.build(info, self.address_prefix(), self.config.launch_time, now)
        self.events.done("Genesis built")
        return plan

    def reset_genesis_time(self, now: Optional[datetime] = None) -> None:
        """Set the genesis time to now, e.g. when a launch is reverted."""
        self.assembler.set_genesis_time(0, now)
