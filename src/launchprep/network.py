"""Peer network configuration of the local node."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Tuple

from launchprep._internal.node_config import write_node_config
from launchprep._internal.tunnel_config import TUNNEL_CONFIG_FILE_NAME, write_tunnel_bindings
from launchprep.adapter import ChainRuntimeAdapter
from launchprep.errors import AdapterError
from launchprep.kernel.contributions import GenesisValidator
from launchprep.kernel.peers import (
    DEFAULT_TUNNEL_BASE_PORT,
    LocalTunnelBinding,
    NodeConfig,
    PeerPlan,
    plan_peers,
)

logger = logging.getLogger(__name__)


class PeerNetworkConfigurator:
    """Derives and persists the node's peers from validator contributions.

    Contributions are the single source of truth: a non-empty peer set
    replaces any manually edited persistent peers.
    """

    def __init__(self, adapter: ChainRuntimeAdapter, base_port: int = DEFAULT_TUNNEL_BASE_PORT):
        self.adapter = adapter
        self.base_port = base_port

    def tunnel_config_path(self) -> Path:
        return self.adapter.home() / TUNNEL_CONFIG_FILE_NAME

    def plan(self, validators: Sequence[GenesisValidator]) -> PeerPlan:
        """Validate every descriptor and compute the configuration, without writing."""
        return plan_peers(validators, base_port=self.base_port)

    def apply(self, plan: PeerPlan) -> None:
        """Persist a plan to config.toml and the tunnel binding file."""
        peers = plan.node_config.persistent_peers
        if peers:
            try:
                write_node_config(self.adapter.config_path(), plan.node_config)
            except OSError as e:
                raise AdapterError(f"cannot update {self.adapter.config_path()}: {e}") from e
            logger.info("configured %d persistent peers (allow_duplicate_ip=%s)",
                        len(peers), plan.node_config.allow_duplicate_ip)

        tunnel_path = self.tunnel_config_path()
        try:
            if plan.tunnels:
                write_tunnel_bindings(tunnel_path, plan.tunnels)
                logger.info("wrote %d tunnel bindings to %s", len(plan.tunnels), tunnel_path)
            elif tunnel_path.exists():
                # Bindings from an earlier contribution set no longer apply
                tunnel_path.unlink()
        except OSError as e:
            raise AdapterError(f"cannot update {tunnel_path}: {e}") from e

    def configure(
        self, validators: Sequence[GenesisValidator]
    ) -> Tuple[NodeConfig, List[LocalTunnelBinding]]:
        """Plan and persist in one step.

        Raises:
            InvalidPeerDescriptor: Before anything is written, if any
                descriptor is malformed
        """
        plan = self.plan(validators)
        self.apply(plan)
        return plan.node_config, list(plan.tunnels)
