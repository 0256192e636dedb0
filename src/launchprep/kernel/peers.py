"""Peer topology planning (pure logic).

Turns the validators' peer descriptors into the node's runtime peer list and
the local tunnel bindings a relay client must honor. Nothing here touches
disk; the network configurator persists the plan.
"""

from typing import List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from launchprep.errors import InvalidPeerDescriptor
from launchprep.kernel.contributions import DirectAddress, GenesisValidator, Peer, Tunnel

DEFAULT_TUNNEL_BASE_PORT = 22000
LOOPBACK_HOST = "127.0.0.1"

# Characters that would corrupt the comma-separated "id@host:port" list
_FORBIDDEN_ID_CHARS = frozenset("@,: \t\n")


class NodeConfig(BaseModel):
    """Runtime peer configuration of the local node."""
    persistent_peers: List[str] = Field(default_factory=list)  # ordered "nodeID@host:port"
    allow_duplicate_ip: bool = False

    model_config = ConfigDict(extra="forbid", frozen=True)


class LocalTunnelBinding(BaseModel):
    """A local port a relay client forwards to a tunneled validator."""
    node_id: str
    name: str
    address: str
    local_port: int

    model_config = ConfigDict(extra="forbid", frozen=True)


class PeerPlan(BaseModel):
    """Result of planning the peer topology."""
    node_config: NodeConfig
    tunnels: List[LocalTunnelBinding] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


def split_host_port(address: str) -> Tuple[str, int]:
    """Split "host:port", accepting bracketed IPv6 hosts.

    Raises:
        ValueError: If the address has no host or no valid port
    """
    host, sep, port_str = address.rpartition(":")
    if not sep or not host:
        raise ValueError(f"missing host or port in {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not host or any(c in host for c in " \t,@"):
        raise ValueError(f"invalid host in {address!r}")
    if not port_str.isdigit():
        raise ValueError(f"invalid port in {address!r}")
    port = int(port_str)
    if not 0 < port < 65536:
        raise ValueError(f"port out of range in {address!r}")
    return host, port


def verify_peer(peer: Peer) -> None:
    """Check a peer descriptor is one of the supported topologies.

    Raises:
        InvalidPeerDescriptor: Naming the offending peer
    """
    label = peer.id or "<empty id>"
    if not peer.id or any(c in _FORBIDDEN_ID_CHARS for c in peer.id):
        raise InvalidPeerDescriptor(f"invalid peer: {label}: malformed node id")

    conn = peer.connection
    if isinstance(conn, DirectAddress):
        try:
            split_host_port(conn.tcp_address)
        except ValueError as e:
            raise InvalidPeerDescriptor(f"invalid peer: {label}: {e}") from e
    elif isinstance(conn, Tunnel):
        if not conn.name or not conn.address:
            raise InvalidPeerDescriptor(f"invalid peer: {label}: tunnel needs a name and an address")
    else:
        raise InvalidPeerDescriptor(f"invalid peer: {label}: invalid peer type")


def plan_peers(
    validators: Sequence[GenesisValidator],
    base_port: int = DEFAULT_TUNNEL_BASE_PORT,
) -> PeerPlan:
    """Derive the node peer configuration from validator contributions.

    Peers keep the validator order. A tunneled peer at index i is bound to
    127.0.0.1:(base_port + i), so ports are stable across runs over the same
    ordered contributions. Any malformed descriptor aborts the whole plan.

    Raises:
        InvalidPeerDescriptor: If any validator's descriptor is malformed
    """
    peers: List[str] = []
    tunnels: List[LocalTunnelBinding] = []

    for i, val in enumerate(validators):
        verify_peer(val.peer)
        conn = val.peer.connection
        if isinstance(conn, DirectAddress):
            peers.append(f"{val.peer.id}@{conn.tcp_address}")
        else:
            binding = LocalTunnelBinding(
                node_id=val.peer.id,
                name=conn.name,
                address=conn.address,
                local_port=base_port + i,
            )
            tunnels.append(binding)
            peers.append(f"{binding.node_id}@{LOOPBACK_HOST}:{binding.local_port}")

    # Every tunneled peer dials in from the loopback address
    node_config = NodeConfig(persistent_peers=peers, allow_duplicate_ip=bool(tunnels))
    return PeerPlan(node_config=node_config, tunnels=tunnels)
