"""Tunnel binding record file (internal).

The relay client reads this file and forwards each local port to the
declared relay address.
"""

from pathlib import Path
from typing import List, Union

import yaml

from launchprep._internal.fsutil import atomic_write_text
from launchprep.kernel.peers import LocalTunnelBinding

TUNNEL_CONFIG_FILE_NAME = "spn.yml"


def write_tunnel_bindings(path: Union[str, Path], tunnels: List[LocalTunnelBinding]) -> None:
    data = {"tunneled_peers": [t.model_dump() for t in tunnels]}
    atomic_write_text(path, yaml.safe_dump(data, sort_keys=True, default_flow_style=False))
