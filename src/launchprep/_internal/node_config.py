"""Node config.toml writer (internal).

Only the p2p keys owned by the pipeline are touched; every other key,
comment and layout detail of the chain's config.toml survives the rewrite.
"""

from pathlib import Path
from typing import Union

import tomlkit

from launchprep._internal.fsutil import atomic_write_text
from launchprep.kernel.peers import NodeConfig


def write_node_config(path: Union[str, Path], node_config: NodeConfig) -> None:
    """Overwrite p2p.persistent_peers (and set allow_duplicate_ip when needed).

    The peer list replaces whatever was configured before. The file is
    rewritten atomically.
    """
    config_path = Path(path)
    doc = tomlkit.parse(config_path.read_text(encoding="utf-8"))
    if "p2p" not in doc:
        doc["p2p"] = tomlkit.table()
    p2p = doc["p2p"]
    p2p["persistent_peers"] = ",".join(node_config.persistent_peers)
    if node_config.allow_duplicate_ip:
        p2p["allow_duplicate_ip"] = True
    atomic_write_text(config_path, tomlkit.dumps(doc))
