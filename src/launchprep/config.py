"""Configuration records.

``Settings`` comes from the environment once per process. ``ChainConfig``
describes one chain to prepare; it is built before the chain handle exists
and never mutated afterwards.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

from launchprep.contracts import ChainLaunch, SourceReference
from launchprep.errors import PreparationError
from launchprep.kernel.peers import DEFAULT_TUNNEL_BASE_PORT


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as e:
        raise PreparationError(f"{name} must be an integer, got {value!r}") from e


@dataclass(frozen=True)
class Settings:
    root: Path
    tunnel_base_port: int
    keyring_backend: str
    fetch_workers: int
    log_level: str

    @property
    def bin_dir(self) -> Path:
        return self.root / "bin"

    def chain_home(self, launch_id: int) -> Path:
        return self.root / "spn" / str(launch_id)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        root=Path(os.getenv('LAUNCHPREP_HOME', '~/.launchprep')).expanduser(),
        tunnel_base_port=_env_int('LAUNCHPREP_TUNNEL_BASE_PORT', DEFAULT_TUNNEL_BASE_PORT),
        keyring_backend=os.getenv('LAUNCHPREP_KEYRING_BACKEND', 'test'),
        fetch_workers=_env_int('LAUNCHPREP_FETCH_WORKERS', 4),
        log_level=os.getenv('LOG_LEVEL', 'INFO').strip().upper(),
    )


class ChainConfig(BaseModel):
    """Everything needed to fetch, build and prepare one chain."""
    source: SourceReference
    home: Path
    bin_dir: Path
    launch_id: int = 0  # 0: not tied to a persisted launch, no build cache
    chain_id: Optional[str] = None
    genesis_url: Optional[str] = None
    genesis_hash: Optional[str] = None
    launch_time: int = 0
    keyring_backend: str = "test"
    moniker: str = "moniker"
    tunnel_base_port: int = DEFAULT_TUNNEL_BASE_PORT

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_launch(
        cls,
        launch: ChainLaunch,
        settings: Optional[Settings] = None,
        home: Optional[Path] = None,
    ) -> "ChainConfig":
        """Config for a chain tied to a persisted launch; source pinned to its hash."""
        settings = settings if settings is not None else get_settings()
        return cls(
            source=SourceReference(url=launch.source_url, hash=launch.source_hash),
            home=home if home is not None else settings.chain_home(launch.id),
            bin_dir=settings.bin_dir,
            launch_id=launch.id,
            chain_id=launch.chain_id,
            genesis_url=launch.genesis_url,
            genesis_hash=launch.genesis_hash,
            launch_time=launch.launch_time,
            keyring_backend=settings.keyring_backend,
            tunnel_base_port=settings.tunnel_base_port,
        )
