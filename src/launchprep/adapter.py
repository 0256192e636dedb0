"""Chain runtime boundary.

The pipeline never re-implements the chain's own tooling. Everything it
needs from the chain (building the daemon, initializing a home, mutating and
validating genesis) goes through ``ChainRuntimeAdapter``. ``CosmosCLIAdapter``
implements it by invoking the Go toolchain and the chain daemon's CLI.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

from launchprep._internal.process import CommandError, run_command
from launchprep.errors import AdapterError

logger = logging.getLogger(__name__)

DEFAULT_KEYRING_BACKEND = "test"


class ChainRuntimeAdapter(Protocol):
    """Capabilities consumed from the chain runtime.

    Every method may raise AdapterError; the pipeline treats it as opaque
    and fatal to the current step.
    """

    def build(self, source_path: Path) -> str:
        """Build the daemon from source and return the binary path."""
        ...

    def binary(self) -> str:
        ...

    def home(self) -> Path:
        ...

    def genesis_path(self) -> Path:
        ...

    def gentxs_path(self) -> Path:
        ...

    def config_path(self) -> Path:
        ...

    def init_validator(self, moniker: str) -> None:
        """Create default config and genesis; generate node keys if absent."""
        ...

    def add_genesis_account(self, address: str, coins: str) -> None:
        ...

    def add_vesting_account(self, address: str, total: str, vesting: str, end_time: int) -> None:
        ...

    def collect_gentxs(self) -> None:
        ...

    def validate_genesis(self) -> None:
        ...

    def unsafe_reset_state(self) -> None:
        ...

    def show_node_id(self) -> str:
        ...


class CosmosCLIAdapter:
    """ChainRuntimeAdapter for Cosmos SDK daemons."""

    def __init__(
        self,
        binary_name: str,
        home: Union[str, Path],
        bin_dir: Union[str, Path],
        chain_id: Optional[str] = None,
        keyring_backend: str = DEFAULT_KEYRING_BACKEND,
        go: str = "go",
        cancel: Optional[threading.Event] = None,
    ):
        self.binary_name = binary_name
        self._home = Path(home)
        self.bin_dir = Path(bin_dir)
        self.chain_id = chain_id
        self.keyring_backend = keyring_backend
        self.go = go
        self.cancel = cancel

    # -- paths

    def binary(self) -> str:
        return str(self.bin_dir / self.binary_name)

    def home(self) -> Path:
        return self._home

    def config_dir(self) -> Path:
        return self._home / "config"

    def genesis_path(self) -> Path:
        return self.config_dir() / "genesis.json"

    def gentxs_path(self) -> Path:
        return self.config_dir() / "gentx"

    def config_path(self) -> Path:
        return self.config_dir() / "config.toml"

    # -- commands

    def _run(self, args: Sequence[str], cwd: Optional[Path] = None) -> str:
        try:
            return run_command(args, cwd=cwd, cancel=self.cancel)
        except CommandError as e:
            raise AdapterError(str(e)) from e

    def _daemon(self, *args: str) -> str:
        return self._run([self.binary(), *args, "--home", str(self._home)])

    def build(self, source_path: Path) -> str:
        self.bin_dir.mkdir(parents=True, exist_ok=True)
        logger.info("building %s from %s", self.binary_name, source_path)
        self._run([self.go, "mod", "download"], cwd=Path(source_path))
        self._run(
            [self.go, "build", "-o", self.binary(), f"./cmd/{self.binary_name}"],
            cwd=Path(source_path),
        )
        return self.binary()

    def init_validator(self, moniker: str) -> None:
        args = ["init", moniker]
        if self.chain_id:
            args += ["--chain-id", self.chain_id]
        self._daemon(*args)

    def add_genesis_account(self, address: str, coins: str) -> None:
        self._daemon("add-genesis-account", address, coins, "--keyring-backend", self.keyring_backend)

    def add_vesting_account(self, address: str, total: str, vesting: str, end_time: int) -> None:
        self._daemon(
            "add-genesis-account", address, total,
            "--vesting-amount", vesting,
            "--vesting-end-time", str(end_time),
            "--keyring-backend", self.keyring_backend,
        )

    def collect_gentxs(self) -> None:
        self._daemon("collect-gentxs")

    def validate_genesis(self) -> None:
        self._daemon("validate-genesis")

    def unsafe_reset_state(self) -> None:
        self._daemon("unsafe-reset-all")

    def show_node_id(self) -> str:
        return self._daemon("tendermint", "show-node-id").strip()
