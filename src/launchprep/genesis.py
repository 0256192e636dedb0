"""Genesis assembly from independently submitted contributions.

Building is all-or-nothing. Contributions are validated up front (address
re-encoding, peer descriptors), then applied in the fixed order
accounts -> vesting accounts -> validators -> genesis time -> peers. If any
step fails, the genesis document, the gentx directory and the node
configuration files are restored to what they were before the build started.
"""

from __future__ import annotations

import json
import logging
import shutil
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from launchprep._internal.canonical_json import canonical_dumps
from launchprep._internal.fsutil import atomic_write_bytes, atomic_write_text
from launchprep.adapter import ChainRuntimeAdapter
from launchprep.errors import PreparationError
from launchprep.kernel.address import change_address_prefix
from launchprep.kernel.contributions import (
    GenesisAccount,
    GenesisInformation,
    GenesisValidator,
    VestingAccount,
)
from launchprep.kernel.genesis_doc import with_genesis_time
from launchprep.kernel.peers import PeerPlan
from launchprep.network import PeerNetworkConfigurator

logger = logging.getLogger(__name__)

CTX_ACCOUNTS = "error applying genesis accounts to genesis"
CTX_VESTING = "error applying vesting accounts to genesis"
CTX_VALIDATORS = "error applying genesis validators to genesis"
CTX_PEERS = "error configuring peers from genesis validators"
CTX_GENESIS_READ = "genesis of the blockchain can't be read"
CTX_GENESIS_TIME = "genesis time can't be set"


@contextmanager
def _step(context: str) -> Iterator[None]:
    """Give any failure inside the block the step's context."""
    try:
        yield
    except PreparationError as e:
        raise e.with_context(context)
    except (OSError, ValueError) as e:
        raise PreparationError(str(e) or type(e).__name__).with_context(context) from e


def set_genesis_time(genesis_path: Path, launch_time: int, now: Optional[datetime] = None) -> None:
    """Rewrite genesis_time in a genesis file; launch_time 0 means now."""
    with _step(CTX_GENESIS_READ):
        with open(genesis_path, 'r', encoding='utf-8') as f:
            genesis = json.load(f)
    with _step(CTX_GENESIS_TIME):
        updated = with_genesis_time(genesis, launch_time, now)
        atomic_write_text(genesis_path, canonical_dumps(updated) + "\n")
    logger.info("genesis time set to %s", updated["genesis_time"])


class _FileSnapshot:
    """Byte-level snapshot of files and flat directories, restored on rollback."""

    def __init__(self, paths: Sequence[Path], dirs: Sequence[Path] = ()):
        self._saved: Dict[Path, Optional[bytes]] = {}
        for p in paths:
            self._saved[p] = p.read_bytes() if p.is_file() else None
        self._saved_dirs: Dict[Path, Optional[Dict[str, bytes]]] = {}
        for d in dirs:
            if d.is_dir():
                self._saved_dirs[d] = {f.name: f.read_bytes() for f in d.iterdir() if f.is_file()}
            else:
                self._saved_dirs[d] = None

    def restore(self) -> None:
        for path, content in self._saved.items():
            if content is None:
                if path.exists():
                    path.unlink()
            else:
                atomic_write_bytes(path, content)
        for directory, files in self._saved_dirs.items():
            shutil.rmtree(directory, ignore_errors=True)
            if files is None:
                continue
            directory.mkdir(parents=True, mode=0o700)
            for name, content in files.items():
                atomic_write_bytes(directory / name, content)


class GenesisAssembler:
    """Merges contributions into the chain's genesis through the adapter."""

    def __init__(
        self,
        adapter: ChainRuntimeAdapter,
        configurator: Optional[PeerNetworkConfigurator] = None,
    ):
        self.adapter = adapter
        self.configurator = configurator if configurator is not None else PeerNetworkConfigurator(adapter)

    # -- preflight (no side effects)

    @staticmethod
    def encode_accounts(accounts: Sequence[GenesisAccount], prefix: str) -> List[GenesisAccount]:
        return [
            acc.model_copy(update={"address": change_address_prefix(acc.address, prefix)})
            for acc in accounts
        ]

    @staticmethod
    def encode_vesting_accounts(accounts: Sequence[VestingAccount], prefix: str) -> List[VestingAccount]:
        return [
            acc.model_copy(update={"address": change_address_prefix(acc.address, prefix)})
            for acc in accounts
        ]

    # -- application steps

    def apply_genesis_accounts(self, accounts: Sequence[GenesisAccount]) -> None:
        for acc in accounts:
            self.adapter.add_genesis_account(acc.address, acc.coins)

    def apply_vesting_accounts(self, accounts: Sequence[VestingAccount]) -> None:
        for acc in accounts:
            self.adapter.add_vesting_account(acc.address, acc.total_balance, acc.vesting, acc.end_time)

    def write_gentxs(self, validators: Sequence[GenesisValidator]) -> List[Path]:
        """Reset the gentx directory and write one file per validator, in order."""
        gentx_dir = self.adapter.gentxs_path()
        shutil.rmtree(gentx_dir, ignore_errors=True)
        gentx_dir.mkdir(parents=True, mode=0o700)
        written = []
        for i, val in enumerate(validators):
            path = gentx_dir / f"gentx{i}.json"
            path.write_text(val.gentx, encoding="utf-8")
            written.append(path)
        return written

    def apply_genesis_validators(self, validators: Sequence[GenesisValidator]) -> None:
        if not validators:
            return
        self.write_gentxs(validators)
        self.adapter.collect_gentxs()

    def set_genesis_time(self, launch_time: int, now: Optional[datetime] = None) -> None:
        """Set genesis_time to the launch time, or to now when launch_time is 0."""
        set_genesis_time(self.adapter.genesis_path(), launch_time, now)

    # -- orchestration

    @contextmanager
    def _rollback_on_failure(self) -> Iterator[None]:
        snapshot = _FileSnapshot(
            [
                self.adapter.genesis_path(),
                self.adapter.config_path(),
                self.configurator.tunnel_config_path(),
            ],
            dirs=[self.adapter.gentxs_path()],
        )
        try:
            yield
        except Exception:
            logger.warning("genesis build failed, restoring previous genesis and config")
            snapshot.restore()
            raise

    def build(
        self,
        info: GenesisInformation,
        address_prefix: str,
        launch_time: int,
        now: Optional[datetime] = None,
    ) -> PeerPlan:
        """Apply all contributions and set the genesis time.

        Returns the peer plan that was persisted.

        Raises:
            PreparationError: The first failure, with its step as context.
                Nothing stays written when this is raised.
        """
        # Re-encoding comes first: every later step uses the encoded addresses
        with _step(CTX_ACCOUNTS):
            accounts = self.encode_accounts(info.genesis_accounts, address_prefix)
        with _step(CTX_VESTING):
            vesting = self.encode_vesting_accounts(info.vesting_accounts, address_prefix)
        with _step(CTX_VALIDATORS):
            plan = self.configurator.plan(info.genesis_validators)

        with self._rollback_on_failure():
            with _step(CTX_ACCOUNTS):
                self.apply_genesis_accounts(accounts)
            with _step(CTX_VESTING):
                self.apply_vesting_accounts(vesting)
            with _step(CTX_VALIDATORS):
                self.apply_genesis_validators(info.genesis_validators)
            self.set_genesis_time(launch_time, now)
            # Also runs with zero validators: stale tunnel bindings must go
            with _step(CTX_PEERS):
                self.configurator.apply(plan)

        logger.info(
            "genesis built: %d accounts, %d vesting accounts, %d validators",
            len(accounts), len(vesting), len(info.genesis_validators),
        )
        return plan
