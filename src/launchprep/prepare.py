"""Preparation state machine.

    UNINITIALIZED -> INITIALIZING -+
                                   +-> GENESIS_BUILDING -> VALIDATING -> READY
    HAS_HOME      -> REBUILDING   -+

The presence of the chain home directory is the only thing that picks the
entry branch. A failure leaves the machine in the state it failed in; the
caller re-runs preparation from scratch.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from launchprep.chain import NetworkChain
from launchprep.codes import PreparationState
from launchprep.contracts import PreparedChain
from launchprep.errors import PreparationError
from launchprep.kernel.contributions import GenesisInformation

logger = logging.getLogger(__name__)


class PreparationStateMachine:
    """Sequences one preparation run over a chain handle."""

    def __init__(self, chain: NetworkChain):
        self.chain = chain
        self.state: Optional[PreparationState] = None
        self.history: List[PreparationState] = []

    def _enter(self, state: PreparationState) -> None:
        logger.debug("preparation: %s -> %s",
                     self.state.value if self.state else "start", state.value)
        self.state = state
        self.history.append(state)

    def run(self, info: GenesisInformation, now: Optional[datetime] = None) -> PreparedChain:
        if self.history:
            raise RuntimeError("a preparation state machine runs once")
        try:
            return self._run(info, now)
        except PreparationError as e:
            logger.error("preparation failed in state %s: %s",
                         self.state.value if self.state else "start", e)
            raise

    def _run(self, info: GenesisInformation, now: Optional[datetime]) -> PreparedChain:
        chain = self.chain
        events = chain.events

        rebuild = chain.is_home_dir_exist()
        if not rebuild:
            # No home yet: fresh validator key and default config
            self._enter(PreparationState.UNINITIALIZED)
            self._enter(PreparationState.INITIALIZING)
            binary = chain.init()
        else:
            # Existing home: keep the validator key, rebuild and re-derive genesis
            self._enter(PreparationState.HAS_HOME)
            self._enter(PreparationState.REBUILDING)
            events.ongoing("Building the blockchain")
            binary = chain.build()
            events.done("Blockchain build complete")

            events.ongoing("Initializing the genesis")
            chain.init_genesis()
            events.done("Genesis initialized")

        self._enter(PreparationState.GENESIS_BUILDING)
        chain.build_genesis(info, now)

        self._enter(PreparationState.VALIDATING)
        events.ongoing("Validating the genesis")
        chain.adapter.validate_genesis()
        # A node that ran before must not resume mid-chain
        chain.adapter.unsafe_reset_state()
        events.done("Genesis validated")

        self._enter(PreparationState.READY)
        events.done("Chain is prepared for launch")
        return PreparedChain(
            binary=binary,
            home=chain.home(),
            source_hash=chain.source_hash,
            genesis_path=chain.genesis_path(),
            took_rebuild_branch=rebuild,
        )


def prepare(chain: NetworkChain, info: GenesisInformation, now: Optional[datetime] = None) -> PreparedChain:
    """Run a fresh state machine over ``chain``."""
    return PreparationStateMachine(chain).run(info, now)
