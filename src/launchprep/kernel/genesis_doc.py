"""Genesis document helpers (pure logic)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

GENESIS_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_genesis_time(launch_time: int, now: Optional[datetime] = None) -> str:
    """Render a launch timestamp the way the chain expects it (RFC 3339, UTC).

    A launch_time of 0 means "no launch time" and renders the current time.
    """
    if launch_time == 0:
        moment = now if now is not None else datetime.now(timezone.utc)
        moment = moment.astimezone(timezone.utc)
    else:
        moment = datetime.fromtimestamp(launch_time, tz=timezone.utc)
    return moment.strftime(GENESIS_TIME_FORMAT)


def with_genesis_time(
    genesis: Dict[str, Any],
    launch_time: int,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Return a copy of the genesis document with its genesis_time replaced."""
    if not isinstance(genesis, dict):
        raise ValueError("genesis document must be a JSON object")
    updated = dict(genesis)
    updated["genesis_time"] = format_genesis_time(launch_time, now)
    return updated


def genesis_chain_id(genesis: Dict[str, Any]) -> Optional[str]:
    """Return the chain id declared by a genesis document, if any."""
    chain_id = genesis.get("chain_id") if isinstance(genesis, dict) else None
    return chain_id if isinstance(chain_id, str) else None
