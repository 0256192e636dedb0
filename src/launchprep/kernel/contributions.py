"""Pydantic models for genesis contributions.

Contributions arrive from mutually untrusted participants through the launch
ledger. Addresses are kept in whatever prefix the participant used; the
genesis assembler re-encodes them for the target chain.
"""

import json
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from launchprep.errors import ContributionFormatError


class GenesisAccount(BaseModel):
    """A funded account at genesis."""
    address: str
    coins: str  # e.g. "1000stake,500token"

    model_config = ConfigDict(extra="forbid", frozen=True)


class VestingAccount(BaseModel):
    """An account whose funds unlock on a delayed vesting schedule."""
    address: str
    total_balance: str
    vesting: str  # portion of total_balance locked until end_time
    end_time: int  # unix seconds

    model_config = ConfigDict(extra="forbid", frozen=True)


class DirectAddress(BaseModel):
    """Peer reachable at a plain host:port address."""
    tcp_address: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class Tunnel(BaseModel):
    """Peer reachable only through a relay tunnel."""
    name: str
    address: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class Peer(BaseModel):
    """A validator's connectivity descriptor.

    ``connection`` is None when the participant declared neither topology;
    the peer configurator rejects such peers.
    """
    id: str
    connection: Optional[Union[DirectAddress, Tunnel]] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class GenesisValidator(BaseModel):
    """A validator join transaction plus its peer descriptor."""
    gentx: str  # raw signed gentx JSON, written to disk verbatim
    peer: Peer

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator('gentx', mode='before')
    @classmethod
    def validate_gentx(cls, v):
        """Accept a gentx given as a JSON object and keep its exact text otherwise."""
        if isinstance(v, (dict, list)):
            return json.dumps(v, sort_keys=True, separators=(",", ":"))
        if isinstance(v, bytes):
            return v.decode("utf-8")
        return v


class GenesisInformation(BaseModel):
    """Every contribution approved for a launch, in ledger order."""
    genesis_accounts: List[GenesisAccount] = Field(default_factory=list)
    vesting_accounts: List[VestingAccount] = Field(default_factory=list)
    genesis_validators: List[GenesisValidator] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)


def load_genesis_information(path: Union[str, Path]) -> GenesisInformation:
    """Load genesis information from a JSON file.

    Raises:
        ContributionFormatError: If the file is not valid JSON or does not
            match the contribution models
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return GenesisInformation(**data)
    except (OSError, ValueError, TypeError) as e:
        # ValidationError is a ValueError subclass
        raise ContributionFormatError(f"invalid genesis information {path}: {e}") from e
