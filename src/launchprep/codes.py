"""Status constants for launch preparation.

These constants prevent stringly-typed states and event statuses and ensure
client code compares against the correct values.
"""

from enum import Enum


class EventStatus(str, Enum):
    """Progress event statuses."""

    ONGOING = "ongoing"
    DONE = "done"


class PreparationState(str, Enum):
    """States of the preparation state machine."""

    # Entry states (home directory presence decides which one)
    UNINITIALIZED = "uninitialized"
    HAS_HOME = "has_home"

    # Branch-specific states
    INITIALIZING = "initializing"
    REBUILDING = "rebuilding"

    # Shared states
    GENESIS_BUILDING = "genesis_building"
    VALIDATING = "validating"
    READY = "ready"
