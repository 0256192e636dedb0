"""launchprep: reproducible launch preparation for coordinated chain networks."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("launchprep")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from launchprep.api import prepare_chain, prepare_launch, revert_launch
from launchprep.contracts import ChainLaunch, PreparedChain, SourceReference
from launchprep.codes import EventStatus, PreparationState
from launchprep.errors import PreparationError

__all__ = [
    "__version__",
    "prepare_chain",
    "prepare_launch",
    "revert_launch",
    "ChainLaunch",
    "PreparedChain",
    "SourceReference",
    "EventStatus",
    "PreparationState",
    "PreparationError",
]
