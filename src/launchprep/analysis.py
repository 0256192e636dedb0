"""Static checks on a fetched chain source tree.

The checks are deliberately shallow: they confirm the tree is a Cosmos SDK
chain with a locatable app entrypoint, and read the facts the pipeline needs
(binary name, account address prefix) from it.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, List, Set, Union

from launchprep.errors import InvalidChainSource

COSMOS_MODULE_PATH = "github.com/cosmos/cosmos-sdk"
TENDERMINT_MODULE_PATH = "github.com/tendermint/tendermint"
APP_FILE_NAME = "app.go"
DEFAULT_ADDRESS_PREFIX = "cosmos"

# Methods a type must declare to be the chain's app
APP_IMPLEMENTATION = ("Name", "BeginBlocker", "EndBlocker")

_MODULE_RE = re.compile(r"^\s*module\s+(\S+)", re.MULTILINE)
# func (app *App) Name() string / func (a App) BeginBlocker(...)
_METHOD_RE = re.compile(r"^func\s*\(\s*\w*\s*\*?\s*(\w+)\s*\)\s*(\w+)\s*\(", re.MULTILINE)
_PREFIX_RE = re.compile(r'AccountAddressPrefix\s*=\s*"([a-z0-9]+)"')


def _read_go_mod(source: Path) -> str:
    go_mod = source / "go.mod"
    try:
        return go_mod.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidChainSource(f"cannot read {go_mod}: {e}") from e


def _required_modules(go_mod: str) -> Set[str]:
    """Collect module paths from single-line and block require directives."""
    required: Set[str] = set()
    in_block = False
    for raw in go_mod.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if in_block:
            if line == ")":
                in_block = False
            else:
                required.add(line.split()[0])
        elif line.startswith("require ("):
            in_block = True
        elif line.startswith("require "):
            parts = line.split()
            if len(parts) >= 2:
                required.add(parts[1])
    return required


def module_path(source: Union[str, Path]) -> str:
    """Return the Go module path declared in go.mod."""
    match = _MODULE_RE.search(_read_go_mod(Path(source)))
    if not match:
        raise InvalidChainSource("go.mod declares no module")
    return match.group(1)


def validate_go_mod(source: Union[str, Path]) -> None:
    """Check go.mod depends on the Cosmos SDK and Tendermint."""
    required = _required_modules(_read_go_mod(Path(source)))
    for dep in (COSMOS_MODULE_PATH, TENDERMINT_MODULE_PATH):
        if dep not in required:
            raise InvalidChainSource(f"invalid go module, missing {dep} package dependency")


def _app_types_in_file(text: str) -> List[str]:
    methods: Dict[str, Set[str]] = {}
    for type_name, method in _METHOD_RE.findall(text):
        methods.setdefault(type_name, set()).add(method)
    return sorted(t for t, m in methods.items() if set(APP_IMPLEMENTATION) <= m)


def find_app_file(source: Union[str, Path]) -> Path:
    """Locate the file declaring the chain's app type.

    A single hit wins. With several hits exactly one of them must be named
    app.go.
    """
    root = Path(source)
    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        for name in sorted(filenames):
            if not name.endswith(".go") or name.endswith("_test.go"):
                continue
            path = Path(dirpath) / name
            text = path.read_text(encoding="utf-8", errors="replace")
            if _app_types_in_file(text):
                found.append(path)

    if not found:
        raise InvalidChainSource("app file not found")
    if len(found) == 1:
        return found[0]
    named = [p for p in found if p.name == APP_FILE_NAME]
    if len(named) > 1:
        raise InvalidChainSource("multiple app.go files found")
    if not named:
        raise InvalidChainSource("multiple app files found, but no app.go file")
    return named[0]


def detect_address_prefix(source: Union[str, Path]) -> str:
    """Read the account address prefix from the app package.

    Falls back to the SDK default when the app does not override it.
    """
    app_dir = find_app_file(source).parent
    for path in sorted(app_dir.glob("*.go")):
        match = _PREFIX_RE.search(path.read_text(encoding="utf-8", errors="replace"))
        if match:
            return match.group(1)
    return DEFAULT_ADDRESS_PREFIX


def binary_name(source: Union[str, Path]) -> str:
    """Name of the daemon binary: last module path segment plus "d"."""
    segments = module_path(source).rstrip("/").split("/")
    # github.com/org/mars/v2 builds marsd
    if len(segments) > 1 and re.fullmatch(r"v\d+", segments[-1]):
        segments = segments[:-1]
    return f"{segments[-1]}d"


def validate_chain_source(source: Union[str, Path]) -> Path:
    """Check the tree is a buildable chain and return its app file.

    Raises:
        InvalidChainSource: If go.mod or the app entrypoint is missing or wrong
    """
    validate_go_mod(source)
    return find_app_file(source)
