"""Guardrails to keep kernel free of process, network and presentation concerns."""

import re
from pathlib import Path


FORBIDDEN_PATTERNS = {
    "argparse": re.compile(r"\bargparse\b"),
    "print(": re.compile(r"(?<![A-Za-z0-9_])print\s*\("),
    "subprocess": re.compile(r"\bsubprocess\b"),
    "urllib": re.compile(r"\burllib\b"),
    "tomlkit": re.compile(r"\btomlkit\b"),
    "yaml": re.compile(r"\bimport yaml\b"),
    "time.time": re.compile(r"\btime\.time\b"),
    "logging": re.compile(r"\bimport logging\b"),
}

FORBIDDEN_IN_PACKAGE = {
    "sys.path": re.compile(r"\bsys\.path\b"),
    "bare except": re.compile(r"except\s*:"),
}


def _package_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "src" / "launchprep"


def test_kernel_has_no_forbidden_tokens():
    kernel_dir = _package_dir() / "kernel"
    offenders = []

    for path in kernel_dir.glob("*.py"):
        contents = path.read_text(encoding="utf-8")
        for token, pattern in FORBIDDEN_PATTERNS.items():
            if pattern.search(contents):
                offenders.append(f"{path.name}: {token}")

    assert not offenders, "Forbidden kernel tokens found: " + ", ".join(offenders)


def test_package_has_no_path_hacks_or_bare_excepts():
    offenders = []
    for path in _package_dir().rglob("*.py"):
        contents = path.read_text(encoding="utf-8")
        for token, pattern in FORBIDDEN_IN_PACKAGE.items():
            if pattern.search(contents):
                offenders.append(f"{path.relative_to(_package_dir())}: {token}")

    assert not offenders, "Forbidden tokens found: " + ", ".join(offenders)
