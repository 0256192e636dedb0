"""Pytest configuration for tests.

No sys.path hacks - tests import launchprep from the installed package and
the shared fakes from this directory.
"""

import pytest
from pathlib import Path

from fakes import (
    COMMIT_V1,
    COMMIT_V2,
    REMOTE_URL,
    FakeAdapter,
    FakeRepo,
    FakeVCS,
    chain_source_files,
    write_tree,
)


def pytest_addoption(parser):
    """Add gated git test option."""
    parser.addoption(
        "--run-git",
        action="store_true",
        default=False,
        help="Run tests that shell out to a real git executable (gated)."
    )


def pytest_collection_modifyitems(config, items):
    """Skip git-marked tests unless --run-git is set."""
    if config.getoption("--run-git"):
        return
    skip_git = pytest.mark.skip(reason="git tests gated; pass --run-git")
    for item in items:
        if "git" in item.keywords:
            item.add_marker(skip_git)


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point LAUNCHPREP_HOME at a temp dir and reset the cached settings."""
    from launchprep.config import get_settings

    monkeypatch.setenv("LAUNCHPREP_HOME", str(tmp_path / "launchprep-home"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_vcs() -> FakeVCS:
    """A remote with two commits; main points at v2, tag v1.0 at v1."""
    repo = FakeRepo(
        commits={
            COMMIT_V1: chain_source_files("v1"),
            COMMIT_V2: chain_source_files("v2"),
        },
        refs={"main": COMMIT_V2, "v1.0": COMMIT_V1},
        default="main",
    )
    return FakeVCS({REMOTE_URL: repo})


@pytest.fixture
def fake_adapter(tmp_path) -> FakeAdapter:
    return FakeAdapter(home=tmp_path / "home", bin_dir=tmp_path / "bin")


@pytest.fixture
def initialized_adapter(fake_adapter) -> FakeAdapter:
    """Adapter whose home holds a default genesis and config."""
    fake_adapter.init_validator("moniker")
    fake_adapter.calls.clear()
    return fake_adapter


@pytest.fixture
def chain_source(tmp_path) -> Path:
    root = tmp_path / "source"
    write_tree(root, chain_source_files("v1"))
    return root


@pytest.fixture
def chain_config(tmp_path):
    """Config for launch 7, pinned to the v1 commit."""
    from launchprep.config import ChainConfig
    from launchprep.contracts import SourceReference

    return ChainConfig(
        source=SourceReference(url=REMOTE_URL, hash=COMMIT_V1),
        home=tmp_path / "home",
        bin_dir=tmp_path / "bin",
        launch_id=7,
        chain_id="mars-1",
    )


@pytest.fixture
def adapter_factory(fake_adapter):
    """Factory handing every chain handle the same fake adapter."""
    def factory(config, source):
        return fake_adapter
    return factory


@pytest.fixture
def build_cache(tmp_path):
    from launchprep.cache import BuildCache

    return BuildCache.in_directory(tmp_path / "cache")
