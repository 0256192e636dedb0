"""Tests for the NetworkChain handle."""

import io
import json
import urllib.request
from datetime import datetime, timezone

import pytest

from launchprep.chain import NetworkChain
from launchprep.errors import GenesisFetchError, InvalidChainSource, PreparationError
from launchprep.events import EventRecorder
from launchprep.kernel.hash_utils import bytes_sha256

from fakes import COMMIT_V1, FakeRepo, FakeVCS, REMOTE_URL, chain_source_files

GENESIS_URL = "https://example.com/mars/genesis.json"
REMOTE_GENESIS = json.dumps({
    "chain_id": "mars-1",
    "genesis_time": "2021-06-01T00:00:00Z",
    "app_state": {"accounts": [], "gentxs": []},
    "from_url": True,
}).encode("utf-8")


@pytest.fixture
def serve_genesis(monkeypatch):
    """Serve REMOTE_GENESIS for GENESIS_URL; record requested URLs."""
    requested = []

    def fake_urlopen(url, timeout=None):
        requested.append(url)
        if url != GENESIS_URL:
            raise OSError(f"unreachable: {url}")
        return io.BytesIO(REMOTE_GENESIS)

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    return requested


def _new(config, fake_vcs, adapter_factory, build_cache, events=None):
    return NetworkChain.new(
        config,
        vcs=fake_vcs,
        adapter_factory=adapter_factory,
        cache=build_cache,
        events=events,
    )


class TestNew:
    """Tests for NetworkChain.new."""

    def test_handle_exposes_source(self, chain_config, fake_vcs, adapter_factory, build_cache):
        recorder = EventRecorder()
        with _new(chain_config, fake_vcs, adapter_factory, build_cache, recorder) as chain:
            assert chain.source_hash == COMMIT_V1
            assert chain.address_prefix() == "mars"
            assert chain.is_home_dir_exist() is False
            source_path = chain.source.path
            assert source_path.exists()
        assert not source_path.exists()
        assert recorder.messages == [
            "Fetching the source code",
            "Source code fetched",
            "Setting up the blockchain",
            "Blockchain set up",
        ]

    def test_invalid_source_discarded(self, chain_config, adapter_factory, build_cache):
        files = chain_source_files("v1")
        del files["app/app.go"]
        vcs = FakeVCS({REMOTE_URL: FakeRepo({COMMIT_V1: files}, {"main": COMMIT_V1}, "main")})

        with pytest.raises(InvalidChainSource):
            _new(chain_config, vcs, adapter_factory, build_cache)
        assert not any(p.exists() for p in vcs.clones)

    def test_callable_sink(self, chain_config, fake_vcs, adapter_factory, build_cache):
        seen = []
        with _new(chain_config, fake_vcs, adapter_factory, build_cache, seen.append):
            pass
        assert [e.status.value for e in seen] == ["ongoing", "done", "ongoing", "done"]


class TestBuild:
    """Binary build and cache reuse."""

    def test_second_build_hits_cache(self, chain_config, fake_vcs, adapter_factory, build_cache, fake_adapter):
        with _new(chain_config, fake_vcs, adapter_factory, build_cache) as chain:
            first = chain.build()
        with _new(chain_config, fake_vcs, adapter_factory, build_cache) as chain:
            second = chain.build()

        assert first == second
        assert fake_adapter.builds == 1
        assert build_cache.record(7).source_hash == COMMIT_V1

    def test_tampered_binary_rebuilt(self, chain_config, fake_vcs, adapter_factory, build_cache, fake_adapter):
        with _new(chain_config, fake_vcs, adapter_factory, build_cache) as chain:
            binary = chain.build()
        with open(binary, "a", encoding="utf-8") as f:
            f.write("patched")

        with _new(chain_config, fake_vcs, adapter_factory, build_cache) as chain:
            chain.build()
        assert fake_adapter.builds == 2

    def test_launch_zero_always_builds(self, chain_config, fake_vcs, adapter_factory, build_cache, fake_adapter):
        config = chain_config.model_copy(update={"launch_id": 0})
        for _ in range(2):
            with _new(config, fake_vcs, adapter_factory, build_cache) as chain:
                chain.build()
        assert fake_adapter.builds == 2
        assert not build_cache.path.exists()


class TestInitialGenesis:
    """Initial genesis from the adapter or from a URL."""

    def test_init_creates_home(self, chain_config, fake_vcs, adapter_factory, build_cache, fake_adapter):
        with _new(chain_config, fake_vcs, adapter_factory, build_cache) as chain:
            chain.init()
            assert chain.is_home_dir_exist()
            assert chain.genesis_path().exists()
            assert chain.node_id() == "fakenodeid"
        assert fake_adapter.keys_generated == 1

    def test_genesis_from_url_adopts_hash(
        self, chain_config, fake_vcs, adapter_factory, build_cache, serve_genesis
    ):
        config = chain_config.model_copy(update={"genesis_url": GENESIS_URL})
        with _new(config, fake_vcs, adapter_factory, build_cache) as chain:
            chain.init()
            assert chain.genesis_path().read_bytes() == REMOTE_GENESIS
            assert chain.genesis_hash == bytes_sha256(REMOTE_GENESIS)
        assert serve_genesis == [GENESIS_URL]

    def test_genesis_from_url_hash_mismatch(
        self, chain_config, fake_vcs, adapter_factory, build_cache, serve_genesis
    ):
        config = chain_config.model_copy(update={"genesis_url": GENESIS_URL, "genesis_hash": "0" * 64})
        with _new(config, fake_vcs, adapter_factory, build_cache) as chain:
            with pytest.raises(GenesisFetchError, match="expected hash"):
                chain.init()

    def test_genesis_url_unreachable(
        self, chain_config, fake_vcs, adapter_factory, build_cache, serve_genesis
    ):
        config = chain_config.model_copy(update={"genesis_url": "https://example.com/down.json"})
        with _new(config, fake_vcs, adapter_factory, build_cache) as chain:
            with pytest.raises(GenesisFetchError, match="cannot fetch genesis"):
                chain.init()

    def test_chain_id_mismatch(self, chain_config, fake_vcs, build_cache, tmp_path):
        from fakes import FakeAdapter

        other = FakeAdapter(tmp_path / "home", tmp_path / "bin", chain_id="venus-1")
        with _new(chain_config, fake_vcs, lambda c, s: other, build_cache) as chain:
            with pytest.raises(PreparationError, match="expected 'mars-1'"):
                chain.init()

    def test_init_genesis_keeps_key(self, chain_config, fake_vcs, adapter_factory, build_cache, fake_adapter):
        with _new(chain_config, fake_vcs, adapter_factory, build_cache) as chain:
            chain.init()
            key_before = fake_adapter.key_path().read_bytes()
            chain.init_genesis()
        assert fake_adapter.key_path().read_bytes() == key_before
        assert fake_adapter.keys_generated == 1


def test_reset_genesis_time(chain_config, fake_vcs, adapter_factory, build_cache):
    now = datetime(2030, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    with _new(chain_config, fake_vcs, adapter_factory, build_cache) as chain:
        chain.init()
        chain.reset_genesis_time(now)
        genesis = json.loads(chain.genesis_path().read_text(encoding="utf-8"))
    assert genesis["genesis_time"] == "2030-05-06T07:08:09Z"
