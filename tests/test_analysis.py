"""Tests for static chain source checks."""

import pytest

from launchprep import analysis
from launchprep.errors import InvalidChainSource

from fakes import APP_GO, GO_MOD, write_tree


def test_valid_source(chain_source):
    app_file = analysis.validate_chain_source(chain_source)
    assert app_file == chain_source / "app" / "app.go"


def test_binary_name_and_prefix(chain_source):
    assert analysis.module_path(chain_source) == "github.com/example/mars"
    assert analysis.binary_name(chain_source) == "marsd"
    assert analysis.detect_address_prefix(chain_source) == "mars"


def test_binary_name_skips_major_version_suffix(tmp_path):
    write_tree(tmp_path, {"go.mod": GO_MOD.replace("example/mars", "example/venus/v2")})
    assert analysis.binary_name(tmp_path) == "venusd"


def test_default_prefix_when_not_overridden(tmp_path):
    write_tree(tmp_path, {
        "go.mod": GO_MOD,
        "app/app.go": APP_GO.replace('AccountAddressPrefix = "mars"', 'Other = "x"'),
    })
    assert analysis.detect_address_prefix(tmp_path) == "cosmos"


class TestGoMod:
    """Tests for validate_go_mod."""

    def test_missing_go_mod(self, tmp_path):
        with pytest.raises(InvalidChainSource, match="go.mod"):
            analysis.validate_go_mod(tmp_path)

    def test_missing_cosmos_dependency(self, tmp_path):
        write_tree(tmp_path, {"go.mod": "module x\n\nrequire github.com/tendermint/tendermint v0.34.14\n"})
        with pytest.raises(InvalidChainSource, match="cosmos-sdk"):
            analysis.validate_go_mod(tmp_path)

    def test_missing_tendermint_dependency(self, tmp_path):
        write_tree(tmp_path, {"go.mod": "module x\n\nrequire github.com/cosmos/cosmos-sdk v0.44.3\n"})
        with pytest.raises(InvalidChainSource, match="tendermint"):
            analysis.validate_go_mod(tmp_path)

    def test_single_line_requires(self, tmp_path):
        write_tree(tmp_path, {"go.mod": (
            "module x\n\n"
            "require github.com/cosmos/cosmos-sdk v0.44.3\n"
            "require github.com/tendermint/tendermint v0.34.14 // indirect\n"
        )})
        analysis.validate_go_mod(tmp_path)

    def test_commented_out_dependency_ignored(self, tmp_path):
        write_tree(tmp_path, {"go.mod": (
            "module x\n\nrequire (\n"
            "\tgithub.com/cosmos/cosmos-sdk v0.44.3\n"
            "\t// github.com/tendermint/tendermint v0.34.14\n"
            ")\n"
        )})
        with pytest.raises(InvalidChainSource, match="tendermint"):
            analysis.validate_go_mod(tmp_path)


class TestFindAppFile:
    """Tests for find_app_file."""

    def test_no_app(self, tmp_path):
        write_tree(tmp_path, {"go.mod": GO_MOD, "main.go": "package main\n"})
        with pytest.raises(InvalidChainSource, match="app file not found"):
            analysis.find_app_file(tmp_path)

    def test_single_hit_need_not_be_app_go(self, tmp_path):
        write_tree(tmp_path, {"app/chain.go": APP_GO})
        assert analysis.find_app_file(tmp_path) == tmp_path / "app" / "chain.go"

    def test_several_hits_prefer_app_go(self, tmp_path):
        write_tree(tmp_path, {"app/app.go": APP_GO, "legacy/chain.go": APP_GO})
        assert analysis.find_app_file(tmp_path) == tmp_path / "app" / "app.go"

    def test_several_hits_without_app_go(self, tmp_path):
        write_tree(tmp_path, {"a/one.go": APP_GO, "b/two.go": APP_GO})
        with pytest.raises(InvalidChainSource, match="no app.go"):
            analysis.find_app_file(tmp_path)

    def test_several_app_go(self, tmp_path):
        write_tree(tmp_path, {"a/app.go": APP_GO, "b/app.go": APP_GO})
        with pytest.raises(InvalidChainSource, match="multiple app.go"):
            analysis.find_app_file(tmp_path)

    def test_tests_and_hidden_dirs_skipped(self, tmp_path):
        write_tree(tmp_path, {
            "app/app.go": APP_GO,
            "app/app_test.go": APP_GO,
            ".cache/app.go": APP_GO,
        })
        assert analysis.find_app_file(tmp_path) == tmp_path / "app" / "app.go"

    def test_partial_implementation_is_not_an_app(self, tmp_path):
        partial = APP_GO.split("func (app *App) EndBlocker")[0]
        write_tree(tmp_path, {"app/app.go": partial})
        with pytest.raises(InvalidChainSource):
            analysis.find_app_file(tmp_path)
