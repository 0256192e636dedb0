"""Test public API surface - ensure imports work correctly and no side effects.

This test verifies:
- launchprep.api exposes the preparation entry points
- The root package re-exports them through __all__
- _internal stays out of the public namespace
"""

import types

import pytest


def test_api_exports_core_functions():
    """Test that launchprep.api exports the entry points as plain functions."""
    from launchprep.api import fetch, fetch_all, inspect_source, prepare_chain, prepare_launch, revert_launch

    for func in (fetch, fetch_all, inspect_source, prepare_chain, prepare_launch, revert_launch):
        assert isinstance(func, types.FunctionType)


def test_root_exports():
    import launchprep

    for name in (
        "prepare_chain",
        "prepare_launch",
        "revert_launch",
        "ChainLaunch",
        "PreparedChain",
        "SourceReference",
        "EventStatus",
        "PreparationState",
        "PreparationError",
    ):
        assert name in launchprep.__all__
        assert hasattr(launchprep, name)


def test_prepare_module_does_not_shadow_function():
    """Importing launchprep.prepare must not replace the api functions."""
    from launchprep.api import prepare_chain as before
    import launchprep.prepare as prepare_module
    from launchprep.api import prepare_chain as after

    assert before is after
    assert isinstance(prepare_module, types.ModuleType)
    assert "prepare" not in __import__("launchprep").__all__


def test_inspect_source_on_tree(chain_source):
    from launchprep.api import SourceReport, inspect_source

    report = inspect_source(chain_source)
    assert isinstance(report, SourceReport)
    assert report.binary_name == "marsd"
    assert report.address_prefix == "mars"
    assert report.app_file.endswith("app.go")


def test_internal_not_accessible_from_public():
    """_internal is importable by the package itself but never advertised."""
    import launchprep
    import launchprep._internal.vcs  # noqa: F401

    assert "_internal" not in launchprep.__all__
    with pytest.raises(AttributeError):
        getattr(launchprep, "GitCLI")
