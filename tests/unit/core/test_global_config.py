"""Tests for global configuration parsing and stores."""

from pathlib import Path

import pytest

from branchtree.core.global_config import (
    CONFIG_ENV_VAR,
    FilesystemGlobalConfigStore,
    GlobalConfig,
    InMemoryGlobalConfigStore,
    parse_global_config,
)
from branchtree.core.tree_renderer import DeepNestingConfig


def test_parse_empty_document_gives_defaults() -> None:
    """Test that a config without a [tree] table uses every default."""
    assert parse_global_config({}, source="config.toml") == GlobalConfig()


def test_parse_tree_table() -> None:
    """Test reading each supported key."""
    data = {
        "tree": {
            "max_depth": 8,
            "max_branches_per_level": 5,
            "page_size": 3,
            "enable_pagination": False,
            "show_depth_indicators": False,
            "enable_pruning": False,
            "prune_threshold": 40,
            "color": "never",
            "attach_orphans": False,
            "unknown_key": "ignored",
        }
    }

    config = parse_global_config(data, source="config.toml")

    assert config == GlobalConfig(
        max_depth=8,
        max_branches_per_level=5,
        page_size=3,
        enable_pagination=False,
        show_depth_indicators=False,
        enable_pruning=False,
        prune_threshold=40,
        color="never",
        attach_orphans=False,
    )


@pytest.mark.parametrize(
    ("tree", "message"),
    [
        ({"color": "rainbow"}, "Invalid color mode"),
        ({"max_depth": "deep"}, "'max_depth' must be an integer"),
        ({"page_size": True}, "'page_size' must be an integer"),
        ({"page_size": 0}, "'page_size' must be at least 1"),
        ({"max_depth": -1}, "'max_depth' must be at least 0"),
        ({"enable_pruning": "yes"}, "'enable_pruning' must be true or false"),
    ],
)
def test_parse_rejects_invalid_values(tree: dict[str, object], message: str) -> None:
    """Test that wrongly typed or out-of-range values raise ValueError."""
    with pytest.raises(ValueError, match=message):
        parse_global_config({"tree": tree}, source="config.toml")


def test_tree_must_be_table() -> None:
    """Test that a scalar [tree] value is rejected."""
    with pytest.raises(ValueError, match=r"\[tree\] must be a table"):
        parse_global_config({"tree": 3}, source="config.toml")


def test_deep_nesting_config_mirrors_settings() -> None:
    """Test conversion into renderer limits."""
    config = GlobalConfig(max_depth=4, page_size=2, enable_pruning=False)

    assert config.deep_nesting_config() == DeepNestingConfig(
        max_depth=4,
        max_branches_per_level=50,
        enable_pagination=True,
        page_size=2,
        show_depth_indicators=True,
        enable_pruning=False,
        prune_threshold=100,
    )


def test_filesystem_store_missing_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that no config file means defaults."""
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "config.toml"))
    store = FilesystemGlobalConfigStore()

    assert not store.exists()
    assert store.load() == GlobalConfig()


def test_filesystem_store_reads_env_override(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test loading the file named by the environment variable."""
    config_path = tmp_path / "branchtree.toml"
    config_path.write_text('[tree]\npage_size = 4\ncolor = "always"\n', encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))
    store = FilesystemGlobalConfigStore()

    assert store.path() == config_path
    assert store.exists()
    assert store.load() == GlobalConfig(page_size=4, color="always")


def test_filesystem_store_invalid_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that TOML syntax errors surface as ValueError."""
    config_path = tmp_path / "config.toml"
    config_path.write_text("[tree\npage_size = ", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))

    with pytest.raises(ValueError, match="Failed to parse"):
        FilesystemGlobalConfigStore().load()


def test_filesystem_store_default_path(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the home-directory default location."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

    assert FilesystemGlobalConfigStore().path() == Path.home() / ".branchtree" / "config.toml"


def test_in_memory_store() -> None:
    """Test the in-memory store used by tests."""
    empty = InMemoryGlobalConfigStore()
    configured = InMemoryGlobalConfigStore(GlobalConfig(max_depth=3))

    assert not empty.exists()
    assert empty.load() == GlobalConfig()
    assert configured.exists()
    assert configured.load().max_depth == 3
