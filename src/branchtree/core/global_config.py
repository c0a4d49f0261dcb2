"""Global configuration data structures and loading.

Provides immutable rendering defaults loaded from ~/.branchtree/config.toml
(or the file named by BRANCHTREE_CONFIG). Loaded once at the CLI entry point;
command-line flags override individual values per invocation.

Example config.toml:

    [tree]
    max_depth = 20
    page_size = 10
    color = "auto"
    attach_orphans = true
"""

import os
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from branchtree.core.tree_renderer import DeepNestingConfig

CONFIG_ENV_VAR = "BRANCHTREE_CONFIG"

ColorMode = Literal["auto", "always", "never"]
_COLOR_MODES: tuple[ColorMode, ...] = ("auto", "always", "never")


@dataclass(frozen=True)
class GlobalConfig:
    """Immutable global configuration data.

    Loaded once at CLI entry point and stored in BranchtreeContext.
    """

    max_depth: int = 20
    max_branches_per_level: int = 50
    page_size: int = 10
    enable_pagination: bool = True
    show_depth_indicators: bool = True
    enable_pruning: bool = True
    prune_threshold: int = 100
    color: ColorMode = "auto"
    attach_orphans: bool = True

    def deep_nesting_config(self) -> DeepNestingConfig:
        """Renderer limits corresponding to this configuration."""
        return DeepNestingConfig(
            max_depth=self.max_depth,
            max_branches_per_level=self.max_branches_per_level,
            enable_pagination=self.enable_pagination,
            page_size=self.page_size,
            show_depth_indicators=self.show_depth_indicators,
            enable_pruning=self.enable_pruning,
            prune_threshold=self.prune_threshold,
        )


def parse_global_config(data: dict[str, Any], *, source: str) -> GlobalConfig:
    """Build a GlobalConfig from decoded TOML.

    Unknown keys are ignored; missing keys take their defaults.

    Raises:
        ValueError: If a known key has the wrong type or an out-of-range value
    """
    tree = data.get("tree", {})
    if not isinstance(tree, dict):
        raise ValueError(f"[tree] must be a table in {source}")

    defaults = GlobalConfig()

    color = tree.get("color", defaults.color)
    if color not in _COLOR_MODES:
        raise ValueError(
            f"Invalid color mode {color!r} in {source} (expected one of: "
            + ", ".join(_COLOR_MODES)
            + ")"
        )

    return GlobalConfig(
        max_depth=_int_field(tree, "max_depth", defaults.max_depth, 0, source),
        max_branches_per_level=_int_field(
            tree, "max_branches_per_level", defaults.max_branches_per_level, 1, source
        ),
        page_size=_int_field(tree, "page_size", defaults.page_size, 1, source),
        enable_pagination=_bool_field(tree, "enable_pagination", defaults.enable_pagination, source),
        show_depth_indicators=_bool_field(
            tree, "show_depth_indicators", defaults.show_depth_indicators, source
        ),
        enable_pruning=_bool_field(tree, "enable_pruning", defaults.enable_pruning, source),
        prune_threshold=_int_field(tree, "prune_threshold", defaults.prune_threshold, 0, source),
        color=color,
        attach_orphans=_bool_field(tree, "attach_orphans", defaults.attach_orphans, source),
    )


def _int_field(table: dict[str, Any], key: str, default: int, minimum: int, source: str) -> int:
    value = table.get(key, default)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}' must be an integer in {source}")
    if value < minimum:
        raise ValueError(f"'{key}' must be at least {minimum} in {source}")
    return value


def _bool_field(table: dict[str, Any], key: str, default: bool, source: str) -> bool:
    value = table.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false in {source}")
    return value


class GlobalConfigStore(ABC):
    """Abstract interface for global config access.

    Provides dependency injection for global config access, enabling
    in-memory implementations for tests without touching filesystem.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Check if global config exists."""
        ...

    @abstractmethod
    def load(self) -> GlobalConfig:
        """Load global config.

        Returns:
            GlobalConfig instance (defaults when no config exists)

        Raises:
            ValueError: If config is malformed
        """
        ...

    @abstractmethod
    def path(self) -> Path:
        """Get the path to the global config file (for error messages)."""
        ...


class FilesystemGlobalConfigStore(GlobalConfigStore):
    """Production implementation that reads ~/.branchtree/config.toml."""

    def exists(self) -> bool:
        return self.path().exists()

    def load(self) -> GlobalConfig:
        config_path = self.path()

        if not config_path.exists():
            return GlobalConfig()

        try:
            data = tomllib.loads(config_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Failed to parse {config_path}: {e}") from e

        return parse_global_config(data, source=str(config_path))

    def path(self) -> Path:
        """Get the path to the global config file.

        Returns:
            $BRANCHTREE_CONFIG if set, otherwise ~/.branchtree/config.toml
        """
        override = os.getenv(CONFIG_ENV_VAR)
        if override:
            return Path(override).expanduser()
        return Path.home() / ".branchtree" / "config.toml"


class InMemoryGlobalConfigStore(GlobalConfigStore):
    """Test implementation that stores config in memory without touching filesystem."""

    def __init__(self, config: GlobalConfig | None = None) -> None:
        """Initialize in-memory config store.

        Args:
            config: Initial config state (None = config doesn't exist)
        """
        self._config = config

    def exists(self) -> bool:
        return self._config is not None

    def load(self) -> GlobalConfig:
        if self._config is None:
            return GlobalConfig()
        return self._config

    def path(self) -> Path:
        return Path("/test/.branchtree/config.toml")
