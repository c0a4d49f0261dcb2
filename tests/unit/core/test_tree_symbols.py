"""Tests for tree symbols and width measurement."""

import click

from branchtree.core.tree_symbols import LineRole, connector, display_width


def test_display_width_ignores_ansi_styling() -> None:
    """Test that colour codes do not count toward the width."""
    assert display_width(click.style("feature/a", fg="green", bold=True)) == len("feature/a")


def test_display_width_counts_wide_characters_twice() -> None:
    """Test that the cycle emoji occupies two terminal cells."""
    assert display_width("└🔄─ B") == 6


def test_connectors_by_role() -> None:
    """Test the connector cell widths for plain and cycle lines."""
    assert display_width(connector(LineRole.PLAIN, is_last=False)) == 4
    assert display_width(connector(LineRole.CIRCULAR, is_last=True)) == 5
