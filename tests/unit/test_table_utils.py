"""Unit tests for askpass.table_utils."""

import click
import pytest
from click.testing import CliRunner

from askpass.table_utils import output_table


def render(rows, headers, widths) -> str:
    @click.command()
    def show() -> None:
        output_table(rows, headers=headers, column_widths=widths)

    return CliRunner().invoke(show).output


def test_table_layout() -> None:
    output = render([[1, "CI_SUDO_PASSWORD", "set"]], ["#", "SOURCE", "STATUS"], [1, 16, 7])
    lines = output.splitlines()

    assert lines[0].startswith("┌") and lines[0].endswith("┐")
    assert lines[1] == "│ # │ SOURCE           │ STATUS  │"
    assert lines[3] == "│ 1 │ CI_SUDO_PASSWORD │ set     │"
    assert lines[-1].startswith("└")


def test_values_truncated() -> None:
    output = render([["abcdefgh"]], ["COL"], [3])
    assert "│ abc │" in output


def test_mismatched_columns() -> None:
    with pytest.raises(ValueError):
        output_table([], headers=["A", "B"], column_widths=[1])
