"""Table formatting utilities for CLI commands."""

from typing import Any, List, Sequence

import click


def output_table(
    rows: Sequence[Sequence[Any]],
    headers: List[str],
    column_widths: List[int],
) -> None:
    """Draw a table with box-drawing characters.

    Args:
        rows: Row values, one sequence per row
        headers: List of header names
        column_widths: List of column widths; longer values are truncated
    """
    if len(headers) != len(column_widths):
        raise ValueError("Headers and column_widths must have the same length")

    _draw_table_border(column_widths, "top")
    _draw_table_row(headers, column_widths)
    _draw_table_border(column_widths, "middle")
    for row in rows:
        if len(row) != len(column_widths):
            raise ValueError("Row data must match column count")
        _draw_table_row(row, column_widths)
    _draw_table_border(column_widths, "bottom")


def _draw_table_border(column_widths: List[int], border_type: str) -> None:
    """Draw table borders with appropriate characters."""
    if border_type == "top":
        left, junction, right = "┌", "┬", "┐"
    elif border_type == "middle":
        left, junction, right = "├", "┼", "┤"
    elif border_type == "bottom":
        left, junction, right = "└", "┴", "┘"
    else:
        raise ValueError("Invalid border_type")

    segments = ["─" * (width + 2) for width in column_widths]
    click.echo(left + junction.join(segments) + right)


def _draw_table_row(values: Sequence[Any], column_widths: List[int]) -> None:
    row_parts = ["│"]
    for value, width in zip(values, column_widths):
        str_value = str("" if value is None else value)[:width]
        row_parts.append(f" {str_value:<{width}} │")
    click.echo("".join(row_parts))
