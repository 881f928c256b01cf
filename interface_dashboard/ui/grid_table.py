"""
Routing grid table

Renders ``WeekGrid`` objects as one HTML table: for every week a title row,
bloc headers, day letters, day-of-month numbers, the event rows with ``X``
marks on active cells and, in the row-per-event layout, a totals row whose
over-threshold cells are highlighted.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import streamlit as st

from ..core.config import BLOC_LABELS, DAY_LETTERS
from ..domain.models import WeekGrid
from .formatters import escape

EMPTY_MESSAGE = "Aucun evenement a afficher."

GRID_STYLES = """
<style>
.routing-grid { border-collapse: collapse; font-size: 0.75rem; width: 100%; }
.routing-grid th, .routing-grid td { border: 1px solid #e0e0e0; text-align: center; padding: 2px; }
.routing-grid .week-title { background: #e8f0fb; text-align: left; font-size: 0.875rem; font-weight: 600; padding: 4px 8px; }
.routing-grid .bloc-head { background: #f2f2f2; font-weight: 600; }
.routing-grid .day-head { background: #fafafa; width: 32px; min-width: 32px; }
.routing-grid .day-num { background: #fafafa; font-weight: normal; color: #888; }
.routing-grid .event-name { text-align: left; padding: 2px 8px; min-width: 140px; max-width: 200px;
  white-space: nowrap; overflow: hidden; text-overflow: ellipsis; }
.routing-grid .event-name a { color: inherit; text-decoration: none; }
.routing-grid td.active { font-weight: 700; }
.routing-grid tr.event-row { height: 36px; }
.routing-grid tr.event-row:hover { background: #e8f0fb; }
.routing-grid .total { background: #fafafa; font-weight: 600; color: #555; }
.routing-grid .total.alert { background: #f8d7da; color: #c0392b; }
</style>
"""

# record id -> URL of the record, or None when records cannot be opened
LinkBuilder = Callable[[str], Optional[str]]


def _event_cell(event_id: str, event_name: str, link_for: Optional[LinkBuilder]) -> str:
    name = escape(event_name)
    url = link_for(event_id) if link_for else None
    if url:
        return f'<a href="{escape(url)}" target="_blank" title="{name}">{name}</a>'
    return name


def _day_letters(day_codes: Sequence[str]) -> List[str]:
    if len(day_codes) == len(DAY_LETTERS):
        return list(DAY_LETTERS)
    return [code[:1] for code in day_codes]


def _row_layout_html(grid: WeekGrid, link_for: Optional[LinkBuilder]) -> List[str]:
    blocs = list(grid.counts.index)
    days = list(grid.counts.columns)
    total_cols = 1 + len(blocs) * len(days)
    letters = _day_letters(days)

    parts = ["<thead>"]
    parts.append(f'<tr><th class="week-title" colspan="{total_cols}">{escape(grid.week.name)}</th></tr>')

    parts.append('<tr><th class="bloc-head event-name" rowspan="3">Nom</th>')
    for bloc in blocs:
        parts.append(f'<th class="bloc-head" colspan="{len(days)}">{escape(BLOC_LABELS.get(bloc, bloc))}</th>')
    parts.append("</tr>")

    parts.append("<tr>" + "".join(f'<th class="day-head">{escape(letter)}</th>' for _ in blocs for letter in letters) + "</tr>")
    parts.append(
        "<tr>"
        + "".join(f'<th class="day-head day-num">{num if num is not None else ""}</th>' for _ in blocs for num in grid.day_numbers)
        + "</tr>"
    )
    parts.append("</thead><tbody>")

    if not grid.rows:
        parts.append(f'<tr class="event-row"><td colspan="{total_cols}"></td></tr>')

    for row in grid.rows:
        cells = [f'<td class="event-name">{_event_cell(row.event_id, row.event_name, link_for)}</td>']
        for bloc in blocs:
            for day in days:
                if row.is_active(bloc, day):
                    cells.append('<td class="active">X</td>')
                else:
                    cells.append("<td></td>")
        parts.append('<tr class="event-row">' + "".join(cells) + "</tr>")

    totals = ['<td class="total event-name">Total</td>']
    for bloc in blocs:
        for day in days:
            css = "total alert" if grid.is_over_threshold(bloc, day) else "total"
            totals.append(f'<td class="{css}">{grid.display_count(bloc, day)}</td>')
    parts.append('<tr class="event-row">' + "".join(totals) + "</tr>")
    parts.append("</tbody>")
    return parts


def _matrix_layout_html(grid: WeekGrid, link_for: Optional[LinkBuilder]) -> List[str]:
    blocs = list(grid.columns.keys())
    days = list(grid.counts.columns)
    span = len(days) + 1
    letters = _day_letters(days)

    parts = ["<thead>"]
    parts.append(f'<tr><th class="week-title" colspan="{span * len(blocs)}">{escape(grid.week.name)}</th></tr>')
    parts.append("<tr>" + "".join(f'<th class="bloc-head" colspan="{span}">{escape(bloc)}</th>' for bloc in blocs) + "</tr>")

    letter_row = []
    number_row = []
    for _ in blocs:
        letter_row.extend(f'<th class="day-head">{escape(letter)}</th>' for letter in letters)
        letter_row.append('<th class="day-head event-name">Nom</th>')
        number_row.extend(f'<th class="day-head day-num">{num if num is not None else ""}</th>' for num in grid.day_numbers)
        number_row.append('<th class="day-head event-name"></th>')
    parts.append("<tr>" + "".join(letter_row) + "</tr>")
    parts.append("<tr>" + "".join(number_row) + "</tr>")
    parts.append("</thead><tbody>")

    for index in range(grid.row_count):
        cells = []
        for entry in grid.matrix_row(index):
            for day in days:
                if entry is not None and entry.is_active(day):
                    cells.append('<td class="active">X</td>')
                else:
                    cells.append("<td></td>")
            name = _event_cell(entry.event_id, entry.event_name, link_for) if entry is not None else ""
            cells.append(f'<td class="event-name">{name}</td>')
        parts.append('<tr class="event-row">' + "".join(cells) + "</tr>")
    parts.append("</tbody>")
    return parts


def grid_html(grids: Sequence[WeekGrid], link_for: Optional[LinkBuilder] = None) -> str:
    """
    HTML of the whole routing grid.

    Args:
        grids: week grids in display order
        link_for: builds the URL opened when an event name is clicked;
            ``None`` renders plain names

    Returns:
        one ``<table>`` holding every week, or the empty-state paragraph
    """
    if not grids:
        return f'<p class="routing-empty">{EMPTY_MESSAGE}</p>'

    parts = ['<table class="routing-grid">']
    for grid in grids:
        if grid.columns:
            parts.extend(_matrix_layout_html(grid, link_for))
        else:
            parts.extend(_row_layout_html(grid, link_for))
    parts.append("</table>")
    return "".join(parts)


def render_grid(grids: Sequence[WeekGrid], link_for: Optional[LinkBuilder] = None) -> None:
    if not grids:
        st.caption(EMPTY_MESSAGE)
        return
    st.markdown(GRID_STYLES, unsafe_allow_html=True)
    st.markdown(f'<div style="overflow-x:auto">{grid_html(grids, link_for)}</div>', unsafe_allow_html=True)


__all__ = ["EMPTY_MESSAGE", "grid_html", "render_grid"]
