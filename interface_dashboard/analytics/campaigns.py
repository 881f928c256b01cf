"""Campaign metrics for the dual-axis charts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

import pandas as pd

from ..core.config import ALL_OPTION
from ..domain.fields import FieldRef, cell_as_string, to_number
from ..domain.records import HostRecord


@dataclass(frozen=True)
class DualAxisChart:
    """One chart: bars on the left axis, a line on the right axis."""

    title: str
    left_key: str
    left_label: str
    left_color: str
    right_key: str
    right_label: str
    right_color: str


CAMPAIGN_CHARTS = (
    DualAxisChart("Objectif de portee : Couverture / CPM", "coverage", "Couverture", "#4a90d9", "cpm", "CPM", "#e06666"),
    DualAxisChart(
        "Objectif de traffic : Vues page destination / CPC",
        "page_views",
        "Vues page destination",
        "#6aa84f",
        "cpc",
        "CPC",
        "#f6b26b",
    ),
    DualAxisChart(
        "Objectif d'engagement : Impressions / CTR",
        "impressions",
        "Impressions",
        "#8e7cc3",
        "ctr",
        "CTR",
        "#c27ba0",
    ),
)

# slot key -> metric column
METRIC_COLUMNS = {
    "coverageField": "coverage",
    "cpmField": "cpm",
    "pageViewsField": "page_views",
    "cpcField": "cpc",
    "impressionsField": "impressions",
    "ctrField": "ctr",
}


def metric_value(value: Any) -> float:
    number = to_number(value)
    return number if number is not None else 0.0


def filter_value_names(record: HostRecord, ref: FieldRef) -> List[str]:
    """
    Values a record offers to the filter dropdown.

    Links give the names of the linked records, a single select its option
    name, anything else its display string.
    """
    value = record.value(ref)
    if isinstance(value, (list, tuple)):
        return [item["name"] for item in value if isinstance(item, dict) and item.get("name")]
    if isinstance(value, dict) and value.get("name"):
        return [value["name"]]
    text = cell_as_string(value)
    return [text] if text else []


def filter_options(records: Sequence[HostRecord], ref: Optional[FieldRef]) -> List[str]:
    if ref is None:
        return []
    seen = set()
    for record in records:
        seen.update(filter_value_names(record, ref))
    return sorted(seen)


def filter_records(records: Sequence[HostRecord], ref: Optional[FieldRef], selected: Optional[str]) -> List[HostRecord]:
    if ref is None or not selected or selected == ALL_OPTION:
        return list(records)
    return [record for record in records if selected in filter_value_names(record, ref)]


def campaign_frame(
    records: Sequence[HostRecord],
    campaign_field: FieldRef,
    metric_fields: Mapping[str, Optional[FieldRef]],
) -> pd.DataFrame:
    """
    One row per record: ``campaign`` label and every metric column.

    Missing or non-numeric metric cells count as 0.
    """
    rows = []
    for record in records:
        row = {"campaign": cell_as_string(record.value(campaign_field))}
        for slot_key, column in METRIC_COLUMNS.items():
            ref = metric_fields.get(slot_key)
            row[column] = metric_value(record.value(ref)) if ref is not None else 0.0
        rows.append(row)
    columns = ["campaign"] + list(METRIC_COLUMNS.values())
    return pd.DataFrame(rows, columns=columns)


def chart_rows(frame: pd.DataFrame, chart: DualAxisChart) -> pd.DataFrame:
    """Rows where at least one of the chart's two metrics is positive."""
    if frame.empty:
        return frame
    keep = (frame[chart.left_key] > 0) | (frame[chart.right_key] > 0)
    return frame.loc[keep, ["campaign", chart.left_key, chart.right_key]].reset_index(drop=True)


def bar_width_px(count: int) -> float:
    """Bar width for ``count`` bars, between 12 and 40 pixels."""
    if count <= 0:
        return 40.0
    return max(12.0, min(40.0, 600.0 / count))


def truncate_label(text: str, limit: int = 15) -> str:
    if not text:
        return ""
    return text[:limit] + "..." if len(text) > limit else text


__all__ = [
    "CAMPAIGN_CHARTS",
    "DualAxisChart",
    "METRIC_COLUMNS",
    "bar_width_px",
    "campaign_frame",
    "chart_rows",
    "filter_options",
    "filter_records",
    "filter_value_names",
    "metric_value",
    "truncate_label",
]
