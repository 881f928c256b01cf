from __future__ import annotations

from typing import Optional, Sequence

import streamlit as st

from app import state
from interface_dashboard.domain.records import HostBase
from interface_dashboard.domain.slots import ResolvedSlots, SlotKind, SlotSpec

NONE_OPTION = "(aucun)"


def _on_change(dashboard: str, slot_key: str, widget_key: str) -> None:
    value = st.session_state.get(widget_key)
    state.set_override(dashboard, slot_key, None if value == NONE_OPTION else value)


def render_slot_settings(
    base: HostBase,
    specs: Sequence[SlotSpec],
    resolved: ResolvedSlots,
    dashboard: str,
) -> None:
    """Sidebar panel letting the operator pick the tables and fields of a dashboard."""

    with st.sidebar.expander("Parametres", expanded=False):
        for spec in specs:
            widget_key = f"slot:{dashboard}:{spec.key}"
            current = resolved[spec.key]

            if spec.kind is SlotKind.TABLE:
                ids = [table.id for table in base.tables]
                if not ids:
                    continue
                names = {table.id: table.name for table in base.tables}
                index = ids.index(current.id) if current is not None and current.id in ids else 0
                st.selectbox(
                    spec.label,
                    ids,
                    index=index,
                    format_func=names.get,
                    key=widget_key,
                    on_change=_on_change,
                    args=(dashboard, spec.key, widget_key),
                )

            elif spec.kind is SlotKind.FIELD:
                table = resolved.table(spec.table) if spec.table else None
                if table is None:
                    continue
                candidates = table.fields_where(spec.predicate)
                ids = [NONE_OPTION] + [ref.id for ref in candidates]
                names = {ref.id: ref.name for ref in candidates}
                current_id: Optional[str] = current.id if current is not None else NONE_OPTION
                st.selectbox(
                    spec.label,
                    ids,
                    index=ids.index(current_id) if current_id in ids else 0,
                    format_func=lambda value, names=names: names.get(value, NONE_OPTION),
                    key=widget_key,
                    on_change=_on_change,
                    args=(dashboard, spec.key, widget_key),
                )

            elif spec.kind is SlotKind.BOOLEAN:
                st.checkbox(
                    spec.label,
                    value=bool(current),
                    key=widget_key,
                    on_change=_on_change,
                    args=(dashboard, spec.key, widget_key),
                )

            else:
                st.text_input(
                    spec.label,
                    value=current or "",
                    key=widget_key,
                    on_change=_on_change,
                    args=(dashboard, spec.key, widget_key),
                )
