"""
Configuration slots

Each dashboard declares the tables, fields and toggles it reads as a list of
``SlotSpec``. ``resolve_slots`` fills every slot once against the loaded
base: an explicit operator choice wins, otherwise the default is picked by
name keywords and field type, the same way for every dashboard. Downstream
code only sees the resolved ``HostTable``/``FieldRef`` values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..core.config import GridLayout
from .exceptions import ConfigurationError
from .fields import (
    FieldKind,
    FieldRef,
    is_any_field,
    is_attachment_field,
    is_day_field,
    is_link_field,
    is_numeric_field,
    is_text_field,
)
from .records import HostBase, HostTable

logger = logging.getLogger(__name__)


class SlotKind(str, Enum):
    TABLE = "table"
    FIELD = "field"
    STRING = "string"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class SlotSpec:
    """
    One configuration slot.

    Attributes:
        key: slot identifier
        label: label shown in the configuration panel
        kind: table, field, string or boolean
        table: for field slots, the key of the table slot the field lives in
        predicate: for field slots, which fields may fill the slot
        keywords: name fragments (lower-case) tried in order for the default
        fallback_index: table position (table slots) or position among the
            accepted fields (field slots) used when no keyword matches
        default: default value of string/boolean slots
    """

    key: str
    label: str
    kind: SlotKind = SlotKind.FIELD
    table: Optional[str] = None
    predicate: Callable[[FieldRef], bool] = is_any_field
    keywords: Tuple[str, ...] = ()
    fallback_index: Optional[int] = None
    default: Any = None


@dataclass(frozen=True)
class ResolvedSlots:
    """Slot key -> resolved value (``HostTable``, ``FieldRef``, str, bool or None)."""

    values: Mapping[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.values.get(key)

    def get(self, key: str, default: Any = None) -> Any:
        value = self.values.get(key)
        return default if value is None else value

    def table(self, key: str) -> Optional[HostTable]:
        value = self.values.get(key)
        return value if isinstance(value, HostTable) else None

    def field_ref(self, key: str) -> Optional[FieldRef]:
        value = self.values.get(key)
        return value if isinstance(value, FieldRef) else None

    def missing(self, keys: Iterable[str]) -> List[str]:
        return [k for k in keys if self.values.get(k) in (None, "")]


def _default_table(base: HostBase, spec: SlotSpec) -> Optional[HostTable]:
    if spec.keywords:
        # keywords are alternatives tried one after another, like name search in the UI
        for keyword in spec.keywords:
            table = base.find_table((keyword,))
            if table is not None:
                return table
    if spec.fallback_index is not None:
        table = base.table_at(spec.fallback_index)
        if table is not None:
            return table
    return base.table_at(0)


def _default_field(table: HostTable, spec: SlotSpec) -> Optional[FieldRef]:
    if spec.keywords:
        ref = table.find_field(spec.predicate, spec.keywords)
        if ref is not None:
            return ref
    if spec.fallback_index is not None:
        candidates = table.fields_where(spec.predicate)
        if spec.fallback_index < len(candidates):
            return candidates[spec.fallback_index]
    return None


def resolve_slots(
    base: HostBase,
    specs: Sequence[SlotSpec],
    overrides: Optional[Mapping[str, Any]] = None,
) -> ResolvedSlots:
    """
    Resolve ``specs`` against ``base``.

    Args:
        base: loaded base
        specs: slot declarations; table slots must come before their fields
        overrides: operator choices, slot key -> table id, field id or value.
            A field override that the slot predicate rejects is ignored.

    Returns:
        ResolvedSlots, with ``None`` for every slot that could not be filled
    """
    overrides = overrides or {}
    values: Dict[str, Any] = {}

    for spec in specs:
        chosen = overrides.get(spec.key)

        if spec.kind is SlotKind.TABLE:
            table = base.table_by_id(chosen) if chosen else None
            values[spec.key] = table if table is not None else _default_table(base, spec)

        elif spec.kind is SlotKind.FIELD:
            table = values.get(spec.table) if spec.table else None
            if not isinstance(table, HostTable):
                values[spec.key] = None
                continue
            ref = table.field_by_id(chosen) if chosen else None
            if ref is not None and not spec.predicate(ref):
                logger.warning(f"Slot {spec.key}: field {ref.name!r} has an incompatible type, using default")
                ref = None
            values[spec.key] = ref if ref is not None else _default_field(table, spec)

        elif spec.kind is SlotKind.BOOLEAN:
            values[spec.key] = bool(spec.default) if chosen is None else bool(chosen)

        else:
            values[spec.key] = spec.default if chosen is None else str(chosen)

    resolved = ResolvedSlots(values)
    unresolved = [k for k, v in values.items() if v is None]
    if unresolved:
        logger.debug(f"Unresolved slots: {unresolved}")
    return resolved


def require_slots(resolved: ResolvedSlots, keys: Iterable[str]) -> None:
    """Raise ``ConfigurationError`` listing every unresolved required slot."""
    missing = resolved.missing(keys)
    if missing:
        raise ConfigurationError(missing)


# ============================================================
# Slot predicates specific to one dashboard
# ============================================================


def _kinds(*kinds: FieldKind) -> Callable[[FieldRef], bool]:
    allowed = frozenset(kinds)

    def predicate(ref: FieldRef) -> bool:
        return ref.kind in allowed

    return predicate


is_week_date_field = _kinds(FieldKind.DATE, FieldKind.DATE_TIME, FieldKind.FORMULA)

is_campaign_label_field = _kinds(
    FieldKind.SINGLE_LINE_TEXT,
    FieldKind.SINGLE_SELECT,
    FieldKind.FORMULA,
    FieldKind.MULTIPLE_RECORD_LINKS,
    FieldKind.ROLLUP,
    FieldKind.AUTO_NUMBER,
    FieldKind.NUMBER,
    FieldKind.MULTILINE_TEXT,
)

is_campaign_metric_field = _kinds(
    FieldKind.NUMBER,
    FieldKind.CURRENCY,
    FieldKind.PERCENT,
    FieldKind.FORMULA,
    FieldKind.ROLLUP,
)

is_venue_text_field = _kinds(FieldKind.SINGLE_LINE_TEXT, FieldKind.MULTILINE_TEXT, FieldKind.FORMULA)


# ============================================================
# Routing grid
# ============================================================

ROUTING_SLOTS: Tuple[SlotSpec, ...] = (
    SlotSpec("eventsTable", "Table Evenements", SlotKind.TABLE, keywords=("événement", "evenement"), fallback_index=0),
    SlotSpec("weeksTable", "Table Semaines", SlotKind.TABLE, keywords=("semaine",), fallback_index=1),
    SlotSpec("blocsTable", "Table Blocs", SlotKind.TABLE, keywords=("bloc",), fallback_index=2),
    SlotSpec("sitesTable", "Table Sites", SlotKind.TABLE, keywords=("site",), fallback_index=0),
    SlotSpec("canalsTable", "Table Canaux", SlotKind.TABLE, keywords=("canal", "canaux"), fallback_index=0),
    SlotSpec("weekLinkField", "Lien Semaines (sur Evenements)", table="eventsTable", predicate=is_link_field, keywords=("semaine",)),
    SlotSpec("blocLinkField", "Lien Blocs (sur Evenements)", table="eventsTable", predicate=is_link_field, keywords=("bloc",)),
    SlotSpec("siteLinkField", "Lien Sites (sur Evenements)", table="eventsTable", predicate=is_link_field, keywords=("site",)),
    SlotSpec("canalLinkField", "Lien Canaux (sur Evenements)", table="eventsTable", predicate=is_link_field, keywords=("canal",)),
    SlotSpec("joursField", "Champ Jours (sur Evenements)", table="eventsTable", predicate=is_day_field, keywords=("jour",)),
    SlotSpec("dateDebutField", "Date debut (sur Semaines)", table="weeksTable", predicate=is_week_date_field, keywords=("debut", "start")),
    SlotSpec("dateFinField", "Date fin (sur Semaines)", table="weeksTable", predicate=is_week_date_field, keywords=("fin", "end")),
)

_GRID_CORE_KEYS = (
    "eventsTable",
    "weeksTable",
    "blocsTable",
    "weekLinkField",
    "blocLinkField",
    "joursField",
    "dateDebutField",
)


def routing_required(layout: GridLayout) -> Tuple[str, ...]:
    """Slots that must be resolved before the grid can be built."""
    if layout is GridLayout.ROW_PER_EVENT:
        return _GRID_CORE_KEYS + ("sitesTable", "canalsTable", "siteLinkField", "canalLinkField")
    return _GRID_CORE_KEYS


# ============================================================
# Box office
# ============================================================

PERFORMANCE_COLUMN_SLOTS: Tuple[Tuple[str, str], ...] = (
    ("colJoursRestants", "Jours restants"),
    ("colDateRep", "Date"),
    ("colSalle", "Salle"),
    ("colVille", "Ville"),
    ("capacityField", "Capacite"),
    ("colPlacesBloques", "Places bloquees"),
    ("colBilletsDispo", "Billets dispo"),
)

KPI_SLOT_KEYS: Tuple[str, ...] = tuple(f"kpiField{i}" for i in range(1, 7))

SALES_SLOTS: Tuple[SlotSpec, ...] = (
    SlotSpec("spectaclesTable", "Table des spectacles", SlotKind.TABLE, keywords=("spectacle",), fallback_index=0),
    SlotSpec("imageField", "Champ image (dans Spectacles)", table="spectaclesTable", predicate=is_attachment_field, fallback_index=0),
    SlotSpec("representationsTable", "Table des representations", SlotKind.TABLE, keywords=("repr",), fallback_index=1),
    SlotSpec(
        "spectacleLinkField",
        "Champ lien Spectacle (dans Representations)",
        table="representationsTable",
        predicate=is_link_field,
        keywords=("spectacle",),
        fallback_index=0,
    ),
    SlotSpec("repNameField", "Champ nom/date de la representation", table="representationsTable", predicate=is_text_field, fallback_index=0),
    SlotSpec(
        "capacityField",
        "Champ Capacite totale (dans Representations)",
        table="representationsTable",
        predicate=is_numeric_field,
        keywords=("capacit",),
        fallback_index=0,
    ),
    SlotSpec(
        "revenuePotentialField",
        "Champ Potentiel en salle (dans Representations)",
        table="representationsTable",
        predicate=is_numeric_field,
        keywords=("potentiel", "revenu"),
    ),
    SlotSpec("colJoursRestants", "Colonne: Jours restants", table="representationsTable", keywords=("jour", "restant")),
    SlotSpec("colDateRep", "Colonne: Date representation", table="representationsTable", keywords=("date",)),
    SlotSpec("colSalle", "Colonne: Salle", table="representationsTable", keywords=("salle",)),
    SlotSpec("colVille", "Colonne: Ville", table="representationsTable", keywords=("ville",)),
    SlotSpec("colPlacesBloques", "Colonne: Places bloquees", table="representationsTable", keywords=("bloqu",)),
    SlotSpec("colBilletsDispo", "Colonne: Billets disponibles", table="representationsTable", keywords=("disponib", "billet")),
    *(
        SlotSpec(key, f"KPI {i} (dans Spectacles)", table="spectaclesTable", predicate=is_numeric_field, fallback_index=i - 1)
        for i, key in enumerate(KPI_SLOT_KEYS, start=1)
    ),
    SlotSpec("filterStatusField", "Filtre: Champ Statut (dans Representations)", table="representationsTable", keywords=("statut", "status")),
)

SALES_REQUIRED: Tuple[str, ...] = ("spectaclesTable", "representationsTable", "spectacleLinkField")


# ============================================================
# Campaign charts
# ============================================================

CAMPAIGN_METRIC_SLOTS: Tuple[Tuple[str, str], ...] = (
    ("coverageField", "Couverture"),
    ("cpmField", "CPM"),
    ("pageViewsField", "Vues page de destination"),
    ("cpcField", "CPC"),
    ("impressionsField", "Impressions"),
    ("ctrField", "CTR"),
)

_METRIC_KEYWORDS = {
    "coverageField": ("couverture",),
    "cpmField": ("cpm",),
    "pageViewsField": ("vue",),
    "cpcField": ("cpc",),
    "impressionsField": ("impression",),
    "ctrField": ("ctr",),
}

CAMPAIGN_SLOTS: Tuple[SlotSpec, ...] = (
    SlotSpec("dataTable", "Table", SlotKind.TABLE, fallback_index=0),
    SlotSpec("campaignField", "Champ Campagne (axe X)", table="dataTable", predicate=is_campaign_label_field, fallback_index=0),
    SlotSpec(
        "filterField",
        "Champ filtre (dropdown UI)",
        table="dataTable",
        predicate=is_campaign_label_field,
        keywords=("campagne",),
        fallback_index=0,
    ),
    *(
        SlotSpec(
            key,
            label,
            table="dataTable",
            predicate=is_campaign_metric_field,
            keywords=_METRIC_KEYWORDS[key],
            fallback_index=position,
        )
        for position, (key, label) in enumerate(CAMPAIGN_METRIC_SLOTS)
    ),
)

CAMPAIGN_REQUIRED: Tuple[str, ...] = ("campaignField",) + tuple(key for key, _ in CAMPAIGN_METRIC_SLOTS)


# ============================================================
# Venues map
# ============================================================

VENUE_SLOTS: Tuple[SlotSpec, ...] = (
    SlotSpec("venuesTable", "Table", SlotKind.TABLE, keywords=("salle", "venue", "lieu"), fallback_index=0),
    SlotSpec("labelField", "Label field", table="venuesTable", predicate=is_venue_text_field, keywords=("nom", "name"), fallback_index=0),
    SlotSpec("addressField", "Address field", table="venuesTable", predicate=is_venue_text_field, keywords=("adresse", "address")),
    SlotSpec("autoCenterOnLoad", "Automatically center map", SlotKind.BOOLEAN, default=True),
    SlotSpec("zoomToPinOnClick", "Zoom to pin on click", SlotKind.BOOLEAN, default=True),
)

VENUE_REQUIRED: Tuple[str, ...] = ("venuesTable", "labelField", "addressField")


__all__ = [
    "SlotKind",
    "SlotSpec",
    "ResolvedSlots",
    "resolve_slots",
    "require_slots",
    "routing_required",
    "ROUTING_SLOTS",
    "SALES_SLOTS",
    "SALES_REQUIRED",
    "PERFORMANCE_COLUMN_SLOTS",
    "KPI_SLOT_KEYS",
    "CAMPAIGN_SLOTS",
    "CAMPAIGN_METRIC_SLOTS",
    "CAMPAIGN_REQUIRED",
    "VENUE_SLOTS",
    "VENUE_REQUIRED",
]
