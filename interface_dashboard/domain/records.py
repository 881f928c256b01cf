"""
Host platform records

Immutable snapshots of an Airtable base: tables, typed fields and records.
Loaders build these once per refresh; everything downstream reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .fields import FieldRef


@dataclass(frozen=True)
class HostRecord:
    """One record. ``cells`` is keyed by field id; ``name`` is the primary field."""

    id: str
    name: str = ""
    cells: Mapping[str, Any] = field(default_factory=dict)

    def value(self, ref: Optional[FieldRef]) -> Any:
        """Cell value passed through the field's extractor."""
        if ref is None:
            return None
        return ref.extract(self.cells.get(ref.id))


@dataclass(frozen=True)
class HostTable:
    id: str
    name: str
    fields: Tuple[FieldRef, ...] = ()
    records: Tuple[HostRecord, ...] = ()
    can_expand: bool = True

    def field_by_id(self, field_id: Optional[str]) -> Optional[FieldRef]:
        if not field_id:
            return None
        for ref in self.fields:
            if ref.id == field_id:
                return ref
        return None

    def field_by_name(self, name: str) -> Optional[FieldRef]:
        for ref in self.fields:
            if ref.name == name:
                return ref
        return None

    def find_field(
        self,
        predicate: Callable[[FieldRef], bool],
        keywords: Sequence[str] = (),
    ) -> Optional[FieldRef]:
        """
        First field accepted by ``predicate`` whose lower-cased name contains
        one of ``keywords`` (tried in order). Without keywords, the first
        accepted field.
        """
        candidates = [f for f in self.fields if predicate(f)]
        if not keywords:
            return candidates[0] if candidates else None
        for keyword in keywords:
            for ref in candidates:
                if keyword in ref.name.lower():
                    return ref
        return None

    def fields_where(self, predicate: Callable[[FieldRef], bool]) -> Tuple[FieldRef, ...]:
        return tuple(f for f in self.fields if predicate(f))

    def record_by_id(self, record_id: str) -> Optional[HostRecord]:
        for record in self.records:
            if record.id == record_id:
                return record
        return None

    def records_by_id(self) -> Dict[str, HostRecord]:
        return {record.id: record for record in self.records}


@dataclass(frozen=True)
class HostBase:
    id: str
    tables: Tuple[HostTable, ...] = ()

    def table_by_id(self, table_id: Optional[str]) -> Optional[HostTable]:
        if not table_id:
            return None
        for table in self.tables:
            if table.id == table_id:
                return table
        return None

    def find_table(self, keywords: Iterable[str]) -> Optional[HostTable]:
        """First table whose lower-cased name contains any keyword."""
        keywords = tuple(keywords)
        for table in self.tables:
            name = table.name.lower()
            if any(k in name for k in keywords):
                return table
        return None

    def table_at(self, index: int) -> Optional[HostTable]:
        if 0 <= index < len(self.tables):
            return self.tables[index]
        return None
