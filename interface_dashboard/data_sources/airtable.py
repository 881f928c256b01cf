"""
Airtable REST loader

Reads the schema and every record of a base through the Airtable Web API
and turns them into ``HostBase``/``HostTable``/``HostRecord`` snapshots.

- schema: ``GET /v0/meta/bases/{base_id}/tables``
- records: ``GET /v0/{base_id}/{table_id}``, paginated by the ``offset`` cursor

Link cells come back from the API as bare record ids; after loading, they
are rewritten to ``[{"id": ..., "name": ...}]`` using the primary field of
the linked table, so day and filter fields backed by links expose names.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..common.performance import measure_time_context
from ..core.config import AIRTABLE_API_URL, AIRTABLE_UI_URL
from ..domain.exceptions import DataLoadError, UpstreamConfigurationError
from ..domain.fields import FieldKind, FieldRef, cell_as_string
from ..domain.records import HostBase, HostRecord, HostTable

logger = logging.getLogger(__name__)

# Statuses meaning the token / base / permissions are wrong rather than a transient failure
CONFIGURATION_STATUSES = (401, 403, 404, 422)


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason or f"HTTP {response.status_code}"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or error.get("type") or response.reason)
    if error:
        return str(error)
    return response.reason or f"HTTP {response.status_code}"


class AirtableClient:
    """Thin ``requests`` wrapper around the Airtable Web API."""

    def __init__(
        self,
        token: str,
        *,
        api_url: str = AIRTABLE_API_URL,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.api_url}/{path}"
        try:
            response = self.session.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise DataLoadError(f"Airtable injoignable: {exc}") from exc

        if response.status_code in CONFIGURATION_STATUSES:
            raise UpstreamConfigurationError(_error_message(response))
        if not response.ok:
            raise DataLoadError(f"Airtable {response.status_code}: {_error_message(response)}")
        return response.json()

    def list_tables(self, base_id: str) -> List[Dict[str, Any]]:
        payload = self._get(f"meta/bases/{base_id}/tables")
        return list(payload.get("tables", []))

    def list_records(self, base_id: str, table_id: str) -> List[Dict[str, Any]]:
        """Every record of a table, following the ``offset`` cursor."""
        records: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {"returnFieldsByFieldId": "true", "pageSize": 100}
        while True:
            payload = self._get(f"{base_id}/{table_id}", params=params)
            records.extend(payload.get("records", []))
            offset = payload.get("offset")
            if not offset:
                break
            params = {**params, "offset": offset}
        return records


def record_url(base_id: str, table_id: str, record_id: str) -> str:
    """Link opening a record's detail view in Airtable."""
    return f"{AIRTABLE_UI_URL}/{base_id}/{table_id}/{record_id}"


def _field_refs(schema: Dict[str, Any]) -> List[FieldRef]:
    refs = []
    for spec in schema.get("fields", []):
        options = spec.get("options") or {}
        refs.append(
            FieldRef(
                id=spec["id"],
                name=spec.get("name", spec["id"]),
                kind=FieldKind.from_platform_type(spec.get("type")),
                linked_table_id=options.get("linkedTableId"),
            )
        )
    return refs


def _resolve_link_names(tables: List[HostTable]) -> List[HostTable]:
    names_by_table = {table.id: {r.id: r.name for r in table.records} for table in tables}

    resolved = []
    for table in tables:
        link_fields = [f for f in table.fields if f.kind is FieldKind.MULTIPLE_RECORD_LINKS and f.linked_table_id]
        if not link_fields:
            resolved.append(table)
            continue

        records = []
        for record in table.records:
            cells = dict(record.cells)
            for ref in link_fields:
                value = cells.get(ref.id)
                if not isinstance(value, list):
                    continue
                names = names_by_table.get(ref.linked_table_id, {})
                cells[ref.id] = [
                    item if isinstance(item, dict) else {"id": item, "name": names.get(item, "")}
                    for item in value
                ]
            records.append(HostRecord(id=record.id, name=record.name, cells=cells))
        resolved.append(
            HostTable(
                id=table.id,
                name=table.name,
                fields=table.fields,
                records=tuple(records),
                can_expand=table.can_expand,
            )
        )
    return resolved


def load_base(client: AirtableClient, base_id: str, *, can_expand: bool = True) -> HostBase:
    """
    Load the schema and records of a base.

    Args:
        client: API client
        base_id: ``app...`` identifier
        can_expand: whether record links may be offered in the UI

    Returns:
        HostBase snapshot

    Raises:
        UpstreamConfigurationError: token, base or permissions rejected
        DataLoadError: network failure or unexpected API error
    """
    with measure_time_context(f"load Airtable base {base_id}"):
        schemas = client.list_tables(base_id)
        tables = []
        for schema in schemas:
            refs = _field_refs(schema)
            primary_id = schema.get("primaryFieldId")
            raw_records = client.list_records(base_id, schema["id"])
            records = tuple(
                HostRecord(
                    id=raw["id"],
                    name=cell_as_string((raw.get("fields") or {}).get(primary_id)),
                    cells=dict(raw.get("fields") or {}),
                )
                for raw in raw_records
            )
            tables.append(
                HostTable(
                    id=schema["id"],
                    name=schema.get("name", schema["id"]),
                    fields=tuple(refs),
                    records=records,
                    can_expand=can_expand,
                )
            )
            logger.info(f"Loaded {len(records)} records from {schema.get('name')!r}")

    return HostBase(id=base_id, tables=tuple(_resolve_link_names(tables)))


__all__ = ["AirtableClient", "load_base", "record_url"]
