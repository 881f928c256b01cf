import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from interface_dashboard.domain.fields import FieldKind, FieldRef
from interface_dashboard.domain.records import HostBase, HostRecord, HostTable


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, payload=None, status_code=200, reason="OK"):
        self._payload = payload
        self.status_code = status_code
        self.reason = reason

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        import requests

        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} {self.reason}")


class FakeSession:
    """Records every GET and answers from a list of responses (or a callable)."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if callable(self.responses):
            return self.responses(url, params)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def routing_base():
    """
    Small routing base: 2 weeks, 3 blocs (one unknown), 2 sites, 1 canal.
    """
    week_link = FieldRef("fldWeek", "Semaines", FieldKind.MULTIPLE_RECORD_LINKS, "tblWeeks")
    bloc_link = FieldRef("fldBloc", "Blocs", FieldKind.MULTIPLE_RECORD_LINKS, "tblBlocs")
    site_link = FieldRef("fldSite", "Site", FieldKind.MULTIPLE_RECORD_LINKS, "tblSites")
    canal_link = FieldRef("fldCanal", "Canal", FieldKind.MULTIPLE_RECORD_LINKS, "tblCanals")
    days = FieldRef("fldJours", "Jours", FieldKind.MULTIPLE_SELECTS)
    start = FieldRef("fldDebut", "Date debut", FieldKind.DATE)
    end = FieldRef("fldFin", "Date fin", FieldKind.DATE)

    events = HostTable(
        "tblEvents",
        "Evenements",
        fields=(week_link, bloc_link, site_link, canal_link, days),
        records=(
            HostRecord(
                "recE1",
                "Concert",
                {
                    "fldWeek": [{"id": "recW2", "name": "S2"}],
                    "fldBloc": [{"id": "recAM", "name": "AM"}],
                    "fldSite": [{"id": "recS1", "name": "Montreal"}],
                    "fldCanal": [{"id": "recC1", "name": "Radio"}],
                    "fldJours": ["L", "Ma"],
                },
            ),
            HostRecord(
                "recE2",
                "Festival",
                {
                    "fldWeek": [{"id": "recW1", "name": "S1"}, {"id": "recW2", "name": "S2"}],
                    "fldBloc": [{"id": "recAM", "name": "AM"}, {"id": "recSOIR", "name": "Soir"}],
                    "fldSite": [{"id": "recS2", "name": "Quebec"}],
                    "fldCanal": [{"id": "recC1", "name": "Radio"}],
                    "fldJours": ["L"],
                },
            ),
            HostRecord(
                "recE3",
                "Sans semaine",
                {"fldBloc": [{"id": "recAM", "name": "AM"}], "fldJours": ["L"]},
            ),
        ),
    )
    weeks = HostTable(
        "tblWeeks",
        "Semaines",
        fields=(start, end),
        records=(
            HostRecord("recW1", "S1", {"fldDebut": "2024-01-07", "fldFin": "2024-01-13"}),
            HostRecord("recW2", "S2", {"fldDebut": "2024-01-14"}),
        ),
    )
    blocs = HostTable(
        "tblBlocs",
        "Blocs",
        records=(
            HostRecord("recAM", "AM"),
            HostRecord("recSOIR", "Soir"),
            HostRecord("recMID", "Midi"),
        ),
    )
    sites = HostTable("tblSites", "Sites", records=(HostRecord("recS1", "Montreal"), HostRecord("recS2", "Quebec")))
    canals = HostTable("tblCanals", "Canaux", records=(HostRecord("recC1", "Radio"),))
    return HostBase("appTest", (events, weeks, blocs, sites, canals))
