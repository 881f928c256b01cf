"""Base loading interfaces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..domain.records import HostBase
from .airtable import AirtableClient, load_base


class Loader(Protocol):
    """Load operation returning a base snapshot."""

    def load(self) -> HostBase:  # pragma: no cover - interface definition
        ...


@dataclass(frozen=True)
class StaticBaseLoader:
    """Loader returning an in-memory base (tests, demos)."""

    base: HostBase

    def load(self) -> HostBase:
        return self.base


@dataclass(frozen=True)
class AirtableBaseLoader:
    client: AirtableClient
    base_id: str
    can_expand: bool = True

    def load(self) -> HostBase:
        return load_base(self.client, self.base_id, can_expand=self.can_expand)
