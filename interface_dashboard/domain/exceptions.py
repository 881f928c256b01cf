"""
Domain exceptions

Every error the domain and data-source layers can raise. The UI layer
(``ui/adapters.py``) catches these and turns them into Streamlit messages,
so nothing below the UI needs to import Streamlit.
"""

from __future__ import annotations

from typing import Iterable, Optional


class DomainError(Exception):
    """
    Base class of all dashboard errors.
    """

    pass


class ConfigurationError(DomainError):
    """
    A required table or field slot is not resolved.

    Rendered as the fixed "configuration required" state, never as an
    error box.

    Attributes:
        missing: keys of the unresolved slots
    """

    def __init__(self, missing: Iterable[str], message: Optional[str] = None) -> None:
        self.missing = tuple(missing)
        super().__init__(message or f"Configuration requise: {', '.join(self.missing)}")


class UpstreamConfigurationError(DomainError):
    """
    The host platform rejected the configuration (permissions, unknown base).

    The platform's message is shown verbatim.
    """

    pass


class DataLoadError(DomainError):
    """
    Records could not be read from the host platform.
    """

    pass


class RemoteFetchError(DomainError):
    """
    The sales report endpoint failed or answered with a non-2xx status.

    Attributes:
        status: HTTP status code, ``None`` for transport failures
        reason: HTTP reason phrase or transport error text
    """

    def __init__(self, status: Optional[int], reason: str = "") -> None:
        self.status = status
        self.reason = reason
        if status is None:
            message = f"Erreur reseau: {reason}"
        else:
            message = f"Erreur Supabase: {status} {reason}".rstrip()
        super().__init__(message)


class RequestCancelled(DomainError):
    """
    A fetch was superseded by a newer request before it finished.

    Never shown to the user; the newer request owns the view.
    """

    pass
