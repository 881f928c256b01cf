"""
Domain exceptions -> UI message adapter

Catches the errors raised by the domain and data-source layers and turns
them into Streamlit messages, so that nothing below the UI layer imports
Streamlit.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Iterable

import streamlit as st

from ..domain.exceptions import (
    ConfigurationError,
    DataLoadError,
    RemoteFetchError,
    UpstreamConfigurationError,
)

logger = logging.getLogger(__name__)

CONFIGURATION_TITLE = "Configuration requise"


def render_configuration_required(missing: Iterable[str] = ()) -> None:
    """Fixed "configuration required" state; never an error box."""
    missing = list(missing)
    message = f"**{CONFIGURATION_TITLE}**"
    if missing:
        message += "\n\nParametres manquants : " + ", ".join(missing)
    st.info(message)


@contextmanager
def handle_domain_errors() -> Generator[None, None, None]:
    """
    Context manager turning domain exceptions into Streamlit messages.

    Yields:
        None

    Examples:
        >>> with handle_domain_errors():
        ...     base = ensure_base(credentials)

    Notes:
        - ConfigurationError: "configuration required" info box
        - UpstreamConfigurationError: platform message, verbatim
        - RemoteFetchError / DataLoadError: error box
        - anything else: error box plus the traceback
    """
    try:
        yield

    except ConfigurationError as e:
        render_configuration_required(e.missing)

    except UpstreamConfigurationError as e:
        logger.error(f"Upstream configuration error: {e}")
        st.error(f"Erreur de configuration : {e}")

    except RemoteFetchError as e:
        logger.error(f"Sales report error: {e}")
        st.error(str(e))

    except DataLoadError as e:
        logger.error(f"Data load error: {e}")
        st.error(f"Erreur de chargement : {e}")

    except Exception as e:
        logger.exception("Unexpected dashboard error")
        st.error(f"Erreur inattendue : {type(e).__name__}: {e}")
        st.exception(e)
