"""
Interface dashboards entry point

Streamlit entry script: ``streamlit run dashboard_app.py``.

Pages:
- Routage: weekly routing grid of events per bloc and day
- Ventes: show gallery, cumulative sales chart and box-office KPIs
- Campagnes: campaign metrics on dual-axis charts
- Carte des salles: geocoded venues on a map

Credentials are read from ``.streamlit/secrets.toml`` (sections ``airtable``,
``sales_report`` and ``mapbox``) or from the environment.
"""

from __future__ import annotations

import logging

# Logging setup
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

from app.main import main

main()
