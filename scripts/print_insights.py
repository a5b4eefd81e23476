"""Utility script to print the insights payload for a sample ledger."""

from __future__ import annotations

import json

import numpy as np

from invoice_insights import alerts, synth
from invoice_insights.config import get_settings
from invoice_insights.log_config import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    invoices = synth.generate_invoices(
        rows=settings.sample_rows,
        seed=settings.sample_seed,
        year=settings.sample_year,
    )
    payload = alerts.calculate_insights(invoices, rng=np.random.default_rng(settings.sample_seed))
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
