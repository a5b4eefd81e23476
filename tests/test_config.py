from __future__ import annotations

import structlog

from invoice_insights import synth
from invoice_insights.config import Settings
from invoice_insights.log_config import configure_logging


def test_settings_defaults(monkeypatch) -> None:
    for name in ("INVOICE_DATA_SOURCE", "SAMPLE_ROWS", "SAMPLE_SEED", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()

    assert settings.data_source == "sample"
    assert not settings.uses_store
    assert settings.sample_rows == synth.DEFAULT_DATASET_ROWS
    assert settings.sample_seed == synth.DEFAULT_SEED


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("INVOICE_DATA_SOURCE", "csv")
    monkeypatch.setenv("INVOICE_CSV_PATH", "/tmp/invoices.csv")
    monkeypatch.setenv("SAMPLE_ROWS", "42")
    settings = Settings()

    assert settings.uses_store
    assert settings.invoice_csv_path == "/tmp/invoices.csv"
    assert settings.sample_rows == 42


def test_configure_logging_accepts_unknown_level() -> None:
    configure_logging("not-a-level")
    configure_logging("warning")

    structlog.get_logger("invoice_insights.test").info("ignored_below_warning")
