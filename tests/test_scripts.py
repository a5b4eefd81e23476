from __future__ import annotations

import json

import pytest

from invoice_insights.config import get_settings
from scripts import print_insights


@pytest.fixture
def small_sample_env(monkeypatch):
    monkeypatch.setenv("INVOICE_DATA_SOURCE", "sample")
    monkeypatch.setenv("SAMPLE_ROWS", "50")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_print_insights_stdout_is_json(small_sample_env, capsys) -> None:
    print_insights.main()

    payload = json.loads(capsys.readouterr().out)

    assert payload["kpis"]["number_of_invoices"] == 50
    assert len(payload["lifecycle_analysis"]) == 4
    assert {rule["status"] for rule in payload["alert_rules"]} <= {"triggered", "clear", "not_implemented"}
