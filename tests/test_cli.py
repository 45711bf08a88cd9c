import csv
import json

import pytest
from typer.testing import CliRunner

from shopscan import fetch
from shopscan.cli import app
from shopscan.errors import Blocked

ETSY_TUMBLER_URL = "https://www.etsy.com/listing/1708567730/lily-of-the-valley-glass-can-tumbler-may"

runner = CliRunner()


@pytest.fixture
def metrics_path(tmp_path):
    return str(tmp_path / "metrics.json")


def test_resolve_curated_listing(metrics_path):
    result = runner.invoke(app, ["resolve", ETSY_TUMBLER_URL, "--metrics-path", metrics_path])

    assert result.exit_code == 0, result.output
    assert "price:       $19.95" in result.output
    assert "curated-database" in result.output


def test_resolve_json(metrics_path):
    result = runner.invoke(app, ["resolve", ETSY_TUMBLER_URL, "--json", "--metrics-path", metrics_path])

    assert result.exit_code == 0, result.output
    assert '"price": "$19.95"' in result.output
    assert '"data_sources": [' in result.output


def test_resolve_failure_exits_nonzero(metrics_path, monkeypatch):
    def blocked(url, user_agent, timeout, client=None):
        raise Blocked("Access blocked by website", status=403, url=url)

    monkeypatch.setattr(fetch, "fetch_html", blocked)
    monkeypatch.setenv("SHOPSCAN_MAX_ATTEMPTS", "1")
    result = runner.invoke(app, ["resolve", "https://shop.example.com/items/widget", "--metrics-path", metrics_path])

    assert result.exit_code == 1
    assert "All data sources failed" in result.output


def test_feedback_report_export_reset(metrics_path, tmp_path):
    assert runner.invoke(app, ["resolve", ETSY_TUMBLER_URL, "--metrics-path", metrics_path]).exit_code == 0
    result = runner.invoke(app, ["feedback", ETSY_TUMBLER_URL, "price", "--incorrect", "--expected", "$21.95",
                                 "--metrics-path", metrics_path])
    assert result.exit_code == 0, result.output
    assert "Recorded feedback: price incorrect" in result.output

    result = runner.invoke(app, ["report", "--metrics-path", metrics_path])
    assert result.exit_code == 0, result.output
    assert "Processed 1 scans with 100.0% success rate" in result.output
    assert "User reported incorrect price" in result.output
    assert "High user correction rate - investigate common accuracy issues" in result.output

    out = tmp_path / "export" / "metrics.json"
    result = runner.invoke(app, ["export", "--out", str(out), "--metrics-path", metrics_path])
    assert result.exit_code == 0, result.output
    exported = json.loads(out.read_text(encoding="utf-8"))
    assert exported["metrics"]["total_scans"] == 1
    assert exported["feedback"][0]["expected_value"] == "$21.95"

    result = runner.invoke(app, ["reset", "--yes", "--metrics-path", metrics_path])
    assert result.exit_code == 0, result.output
    saved = json.loads(open(metrics_path, encoding="utf-8").read())
    assert saved["metrics"]["total_scans"] == 0
    assert saved["feedback"] == []


def test_reset_asks_first(metrics_path):
    result = runner.invoke(app, ["reset", "--metrics-path", metrics_path], input="n\n")

    assert result.exit_code == 1
    assert "Metrics reset" not in result.output


def test_audit(metrics_path, tmp_path, monkeypatch):
    def blocked(url, user_agent, timeout, client=None):
        raise Blocked("Access blocked by website", status=403, url=url)

    monkeypatch.setattr(fetch, "fetch_html", blocked)
    monkeypatch.setenv("SHOPSCAN_MAX_ATTEMPTS", "1")
    urls = tmp_path / "urls.txt"
    urls.write_text(f"# listings to check\n{ETSY_TUMBLER_URL}\nhttps://shop.example.com/items/widget\n",
                    encoding="utf-8")
    out = tmp_path / "audit.csv"

    result = runner.invoke(app, ["audit", str(urls), "--out", str(out), "--delay", "0",
                                 "--metrics-path", metrics_path])

    assert result.exit_code == 0, result.output
    assert "Found 2 URLs" in result.output
    assert "1 resolved, 1 failed" in result.output
    with open(out, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["price"] == "$19.95"
    assert rows[0]["data_sources"] == "curated-database"
    assert rows[1]["error"] == "Access blocked by website"
    assert rows[1]["platform"] == "other"
