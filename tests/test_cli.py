import json
import sys

import pytest
from click.testing import CliRunner

import seo_health.cli as cli_module
from conftest import make_page
from seo_health.cli import cli, main
from seo_health.models import (
    AuditReport,
    AuditStatus,
    Category,
    CategoryResult,
    Issue,
    Rating,
    Severity,
)
from seo_health.recommendations import classify


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("GOOGLE_PAGESPEED_API_KEY", "SEO_HEALTH_MAX_PAGES", "SEO_HEALTH_MAX_DEPTH"):
        monkeypatch.delenv(name, raising=False)


def sample_report(url="https://example.com", status=AuditStatus.COMPLETED, error=None):
    issue = Issue(
        type="missing_sitemap",
        severity=Severity.HIGH,
        title="Missing XML Sitemap",
        description="No sitemap.xml found.",
        recommendation="Generate sitemap.xml.",
    )
    result = CategoryResult(
        category=Category.TECHNICAL_SEO,
        category_score=72,
        weight=0.25,
        rating=Rating.GOOD,
        issues=[issue],
        checks={"sitemap": {"exists": False, "status": "fail"}},
    )
    report = AuditReport(audit_id="abc", url=url, domain="example.com", status=status, error=error)
    if status == AuditStatus.COMPLETED:
        report.categories = [result]
        report.overall_score = 72
        report.score_rating = Rating.GOOD
        report.recommendations = classify(result.issues, result.category)
        report.pages_crawled = 4
    return report


@pytest.fixture
def audits(monkeypatch):
    calls = []

    def fake_run_audit(url, config=None, **kwargs):
        calls.append((url, config))
        return sample_report(url)

    monkeypatch.setattr(cli_module, "run_audit", fake_run_audit)
    return calls


def test_scan_json(audits):
    result = CliRunner().invoke(cli, ["scan", "example.com", "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["overall_score"] == 72
    assert data["score_rating"] == "good"
    assert data["categories"][0]["category"] == "TECHNICAL_SEO"
    assert data["categories"][0]["issue_count"] == 1
    assert data["categories"][0]["issues"][0]["severity"] == "high"
    assert data["recommendations"][0]["effort_level"] == "QUICK_WIN"
    assert data["quick_wins"][0]["issue_type"] == "missing_sitemap"
    assert audits[0][0] == "https://example.com"


def test_scan_applies_options_over_environment(audits, monkeypatch):
    monkeypatch.setenv("SEO_HEALTH_MAX_DEPTH", "1")
    result = CliRunner().invoke(
        cli,
        ["scan", "example.com", "--json", "--max-pages", "7", "--delay-ms", "0", "-t", "3", "--pagespeed-key", "k"],
    )
    assert result.exit_code == 0, result.output
    config = audits[0][1]
    assert config.crawl.max_pages == 7
    assert config.crawl.max_depth == 1
    assert config.crawl.delay_ms == 0
    assert config.crawl.timeout_ms == 3000
    assert config.pagespeed_api_key == "k"


def test_pagespeed_key_from_environment(audits, monkeypatch):
    monkeypatch.setenv("GOOGLE_PAGESPEED_API_KEY", "from-env")
    result = CliRunner().invoke(cli, ["scan", "example.com", "--json"])
    assert result.exit_code == 0, result.output
    assert audits[0][1].pagespeed_api_key == "from-env"


def test_scan_rich_output(audits):
    result = CliRunner().invoke(cli, ["scan", "example.com"])
    assert result.exit_code == 0, result.output
    assert "SEO Health Audit" in result.output
    assert "Technical Seo" in result.output
    assert "Missing XML Sitemap" in result.output


def test_scan_rejects_invalid_url(audits):
    result = CliRunner().invoke(cli, ["scan", "http://localhost/"])
    assert result.exit_code == 2
    assert "Invalid value" in result.output
    assert audits == []


def test_invalid_environment_is_a_usage_error(audits, monkeypatch):
    monkeypatch.setenv("SEO_HEALTH_MAX_PAGES", "lots")
    result = CliRunner().invoke(cli, ["scan", "example.com"])
    assert result.exit_code == 2
    assert "SEO_HEALTH_MAX_PAGES" in result.output


def test_failed_audit_exits_nonzero(monkeypatch):
    monkeypatch.setattr(
        cli_module,
        "run_audit",
        lambda url, config=None: sample_report(url, status=AuditStatus.FAILED, error="boom"),
    )
    result = CliRunner().invoke(cli, ["scan", "example.com"])
    assert result.exit_code == 1
    assert "Audit failed" in result.output


def test_crawl_json(monkeypatch):
    seen = {}

    def fake_crawl(url, config):
        seen["config"] = config
        return [make_page("https://example.com/", title="Home", word_count=120, load_time=80)]

    monkeypatch.setattr(cli_module, "crawl_site", fake_crawl)
    result = CliRunner().invoke(cli, ["crawl", "example.com", "--json", "--max-depth", "0"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data == [{
        "url": "https://example.com/",
        "depth": 0,
        "status_code": 200,
        "title": "Home",
        "word_count": 120,
        "load_time": 80,
        "error": None,
    }]
    assert seen["config"].max_depth == 0
    assert seen["config"].keep_html is False


def test_group_without_command_shows_help():
    result = CliRunner().invoke(cli, [])
    assert result.exit_code == 0
    assert "scan" in result.output
    assert "crawl" in result.output


def test_main_treats_bare_domain_as_scan(audits, monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["seo-health", "example.com", "--json"])
    with pytest.raises(SystemExit) as exc:
        main()
    assert exc.value.code == 0
    assert json.loads(capsys.readouterr().out)["domain"] == "example.com"
