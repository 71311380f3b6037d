import json

from conftest import FakeSite, page

from seocrawl import cli
from seocrawl.services.audit_service import AuditService
from seocrawl.services.content_extractor import ContentExtractor
from seocrawl.services.query_catalog import QueryCatalog


def test_queries_command_lists_catalog(capsys):
    assert cli.main(["queries", "--category", "security"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["queries"]
    assert {q["category"] for q in payload["queries"]} == {"security"}
    assert payload["stats"]["total"] >= 29


def test_query_against_missing_crawl_exits_with_usage_error(tmp_path, capsys):
    assert cli.main(["query", str(tmp_path), "missing-hsts"]) == 2


def test_crawl_then_analyze(tmp_path, monkeypatch, capsys):
    site = FakeSite()
    site.add("https://example.com/", page(title="Home", body="<h1>Home</h1>"))
    service = AuditService(
        output_dir=str(tmp_path),
        http_service_factory=lambda **kw: site,
        content_extractor=ContentExtractor(),
        query_catalog=QueryCatalog(),
        retry_delay=0.0,
    )
    monkeypatch.setattr(cli, "Container", _container_with(service))

    assert cli.main(["crawl", "https://example.com/", "--max-pages", "3"]) == 0
    crawl = json.loads(capsys.readouterr().out)
    assert crawl["status"] == "completed"

    assert cli.main(["analyze", crawl["outputPath"], "--format", "summary"]) == 0
    out = capsys.readouterr().out
    assert "SEO AUDIT SUMMARY" in out
    assert "Title Same As H1" in out


def _container_with(service):
    class _Container:
        def audit_service(self):
            return service

        def query_catalog(self):
            return service.query_catalog

    return _Container
