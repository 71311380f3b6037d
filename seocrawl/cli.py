"""Command-line front end: ``seocrawl crawl | analyze | queries``.

Results are printed to stdout as JSON (or text for summaries); logs go to stderr.
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from seocrawl import config as env
from seocrawl.container import Container
from seocrawl.domain.config import USER_AGENTS
from seocrawl.exceptions import CrawlConfigError, QueryNotFoundError
from seocrawl.services.query_catalog import CATEGORIES, PRIORITIES
from seocrawl.services.report_formatter import format_report, format_summary

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="seocrawl", description="Crawl a site and audit its SEO signals.")
    sub = parser.add_subparsers(dest="command", required=True)

    crawl = sub.add_parser("crawl", help="crawl a site into a new audit directory")
    crawl.add_argument("url")
    crawl.add_argument("--max-pages", type=int, default=None)
    crawl.add_argument("--depth", type=int, default=None)
    crawl.add_argument("--user-agent", default=None, help=f"one of {', '.join(USER_AGENTS)} or a literal header")
    crawl.add_argument("--config", dest="config_file", default=None, help="YAML or JSON crawl config file")

    analyze = sub.add_parser("analyze", help="run the analysis queries against a finished crawl")
    analyze.add_argument("path", help="crawl directory containing crawl-data.db")
    analyze.add_argument("--category", action="append", choices=CATEGORIES, default=None)
    analyze.add_argument("--priority", choices=PRIORITIES, default=None)
    analyze.add_argument("--max-examples", type=int, default=10)
    analyze.add_argument("--format", choices=("structured", "summary", "detailed"), default="structured")

    queries = sub.add_parser("queries", help="list the available analysis queries")
    queries.add_argument("--category", choices=CATEGORIES, default=None)
    queries.add_argument("--priority", choices=PRIORITIES, default=None)

    query = sub.add_parser("query", help="run one named analysis query")
    query.add_argument("path")
    query.add_argument("name")
    query.add_argument("--limit", type=int, default=100)
    return parser


def _print_json(payload) -> None:
    json.dump(payload, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def cmd_crawl(container: Container, args: argparse.Namespace) -> int:
    service = container.audit_service()
    if args.config_file:
        cfg = container.config_file_store().load_config(
            args.config_file,
            start_url=args.url,
            max_pages=args.max_pages,
            max_depth=args.depth,
            user_agent=args.user_agent,
        )
        result = service.run_config(cfg)
    else:
        result = service.run_audit(args.url, max_pages=args.max_pages, depth=args.depth, user_agent=args.user_agent)
    _print_json(result.to_dict())
    return 0 if result.status == "completed" else 1


def cmd_analyze(container: Container, args: argparse.Namespace) -> int:
    analysis = container.audit_service().analyze(
        args.path,
        categories=args.category,
        max_examples=args.max_examples,
        priority=args.priority,
    )
    report = format_report(analysis.issues, analysis.total_pages, analysis.execution_time)
    if args.format == "structured":
        _print_json({"crawlId": analysis.crawl_id, "crawlPath": analysis.crawl_path, **report})
    else:
        sys.stdout.write(format_summary(report, detailed=args.format == "detailed") + "\n")
    return 0


def cmd_queries(container: Container, args: argparse.Namespace) -> int:
    catalog = container.query_catalog()
    categories = [args.category] if args.category else None
    _print_json({
        "stats": catalog.stats(),
        "queries": [
            {
                "name": q.name,
                "category": q.category,
                "priority": q.priority,
                "title": q.title,
                "description": q.description,
            }
            for q in sorted(catalog.select(categories, args.priority), key=lambda q: (q.category, q.name))
        ],
    })
    return 0


def cmd_query(container: Container, args: argparse.Namespace) -> int:
    rows = container.audit_service().query(args.path, args.name, limit=args.limit)
    _print_json({"query": args.name, "count": len(rows), "rows": rows})
    return 0


COMMANDS = {
    "crawl": cmd_crawl,
    "analyze": cmd_analyze,
    "queries": cmd_queries,
    "query": cmd_query,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, env.log_level(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    container = Container()
    try:
        return COMMANDS[args.command](container, args)
    except (CrawlConfigError, QueryNotFoundError, FileNotFoundError, ValidationError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
