"""Catalog of read-only SEO analysis queries shipped as annotated .sql files.

Each file lives under ``seocrawl/queries/<category>/<name>.sql`` and starts
with a comment header::

    -- Title (PRIORITY)
    -- One-line description
    -- Priority: HIGH
    -- Category: content
    -- Impact: ...
    -- Fix: ...

followed by a single SELECT statement.
"""
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from seocrawl.exceptions import QueryNotFoundError

logger = logging.getLogger(__name__)

CATEGORIES = ("critical", "content", "technical", "security", "opportunities")
PRIORITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW")
DEFAULT_QUERIES_DIR = Path(__file__).resolve().parent.parent / "queries"
_PRIORITY_SUFFIX_RE = re.compile(r"\s*\([A-Z]+\)$")


@dataclass(frozen=True)
class QueryDefinition:
    name: str
    category: str
    priority: str
    title: str
    description: str
    impact: str
    fix: str
    sql: str


def parse_query_file(path: Path, category: str) -> QueryDefinition:
    title = description = impact = fix = ""
    priority = "MEDIUM"
    sql_lines: List[str] = []
    in_sql = False
    with open(path, "r", encoding="utf-8") as f:
        lines = f.read().splitlines()
    for line in lines:
        stripped = line.strip()
        if not in_sql and stripped.upper().startswith(("SELECT", "WITH")):
            in_sql = True
        if in_sql:
            sql_lines.append(line)
            continue
        if not stripped.startswith("--"):
            continue
        comment = stripped[2:].strip()
        if comment.startswith("Priority:"):
            priority = comment[len("Priority:"):].strip().upper()
        elif comment.startswith("Impact:"):
            impact = comment[len("Impact:"):].strip()
        elif comment.startswith("Fix:"):
            fix = comment[len("Fix:"):].strip()
        elif comment.startswith("Category:") or not comment:
            continue
        elif not title:
            title = _PRIORITY_SUFFIX_RE.sub("", comment)
        elif not description:
            description = comment
    return QueryDefinition(
        name=path.stem,
        category=category,
        priority=priority,
        title=title,
        description=description or title,
        impact=impact,
        fix=fix,
        sql="\n".join(sql_lines).strip(),
    )


class QueryCatalog:
    def __init__(self, queries_dir: Union[str, Path, None] = None):
        self.queries_dir = Path(queries_dir) if queries_dir else DEFAULT_QUERIES_DIR
        self._queries: Dict[str, QueryDefinition] = {}
        self._load()

    def _load(self) -> None:
        for category in CATEGORIES:
            category_dir = self.queries_dir / category
            if not category_dir.is_dir():
                continue
            for path in sorted(category_dir.glob("*.sql")):
                query = parse_query_file(path, category)
                if not query.sql:
                    logger.warning("Query file %s has no SELECT statement", path)
                    continue
                self._queries[query.name] = query
        logger.debug("Loaded %d analysis queries from %s", len(self._queries), self.queries_dir)

    def get_query(self, name: str) -> QueryDefinition:
        try:
            return self._queries[name]
        except KeyError:
            raise QueryNotFoundError(name) from None

    def all_queries(self) -> List[QueryDefinition]:
        return list(self._queries.values())

    def by_category(self, category: str) -> List[QueryDefinition]:
        return [q for q in self._queries.values() if q.category == category]

    def by_priority(self, priority: str) -> List[QueryDefinition]:
        priority = priority.upper()
        return [q for q in self._queries.values() if q.priority == priority]

    def names(self) -> List[str]:
        return sorted(self._queries)

    def select(self, categories: Optional[List[str]] = None, priority: Optional[str] = None) -> List[QueryDefinition]:
        queries = self.all_queries()
        if categories:
            queries = [q for q in queries if q.category in categories]
        if priority:
            queries = [q for q in queries if q.priority == priority.upper()]
        return queries

    def stats(self) -> dict:
        by_category: Dict[str, int] = {}
        by_priority: Dict[str, int] = {}
        for q in self._queries.values():
            by_category[q.category] = by_category.get(q.category, 0) + 1
            by_priority[q.priority] = by_priority.get(q.priority, 0) + 1
        return {"total": len(self._queries), "by_category": by_category, "by_priority": by_priority}
