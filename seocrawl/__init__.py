"""SeoCrawl: breadth-first SEO crawler with a queryable per-crawl SQLite store."""

__version__ = "0.1.0"
