from typing import Dict, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from seocrawl.db.models import Base
from seocrawl.domain.http_response import HttpResponse

HTML = "text/html; charset=utf-8"


def page(title: str = "", body: str = "", head: str = "") -> str:
    return f"<html lang=\"en\"><head><title>{title}</title>{head}</head><body>{body}</body></html>"


class FakeSite:
    """Serves canned responses keyed by exact URL; anything else is a 404."""

    def __init__(self, pages: Optional[Dict[str, Tuple[int, str, str]]] = None):
        self.pages: Dict[str, Tuple[int, str, str]] = dict(pages or {})
        self.requested = []

    def add(self, url: str, body: str, status: int = 200, content_type: str = HTML) -> None:
        self.pages[url] = (status, body, content_type)

    def fetch(self, url: str) -> HttpResponse:
        self.requested.append(url)
        status, body, content_type = self.pages.get(url, (404, "not found", "text/plain"))
        return HttpResponse(
            status_code=status,
            text=body,
            content_type=content_type,
            headers={"Content-Type": content_type},
            url=url,
            elapsed_ms=5,
        )

    def fetch_robots(self, url: str) -> HttpResponse:
        return self.fetch(url)


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()
