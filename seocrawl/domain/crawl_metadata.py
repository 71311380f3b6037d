from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from seocrawl.domain.crawl_error import CrawlError


class CrawlStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class CrawlStats:
    discovered: int = 0
    crawled: int = 0
    failed: int = 0
    skipped: int = 0
    depth: int = 0
    """Deepest depth recorded by the frontier."""
    speed: float = 0.0
    """Pages crawled per second."""


@dataclass
class CrawlMetadata:
    crawl_id: str
    status: CrawlStatus = CrawlStatus.QUEUED
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration: Optional[int] = None
    """Milliseconds between start and completion."""
    stats: CrawlStats = field(default_factory=CrawlStats)
    errors: List[CrawlError] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.status in (CrawlStatus.COMPLETED, CrawlStatus.FAILED)

    def to_dict(self) -> dict:
        return {
            "crawlId": self.crawl_id,
            "status": self.status.value,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
            "duration": self.duration,
            "stats": {
                "discovered": self.stats.discovered,
                "crawled": self.stats.crawled,
                "failed": self.stats.failed,
                "skipped": self.stats.skipped,
                "depth": self.stats.depth,
                "speed": self.stats.speed,
            },
            "errors": [e.to_dict() for e in self.errors],
        }
