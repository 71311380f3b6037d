import logging
import re
from typing import List, Optional, Pattern

from seocrawl.domain.config import CrawlConfig
from seocrawl.domain.frontier import Frontier
from seocrawl.utils.url_utils import file_extension

logger = logging.getLogger(__name__)


def _compile_patterns(patterns: List[str]) -> List[Optional[Pattern]]:
    """Compile regexes; an invalid one becomes None and never matches."""
    compiled: List[Optional[Pattern]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            logger.warning("Ignoring invalid URL pattern %r: %s", pattern, e)
            compiled.append(None)
    return compiled


def _any_match(patterns: List[Optional[Pattern]], url: str) -> bool:
    return any(p is not None and p.search(url) for p in patterns)


class CrawlPolicy:
    """Encapsulates crawl decision rules: extension and pattern filters, scope, and robots.txt.

    Separates policy decisions from crawl orchestration logic. Depth and page
    limits are the orchestrator's concern.
    """

    def __init__(self, config: CrawlConfig, frontier: Frontier, robots_service=None):
        self.config = config
        self.frontier = frontier
        self.robots_service = robots_service
        self._include_extensions = set(config.include_extensions)
        self._exclude_extensions = set(config.exclude_extensions)
        self._include_patterns = _compile_patterns(config.include_patterns)
        self._exclude_patterns = _compile_patterns(config.exclude_patterns)

    def should_skip_due_to_extension(self, url: str) -> bool:
        ext = file_extension(url)
        if ext and ext in self._exclude_extensions:
            logger.debug("Skipping (excluded extension .%s) %s", ext, url)
            return True
        # URLs without an extension are treated as HTML pages
        if ext and self._include_extensions and ext not in self._include_extensions:
            logger.debug("Skipping (extension .%s not included) %s", ext, url)
            return True
        return False

    def should_skip_due_to_patterns(self, url: str) -> bool:
        if _any_match(self._exclude_patterns, url):
            logger.debug("Skipping (exclude pattern) %s", url)
            return True
        if self._include_patterns and not _any_match(self._include_patterns, url):
            logger.debug("Skipping (no include pattern matched) %s", url)
            return True
        return False

    def should_skip_due_to_scope(self, url: str) -> bool:
        if not self.config.crawl_external and not self.frontier.is_internal(url):
            logger.debug("Skipping (external) %s", url)
            return True
        return False

    def should_skip_due_to_robots(self, url: str) -> bool:
        if not self.config.respect_robots or self.robots_service is None:
            return False
        if not self.robots_service.allowed(url):
            logger.info("Skipping (robots) %s", url)
            return True
        return False

    def should_crawl(self, url: str) -> bool:
        return not (
            self.should_skip_due_to_extension(url)
            or self.should_skip_due_to_patterns(url)
            or self.should_skip_due_to_scope(url)
            or self.should_skip_due_to_robots(url)
        )
