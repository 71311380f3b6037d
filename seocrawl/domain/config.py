"""Per-crawl configuration, immutable for the lifetime of a session."""
import uuid
from typing import List, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from seocrawl.utils.datetime_utils import utc_now_iso

USER_AGENTS = {
    "chrome": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
    ),
    "googlebot": "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
}

DEFAULT_INCLUDE_EXTENSIONS = ["html", "htm", "php", "asp", "aspx", "jsp"]
DEFAULT_EXCLUDE_EXTENSIONS = [
    "pdf", "doc", "zip", "exe", "jpg", "png", "gif",
    "css", "js", "xml", "rss", "atom", "json",
]


class CrawlConfig(BaseModel):
    """Settings of one crawl session.

    Persisted as ``config.json`` with camelCase keys (``crawlId``, ``startUrl``...);
    snake_case names are accepted on input as well.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="forbid",
    )

    crawl_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    start_url: str
    max_depth: int = Field(default=3, ge=1, le=10)
    max_pages: int = Field(default=1000, ge=1, le=10000)
    user_agent: str = "chrome"
    crawl_external: bool = False
    respect_robots: bool = True
    min_concurrency: int = Field(default=5, ge=1, le=20)
    max_concurrency: int = Field(default=20, ge=1, le=20)
    max_retries: int = Field(default=5, ge=0, le=10)
    delay: int = Field(default=0, ge=0)
    timeout: int = Field(default=30000, ge=1000)
    include_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_INCLUDE_EXTENSIONS))
    exclude_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_EXTENSIONS))
    include_patterns: List[str] = Field(default_factory=list)
    exclude_patterns: List[str] = Field(default_factory=list)
    output_path: str = ""
    created_at: str = Field(default_factory=utc_now_iso)

    @field_validator("start_url")
    @classmethod
    def _check_start_url(cls, value: str) -> str:
        value = value.strip()
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"start URL must be an absolute http(s) URL, got {value!r}")
        return value

    @field_validator("include_extensions", "exclude_extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        return [ext.strip().lstrip(".").lower() for ext in value if ext.strip()]

    @field_validator("user_agent")
    @classmethod
    def _check_user_agent(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("user agent must not be empty")
        return value

    @model_validator(mode="before")
    @classmethod
    def _default_min_concurrency(cls, data):
        # an explicit max below the default min pulls the min down with it
        if isinstance(data, dict):
            has_min = "min_concurrency" in data or "minConcurrency" in data
            max_value = data.get("max_concurrency", data.get("maxConcurrency"))
            if not has_min and isinstance(max_value, int) and max_value < 5:
                data = {**data, "min_concurrency": max(1, max_value)}
        return data

    @model_validator(mode="after")
    def _check_concurrency(self) -> "CrawlConfig":
        if self.min_concurrency > self.max_concurrency:
            raise ValueError("min_concurrency must not exceed max_concurrency")
        return self

    @property
    def resolved_user_agent(self) -> str:
        """Full User-Agent header; 'chrome' and 'googlebot' are presets."""
        return USER_AGENTS.get(self.user_agent.lower(), self.user_agent)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0

    @property
    def delay_seconds(self) -> float:
        return self.delay / 1000.0

    def to_document(self) -> dict:
        """camelCase dict as written to config.json."""
        return self.model_dump(by_alias=True)

    def with_output_path(self, output_path: Optional[str]) -> "CrawlConfig":
        return self.model_copy(update={"output_path": output_path or ""})
