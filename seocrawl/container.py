"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from seocrawl import config as env
from seocrawl.services.audit_service import AuditService
from seocrawl.services.config_file_store import ConfigFileStore
from seocrawl.services.content_extractor import ContentExtractor
from seocrawl.services.http_service import HttpService
from seocrawl.services.query_catalog import QueryCatalog


# Environment variables used by the container (read via `seocrawl.config` helpers).
#
# OUTPUT_DIR (str, default: "~/seo-audits")
#   Root directory; each crawl writes to <OUTPUT_DIR>/<host>_<timestamp>_<crawl id prefix>.
#
# USER_AGENT (str, default: "chrome")
#   Default user agent when a crawl does not name one: "chrome", "googlebot" or a literal header.
#
# HTTP_TIMEOUT (int milliseconds | optional)
#   Default per-request timeout for crawls that do not set one (CrawlConfig default: 30000).
#
# SEOCRAWL_RETRY_DELAY (float seconds, default: 1.0)
#   Wait before the first retry of a failed fetch.
#
# SEOCRAWL_RETRY_BACKOFF (float, default: 2.0)
#   Multiplier applied to the wait for each further retry.
#
# SEOCRAWL_CONFIGS_DIR (str, default: ".")
#   Directory relative config file paths are resolved against.
ENV = {
    "OUTPUT_DIR": env.output_dir(),
    "USER_AGENT": env.get_str_env("USER_AGENT", "chrome"),
    "HTTP_TIMEOUT": env.get_optional_int_env("HTTP_TIMEOUT"),
    "SEOCRAWL_RETRY_DELAY": env.get_float_env("SEOCRAWL_RETRY_DELAY", 1.0),
    "SEOCRAWL_RETRY_BACKOFF": env.get_float_env("SEOCRAWL_RETRY_BACKOFF", 2.0),
    "SEOCRAWL_CONFIGS_DIR": env.get_str_env("SEOCRAWL_CONFIGS_DIR", "."),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for SeoCrawl."""

    config = providers.Configuration(default=ENV)

    # Per-crawl HTTP clients; user_agent and timeout are supplied by the audit service
    http_service = providers.Factory(
        HttpService,
        http_client=providers.Object(requests.get),
    )

    content_extractor = providers.Singleton(ContentExtractor)

    query_catalog = providers.Singleton(QueryCatalog)

    config_file_store = providers.Singleton(
        ConfigFileStore,
        configs_dir=config.SEOCRAWL_CONFIGS_DIR.as_(str),
    )

    audit_service = providers.Singleton(
        AuditService,
        output_dir=config.OUTPUT_DIR.as_(str),
        http_service_factory=http_service.provider,
        content_extractor=content_extractor,
        query_catalog=query_catalog,
        default_user_agent=config.USER_AGENT.as_(str),
        default_timeout=config.HTTP_TIMEOUT,
        retry_delay=config.SEOCRAWL_RETRY_DELAY.as_(float),
        backoff_factor=config.SEOCRAWL_RETRY_BACKOFF.as_(float),
    )
