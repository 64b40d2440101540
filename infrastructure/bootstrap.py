from typing import Any, Optional

import structlog

from application.mappers.search_engine_mapper import SearchEngineMapper
from application.services.analytics_query_service import AnalyticsQueryService
from application.services.request_factory import ReportRequestFactory
from application.services.retrying_query_executor import RetryingQueryExecutor
from core_domain.value_objects.identifiers import SiteId, ViewId
from infrastructure.api_clients.google_analytics_reporting_client import GoogleAnalyticsReportingClient
from infrastructure.config.settings import Settings, settings as default_settings
from infrastructure.db.db_pool import DBConnectionPool
from infrastructure.db.heartbeat import PostgresHeartbeat
from infrastructure.logging_config import setup_logging
from infrastructure.monitoring.metrics_server import start_metrics_server
from infrastructure.repository_impl.search_engine_catalog import YamlSearchEngineCatalog
from infrastructure.repository_impl.site_config_repository import SiteConfigRepository

log = structlog.get_logger(__name__)


def configure_runtime(config: Settings = default_settings, serve_metrics: bool = False):
    """Logging setup, and optionally the Prometheus endpoint, before any import runs."""
    setup_logging(level=config.LOG_LEVEL)
    if serve_metrics:
        start_metrics_server(port=config.APP_METRICS_PORT, block=False)


def create_db_pool(config: Settings = default_settings) -> DBConnectionPool:
    return DBConnectionPool.from_settings(config)


def create_search_engine_mapper(config: Settings = default_settings) -> SearchEngineMapper:
    return SearchEngineMapper(YamlSearchEngineCatalog(config.SEARCH_ENGINES_FILE))


def create_query_service(
    site_id: int,
    credentials: Any = None,
    view_id: Optional[str] = None,
    db_pool: Optional[DBConnectionPool] = None,
    reporting_client: Optional[GoogleAnalyticsReportingClient] = None,
    config: Settings = default_settings,
) -> AnalyticsQueryService:
    """Wires the query service for one site with the configured infrastructure."""
    view = ViewId(view_id or config.GA_VIEW_ID)
    site = SiteId(site_id)

    db_pool = db_pool or create_db_pool(config)
    heartbeat = PostgresHeartbeat(db_pool)
    client = reporting_client or GoogleAnalyticsReportingClient(credentials=credentials)

    executor = RetryingQueryExecutor(
        client,
        heartbeat,
        max_attempts=config.GA_MAX_ATTEMPTS,
        max_backoff=config.GA_MAX_BACKOFF_SECONDS,
        server_error_wait=config.GA_SERVER_ERROR_WAIT_SECONDS,
        empty_response_wait=config.GA_EMPTY_RESPONSE_WAIT_SECONDS,
        heartbeat_interval=config.GA_PING_DB_EVERY_SECS,
    )

    service = AnalyticsQueryService(
        executor,
        view_id=str(view),
        site_id=int(site),
        site_config=SiteConfigRepository(db_pool),
        request_factory=ReportRequestFactory(page_size=config.GA_PAGE_SIZE),
        metrics_per_request=config.GA_METRICS_PER_REQUEST,
        pause_after_query=config.GA_PAUSE_AFTER_QUERY_SECONDS,
    )
    log.info("Query service created", site_id=int(site), view_id=str(view))
    return service
