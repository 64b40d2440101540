import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence

import structlog
from pydantic import ValidationError

from application.errors import ReportingApiError
from application.mappers import metric_mapping
from application.mappers.metric_mapping import MappingTable
from application.ports.site_config_port import SiteConfigPort
from application.schemas.report_schema import ReportResponse
from application.services.column_projector import convert_ga_columns_to_metric_indexes
from application.services.query_planner import MAX_METRICS_PER_REQUEST, chunk_metrics, prepare_chunk
from application.services.request_factory import ReportRequestFactory
from application.services.result_merger import make_default_row, merge_result
from application.services.retrying_query_executor import RetryingQueryExecutor
from core_domain.entities.result_table import ResultTable
from infrastructure.monitoring.metrics import (
    ga_chunks_completed_total,
    ga_chunks_dropped_total,
    ga_query_duration_hist,
)

log = structlog.get_logger(__name__)

# some metric/date combinations make GA return no rows and a NULL row count
PROBLEMATIC_METRICS = ("ga:users", "ga:hits")

PAUSE_AFTER_QUERY_SECONDS = 0.1


class AnalyticsQueryService:
    """
    Queries one GA view for one day and returns the data as a ResultTable whose
    columns are local metric indices.

    Requested metrics are split in chunks the API accepts, each chunk is sent
    through the RetryingQueryExecutor and merged into the same table, then GA
    columns are converted to metric indices.
    """

    def __init__(
        self,
        executor: RetryingQueryExecutor,
        view_id: str,
        site_id: int,
        site_config: SiteConfigPort,
        request_factory: Optional[ReportRequestFactory] = None,
        metrics_per_request: int = MAX_METRICS_PER_REQUEST,
        pause_after_query: float = PAUSE_AFTER_QUERY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.executor = executor
        self.view_id = str(view_id)
        self.site_id = site_id
        self.site_config = site_config
        self.request_factory = request_factory or ReportRequestFactory()
        self.metrics_per_request = metrics_per_request
        self.pause_after_query = pause_after_query
        self._sleep = sleep
        self._on_query_made: Optional[Callable[[], None]] = None
        self.log = log.bind(service="AnalyticsQueryService", view_id=self.view_id, site_id=site_id)

        self.goals_mapping = dict(site_config.get_goals_mapping(site_id))
        self.ecommerce_enabled = bool(site_config.is_ecommerce_enabled(site_id))
        self.mapping_table: MappingTable = metric_mapping.build_mapping_table(self.goals_mapping, self.ecommerce_enabled)
        self.log.info("Query service initialized", goals_count=len(self.goals_mapping),
                      ecommerce_enabled=self.ecommerce_enabled)

    def set_on_query_made(self, callback: Optional[Callable[[], None]]) -> None:
        """`callback` is invoked once per successfully fetched chunk."""
        self._on_query_made = callback

    def get_metric_indices_to_ga_metrics(self):
        return dict(self.mapping_table.entries)

    def get_ecommerce_metric_indices_to_ga_metrics(self):
        return metric_mapping.get_ecommerce_metric_indices_to_ga_metrics()

    def get_goal_specific_metric_indices_to_ga_metrics(self, ga_goal_id):
        return metric_mapping.get_goal_specific_metric_indices_to_ga_metrics(ga_goal_id)

    def get_ecommerce_goal_specific_metrics(self):
        return metric_mapping.get_ecommerce_goal_specific_metrics()

    def query(
        self,
        day: date,
        dimensions: Sequence[str],
        metrics: Sequence[int],
        options: Optional[Dict[str, Any]] = None,
    ) -> ResultTable:
        options = dict(options or {})
        dimensions = list(dimensions)
        query_log = self.log.bind(day=str(day), dimensions=dimensions)
        start_time = time.monotonic()

        mapping_table = self.mapping_table.with_overrides(options.pop('mappings', None))
        ga_metrics_to_query, entries = metric_mapping.resolve(metrics, mapping_table)

        result = ResultTable()
        default_row = make_default_row(ga_metrics_to_query)

        # every chunk must be sorted by the same metric so rows line up
        order_by_metric = self.request_factory.get_order_by_metric(ga_metrics_to_query, options)
        chunks = chunk_metrics(ga_metrics_to_query, self.metrics_per_request)
        query_log.debug("Querying GA", ga_metrics=ga_metrics_to_query, chunks_count=len(chunks),
                        order_by_metric=order_by_metric)

        chunk_options = dict(options)
        chunk_options['dimensions'] = dimensions

        for chunk_number, chunk in enumerate(chunks, start=1):
            chunk_log = query_log.bind(chunk=chunk_number, chunks_count=len(chunks))
            queried_chunk, responses = self._fetch_chunk(day, chunk, chunk_options, order_by_metric, chunk_log)
            if queried_chunk is None:
                continue

            if self._on_query_made:
                self._on_query_made()

            self._sleep(self.pause_after_query)

            for response in responses:
                merge_result(result, response, dimensions, queried_chunk, default_row)
            ga_chunks_completed_total.inc()

        convert_ga_columns_to_metric_indexes(result, metrics, mapping_table, entries)

        duration = time.monotonic() - start_time
        ga_query_duration_hist.observe(duration)
        query_log.info("GA query finished", rows=len(result), duration_sec=f"{duration:.3f}s")
        return result

    def _fetch_chunk(self, day, chunk: List[str], options: Dict[str, Any], order_by_metric: str, chunk_log):
        """
        Returns the metrics actually queried and the validated response pages,
        or (None, []) when GA gives no usable data for this chunk.
        """
        response = self._request(day, chunk, options, order_by_metric)

        if response.row_count is None:
            reduced_chunk = [name for name in chunk if name not in PROBLEMATIC_METRICS]
            if not reduced_chunk:
                ga_chunks_dropped_total.inc()
                chunk_log.warning("GA returned no row count and chunk only has problematic metrics, skipping chunk",
                                  chunk_metrics=chunk)
                return None, []

            chunk_log.info("GA returned no row count, retrying without problematic metrics",
                           removed=[name for name in chunk if name in PROBLEMATIC_METRICS])
            chunk = reduced_chunk
            response = self._request(day, chunk, options, order_by_metric)

            # repeated requests tend to keep failing, the data is ignored
            if response.row_count is None:
                ga_chunks_dropped_total.inc()
                chunk_log.warning("GA returned no row count again, ignoring data for chunk", chunk_metrics=chunk)
                return None, []

        responses = [response]
        page_token = response.next_page_token
        while page_token:
            chunk_log.debug("Fetching next page", page_token=page_token)
            page_options = dict(options)
            page_options['pageToken'] = page_token
            page = self._request(day, chunk, page_options, order_by_metric)
            responses.append(page)
            page_token = page.next_page_token

        return chunk, responses

    def _request(self, day, chunk: List[str], options: Dict[str, Any], order_by_metric: str) -> ReportResponse:
        request_metrics, request_options = prepare_chunk(chunk, order_by_metric, options)
        request = self.request_factory.make(self.view_id, day, request_metrics, request_options)
        raw_response = self.executor.execute(request)
        try:
            return ReportResponse.model_validate(raw_response)
        except ValidationError as e:
            raise ReportingApiError(f"Unexpected response shape from GA: {e}") from e
