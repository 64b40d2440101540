from datetime import date
from typing import Any, Dict, Optional, Sequence

from application.services.analytics_query_service import AnalyticsQueryService
from core_domain.entities.result_table import ResultTable


def run_analytics_query_use_case(
    query_service: AnalyticsQueryService,
    day: date,
    dimensions: Sequence[str],
    metrics: Sequence[int],
    options: Optional[Dict[str, Any]] = None,
) -> ResultTable:
    """
    Use case that fetches one day of GA data converted to local metric indices.

    Parameters:
        query_service (AnalyticsQueryService): service bound to a GA view and a site.
        day (date): day to import.
        dimensions: GA dimensions identifying rows (e.g. ["ga:country"]).
        metrics: local metric indices to fetch.
        options: extra request options (mappings, orderBys, segments...).

    Returns:
        ResultTable: one row per distinct dimension combination.
    """
    return query_service.query(day, dimensions, metrics, options)
