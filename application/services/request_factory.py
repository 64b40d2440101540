from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import structlog

log = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 100000
DEFAULT_SAMPLING_LEVEL = "LARGE"

# metrics with a stable, mostly unique value per row, best first
ORDER_BY_METRIC_PRIORITY = (
    "ga:sessions",
    "ga:pageviews",
    "ga:uniquePageviews",
    "ga:totalEvents",
    "ga:hits",
    "ga:users",
    "ga:transactions",
    "ga:itemQuantity",
)

# options consumed by the query service, never sent as is
_INTERNAL_OPTIONS = {"mappings", "dimensions", "orderBys"}

_SORT_ORDERS = {
    "ascending": "ASCENDING",
    "descending": "DESCENDING",
}


class ReportRequestFactory:
    """
    Builds Reporting API v4 reportRequest bodies and picks the metric used to
    sort every chunk of a query.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, sampling_level: str = DEFAULT_SAMPLING_LEVEL):
        self.page_size = page_size
        self.sampling_level = sampling_level

    def get_order_by_metric(self, metrics: Sequence[str], options: Optional[Dict[str, Any]] = None) -> str:
        options = options or {}
        order_bys = options.get('orderBys') or []
        if order_bys:
            field = order_bys[0].get('field') or order_bys[0].get('fieldName')
            if field:
                return field

        for candidate in ORDER_BY_METRIC_PRIORITY:
            if candidate in metrics:
                return candidate

        if not metrics:
            raise ValueError("Cannot pick an order by metric from an empty metric list.")
        return metrics[0]

    def make(self, view_id: str, day: date, metrics: Sequence[str], options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        options = options or {}
        day_str = day.isoformat() if isinstance(day, date) else str(day)

        request: Dict[str, Any] = {
            "viewId": str(view_id),
            "dateRanges": [{"startDate": day_str, "endDate": day_str}],
            "metrics": [{"expression": name} for name in metrics],
            "dimensions": [{"name": name} for name in options.get('dimensions') or []],
            "orderBys": self._make_order_bys(options.get('orderBys') or []),
            "pageSize": self.page_size,
            "samplingLevel": self.sampling_level,
            "includeEmptyRows": True,
        }

        for key, value in options.items():
            if key not in _INTERNAL_OPTIONS:
                request[key] = value

        return request

    @staticmethod
    def _make_order_bys(order_bys: List[Dict[str, Any]]) -> List[Dict[str, str]]:
        result = []
        for order_by in order_bys:
            field = order_by.get('field') or order_by.get('fieldName')
            order = str(order_by.get('order') or order_by.get('sortOrder') or 'descending').lower()
            result.append({"fieldName": field, "sortOrder": _SORT_ORDERS.get(order, order.upper())})
        return result
