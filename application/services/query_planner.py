from typing import Any, Dict, List, Sequence, Tuple

# the Reporting API accepts at most 10 metrics per request, one slot is kept
# free for the order by metric
MAX_METRICS_PER_REQUEST = 9

DEFAULT_SORT_ORDER = "descending"


def chunk_metrics(metrics: Sequence[str], size: int = MAX_METRICS_PER_REQUEST) -> List[List[str]]:
    """Splits `metrics` into consecutive chunks of at most `size`, keeping order."""
    if size <= 0:
        raise ValueError("Chunk size must be positive.")
    metrics = list(metrics)
    return [metrics[i:i + size] for i in range(0, len(metrics), size)]


def prepare_chunk(chunk: Sequence[str], order_by_metric: str, options: Dict[str, Any]) -> Tuple[List[str], Dict[str, Any]]:
    """
    Returns the metrics and options to request for one chunk.

    Every chunk of a query must be sorted the same way, otherwise rows of
    different chunks cannot be lined up when merged. The order by metric is
    appended when the chunk lacks it.
    """
    request_metrics = list(chunk)
    if order_by_metric not in request_metrics:
        request_metrics.append(order_by_metric)

    request_options = dict(options)
    if not request_options.get('orderBys'):
        request_options['orderBys'] = [{'field': order_by_metric, 'order': DEFAULT_SORT_ORDER}]
    return request_metrics, request_options
