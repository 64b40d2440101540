from typing import Any, Iterable, List, Optional, Sequence

import structlog

from application.schemas.report_schema import ReportResponse
from core_domain.entities.result_table import LABEL_COLUMN, ResultRow, ResultTable
from infrastructure.monitoring.metrics import ga_rows_merged_total

log = structlog.get_logger(__name__)

NOT_SET = "(not set)"


def to_number(value: Any) -> Any:
    """GA sends every metric value as a string. Non numeric strings are kept as is."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return value


def make_default_row(ga_metrics: Iterable[str]) -> ResultRow:
    """Row with every queried GA metric set to 0, cloned for each GA row."""
    return ResultRow({name: 0 for name in ga_metrics})


def build_label(dimensions: Sequence[str], dimension_values: Sequence[Optional[str]]) -> Optional[str]:
    """Comma joined dimension values. '(not set)' values leave an empty segment."""
    if not dimensions:
        return None
    parts = []
    for index, _ in enumerate(dimensions):
        value = dimension_values[index] if index < len(dimension_values) else None
        parts.append("" if value is None or value == NOT_SET else value)
    return ",".join(parts)


def merge_result(
    table: ResultTable,
    response: ReportResponse,
    dimensions: Sequence[str],
    metrics_queried: Sequence[str],
    default_row: ResultRow,
) -> int:
    """
    Folds every row of every report of `response` into `table`.

    GA rows carry metric values positionally, in `metrics_queried` order (any
    trailing order by metric added to the request is ignored). Rows with an
    existing label are summed into the existing row. Without dimensions all
    rows are folded into the first row of the table.

    Returns the number of GA rows processed.
    """
    metrics_queried = list(metrics_queried)
    dimensions = list(dimensions)
    merged = 0

    for report in response.reports:
        for ga_row in report.data.rows:
            table_row = default_row.clone()

            values: List[str] = ga_row.metric_values()
            for index, metric_name in enumerate(metrics_queried):
                if index < len(values):
                    table_row.set_column(metric_name, to_number(values[index]))

            for index, dimension in enumerate(dimensions):
                raw_value = ga_row.dimensions[index] if index < len(ga_row.dimensions) else None
                table_row.set_metadata(dimension, None if raw_value == NOT_SET else raw_value)

            label = build_label(dimensions, ga_row.dimensions)
            if label is not None:
                table_row.set_column(LABEL_COLUMN, label)

            existing_row = table.get_first_row() if not dimensions else table.get_row_from_label(label)
            if existing_row is not None:
                existing_row.sum_row(table_row)
            else:
                table.add_row(table_row)
            merged += 1

    ga_rows_merged_total.inc(merged)
    log.debug("Merged GA response into result table", rows_processed=merged, table_rows=len(table))
    return merged
