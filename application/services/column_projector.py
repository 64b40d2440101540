import math
from typing import Any, Dict, Iterable, Mapping, Optional

from application.mappers.metric_mapping import (
    SESSIONS_METRIC,
    MappingTable,
    get_ecommerce_goal_specific_metrics,
    get_goal_specific_metric_indices_to_ga_metrics,
)
from core_domain.entities.result_table import LABEL_COLUMN, ResultRow, ResultTable
from core_domain.value_objects.mapping_entry import ComputedMapping, Formula, MappingEntry
from core_domain.value_objects.metric_index import ECOMMERCE_ORDER_GOAL_ID, GoalMetricIndex

_ABSENT = object()


def _number(value: Any) -> float:
    if value is None or value is _ABSENT:
        return 0
    if isinstance(value, str):
        value = value.strip()
        return float(value) if value else 0
    return value


def get_quotient_from_percentage(percentage: Any) -> float:
    """'12.5%' or 12.5 -> 0.125. An absent value counts as 0."""
    if percentage is None or percentage is _ABSENT:
        return 0
    text = str(percentage).strip().rstrip('%').strip()
    if not text:
        return 0
    return float(text) / 100


def calculate_converted_visits(row: ResultRow, rate_column: str) -> int:
    rate = row.get_column(rate_column, _ABSENT)
    return int(math.floor(get_quotient_from_percentage(rate) * _number(row.get_column(SESSIONS_METRIC, 0))))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


def create_goal_specific_metric_array(row: ResultRow, mapping_table: MappingTable) -> Dict[int, Dict[int, Any]]:
    """Nested {goal id: {goal metric index: value}} built from goal specific GA columns."""
    result: Dict[int, Dict[int, Any]] = {}

    for goal_id, ga_goal_id in mapping_table.goals.items():
        goal_metrics = get_goal_specific_metric_indices_to_ga_metrics(ga_goal_id)
        rate_column = goal_metrics[GoalMetricIndex.NB_VISITS_CONVERTED]
        if not row.has_column(rate_column):
            continue

        inner_columns: Dict[int, Any] = {}
        for index, ga_name in goal_metrics.items():
            if index == GoalMetricIndex.NB_VISITS_CONVERTED:
                value = calculate_converted_visits(row, ga_name)
            else:
                value = row.get_column(ga_name, _ABSENT)
            if value is not _ABSENT:
                inner_columns[index] = value
        result[goal_id] = inner_columns

    if mapping_table.ecommerce_enabled:
        inner_columns = {}
        for index, ga_name in get_ecommerce_goal_specific_metrics().items():
            value = row.get_column(ga_name, _ABSENT)
            if value is not _ABSENT:
                inner_columns[index] = value
        result[ECOMMERCE_ORDER_GOAL_ID] = inner_columns

    return result


def apply_formula(entry: ComputedMapping, row: ResultRow, mapping_table: MappingTable) -> Any:
    formula = entry.formula
    if formula is Formula.FLOOR:
        return int(math.floor(_number(row.get_column(entry.primary_name))))
    if formula is Formula.ROUND:
        return _round_half_up(_number(row.get_column(entry.primary_name)))
    if formula is Formula.CONVERTED_VISITS:
        return calculate_converted_visits(row, entry.primary_name)
    if formula is Formula.CONVERSIONS_TOTAL:
        return sum(_number(row.get_column(name, 0)) for name in entry.names)
    if formula is Formula.GOAL_GROUP:
        return create_goal_specific_metric_array(row, mapping_table)
    raise ValueError(f"Unsupported mapping formula: {formula!r}")


def project_row(row: ResultRow, metric_entries: Mapping[int, MappingEntry], mapping_table: MappingTable) -> None:
    new_columns: Dict[Any, Any] = {LABEL_COLUMN: row.get_column(LABEL_COLUMN)}

    for metric_index, entry in metric_entries.items():
        value = row.get_column(entry.primary_name, _ABSENT)

        if value is not _ABSENT:
            if isinstance(entry, ComputedMapping):
                value = apply_formula(entry, row, mapping_table)
        elif row.has_column(metric_index):
            # already projected
            value = row.get_column(metric_index)

        if value is not _ABSENT:
            new_columns[metric_index] = value

    row.set_columns(new_columns)


def convert_ga_columns_to_metric_indexes(
    table: ResultTable,
    metric_indices: Iterable[int],
    mapping_table: MappingTable,
    entries: Optional[Mapping[int, MappingEntry]] = None,
) -> ResultTable:
    """
    Rewrites every row so its columns are `label` plus the requested metric
    indices that have a value. GA named columns are discarded.
    """
    if entries is None:
        entries = {metric_index: mapping_table.entries[metric_index] for metric_index in metric_indices}
    else:
        entries = {metric_index: entries[metric_index] for metric_index in metric_indices}

    for row in table.get_rows():
        project_row(row, entries, mapping_table)
    table.rebuild_label_index()
    return table
