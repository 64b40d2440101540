from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import structlog

from application.errors import UnknownMetricMapping
from core_domain.value_objects.mapping_entry import (
    ComputedMapping, Formula, MappingEntry, SimpleMapping, to_mapping_entry
)
from core_domain.value_objects.metric_index import GoalMetricIndex, MetricIndex

log = structlog.get_logger(__name__)

SESSIONS_METRIC = "ga:sessions"


def get_goal_specific_metric_indices_to_ga_metrics(ga_goal_id) -> Dict[GoalMetricIndex, str]:
    return {
        GoalMetricIndex.NB_CONVERSIONS: f"ga:goal{ga_goal_id}Completions",
        GoalMetricIndex.REVENUE: f"ga:goal{ga_goal_id}Value",
        # converted visits are computed from the rate in the column projector
        GoalMetricIndex.NB_VISITS_CONVERTED: f"ga:goal{ga_goal_id}ConversionRate",
    }


def get_ecommerce_goal_specific_metrics() -> Dict[GoalMetricIndex, str]:
    return {
        GoalMetricIndex.NB_CONVERSIONS: "ga:transactions",
        GoalMetricIndex.REVENUE: "ga:transactionRevenue",
        GoalMetricIndex.ECOMMERCE_ITEMS: "ga:itemQuantity",
    }


def get_ecommerce_metric_indices_to_ga_metrics() -> Dict[GoalMetricIndex, str]:
    return {
        GoalMetricIndex.ECOMMERCE_REVENUE_SUBTOTAL: "ga:transactionRevenue",
        GoalMetricIndex.ECOMMERCE_REVENUE_TAX: "ga:transactionTax",
        GoalMetricIndex.ECOMMERCE_REVENUE_SHIPPING: "ga:transactionShipping",
        GoalMetricIndex.ECOMMERCE_ITEMS: "ga:itemQuantity",
    }


def _goal_group_metric_names(goals: Mapping[int, int], ecommerce_enabled: bool) -> Tuple[str, ...]:
    names: List[str] = []
    for ga_goal_id in goals.values():
        names.extend(get_goal_specific_metric_indices_to_ga_metrics(ga_goal_id).values())
    if ecommerce_enabled:
        names.extend(get_ecommerce_goal_specific_metrics().values())
    names.append(SESSIONS_METRIC)  # needed for goal nb_visits_converted
    return tuple(names)


def get_metric_indices_to_ga_metrics(goals: Mapping[int, int], ecommerce_enabled: bool) -> Dict[int, MappingEntry]:
    """Default correspondence between local metric indices and GA metrics."""
    session_duration = ComputedMapping(("ga:sessionDuration",), Formula.FLOOR)

    return {
        # visit metrics
        MetricIndex.NB_UNIQ_VISITORS: SimpleMapping("ga:users"),
        MetricIndex.NB_VISITS: SimpleMapping("ga:sessions"),
        MetricIndex.NB_ACTIONS: SimpleMapping("ga:hits"),
        MetricIndex.SUM_VISIT_LENGTH: session_duration,
        MetricIndex.BOUNCE_COUNT: SimpleMapping("ga:bounces"),

        # goalConversionRateAll does not include ecommerce orders
        MetricIndex.NB_VISITS_CONVERTED: ComputedMapping(
            ("ga:goalConversionRateAll", "ga:sessions"), Formula.CONVERTED_VISITS
        ),

        # conversion aware
        MetricIndex.NB_CONVERSIONS: ComputedMapping(
            ("ga:goalCompletionsAll", "ga:transactions"), Formula.CONVERSIONS_TOTAL
        ),
        MetricIndex.REVENUE: SimpleMapping("ga:totalValue"),

        # goal specific
        MetricIndex.GOALS: ComputedMapping(_goal_group_metric_names(goals, ecommerce_enabled), Formula.GOAL_GROUP),

        # actions
        MetricIndex.PAGE_NB_HITS: SimpleMapping("ga:pageviews"),
        MetricIndex.PAGE_SUM_TIME_SPENT: ComputedMapping(("ga:timeOnPage",), Formula.ROUND),

        # events
        MetricIndex.EVENT_NB_HITS: SimpleMapping("ga:totalEvents"),
        MetricIndex.EVENT_SUM_EVENT_VALUE: SimpleMapping("ga:eventValue"),

        # actions (require page exit dimensions)
        MetricIndex.PAGE_EXIT_NB_UNIQ_VISITORS: SimpleMapping("ga:users"),
        MetricIndex.PAGE_EXIT_NB_VISITS: SimpleMapping("ga:exits"),

        # actions (require landing page dimensions)
        MetricIndex.PAGE_ENTRY_NB_UNIQ_VISITORS: SimpleMapping("ga:users"),
        MetricIndex.PAGE_ENTRY_NB_VISITS: SimpleMapping("ga:entrances"),
        MetricIndex.PAGE_ENTRY_NB_ACTIONS: SimpleMapping("ga:hits"),
        MetricIndex.PAGE_ENTRY_SUM_VISIT_LENGTH: session_duration,
        MetricIndex.PAGE_ENTRY_BOUNCE_COUNT: SimpleMapping("ga:bounces"),

        MetricIndex.PAGE_IS_FOLLOWING_SITE_SEARCH_NB_HITS: SimpleMapping("ga:hits"),

        MetricIndex.PAGE_SUM_TIME_GENERATION: SimpleMapping("ga:pageDownloadTime"),
        MetricIndex.PAGE_NB_HITS_WITH_TIME_GENERATION: SimpleMapping("ga:pageLoadSample"),

        # ecommerce items (require product dimensions)
        MetricIndex.ECOMMERCE_ITEM_REVENUE: SimpleMapping("ga:itemRevenue"),
        MetricIndex.ECOMMERCE_ITEM_QUANTITY: SimpleMapping("ga:itemQuantity"),
        MetricIndex.ECOMMERCE_ITEM_PRICE: SimpleMapping("ga:revenuePerItem"),
        MetricIndex.ECOMMERCE_ORDERS: SimpleMapping("ga:uniquePurchases"),
    }


@dataclass(frozen=True)
class MappingTable:
    """Immutable mapping configuration for one site, built once per query service."""
    entries: Mapping[int, MappingEntry]
    goals: Mapping[int, int] = field(default_factory=dict)
    ecommerce_enabled: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'entries', MappingProxyType(dict(self.entries)))
        object.__setattr__(self, 'goals', MappingProxyType(dict(self.goals)))

    def get(self, metric_index: int) -> Optional[MappingEntry]:
        return self.entries.get(metric_index)

    def with_overrides(self, overrides: Optional[Mapping[int, Any]]) -> "MappingTable":
        if not overrides:
            return self
        return MappingTable(merge_mappings(overrides, self.entries), self.goals, self.ecommerce_enabled)

    def __contains__(self, metric_index) -> bool:
        return metric_index in self.entries


def build_mapping_table(goals: Optional[Mapping[int, int]] = None, ecommerce_enabled: bool = False) -> MappingTable:
    goals = dict(goals or {})
    table = MappingTable(get_metric_indices_to_ga_metrics(goals, ecommerce_enabled), goals, ecommerce_enabled)
    log.debug("Built metric mapping table", goals_count=len(goals), ecommerce_enabled=ecommerce_enabled,
              entries_count=len(table.entries))
    return table


def merge_mappings(overrides: Mapping[int, Any], defaults: Mapping[int, MappingEntry]) -> Dict[int, MappingEntry]:
    """Entries in `overrides` take precedence over `defaults`."""
    merged = dict(defaults)
    for metric_index, value in overrides.items():
        merged[metric_index] = to_mapping_entry(value)
    return merged


def resolve(metric_indices: Iterable[int], mapping_table: MappingTable) -> Tuple[List[str], Dict[int, MappingEntry]]:
    """
    Resolves metric indices to the GA metrics that have to be queried.

    Returns the GA metric names deduplicated in first-seen order, and the
    mapping entry used for each requested index.

    Raises:
        UnknownMetricMapping: if an index has no mapping.
    """
    per_index: Dict[int, MappingEntry] = {}
    for metric_index in metric_indices:
        entry = mapping_table.get(metric_index)
        if entry is None:
            raise UnknownMetricMapping(metric_index)
        per_index[metric_index] = entry

    ga_metrics: List[str] = []
    seen = set()
    for entry in per_index.values():
        for name in entry.names:
            if name not in seen:
                seen.add(name)
                ga_metrics.append(name)
    return ga_metrics, per_index
