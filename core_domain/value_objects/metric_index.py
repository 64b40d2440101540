from enum import IntEnum


class MetricIndex(IntEnum):
    """Metric indices used by the local analytics store for archived rows."""
    NB_UNIQ_VISITORS = 1
    NB_VISITS = 2
    NB_ACTIONS = 3
    SUM_VISIT_LENGTH = 5
    BOUNCE_COUNT = 6
    NB_VISITS_CONVERTED = 7
    NB_CONVERSIONS = 8
    REVENUE = 9
    GOALS = 10
    PAGE_NB_HITS = 12
    PAGE_SUM_TIME_SPENT = 13
    PAGE_EXIT_NB_UNIQ_VISITORS = 14
    PAGE_EXIT_NB_VISITS = 15
    PAGE_ENTRY_NB_UNIQ_VISITORS = 17
    PAGE_ENTRY_NB_VISITS = 19
    PAGE_ENTRY_NB_ACTIONS = 20
    PAGE_ENTRY_SUM_VISIT_LENGTH = 21
    PAGE_ENTRY_BOUNCE_COUNT = 22
    ECOMMERCE_ITEM_REVENUE = 23
    ECOMMERCE_ITEM_QUANTITY = 24
    ECOMMERCE_ITEM_PRICE = 25
    ECOMMERCE_ORDERS = 26
    PAGE_IS_FOLLOWING_SITE_SEARCH_NB_HITS = 29
    PAGE_SUM_TIME_GENERATION = 30
    PAGE_NB_HITS_WITH_TIME_GENERATION = 31
    EVENT_NB_HITS = 34
    EVENT_SUM_EVENT_VALUE = 35


class GoalMetricIndex(IntEnum):
    """Indices of the nested per-goal metrics stored under MetricIndex.GOALS."""
    NB_CONVERSIONS = 1
    REVENUE = 2
    NB_VISITS_CONVERTED = 3
    ECOMMERCE_REVENUE_SUBTOTAL = 4
    ECOMMERCE_REVENUE_TAX = 5
    ECOMMERCE_REVENUE_SHIPPING = 6
    ECOMMERCE_ITEMS = 8


# goal id under which ecommerce orders are stored in a goal group
ECOMMERCE_ORDER_GOAL_ID = 0
