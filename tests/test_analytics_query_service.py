"""End to end tests of AnalyticsQueryService against a scripted GA client."""

from datetime import date

import pytest

from application.errors import DailyRateLimitReached, ReportingApiError, UnknownMetricMapping
from application.services.analytics_query_service import AnalyticsQueryService
from application.use_cases.query_analytics_data import run_analytics_query_use_case
from core_domain.value_objects.metric_index import MetricIndex

from conftest import RecordingSleep, ScriptedReportingClient, StaticSiteConfig, make_response, requested_metrics

DAY = date(2021, 5, 4)

GA_DATA = {
    "US": {"ga:sessions": 10, "ga:users": 8, "ga:bounces": 2, "ga:pageviews": 30, "ga:hits": 50},
    "FR": {"ga:sessions": 4, "ga:users": 4, "ga:bounces": 1, "ga:pageviews": 9, "ga:hits": 12},
}


def respond_by_country(request, countries=("US", "FR"), row_count="auto", next_page_token=None):
    metrics = requested_metrics(request)
    rows = [((country,), [GA_DATA[country][metric] for metric in metrics]) for country in countries]
    return make_response(rows, row_count=row_count, next_page_token=next_page_token)


@pytest.fixture
def pause_sleep():
    return RecordingSleep()


@pytest.fixture
def make_service(make_executor, pause_sleep):
    def _make(client, site_config=None, **kwargs):
        return AnalyticsQueryService(
            make_executor(client),
            "12345",
            1,
            site_config or StaticSiteConfig(),
            sleep=pause_sleep,
            **kwargs,
        )
    return _make


class TestQuery:
    def test_chunks_are_merged_into_one_row_per_label(self, make_service, pause_sleep):
        client = ScriptedReportingClient(responder=respond_by_country)
        service = make_service(client, metrics_per_request=2)
        calls = []
        service.set_on_query_made(lambda: calls.append(1))

        table = service.query(
            DAY,
            ["ga:country"],
            [MetricIndex.NB_VISITS, MetricIndex.NB_UNIQ_VISITORS, MetricIndex.BOUNCE_COUNT],
        )

        assert [requested_metrics(r) for r in client.requests] == [
            ["ga:sessions", "ga:users"],
            ["ga:bounces", "ga:sessions"],
        ]
        for request in client.requests:
            assert request["orderBys"] == [{"fieldName": "ga:sessions", "sortOrder": "DESCENDING"}]
            assert request["dimensions"] == [{"name": "ga:country"}]
            assert request["viewId"] == "12345"

        assert len(table) == 2
        assert table.get_row_from_label("US").get_columns() == {
            "label": "US",
            MetricIndex.NB_VISITS: 10,
            MetricIndex.NB_UNIQ_VISITORS: 8,
            MetricIndex.BOUNCE_COUNT: 2,
        }
        assert table.get_row_from_label("FR").get_metadata("ga:country") == "FR"
        assert len(calls) == 2
        assert pause_sleep.calls == [0.1, 0.1]

    def test_problematic_metrics_are_dropped_when_row_count_is_missing(self, make_service):
        def responder(request):
            metrics = requested_metrics(request)
            if "ga:users" in metrics or "ga:hits" in metrics:
                return make_response(row_count=None)
            return respond_by_country(request)

        client = ScriptedReportingClient(responder=responder)
        table = make_service(client).query(
            DAY,
            ["ga:country"],
            [MetricIndex.NB_UNIQ_VISITORS, MetricIndex.NB_ACTIONS, MetricIndex.PAGE_NB_HITS],
        )

        assert [requested_metrics(r) for r in client.requests] == [
            ["ga:users", "ga:hits", "ga:pageviews"],
            ["ga:pageviews"],
        ]
        assert table.get_row_from_label("US").get_columns() == {
            "label": "US",
            MetricIndex.NB_UNIQ_VISITORS: 0,
            MetricIndex.NB_ACTIONS: 0,
            MetricIndex.PAGE_NB_HITS: 30,
        }

    def test_chunk_is_ignored_when_row_count_stays_missing(self, make_service):
        def responder(request):
            if "ga:bounces" in requested_metrics(request):
                return respond_by_country(request, countries=("US",))
            return make_response(row_count=None)

        client = ScriptedReportingClient(responder=responder)
        service = make_service(client, metrics_per_request=3)
        calls = []
        service.set_on_query_made(lambda: calls.append(1))

        table = service.query(
            DAY,
            ["ga:country"],
            [MetricIndex.NB_UNIQ_VISITORS, MetricIndex.NB_ACTIONS, MetricIndex.PAGE_NB_HITS, MetricIndex.BOUNCE_COUNT],
        )

        assert [requested_metrics(r) for r in client.requests] == [
            ["ga:users", "ga:hits", "ga:pageviews"],
            ["ga:pageviews"],
            ["ga:bounces", "ga:pageviews"],
        ]
        assert len(calls) == 1
        assert table.get_row_from_label("US").get_columns() == {
            "label": "US",
            MetricIndex.NB_UNIQ_VISITORS: 0,
            MetricIndex.NB_ACTIONS: 0,
            MetricIndex.PAGE_NB_HITS: 0,
            MetricIndex.BOUNCE_COUNT: 2,
        }

    def test_chunk_of_only_problematic_metrics_is_not_retried(self, make_service):
        def responder(request):
            if "ga:users" in requested_metrics(request):
                return make_response(row_count=None)
            return respond_by_country(request)

        client = ScriptedReportingClient(responder=responder)
        table = make_service(client, metrics_per_request=2).query(
            DAY,
            ["ga:country"],
            [MetricIndex.NB_UNIQ_VISITORS, MetricIndex.NB_ACTIONS, MetricIndex.PAGE_NB_HITS],
        )

        assert [requested_metrics(r) for r in client.requests] == [
            ["ga:users", "ga:hits", "ga:pageviews"],
            ["ga:pageviews"],
        ]
        row = table.get_row_from_label("FR")
        assert row.get_column(MetricIndex.PAGE_NB_HITS) == 9
        # dropped metrics keep their default value
        assert row.get_column(MetricIndex.NB_UNIQ_VISITORS) == 0

    def test_all_pages_are_fetched(self, make_service):
        def responder(request):
            if request.get("pageToken") == "page-2":
                return respond_by_country(request, countries=("FR",))
            return respond_by_country(request, countries=("US",), next_page_token="page-2")

        client = ScriptedReportingClient(responder=responder)
        service = make_service(client)
        calls = []
        service.set_on_query_made(lambda: calls.append(1))

        table = service.query(DAY, ["ga:country"], [MetricIndex.NB_VISITS])

        assert len(client.requests) == 2
        assert "pageToken" not in client.requests[0]
        assert client.requests[1]["pageToken"] == "page-2"
        assert sorted(row.label for row in table) == ["FR", "US"]
        assert len(calls) == 1

    def test_dimensionless_query_returns_single_row(self, make_service):
        client = ScriptedReportingClient([make_response([((), [14, 12])])])
        table = make_service(client).query(DAY, [], [MetricIndex.NB_VISITS, MetricIndex.NB_UNIQ_VISITORS])

        assert len(table) == 1
        assert table.get_first_row().get_columns() == {
            "label": None,
            MetricIndex.NB_VISITS: 14,
            MetricIndex.NB_UNIQ_VISITORS: 12,
        }

    def test_mapping_overrides_apply_to_this_query_only(self, make_service):
        client = ScriptedReportingClient(responder=respond_by_country)
        service = make_service(client)

        table = service.query(
            DAY, ["ga:country"], [MetricIndex.NB_VISITS], {"mappings": {MetricIndex.NB_VISITS: "ga:pageviews"}}
        )

        assert requested_metrics(client.requests[0]) == ["ga:pageviews"]
        assert "mappings" not in client.requests[0]
        assert table.get_row_from_label("US").get_column(MetricIndex.NB_VISITS) == 30
        assert service.get_metric_indices_to_ga_metrics()[MetricIndex.NB_VISITS].primary_name == "ga:sessions"

    def test_unknown_metric_index_fails_before_any_request(self, make_service):
        client = ScriptedReportingClient(responder=respond_by_country)

        with pytest.raises(UnknownMetricMapping):
            make_service(client).query(DAY, ["ga:country"], [MetricIndex.NB_VISITS, 999])
        assert client.requests == []

    def test_daily_rate_limit_stops_the_query(self, make_service, pause_sleep):
        client = ScriptedReportingClient([ReportingApiError("Daily quota exceeded", status_code=429)])

        with pytest.raises(DailyRateLimitReached):
            make_service(client, metrics_per_request=1).query(
                DAY, ["ga:country"], [MetricIndex.NB_VISITS, MetricIndex.BOUNCE_COUNT]
            )
        assert len(client.requests) == 1
        assert pause_sleep.calls == []

    def test_malformed_response_is_reported(self, make_service):
        client = ScriptedReportingClient([{"reports": "not a list"}])

        with pytest.raises(ReportingApiError):
            make_service(client).query(DAY, [], [MetricIndex.NB_VISITS])

    def test_goals_come_from_site_config(self, make_service):
        client = ScriptedReportingClient(responder=respond_by_country)
        service = make_service(client, site_config=StaticSiteConfig({1: 3}, ecommerce=True))

        goals_entry = service.get_metric_indices_to_ga_metrics()[MetricIndex.GOALS]
        assert "ga:goal3Completions" in goals_entry.names
        assert "ga:transactions" in goals_entry.names
        assert service.get_goal_specific_metric_indices_to_ga_metrics(3)
        assert service.get_ecommerce_metric_indices_to_ga_metrics()
        assert service.get_ecommerce_goal_specific_metrics()


class TestUseCase:
    def test_use_case_delegates_to_service(self, make_service):
        client = ScriptedReportingClient(responder=respond_by_country)
        table = run_analytics_query_use_case(make_service(client), DAY, ["ga:country"], [MetricIndex.NB_VISITS])

        assert table.get_row_from_label("FR").get_column(MetricIndex.NB_VISITS) == 4
