"""Pytest fixtures for the GA importer tests."""

from collections import deque
from typing import Any, Dict, List, Optional

import pytest

from application.ports.heartbeat_port import HeartbeatPort
from application.ports.reporting_client_port import ReportingClientPort
from application.ports.site_config_port import SiteConfigPort
from application.services.retrying_query_executor import RetryingQueryExecutor


class FakeHeartbeat(HeartbeatPort):
    def __init__(self):
        self.pings = 0

    def ping(self) -> None:
        self.pings += 1


class RecordingSleep:
    """Stands in for time.sleep and remembers every requested duration."""

    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


class ScriptedReportingClient(ReportingClientPort):
    """
    Returns (or raises) the scripted outcomes in order. Once the script is
    exhausted the last outcome is repeated.
    """

    def __init__(self, outcomes: Optional[List[Any]] = None, responder=None):
        self.outcomes = deque(outcomes or [])
        self.responder = responder
        self.requests: List[Dict[str, Any]] = []
        self._last = None

    def execute_report(self, request: Dict[str, Any]):
        self.requests.append(request)
        if self.responder is not None:
            return self.responder(request)
        outcome = self.outcomes.popleft() if self.outcomes else self._last
        self._last = outcome
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class StaticSiteConfig(SiteConfigPort):
    def __init__(self, goals: Optional[Dict[int, int]] = None, ecommerce: bool = False):
        self.goals = dict(goals or {})
        self.ecommerce = ecommerce

    def is_ecommerce_enabled(self, site_id: int) -> bool:
        return self.ecommerce

    def get_goals_mapping(self, site_id: int) -> Dict[int, int]:
        return dict(self.goals)


def make_response(rows=None, row_count="auto", next_page_token=None) -> Dict[str, Any]:
    """
    Builds a batchGet response. `rows` is a list of (dimension values, metric values).
    """
    rows = rows or []
    data: Dict[str, Any] = {
        "rows": [
            {"dimensions": list(dimensions), "metrics": [{"values": [str(v) for v in values]}]}
            for dimensions, values in rows
        ]
    }
    if row_count == "auto":
        data["rowCount"] = len(rows)
    elif row_count is not None:
        data["rowCount"] = row_count
    report: Dict[str, Any] = {"columnHeader": {}, "data": data}
    if next_page_token:
        report["nextPageToken"] = next_page_token
    return {"reports": [report]}


def requested_metrics(request: Dict[str, Any]) -> List[str]:
    return [metric["expression"] for metric in request["metrics"]]


@pytest.fixture
def heartbeat() -> FakeHeartbeat:
    return FakeHeartbeat()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_executor(heartbeat, recording_sleep):
    def _make(client: ReportingClientPort, **kwargs) -> RetryingQueryExecutor:
        return RetryingQueryExecutor(client, heartbeat, sleep=recording_sleep, **kwargs)
    return _make
