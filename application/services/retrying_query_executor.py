import time
from typing import Any, Callable, Dict, Optional

import structlog
from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception, retry_if_result, stop_after_attempt

from application.errors import DailyRateLimitReached, ExhaustedRetries, ReportingApiError
from application.ports.heartbeat_port import HeartbeatPort
from application.ports.reporting_client_port import ReportingClientPort
from infrastructure.monitoring.metrics import (
    ga_api_retries_total,
    ga_api_retry_exhausted_total,
    ga_current_backoff_seconds,
    ga_daily_limit_reached_total,
)

log = structlog.get_logger(__name__)

MAX_ATTEMPTS = 30
MAX_BACKOFF_TIME = 60
SERVER_ERROR_WAIT = 60
EMPTY_RESPONSE_WAIT = 1
PING_DB_EVERY_SECS = 25


def wait_with_heartbeat(
    total_seconds: float,
    heartbeat_interval: float,
    heartbeat: HeartbeatPort,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Sleeps `total_seconds` in slices of at most `heartbeat_interval`, pinging
    after each slice so the database connection does not time out.
    """
    if heartbeat_interval <= 0:
        raise ValueError("heartbeat_interval must be positive.")
    slept = 0.0
    while slept < total_seconds:
        step = min(heartbeat_interval, total_seconds - slept)
        sleep(step)
        slept += step
        heartbeat.ping()


class _Backoff:
    """Backoff of one request. Starts at 1s and doubles up to `maximum`."""

    def __init__(self, maximum: int):
        self.current = 1
        self.maximum = maximum

    def next_wait(self) -> int:
        seconds = self.current
        self.current = min(self.maximum, self.current * 2)
        return seconds


def _is_transient_api_error(exc: BaseException) -> bool:
    return isinstance(exc, ReportingApiError) and (exc.is_rate_limit or exc.is_server_error)


def _is_empty_response(response: Any) -> bool:
    return not response


class RetryingQueryExecutor:
    """
    Sends one reportRequest to GA, absorbing rate limits, server errors and
    empty responses.

    - 403/429 mentioning "daily": DailyRateLimitReached, not retried.
    - 403/429 otherwise: waits the current backoff (1s, doubled up to 60s).
    - >= 500: waits 60s.
    - empty response: waits 1s.
    - anything else is raised unchanged.

    The heartbeat is pinged before every request and during every wait.
    Raises ExhaustedRetries once `max_attempts` requests have failed.
    """

    def __init__(
        self,
        client: ReportingClientPort,
        heartbeat: HeartbeatPort,
        max_attempts: int = MAX_ATTEMPTS,
        max_backoff: int = MAX_BACKOFF_TIME,
        server_error_wait: int = SERVER_ERROR_WAIT,
        empty_response_wait: int = EMPTY_RESPONSE_WAIT,
        heartbeat_interval: int = PING_DB_EVERY_SECS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self.client = client
        self.heartbeat = heartbeat
        self.max_attempts = max_attempts
        self.max_backoff = max_backoff
        self.server_error_wait = server_error_wait
        self.empty_response_wait = empty_response_wait
        self.heartbeat_interval = heartbeat_interval
        self._sleep = sleep
        self.log = log.bind(executor="RetryingQueryExecutor")

    def execute(self, request: Dict[str, Any]) -> Dict[str, Any]:
        # backoff is reset for every request
        backoff = _Backoff(self.max_backoff)
        ga_current_backoff_seconds.set(backoff.current)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=lambda retry_state: self._compute_wait(retry_state, backoff),
            retry=retry_if_exception(_is_transient_api_error) | retry_if_result(_is_empty_response),
            sleep=self._wait,
            before_sleep=self._log_retry,
            reraise=False,
        )

        try:
            return retrying(self._attempt, request)
        except RetryError as err:
            ga_api_retry_exhausted_total.inc()
            self.log.error("Giving up on GA request", attempts=self.max_attempts)
            raise ExhaustedRetries(self.max_attempts) from err

    def _attempt(self, request: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self.heartbeat.ping()
        try:
            response = self.client.execute_report(request)
        except ReportingApiError as e:
            self.log.debug("Google Analytics returned an error", message=str(e), status_code=e.status_code)
            if e.is_daily_limit:
                ga_daily_limit_reached_total.inc()
                raise DailyRateLimitReached(str(e)) from e
            raise

        if _is_empty_response(response):
            self.log.info("Google Analytics API returned null for some reason, trying again...")
        return response

    def _compute_wait(self, retry_state: RetryCallState, backoff: _Backoff) -> float:
        outcome = retry_state.outcome
        if not outcome.failed:
            return self.empty_response_wait

        exc = outcome.exception()
        if isinstance(exc, ReportingApiError) and exc.is_rate_limit:
            seconds = backoff.next_wait()
            ga_current_backoff_seconds.set(backoff.current)
            return seconds
        return self.server_error_wait

    def _wait(self, seconds: float) -> None:
        wait_with_heartbeat(seconds, self.heartbeat_interval, self.heartbeat, self._sleep)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        seconds = retry_state.next_action.sleep if retry_state.next_action else None
        if not outcome.failed:
            reason = "empty_response"
        elif outcome.exception().is_rate_limit:
            reason = "rate_limit"
        else:
            reason = "server_error"
        ga_api_retries_total.labels(reason=reason).inc()

        log_method = self.log.info if reason == "server_error" else self.log.debug
        log_method(
            "Waiting before trying again...",
            reason=reason,
            wait_seconds=seconds,
            attempt=retry_state.attempt_number,
            max_attempts=self.max_attempts,
            error=str(outcome.exception()) if outcome.failed else None,
        )
