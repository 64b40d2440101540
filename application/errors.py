from typing import Optional


class AnalyticsImportError(Exception):
    """Base class for errors raised while importing Google Analytics data."""


class UnknownMetricMapping(AnalyticsImportError):
    """A requested metric index has no GA metric mapping. Configuration error, never retried."""

    def __init__(self, metric_index):
        super().__init__(f"Don't know how to map metric index {metric_index} to GA metric.")
        self.metric_index = metric_index


class DailyRateLimitReached(AnalyticsImportError):
    """The daily GA quota is exhausted. The import has to be resumed on another day."""

    def __init__(self, message: str = "Google Analytics daily rate limit reached."):
        super().__init__(message)


class ExhaustedRetries(AnalyticsImportError):
    """The request kept failing with transient errors until the attempt budget ran out."""

    def __init__(self, attempts: int):
        super().__init__(f"Failed to reach GA after {attempts} attempts. Restart the import later.")
        self.attempts = attempts


class ReportingApiError(AnalyticsImportError):
    """Error returned by the reporting API, carrying the HTTP status when there is one."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_text: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text

    @property
    def is_rate_limit(self) -> bool:
        return self.status_code in (403, 429)

    @property
    def is_daily_limit(self) -> bool:
        if not self.is_rate_limit:
            return False
        # the quota reason code (dailyLimitExceeded) is only present in the body
        return "daily" in f"{self} {self.response_text or ''}".lower()

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500

    def describe(self) -> str:
        details = f"Status Code: {self.status_code}" if self.status_code else "N/A"
        if self.response_text:
            details += f"\nResponse: {self.response_text[:500]}"
        return f"{super().__str__()} ({details})"
