import time
from typing import Any, Dict, Optional

import structlog
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from application.errors import ReportingApiError
from application.ports.reporting_client_port import ReportingClientPort
from infrastructure.monitoring.metrics import ga_api_call_total, ga_api_request_duration_hist

log = structlog.get_logger(__name__)


class GoogleAnalyticsReportingClient(ReportingClientPort):
    """
    Reporting API v4 client. Credentials are built by the caller
    (google.oauth2 service account or user credentials).
    """
    API_NAME = "analyticsreporting"
    API_VERSION = "v4"

    def __init__(self, credentials: Any = None, service: Any = None):
        if service is None and credentials is None:
            raise ValueError("Google credentials or a ready service object are required.")
        self.service = service or build(self.API_NAME, self.API_VERSION, credentials=credentials, cache_discovery=False)
        self.log = log.bind(client="GoogleAnalyticsReportingClient")

    def execute_report(self, request: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        start_time = time.monotonic()
        status_code = "200"
        request_log = self.log.bind(view_id=request.get("viewId"), metrics_count=len(request.get("metrics", [])))

        try:
            request_log.debug("Sending batchGet request")
            response = self.service.reports().batchGet(body={"reportRequests": [request]}).execute()
            return response
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            status_code = str(status) if status is not None else "N/A"
            reason = getattr(e, "reason", None) or str(e)
            content = e.content.decode("utf-8", errors="replace") if isinstance(e.content, bytes) else e.content
            error = ReportingApiError(
                reason,
                status_code=int(status) if status is not None else None,
                response_text=content,
            )
            log_method = request_log.error if error.is_server_error else request_log.warning
            log_method("GA API request failed with HTTP error", status_code=status_code, details=error.describe())
            raise error from e
        except Exception:
            status_code = "transport_error"
            request_log.error("GA API request failed", exc_info=True)
            raise
        finally:
            duration = time.monotonic() - start_time
            ga_api_call_total.labels(status_code=status_code).inc()
            ga_api_request_duration_hist.labels(status_code=status_code).observe(duration)
