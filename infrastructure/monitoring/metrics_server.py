import time
from typing import Optional

import structlog
from prometheus_client import start_http_server

from infrastructure.config.settings import settings

log = structlog.get_logger(__name__)

_started_port: Optional[int] = None


def start_metrics_server(port: Optional[int] = None, block: bool = True) -> int:
    """
    Exposes the importer's Prometheus metrics over HTTP. With `block=False` the
    server keeps running in its daemon thread and the call returns the port.
    A second call in the same process is a no-op.
    """
    global _started_port
    actual_port = int(port or settings.APP_METRICS_PORT)

    if _started_port is not None:
        log.debug("Metrics server already running", port=_started_port)
        return _started_port

    log.info("Starting Prometheus metrics server", port=actual_port)
    try:
        start_http_server(actual_port)
    except OSError as e:
        log.error("Failed to start metrics server. Port likely in use.", port=actual_port, error=str(e), exc_info=True)
        raise
    _started_port = actual_port
    log.info("Prometheus metrics server started", port=actual_port)

    while block:
        time.sleep(60)
    return actual_port


if __name__ == "__main__":
    start_metrics_server()
