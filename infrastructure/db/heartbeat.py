import time

import psycopg2
import structlog

from application.ports.heartbeat_port import HeartbeatPort
from infrastructure.db.db_pool import DBConnectionPool
from infrastructure.monitoring.metrics import db_heartbeat_total

log = structlog.get_logger(__name__)


class PostgresHeartbeat(HeartbeatPort):
    """
    Keeps the pooled database connection alive while the importer waits on
    GA. Failures are logged and never interrupt the import.
    """
    PING_SQL = "SELECT 1"

    def __init__(self, db_pool: DBConnectionPool):
        self.db_pool = db_pool
        self.log = log.bind(component="PostgresHeartbeat")

    def ping(self) -> None:
        conn = None
        broken = False
        start_time = time.monotonic()
        try:
            conn = self.db_pool.get_connection()
            with conn.cursor() as cur:
                cur.execute(self.PING_SQL)
                cur.fetchone()
            conn.rollback()
            db_heartbeat_total.labels(status="ok").inc()
            self.log.debug("Heartbeat sent", duration_sec=f"{time.monotonic() - start_time:.3f}s")
        except psycopg2.Error as e:
            broken = True
            db_heartbeat_total.labels(status="error").inc()
            self.log.warning("Heartbeat query failed", error=str(e))
        finally:
            if conn:
                # a broken connection is dropped so the pool opens a fresh one
                self.db_pool.release_connection(conn, close=broken)
