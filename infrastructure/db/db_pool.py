import psycopg2.pool
import structlog

log = structlog.get_logger(__name__)


class DBConnectionPool:
    """
    Thin wrapper around a psycopg2 SimpleConnectionPool. The importer is single
    threaded, a handful of connections is enough for the heartbeat and the
    site configuration lookups.
    """

    def __init__(self, dsn: str, minconn: int = 1, maxconn: int = 4):
        self.minconn = minconn
        self.maxconn = maxconn
        self.pool = psycopg2.pool.SimpleConnectionPool(minconn=minconn, maxconn=maxconn, dsn=dsn)
        log.info("Database connection pool created", minconn=minconn, maxconn=maxconn)

    @classmethod
    def from_settings(cls, config) -> "DBConnectionPool":
        return cls(config.database_dsn, minconn=config.DB_POOL_MIN_CONN, maxconn=config.DB_POOL_MAX_CONN)

    def get_connection(self):
        try:
            return self.pool.getconn()
        except psycopg2.pool.PoolError:
            log.error("No database connection available", maxconn=self.maxconn)
            raise

    def release_connection(self, conn, close: bool = False):
        """`close=True` discards the connection instead of returning it to the pool."""
        self.pool.putconn(conn, close=close)

    def closeall(self):
        self.pool.closeall()
        log.info("Database connection pool closed")
