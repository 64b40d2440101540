from typing import Dict, Any
from psycopg2 import sql, extras
import structlog
import json
from datetime import datetime, timezone

from application.ports.site_config_port import SiteConfigPort
from infrastructure.db.db_pool import DBConnectionPool


class SiteConfigRepository(SiteConfigPort):
    """
    Per-site import configuration stored in the database: whether ecommerce
    is enabled and which GA goal each local goal maps to.
    """
    TABLE_NAME = "ga_import_site_config"
    COLUMNS = {
        "site_id": "INTEGER PRIMARY KEY",
        "ecommerce_enabled": "BOOLEAN NOT NULL DEFAULT FALSE",
        "goals": "JSONB NOT NULL DEFAULT '{}'::jsonb",
        "updated_at": "TIMESTAMPTZ DEFAULT NOW()"
    }

    def __init__(self, db_pool: DBConnectionPool):
        self.db_pool = db_pool
        self.log = structlog.get_logger(__name__).bind(repository=self.__class__.__name__)
        self._cache: Dict[int, Dict[str, Any]] = {}

    def initialize_schema(self):
        conn = None
        try:
            conn = self.db_pool.get_connection()
            with conn.cursor() as cur:
                column_defs = sql.SQL(', ').join(
                    sql.SQL("{} {}").format(sql.Identifier(name), sql.SQL(definition))
                    for name, definition in self.COLUMNS.items()
                )
                cur.execute(sql.SQL("CREATE TABLE IF NOT EXISTS {table} ({columns})").format(
                    table=sql.Identifier(self.TABLE_NAME), columns=column_defs
                ))
            conn.commit()
            self.log.info("Schema initialized", table_name=self.TABLE_NAME)
        except Exception as e:
            if conn: conn.rollback()
            self.log.error("Failed to initialize schema", table_name=self.TABLE_NAME, error=str(e), exc_info=True)
            raise
        finally:
            if conn:
                self.db_pool.release_connection(conn)

    def save_site_config(self, site_id: int, ecommerce_enabled: bool, goals: Dict[int, int]):
        """Saves or updates the configuration of a site."""
        conn = None
        log_ctx = self.log.bind(site_id=site_id)
        try:
            conn = self.db_pool.get_connection()
            with conn.cursor() as cur:
                upsert_sql = sql.SQL("""
                    INSERT INTO {table} (site_id, ecommerce_enabled, goals, updated_at)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (site_id) DO UPDATE SET
                        ecommerce_enabled = EXCLUDED.ecommerce_enabled,
                        goals = EXCLUDED.goals,
                        updated_at = EXCLUDED.updated_at;
                """).format(table=sql.Identifier(self.TABLE_NAME))

                goals_json = json.dumps({str(goal_id): ga_goal_id for goal_id, ga_goal_id in goals.items()})
                cur.execute(upsert_sql, (site_id, bool(ecommerce_enabled), goals_json, datetime.now(timezone.utc)))
            conn.commit()
            self._cache.pop(site_id, None)
            log_ctx.info("Site configuration saved", goals_count=len(goals), ecommerce_enabled=ecommerce_enabled)
        except Exception as e:
            if conn: conn.rollback()
            log_ctx.error("Failed to save site configuration", error=str(e), exc_info=True)
            raise
        finally:
            if conn:
                self.db_pool.release_connection(conn)

    def _load(self, site_id: int) -> Dict[str, Any]:
        if site_id in self._cache:
            return self._cache[site_id]

        conn = None
        log_ctx = self.log.bind(site_id=site_id)
        try:
            conn = self.db_pool.get_connection()
            with conn.cursor(cursor_factory=extras.DictCursor) as cur:
                query = sql.SQL("SELECT ecommerce_enabled, goals FROM {table} WHERE site_id = %s LIMIT 1").format(
                    table=sql.Identifier(self.TABLE_NAME)
                )
                cur.execute(query, (site_id,))
                result = cur.fetchone()
        finally:
            if conn:
                self.db_pool.release_connection(conn)

        if result is None:
            log_ctx.warning("No import configuration for site, assuming no goals and no ecommerce")
            config = {"ecommerce_enabled": False, "goals": {}}
        else:
            goals = result['goals'] or {}
            if isinstance(goals, str):
                goals = json.loads(goals)
            config = {
                "ecommerce_enabled": bool(result['ecommerce_enabled']),
                "goals": {int(goal_id): int(ga_goal_id) for goal_id, ga_goal_id in goals.items()},
            }
            log_ctx.debug("Site configuration retrieved", goals_count=len(config["goals"]))

        self._cache[site_id] = config
        return config

    def is_ecommerce_enabled(self, site_id: int) -> bool:
        return self._load(site_id)["ecommerce_enabled"]

    def get_goals_mapping(self, site_id: int) -> Dict[int, int]:
        return dict(self._load(site_id)["goals"])
