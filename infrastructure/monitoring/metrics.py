from prometheus_client import Counter, Gauge, Histogram

# --- Counters ---
ga_api_call_total              = Counter("ga_import_api_call_total",              "Total Reporting API batchGet calls", ["status_code"])
ga_api_retries_total           = Counter("ga_import_api_retries_total",           "Retries of Reporting API requests", ["reason"])
ga_api_retry_exhausted_total   = Counter("ga_import_api_retry_exhausted_total",   "Requests abandoned after the attempt budget ran out")
ga_daily_limit_reached_total   = Counter("ga_import_daily_limit_reached_total",   "Queries stopped by the daily quota")
ga_chunks_completed_total      = Counter("ga_import_chunks_completed_total",      "Metric chunks successfully fetched and merged")
ga_chunks_dropped_total        = Counter("ga_import_chunks_dropped_total",        "Metric chunks dropped because GA returned no row count")
ga_rows_merged_total           = Counter("ga_import_rows_merged_total",           "GA rows folded into result tables")
db_heartbeat_total             = Counter("ga_import_db_heartbeat_total",          "Keep-alive queries sent to the database", ["status"])

# --- Gauges ---
ga_current_backoff_seconds     = Gauge("ga_import_current_backoff_seconds",       "Backoff currently applied to rate limited requests")

# --- Histograms ---
ga_api_request_duration_hist   = Histogram("ga_import_api_request_duration_seconds", "Reporting API request durations", ["status_code"], buckets=[0.1, 0.5, 1, 2, 5, 10, 20, 30, 45, 60])
ga_query_duration_hist         = Histogram("ga_import_query_duration_seconds",       "Duration of a full query (all chunks)", buckets=[1, 5, 10, 30, 60, 120, 300, 600, 1800])
