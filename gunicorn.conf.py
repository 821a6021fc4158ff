# Gunicorn configuration for production
# Usage: gunicorn -c gunicorn.conf.py blog_search.api.main:app

import multiprocessing
import os

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")

# Each worker holds its own index, query cache, analytics buffer and
# rate-limit counters, so keep the count small
default_workers = min(multiprocessing.cpu_count() + 1, 4)
workers = int(
    os.getenv("GUNICORN_WORKERS", os.getenv("WEB_CONCURRENCY", default_workers))
)

worker_class = "uvicorn.workers.UvicornWorker"

# The first request after the index TTL absorbs a rebuild
timeout = int(os.getenv("GUNICORN_TIMEOUT", 60))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", 30))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", 5))

max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", 5000))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", 100))

# Logging
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")  # stdout
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")  # stderr
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

access_log_format = '{"time": "%(t)s", "status": %(s)s, "method": "%(m)s", "path": "%(U)s", "query": "%(q)s", "duration_ms": %(D)s, "remote_addr": "%(h)s", "user_agent": "%(a)s"}'

# Workers load the index in their own lifespan, not in the master
preload_app = False

proc_name = "blog_search"
