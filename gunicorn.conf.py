"""
Production Server Configuration

Runs the Inventory Analytics API with Uvicorn workers under Gunicorn:
    gunicorn inventory_analytics.main:app -c gunicorn.conf.py
"""

import multiprocessing
import os

# Server socket
bind = os.getenv("BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
max_requests = 10000
max_requests_jitter = 1000

# PDF rendering is bounded by REPORT_RENDER_TIMEOUT_SECONDS, keep the worker timeout above it
timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
keepalive = 5
graceful_timeout = 30

proc_name = "inventory-analytics-api"
daemon = False

# Logging (application logs go through structlog)
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = "-"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'


def when_ready(server):
    """Called when server is ready to receive connections."""
    server.log.info("Inventory Analytics API ready on %s", bind)


def worker_int(worker):
    """Called when worker receives INT or QUIT signal."""
    worker.log.info("Worker %s interrupted", worker.pid)
