"""Gunicorn production configuration for the SLA engine API."""
import multiprocessing
import os

chdir = "backend"
wsgi_app = "app.main:app"
bind = "0.0.0.0:8000"
workers = multiprocessing.cpu_count() * 2 + 1
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
# POST /api/v1/sla/check runs the sweep inline; leave room past its soft timeout
timeout = int(os.environ.get("SLA_RUN_SOFT_TIMEOUT_SECONDS", "600")) + 60
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
preload_app = True
accesslog = "-"
errorlog = "-"
loglevel = "info"
