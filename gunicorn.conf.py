"""Gunicorn configuration file for the commute permit service."""

import os

# Application factory
wsgi_app = "commute_permits:create_app('production')"

# Server socket
bind = f"0.0.0.0:{os.environ.get('PORT', '5000')}"

# Worker processes
workers = int(os.environ.get('WEB_CONCURRENCY', 2))
worker_class = "gthread"
threads = int(os.environ.get('GUNICORN_THREADS', 4))
max_requests = 1000
max_requests_jitter = 100
# A full bulk request is 5 batches of sequential mail sends
timeout = 180
graceful_timeout = 30
keepalive = 5

limit_request_line = 4094
limit_request_fields = 100

# Logging
accesslog = os.environ.get('GUNICORN_ACCESS_LOG', '-')
errorlog = os.environ.get('GUNICORN_ERROR_LOG', '-')
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()

proc_name = "commute-permits"
pidfile = "/tmp/commute-permits.pid"

# The expiration scheduler runs from run.py or a dedicated process, never per worker
preload_app = True
worker_tmp_dir = "/dev/shm"
