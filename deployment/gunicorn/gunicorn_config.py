import multiprocessing
import os

bind = os.getenv("GUNICORN_BIND", "unix:/run/station-forms/gunicorn.sock")
workers = int(os.getenv("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "sync"
worker_tmp_dir = "/dev/shm"

# Public intake is bursty during on-air contests
max_requests = 2000
max_requests_jitter = 200
timeout = 60
keepalive = 5

# Logging
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "/var/log/station-forms/access.log")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "/var/log/station-forms/error.log")
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(t)s "%(r)s" %(s)s %(b)s %(D)s'

proc_name = "station-forms"

daemon = False
pidfile = "/run/station-forms/gunicorn.pid"
umask = 0o007


def when_ready(server):
    server.log.info("Station forms API ready, spawning workers")


def worker_abort(worker):
    worker.log.info("Worker %s aborted (timeout)", worker.pid)
