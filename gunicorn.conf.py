"""
Gunicorn settings for serving RewardCircle (``gunicorn run:app``).

Everything is overridable from the environment so one image serves every
deployment.
"""
import os

bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"

# Ledger writes hold a row lock for a few milliseconds; plain sync workers
# keep one transaction per process.
workers = int(os.getenv('WEB_CONCURRENCY', '2'))
worker_class = 'sync'
timeout = int(os.getenv('GUNICORN_TIMEOUT', '30'))
graceful_timeout = timeout
keepalive = 5

accesslog = '-'
errorlog = '-'
loglevel = os.getenv('LOG_LEVEL', 'info').lower()
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(M)sms rid=%({X-Request-ID}o)s'

proc_name = 'rewardcircle'

# Fail fast on bad production config before forking workers
preload_app = True


def when_ready(server):
    server.log.info('RewardCircle ready on %s with %s workers', bind, workers)


def worker_exit(server, worker):
    server.log.info('RewardCircle worker %s exited', worker.pid)
