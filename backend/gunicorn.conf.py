# Application entrypoint
wsgi_app = "sessionguard:create_app()"

# Bind & workers (threaded: concurrent refresh requests share one store)
bind = "0.0.0.0:8000"
workers = 2  # override with env GUNICORN_WORKERS
threads = 4
timeout = 30
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr (JSON from the app loggers)
accesslog = "-"
errorlog = "-"
loglevel = "info"  # override with env LOG_LEVEL
