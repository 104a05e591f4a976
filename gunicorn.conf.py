# Gunicorn configuration file

# Timeout for workers (in seconds)
# Hint generation for a full word list can take close to a minute
timeout = 90

# Worker processes, each handling requests on its own thread pool
workers = 2
worker_class = "gthread"
threads = 8

# Binding
bind = "0.0.0.0:8787"

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"
