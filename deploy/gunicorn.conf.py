"""Gunicorn 生产配置

用法:
  gunicorn --config deploy/gunicorn.conf.py ads.web.app:app

依赖记录与清单的读写只在进程内串行，因此固定单 worker，并发由线程承担。
"""

import os

# ---------- 网络 ----------
bind = os.getenv("GUNICORN_BIND", "127.0.0.1:8888")

# ---------- 并发 ----------
workers = 1
threads = int(os.getenv("GUNICORN_THREADS", "4"))
worker_class = "gthread"
# check / build 会调用 npm audit 与 npm run build
timeout = int(os.getenv("GUNICORN_TIMEOUT", "1800"))

# ---------- 日志 ----------
accesslog = os.getenv("GUNICORN_ACCESS_LOG", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOG", "-")
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# ---------- 进程管理 ----------
graceful_timeout = 30
keepalive = 5
