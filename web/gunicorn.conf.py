import os


def cpu():
    return max(1, (os.cpu_count() or 1))


wsgi_app = "config.wsgi:application"
bind = f"0.0.0.0:{os.getenv('PORT', '3000')}"

# Workers: payment and webhook calls are IO bound
workers = int(os.getenv("GUNI_WORKERS", str(min(max(2, cpu() * 2), 8))))
worker_class = "gthread"
threads = int(os.getenv("GTHREADS", "4"))

# Timeouts (above the gateway/webhook httpx timeouts)
timeout = int(os.getenv("GUNI_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

preload_app = True
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "2000"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "200"))

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")


def on_starting(server):
    """Run the server-role bootstrap once, in the master, before forking."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
    import django

    django.setup()
    from apps.checkout.bootstrap import BootstrapSequencer

    report = BootstrapSequencer().run_server()
    server.log.info("bootstrap finished: stage=%s fresh=%s errors=%s", report.stage.value, report.fresh_install, report.errors)
