from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from celery import Celery
from celery.signals import worker_ready
from app.core.config import settings


def _redis_url_for_celery(url: str) -> str:
    """Celery requires ssl_cert_reqs for rediss:// (e.g. Upstash TLS)."""
    if not url or not url.strip().lower().startswith("rediss://"):
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    if "ssl_cert_reqs" not in qs:
        qs["ssl_cert_reqs"] = ["CERT_NONE"]
        new_query = urlencode(qs, doseq=True)
        return urlunparse(parsed._replace(query=new_query))
    return url


_redis_url = _redis_url_for_celery(settings.REDIS_URL)

celery = Celery(
    "rentals",
    broker=_redis_url,
    backend=_redis_url,
    include=["app.tasks.jobs"],
)

celery.conf.timezone = settings.CELERY_TIMEZONE

# Catch up on anything that expired while the worker was down
@worker_ready.connect
def on_worker_ready(sender, **kwargs):
    from app.tasks.jobs import reconcile_bookings
    reconcile_bookings.delay()

celery.conf.beat_schedule = {
    "reconcile-bookings": {
        "task": "app.tasks.jobs.reconcile_bookings",
        "schedule": settings.RECONCILE_INTERVAL_SECONDS,
    },
    "process-email-queue": {
        "task": "app.tasks.jobs.process_email_queue",
        "schedule": settings.EMAIL_QUEUE_INTERVAL_SECONDS,
        "kwargs": {"limit": 50},
    },
}
