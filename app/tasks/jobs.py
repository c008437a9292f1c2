from app.tasks.celery_app import celery
from app.tasks import worker_jobs

@celery.task(name="app.tasks.jobs.reconcile_bookings")
def reconcile_bookings():
    return worker_jobs.reconcile_bookings()


@celery.task(name="app.tasks.jobs.process_email_queue")
def process_email_queue(limit: int = 50):
    return worker_jobs.process_email_queue(limit=limit)
