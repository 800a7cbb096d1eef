import logging
from celery import Celery
from sqlmodel import Session

from printorders import db
from printorders.config import DELIVERY_RETRY_INTERVAL, REDIS_URL, WORKER_QUEUE
from printorders.submissions import get_submission, deliver_submission, retry_failed_deliveries

logger = logging.getLogger(__name__)

cel = Celery("printorders", broker=REDIS_URL, backend=REDIS_URL)
cel.conf.task_default_queue = WORKER_QUEUE
cel.conf.beat_schedule = {
    "retry-failed-deliveries": {
        "task": "retry_failed_deliveries",
        "schedule": DELIVERY_RETRY_INTERVAL,
    },
}

@cel.task(name="redeliver_submission", queue=WORKER_QUEUE)
def redeliver_submission(submission_id: int):
    with Session(db.engine) as session:
        submission = deliver_submission(session, get_submission(session, submission_id))
        return {"id": submission.id, "delivery_status": submission.delivery_status}

@cel.task(name="retry_failed_deliveries", queue=WORKER_QUEUE)
def sweep_failed_deliveries():
    with Session(db.engine) as session:
        retried = retry_failed_deliveries(session)
        delivered = [s.id for s in retried if s.delivery_status == "delivered"]
        if retried:
            logger.info("retried %d submission(s), %d delivered", len(retried), len(delivered))
        return {"retried": [s.id for s in retried], "delivered": delivered}
