import logging
from typing import List, Optional

from sqlalchemy import func

from database import Job, initialize_db, make_engine, make_session_factory
from models import JobRecord
from utils import ensure_utc

logger = logging.getLogger(__name__)

# Columns the store accepts as equality narrowing
EQUALITY_FIELDS = ("job_class", "queue_name", "cron_key")
ORDER_FIELDS = ("created_at", "scheduled_at", "performed_at", "finished_at")


def to_record(row: Job) -> JobRecord:
    return JobRecord(
        id=row.id,
        job_class=row.job_class,
        queue_name=row.queue_name,
        cron_key=row.cron_key,
        scheduled_at=ensure_utc(row.scheduled_at),
        performed_at=ensure_utc(row.performed_at),
        finished_at=ensure_utc(row.finished_at),
        error=row.error,
        retried_job_id=row.retried_job_id,
        created_at=ensure_utc(row.created_at),
    )


class JobStorage:
    """Read access to persisted job records, plus an insert path for seeding."""

    def __init__(self, url=None, engine=None):
        self.engine = engine or make_engine(url)
        self._session_factory = make_session_factory(self.engine)
        self.init_db()

    def init_db(self):
        initialize_db(self.engine)

    def _narrow(self, query, equals):
        for name, value in equals.items():
            if name not in EQUALITY_FIELDS:
                raise ValueError(f"Cannot filter jobs by {name!r}")
            query = query.filter(getattr(Job, name) == value)
        return query

    def list_jobs(self, order_by="created_at", direction="desc", limit: Optional[int] = None,
                  offset: int = 0, **equals) -> List[JobRecord]:
        if order_by not in ORDER_FIELDS:
            raise ValueError(f"Cannot order jobs by {order_by!r}")
        column = getattr(Job, order_by)
        if direction == "desc":
            ordering = (column.desc().nulls_last(), Job.id.desc())
        else:
            ordering = (column.asc().nulls_last(), Job.id.asc())
        logger.debug("list_jobs order=%s %s limit=%s offset=%s equals=%s",
                     order_by, direction, limit, offset, equals)
        session = self._session_factory()
        try:
            query = self._narrow(session.query(Job), equals).order_by(*ordering)
            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return [to_record(row) for row in query.all()]
        finally:
            session.close()

    def count(self, **equals) -> int:
        session = self._session_factory()
        try:
            return self._narrow(session.query(func.count(Job.id)), equals).scalar()
        finally:
            session.close()

    def get_job(self, job_id) -> Optional[JobRecord]:
        session = self._session_factory()
        try:
            row = session.get(Job, str(job_id))
            return to_record(row) if row else None
        finally:
            session.close()

    def add_job(self, record: JobRecord):
        session = self._session_factory()
        try:
            session.add(Job(**{
                "id": record.id,
                "job_class": record.job_class,
                "queue_name": record.queue_name,
                "cron_key": record.cron_key,
                "scheduled_at": ensure_utc(record.scheduled_at),
                "performed_at": ensure_utc(record.performed_at),
                "finished_at": ensure_utc(record.finished_at),
                "error": record.error,
                "retried_job_id": record.retried_job_id,
                "created_at": ensure_utc(record.created_at),
            }))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
