"""
Faceted, filtered view over the job records in a JobStorage.

A JobsFilter is built once per request. It captures ``now`` at construction
so the derived state of a job cannot change between ``records()``,
``states()`` and ``filtered_count()`` calls on the same filter.

Each facet is counted over the records matching every active filter except
the facet's own: with ``state=running`` selected, ``states()`` still reports
how many jobs are queued, scheduled and so on.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

import query
from facets import aggregate_by_job_class, aggregate_by_queue, aggregate_by_state
from models import JobRecord
from query import FilterParams
from states import STATE_NAMES
from storage import JobStorage
from utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class JobsFilter:
    def __init__(self, params=None, storage: Optional[JobStorage] = None, now: Optional[datetime] = None):
        if params is None:
            params = FilterParams()
        elif not isinstance(params, FilterParams):
            params = FilterParams.from_mapping(params)
        self.params = params
        self.now = ensure_utc(now) or utc_now()
        self.storage = storage or JobStorage()
        # Validates every parameter before the store is touched
        self.plan = query.build(params, self.now)

    def _matching(self, exclude=None) -> List[JobRecord]:
        plan = self.plan if exclude is None else query.build(self.params, self.now, exclude=exclude)
        rows = self.storage.list_jobs(order_by=plan.order_by, direction=plan.direction, **plan.equality)
        return [r for r in rows if plan.predicate(r)]

    def job_classes(self) -> Dict[str, int]:
        return aggregate_by_job_class(self._matching(exclude="job_class"))

    def queues(self) -> Dict[str, int]:
        return aggregate_by_queue(self._matching(exclude="queue_name"))

    def states(self) -> Dict[str, int]:
        return aggregate_by_state(self._matching(exclude="state"), self.now)

    def state_names(self):
        return STATE_NAMES

    def records(self) -> List[JobRecord]:
        plan = self.plan
        if not plan.in_memory:
            logger.debug("Delegating order and pagination to the store: %s", plan.equality)
            return self.storage.list_jobs(
                order_by=plan.order_by,
                direction=plan.direction,
                limit=plan.limit,
                offset=plan.offset,
                **plan.equality,
            )
        logger.debug("Filtering jobs in memory: %s", self.params)
        rows = self._matching()
        end = None if plan.limit is None else plan.offset + plan.limit
        return rows[plan.offset:end]

    def filtered_count(self) -> int:
        if not self.plan.in_memory:
            return self.storage.count(**self.plan.equality)
        return len(self._matching())

    def to_params(self, **overrides):
        return self.params.to_params(**overrides)
