"""
Turns a set of filter parameters into a predicate over job records.

Every filter is optional and they combine with AND. Filters on stored
columns (job class, queue, cron key) are also reported separately in
``QueryPlan.equality`` so the record store can narrow its read with them.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from models import JobRecord
from states import FINISHED, FINISHED_STATES, STATE_NAMES, classify
from utils import ensure_utc

logger = logging.getLogger(__name__)

ORDER_FIELDS = ("created_at", "scheduled_at", "performed_at", "finished_at")
DIRECTIONS = ("desc", "asc")

# Dimensions a facet can lift from the predicate
FACET_DIMENSIONS = ("state", "job_class", "queue_name")

_FINISHED_SINCE_RE = re.compile(
    r"^(\d+)[_ ](second|minute|hour|day)s?[_ ]ago$", re.IGNORECASE
)
_UNIT_SECONDS = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}

_NAMESPACED_RE = re.compile(r"^[A-Za-z_]\w*(?:(?:::|\.)[A-Za-z_]\w*)+$")
_NAMESPACE_SEP_RE = re.compile(r"::|\.")


class InvalidFilterError(ValueError):
    """Raised when filter parameters cannot be turned into a query."""


@dataclass(frozen=True)
class FilterParams:
    state: Optional[str] = None
    job_class: Optional[str] = None
    queue_name: Optional[str] = None
    cron_key: Optional[str] = None
    finished_since: Optional[str] = None
    query: Optional[str] = None
    limit: Optional[int] = None
    offset: int = 0
    order_by: str = "created_at"
    direction: str = "desc"

    @classmethod
    def from_mapping(cls, mapping):
        """Build params from a flat mapping of strings (query args, CLI options)."""
        values = {}
        for name in ("state", "job_class", "queue_name", "cron_key", "finished_since", "query"):
            raw = mapping.get(name)
            if raw is not None and str(raw).strip():
                values[name] = str(raw).strip()
        for name in ("order_by", "direction"):
            raw = mapping.get(name)
            if raw is not None and str(raw).strip():
                values[name] = str(raw).strip().lower()
        limit = _parse_count("limit", mapping.get("limit"))
        if limit is not None:
            values["limit"] = limit
        offset = _parse_count("offset", mapping.get("offset"))
        if offset is not None:
            values["offset"] = offset
        return cls(**values)

    def to_params(self, **overrides):
        """Active parameters as strings, merged with ``overrides``; None drops a key."""
        params = {}
        for name in ("state", "job_class", "queue_name", "cron_key", "finished_since", "query"):
            value = getattr(self, name)
            if value is not None:
                params[name] = value
        if self.limit is not None:
            params["limit"] = str(self.limit)
        if self.offset:
            params["offset"] = str(self.offset)
        if self.order_by != "created_at":
            params["order_by"] = self.order_by
        if self.direction != "desc":
            params["direction"] = self.direction
        for key, value in overrides.items():
            if value is None:
                params.pop(key, None)
            else:
                params[key] = str(value)
        return params


@dataclass
class QueryPlan:
    predicate: Callable[[JobRecord], bool]
    finished_threshold: Optional[datetime]
    order_by: str
    direction: str
    limit: Optional[int]
    offset: int
    equality: Dict[str, str] = field(default_factory=dict)
    in_memory: bool = False


def _parse_count(name, raw):
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidFilterError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise InvalidFilterError(f"{name} must not be negative, got {value}")
    return value


def parse_finished_since(token: str) -> timedelta:
    """Parse a relative duration such as ``1_hour_ago`` or ``30 minutes ago``."""
    match = _FINISHED_SINCE_RE.match(token.strip())
    if not match:
        raise InvalidFilterError(f"Unrecognized finished_since value: {token!r}")
    amount, unit = match.groups()
    try:
        return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit.lower()])
    except OverflowError:
        raise InvalidFilterError(f"finished_since is too far back: {token!r}")


def _query_terms(query: str):
    terms = [query.lower()]
    if _NAMESPACED_RE.match(query):
        terms.append(_NAMESPACE_SEP_RE.split(query)[-1].lower())
    return terms


def matches_query(record: JobRecord, query: str) -> bool:
    """ID search first, then case-insensitive text search over class and error."""
    query = query.strip()
    if query == str(record.id):
        return True
    haystacks = [value.lower() for value in (record.job_class, record.error) if value]
    return any(term in text for term in _query_terms(query) for text in haystacks)


def _state_predicate(state, now):
    if state == FINISHED:
        return lambda r: classify(r, now) in FINISHED_STATES
    if state in STATE_NAMES:
        return lambda r: classify(r, now) == state
    logger.debug("Unknown state filter %r matches no jobs", state)
    return lambda r: False


def build(params: FilterParams, now: datetime, exclude: Optional[str] = None) -> QueryPlan:
    """Compile ``params`` into a QueryPlan, lifting the ``exclude`` dimension if given."""
    if exclude is not None and exclude not in FACET_DIMENSIONS:
        raise ValueError(f"Cannot exclude unknown dimension {exclude!r}")
    if params.order_by not in ORDER_FIELDS:
        raise InvalidFilterError(f"order_by must be one of {', '.join(ORDER_FIELDS)}")
    if params.direction not in DIRECTIONS:
        raise InvalidFilterError(f"direction must be one of {', '.join(DIRECTIONS)}")
    if params.limit is not None and params.limit < 0:
        raise InvalidFilterError("limit must not be negative")
    if params.offset < 0:
        raise InvalidFilterError("offset must not be negative")
    now = ensure_utc(now)

    checks = []
    equality = {}
    in_memory = False

    if params.state is not None and exclude != "state":
        checks.append(_state_predicate(params.state, now))
        in_memory = True
    if params.job_class is not None and exclude != "job_class":
        equality["job_class"] = params.job_class
    if params.queue_name is not None and exclude != "queue_name":
        equality["queue_name"] = params.queue_name
    if params.cron_key is not None:
        equality["cron_key"] = params.cron_key

    # Applied in memory as well so the predicate stands on its own
    for name, value in equality.items():
        checks.append(lambda r, name=name, value=value: getattr(r, name) == value)

    threshold = None
    if params.finished_since is not None:
        delta = parse_finished_since(params.finished_since)
        try:
            threshold = now - delta
        except OverflowError:
            raise InvalidFilterError(f"finished_since is too far back: {params.finished_since!r}")
        checks.append(lambda r: r.finished_at is not None and r.finished_at >= threshold)
        in_memory = True

    if params.query is not None and params.query.strip():
        query = params.query
        checks.append(lambda r: matches_query(r, query))
        in_memory = True

    def predicate(record):
        return all(check(record) for check in checks)

    return QueryPlan(
        predicate=predicate,
        finished_threshold=threshold,
        order_by=params.order_by,
        direction=params.direction,
        limit=params.limit,
        offset=params.offset,
        equality=equality,
        in_memory=in_memory,
    )
