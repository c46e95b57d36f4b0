import logging
from typing import List, Any

from prettytable import PrettyTable

from states import classify

# Emojis for status display
STATE_EMOJIS = {
    'scheduled': '🕒',
    'retried': '🔁',
    'queued': '⏳',
    'running': '⚙️',
    'succeeded': '✅',
    'discarded': '⚰️'
}

JOB_HEADERS = ['ID', 'Job Class', 'Queue', 'State', 'Created At', 'Finished At', 'Error']

def configure_logging(level: str = "WARNING"):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

def _ts(value):
    return value.strftime('%Y-%m-%d %H:%M:%S') if value else '-'

def job_rows(records, now) -> List[List[Any]]:
    rows = []
    for r in records:
        state = classify(r, now)
        error = r.error or ''
        rows.append([
            r.id,
            r.job_class,
            r.queue_name,
            f"{STATE_EMOJIS.get(state, '')} {state}",
            _ts(r.created_at),
            _ts(r.finished_at),
            error if len(error) <= 60 else error[:57] + '...',
        ])
    return rows

def facet_rows(counts) -> List[List[Any]]:
    return [[name, count] for name, count in counts.items()]

# --- CLI Formatting ---

def print_job_table(headers: List[str], data: List[List[Any]]) -> str:
    """Renders a nicely formatted table using PrettyTable."""
    table = PrettyTable()
    table.field_names = headers
    for row in data:
        table.add_row(row)

    table.align = 'l'
    return table.get_string()
