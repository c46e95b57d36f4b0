from datetime import datetime

import click

from cli_utils import (
    JOB_HEADERS, STATE_EMOJIS, configure_logging, facet_rows, job_rows, print_job_table,
)
from config import Config
from jobs_filter import JobsFilter
from query import InvalidFilterError
from storage import JobStorage


def filter_options(func):
    options = [
        click.option('--state', default=None, help="scheduled, retried, queued, running, succeeded, discarded or finished"),
        click.option('--job-class', 'job_class', default=None),
        click.option('--queue', 'queue_name', default=None),
        click.option('--cron-key', 'cron_key', default=None),
        click.option('--finished-since', 'finished_since', default=None, help="e.g. 1_hour_ago"),
        click.option('--query', '-q', default=None, help="Job ID, or text found in the job class or error"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_filter(ctx, **params):
    try:
        return JobsFilter(params, storage=ctx.obj['storage'])
    except InvalidFilterError as e:
        raise click.UsageError(str(e))


@click.group()
@click.option('--database-url', default=None, help="Overrides the configured database_url")
@click.pass_context
def cli(ctx, database_url):
    cfg = Config()
    configure_logging(cfg.get("log_level"))
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg
    ctx.obj['storage'] = JobStorage(database_url)


@cli.command('init-db')
@click.pass_context
def init_db(ctx):
    """Create the jobs table if it is missing"""
    ctx.obj['storage'].init_db()
    click.echo(f"Initialized DB at {ctx.obj['storage'].engine.url}")


@cli.command('list')
@filter_options
@click.option('--limit', type=int, default=None, help="Defaults to the configured page_size")
@click.option('--offset', type=int, default=0)
@click.option('--order-by', 'order_by', default='created_at')
@click.option('--direction', type=click.Choice(['desc', 'asc']), default='desc')
@click.pass_context
def list_jobs(ctx, limit, **params):
    """List jobs matching the filters, most recent first"""
    if limit is None:
        limit = ctx.obj['config'].get("page_size")
    jobs_filter = build_filter(ctx, limit=limit, **params)
    records = jobs_filter.records()
    if not records:
        click.echo("No jobs found.")
        return
    click.echo(print_job_table(JOB_HEADERS, job_rows(records, jobs_filter.now)))
    click.echo(f"Showing {len(records)} of {jobs_filter.filtered_count()} job(s)")


@cli.command()
@filter_options
@click.pass_context
def states(ctx, **params):
    """Show job counts per state"""
    jobs_filter = build_filter(ctx, **params)
    click.echo(f"\n🕒 Status checked at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    click.echo("📊 Job Summary:")
    for state, count in jobs_filter.states().items():
        click.echo(f"  {STATE_EMOJIS[state]} {state.capitalize():<12}: {count}")


@cli.command()
@filter_options
@click.pass_context
def queues(ctx, **params):
    """Show job counts per queue"""
    jobs_filter = build_filter(ctx, **params)
    click.echo(print_job_table(['Queue', 'Jobs'], facet_rows(jobs_filter.queues())))


@cli.command()
@filter_options
@click.pass_context
def classes(ctx, **params):
    """Show job counts per job class"""
    jobs_filter = build_filter(ctx, **params)
    click.echo(print_job_table(['Job Class', 'Jobs'], facet_rows(jobs_filter.job_classes())))


if __name__ == '__main__':
    cli()
