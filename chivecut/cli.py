"""Command-line interface: run a worker, submit images, wait for scores."""

import json
import logging
import signal
import sys
import threading
from typing import Tuple

import click

from chivecut.config import configure_logging, settings
from chivecut.jobs.poller import PollOutcomeKind

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """Chive-cut analysis tools."""
    configure_logging("DEBUG" if verbose else settings.log_level)


@main.command()
def worker():
    """Consume the job queue until interrupted (SIGINT/SIGTERM)."""
    from chivecut.pipeline import build_pipeline

    pipeline = build_pipeline(settings)
    try:
        queue_worker = pipeline.build_worker()
    except ValueError as exc:
        raise click.ClickException(str(exc))

    stop = threading.Event()

    def _handle_signal(signum, _frame):
        logger.info("Received signal %s, finishing current job", signum)
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)
    queue_worker.run_forever(stop)


@main.command()
@click.argument("images", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--server", default="http://localhost:8001", help="API base URL")
@click.option("--submitted-by", required=True, help="Submitting user name")
@click.option("--post-id", required=True, help="Post the images belong to")
@click.option("--subreddit", default=None, help="Subreddit of the post")
@click.option("--wait/--no-wait", default=True, help="Poll until results are ready")
def submit(
    images: Tuple[str, ...],
    server: str,
    submitted_by: str,
    post_id: str,
    subreddit: str,
    wait: bool,
):
    """Submit IMAGES for analysis and optionally wait for scores."""
    from chivecut.client import AnalysisClient

    with AnalysisClient(server) as client:
        job_ids = client.submit(images, submitted_by=submitted_by, post_id=post_id, subreddit=subreddit)
        click.echo(json.dumps({"queuedJobs": job_ids}, indent=2))
        if not wait:
            return
        outcomes = client.wait(
            job_ids,
            interval=settings.poll_interval_seconds,
            max_attempts=settings.poll_max_attempts,
        )

    report = []
    for outcome in outcomes:
        entry = {"jobId": outcome.job_id, "outcome": outcome.kind.value, "message": outcome.message}
        if outcome.kind == PollOutcomeKind.COMPLETED:
            entry["scored"] = outcome.view.scored.model_dump()
        report.append(entry)
    click.echo(json.dumps(report, indent=2))

    if any(o.kind == PollOutcomeKind.FAILED for o in outcomes):
        sys.exit(1)


@main.command()
@click.argument("job_id")
@click.option("--server", default="http://localhost:8001", help="API base URL")
def status(job_id: str, server: str):
    """Print the current status of JOB_ID."""
    from chivecut.client import AnalysisClient

    with AnalysisClient(server) as client:
        view = client.get_status(job_id)
    click.echo(view.model_dump_json(indent=2, exclude_none=True))


if __name__ == "__main__":
    main()
