"""hashfleet CLI main entry point."""

import asyncio
import logging
import sys
from typing import Awaitable, Callable, Optional, TypeVar

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ..core.config import Settings
from ..core.exceptions import AdmissionError, BackpressureError, HashFleetError
from ..jobs.executors import is_executable
from ..jobs.janitor import Janitor
from ..jobs.service import JobService
from ..jobs.worker import run_worker
from ..scaling.autoscaler import Autoscaler
from ..scaling.fleet import create_fleet_controller
from ..storage.redis_client import create_redis_client, close_redis_client
from ..utils.lifecycle import run_until_signalled
from ..utils.logging_config import setup_component_logging

console = Console()
T = TypeVar("T")

STATUS_STYLES = {
    "queued": "cyan",
    "processing": "yellow",
    "done": "green",
    "failed": "red",
    "unknown": "dim",
}


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except HashFleetError as e:
        console.print(f"[red]❌ Invalid configuration: {e}[/red]")
        sys.exit(2)


def _run_with_service(settings: Settings, action: Callable[[JobService], Awaitable[T]]) -> T:
    """Open a Redis client, run ``action`` against a JobService, close it."""

    async def runner():
        client = create_redis_client(settings)
        try:
            return await action(JobService(client, settings))
        finally:
            await close_redis_client(client)

    return asyncio.run(runner())


@click.group()
@click.option('--log-level', default='info',
              type=click.Choice(['debug', 'info', 'warning', 'error']),
              help='Log level for long-running components')
@click.pass_context
def cli(ctx, log_level: str):
    """hashfleet - self-scaling text hashing job fleet"""
    load_dotenv()
    ctx.ensure_object(dict)
    ctx.obj['log_level'] = getattr(logging, log_level.upper())
    ctx.obj['settings'] = _load_settings()


@cli.command()
@click.pass_obj
def worker(obj):
    """Run one worker process."""
    setup_component_logging('worker', level=obj['log_level'])
    asyncio.run(run_worker(obj['settings']))


@cli.command()
@click.pass_obj
def janitor(obj):
    """Run the orphaned-job janitor."""
    setup_component_logging('janitor', level=obj['log_level'])
    asyncio.run(run_until_signalled(Janitor(obj['settings'])))


@cli.command()
@click.option('--fleet', 'fleet_kind', default='compose',
              type=click.Choice(['compose', 'static']),
              help='How worker replicas are started and stopped')
@click.pass_obj
def autoscaler(obj, fleet_kind: str):
    """Run the autoscaler control loop."""
    settings = obj['settings']
    setup_component_logging('autoscaler', level=obj['log_level'])
    fleet = create_fleet_controller(
        fleet_kind,
        project_dir=settings.compose_project_dir,
        service=settings.compose_service,
    )
    asyncio.run(run_until_signalled(Autoscaler(settings, fleet)))


@cli.command()
@click.option('--host', default='0.0.0.0', help='Host to bind to')
@click.option('--port', default=3000, type=int, help='Port to bind to')
@click.option('--reload', is_flag=True, help='Enable auto-reload for development')
@click.pass_obj
def api(obj, host: str, port: int, reload: bool):
    """Serve the HTTP API."""
    import uvicorn

    setup_component_logging('api', level=obj['log_level'])
    uvicorn.run("hashfleet.api.app:app", host=host, port=port, reload=reload)


@cli.command()
@click.argument('text')
@click.option('--algorithm', '-a', default='bcrypt',
              type=click.Choice(['sha256', 'bcrypt']),
              help='Hash algorithm (bcrypt has no executor and will fail)')
@click.pass_obj
def submit(obj, text: str, algorithm: str):
    """Submit a text hashing job."""
    if not is_executable(algorithm):
        console.print(f"[yellow]⚠️  No executor for {algorithm}; the job will fail when processed[/yellow]")
    try:
        job_id = _run_with_service(obj['settings'], lambda s: s.submit(text, algorithm))
    except BackpressureError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)
    except AdmissionError as e:
        console.print(f"[red]❌ Rejected: {e}[/red]")
        sys.exit(1)
    console.print(f"[green]✅ Job {job_id} queued[/green]")


@cli.command()
@click.argument('job_ids', nargs=-1, required=True)
@click.pass_obj
def status(obj, job_ids):
    """Show the status of one or more jobs."""
    jobs = _run_with_service(obj['settings'], lambda s: s.get_jobs(job_ids))

    table = Table(title="Jobs")
    table.add_column("Job ID")
    table.add_column("Status")
    table.add_column("Retries", justify="right")
    table.add_column("Worker")
    table.add_column("Result")
    for job in jobs:
        job_status = job.get("status") or "unknown"
        style = STATUS_STYLES.get(job_status, "white")
        result = job.get("hash") or job.get("error") or ""
        table.add_row(
            job["jobId"],
            f"[{style}]{job_status}[/{style}]",
            str(job.get("retries") or ""),
            job.get("workerId") or "",
            result,
        )
    console.print(table)


@cli.command()
@click.pass_obj
def stats(obj):
    """Show live workers, queue depth and scaler status."""
    snapshot = _run_with_service(obj['settings'], lambda s: s.get_stats())

    table = Table(title="Fleet")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Active workers", str(snapshot["activeWorkers"]))
    table.add_row("Queue length", str(snapshot["queueLength"]))
    table.add_row("Scaler status", snapshot["scalerStatus"])
    console.print(table)


@cli.command()
@click.argument('state', required=False, type=click.Choice(['on', 'off']))
@click.pass_obj
def scaling(obj, state: Optional[str]):
    """Show or set the autoscaling flag."""
    if state is None:
        enabled = _run_with_service(obj['settings'], lambda s: s.get_autoscaling())
    else:
        enabled = _run_with_service(obj['settings'], lambda s: s.set_autoscaling(state == 'on'))
    label = "[green]enabled[/green]" if enabled else "[yellow]paused[/yellow]"
    console.print(f"Autoscaling {label}")


@cli.command('clear-queue')
@click.confirmation_option(prompt='Drop every pending job from the queue?')
@click.pass_obj
def clear_queue(obj):
    """Delete all pending queue entries (job records are kept)."""
    _run_with_service(obj['settings'], lambda s: s.clear_queue())
    console.print("[green]✅ Queue cleared[/green]")


if __name__ == '__main__':
    cli()
