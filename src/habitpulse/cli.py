"""Command line entry point for the HabitPulse worker."""

from __future__ import annotations

import json
import time
from datetime import datetime

import click

from .config import BaseConfig, DevConfig


def _load_config(dev: bool) -> BaseConfig:
    return DevConfig() if dev else BaseConfig()


@click.group()
@click.option("--dev", is_flag=True, default=False, help="Use development configuration")
@click.pass_context
def cli(ctx: click.Context, dev: bool) -> None:
    """HabitPulse scheduled job runner."""

    from .logging_config import setup_logging

    config = _load_config(dev)
    setup_logging(config)
    ctx.obj = config


@cli.command("serve")
@click.pass_obj
def serve(config: BaseConfig) -> None:
    """Start the scheduler and block until interrupted."""

    from .context import create_app_context
    from .scheduler import create_scheduler

    if not config.SCHEDULER_ENABLED:
        click.echo("Scheduler disabled (HABITPULSE_SCHEDULER_ENABLED=false).")
        return

    scheduler = create_scheduler(create_app_context(config), auto_start=True)
    click.echo(f"Scheduler running in {config.SCHEDULER_TIMEZONE}. Press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except (KeyboardInterrupt, SystemExit):
        click.echo("Stopping scheduler...")
    finally:
        scheduler.stop()


@cli.command("run-job")
@click.argument("name")
@click.option(
    "--now",
    "now",
    type=click.DateTime(formats=["%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="Run as if the current UTC time were this value",
)
@click.pass_obj
def run_job_command(config: BaseConfig, name: str, now: datetime | None) -> None:
    """Run a single job immediately."""

    from .context import create_app_context
    from .services.jobs import get_job, run_job

    try:
        job = get_job(name)
    except KeyError as exc:
        raise click.BadParameter(str(exc.args[0]), param_hint="NAME") from exc

    summary = run_job(job.name, job.func, create_app_context(config), now)
    if summary is None:
        raise click.ClickException(f"Job {name} failed; see the log for details.")
    click.echo(json.dumps(summary, default=str, sort_keys=True))


@cli.command("list-jobs")
def list_jobs() -> None:
    """List registered jobs and their cron schedules."""

    from .services.jobs import JOBS

    for job in JOBS:
        cron = " ".join(
            job.cron.get(field, "*")
            for field in ("minute", "hour", "day", "month", "day_of_week")
        )
        click.echo(f"{job.name:<30} {cron:<28} {job.description}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
