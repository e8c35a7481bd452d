"""Cron-driven scheduler for the batch jobs."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .services.jobs import JOBS, JobDefinition, run_job

if TYPE_CHECKING:
    from .context import WorkerContext

logger = logging.getLogger("habitpulse.scheduler")


class HabitScheduler:
    """Registers the job table on an APScheduler background scheduler."""

    def __init__(self, ctx: WorkerContext, jobs: tuple[JobDefinition, ...] = JOBS):
        """Initialize the scheduler with the worker context.

        Args:
            ctx: Worker context with repositories and config
            jobs: Job definitions to register on start
        """
        self.ctx = ctx
        self.jobs = jobs
        self.scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self, *, paused: bool = False) -> None:
        """Create the scheduler, register every job and start it."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        timezone = self.ctx.config.SCHEDULER_TIMEZONE
        self.scheduler = BackgroundScheduler(
            timezone=timezone,
            job_defaults={"max_instances": 1, "coalesce": True},
        )

        for job in self.jobs:
            self.scheduler.add_job(
                func=self._runner(job),
                trigger=CronTrigger(timezone=timezone, **job.cron),
                id=job.name,
                name=job.description or job.name,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            logger.info("Scheduled %s (%s)", job.name, job.cron)

        self.scheduler.start(paused=paused)
        logger.info("Habit scheduler started with %s jobs", len(self.jobs))

    def stop(self, *, wait: bool = True) -> None:
        """Stop the scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=wait)
            self.scheduler = None
            logger.info("Habit scheduler stopped")

    def job_ids(self) -> list[str]:
        if self.scheduler is None:
            return []
        return [job.id for job in self.scheduler.get_jobs()]

    def next_run_times(self) -> dict[str, Optional[datetime]]:
        if self.scheduler is None:
            return {}
        return {job.id: job.next_run_time for job in self.scheduler.get_jobs()}

    def _runner(self, job: JobDefinition) -> Callable[[], None]:
        def _run() -> None:
            run_job(job.name, job.func, self.ctx)

        return _run

    def add_job(
        self,
        func: Callable,
        trigger: str,
        *,
        job_id: str,
        name: str | None = None,
        **trigger_args,
    ) -> None:
        """Add a custom job to the running scheduler.

        Args:
            func: Function to execute
            trigger: Trigger type ('cron', 'interval', 'date')
            job_id: Unique job identifier
            name: Human-readable job name
            **trigger_args: Additional trigger arguments
        """
        if self.scheduler is None:
            logger.warning("Cannot add job %s: scheduler not started", job_id)
            return

        if trigger == "cron":
            trigger_obj = CronTrigger(**trigger_args)
        elif trigger == "interval":
            trigger_obj = IntervalTrigger(**trigger_args)
        elif trigger == "date":
            trigger_obj = DateTrigger(**trigger_args)
        else:
            raise ValueError(f"Unknown trigger type: {trigger}")

        self.scheduler.add_job(
            func=func,
            trigger=trigger_obj,
            id=job_id,
            name=name or job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("Added job: %s", job_id)

    def remove_job(self, job_id: str) -> None:
        if self.scheduler is not None:
            self.scheduler.remove_job(job_id)
            logger.info("Removed job: %s", job_id)


def create_scheduler(ctx: WorkerContext, *, auto_start: bool = False) -> HabitScheduler:
    """Create and optionally start a habit scheduler."""
    scheduler = HabitScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler


__all__ = ["HabitScheduler", "create_scheduler"]
