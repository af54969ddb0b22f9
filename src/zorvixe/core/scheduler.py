"""
Background Job Scheduler

APScheduler (AsyncIO) wrapper used for periodic maintenance jobs such as
link-expiry reminders and staging cleanup.

Jobs are registered into a module registry first (during start-up) and added
to the scheduler when it starts. The registry also allows running a job on
demand from the debug endpoints.

Usage:
    register_job("my_job", my_job, IntervalTrigger(hours=1))
    await start_scheduler()
    ...
    await stop_scheduler()
"""

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Coroutine[Any, Any, Any]]


@dataclass(frozen=True)
class RegisteredJob:
    job_id: str
    func: JobFunc
    trigger: BaseTrigger


class SchedulerConfig:
    """Scheduler defaults."""

    TIMEZONE = "UTC"

    JOB_DEFAULTS = {
        "coalesce": True,  # Run missed executions once
        "max_instances": 1,
        "misfire_grace_time": 60 * 5,
    }


_scheduler: AsyncIOScheduler | None = None
_job_registry: dict[str, RegisteredJob] = {}


def _job_listener(event: JobExecutionEvent) -> None:
    if event.exception:
        logger.error(
            f"Job {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.info(f"Job {event.job_id} executed at {datetime.now(UTC).isoformat()}")


def get_scheduler() -> AsyncIOScheduler | None:
    return _scheduler


def register_job(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    """
    Register a job.

    Jobs registered before ``start_scheduler`` are scheduled when it starts;
    jobs registered afterwards are scheduled immediately.
    """
    _job_registry[job_id] = RegisteredJob(job_id=job_id, func=func, trigger=trigger)

    if _scheduler is not None:
        _scheduler.add_job(func, trigger=trigger, id=job_id, replace_existing=True)
        logger.info(f"Scheduled job: {job_id}")


async def start_scheduler() -> AsyncIOScheduler:
    """Create the scheduler, schedule every registered job and start it."""
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running, returning existing instance")
        return _scheduler

    _scheduler = AsyncIOScheduler(
        timezone=SchedulerConfig.TIMEZONE,
        job_defaults=SchedulerConfig.JOB_DEFAULTS,
    )
    _scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    for job in _job_registry.values():
        _scheduler.add_job(job.func, trigger=job.trigger, id=job.job_id, replace_existing=True)
        logger.info(f"Scheduled job: {job.job_id}")

    _scheduler.start()
    logger.info(f"Background scheduler started with {len(_job_registry)} job(s)")
    return _scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler, waiting for running jobs to finish."""
    global _scheduler

    if _scheduler is None or not _scheduler.running:
        _scheduler = None
        return

    _scheduler.shutdown(wait=True)
    logger.info("Background scheduler stopped")
    _scheduler = None


async def trigger_job_manually(job_id: str) -> dict[str, Any]:
    """
    Run a registered job immediately, outside its schedule.

    Returns:
        Dict with job_id, status ("success" / "error"), executed_at, and
        either the job's result or the error message

    Raises:
        ValueError: If job_id is not registered
    """
    job = _job_registry.get(job_id)
    if job is None:
        raise ValueError(
            f"Job {job_id} not found in registry. Available jobs: {list(_job_registry)}"
        )

    executed_at = datetime.now(UTC)
    logger.info(f"Manually triggering job: {job_id}")

    try:
        result = await job.func()
        return {
            "job_id": job_id,
            "status": "success",
            "executed_at": executed_at.isoformat(),
            "result": result,
        }
    except Exception as e:
        logger.error(f"Manual execution of job {job_id} failed: {e}", exc_info=True)
        return {
            "job_id": job_id,
            "status": "error",
            "executed_at": executed_at.isoformat(),
            "error": str(e),
        }


def list_registered_jobs() -> list[dict[str, Any]]:
    """List registered jobs with their next run time and pause state."""
    jobs = []

    for job_id in _job_registry:
        info: dict[str, Any] = {"job_id": job_id, "next_run_time": None, "is_paused": True}

        scheduled = _scheduler.get_job(job_id) if _scheduler is not None else None
        if scheduled is not None and scheduled.next_run_time is not None:
            info["next_run_time"] = scheduled.next_run_time.isoformat()
            info["is_paused"] = False

        jobs.append(info)

    return jobs


def pause_job(job_id: str) -> bool:
    """Pause a scheduled job. Returns False if it is not scheduled."""
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Job not found for pausing: {job_id}")
        return False

    _scheduler.pause_job(job_id)
    logger.info(f"Paused job: {job_id}")
    return True


def resume_job(job_id: str) -> bool:
    """Resume a paused job. Returns False if it is not scheduled."""
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Job not found for resuming: {job_id}")
        return False

    _scheduler.resume_job(job_id)
    logger.info(f"Resumed job: {job_id}")
    return True
