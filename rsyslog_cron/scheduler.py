"""Cron scheduling on top of APScheduler."""

import logging
from typing import Callable

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from rsyslog_cron.config import JobConfig, parse_duration
from rsyslog_cron.errors import ConfigError

logger = logging.getLogger(__name__)

SCHEDULER_WORKERS = 20
# Overlapping runs of the same job are allowed to execute side by side.
MAX_CONCURRENT_RUNS = 100

DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

# Crontab numbering: 0 and 7 are Sunday. APScheduler counts from Monday = 0.
_CRON_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _weekday(token: str) -> int:
    token = token.lower()
    if token in _CRON_WEEKDAYS:
        return _CRON_WEEKDAYS.index(token)
    if token.isdigit() and int(token) <= 7:
        return int(token)
    raise ValueError(f"invalid day of week {token!r}")


def translate_day_of_week(field: str) -> str:
    """Rewrite a crontab day-of-week field into APScheduler weekday names.

    Handles lists, ranges and steps, e.g. ``1-5`` becomes
    ``mon,tue,wed,thu,fri`` and ``7`` becomes ``sun``.
    """
    if field in ("*", "?"):
        return "*"
    days = set()
    for part in field.split(","):
        span, has_step, step = part.partition("/")
        if has_step and not (step.isdigit() and int(step) > 0):
            raise ValueError(f"invalid step in day of week {part!r}")
        step_n = int(step) if has_step else 1
        if span in ("*", "?"):
            first, last = 0, 6
        elif "-" in span:
            first, last = (_weekday(t) for t in span.split("-", 1))
        else:
            first = _weekday(span)
            last = 6 if has_step else first
        if first > last:
            raise ValueError(f"invalid day of week range {part!r}")
        days.update(d % 7 for d in range(first, last + 1, step_n))
    return ",".join(_CRON_WEEKDAYS[d] for d in sorted(days))


def build_trigger(schedule: str):
    """Turn a schedule string into an APScheduler trigger.

    Accepts 5-field crontab, 6-field crontab with a leading seconds field,
    the ``@daily``-style descriptors and ``@every <duration>``. Day of week
    uses crontab numbering (0 or 7 is Sunday) in both crontab forms.
    Raises ValueError on anything else.
    """
    spec = schedule.strip()

    if spec.startswith("@every"):
        seconds = parse_duration(spec[len("@every"):].strip())
        if seconds <= 0:
            raise ValueError(f"@every interval must be positive: {schedule!r}")
        return IntervalTrigger(seconds=seconds)

    spec = DESCRIPTORS.get(spec, spec)
    fields = spec.split()
    if len(fields) == 5:
        fields.insert(0, "0")
    if len(fields) != 6:
        raise ValueError(f"expected 5 or 6 fields, got {len(fields)} in {schedule!r}")
    second, minute, hour, day, month, day_of_week = fields
    return CronTrigger(
        second=second, minute=minute, hour=hour,
        day=day, month=month, day_of_week=translate_day_of_week(day_of_week),
    )


class JobScheduler:
    """Registers job callbacks and runs them on a background thread pool."""

    def __init__(self, scheduler: BackgroundScheduler | None = None):
        self._scheduler = scheduler or BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(SCHEDULER_WORKERS)},
            job_defaults={"coalesce": False, "max_instances": MAX_CONCURRENT_RUNS},
        )

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def add_job(self, job: JobConfig, callback: Callable[[], object]):
        try:
            trigger = build_trigger(job.schedule)
        except ValueError as e:
            raise ConfigError(f"Unable to add job {job.name!r}: {e}") from e
        self._scheduler.add_job(callback, trigger, name=job.name)
        logger.info("Scheduled job %r (%s)", job.name, job.schedule)

    def get_jobs(self):
        return self._scheduler.get_jobs()

    def start(self):
        self._scheduler.start()

    def shutdown(self, wait: bool = False):
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
