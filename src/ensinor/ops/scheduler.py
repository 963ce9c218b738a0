"""Background scheduler for maintenance jobs.

Nothing is scheduled at import time: build a ``MaintenanceScheduler`` and
call ``start()``/``stop()`` explicitly.
"""

from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..config.loader import default_config, get_setting
from ..database.sqlite_client import session_context
from ..utils.logging import get_logger
from .maintenance import run_job

logger = get_logger(__name__)

SessionFactory = Callable[[], AbstractContextManager]


class MaintenanceScheduler:
    """
    Runs the maintenance jobs on an APScheduler ``BackgroundScheduler``.

    Schedule (hours from config):
    - expire_subscriptions every ``scheduler.subscription_sweep_hours``
    - cleanup_expired_users every ``scheduler.user_cleanup_hours``
    - cleanup_unpublished_courses every ``scheduler.course_cleanup_hours``
    - cleanup_codes daily at ``scheduler.code_cleanup_hour``:00

    Args:
        config: Loaded configuration (defaults when omitted)
        session_factory: Zero-arg callable returning a session context manager;
            defaults to ``session_context`` on ``storage.sqlite_path``
        scheduler_factory: Zero-arg callable returning an APScheduler scheduler
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        session_factory: Optional[SessionFactory] = None,
        scheduler_factory: Optional[Callable[[], BackgroundScheduler]] = None,
    ):
        self.config = config or default_config()
        sqlite_path = get_setting(self.config, "storage.sqlite_path")
        self._session_factory = session_factory or (lambda: session_context(sqlite_path))
        self._scheduler_factory = scheduler_factory or self._default_scheduler
        self._scheduler: Optional[BackgroundScheduler] = None

    def _default_scheduler(self) -> BackgroundScheduler:
        return BackgroundScheduler(
            timezone=get_setting(self.config, "scheduler.timezone", "UTC"),
            daemon=True,
        )

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def job_ids(self) -> list[str]:
        if self._scheduler is None:
            return []
        return sorted(job.id for job in self._scheduler.get_jobs())

    def run_now(self, name: str) -> None:
        """Run one job immediately in its own session; failures are logged, not raised."""
        try:
            with self._session_factory() as session:
                result = run_job(name, session, self.config)
            logger.info(f"Maintenance job {name} finished: {result.details}")
        except Exception:
            logger.exception(f"Maintenance job {name} failed")

    def _add_jobs(self, scheduler: BackgroundScheduler) -> None:
        common = {"max_instances": 1, "coalesce": True, "replace_existing": True}
        scheduler.add_job(
            self.run_now,
            trigger="interval",
            hours=get_setting(self.config, "scheduler.subscription_sweep_hours", 12),
            args=["expire_subscriptions"],
            id="expire_subscriptions",
            **common,
        )
        scheduler.add_job(
            self.run_now,
            trigger="interval",
            hours=get_setting(self.config, "scheduler.user_cleanup_hours", 12),
            args=["cleanup_expired_users"],
            id="cleanup_expired_users",
            **common,
        )
        scheduler.add_job(
            self.run_now,
            trigger="interval",
            hours=get_setting(self.config, "scheduler.course_cleanup_hours", 12),
            args=["cleanup_unpublished_courses"],
            id="cleanup_unpublished_courses",
            **common,
        )
        scheduler.add_job(
            self.run_now,
            trigger="cron",
            hour=get_setting(self.config, "scheduler.code_cleanup_hour", 2),
            minute=0,
            args=["cleanup_codes"],
            id="cleanup_codes",
            **common,
        )

    def start(self) -> None:
        if self.running:
            logger.debug("Maintenance scheduler already running")
            return
        scheduler = self._scheduler_factory()
        self._add_jobs(scheduler)
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"Maintenance scheduler started with jobs: {', '.join(self.job_ids())}")

    def stop(self, wait: bool = True) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        logger.info("Maintenance scheduler stopped")
