"""Build a configured Scheduler from settings.

Example usage:

    from cadence.bootstrap import bootstrap

    scheduler = await bootstrap()
    await scheduler.schedule(Task(send_report, IntervalSchedule(60)))
    await scheduler.start()
"""

from cadence.clock import SchedulerClock, SystemClock, VirtualClock
from cadence.config import Settings, get_settings
from cadence.hooks.events import ALL_EVENTS
from cadence.observability.logging import get_logger, setup_logging
from cadence.observability.metrics import MetricsHook
from cadence.persistence.backend import PersistenceBackend
from cadence.scheduler.dispatcher import WorkerPoolDispatcher
from cadence.scheduler.scheduler import Scheduler
from cadence.scheduler.store import TaskStore

logger = get_logger(__name__)


def create_clock(settings: Settings) -> SchedulerClock:
    if settings.scheduler.clock == "virtual":
        return VirtualClock()
    return SystemClock()


async def bootstrap(
    settings: Settings | None = None,
    store: TaskStore | None = None,
    persistence: PersistenceBackend | None = None,
    configure_logging: bool = True,
) -> Scheduler:
    """Create a Scheduler wired according to configuration.

    Args:
        settings: Settings to use (defaults to ``get_settings()``)
        store: Optional TaskStore override
        persistence: Optional persistence backend
        configure_logging: Whether to call ``setup_logging`` from settings

    Returns:
        A scheduler that has not been started yet
    """
    settings = settings or get_settings()
    observability = settings.observability

    if configure_logging:
        setup_logging(
            level=observability.logging.level,
            format=observability.logging.format,
            redact_secrets=observability.logging.redact_secrets,
        )

    dispatcher_config = settings.scheduler.dispatcher
    scheduler = Scheduler(
        clock=create_clock(settings),
        store=store,
        dispatcher=WorkerPoolDispatcher(
            workers=dispatcher_config.workers,
            queue_size=dispatcher_config.queue_size,
        ),
        persistence=persistence,
        backpressure_delay=settings.scheduler.backpressure_delay_seconds,
    )

    if observability.metrics.enabled:
        await scheduler.global_hooks.attach(MetricsHook(), ALL_EVENTS)

    logger.info(
        "scheduler_bootstrapped",
        app_name=settings.app_name,
        clock=settings.scheduler.clock,
        workers=dispatcher_config.workers,
        queue_size=dispatcher_config.queue_size,
        metrics=observability.metrics.enabled,
    )
    return scheduler
