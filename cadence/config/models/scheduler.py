"""Scheduler configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

ClockKind = Literal["system", "virtual"]


class DispatcherConfig(BaseModel):
    """Worker pool configuration."""

    workers: int = Field(default=4, ge=1, le=1024, description="Number of concurrent workers")
    queue_size: int = Field(
        default=64,
        ge=1,
        description="Bounded queue length per worker; dispatch is rejected when all are full",
    )


class SchedulerConfig(BaseModel):
    """Scheduler loop configuration."""

    clock: ClockKind = Field(default="system", description="Time source for the scheduler")
    backpressure_delay_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Delay before re-offering a firing the dispatcher rejected",
    )
    dispatcher: DispatcherConfig = Field(
        default_factory=DispatcherConfig,
        description="Dispatcher worker pool",
    )
