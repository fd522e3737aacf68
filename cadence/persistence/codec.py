"""Conversion between live tasks and serializable snapshots.

User code (actions, predicates, selectors, dependencies) cannot be
serialized. It is recorded by name and must be re-supplied through a
registry mapping those names back to objects when restoring.
"""

from collections.abc import Mapping
from typing import Any

from cadence.errors import SnapshotError
from cadence.frames.base import FunctionFrame, NoOpFrame, TaskFrame
from cadence.frames.collection import ParallelFrame, SequentialFrame
from cadence.frames.conditional import ConditionalFrame
from cadence.frames.delay import DelayFrame
from cadence.frames.dependency import DependencyFrame, FrameDependency
from cadence.frames.fallback import FallbackFrame
from cadence.frames.retry import (
    ConstantBackoff,
    ExponentialBackoff,
    JitterBackoff,
    RetriableFrame,
    RetryBackoff,
)
from cadence.frames.select import SelectFrame
from cadence.frames.timeout import TimeoutFrame

Registry = Mapping[str, Any]


def encode_backoff(backoff: RetryBackoff) -> dict[str, Any]:
    if isinstance(backoff, ConstantBackoff):
        return {"type": "constant", "delay_seconds": backoff.delay.total_seconds()}
    if isinstance(backoff, ExponentialBackoff):
        return {
            "type": "exponential",
            "initial": backoff.initial,
            "factor": backoff.factor,
            "max_delay": backoff.max_delay,
        }
    if isinstance(backoff, JitterBackoff):
        return {"type": "jitter", "factor": backoff.factor, "inner": encode_backoff(backoff.inner)}
    raise SnapshotError(f"Cannot encode backoff {type(backoff).__name__}")


def decode_backoff(config: Mapping[str, Any]) -> RetryBackoff:
    kind = config.get("type")
    if kind == "constant":
        return ConstantBackoff(config["delay_seconds"])
    if kind == "exponential":
        return ExponentialBackoff(config["initial"], config["factor"], config.get("max_delay"))
    if kind == "jitter":
        return JitterBackoff(decode_backoff(config["inner"]), config["factor"])
    raise SnapshotError(f"Unknown backoff type: {kind!r}")


def encode_frame(frame: TaskFrame) -> dict[str, Any]:
    """Describe a frame tree as nested dictionaries.

    Raises:
        SnapshotError: If the tree contains a frame type with no encoding
    """
    if isinstance(frame, FunctionFrame):
        return {"type": "function", "name": frame.name, "blocking": frame.blocking}
    if isinstance(frame, NoOpFrame):
        return {"type": "noop"}
    if isinstance(frame, RetriableFrame):
        return {
            "type": "retry",
            "attempts": frame.attempts,
            "backoff": encode_backoff(frame.backoff),
            "inner": encode_frame(frame.inner),
        }
    if isinstance(frame, TimeoutFrame):
        return {
            "type": "timeout",
            "seconds": frame.duration.total_seconds(),
            "inner": encode_frame(frame.inner),
        }
    if isinstance(frame, FallbackFrame):
        return {
            "type": "fallback",
            "primary": encode_frame(frame.primary),
            "secondary": encode_frame(frame.secondary),
        }
    if isinstance(frame, ConditionalFrame):
        return {
            "type": "condition",
            "predicate": frame.predicate_name,
            "error_on_false": frame.error_on_false,
            "inner": encode_frame(frame.inner),
            "fallback": encode_frame(frame.fallback) if frame.fallback is not None else None,
        }
    if isinstance(frame, SequentialFrame):
        return {"type": "sequential", "frames": [encode_frame(child) for child in frame.frames]}
    if isinstance(frame, ParallelFrame):
        return {
            "type": "parallel",
            "cancel_on_failure": frame.cancel_on_failure,
            "frames": [encode_frame(child) for child in frame.frames],
        }
    if isinstance(frame, SelectFrame):
        return {
            "type": "select",
            "selector": frame.selector_name,
            "frames": [encode_frame(child) for child in frame.frames],
        }
    if isinstance(frame, DelayFrame):
        return {
            "type": "delay",
            "seconds": frame.delay.total_seconds(),
            "inner": encode_frame(frame.inner),
        }
    if isinstance(frame, DependencyFrame):
        return {
            "type": "dependency",
            "dependency": frame.dependency.name,
            "behavior": frame.behavior.value,
            "timeout_seconds": frame.timeout.total_seconds() if frame.timeout is not None else None,
            "poll_interval_seconds": frame.poll_interval.total_seconds(),
            "inner": encode_frame(frame.inner),
        }
    raise SnapshotError(f"Cannot encode frame {type(frame).__name__}")


def _lookup(registry: Registry, name: str, kind: str) -> Any:
    try:
        return registry[name]
    except KeyError:
        raise SnapshotError(f"No {kind} registered under {name!r}") from None


def decode_frame(config: Mapping[str, Any], registry: Registry) -> TaskFrame:
    """Rebuild a frame tree from ``encode_frame`` output.

    Args:
        config: Encoded frame tree
        registry: Names of actions, predicates, selectors and dependencies
            mapped to the live objects

    Raises:
        SnapshotError: On unknown frame types or unregistered names
    """
    kind = config.get("type")

    def child(encoded: Mapping[str, Any]) -> TaskFrame:
        return decode_frame(encoded, registry)

    if kind == "function":
        name = config["name"]
        return FunctionFrame(_lookup(registry, name, "action"), name=name, blocking=config.get("blocking", False))
    if kind == "noop":
        return NoOpFrame()
    if kind == "retry":
        return RetriableFrame(child(config["inner"]), config["attempts"], decode_backoff(config["backoff"]))
    if kind == "timeout":
        return TimeoutFrame(child(config["inner"]), config["seconds"])
    if kind == "fallback":
        return FallbackFrame(child(config["primary"]), child(config["secondary"]))
    if kind == "condition":
        fallback = config.get("fallback")
        return ConditionalFrame(
            child(config["inner"]),
            _lookup(registry, config["predicate"], "predicate"),
            fallback=child(fallback) if fallback else None,
            error_on_false=config.get("error_on_false", False),
        )
    if kind == "sequential":
        return SequentialFrame([child(c) for c in config["frames"]])
    if kind == "parallel":
        return ParallelFrame(
            [child(c) for c in config["frames"]],
            cancel_on_failure=config.get("cancel_on_failure", True),
        )
    if kind == "select":
        return SelectFrame(
            [child(c) for c in config["frames"]],
            _lookup(registry, config["selector"], "selector"),
        )
    if kind == "delay":
        return DelayFrame(child(config["inner"]), config["seconds"])
    if kind == "dependency":
        dependency = _lookup(registry, config["dependency"], "dependency")
        if not isinstance(dependency, FrameDependency):
            raise SnapshotError(f"{config['dependency']!r} is not a FrameDependency")
        return DependencyFrame(
            child(config["inner"]),
            dependency,
            behavior=config["behavior"],
            timeout=config.get("timeout_seconds"),
            poll_interval=config["poll_interval_seconds"],
        )
    raise SnapshotError(f"Unknown frame type: {kind!r}")
