"""Status conditions of reconciled objects and the events that accompany them."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Protocol

READY_CONDITION = "Ready"
RECONCILING_CONDITION = "Reconciling"
STALLED_CONDITION = "Stalled"

SUCCEEDED_REASON = "Succeeded"
PROGRESSING_WITH_RETRY_REASON = "ProgressingWithRetry"

STATUS_TRUE = "True"
STATUS_FALSE = "False"

SEVERITY_INFO = "info"
SEVERITY_ERROR = "error"


class _EventRecorder(Protocol):
    def event(
        self,
        obj: "StatusObject",
        metadata: Mapping[str, str] | None,
        severity: str,
        message: str,
    ) -> None: ...


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class Condition:
    """One status condition of an object."""

    type: str
    status: str
    reason: str = ""
    message: str = ""
    last_transition_time: datetime.datetime = field(default_factory=_now)
    observed_generation: int = 0


@dataclass
class StatusObject:
    """An object carrying status conditions and an identity for its events."""

    name: str
    namespace: str = ""
    kind: str = ""
    generation: int = 0
    observed_generation: int = 0
    conditions: list[Condition] = field(default_factory=list)
    vid: dict[str, str] = field(default_factory=dict)

    def get_condition(self, kind: str) -> Condition | None:
        """Return the condition of the given type, or None."""
        return next((c for c in self.conditions if c.type == kind), None)

    def set_condition(self, condition: Condition) -> None:
        """Add or replace a condition, keeping its transition time if the status is unchanged."""
        condition.observed_generation = self.generation
        for position, existing in enumerate(self.conditions):
            if existing.type == condition.type:
                if existing.status == condition.status:
                    condition.last_transition_time = existing.last_transition_time
                self.conditions[position] = condition
                return
        self.conditions.append(condition)

    def delete_condition(self, kind: str) -> None:
        """Remove the condition of the given type, if present."""
        self.conditions = [c for c in self.conditions if c.type != kind]

    def _is_true(self, kind: str) -> bool:
        condition = self.get_condition(kind)
        return condition is not None and condition.status == STATUS_TRUE

    def is_ready(self) -> bool:
        """Report whether the Ready condition is true."""
        return self._is_true(READY_CONDITION)

    def is_reconciling(self) -> bool:
        """Report whether the Reconciling condition is true."""
        return self._is_true(RECONCILING_CONDITION)


def _format(message: str, args: tuple[Any, ...]) -> str:
    return message % args if args else message


def _go_fraction(value: int, digits: int) -> str:
    whole, fraction = divmod(value, 10**digits)
    if not fraction:
        return str(whole)
    return f"{whole}." + str(fraction).zfill(digits).rstrip("0")


def _format_duration(duration: datetime.timedelta | str) -> str:
    """Format a duration as hours, minutes and seconds, such as "10m0s"."""
    if isinstance(duration, str):
        return duration
    nanos = (
        duration.days * 86_400 * 10**9
        + duration.seconds * 10**9
        + duration.microseconds * 1000
    )
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos < 1000:
        return f"{sign}{nanos}ns"
    if nanos < 10**6:
        return f"{sign}{_go_fraction(nanos, 3)}µs"
    if nanos < 10**9:
        return f"{sign}{_go_fraction(nanos, 6)}ms"
    hours, rest = divmod(nanos, 3600 * 10**9)
    minutes, rest = divmod(rest, 60 * 10**9)
    seconds = _go_fraction(rest, 9)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def mark_not_ready(
    recorder: _EventRecorder, obj: StatusObject, reason: str, message: str
) -> None:
    """Set the Ready condition of obj to false and record an error event."""
    obj.delete_condition(RECONCILING_CONDITION)
    obj.set_condition(Condition(READY_CONDITION, STATUS_FALSE, reason, message))
    recorder.event(obj, None, SEVERITY_ERROR, message)


def mark_as_stalled(
    recorder: _EventRecorder, obj: StatusObject, reason: str, message: str
) -> None:
    """Mark obj as not ready and stalled and record an error event."""
    obj.delete_condition(RECONCILING_CONDITION)
    obj.set_condition(Condition(READY_CONDITION, STATUS_FALSE, reason, message))
    obj.set_condition(Condition(STALLED_CONDITION, STATUS_TRUE, reason, message))
    recorder.event(obj, None, SEVERITY_ERROR, message)


def mark_ready(
    recorder: _EventRecorder, obj: StatusObject, message: str, *args: Any
) -> None:
    """Set the Ready condition of obj to true and record an info event."""
    text = _format(message, args)
    obj.set_condition(Condition(READY_CONDITION, STATUS_TRUE, SUCCEEDED_REASON, text))
    obj.delete_condition(RECONCILING_CONDITION)
    recorder.event(obj, None, SEVERITY_INFO, text)


def update_status(
    patch: Callable[[StatusObject], Any],
    obj: StatusObject,
    recorder: _EventRecorder,
    requeue: datetime.timedelta | str,
    error: BaseException | None,
) -> Any:
    """Finish a reconciliation: adjust conditions, record events and patch obj."""
    interval = _format_duration(requeue)
    if obj.is_reconciling() and error is not None:
        reconciling = obj.get_condition(RECONCILING_CONDITION)
        assert reconciling is not None
        reconciling.reason = PROGRESSING_WITH_RETRY_REASON
        obj.set_condition(reconciling)
        recorder.event(
            obj,
            obj.vid,
            SEVERITY_ERROR,
            f"Reconciliation did not succeed, retrying in {interval}",
        )

    if obj.is_ready():
        obj.observed_generation = obj.generation
        recorder.event(
            obj,
            obj.vid,
            SEVERITY_INFO,
            f"Reconciliation finished, next run in {interval}",
        )

    return patch(obj)