"""Event-type filter deciding which events are delivered at all."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from mediahook.sync import ReadWriteLock


class FilterParams(BaseModel):
    """Allow/deny lists of event types.

    Attributes:
        include_events: If non-empty, only these event types are delivered.
        exclude_events: Event types never delivered. Ignored when
            include_events is set.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    include_events: tuple[str, ...] = Field(default=(), description="Allowed event types")
    exclude_events: tuple[str, ...] = Field(default=(), description="Denied event types")


class EventFilter:
    """Evaluates event types against a replaceable FilterParams snapshot.

    The snapshot is swapped wholesale under the write lock, so an
    evaluation never sees a half-updated configuration. Pass ``lock`` to
    share a guard with other runtime-mutable state.
    """

    def __init__(
        self,
        params: FilterParams | None = None,
        lock: ReadWriteLock | None = None,
    ) -> None:
        self._params = params or FilterParams()
        self._lock = lock or ReadWriteLock()

    @property
    def params(self) -> FilterParams:
        with self._lock.read_lock():
            return self._params

    def set_filter(self, params: FilterParams) -> None:
        with self._lock.write_lock():
            self._params = params

    def is_allowed(self, event_type: str) -> bool:
        """Return True if events of this type should be delivered."""
        with self._lock.read_lock():
            params = self._params

        if params.include_events:
            return event_type in params.include_events
        if params.exclude_events:
            return event_type not in params.exclude_events
        return True


__all__ = ["EventFilter", "FilterParams"]
