"""Shared test doubles for orchestration tests."""

from typing import Any, Callable, Iterable, List, Optional

from orchestration import DependencyGate


def records_source(
    records: Iterable[Any],
    fail_with: Optional[Exception] = None,
    events: Optional[List[str]] = None,
    label: str = "source",
) -> Callable[[], Any]:
    """Build a data source callable yielding ``records``.

    Args:
        records: Records to yield
        fail_with: Exception raised after the last record, if any
        events: Event log appended to when the source starts
        label: Name used for the start event
    """
    items = list(records)

    async def generate():
        if events is not None:
            events.append(f"{label}:start")
        for item in items:
            yield item
        if fail_with is not None:
            raise fail_with

    return generate


class RecordingGate(DependencyGate):
    """DependencyGate that writes every open() call to an event list."""

    def __init__(self, name: str, events: List[str]):
        super().__init__(name)
        self.events = events
        self.open_calls = 0

    def open(self) -> None:
        self.open_calls += 1
        self.events.append(f"gate:{self.name}")
        super().open()
