"""Time window value object and resolution helpers."""

from datetime import datetime

from ...shared.base import ValueObject


class TimeWindow(ValueObject):
    """
    A start/end interval on the schedule.

    Bounds are not checked against each other: a clocked-in start can land
    after a planned end and the bar is still shown as recorded.
    """

    start: datetime
    end: datetime

    @classmethod
    def resolve(
        cls, start: datetime | None, end: datetime | None
    ) -> "TimeWindow | None":
        """Build a window only when both bounds are known."""
        if start is None or end is None:
            return None
        return cls(start=start, end=end)


def first_known(*candidates: datetime | None) -> datetime | None:
    """Return the first non-null instant, most specific first."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
