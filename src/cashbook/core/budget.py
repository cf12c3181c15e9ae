"""
Budget settings for CashBook.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

from .dates import (
    CIVIL_CALENDAR,
    NULL_DATE,
    CalendarDate,
    CalendarInfo,
    PeriodUnit,
    add_period,
)
from .errors import ConfigError


@dataclass
class BudgetSettings:
    """
    Budget window and forecasting settings.

    Attributes:
        start: First date of the budget window (``NULL_DATE`` = unbounded)
        finish: Last date of the budget window (``NULL_DATE`` = unbounded)
        sorder_trial: Length of the standing-order trial, in days
        limit_postdate: True to limit future balances to the trial period
    """

    start: CalendarDate = NULL_DATE
    finish: CalendarDate = NULL_DATE
    sorder_trial: int = 0
    limit_postdate: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        Check the settings for consistency.

        Raises:
            ConfigError: If a window edge is not a date or the trial length is negative
        """
        for name in ("start", "finish"):
            if not isinstance(getattr(self, name), CalendarDate):
                raise ConfigError(f"budget {name} must be a CalendarDate")

        if not isinstance(self.sorder_trial, int) or self.sorder_trial < 0:
            raise ConfigError(
                f"sorder_trial must be a non-negative number of days, got {self.sorder_trial!r}"
            )

        if not self.start.is_null and not self.finish.is_null and self.start > self.finish:
            warnings.warn(
                f"Budget start {self.start} is after finish {self.finish}; "
                "the budget window will match no transactions",
                stacklevel=3,
            )

    def contains(self, value: CalendarDate) -> bool:
        """Check if a date falls within the budget window."""
        return (self.start.is_null or value >= self.start) and (
            self.finish.is_null or value <= self.finish
        )

    def post_cutoff(
        self, today: CalendarDate, calendar: CalendarInfo = CIVIL_CALENDAR
    ) -> CalendarDate:
        """Last date included in future balances when post-dating is limited."""
        return add_period(today, PeriodUnit.DAYS, self.sorder_trial, calendar)
