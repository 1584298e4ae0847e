from __future__ import annotations

from ...core.constants import PERCENTAGE_PRECISION
from .base import AttendanceRateCalculator


class StandardRateCalculator(AttendanceRateCalculator):
    """Standard rule: present / total * 100, rounded; 0.0 when nothing was recorded."""

    def __init__(self, precision: int = PERCENTAGE_PRECISION):
        self._precision = int(precision)

    def percentage(self, *, present: int, total: int) -> float:
        if total <= 0:
            return 0.0
        return round(present / total * 100, self._precision)
