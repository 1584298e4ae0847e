from __future__ import annotations

from abc import ABC, abstractmethod


class AttendanceRateCalculator(ABC):
    """Calculator interface (Strategy Pattern for attendance percentages)."""

    @abstractmethod
    def percentage(self, *, present: int, total: int) -> float:
        raise NotImplementedError
