"""
Aggregation accumulators.

One accumulator per (output row, metric). Each receives the raw cell values
contributed by matching source rows and produces a final value.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, Union

from .models import AggregationType
from .values import normalize_number, to_number

Number = Union[int, float]


class Accumulator(ABC):
    """Base class for metric accumulators"""

    aggregation_type: AggregationType

    def __init__(self) -> None:
        self.contributions = 0

    def add(self, value: Any) -> bool:
        """
        Feed one contributing cell value.

        Returns False when the value had no numeric reading (it is counted
        as 0 so the row still contributes).
        """
        self.contributions += 1
        number = to_number(value)
        self._add(0.0 if number is None else number, value)
        return number is not None or value is None

    @abstractmethod
    def _add(self, number: float, raw: Any) -> None:
        ...

    @abstractmethod
    def result(self) -> Any:
        ...


class SumAccumulator(Accumulator):
    aggregation_type = AggregationType.SUM

    def __init__(self) -> None:
        super().__init__()
        self.total = 0.0

    def _add(self, number: float, raw: Any) -> None:
        self.total += number

    def result(self) -> Number:
        return normalize_number(self.total)


class AvgAccumulator(Accumulator):
    """Running sum plus hidden count, divided at finalization"""

    aggregation_type = AggregationType.AVG

    def __init__(self) -> None:
        super().__init__()
        self.total = 0.0
        self.count = 0

    def _add(self, number: float, raw: Any) -> None:
        self.total += number
        self.count += 1

    def result(self) -> Number:
        if self.count == 0:
            return 0
        return normalize_number(self.total / self.count)


class MaxAccumulator(Accumulator):
    aggregation_type = AggregationType.MAX

    def __init__(self) -> None:
        super().__init__()
        self.value: Optional[float] = None

    def _add(self, number: float, raw: Any) -> None:
        if self.value is None or number > self.value:
            self.value = number

    def result(self) -> Number:
        return 0 if self.value is None else normalize_number(self.value)


class MinAccumulator(Accumulator):
    aggregation_type = AggregationType.MIN

    def __init__(self) -> None:
        super().__init__()
        self.value: Optional[float] = None

    def _add(self, number: float, raw: Any) -> None:
        if self.value is None or number < self.value:
            self.value = number

    def result(self) -> Number:
        return 0 if self.value is None else normalize_number(self.value)


class CountAccumulator(Accumulator):
    """Counts contributing rows, not their values"""

    aggregation_type = AggregationType.COUNT

    def add(self, value: Any) -> bool:
        self.contributions += 1
        return True

    def _add(self, number: float, raw: Any) -> None:
        pass

    def result(self) -> int:
        return self.contributions


class FirstAccumulator(Accumulator):
    """Keeps the first non-null value as given, then freezes"""

    aggregation_type = AggregationType.FIRST

    def __init__(self) -> None:
        super().__init__()
        self.value: Any = None
        self.is_set = False

    def add(self, value: Any) -> bool:
        self.contributions += 1
        if not self.is_set and value is not None:
            self.value = value
            self.is_set = True
        return True

    def _add(self, number: float, raw: Any) -> None:
        pass

    def result(self) -> Any:
        return self.value if self.is_set else 0


ACCUMULATORS: Dict[AggregationType, Type[Accumulator]] = {
    AggregationType.SUM: SumAccumulator,
    AggregationType.AVG: AvgAccumulator,
    AggregationType.MAX: MaxAccumulator,
    AggregationType.MIN: MinAccumulator,
    AggregationType.COUNT: CountAccumulator,
    AggregationType.FIRST: FirstAccumulator,
}


def create_accumulator(aggregation_type: AggregationType) -> Accumulator:
    return ACCUMULATORS[AggregationType(aggregation_type)]()
