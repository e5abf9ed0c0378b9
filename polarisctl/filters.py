"""Simple digital filters: first-order low pass, moving average, Bessel."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass

MAX_LENGTH = 10

_BESSEL_B = (0.0001507, 0.0005675, 0.0001336)
_BESSEL_A = (2.765, -2.552, 0.7866)


@dataclass
class LowPassFilter:
    """First-order low pass; a coefficient outside (0, 1) passes input through."""

    coefficient: float = 0.0
    value: float = 0.0
    last_value: float = 0.0

    def update(self, val: float) -> float:
        if self.coefficient <= 0 or self.coefficient >= 1:
            return val
        self.value = self.coefficient * val + (1 - self.coefficient) * self.last_value
        self.last_value = self.value
        return self.value


class MovingAverageFilter:
    """Mean over a fixed window that starts filled with zeros."""

    def __init__(self, length: int = MAX_LENGTH) -> None:
        if length <= 0:
            raise ValueError("window length must be positive")
        self.length = length
        self.window: deque[float] = deque([0.0] * length, maxlen=length)

    def update(self, val: float) -> float:
        self.window.append(val)
        return sum(self.window) / self.length


class BesselFilter:
    """Third-order IIR Bessel low pass with fixed coefficients."""

    def __init__(self) -> None:
        self.x = [0.0] * 4
        self.y = [0.0] * 4
        self.value = 0.0

    def update(self, val: float) -> float:
        self.x = [val, *self.x[:3]]
        previous_y = self.y[:3]
        out = sum(b * x for b, x in zip(_BESSEL_B, self.x[1:])) + sum(
            a * y for a, y in zip(_BESSEL_A, previous_y)
        )
        self.y = [out, *previous_y]
        self.value = out
        return out