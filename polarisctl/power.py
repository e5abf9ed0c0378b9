"""Chassis power model and power-limiting gain estimation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

SPEED_TO_RAD = 9.55
SMOOTHING = 0.8
DEFAULT_POWER_CONST = 30000.0


@dataclass
class TyrePowerModel:
    """Power drawn by one wheel motor: ``k1*i^2 + w*i/9.55 + a``."""

    a: float
    ct: float
    k1: float
    k2: float
    power_current: float = 0.0

    def calculate(self, current: float, speed: float) -> float:
        self.power_current = self.k1 * current * current + (speed * current) / SPEED_TO_RAD + self.a
        return self.power_current


@dataclass
class ChassisPowerLimiter:
    """Estimates a smoothed scaling gain that keeps chassis power in budget."""

    k1: float
    k2: float
    power_const: float = DEFAULT_POWER_CONST
    k: float = 0.0
    k_last: float = 0.0

    def update(self, speeds: Sequence[float], outputs: Sequence[float]) -> float:
        """Compute the new gain from motor speeds and commanded outputs."""
        pairs = list(zip(speeds, outputs, strict=True))
        speed_cmd = sum(s * o for s, o in pairs)
        torque_sq = sum(o * o for _, o in pairs)
        speed_sq = sum(s * s for s, _ in pairs)

        disc = speed_cmd * speed_cmd - 4 * self.k1 * torque_sq * (self.k2 * speed_sq - self.power_const)
        if torque_sq != 0 and disc >= 0:
            raw = 10 * (-speed_cmd + math.sqrt(disc))
            raw = abs(raw / (100 * 2 * self.k1 * torque_sq))
        else:
            raw = 0.0

        self.k = SMOOTHING * self.k_last + (1 - SMOOTHING) * raw
        self.k_last = self.k
        return self.k