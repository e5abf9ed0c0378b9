"""Small numeric helpers used by the controllers and estimators."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Sequence

_MAGIC = 0x5F3759DF


def rad_to_angle(rad: float) -> float:
    """Convert radians to degrees."""
    return rad * 180.0 / math.pi


def angle_to_rad(ang: float) -> float:
    """Convert degrees to radians."""
    return ang * math.pi / 180.0


def sign(x: float) -> int:
    """Return 1 for positive, -1 for negative and 0 otherwise."""
    if x > 0:
        return 1
    if x < 0:
        return -1
    return 0


def _half_band(x: float, d: float) -> int:
    # Integer halving truncates toward zero.
    return int((sign(x + d) - sign(x - d)) / 2)


def fsg(x: float, d: float) -> int:
    """Return 1 when ``x`` lies strictly inside ``(-d, d)``, 0 outside."""
    return _half_band(x, d)


def fal(e: float, alpha: float, zeta: float) -> float:
    """Power function with a linear segment of half-width ``zeta`` near zero."""
    s = _half_band(e, zeta)
    return e * s / (zeta ** (1 - alpha)) + abs(e) ** alpha * sign(e) * (1 - s)


def inv_sqrt(x: float) -> float:
    """Approximate ``1 / sqrt(x)`` with the single-precision bit trick."""
    half_x = 0.5 * x
    (bits,) = struct.unpack("<i", struct.pack("<f", x))
    bits = (_MAGIC - (bits >> 1)) & 0xFFFFFFFF
    (y,) = struct.unpack("<f", struct.pack("<I", bits))
    return y * (1.5 - half_x * y * y)


def differential(values: Sequence[float], order: int, dt: float) -> float:
    """First or second backward difference of ``values`` (newest first).

    A non-positive ``dt`` is treated as 1. Any other order returns the
    newest value unchanged.
    """
    if dt <= 0.0:
        dt = 1.0
    if order == 1:
        return (values[0] - values[1]) / dt
    if order == 2:
        return (values[2] - 2 * values[1] + values[0]) / dt
    return values[0]


@dataclass
class SlopeParam:
    """Ramp limits: ``acc`` per step upward, ``dec`` per step downward."""

    acc: float = 0.0
    dec: float = 0.0

    @property
    def enabled(self) -> bool:
        return self.acc != 0 and self.dec != 0

    def calc_ref(self, rawref: float, targetref: float) -> float:
        """Move ``rawref`` one ramp step toward ``targetref``."""
        if not self.enabled:
            return targetref
        if rawref < targetref - self.acc:
            return rawref + self.acc
        if rawref > targetref + self.dec:
            return rawref - self.dec
        return targetref

    def calc_abs_ref(self, rawref: float, targetref: float) -> float:
        """Ramp step where ``acc`` and ``dec`` apply to the magnitude."""
        if not self.enabled:
            return targetref
        if rawref > 0:
            if rawref < targetref - self.acc:
                return rawref + self.acc
            if rawref > targetref + self.dec:
                return rawref - self.dec
            return targetref
        if rawref > targetref + self.acc:
            return rawref - self.acc
        if rawref < targetref - self.dec:
            return rawref + self.dec
        return targetref