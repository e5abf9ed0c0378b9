"""Position and incremental PID controllers with feed-forward."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from .filters import LowPassFilter
from .mathutils import differential


class PIDMode(enum.Enum):
    POSITION = "position"
    DELTA = "delta"


@dataclass
class PIDParams:
    """Gains, limits and filter coefficients shared by a controller."""

    kp: float = 0.0
    ki: float = 0.0
    kd: float = 0.0
    sum_max: float = 0.0
    output_max: float = 0.0
    kd_filter: float = 0.0
    delta_filter: float = 0.0
    kf_1: float = 0.0
    kf_2: float = 0.0
    kf1_filter: float = 0.0
    kf2_filter: float = 0.0
    mode: PIDMode = PIDMode.POSITION


def _limit(value: float, maximum: float) -> float:
    if value > maximum:
        return maximum
    if value < -maximum:
        return -maximum
    return value


def _shift(history: list[float], newest: float) -> list[float]:
    return [newest, *history[:2]]


@dataclass
class PIDController:
    """Controller state; ``ref`` and ``fdb`` are set directly."""

    ref: float = 0.0
    fdb: float = 0.0
    err: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    err_lim: float = 0.0
    err_fdf: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    out_fdf: float = 0.0
    sum: float = 0.0
    output: float = 0.0
    err_watch: float = 0.0
    d_fil: LowPassFilter = field(default_factory=LowPassFilter)
    delta_fil: LowPassFilter = field(default_factory=LowPassFilter)
    kf1_fil: LowPassFilter = field(default_factory=LowPassFilter)
    kf2_fil: LowPassFilter = field(default_factory=LowPassFilter)

    def add_ref(self, inc: float) -> None:
        self.ref += inc

    def clear(self) -> None:
        """Reset set point, feedback, history and output (filters are kept)."""
        self.ref = 0.0
        self.fdb = 0.0
        self.err = [0.0, 0.0, 0.0]
        self.err_lim = 0.0
        self.err_fdf = [0.0, 0.0, 0.0]
        self.out_fdf = 0.0
        self.sum = 0.0
        self.output = 0.0
        self.err_watch = 0.0

    def _apply_coefficients(self, params: PIDParams) -> None:
        self.d_fil.coefficient = params.kd_filter
        self.delta_fil.coefficient = params.delta_filter
        self.kf1_fil.coefficient = params.kf1_filter
        self.kf2_fil.coefficient = params.kf2_filter

    def _anti_windup(self, params: PIDParams) -> float:
        if params.kp == 0:
            return 0.0
        return self.err_lim / params.kp

    def _feed_forward(self, params: PIDParams) -> float:
        self.err_fdf = _shift(self.err_fdf, self.ref)
        ref_d = differential(self.err_fdf, 1, 1)
        ref_dd = differential(self.err_fdf, 2, 1)
        return self.kf1_fil.update(params.kf_1 * ref_d) + self.kf2_fil.update(params.kf_2 * ref_dd)

    def calculate(self, params: PIDParams) -> float:
        """Run one control step and return the limited output."""
        self._apply_coefficients(params)
        error = self.ref - self.fdb
        self.err = _shift(self.err, error)

        if params.mode is PIDMode.POSITION:
            d_error = differential(self.err, 1, 1)
            self.out_fdf_pending = None
            out_fdf = self._feed_forward(params)
            self.err_watch = error
            self.sum = _limit(self.sum + error + self._anti_windup(params), params.sum_max)
            self.out_fdf = out_fdf
            self.output = (
                params.kp * error
                + params.ki * self.sum
                + params.kd * self.d_fil.update(d_error)
                + self.out_fdf
            )
        elif params.mode is PIDMode.DELTA:
            d_error = self.delta_fil.update(differential(self.err, 1, 1))
            dd_error = differential(self.err, 2, 1)
            out_fdf = self._feed_forward(params)
            self.err_watch = error
            self.sum = _limit(error + self._anti_windup(params), params.sum_max)
            self.out_fdf = out_fdf
            self.output += (
                params.kp * d_error
                + params.ki * self.sum
                + params.kd * self.d_fil.update(dd_error)
            )
            self.output += self.out_fdf

        raw = self.output
        self.output = _limit(self.output, params.output_max)
        self.err_lim = self.output - raw
        return self.output