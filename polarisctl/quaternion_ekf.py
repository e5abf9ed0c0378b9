"""Quaternion attitude EKF with gyro bias estimation and a chi-square test."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .kalman import KalmanFilter
from .mathutils import inv_sqrt

_DEG_PER_RAD = 57.295779513
_HALF_PI = 1.5707963
_CHI_SQUARE_THRESHOLD = 1e-8
_MAX_BIAS_VARIANCE = 10000.0
_ERROR_LIMIT = 50
_GRAVITY = 9.8
_GRAVITY_TOLERANCE = 0.5
_STABLE_GYRO_NORM = 0.3
_BIAS_STEP_PER_SECOND = 1e-2


class QuaternionEKF:
    """Attitude estimator over the state ``[q0, q1, q2, q3, bias_x, bias_y]``.

    The accelerometer direction is fused as the measurement. A chi-square
    test on the innovation rejects accelerations that disagree with the
    current attitude once the filter has converged; after more than 50
    rejections while the body is stable the filter falls back to fusing.
    """

    def __init__(
        self,
        process_noise1: float = 10.0,
        process_noise2: float = 0.001,
        measure_noise: float = 1e7,
        fading: float = 1.0,
        lpf: float = 0.0,
        initial_covariance: Optional[np.ndarray] = None,
    ) -> None:
        if fading <= 0:
            raise ValueError("fading coefficient must be positive")
        self.q_noise = process_noise1
        self.bias_noise = process_noise2
        self.r_noise = measure_noise
        self.chi_square_threshold = _CHI_SQUARE_THRESHOLD
        self.fading = min(fading, 1.0)
        self.accel_lpf = lpf

        self.converged = False
        self.stable = False
        self.error_count = 0
        self.update_count = 0
        self.adaptive_gain_scale = 1.0
        self.chi_square = 0.0
        self.orientation_cosine = np.zeros(3)
        self.dt = 0.0

        self.gyro = np.zeros(3)
        self.gyro_bias = np.zeros(3)
        self.accel = np.zeros(3)
        self.gyro_norm = 0.0
        self.accl_norm = 0.0

        self.q = np.array([1.0, 0.0, 0.0, 0.0])
        self.yaw = 0.0
        self.pitch = 0.0
        self.roll = 0.0
        self.yaw_angle_last = 0.0
        self.yaw_round_count = 0
        self.yaw_total_angle = 0.0

        kf = KalmanFilter(6, 0, 3)
        kf.xhat[0] = 1.0
        kf.on_measure = self._observe
        kf.after_xhat_minus = self._linearize_and_fade
        kf.after_pminus = self._set_h
        kf.after_set_k = self._xhat_update
        kf.skip_set_k = True
        kf.skip_xhat_update = True
        kf.F = np.eye(6)
        if initial_covariance is None:
            kf.P = np.eye(6)
        else:
            covariance = np.array(initial_covariance, dtype=float)
            if covariance.shape != (6, 6):
                raise ValueError("initial covariance must be a 6x6 matrix")
            kf.P = covariance
        self.kf = kf

        self.observed_P = kf.P.copy()
        self.observed_K = kf.K.copy()
        self.observed_H = kf.H.copy()

    def _observe(self, kf: KalmanFilter) -> None:
        self.observed_P = kf.P.copy()
        self.observed_K = kf.K.copy()
        self.observed_H = kf.H.copy()

    def _linearize_and_fade(self, kf: KalmanFilter) -> None:
        q0, q1, q2, q3 = (float(v) for v in kf.xhat_minus[:4])
        xhat_minus = kf.xhat_minus.copy()
        xhat_minus[:4] *= inv_sqrt(q0 * q0 + q1 * q1 + q2 * q2 + q3 * q3)
        kf.xhat_minus = xhat_minus

        half_dt = self.dt / 2
        F = kf.F.copy()
        F[0, 4] = q1 * half_dt
        F[0, 5] = q2 * half_dt
        F[1, 4] = -q0 * half_dt
        F[1, 5] = q3 * half_dt
        F[2, 4] = -q3 * half_dt
        F[2, 5] = -q0 * half_dt
        F[3, 4] = q2 * half_dt
        F[3, 5] = -q1 * half_dt
        kf.F = F

        P = kf.P.copy()
        for i in (4, 5):
            P[i, i] = min(P[i, i] / self.fading, _MAX_BIAS_VARIANCE)
        kf.P = P

    def _set_h(self, kf: KalmanFilter) -> None:
        d0, d1, d2, d3 = (2 * float(v) for v in kf.xhat_minus[:4])
        H = np.zeros((3, 6))
        H[0, :4] = (-d2, d3, -d0, d1)
        H[1, :4] = (d1, d0, d3, d2)
        H[2, :4] = (d0, -d1, -d2, d3)
        kf.H = H

    def _xhat_update(self, kf: KalmanFilter) -> None:
        kf.S = kf.H @ kf.P_minus @ kf.HT + kf.R
        s_inv = np.linalg.inv(kf.S)

        q0, q1, q2, q3 = (float(v) for v in kf.xhat_minus[:4])
        predicted = np.array(
            [
                2 * (q1 * q3 - q0 * q2),
                2 * (q0 * q1 + q2 * q3),
                q0 * q0 - q1 * q1 - q2 * q2 + q3 * q3,
            ]
        )
        self.orientation_cosine = np.arccos(np.minimum(np.abs(predicted), 1.0))

        residual = kf.z - predicted
        self.chi_square = float(residual @ s_inv @ residual)
        threshold = self.chi_square_threshold

        if self.chi_square < 0.5 * threshold:
            self.converged = True

        if self.chi_square > threshold and self.converged:
            self.error_count = self.error_count + 1 if self.stable else 0
            if self.error_count > _ERROR_LIMIT:
                self.converged = False
                kf.skip_p_update = False
            else:
                kf.xhat = kf.xhat_minus.copy()
                kf.P = kf.P_minus.copy()
                kf.skip_p_update = True
                return
        else:
            if self.chi_square > 0.1 * threshold and self.converged:
                self.adaptive_gain_scale = (threshold - self.chi_square) / (0.9 * threshold)
            else:
                self.adaptive_gain_scale = 1.0
            self.error_count = 0
            kf.skip_p_update = False

        K = kf.P_minus @ kf.HT @ s_inv * self.adaptive_gain_scale
        K[4:6, :] *= (self.orientation_cosine[:2] / _HALF_PI)[:, None]
        kf.K = K

        correction = K @ residual
        if self.converged:
            limit = _BIAS_STEP_PER_SECOND * self.dt
            correction[4:6] = np.clip(correction[4:6], -limit, limit)
        correction[3] = 0.0
        kf.xhat = kf.xhat_minus + correction

    def _set_transition(self, dt: float) -> None:
        hx, hy, hz = (0.5 * float(g) * dt for g in self.gyro)
        F = np.eye(6)
        F[0, 1:4] = (-hx, -hy, -hz)
        F[1, 0], F[1, 2], F[1, 3] = hx, hz, -hy
        F[2, 0], F[2, 1], F[2, 3] = hy, -hz, hx
        F[3, 0], F[3, 1], F[3, 2] = hz, hy, -hx
        self.kf.F = F

    def _update_angles(self) -> None:
        q0, q1, q2, q3 = (float(v) for v in self.q)
        self.yaw = math.atan2(2 * (q0 * q3 + q1 * q2), 2 * (q0 * q0 + q1 * q1) - 1) * _DEG_PER_RAD
        self.pitch = math.atan2(2 * (q0 * q1 + q2 * q3), 2 * (q0 * q0 + q3 * q3) - 1) * _DEG_PER_RAD
        sin_roll = max(-1.0, min(1.0, -2 * (q1 * q3 - q0 * q2)))
        self.roll = math.asin(sin_roll) * _DEG_PER_RAD

        if self.yaw - self.yaw_angle_last > 180.0:
            self.yaw_round_count -= 1
        elif self.yaw - self.yaw_angle_last < -180.0:
            self.yaw_round_count += 1
        self.yaw_total_angle = 360.0 * self.yaw_round_count + self.yaw
        self.yaw_angle_last = self.yaw

    def update(self, gx: float, gy: float, gz: float, ax: float, ay: float, az: float, dt: float) -> np.ndarray:
        """Fuse one gyro (rad/s) and accelerometer (m/s^2) sample; return the quaternion."""
        denominator = dt + self.accel_lpf
        if denominator == 0:
            raise ValueError("dt plus the accelerometer filter constant must not be zero")
        kf = self.kf
        self.dt = dt
        self.gyro = np.array([gx, gy, gz], dtype=float) - self.gyro_bias
        self._set_transition(dt)
        self._observe(kf)

        raw_accel = np.array([ax, ay, az], dtype=float)
        if self.update_count == 0:
            self.accel = raw_accel.copy()
        self.accel = self.accel * self.accel_lpf / denominator + raw_accel * dt / denominator

        accel_inv_norm = inv_sqrt(float(self.accel @ self.accel))
        kf.measured_vector = self.accel * accel_inv_norm

        self.gyro_norm = 1.0 / inv_sqrt(float(self.gyro @ self.gyro))
        self.accl_norm = 1.0 / accel_inv_norm
        self.stable = (
            self.gyro_norm < _STABLE_GYRO_NORM
            and _GRAVITY - _GRAVITY_TOLERANCE < self.accl_norm < _GRAVITY + _GRAVITY_TOLERANCE
        )

        kf.Q = np.diag([self.q_noise * dt] * 4 + [self.bias_noise * dt] * 2)
        kf.R = np.eye(3) * self.r_noise

        filtered = kf.update()
        self.q = np.array(filtered[:4], dtype=float)
        self.gyro_bias = np.array([filtered[4], filtered[5], 0.0])

        self._update_angles()
        self.update_count += 1
        return self.q.copy()