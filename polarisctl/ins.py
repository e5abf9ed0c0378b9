"""Inertial navigation: frame transforms, mounting correction and the attitude task."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from .quaternion_ekf import QuaternionEKF

_DEG_PER_RAD = 57.295779513
_OFFSET_TOLERANCE = 0.001
GRAVITY = 9.81
DEFAULT_ACCEL_LPF = 0.0085

_XB = np.array([1.0, 0.0, 0.0])
_YB = np.array([0.0, 1.0, 0.0])
_ZB = np.array([0.0, 0.0, 1.0])


def _vector3(values: Sequence[float], name: str) -> np.ndarray:
    arr = np.array(values, dtype=float).reshape(-1)
    if arr.shape[0] != 3:
        raise ValueError(f"{name} must hold 3 values, got {arr.shape[0]}")
    return arr


def _quaternion(values: Sequence[float]) -> tuple[float, float, float, float]:
    arr = np.array(values, dtype=float).reshape(-1)
    if arr.shape[0] != 4:
        raise ValueError(f"quaternion must hold 4 values, got {arr.shape[0]}")
    return tuple(float(v) for v in arr)  # type: ignore[return-value]


def body_to_earth(vec: Sequence[float], q: Sequence[float]) -> np.ndarray:
    """Rotate a body-frame vector into the earth frame by quaternion ``q``."""
    x, y, z = _vector3(vec, "vector")
    q0, q1, q2, q3 = _quaternion(q)
    return np.array(
        [
            2.0 * ((0.5 - q2 * q2 - q3 * q3) * x + (q1 * q2 - q0 * q3) * y + (q1 * q3 + q0 * q2) * z),
            2.0 * ((q1 * q2 + q0 * q3) * x + (0.5 - q1 * q1 - q3 * q3) * y + (q2 * q3 - q0 * q1) * z),
            2.0 * ((q1 * q3 - q0 * q2) * x + (q2 * q3 + q0 * q1) * y + (0.5 - q1 * q1 - q2 * q2) * z),
        ]
    )


def earth_to_body(vec: Sequence[float], q: Sequence[float]) -> np.ndarray:
    """Rotate an earth-frame vector into the body frame by quaternion ``q``."""
    x, y, z = _vector3(vec, "vector")
    q0, q1, q2, q3 = _quaternion(q)
    return np.array(
        [
            2.0 * ((0.5 - q2 * q2 - q3 * q3) * x + (q1 * q2 + q0 * q3) * y + (q1 * q3 - q0 * q2) * z),
            2.0 * ((q1 * q2 - q0 * q3) * x + (0.5 - q1 * q1 - q3 * q3) * y + (q2 * q3 + q0 * q1) * z),
            2.0 * ((q1 * q3 + q0 * q2) * x + (q2 * q3 - q0 * q1) * y + (0.5 - q1 * q1 - q2 * q2) * z),
        ]
    )


def quaternion_update(q: Sequence[float], gx: float, gy: float, gz: float, dt: float) -> np.ndarray:
    """Integrate body rates (rad/s) over ``dt`` with one first-order step."""
    q0, q1, q2, q3 = _quaternion(q)
    hx, hy, hz = gx * 0.5 * dt, gy * 0.5 * dt, gz * 0.5 * dt
    return np.array(
        [
            q0 + (-q1 * hx - q2 * hy - q3 * hz),
            q1 + (q0 * hx + q2 * hz - q3 * hy),
            q2 + (q0 * hy - q1 * hz + q3 * hx),
            q3 + (q0 * hz + q1 * hy - q2 * hx),
        ]
    )


def quaternion_to_euler(q: Sequence[float]) -> tuple[float, float, float]:
    """Return ``(yaw, pitch, roll)`` in degrees for quaternion ``q``."""
    q0, q1, q2, q3 = _quaternion(q)
    yaw = math.atan2(2.0 * (q0 * q3 + q1 * q2), 2.0 * (q0 * q0 + q1 * q1) - 1.0) * _DEG_PER_RAD
    pitch = math.atan2(2.0 * (q0 * q1 + q2 * q3), 2.0 * (q0 * q0 + q3 * q3) - 1.0) * _DEG_PER_RAD
    sin_roll = max(-1.0, min(1.0, 2.0 * (q0 * q2 - q1 * q3)))
    roll = math.asin(sin_roll) * _DEG_PER_RAD
    return yaw, pitch, roll


def euler_to_quaternion(yaw: float, pitch: float, roll: float) -> np.ndarray:
    """Build the quaternion for ``yaw``, ``pitch`` and ``roll`` given in degrees."""
    half_yaw = yaw / _DEG_PER_RAD / 2
    half_pitch = pitch / _DEG_PER_RAD / 2
    half_roll = roll / _DEG_PER_RAD / 2
    cy, sy = math.cos(half_yaw), math.sin(half_yaw)
    cp, sp = math.cos(half_pitch), math.sin(half_pitch)
    cr, sr = math.cos(half_roll), math.sin(half_roll)
    return np.array(
        [
            cp * cr * cy + sp * sr * sy,
            sp * cr * cy - cp * sr * sy,
            sp * cr * sy + cp * sr * cy,
            cp * cr * sy - sp * sr * cy,
        ]
    )


@dataclass
class InstallCorrection:
    """Corrects sensor mounting offsets (degrees) and gyro scale errors."""

    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0
    scale: Sequence[float] = field(default_factory=lambda: (1.0, 1.0, 1.0))
    _matrix: Optional[np.ndarray] = field(default=None, init=False, repr=False)
    _last: tuple[float, float, float] = field(default=(0.0, 0.0, 0.0), init=False, repr=False)

    def _needs_rebuild(self) -> bool:
        if self._matrix is None:
            return True
        return any(
            abs(now - last) > _OFFSET_TOLERANCE
            for now, last in zip((self.yaw, self.pitch, self.roll), self._last)
        )

    def _build(self) -> np.ndarray:
        cy, sy = math.cos(self.yaw / _DEG_PER_RAD), math.sin(self.yaw / _DEG_PER_RAD)
        cp, sp = math.cos(self.pitch / _DEG_PER_RAD), math.sin(self.pitch / _DEG_PER_RAD)
        cr, sr = math.cos(self.roll / _DEG_PER_RAD), math.sin(self.roll / _DEG_PER_RAD)
        return np.array(
            [
                [cy * cr + sy * sp * sr, cp * sy, cy * sr - cr * sy * sp],
                [cy * sp * sr - cr * sy, cy * cp, -sy * sr - cy * cr * sp],
                [-cp * sr, sp, cp * cr],
            ]
        )

    @property
    def matrix(self) -> np.ndarray:
        """The rotation matrix currently in use."""
        if self._needs_rebuild():
            self._matrix = self._build()
        assert self._matrix is not None
        return self._matrix.copy()

    def apply(self, gyro: Sequence[float], accel: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
        """Return the corrected ``(gyro, accel)`` vectors."""
        gyro_vec = _vector3(gyro, "gyro")
        accel_vec = _vector3(accel, "accel")
        scale = _vector3(self.scale, "scale")
        if self._needs_rebuild():
            self._matrix = self._build()
        assert self._matrix is not None
        corrected_gyro = self._matrix @ (gyro_vec * scale)
        corrected_accel = self._matrix @ accel_vec
        self._last = (self.yaw, self.pitch, self.roll)
        return corrected_gyro, corrected_accel


class INS:
    """Attitude and motion-acceleration estimate from gyro and accelerometer samples."""

    def __init__(
        self,
        correction: Optional[InstallCorrection] = None,
        accel_lpf: float = DEFAULT_ACCEL_LPF,
        ekf: Optional[QuaternionEKF] = None,
    ) -> None:
        self.correction = correction if correction is not None else InstallCorrection()
        self.accel_lpf = accel_lpf
        self.ekf = ekf if ekf is not None else QuaternionEKF(10.0, 0.01, 10000000.0, 1.0, accel_lpf)

        self.gyro = np.zeros(3)
        self.accel = np.zeros(3)
        self.atanxz = 0.0
        self.atanyz = 0.0
        self.q = np.array([1.0, 0.0, 0.0, 0.0])
        self.xn = _XB.copy()
        self.yn = _YB.copy()
        self.zn = _ZB.copy()
        self.motion_accel_b = np.zeros(3)
        self.motion_accel_n = np.zeros(3)
        self.yaw = 0.0
        self.pitch = 0.0
        self.roll = 0.0
        self.yaw_total_angle = 0.0
        self.elapsed = 0.0

    def update(self, gyro: Sequence[float], accel: Sequence[float], dt: float) -> np.ndarray:
        """Process one sample (rad/s, m/s^2) taken ``dt`` seconds after the last one."""
        if self.accel_lpf + dt == 0:
            raise ValueError("dt plus the acceleration filter constant must not be zero")
        self.gyro, self.accel = self.correction.apply(gyro, accel)
        self.elapsed += dt

        ax, ay, az = (float(v) for v in self.accel)
        self.atanxz = -math.atan2(ax, az) * 180 / math.pi
        self.atanyz = math.atan2(ay, az) * 180 / math.pi

        gx, gy, gz = (float(v) for v in self.gyro)
        self.q = self.ekf.update(gx, gy, gz, ax, ay, az, dt)

        self.xn = body_to_earth(_XB, self.q)
        self.yn = body_to_earth(_YB, self.q)
        self.zn = body_to_earth(_ZB, self.q)

        gravity_b = earth_to_body((0.0, 0.0, GRAVITY), self.q)
        denominator = self.accel_lpf + dt
        self.motion_accel_b = (
            (self.accel - gravity_b) * dt / denominator
            + self.motion_accel_b * self.accel_lpf / denominator
        )
        self.motion_accel_n = body_to_earth(self.motion_accel_b, self.q)

        self.yaw = self.ekf.yaw
        self.pitch = self.ekf.pitch
        self.roll = self.ekf.roll
        self.yaw_total_angle = self.ekf.yaw_total_angle
        return self.q.copy()