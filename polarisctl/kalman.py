"""Linear Kalman filter with optional automatic measurement selection."""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

Hook = Optional[Callable[["KalmanFilter"], None]]


class KalmanFilter:
    """Discrete Kalman filter over state ``x``, control ``u`` and measurement ``z``.

    Each step copies ``measured_vector`` into ``z``, clears it, and copies
    ``control_vector`` into ``u``. When ``use_auto_adjustment`` is set,
    only the non-zero measurements are used. ``H``, ``R``, ``K`` and ``z``
    are then rebuilt from ``measurement_map`` (1-based state indices),
    ``measurement_degree`` and ``r_diagonal``.

    Optional hooks run between the stages of :meth:`update`. Each skip
    flag switches off one stage.
    """

    def __init__(self, x_size: int, u_size: int, z_size: int) -> None:
        if x_size <= 0:
            raise ValueError("state size must be positive")
        if u_size < 0 or z_size < 0:
            raise ValueError("control and measurement sizes must not be negative")
        self.x_size = x_size
        self.u_size = u_size
        self.z_size = z_size

        self.use_auto_adjustment = False
        self.measurement_valid_num = 0
        self.measurement_map = np.zeros(z_size, dtype=int)
        self.measurement_degree = np.zeros(z_size)
        self.r_diagonal = np.zeros(z_size)
        self.state_min_variance = np.zeros(x_size)

        self.filtered_value = np.zeros(x_size)
        self.measured_vector = np.zeros(z_size)
        self.control_vector = np.zeros(u_size)

        self.xhat = np.zeros(x_size)
        self.xhat_minus = np.zeros(x_size)
        self.u = np.zeros(u_size)
        self.z = np.zeros(z_size)
        self.P = np.zeros((x_size, x_size))
        self.P_minus = np.zeros((x_size, x_size))
        self.F = np.zeros((x_size, x_size))
        self.B = np.zeros((x_size, u_size))
        self.H = np.zeros((z_size, x_size))
        self.Q = np.zeros((x_size, x_size))
        self.R = np.zeros((z_size, z_size))
        self.K = np.zeros((x_size, z_size))
        self.S = np.zeros((z_size, z_size))

        self.skip_xhat_minus = False
        self.skip_pminus = False
        self.skip_set_k = False
        self.skip_xhat_update = False
        self.skip_p_update = False

        self.on_measure: Hook = None
        self.after_xhat_minus: Hook = None
        self.after_pminus: Hook = None
        self.after_set_k: Hook = None
        self.after_xhat_update: Hook = None
        self.after_p_update: Hook = None
        self.after_filter: Hook = None

    @property
    def FT(self) -> np.ndarray:
        return self.F.T

    @property
    def HT(self) -> np.ndarray:
        return self.H.T

    def _take_vector(self, values, size: int, name: str) -> np.ndarray:
        arr = np.array(values, dtype=float).reshape(-1)
        if arr.shape[0] != size:
            raise ValueError(f"{name} must hold {size} values, got {arr.shape[0]}")
        return arr

    def _auto_adjust(self) -> None:
        z_all = self._take_vector(self.measured_vector, self.z_size, "measured_vector")
        self.measured_vector = np.zeros(self.z_size)

        valid = [i for i, value in enumerate(z_all) if value != 0]
        self.measurement_valid_num = len(valid)
        H = np.zeros((len(valid), self.x_size))
        for row, i in enumerate(valid):
            column = int(self.measurement_map[i]) - 1
            if not 0 <= column < self.x_size:
                raise ValueError(
                    f"measurement {i} maps to state {column + 1}, outside 1..{self.x_size}"
                )
            H[row, column] = self.measurement_degree[i]
        self.z = z_all[valid]
        self.H = H
        self.R = np.diag(np.asarray(self.r_diagonal, dtype=float)[valid])
        self.K = np.zeros((self.x_size, len(valid)))

    def measure(self) -> None:
        """Load the pending measurement and control vectors."""
        if self.use_auto_adjustment:
            self._auto_adjust()
        else:
            self.z = self._take_vector(self.measured_vector, self.z_size, "measured_vector")
            self.measured_vector = np.zeros(self.z_size)
        self.u = self._take_vector(self.control_vector, self.u_size, "control_vector")

    def xhat_minus_update(self) -> None:
        """Prior state: ``x'(k) = F x(k-1) + B u``."""
        if self.skip_xhat_minus:
            return
        if self.u_size > 0:
            self.xhat_minus = self.F @ self.xhat + self.B @ self.u
        else:
            self.xhat_minus = self.F @ self.xhat

    def pminus_update(self) -> None:
        """Prior covariance: ``P'(k) = F P(k-1) F^T + Q``."""
        if self.skip_pminus:
            return
        self.P_minus = self.F @ self.P @ self.FT + self.Q

    def set_k(self) -> None:
        """Gain: ``K = P' H^T (H P' H^T + R)^-1``."""
        if self.skip_set_k:
            return
        self.S = self.H @ self.P_minus @ self.HT + self.R
        self.K = self.P_minus @ self.HT @ np.linalg.inv(self.S)

    def xhat_update(self) -> None:
        """Posterior state: ``x(k) = x'(k) + K (z - H x'(k))``."""
        if self.skip_xhat_update:
            return
        self.xhat = self.xhat_minus + self.K @ (self.z - self.H @ self.xhat_minus)

    def p_update(self) -> None:
        """Posterior covariance: ``P(k) = P'(k) - K H P'(k)``."""
        if self.skip_p_update:
            return
        self.P = self.P_minus - self.K @ self.H @ self.P_minus

    @staticmethod
    def _run(hook: Hook, kf: "KalmanFilter") -> None:
        if hook is not None:
            hook(kf)

    def update(self) -> np.ndarray:
        """Run one full filter step and return the filtered state."""
        self.measure()
        self._run(self.on_measure, self)

        self.xhat_minus_update()
        self._run(self.after_xhat_minus, self)

        self.pminus_update()
        self._run(self.after_pminus, self)

        if self.measurement_valid_num != 0 or not self.use_auto_adjustment:
            self.set_k()
            self._run(self.after_set_k, self)
            self.xhat_update()
            self._run(self.after_xhat_update, self)
            self.p_update()
        else:
            self.xhat = self.xhat_minus.copy()
            self.P = self.P_minus.copy()

        self._run(self.after_p_update, self)

        diagonal = np.maximum(np.diag(self.P), self.state_min_variance)
        self.P = self.P.copy()
        np.fill_diagonal(self.P, diagonal)

        self.filtered_value = self.xhat.copy()
        self._run(self.after_filter, self)
        return self.filtered_value