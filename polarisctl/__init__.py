"""Control and state-estimation algorithms for mobile robots: math helpers, filters, PID, power limiting, Kalman and quaternion EKF, and inertial navigation."""

__version__ = "0.1.0"