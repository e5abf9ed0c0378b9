# polarisctl

Control and state-estimation building blocks for small mobile robots. The
code is plain Python and uses numpy for the matrix work.

- `polarisctl.mathutils`: angle conversion (`rad_to_angle`, `angle_to_rad`),
  `sign`, the `fal` and `fsg` nonlinearities, the fast approximate
  `inv_sqrt`, finite differences (`differential`) and ramp references through
  `SlopeParam.calc_ref` and `SlopeParam.calc_abs_ref`.
- `polarisctl.filters`: `LowPassFilter`, which passes input through when its
  coefficient is outside (0, 1). `MovingAverageFilter`, whose window is 10
  samples by default, starts filled with zeros and can be set to another
  length. `BesselFilter` is a third-order IIR low pass with fixed
  coefficients.
- `polarisctl.buffers`: little-endian packing and unpacking of scalars in
  byte buffers (`pack_float`, `unpack_float`, `pack_u16`, `unpack_u16`,
  `unpack_i16`, `pack_u32`, `unpack_u32`). The unpack functions raise
  `ValueError` when the buffer is too short.
- `polarisctl.pid`: `PIDController` with position and delta modes
  (`PIDMode.POSITION`, `PIDMode.DELTA`), integral limiting with anti-windup,
  output limiting and low-pass-filtered feed-forward. It is configured through
  `PIDParams`.
- `polarisctl.power`: `TyrePowerModel` estimates the power of one wheel motor
  from current and speed. `ChassisPowerLimiter` computes a smoothed scaling
  gain from motor speeds and commanded outputs that keeps the chassis within a
  power budget.
- `polarisctl.kalman`: `KalmanFilter`, a general linear Kalman filter. Its
  `update` step can be broken into `measure`, `xhat_minus_update`,
  `pminus_update`, `set_k`, `xhat_update` and `p_update`, with optional hooks
  between the steps and a skip flag for each. With `use_auto_adjustment` set,
  zero entries of the measurement vector count as missing, and `H`, `R`, `K`
  and `z` are rebuilt from the rest.
- `polarisctl.quaternion_ekf`: `QuaternionEKF`, an attitude estimator over a
  quaternion and two gyro-bias terms. It fuses the accelerometer direction and
  applies a chi-square test to the innovation with an adaptive gain.
- `polarisctl.ins`: frame transforms (`body_to_earth`, `earth_to_body`),
  quaternion integration and conversion (`quaternion_update`,
  `quaternion_to_euler`, `euler_to_quaternion`), mounting correction
  (`InstallCorrection`) and `INS`, which combines them into attitude and
  motion-acceleration estimates.

## Installation

```
pip install polarisctl
```

## Examples

A position PID step:

```python
from polarisctl.pid import PIDController, PIDMode, PIDParams

params = PIDParams(kp=1.5, ki=0.01, kd=0.2, sum_max=1000, output_max=5000,
                   mode=PIDMode.POSITION)
pid = PIDController()
pid.ref = 100.0
pid.fdb = 80.0
print(pid.calculate(params))
```

A two-state Kalman filter:

```python
import numpy as np
from polarisctl.kalman import KalmanFilter

kf = KalmanFilter(2, 0, 1)
kf.F = np.array([[1.0, 0.01], [0.0, 1.0]])
kf.H = np.array([[1.0, 0.0]])
kf.Q = np.eye(2) * 1e-3
kf.R = np.array([[0.1]])
kf.P = np.eye(2)

for reading in (0.10, 0.12, 0.15):
    kf.measured_vector = [reading]
    state = kf.update()
print(state)
```

Attitude from IMU samples:

```python
from polarisctl.ins import INS

ins = INS()
ins.update(gyro=(0.0, 0.0, 0.0), accel=(0.0, 0.0, 9.81), dt=0.001)
print(ins.yaw, ins.pitch, ins.roll)
```

## What this package does not do

It is a library of algorithms only. It does not read sensors, drive motors,
talk to a remote controller or a referee system, or schedule control loops.
The caller supplies the samples, the time steps and the timing, and has no
command-line tool to run.

## Running the tests

```
pip install -e ".[test]"
pytest
```