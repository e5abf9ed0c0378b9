import math

import numpy as np
import pytest

from polarisctl.ins import (
    INS,
    InstallCorrection,
    body_to_earth,
    earth_to_body,
    euler_to_quaternion,
    quaternion_to_euler,
    quaternion_update,
)

IDENTITY = [1.0, 0.0, 0.0, 0.0]


def test_identity_quaternion_leaves_vector_unchanged():
    vec = [0.3, -1.2, 4.5]
    assert np.allclose(body_to_earth(vec, IDENTITY), vec)
    assert np.allclose(earth_to_body(vec, IDENTITY), vec)


def test_euler_zero_is_identity_quaternion():
    assert np.allclose(euler_to_quaternion(0.0, 0.0, 0.0), IDENTITY)


@pytest.mark.parametrize("angles", [(30.0, 10.0, -20.0), (-120.0, 45.0, 5.0), (170.0, -60.0, 30.0)])
def test_frame_round_trip(angles):
    q = euler_to_quaternion(*angles)
    vec = np.array([1.5, -0.7, 2.2])
    assert np.allclose(earth_to_body(body_to_earth(vec, q), q), vec)


@pytest.mark.parametrize("angles", [(30.0, 10.0, -20.0), (-120.0, 45.0, 5.0), (0.0, -80.0, 60.0)])
def test_rotation_preserves_length(angles):
    q = euler_to_quaternion(*angles)
    vec = np.array([3.0, 4.0, 12.0])
    assert np.linalg.norm(body_to_earth(vec, q)) == pytest.approx(np.linalg.norm(vec))


@pytest.mark.parametrize("angles", [(30.0, 10.0, -20.0), (-120.0, 45.0, 5.0), (90.0, -30.0, 60.0)])
def test_euler_round_trip(angles):
    q = euler_to_quaternion(*angles)
    assert np.linalg.norm(q) == pytest.approx(1.0)
    assert quaternion_to_euler(q) == pytest.approx(angles, abs=1e-6)


def test_yaw_quarter_turn_maps_x_to_y():
    q = euler_to_quaternion(90.0, 0.0, 0.0)
    assert np.allclose(body_to_earth([1.0, 0.0, 0.0], q), [0.0, 1.0, 0.0], atol=1e-9)


def test_quaternion_update_zero_rate_is_unchanged():
    q = euler_to_quaternion(20.0, 5.0, -3.0)
    assert np.allclose(quaternion_update(q, 0.0, 0.0, 0.0, 0.01), q)


def test_quaternion_update_integrates_yaw_rate():
    q = np.array(IDENTITY)
    rate = 0.5
    dt = 0.001
    for _ in range(1000):
        q = quaternion_update(q, 0.0, 0.0, rate, dt)
        q = q / np.linalg.norm(q)
    yaw, pitch, roll = quaternion_to_euler(q)
    assert yaw == pytest.approx(math.degrees(rate), rel=1e-3)
    assert pitch == pytest.approx(0.0, abs=1e-9)
    assert roll == pytest.approx(0.0, abs=1e-9)


def test_quaternion_update_does_not_mutate_input():
    q = [1.0, 0.0, 0.0, 0.0]
    quaternion_update(q, 1.0, 2.0, 3.0, 0.1)
    assert q == IDENTITY


def test_bad_quaternion_length_raises():
    with pytest.raises(ValueError):
        body_to_earth([1.0, 0.0, 0.0], [1.0, 0.0, 0.0])


def test_default_correction_is_identity():
    corr = InstallCorrection()
    gyro, accel = corr.apply([0.1, 0.2, 0.3], [1.0, 2.0, 9.0])
    assert np.allclose(gyro, [0.1, 0.2, 0.3])
    assert np.allclose(accel, [1.0, 2.0, 9.0])


def test_correction_yaw_offset_rotates():
    corr = InstallCorrection(yaw=90.0)
    gyro, _ = corr.apply([1.0, 0.0, 0.0], [0.0, 0.0, 0.0])
    assert np.allclose(gyro, [0.0, -1.0, 0.0], atol=1e-9)


def test_correction_scale_applies_to_gyro_only():
    corr = InstallCorrection(scale=(2.0, 1.0, 1.0))
    gyro, accel = corr.apply([1.0, 1.0, 1.0], [1.0, 1.0, 1.0])
    assert np.allclose(gyro, [2.0, 1.0, 1.0])
    assert np.allclose(accel, [1.0, 1.0, 1.0])


def test_correction_matrix_is_orthonormal():
    corr = InstallCorrection(yaw=25.0, pitch=-10.0, roll=40.0)
    m = corr.matrix
    assert np.allclose(m @ m.T, np.eye(3))


def test_correction_follows_offset_change():
    corr = InstallCorrection()
    first, _ = corr.apply([1.0, 0.0, 0.0], [0.0, 0.0, 1.0])
    corr.yaw = 90.0
    second, _ = corr.apply([1.0, 0.0, 0.0], [0.0, 0.0, 1.0])
    assert np.allclose(first, [1.0, 0.0, 0.0])
    assert np.allclose(second, InstallCorrection(yaw=90.0).apply([1.0, 0.0, 0.0], [0.0, 0.0, 1.0])[0])


def test_correction_rejects_short_vector():
    with pytest.raises(ValueError):
        InstallCorrection().apply([1.0, 0.0], [0.0, 0.0, 1.0])


def test_ins_stationary_stays_level():
    ins = INS()
    for _ in range(200):
        q = ins.update([0.0, 0.0, 0.0], [0.0, 0.0, 9.81], 0.001)
    assert np.allclose(q, IDENTITY, atol=1e-6)
    assert ins.yaw == pytest.approx(0.0, abs=1e-4)
    assert ins.pitch == pytest.approx(0.0, abs=1e-4)
    assert ins.roll == pytest.approx(0.0, abs=1e-4)
    assert np.allclose(ins.zn, [0.0, 0.0, 1.0], atol=1e-6)
    assert np.allclose(ins.motion_accel_b, [0.0, 0.0, 0.0], atol=1e-4)
    assert ins.atanxz == pytest.approx(0.0)
    assert ins.atanyz == pytest.approx(0.0)


def test_ins_basis_vectors_stay_orthonormal():
    ins = INS()
    for _ in range(100):
        ins.update([0.0, 0.0, 0.5], [0.0, 0.0, 9.81], 0.001)
    basis = np.vstack([ins.xn, ins.yn, ins.zn])
    assert np.allclose(basis @ basis.T, np.eye(3), atol=1e-5)
    assert ins.yaw > 0.0
    assert ins.yaw_total_angle == pytest.approx(ins.yaw)


def test_ins_tilt_angles_follow_accel():
    ins = INS()
    ins.update([0.0, 0.0, 0.0], [0.0, 9.81, 9.81], 0.001)
    assert ins.atanyz == pytest.approx(45.0)
    assert ins.atanxz == pytest.approx(0.0)


def test_ins_rejects_degenerate_dt():
    ins = INS(accel_lpf=0.01)
    with pytest.raises(ValueError):
        ins.update([0.0, 0.0, 0.0], [0.0, 0.0, 9.81], -0.01)


def test_ins_rejects_bad_vector():
    ins = INS()
    with pytest.raises(ValueError):
        ins.update([0.0, 0.0], [0.0, 0.0, 9.81], 0.001)