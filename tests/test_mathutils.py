import math

import pytest

from polarisctl.mathutils import (
    SlopeParam,
    angle_to_rad,
    differential,
    fal,
    fsg,
    inv_sqrt,
    rad_to_angle,
    sign,
)


@pytest.mark.parametrize("value", [0.0, 0.3, -1.7, 12.5])
def test_angle_round_trip(value):
    assert angle_to_rad(rad_to_angle(value)) == pytest.approx(value)


def test_rad_to_angle_is_linear():
    assert rad_to_angle(math.pi / 2) * 2 == pytest.approx(rad_to_angle(math.pi))


@pytest.mark.parametrize("x,expected", [(3.5, 1), (-2.0, -1), (0.0, 0)])
def test_sign(x, expected):
    assert sign(x) == expected


def test_fsg_inside_and_outside_band():
    assert fsg(0.5, 1.0) == 1
    assert fsg(-0.5, 1.0) == 1
    assert fsg(5.0, 1.0) == 0
    assert fsg(-5.0, 1.0) == 0


@pytest.mark.parametrize("e", [0.05, 0.5, 2.0, 7.0])
def test_fal_is_odd(e):
    assert fal(-e, 0.5, 0.1) == pytest.approx(-fal(e, 0.5, 0.1))


def test_fal_linear_inside_band_with_unit_alpha():
    assert fal(0.05, 1.0, 0.1) == pytest.approx(0.05)


def test_fal_continuous_at_band_edge():
    zeta = 0.2
    eps = 1e-7
    assert fal(zeta - eps, 0.5, zeta) == pytest.approx(fal(zeta + eps, 0.5, zeta), rel=1e-4)


@pytest.mark.parametrize("x", [0.25, 1.0, 2.0, 9.81, 1000.0])
def test_inv_sqrt_close_to_exact(x):
    assert inv_sqrt(x) == pytest.approx(1 / math.sqrt(x), rel=2e-3)


def test_differential_scales_with_dt():
    values = [5.0, 3.0, 2.0]
    assert differential(values, 1, 2.0) * 2.0 == pytest.approx(differential(values, 1, 1.0))


def test_differential_non_positive_dt_means_one():
    values = [5.0, 3.0, 2.0]
    assert differential(values, 1, 0.0) == differential(values, 1, 1.0)
    assert differential(values, 2, -3.0) == differential(values, 2, 1.0)


def test_differential_second_order_of_linear_sequence_is_zero():
    assert differential([3.0, 2.0, 1.0], 2, 1.0) == pytest.approx(0.0)


def test_differential_other_order_returns_newest():
    assert differential([4.5, 1.0, 2.0], 3, 1.0) == 4.5


def test_slope_disabled_returns_target():
    assert SlopeParam(0.0, 2.0).calc_ref(0.0, 10.0) == 10.0
    assert SlopeParam(1.0, 0.0).calc_abs_ref(0.0, -10.0) == -10.0


def test_slope_steps_up_and_down():
    slope = SlopeParam(acc=1.0, dec=2.0)
    assert slope.calc_ref(0.0, 10.0) == 0.0 + slope.acc
    assert slope.calc_ref(10.0, 0.0) == 10.0 - slope.dec


def test_slope_reaches_target_without_overshoot():
    slope = SlopeParam(acc=0.7, dec=0.7)
    ref = 0.0
    seen = []
    for _ in range(50):
        ref = slope.calc_ref(ref, 5.0)
        seen.append(ref)
    assert ref == 5.0
    assert max(seen) <= 5.0


def test_abs_slope_negative_side_moves_toward_target():
    slope = SlopeParam(acc=1.0, dec=1.0)
    assert slope.calc_abs_ref(0.0, -10.0) == 0.0 - slope.acc
    ref = 0.0
    for _ in range(30):
        ref = slope.calc_abs_ref(ref, -10.0)
    assert ref == -10.0