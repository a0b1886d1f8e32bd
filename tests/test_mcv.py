#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
import json
import pytest
import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st
from softmag.mcv import (PermeabilityCurve, Axis, MUE0, mix,
                         resample_bh, sort_unique, blend_knots)
from softmag.errors import DataError, RangeError, DimensionError
from softmag.units import Quantity

# M270-50A
H = [0.0, 11.57, 22.11, 31.71, 40.47, 48.50, 55.29, 64.02, 75.66, 89.24,
     107.67, 134.83, 179.45, 276.45, 582.98, 1583.11, 3578.65, 6665.91,
     11303.32, 18871.00, 29765.16, 45905.16, 69372.42, 102918.79,
     150142.01, 215692.99, 219224.15]
B = [0.0, 0.0970, 0.1940, 0.2910, 0.3880, 0.4851, 0.5821, 0.6791, 0.7761,
     0.8731, 0.9701, 1.0672, 1.1642, 1.2614, 1.3588, 1.4571, 1.5566, 1.6576,
     1.7606, 1.8674, 1.9674, 2.0674, 2.1674, 2.2674, 2.3674, 2.4674, 2.4720]


@pytest.fixture
def m270():
    return PermeabilityCurve.from_magnetization(H, B)


@pytest.fixture
def m270_b():
    return PermeabilityCurve.from_induction(B, H)


def test_knots_start_at_permeability_maximum(m270):
    assert m270.axis is Axis.H
    assert m270.x[0] == pytest.approx(64.02)
    assert m270.x[-1] == pytest.approx(219224.15)
    assert len(m270.x) == len(H) - 7


def test_interpolates_measured_points(m270):
    for h, b in zip(H[7:], B[7:]):
        assert m270.muer_h(h) == pytest.approx(b/MUE0/h, rel=1e-9)
        assert m270.b(h) == pytest.approx(b, rel=1e-9)


def test_constant_below_maximum(m270):
    mumax = B[7]/MUE0/H[7]
    assert m270.muer_h(0.0) == pytest.approx(mumax)
    assert m270.muer_h(20.0) == pytest.approx(mumax)
    assert m270.muer_b(0.0) == pytest.approx(mumax)


def test_monotonic_far_beyond_data(m270):
    h = np.concatenate((np.linspace(0, 3e5, 3001), np.logspace(5.5, 9, 200)))
    mur = m270.muer_h(h)
    assert np.all(np.isfinite(mur))
    assert np.all(mur > 0)
    assert np.all(np.diff(mur) <= 1e-12*mur[:-1])
    # saturation: slope of B(H) approaches vacuum permeability
    assert mur[-1] == pytest.approx(1.0, abs=1e-2)
    b = m270.b(h)
    assert np.all(np.diff(b) >= 0)


def test_monotonic_b_axis(m270_b):
    b = np.linspace(0, 10, 2001)
    mur = m270_b.muer_b(b)
    assert np.all(np.isfinite(mur))
    assert np.all(mur > 0)
    assert np.all(np.diff(mur) <= 1e-12*mur[:-1])
    assert np.all(np.diff(m270_b.h(b)) > 0)


def test_tail_keeps_polarization(m270):
    jn = B[-1] - MUE0*H[-1]
    for h in (3e5, 1e6, 1e7):
        assert m270.b(h) - MUE0*h == pytest.approx(jn, rel=1e-9)


@pytest.mark.parametrize("h", [30.0, 100.0, 1000.0, 12000.0, 1e5, 5e5, 2e6])
def test_cross_axis_consistency(m270, h):
    b = m270.b(h)
    assert m270.muer_b(b) == pytest.approx(m270.muer_h(h), rel=1e-6)
    assert m270.h(b) == pytest.approx(h, rel=1e-6)


@pytest.mark.parametrize("b", [0.1, 0.5, 1.0, 1.5, 2.0, 2.47, 3.0])
def test_cross_axis_consistency_b_axis(m270_b, b):
    h = m270_b.h(b)
    assert m270_b.muer_h(h) == pytest.approx(m270_b.muer_b(b), rel=1e-6)


def test_native_axes_agree_at_knots(m270, m270_b):
    for h, b in zip(H[8:-1], B[8:-1]):
        assert m270_b.muer_b(b) == pytest.approx(m270.muer_h(h), rel=1e-9)


def test_permeability_scenario():
    curve = PermeabilityCurve.from_permeability(
        [0, 1, 2, 5], [1, 0.9, 0.5, 0.05])
    assert curve(1) == pytest.approx(0.9)
    assert curve(5) < curve(3) < curve(2)
    far = curve(100)
    assert np.isfinite(far)
    assert 0 < far <= curve(5)


def test_scalar_and_array_results(m270):
    assert isinstance(m270.muer_h(100), float)
    h = np.array([[10.0, 100.0], [1000.0, 1e4]])
    mur = m270.muer_h(h)
    assert mur.shape == (2, 2)
    assert mur[1, 0] == pytest.approx(m270.muer_h(1000.0))
    assert m270.muer_h([]).shape == (0,)
    nuer = m270.nuer_b([0.5, 1.5])
    assert nuer == pytest.approx(1/m270.muer_b(np.array([0.5, 1.5])))


def test_quantity_input(m270):
    assert m270.muer_h(Quantity(1.0, 'kA/m')) == pytest.approx(
        m270.muer_h(1000.0))
    assert m270.muer_b(Quantity(1500.0, 'mT')) == pytest.approx(
        m270.muer_b(1.5))
    with pytest.raises(DimensionError):
        m270.muer_h(Quantity(1.5, 'T'))


@pytest.mark.parametrize("value", [-1.0, np.nan, np.inf, [1.0, -2.0]])
def test_invalid_query(m270, value):
    with pytest.raises(RangeError):
        m270.muer_h(value)
    with pytest.raises(RangeError):
        m270.muer_b(value)


def test_invalid_query_names_value(m270):
    with pytest.raises(RangeError, match='-2'):
        m270.muer_h([1.0, -2.0])


@pytest.mark.parametrize("mixture", ['series', 'parallel'])
def test_fillfac_lowers_permeability(m270, mixture):
    mixed = PermeabilityCurve.from_magnetization(H, B, fillfac=0.95,
                                                 mixture=mixture)
    assert mixed.fillfac == 0.95
    assert mixed.mixture == mixture
    h = np.logspace(0, 8, 400)
    assert np.all(mixed.muer_h(h) < m270.muer_h(h))


def test_fillfac_series_at_knots(m270):
    mixed = PermeabilityCurve.from_magnetization(H, B, fillfac=0.95)
    for h, b in zip(H[7:], B[7:]):
        mur = b/MUE0/h
        assert mixed.muer_h(h) == pytest.approx(mur/(0.95 + 0.05*mur),
                                                rel=1e-9)


def test_fillfac_default_from_config():
    mixed = PermeabilityCurve.from_magnetization(
        H, B, fillfac=0.9, config={'mixture': 'parallel'})
    assert mixed.mixture == 'parallel'
    mur = B[10]/MUE0/H[10]
    assert mixed.muer_h(H[10]) == pytest.approx(0.9*mur + 0.1, rel=1e-9)


def test_mix():
    assert mix(1.0, 0.5) == pytest.approx(1.0)
    assert mix(1000.0, 0.95) == pytest.approx(1/(0.95/1000 + 0.05))
    assert mix(1000.0, 0.95, 'parallel') == pytest.approx(950.05)
    with pytest.raises(DataError):
        mix(1000.0, 0.95, 'diagonal')


@pytest.mark.parametrize("fillfac", [0, -0.1, 1.2, 'x'])
def test_invalid_fillfac(fillfac):
    with pytest.raises(DataError):
        PermeabilityCurve.from_magnetization(H, B, fillfac=fillfac)


def test_single_point():
    with pytest.raises(DataError):
        PermeabilityCurve.from_permeability([1.0], [100.0])
    with pytest.raises(DataError):
        PermeabilityCurve.from_magnetization([0, 10.0], [0, 1.0])


def test_duplicates():
    curve = PermeabilityCurve.from_permeability(
        [0, 1, 1, 2], [100, 50, 50, 40])
    assert curve.x.tolist() == [0, 1, 2]
    with pytest.raises(DataError, match='conflicting'):
        PermeabilityCurve.from_permeability([0, 1, 1, 2], [100, 50, 60, 40])


def test_sort_unique():
    x, y = sort_unique(np.array([2.0, 0.0, 1.0, 0.0]),
                       np.array([3.0, 1.0, 2.0, 1.0]))
    assert x.tolist() == [0.0, 1.0, 2.0]
    assert y.tolist() == [1.0, 2.0, 3.0]


@pytest.mark.parametrize("h, b", [
    ([0, 10, np.nan], [0, 1, 1.5]),
    ([0, 10, 20], [0, 1, np.inf]),
    ([0, 10, 20], [0, 1]),
    ([0, -10, 20], [0, 1, 1.5]),
    ([0, 10, None], [0, 1, 1.5]),
])
def test_invalid_data(h, b):
    with pytest.raises(DataError):
        PermeabilityCurve.from_magnetization(h, b)


def test_invalid_permeability():
    with pytest.raises(DataError):
        PermeabilityCurve.from_permeability([0, 1, 2], [100, 0, 10])


def test_increasing_permeability():
    with pytest.raises(DataError):
        PermeabilityCurve.from_permeability([1, 2, 3], [10, 20, 30])


def test_running_minimum():
    curve = PermeabilityCurve.from_permeability(
        [1, 2, 3, 4, 5], [100, 80, 85, 75, 68])
    assert curve.mur == pytest.approx([100, 80, 80, 75, 68], rel=1e-12)
    x = np.linspace(0, 10, 501)
    mur = curve(x)
    assert np.all(np.diff(mur) <= 1e-12*mur[:-1])
    assert np.all(np.diff(mur*x) >= 0)


def test_field_strength_floor():
    # B would decrease from 2 to 5 A/m
    curve = PermeabilityCurve.from_permeability(
        [0, 1, 2, 5], [1, 0.9, 0.5, 0.05])
    assert curve(5) == pytest.approx(0.5*(2.001/5.001)**0.999, rel=1e-9)
    assert curve(1) == pytest.approx(0.9)


@pytest.mark.parametrize("mur", [[1000, 536, 290], [1000, 520, 270],
                                 [1000, 510, 256], [1000, 400, 200]])
def test_steep_knee(mur):
    curve = PermeabilityCurve.from_permeability([10, 20, 40], mur)
    assert curve(10) == pytest.approx(1000)
    h = np.linspace(10, 40, 601)
    b = curve.b(h)
    assert np.all(np.diff(b) > 0)
    assert curve.h(b) == pytest.approx(h, rel=1e-6)
    assert curve.muer_b(b) == pytest.approx(curve.muer_h(h), rel=1e-6)


def test_steep_knee_keeps_measured_points():
    curve = PermeabilityCurve.from_permeability([10, 20, 40],
                                                [1000, 536, 290])
    assert len(curve.x) == 5
    for h, mur in ((10, 1000), (20, 536), (40, 290)):
        assert h in curve.x.tolist()
        assert curve(h) == pytest.approx(mur, rel=1e-9)


def test_blend_knots():
    u = np.log([10.0, 20.0])
    s = np.log([1000.0, 536.0])
    assert blend_knots(u, s, np.array([-0.9, -0.9])) == []
    knots = blend_knots(u, s, np.array([0.0, -0.9]))
    assert len(knots) == 2
    (u1, s1, c1), (u2, s2, c2) = knots
    assert u[0] < u1 < u2 < u[1]
    assert s[0] > s1 > s2 > s[1]
    assert c1 == c2
    assert -1 < c1 < 0


def test_polarization(m270):
    j = np.array(B) - MUE0*np.array(H)
    curve = PermeabilityCurve.from_polarization(H, j)
    for h in (50.0, 500.0, 5000.0, 5e4, 5e5):
        assert curve.muer_h(h) == pytest.approx(m270.muer_h(h), rel=1e-9)


def test_resample_bh():
    h, b = resample_bh(H, B, step=10.0, tol=0.02)
    assert h[0] == 0 and b[0] == 0
    assert h[-1] == H[-1] and b[-1] == B[-1]
    assert np.all(np.diff(h) > 0)
    assert len(h) < H[-1]/10
    mu = b[1:-1]/h[1:-1]
    assert np.all(np.abs(np.diff(mu)) > 0.02*mu[:-1])


def test_resampled_curve():
    curve = PermeabilityCurve.from_magnetization(H, B, resample=True)
    assert curve.x[0] > 0
    assert curve.muer_b(1.5) == pytest.approx(
        PermeabilityCurve.from_magnetization(H, B).muer_b(1.5), rel=0.1)


def test_dict_roundtrip(m270):
    d = json.loads(json.dumps(m270.to_dict()))
    curve = PermeabilityCurve.from_dict(d)
    h = np.logspace(0, 7, 50)
    assert np.array_equal(curve.muer_h(h), m270.muer_h(h))
    b = np.linspace(0, 3, 20)
    assert np.array_equal(curve.muer_b(b), m270.muer_b(b))
    assert curve.fillfac == m270.fillfac


def test_from_raw_dict(m270):
    curve = PermeabilityCurve.from_dict(dict(hi=H, bi=B))
    assert curve.muer_h(1000.0) == pytest.approx(m270.muer_h(1000.0))
    curve = PermeabilityCurve.from_dict(dict(hi=H, bi=B, axis='B',
                                             fillfac=0.95))
    assert curve.axis is Axis.B
    assert curve.fillfac == 0.95
    with pytest.raises(DataError):
        PermeabilityCurve.from_dict(dict(x=[1, 2]))


def test_bh_knots(m270):
    knots = m270.bh()
    assert knots['hi'] == pytest.approx(H[7:])
    assert knots['bi'] == pytest.approx(B[7:], rel=1e-9)


def test_immutable(m270):
    with pytest.raises(ValueError):
        m270.mur[0] = 1.0


# steps of ln(H) and ratios d ln(B)/d ln(H) of increasing B with
# non-increasing permeability
steps = st.lists(st.tuples(st.floats(min_value=0.05, max_value=1.5),
                           st.floats(min_value=0.01, max_value=1.0)),
                 min_size=1, max_size=8)


def measurements(h0, b0, steps):
    dh = np.array([0.0] + [d for d, q in steps])
    db = np.array([0.0] + [q*d for d, q in steps])
    return h0*np.exp(np.cumsum(dh)), b0*np.exp(np.cumsum(db))


@given(h0=st.floats(min_value=1.0, max_value=100.0),
       b0=st.floats(min_value=0.01, max_value=1.0),
       steps=steps)
@settings(max_examples=50, deadline=None)
def test_curve_properties(h0, b0, steps):
    h, b = measurements(h0, b0, steps)
    curve = PermeabilityCurve.from_magnetization(h, b)
    assert curve.muer_h(h) == pytest.approx(b/(MUE0*h), rel=1e-9)

    hx = np.geomspace(h[0]/10, max(1e9, 10*h[-1]), 400)
    mur = curve.muer_h(hx)
    assert np.all(np.isfinite(mur))
    assert np.all(mur > 0)
    assert np.all(np.diff(mur) <= 1e-12*mur[:-1])
    bx = curve.b(hx)
    assert np.all(np.diff(bx) >= 0)
    assert curve.muer_b(bx) == pytest.approx(mur, rel=1e-6)


@given(h0=st.floats(min_value=1.0, max_value=100.0),
       b0=st.floats(min_value=0.01, max_value=1.0),
       steps=steps)
@settings(max_examples=50, deadline=None)
def test_curve_properties_b_axis(h0, b0, steps):
    h, b = measurements(h0, b0, steps)
    curve = PermeabilityCurve.from_induction(b, h)
    assert curve.muer_b(b) == pytest.approx(b/(MUE0*h), rel=1e-9)

    bx = np.geomspace(b[0]/10, 10*b[-1], 200)
    mur = curve.muer_b(bx)
    assert np.all(np.diff(mur) <= 1e-12*mur[:-1])
    assert curve.muer_h(curve.h(bx)) == pytest.approx(mur, rel=1e-6)
