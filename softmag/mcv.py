# -*- coding: utf-8 -*-
"""
    softmag.mcv
    ~~~~~~~~~~~

    Relative permeability curves of soft magnetic materials.

    A :class:`PermeabilityCurve` is built from measured (H, B), (B, H),
    (H, J) or (x, mur) points and represents mur(x) on its native axis
    (H or B) by a monotone cubic Hermite spline of ln(mur) over ln(x).
    The curve is prepared for iterative field solvers:

    1. points below the permeability maximum are dropped and mur is
       constant left of the first knot,
    2. mur is made non-increasing (and B increasing on the H axis),
    3. the spline slopes follow PCHIP, bounded such that the Bernstein
       coefficients of d ln(mur)/d ln(x) stay within [-1, 0] on the H
       axis and below 0 on the B axis. Where the bounds of adjacent
       intervals conflict, knots are inserted to blend the slopes,
    4. beyond the last knot the polarization saturates and mur decays
       toward 1 (vacuum) with continuous slope.

    Values on the other axis are found by bracketed root finding.

"""
import enum
import logging
import numpy as np
import scipy.interpolate as ip
import scipy.optimize as so
from .config import get_config
from .errors import DataError, RangeError
from .units import magnitude, magnitudes

logger = logging.getLogger(__name__)

MUE0 = 4e-7*np.pi  # 1.2566371E-06

MIXTURES = ('series', 'parallel')

# minimum relative growth of B(H) between knots modified for monotonicity
SLOPE_MARGIN = 1e-3


class Axis(enum.Enum):
    """native axis of a permeability curve"""
    H = 'H'  # field strength A/m
    B = 'B'  # flux density T

    @property
    def unit(self):
        return 'A/m' if self is Axis.H else 'T'


def _as_array(values, name, unit=None):
    """return finite 1-d float array"""
    try:
        if unit:
            x = magnitudes(values, unit)
        else:
            x = np.array(values, dtype=float)
    except (TypeError, ValueError) as ex:
        raise DataError("{}: not a sequence of numbers ({})".format(name, ex))
    if x.ndim != 1:
        raise DataError("{}: expected 1-d sequence, got shape {}".format(
            name, x.shape))
    bad = np.flatnonzero(~np.isfinite(x))
    if bad.size:
        raise DataError("{}[{}] = {} is not finite".format(
            name, bad[0], x[bad[0]]))
    return x


def _check_pairs(x, y, xname, yname):
    if len(x) != len(y):
        raise DataError(
            "got {} values for {}, but {} values for {} (should be equal)".format(
                len(x), xname, len(y), yname))
    for v, name in ((x, xname), (y, yname)):
        neg = np.flatnonzero(v < 0)
        if neg.size:
            raise DataError("{}[{}] = {} is negative".format(
                name, neg[0], v[neg[0]]))


def _check_fillfac(fillfac):
    try:
        fillfac = float(fillfac)
    except (TypeError, ValueError):
        raise DataError("fill factor {!r} is not a number".format(fillfac))
    if not 0 < fillfac <= 1:
        raise DataError(
            "iron fill factor must be in (0, 1], is {}".format(fillfac))
    return fillfac


def sort_unique(x, y, rtol=1e-9):
    """sort pairs by x and merge duplicate x values

    Args:
      x, y: (array) values
      rtol: relative tolerance of y values at equal x

    returns x, y arrays with strictly increasing x
    raises DataError if duplicates have different y values or if
    less than 2 distinct x values remain
    """
    idx = np.argsort(x, kind='stable')
    x, y = x[idx], y[idx]
    keep = np.ones(len(x), dtype=bool)
    for i in range(1, len(x)):
        if x[i] == x[i-1]:
            if not np.isclose(y[i], y[i-1], rtol=rtol, atol=0):
                raise DataError(
                    "conflicting values {} and {} at x = {}".format(
                        y[i-1], y[i], x[i]))
            keep[i] = False
    if not np.all(keep):
        logger.debug("merged %d duplicate points", np.count_nonzero(~keep))
    x, y = x[keep], y[keep]
    if len(x) < 2:
        raise DataError(
            "at least 2 distinct points required, got {}".format(len(x)))
    return x, y


def mix(mur, fillfac, mixture='series'):
    """return relative permeability of a lamination stack

    Iron with relative permeability *mur* occupies the fraction
    *fillfac* of the stack, the rest is air (mur = 1).

    Args:
      mur: (float or array) relative permeability of iron
      fillfac: (float) iron fill factor 0 < fillfac <= 1
      mixture: (str) 'series': 1/mueff = fillfac/mur + (1 - fillfac)
                     'parallel': mueff = fillfac*mur + (1 - fillfac)
    """
    mur = np.asarray(mur, dtype=float)
    if mixture == 'series':
        return mur/(fillfac + (1 - fillfac)*mur)
    if mixture == 'parallel':
        return fillfac*mur + (1 - fillfac)
    raise DataError("unknown mixture rule '{}', expected one of {}".format(
        mixture, MIXTURES))


def resample_bh(h, b, step=10.0, tol=0.02):
    """resample B(H) curve on a regular H grid

    A grid point is kept if its relative permeability differs by more
    than *tol* from the last kept point. The origin, the first grid
    point and the last measured point are always kept.

    Args:
      h: (array) field strength values A/m
      b: (array) flux density values T
      step: (float) grid step A/m
      tol: (float) relative permeability change

    returns h, b arrays
    """
    h, b = sort_unique(np.asarray(h, dtype=float),
                       np.asarray(b, dtype=float))
    if h[0] > 0:
        h = np.insert(h, 0, 0.0)
        b = np.insert(b, 0, 0.0)
    grid = np.arange(step, h[-1], step)
    bgrid = ip.PchipInterpolator(h, b)(grid)
    hs, bs = [0.0], [0.0]
    for hx, bx in zip(grid.tolist(), bgrid.tolist()):
        if len(hs) > 1:
            mue = bs[-1]/hs[-1]
            if abs(mue - bx/hx) <= tol*mue:
                continue
        hs.append(hx)
        bs.append(bx)
    hs.append(h[-1])
    bs.append(b[-1])
    logger.debug("resampled %d points to %d (step %g, tol %g)",
                 len(h), len(hs), step, tol)
    return np.array(hs), np.array(bs)


def tail_scale(axis, xn, murn):
    """return distance from the last knot to the pole of the tail

    The tail keeps the polarization J of the last knot:
    on the H axis mur = 1 + J/(MUE0*H), on the B axis mur = B/(B - J).
    """
    if axis is Axis.H:
        return xn
    return xn/murn


def log_axis(x):
    """return offset of the logarithmic spline axis ln(x + xref)"""
    return 0.0 if x[0] > 0 else 1e-3*x[1]


def blend_knots(u, s, slope, lo=-1.0):
    """return knots (u, s, slope) to insert into intervals whose cubic
    leaves the slope range [lo, 0]

    Such an interval is replaced by a transition from its start slope
    to a slope c, a straight piece with slope c and a transition from c
    to its end slope. The secant of each transition is the mean of its
    end slopes which keeps all Bernstein coefficients of the derivative
    between the end slopes.

    Args:
      u, s: (array) knots and values in log coordinates
      slope: (array) slopes at knots within [lo, 0]
      lo: (float) lower slope bound, secants must be greater
    """
    knots = []
    for k in range(len(u) - 1):
        h = u[k+1] - u[k]
        delta = (s[k+1] - s[k])/h
        d0, d1 = slope[k], slope[k+1]
        if 3*delta - d0 - d1 >= lo - 1e-12:
            continue
        a = (d0 + d1)/2
        r = min(0.25, 0.5*(delta - lo)/(a - lo))
        c = (delta - r*a)/(1 - r)
        knots.append((u[k] + r*h, s[k] + r*h*(d0 + c)/2, c))
        knots.append((u[k+1] - r*h, s[k+1] - r*h*(c + d1)/2, c))
    return knots


def stabilize(x, mur, axis=Axis.H):
    """make relative permeability curve solver friendly

    Args:
      x: (array) strictly increasing axis values
      mur: (array) positive relative permeability values
      axis: native axis of x

    returns x, mur, slope, xref
      knots, values and slopes d ln(mur)/d ln(x + xref) of the spline
    raises DataError if no decreasing trend remains
    """
    imax = int(np.argmax(mur))
    if imax > 0:
        logger.debug("dropped %d points below permeability maximum %g at %s=%g",
                     imax, mur[imax], axis.value, x[imax])
    x, mur = x[imax:], mur[imax:]
    if len(x) < 2:
        raise DataError(
            "permeability maximum {} at last point {}={}: "
            "no decreasing trend".format(mur[-1], axis.value, x[-1]))

    xref = log_axis(x)
    u = np.log(x + xref)
    du = np.diff(u)
    s = np.log(mur)
    # on the H axis mur*(H + xref) must increase
    lo = -1.0 if axis is Axis.H else -np.inf
    for k in range(1, len(s)):
        s[k] = max(min(s[k], s[k-1]),
                   s[k-1] + (1 - SLOPE_MARGIN)*lo*du[k-1])
    changed = ~np.isclose(s, np.log(mur), rtol=0, atol=1e-12)
    if np.any(changed):
        mod = np.exp(s[changed])
        logger.debug("modified %d points to keep permeability non-increasing "
                     "(max deviation %g)", np.count_nonzero(changed),
                     np.max(np.abs(mod - mur[changed])))
        mur = mur.copy()
        mur[changed] = mod

    delta = np.diff(s)/du
    slope = ip.PchipInterpolator(u, s)(u, 1)
    # bounds of the Bernstein coefficients 1.5*delta <= d <= 1.5*delta - lo/2
    lower = np.full(len(s), lo)
    lower[:-1] = np.maximum(lower[:-1], 1.5*delta)
    lower[1:] = np.maximum(lower[1:], 1.5*delta)
    upper = np.zeros(len(s))
    if axis is Axis.H:
        upper[:-1] = np.minimum(upper[:-1], 1.5*delta - lo/2)
        upper[1:] = np.minimum(upper[1:], 1.5*delta - lo/2)
    if mur[-1] > 1:
        # saturated polarization beyond the last knot
        sc = tail_scale(axis, x[-1], mur[-1])
        slope[-1] = -(mur[-1] - 1)*(x[-1] + xref)/(mur[-1]*sc)
    slope = np.maximum(np.minimum(slope, upper), lower)
    slope[0] = 0.0
    if mur[-1] <= 1:
        slope[-1] = 0.0
    if axis is Axis.H:
        knots = blend_knots(u, s, slope, lo)
        if knots:
            ub, sb, db = np.array(knots).T
            xb = np.exp(ub) - xref
            idx = np.searchsorted(x, xb)
            x = np.insert(x, idx, xb)
            mur = np.insert(mur, idx, np.exp(sb))
            slope = np.insert(slope, idx, db)
            logger.debug("inserted %d knots to keep B(H) increasing",
                         len(knots))
    logger.debug("tail beyond %s=%g: %s", axis.value, x[-1],
                 'saturation' if slope[-1] < 0 else 'constant')
    return x, mur, slope, xref


class PermeabilityCurve(object):
    """relative permeability mur as a function of H or B

    mur is a cubic Hermite spline of ln(mur) over ln(x + xref) between the
    knots, constant left of the first knot and decays toward 1 with
    saturated polarization beyond the last knot.

    Args:
      axis: (Axis or str) native axis of the knots
      x: (array) strictly increasing non-negative knots
      mur: (array) relative permeability at knots
      slope: (array) d ln(mur)/d ln(x + xref) at knots
      xref: (float) offset of the logarithmic axis
      fillfac: (float) iron fill factor already applied to mur
      mixture: (str) fill factor rule applied to mur

    Use the ``from_*`` class methods to build a curve from measured data.
    """
    def __init__(self, axis, x, mur, slope, xref=0.0, fillfac=1.0,
                 mixture='series', config=None):
        self.axis = Axis(axis)
        x = _as_array(x, 'x')
        mur = _as_array(mur, 'mur')
        slope = _as_array(slope, 'slope')
        if not len(x) == len(mur) == len(slope):
            raise DataError(
                "x, mur, slope must have equal length ({}, {}, {})".format(
                    len(x), len(mur), len(slope)))
        if len(x) < 2:
            raise DataError("at least 2 knots required, got {}".format(len(x)))
        if x[0] < 0 or np.any(np.diff(x) <= 0):
            raise DataError("knots must be non-negative and strictly increasing")
        if np.any(mur <= 0):
            raise DataError("relative permeability must be positive")
        if not xref >= 0 or x[0] + xref <= 0:
            raise DataError("invalid log axis offset {}".format(xref))
        if mixture not in MIXTURES:
            raise DataError("unknown mixture rule '{}'".format(mixture))
        self.fillfac = _check_fillfac(fillfac)
        self.mixture = mixture
        for a in (x, mur, slope):
            a.flags.writeable = False
        self.x, self.mur, self.slope = x, mur, slope
        self.xref = float(xref)
        self._spline = ip.CubicHermiteSpline(np.log(x + self.xref),
                                             np.log(mur), slope)

        murn, xn = mur[-1], x[-1]
        if murn > 1 and slope[-1] < 0:
            sc = tail_scale(self.axis, xn, murn)
            p = -murn*slope[-1]*sc/((xn + self.xref)*(murn - 1))
            self._tail = (xn - sc, sc, p)
        else:
            self._tail = None
        cfg = get_config(config)
        self._maxiter = int(cfg['MAXITER'])
        self._maxdouble = int(cfg['MAXDOUBLE'])
        self._xtol = float(cfg['XTOL'])

    @classmethod
    def _build(cls, axis, x, mur, fillfac, mixture, config):
        cfg = get_config(config)
        fillfac = _check_fillfac(fillfac)
        mixture = mixture or cfg['MIXTURE']
        if mixture not in MIXTURES:
            raise DataError("unknown mixture rule '{}', expected one of {}".format(
                mixture, MIXTURES))
        x, mur = sort_unique(x, mur, cfg['RTOL'])
        if fillfac < 1:
            # mix at equal field strength
            h = x if axis is Axis.H else x/(MUE0*mur)
            mur = mix(mur, fillfac, mixture)
            x = h if axis is Axis.H else MUE0*mur*h
            x, mur = sort_unique(x, mur, cfg['RTOL'])
            logger.debug("applied fill factor %g (%s)", fillfac, mixture)
        x, mur, slope, xref = stabilize(x, mur, axis)
        curve = cls(axis, x, mur, slope, xref, fillfac, mixture, cfg)
        logger.info("permeability curve mur(%s): %d knots, max %g",
                    axis.value, len(x), mur[0])
        return curve

    @classmethod
    def from_permeability(cls, x, mur, axis=Axis.H, fillfac=1.0,
                          mixture=None, config=None):
        """create curve from relative permeability values

        Args:
          x: (list) H (A/m) or B (T) values
          mur: (list) relative permeability values
          axis: (Axis or str) 'H' or 'B'
          fillfac: (float) iron fill factor 0 < fillfac <= 1
          mixture: (str) fill factor rule 'series' or 'parallel'
          config: (dict or Config) numeric settings
        """
        axis = Axis(axis)
        x = _as_array(x, axis.value, axis.unit)
        mur = _as_array(mur, 'mur')
        _check_pairs(x, mur, axis.value, 'mur')
        bad = np.flatnonzero(mur <= 0)
        if bad.size:
            raise DataError("mur[{}] = {} must be positive".format(
                bad[0], mur[bad[0]]))
        return cls._build(axis, x, mur, fillfac, mixture, config)

    @classmethod
    def from_magnetization(cls, h, b, fillfac=1.0, mixture=None,
                           axis=Axis.H, resample=False, config=None):
        """create curve from B(H) measurements

        Points with H = 0 or B = 0 carry no permeability and are skipped.

        Args:
          h: (list) field strength values A/m
          b: (list) flux density values T
          fillfac: (float) iron fill factor 0 < fillfac <= 1
          mixture: (str) fill factor rule 'series' or 'parallel'
          axis: (Axis or str) native axis of the curve
          resample: (bool) resample B(H) on a regular grid first
          config: (dict or Config) numeric settings
        """
        cfg = get_config(config)
        axis = Axis(axis)
        h = _as_array(h, 'H', 'A/m')
        b = _as_array(b, 'B', 'T')
        _check_pairs(h, b, 'H', 'B')
        if resample:
            h, b = resample_bh(h, b, cfg['RESAMPLE_STEP'], cfg['RESAMPLE_TOL'])
        nz = (h > 0) & (b > 0)
        h, b = h[nz], b[nz]
        mur = b/(MUE0*h)
        x = h if axis is Axis.H else b
        return cls._build(axis, x, mur, fillfac, mixture, cfg)

    @classmethod
    def from_induction(cls, b, h, fillfac=1.0, mixture=None,
                       resample=False, config=None):
        """create curve with native axis B from (B, H) measurements"""
        return cls.from_magnetization(h, b, fillfac=fillfac, mixture=mixture,
                                      axis=Axis.B, resample=resample,
                                      config=config)

    @classmethod
    def from_polarization(cls, h, j, fillfac=1.0, mixture=None,
                          axis=Axis.H, resample=False, config=None):
        """create curve from J(H) measurements (B = J + MUE0*H)"""
        h = _as_array(h, 'H', 'A/m')
        j = _as_array(j, 'J', 'T')
        if len(h) != len(j):
            raise DataError(
                "got {} values for H, but {} values for J (should be equal)".format(
                    len(h), len(j)))
        return cls.from_magnetization(h, j + MUE0*h, fillfac=fillfac,
                                      mixture=mixture, axis=axis,
                                      resample=resample, config=config)

    @classmethod
    def from_dict(cls, d, config=None):
        """create curve from dict

        Accepts the record of :meth:`to_dict` or measured data with keys
        hi, bi (or hi, ji for polarization) and optional fillfac,
        mixture, axis.
        """
        if 'mur' in d and 'slope' in d:
            return cls(d['axis'], d['x'], d['mur'], d['slope'],
                       d.get('xref', 0.0), d.get('fillfac', 1.0),
                       d.get('mixture', 'series'), config)
        kwargs = dict(fillfac=d.get('fillfac', 1.0),
                      mixture=d.get('mixture'),
                      axis=d.get('axis', 'H'),
                      config=config)
        if 'hi' in d and 'ji' in d:
            return cls.from_polarization(d['hi'], d['ji'], **kwargs)
        if 'hi' in d and 'bi' in d:
            return cls.from_magnetization(d['hi'], d['bi'], **kwargs)
        raise DataError("unsupported curve record with keys {}".format(
            sorted(d.keys())))

    def to_dict(self):
        """return curve record (inverse of :meth:`from_dict`)"""
        return {'axis': self.axis.value,
                'x': self.x.tolist(),
                'mur': self.mur.tolist(),
                'slope': self.slope.tolist(),
                'xref': self.xref,
                'fillfac': self.fillfac,
                'mixture': self.mixture}

    def _eval(self, x):
        """return mur at native axis values x (1-d array >= 0)"""
        y = np.empty_like(x)
        left = x <= self.x[0]
        right = x > self.x[-1]
        mid = ~(left | right)
        y[left] = self.mur[0]
        y[mid] = np.exp(self._spline(np.log(x[mid] + self.xref)))
        if self._tail:
            c, s, p = self._tail
            y[right] = 1 + (self.mur[-1] - 1)*(s/(x[right] - c))**p
        else:
            y[right] = self.mur[-1]
        return y

    def _other(self, x):
        """return value on the other axis at native axis values x"""
        mur = self._eval(x)
        if self.axis is Axis.H:
            return MUE0*mur*x
        return x/(MUE0*mur)

    def _invert(self, y):
        """return native axis value where the other axis equals y"""
        if y == 0:
            return 0.0
        gk = self._other(np.asarray(self.x))
        hits = np.flatnonzero(gk >= y)
        if hits.size:
            k = hits[0]
            lo = self.x[k-1] if k > 0 else 0.0
            hi = self.x[k]
        else:
            lo, hi = self.x[-1], 2*self.x[-1]
            for _ in range(self._maxdouble):
                if self._other(np.array([hi]))[0] >= y:
                    break
                lo, hi = hi, 2*hi
            else:
                raise RangeError("{} out of range".format(y))
        return so.brentq(lambda t: self._other(np.array([t]))[0] - y,
                         lo, hi, xtol=self._xtol, maxiter=self._maxiter,
                         disp=False)

    def _query(self, value, axis):
        try:
            v = np.asarray(magnitude(value, axis.unit), dtype=float)
        except (TypeError, ValueError) as ex:
            raise RangeError("{}: not a number ({})".format(axis.value, ex))
        bad = ~np.isfinite(v) | (v < 0)
        if np.any(bad):
            raise RangeError("{} = {} must be finite and non-negative".format(
                axis.value, v[bad][0]))
        x = v.ravel()
        if axis is not self.axis:
            x = np.array([self._invert(y) for y in x], dtype=float)
        mur = self._eval(x)
        if v.ndim == 0:
            return float(mur[0])
        return mur.reshape(v.shape)

    def __call__(self, x):
        """return relative permeability at native axis value x"""
        return self._query(x, self.axis)

    def muer_h(self, h):
        """return relative permeability at field strength h (A/m)"""
        return self._query(h, Axis.H)

    def muer_b(self, b):
        """return relative permeability at flux density b (T)"""
        return self._query(b, Axis.B)

    def nuer_h(self, h):
        """return relative reluctivity at field strength h (A/m)"""
        return 1/self.muer_h(h)

    def nuer_b(self, b):
        """return relative reluctivity at flux density b (T)"""
        return 1/self.muer_b(b)

    def b(self, h):
        """return flux density (T) at field strength h (A/m)"""
        h = magnitude(h, 'A/m')
        return MUE0*self.muer_h(h)*np.asarray(h, dtype=float)

    def h(self, b):
        """return field strength (A/m) at flux density b (T)"""
        b = magnitude(b, 'T')
        return np.asarray(b, dtype=float)/(MUE0*self.muer_b(b))

    def bh(self):
        """return knots as curve dict with keys hi, bi"""
        other = self._other(np.asarray(self.x))
        if self.axis is Axis.H:
            hi, bi = self.x, other
        else:
            hi, bi = other, self.x
        return dict(hi=np.asarray(hi).tolist(), bi=np.asarray(bi).tolist())

    def __repr__(self):
        return "PermeabilityCurve(axis={}, knots={}, fillfac={})".format(
            self.axis.value, len(self.x), self.fillfac)
