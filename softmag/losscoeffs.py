# -*- coding: utf-8 -*-
"""
    softmag.losscoeffs
    ~~~~~~~~~~~~~~~~~~

    Fitting methods for iron loss coeffs (Jordan model)

    p(f, B) = kh*(f/fo)*(B/Bo)**2 + kec*(f/fo)**2*(B/Bo)**2

"""
import logging
import numpy as np
import scipy.optimize as so
from .config import get_config
from .errors import DataError, RangeError, FitError
from .units import magnitude, magnitudes

logger = logging.getLogger(__name__)


def pfe_jordan(f, B, kh, kec, fo=50.0, Bo=1.5):
    return (kh*(f/fo) + kec*(f/fo)**2)*(B/Bo)**2


def flatten_losses(f, B, pfe):
    """return flat arrays f, B, p of losses layout

    Args:
      f: list of n frequency values
      B: list of m or list of list of induction values (nxm)
      pfe: list of list of fe loss values (nxm), None if missing

    Rows with zero frequency and missing values are skipped.
    """
    if not len(B):
        return np.array([]), np.array([]), np.array([])
    z = []
    for i, fx in enumerate(f):
        if fx:
            if np.isscalar(B[0]):
                bi = B
            else:
                bi = B[i]
            z += [(fx, bx, y)
                  for bx, y in zip(bi, pfe[i])
                  if y is not None]
    if not z:
        return np.array([]), np.array([]), np.array([])
    f, B, p = np.array(z, dtype=float).T
    return f, B, p


def _design_matrix(f, B, fo, Bo):
    return np.column_stack(((f/fo)*(B/Bo)**2,
                            ((f/fo)*(B/Bo))**2))


def fitjordan(f, B, losses, fo=50.0, Bo=1.5, maxcond=1e12):
    """fit non-negative coeffs of
    losses(f,B)=kh*(f/fo)*(B/Bo)**2 + kec*(f/fo)**2*(B/Bo)**2
    returns (kh, kec)

    Args:
      f: list of frequency values
      B: list of flux density values
      losses: list of fe loss values W/kg
      fo: reference frequency
      Bo: reference flux density
      maxcond: max condition number of the design matrix
    """
    try:
        f = magnitudes(f, 'Hz')
        B = magnitudes(B, 'T')
        p = magnitudes(losses, 'W/kg')
    except (TypeError, ValueError) as ex:
        raise FitError("loss data: not a sequence of numbers ({})".format(ex))
    if not len(f) == len(B) == len(p):
        raise FitError(
            "f, B, losses must have equal length ({}, {}, {})".format(
                len(f), len(B), len(p)))
    if len(p) < 2:
        raise FitError("at least 2 loss values required, got {}".format(len(p)))
    for v, name in ((f, 'f'), (B, 'B'), (p, 'losses')):
        bad = np.flatnonzero(~np.isfinite(v) | (v < 0))
        if bad.size:
            raise FitError("{}[{}] = {} must be finite and non-negative".format(
                name, bad[0], v[bad[0]]))

    A = _design_matrix(f, B, fo, Bo)
    rank = np.linalg.matrix_rank(A)
    if rank < 2:
        raise FitError(
            "rank deficient design matrix (rank {}): loss data must cover "
            "at least 2 frequencies".format(rank))
    cond = np.linalg.cond(A)
    if cond > maxcond:
        raise FitError(
            "ill-conditioned design matrix (cond {:g} > {:g})".format(
                cond, maxcond))

    (kh, kec), rnorm = so.nnls(A, p)
    logger.info("Jordan fit kh %g kec %g (fo %g Bo %g, %d values, residual %g)",
                kh, kec, fo, Bo, len(p), rnorm)
    return float(kh), float(kec)


class JordanModel(object):
    """iron loss model with hysteresis and eddy current coefficients

    Args:
      kh: (float) hysteresis loss W/kg at fo, Bo
      kec: (float) eddy current loss W/kg at fo, Bo
      fo: (float) reference frequency Hz
      Bo: (float) reference flux density T
    """
    def __init__(self, kh, kec, fo=50.0, Bo=1.5):
        for v, name in ((kh, 'kh'), (kec, 'kec')):
            if not np.isfinite(v) or v < 0:
                raise DataError(
                    "{} = {} must be finite and non-negative".format(name, v))
        for v, name in ((fo, 'fo'), (Bo, 'Bo')):
            if not np.isfinite(v) or v <= 0:
                raise DataError("{} = {} must be positive".format(name, v))
        self.kh = float(kh)
        self.kec = float(kec)
        self.fo = float(fo)
        self.Bo = float(Bo)

    @classmethod
    def fit(cls, f, B, losses, fo=None, Bo=None, config=None):
        """create model from flat f, B, losses sequences"""
        cfg = get_config(config)
        fo = cfg['FO'] if fo is None else fo
        Bo = cfg['BO'] if Bo is None else Bo
        kh, kec = fitjordan(f, B, losses, fo, Bo, cfg['MAXCOND'])
        return cls(kh, kec, fo, Bo)

    @classmethod
    def from_losses(cls, losses, config=None):
        """create model from losses dict with keys f, B, pfe
        and optional fo, Bo"""
        f, B, p = flatten_losses(losses['f'], losses['B'], losses['pfe'])
        return cls.fit(f, B, p, losses.get('fo'), losses.get('Bo'), config)

    @classmethod
    def from_dict(cls, d, config=None):
        if 'kh' in d:
            return cls(d['kh'], d['kec'], d.get('fo', 50.0), d.get('Bo', 1.5))
        if 'pfe' in d:
            return cls.from_losses(d, config)
        raise DataError("unsupported loss record with keys {}".format(
            sorted(d.keys())))

    def to_dict(self):
        return dict(kh=self.kh, kec=self.kec, fo=self.fo, Bo=self.Bo)

    def losses(self, f, B):
        """return specific losses W/kg at frequency f and flux density B"""
        args = []
        for v, name, unit in ((f, 'f', 'Hz'), (B, 'B', 'T')):
            try:
                x = np.asarray(magnitude(v, unit), dtype=float)
            except (TypeError, ValueError) as ex:
                raise RangeError("{}: not a number ({})".format(name, ex))
            bad = ~np.isfinite(x) | (x < 0)
            if np.any(bad):
                raise RangeError("{} = {} must be finite and non-negative".format(
                    name, x[bad][0]))
            args.append(x)
        p = pfe_jordan(args[0], args[1], self.kh, self.kec, self.fo, self.Bo)
        if np.ndim(p) == 0:
            return float(p)
        return p

    def residuals(self, f, B, losses):
        """return measured minus predicted losses"""
        return magnitudes(losses, 'W/kg') - self.losses(
            magnitudes(f, 'Hz'), magnitudes(B, 'T'))

    def __repr__(self):
        return "JordanModel(kh={}, kec={}, fo={}, Bo={})".format(
            self.kh, self.kec, self.fo, self.Bo)
