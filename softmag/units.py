# -*- coding: utf-8 -*-
"""
    softmag.units
    ~~~~~~~~~~~~~

    Unit-carrying scalars at the API boundary.

    The curve and loss engines work with bare SI magnitudes
    (A/m, T, Hz, W/kg). Values wrapped in a :class:`Quantity` are
    converted on entry, plain numbers are taken as SI.

"""
import numpy as np
from .errors import DimensionError

# unit: (dimension, factor to SI)
UNITS = {
    'A/m': ('field strength', 1.0),
    'kA/m': ('field strength', 1e3),
    'Oe': ('field strength', 1e3/4/np.pi),
    'T': ('flux density', 1.0),
    'mT': ('flux density', 1e-3),
    'G': ('flux density', 1e-4),
    'Hz': ('frequency', 1.0),
    'kHz': ('frequency', 1e3),
    'W/kg': ('specific loss', 1.0),
    'mW/kg': ('specific loss', 1e-3),
}


class Quantity(object):
    """scalar or array value with unit

    Args:
      value: (float or array) magnitude in *unit*
      unit: (str) one of the keys of :data:`UNITS`
    """
    def __init__(self, value, unit):
        if unit not in UNITS:
            raise DimensionError("unknown unit '{}'".format(unit))
        self.value = value
        self.unit = unit

    @property
    def dimension(self):
        return UNITS[self.unit][0]

    def to(self, unit):
        """return magnitude converted to *unit*"""
        try:
            dim, factor = UNITS[unit]
        except KeyError:
            raise DimensionError("unknown unit '{}'".format(unit))
        if dim != self.dimension:
            raise DimensionError(
                "cannot convert {} ({}) to {} ({})".format(
                    self.unit, self.dimension, unit, dim))
        return np.asarray(self.value)*UNITS[self.unit][1]/factor

    def __repr__(self):
        return "Quantity({!r}, '{}')".format(self.value, self.unit)


def magnitude(value, unit):
    """return magnitude of *value* in *unit*

    Quantities are converted, everything else is passed through
    unchanged.
    """
    if isinstance(value, Quantity):
        m = value.to(unit)
        return float(m) if m.ndim == 0 else m
    return value


def magnitudes(values, unit):
    """return float array of *values* in *unit*

    *values* may be a Quantity holding an array or a sequence of
    numbers and Quantities.
    """
    if isinstance(values, Quantity):
        return np.atleast_1d(values.to(unit)).astype(float)
    return np.array([magnitude(v, unit) for v in values], dtype=float)
