# -*- coding: utf-8 -*-
"""
    softmag.errors
    ~~~~~~~~~~~~~~

    Exceptions raised by the curve and loss engines



"""


class MaterialError(Exception):
    pass


class DataError(MaterialError, ValueError):
    """malformed, insufficient or contradictory input data"""
    pass


class RangeError(MaterialError, ValueError):
    """query value outside the domain of a curve or loss model"""
    pass


class FitError(MaterialError, RuntimeError):
    """underdetermined or ill-conditioned regression"""
    pass


class DimensionError(MaterialError, TypeError):
    """quantity with a unit of the wrong dimension"""
    pass
