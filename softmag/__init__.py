# -*- coding: utf-8 -*-
"""
    softmag
    ~~~~~~~

    Permeability curves and iron loss models of soft magnetic materials



"""
__title__ = 'softmag'
__version__ = '0.1.0'
__author__ = 'softmag developers'
__license__ = 'BSD'

import io
import json
from .errors import MaterialError, DataError, RangeError, FitError, DimensionError
from .units import Quantity
from .config import Config
from .mcv import Axis, PermeabilityCurve, MUE0
from .losscoeffs import JordanModel

_types = {'PermeabilityCurve': PermeabilityCurve,
          'JordanModel': JordanModel}


def write(model, filename):
    """write curve or loss model to json file *filename*"""
    d = dict(type=type(model).__name__)
    d.update(model.to_dict())
    with io.open(filename, 'w', encoding='utf-8') as f:
        json.dump(d, f, indent=2)


def read(filename, config=None):
    """read curve or loss model from json file *filename*"""
    with io.open(filename, encoding='utf-8') as f:
        d = json.load(f)
    try:
        cls = _types[d.pop('type')]
    except KeyError:
        raise DataError("{}: unknown or missing type".format(filename))
    return cls.from_dict(d, config)
