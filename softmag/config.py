# -*- coding: utf-8 -*-
"""
    softmag.config
    ~~~~~~~~~~~~~~

    Numeric defaults of the curve and loss engines



"""
import logging
import configparser

logger = logging.getLogger(__name__)

defaults = {
    'RTOL': 1e-9,            # duplicate points with values closer are merged
    'RESAMPLE_STEP': 10.0,   # A/m
    'RESAMPLE_TOL': 0.02,    # relative permeability change
    'MAXITER': 100,          # root finding iterations
    'MAXDOUBLE': 200,        # bracket expansions beyond the last knot
    'XTOL': 1e-12,
    'MIXTURE': 'series',     # fill factor rule: series or parallel
    'FO': 50.0,              # Hz reference frequency of loss model
    'BO': 1.5,               # T reference flux density of loss model
    'MAXCOND': 1e12          # max condition number of the loss design matrix
}


class Config(dict):
    """configuration dict initialized with :data:`defaults`

    Args:
      values: dict with overriding values
      ini_file: name of ini file with section [softmag]
    """
    def __init__(self, values=None, ini_file=None):
        dict.__init__(self, defaults)
        if values:
            self.update({k.upper(): v for k, v in values.items()})
        if ini_file:
            self.from_ini_file(ini_file)

    def from_ini_file(self, ini_file, section='softmag'):
        if not ini_file:
            return
        config = configparser.ConfigParser()
        config.read(ini_file)
        try:
            items = config.items(section)
        except configparser.NoSectionError:
            logger.debug("%s: no section [%s]", ini_file, section)
            return

        for key, value in items:
            k = key.upper()
            if k in defaults and not isinstance(defaults[k], str):
                value = type(defaults[k])(value)
            self[k] = value


def get_config(config=None):
    """return *config* or default config if None"""
    if config is None:
        return Config()
    if isinstance(config, Config):
        return config
    return Config(config)
