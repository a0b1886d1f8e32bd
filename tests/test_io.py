import json
import pytest
import numpy as np
import softmag
from softmag import PermeabilityCurve, JordanModel, DataError


def test_write_read_curve(tmpdir):
    curve = PermeabilityCurve.from_magnetization(
        [0, 48.5, 107.67, 389.3, 2766.6, 25287.4],
        [0, 0.4851, 0.9701, 1.3582, 1.6492, 1.9403],
        fillfac=0.95)
    filename = str(tmpdir.join('m270.json'))
    softmag.write(curve, filename)
    with open(filename) as f:
        assert json.load(f)['type'] == 'PermeabilityCurve'

    c = softmag.read(filename)
    assert isinstance(c, PermeabilityCurve)
    assert c.fillfac == 0.95
    h = np.logspace(0, 6, 30)
    assert np.array_equal(c.muer_h(h), curve.muer_h(h))


def test_write_read_losses(tmpdir):
    model = JordanModel(4.25, 1.26)
    filename = str(tmpdir.join('losses.json'))
    softmag.write(model, filename)
    m = softmag.read(filename)
    assert isinstance(m, JordanModel)
    assert m.losses(60, 1.2) == model.losses(60, 1.2)


def test_read_unknown_type(tmpdir):
    filename = tmpdir.join('x.json')
    filename.write(json.dumps(dict(type='Magnet', remanence=1.2)))
    with pytest.raises(DataError):
        softmag.read(str(filename))
