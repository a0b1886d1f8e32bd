"""
    softmag.plot
    ~~~~~~~~~~~~

    Creating curve and loss plots (requires matplotlib)


"""
import numpy as np
import matplotlib.pyplot as plt
from .mcv import Axis


def muer(curve, n=200, ax=0):
    """plot rel. permeability vs. native axis of curve"""
    if ax == 0:
        ax = plt.gca()
    x = np.linspace(0, 1.2*curve.x[-1], n)
    ax.plot(x, curve(x))
    ax.plot(curve.x, curve.mur, 'k.')
    ax.set_xlabel('H / A/m' if curve.axis is Axis.H else 'B / T')
    ax.set_title('rel. Permeability')
    ax.grid()


def bh(curve, log=True, ax=0):
    """plot B vs. H at the knots of curve"""
    if ax == 0:
        ax = plt.gca()
    knots = curve.bh()
    hi = np.array(knots['hi'])*1e-3
    if log:
        ax.semilogx(hi, knots['bi'], label='Flux Density')
        ax.semilogx(hi, knots['bi'], 'k.')
    else:
        ax.plot(hi, knots['bi'], label='Flux Density')
        ax.plot(hi, knots['bi'], 'k.')
    ax.set_xlabel('H / kA/m')
    ax.set_ylabel('T')
    ax.grid()


def felosses(losses, model, title='', log=True, ax=0):
    """plot iron losses with jordan approximation

    Args:
      losses: dict with f, B, pfe values
      model: JordanModel
      title: title string
      log: log scale for x and y axes if True
    """
    if ax == 0:
        ax = plt.gca()

    for i, f in enumerate(losses['f']):
        if f > 0:
            bi = losses['B'] if np.isscalar(losses['B'][0]) else losses['B'][i]
            bp = [(b, p) for b, p in zip(bi, losses['pfe'][i])
                  if p is not None]
            if not bp:
                continue
            b, pfe = zip(*bp)
            B = np.linspace(0.9*min(b), 1.1*max(b))
            ax.plot(B, model.losses(f, B))
            ax.plot(b, pfe, marker='o', linestyle='', label="{} Hz".format(f))

    ax.set_title("Fe Losses/(W/kg) " + title)
    if log:
        ax.set_yscale('log')
        ax.set_xscale('log')
    ax.set_xlabel("Flux Density [T]")
    ax.legend()
    ax.grid(True)
