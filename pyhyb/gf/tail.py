"""High frequency expansion of Matsubara functions."""

import numpy


def fit_tail(iw, data, orders=(1, 2, 3), fraction=0.2, n_fit=None):
    r"""Least squares fit of the high frequency moments.

    .. math::
        f(i\omega) \approx \sum_{k} \frac{M_k}{(i\omega)^k}

    The moments are assumed to be real matrices (Hermitian functions with
    real matrix elements). Negative orders are allowed, e.g. ``-1`` for the
    coefficient of :math:`i\omega` in an inverse Green's function.

    Parameters
    ----------
    iw : :class:`numpy.ndarray`
        Matsubara frequencies (positive).
    data : :class:`numpy.ndarray`
        Shape (n_iw, n, n).
    orders : tuple
        Powers of :math:`1/i\omega` to fit.
    fraction : float
        Fraction of the highest frequencies used in the fit.
    n_fit : int, optional
        Number of frequencies used in the fit. Overrides fraction.

    Returns
    -------
    moments : dict
        Order to (n, n) real matrix.
    """
    n_iw = len(iw)
    if n_fit is None:
        n_fit = max(int(fraction*n_iw), len(orders)+1)
    n_fit = min(n_fit, n_iw)
    z = iw[-n_fit:]
    basis = numpy.array([z**(-k) for k in orders]).T
    A = numpy.concatenate([basis.real, basis.imag])
    norms = numpy.linalg.norm(A, axis=0)
    A = A / norms[None, :]
    shape = data.shape[1:]
    y = data[-n_fit:].reshape(n_fit, -1)
    b = numpy.concatenate([y.real, y.imag])
    (coeffs, res, rank, sv) = numpy.linalg.lstsq(A, b, rcond=None)
    coeffs = coeffs / norms[:, None]
    return {k: coeffs[i].reshape(shape) for (i, k) in enumerate(orders)}


def evaluate_tail(iw, moments):
    """Evaluate a high frequency expansion on a set of frequencies."""
    shape = next(iter(moments.values())).shape
    res = numpy.zeros((len(iw),)+shape, dtype=complex)
    for k, m in moments.items():
        res += numpy.multiply.outer(iw**(-k), m)
    return res
