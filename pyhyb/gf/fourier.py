"""Fourier transforms between Matsubara frequencies and imaginary time."""

import numpy


def tail_tau(tau, beta, moments):
    r"""Imaginary time transform of the high frequency tail.

    Uses the analytic transforms for :math:`0 < \tau < \beta`

    .. math::
        \frac{1}{i\omega} \rightarrow -\frac{1}{2},\quad
        \frac{1}{(i\omega)^2} \rightarrow \frac{2\tau-\beta}{4},\quad
        \frac{1}{(i\omega)^3} \rightarrow \frac{\beta\tau-\tau^2}{4}.

    Parameters
    ----------
    tau : :class:`numpy.ndarray`
        Imaginary time points.
    beta : float
        Inverse temperature.
    moments : dict
        Orders 1, 2 and 3 are used, other orders are ignored.

    Returns
    -------
    tail : :class:`numpy.ndarray`
        Shape (len(tau), n, n).
    """
    kernels = {1: -0.5*numpy.ones_like(tau),
               2: 0.25*(2*tau-beta),
               3: 0.25*(beta*tau-tau**2)}
    shape = next(iter(moments.values())).shape
    res = numpy.zeros((len(tau),)+shape)
    for (k, kernel) in kernels.items():
        m = moments.get(k)
        if m is not None:
            res += numpy.multiply.outer(kernel, m.real)
    return res


def inverse_fourier(iw, data, beta, tau, moments):
    r"""Transform a fermionic function from Matsubara frequencies to tau.

    .. math::
        f(\tau) = \frac{1}{\beta}\sum_{n} e^{-i\omega_n\tau} f(i\omega_n)

    Only positive frequencies are given, negative frequencies follow from
    :math:`f(-i\omega) = f(i\omega)^{\dagger}`. The tail given by ``moments``
    is subtracted before summation and added back analytically.

    Parameters
    ----------
    iw : :class:`numpy.ndarray`
        Positive Matsubara frequencies.
    data : :class:`numpy.ndarray`
        Shape (n_iw, n, n).
    beta : float
        Inverse temperature.
    tau : :class:`numpy.ndarray`
        Imaginary time points in [0, beta].
    moments : dict
        High frequency moments (see :func:`pyhyb.gf.tail.fit_tail`).

    Returns
    -------
    f_tau : :class:`numpy.ndarray`
        Real array of shape (len(tau), n, n).
    """
    rest = numpy.array(data, dtype=complex)
    for (k, m) in moments.items():
        if k in (1, 2, 3):
            rest -= numpy.multiply.outer(iw**(-k), m)
    phase = numpy.exp(-numpy.outer(tau, iw))
    X = numpy.einsum('tn,nab->tab', phase, rest)
    f_tau = (X + X.conj().transpose(0, 2, 1)) / beta
    return f_tau.real + tail_tau(tau, beta, moments)


def fourier(tau, data, iw):
    r"""Transform a function of imaginary time to Matsubara frequencies.

    .. math::
        f(i\omega_n) = \int_0^{\beta} d\tau\, e^{i\omega_n\tau} f(\tau)

    The integral is exact for the piecewise linear interpolation of data.

    Parameters
    ----------
    tau : :class:`numpy.ndarray`
        Imaginary time points including 0 and beta.
    data : :class:`numpy.ndarray`
        Shape (n_tau, n, n).
    iw : :class:`numpy.ndarray`
        Matsubara frequencies.

    Returns
    -------
    f_iw : :class:`numpy.ndarray`
        Complex array of shape (n_iw, n, n).
    """
    h = numpy.diff(tau)
    slope = (data[1:]-data[:-1]) / h[:, None, None]
    a = iw[:, None]
    E = numpy.exp(a*tau[None, :-1])
    eah = numpy.exp(a*h[None, :])
    c0 = E * (eah-1.0) / a
    c1 = E * (h[None, :]*eah/a - (eah-1.0)/a**2)
    return (numpy.einsum('nk,kab->nab', c0, data[:-1])
            + numpy.einsum('nk,kab->nab', c1, slope))
