import numpy

# Largest exponent passed to exp when forming acceptance ratios.
MAX_LOG_RATIO = 700.0


def combine_ratio(config, det_ratio, trace, perm_sign, proposal_ratio):
    r"""Metropolis ratio of a proposed configuration.

    .. math::
        R = \frac{t(C'\rightarrow C)}{t(C\rightarrow C')}
            \frac{P(C')}{P(C)}
            \frac{\mathrm{Tr}(C')}{\mathrm{Tr}(C)}
            \frac{\det D'}{\det D}

    The trace ratio is formed from logs so that large expansion orders do
    not overflow.

    Parameters
    ----------
    config : :class:`pyhyb.walkers.configuration.Configuration`
        Current configuration.
    det_ratio : float
        Ratio of hybridization determinants of the changed block.
    trace : :class:`pyhyb.propagation.trace.TraceState`
        Trace state of the proposed configuration.
    perm_sign : int
        Reordering sign of the proposed configuration.
    proposal_ratio : float
        Ratio of the proposal probabilities.

    Returns
    -------
    ratio : float
        Signed ratio, nan if it is not finite.
    """
    if trace.sign == 0 or det_ratio == 0.0:
        return 0.0
    log_ratio = (trace.log - config.trace.log + numpy.log(abs(det_ratio))
                 + numpy.log(proposal_ratio))
    if numpy.isnan(log_ratio):
        return numpy.nan
    log_ratio = min(log_ratio, MAX_LOG_RATIO)
    sign = (trace.sign * config.trace.sign * numpy.sign(det_ratio)
            * perm_sign * config.perm_sign)
    return float(sign * numpy.exp(log_ratio))
