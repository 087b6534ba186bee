"""Trace of the time ordered product of local operators."""

import numpy
from collections import namedtuple
from pyhyb.utils.linalg import signed_log_sum

TraceState = namedtuple('TraceState', ['sign', 'log', 'cache'])
TraceState.__doc__ = """Trace (or trace estimate) of a configuration.

sign, log : float
    Sign and log of the absolute value.
cache : dict
    Starting subspace to tuple of propagation steps ``(subspace, matrix,
    log_scale)``, entry k holding the state after the first k operators.
    A subspace of -1 marks a vanishing chain.
"""

_DEAD = (-1, None, -numpy.inf)


class TraceEstimator(object):
    r"""Trace over the local Hilbert space of a configuration.

    .. math::
        \mathrm{Tr}\left[e^{-(\beta-\tau_n)H} O_n \cdots
                         e^{-(\tau_2-\tau_1)H} O_1 e^{-\tau_1 H}\right]

    with the operators ordered in time, :math:`\tau_1 < \dots < \tau_n`, and
    all energies measured from the atomic ground state. Each starting
    subspace is propagated separately and the propagated matrices are
    rescaled after every operator, the scale being accumulated as a log.

    Parameters
    ----------
    atom : :class:`pyhyb.systems.atomic.AtomicProblem`
        Local problem in its eigenbasis.
    beta : float
        Inverse temperature.
    mode_index : list of list
        ``mode_index[block][inner]`` is the fundamental operator index.
    use_estimator : bool
        If True the trace is estimated from a single subspace drawn with
        probability proportional to its atomic weight.
    """

    def __init__(self, atom, beta, mode_index, use_estimator=False):
        self.atom = atom
        self.beta = beta
        self.mode_index = mode_index
        self.use_estimator = use_estimator
        weights = atom.subspace_weights(beta)
        self.probabilities = weights / weights.sum()
        self.log_probabilities = numpy.log(self.probabilities)
        self.identities = [numpy.identity(d) for d in atom.dims]

    def initial_state(self, rng=None):
        """Trace state of the empty configuration."""
        return self.evaluate((), rng=rng)

    def _subspaces(self, rng):
        if self.use_estimator:
            return (int(rng.choice(self.atom.nsubspaces,
                                   p=self.probabilities)),)
        return tuple(range(self.atom.nsubspaces))

    def _propagate(self, start, operators, steps):
        """Extend the propagation steps of one subspace to all operators."""
        steps = list(steps)
        (cur, mat, lg) = steps[-1]
        for k in range(len(steps)-1, len(operators)):
            if cur < 0:
                break
            op = operators[k]
            tau_prev = operators[k-1].tau if k > 0 else 0.0
            mode = self.mode_index[op.block][op.inner]
            dagger = int(op.dagger)
            target = self.atom.connection[dagger, mode, cur]
            if target < 0:
                steps.append(_DEAD)
                break
            mat = numpy.exp(-(op.tau-tau_prev)*self.atom.energies[cur])[:, None] * mat
            mat = numpy.dot(self.atom.matrices[dagger][mode][cur], mat)
            norm = numpy.abs(mat).max()
            if norm == 0.0:
                steps.append(_DEAD)
                break
            mat = mat / norm
            lg = lg + numpy.log(norm)
            cur = target
            steps.append((cur, mat, lg))
        return tuple(steps)

    def _close(self, start, operators, steps):
        (cur, mat, lg) = steps[-1]
        if cur != start or len(steps) != len(operators)+1:
            return (0.0, -numpy.inf)
        tau_last = operators[-1].tau if len(operators) > 0 else 0.0
        expo = numpy.exp(-(self.beta-tau_last)*self.atom.energies[start])
        val = numpy.dot(expo, numpy.diag(mat))
        if val == 0.0:
            return (0.0, -numpy.inf)
        return (float(numpy.sign(val)), float(lg + numpy.log(abs(val))))

    def evaluate(self, operators, state=None, first_changed=0, rng=None):
        """Trace state of a configuration.

        Parameters
        ----------
        operators : tuple
            Time ordered :class:`pyhyb.walkers.configuration.OperatorInsertion`.
        state : :class:`TraceState`, optional
            State of a configuration identical to ``operators`` for the first
            ``first_changed`` operators. Its cached steps are reused.
        first_changed : int
            Position of the first operator differing from ``state``.
        rng : :class:`numpy.random.Generator`
            Random number generator, used in estimator mode.

        Returns
        -------
        state : :class:`TraceState`
            New (immutable) trace state.
        """
        cache = {}
        signs = []
        logs = []
        for B in self._subspaces(rng):
            steps = None
            if state is not None and B in state.cache:
                steps = state.cache[B][:first_changed+1]
                if steps[-1][0] < 0:
                    cache[B] = steps
                    continue
            if steps is None:
                steps = ((B, self.identities[B], 0.0),)
            steps = self._propagate(B, operators, steps)
            cache[B] = steps
            (s, lg) = self._close(B, operators, steps)
            signs.append(s)
            logs.append(lg)
        (sign, log) = signed_log_sum(signs, logs)
        if self.use_estimator and sign != 0:
            (B,) = cache.keys()
            log -= self.log_probabilities[B]
        return TraceState(sign, log, cache)

    def full_trace(self, operators):
        """Exact trace (sign, log) computed without any cache."""
        signs = []
        logs = []
        for B in range(self.atom.nsubspaces):
            steps = self._propagate(B, operators,
                                    ((B, self.identities[B], 0.0),))
            (s, lg) = self._close(B, operators, steps)
            signs.append(s)
            logs.append(lg)
        return signed_log_sum(signs, logs)

    def recompute(self, operators, state):
        """Recompute a trace state from scratch for the subspaces it used."""
        signs = []
        logs = []
        for B in state.cache.keys():
            steps = self._propagate(B, operators,
                                    ((B, self.identities[B], 0.0),))
            (s, lg) = self._close(B, operators, steps)
            signs.append(s)
            logs.append(lg)
        (sign, log) = signed_log_sum(signs, logs)
        if self.use_estimator and sign != 0:
            log -= self.log_probabilities[list(state.cache.keys())[0]]
        return (sign, log)
