"""Local (atomic) problem: Hilbert space partition and eigenbasis operators."""

import numpy
import scipy.sparse
from scipy.sparse.csgraph import connected_components
from pyhyb.systems.operators import fock_operators, operator_matrix
from pyhyb.utils.linalg import diagonalise_sorted


class AtomicProblem(object):
    """Eigenbasis representation of the local Hamiltonian.

    The Fock space of the impurity orbitals is split into subspaces which are
    invariant under ``h_loc`` and such that every creation / annihilation
    operator maps a subspace into at most one other subspace. Within each
    subspace ``h_loc`` is diagonalised and all fundamental operators are
    stored as dense blocks in the eigenbasis.

    Parameters
    ----------
    h_loc : :class:`pyhyb.systems.operators.Operator`
        Local Hamiltonian.
    fops : :class:`pyhyb.systems.operators.FundamentalOperatorSet`
        Orbital labels.
    quantum_numbers : list, optional
        Operators diagonal in the occupation number basis which commute with
        ``h_loc``. If given the subspaces are the sectors of equal quantum
        numbers, otherwise the partition is found automatically.
    verbose : bool
        Print information about the partition.

    Attributes
    ----------
    subspaces : list of :class:`numpy.ndarray`
        Fock basis states spanning each subspace.
    energies : list of :class:`numpy.ndarray`
        Eigenenergies in each subspace shifted by the ground state energy.
    e0 : float
        Ground state energy.
    connection : :class:`numpy.ndarray`
        ``connection[dagger, k, B]`` is the subspace reached by acting with
        fundamental operator ``k`` on subspace ``B`` or -1.
    matrices : list
        ``matrices[dagger][k][B]`` is the (dim target, dim B) matrix of the
        operator in the eigenbases.
    """

    def __init__(self, h_loc, fops, quantum_numbers=None, verbose=False):
        self.fops = fops
        self.nmodes = len(fops)
        cops = fock_operators(self.nmodes)
        H = operator_matrix(h_loc, fops, cops).toarray()
        if not numpy.allclose(H, H.conj().T, atol=1e-12):
            raise ValueError("Local Hamiltonian is not Hermitian.")
        if not numpy.allclose(H.imag, 0.0):
            raise ValueError("Only real local Hamiltonians are supported.")
        H = H.real
        self.hamiltonian = H
        if quantum_numbers is not None and len(quantum_numbers) > 0:
            self.subspaces = self._partition_by_quantum_numbers(
                    H, quantum_numbers, cops)
        else:
            self.subspaces = self._autopartition(H, cops)
        self.nsubspaces = len(self.subspaces)
        self.eigenvectors = []
        energies = []
        for s in self.subspaces:
            (e, v) = diagonalise_sorted(H[numpy.ix_(s, s)])
            energies.append(e)
            self.eigenvectors.append(v)
        self.e0 = min(e[0] for e in energies)
        self.energies = [e - self.e0 for e in energies]
        self.dims = numpy.array([len(s) for s in self.subspaces])
        self._set_operator_blocks(cops)
        if verbose:
            print("# Number of atomic subspaces: {}".format(self.nsubspaces))
            print("# Largest subspace dimension: {}".format(max(self.dims)))
            print("# Atomic ground state energy: {: .10e}".format(self.e0))

    def _partition_by_quantum_numbers(self, H, quantum_numbers, cops):
        qns = []
        for q in quantum_numbers:
            Q = operator_matrix(q, self.fops, cops).toarray()
            offdiag = Q - numpy.diag(numpy.diag(Q))
            if numpy.linalg.norm(offdiag) > 1e-10:
                raise ValueError("Quantum number operators must be diagonal "
                                 "in the occupation number basis.")
            if numpy.linalg.norm(numpy.dot(Q, H)-numpy.dot(H, Q)) > 1e-10:
                raise ValueError("Quantum number operator does not commute "
                                 "with the local Hamiltonian.")
            qns.append(numpy.round(numpy.diag(Q).real, 8))
        sectors = {}
        for state in range(H.shape[0]):
            key = tuple(q[state] for q in qns)
            sectors.setdefault(key, []).append(state)
        return [numpy.array(v) for (k, v) in sorted(sectors.items())]

    def _autopartition(self, H, cops):
        # states connected by h_loc.
        (ncomp, labels) = connected_components(
                scipy.sparse.csr_matrix(numpy.abs(H) > 1e-14), directed=False)
        parent = numpy.arange(ncomp)

        def find(i):
            while parent[i] != i:
                parent[i] = parent[parent[i]]
                i = parent[i]
            return i

        def union(i, j):
            ri, rj = find(i), find(j)
            if ri == rj:
                return False
            parent[max(ri, rj)] = min(ri, rj)
            return True

        links = []
        for op in cops:
            for mat in (op, op.T.tocsr()):
                coo = mat.tocoo()
                mask = numpy.abs(coo.data) > 1e-14
                links.append((labels[coo.row[mask]], labels[coo.col[mask]]))
        # merge until every operator maps a subspace into a single subspace.
        changed = True
        while changed:
            changed = False
            for (rows, cols) in links:
                target = {}
                for (r, s) in zip(rows, cols):
                    src = find(s)
                    if src in target:
                        changed = union(target[src], r) or changed
                    else:
                        target[src] = r
        groups = {}
        for state in range(H.shape[0]):
            groups.setdefault(find(labels[state]), []).append(state)
        return sorted((numpy.array(v) for v in groups.values()),
                      key=lambda v: v[0])

    def _set_operator_blocks(self, cops):
        index = numpy.zeros(2**self.nmodes, dtype=int)
        for (i, s) in enumerate(self.subspaces):
            index[s] = i
        self.connection = -numpy.ones((2, self.nmodes, self.nsubspaces),
                                      dtype=int)
        self.matrices = [[[None]*self.nsubspaces for k in range(self.nmodes)]
                         for d in range(2)]
        for dagger in range(2):
            for (k, op) in enumerate(cops):
                mat = (op.T if dagger else op).toarray()
                for (b, s) in enumerate(self.subspaces):
                    cols = mat[:, s]
                    reached = numpy.nonzero(numpy.abs(cols).sum(axis=1) > 1e-14)[0]
                    if len(reached) == 0:
                        continue
                    targets = numpy.unique(index[reached])
                    if len(targets) != 1:
                        raise ValueError("Operator maps a subspace into "
                                         "several subspaces. Inconsistent "
                                         "quantum numbers?")
                    t = targets[0]
                    block = mat[numpy.ix_(self.subspaces[t], s)]
                    block = numpy.dot(self.eigenvectors[t].conj().T,
                                      numpy.dot(block, self.eigenvectors[b]))
                    self.connection[dagger, k, b] = t
                    self.matrices[dagger][k][b] = block

    def subspace_weights(self, beta):
        """Atomic Boltzmann weight of each subspace (shifted by e0)."""
        return numpy.array([numpy.exp(-beta*e).sum() for e in self.energies])

    def partition_function(self, beta):
        """Atomic partition function relative to exp(-beta*e0)."""
        return self.subspace_weights(beta).sum()

    def greens_function_tau(self, beta, tau, labels):
        r"""Atomic imaginary time Green's function.

        .. math::
            G_{ab}(\tau) = -\frac{1}{Z}\mathrm{Tr}\left[e^{-(\beta-\tau)H}
                            c_a e^{-\tau H} c^{\dagger}_b\right]

        Parameters
        ----------
        beta : float
            Inverse temperature.
        tau : :class:`numpy.ndarray`
            Imaginary time points in [0, beta].
        labels : list
            Orbital labels of the block.

        Returns
        -------
        G : :class:`numpy.ndarray`
            Shape (len(tau), n, n).
        """
        tau = numpy.asarray(tau)
        nl = len(labels)
        G = numpy.zeros((len(tau), nl, nl))
        Z = self.partition_function(beta)
        for (a, la) in enumerate(labels):
            ka = self.fops[la]
            for (b, lb) in enumerate(labels):
                kb = self.fops[lb]
                for B in range(self.nsubspaces):
                    T = self.connection[1, kb, B]
                    if T < 0 or self.connection[0, ka, T] != B:
                        continue
                    A = self.matrices[0][ka][T]
                    Cd = self.matrices[1][kb][B]
                    P = (A * Cd.T).real
                    EB = self.energies[B]
                    ET = self.energies[T]
                    expo = numpy.exp(-(beta-tau)[:, None, None]*EB[None, :, None]
                                     -tau[:, None, None]*ET[None, None, :])
                    G[:, a, b] -= numpy.einsum('tij,ij->t', expo, P)
        return G / Z
