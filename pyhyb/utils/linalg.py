import numpy
import scipy.linalg


def diagonalise_sorted(H):
    """Diagonalise Hermitian matrix H and return sorted eigenvalues and vectors.

    Eigenvalues are sorted as e_1 < e_2 < .... < e_N, where H is an NxN
    Hermitian matrix.

    Parameters
    ----------
    H : :class:`numpy.ndarray`
        Hamiltonian matrix to be diagonalised.

    Returns
    -------
    eigs : :class:`numpy.array`
        Sorted eigenvalues
    eigv :  :class:`numpy.array`
        Sorted eigenvectors (same sorting as eigenvalues).
    """

    (eigs, eigv) = scipy.linalg.eigh(H)
    idx = eigs.argsort()
    eigs = eigs[idx]
    eigv = eigv[:, idx]

    return (eigs, eigv)


def signed_log_det(A):
    """Sign and log of absolute value of the determinant of A.

    Parameters
    ----------
    A : :class:`numpy.ndarray`
        Square matrix. An empty matrix has determinant one.

    Returns
    -------
    sign : float
        Sign of the determinant (0 for a singular matrix).
    logdet : float
        Log of the absolute value of the determinant.
    """
    if A.shape[0] == 0:
        return (1.0, 0.0)
    (sign, logdet) = numpy.linalg.slogdet(A)
    return (float(sign), float(logdet))


def signed_log_sum(signs, logs):
    """Sum of numbers given as (sign, log|x|) pairs.

    Parameters
    ----------
    signs : :class:`numpy.ndarray`
        Signs of the terms.
    logs : :class:`numpy.ndarray`
        Log of the absolute values of the terms.

    Returns
    -------
    sign : float
        Sign of the sum (0 if it vanishes).
    log : float
        Log of the absolute value of the sum (-inf if it vanishes).
    """
    signs = numpy.asarray(signs, dtype=float)
    logs = numpy.asarray(logs, dtype=float)
    mask = signs != 0
    if not mask.any():
        return (0.0, -numpy.inf)
    lmax = logs[mask].max()
    total = numpy.sum(signs[mask]*numpy.exp(logs[mask]-lmax))
    if total == 0.0:
        return (0.0, -numpy.inf)
    return (float(numpy.sign(total)), float(lmax + numpy.log(abs(total))))


def permutation_parity(values):
    """Parity of the permutation sorting ``values`` in descending order.

    Parameters
    ----------
    values : sequence
        Distinct real numbers.

    Returns
    -------
    sign : int
        +1 for an even number of inversions, -1 otherwise.
    """
    v = numpy.asarray(values, dtype=float)
    if len(v) < 2:
        return 1
    # pairs (a < b) with v[a] < v[b] are out of descending order.
    ninv = numpy.triu(v[:, None] < v[None, :], 1).sum()
    return -1 if ninv % 2 else 1
