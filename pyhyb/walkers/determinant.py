import numpy
from collections import namedtuple
from pyhyb.utils.linalg import signed_log_det

InsertUpdate = namedtuple('InsertUpdate',
                          ['i', 'j', 'x', 'y', 'row', 'col', 'schur', 'ratio'])
RemoveUpdate = namedtuple('RemoveUpdate', ['i', 'j', 'ratio'])


class HybridizationDeterminant(object):
    r"""Hybridization matrix of one block with fast updates of its inverse.

    Rows are the creation operators ordered in time, columns the annihilation
    operators ordered in time and the elements are

    .. math::
        D_{ij} = \Delta_{a_i b_j}(\tau^{\dagger}_i - \tau_j).

    Updates are split in a ``try_*`` step which returns an immutable update
    object and the determinant ratio without touching the stored matrices,
    and a ``complete_*`` step which commits the update.

    Parameters
    ----------
    model : :class:`pyhyb.hybridization.HybridizationModel`
        Provides Delta(tau).
    block : int
        Block index.

    Attributes
    ----------
    x_tau, x_inner : :class:`numpy.ndarray`
        Creation operator times and orbitals (rows).
    y_tau, y_inner : :class:`numpy.ndarray`
        Annihilation operator times and orbitals (columns).
    D : :class:`numpy.ndarray`
        Hybridization matrix.
    M : :class:`numpy.ndarray`
        Inverse of D.
    sign : float
        Sign of det(D).
    logdet : float
        Log of abs(det(D)).
    """

    def __init__(self, model, block):
        self.model = model
        self.block = block
        self.x_tau = numpy.zeros(0)
        self.x_inner = numpy.zeros(0, dtype=int)
        self.y_tau = numpy.zeros(0)
        self.y_inner = numpy.zeros(0, dtype=int)
        self.D = numpy.zeros((0, 0))
        self.M = numpy.zeros((0, 0))
        self.sign = 1.0
        self.logdet = 0.0

    @property
    def size(self):
        return len(self.x_tau)

    def _delta(self, x_tau, x_inner, y_tau, y_inner):
        return self.model.delta_matrix(self.block, x_tau, x_inner,
                                       y_tau, y_inner)

    def try_insert(self, x, y):
        """Ratio of determinants after adding a row and a column.

        Parameters
        ----------
        x : tuple
            (tau, inner) of the new creation operator.
        y : tuple
            (tau, inner) of the new annihilation operator.

        Returns
        -------
        update : :class:`InsertUpdate`
            Pending update, ``update.ratio`` is det(D')/det(D).
        """
        i = int(numpy.searchsorted(self.x_tau, x[0]))
        j = int(numpy.searchsorted(self.y_tau, y[0]))
        row = self._delta([x[0]], [x[1]], self.y_tau, self.y_inner)[0]
        col = self._delta(self.x_tau, self.x_inner, [y[0]], [y[1]])[:, 0]
        d = self._delta([x[0]], [x[1]], [y[0]], [y[1]])[0, 0]
        schur = d - numpy.dot(row, numpy.dot(self.M, col))
        # moving the new row / column from the end to positions i / j.
        ratio = schur * (-1)**(i+j)
        return InsertUpdate(i, j, x, y, row, col, schur, ratio)

    def complete_insert(self, update):
        n = self.size
        (i, j) = (update.i, update.j)
        Mc = numpy.dot(self.M, update.col)
        rM = numpy.dot(update.row, self.M)
        s = update.schur
        Mext = numpy.zeros((n+1, n+1))
        Mext[:n, :n] = self.M + numpy.outer(Mc, rM) / s
        Mext[:n, n] = -Mc / s
        Mext[n, :n] = -rM / s
        Mext[n, n] = 1.0 / s
        Dext = numpy.zeros((n+1, n+1))
        Dext[:n, :n] = self.D
        Dext[:n, n] = update.col
        Dext[n, :n] = update.row
        Dext[n, n] = s + numpy.dot(update.row, Mc)
        # rows of D (columns of M) are creation operators.
        order_x = numpy.insert(numpy.arange(n), i, n)
        order_y = numpy.insert(numpy.arange(n), j, n)
        self.D = Dext[numpy.ix_(order_x, order_y)]
        self.M = Mext[numpy.ix_(order_y, order_x)]
        self.x_tau = numpy.insert(self.x_tau, i, update.x[0])
        self.x_inner = numpy.insert(self.x_inner, i, update.x[1])
        self.y_tau = numpy.insert(self.y_tau, j, update.y[0])
        self.y_inner = numpy.insert(self.y_inner, j, update.y[1])
        self.sign *= numpy.sign(update.ratio)
        self.logdet += numpy.log(abs(update.ratio))

    def try_remove(self, i, j):
        """Ratio of determinants after removing row i and column j.

        Parameters
        ----------
        i : int
            Row (creation operator) index.
        j : int
            Column (annihilation operator) index.

        Returns
        -------
        update : :class:`RemoveUpdate`
            Pending update.
        """
        ratio = self.M[j, i] * (-1)**(i+j)
        return RemoveUpdate(i, j, ratio)

    def complete_remove(self, update):
        (i, j) = (update.i, update.j)
        M = self.M - numpy.outer(self.M[:, i], self.M[j, :]) / self.M[j, i]
        self.M = numpy.delete(numpy.delete(M, j, axis=0), i, axis=1)
        self.D = numpy.delete(numpy.delete(self.D, i, axis=0), j, axis=1)
        self.x_tau = numpy.delete(self.x_tau, i)
        self.x_inner = numpy.delete(self.x_inner, i)
        self.y_tau = numpy.delete(self.y_tau, j)
        self.y_inner = numpy.delete(self.y_inner, j)
        self.sign *= numpy.sign(update.ratio)
        self.logdet += numpy.log(abs(update.ratio))

    def build_matrix(self):
        """Hybridization matrix evaluated from scratch."""
        return self._delta(self.x_tau, self.x_inner, self.y_tau, self.y_inner)

    def regenerate(self):
        """Recompute D, its inverse and determinant from scratch."""
        self.D = self.build_matrix()
        if self.size > 0:
            self.M = numpy.linalg.inv(self.D)
        else:
            self.M = numpy.zeros((0, 0))
        (self.sign, self.logdet) = signed_log_det(self.D)

    def inserted_times(self, update):
        """Operator times after a pending insertion (rows, columns)."""
        return (numpy.insert(self.x_tau, update.i, update.x[0]),
                numpy.insert(self.y_tau, update.j, update.y[0]))

    def removed_times(self, update):
        """Operator times after a pending removal (rows, columns)."""
        return (numpy.delete(self.x_tau, update.i),
                numpy.delete(self.y_tau, update.j))
