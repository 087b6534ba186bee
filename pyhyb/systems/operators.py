"""Second quantised fermionic operators acting on the impurity orbitals."""

import numbers
import numpy
import scipy.sparse


class Operator(object):
    """Polynomial in fermionic creation / annihilation operators.

    Each term is stored as a normal ordered monomial (creation operators to
    the left of annihilation operators, both sorted by label) mapped to its
    coefficient. Labels are ``(block, inner)`` tuples matching the ``gf_struct``
    of the calculation.

    Parameters
    ----------
    terms : dict, optional
        Mapping from monomial to coefficient. A monomial is a tuple of
        ``(dagger, label)`` pairs.
    """

    def __init__(self, terms=None):
        self.terms = {}
        if terms is not None:
            for monomial, coeff in terms.items():
                for (c, m) in _normal_order(tuple(monomial)):
                    self._add_term(m, c*coeff)

    def _add_term(self, monomial, coeff):
        value = self.terms.get(monomial, 0) + coeff
        if abs(value) < 1e-14:
            self.terms.pop(monomial, None)
        else:
            self.terms[monomial] = value

    def copy(self):
        new = Operator()
        new.terms = dict(self.terms)
        return new

    def is_zero(self):
        return len(self.terms) == 0

    def labels(self):
        """Set of orbital labels appearing in the operator."""
        return set(l for m in self.terms for (d, l) in m)

    def dagger(self):
        terms = {}
        for monomial, coeff in self.terms.items():
            conj = tuple((not d, l) for (d, l) in reversed(monomial))
            terms[conj] = numpy.conj(coeff)
        return Operator(terms)

    def __add__(self, other):
        new = self.copy()
        if isinstance(other, Operator):
            for m, c in other.terms.items():
                new._add_term(m, c)
        elif isinstance(other, numbers.Number):
            new._add_term((), other)
        else:
            return NotImplemented
        return new

    __radd__ = __add__

    def __neg__(self):
        return self * -1

    def __sub__(self, other):
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    def __mul__(self, other):
        if isinstance(other, numbers.Number):
            new = Operator()
            for m, c in self.terms.items():
                new._add_term(m, c*other)
            return new
        elif isinstance(other, Operator):
            new = Operator()
            for m1, c1 in self.terms.items():
                for m2, c2 in other.terms.items():
                    for (c, m) in _normal_order(m1+m2):
                        new._add_term(m, c*c1*c2)
            return new
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, numbers.Number):
            return self * other
        return NotImplemented

    def __eq__(self, other):
        if isinstance(other, numbers.Number):
            other = Operator() + other
        if not isinstance(other, Operator):
            return NotImplemented
        return (self - other).is_zero()

    def __repr__(self):
        if self.is_zero():
            return '0'
        out = []
        for monomial, coeff in sorted(self.terms.items(),
                                      key=lambda t: _monomial_key(t[0])):
            ops = ''.join(('c_dag' if d else 'c') + '(%s,%s)' % l
                          for (d, l) in monomial)
            out.append('%s%s' % (coeff, '*' + ops if ops else ''))
        return ' + '.join(out)


def _label_key(label):
    return (str(label[0]), str(label[1]))


def _monomial_key(monomial):
    return tuple((not d, _label_key(l)) for (d, l) in monomial)


def _normal_order(monomial):
    """Bring a monomial to normal order.

    Returns
    -------
    terms : list
        List of (coefficient, monomial) pairs whose sum equals the input.
    """
    for i in range(len(monomial)-1):
        (d1, l1) = monomial[i]
        (d2, l2) = monomial[i+1]
        if not d1 and d2:
            # c_a c^+_b = delta_ab - c^+_b c_a
            swapped = monomial[:i] + ((d2, l2), (d1, l1)) + monomial[i+2:]
            res = [(-c, m) for (c, m) in _normal_order(swapped)]
            if l1 == l2:
                res += _normal_order(monomial[:i]+monomial[i+2:])
            return res
        if d1 == d2:
            if l1 == l2:
                return []
            if _label_key(l1) > _label_key(l2):
                swapped = monomial[:i] + ((d2, l2), (d1, l1)) + monomial[i+2:]
                return [(-c, m) for (c, m) in _normal_order(swapped)]
    return [(1, monomial)]


def c(block, inner):
    """Annihilation operator."""
    return Operator({((False, (block, inner)),): 1})


def c_dag(block, inner):
    """Creation operator."""
    return Operator({((True, (block, inner)),): 1})


def n(block, inner):
    """Number operator."""
    return c_dag(block, inner) * c(block, inner)


class FundamentalOperatorSet(object):
    """Ordered set of orbital labels.

    Parameters
    ----------
    gf_struct : dict or list
        Block name to list of inner indices. A list of ``(name, indices)``
        pairs keeps the given block order.
    """

    def __init__(self, gf_struct):
        self.labels = []
        for (name, indices) in get_block_items(gf_struct):
            for i in indices:
                self.labels.append((name, i))
        self.index = {l: i for (i, l) in enumerate(self.labels)}

    def __len__(self):
        return len(self.labels)

    def __contains__(self, label):
        return label in self.index

    def __getitem__(self, label):
        return self.index[label]


def get_block_items(gf_struct):
    """Validated list of ``(block_name, indices)`` pairs."""
    if isinstance(gf_struct, dict):
        items = list(gf_struct.items())
    else:
        items = [(name, indices) for (name, indices) in gf_struct]
    if len(items) == 0:
        raise ValueError("Block structure must contain at least one block.")
    names = [name for (name, indices) in items]
    if len(set(names)) != len(names):
        raise ValueError("Repeated block names in block structure: "
                         "{}.".format(names))
    for (name, indices) in items:
        if len(indices) == 0:
            raise ValueError("Block {} has no orbitals.".format(name))
        if len(set(indices)) != len(indices):
            raise ValueError("Repeated orbital indices in block "
                             "{}: {}.".format(name, list(indices)))
    return [(name, list(indices)) for (name, indices) in items]


def fock_operators(nmodes):
    """Jordan-Wigner representation of the annihilation operators.

    Mode 0 is the most significant bit of the basis state index.

    Parameters
    ----------
    nmodes : int
        Number of fermionic modes.

    Returns
    -------
    ops : list of :class:`scipy.sparse.csr_matrix`
        Annihilation operators in the 2^nmodes dimensional Fock space.
    """
    a = scipy.sparse.csr_matrix(numpy.array([[0.0, 1.0], [0.0, 0.0]]))
    F = scipy.sparse.csr_matrix(numpy.diag([1.0, -1.0]))
    ops = []
    for k in range(nmodes):
        op = scipy.sparse.identity(1, format='csr')
        for j in range(nmodes):
            if j < k:
                factor = F
            elif j == k:
                factor = a
            else:
                factor = scipy.sparse.identity(2, format='csr')
            op = scipy.sparse.kron(op, factor, format='csr')
        ops.append(op)
    return ops


def operator_matrix(operator, fops, cops=None):
    """Fock space matrix of an operator.

    Parameters
    ----------
    operator : :class:`Operator`
        Operator expression.
    fops : :class:`FundamentalOperatorSet`
        Labels defining the Fock space.
    cops : list, optional
        Precomputed annihilation operators (see :func:`fock_operators`).

    Returns
    -------
    mat : :class:`scipy.sparse.csr_matrix`
        Matrix representation.
    """
    unknown = [l for l in operator.labels() if l not in fops]
    if len(unknown) > 0:
        raise ValueError("Operator acts on orbitals outside of the block "
                         "structure: {}.".format(unknown))
    if cops is None:
        cops = fock_operators(len(fops))
    dim = 2**len(fops)
    dtype = numpy.complex128 if any(numpy.iscomplexobj(c_) for c_ in
                                    operator.terms.values()) else numpy.float64
    mat = scipy.sparse.csr_matrix((dim, dim), dtype=dtype)
    for monomial, coeff in operator.terms.items():
        term = scipy.sparse.identity(dim, format='csr', dtype=dtype)
        for (dagger, label) in monomial:
            op = cops[fops[label]]
            term = term.dot(op.T if dagger else op)
        mat = mat + coeff * term
    return mat
