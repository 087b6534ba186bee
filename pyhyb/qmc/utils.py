import numpy

BIT_GENERATORS = {
    'pcg64': numpy.random.PCG64,
    'mt19937': numpy.random.MT19937,
    'philox': numpy.random.Philox,
    'sfc64': numpy.random.SFC64,
}


def get_random_generator(name, seed, verbose=False):
    """Random number generator with a named bit generator.

    Parameters
    ----------
    name : string
        One of PCG64, MT19937, Philox or SFC64 (case insensitive). An empty
        string selects numpy's default, PCG64.
    seed : int
        Random seed.

    Returns
    -------
    rng : :class:`numpy.random.Generator`
        Generator.
    """
    key = name.lower() if name else 'pcg64'
    if key not in BIT_GENERATORS:
        raise ValueError("Unknown random number generator: {}. Options: {}."
                         .format(name, ', '.join(sorted(BIT_GENERATORS))))
    if verbose:
        print("# Random number generator: {} with seed {}."
              .format(BIT_GENERATORS[key].__name__, seed))
    return numpy.random.Generator(BIT_GENERATORS[key](seed))
