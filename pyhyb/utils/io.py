import h5py
import json
import numpy
from pyhyb.utils.misc import serialise


def format_fixed_width_strings(strings):
    return ' '.join('{:>17}'.format(s) for s in strings)


def format_fixed_width_floats(floats):
    return ' '.join('{: .10e}'.format(f) for f in floats)


def to_json(obj, verbose=0):
    json.encoder.FLOAT_REPR = lambda o: format(o, '.6f')
    json_string = json.dumps(serialise(obj, verbose=verbose),
                             sort_keys=False, indent=4)
    return json_string


def get_input_value(inputs, key, default=0, alias=None, verbose=False):
    """Helper routine to parse input options.
    """
    val = inputs.get(key, None)
    if val is None:
        if alias is not None:
            for a in alias:
                val = inputs.get(a, None)
                if val is not None:
                    break
        if val is None:
            val = default
            if verbose:
                print("# Warning: {} not specified. Setting to default value"
                      " of {}.".format(key, default))
    return val


def read_input(input_file, verbose=False):
    """Read json input file.

    Parameters
    ----------
    input_file : string
        Input filename.
    verbose : bool
        If true print out set up information.

    Returns
    -------
    options : dict
        Python dict of input options.
    """
    if verbose:
        print('# Initialising pyhyb simulation from %s'%input_file)
    with open(input_file) as inp:
        options = json.load(inp)
    return options


def write_metadata(fh5, json_string):
    fh5.create_dataset('metadata',
                       data=numpy.array([json_string], dtype=object),
                       dtype=h5py.special_dtype(vlen=str))


def read_metadata(filename):
    with h5py.File(filename, 'r') as fh5:
        md = fh5['metadata'][()]
    md = md[0] if isinstance(md, numpy.ndarray) else md
    if isinstance(md, bytes):
        md = md.decode('utf-8')
    return json.loads(md)
