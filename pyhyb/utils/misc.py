'''Various useful routines maybe not appropriate elsewhere'''

import numpy
import os
import subprocess
import types


def get_git_revision_hash():
    """ Return git revision.

    Adapted from:
        http://stackoverflow.com/questions/14989858/get-the-current-git-hash-in-a-python-script

    Returns
    -------
    sha1 : string
        git hash with -dirty appended if uncommitted changes.
    """

    src = os.path.dirname(os.path.abspath(__file__))
    try:
        sha1 = subprocess.check_output(['git', 'rev-parse', 'HEAD'],
                                       cwd=src,
                                       stderr=subprocess.DEVNULL).strip()
        suffix = subprocess.check_output(['git', 'status',
                                          '--porcelain',
                                          '.'],
                                         cwd=src,
                                         stderr=subprocess.DEVNULL).strip()
    except (subprocess.CalledProcessError, OSError):
        suffix = False
        sha1 = 'none'.encode()
    if suffix:
        return sha1.decode('utf-8') + '-dirty'
    else:
        return sha1.decode('utf-8')


def is_h5file(obj):
    t = str(type(obj))
    cond = 'h5py' in t
    return cond


def is_class(obj):
    cond = (hasattr(obj, '__class__') and (('__dict__') in dir(obj)
            and not isinstance(obj, types.FunctionType)
            and not is_h5file(obj)))

    return cond


def serialise(obj, verbose=0):
    """Convert object attributes to a json serialisable dict.

    Large arrays are only kept for high verbosity, private attributes
    (leading underscore) are skipped.
    """

    obj_dict = {}
    if isinstance(obj, dict):
        items = obj.items()
    else:
        items = obj.__dict__.items()

    for k, v in items:
        k = str(k)
        if k.startswith('_'):
            continue
        elif isinstance(v, (bool, numpy.bool_)):
            obj_dict[k] = bool(v)
        elif isinstance(v, (int, float, str, numpy.integer, numpy.floating)):
            obj_dict[k] = v.item() if hasattr(v, 'item') else v
        elif isinstance(v, complex):
            obj_dict[k] = v.real
        elif v is None:
            obj_dict[k] = v
        elif isinstance(v, dict):
            obj_dict[k] = serialise(v, verbose)
        elif isinstance(v, (list, tuple)):
            if all(isinstance(x, (int, float, str)) for x in v):
                obj_dict[k] = list(v)
            elif verbose > 1:
                obj_dict[k] = str(v)
        elif isinstance(v, numpy.ndarray):
            if verbose > 2 or (verbose == 2 and len(v.shape) == 1):
                obj_dict[k] = v.real.tolist()
        elif isinstance(v, types.FunctionType) or hasattr(v, '__self__'):
            if verbose == 1:
                obj_dict[k] = str(v)
        elif is_h5file(v):
            if verbose == 1:
                obj_dict[k] = v.filename
        elif is_class(v):
            obj_dict[k] = serialise(v, verbose)

    return obj_dict


def get_from_dict(d, k):
    """Get value from nested dictionary.

    Parameters
    ----------
    d : dict
    k : list
        List of keys.
    """
    for key in k:
        if d is None:
            return None
        d = d.get(key)
    return d
