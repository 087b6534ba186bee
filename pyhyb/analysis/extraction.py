import h5py
import numpy
import pandas as pd
from pyhyb.utils.io import read_metadata
from pyhyb.utils.misc import get_from_dict


def extract_green_function(filename):
    """G(tau) per block from an output file.

    Returns
    -------
    tau : :class:`numpy.ndarray`
        Imaginary time mesh.
    G_tau : dict
        Block name to array of shape (n_tau, n, n).
    """
    beta = get_param(filename, ['model', 'beta'])
    with h5py.File(filename, 'r') as fh5:
        G_tau = dict((name, fh5['G_tau'][name][:])
                     for name in fh5['G_tau'].keys())
    n_tau = list(G_tau.values())[0].shape[0]
    return (numpy.linspace(0.0, beta, n_tau), G_tau)


def extract_pert_order(filename, normalise=False):
    """Perturbation order histograms as a DataFrame, one column per block."""
    with h5py.File(filename, 'r') as fh5:
        hists = dict((name, fh5['pert_order'][name][:])
                     for name in fh5['pert_order'].keys())
        nmeasures = fh5['n_measures'][0]
    frame = pd.DataFrame(dict((k, pd.Series(v)) for k, v in hists.items()))
    frame = frame.fillna(0)
    if normalise:
        frame = frame / float(nmeasures)
    frame.index.name = 'order'
    return frame


def extract_statistics(filename):
    """Average sign, number of measurements and acceptance rates."""
    with h5py.File(filename, 'r') as fh5:
        sign = fh5['average_sign'][0]
        nmeasures = fh5['n_measures'][0]
    stats = {'average_sign': sign, 'n_measures': nmeasures}
    acceptance = get_param(filename, ['statistics', 'acceptance'])
    if acceptance is not None:
        stats.update(('acceptance ' + k, v) for k, v in acceptance.items())
    return pd.Series(stats)


def extract_move_histograms(filename):
    """Proposals and acceptances of every move by perturbation order."""
    frames = []
    with h5py.File(filename, 'r') as fh5:
        group = fh5['histograms']
        for name in group.keys():
            if name == 'log10_edges':
                continue
            proposed = group[name]['proposed'][:]
            accepted = group[name]['accepted'][:]
            frame = pd.DataFrame({'move': name,
                                  'order': numpy.arange(len(proposed)),
                                  'proposed': proposed,
                                  'accepted': accepted})
            frames.append(frame)
    frame = pd.concat(frames, ignore_index=True)
    frame['acceptance'] = frame.accepted / frame.proposed.where(frame.proposed > 0)
    return frame


def get_param(filename, param):
    md = read_metadata(filename)
    return get_from_dict(md, param)
