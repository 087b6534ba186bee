"""Container for the measurements of a CT-HYB run."""

import h5py
import numpy
import os
from pyhyb.estimators.greens_function import GreenFunctionAccumulator
from pyhyb.estimators.move_histograms import MoveHistograms
from pyhyb.estimators.perturbation_order import PerturbationOrderHistogram
from pyhyb.utils.io import get_input_value, write_metadata


class Estimators(object):
    """Container for Monte Carlo measurements.

    Parameters
    ----------
    model : :class:`pyhyb.hybridization.HybridizationModel`
        Hybridization function and block structure.
    measure_g_tau : bool
        Accumulate G(tau).
    measure_pert_order : bool
        Accumulate perturbation order histograms.
    options : dict
        Output options, ``filename`` (or ``basename`` and ``index``) and
        ``overwrite``.
    verbose : bool
        Print setup information.
    move_names : list of strings, optional
        If given, analysis histograms of these moves are accumulated.

    Attributes
    ----------
    estimators : dict
        Measurement objects keyed by their output name.
    sign_sum : float
        Sum of Monte Carlo signs over all measurements.
    nmeasures : int
        Number of measurements.
    move_histograms : :class:`pyhyb.estimators.move_histograms.MoveHistograms`
        Move analysis histograms or None.
    """

    def __init__(self, model, measure_g_tau=True, measure_pert_order=False,
                 options={}, verbose=False, move_names=None):
        if verbose:
            print("# Setting up estimator object.")
        self.estimators = {}
        if measure_g_tau:
            est = GreenFunctionAccumulator(model)
            self.estimators[est.name] = est
        if measure_pert_order:
            est = PerturbationOrderHistogram(model)
            self.estimators[est.name] = est
        if move_names is not None:
            self.move_histograms = MoveHistograms(move_names)
        else:
            self.move_histograms = None
        self.h5f_name = get_input_value(options, 'filename', default=None,
                                        verbose=verbose)
        if self.h5f_name is None:
            basename = options.get('basename', 'estimates')
            index = options.get('index', 0)
            overwrite = options.get('overwrite', True)
            self.h5f_name = basename + '.%s.h5' % index
            while os.path.isfile(self.h5f_name) and not overwrite:
                index = index + 1
                self.h5f_name = basename + '.%s.h5' % index
        self.json_string = '{}'
        self.zero()
        if verbose:
            print("# Measuring: {}.".format(', '.join(self.estimators.keys())))

    def zero(self):
        self.sign_sum = 0.0
        self.nmeasures = 0
        for k, e in self.estimators.items():
            e.zero()
        if self.move_histograms is not None:
            self.move_histograms.zero()

    def record(self, config):
        """Measure every estimator on the current configuration."""
        self.sign_sum += config.sign
        self.nmeasures += 1
        for k, e in self.estimators.items():
            e.record(config)

    @property
    def average_sign(self):
        if self.nmeasures == 0:
            return 1.0
        return self.sign_sum / self.nmeasures

    def snapshot(self):
        snap = dict((k, e.snapshot()) for k, e in self.estimators.items())
        snap['sign_sum'] = self.sign_sum
        snap['nmeasures'] = self.nmeasures
        if self.move_histograms is not None:
            snap[MoveHistograms.name] = self.move_histograms.snapshot()
        return snap

    def merge(self, snapshots):
        """Add snapshots (of this or other workers) to the estimators.

        The reduction is a flat sum of bins, signs and counts so it does not
        depend on how the snapshots were produced.
        """
        for snap in snapshots:
            self.sign_sum += snap['sign_sum']
            self.nmeasures += snap['nmeasures']
        for k, e in self.estimators.items():
            e.merge([snap[k] for snap in snapshots])
        if self.move_histograms is not None:
            self.move_histograms.merge([snap[MoveHistograms.name]
                                        for snap in snapshots])

    def collect(self, comm):
        """Reduce the estimators over all ranks of a communicator."""
        snapshots = comm.allgather(self.snapshot())
        self.zero()
        self.merge(snapshots)

    def finalise(self):
        return dict((k, e.finalise()) for k, e in self.estimators.items())

    def write(self, filename=None):
        """Write estimates and metadata to HDF5."""
        if filename is None:
            filename = self.h5f_name
        with h5py.File(filename, 'w') as fh5:
            write_metadata(fh5, self.json_string)
            fh5.create_dataset('average_sign',
                               data=numpy.array([self.average_sign]))
            fh5.create_dataset('n_measures',
                               data=numpy.array([self.nmeasures]))
            for k, e in self.estimators.items():
                e.write(fh5)
            if self.move_histograms is not None:
                self.move_histograms.write(fh5)
