import numpy
import pytest
from pyhyb.estimators.greens_function import GreenFunctionAccumulator
from pyhyb.estimators.handler import Estimators
from pyhyb.estimators.move_histograms import MoveHistograms
from pyhyb.estimators.perturbation_order import PerturbationOrderHistogram
from pyhyb.analysis.extraction import (
        extract_green_function,
        extract_pert_order,
        extract_statistics
        )
from pyhyb.qmc.comm import FakeComm
from pyhyb.systems.operators import n
from pyhyb.updates.insert import InsertMove
from pyhyb.utils.testing import get_test_configuration


def flat_configuration(beta=2.0, n_tau=11):
    delta = -0.5*numpy.ones((n_tau, 1, 1))
    return get_test_configuration(0.0*n('up', 0), {'up': [0]}, beta,
                                  {'up': delta}, n_tau=n_tau)


def insert(config, x, y):
    move = InsertMove(0, config)
    move.evaluate((x, 0), (y, 0))
    move.accept()


@pytest.mark.unit
def test_green_function_estimator():
    (config, rng) = flat_configuration()
    model = config.model
    G = GreenFunctionAccumulator(model)
    G.record(config)
    assert numpy.all(G.data[0] == 0.0)
    insert(config, 0.4, 1.0)
    G.record(config)
    # tau = 0.6 is closest to mesh point 3 and M = 1/Delta(-0.6) = 2.
    assert G.data[0][3, 0, 0] == pytest.approx(2.0)
    assert numpy.count_nonzero(G.data[0]) == 1
    assert G.sign_sum == 2.0
    assert G.nmeasures == 2
    G_tau = G.finalise()
    assert G_tau[0][3, 0, 0] == pytest.approx(-2.0/(2.0*2.0*0.2))


@pytest.mark.unit
def test_green_function_antiperiodic_fold():
    (config_a, rng) = flat_configuration()
    (config_b, rng) = flat_configuration()
    insert(config_a, 0.4, 1.6)
    insert(config_b, 1.6, 0.4)
    G = GreenFunctionAccumulator(config_a.model)
    G.record(config_a)
    G.record(config_b)
    # tau = 1.2 and tau = -1.2 + beta = 0.8 contribute with equal sign.
    assert G.data[0][6, 0, 0] == pytest.approx(2.0)
    assert G.data[0][4, 0, 0] == pytest.approx(2.0)


@pytest.mark.unit
def test_histogram_normalisation():
    (config, rng) = flat_configuration()
    hist = PerturbationOrderHistogram(config.model, nbins=1)
    nmeasure = 0
    for (x, y) in [(0.1, 0.2), (0.3, 0.5), (0.7, 1.1)]:
        for i in range(3):
            hist.record(config)
            nmeasure += 1
        insert(config, x, y)
    hist.record(config)
    nmeasure += 1
    counts = hist.histograms()[0]
    assert counts.sum() == nmeasure
    assert hist.nmeasures == nmeasure
    assert list(counts) == [3, 3, 3, 1]
    assert hist.finalise()[0].sum() == pytest.approx(1.0)


@pytest.mark.unit
def test_merge():
    (config, rng) = flat_configuration()
    insert(config, 0.4, 1.0)
    est_a = Estimators(config.model, measure_pert_order=True)
    est_b = Estimators(config.model, measure_pert_order=True)
    for i in range(3):
        est_a.record(config)
    insert(config, 1.3, 1.9)
    for i in range(5):
        est_b.record(config)
    total = Estimators(config.model, measure_pert_order=True)
    total.merge([est_a.snapshot(), est_b.snapshot()])
    assert total.nmeasures == 8
    assert total.sign_sum == 8.0
    hist = total.estimators['pert_order'].histograms()[0]
    assert list(hist) == [0, 3, 5]
    G = total.estimators['G_tau']
    ref = est_a.estimators['G_tau'].data[0] + est_b.estimators['G_tau'].data[0]
    assert numpy.linalg.norm(G.data[0]-ref) == pytest.approx(0.0)
    # serial collection is the identity.
    G_before = G.data[0].copy()
    total.collect(FakeComm())
    assert total.nmeasures == 8
    assert numpy.array_equal(G.data[0], G_before)


@pytest.mark.unit
def test_write(tmp_path):
    (config, rng) = flat_configuration()
    insert(config, 0.4, 1.0)
    est = Estimators(config.model, measure_pert_order=True)
    est.json_string = '{"model": {"beta": 2.0}}'
    for i in range(4):
        est.record(config)
    est.finalise()
    filename = str(tmp_path / 'estimates.0.h5')
    est.write(filename)
    (tau, G_tau) = extract_green_function(filename)
    assert len(tau) == 11
    assert numpy.linalg.norm(G_tau['up']-est.estimators['G_tau'].G_tau[0]) == pytest.approx(0.0)
    frame = extract_pert_order(filename)
    assert list(frame['up']) == [0, 4]
    stats = extract_statistics(filename)
    assert stats['average_sign'] == pytest.approx(1.0)
    assert stats['n_measures'] == 4


@pytest.mark.unit
def test_finalise_without_measurements():
    (config, rng) = flat_configuration()
    G = GreenFunctionAccumulator(config.model)
    G_tau = G.finalise()
    assert G_tau[0].shape == (11, 1, 1)
    assert numpy.all(G_tau[0] == 0.0)
    est = Estimators(config.model, measure_pert_order=True)
    est.finalise()
    assert est.average_sign == 1.0
    # measurements whose signs cancel cannot be normalised.
    G.nmeasures = 2
    with pytest.raises(RuntimeError):
        G.finalise()


@pytest.mark.unit
def test_move_histograms():
    hist = MoveHistograms(['Insert up', 'Remove up'], nbins=4,
                          log_range=(-2.0, 2.0), norders=1)
    hist.record(0, 0, 10.0, numpy.log(10.0), True)
    hist.record(0, 1, 1e-5, numpy.log(1e-5), False)
    hist.record(1, 2, 0.0, None, False)
    assert hist.proposed.shape[1] >= 3
    assert list(hist.proposed[0, :3]) == [1, 1, 0]
    assert list(hist.accepted[0, :3]) == [1, 0, 0]
    assert list(hist.log_ratio[0]) == [1, 0, 0, 1]
    assert list(hist.log_trace_ratio[0]) == [1, 0, 0, 1]
    assert list(hist.zero_ratio) == [0, 1]
    assert hist.log_trace_ratio[1].sum() == 0
    rates = hist.acceptance_by_order()
    assert rates[0, 0] == 1.0
    assert rates[0, 1] == 0.0
    assert numpy.isnan(rates[1, 0])
    total = MoveHistograms(hist.move_names, nbins=4, log_range=(-2.0, 2.0))
    total.merge([hist.snapshot(), hist.snapshot()])
    assert total.proposed.sum() == 6
    assert list(total.zero_ratio) == [0, 2]
    assert list(total.log_ratio[0]) == [2, 0, 0, 2]
